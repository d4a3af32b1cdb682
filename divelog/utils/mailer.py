"""Outbound mail for account recovery, over the SMTP relay in settings."""
import logging
import smtplib
from email.message import EmailMessage
from urllib.parse import urlencode

from divelog.config import settings

logger = logging.getLogger(__name__)


def is_configured() -> bool:
    return bool(settings.smtp_host)


def reset_link(token: str) -> str:
    return f"{settings.password_reset_url}?{urlencode({'token': token})}"


def build_reset_message(to: str, token: str) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = "Reset your dive log password"
    msg["From"] = settings.mail_from
    msg["To"] = to
    msg.set_content(
        "A password reset was requested for this address.\n\n"
        f"Choose a new password here:\n{reset_link(token)}\n\n"
        f"The link expires in {settings.reset_token_expiry_minutes} minutes. "
        "If you did not ask for it, ignore this message.\n"
    )
    return msg


def send_password_reset(to: str, token: str) -> bool:
    """Mail the reset link. Returns False when no relay is configured."""
    if not is_configured():
        logger.warning("SMTP is not configured; password reset mail for %s not sent", to)
        return False
    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as smtp:
        if settings.smtp_starttls:
            smtp.starttls()
        if settings.smtp_user:
            smtp.login(settings.smtp_user, settings.smtp_password)
        smtp.send_message(build_reset_message(to, token))
    logger.info("Password reset mail sent to %s", to)
    return True
