from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from divelog.config import settings

ACCESS = "access"
PASSWORD_RESET = "password_reset"


def _encode(subject: str, purpose: str, expires_in: timedelta) -> str:
    expire = datetime.now(timezone.utc) + expires_in
    return jwt.encode(
        {"sub": subject, "exp": expire, "purpose": purpose},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def create_access_token(subject: str) -> str:
    return _encode(subject, ACCESS, timedelta(hours=settings.jwt_expiry_hours))


def create_reset_token(subject: str) -> str:
    return _encode(subject, PASSWORD_RESET, timedelta(minutes=settings.reset_token_expiry_minutes))


def decode_token(token: str, purpose: str = ACCESS) -> Optional[str]:
    """Return the subject (email) from a valid token, or None if invalid/expired
    or issued for a different purpose."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    if payload.get("purpose", ACCESS) != purpose:
        return None
    return payload.get("sub")
