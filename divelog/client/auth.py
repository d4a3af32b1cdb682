"""Signed-in user state for client views.

An ``AuthSession`` is created once and handed to every view that needs the
current user. Views subscribe with ``on_change`` and unsubscribe with the
callable it returns.
"""
from __future__ import annotations

import logging
import re
import threading
from typing import Callable, Optional

from divelog.client.errors import GatewayError, ValidationError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

Listener = Callable[[Optional[dict]], None]
USER_FIELDS = ("user_id", "email", "role", "full_name")


def validate_email(email: str) -> str:
    email = (email or "").strip()
    if not _EMAIL_RE.match(email):
        raise ValidationError("Please enter a valid email address")
    return email


def validate_password(password: str, confirm: Optional[str] = None) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if confirm is not None and password != confirm:
        raise ValidationError("Passwords do not match")
    return password


def _user_record(data: dict) -> dict:
    return {key: data.get(key) for key in USER_FIELDS}


class AuthSession:
    def __init__(self, gateway):
        self.gateway = gateway
        self.user: Optional[dict] = None
        self._listeners: list[Listener] = []
        self._lock = threading.Lock()

    @property
    def signed_in(self) -> bool:
        return self.user is not None

    @property
    def user_id(self) -> Optional[str]:
        return self.user["user_id"] if self.user else None

    # ── listeners ─────────────────────────────────────────────────────────────

    def on_change(self, callback: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe

    def _set_user(self, user: Optional[dict]) -> None:
        self.user = user
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(user)

    # ── lifecycle ─────────────────────────────────────────────────────────────

    def initialize(self) -> Optional[dict]:
        """Load the session for a held token; an expired token signs out quietly."""
        try:
            session = self.gateway.current_session()
        except GatewayError as exc:
            if exc.status_code != 401:
                raise
            logger.info("Stored token rejected, starting signed out")
            self.gateway.token = None
            session = None
        self._set_user(_user_record(session) if session else None)
        return self.user

    def close(self) -> None:
        with self._lock:
            self._listeners.clear()

    # ── auth calls ────────────────────────────────────────────────────────────

    def sign_in(self, email: str, password: str) -> dict:
        email = validate_email(email)
        validate_password(password)
        data = self.gateway.sign_in(email, password)
        self._set_user(_user_record(data))
        return self.user

    def sign_up(self, email: str, password: str, confirm: Optional[str] = None,
                full_name: Optional[str] = None) -> dict:
        email = validate_email(email)
        validate_password(password, confirm)
        data = self.gateway.sign_up(email, password, full_name=full_name)
        self._set_user(_user_record(data))
        return self.user

    def sign_out(self) -> None:
        try:
            self.gateway.sign_out()
        finally:
            self._set_user(None)

    def request_password_reset(self, email: str) -> None:
        self.gateway.request_password_reset(validate_email(email))

    def update_password(self, password: str, confirm: str) -> None:
        validate_password(password, confirm)
        self.gateway.update_password(password)
