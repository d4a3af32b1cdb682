from divelog.client.auth import AuthSession
from divelog.client.clock import SessionClock, format_elapsed
from divelog.client.controller import QUICK_ACTIONS, DiveSessionController
from divelog.client.errors import DiveLogError, GatewayError, SessionError, ValidationError
from divelog.client.gateway import DEFAULT_RANKS, DiveLogClient
from divelog.client.history import JobHistory

__all__ = [
    "AuthSession",
    "SessionClock",
    "format_elapsed",
    "QUICK_ACTIONS",
    "DiveSessionController",
    "DiveLogError",
    "GatewayError",
    "SessionError",
    "ValidationError",
    "DEFAULT_RANKS",
    "DiveLogClient",
    "JobHistory",
]
