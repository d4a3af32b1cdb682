"""Exceptions raised by the dive log client."""


class DiveLogError(Exception):
    """Base exception for client errors."""
    pass


class ValidationError(DiveLogError):
    """Raised for bad input before any request is sent."""
    pass


class SessionError(DiveLogError):
    """Raised when a dive session operation does not fit the current session state."""
    pass


class GatewayError(DiveLogError):
    """Raised when the service rejects a request or cannot be reached.

    ``status_code`` is 0 for transport failures (connection refused, timeout).
    """

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}" if status_code else detail)

    @property
    def not_found(self) -> bool:
        return self.status_code == 404
