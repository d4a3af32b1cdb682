from typing import Optional
from uuid import UUID

from divelog.models.audit_log import AuditLog


def client_ip(request) -> Optional[str]:
    """First hop of X-Forwarded-For when behind the proxy, else the socket peer."""
    if request is None:
        return None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()[:45]
    return request.client.host if request.client else None


def log_event(
    db,
    user,
    action: str,
    resource_type: Optional[str] = None,
    resource_id: Optional[UUID] = None,
    detail: Optional[dict] = None,
    request=None,
) -> None:
    """Add an audit log entry. The caller owns the commit; the log rolls back
    with the main transaction on failure."""
    db.add(AuditLog(
        user_id=user.id,
        user_email=user.email,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        detail=detail,
        ip_address=client_ip(request),
    ))
