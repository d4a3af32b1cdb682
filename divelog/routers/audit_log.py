"""Read-only view over the audit trail written by the mutating endpoints."""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from divelog.auth.dependencies import require_supervisor
from divelog.database import get_db
from divelog.models.audit_log import AuditLog
from divelog.models.user import User
from divelog.schemas.audit_log import AuditLogOut
from divelog.utils.dives import as_utc

router = APIRouter(prefix="/audit-log", tags=["audit-log"])


@router.get("", response_model=List[AuditLogOut])
def list_audit_entries(
    action: Optional[str] = Query(None, description="Exact action, or an area prefix such as 'dive'"),
    resource_type: Optional[str] = None,
    resource_id: Optional[UUID] = None,
    user_email: Optional[str] = None,
    since: Optional[datetime] = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    _: User = Depends(require_supervisor),
):
    filters = []
    if action:
        filters.append(AuditLog.action.like(f"{action}%"))
    if resource_type:
        filters.append(AuditLog.resource_type == resource_type)
    if resource_id:
        filters.append(AuditLog.resource_id == resource_id)
    if user_email:
        filters.append(AuditLog.user_email == user_email.lower())
    if since:
        filters.append(AuditLog.created_at >= as_utc(since))

    return (
        db.query(AuditLog)
        .filter(*filters)
        .order_by(AuditLog.created_at.desc(), AuditLog.id)
        .offset(offset)
        .limit(limit)
        .all()
    )
