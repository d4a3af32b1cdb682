import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, JSON, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from divelog.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    resource_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    resource_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    detail: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_audit_logs_resource", "resource_type", "resource_id"),
        Index("ix_audit_logs_created_at", "created_at"),
    )


class A:
    AUTH_LOGIN = "auth.login"
    AUTH_SIGNUP = "auth.signup"
    AUTH_PASSWORD_RESET = "auth.password_reset"
    AUTH_PASSWORD_UPDATE = "auth.password_update"
    USER_CREATE = "user.create"
    USER_UPDATE = "user.update"
    USER_DELETE = "user.delete"
    PROFILE_CREATE = "profile.create"
    PROFILE_UPDATE = "profile.update"
    JOB_CREATE = "job.create"
    JOB_UPDATE = "job.update"
    JOB_DELETE = "job.delete"
    DIVER_CREATE = "diver.create"
    DIVER_UPDATE = "diver.update"
    DIVER_DELETE = "diver.delete"
    RANK_CREATE = "rank.create"
    RANK_DELETE = "rank.delete"
    DIVE_START = "dive.start"
    DIVE_UPDATE = "dive.update"
    DIVE_COMPLETE = "dive.complete"
    DIVE_DELETE = "dive.delete"
    EVENT_CREATE = "event.create"
    EVENT_UPDATE = "event.update"
    EVENT_DELETE = "event.delete"
    EVENTS_CLEAR = "event.clear"
    REPORT_SHARE = "report.share"
