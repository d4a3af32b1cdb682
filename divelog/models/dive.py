import enum
import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, DateTime, Enum as SAEnum, Float, ForeignKey, Index, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from divelog.database import Base


class DiveStatus(str, enum.Enum):
    in_progress = "in_progress"
    completed = "completed"


class Dive(Base):
    __tablename__ = "dives"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    job_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("jobs.id", ondelete="RESTRICT"), nullable=False
    )
    diver_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("divers.id", ondelete="RESTRICT"), nullable=False
    )
    supervisor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    date: Mapped[date] = mapped_column(Date, nullable=False)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    bottom_time: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status: Mapped[DiveStatus] = mapped_column(
        SAEnum(DiveStatus, name="dive_status_enum"),
        nullable=False,
        default=DiveStatus.in_progress,
    )
    dive_no: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_depth: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_dives_job_created", "job_id", "created_at"),
        Index("ix_dives_date", "date"),
    )
