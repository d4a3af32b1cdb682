from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from divelog.models.dive import DiveStatus
from divelog.schemas.dive_event import DiveEventOut


class DiveCreate(BaseModel):
    job_id: UUID
    diver_id: UUID
    supervisor_id: Optional[UUID] = None   # defaults to the caller
    started_at: Optional[datetime] = None  # defaults to now


class DiveUpdate(BaseModel):
    ended_at: Optional[datetime] = None
    status: Optional[DiveStatus] = None
    bottom_time: Optional[str] = None
    dive_no: Optional[int] = None
    max_depth: Optional[float] = None


class DiveOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    job_id: UUID
    diver_id: UUID
    supervisor_id: Optional[UUID]
    date: date
    started_at: datetime
    ended_at: Optional[datetime]
    bottom_time: Optional[str]
    status: DiveStatus
    dive_no: Optional[int]
    max_depth: Optional[float]
    created_at: datetime


class DiveSummary(DiveOut):
    """List row with the joined names the history and dashboard views show."""
    job_name: Optional[str] = None
    diver_name: Optional[str] = None


class DiveDetail(DiveSummary):
    events: List[DiveEventOut] = []
