from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class DiveEventCreate(BaseModel):
    event_type: str = Field(min_length=1)
    description: Optional[str] = None
    event_time: Optional[datetime] = None   # defaults to now
    depth: float = Field(0, ge=0)


class DiveEventUpdate(BaseModel):
    event_type: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    event_time: Optional[datetime] = None
    depth: Optional[float] = Field(None, ge=0)


class ReportEventEntry(BaseModel):
    """Event edited from a printed report: wall-clock time only, day comes from the dive."""
    time: str = Field(pattern=r"^\d{1,2}:\d{2}(:\d{2})?$")
    depth: float = Field(0, ge=0)
    event_type: str = Field(min_length=1)
    description: Optional[str] = None


class DiveEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    dive_id: UUID
    event_time: datetime
    depth: float
    event_type: str
    description: Optional[str]
