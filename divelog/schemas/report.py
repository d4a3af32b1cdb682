from datetime import date
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from divelog.schemas.dive import DiveOut, DiveSummary
from divelog.schemas.dive_event import DiveEventOut
from divelog.schemas.diver import DiverOut
from divelog.schemas.job import JobOut


class DashboardOut(BaseModel):
    active_dives: int
    dives_today: int
    active_job: str
    recent_dives: List[DiveSummary] = []


class DailyReportRow(DiveSummary):
    client_name: Optional[str] = None
    diver_rank: Optional[str] = None
    events_count: int = 0


class DailyReportOut(BaseModel):
    date: date
    dives: List[DailyReportRow] = []


class DiveReportOut(BaseModel):
    dive: DiveOut
    job: JobOut
    diver: DiverOut
    supervisor_name: Optional[str] = None
    events: List[DiveEventOut] = []


class ShareOut(BaseModel):
    shared: bool
    filename: str
    url: str
    dive_id: UUID
