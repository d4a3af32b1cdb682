from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from divelog.models.job import JobStatus


class JobCreate(BaseModel):
    job_name: str = Field(min_length=1)
    client_name: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    status: JobStatus = JobStatus.active


class JobUpdate(BaseModel):
    job_name: Optional[str] = Field(None, min_length=1)
    client_name: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    status: Optional[JobStatus] = None


class JobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    job_name: str
    client_name: Optional[str]
    location: Optional[str]
    description: Optional[str]
    status: JobStatus
    created_at: datetime
