from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class DiverCreate(BaseModel):
    full_name: str = Field(min_length=1)
    rank: str = Field(min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    certification_no: Optional[str] = None


class DiverUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1)
    rank: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    certification_no: Optional[str] = None


class DiverOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    full_name: str
    rank: str
    email: Optional[str]
    phone: Optional[str]
    certification_no: Optional[str]
    created_at: datetime
