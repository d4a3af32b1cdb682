import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

# Mirrors divelog.models.user.ROLES
Role = Literal["admin", "supervisor", "viewer"]


class AccountOut(BaseModel):
    """A login account as the admin screen lists it."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    role: str
    created_at: datetime


class AccountCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    role: Role = "supervisor"
    full_name: Optional[str] = None   # copied to the profile


class AccountUpdate(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6)
    role: Optional[Role] = None
