from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


class RankCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class RankOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    created_at: datetime
