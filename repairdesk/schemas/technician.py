from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field


class TechnicianCreate(BaseModel):
    full_name: str = Field(min_length=1)
    email: str = ""
    phone: str = ""
    specialization: str = ""


class TechnicianUpdate(BaseModel):
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    specialization: str | None = None


class TechnicianRead(BaseModel):
    id: str
    full_name: str
    email: str
    phone: str
    specialization: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
