from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field


class ClientCreate(BaseModel):
    full_name: str = Field(min_length=1)
    phone: str = ""
    email: str = ""
    address: str = ""
    city: str = ""


class ClientUpdate(BaseModel):
    full_name: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    city: str | None = None


class ClientRead(BaseModel):
    id: str
    full_name: str
    phone: str
    email: str
    address: str
    city: str
    created_at: datetime

    model_config = {"from_attributes": True}
