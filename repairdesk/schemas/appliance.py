from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field


class CategoryRead(BaseModel):
    id: str
    name: str
    icon: str = ""

    model_config = {"from_attributes": True}


class ManufacturerRead(BaseModel):
    id: str
    name: str

    model_config = {"from_attributes": True}


class ApplianceCreate(BaseModel):
    category: str = Field(min_length=1)  # category name, created on first use
    manufacturer: str = Field(min_length=1)
    model: str = ""
    serial_number: str = ""
    purchase_date: str = ""
    notes: str = ""


class ApplianceUpdate(BaseModel):
    model: str | None = None
    serial_number: str | None = None
    purchase_date: str | None = None
    notes: str | None = None


class ApplianceRead(BaseModel):
    id: str
    client_id: str
    category: CategoryRead
    manufacturer: ManufacturerRead
    model: str
    serial_number: str
    purchase_date: str
    notes: str
    created_at: datetime

    model_config = {"from_attributes": True}
