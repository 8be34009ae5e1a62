from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field

from repairdesk.workflow.statuses import SparePartStatus, Urgency


class SparePartOrderCreate(BaseModel):
    part_name: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)
    urgency: Urgency = Urgency.NORMAL
    catalog_number: str = ""
    notes: str = ""


class SparePartStatusUpdate(BaseModel):
    status: SparePartStatus
    supplier_name: str | None = None
    estimated_delivery: str | None = None
    notes: str | None = None


class SparePartOrderRead(BaseModel):
    id: str
    service_id: str
    technician_id: str | None = None
    part_name: str
    catalog_number: str
    quantity: int
    urgency: str
    status: str
    supplier_name: str
    estimated_delivery: str
    notes: str
    ordered_at: datetime | None = None
    received_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
