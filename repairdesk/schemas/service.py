from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field

from repairdesk.workflow.statuses import ServiceStatus, WarrantyStatus


class ServiceCreate(BaseModel):
    client_id: str
    appliance_id: str
    description: str = ""
    warranty_status: WarrantyStatus = WarrantyStatus.OUT_OF_WARRANTY
    technician_id: str | None = None
    scheduled_date: datetime | None = None


class StatusChangeRequest(BaseModel):
    status: ServiceStatus
    customer_refusal_reason: str | None = None
    client_unavailable_reason: str | None = None
    needs_rescheduling: bool | None = None
    rescheduling_notes: str | None = None
    technician_id: str | None = None
    scheduled_date: datetime | None = None
    technician_notes: str | None = None
    cost: float | None = Field(default=None, ge=0)
    is_completely_fixed: bool | None = None

    def reason_fields(self) -> dict:
        return self.model_dump(exclude={"status"}, exclude_none=True)


class ServiceRead(BaseModel):
    id: str
    client_id: str
    appliance_id: str
    technician_id: str | None = None
    business_partner_id: str | None = None
    description: str
    status: str
    warranty_status: str
    scheduled_date: datetime | None = None
    completed_date: datetime | None = None
    technician_notes: str = ""
    cost: float | None = None
    is_completely_fixed: bool | None = None
    customer_refusal_reason: str | None = None
    client_unavailable_reason: str | None = None
    needs_rescheduling: bool = False
    rescheduling_notes: str | None = None
    version: int
    created_at: datetime
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class StatusChangeRead(BaseModel):
    id: str
    service_id: str
    old_status: str
    new_status: str
    actor_user_id: str
    actor_role: str
    reason: str
    notes: str
    created_at: datetime

    model_config = {"from_attributes": True}
