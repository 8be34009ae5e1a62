"""Pydantic request/response schemas."""

from repairdesk.schemas.client import ClientCreate, ClientRead, ClientUpdate
from repairdesk.schemas.technician import TechnicianCreate, TechnicianRead, TechnicianUpdate
from repairdesk.schemas.appliance import (
    ApplianceCreate, ApplianceRead, ApplianceUpdate, CategoryRead, ManufacturerRead,
)
from repairdesk.schemas.service import ServiceCreate, ServiceRead, StatusChangeRead, StatusChangeRequest
from repairdesk.schemas.spare_part import SparePartOrderCreate, SparePartOrderRead, SparePartStatusUpdate

__all__ = [
    "ClientCreate", "ClientRead", "ClientUpdate",
    "TechnicianCreate", "TechnicianRead", "TechnicianUpdate",
    "ApplianceCreate", "ApplianceRead", "ApplianceUpdate", "CategoryRead", "ManufacturerRead",
    "ServiceCreate", "ServiceRead", "StatusChangeRead", "StatusChangeRequest",
    "SparePartOrderCreate", "SparePartOrderRead", "SparePartStatusUpdate",
]
