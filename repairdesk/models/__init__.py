"""SQLAlchemy ORM models."""

from repairdesk.models.base import Base
from repairdesk.models.technician import Technician
from repairdesk.models.user import User, UserSession
from repairdesk.models.client import Client
from repairdesk.models.appliance import ApplianceCategory, Manufacturer, Appliance
from repairdesk.models.service import Service, ServiceStatusChange
from repairdesk.models.spare_part import SparePartOrder

__all__ = [
    "Base", "Technician", "User", "UserSession", "Client",
    "ApplianceCategory", "Manufacturer", "Appliance",
    "Service", "ServiceStatusChange", "SparePartOrder",
]
