"""Service and spare-part status vocabularies and the transition tables."""

from __future__ import annotations

from enum import Enum


class ServiceStatus(str, Enum):
    PENDING = "pending"
    SCHEDULED = "scheduled"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    WAITING_PARTS = "waiting_parts"
    CLIENT_NOT_HOME = "client_not_home"
    CLIENT_NOT_ANSWERING = "client_not_answering"
    CUSTOMER_REFUSED_REPAIR = "customer_refused_repair"
    REPAIR_FAILED = "repair_failed"
    DEVICE_PICKED_UP = "device_picked_up"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Role(str, Enum):
    ADMIN = "admin"
    TECHNICIAN = "technician"
    BUSINESS_PARTNER = "business_partner"


class WarrantyStatus(str, Enum):
    IN_WARRANTY = "in_warranty"
    OUT_OF_WARRANTY = "out_of_warranty"


class SparePartStatus(str, Enum):
    PENDING = "pending"
    ORDERED = "ordered"
    RECEIVED = "received"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Urgency(str, Enum):
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


S = ServiceStatus

TERMINAL_STATUSES = frozenset({S.COMPLETED, S.CANCELLED})

CLIENT_UNAVAILABLE_STATUSES = frozenset({S.CLIENT_NOT_HOME, S.CLIENT_NOT_ANSWERING})

# Field work a technician may record on a ticket assigned to them.
TECHNICIAN_TRANSITIONS: dict[ServiceStatus, frozenset[ServiceStatus]] = {
    S.ASSIGNED: frozenset({S.IN_PROGRESS, S.CLIENT_NOT_HOME, S.CLIENT_NOT_ANSWERING}),
    S.SCHEDULED: frozenset({S.IN_PROGRESS, S.CLIENT_NOT_HOME, S.CLIENT_NOT_ANSWERING}),
    S.IN_PROGRESS: frozenset({
        S.COMPLETED, S.WAITING_PARTS, S.CLIENT_NOT_HOME, S.CLIENT_NOT_ANSWERING,
        S.CUSTOMER_REFUSED_REPAIR, S.REPAIR_FAILED, S.DEVICE_PICKED_UP,
    }),
    S.WAITING_PARTS: frozenset({S.IN_PROGRESS}),
    S.DEVICE_PICKED_UP: frozenset({S.IN_PROGRESS, S.WAITING_PARTS, S.COMPLETED}),
    S.CLIENT_NOT_HOME: frozenset({S.IN_PROGRESS}),
    S.CLIENT_NOT_ANSWERING: frozenset({S.IN_PROGRESS}),
}

# Partners may only withdraw a ticket nobody has picked up yet.
BUSINESS_PARTNER_TRANSITIONS: dict[ServiceStatus, frozenset[ServiceStatus]] = {
    S.PENDING: frozenset({S.CANCELLED}),
}

STATUS_DESCRIPTIONS: dict[ServiceStatus, str] = {
    S.PENDING: "Pending",
    S.SCHEDULED: "Scheduled",
    S.ASSIGNED: "Assigned to technician",
    S.IN_PROGRESS: "In progress",
    S.WAITING_PARTS: "Waiting for parts",
    S.CLIENT_NOT_HOME: "Client not home",
    S.CLIENT_NOT_ANSWERING: "Client not answering",
    S.CUSTOMER_REFUSED_REPAIR: "Repair refused",
    S.REPAIR_FAILED: "Repair failed",
    S.DEVICE_PICKED_UP: "Device picked up",
    S.COMPLETED: "Completed",
    S.CANCELLED: "Cancelled",
}

P = SparePartStatus

SPARE_PART_TRANSITIONS: dict[SparePartStatus, frozenset[SparePartStatus]] = {
    P.PENDING: frozenset({P.ORDERED, P.CANCELLED}),
    P.ORDERED: frozenset({P.RECEIVED, P.DELIVERED, P.CANCELLED}),
    P.RECEIVED: frozenset({P.DELIVERED}),
    P.DELIVERED: frozenset(),
    P.CANCELLED: frozenset(),
}

SPARE_PART_TERMINAL = frozenset({P.DELIVERED, P.CANCELLED})


def describe(status: str) -> str:
    try:
        return STATUS_DESCRIPTIONS[ServiceStatus(status)]
    except ValueError:
        return status
