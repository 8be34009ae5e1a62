"""Spare part ordering workflow.

A part request moves pending -> ordered -> received -> delivered, or is
cancelled before it arrives. Ordering and arrival are announced through the
same dispatcher as ticket status changes.
"""

from __future__ import annotations

import logging
from typing import Any

from repairdesk.db import crud
from repairdesk.models import SparePartOrder
from repairdesk.models.base import utcnow
from repairdesk.notifications.templates import TransitionKind
from repairdesk.workflow.engine import BaseWorkflow
from repairdesk.workflow.errors import (
    NotFoundError,
    RoleError,
    TerminalStateError,
    ValidationError,
)
from repairdesk.workflow.statuses import (
    SPARE_PART_TERMINAL,
    SPARE_PART_TRANSITIONS,
    TERMINAL_STATUSES,
    Role,
    ServiceStatus,
    SparePartStatus,
    Urgency,
)
from repairdesk.workflow.validator import Actor

logger = logging.getLogger(__name__)

P = SparePartStatus


def part_transition_kind(old: SparePartStatus, new: SparePartStatus) -> TransitionKind | None:
    if new == P.ORDERED:
        return TransitionKind.PARTS_ORDERED
    if new in (P.RECEIVED, P.DELIVERED) and old == P.ORDERED:
        return TransitionKind.PARTS_ARRIVED
    return None


class SparePartWorkflow(BaseWorkflow):
    async def request_part(self, service_id: str, actor: Actor, data: dict[str, Any]) -> SparePartOrder:
        """Open a pending part order for a ticket."""
        service = await self._load_service(service_id)

        role = Role(actor.role)
        if role == Role.TECHNICIAN:
            if not actor.technician_id or actor.technician_id != service.technician_id:
                raise RoleError("Technician is not assigned to this service")
        elif role != Role.ADMIN:
            raise RoleError("Only admins and the assigned technician can request parts")

        if ServiceStatus(service.status) in TERMINAL_STATUSES:
            raise TerminalStateError(f"Service is {service.status}; parts can no longer be requested")

        part_name = (data.get("part_name") or "").strip()
        if not part_name:
            raise ValidationError("part_name is required", field="part_name")
        quantity = int(data.get("quantity", 1))
        if quantity < 1:
            raise ValidationError("quantity must be at least 1", field="quantity")
        try:
            urgency = Urgency(data.get("urgency") or Urgency.NORMAL)
        except ValueError:
            raise ValidationError(f"Unknown urgency: {data.get('urgency')}", field="urgency")

        order = await crud.create_spare_part_order(
            self.db,
            service_id=service.id,
            part_name=part_name,
            quantity=quantity,
            urgency=urgency.value,
            technician_id=service.technician_id,
            catalog_number=(data.get("catalog_number") or "").strip(),
            notes=(data.get("notes") or "").strip(),
        )
        logger.info(
            "Part order %s opened for service %s: %s x%d (%s)",
            order.id, service.id, part_name, quantity, urgency.value,
        )
        return order

    async def change_part_status(
        self, order_id: str, requested_status: str, actor: Actor, fields: dict[str, Any] | None = None,
    ) -> SparePartOrder:
        fields = fields or {}
        if Role(actor.role) != Role.ADMIN:
            raise RoleError("Only admins can change spare part order status")

        async with self.locks.hold(f"part:{order_id}"):
            order = await crud.get_spare_part_order(self.db, order_id)
            if not order:
                raise NotFoundError(f"Spare part order {order_id} not found", order_id=order_id)

            old = SparePartStatus(order.status)
            try:
                new = SparePartStatus(requested_status)
            except ValueError:
                raise ValidationError(f"Unknown spare part status: {requested_status}", field="status")

            if new == old:
                return order
            if old in SPARE_PART_TERMINAL:
                raise TerminalStateError(f"Spare part order is {old.value}; no further changes allowed")
            if new not in SPARE_PART_TRANSITIONS[old]:
                raise ValidationError(
                    f"Spare part order cannot move {old.value} -> {new.value}", field="status",
                )

            now = utcnow()
            updates: dict[str, Any] = {"status": new.value}
            for key in ("supplier_name", "estimated_delivery", "notes"):
                if fields.get(key) is not None:
                    updates[key] = str(fields[key]).strip()
            if new == P.ORDERED:
                updates["ordered_at"] = now
            if new in (P.RECEIVED, P.DELIVERED) and order.received_at is None:
                updates["received_at"] = now

            order = await crud.update_spare_part_order(self.db, order, **updates)
            logger.info("Part order %s: %s -> %s", order.id, old.value, new.value)

        kind = part_transition_kind(old, new)
        if kind is not None:
            service = await crud.get_service(self.db, order.service_id)
            if service is not None:
                await self._notify(
                    service, kind,
                    old_status=service.status, new_status=service.status,
                    actor=actor, part=order,
                )
        return order
