"""Status transition validator.

Pure decision logic: given the ticket's current status, the requested status,
who is asking and the submitted reason fields, either reject the request or
return the exact column values the engine should write.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from repairdesk.workflow.errors import RoleError, TerminalStateError, ValidationError
from repairdesk.workflow.statuses import (
    BUSINESS_PARTNER_TRANSITIONS,
    CLIENT_UNAVAILABLE_STATUSES,
    TECHNICIAN_TRANSITIONS,
    TERMINAL_STATUSES,
    Role,
    ServiceStatus,
)

S = ServiceStatus


@dataclass(frozen=True)
class Actor:
    """Who is requesting a change."""

    role: Role
    user_id: str = ""
    technician_id: str | None = None

    @classmethod
    def admin(cls, user_id: str = "") -> Actor:
        return cls(role=Role.ADMIN, user_id=user_id)


@dataclass
class TransitionDecision:
    old_status: ServiceStatus
    new_status: ServiceStatus
    noop: bool = False
    fields: dict[str, Any] = field(default_factory=dict)


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def required_fields(status: ServiceStatus | str) -> tuple[str, ...]:
    status = ServiceStatus(status)
    if status == S.CUSTOMER_REFUSED_REPAIR:
        return ("customer_refusal_reason",)
    if status in CLIENT_UNAVAILABLE_STATUSES:
        return ("client_unavailable_reason",)
    if status == S.ASSIGNED:
        return ("technician_id",)
    return ()


def allowed_targets(current: ServiceStatus | str, role: Role | str) -> frozenset[ServiceStatus]:
    """Statuses the role may move a ticket to from ``current`` (ownership aside)."""
    current, role = ServiceStatus(current), Role(role)
    if current in TERMINAL_STATUSES:
        return frozenset()
    if role == Role.ADMIN:
        return frozenset(s for s in ServiceStatus if s != current)
    if role == Role.TECHNICIAN:
        return TECHNICIAN_TRANSITIONS.get(current, frozenset())
    return BUSINESS_PARTNER_TRANSITIONS.get(current, frozenset())


def _check_role(
    current: ServiceStatus,
    requested: ServiceStatus,
    actor: Actor,
    assigned_technician_id: str | None,
    business_partner_id: str | None,
) -> None:
    role = Role(actor.role)
    if role == Role.ADMIN:
        return

    if role == Role.TECHNICIAN:
        if not actor.technician_id or actor.technician_id != assigned_technician_id:
            raise RoleError("Technician is not assigned to this service")
    elif role == Role.BUSINESS_PARTNER:
        if not business_partner_id or actor.user_id != business_partner_id:
            raise RoleError("Service does not belong to this business partner")

    if requested not in allowed_targets(current, role):
        raise RoleError(
            f"Role {role.value} may not change status {current.value} -> {requested.value}",
            current=current.value, requested=requested.value,
        )


def validate_transition(
    current: ServiceStatus | str,
    requested: ServiceStatus | str,
    actor: Actor,
    payload: dict[str, Any] | None = None,
    *,
    assigned_technician_id: str | None = None,
    business_partner_id: str | None = None,
    now: datetime | None = None,
) -> TransitionDecision:
    """Decide whether ``current -> requested`` is legal for ``actor``.

    Checks run in a fixed order: same-status no-op, terminal state, role,
    then required fields. The returned ``fields`` hold every column the
    engine writes, including clearing reason fields that no longer apply.
    """
    payload = payload or {}
    current = ServiceStatus(current)
    try:
        requested = ServiceStatus(requested)
    except ValueError:
        raise ValidationError(f"Unknown status: {requested}", field="status")

    if requested == current:
        return TransitionDecision(current, requested, noop=True)

    if current in TERMINAL_STATUSES:
        raise TerminalStateError(
            f"Service is {current.value}; no further status changes are allowed",
            current=current.value,
        )

    _check_role(current, requested, actor, assigned_technician_id, business_partner_id)

    fields: dict[str, Any] = {"status": requested.value}

    refusal = _clean(payload.get("customer_refusal_reason"))
    if requested == S.CUSTOMER_REFUSED_REPAIR:
        if not refusal:
            raise ValidationError(
                "customer_refusal_reason is required when the customer refuses the repair",
                field="customer_refusal_reason",
            )
        fields["customer_refusal_reason"] = refusal
    else:
        fields["customer_refusal_reason"] = None

    unavailable = _clean(payload.get("client_unavailable_reason"))
    if requested in CLIENT_UNAVAILABLE_STATUSES:
        if not unavailable:
            raise ValidationError(
                "client_unavailable_reason is required when the client cannot be reached",
                field="client_unavailable_reason",
            )
        fields["client_unavailable_reason"] = unavailable
        fields["needs_rescheduling"] = bool(payload.get("needs_rescheduling", False))
        fields["rescheduling_notes"] = _clean(payload.get("rescheduling_notes"))
    else:
        fields["client_unavailable_reason"] = None
        fields["needs_rescheduling"] = False
        fields["rescheduling_notes"] = None

    technician_id = assigned_technician_id
    if Role(actor.role) == Role.ADMIN and _clean(payload.get("technician_id")):
        technician_id = _clean(payload.get("technician_id"))
        fields["technician_id"] = technician_id
    if requested == S.ASSIGNED and not technician_id:
        raise ValidationError(
            "technician_id is required to assign a service", field="technician_id",
        )

    if payload.get("scheduled_date") is not None:
        fields["scheduled_date"] = payload["scheduled_date"]

    notes = _clean(payload.get("technician_notes"))
    if notes:
        fields["technician_notes"] = notes

    if requested == S.COMPLETED:
        fields["completed_date"] = now or datetime.now(timezone.utc)
        if payload.get("cost") is not None:
            fields["cost"] = float(payload["cost"])
        if payload.get("is_completely_fixed") is not None:
            fields["is_completely_fixed"] = bool(payload["is_completely_fixed"])

    return TransitionDecision(current, requested, fields=fields)
