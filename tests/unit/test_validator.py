from datetime import datetime, timezone

import pytest

from repairdesk.workflow.errors import RoleError, TerminalStateError, ValidationError
from repairdesk.workflow.statuses import (
    TECHNICIAN_TRANSITIONS,
    TERMINAL_STATUSES,
    Role,
    ServiceStatus as S,
)
from repairdesk.workflow.validator import Actor, allowed_targets, required_fields, validate_transition

ADMIN = Actor.admin("u-admin")
TECH = Actor(Role.TECHNICIAN, user_id="u-tech", technician_id="t-1")
OTHER_TECH = Actor(Role.TECHNICIAN, user_id="u-tech2", technician_id="t-2")
PARTNER = Actor(Role.BUSINESS_PARTNER, user_id="u-partner")


@pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES))
@pytest.mark.parametrize("target", [s for s in S])
def test_terminal_statuses_accept_nothing_but_noop(terminal, target):
    if target == terminal:
        decision = validate_transition(terminal, target, ADMIN)
        assert decision.noop
        assert decision.fields == {}
    else:
        with pytest.raises(TerminalStateError):
            validate_transition(terminal, target, ADMIN, {"customer_refusal_reason": "x",
                                                          "client_unavailable_reason": "x",
                                                          "technician_id": "t-1"})


@pytest.mark.parametrize("status", [s for s in S])
def test_same_status_is_noop_for_any_actor(status):
    decision = validate_transition(status, status, OTHER_TECH, assigned_technician_id="t-1")
    assert decision.noop


def test_unknown_requested_status_is_validation_error():
    with pytest.raises(ValidationError):
        validate_transition(S.PENDING, "teleported", ADMIN)


def test_refusal_requires_reason():
    with pytest.raises(ValidationError) as exc:
        validate_transition(S.IN_PROGRESS, S.CUSTOMER_REFUSED_REPAIR, ADMIN, {"customer_refusal_reason": "   "})
    assert exc.value.context["field"] == "customer_refusal_reason"


def test_refusal_reason_is_trimmed_and_kept():
    decision = validate_transition(
        S.IN_PROGRESS, S.CUSTOMER_REFUSED_REPAIR, ADMIN, {"customer_refusal_reason": "  Too expensive "},
    )
    assert decision.fields["status"] == "customer_refused_repair"
    assert decision.fields["customer_refusal_reason"] == "Too expensive"


@pytest.mark.parametrize("status", [S.CLIENT_NOT_HOME, S.CLIENT_NOT_ANSWERING])
def test_client_unavailable_requires_reason(status):
    with pytest.raises(ValidationError):
        validate_transition(S.ASSIGNED, status, ADMIN, {})

    decision = validate_transition(
        S.ASSIGNED, status, ADMIN,
        {"client_unavailable_reason": "Nobody at the door", "needs_rescheduling": True,
         "rescheduling_notes": "Call after 5pm"},
    )
    assert decision.fields["client_unavailable_reason"] == "Nobody at the door"
    assert decision.fields["needs_rescheduling"] is True
    assert decision.fields["rescheduling_notes"] == "Call after 5pm"


def test_reason_fields_cleared_when_leaving_status():
    decision = validate_transition(S.CLIENT_NOT_HOME, S.IN_PROGRESS, ADMIN, {})
    assert decision.fields["client_unavailable_reason"] is None
    assert decision.fields["needs_rescheduling"] is False
    assert decision.fields["rescheduling_notes"] is None
    assert decision.fields["customer_refusal_reason"] is None


def test_assigning_requires_a_technician():
    with pytest.raises(ValidationError):
        validate_transition(S.PENDING, S.ASSIGNED, ADMIN, {})

    decision = validate_transition(S.PENDING, S.ASSIGNED, ADMIN, {"technician_id": "t-9"})
    assert decision.fields["technician_id"] == "t-9"

    # Already assigned tickets keep their technician
    decision = validate_transition(S.SCHEDULED, S.ASSIGNED, ADMIN, {}, assigned_technician_id="t-1")
    assert "technician_id" not in decision.fields


def test_completed_stamps_date_and_cost():
    now = datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)
    decision = validate_transition(
        S.IN_PROGRESS, S.COMPLETED, ADMIN, {"cost": "45.5", "is_completely_fixed": True}, now=now,
    )
    assert decision.fields["completed_date"] == now
    assert decision.fields["cost"] == 45.5
    assert decision.fields["is_completely_fixed"] is True


def test_technician_can_record_field_work_on_own_ticket():
    for current, targets in TECHNICIAN_TRANSITIONS.items():
        for target in targets:
            payload = {"customer_refusal_reason": "no", "client_unavailable_reason": "away"}
            decision = validate_transition(current, target, TECH, payload, assigned_technician_id="t-1")
            assert decision.new_status == target


def test_technician_cannot_touch_other_technicians_ticket():
    with pytest.raises(RoleError):
        validate_transition(S.ASSIGNED, S.IN_PROGRESS, OTHER_TECH, assigned_technician_id="t-1")


def test_role_check_precedes_field_check():
    with pytest.raises(RoleError):
        validate_transition(S.IN_PROGRESS, S.CUSTOMER_REFUSED_REPAIR, OTHER_TECH, {}, assigned_technician_id="t-1")


@pytest.mark.parametrize("target", [S.PENDING, S.ASSIGNED, S.CANCELLED, S.SCHEDULED])
def test_technician_cannot_do_office_transitions(target):
    with pytest.raises(RoleError):
        validate_transition(S.IN_PROGRESS, target, TECH, {"technician_id": "t-1"}, assigned_technician_id="t-1")


def test_technician_cannot_reassign():
    decision = validate_transition(
        S.ASSIGNED, S.IN_PROGRESS, TECH, {"technician_id": "t-2"}, assigned_technician_id="t-1",
    )
    assert "technician_id" not in decision.fields


def test_business_partner_can_cancel_own_pending_ticket():
    decision = validate_transition(S.PENDING, S.CANCELLED, PARTNER, business_partner_id="u-partner")
    assert decision.fields["status"] == "cancelled"

    with pytest.raises(RoleError):
        validate_transition(S.PENDING, S.CANCELLED, PARTNER, business_partner_id="u-someone-else")
    with pytest.raises(RoleError):
        validate_transition(S.ASSIGNED, S.CANCELLED, PARTNER, business_partner_id="u-partner")
    with pytest.raises(RoleError):
        validate_transition(S.PENDING, S.IN_PROGRESS, PARTNER, business_partner_id="u-partner")


def test_admin_may_move_anywhere_from_open_status():
    assert allowed_targets(S.WAITING_PARTS, Role.ADMIN) == frozenset(s for s in S if s != S.WAITING_PARTS)
    assert allowed_targets(S.COMPLETED, Role.ADMIN) == frozenset()
    assert allowed_targets(S.PENDING, Role.TECHNICIAN) == frozenset()


def test_required_fields():
    assert required_fields(S.CUSTOMER_REFUSED_REPAIR) == ("customer_refusal_reason",)
    assert required_fields("client_not_home") == ("client_unavailable_reason",)
    assert required_fields(S.ASSIGNED) == ("technician_id",)
    assert required_fields(S.COMPLETED) == ()


_FULL_PAYLOAD = {
    "customer_refusal_reason": "Too expensive",
    "client_unavailable_reason": "Nobody home",
    "technician_id": "t-1",
}


@pytest.mark.parametrize("current", [s for s in S if s not in TERMINAL_STATUSES])
def test_pairs_outside_technician_table_are_admin_only(current):
    permitted = TECHNICIAN_TRANSITIONS.get(current, frozenset())
    for target in S:
        if target == current or target in permitted:
            continue
        with pytest.raises(RoleError):
            validate_transition(current, target, TECH, _FULL_PAYLOAD, assigned_technician_id="t-1")
        decision = validate_transition(current, target, ADMIN, _FULL_PAYLOAD, assigned_technician_id="t-1")
        assert decision.new_status == target
