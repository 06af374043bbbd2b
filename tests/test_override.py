"""Tests for the forced-creation override protocol."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from fleetbook.domain.errors import ContractError, MissingPrincipalError
from fleetbook.domain.models import (
    AuditAction,
    OverrideRequest,
    OverrideState,
    Reservation,
)
from fleetbook.services.business_time import BusinessClock
from fleetbook.services.override import (
    build_override_confirmation,
    check_override,
    evaluate_override,
    format_audit_entry_for_log,
    generate_override_warning,
    validate_override_request,
)
from fleetbook.services.validation import validate_conflicts

clock = BusinessClock("Europe/Athens")

_NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def _make_reservation(
    start: str,
    pickup: str | None,
    end: str,
    ret: str | None,
    *,
    confirmed: bool = True,
    my_order: bool = True,
    **extra,
) -> Reservation:
    return Reservation(
        resource_id="car-1",
        start_date=date.fromisoformat(start),
        end_date=date.fromisoformat(end),
        pickup_at=clock.to_storage(clock.anchor(start, pickup)) if pickup else None,
        return_at=clock.to_storage(clock.anchor(end, ret)) if ret else None,
        confirmed=confirmed,
        my_order=my_order,
        **extra,
    )


def _confirmed_clash():
    """Confirmed candidate over a confirmed customer booking."""
    peer = _make_reservation(
        "2026-03-11", "09:00", "2026-03-13", "09:00", customer_name="Eleni", phone="+30 210 000"
    )
    candidate = _make_reservation("2026-03-10", "10:00", "2026-03-12", "10:00", customer_name="New")
    return candidate, peer


def test_missing_principal_is_rejected_before_anything_else():
    candidate = _make_reservation("2026-03-10", None, "2026-03-12", None)
    validation = validate_conflicts(candidate, [], clock, buffer_hours=2)
    with pytest.raises(MissingPrincipalError):
        evaluate_override(validation, OverrideRequest(force=True), candidate)
    with pytest.raises(MissingPrincipalError):
        check_override(candidate, [], OverrideRequest(force=True, principal_id=""), clock)


def test_no_blocking_conflicts_needs_no_override():
    candidate = _make_reservation("2026-03-10", None, "2026-03-12", None)
    result = check_override(
        candidate, [], OverrideRequest(principal_id="admin-1"), clock, buffer_hours=2
    )
    assert result.state == OverrideState.NOT_REQUIRED
    assert result.allowed
    assert result.audit_entry is None


def test_without_force_the_operator_must_confirm():
    candidate, peer = _confirmed_clash()
    result = check_override(
        candidate, [peer], OverrideRequest(principal_id="admin-1"), clock, buffer_hours=2
    )
    assert result.state == OverrideState.AWAITING_CONFIRMATION
    assert not result.allowed
    assert result.requires_confirmation
    assert result.audit_entry is None
    assert "Eleni (11.03 - 13.03)" in result.warning_text
    assert "1 customer booking(s)" in result.warning_text


def test_confirmed_vs_confirmed_is_overridable_with_force():
    candidate, peer = _confirmed_clash()
    validation = validate_conflicts(candidate, [peer], clock, buffer_hours=2)
    assert validation.has_blocking_conflict
    assert all(c.can_be_overridden for c in validation.blocking_conflicts)

    result = evaluate_override(
        validation,
        OverrideRequest(force=True, principal_id="admin-1", reason="VIP"),
        candidate,
        now=_NOW,
    )

    assert result.state == OverrideState.COMMITTED
    assert result.allowed
    entry = result.audit_entry
    assert entry.action == AuditAction.FORCE_CREATE_ORDER
    assert entry.actor_id == "admin-1"
    assert entry.timestamp == _NOW
    assert entry.reason == "VIP"
    assert entry.severity == "high"
    assert entry.overridden_conflicts == validation.blocking_conflicts
    assert {c.reservation.id for c in entry.overridden_conflicts} == {peer.id}
    assert entry.summary == validation.summary


def test_non_overridable_conflicts_are_refused_even_with_force():
    candidate, peer = _confirmed_clash()
    validation = validate_conflicts(candidate, [peer], clock, buffer_hours=2)
    locked = tuple(c.model_copy(update={"can_be_overridden": False}) for c in validation.blocking_conflicts)
    validation = validation.model_copy(update={"blocking_conflicts": locked})

    result = evaluate_override(
        validation, OverrideRequest(force=True, principal_id="admin-1"), candidate
    )
    assert result.state == OverrideState.REFUSED
    assert not result.allowed
    assert not result.requires_confirmation
    assert result.audit_entry is None
    assert result.warning_text


def test_non_overridable_conflicts_without_force_still_ask_for_confirmation():
    candidate, peer = _confirmed_clash()
    validation = validate_conflicts(candidate, [peer], clock, buffer_hours=2)
    locked = tuple(c.model_copy(update={"can_be_overridden": False}) for c in validation.blocking_conflicts)
    validation = validation.model_copy(update={"blocking_conflicts": locked})

    result = evaluate_override(
        validation, OverrideRequest(force=False, principal_id="admin-1"), candidate
    )
    assert result.state == OverrideState.REFUSED
    assert not result.allowed
    assert result.requires_confirmation
    assert result.audit_entry is None


def test_validate_override_request():
    validate_override_request(OverrideRequest(force=True, principal_id="admin-1"))
    with pytest.raises(ContractError):
        validate_override_request(None)
    with pytest.raises(MissingPrincipalError):
        validate_override_request(OverrideRequest(force=True))
    with pytest.raises(ContractError):
        validate_override_request(OverrideRequest(force=False, principal_id="admin-1"))


def test_warning_counts_internal_holds():
    hold = _make_reservation("2026-03-11", None, "2026-03-11", None, my_order=False)
    candidate = _make_reservation("2026-03-10", None, "2026-03-12", None)
    validation = validate_conflicts(candidate, [hold], clock, buffer_hours=2)

    text = generate_override_warning(validation)
    assert "1 internal booking(s)" in text
    assert "customer booking" not in text


def test_warning_is_empty_without_blocks():
    candidate = _make_reservation("2026-03-10", None, "2026-03-12", None)
    assert generate_override_warning(validate_conflicts(candidate, [], clock)) == ""


def test_confirmation_dialog_groups_by_ownership():
    candidate, peer = _confirmed_clash()
    hold = _make_reservation("2026-03-10", None, "2026-03-10", None, my_order=False)
    validation = validate_conflicts(candidate, [peer, hold], clock, buffer_hours=2)

    data = build_override_confirmation(validation)
    business, internal = data["sections"]
    assert business["count"] == 2
    assert business["items"][0]["customer_name"] == "Eleni"
    assert business["items"][0]["phone"] == "+30 210 000"
    assert internal["count"] == 1
    assert "customer_name" not in internal["items"][0]


def test_audit_log_block_lists_conflicts():
    candidate, peer = _confirmed_clash()
    result = check_override(
        candidate,
        [peer],
        OverrideRequest(force=True, principal_id="admin-1", reason="VIP"),
        clock,
        buffer_hours=2,
        now=_NOW,
    )
    text = format_audit_entry_for_log(result.audit_entry)
    assert "Actor: admin-1" in text
    assert f"Reservation {peer.id} (Eleni)" in text
    assert "Reason: VIP" in text
    assert text.splitlines()[0] == "=== OVERRIDE AUDIT ==="
