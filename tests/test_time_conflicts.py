"""Tests for per-day time conflict analysis and the precedence helpers."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from fleetbook.domain.models import ConflictCode, ConflictKind, Reservation, Severity
from fleetbook.services.adjustment import (
    can_adjust_time,
    precedence_code,
    validate_selected_time,
)
from fleetbook.services.business_time import BusinessClock
from fleetbook.services.time_conflicts import active_peers, analyze_time_conflicts

clock = BusinessClock("Europe/Athens")


def _make_reservation(
    start: str,
    pickup: str | None,
    end: str,
    ret: str | None,
    *,
    confirmed: bool = False,
    my_order: bool = True,
    name: str = "Maria",
    **extra,
) -> Reservation:
    """Reservation with business wall-clock times, stored as UTC."""
    return Reservation(
        resource_id="car-1",
        start_date=date.fromisoformat(start),
        end_date=date.fromisoformat(end),
        pickup_at=clock.to_storage(clock.anchor(start, pickup)) if pickup else None,
        return_at=clock.to_storage(clock.anchor(end, ret)) if ret else None,
        confirmed=confirmed,
        my_order=my_order,
        customer_name=name,
        **extra,
    )


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "editing_confirmed, other_confirmed, code, allowed",
    [
        (True, False, ConflictCode.OVERRIDE_PENDING, True),
        (False, True, ConflictCode.BLOCKED_BY_CONFIRMED, False),
        (False, False, ConflictCode.PENDING_OVERLAP, True),
        (True, True, ConflictCode.CONFIRMED_CONFLICT, False),
    ],
)
def test_precedence_table(editing_confirmed, other_confirmed, code, allowed):
    editing = _make_reservation("2026-01-12", "13:30", "2026-01-14", "10:00", confirmed=editing_confirmed)
    other = _make_reservation("2026-01-10", "14:00", "2026-01-12", "12:00", confirmed=other_confirmed)

    assert precedence_code(editing, other) == code
    verdict = can_adjust_time(editing, other, clock, buffer_hours=2)
    assert verdict.allowed is allowed
    assert verdict.code == code
    assert verdict.conflict_reservation == other
    assert verdict.strong_warning is (code == ConflictCode.PENDING_OVERLAP)
    assert verdict.requires_acknowledgement is allowed


def test_can_adjust_time_without_reservations_is_allowed():
    verdict = can_adjust_time(None, None, clock, buffer_hours=2)
    assert verdict.allowed
    assert verdict.code is None


def test_adjustment_message_names_peer_and_times():
    editing = _make_reservation("2026-01-12", "13:30", "2026-01-14", "10:00")
    other = _make_reservation(
        "2026-01-10", "14:00", "2026-01-12", "12:00", confirmed=True, name="Nikos", email="n@example.com"
    )
    message = can_adjust_time(editing, other, clock, buffer_hours=2).message
    assert "Nikos (n@example.com)" in message
    assert "10.01 14:00" in message
    assert "12.01 12:00" in message


def test_validate_selected_time():
    assert validate_selected_time("14:00", direction="pickup", min_pickup_time="14:00") == (True, "")
    ok, hint = validate_selected_time("13:30", direction="pickup", min_pickup_time="14:00")
    assert not ok and "14:00" in hint
    ok, hint = validate_selected_time("09:00", direction="return", max_return_time="08:00")
    assert not ok and "08:00" in hint
    assert validate_selected_time("09:00", direction="return")[0]


# ---------------------------------------------------------------------------
# Time conflict analysis
# ---------------------------------------------------------------------------


def test_pickup_inside_buffer_of_confirmed_return_is_blocked():
    """Confirmed 10.01 14:00 -> 12.01 12:00, 2 h buffer; pending pickup 12.01 13:30."""
    confirmed = _make_reservation("2026-01-10", "14:00", "2026-01-12", "12:00", confirmed=True)
    editing = _make_reservation("2026-01-12", "13:30", "2026-01-14", "10:00", name="Alex")

    result = analyze_time_conflicts(editing, [confirmed], "2026-01-12", clock, buffer_hours=2)

    assert result.has_blocking_conflict
    assert result.min_pickup_time == "14:00"
    assert result.max_return_time is None
    assert len(result.blocks) == 1
    record = result.blocks[0]
    assert record.kind == ConflictKind.TIME
    assert record.code == ConflictCode.BLOCKED_BY_CONFIRMED
    assert record.is_blocking and record.can_be_overridden
    assert record.reservation.id == confirmed.id
    assert result.summary.level == Severity.BLOCK
    assert result.summary.reservation_id == confirmed.id
    assert "Maria" in result.summary.message


def test_pickup_at_bound_is_clear():
    confirmed = _make_reservation("2026-01-10", "14:00", "2026-01-12", "12:00", confirmed=True)
    editing = _make_reservation("2026-01-12", "13:30", "2026-01-14", "10:00")

    result = analyze_time_conflicts(
        editing, [confirmed], date(2026, 1, 12), clock, pickup_time="14:00", buffer_hours=2
    )
    assert not result.has_blocking_conflict
    assert result.blocks == () and result.warnings == ()
    assert result.summary is None


def test_return_bound_before_confirmed_pickup():
    confirmed = _make_reservation("2026-01-20", "10:00", "2026-01-22", "10:00", confirmed=True)
    editing = _make_reservation("2026-01-18", "09:00", "2026-01-20", "09:00")

    result = analyze_time_conflicts(editing, [confirmed], "2026-01-20", clock, buffer_hours=2)
    assert result.has_blocking_conflict
    assert result.max_return_time == "08:00"
    assert result.min_pickup_time is None


def test_bounds_across_spring_forward_use_real_elapsed_time():
    """Return 02:00 EET on 29.03, pickup 04:30 EEST: only 1.5 h apart in reality."""
    confirmed = _make_reservation("2026-03-27", "10:00", "2026-03-29", "02:00", confirmed=True)
    editing = _make_reservation("2026-03-29", "04:30", "2026-03-30", "10:00")

    result = analyze_time_conflicts(editing, [confirmed], "2026-03-29", clock, buffer_hours=2)
    assert result.has_blocking_conflict
    assert result.min_pickup_time == "05:00"


def test_pending_vs_pending_is_a_strong_warning():
    other = _make_reservation("2026-01-10", "14:00", "2026-01-12", "12:00")
    editing = _make_reservation("2026-01-12", "13:00", "2026-01-14", "10:00")

    result = analyze_time_conflicts(editing, [other], "2026-01-12", clock, buffer_hours=2)
    assert not result.has_blocking_conflict
    assert [w.code for w in result.warnings] == [ConflictCode.PENDING_OVERLAP]
    assert result.summary.level == Severity.WARNING
    assert result.min_pickup_time is None


def test_confirmed_editing_over_pending_warns():
    other = _make_reservation("2026-01-10", "14:00", "2026-01-12", "12:00")
    editing = _make_reservation("2026-01-12", "13:00", "2026-01-14", "10:00", confirmed=True)

    result = analyze_time_conflicts(editing, [other], "2026-01-12", clock, buffer_hours=2)
    assert [w.code for w in result.warnings] == [ConflictCode.OVERRIDE_PENDING]


def test_confirmed_vs_confirmed_blocks_without_bounds():
    other = _make_reservation("2026-01-10", "14:00", "2026-01-12", "12:00", confirmed=True)
    editing = _make_reservation("2026-01-12", "13:00", "2026-01-14", "10:00", confirmed=True)

    result = analyze_time_conflicts(editing, [other], "2026-01-12", clock, buffer_hours=2)
    assert [b.code for b in result.blocks] == [ConflictCode.CONFIRMED_CONFLICT]
    assert result.min_pickup_time is None and result.max_return_time is None


def test_block_is_surfaced_before_warning():
    pending = _make_reservation("2026-01-12", "18:00", "2026-01-13", "10:00", name="Pending")
    confirmed = _make_reservation("2026-01-10", "14:00", "2026-01-12", "12:00", confirmed=True, name="Confirmed")
    editing = _make_reservation("2026-01-12", "13:00", "2026-01-14", "10:00")

    result = analyze_time_conflicts(editing, [pending, confirmed], "2026-01-12", clock, buffer_hours=2)
    assert len(result.blocks) == 1 and len(result.warnings) == 1
    assert result.summary.reservation_id == confirmed.id


def test_cancelled_and_self_are_ignored():
    cancelled = _make_reservation(
        "2026-01-10", "14:00", "2026-01-12", "12:00",
        confirmed=True, cancelled_at=datetime(2026, 1, 5, tzinfo=timezone.utc),
    )
    editing = _make_reservation("2026-01-12", "13:00", "2026-01-14", "10:00")

    result = analyze_time_conflicts(editing, [cancelled, editing], "2026-01-12", clock, buffer_hours=2)
    assert result.blocks == () and result.warnings == ()
    assert active_peers(editing, [cancelled, editing], clock) == []


def test_target_date_outside_editing_range_is_empty():
    confirmed = _make_reservation("2026-01-10", "14:00", "2026-01-12", "12:00", confirmed=True)
    editing = _make_reservation("2026-01-12", "13:00", "2026-01-14", "10:00")

    result = analyze_time_conflicts(editing, [confirmed], "2026-01-20", clock, buffer_hours=2)
    assert not result.has_blocking_conflict
    assert result.buffer_hours == 2


def test_default_buffer_applies_when_unset():
    confirmed = _make_reservation("2026-01-10", "14:00", "2026-01-12", "12:00", confirmed=True)
    editing = _make_reservation("2026-01-12", "13:30", "2026-01-14", "10:00")

    result = analyze_time_conflicts(editing, [confirmed], "2026-01-12", clock)
    assert result.buffer_hours == 2.0
    assert result.has_blocking_conflict


def test_missing_times_fall_back_to_whole_day():
    confirmed = _make_reservation("2026-01-10", None, "2026-01-12", None, confirmed=True)
    editing = _make_reservation("2026-01-12", "22:00", "2026-01-14", "10:00")

    result = analyze_time_conflicts(editing, [confirmed], "2026-01-12", clock, buffer_hours=0)
    assert result.has_blocking_conflict


def test_active_peers_are_sorted_by_pickup():
    late = _make_reservation("2026-01-12", "18:00", "2026-01-13", "10:00")
    early = _make_reservation("2026-01-12", "08:00", "2026-01-12", "10:00")
    editing = _make_reservation("2026-01-11", "08:00", "2026-01-11", "10:00")
    assert [p.id for p in active_peers(editing, [late, early], clock)] == [early.id, late.id]
