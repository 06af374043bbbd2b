"""Tests for ownership / origin / confirmation classification."""

from __future__ import annotations

from datetime import date, datetime, timezone

from fleetbook.domain.models import Confirmation, Origin, Ownership, Reservation
from fleetbook.services.ownership import (
    classify,
    describe,
    is_business,
    is_cancelled,
    is_client_order,
    is_confirmed,
    is_internal,
    is_pending,
    is_superadmin_order,
)


def _make_reservation(**overrides) -> Reservation:
    fields = dict(resource_id="car-1", start_date=date(2026, 2, 1), end_date=date(2026, 2, 3))
    fields.update(overrides)
    return Reservation(**fields)


def test_business_order_defaults_to_client_origin():
    c = classify(_make_reservation(my_order=True))
    assert c.ownership == Ownership.BUSINESS
    assert c.origin == Origin.CLIENT
    assert c.confirmation == Confirmation.PENDING


def test_internal_order_defaults_to_admin_origin():
    c = classify(_make_reservation(my_order=False, confirmed=True))
    assert c.ownership == Ownership.INTERNAL
    assert c.origin == Origin.ADMIN
    assert c.confirmation == Confirmation.CONFIRMED


def test_explicit_origin_wins():
    r = _make_reservation(my_order=True, created_by=Origin.SUPERADMIN)
    assert is_superadmin_order(r)
    assert not is_client_order(r)


def test_cancelled_overrides_confirmed():
    r = _make_reservation(confirmed=True, cancelled_at=datetime(2026, 1, 20, tzinfo=timezone.utc))
    assert is_cancelled(r)
    assert not is_confirmed(r)


def test_raw_mapping_is_accepted():
    record = {"my_order": True, "confirmed": True, "created_by": "superadmin"}
    c = classify(record)
    assert (c.ownership, c.origin, c.confirmation) == (
        Ownership.BUSINESS,
        Origin.SUPERADMIN,
        Confirmation.CONFIRMED,
    )


def test_unknown_origin_value_degrades():
    assert classify({"my_order": True, "created_by": "robot"}).origin == Origin.UNKNOWN


def test_truthy_but_not_true_flags_are_not_trusted():
    """Only a real ``True`` counts; ``"yes"`` or ``1`` from a store does not."""
    c = classify({"my_order": "yes", "confirmed": 1})
    assert c.ownership == Ownership.INTERNAL
    assert c.confirmation == Confirmation.PENDING


def test_missing_or_malformed_input_never_raises():
    for value in (None, 42, "order", [1, 2]):
        c = classify(value)
        assert (c.ownership, c.origin, c.confirmation) == (
            Ownership.INTERNAL,
            Origin.UNKNOWN,
            Confirmation.PENDING,
        )


def test_predicates_and_describe():
    r = _make_reservation(my_order=True)
    assert is_business(r) and not is_internal(r)
    assert is_pending(r)
    assert describe(r) == "business (client), pending"
