"""Ownership / origin / confirmation classification of reservations.

Rules:
- ``my_order`` true  -> business reservation (customer flow)
- ``my_order`` false -> internal reservation (administrative hold)

Accepts model instances or raw store records; never raises.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from fleetbook.domain.models import (
    Confirmation,
    Origin,
    Ownership,
    OwnershipClassification,
    Reservation,
)

_DEFAULT = OwnershipClassification()


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def classify(reservation: Reservation | Mapping | None) -> OwnershipClassification:
    """Derive ownership, origin and confirmation from a reservation record.

    ``None`` or anything unreadable yields ``internal / unknown / pending``.
    """
    if reservation is None or not isinstance(reservation, (Reservation, Mapping)):
        return _DEFAULT

    is_business = _field(reservation, "my_order") is True
    ownership = Ownership.BUSINESS if is_business else Ownership.INTERNAL

    created_by = _field(reservation, "created_by")
    if created_by:
        try:
            origin = Origin(created_by)
        except ValueError:
            origin = Origin.UNKNOWN
    else:
        origin = Origin.CLIENT if is_business else Origin.ADMIN

    if _field(reservation, "cancelled_at"):
        confirmation = Confirmation.CANCELLED
    elif _field(reservation, "confirmed") is True:
        confirmation = Confirmation.CONFIRMED
    else:
        confirmation = Confirmation.PENDING

    return OwnershipClassification(
        ownership=ownership, origin=origin, confirmation=confirmation
    )


def is_business(reservation: Reservation | Mapping | None) -> bool:
    return classify(reservation).ownership == Ownership.BUSINESS


def is_internal(reservation: Reservation | Mapping | None) -> bool:
    return classify(reservation).ownership == Ownership.INTERNAL


def is_confirmed(reservation: Reservation | Mapping | None) -> bool:
    return classify(reservation).confirmation == Confirmation.CONFIRMED


def is_pending(reservation: Reservation | Mapping | None) -> bool:
    return classify(reservation).confirmation == Confirmation.PENDING


def is_cancelled(reservation: Reservation | Mapping | None) -> bool:
    return classify(reservation).confirmation == Confirmation.CANCELLED


def is_client_order(reservation: Reservation | Mapping | None) -> bool:
    return classify(reservation).origin == Origin.CLIENT


def is_superadmin_order(reservation: Reservation | Mapping | None) -> bool:
    return classify(reservation).origin == Origin.SUPERADMIN


def describe(reservation: Reservation | Mapping | None) -> str:
    """One-line description for logs, e.g. ``business (client), pending``."""
    c = classify(reservation)
    return f"{c.ownership} ({c.origin}), {c.confirmation}"
