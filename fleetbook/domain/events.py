"""Domain events emitted during the reservation lifecycle."""

from __future__ import annotations

from pydantic import BaseModel

from fleetbook.domain.models import OverrideAuditEntry


class ReservationCreated(BaseModel):
    """Fired when a new Reservation is persisted."""

    reservation_id: str
    forced: bool = False


class ReservationConfirmed(BaseModel):
    """Fired when a pending reservation is promoted to confirmed."""

    reservation_id: str


class OverrideCommitted(BaseModel):
    """Fired when a reservation was forced over blocking conflicts."""

    reservation_id: str
    audit_entry: OverrideAuditEntry


class PendingReservationsAffected(BaseModel):
    """Fired when a confirmation overlaps pending reservations."""

    reservation_id: str
    affected_reservation_ids: list[str]
