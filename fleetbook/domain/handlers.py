"""Domain event handlers — wired up at application startup."""

from __future__ import annotations

import logging

from fleetbook.domain.bus import EventBus
from fleetbook.domain.events import (
    OverrideCommitted,
    PendingReservationsAffected,
    ReservationConfirmed,
    ReservationCreated,
)
from fleetbook.repos.memory import AuditLogRepository, ReservationRepository
from fleetbook.services.ownership import describe

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Wires domain-event handlers to the bus with access to the repositories."""

    def __init__(
        self,
        bus: EventBus,
        reservation_repo: ReservationRepository,
        audit_repo: AuditLogRepository,
    ) -> None:
        self.bus = bus
        self.reservation_repo = reservation_repo
        self.audit_repo = audit_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(ReservationCreated, self.on_reservation_created)
        self.bus.subscribe(OverrideCommitted, self.on_override_committed)
        self.bus.subscribe(ReservationConfirmed, self.on_reservation_confirmed)
        self.bus.subscribe(PendingReservationsAffected, self.on_pending_affected)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_reservation_created(self, event: ReservationCreated) -> None:
        stored = self.reservation_repo.get(event.reservation_id)
        if stored is None:
            return
        logger.info(
            "Reservation %s created on %s: %s%s",
            stored.id, stored.resource_id, describe(stored),
            " (forced)" if event.forced else "",
        )

    def on_override_committed(self, event: OverrideCommitted) -> None:
        # The audit entry is written even if the reservation is gone.
        self.audit_repo.add(event.audit_entry)

    def on_reservation_confirmed(self, event: ReservationConfirmed) -> None:
        # A confirmed reservation no longer waits on a time change
        self.reservation_repo.update(
            event.reservation_id, confirmed=True, needs_time_change=False
        )

    def on_pending_affected(self, event: PendingReservationsAffected) -> None:
        for rid in event.affected_reservation_ids:
            if self.reservation_repo.update(rid, needs_time_change=True) is None:
                continue
            logger.info(
                "Reservation %s needs a time change after %s was confirmed",
                rid, event.reservation_id,
            )
