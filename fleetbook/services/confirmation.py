"""Conflict analysis for promoting a pending reservation to confirmed.

Asymmetric rules, checked against the full pickup/return span:
- overlapping a confirmed peer blocks the promotion;
- overlapping a pending peer allows it, but that peer can no longer be
  confirmed without a time change.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable

from fleetbook.config import resolve_buffer_hours
from fleetbook.domain.models import (
    ConfirmabilityVerdict,
    ConfirmationAnalysis,
    ConfirmationConflict,
    ConflictCode,
    Reservation,
    Severity,
)
from fleetbook.services import messages
from fleetbook.services.business_time import BusinessClock
from fleetbook.services.overlap import gap_hours, overlap_hours, overlaps, round_hours
from fleetbook.services.ownership import is_cancelled, is_confirmed

logger = logging.getLogger(__name__)


def _timed_peers(reservation: Reservation, peers: Iterable[Reservation]) -> list[Reservation]:
    return [
        p
        for p in peers
        if p.id != reservation.id and not is_cancelled(p) and p.has_exact_times
    ]


def _describe(
    clock: BusinessClock,
    reservation: Reservation,
    peer: Reservation,
    buffer: float,
) -> ConfirmationConflict:
    overlap = overlap_hours(reservation.pickup_at, reservation.return_at, peer.pickup_at, peer.return_at)
    return ConfirmationConflict(
        reservation=peer.model_copy(),
        is_confirmed=is_confirmed(peer),
        overlap_hours=round_hours(overlap),
        effective_conflict_hours=round_hours(overlap + buffer),
        gap_hours=round_hours(gap_hours(reservation.return_at, peer.pickup_at)),
        peer_pickup_time=clock.time_of_day(peer.pickup_at),
        peer_return_time=clock.time_of_day(peer.return_at),
    )


def _name(peer: Reservation, locale: str | None) -> str:
    return peer.customer_name or messages.label("unknown_customer", locale)


def analyze_confirmation_conflicts(
    reservation: Reservation,
    peers: Iterable[Reservation],
    clock: BusinessClock,
    *,
    buffer_hours: float | None = None,
    locale: str | None = messages.DEFAULT_LOCALE,
) -> ConfirmationAnalysis:
    """Analyze whether *reservation* may be confirmed against its *peers*.

    Returns the confirmed peers that block the promotion and the pending peers
    that would be invalidated by it. Already-confirmed reservations (and ones
    without exact times) need no analysis.
    """
    buffer = resolve_buffer_hours(buffer_hours)

    if is_confirmed(reservation) or not reservation.has_exact_times:
        return ConfirmationAnalysis(analysis_needed=False, buffer_hours=buffer)

    blocked: list[ConfirmationConflict] = []
    affected: list[ConfirmationConflict] = []
    for peer in _timed_peers(reservation, peers):
        if not overlaps(reservation.pickup_at, reservation.return_at, peer.pickup_at, peer.return_at, buffer):
            continue
        conflict = _describe(clock, reservation, peer, buffer)
        (blocked if conflict.is_confirmed else affected).append(conflict)

    if blocked:
        first = blocked[0]
        logger.info(
            "Confirmation of %s blocked by %d confirmed reservation(s), first %s",
            reservation.id, len(blocked), first.reservation_id,
        )
        return ConfirmationAnalysis(
            can_confirm=False,
            level=Severity.BLOCK,
            code=ConflictCode.CONFIRM_BLOCKED,
            message=messages.render(
                ConflictCode.CONFIRM_BLOCKED,
                locale,
                name=_name(first.reservation, locale),
                pickup_time=first.peer_pickup_time,
                return_time=first.peer_return_time,
                buffer_hours=f"{buffer:g}",
            ),
            blocked_by_confirmed=tuple(blocked),
            affected_pending=tuple(affected),
            buffer_hours=buffer,
        )

    if affected:
        first = affected[0]
        if len(affected) == 1:
            code = ConflictCode.CONFIRM_AFFECTS_ONE
            message = messages.render(
                code,
                locale,
                name=_name(first.reservation, locale),
                pickup_time=first.peer_pickup_time,
                return_time=first.peer_return_time,
            )
        else:
            code = ConflictCode.CONFIRM_AFFECTS_MANY
            message = messages.render(code, locale, count=len(affected))
        logger.debug(
            "Confirmation of %s affects pending reservations %s",
            reservation.id, [c.reservation_id for c in affected],
        )
        return ConfirmationAnalysis(
            level=Severity.WARNING,
            code=code,
            message=message,
            affected_pending=tuple(affected),
            buffer_hours=buffer,
        )

    return ConfirmationAnalysis(buffer_hours=buffer)


def can_be_confirmed(
    reservation: Reservation,
    peers: Iterable[Reservation],
    clock: BusinessClock,
    *,
    buffer_hours: float | None = None,
    locale: str | None = messages.DEFAULT_LOCALE,
) -> ConfirmabilityVerdict:
    """Yes/no variant of the confirmation analysis; stops at the first blocker."""
    buffer = resolve_buffer_hours(buffer_hours)

    if is_confirmed(reservation) or not reservation.has_exact_times:
        return ConfirmabilityVerdict()

    for peer in _timed_peers(reservation, peers):
        if not is_confirmed(peer):
            continue
        if overlaps(reservation.pickup_at, reservation.return_at, peer.pickup_at, peer.return_at, buffer):
            return ConfirmabilityVerdict(
                can_confirm=False,
                blocking_peer=peer.model_copy(),
                message=messages.render(
                    ConflictCode.CONFIRM_BLOCKED,
                    locale,
                    name=_name(peer, locale),
                    pickup_time=clock.time_of_day(peer.pickup_at),
                    return_time=clock.time_of_day(peer.return_at),
                    buffer_hours=f"{buffer:g}",
                ),
            )
    return ConfirmabilityVerdict()


def build_pending_confirm_block_map(
    reservations: Iterable[Reservation],
    clock: BusinessClock,
    *,
    buffer_hours: float | None = None,
    locale: str | None = messages.DEFAULT_LOCALE,
) -> dict[str, ConfirmabilityVerdict]:
    """Map pending reservation id -> verdict, for pending reservations that
    cannot currently be confirmed. Reservations are grouped by resource."""
    by_resource: dict[str, list[Reservation]] = defaultdict(list)
    for reservation in reservations:
        by_resource[reservation.resource_id].append(reservation)

    blocked: dict[str, ConfirmabilityVerdict] = {}
    for group in by_resource.values():
        confirmed = [r for r in group if is_confirmed(r)]
        if not confirmed:
            continue
        for pending in (r for r in group if not is_confirmed(r) and not is_cancelled(r)):
            verdict = can_be_confirmed(pending, confirmed, clock, buffer_hours=buffer_hours, locale=locale)
            if not verdict.can_confirm:
                blocked[pending.id] = verdict
    return blocked
