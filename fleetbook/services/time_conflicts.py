"""Per-day time conflict analysis for a reservation being edited.

For the target date the edited reservation occupies a day slice (see
``overlap.day_slice``); every peer touching that date is sliced the same way
and tested with the buffered overlap primitive. Overlapping peers are graded
by the precedence table in ``adjustment``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from fleetbook.config import resolve_buffer_hours
from fleetbook.domain.models import (
    Confirmation,
    ConflictCode,
    ConflictKind,
    ConflictRecord,
    ConflictSummary,
    Reservation,
    Severity,
    TimeConflictResult,
)
from fleetbook.services import messages
from fleetbook.services.adjustment import peer_context, precedence_code
from fleetbook.services.business_time import BusinessClock, parse_date
from fleetbook.services.overlap import day_slice, overlaps, touches
from fleetbook.services.ownership import classify

logger = logging.getLogger(__name__)

_BLOCKING_CODES = (ConflictCode.BLOCKED_BY_CONFIRMED, ConflictCode.CONFIRMED_CONFLICT)


def active_peers(
    reservation: Reservation, peers: Iterable[Reservation], clock: BusinessClock
) -> list[Reservation]:
    """Peers other than *reservation* that are not cancelled, in pickup order."""
    candidates = [
        p
        for p in peers
        if p.id != reservation.id
        and classify(p).confirmation != Confirmation.CANCELLED
    ]
    return sorted(
        candidates,
        key=lambda p: clock.to_storage(p.pickup_at or clock.start_of_day(p.start_date)),
    )


def _tighter_max(current: datetime | None, candidate: datetime) -> datetime:
    return candidate if current is None or candidate < current else current


def _tighter_min(current: datetime | None, candidate: datetime) -> datetime:
    return candidate if current is None or candidate > current else current


def analyze_time_conflicts(
    editing: Reservation,
    peers: Iterable[Reservation],
    target_date: date | str,
    clock: BusinessClock,
    *,
    pickup_time: str | None = None,
    return_time: str | None = None,
    buffer_hours: float | None = None,
    locale: str | None = messages.DEFAULT_LOCALE,
) -> TimeConflictResult:
    """Analyze *editing* against *peers* on *target_date*.

    *pickup_time* / *return_time* are the operator's proposed HH:MM values in
    business time; when omitted the stored instants are used. Only one summary
    message is surfaced: the first blocking conflict, else the first warning.
    """
    buffer = resolve_buffer_hours(buffer_hours)
    day = parse_date(target_date)

    if not touches(day, editing.start_date, editing.end_date):
        return TimeConflictResult(target_date=day, buffer_hours=buffer)

    pickup_at = clock.anchor(editing.start_date, pickup_time) if pickup_time else editing.pickup_at
    return_at = clock.anchor(editing.end_date, return_time) if return_time else editing.return_at
    editing_start, editing_end = day_slice(
        clock, day, editing.start_date, editing.end_date, pickup_at, return_at
    )
    logger.debug(
        "analyze_time_conflicts: date=%s editing=%s slice=%s..%s confirmed=%s",
        day, editing.id, clock.time_of_day(editing_start), clock.time_of_day(editing_end),
        editing.confirmed,
    )

    pad = timedelta(hours=buffer)
    blocks: list[ConflictRecord] = []
    warnings: list[ConflictRecord] = []
    min_pickup_at: datetime | None = None
    max_return_at: datetime | None = None

    for peer in active_peers(editing, peers, clock):
        if not touches(day, peer.start_date, peer.end_date):
            continue

        peer_start, peer_end = day_slice(
            clock, day, peer.start_date, peer.end_date, peer.pickup_at, peer.return_at
        )
        if not overlaps(editing_start, editing_end, peer_start, peer_end, buffer):
            continue

        code = precedence_code(editing, peer)
        is_blocking = code in _BLOCKING_CODES
        ownership = classify(peer)
        record = ConflictRecord(
            kind=ConflictKind.TIME,
            code=code,
            severity=messages.level_for(code),
            ownership=ownership.ownership,
            origin=ownership.origin,
            confirmation=ownership.confirmation,
            reservation=peer.model_copy(),
            conflict_date=day,
            conflict_time=clock.time_of_day(peer.pickup_at) or None,
            message=messages.render(code, locale, **peer_context(clock, peer, buffer, locale)),
            is_blocking=is_blocking,
            can_be_overridden=is_blocking,
        )
        (blocks if is_blocking else warnings).append(record)

        if code == ConflictCode.BLOCKED_BY_CONFIRMED:
            # Bounds are kept in UTC until the result is built.
            if day == peer.start_date and peer.pickup_at is not None:
                bound = clock.to_storage(peer.pickup_at) - pad
                max_return_at = _tighter_max(max_return_at, bound)
            if day == peer.end_date and peer.return_at is not None:
                bound = clock.to_storage(peer.return_at) + pad
                min_pickup_at = _tighter_min(min_pickup_at, bound)

    summary = None
    surfaced = blocks[0] if blocks else warnings[0] if warnings else None
    if surfaced is not None:
        summary = ConflictSummary(
            level=Severity.BLOCK if blocks else Severity.WARNING,
            code=surfaced.code,
            message=surfaced.message,
            reservation_id=surfaced.reservation.id,
        )
    if blocks:
        logger.info(
            "Blocking time conflict for reservation %s on %s: %d blocking, %d warning",
            editing.id, day, len(blocks), len(warnings),
        )

    return TimeConflictResult(
        target_date=day,
        buffer_hours=buffer,
        min_pickup_at=clock.from_storage(min_pickup_at) if min_pickup_at else None,
        max_return_at=clock.from_storage(max_return_at) if max_return_at else None,
        summary=summary,
        has_blocking_conflict=bool(blocks),
        blocks=tuple(blocks),
        warnings=tuple(warnings),
    )
