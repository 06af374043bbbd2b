"""Full-range conflict validation, run when a reservation is created.

Walks every calendar day the candidate spans and grades each peer that
touches that day by ownership and confirmation. On boundary days where both
sides carry exact times, the day slices are compared directly: an overlap
turns the date-level record into a time conflict. A clean handover keeps the
date-level record.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from datetime import date, timedelta

from fleetbook.config import resolve_buffer_hours
from fleetbook.domain.models import (
    Confirmation,
    ConflictCode,
    ConflictKind,
    ConflictRecord,
    Ownership,
    Reservation,
    Severity,
    ValidationResult,
    ValidationSummary,
)
from fleetbook.services import messages
from fleetbook.services.business_time import BusinessClock
from fleetbook.services.overlap import day_slice, overlaps, touches
from fleetbook.services.ownership import classify

logger = logging.getLogger(__name__)


def _days(start: date, end: date) -> Iterator[date]:
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def _is_boundary(day: date, reservation: Reservation) -> bool:
    return day in (reservation.start_date, reservation.end_date)


def _severity(ownership: Ownership, confirmation: Confirmation) -> Severity:
    if confirmation == Confirmation.CONFIRMED:
        return Severity.BLOCK
    if ownership == Ownership.INTERNAL:
        return Severity.INFO
    return Severity.WARNING


def _date_code(ownership: Ownership, confirmation: Confirmation) -> ConflictCode:
    if confirmation == Confirmation.CONFIRMED:
        return ConflictCode.DATE_TAKEN
    if ownership == Ownership.INTERNAL:
        return ConflictCode.INTERNAL_OVERLAP
    return ConflictCode.DATE_HAS_PENDING


def _summarize(records: list[ConflictRecord]) -> ValidationSummary:
    counts = {
        "confirmed_business": 0,
        "confirmed_internal": 0,
        "pending_business": 0,
        "pending_internal": 0,
    }
    for r in records:
        counts[f"{r.confirmation}_{r.ownership}"] += 1
    blocking = sum(1 for r in records if r.is_blocking)
    return ValidationSummary(
        **counts,
        time_conflicts=sum(1 for r in records if r.kind == ConflictKind.TIME),
        total_conflicts=len(records),
        total_blocking=blocking,
        total_warnings=len(records) - blocking,
    )


def validate_conflicts(
    candidate: Reservation,
    peers: Iterable[Reservation],
    clock: BusinessClock,
    *,
    buffer_hours: float | None = None,
    exclude_id: str | None = None,
    locale: str | None = messages.DEFAULT_LOCALE,
) -> ValidationResult:
    """Validate *candidate* against every peer over its whole date range."""
    buffer = resolve_buffer_hours(buffer_hours)
    skip = {candidate.id, exclude_id}
    active = [
        p for p in peers
        if p.id not in skip and classify(p).confirmation != Confirmation.CANCELLED
    ]

    found: dict[tuple[str, date], ConflictRecord] = {}
    for day in _days(candidate.start_date, candidate.end_date):
        for peer in active:
            if not touches(day, peer.start_date, peer.end_date) or (peer.id, day) in found:
                continue

            ownership = classify(peer)
            context = {
                "date": clock.format_date(day),
                "ownership_label": messages.label(ownership.ownership, locale),
                "confirmation_label": messages.label(ownership.confirmation, locale),
            }
            kind = (
                ConflictKind.CONFIRMED
                if ownership.confirmation == Confirmation.CONFIRMED
                else ConflictKind.PENDING
            )
            code = _date_code(ownership.ownership, ownership.confirmation)
            conflict_time = None

            timed = candidate.has_exact_times and peer.has_exact_times
            if timed and (_is_boundary(day, candidate) or _is_boundary(day, peer)):
                mine = day_slice(
                    clock, day, candidate.start_date, candidate.end_date,
                    candidate.pickup_at, candidate.return_at,
                )
                theirs = day_slice(
                    clock, day, peer.start_date, peer.end_date, peer.pickup_at, peer.return_at
                )
                if overlaps(*mine, *theirs, buffer):
                    kind = ConflictKind.TIME
                    code = ConflictCode.TIME_CONFLICT
                    conflict_time = clock.time_of_day(peer.pickup_at)
                else:
                    logger.debug("validate_conflicts: clean handover with %s on %s", peer.id, day)

            is_blocking = ownership.confirmation == Confirmation.CONFIRMED
            found[(peer.id, day)] = ConflictRecord(
                kind=kind,
                code=code,
                severity=_severity(ownership.ownership, ownership.confirmation),
                ownership=ownership.ownership,
                origin=ownership.origin,
                confirmation=ownership.confirmation,
                reservation=peer.model_copy(),
                conflict_date=day,
                conflict_time=conflict_time,
                message=messages.render(code, locale, **context),
                is_blocking=is_blocking,
                can_be_overridden=is_blocking,
            )

    records = list(found.values())
    blocking = tuple(r for r in records if r.is_blocking)
    non_blocking = tuple(r for r in records if not r.is_blocking)
    result = ValidationResult(
        is_valid=not blocking,
        has_blocking_conflict=bool(blocking),
        has_warnings=bool(non_blocking),
        conflicts=tuple(records),
        blocking_conflicts=blocking,
        warnings=non_blocking,
        informational=tuple(r for r in non_blocking if r.severity == Severity.INFO),
        summary=_summarize(records),
    )
    if blocking:
        logger.info(
            "Validation of %s on %s found %d blocking conflict(s)",
            candidate.id, candidate.resource_id, len(blocking),
        )
    else:
        logger.debug(
            "Validation of %s: %d non-blocking conflict(s)", candidate.id, len(non_blocking)
        )
    return result
