"""Buffered interval overlap and per-day interval slicing."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone

from fleetbook.domain.errors import MalformedTimeError
from fleetbook.services.business_time import BusinessClock

logger = logging.getLogger(__name__)

_HOUR = 3600.0


def _utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        raise MalformedTimeError("overlap checks need timezone-aware instants")
    return instant.astimezone(timezone.utc)


def overlaps(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
    buffer_hours: float,
) -> bool:
    """Return True if A overlaps B padded by *buffer_hours* on both sides.

    Overlap rule: a_start < b_end + buffer AND a_end > b_start - buffer.
    A gap of exactly *buffer_hours* is NOT a conflict.
    """
    pad = timedelta(hours=buffer_hours)
    padded_start = _utc(b_start) - pad
    padded_end = _utc(b_end) + pad
    result = _utc(a_start) < padded_end and _utc(a_end) > padded_start
    logger.debug(
        "overlaps: a=%s..%s b=%s..%s buffer=%sh -> %s",
        a_start.isoformat(), a_end.isoformat(),
        b_start.isoformat(), b_end.isoformat(),
        buffer_hours, result,
    )
    return result


def overlap_hours(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> float:
    """Unpadded intersection length in hours (0 if the intervals are disjoint)."""
    start = max(_utc(a_start), _utc(b_start))
    end = min(_utc(a_end), _utc(b_end))
    if end <= start:
        return 0.0
    return (end - start).total_seconds() / _HOUR


def gap_hours(earlier_end: datetime, later_start: datetime) -> float:
    """Hours between a return and the next pickup; negative when they overlap."""
    return (_utc(later_start) - _utc(earlier_end)).total_seconds() / _HOUR


def touches(day: date, start_date: date, end_date: date) -> bool:
    return start_date <= day <= end_date


def day_slice(
    clock: BusinessClock,
    day: date,
    start_date: date,
    end_date: date,
    pickup_at: datetime | None,
    return_at: datetime | None,
) -> tuple[datetime, datetime]:
    """Interval a reservation occupies on *day*.

    First and last day: [pickup, return]. First day only: [pickup, end of day].
    Last day only: [start of day, return]. Days in between: the whole day.
    A missing pickup/return falls back to the day boundary.
    """
    day_start = clock.start_of_day(day)
    day_end = clock.end_of_day(day)

    start = pickup_at if day == start_date and pickup_at is not None else day_start
    end = return_at if day == end_date and return_at is not None else day_end
    return start, end


def round_hours(value: float) -> float:
    return round(value * 10) / 10
