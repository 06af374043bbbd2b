"""Business-timezone clock.

Every wall-clock time in the system is read as business time (Europe/Athens
by default), never as the operator's local time. This is the only module that
touches timezone libraries.

DST policy: a wall-clock time that does not exist (spring-forward gap) is read
with the standard offset, which moves it forward by the size of the gap. A
wall-clock time that occurs twice (fall-back hour) resolves to the standard
offset, i.e. the second occurrence (``fold=1``).
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo

from dateutil import tz

from fleetbook.domain.errors import MalformedTimeError, UnknownTimezoneError
from fleetbook.domain.models import Reservation

logger = logging.getLogger(__name__)

_TIME_FORMAT = "%H:%M"


def parse_time_of_day(value: str | time) -> time:
    """Parse a strict ``HH:MM`` string (or pass a ``time`` through)."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    if not isinstance(value, str) or len(value.strip()) not in (4, 5):
        raise MalformedTimeError(f"Expected HH:MM, got {value!r}")
    try:
        return datetime.strptime(value.strip(), _TIME_FORMAT).time()
    except ValueError as exc:
        raise MalformedTimeError(f"Expected HH:MM, got {value!r}") from exc


def parse_date(value: date | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as exc:
        raise MalformedTimeError(f"Expected YYYY-MM-DD, got {value!r}") from exc


class BusinessClock:
    """Converts between business wall-clock time and UTC storage instants."""

    def __init__(self, timezone_name: str) -> None:
        zone = tz.gettz(timezone_name)
        if zone is None:
            raise UnknownTimezoneError(f"Unknown timezone: {timezone_name!r}")
        self.timezone_name = timezone_name
        self.tz: tzinfo = zone

    def __repr__(self) -> str:
        return f"BusinessClock({self.timezone_name!r})"

    # ------------------------------------------------------------------
    # Wall clock -> business instant
    # ------------------------------------------------------------------

    def anchor(self, day: date | str, time_of_day: str | time) -> datetime:
        """Interpret *day* + *time_of_day* as business wall-clock time."""
        local = datetime.combine(parse_date(day), parse_time_of_day(time_of_day))
        return self._localize(local)

    def reinterpret(self, local_instant: datetime, on_date: date | str | None = None) -> datetime:
        """Keep only the HH:MM of *local_instant* and re-anchor it as business time.

        Used for time-picker values that arrive in the browser's timezone.
        """
        day = parse_date(on_date) if on_date is not None else local_instant.date()
        return self.anchor(day, local_instant.time())

    def _localize(self, local: datetime) -> datetime:
        candidate = local.replace(tzinfo=self.tz)
        if not tz.datetime_exists(candidate):
            resolved = tz.resolve_imaginary(candidate)
            logger.debug(
                "Non-existent local time %s in %s resolved to %s",
                local.isoformat(), self.timezone_name, resolved.isoformat(),
            )
            return resolved
        if tz.datetime_ambiguous(candidate):
            # Second occurrence carries the standard offset.
            resolved = tz.enfold(candidate, fold=1)
            logger.debug(
                "Ambiguous local time %s in %s resolved to %s",
                local.isoformat(), self.timezone_name, resolved.isoformat(),
            )
            return resolved
        return candidate

    # ------------------------------------------------------------------
    # Storage round trip
    # ------------------------------------------------------------------

    def to_storage(self, instant: datetime) -> datetime:
        """Convert a business instant to UTC for persistence."""
        if instant.tzinfo is None:
            raise MalformedTimeError("to_storage() needs a timezone-aware instant")
        return instant.astimezone(timezone.utc)

    def from_storage(self, instant: datetime) -> datetime:
        """Convert a stored instant to business time. Naive values are read as UTC."""
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        return instant.astimezone(self.tz)

    # ------------------------------------------------------------------
    # Day helpers
    # ------------------------------------------------------------------

    def start_of_day(self, day: date | str) -> datetime:
        return self.anchor(day, time(0, 0))

    def end_of_day(self, day: date | str) -> datetime:
        """Exclusive end of *day*: midnight of the following day."""
        return self.start_of_day(parse_date(day) + timedelta(days=1))

    def day_of(self, instant: datetime) -> date:
        return self.from_storage(instant).date()

    def time_of_day(self, instant: datetime | None) -> str:
        if instant is None:
            return ""
        return self.from_storage(instant).strftime(_TIME_FORMAT)

    def now(self) -> datetime:
        return datetime.now(timezone.utc).astimezone(self.tz)

    def is_today(self, instant: datetime) -> bool:
        return self.day_of(instant) == self.now().date()

    def is_past(self, instant: datetime) -> bool:
        """True when *instant* falls on a business day before today."""
        return self.day_of(instant) < self.now().date()

    def format_date(self, value: date | datetime, fmt: str = "%d.%m.%Y") -> str:
        if isinstance(value, datetime):
            value = self.day_of(value)
        return value.strftime(fmt)

    def format_date_range(self, start: date | datetime, end: date | datetime, fmt: str = "%d.%m.%y") -> str:
        return f"{self.format_date(start, fmt)} - {self.format_date(end, fmt)}"

    def check_anchoring(self, reservation: Reservation) -> None:
        """Raise ValueError unless pickup/return fall on the reservation's dates."""
        if reservation.pickup_at is not None and self.day_of(reservation.pickup_at) != reservation.start_date:
            raise ValueError(
                f"pickup {reservation.pickup_at.isoformat()} is not on start_date {reservation.start_date}"
            )
        if reservation.return_at is not None and self.day_of(reservation.return_at) != reservation.end_date:
            raise ValueError(
                f"return {reservation.return_at.isoformat()} is not on end_date {reservation.end_date}"
            )
