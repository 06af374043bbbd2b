"""Precedence policy for overlapping reservations.

PRECEDENCE (editing -> other):
1. confirmed -> pending   = allowed, warning
2. pending   -> confirmed = blocked
3. pending   -> pending   = allowed, strong warning
4. confirmed -> confirmed = blocked
"""

from __future__ import annotations

from datetime import time

from fleetbook.domain.models import (
    AdjustmentVerdict,
    Confirmation,
    ConflictCode,
    Reservation,
)
from fleetbook.services import messages
from fleetbook.services.business_time import BusinessClock, parse_time_of_day
from fleetbook.services.ownership import classify


def peer_context(
    clock: BusinessClock,
    peer: Reservation,
    buffer_hours: float,
    locale: str | None = messages.DEFAULT_LOCALE,
) -> dict[str, object]:
    """Template context describing *peer* for conflict messages."""
    name = peer.customer_name or messages.label("unknown_customer", locale)
    if peer.email:
        name = f"{name} ({peer.email})"
    return {
        "name": name,
        "pickup_date": peer.start_date.strftime("%d.%m"),
        "return_date": peer.end_date.strftime("%d.%m"),
        "pickup_time": clock.time_of_day(peer.pickup_at) or "—",
        "return_time": clock.time_of_day(peer.return_at) or "—",
        "buffer_hours": f"{buffer_hours:g}",
    }


def precedence_code(editing: Reservation, other: Reservation) -> ConflictCode:
    """Conflict code for *editing* overlapping *other*, per the precedence table."""
    editing_confirmed = classify(editing).confirmation == Confirmation.CONFIRMED
    other_confirmed = classify(other).confirmation == Confirmation.CONFIRMED

    if editing_confirmed and not other_confirmed:
        return ConflictCode.OVERRIDE_PENDING
    if not editing_confirmed and other_confirmed:
        return ConflictCode.BLOCKED_BY_CONFIRMED
    if not editing_confirmed and not other_confirmed:
        return ConflictCode.PENDING_OVERLAP
    return ConflictCode.CONFIRMED_CONFLICT


def can_adjust_time(
    editing: Reservation | None,
    other: Reservation | None,
    clock: BusinessClock,
    *,
    buffer_hours: float,
    locale: str | None = messages.DEFAULT_LOCALE,
) -> AdjustmentVerdict:
    """Decide whether *editing* may be moved over *other*."""
    if editing is None or other is None:
        return AdjustmentVerdict()

    code = precedence_code(editing, other)
    message = messages.render(code, locale, **peer_context(clock, other, buffer_hours, locale))

    if code in (ConflictCode.BLOCKED_BY_CONFIRMED, ConflictCode.CONFIRMED_CONFLICT):
        return AdjustmentVerdict(
            allowed=False,
            code=code,
            message=message,
            conflict_reservation=other,
        )
    return AdjustmentVerdict(
        allowed=True,
        warning=True,
        strong_warning=code == ConflictCode.PENDING_OVERLAP,
        code=code,
        message=message,
        requires_acknowledgement=True,
        conflict_reservation=other,
    )


def validate_selected_time(
    selected: str | time,
    *,
    direction: str,
    min_pickup_time: str | None = None,
    max_return_time: str | None = None,
    locale: str | None = messages.DEFAULT_LOCALE,
) -> tuple[bool, str]:
    """Check a picked HH:MM against the bounds from a time analysis.

    *direction* is ``"pickup"`` or ``"return"``.
    """
    picked = parse_time_of_day(selected)
    if direction == "pickup" and min_pickup_time:
        if picked < parse_time_of_day(min_pickup_time):
            return False, messages.hint("pickup_too_early", locale, bound=min_pickup_time)
    if direction == "return" and max_return_time:
        if picked > parse_time_of_day(max_return_time):
            return False, messages.hint("return_too_late", locale, bound=max_return_time)
    return True, ""
