"""Suggested time changes derived from a pair of time-conflict analyses.

Pure: suggestions describe new HH:MM values, nothing is applied here.
"""

from __future__ import annotations

from datetime import time

from fleetbook.domain.models import AutoFixSuggestion, FixSeverity, TimeConflictResult
from fleetbook.services import messages
from fleetbook.services.business_time import parse_time_of_day


def _as_time(value: str | time | None) -> time | None:
    return parse_time_of_day(value) if value else None


def get_auto_fix_suggestions(
    pickup_conflicts: TimeConflictResult | None,
    return_conflicts: TimeConflictResult | None,
    *,
    selected_pickup_time: str | time | None,
    selected_return_time: str | time | None,
    editing_confirmed: bool = False,
    locale: str | None = messages.DEFAULT_LOCALE,
) -> list[AutoFixSuggestion]:
    pickup_blocks = bool(pickup_conflicts and pickup_conflicts.blocks)
    return_blocks = bool(return_conflicts and return_conflicts.blocks)
    has_blocks = pickup_blocks or return_blocks
    has_warnings = bool(
        (pickup_conflicts and pickup_conflicts.warnings)
        or (return_conflicts and return_conflicts.warnings)
    )
    if not has_blocks and not has_warnings:
        return []

    min_pickup = pickup_conflicts.min_pickup_time if pickup_conflicts else None
    max_return = return_conflicts.max_return_time if return_conflicts else None
    selected_pickup = _as_time(selected_pickup_time)
    selected_return = _as_time(selected_return_time)

    suggestions: list[AutoFixSuggestion] = []

    if min_pickup and selected_pickup is not None and selected_pickup < parse_time_of_day(min_pickup):
        suggestions.append(
            AutoFixSuggestion(
                id="set-min-pickup",
                label=messages.hint("fix_min_pickup_label", locale, time=min_pickup),
                reason=messages.hint("fix_min_pickup_reason", locale, time=min_pickup),
                severity=FixSeverity.BLOCK if pickup_blocks else FixSeverity.WARNING,
                new_pickup_time=min_pickup,
            )
        )

    if max_return and selected_return is not None and selected_return > parse_time_of_day(max_return):
        suggestions.append(
            AutoFixSuggestion(
                id="set-max-return",
                label=messages.hint("fix_max_return_label", locale, time=max_return),
                reason=messages.hint("fix_max_return_reason", locale, time=max_return),
                severity=FixSeverity.BLOCK if return_blocks else FixSeverity.WARNING,
                new_return_time=max_return,
            )
        )

    if editing_confirmed and has_warnings and not has_blocks:
        suggestions.append(
            AutoFixSuggestion(
                id="proceed-with-warning",
                label=messages.hint("fix_proceed_label", locale),
                reason=messages.hint("fix_proceed_reason", locale),
                severity=FixSeverity.WARNING,
            )
        )

    if min_pickup and max_return and parse_time_of_day(min_pickup) < parse_time_of_day(max_return):
        suggestions.append(
            AutoFixSuggestion(
                id="set-both",
                label=messages.hint("fix_both_label", locale, pickup=min_pickup, return_=max_return),
                reason=messages.hint("fix_both_reason", locale),
                severity=FixSeverity.BLOCK if has_blocks else FixSeverity.SAFE,
                new_pickup_time=min_pickup,
                new_return_time=max_return,
            )
        )

    if has_blocks and not any(not s.disabled for s in suggestions):
        suggestions.append(
            AutoFixSuggestion(
                id="cannot-resolve",
                label=messages.hint("fix_cannot_resolve_label", locale),
                reason=messages.hint("fix_cannot_resolve_reason", locale),
                severity=FixSeverity.BLOCK,
                disabled=True,
            )
        )

    return suggestions
