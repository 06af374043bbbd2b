"""Forced creation over blocking conflicts.

Two-step protocol: the first call without ``force`` returns a warning for the
operator to confirm; the second call with ``force=True`` commits and produces
an audit entry. The caller persists the entry and the reservation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from fleetbook.domain.errors import ContractError, MissingPrincipalError
from fleetbook.domain.models import (
    ConflictRecord,
    Ownership,
    OverrideAuditEntry,
    OverrideRequest,
    OverrideResult,
    OverrideState,
    Reservation,
    ValidationResult,
)
from fleetbook.services import messages
from fleetbook.services.business_time import BusinessClock
from fleetbook.services.validation import validate_conflicts

logger = logging.getLogger(__name__)


def _unique_peers(conflicts: Iterable[ConflictRecord]) -> list[Reservation]:
    peers: dict[str, Reservation] = {}
    for c in conflicts:
        peers.setdefault(c.reservation.id, c.reservation)
    return list(peers.values())


def _split(conflicts: Iterable[ConflictRecord]) -> tuple[list[ConflictRecord], list[ConflictRecord]]:
    business, internal = [], []
    for c in conflicts:
        (business if c.ownership == Ownership.BUSINESS else internal).append(c)
    return business, internal


def generate_override_warning(
    validation: ValidationResult, locale: str | None = messages.DEFAULT_LOCALE
) -> str:
    """Confirmation text listing the blocking conflicts an override would create."""
    if not validation.blocking_conflicts:
        return ""

    business, internal = _split(validation.blocking_conflicts)
    lines = [messages.hint("override_title", locale), ""]

    if business:
        peers = _unique_peers(business)
        lines.append(messages.hint("override_business", locale, count=len(peers)))
        for peer in peers:
            name = peer.customer_name or messages.label("unknown_customer", locale)
            lines.append(
                f"  • {name} ({peer.start_date:%d.%m} - {peer.end_date:%d.%m})"
            )
        lines.append("")

    if internal:
        lines.append(
            messages.hint("override_internal", locale, count=len(_unique_peers(internal)))
        )
        lines.append("")

    lines.append(messages.hint("override_footer", locale))
    return "\n".join(lines)


def validate_override_request(request: OverrideRequest | None) -> None:
    """Strict check for a committing request: a principal and ``force=True``."""
    if request is None:
        raise ContractError("Override request is required")
    if not request.principal_id:
        raise MissingPrincipalError("Override request has no principal_id")
    if request.force is not True:
        raise ContractError("force must be explicitly set to true")


def evaluate_override(
    validation: ValidationResult,
    request: OverrideRequest,
    reservation: Reservation,
    *,
    now: datetime | None = None,
    locale: str | None = messages.DEFAULT_LOCALE,
) -> OverrideResult:
    """Run the override state machine for an already validated *reservation*."""
    if not request.principal_id:
        raise MissingPrincipalError("Override request has no principal_id")

    if not validation.has_blocking_conflict:
        return OverrideResult(
            state=OverrideState.NOT_REQUIRED, allowed=True, validation=validation
        )

    if not all(c.can_be_overridden for c in validation.blocking_conflicts):
        logger.info(
            "Override refused for %s by %s: non-overridable conflicts",
            reservation.id, request.principal_id,
        )
        return OverrideResult(
            state=OverrideState.REFUSED,
            allowed=False,
            requires_confirmation=not request.force,
            warning_text=messages.hint("override_refused", locale),
            validation=validation,
        )

    if not request.force:
        return OverrideResult(
            state=OverrideState.AWAITING_CONFIRMATION,
            allowed=False,
            requires_confirmation=True,
            warning_text=generate_override_warning(validation, locale),
            validation=validation,
        )

    entry = OverrideAuditEntry(
        actor_id=request.principal_id,
        timestamp=now or datetime.now(timezone.utc),
        reservation=reservation.model_copy(),
        overridden_conflicts=validation.blocking_conflicts,
        reason=request.reason,
        summary=validation.summary,
    )
    logger.info(
        "Override committed for %s by %s over %d conflict(s)",
        reservation.id, request.principal_id, len(entry.overridden_conflicts),
    )
    logger.info("%s", format_audit_entry_for_log(entry))
    return OverrideResult(
        state=OverrideState.COMMITTED,
        allowed=True,
        audit_entry=entry,
        validation=validation,
    )


def check_override(
    candidate: Reservation,
    peers: Iterable[Reservation],
    request: OverrideRequest,
    clock: BusinessClock,
    *,
    buffer_hours: float | None = None,
    now: datetime | None = None,
    locale: str | None = messages.DEFAULT_LOCALE,
) -> OverrideResult:
    """Validate *candidate* against *peers* and run the override protocol."""
    if not request.principal_id:
        raise MissingPrincipalError("Override request has no principal_id")
    validation = validate_conflicts(
        candidate, peers, clock, buffer_hours=buffer_hours, locale=locale
    )
    return evaluate_override(validation, request, candidate, now=now, locale=locale)


def build_override_confirmation(
    validation: ValidationResult, locale: str | None = messages.DEFAULT_LOCALE
) -> dict[str, Any]:
    """Blocking conflicts grouped by ownership, for an "are you sure" dialog."""
    business, internal = _split(validation.blocking_conflicts)

    def _item(c: ConflictRecord, with_contact: bool) -> dict[str, Any]:
        item: dict[str, Any] = {
            "reservation_id": c.reservation.id,
            "start_date": c.reservation.start_date,
            "end_date": c.reservation.end_date,
            "conflict_date": c.conflict_date,
        }
        if with_contact:
            item["customer_name"] = c.reservation.customer_name
            item["phone"] = c.reservation.phone
        return item

    return {
        "title": messages.hint("override_title", locale),
        "sections": [
            {
                "type": Ownership.BUSINESS,
                "label": messages.label(Ownership.BUSINESS, locale),
                "count": len(business),
                "items": [_item(c, True) for c in business],
                "severity": "critical",
            },
            {
                "type": Ownership.INTERNAL,
                "label": messages.label(Ownership.INTERNAL, locale),
                "count": len(internal),
                "items": [_item(c, False) for c in internal],
                "severity": "high",
            },
        ],
        "footer": messages.hint("override_footer", locale),
    }


def format_audit_entry_for_log(entry: OverrideAuditEntry) -> str:
    r = entry.reservation
    lines = [
        "=== OVERRIDE AUDIT ===",
        f"Timestamp: {entry.timestamp.isoformat()}",
        f"Actor: {entry.actor_id}",
        f"Action: {entry.action}",
        f"Severity: {entry.severity}",
        "",
        "New reservation:",
        f"  Resource: {r.resource_id}",
        f"  Dates: {r.start_date} - {r.end_date}",
        f"  Customer: {r.customer_name or '-'}",
        "",
        "Overridden conflicts:",
    ]
    for idx, c in enumerate(entry.overridden_conflicts, start=1):
        lines.append(f"  {idx}. Reservation {c.reservation.id} ({c.reservation.customer_name or 'internal'})")
        lines.append(f"     Type: {c.ownership} / {c.confirmation}")
        lines.append(f"     Conflict date: {c.conflict_date}")
    if entry.reason:
        lines.append("")
        lines.append(f"Reason: {entry.reason}")
    lines.append("======================")
    return "\n".join(lines)
