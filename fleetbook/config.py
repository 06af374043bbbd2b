"""Fallback booking rules.

Real buffer values come from the company record; these are only used when the
company has none configured.
"""

from __future__ import annotations

import math
import os

from pydantic import BaseModel, Field

from fleetbook.domain.errors import ContractError

DEFAULT_BUSINESS_TZ = "Europe/Athens"
DEFAULT_BUFFER_HOURS = 2.0


class BookingRules(BaseModel):
    business_timezone: str = DEFAULT_BUSINESS_TZ
    buffer_hours: float = Field(default=DEFAULT_BUFFER_HOURS, ge=0)
    locale: str = "en"


def load_rules() -> BookingRules:
    """Build BookingRules from ``FLEETBOOK_*`` environment variables."""
    overrides: dict = {}
    if tz_name := os.environ.get("FLEETBOOK_BUSINESS_TZ"):
        overrides["business_timezone"] = tz_name
    if buffer := os.environ.get("FLEETBOOK_BUFFER_HOURS"):
        overrides["buffer_hours"] = float(buffer)
    if locale := os.environ.get("FLEETBOOK_LOCALE"):
        overrides["locale"] = locale
    return BookingRules(**overrides)


def resolve_buffer_hours(
    buffer_hours: float | None, rules: BookingRules | None = None
) -> float:
    """Return *buffer_hours*, or the fallback rule when it is ``None``.

    Negative or non-finite values are a caller defect.
    """
    if buffer_hours is None:
        return (rules or BookingRules()).buffer_hours
    value = float(buffer_hours)
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise ContractError(f"buffer_hours must be a non-negative number, got {buffer_hours!r}")
    return value
