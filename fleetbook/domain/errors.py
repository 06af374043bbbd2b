"""Exceptions raised for caller defects.

Business outcomes (blocking conflicts, warnings) are never raised; they are
returned as structured results. Only contract violations end up here.
"""

from __future__ import annotations


class FleetbookError(Exception):
    """Base exception for all fleetbook errors."""


class ContractError(FleetbookError, ValueError):
    """Raised when a caller passes input the core cannot interpret."""


class MalformedTimeError(ContractError):
    """Raised for unparseable HH:MM strings or naive instants."""


class UnknownTimezoneError(ContractError):
    """Raised when the configured business timezone cannot be resolved."""


class MissingPrincipalError(ContractError):
    """Raised when an override request carries no acting principal."""
