"""Domain models for the reservation conflict engine."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class Ownership(StrEnum):
    BUSINESS = "business"
    INTERNAL = "internal"


class Origin(StrEnum):
    CLIENT = "client"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"
    SYSTEM = "system"
    UNKNOWN = "unknown"


class Confirmation(StrEnum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    CANCELLED = "cancelled"


class ConflictKind(StrEnum):
    TIME = "time"
    CONFIRMED = "confirmed"
    PENDING = "pending"


class Severity(StrEnum):
    BLOCK = "block"
    WARNING = "warning"
    INFO = "info"


class FixSeverity(StrEnum):
    BLOCK = "block"
    WARNING = "warning"
    SAFE = "safe"


class ConflictCode(StrEnum):
    # Time-adjustment precedence
    BLOCKED_BY_CONFIRMED = "BLOCKED_BY_CONFIRMED"
    CONFIRMED_CONFLICT = "CONFIRMED_CONFLICT"
    OVERRIDE_PENDING = "OVERRIDE_PENDING"
    PENDING_OVERLAP = "PENDING_OVERLAP"
    INTERNAL_OVERLAP = "INTERNAL_OVERLAP"
    # Full-range validation
    DATE_TAKEN = "DATE_TAKEN"
    DATE_HAS_PENDING = "DATE_HAS_PENDING"
    TIME_CONFLICT = "TIME_CONFLICT"
    # Confirmation
    CONFIRM_BLOCKED = "CONFIRM_BLOCKED"
    CONFIRM_AFFECTS_ONE = "CONFIRM_AFFECTS_ONE"
    CONFIRM_AFFECTS_MANY = "CONFIRM_AFFECTS_MANY"


class OverrideState(StrEnum):
    NOT_REQUIRED = "not_required"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    COMMITTED = "committed"
    REFUSED = "refused"


class AuditAction(StrEnum):
    FORCE_CREATE_ORDER = "force_create_order"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _hhmm(instant: datetime | None) -> str | None:
    return instant.strftime("%H:%M") if instant is not None else None


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Reservation(BaseModel):
    id: str = Field(default_factory=_new_id)
    resource_id: str
    start_date: date
    end_date: date
    pickup_at: datetime | None = None
    return_at: datetime | None = None
    confirmed: bool = False
    my_order: bool = False
    created_by: Origin | None = None
    cancelled_at: datetime | None = None
    customer_name: str | None = None
    email: str | None = None
    phone: str | None = None
    needs_time_change: bool = False
    created_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _check_ranges(self) -> Reservation:
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        for name in ("pickup_at", "return_at"):
            value = getattr(self, name)
            if value is not None and value.tzinfo is None:
                raise ValueError(f"{name} must be timezone-aware")
        if (
            self.pickup_at is not None
            and self.return_at is not None
            and self.return_at <= self.pickup_at
        ):
            raise ValueError("return_at must be after pickup_at")
        return self

    @property
    def has_exact_times(self) -> bool:
        return self.pickup_at is not None and self.return_at is not None


class Company(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    buffer_hours: float | None = Field(default=None, ge=0)


class Vehicle(BaseModel):
    id: str = Field(default_factory=_new_id)
    company_id: str
    label: str


class OwnershipClassification(BaseModel):
    model_config = ConfigDict(frozen=True)

    ownership: Ownership = Ownership.INTERNAL
    origin: Origin = Origin.UNKNOWN
    confirmation: Confirmation = Confirmation.PENDING


# ---------------------------------------------------------------------------
# Analysis results (frozen, built fresh per call)
# ---------------------------------------------------------------------------


class ConflictRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ConflictKind
    code: ConflictCode
    severity: Severity
    ownership: Ownership
    origin: Origin
    confirmation: Confirmation
    reservation: Reservation
    conflict_date: date
    conflict_time: str | None = None
    message: str
    is_blocking: bool
    can_be_overridden: bool

    @property
    def key(self) -> tuple[str, date]:
        return (self.reservation.id, self.conflict_date)


class ConflictSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: Severity
    code: ConflictCode
    message: str
    reservation_id: str


class TimeConflictResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    target_date: date
    buffer_hours: float
    min_pickup_at: datetime | None = None
    max_return_at: datetime | None = None
    summary: ConflictSummary | None = None
    has_blocking_conflict: bool = False
    blocks: tuple[ConflictRecord, ...] = ()
    warnings: tuple[ConflictRecord, ...] = ()

    @computed_field
    @property
    def min_pickup_time(self) -> str | None:
        return _hhmm(self.min_pickup_at)

    @computed_field
    @property
    def max_return_time(self) -> str | None:
        return _hhmm(self.max_return_at)


class ConfirmationConflict(BaseModel):
    model_config = ConfigDict(frozen=True)

    reservation: Reservation
    is_confirmed: bool
    overlap_hours: float
    effective_conflict_hours: float
    gap_hours: float
    peer_pickup_time: str
    peer_return_time: str

    @property
    def reservation_id(self) -> str:
        return self.reservation.id


class ConfirmationAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    analysis_needed: bool = True
    can_confirm: bool = True
    level: Severity | None = None
    code: ConflictCode | None = None
    message: str | None = None
    blocked_by_confirmed: tuple[ConfirmationConflict, ...] = ()
    affected_pending: tuple[ConfirmationConflict, ...] = ()
    buffer_hours: float


class ConfirmabilityVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    can_confirm: bool = True
    blocking_peer: Reservation | None = None
    message: str | None = None


class ValidationSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    confirmed_business: int = 0
    confirmed_internal: int = 0
    pending_business: int = 0
    pending_internal: int = 0
    time_conflicts: int = 0
    total_conflicts: int = 0
    total_blocking: int = 0
    total_warnings: int = 0


class ValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_valid: bool
    has_blocking_conflict: bool
    has_warnings: bool
    conflicts: tuple[ConflictRecord, ...] = ()
    blocking_conflicts: tuple[ConflictRecord, ...] = ()
    warnings: tuple[ConflictRecord, ...] = ()
    informational: tuple[ConflictRecord, ...] = ()
    summary: ValidationSummary = Field(default_factory=ValidationSummary)


class AdjustmentVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    allowed: bool = True
    warning: bool = False
    strong_warning: bool = False
    code: ConflictCode | None = None
    message: str = ""
    requires_acknowledgement: bool = False
    conflict_reservation: Reservation | None = None


class AutoFixSuggestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    reason: str
    severity: FixSeverity
    disabled: bool = False
    new_pickup_time: str | None = None
    new_return_time: str | None = None


# ---------------------------------------------------------------------------
# Override protocol
# ---------------------------------------------------------------------------


class OverrideRequest(BaseModel):
    force: bool = False
    principal_id: str | None = None
    reason: str | None = None


class OverrideAuditEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    action: AuditAction = AuditAction.FORCE_CREATE_ORDER
    actor_id: str
    timestamp: datetime = Field(default_factory=_utcnow)
    reservation: Reservation
    overridden_conflicts: tuple[ConflictRecord, ...]
    reason: str | None = None
    severity: str = "high"
    summary: ValidationSummary


class OverrideResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: OverrideState
    allowed: bool
    requires_confirmation: bool = False
    warning_text: str = ""
    audit_entry: OverrideAuditEntry | None = None
    validation: ValidationResult


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class ReservationDraft(BaseModel):
    """Reservation as entered by an operator: dates plus business wall-clock times."""

    resource_id: str
    start_date: date
    end_date: date
    pickup_time: str | None = None
    return_time: str | None = None
    confirmed: bool = False
    my_order: bool = False
    created_by: Origin | None = None
    customer_name: str | None = None
    email: str | None = None
    phone: str | None = None


class CreateReservationRequest(BaseModel):
    reservation: ReservationDraft
    override: OverrideRequest | None = None


class CreateReservationResponse(BaseModel):
    reservation: Reservation | None = None
    validation: ValidationResult
    override: OverrideResult | None = None


class TimeCheckRequest(BaseModel):
    pickup_time: str | None = None
    return_time: str | None = None


class TimeCheckResponse(BaseModel):
    pickup_conflicts: TimeConflictResult
    return_conflicts: TimeConflictResult
    suggestions: list[AutoFixSuggestion] = Field(default_factory=list)


class BufferUpdateRequest(BaseModel):
    buffer_hours: float | None = Field(default=None, ge=0)
