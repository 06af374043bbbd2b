"""FastAPI application — entry point for the reservation conflict service."""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from fleetbook.config import load_rules
from fleetbook.domain.bus import EventBus
from fleetbook.domain.errors import ContractError
from fleetbook.domain.events import (
    OverrideCommitted,
    PendingReservationsAffected,
    ReservationConfirmed,
    ReservationCreated,
)
from fleetbook.domain.handlers import HandlerRegistry
from fleetbook.domain.models import (
    BufferUpdateRequest,
    Company,
    ConfirmabilityVerdict,
    ConfirmationAnalysis,
    CreateReservationRequest,
    CreateReservationResponse,
    OverrideAuditEntry,
    OverrideState,
    Reservation,
    ReservationDraft,
    TimeCheckRequest,
    TimeCheckResponse,
    Vehicle,
)
from fleetbook.repos.memory import (
    AuditLogRepository,
    CompanyRepository,
    ReservationRepository,
    VehicleRepository,
)
from fleetbook.services.autofix import get_auto_fix_suggestions
from fleetbook.services.business_time import BusinessClock
from fleetbook.services.confirmation import analyze_confirmation_conflicts, can_be_confirmed
from fleetbook.services.override import evaluate_override
from fleetbook.services.time_conflicts import analyze_time_conflicts
from fleetbook.services.validation import validate_conflicts

logging.basicConfig(
    level=os.environ.get("FLEETBOOK_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Fleet Reservation Conflict Service")

# ── Singletons (created at import time for simplicity) ────────────────
rules = load_rules()
clock = BusinessClock(rules.business_timezone)
event_bus = EventBus()
company_repo = CompanyRepository(rules)
vehicle_repo = VehicleRepository()
reservation_repo = ReservationRepository()
audit_repo = AuditLogRepository()

handler_registry = HandlerRegistry(
    bus=event_bus,
    reservation_repo=reservation_repo,
    audit_repo=audit_repo,
)


# ── Helpers ───────────────────────────────────────────────────────────


def _get_vehicle(vehicle_id: str) -> Vehicle:
    vehicle = vehicle_repo.get(vehicle_id)
    if vehicle is None:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return vehicle


def _get_reservation(reservation_id: str) -> Reservation:
    reservation = reservation_repo.get(reservation_id)
    if reservation is None:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return reservation


def _buffer_for(resource_id: str) -> float:
    vehicle = vehicle_repo.get(resource_id)
    return company_repo.buffer_hours_for(vehicle.company_id if vehicle else None)


def _build_reservation(draft: ReservationDraft) -> Reservation:
    """Anchor the draft's wall-clock times in business time and store them as UTC."""
    try:
        pickup_at = (
            clock.to_storage(clock.anchor(draft.start_date, draft.pickup_time))
            if draft.pickup_time
            else None
        )
        return_at = (
            clock.to_storage(clock.anchor(draft.end_date, draft.return_time))
            if draft.return_time
            else None
        )
        reservation = Reservation(
            resource_id=draft.resource_id,
            start_date=draft.start_date,
            end_date=draft.end_date,
            pickup_at=pickup_at,
            return_at=return_at,
            confirmed=draft.confirmed,
            my_order=draft.my_order,
            created_by=draft.created_by,
            customer_name=draft.customer_name,
            email=draft.email,
            phone=draft.phone,
        )
        clock.check_anchoring(reservation)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return reservation


def _conflict_response(body: CreateReservationResponse) -> JSONResponse:
    return JSONResponse(status_code=409, content=body.model_dump(mode="json"))


# ── Companies & vehicles ──────────────────────────────────────────────


@app.post("/companies", response_model=Company, status_code=201)
def create_company(company: Company) -> Company:
    """Register a rental company."""
    company_repo.add(company)
    return company


@app.put("/companies/{company_id}/buffer", response_model=Company)
def set_company_buffer(company_id: str, body: BufferUpdateRequest) -> Company:
    """Set (or clear, with ``null``) the company's buffer between reservations."""
    if company_repo.get(company_id) is None:
        raise HTTPException(status_code=404, detail="Company not found")
    company_repo.set_buffer_hours(company_id, body.buffer_hours)
    return company_repo.get(company_id)


@app.post("/vehicles", response_model=Vehicle, status_code=201)
def create_vehicle(vehicle: Vehicle) -> Vehicle:
    """Register a vehicle under an existing company."""
    if company_repo.get(vehicle.company_id) is None:
        raise HTTPException(status_code=404, detail="Company not found")
    vehicle_repo.add(vehicle)
    return vehicle


@app.get("/vehicles/{vehicle_id}/reservations", response_model=list[Reservation])
def list_vehicle_reservations(vehicle_id: str) -> list[Reservation]:
    """Return every reservation on a vehicle, ordered by start date."""
    _get_vehicle(vehicle_id)
    return sorted(
        reservation_repo.peers_for_resource(vehicle_id),
        key=lambda r: (r.start_date, r.end_date),
    )


# ── Reservations ──────────────────────────────────────────────────────


@app.post("/reservations", response_model=CreateReservationResponse, status_code=201)
def create_reservation(payload: CreateReservationRequest):
    """Validate and create a reservation.

    Blocking conflicts answer 409 unless the request carries a forced
    override with an acting principal.
    """
    _get_vehicle(payload.reservation.resource_id)
    candidate = _build_reservation(payload.reservation)
    peers = reservation_repo.peers_for_resource(candidate.resource_id)

    try:
        validation = validate_conflicts(
            candidate, peers, clock,
            buffer_hours=_buffer_for(candidate.resource_id),
            locale=rules.locale,
        )
        override = None
        if validation.has_blocking_conflict and payload.override is not None:
            override = evaluate_override(
                validation, payload.override, candidate, locale=rules.locale
            )
    except ContractError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    if validation.has_blocking_conflict and (
        override is None or override.state != OverrideState.COMMITTED
    ):
        logger.info(
            "Reservation on %s rejected: %d blocking conflict(s), override %s",
            candidate.resource_id, len(validation.blocking_conflicts),
            override.state if override else "not requested",
        )
        return _conflict_response(
            CreateReservationResponse(validation=validation, override=override)
        )

    # 1. Persist
    reservation_repo.add(candidate)

    # 2. Publish: audit for a forced creation, then the creation itself
    if override is not None and override.audit_entry is not None:
        event_bus.publish(
            OverrideCommitted(reservation_id=candidate.id, audit_entry=override.audit_entry)
        )
    event_bus.publish(
        ReservationCreated(reservation_id=candidate.id, forced=override is not None)
    )

    return CreateReservationResponse(
        reservation=candidate, validation=validation, override=override
    )


@app.get("/reservations/{reservation_id}", response_model=Reservation)
def get_reservation(reservation_id: str) -> Reservation:
    """Return a single reservation by id."""
    return _get_reservation(reservation_id)


@app.post("/reservations/{reservation_id}/time-check", response_model=TimeCheckResponse)
def check_reservation_times(reservation_id: str, body: TimeCheckRequest) -> TimeCheckResponse:
    """Analyze proposed pickup/return times on the reservation's boundary days."""
    reservation = _get_reservation(reservation_id)
    peers = reservation_repo.peers_for_resource(reservation.resource_id, exclude_id=reservation.id)
    buffer = _buffer_for(reservation.resource_id)

    pickup_time = body.pickup_time or clock.time_of_day(reservation.pickup_at) or None
    return_time = body.return_time or clock.time_of_day(reservation.return_at) or None

    try:
        pickup_conflicts = analyze_time_conflicts(
            reservation, peers, reservation.start_date, clock,
            pickup_time=pickup_time, return_time=return_time,
            buffer_hours=buffer, locale=rules.locale,
        )
        return_conflicts = analyze_time_conflicts(
            reservation, peers, reservation.end_date, clock,
            pickup_time=pickup_time, return_time=return_time,
            buffer_hours=buffer, locale=rules.locale,
        )
        suggestions = get_auto_fix_suggestions(
            pickup_conflicts,
            return_conflicts,
            selected_pickup_time=pickup_time,
            selected_return_time=return_time,
            editing_confirmed=reservation.confirmed,
            locale=rules.locale,
        )
    except (ContractError, ValidationError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return TimeCheckResponse(
        pickup_conflicts=pickup_conflicts,
        return_conflicts=return_conflicts,
        suggestions=suggestions,
    )


@app.get("/reservations/{reservation_id}/confirmability", response_model=ConfirmabilityVerdict)
def get_confirmability(reservation_id: str) -> ConfirmabilityVerdict:
    """Answer whether a pending reservation could be confirmed right now."""
    reservation = _get_reservation(reservation_id)
    peers = reservation_repo.peers_for_resource(reservation.resource_id, exclude_id=reservation.id)
    return can_be_confirmed(
        reservation, peers, clock,
        buffer_hours=_buffer_for(reservation.resource_id),
        locale=rules.locale,
    )


@app.post("/reservations/{reservation_id}/confirm", response_model=ConfirmationAnalysis)
def confirm_reservation(reservation_id: str):
    """Promote a pending reservation to confirmed.

    Refused with 409 when a confirmed reservation overlaps it; overlapping
    pending reservations are flagged as needing a time change.
    """
    reservation = _get_reservation(reservation_id)
    peers = reservation_repo.peers_for_resource(reservation.resource_id, exclude_id=reservation.id)
    analysis = analyze_confirmation_conflicts(
        reservation, peers, clock,
        buffer_hours=_buffer_for(reservation.resource_id),
        locale=rules.locale,
    )
    if not analysis.can_confirm:
        return JSONResponse(status_code=409, content=analysis.model_dump(mode="json"))

    event_bus.publish(ReservationConfirmed(reservation_id=reservation.id))
    if analysis.affected_pending:
        event_bus.publish(
            PendingReservationsAffected(
                reservation_id=reservation.id,
                affected_reservation_ids=[c.reservation_id for c in analysis.affected_pending],
            )
        )
    return analysis


# ── Audit ─────────────────────────────────────────────────────────────


@app.get("/audit-log", response_model=list[OverrideAuditEntry])
def list_audit_log() -> list[OverrideAuditEntry]:
    """Return every override audit entry, oldest first."""
    return audit_repo.list_all()
