"""In-memory repositories for companies, vehicles, reservations and audit."""

from __future__ import annotations

from fleetbook.config import BookingRules, load_rules
from fleetbook.domain.models import Company, OverrideAuditEntry, Reservation, Vehicle


class CompanyRepository:
    """Dict-backed store for Company instances, keyed by id."""

    def __init__(self, rules: BookingRules | None = None) -> None:
        self._store: dict[str, Company] = {}
        self.rules = rules or load_rules()

    def add(self, company: Company) -> None:
        self._store[company.id] = company

    def get(self, company_id: str) -> Company | None:
        return self._store.get(company_id)

    def set_buffer_hours(self, company_id: str, buffer_hours: float | None) -> None:
        company = self._store.get(company_id)
        if company is not None:
            company.buffer_hours = buffer_hours

    def buffer_hours_for(self, company_id: str | None) -> float:
        """Configured buffer for the company, or the default rules' buffer."""
        company = self._store.get(company_id) if company_id else None
        if company is None or company.buffer_hours is None:
            return self.rules.buffer_hours
        return company.buffer_hours


class VehicleRepository:
    """Dict-backed store for Vehicle instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Vehicle] = {}

    def add(self, vehicle: Vehicle) -> None:
        self._store[vehicle.id] = vehicle

    def get(self, vehicle_id: str) -> Vehicle | None:
        return self._store.get(vehicle_id)


class ReservationRepository:
    """Dict-backed store for Reservation instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Reservation] = {}

    def add(self, reservation: Reservation) -> None:
        self._store[reservation.id] = reservation

    def get(self, reservation_id: str) -> Reservation | None:
        return self._store.get(reservation_id)

    def list_all(self) -> list[Reservation]:
        return list(self._store.values())

    def peers_for_resource(
        self, resource_id: str, exclude_id: str | None = None
    ) -> list[Reservation]:
        """All reservations on *resource_id*, optionally without *exclude_id*."""
        return [
            r
            for r in self._store.values()
            if r.resource_id == resource_id and r.id != exclude_id
        ]

    def update(self, reservation_id: str, **changes: object) -> Reservation | None:
        stored = self._store.get(reservation_id)
        if stored is None:
            return None
        for name, value in changes.items():
            setattr(stored, name, value)
        return stored


class AuditLogRepository:
    """Append-only store for override audit entries."""

    def __init__(self) -> None:
        self._entries: list[OverrideAuditEntry] = []

    def add(self, entry: OverrideAuditEntry) -> None:
        self._entries.append(entry)

    def list_all(self) -> list[OverrideAuditEntry]:
        return sorted(self._entries, key=lambda e: e.timestamp)
