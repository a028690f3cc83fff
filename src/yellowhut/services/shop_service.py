from __future__ import annotations

import math
import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any

from ..dashboard import DEFAULT_FILTER, apply_filter, filter_counts, normalize_filter
from ..domain import (
    CUSTOMER_FIELDS,
    DEFAULT_JOB_STATUS,
    SERVICE_CATALOG,
    VEHICLE_TYPES,
    Customer,
    DashboardJob,
    Job,
)
from ..errors import ValidationFailed
from ..repositories.customer_repo import CustomerRepository
from ..repositories.job_repo import JobRepository
from ..store import DocumentStore

MOBILE_RE = re.compile(r"^0\d{9}$")
NIC_RE = re.compile(r"^\d{9}[VvXx]$|^\d{12}$")

_REQUIRED = {
    "full_name": "Full name is required",
    "mobile_number": "Mobile number is required",
    "address": "Address is required",
    "vehicle_model": "Vehicle model is required",
    "nic_number": "NIC number is required",
    "birthday": "Birthday is required",
}


@dataclass
class CustomerInput:
    vehicle_number: str
    full_name: str
    mobile_number: str
    address: str
    vehicle_model: str
    nic_number: str
    birthday: str
    vehicle_type: str = "Car"

    def fields(self) -> dict[str, str]:
        return {k: getattr(self, k).strip() for k in CUSTOMER_FIELDS}

    def validate(self) -> dict[str, str]:
        """Cleaned fields, or ``ValidationFailed`` listing every bad one."""
        fields = self.fields()
        errors = validate_customer_fields(fields)
        if not self.vehicle_number.strip():
            errors["vehicle_number"] = "Vehicle number is required"
        if errors:
            raise ValidationFailed(errors)
        fields["nic_number"] = fields["nic_number"].upper()
        return fields


@dataclass
class JobInput:
    services: list[str] = field(default_factory=list)
    technician_name: str | None = None
    cost: float | str | None = 0
    status: str | None = None
    notes: str = ""
    job_datetime: datetime | None = None

    def validate(self) -> dict[str, Any]:
        services: list[str] = []
        for s in self.services:
            s = s.strip()
            if s and s not in services:
                services.append(s)
        if not services:
            raise ValidationFailed({"services": "Select at least one service"})

        return {
            "services": services,
            "technician_name": (self.technician_name or "").strip() or None,
            "cost": _parse_cost(self.cost),
            "status": (self.status or "").strip() or None,
            "notes": (self.notes or "").strip(),
            "job_datetime": self.job_datetime,
        }


@dataclass(frozen=True)
class DashboardView:
    filter_key: str
    jobs: list[DashboardJob]
    all_jobs: list[DashboardJob]
    counts: dict[str, int]
    skipped: int
    source: str

    @property
    def total(self) -> int:
        return len(self.all_jobs)

    def refilter(self, filter_key: str | None, now: datetime | None = None) -> DashboardView:
        """Same data under another filter, without touching the store."""
        key = normalize_filter(filter_key)
        return replace(self, filter_key=key, jobs=apply_filter(self.all_jobs, key, now))


def validate_customer_fields(fields: dict[str, Any], *, partial: bool = False) -> dict[str, str]:
    """Field -> message for every rule ``fields`` breaks.

    With ``partial`` only the fields present are checked.
    """
    errors: dict[str, str] = {}

    for name, message in _REQUIRED.items():
        if partial and name not in fields:
            continue
        if not str(fields.get(name) or "").strip():
            errors[name] = message

    mobile = str(fields.get("mobile_number") or "").strip()
    if mobile and not MOBILE_RE.match(mobile):
        errors["mobile_number"] = "Please enter a valid mobile number (10 digits starting with 0)"

    nic = str(fields.get("nic_number") or "").strip()
    if nic and not NIC_RE.match(nic):
        errors["nic_number"] = "Please enter a valid NIC number"

    birthday = str(fields.get("birthday") or "").strip()
    if birthday:
        try:
            date.fromisoformat(birthday)
        except ValueError:
            errors["birthday"] = "Birthday must be a date (YYYY-MM-DD)"

    if "vehicle_type" in fields or not partial:
        vehicle_type = fields.get("vehicle_type") or "Car"
        if vehicle_type not in VEHICLE_TYPES:
            errors["vehicle_type"] = f"Vehicle type must be one of {', '.join(VEHICLE_TYPES)}"

    return errors


def clean_customer_update(fields: dict[str, Any]) -> dict[str, str]:
    cleaned = {k: str(v).strip() for k, v in fields.items()}
    errors = validate_customer_fields(cleaned, partial=True)
    if errors:
        raise ValidationFailed(errors)
    if "nic_number" in cleaned:
        cleaned["nic_number"] = cleaned["nic_number"].upper()
    return cleaned


def _parse_cost(value: float | str | None) -> float:
    if value is None or value == "":
        return 0.0
    try:
        cost = float(value)
    except (TypeError, ValueError):
        raise ValidationFailed({"cost": "Cost must be a number"})
    if not math.isfinite(cost):
        raise ValidationFailed({"cost": "Cost must be a number"})
    if cost < 0:
        raise ValidationFailed({"cost": "Cost cannot be negative"})
    return cost


class ShopService:
    def __init__(
        self,
        *,
        customer_repo: CustomerRepository,
        job_repo: JobRepository,
        service_catalog: tuple[str, ...] = SERVICE_CATALOG,
        default_job_status: str = DEFAULT_JOB_STATUS,
    ) -> None:
        self.customer_repo = customer_repo
        self.job_repo = job_repo
        self.service_catalog = service_catalog
        self.default_job_status = default_job_status

    def find_customer(self, store: DocumentStore, vehicle_number: str) -> Customer | None:
        if not vehicle_number.strip():
            raise ValidationFailed({"vehicle_number": "Please enter a vehicle number"})
        return self.customer_repo.find_by_vehicle_number(store, vehicle_number)

    def register_customer(self, store: DocumentStore, data: CustomerInput) -> Customer:
        fields = data.validate()
        return self.customer_repo.register(store, data.vehicle_number, fields)

    def update_customer(self, store: DocumentStore, vehicle_number: str, fields: dict[str, Any]) -> bool:
        cleaned = clean_customer_update(fields)
        return self.customer_repo.update(store, vehicle_number, cleaned)

    def add_job(self, store: DocumentStore, vehicle_number: str, data: JobInput) -> Job:
        fields = data.validate()
        fields["status"] = fields["status"] or self.default_job_status
        return self.job_repo.add_job(store, vehicle_number, fields)

    def list_customers(self, store: DocumentStore) -> list[Customer]:
        return sorted(self.customer_repo.list_all(store), key=lambda c: c.vehicle_number)

    def dashboard(self, store: DocumentStore, filter_key: str | None = DEFAULT_FILTER, now: datetime | None = None) -> DashboardView:
        aggregate = self.job_repo.list_all(store)
        key = normalize_filter(filter_key)
        return DashboardView(
            filter_key=key,
            jobs=apply_filter(aggregate.jobs, key, now),
            all_jobs=aggregate.jobs,
            counts=filter_counts(aggregate.jobs, now),
            skipped=aggregate.skipped,
            source=aggregate.source,
        )
