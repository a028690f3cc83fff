"""
Adapters from raw store documents to the typed objects the screens use.

Stored documents use snake_case field names. Older records may carry
camelCase names (``customerName``, ``createdAt``) or lack a usable date;
the readers below accept both and never reject a record for a bad date.
"""
from __future__ import annotations

import dataclasses
from datetime import date, datetime, timezone
from typing import Any

from .domain import (
    DEFAULT_JOB_STATUS,
    DEFAULT_TECHNICIAN,
    DEFAULT_VEHICLE_TYPE,
    Customer,
    DashboardJob,
    Job,
    derive_last_service,
)
from .store import Document, utcnow

_CAMEL_OVERRIDES = {"job_datetime": "jobDateTime"}


def coerce_datetime(value: Any, default: datetime | None = None) -> datetime:
    """Best-effort conversion of a stored date value to an aware datetime.

    Falls back to ``default`` (or the current time) when the value is
    missing or cannot be parsed.
    """
    fallback = default or utcnow()
    if value is None or value == "":
        return fallback
    if isinstance(value, datetime):
        return value if value.tzinfo else value.astimezone()
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).astimezone()
    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        if isinstance(seconds, (int, float)):
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        return fallback
    if isinstance(value, bool):
        return fallback
    if isinstance(value, (int, float)):
        # epoch milliseconds are what browsers write
        seconds = value / 1000 if value > 1e11 else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return fallback
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return fallback
        return parsed if parsed.tzinfo else parsed.astimezone()
    return fallback


def _first(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return default


def _services(data: dict[str, Any]) -> list[str]:
    services = data.get("services")
    if not isinstance(services, list):
        return []
    return [str(s) for s in services]


def _optional_datetime(value: Any) -> datetime | None:
    if value in (None, ""):
        return None
    return coerce_datetime(value)


def job_datetime_of(data: dict[str, Any]) -> datetime:
    return coerce_datetime(_first(data, "job_datetime", "jobDateTime", "created_at", "createdAt", "date"))


def job_from_document(doc: Document, vehicle_number: str = "") -> Job:
    data = doc.data
    services = _services(data)
    try:
        cost = float(data.get("cost") or 0)
    except (TypeError, ValueError):
        cost = 0.0
    return Job(
        id=doc.id,
        vehicle_number=str(_first(data, "vehicle_number", "vehicleNumber", default=vehicle_number)),
        services=services,
        last_service=str(_first(data, "last_service", "lastService", default=derive_last_service(services))),
        job_datetime=job_datetime_of(data),
        technician_name=str(_first(data, "technician_name", default=DEFAULT_TECHNICIAN)),
        cost=cost,
        status=str(_first(data, "status", default=DEFAULT_JOB_STATUS)),
        notes=str(data.get("notes") or ""),
        created_at=_optional_datetime(_first(data, "created_at", "createdAt")),
    )


def customer_from_document(doc: Document, service_history: list[Job] | None = None) -> Customer:
    data = doc.data
    return Customer(
        vehicle_number=doc.id,
        full_name=str(data.get("full_name") or ""),
        mobile_number=str(data.get("mobile_number") or ""),
        address=str(data.get("address") or ""),
        vehicle_model=str(data.get("vehicle_model") or ""),
        nic_number=str(data.get("nic_number") or ""),
        birthday=str(data.get("birthday") or ""),
        vehicle_type=str(data.get("vehicle_type") or DEFAULT_VEHICLE_TYPE),
        created_at=_optional_datetime(data.get("created_at")),
        updated_at=_optional_datetime(data.get("updated_at")),
        service_history=list(service_history or []),
    )


def dashboard_job_from_document(doc: Document) -> DashboardJob:
    """Read a job from the global collection, which carries owner details."""
    data = doc.data
    services = _services(data)
    return DashboardJob(
        id=doc.id,
        vehicle_number=str(_first(data, "vehicle_number", "vehicleNumber", default="Unknown")),
        customer_name=str(_first(data, "customer_name", "customerName", default="Unknown Customer")),
        phone_number=str(_first(data, "phone_number", "phoneNumber", "mobile_number", default="No Phone")),
        vehicle_type=str(_first(data, "vehicle_type", "vehicleType", default=DEFAULT_VEHICLE_TYPE)),
        services=services,
        last_service=str(_first(data, "last_service", "lastService", default=derive_last_service(services))),
        job_datetime=job_datetime_of(data),
    )


def dashboard_job_from_customer(job_doc: Document, customer_doc: Document) -> DashboardJob:
    """Read a job from a customer's sub-collection, taking owner details from the customer."""
    customer = customer_doc.data
    services = _services(job_doc.data)
    return DashboardJob(
        id=job_doc.id,
        vehicle_number=customer_doc.id,
        customer_name=str(customer.get("full_name") or "Unknown Customer"),
        phone_number=str(customer.get("mobile_number") or "No Phone"),
        vehicle_type=str(customer.get("vehicle_type") or DEFAULT_VEHICLE_TYPE),
        services=services,
        last_service=derive_last_service(services),
        job_datetime=job_datetime_of(job_doc.data),
    )


def camel_case(name: str) -> str:
    if name in _CAMEL_OVERRIDES:
        return _CAMEL_OVERRIDES[name]
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {camel_case(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


def to_dict(obj: Customer | Job | DashboardJob) -> dict[str, Any]:
    """camelCase mapping of a view object, ready for JSON."""
    return _jsonable(dataclasses.asdict(obj))
