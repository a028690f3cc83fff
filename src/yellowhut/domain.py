from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional

VehicleType = Literal["Car", "Van", "SUV", "Pickup", "Motorcycle"]
VEHICLE_TYPES: tuple[str, ...] = ("Car", "Van", "SUV", "Pickup", "Motorcycle")
DEFAULT_VEHICLE_TYPE = "Car"

DEFAULT_JOB_STATUS = "Completed"
DEFAULT_SERVICE_LABEL = "Service"
DEFAULT_TECHNICIAN = "Not specified"

SERVICE_CATALOG: tuple[str, ...] = (
    "Oil Change",
    "Filter Replace",
    "Tire Rotation",
    "Brake Check",
    "Engine Tune-up",
    "Battery Check",
    "Air Filter Change",
    "Spark Plug Replace",
    "Transmission Service",
    "Coolant Flush",
    "Power Steering Service",
    "Wheel Alignment",
    "Suspension Check",
    "AC Service",
    "Exhaust System Check",
)

CUSTOMERS_COLLECTION = "customers"
JOBS_COLLECTION = "jobs"

# fields a caller may write on a customer document
CUSTOMER_FIELDS = (
    "full_name",
    "mobile_number",
    "address",
    "vehicle_model",
    "nic_number",
    "birthday",
    "vehicle_type",
)


def normalize_vehicle_number(vehicle_number: str) -> str:
    return vehicle_number.strip().upper()


def customer_jobs_collection(vehicle_number: str) -> str:
    return f"{CUSTOMERS_COLLECTION}/{normalize_vehicle_number(vehicle_number)}/{JOBS_COLLECTION}"


def derive_last_service(services: list[str]) -> str:
    return services[0] if services else DEFAULT_SERVICE_LABEL


@dataclass(frozen=True)
class Job:
    id: str
    vehicle_number: str
    services: list[str]
    last_service: str
    job_datetime: datetime
    technician_name: str
    cost: float
    status: str
    notes: str
    created_at: Optional[datetime]


@dataclass(frozen=True)
class DashboardJob:
    id: str
    vehicle_number: str
    customer_name: str
    phone_number: str
    vehicle_type: str
    services: list[str]
    last_service: str
    job_datetime: datetime


@dataclass(frozen=True)
class Customer:
    vehicle_number: str
    full_name: str
    mobile_number: str
    address: str
    vehicle_model: str
    nic_number: str
    birthday: str
    vehicle_type: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    service_history: list[Job] = field(default_factory=list)
