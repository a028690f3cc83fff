from __future__ import annotations

import csv
import logging
from pathlib import Path

from .errors import AlreadyExists, ValidationFailed
from .services.shop_service import CustomerInput, JobInput, ShopService
from .store import DocumentStore

logger = logging.getLogger(__name__)

CUSTOMER_COLUMNS = {
    "vehicle_number",
    "full_name",
    "mobile_number",
    "address",
    "vehicle_model",
    "nic_number",
    "birthday",
}


class ImportFailed(Exception):
    pass


def import_customers_csv(store: DocumentStore, path: str | Path, service: ShopService) -> int:
    """Register every valid row of a customers CSV.

    Rows that fail validation or whose vehicle number is already registered
    are logged and skipped. Returns the number of customers created.
    """
    p = Path(path)
    if not p.exists():
        raise ImportFailed(f"File not found: {p}")

    count = 0
    with p.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        if not CUSTOMER_COLUMNS.issubset(set(reader.fieldnames or [])):
            raise ImportFailed(f"CSV must contain columns: {sorted(CUSTOMER_COLUMNS)}")

        for line_no, row in enumerate(reader, start=2):
            data = CustomerInput(
                vehicle_number=(row.get("vehicle_number") or "").strip(),
                full_name=row.get("full_name") or "",
                mobile_number=row.get("mobile_number") or "",
                address=row.get("address") or "",
                vehicle_model=row.get("vehicle_model") or "",
                nic_number=row.get("nic_number") or "",
                birthday=row.get("birthday") or "",
                vehicle_type=(row.get("vehicle_type") or "Car").strip(),
            )
            try:
                service.register_customer(store, data)
            except ValidationFailed as e:
                logger.warning("Line %d skipped: %s", line_no, e)
                continue
            except AlreadyExists:
                logger.warning("Line %d skipped: %s already registered", line_no, data.vehicle_number.upper())
                continue
            count += 1
    return count


DEMO_CUSTOMERS = [
    (
        CustomerInput(
            vehicle_number="ABC-1234",
            full_name="John Silva",
            mobile_number="0771234567",
            address="No. 123, Galle Road, Colombo 03",
            vehicle_model="Toyota Prius",
            nic_number="199012345678",
            birthday="1990-01-15",
            vehicle_type="Car",
        ),
        JobInput(
            services=["Oil Change", "Filter Replace"],
            technician_name="Sunil Perera",
            cost=3500,
            notes="Regular maintenance service",
        ),
    ),
    (
        CustomerInput(
            vehicle_number="XYZ-5678",
            full_name="Priya Fernando",
            mobile_number="0709876543",
            address="No. 456, Kandy Road, Malabe",
            vehicle_model="Honda Civic",
            nic_number="198512345678",
            birthday="1985-05-20",
            vehicle_type="Car",
        ),
        JobInput(
            services=["Brake Check", "Tire Rotation"],
            technician_name="Kamal Jayasinghe",
            cost=2800,
            notes="Brake pads in good condition",
        ),
    ),
    (
        CustomerInput(
            vehicle_number="VAN-9012",
            full_name="Nimal Rajapaksa",
            mobile_number="0765551234",
            address="No. 789, High Level Road, Nugegoda",
            vehicle_model="Toyota HiAce",
            nic_number="851234567V",
            birthday="1985-11-02",
            vehicle_type="Van",
        ),
        JobInput(
            services=["AC Service", "Coolant Flush"],
            technician_name="Sunil Perera",
            cost=6200,
        ),
    ),
]


def seed_demo_data(store: DocumentStore, service: ShopService) -> int:
    """Register the demo customers with one job each. Existing ones are left alone."""
    created = 0
    for customer, job in DEMO_CUSTOMERS:
        try:
            service.register_customer(store, customer)
        except AlreadyExists:
            logger.info("Demo customer %s already present", customer.vehicle_number)
            continue
        service.add_job(store, customer.vehicle_number, job)
        created += 1
    return created
