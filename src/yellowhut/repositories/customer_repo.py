from __future__ import annotations

import logging
from typing import Any

from ..domain import CUSTOMER_FIELDS, CUSTOMERS_COLLECTION, DEFAULT_VEHICLE_TYPE, Customer, normalize_vehicle_number
from ..errors import AlreadyExists, NotFound, ValidationFailed
from ..store import SERVER_TIMESTAMP, DocumentStore
from ..views import customer_from_document
from .job_repo import JobRepository

logger = logging.getLogger(__name__)


def _key(vehicle_number: str) -> str:
    vehicle_id = normalize_vehicle_number(vehicle_number or "")
    if not vehicle_id:
        raise ValidationFailed({"vehicle_number": "Vehicle number is required"})
    return vehicle_id


class CustomerRepository:
    def __init__(self, job_repo: JobRepository | None = None) -> None:
        self.job_repo = job_repo or JobRepository()

    def find_by_vehicle_number(self, store: DocumentStore, vehicle_number: str) -> Customer | None:
        vehicle_id = _key(vehicle_number)
        doc = store.get(CUSTOMERS_COLLECTION, vehicle_id)
        if doc is None:
            return None
        history = self.job_repo.list_for_customer(store, vehicle_id)
        return customer_from_document(doc, history)

    def register(self, store: DocumentStore, vehicle_number: str, fields: dict[str, Any]) -> Customer:
        vehicle_id = _key(vehicle_number)
        if store.get(CUSTOMERS_COLLECTION, vehicle_id) is not None:
            raise AlreadyExists("Customer with this vehicle number already exists")

        document = {k: fields.get(k, "") for k in CUSTOMER_FIELDS}
        document["vehicle_type"] = fields.get("vehicle_type") or DEFAULT_VEHICLE_TYPE
        document["created_at"] = SERVER_TIMESTAMP
        document["updated_at"] = SERVER_TIMESTAMP

        # insert-only, so a concurrent registration of the same key fails too
        store.create(CUSTOMERS_COLLECTION, vehicle_id, document)
        logger.info("Registered customer %s", vehicle_id)
        return customer_from_document(store.get(CUSTOMERS_COLLECTION, vehicle_id), [])

    def list_all(self, store: DocumentStore) -> list[Customer]:
        return [customer_from_document(d) for d in store.query(CUSTOMERS_COLLECTION)]

    def update(self, store: DocumentStore, vehicle_number: str, fields: dict[str, Any]) -> bool:
        vehicle_id = _key(vehicle_number)
        unknown = sorted(set(fields) - set(CUSTOMER_FIELDS))
        if unknown:
            raise ValidationFailed({k: "Field cannot be updated" for k in unknown})
        if store.get(CUSTOMERS_COLLECTION, vehicle_id) is None:
            raise NotFound(f"Customer {vehicle_id} not found")

        store.set(
            CUSTOMERS_COLLECTION,
            vehicle_id,
            {**fields, "updated_at": SERVER_TIMESTAMP},
            merge=True,
        )
        logger.info("Updated customer %s (%s)", vehicle_id, ", ".join(sorted(fields)) or "timestamp only")
        return True
