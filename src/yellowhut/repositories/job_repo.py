from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ..domain import (
    CUSTOMERS_COLLECTION,
    DEFAULT_JOB_STATUS,
    DEFAULT_TECHNICIAN,
    DEFAULT_VEHICLE_TYPE,
    JOBS_COLLECTION,
    DashboardJob,
    Job,
    customer_jobs_collection,
    derive_last_service,
    normalize_vehicle_number,
)
from ..errors import NotFound
from ..store import SERVER_TIMESTAMP, DocumentStore, encode_value, new_document_id, utcnow
from ..views import dashboard_job_from_customer, dashboard_job_from_document, job_from_document

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobAggregate:
    """Result of a cross-customer read.

    ``source`` is ``"jobs"`` when the global collection was used and
    ``"customers"`` when it was rebuilt from per-customer histories.
    ``skipped`` counts customers whose history could not be read.
    """

    jobs: list[DashboardJob] = field(default_factory=list)
    skipped: int = 0
    source: str = "jobs"


def sort_newest_first(jobs: list) -> list:
    return sorted(jobs, key=lambda j: j.job_datetime, reverse=True)


class JobRepository:
    def add_job(self, store: DocumentStore, vehicle_number: str, fields: dict[str, Any]) -> Job:
        """Record a job under the global collection and the customer's history.

        The two writes share one document id. They are only atomic when
        ``store`` comes from ``Db.transaction()``.
        """
        vehicle_id = normalize_vehicle_number(vehicle_number)
        customer = store.get(CUSTOMERS_COLLECTION, vehicle_id) if vehicle_id else None
        if customer is None:
            raise NotFound("Customer not found. Please register the customer first.")

        services = [str(s) for s in (fields.get("services") or [])]
        document = {
            "vehicle_number": vehicle_id,
            "customer_name": customer.data.get("full_name", ""),
            "phone_number": customer.data.get("mobile_number", ""),
            "vehicle_type": customer.data.get("vehicle_type") or DEFAULT_VEHICLE_TYPE,
            "services": services,
            "last_service": derive_last_service(services),
            "job_datetime": fields.get("job_datetime") or SERVER_TIMESTAMP,
            "created_at": SERVER_TIMESTAMP,
            "technician_name": fields.get("technician_name") or DEFAULT_TECHNICIAN,
            "cost": fields.get("cost") or 0,
            "status": fields.get("status") or DEFAULT_JOB_STATUS,
            "notes": fields.get("notes") or "",
        }

        # resolve timestamps once so both copies are identical
        document = encode_value(document, utcnow())
        doc_id = new_document_id()
        store.create(JOBS_COLLECTION, doc_id, document)
        store.create(customer_jobs_collection(vehicle_id), doc_id, document)
        logger.info("Job %s added for %s (%d services)", doc_id, vehicle_id, len(services))

        saved = store.get(JOBS_COLLECTION, doc_id)
        return job_from_document(saved, vehicle_id)

    def list_for_customer(self, store: DocumentStore, vehicle_number: str) -> list[Job]:
        vehicle_id = normalize_vehicle_number(vehicle_number)
        docs = store.query(customer_jobs_collection(vehicle_id), order_by="job_datetime", descending=True)
        # re-sort after parsing, stored dates may be missing or malformed
        return sort_newest_first([job_from_document(d, vehicle_id) for d in docs])

    def list_all(self, store: DocumentStore) -> JobAggregate:
        """All jobs with owner details, newest first. Never raises."""
        try:
            docs = store.query(JOBS_COLLECTION, order_by="job_datetime", descending=True)
        except Exception as e:
            logger.warning("Global jobs collection unreadable, rebuilding from customers: %s", e)
            docs = []

        if docs:
            return JobAggregate(
                jobs=sort_newest_first([dashboard_job_from_document(d) for d in docs]),
                source="jobs",
            )
        return self._list_from_customers(store)

    def _list_from_customers(self, store: DocumentStore) -> JobAggregate:
        try:
            customers = store.query(CUSTOMERS_COLLECTION)
        except Exception as e:
            logger.error("Cannot list customers for job aggregation: %s", e)
            return JobAggregate(source="customers")

        jobs: list[DashboardJob] = []
        skipped = 0
        for customer in customers:
            try:
                job_docs = store.query(customer_jobs_collection(customer.id))
                jobs.extend(dashboard_job_from_customer(j, customer) for j in job_docs)
            except Exception as e:
                skipped += 1
                logger.warning("Skipping jobs of customer %s: %s", customer.id, e)

        if skipped:
            logger.warning("Job aggregation skipped %d of %d customers", skipped, len(customers))
        return JobAggregate(jobs=sort_newest_first(jobs), skipped=skipped, source="customers")
