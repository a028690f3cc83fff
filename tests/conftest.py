from __future__ import annotations

from contextlib import contextmanager

import pytest

from yellowhut.db import MemoryDb
from yellowhut.errors import StoreUnavailable
from yellowhut.repositories.customer_repo import CustomerRepository
from yellowhut.repositories.job_repo import JobRepository
from yellowhut.services.shop_service import CustomerInput, ShopService


@pytest.fixture
def db():
    return MemoryDb()


@pytest.fixture
def store(db):
    with db.session() as s:
        yield s


@pytest.fixture
def job_repo():
    return JobRepository()


@pytest.fixture
def customer_repo(job_repo):
    return CustomerRepository(job_repo)


@pytest.fixture
def service(customer_repo, job_repo):
    return ShopService(customer_repo=customer_repo, job_repo=job_repo)


def customer_fields(**overrides) -> dict:
    fields = {
        "full_name": "John Doe",
        "mobile_number": "0771234567",
        "address": "123 Main St, Colombo",
        "vehicle_model": "Toyota Corolla",
        "nic_number": "871234567V",
        "birthday": "1987-05-15",
        "vehicle_type": "Car",
    }
    fields.update(overrides)
    return fields


def customer_input(vehicle_number: str = "ABC-1234", **overrides) -> CustomerInput:
    return CustomerInput(vehicle_number=vehicle_number, **customer_fields(**overrides))


class DownDb:
    """Backend whose every connection attempt fails."""

    @contextmanager
    def session(self):
        raise StoreUnavailable("Cannot connect to database.")
        yield

    transaction = session
