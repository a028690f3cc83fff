from __future__ import annotations

import pytest

from yellowhut.domain import JOBS_COLLECTION
from yellowhut.importers import DEMO_CUSTOMERS, ImportFailed, import_customers_csv, seed_demo_data

HEADER = "vehicle_number,full_name,mobile_number,address,vehicle_model,nic_number,birthday,vehicle_type\n"


def test_import_skips_invalid_and_duplicate_rows(tmp_path, store, service):
    path = tmp_path / "customers.csv"
    path.write_text(
        HEADER
        + "abc-1234,John Doe,0771234567,1 Main St,Corolla,871234567V,1987-05-15,Car\n"
        + "xyz-5678,Bad Phone,771234567,2 Main St,Civic,871234567V,1987-05-15,Car\n"
        + "ABC-1234,Duplicate,0771234567,3 Main St,Axio,871234567V,1987-05-15,Car\n"
        + "van-1,Van Owner,0711111111,4 Main St,HiAce,199012345678,1990-01-15,Van\n",
        encoding="utf-8",
    )

    assert import_customers_csv(store, path, service) == 2
    assert {c.vehicle_number for c in service.list_customers(store)} == {"ABC-1234", "VAN-1"}


def test_import_requires_columns(tmp_path, store, service):
    path = tmp_path / "customers.csv"
    path.write_text("vehicle_number,full_name\nABC-1,John\n", encoding="utf-8")
    with pytest.raises(ImportFailed, match="columns"):
        import_customers_csv(store, path, service)


def test_import_missing_file(tmp_path, store, service):
    with pytest.raises(ImportFailed, match="not found"):
        import_customers_csv(store, tmp_path / "nope.csv", service)


def test_seed_is_idempotent(store, service):
    assert seed_demo_data(store, service) == len(DEMO_CUSTOMERS)
    assert seed_demo_data(store, service) == 0
    assert len(store.query(JOBS_COLLECTION)) == len(DEMO_CUSTOMERS)
