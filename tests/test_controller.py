from __future__ import annotations

import pytest

from yellowhut.controller import ShopController
from yellowhut.router import Screen
from yellowhut.services.shop_service import JobInput

from .conftest import DownDb, customer_input


@pytest.fixture
def ctl(db, service):
    return ShopController(db, service)


def test_unknown_vehicle_goes_to_registration_then_profile(ctl):
    assert ctl.on_search("abc-1234") is Screen.REGISTRATION
    assert ctl.search_vehicle_number == "ABC-1234"

    assert ctl.on_register(customer_input(ctl.search_vehicle_number)) is Screen.CUSTOMER_PROFILE
    assert ctl.customer.vehicle_number == "ABC-1234"
    assert ctl.customer.service_history == []


def test_invalid_registration_stays_with_field_errors(ctl):
    ctl.on_search("ABC-1234")
    assert ctl.on_register(customer_input(nic_number="12345")) is Screen.REGISTRATION
    assert "nic_number" in ctl.field_errors


def test_cancel_registration_returns_to_search(ctl):
    ctl.on_search("ABC-1234")
    assert ctl.on_cancel() is Screen.SEARCH


def test_add_job_refreshes_profile(ctl):
    ctl.on_search("ABC-1234")
    ctl.on_register(customer_input())
    assert ctl.on_add_job() is Screen.ADD_JOB

    assert ctl.on_save_job(JobInput(services=["Oil Change", "Filter Replace"])) is Screen.CUSTOMER_PROFILE
    assert len(ctl.customer.service_history) == 1
    assert ctl.customer.service_history[0].last_service == "Oil Change"


def test_empty_job_stays_on_add_job(ctl):
    ctl.on_search("ABC-1234")
    ctl.on_register(customer_input())
    ctl.on_add_job()
    assert ctl.on_save_job(JobInput(services=[])) is Screen.ADD_JOB
    assert "services" in ctl.field_errors
    assert ctl.on_back() is Screen.CUSTOMER_PROFILE


def test_existing_customer_found(ctl):
    ctl.on_search("ABC-1234")
    ctl.on_register(customer_input())
    ctl.on_back()
    assert ctl.on_search("abc-1234") is Screen.CUSTOMER_PROFILE


def test_dashboard_select_and_filter(ctl):
    ctl.on_search("ABC-1234")
    ctl.on_register(customer_input())
    ctl.on_add_job()
    ctl.on_save_job(JobInput(services=["Oil Change"]))
    ctl.on_back()

    assert ctl.on_open_dashboard() is Screen.DASHBOARD
    assert [j.vehicle_number for j in ctl.dashboard.jobs] == ["ABC-1234"]

    ctl.on_filter("vans")
    assert ctl.filter_key == "vans"
    assert ctl.dashboard.jobs == []

    assert ctl.on_select_customer("ABC-1234") is Screen.CUSTOMER_PROFILE
    assert ctl.customer.full_name == "John Doe"


def test_selecting_missing_customer_shows_error(ctl):
    ctl.on_open_dashboard()
    assert ctl.on_select_customer("GONE-1") is Screen.ERROR
    assert "GONE-1" in ctl.error
    assert ctl.on_recover() is Screen.SEARCH
    assert ctl.error is None


def test_store_failure_moves_to_error_screen(service):
    ctl = ShopController(DownDb(), service)
    assert ctl.on_search("ABC-1234") is Screen.ERROR
    assert ctl.error == "Cannot connect to database."
    assert ctl.on_recover() is Screen.SEARCH


def test_invalid_registration_reports_fields_even_when_store_is_down(service):
    ctl = ShopController(DownDb(), service)
    ctl.screen = Screen.REGISTRATION
    assert ctl.on_register(customer_input(mobile_number="123")) is Screen.REGISTRATION
    assert "mobile_number" in ctl.field_errors
    assert ctl.error is None


def test_invalid_job_reports_fields_even_when_store_is_down(ctl, service):
    ctl.on_search("ABC-1234")
    ctl.on_register(customer_input())
    ctl.on_add_job()
    ctl.db = DownDb()
    assert ctl.on_save_job(JobInput(services=["Oil Change"], cost="nan")) is Screen.ADD_JOB
    assert "cost" in ctl.field_errors
