from __future__ import annotations

import pytest

from yellowhut import web_app
from yellowhut.config import parse_config
from yellowhut.db import MemoryDb

from .conftest import DownDb, customer_fields


@pytest.fixture
def client():
    cfg = parse_config(
        {
            "app": {"secret_key": "test"},
            "store": {"backend": "memory"},
            "auth": {"username": "Admin", "password": "pw"},
        }
    )
    app = web_app.configure(cfg, MemoryDb())
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


def login(client):
    return client.post("/login", data={"username": "Admin", "password": "pw"})


def register(client, vehicle_number="ABC-1234", **overrides):
    return client.post("/customers/new", data={"vehicle_number": vehicle_number, **customer_fields(**overrides)})


def test_pages_require_login(client):
    resp = client.get("/dashboard")
    assert resp.status_code == 302
    assert "/login" in resp.headers["Location"]
    assert client.get("/api/jobs").status_code == 401


def test_wrong_password_is_refused(client):
    resp = client.post("/login", data={"username": "Admin", "password": "nope"})
    assert resp.status_code == 200
    assert b"Invalid username or password" in resp.data
    assert client.get("/").status_code == 302


def test_search_unknown_vehicle_redirects_to_registration(client):
    login(client)
    resp = client.post("/search", data={"vehicle_number": "abc-1234"})
    assert resp.status_code == 302
    assert "/customers/new?vehicle_number=ABC-1234" in resp.headers["Location"]


def test_register_then_search_finds_profile(client):
    login(client)
    resp = register(client, "abc-1234")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/customers/ABC-1234")

    resp = client.post("/search", data={"vehicle_number": "Abc-1234"})
    assert resp.headers["Location"].endswith("/customers/ABC-1234")

    page = client.get("/customers/ABC-1234")
    assert page.status_code == 200
    assert b"John Doe" in page.data


def test_invalid_registration_shows_field_errors(client):
    login(client)
    resp = register(client, mobile_number="771234567")
    assert resp.status_code == 400
    assert b"10 digits starting with 0" in resp.data


def test_duplicate_registration_shows_error_page(client):
    login(client)
    register(client)
    resp = register(client, full_name="Other Person")
    assert resp.status_code == 409
    assert b"already exists" in resp.data
    assert b"Return to search" in resp.data


def test_add_job_and_dashboard(client):
    login(client)
    register(client)
    resp = client.post(
        "/customers/ABC-1234/jobs/new",
        data={"services": ["Oil Change", "Filter Replace"], "cost": "3500", "technician_name": "Sunil"},
    )
    assert resp.status_code == 302

    data = client.get("/api/jobs?filter=today").get_json()
    assert data["filter"] == "today"
    assert data["total"] == 1
    assert data["jobs"][0]["lastService"] == "Oil Change"
    assert data["jobs"][0]["vehicleNumber"] == "ABC-1234"

    page = client.get("/dashboard?filter=all")
    assert page.status_code == 200
    assert b"ABC-1234" in page.data


def test_add_job_without_services(client):
    login(client)
    register(client)
    resp = client.post("/customers/ABC-1234/jobs/new", data={"cost": "10"})
    assert resp.status_code == 400
    assert b"Select at least one service" in resp.data


def test_add_job_for_unknown_customer(client):
    login(client)
    resp = client.post("/customers/NOPE-1/jobs/new", data={"services": ["Oil Change"]})
    assert resp.status_code == 404


def test_edit_customer(client):
    login(client)
    register(client)
    resp = client.post("/customers/ABC-1234/edit", data={"address": "9 Lake Rd"})
    assert resp.status_code == 302
    customer = client.get("/api/customers/abc-1234").get_json()
    assert customer["address"] == "9 Lake Rd"
    assert customer["fullName"] == "John Doe"
    assert customer["serviceHistory"] == []


def test_api_missing_customer(client):
    login(client)
    resp = client.get("/api/customers/NOPE-1")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "NotFound"


def test_login_follows_local_next(client):
    resp = client.post("/login?next=/dashboard", data={"username": "Admin", "password": "pw"})
    assert resp.headers["Location"].endswith("/dashboard")


@pytest.mark.parametrize("target", ["//evil.example.com/x", "https://evil.example.com/", "/\\evil.example.com", "dashboard"])
def test_login_ignores_offsite_next(client, target):
    resp = client.post("/login", query_string={"next": target}, data={"username": "Admin", "password": "pw"})
    assert resp.status_code == 302
    assert "evil" not in resp.headers["Location"]
    assert resp.headers["Location"].endswith("/")


def test_invalid_registration_is_reported_before_touching_the_store():
    cfg = parse_config({"app": {"secret_key": "test"}, "store": {"backend": "memory"}, "auth": {"enabled": False}})
    app = web_app.configure(cfg, DownDb())
    app.config["TESTING"] = True
    with app.test_client() as c:
        resp = register(c, mobile_number="771234567")
    assert resp.status_code == 400
    assert b"10 digits starting with 0" in resp.data


def test_missing_customer_message_uses_normalized_number(client):
    login(client)
    resp = client.get("/api/customers/%20nope-1%20")
    assert resp.status_code == 404
    assert "NOPE-1 not found" in resp.get_json()["message"]
