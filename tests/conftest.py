"""Shared pytest fixtures for the storefront tests."""

from unittest.mock import MagicMock

import httpx
import mongomock
import pytest
from fastapi.testclient import TestClient

import database
import main
from schemas import Product
from storefront.catalog import Catalog
from storefront.client import StoreApiClient
from storefront.defaults import DEFAULT_PRODUCTS
from storefront.storage import LocalStorage

CUSTOMER_EMAIL = "priya@example.com"
OWNER_PASSWORD = "owner-pass"

CHECKOUT_FORM = {
    "customer_name": "Priya",
    "phone": "9876543210",
    "address": "12 Temple Street",
    "pincode": "607106",
    "place": "Panruti",
    "payment_method": "cod",
}


@pytest.fixture
def mongo_db(monkeypatch):
    """Swap the MongoDB database for an in-memory one."""
    db = mongomock.MongoClient()["asnuts_test"]
    monkeypatch.setattr(database, "db", db)
    return db


@pytest.fixture
def http(mongo_db):
    with TestClient(main.app) as client:
        yield client


@pytest.fixture
def owner_token(http):
    response = http.post(
        "/api/register",
        json={"name": "AS Nuts Owner", "email": main.OWNER_EMAIL, "password": OWNER_PASSWORD},
    )
    return response.json()["token"]


@pytest.fixture
def customer_token(http):
    response = http.post(
        "/api/register",
        json={"name": "Priya", "email": CUSTOMER_EMAIL, "password": "secret123"},
    )
    return response.json()["token"]


@pytest.fixture
def seeded(http):
    """Default catalog in the database."""
    http.post("/seed")


@pytest.fixture
def api(http):
    return StoreApiClient(client=http)


@pytest.fixture
def offline_api():
    """Client whose every request fails at the transport level."""
    transport = MagicMock(spec=httpx.Client)
    transport.request.side_effect = httpx.ConnectError("Connection refused")
    return StoreApiClient(client=transport)


@pytest.fixture
def captive_portal_api():
    """Client whose requests all come back as a 200 HTML page."""
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>captive portal</html>"))
    return StoreApiClient(client=httpx.Client(transport=transport, base_url="http://testserver"))


@pytest.fixture
def storage_path(tmp_path):
    return str(tmp_path / "local_storage.json")


@pytest.fixture
def storage(storage_path):
    tab = LocalStorage(storage_path)
    yield tab
    tab.close()


@pytest.fixture
def other_tab(storage_path):
    tab = LocalStorage(storage_path)
    yield tab
    tab.close()


@pytest.fixture
def default_catalog(storage):
    catalog = Catalog(api=None, storage=storage)
    catalog.products = {p["id"]: Product(**p) for p in DEFAULT_PRODUCTS}
    return catalog
