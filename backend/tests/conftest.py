"""
Pytest fixtures for the shop backend tests.

Provides an app per test (fresh in-memory database), the test client, a
logged-in client, and a small parts catalogue.
"""

from decimal import Decimal

import pytest

from partsdesk import create_app
from partsdesk.config import TestingConfig
from partsdesk.extensions import db
from partsdesk.services import auth_service
from partsdesk.storage import get_store


PASSWORD = "Password123!"


class MemoryTestingConfig(TestingConfig):
    STORAGE_BACKEND = "memory"


def _build_app(config_object):
    app = create_app(config_object)
    with app.app_context():
        yield app
        db.session.remove()


@pytest.fixture(scope='function')
def app():
    """SQL-backed application for testing."""
    yield from _build_app(TestingConfig)


@pytest.fixture(scope='function', params=["sql", "memory"])
def any_app(request):
    """Same test against both storage backends."""
    config = TestingConfig if request.param == "sql" else MemoryTestingConfig
    yield from _build_app(config)


@pytest.fixture(scope='function')
def store(any_app):
    return get_store()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def user(app):
    return auth_service.create_user(username="counter", password=PASSWORD)


@pytest.fixture(scope='function')
def auth_client(client, user):
    """Test client with a logged-in session cookie."""
    resp = client.post("/api/login", json={"username": "counter", "password": PASSWORD})
    assert resp.status_code == 201
    return client


def _make_product(store, **overrides):
    fields = {
        "name": "Brake Pad Set",
        "brand": "Maruti Swift",
        "code": "BP-MS-001",
        "hsn_code": "8708",
        "stock": 25,
        "purchase_price": Decimal("450.00"),
        "selling_price": Decimal("650.00"),
        "gst_rate": 28,
    }
    fields.update(overrides)
    return store.create_product(fields)


@pytest.fixture(scope='function')
def catalogue(store):
    """Three products on whichever backend `store` is."""
    return {
        "brake": _make_product(store),
        "bulb": _make_product(
            store,
            name="Headlight Bulb",
            brand="Maruti Alto",
            code="HB-MA-004",
            stock=50,
            purchase_price=Decimal("80.00"),
            selling_price=Decimal("150.00"),
            gst_rate=18,
        ),
        "wiper": _make_product(
            store,
            name="Wiper Blade",
            brand="Honda City",
            code="WB-HC-005",
            stock=3,
            purchase_price=Decimal("200.00"),
            selling_price=Decimal("350.00"),
        ),
    }


@pytest.fixture(scope='function')
def sql_catalogue(app):
    """Catalogue on the SQL app used by API tests."""
    store = get_store()
    return {
        "brake": _make_product(store),
        "bulb": _make_product(
            store,
            name="Headlight Bulb",
            brand="Maruti Alto",
            code="HB-MA-004",
            stock=50,
            purchase_price=Decimal("80.00"),
            selling_price=Decimal("150.00"),
            gst_rate=18,
        ),
    }


@pytest.fixture(scope='function')
def product_factory():
    """Create products in the store of the active app."""
    def _factory(**overrides):
        return _make_product(get_store(), **overrides)
    return _factory
