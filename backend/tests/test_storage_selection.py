import pytest
from sqlalchemy.exc import SQLAlchemyError

from partsdesk import create_app
from partsdesk.config import TestingConfig
from partsdesk.storage import get_store


def _unreachable_config(tmp_path, fallback):
    class UnreachableDatabaseConfig(TestingConfig):
        # Parent directory does not exist, so SQLite cannot open the file
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'missing' / 'shop.sqlite3'}"
        STORAGE_FALLBACK_TO_MEMORY = fallback
        SEED_DEFAULT_PRODUCTS = True

    return UnreachableDatabaseConfig


def test_unreachable_database_falls_back_to_memory(tmp_path):
    app = create_app(_unreachable_config(tmp_path, fallback=True))

    with app.app_context():
        store = get_store()
        assert store.backend_name == "memory"
        assert len(store.list_products()) == 5

    resp = app.test_client().get("/api/health")
    assert resp.get_json()["checks"]["storage"]["backend"] == "memory"


def test_unreachable_database_without_fallback_fails_startup(tmp_path):
    with pytest.raises(SQLAlchemyError):
        create_app(_unreachable_config(tmp_path, fallback=False))


def test_unknown_backend_name():
    class BadBackendConfig(TestingConfig):
        STORAGE_BACKEND = "redis"

    with pytest.raises(RuntimeError):
        create_app(BadBackendConfig)
