# backend/partsdesk/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/partsdesk.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///partsdesk.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "sql" (Flask-SQLAlchemy) or "memory" (process-local, lost on restart)
    STORAGE_BACKEND = os.environ.get("STORAGE_BACKEND", "sql")
    STORAGE_FALLBACK_TO_MEMORY = _env_bool("STORAGE_FALLBACK_TO_MEMORY", False)
    CREATE_TABLES_ON_STARTUP = _env_bool("CREATE_TABLES_ON_STARTUP", False)
    SEED_DEFAULT_PRODUCTS = _env_bool("SEED_DEFAULT_PRODUCTS", True)

    # INV-2025-0001
    INVOICE_NUMBER_PREFIX = os.environ.get("INVOICE_NUMBER_PREFIX", "INV")
    INVOICE_NUMBER_PAD = int(os.environ.get("INVOICE_NUMBER_PAD", "4"))
    INVOICE_NUMBER_RESET_YEARLY = _env_bool("INVOICE_NUMBER_RESET_YEARLY", True)

    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "10"))

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    CORS_ALLOWED_ORIGINS = {
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:5000",
        "http://127.0.0.1:5000",
    }


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    STORAGE_BACKEND = "sql"
    STORAGE_FALLBACK_TO_MEMORY = False
    CREATE_TABLES_ON_STARTUP = True
    SEED_DEFAULT_PRODUCTS = False
    INVOICE_NUMBER_RESET_YEARLY = True
    # bcrypt minimum; keeps the suite fast
    BCRYPT_ROUNDS = 4
    LOG_LEVEL = "WARNING"
