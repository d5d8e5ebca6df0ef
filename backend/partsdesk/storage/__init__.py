"""
Entity store selection.

The backend is chosen once, at startup, from STORAGE_BACKEND; everything
else asks get_store() for the instance bound to the current app.
"""
from __future__ import annotations

from flask import Flask, current_app
from sqlalchemy.exc import SQLAlchemyError

from .base import DuplicateRecordError, NotFoundError, ShopStore
from .memory import MemoryStore
from .sql import SqlAlchemyStore

EXTENSION_KEY = "partsdesk.store"

BACKENDS = {
    "sql": SqlAlchemyStore,
    "memory": MemoryStore,
}


def init_store(app: Flask) -> ShopStore:
    backend = (app.config.get("STORAGE_BACKEND") or "sql").lower()
    if backend not in BACKENDS:
        raise RuntimeError(f"Unknown STORAGE_BACKEND {backend!r}; expected one of {sorted(BACKENDS)}")

    store = BACKENDS[backend]()
    try:
        store.init_app(app)
    except SQLAlchemyError:
        if backend != "sql" or not app.config.get("STORAGE_FALLBACK_TO_MEMORY"):
            raise
        app.logger.exception("Database unavailable; falling back to in-memory storage")
        store = MemoryStore()
        store.init_app(app)

    app.extensions[EXTENSION_KEY] = store
    app.logger.info("Using %s storage", store.backend_name)
    return store


def get_store() -> ShopStore:
    return current_app.extensions[EXTENSION_KEY]


__all__ = [
    "DuplicateRecordError",
    "MemoryStore",
    "NotFoundError",
    "ShopStore",
    "SqlAlchemyStore",
    "get_store",
    "init_store",
]
