# Overview: Process-local implementation of the entity store (dev/demo fallback).

"""
In-memory store.

Records are the same mapped classes the SQL store returns, kept as transient
instances (never attached to a session), so services and serialisation are
identical across backends. Everything is lost on restart, including invoice
counters.

A single re-entrant lock serialises all access. run_atomic() holds it for the
whole checkout and keeps an undo journal so a failed checkout leaves no trace.
"""

from __future__ import annotations

import itertools
import threading
from typing import Callable, Iterable

from ..models import Invoice, Product, ShopSettings, User
from partsdesk.time_utils import utcnow
from .base import DuplicateRecordError, ShopStore


def _apply_column_defaults(obj) -> None:
    """Mimic INSERT-time column defaults for an object that is never flushed."""
    for col in obj.__table__.columns:
        if col.primary_key or col.default is None:
            continue
        if getattr(obj, col.key) is not None:
            continue
        default = col.default
        if default.is_scalar:
            setattr(obj, col.key, default.arg)
        elif default.is_callable:
            setattr(obj, col.key, default.arg(None))


class MemoryStore(ShopStore):
    backend_name = "memory"

    def __init__(self):
        self._lock = threading.RLock()
        self._users: dict[int, User] = {}
        self._products: dict[int, Product] = {}
        self._invoices: dict[int, Invoice] = {}
        self._sequences: dict[str, int] = {}
        self._settings: ShopSettings | None = None
        self._user_ids = itertools.count(1)
        self._product_ids = itertools.count(1)
        self._invoice_ids = itertools.count(1)
        self._undo: list[Callable[[], None]] | None = None

    def _journal(self, undo: Callable[[], None]) -> None:
        if self._undo is not None:
            self._undo.append(undo)

    # -- users -------------------------------------------------------------

    def get_user(self, user_id: int) -> User | None:
        with self._lock:
            return self._users.get(user_id)

    def get_user_by_username(self, username: str) -> User | None:
        with self._lock:
            return next((u for u in self._users.values() if u.username == username), None)

    def create_user(self, *, username: str, password_hash: str) -> User:
        with self._lock:
            if self.get_user_by_username(username):
                raise DuplicateRecordError("username", username)
            user = User(id=next(self._user_ids), username=username, password_hash=password_hash)
            _apply_column_defaults(user)
            self._users[user.id] = user
            return user

    def list_users(self) -> list[User]:
        with self._lock:
            return sorted(self._users.values(), key=lambda u: u.username)

    # -- products ----------------------------------------------------------

    def list_products(self) -> list[Product]:
        with self._lock:
            return sorted(self._products.values(), key=lambda p: (p.name, p.id))

    def get_product(self, product_id: int) -> Product | None:
        with self._lock:
            return self._products.get(product_id)

    def _code_taken(self, code: str, exclude_id: int | None = None) -> bool:
        return any(p.code == code and p.id != exclude_id for p in self._products.values())

    def create_product(self, fields: dict) -> Product:
        with self._lock:
            code = fields.get("code")
            if self._code_taken(code):
                raise DuplicateRecordError("code", code)
            p = Product(id=next(self._product_ids), **fields)
            _apply_column_defaults(p)
            self._products[p.id] = p
            return p

    def update_product(self, product_id: int, fields: dict) -> Product | None:
        with self._lock:
            p = self._products.get(product_id)
            if not p:
                return None
            if "code" in fields and self._code_taken(fields["code"], p.id):
                raise DuplicateRecordError("code", fields["code"])
            for k, v in fields.items():
                setattr(p, k, v)
            p.updated_at = utcnow()
            return p

    def delete_product(self, product_id: int) -> bool:
        with self._lock:
            return self._products.pop(product_id, None) is not None

    # -- invoices ----------------------------------------------------------

    def list_invoices(self) -> list[Invoice]:
        with self._lock:
            return sorted(self._invoices.values(), key=lambda i: (i.created_at, i.id), reverse=True)

    def get_invoice(self, invoice_id: int) -> Invoice | None:
        with self._lock:
            return self._invoices.get(invoice_id)

    # -- settings ----------------------------------------------------------

    def get_settings(self) -> ShopSettings:
        with self._lock:
            if self._settings is None:
                self._settings = ShopSettings.with_defaults()
            return self._settings

    def update_settings(self, fields: dict) -> ShopSettings:
        with self._lock:
            settings = self.get_settings()
            for k, v in fields.items():
                setattr(settings, k, v)
            settings.updated_at = utcnow()
            return settings

    # -- checkout transaction ----------------------------------------------

    def run_atomic(self, func):
        with self._lock:
            self._undo = []
            try:
                return func()
            except Exception:
                for undo in reversed(self._undo):
                    undo()
                raise
            finally:
                self._undo = None

    def lock_products(self, product_ids: Iterable[int]) -> dict[int, Product]:
        with self._lock:
            return {pid: self._products[pid] for pid in set(product_ids) if pid in self._products}

    def allocate_invoice_sequence(self, scope: str) -> int:
        with self._lock:
            had_scope = scope in self._sequences
            current = self._sequences.get(scope, 1)
            self._sequences[scope] = current + 1

            def _undo():
                if had_scope:
                    self._sequences[scope] = current
                else:
                    self._sequences.pop(scope, None)

            self._journal(_undo)
            return current

    def add_invoice(self, fields: dict) -> Invoice:
        with self._lock:
            number = fields.get("invoice_number")
            if any(i.invoice_number == number for i in self._invoices.values()):
                raise DuplicateRecordError("invoiceNumber", number)
            invoice = Invoice(id=next(self._invoice_ids), **fields)
            _apply_column_defaults(invoice)
            self._invoices[invoice.id] = invoice
            self._journal(lambda: self._invoices.pop(invoice.id, None))
            return invoice

    def decrement_stock(self, product_id: int, quantity: int) -> bool:
        with self._lock:
            p = self._products.get(product_id)
            if p is None or p.stock < quantity:
                return False
            previous = p.stock
            p.stock = previous - quantity
            p.updated_at = utcnow()

            def _undo():
                p.stock = previous

            self._journal(_undo)
            return True
