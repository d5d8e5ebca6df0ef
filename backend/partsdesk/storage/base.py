# Overview: Storage interface shared by the SQL and in-memory backends.

"""
Entity store contract.

Services never branch on the backend; they receive a ShopStore and call it.

Two kinds of operations:
- CRUD calls (create/update/delete/...) are self-committing.
- Checkout primitives (lock_products, allocate_invoice_sequence, add_invoice,
  decrement_stock) must only be called from inside run_atomic(); they do not
  commit on their own and are rolled back together if the callable raises.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Iterable, TypeVar

from ..models import Invoice, Product, ShopSettings, User

T = TypeVar("T")


class NotFoundError(LookupError):
    """404-level: referenced record does not exist."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DuplicateRecordError(ValueError):
    """A unique constraint (e.g. products.code) would be violated."""

    def __init__(self, field: str, value):
        super().__init__(f"{field} '{value}' already exists")
        self.field = field
        self.value = value


class ShopStore(ABC):
    backend_name: str = "abstract"

    # -- lifecycle ---------------------------------------------------------

    def init_app(self, app) -> None:
        """Hook called once by the application factory."""

    # -- users -------------------------------------------------------------

    @abstractmethod
    def get_user(self, user_id: int) -> User | None: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> User | None: ...

    @abstractmethod
    def create_user(self, *, username: str, password_hash: str) -> User: ...

    @abstractmethod
    def list_users(self) -> list[User]: ...

    # -- products ----------------------------------------------------------

    @abstractmethod
    def list_products(self) -> list[Product]: ...

    @abstractmethod
    def get_product(self, product_id: int) -> Product | None: ...

    @abstractmethod
    def create_product(self, fields: dict) -> Product: ...

    @abstractmethod
    def update_product(self, product_id: int, fields: dict) -> Product | None:
        """Apply a validated patch; None if the product does not exist."""

    @abstractmethod
    def delete_product(self, product_id: int) -> bool: ...

    # -- invoices ----------------------------------------------------------

    @abstractmethod
    def list_invoices(self) -> list[Invoice]:
        """Newest first."""

    @abstractmethod
    def get_invoice(self, invoice_id: int) -> Invoice | None: ...

    # -- settings ----------------------------------------------------------

    @abstractmethod
    def get_settings(self) -> ShopSettings:
        """Return the singleton, creating it with defaults on first access."""

    @abstractmethod
    def update_settings(self, fields: dict) -> ShopSettings: ...

    # -- checkout transaction ----------------------------------------------

    @abstractmethod
    def run_atomic(self, func: Callable[[], T]) -> T:
        """
        Run func as one all-or-nothing unit. Commits when func returns,
        rolls back every write made through the checkout primitives when it
        raises, and re-raises.
        """

    @abstractmethod
    def lock_products(self, product_ids: Iterable[int]) -> dict[int, Product]:
        """Authoritative read of products, locked until the unit finishes."""

    @abstractmethod
    def allocate_invoice_sequence(self, scope: str) -> int:
        """Atomically return the next number for scope and advance it."""

    @abstractmethod
    def add_invoice(self, fields: dict) -> Invoice: ...

    @abstractmethod
    def decrement_stock(self, product_id: int, quantity: int) -> bool:
        """
        Compare-and-swap: stock -= quantity only if stock >= quantity.
        Returns False (and changes nothing) otherwise.
        """
