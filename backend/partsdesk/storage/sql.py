# Overview: Flask-SQLAlchemy implementation of the entity store.

from __future__ import annotations

from typing import Iterable

from sqlalchemy import text, update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Invoice, InvoiceSequence, Product, ShopSettings, User
from ..models.settings import SETTINGS_ROW_ID
from ..services.concurrency import begin_write_transaction, lock_for_update, run_with_retry
from ..validation import MAX_ROW_ID
from .base import DuplicateRecordError, ShopStore


def _get(model, row_id):
    # Ids beyond INTEGER range cannot exist and overflow the driver
    if row_id is None or row_id > MAX_ROW_ID:
        return None
    return db.session.get(model, row_id)


class SqlAlchemyStore(ShopStore):
    """Durable store over the relational tables (SQLite by default)."""

    backend_name = "sql"

    def init_app(self, app) -> None:
        with app.app_context():
            if app.config.get("CREATE_TABLES_ON_STARTUP"):
                db.create_all()
            # Fail fast if the database is unreachable
            db.session.execute(text("SELECT 1"))
            db.session.remove()

    # -- users -------------------------------------------------------------

    def get_user(self, user_id: int) -> User | None:
        return _get(User, user_id)

    def get_user_by_username(self, username: str) -> User | None:
        return db.session.query(User).filter_by(username=username).first()

    def create_user(self, *, username: str, password_hash: str) -> User:
        if self.get_user_by_username(username):
            raise DuplicateRecordError("username", username)
        user = User(username=username, password_hash=password_hash)
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise DuplicateRecordError("username", username)
        return user

    def list_users(self) -> list[User]:
        return db.session.query(User).order_by(User.username.asc()).all()

    # -- products ----------------------------------------------------------

    def list_products(self) -> list[Product]:
        return db.session.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()

    def get_product(self, product_id: int) -> Product | None:
        return _get(Product, product_id)

    def _code_taken(self, code: str, exclude_id: int | None = None) -> bool:
        q = db.session.query(Product.id).filter(Product.code == code)
        if exclude_id is not None:
            q = q.filter(Product.id != exclude_id)
        return q.first() is not None

    def create_product(self, fields: dict) -> Product:
        code = fields.get("code")
        if self._code_taken(code):
            raise DuplicateRecordError("code", code)

        p = Product(**fields)
        db.session.add(p)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise DuplicateRecordError("code", code)
        return p

    def update_product(self, product_id: int, fields: dict) -> Product | None:
        p = _get(Product, product_id)
        if not p:
            return None

        if "code" in fields and fields["code"] != p.code and self._code_taken(fields["code"], p.id):
            raise DuplicateRecordError("code", fields["code"])

        for k, v in fields.items():
            setattr(p, k, v)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise DuplicateRecordError("code", fields.get("code", p.code))
        return p

    def delete_product(self, product_id: int) -> bool:
        p = _get(Product, product_id)
        if not p:
            return False
        db.session.delete(p)
        db.session.commit()
        return True

    # -- invoices ----------------------------------------------------------

    def list_invoices(self) -> list[Invoice]:
        return (
            db.session.query(Invoice)
            .order_by(Invoice.created_at.desc(), Invoice.id.desc())
            .all()
        )

    def get_invoice(self, invoice_id: int) -> Invoice | None:
        return _get(Invoice, invoice_id)

    # -- settings ----------------------------------------------------------

    def get_settings(self) -> ShopSettings:
        settings = db.session.get(ShopSettings, SETTINGS_ROW_ID)
        if settings is not None:
            return settings

        settings = ShopSettings.with_defaults()
        db.session.add(settings)
        try:
            db.session.commit()
        except IntegrityError:
            # Another request created the row first
            db.session.rollback()
            settings = db.session.get(ShopSettings, SETTINGS_ROW_ID)
        return settings

    def update_settings(self, fields: dict) -> ShopSettings:
        settings = self.get_settings()
        for k, v in fields.items():
            setattr(settings, k, v)
        db.session.commit()
        return settings

    # -- checkout transaction ----------------------------------------------

    def run_atomic(self, func):
        def _op():
            begin_write_transaction()
            try:
                result = func()
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise
            return result

        return run_with_retry(_op)

    def lock_products(self, product_ids: Iterable[int]) -> dict[int, Product]:
        ids = sorted(set(product_ids))
        if not ids:
            return {}
        q = db.session.query(Product).filter(Product.id.in_(ids)).order_by(Product.id.asc())
        # Reload rows already in the identity map; stock may have moved
        products = lock_for_update(q.populate_existing()).all()
        return {p.id: p for p in products}

    def allocate_invoice_sequence(self, scope: str) -> int:
        stmt = (
            update(InvoiceSequence)
            .where(InvoiceSequence.scope == scope)
            .values(next_number=InvoiceSequence.next_number + 1)
            .execution_options(synchronize_session=False)
        )

        result = db.session.execute(stmt)
        if result.rowcount:
            return self._current_sequence(scope) - 1

        try:
            with db.session.begin_nested():
                db.session.add(InvoiceSequence(scope=scope, next_number=2))
            return 1
        except IntegrityError:
            # Lost the race to create the scope row; it exists now
            result = db.session.execute(stmt)
            if not result.rowcount:
                raise
            return self._current_sequence(scope) - 1

    def _current_sequence(self, scope: str) -> int:
        return (
            db.session.query(InvoiceSequence.next_number)
            .filter_by(scope=scope)
            .scalar()
        )

    def add_invoice(self, fields: dict) -> Invoice:
        invoice = Invoice(**fields)
        db.session.add(invoice)
        try:
            db.session.flush()
        except IntegrityError:
            raise DuplicateRecordError("invoiceNumber", fields.get("invoice_number"))
        return invoice

    def decrement_stock(self, product_id: int, quantity: int) -> bool:
        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        result = db.session.execute(stmt)
        if result.rowcount != 1:
            return False

        # Loaded instances still carry the pre-update stock
        product = _get(Product, product_id)
        if product is not None:
            db.session.expire(product, ["stock", "updated_at"])
        return True
