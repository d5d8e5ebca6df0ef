# backend/partsdesk/services/products_service.py
"""
Products Service

Thin layer over the entity store: payload validation, code uniqueness
translated into a field error, and the default catalogue used to seed an
empty shop.
"""
from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..models import Product
from ..models.inventory import DEFAULT_HSN_CODE
from ..storage import DuplicateRecordError, NotFoundError, ShopStore, get_store
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)
from .search_service import filter_products

PRODUCT_POLICY = ModelValidationPolicy(
    fields={
        "name": "name",
        "brand": "brand",
        "code": "code",
        "hsnCode": "hsn_code",
        "stock": "stock",
        "purchasePrice": "purchase_price",
        "sellingPrice": "selling_price",
        "gstRate": "gst_rate",
        "maxDiscount": "max_discount",
    },
    required_on_create=frozenset({"name", "brand", "code", "purchasePrice", "sellingPrice"}),
)

DEFAULT_PRODUCTS = [
    {"name": "Brake Pad Set", "brand": "Maruti Swift", "code": "BP-MS-001", "stock": 25,
     "purchase_price": Decimal("450"), "selling_price": Decimal("650"), "gst_rate": 28},
    {"name": "Air Filter", "brand": "Hyundai i20", "code": "AF-HI-002", "stock": 15,
     "purchase_price": Decimal("250"), "selling_price": Decimal("400"), "gst_rate": 28},
    {"name": "Oil Filter", "brand": "Tata Nexon", "code": "OF-TN-003", "stock": 30,
     "purchase_price": Decimal("180"), "selling_price": Decimal("300"), "gst_rate": 28},
    {"name": "Headlight Bulb", "brand": "Maruti Alto", "code": "HB-MA-004", "stock": 50,
     "purchase_price": Decimal("80"), "selling_price": Decimal("150"), "gst_rate": 18},
    {"name": "Wiper Blade", "brand": "Honda City", "code": "WB-HC-005", "stock": 20,
     "purchase_price": Decimal("200"), "selling_price": Decimal("350"), "gst_rate": 28},
]


def list_products(search: str | None = None, store: ShopStore | None = None) -> list[Product]:
    store = store or get_store()
    return filter_products(store.list_products(), search)


def get_product(product_id: int, store: ShopStore | None = None) -> Product:
    store = store or get_store()
    p = store.get_product(product_id)
    if p is None:
        raise NotFoundError("Product not found")
    return p


def create_product(payload, store: ShopStore | None = None) -> Product:
    """
    Create a product from an API payload.

    Raises:
        ValidationError: bad/missing field, or code already in use
    """
    store = store or get_store()
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    if patch.get("hsn_code") is None:
        patch["hsn_code"] = DEFAULT_HSN_CODE

    try:
        p = store.create_product(patch)
    except DuplicateRecordError as e:
        raise ValidationError(f"Product code '{e.value}' already exists", "code")

    current_app.logger.info("Created product %s (%s)", p.code, p.name)
    return p


def update_product(product_id: int, payload, store: ShopStore | None = None) -> Product:
    """
    Apply a partial update.

    Raises:
        ValidationError: bad field, or new code already in use
        NotFoundError: no such product
    """
    store = store or get_store()
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)
    if "hsn_code" in patch and patch["hsn_code"] is None:
        patch["hsn_code"] = DEFAULT_HSN_CODE

    try:
        p = store.update_product(product_id, patch)
    except DuplicateRecordError as e:
        raise ValidationError(f"Product code '{e.value}' already exists", "code")

    if p is None:
        raise NotFoundError("Product not found")
    return p


def delete_product(product_id: int, store: ShopStore | None = None) -> None:
    store = store or get_store()
    if not store.delete_product(product_id):
        raise NotFoundError("Product not found")
    current_app.logger.info("Deleted product id=%s", product_id)


def seed_default_products(store: ShopStore | None = None) -> int:
    """Insert the sample catalogue when the shop has no products yet."""
    store = store or get_store()
    if store.list_products():
        return 0

    created = 0
    for row in DEFAULT_PRODUCTS:
        try:
            store.create_product({**row, "hsn_code": DEFAULT_HSN_CODE})
            created += 1
        except DuplicateRecordError:
            continue
    return created
