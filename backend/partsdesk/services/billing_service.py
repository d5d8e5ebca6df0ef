# Overview: Service-layer checkout; turns a cart into a persisted invoice and stock decrements.

"""
Billing Service - cart assembly and checkout

A checkout is the only multi-step write in the shop:

1. Re-read every product in the cart (locked) and refuse the whole sale if
   any line asks for more than is on hand.
2. Allocate the next invoice number, snapshot the cart lines and price them
   with the GST calculator.
3. Insert the invoice, then decrement stock for each product with a guarded
   update (stock >= quantity).

Steps 1-3 run inside store.run_atomic(): either the invoice and every stock
decrement commit together, or nothing does.

Invoice creation must not be retried blindly by clients; a second POST is a
second sale.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from flask import current_app

from ..models import Invoice, Product
from ..storage import ShopStore, get_store
from ..validation import ValidationError, require_positive_int
from .invoice_number_service import next_invoice_number
from .pricing_service import (
    InvoiceTotals,
    LineItem,
    compute_totals,
    format_money,
    split_line,
    to_money,
)
from partsdesk.time_utils import utcnow

WALK_IN_CUSTOMER_NAME = "Walk-in Customer"
UNKNOWN_CUSTOMER_PHONE = "N/A"

# Client-computed totals may differ from ours by rounding only
TOTALS_TOLERANCE = Decimal("0.01")

CHECKOUT_FIELDS = {
    "customerName",
    "customerPhone",
    "items",
    "invoiceNumber",
    "subtotal",
    "gstAmount",
    "grandTotal",
}
CLAIMED_TOTAL_FIELDS = ("subtotal", "gstAmount", "grandTotal")


class StockError(Exception):
    """Requested quantity exceeds what is on hand."""

    def __init__(self, message: str, items: list[dict] | None = None):
        super().__init__(message)
        self.message = message
        self.items = items or []

    def to_dict(self) -> dict:
        return {"message": self.message, "field": "items", "items": self.items}


@dataclass
class CartLine:
    product_id: int
    name: str
    code: str
    hsn_code: str | None
    unit_price: Decimal
    gst_rate: int
    quantity: int

    @classmethod
    def from_product(cls, product: Product, quantity: int) -> "CartLine":
        return cls(
            product_id=product.id,
            name=product.name,
            code=product.code,
            hsn_code=product.hsn_code,
            unit_price=Decimal(product.selling_price),
            gst_rate=product.gst_rate,
            quantity=quantity,
        )

    def as_line_item(self) -> LineItem:
        return LineItem(quantity=self.quantity, unit_price=self.unit_price, tax_rate=self.gst_rate)

    def snapshot(self) -> dict:
        """Frozen copy stored on the invoice."""
        amounts = split_line(self.as_line_item())
        return {
            "productId": self.product_id,
            "name": self.name,
            "code": self.code,
            "hsnCode": self.hsn_code,
            "quantity": self.quantity,
            "sellingPrice": format_money(self.unit_price),
            "gstRate": self.gst_rate,
            "amount": format_money(amounts.gross),
            "taxableValue": format_money(amounts.net),
            "gstAmount": format_money(amounts.tax),
        }


def _shortage(product: Product | None, product_id: int, requested: int) -> dict:
    return {
        "productId": product_id,
        "code": product.code if product else None,
        "name": product.name if product else None,
        "requested": requested,
        "available": product.stock if product else 0,
    }


class Cart:
    """
    Transient line-item list for one checkout.

    add() and set_quantity() refuse to go beyond the product's stock unless
    told not to check; checkout re-validates against locked rows anyway.
    """

    def __init__(self):
        self._lines: dict[int, CartLine] = {}

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    def quantity_of(self, product_id: int) -> int:
        line = self._lines.get(product_id)
        return line.quantity if line else 0

    def add(self, product: Product, quantity: int = 1, *, check_stock: bool = True) -> CartLine:
        if quantity <= 0:
            raise ValueError("quantity must be positive")
        new_quantity = self.quantity_of(product.id) + quantity
        if check_stock and new_quantity > product.stock:
            raise StockError(
                f"Insufficient stock for {product.name} ({product.code})",
                [_shortage(product, product.id, new_quantity)],
            )
        line = CartLine.from_product(product, new_quantity)
        self._lines[product.id] = line
        return line

    def set_quantity(self, product: Product, quantity: int) -> CartLine | None:
        """Quantity <= 0 removes the line."""
        if quantity <= 0:
            self.remove(product.id)
            return None
        if quantity > product.stock:
            raise StockError(
                f"Insufficient stock for {product.name} ({product.code})",
                [_shortage(product, product.id, quantity)],
            )
        line = CartLine.from_product(product, quantity)
        self._lines[product.id] = line
        return line

    def remove(self, product_id: int) -> None:
        self._lines.pop(product_id, None)

    def clear(self) -> None:
        self._lines.clear()

    def shortages(self, products: dict[int, Product]) -> list[dict]:
        """Lines asking for more than the given (authoritative) stock."""
        short = []
        for line in self._lines.values():
            product = products.get(line.product_id)
            if product is None or line.quantity > product.stock:
                short.append(_shortage(product, line.product_id, line.quantity))
        return short

    def totals(self) -> InvoiceTotals:
        return compute_totals(line.as_line_item() for line in self._lines.values())


@dataclass(frozen=True)
class RequestedLine:
    product_id: int
    quantity: int


@dataclass
class CheckoutRequest:
    lines: list[RequestedLine]
    customer_name: str = WALK_IN_CUSTOMER_NAME
    customer_phone: str = UNKNOWN_CUSTOMER_PHONE
    claimed_totals: dict[str, Decimal] = field(default_factory=dict)

    @property
    def product_ids(self) -> list[int]:
        return [line.product_id for line in self.lines]


def _parse_items(raw) -> list[RequestedLine]:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise ValidationError("items must be a JSON array", "items")
    if not isinstance(raw, list):
        raise ValidationError("items must be an array", "items")
    if not raw:
        raise ValidationError("Cart is empty", "items")

    lines = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError("Each item must be an object", f"items[{idx}]")
        product_id = item.get("productId", item.get("id"))
        lines.append(
            RequestedLine(
                product_id=require_positive_int(product_id, f"items[{idx}].productId"),
                quantity=require_positive_int(item.get("quantity"), f"items[{idx}].quantity"),
            )
        )
    return lines


def _clean_text(payload: dict, name: str, max_length: int) -> str | None:
    value = payload.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string", name)
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{name} exceeds max length {max_length}", name)
    return value or None


def parse_checkout_payload(payload) -> CheckoutRequest:
    """
    Validate a POST /api/invoices body.

    invoiceNumber is accepted for compatibility but ignored; numbers are
    assigned here. subtotal/gstAmount/grandTotal are optional and, when
    present, must agree with the server's own computation.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    for name in payload.keys():
        if name not in CHECKOUT_FIELDS:
            raise ValidationError(f"Field not allowed: {name}", name)

    if "items" not in payload:
        raise ValidationError("items is required", "items")

    claimed = {}
    for name in CLAIMED_TOTAL_FIELDS:
        if payload.get(name) is None:
            continue
        try:
            claimed[name] = to_money(payload[name])
        except ValueError:
            raise ValidationError(f"{name} must be a number", name)

    return CheckoutRequest(
        lines=_parse_items(payload["items"]),
        customer_name=_clean_text(payload, "customerName", 255) or WALK_IN_CUSTOMER_NAME,
        customer_phone=_clean_text(payload, "customerPhone", 32) or UNKNOWN_CUSTOMER_PHONE,
        claimed_totals=claimed,
    )


def _build_cart(request: CheckoutRequest, products: dict[int, Product]) -> Cart:
    cart = Cart()
    for idx, line in enumerate(request.lines):
        product = products.get(line.product_id)
        if product is None:
            raise ValidationError(f"Product {line.product_id} not found", f"items[{idx}].productId")
        cart.add(product, line.quantity, check_stock=False)
    return cart


def _check_claimed_totals(claimed: dict[str, Decimal], totals: InvoiceTotals) -> None:
    rounded = totals.rounded()
    actual = {
        "subtotal": rounded.subtotal,
        "gstAmount": rounded.gst_amount,
        "grandTotal": rounded.grand_total,
    }
    for name, value in claimed.items():
        if abs(value - actual[name]) > TOTALS_TOLERANCE:
            raise ValidationError(
                f"{name} does not match the cart (expected {format_money(actual[name])})",
                name,
            )


def preview_cart(payload, store: ShopStore | None = None) -> dict:
    """
    Price a cart without persisting anything (live totals for the billing
    screen). Stock is checked against current, unlocked values.
    """
    store = store or get_store()
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    if "items" not in payload:
        raise ValidationError("items is required", "items")
    request = CheckoutRequest(lines=_parse_items(payload["items"]))

    products = {}
    for pid in request.product_ids:
        product = store.get_product(pid)
        if product is not None:
            products[pid] = product

    cart = _build_cart(request, products)
    shortages = cart.shortages(products)
    if shortages:
        raise StockError("Insufficient stock", shortages)

    return {
        "items": [line.snapshot() for line in cart.lines],
        **cart.totals().to_dict(),
    }


def create_invoice(payload, store: ShopStore | None = None, now: datetime | None = None) -> Invoice:
    """
    Check out a cart: validate, price, persist the invoice and decrement stock
    as one atomic unit.

    Raises:
        ValidationError: malformed payload, unknown product, totals mismatch
        StockError: any line exceeds stock on hand (nothing is written)
    """
    request = parse_checkout_payload(payload)
    store = store or get_store()

    def _checkout() -> Invoice:
        created_at = now or utcnow()
        products = store.lock_products(request.product_ids)
        cart = _build_cart(request, products)

        shortages = cart.shortages(products)
        if shortages:
            raise StockError("Insufficient stock", shortages)

        totals = cart.totals()
        _check_claimed_totals(request.claimed_totals, totals)
        rounded = totals.rounded()

        invoice = store.add_invoice({
            "invoice_number": next_invoice_number(store, created_at),
            "customer_name": request.customer_name,
            "customer_phone": request.customer_phone,
            "items": json.dumps([line.snapshot() for line in cart.lines]),
            "subtotal": rounded.subtotal,
            "gst_amount": rounded.gst_amount,
            "grand_total": rounded.grand_total,
            "created_at": created_at,
        })

        for line in cart.lines:
            if not store.decrement_stock(line.product_id, line.quantity):
                product = products.get(line.product_id)
                raise StockError(
                    "Insufficient stock",
                    [_shortage(product, line.product_id, line.quantity)],
                )
        return invoice

    try:
        invoice = store.run_atomic(_checkout)
    except StockError as e:
        current_app.logger.warning("Checkout rejected: %s %s", e.message, e.items)
        raise

    current_app.logger.info(
        "Created invoice %s (%d lines, total %s)",
        invoice.invoice_number,
        len(invoice.line_items),
        format_money(invoice.grand_total),
    )
    return invoice
