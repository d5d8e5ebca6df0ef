"""
Checkout tests.

Verifies:
- A checkout that asks for more than is on hand writes nothing
- A successful checkout decrements exactly the requested quantities
- A failure after some stock was already decremented is rolled back
- Concurrent checkouts never oversell
"""

import logging
import threading
from datetime import datetime
from decimal import Decimal

import pytest

from partsdesk import create_app
from partsdesk.config import TestingConfig
from partsdesk.extensions import db
from partsdesk.services import billing_service
from partsdesk.services.billing_service import (
    Cart,
    StockError,
    UNKNOWN_CUSTOMER_PHONE,
    WALK_IN_CUSTOMER_NAME,
)
from partsdesk.storage import get_store
from partsdesk.validation import ValidationError


def _stock(store, product):
    return store.get_product(product.id).stock


# =============================================================================
# ABORT PATH
# =============================================================================


class TestStockShortage:
    def test_rejected_checkout_writes_nothing(self, store, catalogue):
        brake, wiper, bulb = catalogue["brake"], catalogue["wiper"], catalogue["bulb"]

        with pytest.raises(StockError) as exc:
            billing_service.create_invoice(
                {
                    "customerName": "Ravi",
                    "items": [
                        {"productId": brake.id, "quantity": 2},
                        {"productId": wiper.id, "quantity": 4},
                    ],
                },
                store=store,
            )

        assert exc.value.items == [
            {
                "productId": wiper.id,
                "code": "WB-HC-005",
                "name": "Wiper Blade",
                "requested": 4,
                "available": 3,
            }
        ]
        assert store.list_invoices() == []
        assert _stock(store, brake) == 25
        assert _stock(store, wiper) == 3
        assert _stock(store, bulb) == 50

    def test_same_product_on_two_lines_is_checked_in_total(self, store, catalogue):
        wiper = catalogue["wiper"]

        with pytest.raises(StockError):
            billing_service.create_invoice(
                {"items": [{"productId": wiper.id, "quantity": 2}, {"productId": wiper.id, "quantity": 2}]},
                store=store,
            )
        assert _stock(store, wiper) == 3

    def test_failed_decrement_rolls_back_earlier_lines(self, store, catalogue, monkeypatch):
        brake, bulb = catalogue["brake"], catalogue["bulb"]
        real_decrement = store.decrement_stock

        def _decrement(product_id, quantity):
            # Simulate another till selling the last bulbs in between
            if product_id == bulb.id:
                return False
            return real_decrement(product_id, quantity)

        monkeypatch.setattr(store, "decrement_stock", _decrement)

        with pytest.raises(StockError):
            billing_service.create_invoice(
                {
                    "items": [
                        {"productId": brake.id, "quantity": 1},
                        {"productId": bulb.id, "quantity": 1},
                    ]
                },
                store=store,
                now=datetime(2025, 3, 1),
            )

        monkeypatch.undo()
        assert store.list_invoices() == []
        assert _stock(store, brake) == 25
        assert _stock(store, bulb) == 50

        # The number consumed by the failed attempt is handed out again
        invoice = billing_service.create_invoice(
            {"items": [{"productId": brake.id, "quantity": 1}]},
            store=store,
            now=datetime(2025, 3, 1),
        )
        assert invoice.invoice_number == "INV-2025-0001"


# =============================================================================
# HAPPY PATH
# =============================================================================


class TestCheckout:
    def test_decrements_exactly_and_leaves_others_alone(self, store, catalogue):
        brake, bulb, wiper = catalogue["brake"], catalogue["bulb"], catalogue["wiper"]

        invoice = billing_service.create_invoice(
            {
                "customerName": "Ravi Kumar",
                "customerPhone": "9876543210",
                "items": [
                    {"productId": brake.id, "quantity": 2},
                    {"productId": wiper.id, "quantity": 3},
                ],
            },
            store=store,
        )

        assert _stock(store, brake) == 23
        assert _stock(store, wiper) == 0
        assert _stock(store, bulb) == 50
        assert [i.id for i in store.list_invoices()] == [invoice.id]

    def test_invoice_snapshot_and_totals(self, store, catalogue):
        brake = catalogue["brake"]

        invoice = billing_service.create_invoice(
            {"items": [{"productId": brake.id, "quantity": 2}]},
            store=store,
            now=datetime(2025, 3, 1, 9, 30),
        )
        body = invoice.to_dict()

        assert body["invoiceNumber"] == "INV-2025-0001"
        assert body["customerName"] == WALK_IN_CUSTOMER_NAME
        assert body["customerPhone"] == UNKNOWN_CUSTOMER_PHONE
        assert body["subtotal"] == "1015.63"
        assert body["gstAmount"] == "284.38"
        assert body["grandTotal"] == "1300.00"
        assert body["createdAt"] == "2025-03-01T09:30:00Z"
        assert body["items"] == [
            {
                "productId": brake.id,
                "name": "Brake Pad Set",
                "code": "BP-MS-001",
                "hsnCode": "8708",
                "quantity": 2,
                "sellingPrice": "650.00",
                "gstRate": 28,
                "amount": "1300.00",
                "taxableValue": "1015.63",
                "gstAmount": "284.38",
            }
        ]

    def test_product_edits_do_not_change_past_invoices(self, store, catalogue):
        brake = catalogue["brake"]
        invoice = billing_service.create_invoice(
            {"items": [{"productId": brake.id, "quantity": 1}]}, store=store
        )

        store.update_product(brake.id, {"name": "Renamed", "selling_price": Decimal("999.00")})

        line = store.get_invoice(invoice.id).to_dict()["items"][0]
        assert line["name"] == "Brake Pad Set"
        assert line["sellingPrice"] == "650.00"

    def test_sequential_checkouts_get_increasing_numbers(self, store, catalogue):
        bulb = catalogue["bulb"]
        now = datetime(2025, 7, 4)
        numbers = [
            billing_service.create_invoice(
                {"items": [{"productId": bulb.id, "quantity": 1}]}, store=store, now=now
            ).invoice_number
            for _ in range(5)
        ]
        assert numbers == [f"INV-2025-{n:04d}" for n in range(1, 6)]
        assert _stock(store, bulb) == 45

    def test_client_invoice_number_is_ignored(self, store, catalogue):
        invoice = billing_service.create_invoice(
            {"invoiceNumber": "INV-1999-9999", "items": [{"productId": catalogue["bulb"].id, "quantity": 1}]},
            store=store,
            now=datetime(2025, 1, 2),
        )
        assert invoice.invoice_number == "INV-2025-0001"

    def test_matching_client_totals_are_accepted(self, store, catalogue):
        invoice = billing_service.create_invoice(
            {
                "items": [{"productId": catalogue["brake"].id, "quantity": 2}],
                "subtotal": 1015.625,
                "gstAmount": 284.375,
                "grandTotal": 1300,
            },
            store=store,
        )
        assert invoice.to_dict()["grandTotal"] == "1300.00"

    def test_mismatched_client_totals_are_rejected(self, store, catalogue):
        brake = catalogue["brake"]
        with pytest.raises(ValidationError) as exc:
            billing_service.create_invoice(
                {"items": [{"productId": brake.id, "quantity": 2}], "grandTotal": "1200.00"},
                store=store,
            )
        assert exc.value.field == "grandTotal"
        assert _stock(store, brake) == 25
        assert store.list_invoices() == []


# =============================================================================
# PAYLOAD VALIDATION
# =============================================================================


class TestCheckoutValidation:
    @pytest.mark.parametrize(
        "payload,field",
        [
            ({}, "items"),
            ({"items": []}, "items"),
            ({"items": "not json"}, "items"),
            ({"items": [{"productId": 1, "quantity": 0}]}, "items[0].quantity"),
            ({"items": [{"productId": 1, "quantity": -2}]}, "items[0].quantity"),
            ({"items": [{"productId": 1, "quantity": 1.5}]}, "items[0].quantity"),
            ({"items": [{"quantity": 1}]}, "items[0].productId"),
            ({"items": [{"productId": 1, "quantity": "\u00b2"}]}, "items[0].quantity"),
            ({"items": [{"productId": 99999999999999999999, "quantity": 1}]}, "items[0].productId"),
            ({"items": [{"productId": 1, "quantity": 1}], "discount": 5}, "discount"),
            ({"items": [{"productId": 1, "quantity": 1}], "customerName": 42}, "customerName"),
        ],
    )
    def test_bad_payloads(self, store, payload, field):
        with pytest.raises(ValidationError) as exc:
            billing_service.create_invoice(payload, store=store)
        assert exc.value.field == field

    def test_unknown_product(self, store, catalogue):
        with pytest.raises(ValidationError) as exc:
            billing_service.create_invoice({"items": [{"productId": 9999, "quantity": 1}]}, store=store)
        assert exc.value.field == "items[0].productId"
        assert store.list_invoices() == []

    def test_items_may_arrive_as_json_text(self, store, catalogue):
        bulb = catalogue["bulb"]
        invoice = billing_service.create_invoice(
            {"items": f'[{{"id": {bulb.id}, "quantity": 2}}]'}, store=store
        )
        assert invoice.line_items[0]["quantity"] == 2


# =============================================================================
# CART AND PREVIEW
# =============================================================================


class TestCart:
    def test_add_merges_lines_and_checks_stock(self, store, catalogue):
        wiper = catalogue["wiper"]
        cart = Cart()
        cart.add(wiper)
        cart.add(wiper, 2)

        assert len(cart) == 1
        assert cart.quantity_of(wiper.id) == 3
        with pytest.raises(StockError):
            cart.add(wiper)

    def test_set_quantity_zero_removes(self, store, catalogue):
        cart = Cart()
        cart.add(catalogue["bulb"], 5)
        cart.set_quantity(catalogue["bulb"], 0)
        assert len(cart) == 0
        assert cart.totals().to_dict()["grandTotal"] == "0.00"

    def test_preview_prices_without_writing(self, store, catalogue):
        brake = catalogue["brake"]
        preview = billing_service.preview_cart(
            {"items": [{"productId": brake.id, "quantity": 2}]}, store=store
        )

        assert preview["grandTotal"] == "1300.00"
        assert preview["gstAmount"] == "284.38"
        assert preview["items"][0]["taxableValue"] == "1015.63"
        assert _stock(store, brake) == 25
        assert store.list_invoices() == []


# =============================================================================
# CONCURRENCY
# =============================================================================


@pytest.mark.parametrize("backend", ["sql", "memory"])
def test_concurrent_checkouts_never_oversell(tmp_path, backend):
    class ConcurrentConfig(TestingConfig):
        STORAGE_BACKEND = backend
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'shop.sqlite3'}"

    app = create_app(ConcurrentConfig)
    with app.app_context():
        product = get_store().create_product({
            "name": "Oil Filter",
            "brand": "Tata Nexon",
            "code": "OF-TN-003",
            "stock": 5,
            "purchase_price": Decimal("180"),
            "selling_price": Decimal("300"),
        })
        product_id = product.id

    results = []
    start = threading.Barrier(10)

    def _buy():
        with app.app_context():
            start.wait()
            try:
                invoice = billing_service.create_invoice(
                    {"items": [{"productId": product_id, "quantity": 1}]}
                )
                results.append(invoice.invoice_number)
            except StockError:
                results.append(None)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=_buy) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    sold = [n for n in results if n is not None]
    assert len(results) == 10
    assert len(sold) == 5
    assert len(set(sold)) == 5

    with app.app_context():
        assert get_store().get_product(product_id).stock == 0
        assert len(get_store().list_invoices()) == 5
        db.session.remove()
        db.engine.dispose()


def test_checkout_log_counts_merged_lines(store, catalogue, caplog):
    caplog.set_level(logging.INFO, logger="partsdesk")
    bulb = catalogue["bulb"]

    billing_service.create_invoice(
        {"items": [{"productId": bulb.id, "quantity": 1}, {"productId": bulb.id, "quantity": 2}]},
        store=store,
    )

    assert any("(1 lines, total 450.00)" in r.getMessage() for r in caplog.records)
