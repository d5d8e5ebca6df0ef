# Overview: Service-layer dashboard figures; computed from the store's product and invoice lists.

from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..storage import ShopStore, get_store
from .pricing_service import format_money


def dashboard_summary(store: ShopStore | None = None, low_stock_threshold: int | None = None) -> dict:
    """
    Inventory and sales overview for the dashboard tab.

    Stock value is at purchase price. Low stock means stock below the
    threshold (LOW_STOCK_THRESHOLD, default 10).
    """
    store = store or get_store()
    if low_stock_threshold is None:
        low_stock_threshold = current_app.config.get("LOW_STOCK_THRESHOLD", 10)

    products = store.list_products()
    invoices = store.list_invoices()

    total_units = sum(p.stock for p in products)
    stock_value = sum((Decimal(p.purchase_price) * p.stock for p in products), Decimal("0"))
    low_stock = sorted(
        (p for p in products if p.stock < low_stock_threshold),
        key=lambda p: (p.stock, p.name),
    )
    sales_total = sum((Decimal(i.grand_total) for i in invoices), Decimal("0"))
    gst_collected = sum((Decimal(i.gst_amount) for i in invoices), Decimal("0"))

    return {
        "totalProducts": len(products),
        "totalStockUnits": total_units,
        "totalStockValue": format_money(stock_value),
        "averageStock": round(total_units / len(products), 1) if products else 0,
        "inStockCount": sum(1 for p in products if p.stock > 0),
        "outOfStockCount": sum(1 for p in products if p.stock == 0),
        "lowStockThreshold": low_stock_threshold,
        "lowStockCount": len(low_stock),
        "lowStockItems": [p.to_dict() for p in low_stock],
        "invoiceCount": len(invoices),
        "salesTotal": format_money(sales_total),
        "gstCollected": format_money(gst_collected),
    }
