# Overview: In-memory search filters for the product and invoice lists.

from __future__ import annotations

from datetime import date
from typing import Iterable

from ..models import Invoice, Product
from partsdesk.time_utils import end_of_day, start_of_day


def _matches(needle: str, *haystacks: str | None) -> bool:
    return any(needle in value.lower() for value in haystacks if value)


def filter_products(products: Iterable[Product], search: str | None) -> list[Product]:
    """
    Case-insensitive substring match on name, brand, code or HSN code.
    A blank search returns everything.
    """
    needle = (search or "").strip().lower()
    if not needle:
        return list(products)
    return [
        p for p in products
        if _matches(needle, p.name, p.brand, p.code, p.hsn_code)
    ]


def filter_invoices(
    invoices: Iterable[Invoice],
    search: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[Invoice]:
    """
    Text match on invoice number, customer name or phone, AND an inclusive
    createdAt range: date_from 00:00:00 through date_to 23:59:59.999999.
    """
    needle = (search or "").strip().lower()
    lower = start_of_day(date_from) if date_from else None
    upper = end_of_day(date_to) if date_to else None

    result = []
    for invoice in invoices:
        if needle and not _matches(needle, invoice.invoice_number, invoice.customer_name, invoice.customer_phone):
            continue
        if lower is not None and invoice.created_at < lower:
            continue
        if upper is not None and invoice.created_at > upper:
            continue
        result.append(invoice)
    return result
