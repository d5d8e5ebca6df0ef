# Overview: Service-layer invoice numbering; formats numbers from store-backed counters.

"""
Invoice Number Service

Numbers look like INV-2025-0042. The counter lives in the same store as the
invoices (invoice_sequences table for SQL) and is advanced inside the
checkout transaction, so a number is consumed only when its invoice commits
and two checkouts can never receive the same number.

SCOPE: with INVOICE_NUMBER_RESET_YEARLY the counter restarts at 1 each
calendar year (scope "2025", "2026", ...). Without it a single "global"
counter keeps running and the year in the number is only informational.
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..storage import ShopStore
from partsdesk.time_utils import utcnow

GLOBAL_SCOPE = "global"


def sequence_scope(year: int, *, reset_yearly: bool) -> str:
    return str(year) if reset_yearly else GLOBAL_SCOPE


def format_invoice_number(prefix: str, year: int, sequence: int, pad: int = 4) -> str:
    return f"{prefix}-{year}-{sequence:0{pad}d}"


def next_invoice_number(store: ShopStore, now: datetime | None = None) -> str:
    """
    Allocate the next invoice number. Must run inside store.run_atomic().
    """
    now = now or utcnow()
    config = current_app.config
    scope = sequence_scope(now.year, reset_yearly=config.get("INVOICE_NUMBER_RESET_YEARLY", True))
    sequence = store.allocate_invoice_sequence(scope)
    return format_invoice_number(
        config.get("INVOICE_NUMBER_PREFIX", "INV"),
        now.year,
        sequence,
        config.get("INVOICE_NUMBER_PAD", 4),
    )
