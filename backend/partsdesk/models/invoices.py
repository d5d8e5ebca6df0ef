from __future__ import annotations

import json

from ..extensions import db
from ..services.pricing_service import format_money
from partsdesk.time_utils import to_utc_z, utcnow


class Invoice(db.Model):
    """
    Completed sale.

    Invoices are written once by the billing service and never updated.
    items holds a JSON snapshot of the cart lines as they were at checkout,
    so later product edits never change a historical invoice.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.UniqueConstraint("invoice_number", name="uq_invoices_invoice_number"),
        db.Index("ix_invoices_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable number (e.g., "INV-2025-0007")
    invoice_number = db.Column(db.String(64), nullable=False)

    customer_name = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)

    items = db.Column(db.Text, nullable=False)

    subtotal = db.Column(db.Numeric(12, 2), nullable=False)
    gst_amount = db.Column(db.Numeric(12, 2), nullable=False)
    grand_total = db.Column(db.Numeric(12, 2), nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    @property
    def line_items(self) -> list[dict]:
        return json.loads(self.items) if self.items else []

    def __repr__(self) -> str:
        return f"<Invoice id={self.id} number={self.invoice_number!r} total={self.grand_total}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoiceNumber": self.invoice_number,
            "customerName": self.customer_name,
            "customerPhone": self.customer_phone,
            "items": self.line_items,
            "subtotal": format_money(self.subtotal),
            "gstAmount": format_money(self.gst_amount),
            "grandTotal": format_money(self.grand_total),
            "createdAt": to_utc_z(self.created_at),
        }


class InvoiceSequence(db.Model):
    """
    Atomic invoice counters.

    One row per scope: the calendar year ("2025") when numbering restarts
    every year, or "global" for a single never-resetting counter.
    next_number is the value the next invoice in that scope will receive.
    """
    __tablename__ = "invoice_sequences"
    __table_args__ = (
        db.UniqueConstraint("scope", name="uq_invoice_sequences_scope"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    scope = db.Column(db.String(16), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
