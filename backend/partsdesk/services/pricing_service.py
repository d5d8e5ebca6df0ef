# Overview: Service-layer GST arithmetic for tax-inclusive prices; pure functions, no database work.

"""
Pricing Service - tax-inclusive GST calculation

Selling prices already contain GST. For each line:

    gross = quantity * unit_price
    tax   = gross * rate / (100 + rate)
    net   = gross - tax

Invoice totals are the sums of net (subtotal), tax (gstAmount) and gross
(grandTotal). Sums are accumulated unrounded; rounding to paise happens only
when totals are presented (rounded() / to_dict()).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Iterable

MONEY_PLACES = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Digits of working precision while accumulating line amounts
_ACCUMULATION_PRECISION = 50


def to_money(value) -> Decimal:
    """
    Coerce an incoming monetary value to Decimal.

    Accepts Decimal, int, float (via its shortest repr) and numeric strings.
    Raises ValueError for booleans, blanks, NaN and infinities.
    """
    if isinstance(value, bool):
        raise ValueError("must be a number")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(repr(value))
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValueError("must be a number")
        try:
            amount = Decimal(stripped)
        except InvalidOperation:
            raise ValueError("must be a number")
    else:
        raise ValueError("must be a number")

    if not amount.is_finite():
        raise ValueError("must be a finite number")
    return amount


def round_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def format_money(value: Decimal | None) -> str | None:
    """Render as a 2-decimal string ("650.00"), the wire format for money."""
    if value is None:
        return None
    return str(round_money(Decimal(value)))


@dataclass(frozen=True)
class LineItem:
    quantity: int
    unit_price: Decimal
    tax_rate: int


@dataclass(frozen=True)
class LineAmounts:
    gross: Decimal
    tax: Decimal
    net: Decimal


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    gst_amount: Decimal
    grand_total: Decimal

    def rounded(self) -> "InvoiceTotals":
        return InvoiceTotals(
            subtotal=round_money(self.subtotal),
            gst_amount=round_money(self.gst_amount),
            grand_total=round_money(self.grand_total),
        )

    def to_dict(self) -> dict:
        return {
            "subtotal": format_money(self.subtotal),
            "gstAmount": format_money(self.gst_amount),
            "grandTotal": format_money(self.grand_total),
        }


def split_line(line: LineItem) -> LineAmounts:
    """Separate the GST component from a tax-inclusive line."""
    with localcontext() as ctx:
        ctx.prec = _ACCUMULATION_PRECISION
        gross = Decimal(line.quantity) * Decimal(line.unit_price)
        rate = Decimal(line.tax_rate)
        if rate == 0:
            tax = ZERO
        else:
            tax = gross * rate / (HUNDRED + rate)
        return LineAmounts(gross=gross, tax=tax, net=gross - tax)


def compute_totals(lines: Iterable[LineItem]) -> InvoiceTotals:
    """
    Aggregate subtotal, GST and grand total for a cart.

    Empty input yields all-zero totals. The result does not depend on the
    order of lines.
    """
    subtotal = ZERO
    gst_amount = ZERO
    grand_total = ZERO
    with localcontext() as ctx:
        ctx.prec = _ACCUMULATION_PRECISION
        for line in lines:
            amounts = split_line(line)
            subtotal += amounts.net
            gst_amount += amounts.tax
            grand_total += amounts.gross
    return InvoiceTotals(subtotal=subtotal, gst_amount=gst_amount, grand_total=grand_total)
