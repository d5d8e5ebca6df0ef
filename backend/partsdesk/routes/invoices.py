# Overview: Flask API routes for invoice operations; parses input and returns JSON responses.

# backend/partsdesk/routes/invoices.py
"""Invoice (billing) API routes"""

from flask import Blueprint, request, jsonify, current_app, render_template

from ..decorators import require_auth
from ..services import billing_service, settings_service
from ..services.billing_service import StockError
from ..services.search_service import filter_invoices
from ..storage import get_store
from ..validation import ValidationError
from partsdesk.time_utils import parse_iso_date


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


def _date_arg(name: str):
    try:
        return parse_iso_date(request.args.get(name))
    except ValueError:
        raise ValidationError(f"{name} must be a date (YYYY-MM-DD)", name)


@invoices_bp.get("")
@require_auth
def list_invoices_route():
    """
    List invoices, newest first.

    Query params:
    - search: str (optional) - matches invoice number, customer name or phone
    - dateFrom, dateTo: YYYY-MM-DD (optional, inclusive)
    """
    try:
        date_from = _date_arg("dateFrom")
        date_to = _date_arg("dateTo")
    except ValidationError as e:
        return jsonify(e.to_dict()), 400

    invoices = filter_invoices(
        get_store().list_invoices(),
        search=request.args.get("search"),
        date_from=date_from,
        date_to=date_to,
    )
    return jsonify([i.to_dict() for i in invoices])


@invoices_bp.post("")
@require_auth
def create_invoice_route():
    """
    Check out a cart.

    Body: {customerName?, customerPhone?, items: [{productId, quantity}], ...}
    201 with the invoice; 400 with {message, field} on validation or stock
    errors (stock errors carry field "items" and the short lines).
    """
    payload = request.get_json(silent=True)

    try:
        invoice = billing_service.create_invoice(payload)
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except StockError as e:
        return jsonify(e.to_dict()), 400
    except Exception:
        current_app.logger.exception("Failed to create invoice")
        return jsonify({"message": "Internal server error"}), 500

    return jsonify(invoice.to_dict()), 201


@invoices_bp.post("/preview")
@require_auth
def preview_invoice_route():
    """Price a cart against current stock without saving anything."""
    payload = request.get_json(silent=True)

    try:
        preview = billing_service.preview_cart(payload)
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except StockError as e:
        return jsonify(e.to_dict()), 400

    return jsonify(preview), 200


@invoices_bp.get("/<int:invoice_id>")
@require_auth
def get_invoice_route(invoice_id: int):
    invoice = get_store().get_invoice(invoice_id)
    if invoice is None:
        return jsonify({"message": "Invoice not found"}), 404
    return jsonify(invoice.to_dict())


@invoices_bp.get("/<int:invoice_id>/print")
@require_auth
def print_invoice_route(invoice_id: int):
    """Printable tax invoice with the shop's letterhead and footer."""
    invoice = get_store().get_invoice(invoice_id)
    if invoice is None:
        return jsonify({"message": "Invoice not found"}), 404

    return render_template(
        "invoice_print.html",
        invoice=invoice.to_dict(),
        shop=settings_service.get_settings(),
    )
