# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/partsdesk/routes/products.py
"""
Product inventory routes.

SECURITY: All routes require a logged-in session.
"""
from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth
from ..services import products_service
from ..storage import NotFoundError
from ..validation import ValidationError

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    List all products, ordered by name.

    Query params:
    - search: str (optional) - case-insensitive match on name, brand, code or HSN code
    """
    products = products_service.list_products(search=request.args.get("search"))
    return jsonify([p.to_dict() for p in products])


@products_bp.post("")
@require_auth
def create_product_route():
    """Create a new product. 201, or 400 with {message, field}."""
    payload = request.get_json(silent=True)

    try:
        created = products_service.create_product(payload)
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"message": "Internal server error"}), 500

    return jsonify(created.to_dict()), 201


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        product = products_service.get_product(product_id)
    except NotFoundError as e:
        return jsonify({"message": e.message}), 404
    return jsonify(product.to_dict())


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    """Partial update. 200, 400 with {message, field}, or 404."""
    payload = request.get_json(silent=True)

    try:
        updated = products_service.update_product(product_id, payload)
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except NotFoundError as e:
        return jsonify({"message": e.message}), 404
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"message": "Internal server error"}), 500

    return jsonify(updated.to_dict()), 200


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    """
    Delete a product. Historical invoices keep their own snapshot of it.
    """
    try:
        products_service.delete_product(product_id)
    except NotFoundError as e:
        return jsonify({"message": e.message}), 404

    return "", 204
