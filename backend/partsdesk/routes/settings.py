from __future__ import annotations

from flask import Blueprint, jsonify, request, current_app

from ..decorators import require_auth
from ..services import settings_service
from ..validation import ValidationError


settings_bp = Blueprint("settings", __name__, url_prefix="/api")


@settings_bp.get("/settings")
@require_auth
def get_settings_route():
    return jsonify(settings_service.get_settings().to_dict())


@settings_bp.put("/settings")
@require_auth
def update_settings_route():
    """Partial update of the letterhead; fields omitted from the body are kept."""
    payload = request.get_json(silent=True)

    try:
        updated = settings_service.update_settings(payload)
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except Exception:
        current_app.logger.exception("Failed to update settings")
        return jsonify({"message": "Internal server error"}), 500

    current_app.logger.info("Shop settings updated")
    return jsonify(updated.to_dict()), 200
