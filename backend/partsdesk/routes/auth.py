# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/partsdesk/routes/auth.py
"""
Session authentication routes.

The session is Flask's signed cookie; it only carries the user id.
"""

from flask import Blueprint, request, jsonify, current_app, session

from ..decorators import SESSION_USER_KEY
from ..services import auth_service
from ..services.auth_service import AuthError


auth_bp = Blueprint("auth", __name__, url_prefix="/api")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and start a session.

    201 with the user record on success, 401 on bad credentials.
    """
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return jsonify({"message": "Invalid JSON payload"}), 400
    username = data.get("username")
    password = data.get("password")

    for name, value in (("username", username), ("password", password)):
        if not isinstance(value, str) or not value:
            return jsonify({"message": f"{name} is required", "field": name}), 400

    try:
        user = auth_service.authenticate(username, password)
    except AuthError as e:
        return jsonify({"message": e.message}), 401
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"message": "Internal server error"}), 500

    session.clear()
    session[SESSION_USER_KEY] = user.id
    current_app.logger.info("User %s logged in", user.username)
    return jsonify(user.to_dict()), 201


@auth_bp.post("/logout")
def logout_route():
    """End the session. Always 200, logged in or not."""
    session.clear()
    return jsonify({"ok": True}), 200


@auth_bp.get("/user")
def current_user_route():
    """The logged-in user, or null."""
    user = auth_service.load_user(session.get(SESSION_USER_KEY))
    if user is None:
        return jsonify(None), 200
    return jsonify(user.to_dict()), 200
