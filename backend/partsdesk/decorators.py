# Overview: Request decorators for API routes.

from functools import wraps
from flask import jsonify, g, session

from .services import auth_service

SESSION_USER_KEY = "user_id"


def require_auth(f):
    """
    Require a logged-in session.

    Sets g.current_user to the authenticated User.

    Returns 401 if:
    - No session cookie / not logged in
    - The session points at a user that no longer exists
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = auth_service.load_user(session.get(SESSION_USER_KEY))

        if user is None:
            session.pop(SESSION_USER_KEY, None)
            return jsonify({"message": "Authentication required"}), 401

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function
