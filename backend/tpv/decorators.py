# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services.runtime import get_runtime


def require_user(f):
    """
    Require a known caller.

    Sets g.current_user from the X-User-Id header. Returns 401 when the header
    is missing or names no known user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_id = request.headers.get("X-User-Id")
        if not user_id:
            return jsonify({"error": "Authentication required"}), 401

        user = get_runtime().state.users.get(user_id)
        if user is None:
            return jsonify({"error": "Unknown user"}), 401

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """Require an admin caller. Must run after @require_user."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if getattr(g, "current_user", None) is None:
            return jsonify({"error": "Authentication required"}), 401
        if g.current_user.role != "admin":
            return jsonify({"error": "Permission denied", "required_role": "admin"}), 403
        return f(*args, **kwargs)

    return decorated_function
