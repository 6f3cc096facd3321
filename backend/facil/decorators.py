# Overview: Request decorators for API routes: bearer authentication and role checks.

from functools import wraps
from flask import request, jsonify, g

from .extensions import get_provider
from .services import session_service


def _is_authenticated() -> bool:
    return hasattr(g, 'session') and hasattr(g, 'current_user')


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer session.

    Sets on Flask g:
    - g.session: the resolved Session
    - g.current_user: its UserRecord (no password)

    Returns 401 when the header is missing or the token is unknown, revoked,
    expired or belongs to a deleted account.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required"}), 401

        session = session_service.validate_session(token, get_provider())
        if session is None:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.session = session
        g.current_user = session.user
        g.session_token = token

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Require one of the given roles. Must be stacked under @require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if g.current_user.role not in roles:
                return jsonify({
                    "error": "Permission denied",
                    "required_role": list(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator
