# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/facil/routes/auth.py
"""
Authentication API routes

- Login by username or email; legacy plaintext passwords are migrated to
  bcrypt on the first successful login
- Session management with bearer tokens (see session_service)
- Self-registration can be switched off with ALLOW_SELF_REGISTRATION
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..errors import ConflictError, InvalidCredentials, NotFound, ValidationError
from ..extensions import get_credentials
from ..services import session_service
from ..time_utils import to_utc_z

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _open_session(user, status: int, message: str):
    session, token = session_service.create_session(
        user,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    return jsonify({
        "user": user.to_dict(),
        "token": token,
        "expires_at": to_utc_z(session.expires_at),
        "message": message,
    }), status


@auth_bp.post("/register")
def register_route():
    """
    Create an account and log it in.

    Body: {"username" | "email" | "identifier", "password", "name"?}
    """
    if not current_app.config.get("ALLOW_SELF_REGISTRATION", True):
        return jsonify({
            "error": "Self-registration is disabled. Contact an administrator to create an account."
        }), 403

    data = request.get_json(silent=True) or {}
    identifier = data.get("identifier") or data.get("username") or data.get("email")
    password = data.get("password")
    if not identifier or not password:
        return jsonify({"error": "username/email and password required"}), 400

    try:
        user = get_credentials().register(identifier, password, name=data.get("name"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    current_app.logger.info("Registered user %s", user.display_identifier)
    return _open_session(user, 201, "Registration successful")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and create a session token.

    The token goes into the Authorization header ("Bearer <token>") of
    every protected request.
    """
    data = request.get_json(silent=True) or {}
    identifier = data.get("identifier") or data.get("username") or data.get("email")
    password = data.get("password")

    if not identifier or not password:
        return jsonify({"error": "username/email and password required"}), 400

    try:
        user = get_credentials().login(identifier, password)
    except InvalidCredentials as e:
        return jsonify({"error": str(e)}), 401

    return _open_session(user, 200, "Login successful")


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(g.session_token)
    return jsonify({"message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200


@auth_bp.post("/change-password")
@require_auth
def change_password_route():
    """
    Change the caller's password.

    Body: {"new_password"}. Other sessions of the user are revoked; the
    current one stays open.
    """
    data = request.get_json(silent=True) or {}
    new_password = data.get("new_password") or data.get("password")

    try:
        user = get_credentials().change_password(g.current_user.id, new_password)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFound as e:
        return jsonify({"error": str(e)}), 404

    session_service.revoke_user_sessions(user.id, keep_token=g.session_token)
    return jsonify({"user": user.to_dict(), "message": "Password changed"}), 200
