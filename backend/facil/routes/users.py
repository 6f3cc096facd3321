# Overview: Flask API routes for user administration (admin role only).

from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_role
from ..errors import ConflictError, NotFound, OwnAccountDeletion, ValidationError
from ..extensions import get_credentials
from ..models import User
from ..validation import ModelValidationPolicy, validate_payload

USER_POLICY = ModelValidationPolicy(
    writable_fields={"username", "email", "name", "role", "apartment_number", "password"},
    required_on_create={"password"},
)

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_role("admin")
def list_users():
    users = get_credentials().list_users()
    return {"items": [u.to_dict() for u in users], "count": len(users)}


@users_bp.post("")
@require_auth
@require_role("admin")
def create_user_route():
    """
    Body: {"username"?, "email"?, "password", "name"?, "role"?, "apartment_number"?}

    At least one of username/email is required. The password is stored as a
    bcrypt hash.
    """
    payload = request.get_json(silent=True) or {}

    try:
        values = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=False)
        user = get_credentials().create_user(
            password=values.pop("password") or "",
            username=values.get("username"),
            email=values.get("email"),
            name=values.get("name"),
            role=values.get("role") or "staff",
            apartment_number=values.get("apartment_number"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    current_app.logger.info("Admin %s created user %s", g.current_user.id, user.id)
    return user.to_dict(), 201


@users_bp.route("/<user_id>", methods=["PUT", "PATCH"])
@require_auth
@require_role("admin")
def update_user_route(user_id: str):
    """An empty or missing password keeps the current one."""
    payload = request.get_json(silent=True) or {}

    try:
        changes = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=True)
        user = get_credentials().update_user(user_id, changes)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFound:
        return {"error": "User not found"}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409

    return user.to_dict(), 200


@users_bp.delete("/<user_id>")
@require_auth
@require_role("admin")
def delete_user_route(user_id: str):
    try:
        get_credentials().delete_user(g.current_user.id, user_id)
    except OwnAccountDeletion as e:
        return {"error": str(e)}, 409
    except NotFound:
        return {"error": "User not found"}, 404

    current_app.logger.info("Admin %s deleted user %s", g.current_user.id, user_id)
    return {"ok": True}, 200
