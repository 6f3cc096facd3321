# Overview: Flask API routes for the people stock is handed out to.

from flask import Blueprint, request

from ..decorators import require_auth
from ..errors import ConflictError, NotFound, ValidationError
from ..extensions import get_provider
from ..models import Person
from ..services import inventory_service
from ..validation import ModelValidationPolicy, validate_payload

PERSON_POLICY = ModelValidationPolicy(
    writable_fields={"id", "name", "email", "phone"},
    required_on_create={"name"},
)

people_bp = Blueprint("people", __name__, url_prefix="/api/people")


@people_bp.get("")
@require_auth
def list_people():
    people = get_provider().people.list()
    return {"items": [p.to_dict() for p in people], "count": len(people)}


@people_bp.post("")
@require_auth
def create_person_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Person, payload=payload, policy=PERSON_POLICY, partial=False)
        created = inventory_service.create_person(get_provider(), patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    return created.to_dict(), 201


@people_bp.route("/<person_id>", methods=["PUT", "PATCH"])
@require_auth
def update_person_route(person_id: str):
    payload = request.get_json(silent=True) or {}
    payload.pop("id", None)

    try:
        patch = validate_payload(model=Person, payload=payload, policy=PERSON_POLICY, partial=True)
        updated = inventory_service.update_person(get_provider(), person_id, patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFound:
        return {"error": "Person not found"}, 404

    return updated.to_dict(), 200


@people_bp.delete("/<person_id>")
@require_auth
def delete_person_route(person_id: str):
    try:
        inventory_service.delete_person(get_provider(), person_id)
    except NotFound:
        return {"error": "Person not found"}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409

    return {"ok": True}, 200
