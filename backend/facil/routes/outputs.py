# Overview: Flask API routes for stock outputs (withdrawals) and their history.

# backend/facil/routes/outputs.py
"""
Output routes.

POST /api/outputs decrements a product and appends one immutable log entry.
Clients may send their own "id": resubmitting the same id (e.g. after a
timeout) returns the stored log instead of withdrawing twice.
"""
from flask import Blueprint, request, current_app

from ..decorators import require_auth
from ..errors import ConflictError, InsufficientStock, NotFound, StaleStock, ValidationError
from ..extensions import get_provider
from ..services import inventory_service

outputs_bp = Blueprint("outputs", __name__, url_prefix="/api/outputs")


@outputs_bp.get("")
@require_auth
def list_outputs():
    """
    Output history, newest first.

    Query params:
    - product_id: str (optional)
    - person_id: str (optional)
    """
    logs = inventory_service.list_outputs(
        get_provider(),
        product_id=request.args.get("product_id") or None,
        person_id=request.args.get("person_id") or None,
    )
    return {"items": [log.to_dict() for log in logs], "count": len(logs)}


@outputs_bp.post("")
@require_auth
def create_output():
    """
    Body: {"product_id", "person_id", "quantity", "id"?}
    """
    payload = request.get_json(silent=True) or {}
    product_id = payload.get("product_id")
    person_id = payload.get("person_id")
    quantity = payload.get("quantity")

    if not product_id or not person_id:
        return {"error": "product_id and person_id are required"}, 400

    try:
        log = inventory_service.record_output(
            get_provider(),
            str(product_id),
            str(person_id),
            quantity,
            log_id=payload.get("id") or None,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFound as e:
        return {"error": str(e)}, 404
    except InsufficientStock as e:
        return {
            "error": str(e),
            "available": e.available,
            "requested": e.requested,
        }, 409
    except StaleStock as e:
        current_app.logger.warning("Output gave up after repeated concurrent updates: %s", e)
        return {"error": str(e)}, 409
    except ConflictError as e:
        return {"error": str(e)}, 409

    current_app.logger.info(
        "Recorded output %s: %s x %s to %s", log.id, log.quantity, log.product_name, log.person_name
    )
    return log.to_dict(), 201
