# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/facil/routes/products.py
"""
Product management routes.

SECURITY: All routes require authentication. Any signed-in role may manage
stock; only the output history is append-only.
"""
from flask import Blueprint, request, current_app

from ..decorators import require_auth
from ..errors import ConflictError, NotFound, ValidationError
from ..extensions import get_provider
from ..models import Product
from ..services import inventory_service
from ..validation import ModelValidationPolicy, validate_payload

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "id", "sku", "name", "description", "quantity", "price",
        "serial_number", "mac_address", "asset_tag", "image_url",
    },
    required_on_create={"sku", "name"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    List all products (including those with quantity 0), ordered by name.

    Query params:
    - q: str (optional) - case-insensitive filter on name, sku, serial number or asset tag
    """
    products = get_provider().products.list()
    q = (request.args.get("q") or "").strip().lower()
    if q:
        products = [
            p for p in products
            if any(q in (value or "").lower() for value in (p.name, p.sku, p.serial_number, p.asset_tag))
        ]
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/lookup")
@require_auth
def lookup_product():
    """
    Resolve a scanned code against sku, serial number and asset tag.

    200 with status FOUND or OUT_OF_STOCK (plus a warning); 404 when nothing matches.
    """
    code = request.args.get("code", "")
    try:
        result = inventory_service.lookup_by_code(get_provider(), code)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFound as e:
        return {"error": str(e)}, 404
    return result.to_dict(), 200


@products_bp.get("/<product_id>")
@require_auth
def get_product(product_id: str):
    product = get_provider().products.get(product_id)
    if product is None:
        return {"error": "Product not found"}, 404
    return product.to_dict(), 200


@products_bp.post("")
@require_auth
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        created = inventory_service.create_product(get_provider(), patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    current_app.logger.info("Created product %s (sku=%s)", created.id, created.sku)
    return created.to_dict(), 201


@products_bp.route("/<product_id>", methods=["PUT", "PATCH"])
@require_auth
def update_product_route(product_id: str):
    payload = request.get_json(silent=True) or {}
    payload.pop("id", None)

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        updated = inventory_service.update_product(get_provider(), product_id, patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFound:
        return {"error": "Product not found"}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409

    return updated.to_dict(), 200


@products_bp.delete("/<product_id>")
@require_auth
def delete_product_route(product_id: str):
    """
    Delete a product. Refused with 409 while any output log references it.
    """
    try:
        inventory_service.delete_product(get_provider(), product_id)
    except NotFound:
        return {"error": "Product not found"}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409

    current_app.logger.info("Deleted product %s", product_id)
    return {"ok": True}, 200
