# Overview: Flask API routes for the condominium tool: residents, payments, expenses, dashboard.

# backend/facil/routes/finance.py
"""
Condominium finance routes.

Period filters (?month=&year=) are optional; a missing or blank value
matches every month / year. Amounts are serialized as strings with two
decimal places.
"""
from flask import Blueprint, request, current_app

from ..decorators import require_auth, require_role
from ..errors import ConflictError, NotFound, ValidationError
from ..extensions import get_provider
from ..models import Expense, Payment, Resident
from ..services import finance_service
from ..validation import ModelValidationPolicy, parse_period, validate_payload

RESIDENT_POLICY = ModelValidationPolicy(
    writable_fields={"id", "owner_name", "tenant_name", "apartment_number"},
    required_on_create={"owner_name", "apartment_number"},
)

PAYMENT_POLICY = ModelValidationPolicy(
    writable_fields={"id", "apartment_number", "amount", "date", "month", "year"},
    required_on_create={"apartment_number", "amount", "date"},
)

EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields={"id", "description", "amount", "category", "date"},
    required_on_create={"description", "amount", "category", "date"},
)

finance_bp = Blueprint("finance", __name__, url_prefix="/api")


def _period_args():
    return parse_period(request.args.get("month"), request.args.get("year"))


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


@finance_bp.get("/finance/summary")
@require_auth
def finance_summary():
    """
    Delinquency, income/expense balance and per-category expenses for a period.

    Query params:
    - month: int 1-12 (optional)
    - year: int (optional)
    """
    try:
        month, year = _period_args()
    except ValidationError as e:
        return {"error": str(e)}, 400

    roster = current_app.config.get("APARTMENT_ROSTER") or None
    return finance_service.period_summary(get_provider(), month, year, roster=roster), 200


# ---------------------------------------------------------------------------
# Residents
# ---------------------------------------------------------------------------


@finance_bp.get("/residents")
@require_auth
def list_residents():
    residents = get_provider().residents.list()
    return {"items": [r.to_dict() for r in residents], "count": len(residents)}


@finance_bp.post("/residents")
@require_auth
@require_role("admin")
def create_resident_route():
    payload = request.get_json(silent=True) or {}
    try:
        values = validate_payload(model=Resident, payload=payload, policy=RESIDENT_POLICY, partial=False)
        created = finance_service.create_resident(get_provider(), values)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    return created.to_dict(), 201


@finance_bp.route("/residents/<resident_id>", methods=["PUT", "PATCH"])
@require_auth
@require_role("admin")
def update_resident_route(resident_id: str):
    payload = request.get_json(silent=True) or {}
    payload.pop("id", None)
    try:
        values = validate_payload(model=Resident, payload=payload, policy=RESIDENT_POLICY, partial=True)
        updated = finance_service.update_resident(get_provider(), resident_id, values)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFound:
        return {"error": "Resident not found"}, 404
    return updated.to_dict(), 200


@finance_bp.delete("/residents/<resident_id>")
@require_auth
@require_role("admin")
def delete_resident_route(resident_id: str):
    try:
        finance_service.delete_record(get_provider().residents, resident_id)
    except NotFound:
        return {"error": "Resident not found"}, 404
    return {"ok": True}, 200


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


@finance_bp.get("/payments")
@require_auth
def list_payments():
    """
    Query params:
    - month, year: optional period filter (stored billing period, else payment date)
    - apartment_number: int (optional)
    """
    try:
        month, year = _period_args()
    except ValidationError as e:
        return {"error": str(e)}, 400
    apartment = request.args.get("apartment_number", type=int)

    payments = finance_service.filter_by_period(get_provider().payments.list(), month, year)
    if apartment is not None:
        payments = [p for p in payments if p.apartment_number == apartment]
    return {"items": [p.to_dict() for p in payments], "count": len(payments)}


@finance_bp.post("/payments")
@require_auth
@require_role("admin")
def create_payment_route():
    payload = request.get_json(silent=True) or {}
    try:
        values = validate_payload(model=Payment, payload=payload, policy=PAYMENT_POLICY, partial=False)
        created = finance_service.create_payment(get_provider(), values)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    return created.to_dict(), 201


@finance_bp.route("/payments/<payment_id>", methods=["PUT", "PATCH"])
@require_auth
@require_role("admin")
def update_payment_route(payment_id: str):
    payload = request.get_json(silent=True) or {}
    payload.pop("id", None)
    try:
        values = validate_payload(model=Payment, payload=payload, policy=PAYMENT_POLICY, partial=True)
        updated = finance_service.update_payment(get_provider(), payment_id, values)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFound:
        return {"error": "Payment not found"}, 404
    return updated.to_dict(), 200


@finance_bp.delete("/payments/<payment_id>")
@require_auth
@require_role("admin")
def delete_payment_route(payment_id: str):
    try:
        finance_service.delete_record(get_provider().payments, payment_id)
    except NotFound:
        return {"error": "Payment not found"}, 404
    return {"ok": True}, 200


# ---------------------------------------------------------------------------
# Expenses
# ---------------------------------------------------------------------------


@finance_bp.get("/expenses")
@require_auth
def list_expenses():
    try:
        month, year = _period_args()
    except ValidationError as e:
        return {"error": str(e)}, 400
    category = (request.args.get("category") or "").strip()

    expenses = finance_service.filter_by_period(get_provider().expenses.list(), month, year)
    if category:
        expenses = [e for e in expenses if e.category == category]
    return {"items": [e.to_dict() for e in expenses], "count": len(expenses)}


@finance_bp.post("/expenses")
@require_auth
@require_role("admin")
def create_expense_route():
    payload = request.get_json(silent=True) or {}
    try:
        values = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=False)
        created = finance_service.create_expense(get_provider(), values)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    return created.to_dict(), 201


@finance_bp.route("/expenses/<expense_id>", methods=["PUT", "PATCH"])
@require_auth
@require_role("admin")
def update_expense_route(expense_id: str):
    payload = request.get_json(silent=True) or {}
    payload.pop("id", None)
    try:
        values = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=True)
        updated = finance_service.update_expense(get_provider(), expense_id, values)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFound:
        return {"error": "Expense not found"}, 404
    return updated.to_dict(), 200


@finance_bp.delete("/expenses/<expense_id>")
@require_auth
@require_role("admin")
def delete_expense_route(expense_id: str):
    try:
        finance_service.delete_record(get_provider().expenses, expense_id)
    except NotFound:
        return {"error": "Expense not found"}, 404
    return {"ok": True}, 200
