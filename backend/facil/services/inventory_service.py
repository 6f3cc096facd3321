# Overview: Inventory ledger: product/person maintenance, stock outputs and code lookup.

"""
Inventory Invariants

- Product.quantity is never negative and SKUs are unique across products.
- An output decrements the product and appends exactly one OutputLog in a
  single provider call; the log carries name snapshots taken at that moment.
- Output logs are append-only. Products and people referenced by any log
  cannot be deleted; that check runs here, before the delete is issued,
  because the stores do not enforce it.
- A product whose quantity reaches 0 stays listed.

Every function takes the provider explicitly and returns fresh records;
callers re-read collections after a mutation.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from ..errors import (
    DuplicateIdentifier,
    InsufficientStock,
    NotFound,
    ReferentialIntegrityViolation,
    ValidationError,
)
from ..providers.base import PersistenceProvider
from ..records import OutputLogRecord, PersonRecord, ProductRecord, new_id, to_money
from ..time_utils import utcnow
from ..validation import enforce_rules_person, enforce_rules_product
from .concurrency import run_with_retry

FOUND = "FOUND"
OUT_OF_STOCK = "OUT_OF_STOCK"

# Order in which scanned codes are matched against product fields
LOOKUP_FIELDS = ("sku", "serial_number", "asset_tag")


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


def _ensure_sku_free(provider: PersistenceProvider, sku: str, product_id: str | None) -> None:
    for product in provider.products.list():
        if product.sku == sku and product.id != product_id:
            raise DuplicateIdentifier("sku", sku)


def create_product(provider: PersistenceProvider, values: dict) -> ProductRecord:
    """
    Create a product from validated values. The id is generated unless the
    client supplied one.
    """
    values = dict(values)
    enforce_rules_product({"sku": values.get("sku"), "name": values.get("name"), **values})
    product_id = values.pop("id", None) or new_id()

    product = ProductRecord(
        id=product_id,
        sku=values.pop("sku").strip(),
        name=values.pop("name").strip(),
        quantity=values.pop("quantity", 0) or 0,
        price=to_money(values.pop("price", 0) or 0),
        **values,
    )
    if provider.products.get(product.id) is not None:
        raise DuplicateIdentifier("id", product.id)
    _ensure_sku_free(provider, product.sku, None)
    return provider.products.insert(product)


def update_product(provider: PersistenceProvider, product_id: str, patch: dict) -> ProductRecord:
    product = provider.products.get(product_id)
    if product is None:
        raise NotFound("product", product_id)

    patch = {k: v for k, v in patch.items() if k != "id"}
    enforce_rules_product(patch)
    if "price" in patch:
        patch["price"] = to_money(patch["price"] or 0)

    updated = replace(product, **patch)
    if updated.sku != product.sku:
        _ensure_sku_free(provider, updated.sku, product.id)
    return provider.products.update(updated)


def delete_product(provider: PersistenceProvider, product_id: str) -> None:
    if provider.products.get(product_id) is None:
        raise NotFound("product", product_id)
    if any(log.product_id == product_id for log in provider.output_logs.list()):
        raise ReferentialIntegrityViolation("product", product_id)
    provider.products.delete(product_id)


# ---------------------------------------------------------------------------
# People
# ---------------------------------------------------------------------------


def create_person(provider: PersistenceProvider, values: dict) -> PersonRecord:
    values = dict(values)
    enforce_rules_person({"name": values.get("name"), **values})
    person = PersonRecord(
        id=values.pop("id", None) or new_id(),
        name=values.pop("name").strip(),
        **values,
    )
    if provider.people.get(person.id) is not None:
        raise DuplicateIdentifier("id", person.id)
    return provider.people.insert(person)


def update_person(provider: PersistenceProvider, person_id: str, patch: dict) -> PersonRecord:
    person = provider.people.get(person_id)
    if person is None:
        raise NotFound("person", person_id)
    patch = {k: v for k, v in patch.items() if k != "id"}
    enforce_rules_person(patch)
    return provider.people.update(replace(person, **patch))


def delete_person(provider: PersistenceProvider, person_id: str) -> None:
    if provider.people.get(person_id) is None:
        raise NotFound("person", person_id)
    if any(log.person_id == person_id for log in provider.output_logs.list()):
        raise ReferentialIntegrityViolation("person", person_id)
    provider.people.delete(person_id)


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


def record_output(
    provider: PersistenceProvider,
    product_id: str,
    person_id: str,
    quantity: int,
    *,
    log_id: str | None = None,
    occurred_at: datetime | None = None,
    attempts: int = 3,
) -> OutputLogRecord:
    """
    Withdraw quantity units of a product on behalf of a person.

    Raises:
        ValidationError: quantity is not a positive integer
        NotFound: unknown product or person
        InsufficientStock: quantity exceeds the product's current stock

    log_id doubles as an idempotency key: submitting the same id twice
    records the output once. When another writer changes the stock between
    our read and write, the whole read-validate-write is retried.
    """
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise ValidationError("quantity must be a positive integer")

    replay_key = log_id
    log_id = log_id or new_id()
    timestamp = occurred_at or utcnow()

    def _attempt() -> OutputLogRecord:
        if replay_key is not None:
            existing = provider.output_logs.get(replay_key)
            if existing is not None:
                return existing

        product = provider.products.get(product_id)
        if product is None:
            raise NotFound("product", product_id)
        person = provider.people.get(person_id)
        if person is None:
            raise NotFound("person", person_id)

        if quantity > product.quantity:
            raise InsufficientStock(product.name, product.quantity, quantity)

        log = OutputLogRecord(
            id=log_id,
            product_id=product.id,
            person_id=person.id,
            quantity=quantity,
            timestamp=timestamp,
            product_name=product.name,
            person_name=person.name,
        )
        return provider.record_output(log, product.quantity - quantity)

    return run_with_retry(_attempt, attempts=attempts)


def list_outputs(provider: PersistenceProvider, *, product_id: str | None = None, person_id: str | None = None) -> list[OutputLogRecord]:
    logs = provider.output_logs.list()
    if product_id is not None:
        logs = [log for log in logs if log.product_id == product_id]
    if person_id is not None:
        logs = [log for log in logs if log.person_id == person_id]
    return logs


# ---------------------------------------------------------------------------
# Code lookup
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LookupResult:
    product: ProductRecord
    status: str
    matched_field: str

    @property
    def out_of_stock(self) -> bool:
        return self.status == OUT_OF_STOCK

    def to_dict(self) -> dict:
        data = {
            "product": self.product.to_dict(),
            "status": self.status,
            "matched_field": self.matched_field,
        }
        if self.out_of_stock:
            data["warning"] = f'Product "{self.product.name}" found, but it is out of stock'
        return data


def find_by_code(products: list[ProductRecord], code: str) -> LookupResult:
    """
    Resolve a scanned or typed code.

    Case-insensitive match on sku, then serial_number, then asset_tag: a
    product matching on an earlier field wins over one matching on a later
    field, and within a field the first product in list order wins.
    """
    needle = (code or "").strip().lower()
    if not needle:
        raise ValidationError("code is required")

    for field in LOOKUP_FIELDS:
        for product in products:
            value = getattr(product, field)
            if value and value.strip().lower() == needle:
                status = OUT_OF_STOCK if product.quantity == 0 else FOUND
                return LookupResult(product=product, status=status, matched_field=field)

    raise NotFound("product with code", code.strip())


def lookup_by_code(provider: PersistenceProvider, code: str) -> LookupResult:
    return find_by_code(provider.products.list(), code)
