# Overview: Hosted persistence provider speaking to a PostgREST-compatible backend.

"""
Hosted backend provider.

Tables are exposed at {BACKEND_URL}/rest/v1/<table> with the usual
PostgREST filter syntax (?id=eq.<id>). Authentication uses the project API
key in both the apikey and Authorization headers.

record_output() calls the record_output(p_log jsonb, p_new_quantity int)
database function. The function is expected to update the product with the
same compare-and-set the local provider uses and insert the log in one
transaction, raising 'stale_stock' when the compare fails and returning the
existing row when p_log.id is already present.
"""
from __future__ import annotations

import httpx

from ..errors import ConflictError, DuplicateIdentifier, NotFound, ProviderError, StaleStock
from ..records import (
    ExpenseRecord,
    OutputLogRecord,
    PaymentRecord,
    PersonRecord,
    ProductRecord,
    ResidentRecord,
    UserRecord,
)
from .base import EntityStore, PersistenceProvider

RETURN_REPRESENTATION = {"Prefer": "return=representation"}

# PostgreSQL unique_violation
UNIQUE_VIOLATION = "23505"
# PL/pgSQL RAISE EXCEPTION default
RAISED_EXCEPTION = "P0001"


def _quote(value: str) -> str:
    """Quote a value for use inside a PostgREST or=(...) filter."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class RestEntityStore(EntityStore):
    def __init__(self, provider: "RestPersistenceProvider", table: str, record_cls, kind: str, order: str | None = None):
        self.provider = provider
        self.table = table
        self.record_cls = record_cls
        self.kind = kind
        self.order = order

    @property
    def path(self) -> str:
        return f"/{self.table}"

    def list(self):
        params = {"select": "*"}
        if self.order:
            params["order"] = self.order
        rows = self.provider.request("GET", self.path, params=params)
        return [self.record_cls.from_row(row) for row in rows]

    def get(self, record_id: str):
        rows = self.provider.request(
            "GET", self.path, params={"select": "*", "id": f"eq.{record_id}", "limit": "1"}
        )
        return self.record_cls.from_row(rows[0]) if rows else None

    def insert(self, record):
        rows = self.provider.request(
            "POST", self.path, json=record.to_json_row(), headers=RETURN_REPRESENTATION
        )
        return self.record_cls.from_row(rows[0]) if rows else record

    def update(self, record):
        body = record.to_json_row()
        body.pop("id", None)
        rows = self.provider.request(
            "PATCH",
            self.path,
            params={"id": f"eq.{record.id}"},
            json=body,
            headers=RETURN_REPRESENTATION,
        )
        if not rows:
            raise NotFound(self.kind, record.id)
        return self.record_cls.from_row(rows[0])

    def delete(self, record_id: str) -> bool:
        rows = self.provider.request(
            "DELETE", self.path, params={"id": f"eq.{record_id}"}, headers=RETURN_REPRESENTATION
        )
        return bool(rows)


class RestOutputLogStore(RestEntityStore):
    def insert(self, record):
        raise ConflictError("output logs are appended through record_output()")

    def update(self, record):
        raise ConflictError("output logs are immutable")

    def delete(self, record_id: str) -> bool:
        raise ConflictError("output logs are immutable")


class RestPersistenceProvider(PersistenceProvider):
    name = "hosted"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.client = httpx.Client(
            base_url=base_url.rstrip("/") + "/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )
        self.products = RestEntityStore(self, "products", ProductRecord, "product", "name.asc")
        self.people = RestEntityStore(self, "people", PersonRecord, "person", "name.asc")
        self.output_logs = RestOutputLogStore(self, "output_logs", OutputLogRecord, "output log", "timestamp.desc")
        self.users = RestEntityStore(self, "users", UserRecord, "user", "username.asc")
        self.residents = RestEntityStore(self, "residents", ResidentRecord, "resident", "apartment_number.asc")
        self.payments = RestEntityStore(self, "payments", PaymentRecord, "payment", "date.desc")
        self.expenses = RestEntityStore(self, "expenses", ExpenseRecord, "expense", "date.desc")

    def request(self, method: str, path: str, *, params=None, json=None, headers=None):
        try:
            resp = self.client.request(method, path, params=params, json=json, headers=headers)
        except httpx.HTTPError as exc:
            raise ProviderError(f"hosted backend unreachable: {exc}") from exc

        if resp.status_code >= 400:
            self._raise_for(resp)
        if resp.status_code == 204 or not resp.content:
            return []
        data = resp.json()
        if isinstance(data, dict):
            return [data]
        return data

    @staticmethod
    def _raise_for(resp: httpx.Response):
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        code = body.get("code")
        message = body.get("message") or resp.text or resp.reason_phrase
        details = " ".join(str(body.get(k) or "") for k in ("message", "details", "hint")).lower()

        if code == UNIQUE_VIOLATION or (code is None and resp.status_code == 409 and "unique" in details):
            for field in ("sku", "username", "email"):
                if field in details:
                    raise DuplicateIdentifier(field)
            raise DuplicateIdentifier("id")
        if resp.status_code == 409:
            raise ConflictError(f"constraint violated: {message}")

        raise ProviderError(
            f"hosted backend error {resp.status_code}: {message}",
            status=resp.status_code,
            code=code,
        )

    def find_user(self, identifier: str) -> UserRecord | None:
        quoted = _quote(identifier)
        rows = self.request(
            "GET",
            "/users",
            params={
                "select": "*",
                "or": f"(username.eq.{quoted},email.eq.{quoted})",
                "limit": "1",
            },
        )
        return UserRecord.from_row(rows[0]) if rows else None

    def record_output(self, log: OutputLogRecord, new_quantity: int) -> OutputLogRecord:
        try:
            rows = self.request(
                "POST",
                "/rpc/record_output",
                json={"p_log": log.to_json_row(), "p_new_quantity": new_quantity},
            )
        except ProviderError as exc:
            if exc.code == RAISED_EXCEPTION and "stale_stock" in str(exc):
                raise StaleStock(log.product_id) from exc
            raise
        return OutputLogRecord.from_row(rows[0]) if rows else log

    def close(self) -> None:
        self.client.close()
