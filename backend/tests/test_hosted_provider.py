"""
Hosted provider tests against an httpx.MockTransport standing in for the
PostgREST-compatible backend.
"""

import json

import httpx
import pytest
from datetime import datetime
from decimal import Decimal

from facil.errors import ConflictError, DuplicateIdentifier, NotFound, ProviderError, StaleStock
from facil.providers import RestPersistenceProvider, SqlPersistenceProvider, build_provider
from facil.records import OutputLogRecord, ProductRecord


class FakeBackend:
    """Records requests and answers from a route table."""

    def __init__(self):
        self.requests = []
        self.routes = {}

    def on(self, method, path, status=200, body=None):
        self.routes[(method, path)] = (status, body)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.routes.get((request.method, request.url.path), (404, {"message": "no route"}))
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def hosted(backend):
    provider = RestPersistenceProvider(
        "https://example.test", "anon-key", transport=httpx.MockTransport(backend)
    )
    yield provider
    provider.close()


PRODUCT_ROW = {
    "id": "p1", "sku": "X1", "name": "Cabo", "quantity": 5, "price": 35.5,
    "description": None, "serial_number": None, "mac_address": None,
    "asset_tag": None, "image_url": None, "created_at": "2024-03-01T10:00:00Z",
}


class TestSelection:
    def test_hosted_only_with_url_and_key(self):
        assert isinstance(build_provider({"BACKEND_URL": "https://x", "BACKEND_API_KEY": "k"}), RestPersistenceProvider)
        assert isinstance(build_provider({"BACKEND_URL": "https://x"}), SqlPersistenceProvider)
        assert isinstance(build_provider({"BACKEND_API_KEY": "k"}), SqlPersistenceProvider)


class TestRestStores:
    def test_list_maps_rows_to_records(self, hosted, backend):
        backend.on("GET", "/rest/v1/products", body=[PRODUCT_ROW])

        products = hosted.products.list()

        assert products == [ProductRecord(id="p1", sku="X1", name="Cabo", quantity=5, price=Decimal("35.50"))]
        request = backend.requests[0]
        assert request.headers["apikey"] == "anon-key"
        assert request.headers["Authorization"] == "Bearer anon-key"
        assert request.url.params["order"] == "name.asc"

    def test_get_missing(self, hosted, backend):
        backend.on("GET", "/rest/v1/products", body=[])
        assert hosted.products.get("p9") is None
        assert backend.requests[0].url.params["id"] == "eq.p9"

    def test_insert_sends_json_row(self, hosted, backend):
        backend.on("POST", "/rest/v1/products", status=201, body=[PRODUCT_ROW])

        created = hosted.products.insert(ProductRecord(id="p1", sku="X1", name="Cabo", quantity=5, price=Decimal("35.50")))

        sent = json.loads(backend.requests[0].content)
        assert sent["price"] == "35.50"
        assert backend.requests[0].headers["Prefer"] == "return=representation"
        assert created.id == "p1"

    def test_unique_violation(self, hosted, backend):
        backend.on("POST", "/rest/v1/products", status=409, body={
            "code": "23505",
            "message": 'duplicate key value violates unique constraint "uq_products_sku"',
            "details": "Key (sku)=(X1) already exists.",
        })

        with pytest.raises(DuplicateIdentifier) as exc:
            hosted.products.insert(ProductRecord(id="p2", sku="X1", name="Other"))
        assert exc.value.field == "sku"

    def test_foreign_key_violation_is_not_a_duplicate(self, hosted, backend):
        backend.on("POST", "/rest/v1/output_logs", status=409, body={
            "code": "23503",
            "message": 'insert or update on table "output_logs" violates foreign key constraint',
            "details": 'Key (product_id)=(p9) is not present in table "products".',
        })

        with pytest.raises(ConflictError) as exc:
            hosted.request("POST", "/output_logs", json={"id": "l1", "product_id": "p9"})
        assert not isinstance(exc.value, DuplicateIdentifier)

    def test_update_missing_row(self, hosted, backend):
        backend.on("PATCH", "/rest/v1/products", body=[])
        with pytest.raises(NotFound):
            hosted.products.update(ProductRecord(id="p9", sku="X9", name="Ghost"))

    def test_delete_reports_whether_a_row_went_away(self, hosted, backend):
        backend.on("DELETE", "/rest/v1/people", body=[{"id": "u1", "name": "Ana"}])
        assert hosted.people.delete("u1") is True

        backend.on("DELETE", "/rest/v1/people", body=[])
        assert hosted.people.delete("u1") is False

    def test_server_error_becomes_provider_error(self, hosted, backend):
        backend.on("GET", "/rest/v1/expenses", status=500, body={"message": "boom"})
        with pytest.raises(ProviderError) as exc:
            hosted.expenses.list()
        assert exc.value.status == 500

    def test_transport_error_becomes_provider_error(self):
        def unreachable(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = RestPersistenceProvider("https://example.test", "k", transport=httpx.MockTransport(unreachable))
        with pytest.raises(ProviderError):
            provider.products.list()


class TestRestUsersAndOutputs:
    def test_find_user_by_username_or_email(self, hosted, backend):
        backend.on("GET", "/rest/v1/users", body=[{
            "id": "usr-1", "username": None, "email": "admin@condo.com",
            "name": "Admin", "role": "admin", "apartment_number": None, "password": "admin",
        }])

        user = hosted.find_user("admin@condo.com")

        assert user.email == "admin@condo.com"
        assert user.password == "admin"
        assert backend.requests[0].url.params["or"] == '(username.eq."admin@condo.com",email.eq."admin@condo.com")'

    def _log(self):
        return OutputLogRecord(
            id="log-1", product_id="p1", person_id="u1", quantity=2,
            timestamp=datetime(2024, 3, 1, 12, 0), product_name="Cabo", person_name="Ana",
        )

    def test_record_output_calls_rpc(self, hosted, backend):
        log = self._log()
        backend.on("POST", "/rest/v1/rpc/record_output", body=log.to_json_row())

        stored = hosted.record_output(log, 3)

        assert stored == log
        sent = json.loads(backend.requests[0].content)
        assert sent["p_new_quantity"] == 3
        assert sent["p_log"]["timestamp"] == "2024-03-01T12:00:00Z"

    def test_record_output_stale_stock(self, hosted, backend):
        backend.on("POST", "/rest/v1/rpc/record_output", status=400, body={"code": "P0001", "message": "stale_stock"})
        with pytest.raises(StaleStock):
            hosted.record_output(self._log(), 3)

    def test_output_logs_are_append_only(self, hosted):
        with pytest.raises(Exception):
            hosted.output_logs.delete("log-1")
