"""
Inventory ledger tests: outputs, referential delete guards and code lookup.
"""

import pytest
from datetime import datetime
from decimal import Decimal

from facil.errors import (
    ConflictError,
    DuplicateIdentifier,
    InsufficientStock,
    NotFound,
    ReferentialIntegrityViolation,
    StaleStock,
    ValidationError,
)
from facil.models import OutputLog
from facil.records import OutputLogRecord, PersonRecord, ProductRecord
from facil.services import inventory_service
from facil.services.inventory_service import FOUND, OUT_OF_STOCK, find_by_code


class TestRecordOutput:
    def test_decrements_and_appends_one_log(self, provider, stocked):
        log = inventory_service.record_output(provider, "p1", "u1", 3)

        assert provider.products.get("p1").quantity == 2
        logs = provider.output_logs.list()
        assert len(logs) == 1
        assert logs[0] == log
        assert log.quantity == 3
        assert log.product_name == "Cabo HDMI"
        assert log.person_name == "Ana"
        assert isinstance(log.timestamp, datetime)

    def test_insufficient_stock_leaves_state_unchanged(self, provider, stocked):
        with pytest.raises(InsufficientStock) as exc:
            inventory_service.record_output(provider, "p1", "u1", 6)

        assert exc.value.available == 5
        assert exc.value.requested == 6
        assert provider.products.get("p1").quantity == 5
        assert provider.output_logs.list() == []

    def test_full_quantity_keeps_product_listed(self, provider, stocked):
        inventory_service.record_output(provider, "p1", "u1", 5)

        products = provider.products.list()
        assert [p.id for p in products] == ["p1"]
        assert products[0].quantity == 0

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", True, None])
    def test_quantity_must_be_positive_integer(self, provider, stocked, quantity):
        with pytest.raises(ValidationError):
            inventory_service.record_output(provider, "p1", "u1", quantity)
        assert provider.products.get("p1").quantity == 5

    def test_unknown_product_or_person(self, provider, stocked):
        with pytest.raises(NotFound):
            inventory_service.record_output(provider, "missing", "u1", 1)
        with pytest.raises(NotFound):
            inventory_service.record_output(provider, "p1", "missing", 1)
        assert provider.output_logs.list() == []

    def test_snapshot_survives_rename(self, provider, stocked):
        inventory_service.record_output(provider, "p1", "u1", 1)
        inventory_service.update_product(provider, "p1", {"name": "Cabo HDMI 2m"})

        assert provider.output_logs.list()[0].product_name == "Cabo HDMI"

    def test_replayed_log_id_is_recorded_once(self, provider, stocked):
        first = inventory_service.record_output(provider, "p1", "u1", 2, log_id="log-1")
        again = inventory_service.record_output(provider, "p1", "u1", 2, log_id="log-1")

        assert again == first
        assert provider.products.get("p1").quantity == 3
        assert len(provider.output_logs.list()) == 1

    def test_stale_stock_is_retried_against_fresh_state(self, provider, stocked, monkeypatch):
        calls = []
        original = provider.record_output

        def flaky(log, new_quantity):
            calls.append(new_quantity)
            if len(calls) == 1:
                raise StaleStock(log.product_id)
            return original(log, new_quantity)

        monkeypatch.setattr(provider, "record_output", flaky)
        inventory_service.record_output(provider, "p1", "u1", 1)

        assert calls == [4, 4]
        assert provider.products.get("p1").quantity == 4

    def test_compare_and_set_rejects_stale_quantity(self, provider, stocked):
        log = OutputLogRecord(
            id="manual", product_id="p1", person_id="u1", quantity=1,
            timestamp=datetime(2024, 3, 1, 12, 0), product_name="Cabo HDMI", person_name="Ana",
        )
        # Caller believed there were 10 units
        with pytest.raises(StaleStock):
            provider.record_output(log, 9)

        assert provider.products.get("p1").quantity == 5
        assert provider.output_logs.list() == []

    def test_failed_log_insert_rolls_back_decrement(self, provider, stocked, monkeypatch):
        original = OutputLog.from_record

        def invalid_row(record):
            row = original(record)
            row.quantity = 0  # violates ck_output_logs_quantity_positive
            return row

        monkeypatch.setattr(OutputLog, "from_record", invalid_row)
        log = OutputLogRecord(
            id="broken", product_id="p1", person_id="u1", quantity=2,
            timestamp=datetime(2024, 3, 1, 12, 0), product_name="Cabo HDMI", person_name="Ana",
        )

        with pytest.raises(ConflictError):
            provider.record_output(log, 3)

        assert provider.products.get("p1").quantity == 5
        assert provider.output_logs.list() == []

    def test_logs_are_append_only(self, provider, stocked):
        log = inventory_service.record_output(provider, "p1", "u1", 1)
        with pytest.raises(ConflictError):
            provider.output_logs.delete(log.id)
        with pytest.raises(ConflictError):
            provider.output_logs.update(log)

    def test_list_outputs_filters(self, provider, stocked):
        provider.people.insert(PersonRecord(id="u2", name="Bruno"))
        inventory_service.record_output(provider, "p1", "u1", 1)
        inventory_service.record_output(provider, "p1", "u2", 1)

        assert len(inventory_service.list_outputs(provider)) == 2
        assert [l.person_id for l in inventory_service.list_outputs(provider, person_id="u2")] == ["u2"]


class TestDeleteGuards:
    def test_referenced_product_and_person_cannot_be_deleted(self, provider, stocked):
        inventory_service.record_output(provider, "p1", "u1", 1)

        with pytest.raises(ReferentialIntegrityViolation):
            inventory_service.delete_product(provider, "p1")
        with pytest.raises(ReferentialIntegrityViolation):
            inventory_service.delete_person(provider, "u1")

        assert provider.products.get("p1") is not None
        assert provider.people.get("u1") is not None

    def test_unreferenced_entities_are_deleted(self, provider, stocked):
        inventory_service.delete_product(provider, "p1")
        inventory_service.delete_person(provider, "u1")

        assert provider.products.get("p1") is None
        assert provider.people.get("u1") is None

    def test_delete_missing(self, provider):
        with pytest.raises(NotFound):
            inventory_service.delete_product(provider, "nope")
        with pytest.raises(NotFound):
            inventory_service.delete_person(provider, "nope")


class TestProductMaintenance:
    def test_create_generates_id_and_normalizes_price(self, provider):
        product = inventory_service.create_product(provider, {"sku": " AB-1 ", "name": "Mouse", "price": Decimal("19.9")})

        assert product.id
        assert product.sku == "AB-1"
        assert product.quantity == 0
        assert product.price == Decimal("19.90")

    def test_duplicate_sku(self, provider, stocked):
        with pytest.raises(DuplicateIdentifier) as exc:
            inventory_service.create_product(provider, {"sku": "X1", "name": "Other"})
        assert exc.value.field == "sku"

        other = inventory_service.create_product(provider, {"sku": "X2", "name": "Other"})
        with pytest.raises(DuplicateIdentifier):
            inventory_service.update_product(provider, other.id, {"sku": "X1"})

    def test_negative_quantity_rejected(self, provider, stocked):
        with pytest.raises(ValidationError):
            inventory_service.update_product(provider, "p1", {"quantity": -1})

    def test_update_missing_product(self, provider):
        with pytest.raises(NotFound):
            inventory_service.update_product(provider, "nope", {"name": "x"})


def _product(pid, sku, serial=None, tag=None, quantity=1):
    return ProductRecord(id=pid, sku=sku, name=f"Product {pid}", quantity=quantity, serial_number=serial, asset_tag=tag)


class TestLookup:
    def test_sku_match_on_first_product_wins(self):
        products = [_product("a", "ABC"), _product("b", "S2", serial="abc")]
        assert find_by_code(products, "abc").product.id == "a"

    def test_sku_wins_over_serial_of_earlier_product(self):
        products = [
            _product("a", "ZZZ", serial="ABC"),
            _product("b", "abc"),
        ]
        result = find_by_code(products, "ABC")

        assert result.product.id == "b"
        assert result.matched_field == "sku"

    def test_serial_then_asset_tag(self):
        products = [
            _product("a", "S1", tag="T-9"),
            _product("b", "S2", serial="t-9"),
        ]
        result = find_by_code(products, "T-9")

        assert result.product.id == "b"
        assert result.matched_field == "serial_number"

    def test_first_product_in_list_order_wins_within_field(self):
        products = [_product("a", "S1", tag="TAG"), _product("b", "S2", tag="TAG")]
        assert find_by_code(products, "tag").product.id == "a"

    def test_trimmed_and_case_insensitive(self):
        result = find_by_code([_product("a", "Ab-12")], "  aB-12 ")
        assert result.status == FOUND
        assert "warning" not in result.to_dict()

    def test_out_of_stock_is_a_warning(self):
        result = find_by_code([_product("a", "S1", quantity=0)], "S1")

        assert result.status == OUT_OF_STOCK
        assert result.out_of_stock
        assert "out of stock" in result.to_dict()["warning"]

    def test_no_match(self):
        with pytest.raises(NotFound):
            find_by_code([_product("a", "S1")], "S2")

    def test_blank_code(self):
        with pytest.raises(ValidationError):
            find_by_code([_product("a", "S1")], "   ")

    def test_lookup_against_provider(self, provider, stocked):
        result = inventory_service.lookup_by_code(provider, "x1")
        assert result.product.id == "p1"
        assert result.status == FOUND
