"""
Financial period aggregation tests.
"""

import pytest
from datetime import date
from decimal import Decimal

from facil.errors import NotFound, ValidationError
from facil.records import ExpenseRecord, PaymentRecord
from facil.services import finance_service
from facil.services.finance_service import (
    compute_delinquency,
    compute_income_expense_balance,
    effective_period,
    expenses_by_category,
    filter_by_period,
)


def _payment(pid, apartment, amount, on, month=None, year=None):
    return PaymentRecord(id=pid, apartment_number=apartment, amount=Decimal(amount), date=on, month=month, year=year)


def _expense(eid, amount, category, on):
    return ExpenseRecord(id=eid, description=eid, amount=Decimal(amount), category=category, date=on)


class TestFilterByPeriod:
    def test_stored_month_wins_over_date(self):
        # Paid on April 2nd for the March bill
        late = _payment("a", 1, "500", date(2024, 4, 2), month=3, year=2024)
        derived = _payment("b", 2, "500", date(2024, 3, 15))
        other = _payment("c", 3, "500", date(2024, 4, 1))

        result = filter_by_period([late, derived, other], 3, 2024)

        assert [p.id for p in result] == ["a", "b"]

    def test_dimensions_are_resolved_independently(self):
        only_month = _payment("a", 1, "1", date(2023, 7, 1), month=3)
        assert effective_period(only_month) == (3, 2023)
        assert filter_by_period([only_month], 3, 2023) == [only_month]
        assert filter_by_period([only_month], 3, 2024) == []

    def test_none_matches_everything(self):
        records = [_payment("a", 1, "1", date(2023, 1, 1)), _payment("b", 1, "1", date(2024, 6, 1))]

        assert filter_by_period(records, None, None) == records
        assert [p.id for p in filter_by_period(records, None, 2024)] == ["b"]
        assert [p.id for p in filter_by_period(records, 1, None)] == ["a"]

    def test_expenses_use_their_date(self):
        expense = _expense("e", "10", "Luz", date(2024, 3, 31))
        assert filter_by_period([expense], 3, 2024) == [expense]


class TestDelinquency:
    def test_two_apartments_one_paid(self):
        payments = [
            _payment("a", 1, "500", date(2024, 3, 5), month=3, year=2024),
            _payment("b", 2, "500", date(2024, 2, 5), month=2, year=2024),
        ]

        result = compute_delinquency(payments, [1, 2], 3, 2024)

        assert result.paid_count == 1
        assert result.delinquent_count == 1
        assert result.paid_apartments == (1,)
        assert result.delinquent_apartments == (2,)

    def test_multiple_payments_count_once(self):
        payments = [
            _payment("a", 1, "250", date(2024, 3, 5)),
            _payment("b", 1, "250", date(2024, 3, 20)),
        ]
        assert compute_delinquency(payments, [1, 2, 3], 3, 2024).paid_count == 1

    def test_payments_outside_roster_are_ignored(self):
        payments = [
            _payment("a", 7, "500", date(2024, 3, 5)),
            _payment("b", 8, "500", date(2024, 3, 5)),
        ]
        result = compute_delinquency(payments, [1], 3, 2024)

        assert result.paid_count == 0
        assert result.delinquent_count == 1

    def test_empty_roster(self):
        result = compute_delinquency([], [], None, None)
        assert result.to_dict()["delinquent_count"] == 0


class TestBalance:
    def test_income_expense_balance(self):
        payments = [
            _payment("a", 1, "500.00", date(2024, 3, 5)),
            _payment("b", 2, "499.99", date(2024, 3, 6)),
            _payment("c", 2, "100.00", date(2024, 2, 6)),
        ]
        expenses = [
            _expense("e1", "350.00", "Jardinagem", date(2024, 3, 10)),
            _expense("e2", "600.10", "Eletricidade", date(2024, 3, 11)),
        ]

        result = compute_income_expense_balance(payments, expenses, 3, 2024)

        assert result.income == Decimal("999.99")
        assert result.expense == Decimal("950.10")
        assert result.balance == Decimal("49.89")
        assert result.to_dict() == {"income": "999.99", "expense": "950.10", "balance": "49.89"}

    def test_empty_period(self):
        result = compute_income_expense_balance([], [], 1, 1999)
        assert result.to_dict() == {"income": "0.00", "expense": "0.00", "balance": "0.00"}

    def test_negative_balance(self):
        result = compute_income_expense_balance([], [_expense("e", "10.50", "X", date(2024, 1, 1))], None, None)
        assert result.balance == Decimal("-10.50")

    def test_expenses_by_category_largest_first(self):
        expenses = [
            _expense("e1", "100", "Limpeza", date(2024, 3, 1)),
            _expense("e2", "600", "Eletricidade", date(2024, 3, 2)),
            _expense("e3", "50", "Limpeza", date(2024, 3, 3)),
            _expense("e4", "999", "Limpeza", date(2024, 4, 3)),
        ]
        assert expenses_by_category(expenses, 3, 2024) == [
            {"category": "Eletricidade", "total": "600.00"},
            {"category": "Limpeza", "total": "150.00"},
        ]


class TestPeriodSummary:
    def test_roster_from_residents(self, provider, condo):
        summary = finance_service.period_summary(provider, 3, 2024)

        assert summary["delinquency"]["total_apartments"] == 2
        assert summary["delinquency"]["paid_count"] == 1
        assert summary["delinquency"]["delinquent_apartments"] == [2]
        assert summary["totals"] == {"income": "500.00", "expense": "950.00", "balance": "-450.00"}
        assert summary["expenses_by_category"][0]["category"] == "Eletricidade"

    def test_configured_roster(self, provider, condo):
        summary = finance_service.period_summary(provider, 3, 2024, roster=[1, 2, 3, 4])
        assert summary["delinquency"]["delinquent_count"] == 3


class TestRecordMaintenance:
    def test_payment_period_defaults_to_date(self, provider):
        payment = finance_service.create_payment(
            provider, {"apartment_number": 3, "amount": Decimal("120.5"), "date": date(2024, 5, 31)}
        )
        assert (payment.month, payment.year) == (5, 2024)
        assert payment.amount == Decimal("120.50")

    def test_moving_payment_date_moves_its_period(self, provider):
        payment = finance_service.create_payment(
            provider, {"apartment_number": 3, "amount": Decimal("100"), "date": date(2024, 3, 5)}
        )

        updated = finance_service.update_payment(provider, payment.id, {"date": date(2024, 5, 10)})

        assert (updated.month, updated.year) == (5, 2024)
        assert finance_service.filter_by_period([updated], 5, 2024) == [updated]
        assert finance_service.filter_by_period([updated], 3, 2024) == []

    def test_explicit_period_wins_over_new_date(self, provider):
        payment = finance_service.create_payment(
            provider, {"apartment_number": 3, "amount": Decimal("100"), "date": date(2024, 3, 5)}
        )

        updated = finance_service.update_payment(
            provider, payment.id, {"date": date(2024, 5, 10), "month": 4}
        )

        assert (updated.month, updated.year) == (4, 2024)

    def test_payment_month_range(self, provider):
        with pytest.raises(ValidationError):
            finance_service.create_payment(
                provider, {"apartment_number": 3, "amount": 1, "date": date(2024, 5, 31), "month": 13}
            )

    def test_negative_expense(self, provider):
        with pytest.raises(ValidationError):
            finance_service.create_expense(
                provider, {"description": "x", "amount": Decimal("-1"), "category": "c", "date": date(2024, 1, 1)}
            )

    def test_update_and_delete(self, provider, condo):
        updated = finance_service.update_expense(provider, "e1", {"amount": Decimal("300")})
        assert updated.amount == Decimal("300.00")

        finance_service.delete_record(provider.expenses, "e1")
        with pytest.raises(NotFound):
            finance_service.delete_record(provider.expenses, "e1")
        with pytest.raises(NotFound):
            finance_service.update_payment(provider, "missing", {"amount": 1})
