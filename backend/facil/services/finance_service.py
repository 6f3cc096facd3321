# Overview: Financial period aggregator for the condominium dashboard.

"""
Period semantics

A record's effective month/year is its stored month/year when present and
otherwise the month/year of its date, decided per dimension. Months are
1-12. A None filter value matches every record on that dimension.

Amounts are Decimals kept at 2 places (half-up); nothing is rounded further.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Iterable, Sequence

from ..errors import NotFound
from ..records import ExpenseRecord, PaymentRecord, ResidentRecord, new_id, to_money
from ..validation import enforce_rules_expense, enforce_rules_payment

ZERO = Decimal("0.00")


def effective_period(record) -> tuple[int | None, int | None]:
    """(month, year) of a payment or expense, preferring stored fields."""
    month = getattr(record, "month", None)
    year = getattr(record, "year", None)
    record_date = getattr(record, "date", None)
    if month is None and record_date is not None:
        month = record_date.month
    if year is None and record_date is not None:
        year = record_date.year
    return month, year


def filter_by_period(records: Iterable, month: int | None, year: int | None) -> list:
    out = []
    for record in records:
        rec_month, rec_year = effective_period(record)
        if month is not None and rec_month != month:
            continue
        if year is not None and rec_year != year:
            continue
        out.append(record)
    return out


@dataclass(frozen=True)
class Delinquency:
    total_apartments: int
    paid_apartments: tuple[int, ...]
    delinquent_apartments: tuple[int, ...]

    @property
    def paid_count(self) -> int:
        return len(self.paid_apartments)

    @property
    def delinquent_count(self) -> int:
        return len(self.delinquent_apartments)

    def to_dict(self) -> dict:
        return {
            "total_apartments": self.total_apartments,
            "paid_count": self.paid_count,
            "delinquent_count": self.delinquent_count,
            "paid_apartments": list(self.paid_apartments),
            "delinquent_apartments": list(self.delinquent_apartments),
        }


def compute_delinquency(
    payments: Iterable[PaymentRecord],
    roster: Sequence[int],
    month: int | None,
    year: int | None,
) -> Delinquency:
    """
    Apartments of the roster with / without a payment in the period.

    Payments for apartments outside the roster are ignored, so the
    delinquent count can never go negative.
    """
    apartments = sorted(set(roster))
    in_roster = set(apartments)
    paid = {
        p.apartment_number
        for p in filter_by_period(payments, month, year)
        if p.apartment_number in in_roster
    }
    return Delinquency(
        total_apartments=len(apartments),
        paid_apartments=tuple(a for a in apartments if a in paid),
        delinquent_apartments=tuple(a for a in apartments if a not in paid),
    )


@dataclass(frozen=True)
class Balance:
    income: Decimal
    expense: Decimal

    @property
    def balance(self) -> Decimal:
        return to_money(self.income - self.expense)

    def to_dict(self) -> dict:
        return {
            "income": str(self.income),
            "expense": str(self.expense),
            "balance": str(self.balance),
        }


def _sum(records) -> Decimal:
    return to_money(sum((r.amount for r in records), ZERO))


def compute_income_expense_balance(
    payments: Iterable[PaymentRecord],
    expenses: Iterable[ExpenseRecord],
    month: int | None,
    year: int | None,
) -> Balance:
    return Balance(
        income=_sum(filter_by_period(payments, month, year)),
        expense=_sum(filter_by_period(expenses, month, year)),
    )


def expenses_by_category(expenses: Iterable[ExpenseRecord], month: int | None, year: int | None) -> list[dict]:
    """Category totals for the period, largest first (ties by name)."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for expense in filter_by_period(expenses, month, year):
        totals[expense.category] += expense.amount
    ordered = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [{"category": name, "total": str(to_money(total))} for name, total in ordered]


def apartment_roster(residents: Iterable[ResidentRecord], configured: Sequence[int] | None = None) -> list[int]:
    """Configured roster when set, otherwise every apartment with a resident."""
    if configured:
        return sorted(set(configured))
    return sorted({r.apartment_number for r in residents})


def period_summary(provider, month: int | None, year: int | None, roster: Sequence[int] | None = None) -> dict:
    payments = provider.payments.list()
    expenses = provider.expenses.list()
    if roster is None:
        roster = apartment_roster(provider.residents.list())

    return {
        "month": month,
        "year": year,
        "delinquency": compute_delinquency(payments, roster, month, year).to_dict(),
        "totals": compute_income_expense_balance(payments, expenses, month, year).to_dict(),
        "expenses_by_category": expenses_by_category(expenses, month, year),
    }


# ---------------------------------------------------------------------------
# Record maintenance
# ---------------------------------------------------------------------------


def create_payment(provider, values: dict) -> PaymentRecord:
    """month/year default to the payment date's month/year."""
    values = dict(values)
    enforce_rules_payment(values)
    payment = PaymentRecord(
        id=values.pop("id", None) or new_id(),
        apartment_number=values["apartment_number"],
        amount=to_money(values["amount"]),
        date=values["date"],
        month=values.get("month") or values["date"].month,
        year=values.get("year") or values["date"].year,
    )
    return provider.payments.insert(payment)


def update_payment(provider, payment_id: str, patch: dict) -> PaymentRecord:
    payment = provider.payments.get(payment_id)
    if payment is None:
        raise NotFound("payment", payment_id)
    patch = {k: v for k, v in patch.items() if k != "id"}
    enforce_rules_payment(patch)
    if "amount" in patch:
        patch["amount"] = to_money(patch["amount"])
    if patch.get("date") is not None:
        # A moved payment follows its new date unless the period is given
        patch.setdefault("month", patch["date"].month)
        patch.setdefault("year", patch["date"].year)
    return provider.payments.update(replace(payment, **patch))


def create_expense(provider, values: dict) -> ExpenseRecord:
    values = dict(values)
    enforce_rules_expense(values)
    expense = ExpenseRecord(
        id=values.pop("id", None) or new_id(),
        description=values["description"],
        amount=to_money(values["amount"]),
        category=values["category"],
        date=values["date"],
    )
    return provider.expenses.insert(expense)


def update_expense(provider, expense_id: str, patch: dict) -> ExpenseRecord:
    expense = provider.expenses.get(expense_id)
    if expense is None:
        raise NotFound("expense", expense_id)
    patch = {k: v for k, v in patch.items() if k != "id"}
    enforce_rules_expense(patch)
    if "amount" in patch:
        patch["amount"] = to_money(patch["amount"])
    return provider.expenses.update(replace(expense, **patch))


def create_resident(provider, values: dict) -> ResidentRecord:
    values = dict(values)
    resident = ResidentRecord(
        id=values.pop("id", None) or new_id(),
        owner_name=values["owner_name"],
        apartment_number=values["apartment_number"],
        tenant_name=values.get("tenant_name"),
    )
    return provider.residents.insert(resident)


def update_resident(provider, resident_id: str, patch: dict) -> ResidentRecord:
    resident = provider.residents.get(resident_id)
    if resident is None:
        raise NotFound("resident", resident_id)
    patch = {k: v for k, v in patch.items() if k != "id"}
    return provider.residents.update(replace(resident, **patch))


def delete_record(store, record_id: str) -> None:
    if not store.delete(record_id):
        raise NotFound(store.kind, record_id)
