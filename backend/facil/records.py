# Overview: Immutable records handed out by persistence providers.

"""
Records are the transient, read-only copies the API works with.

Both providers return these dataclasses, so the kernels never see ORM rows or
raw JSON. Callers that need a modified record build a new one with
dataclasses.replace() and hand it back to the provider.

Field names match the column names of the local tables and of the hosted
backend tables, so to_row()/from_row() are the only mapping layer.
"""
from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, fields, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from .time_utils import parse_iso_date, parse_iso_datetime, to_utc_z

CENT = Decimal("0.01")


def new_id() -> str:
    return uuid.uuid4().hex


def to_money(value: Any) -> Decimal:
    """Quantize to 2 places, half-up. Floats go through str() to avoid binary noise."""
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"invalid amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _jsonable(value: Any):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return to_utc_z(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


def _opt_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


class _Record:
    """Shared row mapping; subclasses are frozen dataclasses."""

    # Fields never serialized to API responses
    _private: tuple[str, ...] = ()

    def to_row(self) -> dict:
        return asdict(self)

    @classmethod
    def from_row(cls, row: dict):
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in row.items() if k in names})

    def to_json_row(self) -> dict:
        """Row for the hosted backend: every field, JSON-safe."""
        return {key: _jsonable(value) for key, value in asdict(self).items()}

    def to_dict(self) -> dict:
        return {
            key: _jsonable(value)
            for key, value in asdict(self).items()
            if key not in self._private
        }


@dataclass(frozen=True)
class ProductRecord(_Record):
    id: str
    sku: str
    name: str
    quantity: int = 0
    price: Decimal = Decimal("0.00")
    description: str | None = None
    serial_number: str | None = None
    mac_address: str | None = None
    asset_tag: str | None = None
    image_url: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> "ProductRecord":
        rec = super().from_row(row)
        return replace(rec, quantity=int(rec.quantity or 0), price=to_money(rec.price or 0))


@dataclass(frozen=True)
class PersonRecord(_Record):
    id: str
    name: str
    email: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class OutputLogRecord(_Record):
    id: str
    product_id: str
    person_id: str
    quantity: int
    timestamp: datetime
    product_name: str
    person_name: str

    @classmethod
    def from_row(cls, row: dict) -> "OutputLogRecord":
        rec = super().from_row(row)
        ts = rec.timestamp
        if isinstance(ts, str):
            ts = parse_iso_datetime(ts)
        return replace(rec, quantity=int(rec.quantity), timestamp=ts)


@dataclass(frozen=True)
class UserRecord(_Record):
    id: str
    username: str | None
    email: str | None
    name: str | None = None
    role: str = "staff"
    apartment_number: int | None = None
    password: str | None = None

    _private = ("password",)

    @classmethod
    def from_row(cls, row: dict) -> "UserRecord":
        rec = super().from_row(row)
        return replace(rec, apartment_number=_opt_int(rec.apartment_number), password=rec.password or None)

    def without_secret(self) -> "UserRecord":
        return replace(self, password=None)

    @property
    def display_identifier(self) -> str:
        return self.username or self.email or self.id


@dataclass(frozen=True)
class ResidentRecord(_Record):
    id: str
    owner_name: str
    apartment_number: int
    tenant_name: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> "ResidentRecord":
        rec = super().from_row(row)
        return replace(rec, apartment_number=int(rec.apartment_number))


@dataclass(frozen=True)
class PaymentRecord(_Record):
    id: str
    apartment_number: int
    amount: Decimal
    date: date
    month: int | None = None
    year: int | None = None

    @classmethod
    def from_row(cls, row: dict) -> "PaymentRecord":
        rec = super().from_row(row)
        return replace(
            rec,
            apartment_number=int(rec.apartment_number),
            amount=to_money(rec.amount),
            date=parse_iso_date(rec.date),
            month=_opt_int(rec.month),
            year=_opt_int(rec.year),
        )


@dataclass(frozen=True)
class ExpenseRecord(_Record):
    id: str
    description: str
    amount: Decimal
    category: str
    date: date

    @classmethod
    def from_row(cls, row: dict) -> "ExpenseRecord":
        rec = super().from_row(row)
        return replace(rec, amount=to_money(rec.amount), date=parse_iso_date(rec.date))
