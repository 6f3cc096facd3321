from __future__ import annotations

from ..extensions import db
from ..records import ExpenseRecord, PaymentRecord, ResidentRecord
from .base import RecordMixin


class Resident(RecordMixin, db.Model):
    __tablename__ = "residents"
    __record__ = ResidentRecord

    id = db.Column(db.String(64), primary_key=True)
    owner_name = db.Column(db.String(255), nullable=False)
    tenant_name = db.Column(db.String(255), nullable=True)
    apartment_number = db.Column(db.Integer, nullable=False, index=True)


class Payment(RecordMixin, db.Model):
    """
    Condominium fee payment.

    month/year are the billing period. They are denormalized from date when
    the payment is created without them; older rows may lack them entirely.
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.CheckConstraint("amount >= 0", name="ck_payments_amount_non_negative"),
        db.Index("ix_payments_period", "year", "month"),
    )
    __record__ = PaymentRecord

    id = db.Column(db.String(64), primary_key=True)
    apartment_number = db.Column(db.Integer, nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    date = db.Column(db.Date, nullable=False)
    month = db.Column(db.Integer, nullable=True)
    year = db.Column(db.Integer, nullable=True)


class Expense(RecordMixin, db.Model):
    __tablename__ = "expenses"
    __table_args__ = (
        db.CheckConstraint("amount >= 0", name="ck_expenses_amount_non_negative"),
    )
    __record__ = ExpenseRecord

    id = db.Column(db.String(64), primary_key=True)
    description = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    category = db.Column(db.String(64), nullable=False)
    date = db.Column(db.Date, nullable=False, index=True)
