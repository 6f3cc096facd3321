from __future__ import annotations

from ..extensions import db
from ..records import OutputLogRecord, PersonRecord, ProductRecord
from .base import RecordMixin


class Product(RecordMixin, db.Model):
    """
    Stock-tracked product.

    SKU is unique across all products. Quantity is the current on-hand count
    and only changes through edits or recorded outputs; it never goes below 0.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_products_sku"),
        db.CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        db.Index("ix_products_name", "name"),
    )
    __record__ = ProductRecord

    id = db.Column(db.String(64), primary_key=True)
    sku = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    # Scannable identifiers besides the SKU
    serial_number = db.Column(db.String(128), nullable=True, index=True)
    mac_address = db.Column(db.String(64), nullable=True)
    asset_tag = db.Column(db.String(128), nullable=True, index=True)

    image_url = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Product id={self.id!r} sku={self.sku!r} quantity={self.quantity}>"


class Person(RecordMixin, db.Model):
    """Someone stock can be handed out to."""
    __tablename__ = "people"
    __record__ = PersonRecord

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())


class OutputLog(RecordMixin, db.Model):
    """
    Append-only record of a stock withdrawal.

    product_name / person_name are snapshots taken when the output was
    recorded; later renames do not touch existing rows. No foreign keys: the
    delete guard lives in the inventory service so the hosted backend and the
    local store behave the same.
    """
    __tablename__ = "output_logs"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_output_logs_quantity_positive"),
    )
    __record__ = OutputLogRecord

    id = db.Column(db.String(64), primary_key=True)
    product_id = db.Column(db.String(64), nullable=False, index=True)
    person_id = db.Column(db.String(64), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    person_name = db.Column(db.String(255), nullable=False)
