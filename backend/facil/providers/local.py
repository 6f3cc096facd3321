# Overview: Local persistence provider backed by Flask-SQLAlchemy.

from __future__ import annotations

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import ConflictError, DuplicateIdentifier, NotFound, ProviderError, StaleStock
from ..extensions import db
from ..models import Expense, OutputLog, Payment, Person, Product, Resident, User
from ..records import OutputLogRecord, UserRecord
from .base import EntityStore, PersistenceProvider

# Unique columns, in the order they are reported back to the caller
_UNIQUE_FIELDS = ("sku", "username", "email")


def duplicate_from_integrity_error(exc: IntegrityError) -> ConflictError:
    """
    Translate a unique-constraint violation into DuplicateIdentifier.

    SQLite reports "UNIQUE constraint failed: products.sku", PostgreSQL
    reports the constraint name (uq_products_sku); both contain the column.
    """
    message = str(exc.orig) if exc.orig is not None else str(exc)
    lowered = message.lower()
    for field in _UNIQUE_FIELDS:
        if field in lowered:
            return DuplicateIdentifier(field)
    if "unique" in lowered or "duplicate" in lowered:
        return DuplicateIdentifier("id")
    return ConflictError(f"constraint violated: {message}")


def _commit() -> None:
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise duplicate_from_integrity_error(exc) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise ProviderError(f"database error: {exc}") from exc


class SqlEntityStore(EntityStore):
    def __init__(self, model, kind: str, order_by=()):
        self.model = model
        self.kind = kind
        self.order_by = order_by

    def list(self):
        rows = db.session.query(self.model).order_by(*self.order_by).all()
        return [row.to_record() for row in rows]

    def get(self, record_id: str):
        row = db.session.get(self.model, record_id)
        return row.to_record() if row is not None else None

    def insert(self, record):
        row = self.model.from_record(record)
        db.session.add(row)
        _commit()
        return row.to_record()

    def update(self, record):
        row = db.session.get(self.model, record.id)
        if row is None:
            raise NotFound(self.kind, record.id)
        row.apply_record(record)
        _commit()
        return row.to_record()

    def delete(self, record_id: str) -> bool:
        row = db.session.get(self.model, record_id)
        if row is None:
            return False
        db.session.delete(row)
        _commit()
        return True


class SqlOutputLogStore(SqlEntityStore):
    """Read side of the output ledger; writes go through record_output()."""

    def insert(self, record):
        raise ConflictError("output logs are appended through record_output()")

    def update(self, record):
        raise ConflictError("output logs are immutable")

    def delete(self, record_id: str) -> bool:
        raise ConflictError("output logs are immutable")


class SqlPersistenceProvider(PersistenceProvider):
    """
    Local store. Every mutation is its own transaction.

    record_output() closes the oversubscription race of a plain
    read-then-write: the quantity moves with a compare-and-set UPDATE in the
    same transaction as the log insert, so two clients that both read
    "enough stock" cannot both win.
    """

    name = "local"

    def __init__(self):
        self.products = SqlEntityStore(Product, "product", (Product.name.asc(), Product.id.asc()))
        self.people = SqlEntityStore(Person, "person", (Person.name.asc(), Person.id.asc()))
        self.output_logs = SqlOutputLogStore(OutputLog, "output log", (OutputLog.timestamp.desc(), OutputLog.id.desc()))
        self.users = SqlEntityStore(User, "user", (User.username.asc(), User.email.asc()))
        self.residents = SqlEntityStore(Resident, "resident", (Resident.apartment_number.asc(),))
        self.payments = SqlEntityStore(Payment, "payment", (Payment.date.desc(), Payment.id.asc()))
        self.expenses = SqlEntityStore(Expense, "expense", (Expense.date.desc(), Expense.id.asc()))

    def find_user(self, identifier: str) -> UserRecord | None:
        row = (
            db.session.query(User)
            .filter(or_(User.username == identifier, User.email == identifier))
            .order_by(User.username.asc())
            .first()
        )
        return row.to_record() if row is not None else None

    def record_output(self, log: OutputLogRecord, new_quantity: int) -> OutputLogRecord:
        existing = db.session.get(OutputLog, log.id)
        if existing is not None:
            return existing.to_record()

        result = db.session.execute(
            update(Product)
            .where(
                Product.id == log.product_id,
                Product.quantity == new_quantity + log.quantity,
            )
            .values(quantity=new_quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.session.rollback()
            raise StaleStock(log.product_id)

        db.session.add(OutputLog.from_record(log))
        try:
            db.session.commit()
        except IntegrityError as exc:
            # Same log id committed by a concurrent retry: ours is rolled back whole
            db.session.rollback()
            existing = db.session.get(OutputLog, log.id)
            if existing is not None:
                return existing.to_record()
            raise duplicate_from_integrity_error(exc) from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise ProviderError(f"database error: {exc}") from exc
        return log
