# Overview: Persistence provider contract shared by the local and hosted stores.

"""
PersistenceProvider is the only thing the kernels write through.

Each entity is reachable as a store attribute (provider.products,
provider.people, ...) exposing list/get/insert/update/delete on immutable
records. The output log store is append-only: it only accepts inserts through
record_output(), which also moves the product quantity in the same unit.

Concrete providers:
- SqlPersistenceProvider: local database through Flask-SQLAlchemy
- RestPersistenceProvider: hosted PostgREST-compatible backend through httpx
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from ..records import (
    ExpenseRecord,
    OutputLogRecord,
    PaymentRecord,
    PersonRecord,
    ProductRecord,
    ResidentRecord,
    UserRecord,
)

R = TypeVar("R")


class EntityStore(ABC, Generic[R]):
    """CRUD over one entity kind. Every read returns fresh records."""

    #: singular label used in error messages ("product", "person", ...)
    kind: str = "record"

    @abstractmethod
    def list(self) -> list[R]:
        ...

    @abstractmethod
    def get(self, record_id: str) -> R | None:
        ...

    @abstractmethod
    def insert(self, record: R) -> R:
        ...

    @abstractmethod
    def update(self, record: R) -> R:
        """Replace the stored row with record (matched on id)."""

    @abstractmethod
    def delete(self, record_id: str) -> bool:
        """Returns False when nothing was deleted."""


class PersistenceProvider(ABC):
    products: EntityStore[ProductRecord]
    people: EntityStore[PersonRecord]
    output_logs: EntityStore[OutputLogRecord]
    users: EntityStore[UserRecord]
    residents: EntityStore[ResidentRecord]
    payments: EntityStore[PaymentRecord]
    expenses: EntityStore[ExpenseRecord]

    name = "abstract"

    @abstractmethod
    def find_user(self, identifier: str) -> UserRecord | None:
        """Exact match on username or email."""

    @abstractmethod
    def record_output(self, log: OutputLogRecord, new_quantity: int) -> OutputLogRecord:
        """
        Append log and set the product quantity to new_quantity as one unit.

        Must be idempotent on log.id: when a log with that id already exists
        the stored log is returned and the quantity is left alone.

        Raises StaleStock when the stored quantity is no longer
        new_quantity + log.quantity (another writer moved it).
        """

    def close(self) -> None:
        """Release network clients or pools; no-op by default."""
