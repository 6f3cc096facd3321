# Overview: Error taxonomy shared by the kernels, providers and API routes.

from __future__ import annotations


class ValidationError(ValueError):
    """400-level input problem."""


class InvalidCredentials(Exception):
    """401: unknown identifier or wrong password."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class NotFound(LookupError):
    """404: the referenced record does not exist."""

    def __init__(self, kind: str, key: str | None = None):
        self.kind = kind
        self.key = key
        if key is None:
            super().__init__(f"{kind} not found")
        else:
            super().__init__(f"{kind} '{key}' not found")


class ConflictError(ValueError):
    """409-level business rule conflict."""


class InsufficientStock(ConflictError):
    def __init__(self, product_name: str, available: int, requested: int):
        self.available = available
        self.requested = requested
        super().__init__(
            f"Not enough stock for {product_name}: requested {requested}, available {available}"
        )


class ReferentialIntegrityViolation(ConflictError):
    """Deletion of an entity still referenced by the output log."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} '{key}' is referenced by the output history and cannot be deleted")


class DuplicateIdentifier(ConflictError):
    def __init__(self, field: str, value: str | None = None):
        self.field = field
        self.value = value
        if value is None:
            super().__init__(f"{field} already exists")
        else:
            super().__init__(f"{field} '{value}' already exists")


class OwnAccountDeletion(ConflictError):
    def __init__(self):
        super().__init__("You cannot delete your own account")


class StaleStock(ConflictError):
    """Product quantity changed between read and write."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Stock for product '{product_id}' changed concurrently, try again")


class ProviderError(RuntimeError):
    """Backing store unreachable or answered with an unexpected error."""

    def __init__(self, message: str, *, status: int | None = None, code: str | None = None):
        self.status = status
        self.code = code
        super().__init__(message)
