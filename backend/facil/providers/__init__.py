# Overview: Persistence provider selection.

from __future__ import annotations

from .base import EntityStore, PersistenceProvider
from .hosted import RestPersistenceProvider
from .local import SqlPersistenceProvider


def build_provider(config) -> PersistenceProvider:
    """
    Pick the provider once, at startup.

    The hosted backend is used only when both BACKEND_URL and
    BACKEND_API_KEY are configured; otherwise the local database is used.
    """
    url = config.get("BACKEND_URL")
    key = config.get("BACKEND_API_KEY")
    if url and key:
        return RestPersistenceProvider(url, key, timeout=config.get("BACKEND_TIMEOUT", 10.0))
    return SqlPersistenceProvider()


__all__ = [
    "EntityStore",
    "PersistenceProvider",
    "RestPersistenceProvider",
    "SqlPersistenceProvider",
    "build_provider",
]
