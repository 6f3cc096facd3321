# Overview: Retry helpers for read-validate-write sequences against the store.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError

from ..errors import StaleStock


def run_with_retry(
    func,
    *,
    attempts: int = 3,
    backoff_base: float = 0.05,
    retry_on: tuple[type[BaseException], ...] = (StaleStock, OperationalError),
):
    """
    Execute func, retrying on concurrency-related failures.

    func must redo its own reads: each attempt has to observe the state left
    by whoever won the previous race. The last failure is re-raised.
    """
    for attempt in range(attempts):
        try:
            return func()
        except retry_on:
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
