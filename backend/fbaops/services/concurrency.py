# Overview: Service-layer operations for concurrency; encapsulates business logic and database work.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def run_with_retry(
    func,
    *,
    attempts: int = 3,
    backoff_base: float = 0.1,
    retry_on: tuple = (OperationalError, StaleDataError),
    should_retry=None,
):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts) by default. should_retry(exc) narrows
    which of the retry_on exceptions are retried; others are re-raised at once.
    The session is rolled back before every retry and before re-raising.
    """
    for attempt in range(attempts):
        try:
            return func()
        except retry_on as exc:
            db.session.rollback()
            if should_retry is not None and not should_retry(exc):
                raise
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
