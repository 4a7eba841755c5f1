# Overview: Service-layer helpers for concurrency; row locking, guarded updates and retries.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def guarded_update(query, values: dict) -> int:
    """
    Run a single conditional UPDATE built from `query`'s WHERE clause.

    The guard lives in the WHERE clause (e.g. remaining_quantity > 0), so the
    check and the write happen in one statement and cannot interleave with
    another request. Returns the affected row count; 0 means the guard
    rejected the update (or the row does not exist).

    Loaded ORM instances are NOT synchronized; re-read after commit.
    """
    return query.update(values, synchronize_session=False)


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). `func` must be safe to re-run from
    scratch: it should load, write and commit inside itself.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc

