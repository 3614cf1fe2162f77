# Overview: Row locking, retry and commit helpers shared by the write services.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from slms.extensions import db
from slms.validation import ConflictError


STALE_MESSAGE = "Record was changed by another operator; reload it and try again"


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). The operation re-reads its rows on each
    attempt, so its guards run against the fresh state. A version conflict
    that survives every attempt is raised as ConflictError.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                if isinstance(exc, StaleDataError):
                    raise ConflictError(STALE_MESSAGE) from exc
                raise
            time.sleep(backoff_base * (2 ** attempt))


def commit_session() -> None:
    """Commit the current unit of work; a late version conflict becomes ConflictError."""
    try:
        db.session.commit()
    except StaleDataError as exc:
        db.session.rollback()
        raise ConflictError(STALE_MESSAGE) from exc
