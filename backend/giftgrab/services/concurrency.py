# Overview: Service-layer helpers for concurrency; retry and row locking around database work.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical reads.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    The claim and confirmation writes do not depend on it: they are
    conditional UPDATE statements checked by rowcount.
    """
    return query.with_for_update()


def _default_attempts() -> int:
    try:
        return int(current_app.config.get("GIFTGRAB_RETRY_ATTEMPTS", 3))
    except RuntimeError:
        return 3


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float = 0.05):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (locked database, deadlocks) and StaleDataError
    (optimistic locking conflicts). func must be idempotent: it is re-run from
    the top after a rollback.
    """
    attempts = attempts or _default_attempts()
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError):
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    raise RuntimeError("run_with_retry: exhausted retries")  # pragma: no cover


def commit_with_retry(*, attempts: int | None = None, backoff_base: float = 0.05):
    """Commit current session with retry handling."""
    def _op():
        db.session.commit()
    return run_with_retry(_op, attempts=attempts, backoff_base=backoff_base)
