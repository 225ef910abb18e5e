# Overview: Transaction, isolation, row-lock, retry and upsert helpers shared by services.

from __future__ import annotations

import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


REPEATABLE_READ = "REPEATABLE READ"
READ_COMMITTED = "READ COMMITTED"


def _is_sqlite() -> bool:
    return db.engine.dialect.name == "sqlite"


def _begin(isolation_level: str) -> None:
    if _is_sqlite():
        # SQLite has no REPEATABLE READ. Taking the write lock up front
        # serializes read-then-write transactions instead.
        if isolation_level == REPEATABLE_READ:
            db.session.execute(text("BEGIN IMMEDIATE"))
        return
    db.session.connection(execution_options={"isolation_level": isolation_level})


def run_in_transaction(func, *, isolation_level: str = REPEATABLE_READ):
    """
    Run func() inside one transaction at the given isolation level.

    Commits and returns func()'s result. Any exception rolls back and
    propagates. Work already pending on the session is committed first:
    the isolation level can only be applied to a fresh transaction.
    """
    # scoped_session does not proxy in_transaction(); ask the underlying Session.
    if db.session().in_transaction():
        db.session.commit()
    try:
        _begin(isolation_level)
        result = func()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return result


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, serialization failures,
    "database is locked") and StaleDataError. func must open its own
    transaction so every attempt re-reads current state.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError):
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))


def upsert_rows(model, rows: list[dict], *, index_elements: list[str], update_columns: list[str]) -> None:
    """INSERT ... ON CONFLICT (index_elements) DO UPDATE SET update_columns."""
    if not rows:
        return
    dialect = db.engine.dialect.name
    if dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    elif dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    else:
        raise NotImplementedError(f"upsert is not supported on {dialect}")

    stmt = insert(model.__table__).values(rows)
    stmt = stmt.on_conflict_do_update(
        index_elements=index_elements,
        set_={column: stmt.excluded[column] for column in update_columns},
    )
    db.session.execute(stmt)
