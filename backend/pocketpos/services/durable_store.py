# Overview: Durable key-value persistence for the engine stores; wraps the state_entries table.

from __future__ import annotations

import time
from typing import Any

from sqlalchemy.exc import OperationalError, SQLAlchemyError

from ..extensions import db
from ..models import StateEntry
from ..validation import PersistenceError


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on lock failures.

    SQLite raises OperationalError ("database is locked") while another
    process (e.g. a CLI command) holds the write lock.
    """
    for attempt in range(attempts):
        try:
            return func()
        except OperationalError:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))


class DurableStore:
    """
    Synchronous key-value store scoped to the local installation.

    Every write either fully commits or raises PersistenceError after rolling
    back the session. Requires an application context.
    """

    def read(self, key: str, default: Any = None) -> Any:
        row = db.session.query(StateEntry).filter_by(key=key).first()
        if row is None or row.value_json is None:
            return default
        return row.value_json

    def write(self, key: str, value: Any) -> None:
        self.write_many({key: value})

    def write_many(self, values: dict[str, Any]) -> None:
        """Write several keys in one transaction: all of them land or none."""
        if not values:
            return

        def _op():
            rows = {
                r.key: r
                for r in db.session.query(StateEntry).filter(StateEntry.key.in_(list(values))).all()
            }
            for key, value in values.items():
                row = rows.get(key)
                if row is None:
                    db.session.add(StateEntry(key=key, value_json=value))
                else:
                    row.value_json = value
            db.session.commit()

        try:
            run_with_retry(_op)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(f"Could not write {', '.join(sorted(values))}: {exc}") from exc

    def clear(self) -> int:
        def _op():
            deleted = db.session.query(StateEntry).delete()
            db.session.commit()
            return deleted

        try:
            return run_with_retry(_op)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(f"Could not clear durable state: {exc}") from exc

    def keys(self) -> list[str]:
        return [k for (k,) in db.session.query(StateEntry.key).order_by(StateEntry.key.asc()).all()]
