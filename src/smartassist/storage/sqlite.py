"""SQLite implementation of the key-value repository interface.

Uses SQLAlchemy 2.0-style queries (select() + session.execute()).
The repository takes a Session in its constructor.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import delete
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from smartassist.storage.repositories import KeyValueStore
from smartassist.storage.schema import KeyValueRow


def utcnow() -> datetime:
    """Naive UTC now, matching how SQLite stores DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SqliteKeyValueStore(KeyValueStore):
    """SQLite implementation of the expiring key-value store.

    Expiry is evaluated lazily on read against ``clock()``; expired rows
    are deleted when touched and in bulk by purge_expired().

    Each write commits the session unless ``autocommit=False``, so
    counters and audit rows are visible to other sessions immediately.
    """

    def __init__(
        self,
        session: Session,
        *,
        clock: Callable[[], datetime] = utcnow,
        autocommit: bool = True,
    ) -> None:
        self._session = session
        self._clock = clock
        self._autocommit = autocommit

    def _live_row(self, key: str) -> KeyValueRow | None:
        row = self._session.get(KeyValueRow, key)
        if row is None:
            return None
        if row.expires_at is not None and row.expires_at <= self._clock():
            self._session.delete(row)
            self._finish()
            return None
        return row

    def _finish(self) -> None:
        if self._autocommit:
            self._session.commit()
        else:
            self._session.flush()

    def get(self, key: str) -> Any | None:
        row = self._live_row(key)
        return None if row is None else row.value_json

    def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: float | None = None,
        *,
        keep_ttl: bool = False,
    ) -> None:
        now = self._clock()
        row = self._live_row(key)

        if keep_ttl and row is not None:
            expires_at = row.expires_at
        elif ttl_seconds is not None:
            expires_at = now + timedelta(seconds=ttl_seconds)
        else:
            expires_at = None

        if row is None:
            row = KeyValueRow(key=key, value_json=value, expires_at=expires_at, updated_at=now)
            self._session.add(row)
        else:
            row.value_json = value
            row.expires_at = expires_at
            row.updated_at = now
            # JSON columns are not mutation-tracked; callers may hand back
            # the same (mutated) object they read.
            flag_modified(row, "value_json")
        self._finish()

    def delete(self, key: str) -> bool:
        row = self._live_row(key)
        if row is None:
            return False
        self._session.delete(row)
        self._finish()
        return True

    def ttl(self, key: str) -> float | None:
        row = self._live_row(key)
        if row is None or row.expires_at is None:
            return None
        return (row.expires_at - self._clock()).total_seconds()

    def purge_expired(self) -> int:
        stmt = delete(KeyValueRow).where(
            KeyValueRow.expires_at.is_not(None),
            KeyValueRow.expires_at <= self._clock(),
        )
        result = self._session.execute(stmt)
        self._finish()
        return result.rowcount or 0
