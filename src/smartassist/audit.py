"""Capacity-bounded audit trail of trigger executions.

The whole log is one list stored under a single key with a fixed TTL.
Appends rewrite the list, keeping only the newest ``capacity`` entries.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from smartassist.exceptions import StorageError
from smartassist.models.trigger import AuditLogEntry

if TYPE_CHECKING:
    from smartassist.storage.repositories import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_KEY = "trigger_logs"
DEFAULT_CAPACITY = 50
DEFAULT_TTL_SECONDS = 24 * 60 * 60


class AuditLog:
    """Append-only, capacity-bounded record of executions."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        key: str = DEFAULT_AUDIT_KEY,
        capacity: int = DEFAULT_CAPACITY,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"Audit log capacity must be >= 1, got {capacity}")
        self._store = store
        self._key = key
        self._capacity = capacity
        self._ttl_seconds = ttl_seconds

    @property
    def capacity(self) -> int:
        return self._capacity

    def _load(self) -> list[dict]:
        raw = self._store.get(self._key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise StorageError(
                f"Audit log under '{self._key}' is {type(raw).__name__}, expected list"
            )
        return raw

    def append(self, entry: AuditLogEntry) -> None:
        """Append entry, evicting the oldest entries beyond capacity."""
        logs = self._load() + [entry.to_dict()]
        if len(logs) > self._capacity:
            logs = logs[-self._capacity:]
        self._store.set(self._key, logs, ttl_seconds=self._ttl_seconds)
        logger.debug(
            "Audit: trigger=%s outcome=%s success=%s",
            entry.trigger_id,
            entry.outcome,
            entry.success,
        )

    def recent(self, limit: int | None = None) -> list[AuditLogEntry]:
        """Stored entries, most recent first."""
        entries = [AuditLogEntry.from_dict(d) for d in reversed(self._load())]
        if limit is not None:
            entries = entries[:limit]
        return entries

    def clear(self) -> None:
        self._store.delete(self._key)

    def __len__(self) -> int:
        return len(self._load())
