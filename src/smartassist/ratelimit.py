"""Fixed-window rate limiting over the expiring key-value store.

Counters live under caller-chosen keys (e.g. ``trigger_rate:<id>:<session>``)
and disappear with the window's TTL. The read-increment-write sequence is
not atomic: concurrent requests for the same key can overshoot the limit by
a small margin. This is advisory throttling, not a security boundary.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from smartassist.storage.repositories import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 60
DEFAULT_MAX_COUNT = 10


class RateLimiter:
    """Bounded per-key counter with a fixed time window."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def allow(
        self,
        key: str,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        max_count: int = DEFAULT_MAX_COUNT,
    ) -> bool:
        """Count one hit against key. Returns False once max_count is reached.

        The window starts at the first hit and is not extended by later
        hits; a denied hit is not counted.
        """
        current = self._store.get(key)
        if current is None:
            self._store.set(key, 1, ttl_seconds=window_seconds)
            return True

        count = int(current)
        if count >= max_count:
            logger.warning("Rate limit reached for %s (%d/%d)", key, count, max_count)
            return False

        self._store.set(key, count + 1, keep_ttl=True)
        return True

    def remaining(self, key: str, max_count: int = DEFAULT_MAX_COUNT) -> int:
        """Hits left in the current window for key."""
        current = self._store.get(key)
        used = 0 if current is None else int(current)
        return max(max_count - used, 0)

    def reset(self, key: str) -> None:
        self._store.delete(key)
