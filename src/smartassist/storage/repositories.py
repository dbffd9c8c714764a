"""Abstract repository interface for SmartAssist storage.

Defines the expiring key-value contract the dispatch engine depends on.
No SQLAlchemy imports here -- pure abstract contract.

The concrete implementation is in sqlite.py.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class KeyValueStore(ABC):
    """Abstract interface for an expiring key-value store.

    Values are JSON-compatible (numbers, strings, lists, dicts). An
    expired key behaves exactly like an absent one.
    """

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Get the value stored under key. Returns None if absent or expired."""
        ...

    @abstractmethod
    def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: float | None = None,
        *,
        keep_ttl: bool = False,
    ) -> None:
        """Store value under key.

        Args:
            key: Storage key.
            value: JSON-compatible value.
            ttl_seconds: Lifetime from now. None stores without expiry.
            keep_ttl: If True and the key is live, keep its current expiry
                and ignore ttl_seconds.
        """
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete key. Returns True if a live value was removed."""
        ...

    @abstractmethod
    def ttl(self, key: str) -> float | None:
        """Seconds until key expires. None if absent or stored without expiry."""
        ...

    @abstractmethod
    def purge_expired(self) -> int:
        """Delete all expired rows. Returns the number removed."""
        ...
