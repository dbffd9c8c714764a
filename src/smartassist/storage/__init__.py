"""Storage layer: expiring key-value store over SQLAlchemy."""

from smartassist.storage.engine import (
    create_assistant_engine,
    create_session_factory,
    init_db,
)
from smartassist.storage.repositories import KeyValueStore
from smartassist.storage.sqlite import SqliteKeyValueStore, utcnow

__all__ = [
    "KeyValueStore",
    "SqliteKeyValueStore",
    "create_assistant_engine",
    "create_session_factory",
    "init_db",
    "utcnow",
]
