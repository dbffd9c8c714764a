"""Tests for the expiring key-value store."""

from __future__ import annotations

from sqlalchemy import select

from smartassist.storage.engine import SCHEMA_VERSION, init_db
from smartassist.storage.schema import AssistantMetaRow


class TestSqliteKeyValueStore:
    def test_missing_key_is_none(self, store):
        assert store.get("nope") is None

    def test_set_and_get_json_values(self, store):
        store.set("k", {"a": [1, 2], "b": None})
        assert store.get("k") == {"a": [1, 2], "b": None}

    def test_overwrite_mutated_value(self, store):
        store.set("logs", [1])
        logs = store.get("logs")
        logs.append(2)
        store.set("logs", logs)
        assert store.get("logs") == [1, 2]

    def test_expired_key_reads_absent(self, store, clock):
        store.set("k", 1, ttl_seconds=60)
        clock.advance(59)
        assert store.get("k") == 1
        clock.advance(1)
        assert store.get("k") is None

    def test_ttl_reports_remaining(self, store, clock):
        store.set("k", 1, ttl_seconds=60)
        clock.advance(20)
        assert store.ttl("k") == 40
        store.set("forever", 1)
        assert store.ttl("forever") is None

    def test_keep_ttl_preserves_expiry(self, store, clock):
        store.set("k", 1, ttl_seconds=60)
        clock.advance(30)
        store.set("k", 2, keep_ttl=True)
        assert store.ttl("k") == 30
        clock.advance(30)
        assert store.get("k") is None

    def test_new_ttl_replaces_expiry(self, store, clock):
        store.set("k", 1, ttl_seconds=10)
        store.set("k", 2, ttl_seconds=100)
        clock.advance(50)
        assert store.get("k") == 2

    def test_delete(self, store):
        store.set("k", 1)
        assert store.delete("k") is True
        assert store.delete("k") is False
        assert store.get("k") is None

    def test_purge_expired(self, store, clock):
        store.set("a", 1, ttl_seconds=5)
        store.set("b", 1, ttl_seconds=50)
        store.set("c", 1)
        clock.advance(10)
        assert store.purge_expired() == 1
        assert store.get("b") == 1
        assert store.get("c") == 1


def test_init_db_records_schema_version(engine, session):
    init_db(engine)  # idempotent
    rows = session.execute(select(AssistantMetaRow)).scalars().all()
    assert [(r.key, r.value) for r in rows] == [("schema_version", SCHEMA_VERSION)]
