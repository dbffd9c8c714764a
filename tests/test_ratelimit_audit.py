"""Tests for RateLimiter, AuditLog, and TriggerSettingsStore."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from smartassist.audit import AuditLog
from smartassist.exceptions import StorageError
from smartassist.models.trigger import AuditLogEntry
from smartassist.settings import TriggerSettingsStore, as_bool, sanitize_settings
from smartassist.triggers.builtin.show_products import ShowProductsTrigger


def _entry(n: int, outcome: str = "executed") -> AuditLogEntry:
    return AuditLogEntry(
        trigger_id=f"t{n}",
        trigger_name=f"T{n}",
        user_id=n,
        session_id="s",
        ip_address="",
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        params={"n": n},
        success=outcome == "executed",
        message=f"entry {n}",
        outcome=outcome,
    )


# ===========================================================================
# RateLimiter
# ===========================================================================


class TestRateLimiter:
    def test_ten_allowed_eleventh_denied(self, rate_limiter):
        results = [rate_limiter.allow("k", 60, 10) for _ in range(11)]
        assert results == [True] * 10 + [False]

    def test_allowed_again_after_window(self, rate_limiter, clock):
        for _ in range(10):
            rate_limiter.allow("k", 60, 10)
        assert rate_limiter.allow("k", 60, 10) is False
        clock.advance(61)
        assert rate_limiter.allow("k", 60, 10) is True

    def test_hits_do_not_extend_window(self, rate_limiter, clock):
        rate_limiter.allow("k", 60, 2)
        clock.advance(50)
        rate_limiter.allow("k", 60, 2)
        assert rate_limiter.allow("k", 60, 2) is False
        clock.advance(10)
        assert rate_limiter.allow("k", 60, 2) is True

    def test_denied_hit_not_counted(self, rate_limiter, store):
        rate_limiter.allow("k", 60, 1)
        rate_limiter.allow("k", 60, 1)
        assert store.get("k") == 1

    def test_keys_are_independent(self, rate_limiter):
        assert rate_limiter.allow("a", 60, 1)
        assert not rate_limiter.allow("a", 60, 1)
        assert rate_limiter.allow("b", 60, 1)

    def test_remaining_and_reset(self, rate_limiter):
        assert rate_limiter.remaining("k", 5) == 5
        rate_limiter.allow("k", 60, 5)
        rate_limiter.allow("k", 60, 5)
        assert rate_limiter.remaining("k", 5) == 3
        rate_limiter.reset("k")
        assert rate_limiter.remaining("k", 5) == 5


# ===========================================================================
# AuditLog
# ===========================================================================


class TestAuditLog:
    def test_recent_is_newest_first(self, audit_log):
        for n in range(3):
            audit_log.append(_entry(n))
        assert [e.trigger_id for e in audit_log.recent()] == ["t2", "t1", "t0"]
        assert [e.trigger_id for e in audit_log.recent(limit=1)] == ["t2"]

    def test_capacity_evicts_oldest(self, store):
        log = AuditLog(store, capacity=3)
        for n in range(5):
            log.append(_entry(n))
        assert len(log) == 3
        assert [e.trigger_id for e in log.recent()] == ["t4", "t3", "t2"]

    def test_never_exceeds_default_capacity(self, audit_log):
        for n in range(60):
            audit_log.append(_entry(n))
        assert len(audit_log) == 50

    def test_entries_round_trip(self, audit_log):
        entry = _entry(1, outcome="denied")
        audit_log.append(entry)
        assert audit_log.recent() == [entry]

    def test_log_expires_with_ttl(self, store, clock):
        log = AuditLog(store, ttl_seconds=100)
        log.append(_entry(1))
        clock.advance(101)
        assert log.recent() == []

    def test_clear(self, audit_log):
        audit_log.append(_entry(1))
        audit_log.clear()
        assert len(audit_log) == 0

    def test_capacity_must_be_positive(self, store):
        with pytest.raises(ValueError):
            AuditLog(store, capacity=0)

    def test_corrupt_value_raises(self, store, audit_log):
        store.set("trigger_logs", {"not": "a list"})
        with pytest.raises(StorageError):
            audit_log.recent()


# ===========================================================================
# TriggerSettingsStore
# ===========================================================================


class TestTriggerSettings:
    definition = ShowProductsTrigger.definition

    def test_defaults_when_unset(self, settings):
        resolved = settings.resolve(self.definition)
        assert resolved == {"enabled": True, "max_products": 10, "hide_out_of_stock": False}
        assert settings.is_enabled(self.definition)

    def test_stored_values_override_defaults(self, settings):
        settings.set("show_products", {"max_products": 2})
        resolved = settings.resolve(self.definition)
        assert resolved["max_products"] == 2
        assert resolved["enabled"] is True

    def test_set_enabled(self, settings):
        settings.set_enabled(self.definition, False)
        assert not settings.is_enabled(self.definition)
        assert settings.get("show_products") == {"enabled": False}
        settings.set_enabled(self.definition, True)
        assert settings.is_enabled(self.definition)

    def test_update_merges(self, settings):
        settings.update("show_products", max_products=3)
        settings.update("show_products", hide_out_of_stock=True)
        assert settings.get("show_products") == {"max_products": 3, "hide_out_of_stock": True}

    def test_non_mapping_raises(self, settings, store):
        store.set("trigger_settings:show_products", [1, 2])
        with pytest.raises(StorageError):
            settings.get("show_products")


@pytest.mark.parametrize(
    "value,expected",
    [("1", True), ("true", True), ("on", True), ("0", False), ("false", False), ("", False), (0, False), (1, True)],
)
def test_as_bool(value, expected):
    assert as_bool(value) is expected


def test_sanitize_settings():
    cleaned = sanitize_settings(
        {
            "enabled": "0",
            "from_email": " Bob@Example.COM ",
            "site_url": "javascript:alert(1)",
            "tags": ["<b>a</b>", " b "],
            "label": "<i>Hi</i>\nthere",
        }
    )
    assert cleaned == {
        "enabled": False,
        "from_email": "Bob@example.com",
        "site_url": "",
        "tags": ["a", "b"],
        "label": "Hi there",
    }
