"""Shared test fixtures for SmartAssist.

Provides an in-memory SQLite engine and session, a controllable clock, and
the dispatch stack (settings, audit log, rate limiter, executor, registry,
dispatcher) built on them.
"""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from smartassist.audit import AuditLog
from smartassist.dispatcher import Dispatcher
from smartassist.models.trigger import (
    ExecutionContext,
    ExecutionResult,
    TriggerDefinition,
)
from smartassist.ratelimit import RateLimiter
from smartassist.registry import TriggerRegistry
from smartassist.settings import TriggerSettingsStore
from smartassist.storage.engine import create_assistant_engine, init_db
from smartassist.storage.sqlite import SqliteKeyValueStore
from smartassist.triggers.safety import SafeExecutor


class FakeClock:
    """Naive-UTC clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class CountingTrigger:
    """Configurable trigger that records every execute() call."""

    def __init__(
        self,
        trigger_id: str = "ping",
        *,
        pattern: str = r"\[PING:([^\]]+)\]",
        params: tuple[str, ...] = ("target",),
        allowed: bool = True,
        result=None,
        error: Exception | None = None,
        name: str | None = None,
    ) -> None:
        self.definition = TriggerDefinition(
            id=trigger_id,
            name=name or trigger_id.title(),
            command_pattern=pattern,
            required_params=params,
        )
        self.allowed = allowed
        self.result = result
        self.error = error
        self.calls: list[dict] = []

    def can_execute(self, context: ExecutionContext) -> bool:
        return self.allowed

    def execute(self, params, context):
        self.calls.append(dict(params))
        if self.error is not None:
            raise self.error
        if self.result is not None:
            return self.result
        return ExecutionResult(message=f"done {self.definition.id}", data={"params": dict(params)})


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created."""
    eng = create_assistant_engine(":memory:")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    sess = SessionLocal()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(session, clock) -> SqliteKeyValueStore:
    return SqliteKeyValueStore(session, clock=clock)


@pytest.fixture
def settings(store) -> TriggerSettingsStore:
    return TriggerSettingsStore(store)


@pytest.fixture
def audit_log(store) -> AuditLog:
    return AuditLog(store)


@pytest.fixture
def rate_limiter(store) -> RateLimiter:
    return RateLimiter(store)


@pytest.fixture
def executor(settings, audit_log) -> SafeExecutor:
    """Executor without rate limiting."""
    return SafeExecutor(settings, audit_log)


@pytest.fixture
def registry() -> TriggerRegistry:
    return TriggerRegistry()


@pytest.fixture
def dispatcher(registry, executor) -> Dispatcher:
    return Dispatcher(registry, executor)


@pytest.fixture
def context() -> ExecutionContext:
    return ExecutionContext(user_id=7, session_id="sess-1", ip_address="10.0.0.1")
