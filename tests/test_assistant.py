"""Tests for Assistant wiring and its admin operations."""

from __future__ import annotations

import time
from datetime import datetime, timezone

import pytest

from smartassist.assistant import Assistant, build_default_registry, fire_session_id
from smartassist.chat import ChatService
from smartassist.demo import RecordingMailer, sample_content, sample_shop
from smartassist.exceptions import TriggerNotFoundError
from smartassist.models.config import AssistantConfig
from smartassist.models.trigger import ExecutionContext
from tests.conftest import CountingTrigger, FakeClock


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def assistant(mailer):
    config = AssistantConfig(trigger_rate_max=2)
    a = Assistant.open(
        config,
        content=sample_content(),
        mailer=mailer,
        shop=sample_shop(),
        admin_email="admin@example.com",
        clock=FakeClock(),
    )
    yield a
    a.close()


def test_default_registry_order(settings):
    registry = build_default_registry(
        settings, content=sample_content(), mailer=RecordingMailer()
    )
    assert registry.ids == ["email_post_author"]


def test_open_wires_builtins_and_extensions(mailer):
    def extension(registry):
        registry.register(CountingTrigger("ping"))

    with Assistant.open(content=sample_content(), mailer=mailer, extensions=[extension]) as a:
        assert a.registry.ids == ["email_post_author", "ping"]
    assert "closed" in repr(a)


def test_dispatch_end_to_end(assistant, mailer):
    editor = ExecutionContext(user_id=1, session_id="s", capabilities={"edit_posts"})
    text = "Sure! [EMAIL_AUTHOR:5:Hello:Please respond] [ADD_TO_CART:12:2]"

    results = assistant.dispatcher.parse_and_execute(text, editor)

    assert [(r.trigger_id, r.success) for r in results] == [
        ("email_post_author", True),
        ("add_to_cart", True),
    ]
    assert assistant.dispatcher.strip_commands(text) == "Sure!"
    assert len(mailer.outbox) == 1
    assert [e.trigger_id for e in assistant.audit_log.recent()] == [
        "add_to_cart",
        "email_post_author",
    ]


def test_trigger_rate_limit_from_config(assistant):
    ctx = ExecutionContext(session_id="s")
    text = "[ADD_TO_CART:12:1]"
    outcomes = [assistant.dispatcher.parse_and_execute(text, ctx)[0].message for _ in range(3)]
    assert outcomes[2] == "rate limit exceeded"


def test_set_enabled(assistant):
    assistant.set_enabled("add_to_cart", False)
    [result] = assistant.dispatcher.parse_and_execute("[ADD_TO_CART:12:1]", ExecutionContext())
    assert result.message == "Add to Cart is disabled"

    assistant.set_enabled("add_to_cart", True)
    [result] = assistant.dispatcher.parse_and_execute("[ADD_TO_CART:12:1]", ExecutionContext())
    assert result.success


def test_unknown_trigger(assistant):
    with pytest.raises(TriggerNotFoundError, match="nope"):
        assistant.set_enabled("nope", True)
    with pytest.raises(TriggerNotFoundError):
        assistant.fire("nope", {})


def test_fire_uses_safety_wrapper(assistant, mailer):
    result = assistant.fire("email_post_author", {"post_id": "5", "subject": "s", "message": "m"})
    assert result.message == "permission denied"
    assert assistant.audit_log.recent()[0].outcome == "denied"
    session = assistant.audit_log.recent()[0].session_id
    assert abs(int(session.removeprefix("test_")) - time.time()) <= 2

    editor = ExecutionContext(capabilities={"edit_posts"})
    result = assistant.fire(
        "email_post_author", {"post_id": "5", "subject": "s", "message": "m"}, editor
    )
    assert result.success
    assert len(mailer.outbox) == 1


def test_chat_service_shares_dispatcher(assistant):
    service = assistant.chat_service(object(), sample_content())
    assert isinstance(service, ChatService)


def test_close_is_idempotent(mailer):
    a = Assistant.open(content=sample_content(), mailer=mailer)
    a.close()
    a.close()


def test_fire_session_id_uses_utc_epoch():
    assert fire_session_id(datetime(2024, 1, 1, tzinfo=timezone.utc)) == "test_1704067200"
    assert abs(int(fire_session_id().removeprefix("test_")) - time.time()) <= 2
