"""Tests for SafeExecutor -- the enable/authorize/validate/execute/audit pipeline."""

from __future__ import annotations

import logging

import pytest

from smartassist.models.trigger import ExecutionResult, RateLimitRule, TriggerDefinition
from smartassist.triggers.safety import (
    ERROR_MESSAGE,
    PERMISSION_DENIED_MESSAGE,
    RATE_LIMITED_MESSAGE,
    SafeExecutor,
    rate_limit_key,
    validate_params,
)
from tests.conftest import CountingTrigger


class TestValidateParams:
    def test_all_present_sanitized(self):
        check = validate_params(("post_id", "subject"), {"post_id": "5x", "subject": " <b>Hi</b> "})
        assert check.ok
        assert check.params == {"post_id": 5, "subject": "Hi"}

    def test_first_missing_reported(self):
        check = validate_params(("a", "b"), {"a": "1"})
        assert not check.ok
        assert check.message == "b is missing"

    def test_blank_counts_as_missing(self):
        check = validate_params(("a",), {"a": "   "})
        assert check.missing_param == "a"

    def test_extra_params_kept(self):
        check = validate_params((), {"note": "x"})
        assert check.params == {"note": "x"}


class TestDisabled:
    def test_disabled_never_executes(self, executor, settings, audit_log, context):
        trigger = CountingTrigger(name="Ping")
        settings.set_enabled(trigger.definition, False)

        result = executor.safe_execute(trigger, {"target": "x"}, context)

        assert result.success is False
        assert result.message == "Ping is disabled"
        assert trigger.calls == []
        assert len(audit_log) == 0

    def test_string_false_setting_disables(self, executor, settings, context):
        trigger = CountingTrigger()
        settings.set("ping", {"enabled": "0"})
        assert not executor.safe_execute(trigger, {"target": "x"}, context).success


class TestAuthorization:
    def test_denied_is_audited(self, executor, audit_log, context):
        trigger = CountingTrigger(allowed=False)

        result = executor.safe_execute(trigger, {"target": "x"}, context)

        assert result == ExecutionResult(False, PERMISSION_DENIED_MESSAGE, {})
        assert trigger.calls == []
        [entry] = audit_log.recent()
        assert entry.outcome == "denied"
        assert entry.user_id == 7
        assert entry.params == {}

    def test_can_execute_error_is_denial(self, executor, context, caplog):
        trigger = CountingTrigger()

        def boom(ctx):
            raise RuntimeError("broken check")

        trigger.can_execute = boom
        with caplog.at_level(logging.ERROR):
            result = executor.safe_execute(trigger, {"target": "x"}, context)

        assert result.message == PERMISSION_DENIED_MESSAGE
        assert trigger.calls == []
        assert "can_execute raised" in caplog.text


class TestValidation:
    def test_missing_param_not_executed(self, executor, audit_log, context):
        trigger = CountingTrigger(
            "pair", pattern=r"\[PAIR:([^:]*):([^\]]*)\]", params=("left", "right"),
        )

        result = executor.safe_execute(trigger, {"left": "a", "right": ""}, context)

        assert result.success is False
        assert result.message == "right is missing"
        assert trigger.calls == []
        [entry] = audit_log.recent()
        assert entry.outcome == "invalid"
        assert entry.params == {"left": "a", "right": ""}


class TestExecution:
    def test_success_is_audited(self, executor, audit_log, context):
        trigger = CountingTrigger()

        result = executor.safe_execute(trigger, {"target": "<i>home</i>"}, context)

        assert result.success is True
        assert trigger.calls == [{"target": "home"}]
        [entry] = audit_log.recent()
        assert entry.outcome == "executed"
        assert entry.params == {"target": "home"}
        assert entry.session_id == "sess-1"

    def test_partial_result_normalized(self, executor, context):
        trigger = CountingTrigger(result={"data": {"k": 1}})
        result = executor.safe_execute(trigger, {"target": "x"}, context)
        assert result == ExecutionResult(True, "Action completed successfully.", {"k": 1})

    def test_none_result_normalized(self, executor, context):
        trigger = CountingTrigger()
        trigger.execute = lambda params, ctx: None
        result = executor.safe_execute(trigger, {"target": "x"}, context)
        assert result.success is True
        assert result.message == "Action completed successfully."

    def test_reported_failure_is_audited_as_failed(self, executor, audit_log, context):
        trigger = CountingTrigger(result=ExecutionResult.failure("Post not found."))
        result = executor.safe_execute(trigger, {"target": "x"}, context)
        assert result.message == "Post not found."
        assert audit_log.recent()[0].outcome == "failed"

    def test_exception_becomes_generic_error(self, executor, audit_log, context, caplog):
        trigger = CountingTrigger(error=ValueError("db password is hunter2"))

        with caplog.at_level(logging.ERROR):
            result = executor.safe_execute(trigger, {"target": "x"}, context)

        assert result.success is False
        assert result.message == ERROR_MESSAGE
        assert result.data == {}
        assert "hunter2" in caplog.text  # full detail stays in the log
        assert audit_log.recent()[0].outcome == "error"

    def test_verbose_includes_detail(self, settings, audit_log, context):
        executor = SafeExecutor(settings, audit_log, verbose=True)
        trigger = CountingTrigger(error=ValueError("bad input"))
        result = executor.safe_execute(trigger, {"target": "x"}, context)
        assert result.data == {"error": "ValueError: bad input"}

    def test_audit_failure_does_not_escape(self, settings, context, caplog):
        class BrokenLog:
            def append(self, entry):
                raise OSError("disk full")

        executor = SafeExecutor(settings, BrokenLog())
        with caplog.at_level(logging.ERROR):
            result = executor.safe_execute(CountingTrigger(), {"target": "x"}, context)
        assert result.success is True
        assert "Failed to append audit entry" in caplog.text

    def test_settings_failure_does_not_escape(self, audit_log, context):
        class BrokenSettings:
            def is_enabled(self, definition):
                raise RuntimeError("storage down")

        executor = SafeExecutor(BrokenSettings(), audit_log)
        result = executor.safe_execute(CountingTrigger(), {"target": "x"}, context)
        assert result.success is False
        assert result.message == ERROR_MESSAGE


class TestRateLimiting:
    def test_key_format(self):
        assert rate_limit_key("ping", "abc") == "trigger_rate:ping:abc"
        assert rate_limit_key("ping", "") == "trigger_rate:ping:unknown"

    def test_default_rule_applies(self, settings, audit_log, rate_limiter, context):
        executor = SafeExecutor(
            settings, audit_log, rate_limiter, default_rate_limit=RateLimitRule(60, 2)
        )
        trigger = CountingTrigger()

        outcomes = [
            executor.safe_execute(trigger, {"target": "x"}, context).message
            for _ in range(3)
        ]

        assert outcomes[2] == RATE_LIMITED_MESSAGE
        assert len(trigger.calls) == 2
        assert audit_log.recent()[0].outcome == "rate_limited"

    def test_definition_rule_overrides_default(self, settings, audit_log, rate_limiter, context):
        executor = SafeExecutor(settings, audit_log, rate_limiter)
        trigger = CountingTrigger()
        trigger.definition = TriggerDefinition(
            id="ping",
            name="Ping",
            command_pattern=r"\[PING:([^\]]+)\]",
            required_params=("target",),
            rate_limit=RateLimitRule(window_seconds=60, max_count=1),
        )
        assert executor.safe_execute(trigger, {"target": "x"}, context).success
        assert executor.safe_execute(trigger, {"target": "x"}, context).message == RATE_LIMITED_MESSAGE

    def test_window_reopens(self, settings, audit_log, rate_limiter, clock, context):
        executor = SafeExecutor(
            settings, audit_log, rate_limiter, default_rate_limit=RateLimitRule(60, 1)
        )
        trigger = CountingTrigger()
        executor.safe_execute(trigger, {"target": "x"}, context)
        assert not executor.safe_execute(trigger, {"target": "x"}, context).success
        clock.advance(60)
        assert executor.safe_execute(trigger, {"target": "x"}, context).success

    def test_sessions_limited_separately(self, settings, audit_log, rate_limiter, context):
        from dataclasses import replace

        executor = SafeExecutor(
            settings, audit_log, rate_limiter, default_rate_limit=RateLimitRule(60, 1)
        )
        trigger = CountingTrigger()
        assert executor.safe_execute(trigger, {"target": "x"}, context).success
        other = replace(context, session_id="sess-2")
        assert executor.safe_execute(trigger, {"target": "x"}, other).success


@pytest.mark.parametrize("error", [KeyboardInterrupt, SystemExit])
def test_interrupts_propagate(executor, context, error):
    trigger = CountingTrigger(error=error())
    with pytest.raises(error):
        executor.safe_execute(trigger, {"target": "x"}, context)
