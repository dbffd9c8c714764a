"""SafeExecutor -- the uniform pipeline every trigger invocation runs through.

Pipeline for one directive occurrence:

    1. enabled?          -> "<name> is disabled"   (no execute, no audit entry)
    2. can_execute?      -> "permission denied"    (audit outcome="denied")
    3. rate limit        -> "rate limit exceeded"  (audit outcome="rate_limited")
    4. required params   -> "<param> is missing"   (audit outcome="invalid")
    5. sanitize params by name
    6. execute           -> raised errors become "an error occurred"
    7. normalize the result, append an audit entry

Validation, authorization, and disabled-trigger failures are recovered
here and reported as failed ExecutionResults. Unexpected errors are logged
with a full traceback and reported with a generic message; the detail is
only included in ``data["error"]`` when the executor is verbose.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from smartassist.models.trigger import (
    AuditLogEntry,
    ExecutionContext,
    ExecutionResult,
    ParamCheck,
    RateLimitRule,
    TriggerDefinition,
)
from smartassist.triggers.sanitize import sanitize_param

if TYPE_CHECKING:
    from smartassist.audit import AuditLog
    from smartassist.ratelimit import RateLimiter
    from smartassist.settings import TriggerSettingsStore
    from smartassist.triggers.protocols import Trigger

logger = logging.getLogger(__name__)

PERMISSION_DENIED_MESSAGE = "permission denied"
RATE_LIMITED_MESSAGE = "rate limit exceeded"
ERROR_MESSAGE = "an error occurred"


def validate_params(required: Iterable[str], params: Mapping[str, Any]) -> ParamCheck:
    """Check required params are present and non-empty, then sanitize all params.

    Returns a tagged ParamCheck instead of raising, so the caller decides
    how a missing param is reported.
    """
    for name in required:
        value = params.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            return ParamCheck.missing(name)

    return ParamCheck.passed(
        {key: sanitize_param(key, value) for key, value in params.items()}
    )


def rate_limit_key(trigger_id: str, session_id: str) -> str:
    return f"trigger_rate:{trigger_id}:{session_id or 'unknown'}"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SafeExecutor:
    """Runs triggers through the enable/authorize/validate/execute/audit pipeline.

    Shared by every trigger and not overridable by them: triggers only
    supply ``can_execute`` and ``execute``.

    Args:
        settings: Persisted per-trigger settings (for the ``enabled`` flag).
        audit_log: Where execution records are appended.
        rate_limiter: Optional per-trigger, per-session throttle. When None,
            no trigger is rate limited.
        default_rate_limit: Rule applied to triggers whose definition does
            not carry its own ``rate_limit``.
        verbose: Include exception detail in failed results.
        clock: Timestamp source for audit entries.
    """

    def __init__(
        self,
        settings: TriggerSettingsStore,
        audit_log: AuditLog,
        rate_limiter: RateLimiter | None = None,
        *,
        default_rate_limit: RateLimitRule = RateLimitRule(),
        verbose: bool = False,
        clock: Callable[[], datetime] = _now,
    ) -> None:
        self._settings = settings
        self._audit_log = audit_log
        self._rate_limiter = rate_limiter
        self._default_rate_limit = default_rate_limit
        self._verbose = verbose
        self._clock = clock

    @property
    def verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def safe_execute(
        self,
        trigger: Trigger,
        params: Mapping[str, Any],
        context: ExecutionContext,
    ) -> ExecutionResult:
        """Run one invocation of trigger. Never raises for directive failures."""
        definition = trigger.definition
        try:
            return self._run(trigger, definition, params, context)
        except Exception as exc:
            # Failures outside execute() itself, e.g. settings or audit storage.
            logger.exception(
                "Trigger '%s' pipeline failed for %s", definition.id, context.to_log_dict()
            )
            return self._error_result(exc)

    def _run(
        self,
        trigger: Trigger,
        definition: TriggerDefinition,
        params: Mapping[str, Any],
        context: ExecutionContext,
    ) -> ExecutionResult:
        if not self._settings.is_enabled(definition):
            logger.info("Trigger '%s' is disabled; skipping", definition.id)
            return ExecutionResult.failure(f"{definition.name} is disabled")

        if not self._is_authorized(trigger, definition, context):
            logger.info(
                "Permission denied for trigger '%s': %s",
                definition.id,
                context.to_log_dict(),
            )
            result = ExecutionResult.failure(PERMISSION_DENIED_MESSAGE)
            self._audit(definition, context, {}, result, "denied")
            return result

        if not self._within_rate_limit(definition, context):
            result = ExecutionResult.failure(RATE_LIMITED_MESSAGE)
            self._audit(definition, context, {}, result, "rate_limited")
            return result

        check = validate_params(definition.required_params, params)
        if not check.ok:
            logger.info(
                "Trigger '%s' param validation failed: %s", definition.id, check.message
            )
            result = ExecutionResult.failure(check.message)
            sanitized = {k: sanitize_param(k, v) for k, v in params.items()}
            self._audit(definition, context, sanitized, result, "invalid")
            return result

        try:
            raw = trigger.execute(dict(check.params), context)
        except Exception as exc:
            logger.exception(
                "Trigger '%s' execution error (params=%s, context=%s)",
                definition.id,
                check.params,
                context.to_log_dict(),
            )
            result = self._error_result(exc)
            self._audit(definition, context, check.params, result, "error")
            return result

        result = ExecutionResult.normalize(raw)
        outcome = "executed" if result.success else "failed"
        logger.debug(
            "Trigger '%s' %s: %s", definition.id, outcome, result.message
        )
        self._audit(definition, context, check.params, result, outcome)
        return result

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def _is_authorized(
        self,
        trigger: Trigger,
        definition: TriggerDefinition,
        context: ExecutionContext,
    ) -> bool:
        try:
            return bool(trigger.can_execute(context))
        except Exception:
            logger.exception("Trigger '%s' can_execute raised; denying", definition.id)
            return False

    def _within_rate_limit(
        self, definition: TriggerDefinition, context: ExecutionContext
    ) -> bool:
        if self._rate_limiter is None:
            return True
        rule = definition.rate_limit or self._default_rate_limit
        return self._rate_limiter.allow(
            rate_limit_key(definition.id, context.session_id),
            window_seconds=rule.window_seconds,
            max_count=rule.max_count,
        )

    def _error_result(self, exc: Exception) -> ExecutionResult:
        if not self._verbose:
            return ExecutionResult.failure(ERROR_MESSAGE)
        return ExecutionResult.failure(
            ERROR_MESSAGE, {"error": f"{type(exc).__name__}: {exc}"}
        )

    def _audit(
        self,
        definition: TriggerDefinition,
        context: ExecutionContext,
        params: Mapping[str, Any],
        result: ExecutionResult,
        outcome: str,
    ) -> None:
        entry = AuditLogEntry.record(
            definition, context, params, result, outcome, timestamp=self._clock()
        )
        try:
            self._audit_log.append(entry)
        except Exception:
            logger.exception(
                "Failed to append audit entry for trigger '%s'", definition.id
            )
