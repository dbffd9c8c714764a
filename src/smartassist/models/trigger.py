"""Domain models for the directive dispatch engine.

Provides data classes for trigger definitions, execution contexts,
execution/dispatch results, validation results, and audit log entries.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from smartassist.exceptions import TriggerConfigError

DEFAULT_SUCCESS_MESSAGE = "Action completed successfully."
DEFAULT_FAILURE_MESSAGE = "Action failed."


@dataclass(frozen=True)
class SettingField:
    """One configurable option of a trigger, rendered by admin surfaces."""

    name: str
    type: str = "text"  # "checkbox", "email", "text", "textarea", "number"
    label: str = ""
    default: Any = None
    description: str = ""


ENABLED_FIELD = SettingField(
    name="enabled",
    type="checkbox",
    label="Enable this trigger",
    default=True,
)


@dataclass(frozen=True)
class RateLimitRule:
    """Fixed-window execution budget for one trigger per session."""

    window_seconds: int = 60
    max_count: int = 10


@dataclass(frozen=True)
class TriggerDefinition:
    """Static description of one directive type.

    Immutable: built once when the trigger is constructed. The command
    pattern is compiled case-insensitively at construction and must have
    exactly one capturing group per required param, in order.

    Example::

        TriggerDefinition(
            id="email_post_author",
            name="Email Post Author",
            description="Sends an email to the author of a post.",
            command_pattern=r"\\[EMAIL_AUTHOR:([^:]+):([^:]+):([^\\]]+)\\]",
            required_params=("post_id", "subject", "message"),
        )
    """

    id: str
    name: str
    command_pattern: str
    required_params: tuple[str, ...] = ()
    description: str = ""
    settings_schema: tuple[SettingField, ...] = ()
    rate_limit: RateLimitRule | None = None  # None: use the executor default
    _compiled: re.Pattern[str] = field(
        init=False, repr=False, compare=False, hash=False
    )

    def __post_init__(self) -> None:
        if not self.id:
            raise TriggerConfigError("Trigger id must be a non-empty string")

        try:
            compiled = re.compile(self.command_pattern, re.IGNORECASE)
        except re.error as exc:
            raise TriggerConfigError(
                f"Trigger '{self.id}' has an invalid command pattern: {exc}"
            ) from exc

        required = tuple(self.required_params)
        if compiled.groups != len(required):
            raise TriggerConfigError(
                f"Trigger '{self.id}' pattern has {compiled.groups} capturing "
                f"group(s) but {len(required)} required param(s)"
            )

        schema = tuple(self.settings_schema)
        if not any(f.name == "enabled" for f in schema):
            schema = (ENABLED_FIELD,) + schema

        object.__setattr__(self, "required_params", required)
        object.__setattr__(self, "settings_schema", schema)
        object.__setattr__(self, "_compiled", compiled)

    @property
    def pattern(self) -> re.Pattern[str]:
        """The compiled, case-insensitive command pattern."""
        return self._compiled

    def defaults(self) -> dict[str, Any]:
        """Default value for every settings field, keyed by field name."""
        return {f.name: f.default for f in self.settings_schema}


@dataclass(frozen=True)
class Message:
    """A single conversation turn."""

    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ExecutionContext:
    """Request-scoped, read-only actor/session metadata.

    Passed to every trigger invocation. ``capabilities`` carries the
    authorization facts the embedding application grants the actor
    (e.g. ``"edit_posts"``); triggers check them in ``can_execute``.
    """

    user_id: int = 0  # 0 = anonymous
    session_id: str = ""
    ip_address: str = ""
    user_agent: str = ""
    timestamp: datetime = field(default_factory=_utcnow)
    conversation_history: tuple[Message, ...] = ()
    user_message: str = ""
    capabilities: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        history = tuple(
            m if isinstance(m, Message) else Message(str(m["role"]), str(m["content"]))
            for m in self.conversation_history
        )
        object.__setattr__(self, "conversation_history", history)
        object.__setattr__(self, "capabilities", frozenset(self.capabilities))

    @property
    def is_anonymous(self) -> bool:
        return self.user_id == 0

    def to_log_dict(self) -> dict[str, Any]:
        """Actor fields suitable for a log line (no conversation content)."""
        return {
            "user_id": self.user_id,
            "session_id": self.session_id,
            "ip_address": self.ip_address,
        }


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one trigger invocation.

    Always fully populated once it leaves the safety wrapper.
    """

    success: bool = True
    message: str = DEFAULT_SUCCESS_MESSAGE
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(cls, message: str, data: dict[str, Any] | None = None) -> ExecutionResult:
        return cls(success=False, message=message, data=dict(data or {}))

    @classmethod
    def normalize(cls, raw: ExecutionResult | Mapping[str, Any] | None) -> ExecutionResult:
        """Fill in whatever a trigger left out of its return value.

        Missing ``success`` defaults to True, missing ``data`` to an empty
        dict, and a missing or empty ``message`` to a generic message
        matching the success flag.
        """
        if isinstance(raw, ExecutionResult):
            success, message, data = raw.success, raw.message, raw.data
        elif isinstance(raw, Mapping):
            success = raw.get("success", True)
            message = raw.get("message")
            data = raw.get("data")
        else:
            success, message, data = True, None, None

        success = bool(success) if success is not None else True
        if not message:
            message = DEFAULT_SUCCESS_MESSAGE if success else DEFAULT_FAILURE_MESSAGE
        data = dict(data) if isinstance(data, Mapping) else {}
        return cls(success=success, message=str(message), data=data)


@dataclass(frozen=True)
class DispatchResult:
    """One matched directive occurrence and its execution result."""

    trigger_id: str
    trigger_name: str
    success: bool
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    start: int = field(default=0, compare=False)

    @classmethod
    def from_execution(
        cls,
        definition: TriggerDefinition,
        result: ExecutionResult,
        start: int = 0,
    ) -> DispatchResult:
        return cls(
            trigger_id=definition.id,
            trigger_name=definition.name,
            success=result.success,
            message=result.message,
            data=dict(result.data),
            start=start,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "trigger_id": self.trigger_id,
            "trigger_name": self.trigger_name,
            "success": self.success,
            "message": self.message,
            "data": self.data,
        }


@dataclass(frozen=True)
class ParamCheck:
    """Tagged result of required-param validation.

    ``ok`` is True with sanitized ``params``, or False with the name of the
    first missing param.
    """

    ok: bool
    params: dict[str, Any] = field(default_factory=dict)
    missing_param: str | None = None

    @classmethod
    def passed(cls, params: dict[str, Any]) -> ParamCheck:
        return cls(ok=True, params=params)

    @classmethod
    def missing(cls, param_name: str) -> ParamCheck:
        return cls(ok=False, missing_param=param_name)

    @property
    def message(self) -> str:
        if self.ok:
            return ""
        return f"{self.missing_param} is missing"


@dataclass(frozen=True)
class AuditLogEntry:
    """A record of one trigger execution attempt, kept for auditing.

    ``outcome`` is one of "executed", "failed", "error", "invalid",
    "denied", "rate_limited".
    """

    trigger_id: str
    trigger_name: str
    user_id: int
    session_id: str
    ip_address: str
    timestamp: datetime
    params: dict[str, Any] = field(default_factory=dict)
    success: bool = False
    message: str = ""
    outcome: str = "executed"

    @classmethod
    def record(
        cls,
        definition: TriggerDefinition,
        context: ExecutionContext,
        params: Mapping[str, Any],
        result: ExecutionResult,
        outcome: str,
        timestamp: datetime | None = None,
    ) -> AuditLogEntry:
        return cls(
            trigger_id=definition.id,
            trigger_name=definition.name,
            user_id=context.user_id,
            session_id=context.session_id,
            ip_address=context.ip_address,
            timestamp=timestamp or _utcnow(),
            params=dict(params),
            success=result.success,
            message=result.message,
            outcome=outcome,
        )

    @property
    def is_denial(self) -> bool:
        return self.outcome == "denied"

    def to_dict(self) -> dict[str, Any]:
        return {
            "trigger_id": self.trigger_id,
            "trigger_name": self.trigger_name,
            "user_id": self.user_id,
            "session_id": self.session_id,
            "ip_address": self.ip_address,
            "timestamp": self.timestamp.isoformat(),
            "params": self.params,
            "success": self.success,
            "message": self.message,
            "outcome": self.outcome,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AuditLogEntry:
        return cls(
            trigger_id=data["trigger_id"],
            trigger_name=data.get("trigger_name", ""),
            user_id=int(data.get("user_id", 0)),
            session_id=data.get("session_id", ""),
            ip_address=data.get("ip_address", ""),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            params=dict(data.get("params") or {}),
            success=bool(data.get("success", False)),
            message=data.get("message", ""),
            outcome=data.get("outcome", "executed"),
        )
