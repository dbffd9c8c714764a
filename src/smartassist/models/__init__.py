"""Domain models for SmartAssist."""

from smartassist.models.config import AssistantConfig, DispatchOrder
from smartassist.models.trigger import (
    AuditLogEntry,
    DispatchResult,
    ExecutionContext,
    ExecutionResult,
    Message,
    ParamCheck,
    RateLimitRule,
    SettingField,
    TriggerDefinition,
)

__all__ = [
    "AssistantConfig",
    "AuditLogEntry",
    "DispatchOrder",
    "DispatchResult",
    "ExecutionContext",
    "ExecutionResult",
    "Message",
    "ParamCheck",
    "RateLimitRule",
    "SettingField",
    "TriggerDefinition",
]
