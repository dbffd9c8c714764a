"""SmartAssist: directive triggers for LLM chat replies.

A model embeds bracketed directives such as ``[EMAIL_AUTHOR:5:Hello:Hi]``
in its answers. SmartAssist finds them, runs each one through a uniform
enable/authorize/validate/execute pipeline, records an audit trail, and
returns the reply with the directives stripped for display.
"""

from smartassist._version import __version__

# Core entry point
from smartassist.assistant import Assistant, build_default_registry

# Dispatch engine
from smartassist.dispatcher import DirectiveMatch, Dispatcher
from smartassist.registry import TriggerRegistry
from smartassist.triggers.protocols import Trigger
from smartassist.triggers.safety import SafeExecutor, validate_params

# Models
from smartassist.models.config import AssistantConfig
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

# State
from smartassist.audit import AuditLog
from smartassist.ratelimit import RateLimiter
from smartassist.settings import TriggerSettingsStore

# Chat surface
from smartassist.chat import ChatReply, ChatService, ContentItem, ContentSupplier

# Exceptions
from smartassist.exceptions import (
    ChatError,
    ChatInputError,
    ChatRateLimitedError,
    SmartAssistError,
    StorageError,
    TriggerConfigError,
    TriggerNotFoundError,
)

__all__ = [
    "__version__",
    "Assistant",
    "build_default_registry",
    "Dispatcher",
    "DirectiveMatch",
    "TriggerRegistry",
    "Trigger",
    "SafeExecutor",
    "validate_params",
    "AssistantConfig",
    "AuditLogEntry",
    "DispatchResult",
    "ExecutionContext",
    "ExecutionResult",
    "Message",
    "ParamCheck",
    "RateLimitRule",
    "SettingField",
    "TriggerDefinition",
    "AuditLog",
    "RateLimiter",
    "TriggerSettingsStore",
    "ChatReply",
    "ChatService",
    "ContentItem",
    "ContentSupplier",
    "SmartAssistError",
    "TriggerConfigError",
    "TriggerNotFoundError",
    "StorageError",
    "ChatError",
    "ChatInputError",
    "ChatRateLimitedError",
]
