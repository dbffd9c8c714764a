"""Trigger package -- directive types and the pipeline that runs them.

Provides the Trigger protocol, the SafeExecutor safety wrapper, param
sanitizers, and the built-in triggers.
"""

from smartassist.triggers.protocols import Trigger
from smartassist.triggers.safety import SafeExecutor, validate_params
from smartassist.triggers.builtin import (
    AddToCartTrigger,
    EmailPostAuthorTrigger,
    ShowProductsTrigger,
    builtin_triggers,
)

__all__ = [
    "Trigger",
    "SafeExecutor",
    "validate_params",
    "EmailPostAuthorTrigger",
    "AddToCartTrigger",
    "ShowProductsTrigger",
    "builtin_triggers",
]
