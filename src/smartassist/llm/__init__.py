"""LLM client infrastructure for SmartAssist.

Provides an OpenAI-compatible HTTP client and the pluggable LLMClient
protocol the chat service depends on.
"""

from smartassist.llm.client import OpenAIClient
from smartassist.llm.errors import (
    LLMAuthError,
    LLMClientError,
    LLMConfigError,
    LLMRateLimitError,
    LLMRequestError,
    LLMResponseError,
    LLMUnavailableError,
)
from smartassist.llm.protocols import LLMClient

__all__ = [
    "OpenAIClient",
    "LLMClient",
    "LLMClientError",
    "LLMConfigError",
    "LLMRateLimitError",
    "LLMAuthError",
    "LLMRequestError",
    "LLMResponseError",
    "LLMUnavailableError",
]
