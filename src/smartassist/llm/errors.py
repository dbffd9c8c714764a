"""Errors raised by the chat model client.

Everything derives from LLMClientError, itself a SmartAssistError, so the
chat surface can handle any model failure with one except clause.
"""

from __future__ import annotations

from smartassist.exceptions import SmartAssistError


class LLMClientError(SmartAssistError):
    """Base for all model client errors."""


class LLMConfigError(LLMClientError):
    """The client cannot be built, e.g. no API key is configured."""


class LLMAuthError(LLMClientError):
    """The API rejected the credentials (401/403). Never retried."""


class LLMRateLimitError(LLMClientError):
    """The API answered 429.

    Attributes:
        retry_after: Seconds from the Retry-After header, or None.
    """

    def __init__(self, message: str = "Rate limited", retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        if retry_after is not None:
            message = f"{message} (retry after {retry_after}s)"
        super().__init__(message)


class LLMUnavailableError(LLMClientError):
    """Server error (5xx) or the API could not be reached."""


class LLMRequestError(LLMClientError):
    """The API refused the request for a reason other than auth or rate (4xx).

    Attributes:
        status_code: The HTTP status returned.
    """

    def __init__(self, message: str, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(message)


class LLMResponseError(LLMClientError):
    """The completion body did not have the expected shape."""
