"""OpenAI-compatible chat completion client over httpx, retried with tenacity.

One call per chat turn: the system prompt, the trimmed history, and the
user's message go out; the raw completion dict comes back. Rate limiting
(429), server errors (5xx), and unreachable hosts are retried with
jittered exponential backoff. Every failure surfaces as an LLMClientError
subclass.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

import httpx
import tenacity

from smartassist.llm.errors import (
    LLMAuthError,
    LLMConfigError,
    LLMRateLimitError,
    LLMRequestError,
    LLMResponseError,
    LLMUnavailableError,
)

logger = logging.getLogger(__name__)

API_KEY_ENV = "SMARTASSIST_OPENAI_API_KEY"
BASE_URL_ENV = "SMARTASSIST_OPENAI_BASE_URL"
DEFAULT_BASE_URL = "https://api.openai.com/v1"


@dataclass(frozen=True)
class RetryPolicy:
    """How transient failures are retried.

    ``attempts`` counts the first try, so 1 disables retrying.
    """

    attempts: int = 3
    backoff_min: float = 1.0
    backoff_max: float = 30.0
    jitter: float = 2.0

    def retrying(self) -> tenacity.Retrying:
        return tenacity.Retrying(
            retry=tenacity.retry_if_exception_type((LLMRateLimitError, LLMUnavailableError)),
            wait=(
                tenacity.wait_exponential(multiplier=1, min=self.backoff_min, max=self.backoff_max)
                + tenacity.wait_random(0, self.jitter)
            ),
            stop=tenacity.stop_after_attempt(max(self.attempts, 1)),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )


def _retry_after(response: httpx.Response) -> float | None:
    raw = response.headers.get("Retry-After")
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def check_response(response: httpx.Response) -> dict:
    """Map an HTTP response onto the completion dict or an LLMClientError."""
    status = response.status_code
    if status in (401, 403):
        raise LLMAuthError(f"Chat API rejected the API key (HTTP {status})")
    if status == 429:
        raise LLMRateLimitError(
            f"Chat API rate limit hit: {response.text[:200]}",
            retry_after=_retry_after(response),
        )
    if status >= 500:
        raise LLMUnavailableError(f"Chat API server error (HTTP {status})")
    if status >= 400:
        raise LLMRequestError(
            f"Chat API refused the request (HTTP {status}): {response.text[:200]}",
            status_code=status,
        )

    try:
        data = response.json()
    except ValueError as exc:
        raise LLMResponseError("Chat API returned a non-JSON body") from exc
    if not isinstance(data, dict) or "choices" not in data:
        raise LLMResponseError(f"Completion has no 'choices': {str(data)[:200]}")
    return data


class OpenAIClient:
    """Chat completions against any OpenAI-compatible endpoint.

    Satisfies the LLMClient protocol.

    Usage::

        with OpenAIClient(api_key="sk-...") as client:
            completion = client.chat([{"role": "user", "content": "Opening hours?"}])
            reply = client.extract_content(completion)

    Args:
        api_key: Bearer token. Falls back to ``SMARTASSIST_OPENAI_API_KEY``.
        base_url: API root. Falls back to ``SMARTASSIST_OPENAI_BASE_URL``,
            then the public OpenAI endpoint.
        default_model: Used when chat() is not given a model.
        timeout: Per-request timeout in seconds.
        max_retries: Total attempts for retryable failures.
        default_temperature: Sent unless chat() overrides it; None omits it.
        default_max_tokens: Sent unless chat() overrides it; None omits it.
        transport: httpx transport override (tests pass httpx.MockTransport).

    Raises:
        LLMConfigError: No API key was given or found in the environment.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str = "gpt-4o-mini",
        timeout: float = 30.0,
        max_retries: int = 3,
        default_temperature: float | None = 0.7,
        default_max_tokens: int | None = 500,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        api_key = api_key or os.environ.get(API_KEY_ENV, "")
        if not api_key:
            raise LLMConfigError(f"No API key: pass api_key= or set {API_KEY_ENV}")

        root = base_url or os.environ.get(BASE_URL_ENV) or DEFAULT_BASE_URL
        self.default_model = default_model
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens
        self.retry_policy = RetryPolicy(attempts=max_retries)
        self._http = httpx.Client(
            base_url=root.rstrip("/") + "/",
            timeout=timeout,
            transport=transport,
            headers={"Authorization": f"Bearer {api_key}"},
        )

    def build_payload(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **extra: Any,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"model": model or self.default_model, "messages": messages}
        if temperature is None:
            temperature = self.default_temperature
        if max_tokens is None:
            max_tokens = self.default_max_tokens
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        payload.update(extra)
        return payload

    def chat(
        self,
        messages: list[dict[str, str]],
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> dict:
        """POST one chat completion, retrying transient failures.

        Raises:
            LLMAuthError: Bad credentials, on the first attempt.
            LLMRateLimitError: Still rate limited after the last attempt.
            LLMUnavailableError: Server errors or network failures throughout.
            LLMRequestError: Any other 4xx.
            LLMResponseError: The body is not a completion.
        """
        payload = self.build_payload(messages, model, temperature, max_tokens, **kwargs)
        for attempt in self.retry_policy.retrying():
            with attempt:
                try:
                    response = self._http.post("chat/completions", json=payload)
                except httpx.TransportError as exc:
                    raise LLMUnavailableError(f"Chat API unreachable: {exc}") from exc
                completion = check_response(response)
        logger.debug("Chat completion usage: %s", self.extract_usage(completion))
        return completion

    @staticmethod
    def extract_content(response: dict) -> str:
        """The assistant's reply text ("" when the model returned none).

        Raises:
            LLMResponseError: The completion has no first choice message.
        """
        try:
            return response["choices"][0]["message"].get("content") or ""
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise LLMResponseError(f"Completion has no reply message: {exc!r}") from exc

    @staticmethod
    def extract_usage(response: dict) -> dict | None:
        return response.get("usage")

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> OpenAIClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
