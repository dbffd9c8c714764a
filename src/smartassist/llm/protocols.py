"""The model client the chat service depends on."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class LLMClient(Protocol):
    """Anything that can turn a message list into a completion dict.

    OpenAIClient is the shipped implementation; tests substitute a fake
    that returns canned replies.
    """

    def chat(
        self,
        messages: list[dict[str, str]],
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> dict:
        ...

    def extract_content(self, response: dict) -> str:
        """Reply text from a chat() result."""
        ...

    def close(self) -> None:
        ...
