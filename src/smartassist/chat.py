"""Chat service -- one user turn from question to clean display text.

Flow for ``ChatService.handle()``:

    1. per-session chat rate limit (``chat_rate:<session_id>``)
    2. reject an empty message
    3. sanitize the history and keep the most recent turns
    4. build the system prompt from site info and the content supplier
    5. call the LLM
    6. run every directive in the reply, then strip them for display

The dispatch engine does not depend on this module; it is the thin
request surface that feeds model output into the Dispatcher.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from smartassist.exceptions import ChatInputError, ChatRateLimitedError
from smartassist.llm.errors import LLMClientError
from smartassist.models.trigger import ExecutionContext, Message
from smartassist.triggers.sanitize import sanitize_text, sanitize_textarea

if TYPE_CHECKING:
    from smartassist.dispatcher import Dispatcher
    from smartassist.llm.protocols import LLMClient
    from smartassist.models.config import AssistantConfig
    from smartassist.models.trigger import DispatchResult
    from smartassist.ratelimit import RateLimiter

logger = logging.getLogger(__name__)

HISTORY_ROLES = frozenset({"user", "assistant"})

SYSTEM_PROMPT_TEMPLATE = """\
You are a helpful assistant for {site_name} ({site_url}). Your role is to \
answer questions ONLY using the content provided below from this website.

Instructions:
1. The content below is the source of truth. Prefer it over anything said \
earlier in the conversation.
2. Match the user's terms against the content case-insensitively, allowing \
for partial matches and small spelling differences.
3. If you earlier said something was unavailable but it is in the content \
below, correct yourself.
4. Only say information is not available after checking every item below.
5. When you use an item, cite its title.

Be concise, friendly, and helpful.{content}"""


@dataclass(frozen=True)
class ContentItem:
    """One piece of site content offered to the model as context."""

    title: str
    content: str


@runtime_checkable
class ContentSupplier(Protocol):
    """Source of the site content placed in the system prompt."""

    def get_content_for_context(self) -> list[ContentItem]:
        ...


@dataclass(frozen=True)
class ChatReply:
    """What the chat surface returns for one user turn."""

    message: str
    original_message: str
    triggers_executed: list[DispatchResult] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "original_message": self.original_message,
            "triggers_executed": [r.to_dict() for r in self.triggers_executed],
            "timestamp": self.timestamp.isoformat(),
        }


def session_id_for(ip_address: str, user_agent: str) -> str:
    """Stable anonymous session id derived from client address and agent."""
    raw = f"{ip_address or 'unknown'}{user_agent or 'unknown'}"
    return hashlib.md5(raw.encode("utf-8")).hexdigest()


def trim_words(text: str, max_words: int) -> str:
    """First max_words words of text, with an ellipsis when cut."""
    words = text.split()
    if len(words) <= max_words:
        return " ".join(words)
    return " ".join(words[:max_words]) + "..."


def sanitize_history(
    history: Iterable[Any] | None, limit: int
) -> list[Message]:
    """Well-formed user/assistant turns from untrusted history, most recent ``limit``.

    Entries that are not role/content mappings (or Message objects), or
    whose role is anything other than user or assistant, are dropped.
    """
    turns: list[Message] = []
    for item in history or ():
        if isinstance(item, Message):
            role, content = item.role, item.content
        elif isinstance(item, Mapping) and "role" in item and "content" in item:
            role, content = item["role"], item["content"]
        else:
            continue
        role = sanitize_text(role).lower()
        if role not in HISTORY_ROLES:
            continue
        turns.append(Message(role=role, content=sanitize_textarea(content)))

    if limit <= 0:
        return []
    return turns[-limit:]


def build_system_prompt(
    site_name: str, site_url: str, items: Iterable[ContentItem]
) -> str:
    items = list(items)
    content = ""
    if items:
        blocks = [
            f"[Post {index}]\nTitle: {item.title}\nContent: {item.content}\n"
            for index, item in enumerate(items, start=1)
        ]
        content = (
            "\n\n=== AVAILABLE CONTENT FROM THE WEBSITE ===\n\n"
            + "\n".join(blocks)
            + "\n=== END OF CONTENT ===\n"
        )
    return SYSTEM_PROMPT_TEMPLATE.format(
        site_name=site_name, site_url=site_url, content=content
    )


class ChatService:
    """Handles one chat turn end to end.

    Args:
        client: LLM client used for the completion.
        dispatcher: Executes and strips directives in the model's reply.
        rate_limiter: Throttles chat requests per session.
        content: Supplies site content for the system prompt.
        config: Site info, model name, history and rate-limit bounds.
    """

    def __init__(
        self,
        client: LLMClient,
        dispatcher: Dispatcher,
        rate_limiter: RateLimiter,
        content: ContentSupplier,
        config: AssistantConfig,
    ) -> None:
        self._client = client
        self._dispatcher = dispatcher
        self._rate_limiter = rate_limiter
        self._content = content
        self._config = config

    def build_messages(
        self, message: str, history: list[Message]
    ) -> list[dict[str, str]]:
        items = list(self._content.get_content_for_context())[: self._config.max_context_posts]
        system_prompt = build_system_prompt(
            self._config.site_name, self._config.site_url, items
        )
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend(turn.to_dict() for turn in history)
        messages.append({"role": "user", "content": message})
        return messages

    def handle(
        self,
        message: str,
        history: Iterable[Any] | None,
        context: ExecutionContext,
    ) -> ChatReply:
        """Answer message and run any directives in the answer.

        Raises:
            ChatRateLimitedError: The session sent too many messages.
            ChatInputError: The message is empty after sanitizing.
            LLMClientError: The model call failed.
        """
        session_id = context.session_id or session_id_for(
            context.ip_address, context.user_agent
        )
        if not self._rate_limiter.allow(
            f"chat_rate:{session_id}",
            window_seconds=self._config.chat_rate_window_seconds,
            max_count=self._config.chat_rate_max,
        ):
            raise ChatRateLimitedError(session_id, self._config.chat_rate_window_seconds)

        user_message = sanitize_text(message)
        if not user_message:
            raise ChatInputError("Please enter a message.")

        turns = sanitize_history(history, self._config.history_limit)
        messages = self.build_messages(user_message, turns)

        try:
            response = self._client.chat(messages, model=self._config.model)
            reply = self._client.extract_content(response)
        except LLMClientError:
            logger.exception("LLM request failed for session %s", session_id)
            raise

        turn_context = ExecutionContext(
            user_id=context.user_id,
            session_id=session_id,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            timestamp=context.timestamp,
            conversation_history=tuple(turns),
            user_message=user_message,
            capabilities=context.capabilities,
        )
        results = self._dispatcher.parse_and_execute(reply, turn_context)
        clean = self._dispatcher.strip_commands(reply)
        logger.debug(
            "Chat turn for session %s executed %d directive(s)", session_id, len(results)
        )
        return ChatReply(
            message=clean,
            original_message=reply,
            triggers_executed=results,
        )
