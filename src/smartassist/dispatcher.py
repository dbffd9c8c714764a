"""Dispatcher -- finds directives in model output and drives their execution.

A directive is a bracketed command such as ``[EMAIL_AUTHOR:5:Hello:Hi]``.
Each registered trigger contributes its own pattern; the dispatcher runs
every pattern over the text, maps capturing groups onto the trigger's
required params, and sends each occurrence through the SafeExecutor.

Result order: grouped by trigger in registry order, and within a trigger
in text order. With ``order="position"`` the aggregate is instead sorted
by where each directive starts in the text.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from smartassist.models.trigger import DispatchResult

if TYPE_CHECKING:
    from smartassist.models.config import DispatchOrder
    from smartassist.models.trigger import ExecutionContext
    from smartassist.registry import TriggerRegistry
    from smartassist.triggers.protocols import Trigger
    from smartassist.triggers.safety import SafeExecutor

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class DirectiveMatch:
    """One directive occurrence found in text, not yet executed."""

    trigger: Trigger
    params: dict[str, Any] = field(default_factory=dict)
    start: int = 0
    end: int = 0
    raw: str = ""


def extract_params(match: re.Match[str], required_params: tuple[str, ...]) -> dict[str, str]:
    """Map capturing groups positionally onto param names.

    Groups that did not participate in the match become "" so that
    validation reports them as missing.
    """
    return {
        name: match.group(index) or ""
        for index, name in enumerate(required_params, start=1)
    }


class Dispatcher:
    """Parses directives out of text and executes them.

    Args:
        registry: Source of active triggers, read once per call.
        executor: Safety wrapper every occurrence is executed through.
        order: "registry" (grouped by trigger) or "position" (text order).
    """

    def __init__(
        self,
        registry: TriggerRegistry,
        executor: SafeExecutor,
        *,
        order: DispatchOrder = "registry",
    ) -> None:
        if order not in ("registry", "position"):
            raise ValueError(f"Unknown dispatch order: {order!r}")
        self._registry = registry
        self._executor = executor
        self._order = order

    @property
    def registry(self) -> TriggerRegistry:
        return self._registry

    def find_directives(self, text: str) -> list[DirectiveMatch]:
        """All non-overlapping directive occurrences, without executing them."""
        found: list[DirectiveMatch] = []
        if not text:
            return found

        for trigger in self._registry.get_all():
            definition = trigger.definition
            for match in definition.pattern.finditer(text):
                found.append(
                    DirectiveMatch(
                        trigger=trigger,
                        params=extract_params(match, definition.required_params),
                        start=match.start(),
                        end=match.end(),
                        raw=match.group(0),
                    )
                )

        if self._order == "position":
            found.sort(key=lambda m: m.start)
        return found

    def parse_and_execute(
        self, text: str, context: ExecutionContext
    ) -> list[DispatchResult]:
        """Execute every directive in text; one DispatchResult per occurrence."""
        results: list[DispatchResult] = []
        for directive in self.find_directives(text):
            definition = directive.trigger.definition
            logger.debug(
                "Dispatching '%s' at offset %d: %s",
                definition.id,
                directive.start,
                directive.params,
            )
            result = self._executor.safe_execute(
                directive.trigger, directive.params, context
            )
            results.append(
                DispatchResult.from_execution(definition, result, start=directive.start)
            )
        return results

    def strip_commands(self, text: str) -> str:
        """Text with every directive removed and whitespace collapsed.

        Independent of parse_and_execute(). Repeats until nothing changes,
        so removing one directive cannot leave another behind and
        ``strip_commands(strip_commands(s)) == strip_commands(s)``.
        """
        patterns = [t.definition.pattern for t in self._registry.get_all()]
        cleaned = text
        while True:
            stripped = cleaned
            for pattern in patterns:
                stripped = pattern.sub("", stripped)
            stripped = _WHITESPACE_RE.sub(" ", stripped).strip()
            if stripped == cleaned:
                return stripped
            cleaned = stripped
