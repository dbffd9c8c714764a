"""Trigger protocol -- the capability every directive type exposes.

Users implement this to add a directive type (e.g. ``[BOOK_TABLE:...]``).
Built-in EmailPostAuthorTrigger, AddToCartTrigger, and ShowProductsTrigger
also implement it. There is no base class to inherit from: any object with
these members can be registered.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, Union, runtime_checkable

if TYPE_CHECKING:
    from smartassist.models.trigger import (
        ExecutionContext,
        ExecutionResult,
        TriggerDefinition,
    )

TriggerReturn = Union["ExecutionResult", Mapping[str, Any], None]


@runtime_checkable
class Trigger(Protocol):
    """Contract for one directive type.

    Example::

        class PingTrigger:
            definition = TriggerDefinition(
                id="ping",
                name="Ping",
                command_pattern=r"\\[PING:([^\\]]+)\\]",
                required_params=("target",),
            )

            def can_execute(self, context: ExecutionContext) -> bool:
                return True

            def execute(self, params, context) -> ExecutionResult:
                return ExecutionResult(message=f"pong {params['target']}")

    Triggers are never called directly by the dispatcher; every invocation
    goes through SafeExecutor.safe_execute().
    """

    @property
    def definition(self) -> TriggerDefinition:
        """Static metadata: id, name, description, pattern, params, schema."""
        ...

    def can_execute(self, context: ExecutionContext) -> bool:
        """Authorization predicate. Must not have side effects."""
        ...

    def execute(
        self, params: dict[str, Any], context: ExecutionContext
    ) -> TriggerReturn:
        """Perform the action with sanitized params.

        May raise, or return ``success=False``. Omitted result fields are
        filled in by the safety wrapper.
        """
        ...
