"""TriggerRegistry -- owns the set of active triggers.

The registry is constructed explicitly by the embedding application and
passed to the Dispatcher and any admin surface. It initializes lazily,
exactly once: the first read registers the built-in triggers in order,
then calls each extension with the registry so third-party code can add
its own triggers without touching this module.

    registry = TriggerRegistry(
        builtins=[EmailPostAuthorTrigger(...)],
        extensions=[register_booking_triggers],
    )
    dispatcher = Dispatcher(registry, executor)

After initialization the trigger set is read-mostly; concurrent reads
need no locking.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from smartassist.triggers.protocols import Trigger

logger = logging.getLogger(__name__)

Extension = Callable[["TriggerRegistry"], None]
TriggerFilter = Callable[[list["Trigger"]], list["Trigger"]]
RegisteredListener = Callable[["Trigger"], None]
UnregisteredListener = Callable[[str], None]


class TriggerRegistry:
    """Ordered collection of triggers keyed by definition id.

    Features:
    - Built-ins first, then extensions, registered once on first use
    - Duplicate ids rejected with a False return (not an exception)
    - Read-time filters that reshape ``get_all()`` without mutating storage
    - Listeners notified on register/unregister
    """

    def __init__(
        self,
        builtins: Iterable[Trigger] = (),
        extensions: Iterable[Extension] = (),
    ) -> None:
        self._triggers: dict[str, Trigger] = {}
        self._builtins: list[Trigger] = list(builtins)
        self._extensions: list[Extension] = list(extensions)
        self._filters: list[TriggerFilter] = []
        self._on_registered: list[RegisteredListener] = []
        self._on_unregistered: list[UnregisteredListener] = []
        self._initialized = False
        self._init_lock = threading.RLock()

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Register built-ins, then run extensions. Runs at most once.

        Calls made from inside an extension (register, get_all, ...) see
        the partially built set instead of re-entering initialization.
        """
        if self._initialized:
            return
        with self._init_lock:
            if self._initialized:
                return
            self._initialized = True

            for trigger in self._builtins:
                self.register(trigger)
            for extension in self._extensions:
                self._run_extension(extension)

            logger.debug(
                "Trigger registry initialized with %d trigger(s): %s",
                len(self._triggers),
                ", ".join(self._triggers),
            )

    def _run_extension(self, extension: Extension) -> None:
        # A failing extension must not block the ones after it.
        try:
            extension(self)
        except Exception:
            logger.exception("Trigger extension %r failed", extension)

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def add_extension(self, extension: Extension) -> None:
        """Add a registration function.

        Before initialization it runs with the other extensions; after
        initialization it runs immediately.
        """
        if self._initialized:
            self._run_extension(extension)
        else:
            self._extensions.append(extension)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, trigger: Trigger) -> bool:
        """Add a trigger. Returns False (no-op) if its id is already taken."""
        self.initialize()
        trigger_id = trigger.definition.id
        if trigger_id in self._triggers:
            logger.warning(
                "Trigger id '%s' is already registered; ignoring %r",
                trigger_id,
                trigger,
            )
            return False

        self._triggers[trigger_id] = trigger
        for listener in self._on_registered:
            listener(trigger)
        return True

    def unregister(self, trigger_id: str) -> bool:
        """Remove a trigger by id. Returns False if it was not registered."""
        self.initialize()
        if trigger_id not in self._triggers:
            return False

        del self._triggers[trigger_id]
        for listener in self._on_unregistered:
            listener(trigger_id)
        return True

    def on_registered(self, listener: RegisteredListener) -> None:
        """Call listener(trigger) after each successful register()."""
        self._on_registered.append(listener)

    def on_unregistered(self, listener: UnregisteredListener) -> None:
        """Call listener(trigger_id) after each successful unregister()."""
        self._on_unregistered.append(listener)

    def add_filter(self, trigger_filter: TriggerFilter) -> None:
        """Reshape the list returned by get_all().

        Filters run in the order added, each receiving the previous
        filter's output. Their result is never stored.
        """
        self._filters.append(trigger_filter)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_all(self) -> list[Trigger]:
        """Active triggers in registration order, after filters."""
        self.initialize()
        triggers = list(self._triggers.values())
        for trigger_filter in self._filters:
            triggers = list(trigger_filter(triggers))
        return triggers

    def get(self, trigger_id: str) -> Trigger | None:
        """Look up a trigger by id in the filtered view."""
        for trigger in self.get_all():
            if trigger.definition.id == trigger_id:
                return trigger
        return None

    @property
    def ids(self) -> list[str]:
        return [t.definition.id for t in self.get_all()]

    def __contains__(self, trigger_id: object) -> bool:
        return isinstance(trigger_id, str) and self.get(trigger_id) is not None

    def __iter__(self) -> Iterator[Trigger]:
        return iter(self.get_all())

    def __len__(self) -> int:
        return len(self.get_all())
