"""Per-trigger settings persistence.

Each trigger's settings live under ``trigger_settings:<trigger_id>`` in the
key-value store, without expiry. Reads merge the trigger's schema defaults
under whatever is stored, so fields added to a schema later still resolve.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from smartassist.exceptions import StorageError

if TYPE_CHECKING:
    from smartassist.models.trigger import TriggerDefinition
    from smartassist.storage.repositories import KeyValueStore

logger = logging.getLogger(__name__)

SETTINGS_PREFIX = "trigger_settings:"

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})


def as_bool(value: Any) -> bool:
    """Interpret a stored checkbox value ("0", "false", 0, False are off)."""
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def sanitize_settings(values: Mapping[str, Any]) -> dict[str, Any]:
    """Clean admin-submitted settings before they are stored.

    ``enabled`` becomes a bool, keys naming an email or url go through the
    matching sanitizer, lists are cleaned item by item, and everything else
    is treated as single-line text.
    """
    from smartassist.triggers.sanitize import sanitize_email, sanitize_text, sanitize_url

    cleaned: dict[str, Any] = {}
    for key, value in values.items():
        if key == "enabled":
            cleaned[key] = as_bool(value)
        elif "email" in key:
            cleaned[key] = sanitize_email(value)
        elif "url" in key:
            cleaned[key] = sanitize_url(value)
        elif isinstance(value, (list, tuple)):
            cleaned[key] = [sanitize_text(v) for v in value]
        else:
            cleaned[key] = sanitize_text(value)
    return cleaned


class TriggerSettingsStore:
    """Reads and writes trigger settings maps keyed by trigger id."""

    def __init__(self, store: KeyValueStore, *, prefix: str = SETTINGS_PREFIX) -> None:
        self._store = store
        self._prefix = prefix

    def _key(self, trigger_id: str) -> str:
        return f"{self._prefix}{trigger_id}"

    def get(self, trigger_id: str) -> dict[str, Any]:
        """Stored settings for trigger_id, without defaults. Empty if unset."""
        raw = self._store.get(self._key(trigger_id))
        if raw is None:
            return {}
        if not isinstance(raw, Mapping):
            raise StorageError(
                f"Settings for trigger '{trigger_id}' are "
                f"{type(raw).__name__}, expected mapping"
            )
        return dict(raw)

    def set(self, trigger_id: str, settings: Mapping[str, Any]) -> bool:
        """Replace the stored settings for trigger_id."""
        self._store.set(self._key(trigger_id), dict(settings))
        logger.debug("Saved settings for trigger '%s'", trigger_id)
        return True

    def update(self, trigger_id: str, **changes: Any) -> dict[str, Any]:
        """Merge changes into the stored settings and return the result."""
        merged = {**self.get(trigger_id), **changes}
        self.set(trigger_id, merged)
        return merged

    def resolve(self, definition: TriggerDefinition) -> dict[str, Any]:
        """Stored settings with schema defaults applied for missing fields."""
        return {**definition.defaults(), **self.get(definition.id)}

    def is_enabled(self, definition: TriggerDefinition) -> bool:
        return as_bool(self.resolve(definition).get("enabled", True))

    def set_enabled(self, definition: TriggerDefinition, enabled: bool) -> None:
        self.update(definition.id, enabled=enabled)
