"""Configuration models for SmartAssist.

AssistantConfig holds process-wide settings: storage location, audit and
rate-limit bounds, chat prompt parameters, and the verbose flag that
controls whether internal error detail is surfaced to callers.
"""

from __future__ import annotations

import os
from typing import Literal, Optional

from pydantic import BaseModel, Field

_ENV_PREFIX = "SMARTASSIST_"

DispatchOrder = Literal["registry", "position"]


class AssistantConfig(BaseModel):
    """Process-wide configuration.

    Example::

        config = AssistantConfig(db_path="assistant.db", verbose=True)
        config = AssistantConfig.from_env()
    """

    db_path: str = ":memory:"
    db_url: Optional[str] = None
    verbose: bool = False

    audit_capacity: int = Field(default=50, ge=1)
    audit_ttl_seconds: int = Field(default=86400, ge=1)

    trigger_rate_window_seconds: int = Field(default=60, ge=1)
    trigger_rate_max: int = Field(default=10, ge=1)
    chat_rate_window_seconds: int = Field(default=60, ge=1)
    chat_rate_max: int = Field(default=10, ge=1)

    history_limit: int = Field(default=10, ge=0)
    max_context_posts: int = Field(default=50, ge=1)
    site_name: str = "My Site"
    site_url: str = "http://localhost"
    model: str = "gpt-4o-mini"
    dispatch_order: DispatchOrder = "registry"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None, **overrides: object) -> AssistantConfig:
        """Build a config from ``SMARTASSIST_*`` environment variables.

        Variable names are the upper-cased field names, e.g.
        ``SMARTASSIST_DB_PATH`` or ``SMARTASSIST_VERBOSE``. Keyword
        overrides win over the environment. Pydantic coerces the string
        values ("1", "true", "60") to the field types.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for name in cls.model_fields:
            raw = env.get(_ENV_PREFIX + name.upper())
            if raw is not None and raw != "":
                values[name] = raw
        values.update(overrides)
        return cls(**values)
