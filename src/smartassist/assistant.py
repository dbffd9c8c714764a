"""Assistant -- wires storage, settings, audit, and dispatch together.

``Assistant.open()`` is the single place the collaborators are built, so
the embedding application and the admin CLI get the same object graph:

    with Assistant.open(config, content=cms, mailer=mail, shop=shop) as assistant:
        results = assistant.dispatcher.parse_and_execute(text, context)
        clean = assistant.dispatcher.strip_commands(text)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from smartassist.audit import AuditLog
from smartassist.chat import ChatService
from smartassist.dispatcher import Dispatcher
from smartassist.exceptions import TriggerNotFoundError
from smartassist.models.config import AssistantConfig
from smartassist.models.trigger import ExecutionContext, ExecutionResult, RateLimitRule
from smartassist.ratelimit import RateLimiter
from smartassist.registry import Extension, TriggerRegistry
from smartassist.settings import TriggerSettingsStore
from smartassist.storage.engine import (
    create_assistant_engine,
    create_session_factory,
    init_db,
)
from smartassist.storage.sqlite import SqliteKeyValueStore, utcnow
from smartassist.triggers.builtin import builtin_triggers
from smartassist.triggers.safety import SafeExecutor

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy import Engine
    from sqlalchemy.orm import Session

    from smartassist.chat import ContentSupplier
    from smartassist.llm.protocols import LLMClient
    from smartassist.storage.repositories import KeyValueStore
    from smartassist.triggers.builtin.collaborators import ContentSource, Mailer, Shop
    from smartassist.triggers.protocols import Trigger

logger = logging.getLogger(__name__)


def fire_session_id(now: datetime | None = None) -> str:
    """Session id for an admin test run: ``test_<unix seconds>``."""
    now = now or datetime.now(timezone.utc)
    return f"test_{int(now.timestamp())}"


def build_default_registry(
    settings: TriggerSettingsStore,
    *,
    content: ContentSource,
    mailer: Mailer,
    shop: Shop | None = None,
    config: AssistantConfig | None = None,
    admin_email: str = "",
    extensions: Iterable[Extension] = (),
) -> TriggerRegistry:
    """Registry holding the built-in triggers followed by extensions."""
    config = config or AssistantConfig()
    return TriggerRegistry(
        builtins=builtin_triggers(
            settings,
            content=content,
            mailer=mailer,
            shop=shop,
            site_name=config.site_name,
            admin_email=admin_email,
        ),
        extensions=extensions,
    )


class Assistant:
    """Owns the storage session and every component built on it.

    Use :meth:`open` rather than the constructor.
    """

    def __init__(
        self,
        *,
        engine: Engine | None,
        session: Session,
        config: AssistantConfig,
        store: KeyValueStore,
        settings: TriggerSettingsStore,
        audit_log: AuditLog,
        rate_limiter: RateLimiter,
        executor: SafeExecutor,
        registry: TriggerRegistry,
        dispatcher: Dispatcher,
    ) -> None:
        self._engine = engine
        self._session = session
        self.config = config
        self.store = store
        self.settings = settings
        self.audit_log = audit_log
        self.rate_limiter = rate_limiter
        self.executor = executor
        self.registry = registry
        self.dispatcher = dispatcher
        self._closed = False

    @classmethod
    def open(
        cls,
        config: AssistantConfig | None = None,
        *,
        content: ContentSource,
        mailer: Mailer,
        shop: Shop | None = None,
        admin_email: str = "",
        extensions: Iterable[Extension] = (),
        clock: Callable[[], datetime] = utcnow,
    ) -> Assistant:
        """Open (or create) the store and build the dispatch stack.

        Args:
            config: Process configuration. ``AssistantConfig()`` if None.
            content: Post/author lookups for the email trigger.
            mailer: Outbound mail for the email trigger.
            shop: Catalog and cart. The commerce triggers are only
                registered when one is given.
            admin_email: Fallback sender address.
            extensions: Registration functions run after the built-ins.
            clock: Naive-UTC clock for key expiry (tests pass a fake).
        """
        config = config or AssistantConfig()

        engine = create_assistant_engine(config.db_path, url=config.db_url)
        init_db(engine)
        session = create_session_factory(engine)()

        store = SqliteKeyValueStore(session, clock=clock)
        settings = TriggerSettingsStore(store)
        audit_log = AuditLog(
            store,
            capacity=config.audit_capacity,
            ttl_seconds=config.audit_ttl_seconds,
        )
        rate_limiter = RateLimiter(store)
        executor = SafeExecutor(
            settings,
            audit_log,
            rate_limiter,
            default_rate_limit=RateLimitRule(
                window_seconds=config.trigger_rate_window_seconds,
                max_count=config.trigger_rate_max,
            ),
            verbose=config.verbose,
        )
        registry = build_default_registry(
            settings,
            content=content,
            mailer=mailer,
            shop=shop,
            config=config,
            admin_email=admin_email,
            extensions=extensions,
        )
        dispatcher = Dispatcher(registry, executor, order=config.dispatch_order)

        return cls(
            engine=engine,
            session=session,
            config=config,
            store=store,
            settings=settings,
            audit_log=audit_log,
            rate_limiter=rate_limiter,
            executor=executor,
            registry=registry,
            dispatcher=dispatcher,
        )

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------

    def get_trigger(self, trigger_id: str) -> Trigger:
        """Registered trigger by id.

        Raises:
            TriggerNotFoundError: No trigger has that id.
        """
        trigger = self.registry.get(trigger_id)
        if trigger is None:
            raise TriggerNotFoundError(trigger_id)
        return trigger

    def set_enabled(self, trigger_id: str, enabled: bool) -> None:
        trigger = self.get_trigger(trigger_id)
        self.settings.set_enabled(trigger.definition, enabled)
        logger.info("Trigger '%s' %s", trigger_id, "enabled" if enabled else "disabled")

    def fire(
        self,
        trigger_id: str,
        params: Mapping[str, Any],
        context: ExecutionContext | None = None,
    ) -> ExecutionResult:
        """Run one trigger directly through the safety wrapper.

        The admin "test" action: no directive text is parsed, but the
        enabled check, authorization, validation, and audit still apply.
        """
        trigger = self.get_trigger(trigger_id)
        if context is None:
            context = ExecutionContext(
                session_id=fire_session_id(),
                user_message="Test message",
            )
        return self.executor.safe_execute(trigger, params, context)

    def chat_service(self, client: LLMClient, content: ContentSupplier) -> ChatService:
        return ChatService(client, self.dispatcher, self.rate_limiter, content, self.config)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the session and dispose the engine."""
        if self._closed:
            return
        self._closed = True
        self._session.close()
        if self._engine is not None:
            self._engine.dispose()

    def __enter__(self) -> Assistant:
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"{len(self.registry)} triggers"
        return f"<Assistant db={self.config.db_path!r} {state}>"
