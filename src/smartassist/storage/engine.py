"""Database engine setup for the SmartAssist key-value store."""

from __future__ import annotations

import logging

from sqlalchemy import Engine, create_engine, event, select
from sqlalchemy.orm import Session, sessionmaker

from smartassist.storage.schema import AssistantMetaRow, Base

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1"

_SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA busy_timeout=5000",
    "PRAGMA synchronous=NORMAL",
)


def create_assistant_engine(
    db_path: str = ":memory:",
    *,
    url: str | None = None,
) -> Engine:
    """Engine for the settings, counter, and audit store.

    ``db_path`` names a SQLite file (``":memory:"`` for a throwaway store).
    ``url`` takes precedence and accepts any SQLAlchemy URL, which is how
    several worker processes share one store.

    SQLite connections get WAL journaling and a busy timeout so that
    concurrent requests incrementing rate-limit counters wait for the
    write lock instead of failing.
    """
    if url is not None:
        target = url
    elif db_path == ":memory:":
        target = "sqlite://"
    else:
        target = f"sqlite:///{db_path}"
    engine = create_engine(target, echo=False)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine, "connect")
        def _apply_pragmas(dbapi_conn, connection_record):  # type: ignore[no-untyped-def]
            cursor = dbapi_conn.cursor()
            for pragma in _SQLITE_PRAGMAS:
                cursor.execute(pragma)
            cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    # Rows are read back after commit (counters, audit list).
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> str:
    """Create missing tables and record the schema version.

    Returns the schema version stored in the database, which is the
    current one for a fresh store.
    """
    Base.metadata.create_all(engine)

    with create_session_factory(engine)() as session:
        row = session.execute(
            select(AssistantMetaRow).where(AssistantMetaRow.key == "schema_version")
        ).scalar_one_or_none()
        if row is not None:
            return row.value

        session.add(AssistantMetaRow(key="schema_version", value=SCHEMA_VERSION))
        session.commit()
        logger.debug("Initialized SmartAssist store at schema version %s", SCHEMA_VERSION)
        return SCHEMA_VERSION
