"""SQLAlchemy ORM schema for SmartAssist.

Defines the expiring key-value table that backs trigger settings,
rate-limit counters, and the audit log, plus the _assistant_meta table
used for schema versioning.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Index, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SmartAssist ORM models."""

    pass


class KeyValueRow(Base):
    """One JSON value stored under a string key.

    ``expires_at`` is NULL for persistent values (trigger settings).
    A row whose ``expires_at`` has passed reads as absent.
    """

    __tablename__ = "kv_store"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value_json: Mapped[Any] = mapped_column(JSON, nullable=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (Index("ix_kv_store_expires_at", "expires_at"),)


class AssistantMetaRow(Base):
    """Key-value metadata table for schema versioning."""

    __tablename__ = "_assistant_meta"

    key: Mapped[str] = mapped_column(String(50), primary_key=True)
    value: Mapped[str] = mapped_column(String(255), nullable=False)
