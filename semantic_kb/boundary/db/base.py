"""
Declarative base and column mixins for the chunk store.

Column types are dialect-neutral so the same models run on PostgreSQL
(asyncpg) and on SQLite (aiosqlite) in tests and local use.

Dependencies: sqlalchemy
System role: Foundation for all database models
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Registry for every ORM model; `Base.metadata` drives table creation."""

    pass


class UUIDMixin:
    """
    Random UUID primary key.

    Stored as a native UUID on PostgreSQL and as a 32-char hex string
    on SQLite.
    """

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )


class TimestampMixin:
    """
    Row creation and modification times, in UTC.

    SQLite drops the offset on read; callers comparing these values
    must treat naive datetimes as UTC.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )
