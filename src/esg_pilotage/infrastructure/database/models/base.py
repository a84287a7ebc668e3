# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Declarative Base and canonical persistence mixins.

This module defines:
    - A project-wide SQLAlchemy Declarative Base with deterministic naming
      conventions (for stable Alembic diffs) and a configurable schema.
    - Persistence mixins for identity (UUIDv4) and audit timestamps (UTC).
    - Small helpers shared by the pilotage models.

Design Goals:
    * UTC everywhere.
    * Deterministic schema: naming conventions prevent Alembic churn.
    * Persistence-only; no domain behavior.
"""

from __future__ import annotations

import os
import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import ForeignKey, MetaData
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import DateTime

__all__ = [
    "metadata",
    "Base",
    "DEFAULT_DB_SCHEMA",
    "IdentityMixin",
    "TimestampMixin",
    "fk",
    "now_utc",
    "qualified",
    "schema_args",
]

#: Schema holding the pilotage tables. Read from the environment directly so
#: that importing models never requires a complete application configuration.
DEFAULT_DB_SCHEMA: str | None = os.getenv("DB_SCHEMA", "public") or None

#: Deterministic naming conventions for Alembic-friendly diffs.
#: Ref: https://alembic.sqlalchemy.org/en/latest/naming.html
NAMING_CONVENTIONS: dict[str, str] = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=NAMING_CONVENTIONS)


def now_utc() -> datetime:
    """Return the current UTC time with timezone info."""
    return datetime.now(UTC)


def qualified(name: str) -> str:
    """Prefix ``name`` with the configured schema, if any."""
    return f"{DEFAULT_DB_SCHEMA}.{name}" if DEFAULT_DB_SCHEMA else name


def fk(column: str, *, ondelete: str | None = None) -> ForeignKey:
    """Build a schema-qualified foreign key to ``table.column``."""
    return ForeignKey(qualified(column), ondelete=ondelete)


class Base(DeclarativeBase):
    """Declarative Base for all ORM models.

    Attaches the metadata with stable naming conventions and the default
    PostgreSQL schema. Models declaring extra table arguments must include
    :func:`schema_args` themselves.
    """

    metadata = metadata

    @declared_attr.directive
    def __table_args__(cls) -> tuple[Any, ...]:
        return schema_args()


def schema_args(*constraints: Any) -> tuple[Any, ...]:
    """Return ``__table_args__`` with ``constraints`` and the default schema."""
    if DEFAULT_DB_SCHEMA:
        return (*constraints, {"schema": DEFAULT_DB_SCHEMA})
    return constraints


class IdentityMixin:
    """Mixin providing a UUIDv4 primary key ``id`` column."""

    id: Mapped[uuid.UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )


class TimestampMixin:
    """Mixin providing immutable ``created_at`` and mutable ``updated_at`` timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now_utc,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now_utc,
        onupdate=now_utc,
        server_default=func.now(),
    )
