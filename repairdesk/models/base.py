"""Declarative base and the column mixins shared by every table."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from ulid import ULID


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Sortable 26-char ULID string; ordering by id follows insertion time."""
    return str(ULID())


class Base(DeclarativeBase):
    pass


class ULIDMixin:
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class TimestampMixin:
    """Adds updated_at, bumped by the ORM on every UPDATE."""

    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None, onupdate=utcnow
    )
