"""
SQLAlchemy Base for FlowState.

This module provides the declarative base for all SQLAlchemy models.

Usage:
    from flowstate.models.base import Base

    class MyModel(Base):
        __tablename__ = "my_table"
        ...
"""

from datetime import UTC, datetime

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base shared by every FlowState table."""


def utcnow() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo on the way back; reattach UTC to naive timestamps."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


__all__ = ["Base", "utcnow", "ensure_utc"]
