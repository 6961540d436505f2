"""
SQL Streak Store for FlowState.

One row per user. A new record starts at count 0 with last activity
"now"; update_streak stamps last_active_date with the current time.

Reference: flowstate.services.protocols.StreakStore
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from flowstate.core.types import Streak
from flowstate.lib.exceptions import NotFoundError, StoreError
from flowstate.models.base import ensure_utc, utcnow
from flowstate.models.streak import StreakRecord

logger = structlog.get_logger(__name__)


def _to_streak(record: StreakRecord) -> Streak:
    return Streak(
        count=int(record.count),
        last_active_date=ensure_utc(record.last_active_date),  # type: ignore[arg-type]
    )


class SqlStreakStore:
    """StreakStore backed by SQLAlchemy."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = utcnow,
    ):
        self._session_factory = session_factory
        self._clock = clock

    async def get_streak(self, user_id: str) -> Streak | None:
        try:
            async with self._session_factory() as db:
                record = await db.get(StreakRecord, user_id)
                return _to_streak(record) if record is not None else None
        except SQLAlchemyError as e:
            logger.error("streak_store_get_failed", error=type(e).__name__)
            raise StoreError("Could not load streak") from e

    async def initialize_streak(self, user_id: str) -> Streak:
        """Create the record, or return the existing one unchanged."""
        try:
            async with self._session_factory() as db:
                record = await db.get(StreakRecord, user_id)
                if record is None:
                    record = StreakRecord(user_id=user_id, count=0, last_active_date=self._clock())
                    db.add(record)
                streak = _to_streak(record)
                await db.commit()
                return streak
        except SQLAlchemyError as e:
            logger.error("streak_store_initialize_failed", error=type(e).__name__)
            raise StoreError("Could not initialize streak") from e

    async def update_streak(self, user_id: str, count: int) -> None:
        try:
            async with self._session_factory() as db:
                record = await db.get(StreakRecord, user_id)
                if record is None:
                    raise NotFoundError(f"No streak for user {user_id}")
                record.count = count  # type: ignore[assignment]
                record.last_active_date = self._clock()  # type: ignore[assignment]
                await db.commit()
        except SQLAlchemyError as e:
            logger.error("streak_store_update_failed", error=type(e).__name__)
            raise StoreError("Could not update streak") from e


__all__ = ["SqlStreakStore"]
