"""
SQL Session Store for FlowState.

Starts and ends focus sessions. Ending a session is where duration is
computed: whole minutes elapsed between start and end, floored. No
other component computes it.

Reference: flowstate.services.protocols.SessionStore
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from flowstate.core.types import Intervention, Session, SessionFeedback, UserState
from flowstate.lib.exceptions import NotFoundError, StateError, StoreError
from flowstate.models.base import ensure_utc, utcnow
from flowstate.models.session import SessionRecord
from flowstate.models.task import TaskRecord

logger = structlog.get_logger(__name__)


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two timestamps, floored, never negative."""
    seconds = (end - start).total_seconds()
    return max(0, int(seconds // 60))


def session_from_record(record: SessionRecord) -> Session:
    """Convert a stored row into a domain Session."""
    intervention = record.selected_intervention
    feedback = record.feedback
    return Session(
        id=str(record.id),
        task_id=str(record.task_id),
        start_time=ensure_utc(record.start_time),  # type: ignore[arg-type]
        end_time=ensure_utc(record.end_time),  # type: ignore[arg-type]
        duration=record.duration,  # type: ignore[arg-type]
        state=UserState.from_dict(record.state),  # type: ignore[arg-type]
        selected_intervention=Intervention.from_dict(intervention) if intervention else None,
        completed=bool(record.completed),
        feedback=SessionFeedback.from_dict(feedback) if feedback else None,
    )


class SqlSessionStore:
    """
    SessionStore backed by SQLAlchemy.

    Usage:
        store = SqlSessionStore(session_factory)
        session = await store.start(task_id, user_id, user_state)
        ended = await store.end(session.id, feedback)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize the store.

        Args:
            session_factory: Factory for database sessions (one per call)
            clock: Source of "now" for start and end timestamps
        """
        self._session_factory = session_factory
        self._clock = clock

    async def list_for_task(self, task_id: str) -> list[Session]:
        """All sessions of a task, oldest first."""
        stmt = (
            select(SessionRecord)
            .where(SessionRecord.task_id == task_id)
            .order_by(SessionRecord.start_time, SessionRecord.id)
        )
        try:
            async with self._session_factory() as db:
                result = await db.execute(stmt)
                return [session_from_record(record) for record in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("session_store_list_failed", task_id=task_id, error=type(e).__name__)
            raise StoreError("Could not load sessions") from e

    async def start(
        self,
        task_id: str,
        user_id: str,
        user_state: UserState,
        intervention: Intervention | None = None,
    ) -> Session:
        try:
            async with self._session_factory() as db:
                task = await db.get(TaskRecord, task_id)
                if task is None:
                    raise NotFoundError(f"Task {task_id} not found")
                if task.completed:
                    raise StateError(f"Task {task_id} is already completed")

                record = SessionRecord(
                    id=str(uuid.uuid4()),
                    task_id=task_id,
                    user_id=user_id,
                    start_time=self._clock(),
                    state=user_state.to_dict(),
                    selected_intervention=intervention.to_dict() if intervention else None,
                    completed=False,
                )
                db.add(record)
                session = session_from_record(record)
                await db.commit()
                return session
        except SQLAlchemyError as e:
            logger.error("session_store_start_failed", task_id=task_id, error=type(e).__name__)
            raise StoreError("Could not start session") from e

    async def end(self, session_id: str, feedback: SessionFeedback | None) -> Session:
        try:
            async with self._session_factory() as db:
                record = (
                    await db.execute(select(SessionRecord).where(SessionRecord.id == session_id))
                ).scalar_one_or_none()
                if record is None:
                    raise NotFoundError(f"Session {session_id} not found")
                if record.completed or record.end_time is not None:
                    raise StateError(f"Session {session_id} has already ended")
                task = await db.get(TaskRecord, record.task_id)
                if task is not None and task.completed:
                    raise StateError(f"Task {record.task_id} was completed while the session ran")

                now = self._clock()
                record.end_time = now  # type: ignore[assignment]
                record.duration = elapsed_minutes(ensure_utc(record.start_time), now)  # type: ignore[arg-type, assignment]
                record.completed = True  # type: ignore[assignment]
                record.feedback = feedback.to_dict() if feedback else None  # type: ignore[assignment]
                session = session_from_record(record)
                await db.commit()
                return session
        except SQLAlchemyError as e:
            logger.error("session_store_end_failed", session_id=session_id, error=type(e).__name__)
            raise StoreError("Could not end session") from e


__all__ = ["SqlSessionStore", "elapsed_minutes", "session_from_record"]
