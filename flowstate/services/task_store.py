"""
SQL Task Store for FlowState.

Lists, creates, updates and deletes a user's tasks. Tasks are returned
with their sessions, oldest first. Ids and creation timestamps are
assigned here, never by the caller.

Reference: flowstate.services.protocols.TaskStore
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import date, datetime

import structlog
from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from flowstate.core.types import Priority, Task, TaskDraft, as_day
from flowstate.lib.exceptions import NotFoundError, StoreError
from flowstate.models.base import ensure_utc, utcnow
from flowstate.models.task import TaskRecord
from flowstate.services.session_store import session_from_record

logger = structlog.get_logger(__name__)


def _due_day(due: date | None) -> date | None:
    """Due dates are stored at day granularity."""
    if due is None:
        return None
    return as_day(due)


def task_from_record(record: TaskRecord, include_sessions: bool = True) -> Task:
    """Convert a stored row (with loaded sessions) into a domain Task."""
    sessions = tuple(session_from_record(s) for s in record.sessions) if include_sessions else ()
    return Task(
        id=str(record.id),
        title=str(record.title),
        description=record.description,  # type: ignore[arg-type]
        priority=Priority(record.priority),
        due_date=record.due_date,  # type: ignore[arg-type]
        created_at=ensure_utc(record.created_at),  # type: ignore[arg-type]
        completed=bool(record.completed),
        sessions=sessions,
    )


class SqlTaskStore:
    """
    TaskStore backed by SQLAlchemy.

    Usage:
        store = SqlTaskStore(session_factory)
        task = await store.create(TaskDraft(title="Write report"), user_id)
        active = await store.list_active(user_id)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = utcnow,
    ):
        self._session_factory = session_factory
        self._clock = clock

    async def _list(self, user_id: str, completed: bool) -> list[Task]:
        stmt = (
            select(TaskRecord)
            .where(and_(TaskRecord.user_id == user_id, TaskRecord.completed == completed))
            .order_by(TaskRecord.created_at, TaskRecord.id)
        )
        try:
            async with self._session_factory() as db:
                result = await db.execute(stmt)
                return [task_from_record(record) for record in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("task_store_list_failed", completed=completed, error=type(e).__name__)
            raise StoreError("Could not load tasks") from e

    async def list_active(self, user_id: str) -> list[Task]:
        return await self._list(user_id, completed=False)

    async def list_completed(self, user_id: str) -> list[Task]:
        return await self._list(user_id, completed=True)

    async def create(self, draft: TaskDraft, user_id: str) -> Task:
        record = TaskRecord(
            id=str(uuid.uuid4()),
            user_id=user_id,
            title=draft.title,
            description=draft.description,
            priority=draft.priority.value,
            due_date=_due_day(draft.due_date),
            completed=False,
            created_at=self._clock(),
        )
        # Never lazy-load on a brand new row
        task = task_from_record(record, include_sessions=False)
        try:
            async with self._session_factory() as db:
                db.add(record)
                await db.commit()
        except SQLAlchemyError as e:
            logger.error("task_store_create_failed", error=type(e).__name__)
            raise StoreError("Could not create task") from e
        return task

    async def update(self, task: Task) -> Task:
        """Persist title, description, priority, due date and completion."""
        try:
            async with self._session_factory() as db:
                record = (
                    await db.execute(select(TaskRecord).where(TaskRecord.id == task.id))
                ).scalar_one_or_none()
                if record is None:
                    raise NotFoundError(f"Task {task.id} not found")

                record.title = task.title  # type: ignore[assignment]
                record.description = task.description  # type: ignore[assignment]
                record.priority = task.priority.value  # type: ignore[assignment]
                record.due_date = _due_day(task.due_date)  # type: ignore[assignment]
                record.completed = task.completed  # type: ignore[assignment]
                updated = task_from_record(record)
                await db.commit()
                return updated
        except SQLAlchemyError as e:
            logger.error("task_store_update_failed", task_id=task.id, error=type(e).__name__)
            raise StoreError("Could not update task") from e

    async def delete(self, task_id: str) -> None:
        """Delete a task and, by cascade, its sessions."""
        try:
            async with self._session_factory() as db:
                record = await db.get(TaskRecord, task_id)
                if record is None:
                    raise NotFoundError(f"Task {task_id} not found")
                await db.delete(record)
                await db.commit()
        except SQLAlchemyError as e:
            logger.error("task_store_delete_failed", task_id=task_id, error=type(e).__name__)
            raise StoreError("Could not delete task") from e


__all__ = ["SqlTaskStore", "task_from_record"]
