"""
Derived views over FlowState.

Recomputed on every read instead of being cached on the state, so they
can never go stale. Collections are small (one user's tasks).
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, date, datetime, tzinfo

from flowstate.core.interventions import match_interventions
from flowstate.core.reducer import FlowState
from flowstate.core.streak import local_day
from flowstate.core.types import Intervention, Priority, Session, Task

# Sort key: high first
_PRIORITY_RANK: dict[Priority, int] = {
    Priority.HIGH: 0,
    Priority.MEDIUM: 1,
    Priority.LOW: 2,
}


def _due_day(due: date | datetime, tz: tzinfo) -> date:
    if isinstance(due, datetime):
        return local_day(due, tz)
    return due


def is_due_by(task: Task, today: date, tz: tzinfo = UTC) -> bool:
    """True if a task has no due date or is due on or before today."""
    if task.due_date is None:
        return True
    return _due_day(task.due_date, tz) <= today


def todays_tasks(tasks: Iterable[Task], today: date, tz: tzinfo = UTC) -> list[Task]:
    """
    Active tasks to work on today, highest priority first.

    Keeps tasks without a due date and tasks due today or earlier, drops
    completed ones, and sorts high -> medium -> low. The sort is stable,
    so equal priorities keep their original order.
    """
    due = [task for task in tasks if not task.completed and is_due_by(task, today, tz)]
    return sorted(due, key=lambda task: _PRIORITY_RANK[task.priority])


def suggested_interventions(state: FlowState) -> list[Intervention]:
    """Interventions matching the last-known check-in."""
    return match_interventions(state.user_state, state.interventions)


def task_total_minutes(task: Task) -> int:
    """Minutes spent across all finished sessions of a task."""
    return sum(session.duration or 0 for session in task.sessions)


def task_session_count(task: Task) -> int:
    return len(task.sessions)


def session_history(state: FlowState) -> list[Session]:
    """All sessions ended since the state was loaded, most recent first."""
    return list(reversed(state.sessions))


__all__ = [
    "is_due_by",
    "todays_tasks",
    "suggested_interventions",
    "task_total_minutes",
    "task_session_count",
    "session_history",
]
