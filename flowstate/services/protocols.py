"""
Collaborator contracts for FlowState.

The controller depends only on these protocols. The SQL implementations
in this package satisfy them, and tests substitute in-memory fakes.
Every method is a coroutine and may fail with a FlowStateException
subclass (StoreError, AuthenticationError).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol

from flowstate.core.types import (
    Intervention,
    Session,
    SessionFeedback,
    Streak,
    Task,
    TaskDraft,
    User,
    UserState,
)

AuthListener = Callable[[User | None], Awaitable[None]]
Unsubscribe = Callable[[], None]


class TaskStore(Protocol):
    """Persists tasks and assigns their ids and creation timestamps."""

    async def list_active(self, user_id: str) -> list[Task]:
        ...

    async def list_completed(self, user_id: str) -> list[Task]:
        ...

    async def create(self, draft: TaskDraft, user_id: str) -> Task:
        ...

    async def update(self, task: Task) -> Task:
        ...

    async def delete(self, task_id: str) -> None:
        ...


class SessionStore(Protocol):
    """Persists sessions. The sole authority for session duration."""

    async def list_for_task(self, task_id: str) -> list[Session]:
        ...

    async def start(
        self,
        task_id: str,
        user_id: str,
        user_state: UserState,
        intervention: Intervention | None = None,
    ) -> Session:
        ...

    async def end(self, session_id: str, feedback: SessionFeedback | None) -> Session:
        """Terminate a session, computing end_time and floored duration."""
        ...


class StreakStore(Protocol):
    """Per-user streak record."""

    async def get_streak(self, user_id: str) -> Streak | None:
        """Return the streak, or None when no record exists yet."""
        ...

    async def initialize_streak(self, user_id: str) -> Streak:
        ...

    async def update_streak(self, user_id: str, count: int) -> None:
        """Store count and stamp last_active_date with the current time."""
        ...


class IdentityProvider(Protocol):
    """Authentication plus an auth-state change stream."""

    async def login(self, email: str, password: str) -> User:
        ...

    async def register(self, email: str, password: str, name: str) -> User:
        ...

    async def logout(self) -> None:
        ...

    async def get_current_user(self) -> User | None:
        ...

    def subscribe(self, listener: AuthListener) -> Unsubscribe:
        """Register a listener for login/logout events; returns an unsubscribe callable."""
        ...


__all__ = [
    "AuthListener",
    "Unsubscribe",
    "TaskStore",
    "SessionStore",
    "StreakStore",
    "IdentityProvider",
]
