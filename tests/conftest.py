"""
Shared test fixtures for FlowState.

This module provides common fixtures used across all test modules:
- Environment setup (dev mode logging)
- A controllable clock
- In-memory fakes of the four collaborators
- A controller wired to the fakes, and a signed-in variant
- A SQLite-backed session factory for the SQL stores

Usage:
    All fixtures are automatically available to any test in the tests/ directory.
"""

from __future__ import annotations

import itertools
import os
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio

os.environ.setdefault("FLOWSTATE_DEV_MODE", "1")

from flowstate.app import create_session_factory, init_database  # noqa: E402
from flowstate.config.settings import Settings  # noqa: E402
from flowstate.core.types import (  # noqa: E402
    Intervention,
    Session,
    SessionFeedback,
    Streak,
    Task,
    TaskDraft,
    User,
    UserState,
)
from flowstate.lib.exceptions import (  # noqa: E402
    InvalidCredentialsError,
    NotFoundError,
    StateError,
)
from flowstate.services.controller import FlowStateController  # noqa: E402
from flowstate.services.session_store import elapsed_minutes  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402

# ---------------------------------------------------------------------------
# 1. Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 10, 9, 0, tzinfo=UTC))


# ---------------------------------------------------------------------------
# 2. Collaborator fakes
# ---------------------------------------------------------------------------


class FakeTaskStore:
    def __init__(self, clock: FakeClock):
        self._clock = clock
        self._ids = itertools.count(1)
        self.tasks: dict[str, Task] = {}
        self.owners: dict[str, str] = {}

    async def list_active(self, user_id: str) -> list[Task]:
        return [t for t in self.tasks.values() if self.owners[t.id] == user_id and not t.completed]

    async def list_completed(self, user_id: str) -> list[Task]:
        return [t for t in self.tasks.values() if self.owners[t.id] == user_id and t.completed]

    async def create(self, draft: TaskDraft, user_id: str) -> Task:
        task = Task(
            id=f"task-{next(self._ids)}",
            title=draft.title,
            description=draft.description,
            priority=draft.priority,
            due_date=draft.due_date,
            created_at=self._clock(),
        )
        self.tasks[task.id] = task
        self.owners[task.id] = user_id
        return task

    async def update(self, task: Task) -> Task:
        if task.id not in self.tasks:
            raise NotFoundError(task.id)
        self.tasks[task.id] = task
        return task

    async def delete(self, task_id: str) -> None:
        if task_id not in self.tasks:
            raise NotFoundError(task_id)
        del self.tasks[task_id]


class FakeSessionStore:
    def __init__(self, clock: FakeClock):
        self._clock = clock
        self._ids = itertools.count(1)
        self.sessions: dict[str, Session] = {}

    async def list_for_task(self, task_id: str) -> list[Session]:
        return [s for s in self.sessions.values() if s.task_id == task_id]

    async def start(
        self,
        task_id: str,
        user_id: str,
        user_state: UserState,
        intervention: Intervention | None = None,
    ) -> Session:
        session = Session(
            id=f"session-{next(self._ids)}",
            task_id=task_id,
            start_time=self._clock(),
            state=user_state,
            selected_intervention=intervention,
        )
        self.sessions[session.id] = session
        return session

    async def end(self, session_id: str, feedback: SessionFeedback | None) -> Session:
        session = self.sessions.get(session_id)
        if session is None:
            raise NotFoundError(session_id)
        if session.completed:
            raise StateError(session_id)
        now = self._clock()
        ended = Session(
            id=session.id,
            task_id=session.task_id,
            start_time=session.start_time,
            state=session.state,
            selected_intervention=session.selected_intervention,
            end_time=now,
            duration=elapsed_minutes(session.start_time, now),
            completed=True,
            feedback=feedback,
        )
        self.sessions[session_id] = ended
        return ended


class FakeStreakStore:
    def __init__(self, clock: FakeClock):
        self._clock = clock
        self.streaks: dict[str, Streak] = {}
        self.updates: list[tuple[str, int]] = []

    async def get_streak(self, user_id: str) -> Streak | None:
        return self.streaks.get(user_id)

    async def initialize_streak(self, user_id: str) -> Streak:
        streak = self.streaks.setdefault(user_id, Streak(count=0, last_active_date=self._clock()))
        return streak

    async def update_streak(self, user_id: str, count: int) -> None:
        self.updates.append((user_id, count))
        self.streaks[user_id] = Streak(count=count, last_active_date=self._clock())


class FakeIdentity:
    def __init__(self, clock: FakeClock):
        self._clock = clock
        self._ids = itertools.count(1)
        self.accounts: dict[str, tuple[str, User]] = {}
        self.current: User | None = None
        self.listeners: list = []

    def add_account(self, email: str, password: str, name: str = "Ada") -> User:
        user = User(id=f"user-{next(self._ids)}", email=email, name=name, created_at=self._clock())
        self.accounts[email] = (password, user)
        return user

    def subscribe(self, listener):
        self.listeners.append(listener)

        def unsubscribe() -> None:
            self.listeners.remove(listener)

        return unsubscribe

    async def _emit(self, user: User | None) -> None:
        for listener in list(self.listeners):
            await listener(user)

    async def login(self, email: str, password: str) -> User:
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise InvalidCredentialsError("bad credentials")
        self.current = account[1]
        await self._emit(self.current)
        return self.current

    async def register(self, email: str, password: str, name: str) -> User:
        self.current = self.add_account(email, password, name)
        await self._emit(self.current)
        return self.current

    async def logout(self) -> None:
        self.current = None
        await self._emit(None)

    async def get_current_user(self) -> User | None:
        return self.current


@pytest.fixture()
def task_store(clock: FakeClock) -> FakeTaskStore:
    return FakeTaskStore(clock)


@pytest.fixture()
def session_store(clock: FakeClock) -> FakeSessionStore:
    return FakeSessionStore(clock)


@pytest.fixture()
def streak_store(clock: FakeClock) -> FakeStreakStore:
    return FakeStreakStore(clock)


@pytest.fixture()
def identity(clock: FakeClock) -> FakeIdentity:
    fake = FakeIdentity(clock)
    fake.add_account("ada@example.com", "correct horse", "Ada")
    return fake


# ---------------------------------------------------------------------------
# 3. Controller
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings() -> Settings:
    return Settings(timezone="UTC", default_session_minutes=5)


@pytest.fixture()
def notices() -> list:
    return []


@pytest.fixture()
def controller(task_store, session_store, streak_store, identity, settings, clock, notices):
    """Controller wired to the fakes; not started, nobody signed in."""
    return FlowStateController(
        task_store=task_store,
        session_store=session_store,
        streak_store=streak_store,
        identity=identity,
        settings=settings,
        clock=clock,
        notice_sink=notices.append,
    )


@pytest_asyncio.fixture()
async def signed_in(controller):
    """Started controller with ada@example.com signed in."""
    await controller.start()
    result = await controller.login("ada@example.com", "correct horse")
    assert result.ok
    yield controller
    await controller.close()


# ---------------------------------------------------------------------------
# 4. SQL stores
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture()
async def session_factory(tmp_path):
    """Session factory on a fresh SQLite file with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'flowstate.db'}")
    await init_database(engine)
    yield create_session_factory(engine)
    await engine.dispose()
