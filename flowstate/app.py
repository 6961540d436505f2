"""
Application wiring for FlowState.

Builds the database engine, the SQL collaborators and the controller
from Settings. This is the only place that knows which collaborator
implementations are in use.

Usage:
    settings = Settings.from_env()
    setup_logging(settings)
    engine = create_engine(settings)
    await init_database(engine)
    controller = create_controller(engine, settings)
    async with controller:
        ...
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from flowstate.config.settings import Settings
from flowstate.lib.errors import Notice
from flowstate.models import Base
from flowstate.models.base import utcnow
from flowstate.services.controller import FlowStateController
from flowstate.services.identity import LocalIdentityProvider
from flowstate.services.session_store import SqlSessionStore
from flowstate.services.streak_store import SqlStreakStore
from flowstate.services.task_store import SqlTaskStore


def create_engine(settings: Settings) -> AsyncEngine:
    return create_async_engine(settings.database_url)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Stores convert rows to domain objects after commit
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_database(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def create_controller(
    engine: AsyncEngine,
    settings: Settings,
    clock: Callable[[], datetime] = utcnow,
    notice_sink: Callable[[Notice], None] | None = None,
) -> FlowStateController:
    """Wire SQL collaborators into a new controller."""
    session_factory = create_session_factory(engine)
    return FlowStateController(
        task_store=SqlTaskStore(session_factory, clock=clock),
        session_store=SqlSessionStore(session_factory, clock=clock),
        streak_store=SqlStreakStore(session_factory, clock=clock),
        identity=LocalIdentityProvider(session_factory, clock=clock),
        settings=settings,
        clock=clock,
        notice_sink=notice_sink,
    )


__all__ = ["create_engine", "create_session_factory", "init_database", "create_controller"]
