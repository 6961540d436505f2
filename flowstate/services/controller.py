"""
Session/Task Controller for FlowState.

The orchestration layer between user intents, the reducer and the
persistence collaborators. Every mutating intent follows the same shape:

1. validate what can be checked locally (identity, input, preconditions)
2. call the collaborator and wait for the canonical result
3. dispatch the matching reducer action with that result
4. return a ControllerResult (and push any notice to the notice sink)

A collaborator failure is logged and reported; the reducer is only ever
invoked on success, so in-memory state is left exactly as it was.
Nothing is retried automatically.

Responses can arrive out of order (rapid repeated taps). Two fences keep
stale responses out of the state:
- an identity epoch, bumped on login/logout/reset, drops responses that
  belong to a previous user or a wiped state
- a session ticket drops every start-session response but the latest

Usage:
    controller = FlowStateController(task_store, session_store, streak_store, identity)
    async with controller:
        await controller.login("ada@example.com", "correct horse")
        await controller.create_task("Write report")
        await controller.start_session(UserState(EnergyLevel.LOW, EmotionalState.ANXIOUS))
        await controller.end_session(SessionFeedback(Difficulty.OKAY, progress_made=True))
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any

import structlog

from flowstate.config.settings import Settings
from flowstate.core import views
from flowstate.core.interventions import planned_session_minutes
from flowstate.core.reducer import (
    INITIAL_STATE,
    Action,
    CompleteCurrentTask,
    CreateTask,
    DeleteCurrentTask,
    EndSession,
    FlowState,
    ResetAll,
    SetCompletedTasks,
    SetCurrentTask,
    SetTasks,
    SetUser,
    SetUserState,
    StartSession,
    reduce,
)
from flowstate.core.streak import local_day, next_streak_count
from flowstate.core.types import (
    Intervention,
    Priority,
    Session,
    SessionFeedback,
    Streak,
    Task,
    TaskDraft,
    User,
    UserState,
)
from flowstate.lib.errors import (
    AUTH_FAILED,
    AUTH_REQUIRED,
    INVALID_CREDENTIALS,
    NO_ACTIVE_SESSION,
    NO_CURRENT_TASK,
    NOT_FOUND,
    SESSION_ALREADY_ACTIVE,
    STALE_RESPONSE,
    STORE_FAILURE,
    STREAK_UNAVAILABLE,
    VALIDATION_ERROR,
    Notice,
    build_notice,
)
from flowstate.lib.exceptions import (
    AuthenticationError,
    InvalidCredentialsError,
    ValidationError,
)
from flowstate.lib.logging import bind_user_context
from flowstate.models.base import utcnow
from flowstate.services.protocols import (
    IdentityProvider,
    SessionStore,
    StreakStore,
    TaskStore,
    Unsubscribe,
)

logger = structlog.get_logger(__name__)

MAX_TITLE_LENGTH = 200


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class ControllerResult:
    """
    Outcome of a controller intent.

    Attributes:
        ok: True when the intent was applied
        value: The canonical object returned by the collaborator, if any
        notice: User-visible message (always set on failure, sometimes on success)
    """

    ok: bool
    value: Any = None
    notice: Notice | None = None

    @classmethod
    def success(cls, value: Any = None, notice: Notice | None = None) -> ControllerResult:
        return cls(ok=True, value=value, notice=notice)

    @classmethod
    def failure(cls, notice: Notice) -> ControllerResult:
        return cls(ok=False, notice=notice)


# =============================================================================
# Controller
# =============================================================================


class FlowStateController:
    """
    Owns the in-memory FlowState for one signed-in user and the
    collaborator references that keep it in sync with persistence.

    Construct once per application session; call start() to subscribe to
    auth-state changes and close() to unsubscribe.
    """

    def __init__(
        self,
        task_store: TaskStore,
        session_store: SessionStore,
        streak_store: StreakStore,
        identity: IdentityProvider,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
        notice_sink: Callable[[Notice], None] | None = None,
        language: str = "en",
    ):
        """
        Initialize the controller.

        Args:
            task_store: Task persistence collaborator
            session_store: Session persistence collaborator
            streak_store: Streak persistence collaborator
            identity: Authentication collaborator with auth-state stream
            settings: Timezone and timer defaults (from env if None)
            clock: Source of "now" for calendar-day decisions
            notice_sink: Optional callback receiving every user-visible notice
            language: Language for notice messages
        """
        self._task_store = task_store
        self._session_store = session_store
        self._streak_store = streak_store
        self._identity = identity
        self._settings = settings or Settings.from_env()
        self._tz = self._settings.tzinfo
        self._clock = clock
        self._notice_sink = notice_sink
        self._language = language

        self._state: FlowState = INITIAL_STATE
        self._epoch = 0
        self._session_ticket = 0
        self._last_apply: ControllerResult | None = None
        self._unsubscribe: Unsubscribe | None = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Subscribe to auth-state changes and restore an existing sign-in."""
        if self._unsubscribe is None:
            self._unsubscribe = self._identity.subscribe(self._on_auth_state_changed)

        try:
            user = await self._identity.get_current_user()
        except Exception as e:
            logger.warning("current_user_lookup_failed", error=type(e).__name__)
            return
        if user is not None:
            await self._apply_user(user)

    async def close(self) -> None:
        """Unsubscribe from auth-state changes."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def __aenter__(self) -> FlowStateController:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # =========================================================================
    # Read-only views
    # =========================================================================

    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def current_user(self) -> User | None:
        return self._state.current_user

    @property
    def current_task(self) -> Task | None:
        return self._state.current_task

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._state.tasks

    @property
    def completed_tasks(self) -> tuple[Task, ...]:
        return self._state.completed_tasks

    @property
    def active_session(self) -> Session | None:
        return self._state.active_session

    @property
    def is_in_session(self) -> bool:
        return self._state.is_in_session

    @property
    def user_state(self) -> UserState:
        return self._state.user_state

    @property
    def interventions(self) -> tuple[Intervention, ...]:
        return self._state.interventions

    def today(self) -> date:
        """Current calendar day in the configured timezone."""
        return local_day(self._clock(), self._tz)

    def get_todays_tasks(self) -> list[Task]:
        return views.todays_tasks(self._state.tasks, self.today(), self._tz)

    def get_suggested_interventions(self) -> list[Intervention]:
        return views.suggested_interventions(self._state)

    def get_session_history(self) -> list[Session]:
        return views.session_history(self._state)

    def session_minutes(self, intervention: Intervention | None = None) -> int:
        """Timer length for the next session."""
        return planned_session_minutes(intervention, self._settings.default_session_minutes)

    # =========================================================================
    # Internals
    # =========================================================================

    def _dispatch(self, action: Action) -> FlowState:
        self._state = reduce(self._state, action)
        return self._state

    def _notify(self, notice: Notice) -> None:
        if self._notice_sink is not None:
            self._notice_sink(notice)

    def _fail(
        self,
        code: str,
        message: str | None = None,
        **details: Any,
    ) -> ControllerResult:
        notice = build_notice(code, message=message, details=details, lang=self._language)
        self._notify(notice)
        return ControllerResult.failure(notice)

    def _store_failed(self, event: str, error: Exception, **context: Any) -> ControllerResult:
        logger.error(event, error=type(error).__name__, detail=str(error), **context)
        return self._fail(STORE_FAILURE)

    def _stale(self, event: str, **context: Any) -> ControllerResult:
        logger.info("stale_response_dropped", intent=event, **context)
        return self._fail(STALE_RESPONSE)

    async def _with_streak(self, user: User) -> User:
        """Attach the stored streak (initialising it lazily) to a user."""
        try:
            streak = await self._streak_store.get_streak(user.id)
            if streak is None:
                streak = await self._streak_store.initialize_streak(user.id)
        except Exception as e:
            logger.warning("streak_lookup_failed", error=type(e).__name__)
            return user
        return user.with_streak(streak)

    async def _apply_user(self, user: User) -> ControllerResult:
        """Make ``user`` the signed-in identity and load their tasks."""
        self._epoch += 1
        epoch = self._epoch
        user = await self._with_streak(user)
        if epoch != self._epoch:
            result = self._stale("apply_user")
        else:
            self._dispatch(SetUser(user))
            bind_user_context(user.id)
            logger.info("user_applied")
            result = await self.load_tasks()
        self._last_apply = result
        return result

    def _clear_user(self) -> None:
        self._epoch += 1
        self._dispatch(SetUser(None))
        bind_user_context(None)
        logger.info("user_cleared")

    async def _on_auth_state_changed(self, user: User | None) -> None:
        current = self._state.current_user
        if user is None:
            if current is not None:
                self._clear_user()
            return
        if current is None or current.id != user.id:
            await self._apply_user(user)

    async def _finish_sign_in(self, user: User) -> ControllerResult:
        """
        Report the outcome of applying a freshly authenticated user.

        The identity provider usually announces the user to the auth
        listener before login()/register() return, so the apply may
        already have happened. Its result is taken from _last_apply in
        that case instead of being reported as a plain success.
        """
        current = self._state.current_user
        if current is None or current.id != user.id:
            result: ControllerResult | None = await self._apply_user(user)
        else:
            result = self._last_apply
        if result is not None and not result.ok:
            return result
        return ControllerResult.success(self._state.current_user)

    # =========================================================================
    # Identity
    # =========================================================================

    async def login(self, email: str, password: str) -> ControllerResult:
        if not email.strip() or not password:
            return self._fail(VALIDATION_ERROR, message="Email and password are required.")
        self._last_apply = None
        try:
            user = await self._identity.login(email, password)
        except InvalidCredentialsError:
            logger.info("login_rejected")
            return self._fail(INVALID_CREDENTIALS)
        except Exception as e:
            logger.error("login_failed", error=type(e).__name__)
            return self._fail(AUTH_FAILED)

        return await self._finish_sign_in(user)

    async def register(self, email: str, password: str, name: str) -> ControllerResult:
        self._last_apply = None
        try:
            user = await self._identity.register(email, password, name)
        except ValidationError as e:
            return self._fail(VALIDATION_ERROR, message=str(e))
        except AuthenticationError as e:
            logger.warning("register_rejected", error=type(e).__name__)
            return self._fail(AUTH_FAILED, message=str(e))
        except Exception as e:
            logger.error("register_failed", error=type(e).__name__)
            return self._fail(AUTH_FAILED)

        return await self._finish_sign_in(user)

    async def logout(self) -> ControllerResult:
        try:
            await self._identity.logout()
        except Exception as e:
            logger.error("logout_failed", error=type(e).__name__)
            return self._fail(AUTH_FAILED)
        if self._state.current_user is not None:
            self._clear_user()
        return ControllerResult.success()

    # =========================================================================
    # Tasks
    # =========================================================================

    async def load_tasks(self) -> ControllerResult:
        """Replace the active and completed collections from the task store."""
        user = self._state.current_user
        if user is None:
            return self._fail(AUTH_REQUIRED)

        epoch = self._epoch
        try:
            active = await self._task_store.list_active(user.id)
            completed = await self._task_store.list_completed(user.id)
        except Exception as e:
            return self._store_failed("task_load_failed", e)
        if epoch != self._epoch:
            return self._stale("load_tasks")

        self._dispatch(SetTasks(tuple(active)))
        self._dispatch(SetCompletedTasks(tuple(completed)))
        logger.info("tasks_loaded", active=len(active), completed=len(completed))
        return ControllerResult.success(self._state.tasks)

    async def create_task(
        self,
        title: str,
        description: str | None = None,
        priority: Priority | str = Priority.MEDIUM,
        due_date: date | None = None,
    ) -> ControllerResult:
        user = self._state.current_user
        if user is None:
            return self._fail(AUTH_REQUIRED)

        title = title.strip()
        if not title:
            return self._fail(VALIDATION_ERROR, message="A task needs a title.", field="title")
        if len(title) > MAX_TITLE_LENGTH:
            return self._fail(
                VALIDATION_ERROR,
                message=f"Task titles are limited to {MAX_TITLE_LENGTH} characters.",
                field="title",
            )
        try:
            priority = Priority(priority)
        except ValueError:
            return self._fail(VALIDATION_ERROR, field="priority")

        draft = TaskDraft(
            title=title,
            description=(description or "").strip() or None,
            priority=priority,
            due_date=due_date,
        )

        epoch = self._epoch
        try:
            task = await self._task_store.create(draft, user.id)
        except Exception as e:
            return self._store_failed("task_create_failed", e)
        if epoch != self._epoch:
            return self._stale("create_task", task_id=task.id)

        self._dispatch(CreateTask(task))
        logger.info("task_created", task_id=task.id, priority=task.priority.value)
        return ControllerResult.success(task)

    def set_current_task(self, task_id: str) -> ControllerResult:
        before = self._state
        after = self._dispatch(SetCurrentTask(task_id))
        if after is before:
            return self._fail(NOT_FOUND, task_id=task_id)
        return ControllerResult.success(after.current_task)

    def _session_runs_on(self, task: Task) -> bool:
        active = self._state.active_session
        return active is not None and active.task_id == task.id

    async def complete_current_task(self) -> ControllerResult:
        user = self._state.current_user
        if user is None:
            return self._fail(AUTH_REQUIRED)
        task = self._state.current_task
        if task is None:
            return self._fail(NO_CURRENT_TASK)
        if self._session_runs_on(task):
            return self._fail(SESSION_ALREADY_ACTIVE)

        epoch = self._epoch
        try:
            updated = await self._task_store.update(replace(task, completed=True))
        except Exception as e:
            return self._store_failed("task_complete_failed", e, task_id=task.id)
        if epoch != self._epoch:
            return self._stale("complete_task", task_id=task.id)

        # The store echoes sessions it knows about; keep ours if it sent none
        if not updated.sessions and task.sessions:
            updated = replace(updated, sessions=task.sessions)
        self._dispatch(CompleteCurrentTask(updated))
        logger.info("task_completed", task_id=task.id, sessions=len(updated.sessions))
        return ControllerResult.success(updated)

    async def delete_current_task(self) -> ControllerResult:
        user = self._state.current_user
        if user is None:
            return self._fail(AUTH_REQUIRED)
        task = self._state.current_task
        if task is None:
            return self._fail(NO_CURRENT_TASK)
        if self._session_runs_on(task):
            return self._fail(SESSION_ALREADY_ACTIVE)

        epoch = self._epoch
        try:
            await self._task_store.delete(task.id)
        except Exception as e:
            return self._store_failed("task_delete_failed", e, task_id=task.id)
        if epoch != self._epoch:
            return self._stale("delete_task", task_id=task.id)

        # The user may have switched tasks while the delete was in flight
        if self._state.current_task_id != task.id:
            self._dispatch(SetCurrentTask(task.id))
        self._dispatch(DeleteCurrentTask())
        logger.info("task_deleted", task_id=task.id)
        return ControllerResult.success(task)

    # =========================================================================
    # Check-in and sessions
    # =========================================================================

    def set_user_state(self, user_state: UserState) -> ControllerResult:
        self._dispatch(SetUserState(user_state))
        return ControllerResult.success(user_state)

    def reset_all(self) -> ControllerResult:
        """Forget tasks and sessions in memory; the signed-in user stays."""
        self._epoch += 1
        self._dispatch(ResetAll())
        logger.info("state_reset")
        return ControllerResult.success()

    async def start_session(
        self,
        user_state: UserState,
        intervention: Intervention | None = None,
    ) -> ControllerResult:
        user = self._state.current_user
        if user is None:
            return self._fail(AUTH_REQUIRED)
        task = self._state.current_task
        if task is None:
            return self._fail(NO_CURRENT_TASK)
        if self._state.active_session is not None:
            return self._fail(SESSION_ALREADY_ACTIVE)

        self._session_ticket += 1
        ticket = self._session_ticket
        epoch = self._epoch
        try:
            session = await self._session_store.start(task.id, user.id, user_state, intervention)
        except Exception as e:
            return self._store_failed("session_start_failed", e, task_id=task.id)
        if epoch != self._epoch or ticket != self._session_ticket:
            return self._stale("start_session", session_id=session.id)

        after = self._dispatch(StartSession(session))
        if after.active_session is None or after.active_session.id != session.id:
            # Task deleted or another session applied while the store answered
            logger.warning("session_start_not_applied", session_id=session.id)
            return self._fail(NO_CURRENT_TASK)

        logger.info(
            "session_started",
            session_id=session.id,
            task_id=task.id,
            intervention=intervention.id if intervention else None,
        )
        return ControllerResult.success(session)

    async def end_session(self, feedback: SessionFeedback | None) -> ControllerResult:
        """Terminate the active session with the post-session review."""
        user = self._state.current_user
        if user is None:
            return self._fail(AUTH_REQUIRED)
        active = self._state.active_session
        if active is None:
            return self._fail(NO_ACTIVE_SESSION)

        epoch = self._epoch
        try:
            ended = await self._session_store.end(active.id, feedback)
        except Exception as e:
            return self._store_failed("session_end_failed", e, session_id=active.id)
        if epoch != self._epoch:
            return self._stale("end_session", session_id=ended.id)

        current_active = self._state.active_session
        if current_active is None or current_active.id != ended.id:
            return self._stale("end_session", session_id=ended.id)

        self._dispatch(EndSession(ended))
        logger.info("session_ended", session_id=ended.id, duration=ended.duration)

        notice = await self._update_streak(user.id)
        return ControllerResult.success(ended, notice=notice)

    async def _update_streak(self, user_id: str) -> Notice | None:
        """Advance the streak after a completed session. Returns a notice on failure."""
        epoch = self._epoch
        today = self.today()
        try:
            streak = await self._streak_store.get_streak(user_id)
            if streak is None:
                streak = await self._streak_store.initialize_streak(user_id)

            count = next_streak_count(streak, today, self._tz)
            if count != streak.count or local_day(streak.last_active_date, self._tz) != today:
                await self._streak_store.update_streak(user_id, count)
                streak = Streak(count=count, last_active_date=self._clock())
        except Exception as e:
            logger.error("streak_update_failed", error=type(e).__name__, detail=str(e))
            notice = build_notice(STREAK_UNAVAILABLE, lang=self._language)
            self._notify(notice)
            return notice

        user = self._state.current_user
        if epoch != self._epoch or user is None or user.id != user_id:
            return None
        self._dispatch(SetUser(user.with_streak(streak)))
        logger.info("streak_updated", count=streak.count)
        return None


__all__ = ["ControllerResult", "FlowStateController"]
