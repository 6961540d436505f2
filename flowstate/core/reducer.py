"""
Task/Session State Machine for FlowState.

The single authority for in-memory state transitions. Every transition is
a frozen action dataclass handled by the pure function ``reduce``:

    state = reduce(state, CreateTask(task))

Transitions never raise. When a precondition does not hold (no current
task, no active session, unknown task id) the unchanged state is returned
and the controller decides what to tell the user.

The reducer never generates or validates identifiers; ids come from the
persistence collaborators.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any, TypeAlias

from flowstate.core.interventions import INTERVENTIONS
from flowstate.core.types import (
    DEFAULT_USER_STATE,
    Intervention,
    Session,
    Task,
    User,
    UserState,
)

# =============================================================================
# State
# =============================================================================


@dataclass(frozen=True)
class FlowState:
    """Complete in-memory state for one user."""

    current_user: User | None = None
    tasks: tuple[Task, ...] = ()
    current_task_id: str | None = None
    completed_tasks: tuple[Task, ...] = ()
    sessions: tuple[Session, ...] = ()
    active_session: Session | None = None
    user_state: UserState = DEFAULT_USER_STATE
    interventions: tuple[Intervention, ...] = INTERVENTIONS

    @property
    def current_task(self) -> Task | None:
        """The task the current-task pointer refers to."""
        if self.current_task_id is None:
            return None
        return _find(self.tasks, self.current_task_id)

    @property
    def is_in_session(self) -> bool:
        return self.active_session is not None


INITIAL_STATE = FlowState()


# =============================================================================
# Actions
# =============================================================================


@dataclass(frozen=True)
class SetTasks:
    tasks: tuple[Task, ...]


@dataclass(frozen=True)
class SetCompletedTasks:
    tasks: tuple[Task, ...]


@dataclass(frozen=True)
class CreateTask:
    task: Task


@dataclass(frozen=True)
class StartSession:
    session: Session


@dataclass(frozen=True)
class EndSession:
    session: Session


@dataclass(frozen=True)
class SetUserState:
    user_state: UserState


@dataclass(frozen=True)
class CompleteCurrentTask:
    task: Task


@dataclass(frozen=True)
class DeleteCurrentTask:
    pass


@dataclass(frozen=True)
class SetCurrentTask:
    task_id: str


@dataclass(frozen=True)
class SetUser:
    user: User | None


@dataclass(frozen=True)
class ResetAll:
    pass


Action: TypeAlias = (
    SetTasks
    | SetCompletedTasks
    | CreateTask
    | StartSession
    | EndSession
    | SetUserState
    | CompleteCurrentTask
    | DeleteCurrentTask
    | SetCurrentTask
    | SetUser
    | ResetAll
)


# =============================================================================
# Helpers
# =============================================================================


def _find(tasks: tuple[Task, ...], task_id: str) -> Task | None:
    for task in tasks:
        if task.id == task_id:
            return task
    return None


def _first_id(tasks: tuple[Task, ...]) -> str | None:
    return tasks[0].id if tasks else None


def _without(tasks: tuple[Task, ...], task_id: str) -> tuple[Task, ...]:
    return tuple(task for task in tasks if task.id != task_id)


# =============================================================================
# Transitions
# =============================================================================


def _set_tasks(state: FlowState, action: SetTasks) -> FlowState:
    tasks = tuple(action.tasks)
    current_id = state.current_task_id
    if current_id is None or _find(tasks, current_id) is None:
        current_id = _first_id(tasks)
    return replace(state, tasks=tasks, current_task_id=current_id)


def _set_completed_tasks(state: FlowState, action: SetCompletedTasks) -> FlowState:
    return replace(state, completed_tasks=tuple(action.tasks))


def _create_task(state: FlowState, action: CreateTask) -> FlowState:
    current_id = state.current_task_id
    if current_id is None:
        current_id = action.task.id
    return replace(state, tasks=(*state.tasks, action.task), current_task_id=current_id)


def _start_session(state: FlowState, action: StartSession) -> FlowState:
    if state.current_task is None or state.active_session is not None:
        return state
    return replace(state, active_session=action.session, user_state=action.session.state)


def _end_session(state: FlowState, action: EndSession) -> FlowState:
    active = state.active_session
    ended = action.session
    if active is None or active.id != ended.id:
        return state

    # Completed tasks are frozen: a session whose task was completed meanwhile
    # only lands in the global log.
    tasks = tuple(
        task.with_session(ended) if task.id == ended.task_id else task
        for task in state.tasks
    )
    return replace(
        state,
        tasks=tasks,
        sessions=(*state.sessions, ended),
        active_session=None,
    )


def _set_user_state(state: FlowState, action: SetUserState) -> FlowState:
    return replace(state, user_state=action.user_state)


def _complete_current_task(state: FlowState, action: CompleteCurrentTask) -> FlowState:
    if state.current_task is None or _find(state.tasks, action.task.id) is None:
        return state
    remaining = _without(state.tasks, action.task.id)
    completed = replace(action.task, completed=True)
    current_id = state.current_task_id
    if current_id == action.task.id:
        current_id = _first_id(remaining)
    return replace(
        state,
        tasks=remaining,
        completed_tasks=(*_without(state.completed_tasks, completed.id), completed),
        current_task_id=current_id,
    )


def _delete_current_task(state: FlowState, action: DeleteCurrentTask) -> FlowState:
    if state.current_task is None:
        return state
    remaining = _without(state.tasks, state.current_task.id)
    return replace(state, tasks=remaining, current_task_id=_first_id(remaining))


def _set_current_task(state: FlowState, action: SetCurrentTask) -> FlowState:
    if _find(state.tasks, action.task_id) is None:
        return state
    return replace(state, current_task_id=action.task_id)


def _set_user(state: FlowState, action: SetUser) -> FlowState:
    previous = state.current_user
    user = action.user
    if user is None:
        # Logging out wipes everything that belonged to the previous user
        return INITIAL_STATE
    if previous is not None and previous.id != user.id:
        return replace(INITIAL_STATE, current_user=user)
    return replace(state, current_user=user)


def _reset_all(state: FlowState, action: ResetAll) -> FlowState:
    return replace(INITIAL_STATE, current_user=state.current_user)


_TRANSITIONS: dict[type, Callable[[FlowState, Any], FlowState]] = {
    SetTasks: _set_tasks,
    SetCompletedTasks: _set_completed_tasks,
    CreateTask: _create_task,
    StartSession: _start_session,
    EndSession: _end_session,
    SetUserState: _set_user_state,
    CompleteCurrentTask: _complete_current_task,
    DeleteCurrentTask: _delete_current_task,
    SetCurrentTask: _set_current_task,
    SetUser: _set_user,
    ResetAll: _reset_all,
}


def reduce(state: FlowState, action: Action) -> FlowState:
    """
    Apply one action to a state and return the next state.

    Pure and total: unknown actions and failed preconditions return
    ``state`` unchanged.

    Args:
        state: Current state
        action: Transition to apply

    Returns:
        The next state
    """
    transition = _TRANSITIONS.get(type(action))
    if transition is None:
        return state
    return transition(state, action)


__all__ = [
    "FlowState",
    "INITIAL_STATE",
    "Action",
    "SetTasks",
    "SetCompletedTasks",
    "CreateTask",
    "StartSession",
    "EndSession",
    "SetUserState",
    "CompleteCurrentTask",
    "DeleteCurrentTask",
    "SetCurrentTask",
    "SetUser",
    "ResetAll",
    "reduce",
]
