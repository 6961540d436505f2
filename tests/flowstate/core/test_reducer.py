"""
Tests for the task/session state machine.

Tests cover:
- Every transition in the transition table
- Failed preconditions return the very same state object
- Session end appends exactly once and clears the active session
- Complete / delete move the current-task pointer deterministically
- SetUser(None) and user switches wipe task/session state
"""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, date, datetime, timedelta

import pytest

from flowstate.core.reducer import (
    INITIAL_STATE,
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
from flowstate.core.types import (
    DEFAULT_USER_STATE,
    Difficulty,
    EmotionalState,
    EnergyLevel,
    Session,
    SessionFeedback,
    Task,
    User,
    UserState,
)

T0 = datetime(2026, 3, 10, 9, 0, tzinfo=UTC)


def make_task(task_id: str, **kwargs) -> Task:
    return Task(id=task_id, title=f"Task {task_id}", created_at=T0, **kwargs)


def make_session(session_id: str, task_id: str, state: UserState | None = None) -> Session:
    return Session(
        id=session_id,
        task_id=task_id,
        start_time=T0,
        state=state or UserState(energy=EnergyLevel.MEDIUM, emotion=EmotionalState.NEUTRAL),
    )


def end(session: Session, minutes: int) -> Session:
    return replace(
        session,
        end_time=session.start_time + timedelta(minutes=minutes, seconds=30),
        duration=minutes,
        completed=True,
        feedback=SessionFeedback(difficulty=Difficulty.OKAY, progress_made=True),
    )


@pytest.fixture
def user() -> User:
    return User(id="user-1", email="ada@example.com", name="Ada")


@pytest.fixture
def three_tasks() -> FlowState:
    state = INITIAL_STATE
    for task_id in ("t1", "t2", "t3"):
        state = reduce(state, CreateTask(make_task(task_id)))
    return state


# =============================================================================
# Initial state
# =============================================================================


def test_initial_state_is_empty():
    assert INITIAL_STATE.current_user is None
    assert INITIAL_STATE.tasks == ()
    assert INITIAL_STATE.current_task is None
    assert INITIAL_STATE.active_session is None
    assert INITIAL_STATE.user_state == DEFAULT_USER_STATE
    assert len(INITIAL_STATE.interventions) > 0


# =============================================================================
# Task collections
# =============================================================================


def test_create_task_becomes_current_only_when_none_is_current():
    state = reduce(INITIAL_STATE, CreateTask(make_task("t1")))
    assert state.current_task_id == "t1"

    state = reduce(state, CreateTask(make_task("t2")))
    assert [t.id for t in state.tasks] == ["t1", "t2"]
    assert state.current_task_id == "t1"


def test_set_tasks_defaults_current_to_first():
    state = reduce(INITIAL_STATE, SetTasks((make_task("a"), make_task("b"))))
    assert state.current_task.id == "a"


def test_set_tasks_keeps_existing_current_pointer(three_tasks):
    state = reduce(three_tasks, SetCurrentTask("t2"))
    state = reduce(state, SetTasks((make_task("t1"), make_task("t2"))))
    assert state.current_task_id == "t2"


def test_set_tasks_repoints_when_current_disappears(three_tasks):
    state = reduce(three_tasks, SetCurrentTask("t3"))
    state = reduce(state, SetTasks((make_task("t1"),)))
    assert state.current_task_id == "t1"

    state = reduce(state, SetTasks(()))
    assert state.current_task is None


def test_set_completed_tasks_replaces_collection(three_tasks):
    done = (make_task("old", completed=True),)
    state = reduce(three_tasks, SetCompletedTasks(done))
    assert state.completed_tasks == done
    assert state.tasks == three_tasks.tasks


def test_set_current_task_unknown_id_is_noop(three_tasks):
    assert reduce(three_tasks, SetCurrentTask("missing")) is three_tasks


def test_set_current_task(three_tasks):
    state = reduce(three_tasks, SetCurrentTask("t3"))
    assert state.current_task.id == "t3"


# =============================================================================
# Sessions
# =============================================================================


def test_start_session_without_current_task_is_noop():
    session = make_session("s1", "t1")
    assert reduce(INITIAL_STATE, StartSession(session)) is INITIAL_STATE


def test_start_session_sets_active_and_user_state(three_tasks):
    check_in = UserState(energy=EnergyLevel.LOW, emotion=EmotionalState.ANXIOUS)
    session = make_session("s1", "t1", check_in)

    state = reduce(three_tasks, StartSession(session))

    assert state.active_session == session
    assert state.is_in_session
    assert state.user_state == check_in


def test_second_start_while_active_is_noop(three_tasks):
    state = reduce(three_tasks, StartSession(make_session("s1", "t1")))
    assert reduce(state, StartSession(make_session("s2", "t1"))) is state


def test_end_session_without_active_is_noop(three_tasks):
    ended = end(make_session("s1", "t1"), 10)
    assert reduce(three_tasks, EndSession(ended)) is three_tasks


def test_end_session_for_other_session_is_noop(three_tasks):
    state = reduce(three_tasks, StartSession(make_session("s1", "t1")))
    assert reduce(state, EndSession(end(make_session("s9", "t1"), 3))) is state


def test_end_session_appends_exactly_once(three_tasks):
    session = make_session("s1", "t1")
    ended = end(session, 12)
    state = reduce(three_tasks, StartSession(session))

    state = reduce(state, EndSession(ended))
    # Replaying the same response changes nothing
    again = reduce(state, EndSession(ended))

    assert again is state
    assert state.active_session is None
    assert state.current_task.sessions == (ended,)
    assert state.sessions == (ended,)
    assert ended.duration == 12
    other_tasks = [t for t in state.tasks if t.id != "t1"]
    assert all(t.sessions == () for t in other_tasks)


def test_end_session_targets_owning_task_not_current(three_tasks):
    session = make_session("s1", "t1")
    state = reduce(three_tasks, StartSession(session))
    state = reduce(state, SetCurrentTask("t2"))

    state = reduce(state, EndSession(end(session, 5)))

    by_id = {t.id: t for t in state.tasks}
    assert len(by_id["t1"].sessions) == 1
    assert by_id["t2"].sessions == ()


def test_end_session_for_vanished_task_only_logs(three_tasks):
    session = make_session("s1", "t1")
    state = reduce(three_tasks, StartSession(session))
    state = reduce(state, DeleteCurrentTask())

    state = reduce(state, EndSession(end(session, 5)))

    assert state.active_session is None
    assert len(state.sessions) == 1
    assert all(t.sessions == () for t in state.tasks)


def test_set_user_state():
    check_in = UserState(energy=EnergyLevel.HIGH, emotion=EmotionalState.EAGER)
    state = reduce(INITIAL_STATE, SetUserState(check_in))
    assert state.user_state == check_in


# =============================================================================
# Complete / delete
# =============================================================================


def test_complete_without_current_task_is_noop():
    assert reduce(INITIAL_STATE, CompleteCurrentTask(make_task("t1"))) is INITIAL_STATE


def test_complete_moves_task_to_completed_once(three_tasks):
    current = three_tasks.current_task
    state = reduce(three_tasks, CompleteCurrentTask(replace(current, completed=True)))

    assert [t.id for t in state.tasks] == ["t2", "t3"]
    assert [t.id for t in state.completed_tasks] == ["t1"]
    assert state.completed_tasks[0].completed is True
    assert state.current_task_id == "t2"

    # Already gone from the active collection: nothing more happens
    assert reduce(state, CompleteCurrentTask(replace(current, completed=True))) is state


def test_complete_last_task_leaves_no_current():
    state = reduce(INITIAL_STATE, CreateTask(make_task("only")))
    state = reduce(state, CompleteCurrentTask(state.current_task))
    assert state.tasks == ()
    assert state.current_task is None
    assert state.completed_tasks[0].id == "only"


def test_delete_without_current_task_is_noop():
    assert reduce(INITIAL_STATE, DeleteCurrentTask()) is INITIAL_STATE


def test_delete_removes_current_and_points_at_first_remaining(three_tasks):
    state = reduce(three_tasks, SetCurrentTask("t2"))
    state = reduce(state, DeleteCurrentTask())

    assert [t.id for t in state.tasks] == ["t1", "t3"]
    assert state.current_task_id == "t1"
    assert state.completed_tasks == ()


def test_current_task_pointer_always_valid(three_tasks):
    state = three_tasks
    while state.tasks:
        state = reduce(state, DeleteCurrentTask())
        assert state.current_task_id is None or state.current_task is not None
    assert state.current_task is None


# =============================================================================
# Identity and reset
# =============================================================================


def test_set_user_same_id_keeps_tasks(three_tasks, user):
    state = reduce(three_tasks, SetUser(user))
    renamed = replace(user, name="Ada L.")
    state = reduce(state, SetUser(renamed))
    assert state.current_user == renamed
    assert len(state.tasks) == 3


def test_clear_user_wipes_everything(three_tasks, user):
    state = reduce(three_tasks, SetUser(user))
    state = reduce(state, StartSession(make_session("s1", "t1")))

    state = reduce(state, SetUser(None))

    assert state == INITIAL_STATE


def test_switching_user_wipes_previous_data(three_tasks, user):
    state = reduce(three_tasks, SetUser(user))
    other = User(id="user-2", email="grace@example.com")

    state = reduce(state, SetUser(other))

    assert state.current_user == other
    assert state.tasks == ()


def test_reset_all_keeps_identity_only(three_tasks, user):
    state = reduce(three_tasks, SetUser(user))
    state = reduce(state, SetUserState(UserState(EnergyLevel.LOW, EmotionalState.EAGER)))

    state = reduce(state, ResetAll())

    assert state.current_user == user
    assert state.tasks == ()
    assert state.user_state == DEFAULT_USER_STATE


def test_unknown_action_is_ignored(three_tasks):
    assert reduce(three_tasks, object()) is three_tasks  # type: ignore[arg-type]


def test_due_dates_survive_transitions():
    task = make_task("t1", due_date=date(2026, 3, 12))
    state = reduce(INITIAL_STATE, CreateTask(task))
    assert state.current_task.due_date == date(2026, 3, 12)
