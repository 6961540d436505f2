"""
Core of FlowState: domain types, intervention catalog, the task/session
state machine, streak rule and derived views. Everything here is pure.
"""

from flowstate.core.interventions import (
    INTERVENTIONS,
    get_intervention,
    match_interventions,
    planned_session_minutes,
)
from flowstate.core.reducer import INITIAL_STATE, FlowState, reduce
from flowstate.core.streak import next_streak_count
from flowstate.core.views import suggested_interventions, todays_tasks

__all__ = [
    "INTERVENTIONS",
    "get_intervention",
    "match_interventions",
    "planned_session_minutes",
    "INITIAL_STATE",
    "FlowState",
    "reduce",
    "next_streak_count",
    "suggested_interventions",
    "todays_tasks",
]
