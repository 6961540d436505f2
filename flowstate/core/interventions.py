"""
Intervention Catalog for FlowState.

A fixed set of short coping and productivity exercises, each tagged with
the energy levels and emotional states it is meant for. Matching is a
pure filter over the catalog: both the energy AND the emotion of a
check-in must be covered for an intervention to be suggested. Results
keep catalog definition order; there is no scoring and no randomness.

When nothing matches, callers fall back to a generic focus session of
DEFAULT_SESSION_MINUTES.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from flowstate.config.settings import DEFAULT_SESSION_MINUTES
from flowstate.core.types import (
    EmotionalState,
    EnergyLevel,
    Intervention,
    InterventionType,
    UserState,
)

_LOW = EnergyLevel.LOW
_MEDIUM = EnergyLevel.MEDIUM
_HIGH = EnergyLevel.HIGH

_EAGER = EmotionalState.EAGER
_NEUTRAL = EmotionalState.NEUTRAL
_ANXIOUS = EmotionalState.ANXIOUS
_OVERWHELMED = EmotionalState.OVERWHELMED


def _intervention(
    id: str,
    title: str,
    description: str,
    type: InterventionType,
    for_energy: Iterable[EnergyLevel],
    for_emotions: Iterable[EmotionalState],
    duration: int,
) -> Intervention:
    return Intervention(
        id=id,
        title=title,
        description=description,
        type=type,
        for_energy=frozenset(for_energy),
        for_emotions=frozenset(for_emotions),
        duration=duration,
    )


# =============================================================================
# Catalog
# =============================================================================

INTERVENTIONS: tuple[Intervention, ...] = (
    _intervention(
        "box-breathing",
        "Box Breathing",
        "Breathe in for 4, hold for 4, out for 4, hold for 4. Repeat until your "
        "shoulders drop, then name the very first step of your task.",
        InterventionType.EMOTION,
        (_LOW, _MEDIUM, _HIGH),
        (_ANXIOUS, _OVERWHELMED),
        3,
    ),
    _intervention(
        "worry-parking",
        "Park Your Worries",
        "Write every worry in your head onto paper. You can pick them up again "
        "after the session; for now they are parked.",
        InterventionType.COGNITION,
        (_MEDIUM, _HIGH),
        (_ANXIOUS,),
        5,
    ),
    _intervention(
        "smallest-step",
        "Smallest Next Step",
        "Shrink the task until the next step takes under two minutes, then do "
        "only that step.",
        InterventionType.BEHAVIOR,
        (_LOW, _MEDIUM),
        (_OVERWHELMED, _NEUTRAL),
        10,
    ),
    _intervention(
        "gentle-start",
        "Gentle Start",
        "Low energy is fine. Work at half speed for ten minutes with no goal "
        "other than staying with the task.",
        InterventionType.MOTIVATION,
        (_LOW,),
        (_NEUTRAL, _ANXIOUS, _EAGER),
        10,
    ),
    _intervention(
        "reset-space",
        "Reset Your Space",
        "Clear your desk, close unrelated tabs and silence notifications before "
        "you begin.",
        InterventionType.ENVIRONMENT,
        (_MEDIUM, _HIGH),
        (_NEUTRAL, _OVERWHELMED),
        5,
    ),
    _intervention(
        "sprint",
        "Focus Sprint",
        "Ride the momentum: one uninterrupted sprint on the hardest part of the "
        "task, no switching.",
        InterventionType.MOTIVATION,
        (_HIGH,),
        (_EAGER,),
        25,
    ),
    _intervention(
        "pomodoro",
        "Classic Pomodoro",
        "Twenty-five minutes of focused work, then a five minute break.",
        InterventionType.BEHAVIOR,
        (_MEDIUM, _HIGH),
        (_EAGER, _NEUTRAL),
        25,
    ),
    _intervention(
        "reframe",
        "Reframe the Blocker",
        "Write down the thought that is stopping you, then rewrite it as "
        "something a supportive friend would say.",
        InterventionType.COGNITION,
        (_LOW, _MEDIUM),
        (_ANXIOUS, _OVERWHELMED),
        5,
    ),
    _intervention(
        "walk-and-plan",
        "Walk and Plan",
        "Take a short walk and decide what 'done for today' looks like before "
        "you sit back down.",
        InterventionType.ENVIRONMENT,
        (_LOW,),
        (_OVERWHELMED,),
        10,
    ),
)


# =============================================================================
# Matching
# =============================================================================


def match_interventions(
    state: UserState,
    catalog: Sequence[Intervention] = INTERVENTIONS,
) -> list[Intervention]:
    """
    Return the interventions that apply to a check-in, in catalog order.

    An intervention applies when its energy set contains the state's energy
    AND its emotion set contains the state's emotion.

    Args:
        state: The check-in to match
        catalog: Interventions to search (the built-in catalog by default)

    Returns:
        Matching interventions; empty when nothing applies
    """
    return [intervention for intervention in catalog if intervention.applies_to(state)]


def get_intervention(
    intervention_id: str,
    catalog: Sequence[Intervention] = INTERVENTIONS,
) -> Intervention | None:
    """Look up an intervention by id."""
    for intervention in catalog:
        if intervention.id == intervention_id:
            return intervention
    return None


def planned_session_minutes(
    intervention: Intervention | None,
    default: int = DEFAULT_SESSION_MINUTES,
) -> int:
    """Timer length for a session: the intervention's duration, else the default."""
    if intervention is None:
        return default
    return intervention.duration


__all__ = [
    "INTERVENTIONS",
    "match_interventions",
    "get_intervention",
    "planned_session_minutes",
]
