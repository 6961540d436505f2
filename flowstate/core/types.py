"""
Domain types for FlowState.

Immutable value objects shared by the reducer, the controller and the
persistence collaborators. Collections are tuples so a state snapshot
can never be mutated behind the reducer's back.

Data Classification: SENSITIVE (check-in states and notes are personal data)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import StrEnum
from typing import Any

# =============================================================================
# Enums
# =============================================================================


class EnergyLevel(StrEnum):
    """Self-reported energy at check-in."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EmotionalState(StrEnum):
    """Self-reported emotional state at check-in."""

    EAGER = "eager"
    NEUTRAL = "neutral"
    ANXIOUS = "anxious"
    OVERWHELMED = "overwhelmed"


class InterventionType(StrEnum):
    """What an intervention works on. Used for record-keeping and icons only."""

    EMOTION = "emotion"
    COGNITION = "cognition"
    MOTIVATION = "motivation"
    BEHAVIOR = "behavior"
    ENVIRONMENT = "environment"


class Priority(StrEnum):
    """Task priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Difficulty(StrEnum):
    """How a finished session felt."""

    EASY = "easy"
    OKAY = "okay"
    HARD = "hard"


# =============================================================================
# Value Objects
# =============================================================================


@dataclass(frozen=True)
class UserState:
    """Snapshot of the user's condition at check-in time."""

    energy: EnergyLevel
    emotion: EmotionalState
    blocking_thoughts: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dict."""
        data: dict[str, Any] = {"energy": self.energy.value, "emotion": self.emotion.value}
        if self.blocking_thoughts:
            data["blocking_thoughts"] = self.blocking_thoughts
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserState:
        """Build from a dict produced by to_dict()."""
        return cls(
            energy=EnergyLevel(data["energy"]),
            emotion=EmotionalState(data["emotion"]),
            blocking_thoughts=data.get("blocking_thoughts"),
        )


DEFAULT_USER_STATE = UserState(energy=EnergyLevel.MEDIUM, emotion=EmotionalState.NEUTRAL)


@dataclass(frozen=True)
class Intervention:
    """A catalog-defined coping or productivity exercise."""

    id: str
    title: str
    description: str
    type: InterventionType
    for_energy: frozenset[EnergyLevel]
    for_emotions: frozenset[EmotionalState]
    duration: int  # minutes

    def applies_to(self, state: UserState) -> bool:
        """True when both the energy and the emotion of the state are covered."""
        return state.energy in self.for_energy and state.emotion in self.for_emotions

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dict (ordered lists for stable storage)."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.type.value,
            "for_energy": sorted(level.value for level in self.for_energy),
            "for_emotions": sorted(emotion.value for emotion in self.for_emotions),
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Intervention:
        """Build from a dict produced by to_dict()."""
        return cls(
            id=data["id"],
            title=data["title"],
            description=data["description"],
            type=InterventionType(data["type"]),
            for_energy=frozenset(EnergyLevel(v) for v in data["for_energy"]),
            for_emotions=frozenset(EmotionalState(v) for v in data["for_emotions"]),
            duration=int(data["duration"]),
        )


@dataclass(frozen=True)
class SessionFeedback:
    """Post-session review."""

    difficulty: Difficulty
    progress_made: bool
    notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "difficulty": self.difficulty.value,
            "progress_made": self.progress_made,
        }
        if self.notes:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionFeedback:
        return cls(
            difficulty=Difficulty(data["difficulty"]),
            progress_made=bool(data["progress_made"]),
            notes=data.get("notes"),
        )


@dataclass(frozen=True)
class Session:
    """
    One focus-work attempt against exactly one task.

    end_time, duration and feedback are only set once the session store
    has terminated the session; duration is never computed client-side.
    """

    id: str
    task_id: str
    start_time: datetime
    state: UserState
    end_time: datetime | None = None
    duration: int | None = None  # whole minutes, floored
    selected_intervention: Intervention | None = None
    completed: bool = False
    feedback: SessionFeedback | None = None

    @property
    def is_active(self) -> bool:
        return self.end_time is None and not self.completed


@dataclass(frozen=True)
class TaskDraft:
    """Caller-supplied fields of a task that has not been stored yet."""

    title: str
    description: str | None = None
    priority: Priority = Priority.MEDIUM
    due_date: date | None = None


@dataclass(frozen=True)
class Task:
    """A unit of work the user focuses on. Sessions are chronological."""

    id: str
    title: str
    created_at: datetime
    description: str | None = None
    priority: Priority = Priority.MEDIUM
    due_date: date | None = None
    completed: bool = False
    sessions: tuple[Session, ...] = ()

    def with_session(self, session: Session) -> Task:
        """Return a copy with session appended."""
        return replace(self, sessions=(*self.sessions, session))


@dataclass(frozen=True)
class Streak:
    """Consecutive-day count of completed sessions."""

    count: int
    last_active_date: datetime


@dataclass(frozen=True)
class User:
    """Authenticated identity plus streak record."""

    id: str
    email: str
    name: str | None = None
    created_at: datetime | None = None
    last_login_at: datetime | None = None
    streak: Streak | None = None

    def with_streak(self, streak: Streak) -> User:
        return replace(self, streak=streak)


# =============================================================================
# Helpers
# =============================================================================


def as_day(value: date | datetime) -> date:
    """Truncate a date or datetime to its calendar day."""
    if isinstance(value, datetime):
        return value.date()
    return value


__all__ = [
    "EnergyLevel",
    "EmotionalState",
    "InterventionType",
    "Priority",
    "Difficulty",
    "UserState",
    "DEFAULT_USER_STATE",
    "Intervention",
    "SessionFeedback",
    "Session",
    "TaskDraft",
    "Task",
    "Streak",
    "User",
    "as_day",
]
