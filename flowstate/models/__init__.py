"""
Models package for FlowState.

This package exports all SQLAlchemy models. Importing it registers every
table with Base.metadata.

Usage:
    from flowstate.models import Base, TaskRecord, SessionRecord
"""

from flowstate.models.base import Base
from flowstate.models.session import SessionRecord
from flowstate.models.streak import StreakRecord
from flowstate.models.task import TaskRecord
from flowstate.models.user import UserRecord

__all__ = [
    "Base",
    "SessionRecord",
    "StreakRecord",
    "TaskRecord",
    "UserRecord",
]
