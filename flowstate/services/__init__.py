"""
Services package for FlowState.

The controller plus the SQL-backed collaborators it talks to.
"""

from flowstate.services.controller import ControllerResult, FlowStateController
from flowstate.services.identity import LocalIdentityProvider
from flowstate.services.session_store import SqlSessionStore
from flowstate.services.streak_store import SqlStreakStore
from flowstate.services.task_store import SqlTaskStore

__all__ = [
    "ControllerResult",
    "FlowStateController",
    "LocalIdentityProvider",
    "SqlSessionStore",
    "SqlStreakStore",
    "SqlTaskStore",
]
