"""
Custom exception hierarchy for FlowState.

All exceptions inherit from FlowStateException, enabling a catch-all
for FlowState errors at the controller boundary while keeping the
ability to catch specific error types.
"""

from __future__ import annotations


class FlowStateException(Exception):
    """Base exception for all FlowState errors."""


class ConfigurationError(FlowStateException):
    """Missing or invalid environment configuration."""


class ValidationError(FlowStateException):
    """Input rejected before it reaches a store or the reducer (e.g. empty title)."""


class StateError(FlowStateException):
    """Invalid state transitions, such as ending a session twice."""


class StoreError(FlowStateException):
    """Persistence collaborator failures (database, network, permissions)."""


class NotFoundError(StoreError):
    """A task, session or streak record does not exist."""


class AuthenticationError(FlowStateException):
    """Identity provider failures (login, registration, session lookup)."""


class InvalidCredentialsError(AuthenticationError):
    """Email/password did not match. User-correctable, unlike other auth failures."""


__all__ = [
    "FlowStateException",
    "ConfigurationError",
    "ValidationError",
    "StateError",
    "StoreError",
    "NotFoundError",
    "AuthenticationError",
    "InvalidCredentialsError",
]
