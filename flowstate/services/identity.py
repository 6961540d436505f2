"""
Local Identity Provider for FlowState.

Email/password authentication against the users table, plus an
auth-state change stream: every login, registration and logout is
pushed to subscribed listeners (the controller subscribes on startup).

Passwords are stored as salted PBKDF2-HMAC-SHA256 digests and compared
in constant time.

Data Classification: SENSITIVE (credentials)
"""

from __future__ import annotations

import hashlib
import hmac
import os
import uuid
from collections.abc import Callable
from datetime import datetime

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from flowstate.core.types import User
from flowstate.lib.exceptions import (
    AuthenticationError,
    InvalidCredentialsError,
    ValidationError,
)
from flowstate.models.base import ensure_utc, utcnow
from flowstate.models.user import UserRecord
from flowstate.services.protocols import AuthListener, Unsubscribe

logger = structlog.get_logger(__name__)

PBKDF2_ITERATIONS = 240_000
MIN_PASSWORD_LENGTH = 8


def hash_password(password: str, salt: bytes) -> str:
    """Hex PBKDF2-HMAC-SHA256 digest of a password."""
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return digest.hex()


def verify_password(password: str, salt_hex: str, expected_hex: str) -> bool:
    candidate = hash_password(password, bytes.fromhex(salt_hex))
    return hmac.compare_digest(candidate, expected_hex)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _to_user(record: UserRecord) -> User:
    return User(
        id=str(record.id),
        email=str(record.email),
        name=record.name,  # type: ignore[arg-type]
        created_at=ensure_utc(record.created_at),  # type: ignore[arg-type]
        last_login_at=ensure_utc(record.last_login_at),  # type: ignore[arg-type]
    )


class LocalIdentityProvider:
    """
    IdentityProvider backed by SQLAlchemy.

    Keeps the signed-in user for this process. Streaks are not part of
    the returned User; the controller attaches them.

    Usage:
        identity = LocalIdentityProvider(session_factory)
        unsubscribe = identity.subscribe(on_auth_change)
        user = await identity.login("ada@example.com", "correct horse")
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = utcnow,
    ):
        self._session_factory = session_factory
        self._clock = clock
        self._current_user: User | None = None
        self._listeners: list[AuthListener] = []

    # =========================================================================
    # Auth-state stream
    # =========================================================================

    def subscribe(self, listener: AuthListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _notify(self, user: User | None) -> None:
        for listener in list(self._listeners):
            try:
                await listener(user)
            except Exception:
                # A broken listener must not undo a successful login
                logger.exception("auth_listener_failed")

    # =========================================================================
    # Authentication
    # =========================================================================

    async def register(self, email: str, password: str, name: str) -> User:
        email = _normalize_email(email)
        if "@" not in email:
            raise ValidationError("A valid email address is required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        salt = os.urandom(16)
        now = self._clock()
        record = UserRecord(
            id=str(uuid.uuid4()),
            email=email,
            name=name.strip() or None,
            password_hash=hash_password(password, salt),
            password_salt=salt.hex(),
            created_at=now,
            last_login_at=now,
        )
        user = _to_user(record)
        try:
            async with self._session_factory() as db:
                db.add(record)
                await db.commit()
        except IntegrityError as e:
            raise AuthenticationError("An account with this email already exists") from e
        except SQLAlchemyError as e:
            logger.error("identity_register_failed", error=type(e).__name__)
            raise AuthenticationError("Registration failed") from e

        self._current_user = user
        logger.info("user_registered", user_id=user.id)
        await self._notify(user)
        return user

    async def login(self, email: str, password: str) -> User:
        email = _normalize_email(email)
        try:
            async with self._session_factory() as db:
                record = (
                    await db.execute(select(UserRecord).where(UserRecord.email == email))
                ).scalar_one_or_none()
                if record is None or not verify_password(
                    password, str(record.password_salt), str(record.password_hash)
                ):
                    raise InvalidCredentialsError("Invalid email or password")

                record.last_login_at = self._clock()  # type: ignore[assignment]
                user = _to_user(record)
                await db.commit()
        except SQLAlchemyError as e:
            logger.error("identity_login_failed", error=type(e).__name__)
            raise AuthenticationError("Login failed") from e

        self._current_user = user
        logger.info("user_logged_in", user_id=user.id)
        await self._notify(user)
        return user

    async def logout(self) -> None:
        if self._current_user is None:
            return
        logger.info("user_logged_out", user_id=self._current_user.id)
        self._current_user = None
        await self._notify(None)

    async def get_current_user(self) -> User | None:
        return self._current_user


__all__ = [
    "LocalIdentityProvider",
    "hash_password",
    "verify_password",
]
