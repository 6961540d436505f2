"""
Centralized notice builder for FlowState.

Provides consistent error codes and i18n-ready, user-visible messages
for every outcome the controller surfaces to the presentation layer.

Error codes are constants that map to translatable message strings.
The builder returns a Notice that travels inside a ControllerResult.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# =============================================================================
# Error Code Constants
# =============================================================================

AUTH_REQUIRED = "AUTH_REQUIRED"
INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
AUTH_FAILED = "AUTH_FAILED"
NO_CURRENT_TASK = "NO_CURRENT_TASK"
NO_ACTIVE_SESSION = "NO_ACTIVE_SESSION"
SESSION_ALREADY_ACTIVE = "SESSION_ALREADY_ACTIVE"
STALE_RESPONSE = "STALE_RESPONSE"
NOT_FOUND = "NOT_FOUND"
VALIDATION_ERROR = "VALIDATION_ERROR"
STORE_FAILURE = "STORE_FAILURE"
STREAK_UNAVAILABLE = "STREAK_UNAVAILABLE"

# =============================================================================
# i18n Message Registry
#
# Maps (error_code, language) -> translated message string.
# Falls back to "en" if a translation is missing for the requested language.
# =============================================================================

_ERROR_MESSAGES: dict[str, dict[str, str]] = {
    AUTH_REQUIRED: {
        "en": "Please log in first.",
        "de": "Bitte melde dich zuerst an.",
    },
    INVALID_CREDENTIALS: {
        "en": "That email and password don't match. Please try again.",
        "de": "E-Mail und Passwort passen nicht zusammen. Bitte erneut versuchen.",
    },
    AUTH_FAILED: {
        "en": "We couldn't sign you in right now. Please try again.",
        "de": "Die Anmeldung ist gerade nicht moeglich. Bitte erneut versuchen.",
    },
    NO_CURRENT_TASK: {
        "en": "Pick or create a task first.",
        "de": "Waehle oder erstelle zuerst eine Aufgabe.",
    },
    NO_ACTIVE_SESSION: {
        "en": "There is no focus session running.",
        "de": "Es laeuft gerade keine Fokus-Session.",
    },
    SESSION_ALREADY_ACTIVE: {
        "en": "Finish your current focus session before starting a new one.",
        "de": "Beende zuerst deine laufende Fokus-Session.",
    },
    STALE_RESPONSE: {
        "en": "A newer action replaced this one.",
        "de": "Eine neuere Aktion hat diese ersetzt.",
    },
    NOT_FOUND: {
        "en": "That task could not be found.",
        "de": "Diese Aufgabe wurde nicht gefunden.",
    },
    VALIDATION_ERROR: {
        "en": "Please check your input.",
        "de": "Bitte ueberpruefe deine Eingabe.",
    },
    STORE_FAILURE: {
        "en": "Something went wrong while saving. Please try again.",
        "de": "Beim Speichern ist etwas schiefgelaufen. Bitte erneut versuchen.",
    },
    STREAK_UNAVAILABLE: {
        "en": "Session saved, but your streak could not be updated.",
        "de": "Session gespeichert, aber deine Serie konnte nicht aktualisiert werden.",
    },
}

_DEFAULT_LANG = "en"


@dataclass(frozen=True)
class Notice:
    """A user-visible outcome message."""

    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Notice Builder
# =============================================================================


def get_error_message(code: str, lang: str = "en") -> str:
    """
    Get a translated message for a given error code.

    Falls back to English if the requested language is not available.
    Falls back to a generic message if the error code is unknown.

    Args:
        code: Error code constant (e.g. NO_CURRENT_TASK)
        lang: ISO 639-1 language code (e.g. "en", "de")

    Returns:
        Translated message string
    """
    messages = _ERROR_MESSAGES.get(code, {})
    return messages.get(lang, messages.get(_DEFAULT_LANG, "An error occurred."))


def build_notice(
    code: str,
    message: str | None = None,
    details: dict[str, Any] | None = None,
    lang: str = "en",
) -> Notice:
    """
    Build a Notice for an error code.

    If no message is provided, the translated message for the code
    and language is used.

    Args:
        code: Error code constant
        message: Optional override message (bypasses i18n lookup)
        details: Optional additional details
        lang: ISO 639-1 language code for message lookup

    Returns:
        Notice with code, message and details
    """
    resolved_message = message if message is not None else get_error_message(code, lang)
    return Notice(code=code, message=resolved_message, details=dict(details or {}))


__all__ = [
    "AUTH_REQUIRED",
    "INVALID_CREDENTIALS",
    "AUTH_FAILED",
    "NO_CURRENT_TASK",
    "NO_ACTIVE_SESSION",
    "SESSION_ALREADY_ACTIVE",
    "STALE_RESPONSE",
    "NOT_FOUND",
    "VALIDATION_ERROR",
    "STORE_FAILURE",
    "STREAK_UNAVAILABLE",
    "Notice",
    "get_error_message",
    "build_notice",
]
