"""
Streak rule for FlowState.

A streak counts consecutive calendar days with at least one completed
session. Days are compared in the user's configured timezone:

- same day as the last activity: unchanged
- exactly one day later: +1
- more than one day later: back to 1

A fresh record (count 0, stamped when it is created) stays at 0 for
sessions on its creation day and reaches 1 on the following day.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, tzinfo

from flowstate.core.types import Streak


def local_day(moment: datetime, tz: tzinfo) -> date:
    """Calendar day of a timestamp in the given timezone (naive means UTC)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(tz).date()


def next_streak_count(streak: Streak, today: date, tz: tzinfo = UTC) -> int:
    """
    Compute the streak count after a session completes on ``today``.

    Args:
        streak: The stored streak record
        today: Calendar day of the completed session
        tz: Timezone used to read last_active_date

    Returns:
        The new count (equal to streak.count when nothing changes)
    """
    gap = (today - local_day(streak.last_active_date, tz)).days
    if gap <= 0:
        return streak.count
    if gap == 1:
        return streak.count + 1
    return 1


__all__ = ["local_day", "next_streak_count"]
