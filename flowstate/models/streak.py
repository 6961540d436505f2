"""
Streak Model for FlowState.

Data Classification: INTERNAL
"""

from sqlalchemy import Column, DateTime, Integer, String

from flowstate.models.base import Base, utcnow


class StreakRecord(Base):
    """One streak row per user."""

    __tablename__ = "user_streaks"

    user_id = Column(String(36), primary_key=True)
    count = Column(Integer, default=0, nullable=False)
    last_active_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<StreakRecord(user_id={self.user_id}, count={self.count})>"


__all__ = ["StreakRecord"]
