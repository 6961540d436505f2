"""
Session Model for FlowState.

Data Classification: SENSITIVE (check-in state and feedback notes)
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from flowstate.models.base import Base, utcnow


class SessionRecord(Base):
    """
    Stored focus session.

    Attributes:
        id: Primary key (UUID string)
        task_id: Foreign key to tasks.id
        user_id: Owning user
        start_time: When the session started
        end_time: When the session was ended (None while running)
        duration: Whole elapsed minutes, floored, set on end
        state: Check-in snapshot (JSON)
        selected_intervention: Copy of the chosen intervention (JSON)
        completed: Whether the session has ended
        feedback: Post-session review (JSON)
    """

    __tablename__ = "sessions"

    task = relationship("TaskRecord", back_populates="sessions")

    id = Column(String(36), primary_key=True)
    task_id = Column(
        String(36),
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String(36), nullable=False, index=True)

    start_time = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=True)
    duration = Column(Integer, nullable=True)

    state = Column(JSON, nullable=False)
    selected_intervention = Column(JSON, nullable=True)
    completed = Column(Boolean, default=False, nullable=False)
    feedback = Column(JSON, nullable=True)

    __table_args__ = (Index("idx_session_user_start", "user_id", "start_time"),)

    def __repr__(self) -> str:
        return f"<SessionRecord(id={self.id}, task_id={self.task_id}, completed={self.completed})>"


__all__ = ["SessionRecord"]
