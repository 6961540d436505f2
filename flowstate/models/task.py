"""
Task Model for FlowState.

Data Classification: SENSITIVE (title and description contain personal task data)
"""

from sqlalchemy import Boolean, Column, Date, DateTime, Index, String, Text
from sqlalchemy.orm import relationship

from flowstate.models.base import Base, utcnow


class TaskRecord(Base):
    """
    Stored task.

    Priority: low | medium | high

    Attributes:
        id: Primary key (UUID string)
        user_id: Owning user
        title: Task title
        description: Optional longer description
        priority: Priority level
        due_date: Optional due date
        completed: Whether the task has been completed
        created_at: Creation timestamp
        sessions: Focus sessions, oldest first
    """

    __tablename__ = "tasks"

    sessions = relationship(
        "SessionRecord",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="SessionRecord.start_time",
        lazy="selectin",
    )

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), nullable=False, index=True)

    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(String(10), default="medium", nullable=False)
    due_date = Column(Date, nullable=True)
    completed = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_task_user_completed", "user_id", "completed"),
        Index("idx_task_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<TaskRecord(id={self.id}, user_id={self.user_id}, completed={self.completed})>"


__all__ = ["TaskRecord"]
