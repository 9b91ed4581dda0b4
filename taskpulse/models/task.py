import uuid
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Boolean, Index
from taskpulse.database import Base
from taskpulse.utils.dates import utcnow


def new_task_id() -> str:
    return uuid.uuid4().hex


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(32), primary_key=True, default=new_task_id)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    completed = Column(Boolean, default=False, nullable=False)
    priority = Column(String(10), default="medium", nullable=False)  # low, medium, high
    category = Column(String(50), nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)  # set iff completed

    __table_args__ = (
        Index("ix_tasks_owner_created_at", "owner_id", "created_at"),
        Index("ix_tasks_owner_completed", "owner_id", "completed"),
        Index("ix_tasks_owner_due_date", "owner_id", "due_date"),
        Index("ix_tasks_owner_category", "owner_id", "category"),
    )
