"""Task and packing record models."""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from trippack.database import Base
from trippack.models.mixins import TimestampMixin


class Task(Base, TimestampMixin):
    """A packing item on a trip's shared list."""

    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(
        Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True
    )
    folder_id = Column(
        Integer, ForeignKey("folders.id", ondelete="SET NULL"), nullable=True, index=True
    )
    text = Column(String(500), nullable=False)
    description = Column(String, nullable=True)
    deadline = Column(DateTime(timezone=True), nullable=True)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # Username at creation time; renames do not rewrite it
    creator_name = Column(String(100), nullable=False)

    # Relationships
    trip = relationship("Trip", back_populates="tasks")
    folder = relationship("Folder", back_populates="tasks")
    creator = relationship("User", foreign_keys=[creator_id])
    packers = relationship(
        "TaskPacker",
        back_populates="task",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TaskPacker.packed_at",
    )


class TaskPacker(Base):
    """One user's claim that they packed a task."""

    __tablename__ = "task_packers"
    __table_args__ = (UniqueConstraint("task_id", "user_id", name="uq_task_packers_task_user"),)

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(
        Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # Username at packing time
    user_name = Column(String(100), nullable=False)
    packed_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))

    # Relationships
    task = relationship("Task", back_populates="packers")
    user = relationship("User")
