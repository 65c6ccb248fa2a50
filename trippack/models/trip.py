"""Trip model."""

from sqlalchemy import Boolean, Column, Date, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from trippack.database import Base
from trippack.models.mixins import TimestampMixin


class Trip(Base, TimestampMixin):
    """A trip with a shared packing list.

    The owner is fixed at creation and never represented as a membership row.
    Deleting a trip removes its memberships, folders, tasks and packing records.
    """

    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String, nullable=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    invite_code = Column(String(64), unique=True, nullable=False, index=True)
    is_public = Column(Boolean, nullable=False, default=True)
    auto_approve_members = Column(Boolean, nullable=False, default=False)
    destination = Column(String(255), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    # Relationships
    owner = relationship("User", backref="owned_trips")
    members = relationship(
        "TripMember", back_populates="trip", cascade="all, delete-orphan", passive_deletes=True
    )
    folders = relationship(
        "Folder", back_populates="trip", cascade="all, delete-orphan", passive_deletes=True
    )
    tasks = relationship(
        "Task", back_populates="trip", cascade="all, delete-orphan", passive_deletes=True
    )
