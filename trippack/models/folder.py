"""Folder model."""

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from trippack.database import Base
from trippack.models.mixins import TimestampMixin


class Folder(Base, TimestampMixin):
    """Folder for grouping tasks within a trip."""

    __tablename__ = "folders"

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(
        Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)

    # Relationships
    trip = relationship("Trip", back_populates="folders")
    tasks = relationship("Task", back_populates="folder", passive_deletes=True)
