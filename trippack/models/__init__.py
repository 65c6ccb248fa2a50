"""SQLAlchemy models."""

from trippack.models.folder import Folder
from trippack.models.membership import TripMember
from trippack.models.session import UserSession
from trippack.models.task import Task, TaskPacker
from trippack.models.trip import Trip
from trippack.models.user import User

__all__ = [
    "User",
    "UserSession",
    "Trip",
    "TripMember",
    "Folder",
    "Task",
    "TaskPacker",
]
