"""Packing list engine: folders, tasks and per-user packing records."""

import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from trippack.errors import Conflict, Forbidden, NotFound, ValidationError
from trippack.models.folder import Folder
from trippack.models.task import Task, TaskPacker
from trippack.models.user import User
from trippack.schemas.task import TaskCreate
from trippack.services.membership import MembershipService

logger = logging.getLogger(__name__)


def _require_text(value: str | None, message: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(message)
    return cleaned


class PackingService:
    """Folder and task operations scoped to trips the caller can access."""

    def __init__(self, db: Session, membership: MembershipService | None = None):
        self.db = db
        self.membership = membership or MembershipService(db)

    # Folders

    def list_folders(self, trip_id: int, caller_id: int) -> list[Folder]:
        self.membership.require_access(trip_id, caller_id)
        return (
            self.db.query(Folder)
            .filter(Folder.trip_id == trip_id)
            .order_by(Folder.created_at, Folder.id)
            .all()
        )

    def add_folder(self, trip_id: int, name: str | None, caller_id: int) -> Folder:
        """Add a folder. A missing name is reported before the access check."""
        name = _require_text(name, "Folder name is required")
        self.membership.require_access(trip_id, caller_id)
        folder = Folder(trip_id=trip_id, name=name)
        self.db.add(folder)
        self.db.commit()
        self.db.refresh(folder)
        return folder

    def get_folder(self, folder_id: int, caller_id: int) -> Folder:
        """Get a folder on a trip the caller can access."""
        folder = self.db.get(Folder, folder_id)
        if folder is None:
            raise NotFound("Folder not found")
        self.membership.require_access(folder.trip_id, caller_id)
        return folder

    def rename_folder(self, folder_id: int, name: str | None, caller_id: int) -> Folder:
        folder = self.get_folder(folder_id, caller_id)
        folder.name = _require_text(name, "Folder name is required")
        self.db.commit()
        self.db.refresh(folder)
        return folder

    def delete_folder(self, folder_id: int, caller_id: int) -> int:
        """Delete a folder and return its trip id. Its tasks stay on the trip, unfiled."""
        folder = self.get_folder(folder_id, caller_id)
        trip_id = folder.trip_id

        self.db.query(Task).filter(Task.folder_id == folder_id).update(
            {Task.folder_id: None}, synchronize_session="fetch"
        )
        self.db.delete(folder)
        self.db.commit()
        return trip_id

    # Tasks

    def _check_folder(self, trip_id: int, folder_id: int | None) -> None:
        if folder_id is None:
            return
        folder = self.db.get(Folder, folder_id)
        if folder is None or folder.trip_id != trip_id:
            raise ValidationError("Folder does not belong to this trip")

    def list_tasks(self, trip_id: int, caller_id: int) -> list[Task]:
        """Tasks in creation order, each with its packers in packing order."""
        self.membership.require_access(trip_id, caller_id)
        return (
            self.db.query(Task)
            .options(selectinload(Task.packers))
            .filter(Task.trip_id == trip_id)
            .order_by(Task.created_at, Task.id)
            .all()
        )

    def add_task(self, trip_id: int, data: TaskCreate, caller: User) -> Task:
        """Add a task, recording the caller's current username as its creator name."""
        self.membership.require_access(trip_id, caller.id)
        text = _require_text(data.text, "Task name is required")
        self._check_folder(trip_id, data.folder_id)

        task = Task(
            trip_id=trip_id,
            folder_id=data.folder_id,
            text=text,
            description=(data.description or "").strip() or None,
            deadline=data.deadline,
            creator_id=caller.id,
            creator_name=caller.username,
        )
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        return task

    def get_task(self, task_id: int, caller_id: int) -> Task:
        """Get a task on a trip the caller can access."""
        task = self.db.get(Task, task_id)
        if task is None:
            raise NotFound("Task not found")
        self.membership.require_access(task.trip_id, caller_id)
        return task

    def _get_own_task(self, task_id: int, caller_id: int, action: str) -> Task:
        task = self.get_task(task_id, caller_id)
        if task.creator_id != caller_id:
            raise Forbidden(f"Only the creator can {action} this task")
        return task

    def edit_task(self, task_id: int, fields: dict, caller_id: int) -> Task:
        """Update a task (creator only).

        ``fields`` holds only the keys the client sent, so an explicit null
        clears a value while a missing key leaves it alone.
        """
        task = self._get_own_task(task_id, caller_id, "edit")

        if "text" in fields:
            task.text = _require_text(fields["text"], "Task name is required")
        if "description" in fields:
            task.description = (fields["description"] or "").strip() or None
        if "deadline" in fields:
            task.deadline = fields["deadline"]
        if "folder_id" in fields:
            self._check_folder(task.trip_id, fields["folder_id"])
            task.folder_id = fields["folder_id"]

        self.db.commit()
        self.db.refresh(task)
        return task

    def delete_task(self, task_id: int, caller_id: int) -> int:
        """Delete a task and its packing records (creator only); returns the trip id."""
        task = self._get_own_task(task_id, caller_id, "delete")
        trip_id = task.trip_id
        self.db.delete(task)
        self.db.commit()
        return trip_id

    # Packing records

    def toggle_packed(self, task_id: int, user_id: int, display_name: str) -> bool:
        """Flip the user's packed mark on a task and return the new state.

        Packing stores ``display_name`` as it is now; unpacking deletes the
        record. Other users' marks are untouched.
        """
        task = self.get_task(task_id, user_id)

        record = (
            self.db.query(TaskPacker)
            .filter(TaskPacker.task_id == task.id, TaskPacker.user_id == user_id)
            .first()
        )
        if record is not None:
            self.db.delete(record)
            self.db.commit()
            logger.debug(f"User {user_id} unpacked task {task_id}")
            return False

        self.db.add(TaskPacker(task_id=task.id, user_id=user_id, user_name=display_name))
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("Already packed") from None
        logger.debug(f"User {user_id} packed task {task_id}")
        return True

    def packers(self, task_id: int, caller_id: int) -> list[TaskPacker]:
        """Who packed a task, earliest first."""
        task = self.get_task(task_id, caller_id)
        return (
            self.db.query(TaskPacker)
            .filter(TaskPacker.task_id == task.id)
            .order_by(TaskPacker.packed_at, TaskPacker.id)
            .all()
        )

    def packed_count(self, trip_id: int, user_id: int) -> int:
        """Number of the trip's tasks the user has packed."""
        count = (
            self.db.query(func.count(TaskPacker.id))
            .join(Task, TaskPacker.task_id == Task.id)
            .filter(Task.trip_id == trip_id, TaskPacker.user_id == user_id)
            .scalar()
        )
        return count or 0

    def progress(self, trip_id: int, user_id: int) -> dict:
        """The user's packed count against the trip's total task count."""
        self.membership.require_access(trip_id, user_id)
        total = (
            self.db.query(func.count(Task.id)).filter(Task.trip_id == trip_id).scalar() or 0
        )
        packed = self.packed_count(trip_id, user_id)
        return {
            "trip_id": trip_id,
            "packed_count": packed,
            "total_count": total,
            "progress": packed / total if total else 0.0,
        }
