"""Task and packing API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from trippack.api.dependencies import get_current_user, get_packing_service
from trippack.models.user import User
from trippack.schemas.task import (
    PackerResponse,
    ProgressResponse,
    TaskCreate,
    TaskResponse,
    TaskUpdate,
    ToggleResponse,
)
from trippack.services.packing import PackingService
from trippack.services.realtime import TripEventType, publish_trip_event

router = APIRouter(prefix="/api", tags=["tasks"])


@router.get("/trip/{trip_id}/tasks", response_model=list[TaskResponse])
def get_tasks(
    trip_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    packing: Annotated[PackingService, Depends(get_packing_service)],
):
    """Get all tasks for a trip with who packed each one."""
    return packing.list_tasks(trip_id, current_user.id)


@router.post(
    "/trip/{trip_id}/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED
)
def create_task(
    trip_id: int,
    task_data: TaskCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    packing: Annotated[PackingService, Depends(get_packing_service)],
):
    """Add a task to a trip's packing list."""
    task = packing.add_task(trip_id, task_data, current_user)
    publish_trip_event(trip_id, TripEventType.TASK_CREATED, {"task_id": task.id})
    return task


@router.get("/trip/{trip_id}/progress", response_model=ProgressResponse)
def get_progress(
    trip_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    packing: Annotated[PackingService, Depends(get_packing_service)],
):
    """Get how much of the trip's list the current user has packed."""
    return packing.progress(trip_id, current_user.id)


@router.put("/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: int,
    task_data: TaskUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    packing: Annotated[PackingService, Depends(get_packing_service)],
):
    """Update a task (creator only)."""
    task = packing.edit_task(task_id, task_data.model_dump(exclude_unset=True), current_user.id)
    publish_trip_event(task.trip_id, TripEventType.TASK_UPDATED, {"task_id": task.id})
    return task


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    packing: Annotated[PackingService, Depends(get_packing_service)],
):
    """Delete a task (creator only)."""
    trip_id = packing.delete_task(task_id, current_user.id)
    publish_trip_event(trip_id, TripEventType.TASK_DELETED, {"task_id": task_id})


@router.post("/tasks/{task_id}/toggle-packed", response_model=ToggleResponse)
def toggle_packed(
    task_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    packing: Annotated[PackingService, Depends(get_packing_service)],
):
    """Mark or unmark the task as packed by the current user."""
    packed = packing.toggle_packed(task_id, current_user.id, current_user.username)
    packers = packing.packers(task_id, current_user.id)

    task = packing.get_task(task_id, current_user.id)
    publish_trip_event(
        task.trip_id,
        TripEventType.TASK_PACKED if packed else TripEventType.TASK_UNPACKED,
        {"task_id": task_id, "user_id": current_user.id},
    )
    return ToggleResponse(
        task_id=task_id,
        packed=packed,
        packers=[PackerResponse.model_validate(p) for p in packers],
    )


@router.get("/tasks/{task_id}/packers", response_model=list[PackerResponse])
def get_packers(
    task_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    packing: Annotated[PackingService, Depends(get_packing_service)],
):
    """Get who packed a task, earliest first."""
    return packing.packers(task_id, current_user.id)
