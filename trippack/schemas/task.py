"""Task and packing schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TaskCreate(BaseModel):
    """Create a new task."""

    text: str = Field(..., max_length=500)
    description: str | None = Field(None, max_length=2000)
    deadline: datetime | None = None
    folder_id: int | None = None


class TaskUpdate(BaseModel):
    """Update a task (creator only).

    Fields left out of the request body are not touched; ``folder_id`` may be
    sent as null to move the task out of its folder.
    """

    text: str | None = Field(None, max_length=500)
    description: str | None = Field(None, max_length=2000)
    deadline: datetime | None = None
    folder_id: int | None = None


class PackerResponse(BaseModel):
    """Packing record response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    task_id: int
    user_id: int
    user_name: str
    packed_at: datetime


class TaskResponse(BaseModel):
    """Task response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    trip_id: int
    folder_id: int | None
    text: str
    description: str | None
    deadline: datetime | None
    creator_id: int
    creator_name: str
    created_at: datetime
    updated_at: datetime
    packers: list[PackerResponse] = []


class ToggleResponse(BaseModel):
    """Result of toggling packed state."""

    task_id: int
    packed: bool
    packers: list[PackerResponse]


class ProgressResponse(BaseModel):
    """The viewer's packing progress on a trip."""

    trip_id: int
    packed_count: int
    total_count: int
    progress: float
