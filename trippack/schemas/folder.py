"""Folder schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class FolderCreate(BaseModel):
    """Create a new folder."""

    name: str | None = Field(None, max_length=255)


class FolderUpdate(BaseModel):
    """Rename a folder."""

    name: str | None = Field(None, max_length=255)


class FolderResponse(BaseModel):
    """Folder response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    trip_id: int
    name: str
    created_at: datetime
    updated_at: datetime
