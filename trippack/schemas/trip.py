"""Trip schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from trippack.models.enums import ViewerStatus
from trippack.schemas.auth import UserResponse


class TripCreate(BaseModel):
    """Create a new trip."""

    name: str = Field(..., max_length=255)
    description: str | None = Field(None, max_length=2000)
    destination: str | None = Field(None, max_length=255)
    start_date: date | None = None
    end_date: date | None = None
    is_public: bool = True
    auto_approve_members: bool = False


class TripUpdate(BaseModel):
    """Update trip settings (owner only)."""

    name: str | None = Field(None, max_length=255)
    description: str | None = Field(None, max_length=2000)
    is_public: bool | None = None
    auto_approve_members: bool | None = None


class TripResponse(BaseModel):
    """Trip response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    owner_id: int
    owner: UserResponse
    invite_code: str
    is_public: bool
    auto_approve_members: bool
    destination: str | None
    start_date: date | None
    end_date: date | None
    created_at: datetime
    updated_at: datetime


class TripSummary(TripResponse):
    """Trip with counts and the viewer's relationship to it."""

    member_count: int = 1
    task_count: int = 0
    membership_status: ViewerStatus = ViewerStatus.NONE


class InvitePreview(BaseModel):
    """What an invite link reveals before joining."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    destination: str | None
    start_date: date | None
    end_date: date | None
    owner: UserResponse
    membership_status: ViewerStatus = ViewerStatus.NONE
