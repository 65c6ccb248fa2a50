"""Membership schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from trippack.models.enums import MembershipStatus
from trippack.schemas.auth import UserResponse


class JoinRequest(BaseModel):
    """Request to join a trip by id."""

    trip_id: int = Field(..., alias="tripId")

    model_config = ConfigDict(populate_by_name=True)


class JoinResponse(BaseModel):
    """Resulting membership status after a join request."""

    status: MembershipStatus
    trip_id: int


class MemberResponse(BaseModel):
    """A membership row with the member's current profile."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    trip_id: int
    user_id: int
    status: MembershipStatus
    joined_at: datetime
    user: UserResponse


class MemberListResponse(BaseModel):
    """Members of a trip; pending requests are only visible to the owner."""

    owner: UserResponse
    members: list[MemberResponse]
    pending: list[MemberResponse]
