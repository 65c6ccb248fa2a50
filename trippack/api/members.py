"""Membership API endpoints: joining trips and managing members."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from trippack.api.dependencies import get_current_user, get_membership_service, get_trip_service
from trippack.errors import NotFound
from trippack.models.enums import MembershipStatus
from trippack.models.user import User
from trippack.schemas.membership import (
    JoinRequest,
    JoinResponse,
    MemberListResponse,
    MemberResponse,
)
from trippack.services.membership import MembershipService, RemovedMembership
from trippack.services.realtime import TripEventType, publish_trip_event, publish_user_event
from trippack.services.trips import TripService

router = APIRouter(prefix="/api/trip", tags=["members"])


def _join(membership: MembershipService, trip_id: int, user: User) -> JoinResponse:
    member = membership.request_join(trip_id, user.id)

    event_type = (
        TripEventType.MEMBER_APPROVED
        if member.status == MembershipStatus.APPROVED
        else TripEventType.MEMBER_REQUESTED
    )
    publish_trip_event(
        trip_id, event_type, {"member_id": member.id, "user_id": user.id, "username": user.username}
    )
    return JoinResponse(status=member.status, trip_id=trip_id)


def _announce_removal(removed: RemovedMembership) -> None:
    data = {"member_id": removed.membership_id, "user_id": removed.user_id}
    publish_trip_event(removed.trip_id, TripEventType.MEMBER_REMOVED, data)
    publish_user_event(removed.user_id, removed.trip_id, TripEventType.MEMBER_REMOVED, data)


@router.post("/join", response_model=JoinResponse)
def join_trip(
    join_data: JoinRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    membership: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Request to join a trip; approved at once if the trip auto-approves."""
    return _join(membership, join_data.trip_id, current_user)


@router.post("/join/{code}", response_model=JoinResponse)
def join_trip_by_invite(
    code: str,
    current_user: Annotated[User, Depends(get_current_user)],
    trips: Annotated[TripService, Depends(get_trip_service)],
    membership: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Request to join the trip behind an invite link."""
    trip = trips.get_by_invite_code(code)
    if trip is None:
        raise NotFound("This invite link is invalid or has expired")
    return _join(membership, trip.id, current_user)


@router.get("/{trip_id}/members", response_model=MemberListResponse)
def get_members(
    trip_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    membership: Annotated[MembershipService, Depends(get_membership_service)],
):
    """List approved members; the owner also sees pending requests."""
    return membership.list_members(trip_id, current_user.id)


@router.post("/{trip_id}/members/{member_id}/approve", response_model=MemberResponse)
def approve_member(
    trip_id: int,
    member_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    membership: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Approve a pending join request (owner only)."""
    member = membership.approve(trip_id, member_id, current_user.id)

    data = {"member_id": member.id, "user_id": member.user_id}
    publish_trip_event(trip_id, TripEventType.MEMBER_APPROVED, data)
    publish_user_event(member.user_id, trip_id, TripEventType.MEMBER_APPROVED, data)
    return member


@router.post("/{trip_id}/members/{member_id}/reject", status_code=status.HTTP_204_NO_CONTENT)
def reject_member(
    trip_id: int,
    member_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    membership: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Reject a join request (owner only). The user may ask again later."""
    _announce_removal(membership.reject(member_id, current_user.id, trip_id=trip_id))


@router.delete("/{trip_id}/members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    trip_id: int,
    member_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    membership: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Remove a member from a trip (owner only)."""
    _announce_removal(membership.remove(member_id, current_user.id, trip_id=trip_id))


@router.post("/{trip_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
def leave_trip(
    trip_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    membership: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Leave a trip or withdraw a pending request."""
    _announce_removal(membership.leave(trip_id, current_user.id))
