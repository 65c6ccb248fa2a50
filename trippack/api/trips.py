"""Trip API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from trippack.api.dependencies import get_current_user, get_trip_service
from trippack.errors import NotFound
from trippack.models.user import User
from trippack.schemas.trip import InvitePreview, TripCreate, TripResponse, TripSummary, TripUpdate
from trippack.services.realtime import TripEventType, publish_trip_event, publish_user_event
from trippack.services.trips import TripService

router = APIRouter(prefix="/api/trip", tags=["trips"])


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
def create_trip(
    trip_data: TripCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    trips: Annotated[TripService, Depends(get_trip_service)],
):
    """Create a new trip owned by the current user."""
    return trips.create(current_user.id, trip_data)


@router.get("/mine", response_model=list[TripSummary])
def get_my_trips(
    current_user: Annotated[User, Depends(get_current_user)],
    trips: Annotated[TripService, Depends(get_trip_service)],
):
    """Get trips the current user owns or is an approved member of."""
    return trips.list_for_user(current_user.id)


@router.get("/discover", response_model=list[TripSummary])
def discover_trips(
    current_user: Annotated[User, Depends(get_current_user)],
    trips: Annotated[TripService, Depends(get_trip_service)],
):
    """Get trips to browse and request to join."""
    return trips.list_discoverable(current_user.id)


@router.get("/invite/{code}", response_model=InvitePreview)
def get_invite(
    code: str,
    current_user: Annotated[User, Depends(get_current_user)],
    trips: Annotated[TripService, Depends(get_trip_service)],
):
    """Preview the trip behind an invite link."""
    trip = trips.get_by_invite_code(code)
    if trip is None:
        raise NotFound("This invite link is invalid or has expired")

    preview = InvitePreview.model_validate(trip)
    preview.membership_status = trips.viewer_status(trip, current_user.id)
    return preview


@router.get("/{trip_id}", response_model=TripSummary)
def get_trip(
    trip_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    trips: Annotated[TripService, Depends(get_trip_service)],
):
    """Get a trip the current user can access."""
    return trips.get_for_viewer(trip_id, current_user.id)


@router.put("/{trip_id}", response_model=TripResponse)
def update_trip(
    trip_id: int,
    trip_data: TripUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    trips: Annotated[TripService, Depends(get_trip_service)],
):
    """Update trip settings (owner only)."""
    trip = trips.update(trip_id, current_user.id, trip_data)
    publish_trip_event(trip.id, TripEventType.TRIP_UPDATED)
    return trip


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_trip(
    trip_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    trips: Annotated[TripService, Depends(get_trip_service)],
):
    """Delete a trip with all its members, folders and tasks (owner only)."""
    member_ids = trips.delete(trip_id, current_user.id)

    publish_trip_event(trip_id, TripEventType.TRIP_DELETED)
    for user_id in member_ids:
        publish_user_event(user_id, trip_id, TripEventType.TRIP_DELETED)
