"""Folder API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from trippack.api.dependencies import get_current_user, get_packing_service
from trippack.models.user import User
from trippack.schemas.folder import FolderCreate, FolderResponse, FolderUpdate
from trippack.services.packing import PackingService
from trippack.services.realtime import TripEventType, publish_trip_event

router = APIRouter(prefix="/api", tags=["folders"])


@router.get("/trip/{trip_id}/folders", response_model=list[FolderResponse])
def get_folders(
    trip_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    packing: Annotated[PackingService, Depends(get_packing_service)],
):
    """Get all folders for a trip."""
    return packing.list_folders(trip_id, current_user.id)


@router.post(
    "/trip/{trip_id}/folders",
    response_model=FolderResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_folder(
    trip_id: int,
    folder_data: FolderCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    packing: Annotated[PackingService, Depends(get_packing_service)],
):
    """Create a new folder in a trip."""
    folder = packing.add_folder(trip_id, folder_data.name, current_user.id)
    publish_trip_event(trip_id, TripEventType.FOLDER_CREATED, {"folder_id": folder.id})
    return folder


@router.put("/folders/{folder_id}", response_model=FolderResponse)
def update_folder(
    folder_id: int,
    folder_data: FolderUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    packing: Annotated[PackingService, Depends(get_packing_service)],
):
    """Rename a folder."""
    folder = packing.rename_folder(folder_id, folder_data.name, current_user.id)
    publish_trip_event(folder.trip_id, TripEventType.FOLDER_UPDATED, {"folder_id": folder.id})
    return folder


@router.delete("/folders/{folder_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_folder(
    folder_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    packing: Annotated[PackingService, Depends(get_packing_service)],
):
    """Delete a folder. Tasks in the folder become unfiled."""
    trip_id = packing.delete_folder(folder_id, current_user.id)
    publish_trip_event(trip_id, TripEventType.FOLDER_DELETED, {"folder_id": folder_id})
