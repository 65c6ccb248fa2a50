"""Pydantic schemas for API requests and responses."""

from trippack.schemas.auth import AuthResponse, ProfileUpdate, UserLogin, UserResponse, UserSignup
from trippack.schemas.folder import FolderCreate, FolderResponse, FolderUpdate
from trippack.schemas.membership import (
    JoinRequest,
    JoinResponse,
    MemberListResponse,
    MemberResponse,
)
from trippack.schemas.task import (
    PackerResponse,
    ProgressResponse,
    TaskCreate,
    TaskResponse,
    TaskUpdate,
    ToggleResponse,
)
from trippack.schemas.trip import InvitePreview, TripCreate, TripResponse, TripSummary, TripUpdate

__all__ = [
    "UserSignup",
    "UserLogin",
    "ProfileUpdate",
    "UserResponse",
    "AuthResponse",
    "TripCreate",
    "TripUpdate",
    "TripResponse",
    "TripSummary",
    "InvitePreview",
    "JoinRequest",
    "JoinResponse",
    "MemberResponse",
    "MemberListResponse",
    "FolderCreate",
    "FolderUpdate",
    "FolderResponse",
    "TaskCreate",
    "TaskUpdate",
    "TaskResponse",
    "PackerResponse",
    "ToggleResponse",
    "ProgressResponse",
]
