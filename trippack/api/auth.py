"""Authentication API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from trippack.api.dependencies import get_current_user, get_session_store, get_session_token
from trippack.config import get_settings
from trippack.database import get_db
from trippack.errors import Unauthenticated, ValidationError
from trippack.models.user import User
from trippack.schemas.auth import AuthResponse, ProfileUpdate, UserLogin, UserResponse, UserSignup
from trippack.services.auth import authenticate_user, create_user, rename_user
from trippack.services.sessions import SessionStore

router = APIRouter(prefix="/api/auth", tags=["auth"])
settings = get_settings()


def set_session_cookie(response: Response, token: str) -> None:
    """Attach the session cookie to a response."""
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.session_cookie_name, path="/")


@router.post("/signup", response_model=AuthResponse)
async def signup(
    user_data: UserSignup,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    sessions: Annotated[SessionStore, Depends(get_session_store)],
):
    """Create an account and sign in."""
    user = create_user(db, user_data.username, user_data.password)

    set_session_cookie(response, sessions.issue(user.id, user.username))
    return AuthResponse(user=UserResponse.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    sessions: Annotated[SessionStore, Depends(get_session_store)],
):
    """Login with username and password."""
    if not credentials.username.strip() or not credentials.password:
        raise ValidationError("Username and password are required")

    user = authenticate_user(db, credentials.username, credentials.password)
    if not user:
        raise Unauthenticated("Invalid username or password")

    set_session_cookie(response, sessions.issue(user.id, user.username))
    return AuthResponse(user=UserResponse.model_validate(user))


@router.post("/logout")
async def logout(
    response: Response,
    token: Annotated[str | None, Depends(get_session_token)],
    sessions: Annotated[SessionStore, Depends(get_session_store)],
):
    """Revoke the current session and clear its cookie."""
    sessions.destroy(token)
    clear_session_cookie(response)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Get current user information."""
    return current_user


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    profile: ProfileUpdate,
    response: Response,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    sessions: Annotated[SessionStore, Depends(get_session_store)],
    token: Annotated[str | None, Depends(get_session_token)],
):
    """Change the current user's display name.

    Tasks and packing records keep the name they were created with. The
    session is reissued so it carries the new name.
    """
    user = rename_user(db, current_user, profile.username)

    sessions.destroy(token)
    set_session_cookie(response, sessions.issue(user.id, user.username))
    return user
