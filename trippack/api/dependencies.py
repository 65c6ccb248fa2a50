"""FastAPI dependencies for authentication, database and services."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from trippack.config import get_settings
from trippack.database import get_db
from trippack.errors import Unauthenticated
from trippack.models.user import User
from trippack.services.membership import MembershipService
from trippack.services.packing import PackingService
from trippack.services.sessions import SessionStore
from trippack.services.trips import TripService

settings = get_settings()


def get_session_token(request: Request) -> str | None:
    """Read the session token from the session cookie."""
    return request.cookies.get(settings.session_cookie_name)


def get_session_store(db: Annotated[Session, Depends(get_db)]) -> SessionStore:
    """Get session store bound to the request's database session."""
    return SessionStore(db)


def get_current_user(
    token: Annotated[str | None, Depends(get_session_token)],
    sessions: Annotated[SessionStore, Depends(get_session_store)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated user from the session cookie."""
    session_user = sessions.validate(token)
    if session_user is None:
        raise Unauthenticated("Invalid or missing session")

    user = db.get(User, session_user.id)
    if user is None:
        raise Unauthenticated("User not found")

    return user


def get_trip_service(db: Annotated[Session, Depends(get_db)]) -> TripService:
    """Get trip service with dependencies."""
    return TripService(db)


def get_membership_service(db: Annotated[Session, Depends(get_db)]) -> MembershipService:
    """Get membership service with dependencies."""
    return MembershipService(db)


def get_packing_service(db: Annotated[Session, Depends(get_db)]) -> PackingService:
    """Get packing list service with dependencies."""
    return PackingService(db)
