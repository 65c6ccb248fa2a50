"""Application error taxonomy.

Services raise these instead of ``HTTPException`` so they can be used outside
a request. ``trippack.main`` maps each class to its HTTP status and renders
``{"detail": message}``, the same body FastAPI uses for ``HTTPException``.

Usage:
    from trippack.errors import Forbidden

    raise Forbidden("Only the owner can delete the trip")
"""

from fastapi import status


class TripPackError(Exception):
    """Base exception for all TripPack errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TripPackError):
    """Missing or malformed input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class Unauthenticated(TripPackError):
    """No session, or the session is invalid."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class NotTripMember(Unauthenticated):
    """The caller is neither the trip owner nor an approved member."""

    default_message = "You do not have access to this trip"


class Forbidden(TripPackError):
    """Authenticated, but lacking the required role."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFound(TripPackError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(TripPackError):
    """A uniqueness rule would be violated."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Already exists"


class InternalError(TripPackError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong"
