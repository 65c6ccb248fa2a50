"""Authentication schemas."""

from pydantic import BaseModel, ConfigDict, Field


class UserSignup(BaseModel):
    """User signup request."""

    username: str = Field(..., max_length=100)
    password: str = Field(..., max_length=128)


class UserLogin(BaseModel):
    """User login request."""

    username: str = Field(..., max_length=100)
    password: str = Field(..., max_length=128)


class ProfileUpdate(BaseModel):
    """Change the current user's display name."""

    username: str = Field(..., max_length=100)


class UserResponse(BaseModel):
    """User information response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str


class AuthResponse(BaseModel):
    """Authentication response; the session itself travels in a cookie."""

    user: UserResponse
