"""Enums for model fields."""

from enum import StrEnum


class MembershipStatus(StrEnum):
    """Stored status of a trip membership row.

    REJECTED is accepted by the column for compatibility with existing data,
    but rejecting a request deletes the row instead of writing it.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ViewerStatus(StrEnum):
    """A viewer's relationship to a trip, as shown in listings."""

    OWNER = "owner"
    APPROVED = "approved"
    PENDING = "pending"
    NONE = "none"

    @property
    def has_access(self) -> bool:
        """Owners and approved members can read and write the packing list."""
        return self in (ViewerStatus.OWNER, ViewerStatus.APPROVED)
