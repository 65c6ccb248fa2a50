"""Membership ledger and join workflow.

A user's relationship to a trip is one of:

* owner: derived from ``Trip.owner_id``, never stored as a membership row
* pending / approved: a ``trip_members`` row
* none: no row

Rejecting a request and removing a member both delete the row, so the user
can ask to join again straight away.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from trippack.errors import Conflict, Forbidden, NotFound, NotTripMember
from trippack.models.enums import MembershipStatus, ViewerStatus
from trippack.models.membership import TripMember
from trippack.models.trip import Trip

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemovedMembership:
    """What was deleted, kept after the row itself is gone."""

    membership_id: int
    trip_id: int
    user_id: int
    status: MembershipStatus


def get_membership(db: Session, trip_id: int, user_id: int) -> TripMember | None:
    """Get the membership row for a (trip, user) pair."""
    return (
        db.query(TripMember)
        .filter(TripMember.trip_id == trip_id, TripMember.user_id == user_id)
        .first()
    )


def viewer_status(db: Session, trip: Trip, user_id: int) -> ViewerStatus:
    """Get a user's relationship to a trip."""
    if trip.owner_id == user_id:
        return ViewerStatus.OWNER

    membership = get_membership(db, trip.id, user_id)
    if membership is None:
        return ViewerStatus.NONE
    if membership.status == MembershipStatus.APPROVED:
        return ViewerStatus.APPROVED
    if membership.status == MembershipStatus.PENDING:
        return ViewerStatus.PENDING
    return ViewerStatus.NONE


def can_access(db: Session, trip: Trip, user_id: int) -> bool:
    """Owners and approved members may use the trip's packing list."""
    return viewer_status(db, trip, user_id).has_access


class MembershipService:
    """Join requests, approvals and the access check used by trip-scoped endpoints."""

    def __init__(self, db: Session):
        self.db = db

    def get_trip(self, trip_id: int) -> Trip:
        trip = self.db.get(Trip, trip_id)
        if trip is None:
            raise NotFound("Trip not found")
        return trip

    def require_access(self, trip_id: int, user_id: int) -> Trip:
        """Get a trip, failing unless the user is its owner or an approved member."""
        trip = self.get_trip(trip_id)
        if not can_access(self.db, trip, user_id):
            raise NotTripMember()
        return trip

    def require_owner(self, trip: Trip, user_id: int, action: str) -> None:
        if trip.owner_id != user_id:
            raise Forbidden(f"Only the owner can {action}")

    def request_join(self, trip_id: int, user_id: int) -> TripMember:
        """Ask to join a trip.

        The request is approved immediately when the trip auto-approves
        members, otherwise it waits for the owner.

        Raises:
            NotFound: the trip does not exist.
            Conflict: the user owns the trip or already has a row for it.
        """
        trip = self.get_trip(trip_id)
        if trip.owner_id == user_id:
            raise Conflict("You already own this trip")

        if get_membership(self.db, trip_id, user_id) is not None:
            raise Conflict("Already a member")

        status = (
            MembershipStatus.APPROVED if trip.auto_approve_members else MembershipStatus.PENDING
        )
        membership = TripMember(trip_id=trip_id, user_id=user_id, status=status)
        self.db.add(membership)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent request for the same pair
            self.db.rollback()
            raise Conflict("Already a member") from None

        self.db.refresh(membership)
        logger.info(f"User {user_id} requested to join trip {trip_id}: {status}")
        return membership

    def approve(self, trip_id: int, membership_id: int, caller_id: int) -> TripMember:
        """Approve a pending join request (owner only)."""
        trip = self.get_trip(trip_id)
        self.require_owner(trip, caller_id, "approve members")

        membership = (
            self.db.query(TripMember)
            .filter(
                TripMember.id == membership_id,
                TripMember.trip_id == trip_id,
                TripMember.status == MembershipStatus.PENDING,
            )
            .first()
        )
        if membership is None:
            raise NotFound("Pending request not found")

        membership.status = MembershipStatus.APPROVED
        self.db.commit()
        self.db.refresh(membership)
        logger.info(f"Owner {caller_id} approved user {membership.user_id} on trip {trip_id}")
        return membership

    def _delete(
        self, membership_id: int, caller_id: int, trip_id: int | None, action: str
    ) -> RemovedMembership:
        # Owner check first, so non-owners cannot tell which membership ids exist
        if trip_id is not None:
            self.require_owner(self.get_trip(trip_id), caller_id, action)

        membership = self.db.get(TripMember, membership_id)
        if membership is None or (trip_id is not None and membership.trip_id != trip_id):
            raise NotFound("Member not found")

        if trip_id is None:
            self.require_owner(membership.trip, caller_id, action)

        removed = RemovedMembership(
            membership_id=membership.id,
            trip_id=membership.trip_id,
            user_id=membership.user_id,
            status=MembershipStatus(membership.status),
        )
        self.db.delete(membership)
        self.db.commit()
        return removed

    def reject(
        self, membership_id: int, caller_id: int, trip_id: int | None = None
    ) -> RemovedMembership:
        """Reject a join request by deleting it (owner only)."""
        removed = self._delete(membership_id, caller_id, trip_id, "reject requests")
        logger.info(f"Owner {caller_id} rejected user {removed.user_id} on trip {removed.trip_id}")
        return removed

    def remove(
        self, membership_id: int, caller_id: int, trip_id: int | None = None
    ) -> RemovedMembership:
        """Remove a member from a trip (owner only)."""
        removed = self._delete(membership_id, caller_id, trip_id, "remove members")
        logger.info(f"Owner {caller_id} removed user {removed.user_id} from trip {removed.trip_id}")
        return removed

    def leave(self, trip_id: int, user_id: int) -> RemovedMembership:
        """Withdraw a request or leave a trip."""
        self.get_trip(trip_id)
        membership = get_membership(self.db, trip_id, user_id)
        if membership is None:
            raise NotFound("You are not a member of this trip")

        removed = RemovedMembership(
            membership_id=membership.id,
            trip_id=trip_id,
            user_id=user_id,
            status=MembershipStatus(membership.status),
        )
        self.db.delete(membership)
        self.db.commit()
        logger.info(f"User {user_id} left trip {trip_id}")
        return removed

    def list_members(self, trip_id: int, viewer_id: int) -> dict:
        """List approved members, plus pending requests when the viewer is the owner."""
        trip = self.require_access(trip_id, viewer_id)

        rows = (
            self.db.query(TripMember)
            .options(joinedload(TripMember.user))
            .filter(TripMember.trip_id == trip_id)
            .order_by(TripMember.joined_at, TripMember.id)
            .all()
        )
        members = [m for m in rows if m.status == MembershipStatus.APPROVED]
        pending = []
        if trip.owner_id == viewer_id:
            pending = [m for m in rows if m.status == MembershipStatus.PENDING]

        return {"owner": trip.owner, "members": members, "pending": pending}
