"""Trip registry: trip metadata, invite codes and listings."""

import logging
import secrets
from datetime import UTC, datetime

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, joinedload

from trippack.config import Settings, get_settings
from trippack.errors import Forbidden, NotFound, ValidationError
from trippack.models.enums import MembershipStatus, ViewerStatus
from trippack.models.membership import TripMember
from trippack.models.task import Task
from trippack.models.trip import Trip
from trippack.schemas.trip import TripCreate, TripSummary, TripUpdate
from trippack.services.membership import MembershipService, viewer_status

logger = logging.getLogger(__name__)

MIN_TRIP_NAME_LENGTH = 2


def _clean_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if len(cleaned) < MIN_TRIP_NAME_LENGTH:
        raise ValidationError(f"Trip name must be at least {MIN_TRIP_NAME_LENGTH} characters")
    return cleaned


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class TripService:
    """Create, update, delete and list trips."""

    def __init__(self, db: Session, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()

    def _generate_invite_code(self) -> str:
        while True:
            code = secrets.token_urlsafe(self.settings.invite_code_bytes)
            exists = self.db.query(Trip.id).filter(Trip.invite_code == code).first()
            if not exists:
                return code

    def get(self, trip_id: int) -> Trip:
        trip = self.db.get(Trip, trip_id)
        if trip is None:
            raise NotFound("Trip not found")
        return trip

    def create(self, owner_id: int, data: TripCreate) -> Trip:
        """Create a trip owned by ``owner_id`` with a fresh invite code."""
        name = _clean_name(data.name)
        if data.start_date and data.end_date and data.start_date > data.end_date:
            raise ValidationError("End date must be after start date")

        trip = Trip(
            name=name,
            description=_clean_optional(data.description),
            destination=_clean_optional(data.destination),
            start_date=data.start_date,
            end_date=data.end_date,
            is_public=data.is_public,
            auto_approve_members=data.auto_approve_members,
            owner_id=owner_id,
            invite_code=self._generate_invite_code(),
        )
        self.db.add(trip)
        self.db.commit()
        self.db.refresh(trip)
        logger.info(f"User {owner_id} created trip {trip.id}")
        return trip

    def update(self, trip_id: int, caller_id: int, data: TripUpdate) -> Trip:
        """Update trip settings (owner only).

        Only the name, description, visibility and auto-approve policy can
        change; the owner and invite code are fixed.
        """
        trip = self.get(trip_id)
        if trip.owner_id != caller_id:
            raise Forbidden("Only the owner can update trip settings")

        if data.name is not None:
            trip.name = _clean_name(data.name)
        if data.description is not None:
            trip.description = _clean_optional(data.description)
        if data.is_public is not None:
            trip.is_public = data.is_public
        if data.auto_approve_members is not None:
            trip.auto_approve_members = data.auto_approve_members
        trip.updated_at = datetime.now(UTC)

        self.db.commit()
        self.db.refresh(trip)
        return trip

    def delete(self, trip_id: int, caller_id: int) -> list[int]:
        """Delete a trip and everything in it (owner only).

        Returns the ids of users who had a membership row, so they can be told.
        """
        trip = self.get(trip_id)
        if trip.owner_id != caller_id:
            raise Forbidden("Only the owner can delete the trip")

        member_ids = [m.user_id for m in trip.members]
        self.db.delete(trip)
        self.db.commit()
        logger.info(f"Owner {caller_id} deleted trip {trip_id}")
        return member_ids

    def get_by_invite_code(self, code: str) -> Trip | None:
        """Look up a trip by invite code, regardless of its visibility."""
        if not code:
            return None
        return self.db.query(Trip).filter(Trip.invite_code == code).first()

    def get_for_viewer(self, trip_id: int, viewer_id: int) -> TripSummary:
        """Get a trip's details for its owner or an approved member."""
        trip = MembershipService(self.db).require_access(trip_id, viewer_id)
        return self._summarize([trip], viewer_id)[0]

    def list_for_user(self, user_id: int) -> list[TripSummary]:
        """Trips the user owns or is an approved member of, newest first."""
        approved_trip_ids = select(TripMember.trip_id).where(
            TripMember.user_id == user_id,
            TripMember.status == MembershipStatus.APPROVED,
        )
        trips = (
            self.db.query(Trip)
            .options(joinedload(Trip.owner))
            .filter(or_(Trip.owner_id == user_id, Trip.id.in_(approved_trip_ids)))
            .order_by(Trip.created_at.desc(), Trip.id.desc())
            .all()
        )
        return self._summarize(trips, user_id)

    def list_discoverable(self, viewer_id: int) -> list[TripSummary]:
        """Trips shown on the discovery page, newest first.

        Private trips are hidden unless the viewer owns them or already has a
        membership row; ``discover_public_only=False`` lists every trip.
        """
        query = self.db.query(Trip).options(joinedload(Trip.owner))
        if self.settings.discover_public_only:
            viewer_trip_ids = select(TripMember.trip_id).where(
                TripMember.user_id == viewer_id
            )
            query = query.filter(
                or_(
                    Trip.is_public.is_(True),
                    Trip.owner_id == viewer_id,
                    Trip.id.in_(viewer_trip_ids),
                )
            )
        trips = query.order_by(Trip.created_at.desc(), Trip.id.desc()).all()
        return self._summarize(trips, viewer_id)

    def _summarize(self, trips: list[Trip], viewer_id: int) -> list[TripSummary]:
        """Attach member/task counts and the viewer's status to each trip."""
        trip_ids = [trip.id for trip in trips]
        member_counts: dict[int, int] = {}
        task_counts: dict[int, int] = {}
        viewer_memberships: dict[int, str] = {}

        if trip_ids:
            member_counts = dict(
                self.db.query(TripMember.trip_id, func.count(TripMember.id))
                .filter(
                    TripMember.trip_id.in_(trip_ids),
                    TripMember.status == MembershipStatus.APPROVED,
                )
                .group_by(TripMember.trip_id)
                .all()
            )
            task_counts = dict(
                self.db.query(Task.trip_id, func.count(Task.id))
                .filter(Task.trip_id.in_(trip_ids))
                .group_by(Task.trip_id)
                .all()
            )
            viewer_memberships = dict(
                self.db.query(TripMember.trip_id, TripMember.status)
                .filter(TripMember.trip_id.in_(trip_ids), TripMember.user_id == viewer_id)
                .all()
            )

        result = []
        for trip in trips:
            if trip.owner_id == viewer_id:
                status = ViewerStatus.OWNER
            elif viewer_memberships.get(trip.id) == MembershipStatus.APPROVED:
                status = ViewerStatus.APPROVED
            elif viewer_memberships.get(trip.id) == MembershipStatus.PENDING:
                status = ViewerStatus.PENDING
            else:
                status = ViewerStatus.NONE

            summary = TripSummary.model_validate(trip)
            # The owner counts as a member
            summary.member_count = member_counts.get(trip.id, 0) + 1
            summary.task_count = task_counts.get(trip.id, 0)
            summary.membership_status = status
            result.append(summary)

        return result

    def viewer_status(self, trip: Trip, viewer_id: int) -> ViewerStatus:
        return viewer_status(self.db, trip, viewer_id)
