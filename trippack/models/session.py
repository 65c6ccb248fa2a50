"""Login session model."""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from trippack.database import Base
from trippack.models.mixins import TimestampMixin


class UserSession(Base, TimestampMixin):
    """Server-side record of an issued session token, so logout can revoke it."""

    __tablename__ = "user_sessions"

    id = Column(String(64), primary_key=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", backref="sessions")

    def is_active(self, now: datetime | None = None) -> bool:
        """Check that the session is neither revoked nor expired."""
        if self.revoked_at is not None:
            return False
        now = now or datetime.now(UTC)
        expires_at = self.expires_at
        # SQLite hands back naive datetimes
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return expires_at > now

    def revoke(self) -> None:
        self.revoked_at = datetime.now(UTC)
