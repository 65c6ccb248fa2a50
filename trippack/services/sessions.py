"""Session store: signed session tokens backed by a revocable session table."""

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from sqlalchemy.orm import Session

from trippack.config import Settings, get_settings
from trippack.models.session import UserSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """The identity carried by a valid session."""

    id: int
    username: str
    session_id: str


class SessionStore:
    """Issue, validate and destroy session tokens.

    The token is a signed JWT with ``{sub, username, sid, exp}``. The ``sid``
    points at a ``user_sessions`` row so that logging out revokes the token
    even before it expires.
    """

    def __init__(self, db: Session, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()

    def issue(self, user_id: int, display_name: str) -> str:
        """Create a session for the user and return its token."""
        expires_at = datetime.now(UTC) + timedelta(days=self.settings.session_max_age_days)
        session = UserSession(
            id=secrets.token_urlsafe(32),
            user_id=user_id,
            expires_at=expires_at,
        )
        self.db.add(session)
        self.db.commit()

        payload = {
            "sub": str(user_id),
            "username": display_name,
            "sid": session.id,
            "exp": expires_at,
        }
        return jwt.encode(
            payload, self.settings.session_secret, algorithm=self.settings.session_algorithm
        )

    def _decode(self, token: str | None) -> dict | None:
        if not token:
            return None
        try:
            return jwt.decode(
                token,
                self.settings.session_secret,
                algorithms=[self.settings.session_algorithm],
            )
        except JWTError:
            return None

    def validate(self, token: str | None) -> SessionUser | None:
        """Return the session's user, or None for missing, bad, expired or revoked tokens."""
        payload = self._decode(token)
        if payload is None:
            return None

        sid = payload.get("sid")
        user_id = payload.get("sub")
        username = payload.get("username")
        if not sid or not user_id or not username:
            return None

        try:
            user_id = int(user_id)
        except (TypeError, ValueError):
            return None

        session = self.db.get(UserSession, sid)
        if session is None or session.user_id != user_id or not session.is_active():
            return None

        return SessionUser(id=user_id, username=username, session_id=sid)

    def destroy(self, token: str | None) -> None:
        """Revoke the session behind a token; unknown tokens are ignored."""
        payload = self._decode(token)
        if payload is None or not payload.get("sid"):
            return

        session = self.db.get(UserSession, payload["sid"])
        if session is None or session.revoked_at is not None:
            return

        session.revoke()
        self.db.commit()
        logger.info(f"Revoked session for user {session.user_id}")
