"""Celery tasks for session housekeeping."""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import or_
from sqlalchemy.orm import Session

from trippack.celery_app import app as celery_app
from trippack.database import SessionLocal
from trippack.models.session import UserSession

logger = logging.getLogger(__name__)

# Keep revoked rows around briefly so recent logouts can still be audited
REVOKED_RETENTION = timedelta(days=1)


@celery_app.task
def purge_stale_sessions() -> dict:
    """Delete sessions that expired, or were revoked more than a day ago.

    Runs hourly via celery-beat.

    Returns:
        dict with the number of deleted rows
    """
    db: Session = SessionLocal()

    try:
        now = datetime.now(UTC)
        deleted = (
            db.query(UserSession)
            .filter(
                or_(
                    UserSession.expires_at <= now,
                    UserSession.revoked_at <= now - REVOKED_RETENTION,
                )
            )
            .delete(synchronize_session=False)
        )
        db.commit()
        if deleted:
            logger.info(f"Purged {deleted} stale sessions")
        return {"deleted": deleted}
    finally:
        db.close()
