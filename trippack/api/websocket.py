"""WebSocket endpoints for real-time trip synchronization."""

import asyncio
import logging
from collections.abc import Callable

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from trippack.config import get_settings
from trippack.database import SessionLocal
from trippack.errors import TripPackError
from trippack.models.trip import Trip
from trippack.services.membership import MembershipService, can_access
from trippack.services.realtime import RealtimeService, trip_channel, user_channel
from trippack.services.sessions import SessionStore, SessionUser

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/ws", tags=["websocket"])
settings = get_settings()

ACCESS_DENIED = 4003


def _authenticate(websocket: WebSocket, token: str | None, db: Session) -> SessionUser | None:
    # Browsers send the session cookie on the upgrade request; other clients
    # can pass the token as a query parameter instead.
    token = token or websocket.cookies.get(settings.session_cookie_name)
    return SessionStore(db).validate(token)


def _still_has_access(db: Session, trip_id: int, user_id: int) -> bool:
    """Re-read the trip and membership, picking up changes made since connecting."""
    db.expire_all()
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    return trip is not None and can_access(db, trip, user_id)


async def _relay(
    websocket: WebSocket,
    realtime_service: RealtimeService,
    channel: str,
    allowed: Callable[[], bool] | None = None,
) -> None:
    """Forward channel messages to the socket until either side goes away.

    ``allowed`` is checked before every message; once it returns False the
    socket is closed with 4003 and nothing more is sent.
    """

    async def handle_messages() -> None:
        """Receive messages from Redis and forward to WebSocket."""
        async for message in realtime_service.subscribe(channel):
            if allowed is not None and not allowed():
                logger.info(f"Closing {channel} socket: access revoked")
                await websocket.close(code=ACCESS_DENIED, reason="Access denied")
                break
            try:
                await websocket.send_json(message)
            except WebSocketDisconnect:
                break
            except Exception as e:
                logger.error(f"Error sending WebSocket message: {e}")
                break

    async def handle_ping() -> None:
        """Send periodic pings to keep connection alive."""
        while True:
            try:
                await asyncio.sleep(30)
                await websocket.send_json({"type": "ping"})
            except Exception:
                break

    async def handle_client() -> None:
        """Handle incoming messages from client (pong responses)."""
        while True:
            try:
                data = await websocket.receive_json()
                if data.get("type") == "pong":
                    continue  # Keepalive acknowledgment
            except WebSocketDisconnect:
                break
            except Exception:
                break

    handlers = [
        asyncio.create_task(handle_messages()),
        asyncio.create_task(handle_ping()),
        asyncio.create_task(handle_client()),
    ]
    # Whichever side stops first ends the relay
    _, pending = await asyncio.wait(handlers, return_when=asyncio.FIRST_COMPLETED)
    for handler in pending:
        handler.cancel()
    await asyncio.gather(*pending, return_exceptions=True)


@router.websocket("/trips/{trip_id}")
async def websocket_trip_sync(
    websocket: WebSocket,
    trip_id: int,
    token: str | None = Query(default=None),
) -> None:
    """WebSocket endpoint for real-time trip updates.

    Only the owner and approved members may subscribe. Every committed change
    to the trip, its members, folders, tasks or packing records is forwarded
    so the client can re-fetch. Access is checked again before each message,
    so a member who is removed (or whose trip is deleted) is disconnected
    with 4003.
    """
    # Manual DB session for WebSocket (can't use Depends normally)
    db = SessionLocal()
    realtime_service = RealtimeService()
    user_id: int | None = None

    try:
        session_user = _authenticate(websocket, token, db)
        if session_user is None:
            await websocket.close(code=4001, reason="Invalid session")
            return
        user_id = session_user.id

        try:
            MembershipService(db).require_access(trip_id, user_id)
        except TripPackError:
            await websocket.close(code=ACCESS_DENIED, reason="Access denied")
            return

        await websocket.accept()
        logger.info(f"WebSocket connected: user={user_id}, trip={trip_id}")
        await _relay(
            websocket,
            realtime_service,
            trip_channel(trip_id),
            allowed=lambda: _still_has_access(db, trip_id, user_id),
        )

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: user={user_id}, trip={trip_id}")
    except Exception as e:
        logger.error(f"WebSocket error: {e}", exc_info=True)
    finally:
        db.close()
        await realtime_service.cleanup()


@router.websocket("/me")
async def websocket_user_sync(
    websocket: WebSocket,
    token: str | None = Query(default=None),
) -> None:
    """WebSocket endpoint for changes to the current user's trip list."""
    db = SessionLocal()
    realtime_service = RealtimeService()
    user_id: int | None = None

    try:
        session_user = _authenticate(websocket, token, db)
        if session_user is None:
            await websocket.close(code=4001, reason="Invalid session")
            return
        user_id = session_user.id

        await websocket.accept()
        logger.info(f"WebSocket connected: user={user_id}, channel=me")
        await _relay(websocket, realtime_service, user_channel(user_id))

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: user={user_id}, channel=me")
    except Exception as e:
        logger.error(f"WebSocket error: {e}", exc_info=True)
    finally:
        db.close()
        await realtime_service.cleanup()
