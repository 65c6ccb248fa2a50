"""Change notifications for trips using Redis pub/sub."""

import json
import logging
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING

import redis
import redis.asyncio as aioredis

from trippack.config import get_settings

if TYPE_CHECKING:
    from redis.asyncio.client import PubSub

logger = logging.getLogger(__name__)
settings = get_settings()


class TripEventType(StrEnum):
    """Event types for trip updates."""

    # Trip events
    TRIP_UPDATED = "trip_updated"
    TRIP_DELETED = "trip_deleted"

    # Membership events
    MEMBER_REQUESTED = "member_requested"
    MEMBER_APPROVED = "member_approved"
    MEMBER_REMOVED = "member_removed"

    # Folder events
    FOLDER_CREATED = "folder_created"
    FOLDER_UPDATED = "folder_updated"
    FOLDER_DELETED = "folder_deleted"

    # Task events
    TASK_CREATED = "task_created"
    TASK_UPDATED = "task_updated"
    TASK_DELETED = "task_deleted"
    TASK_PACKED = "task_packed"
    TASK_UNPACKED = "task_unpacked"


def trip_channel(trip_id: int) -> str:
    return f"trip:{trip_id}"


def user_channel(user_id: int) -> str:
    return f"user:{user_id}"


# Synchronous Redis client for use in API endpoints
_sync_redis: redis.Redis | None = None


def get_sync_redis() -> redis.Redis:
    """Get synchronous Redis client for publishing from API endpoints."""
    global _sync_redis
    if _sync_redis is None:
        _sync_redis = redis.from_url(settings.redis_url)
    return _sync_redis


def _publish(channel: str, trip_id: int, event_type: TripEventType, data: dict | None) -> None:
    try:
        redis_client = get_sync_redis()
        message = {
            "type": event_type,
            "trip_id": trip_id,
            "timestamp": datetime.now(UTC).isoformat(),
            "data": data or {},
        }
        redis_client.publish(channel, json.dumps(message))
        logger.debug(f"Published {event_type} to {channel}")
    except Exception as e:
        # The mutation is already committed; viewers catch up on their next fetch
        logger.error(f"Failed to publish trip event: {e}")


def publish_trip_event(trip_id: int, event_type: TripEventType, data: dict | None = None) -> None:
    """Publish an event to a trip's Redis channel.

    Called from API endpoints after mutations have been committed.

    Args:
        trip_id: The trip ID to publish to
        event_type: Type of event (task_created, member_approved, etc.)
        data: Optional event payload
    """
    _publish(trip_channel(trip_id), trip_id, event_type, data)


def publish_user_event(
    user_id: int, trip_id: int, event_type: TripEventType, data: dict | None = None
) -> None:
    """Publish an event to a user's own channel (their trip list changed)."""
    _publish(user_channel(user_id), trip_id, event_type, data)


class RealtimeService:
    """Async Redis pub/sub service for WebSocket connections."""

    def __init__(self) -> None:
        self._redis: aioredis.Redis | None = None
        self._pubsub: PubSub | None = None

    async def _get_redis(self) -> aioredis.Redis:
        if self._redis is None:
            self._redis = aioredis.from_url(settings.redis_url)
        return self._redis

    async def subscribe(self, channel: str) -> AsyncIterator[dict]:
        """Subscribe to a Redis channel and yield messages."""
        redis_conn = await self._get_redis()
        self._pubsub = redis_conn.pubsub()
        await self._pubsub.subscribe(channel)

        try:
            async for message in self._pubsub.listen():
                if message["type"] == "message":
                    try:
                        data = json.loads(message["data"])
                        yield data
                    except json.JSONDecodeError:
                        logger.warning(f"Invalid JSON in pub/sub message: {message['data']}")
        finally:
            if self._pubsub:
                await self._pubsub.unsubscribe(channel)

    async def cleanup(self) -> None:
        """Clean up Redis connections."""
        if self._pubsub:
            await self._pubsub.close()
        if self._redis:
            await self._redis.close()
