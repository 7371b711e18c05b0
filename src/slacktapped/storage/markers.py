"""Report marker stores.

A marker is a key whose presence records that a check-in was posted.
The value is irrelevant and markers never expire.
"""

from __future__ import annotations

import logging
from typing import Protocol

from redis.asyncio import Redis

logger = logging.getLogger(__name__)

MARKER_VALUE = "1"


class MarkerStore(Protocol):
    """Protocol for key-value stores holding report markers."""

    async def set(self, key: str) -> bool:
        """Write a marker. Returns True once acknowledged."""
        ...

    async def exists(self, key: str) -> bool:
        """Return True if the marker is present."""
        ...


class RedisMarkerStore:
    """Marker store backed by Redis.

    Command failures raise redis.exceptions.RedisError and are left
    to the caller.

    Example:
        ```python
        redis = Redis.from_url("redis://localhost:6379", decode_responses=True)
        store = RedisMarkerStore(redis)
        await store.set("homebrewchat:567:with-image")
        ```
    """

    def __init__(self, redis: Redis) -> None:
        """Initialize the store.

        Args:
            redis: Redis async client.
        """
        self._redis = redis

    async def set(self, key: str) -> bool:
        result = await self._redis.set(key, MARKER_VALUE)
        logger.debug("SET %s", key)
        return bool(result)

    async def exists(self, key: str) -> bool:
        count = await self._redis.exists(key)
        return int(count) > 0


class InMemoryMarkerStore:
    """Marker store kept in process memory.

    Markers are lost on restart, so every check-in still in the feed
    is posted again after a restart.
    """

    def __init__(self) -> None:
        self._keys: set[str] = set()

    @property
    def keys(self) -> frozenset[str]:
        """Markers written so far."""
        return frozenset(self._keys)

    async def set(self, key: str) -> bool:
        self._keys.add(key)
        return True

    async def exists(self, key: str) -> bool:
        return key in self._keys
