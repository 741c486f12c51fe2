"""
Cache Gateway
=============

Key-value cache with publish/subscribe, backed by Redis in production and by
an in-process store when no cache address is configured.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import AsyncIterator, Dict, List, Optional, Tuple, Union

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..config.settings import CacheSettings, LufeedSettings
from ..utils.exceptions import CacheError
from ..utils.logging import get_logger_for_component

Payload = Union[str, bytes]


class CacheGateway(ABC):
    """Abstract base class for cache implementations."""

    async def connect(self) -> None:
        """Open and verify the connection."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Stored value, or None when missing or expired."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Payload, ttl: Optional[float] = None) -> None:
        """Store a value, expiring after ``ttl`` seconds when given."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    @abstractmethod
    async def publish(self, topic: str, payload: Payload) -> None:
        pass

    @abstractmethod
    def subscribe(self, topic: str) -> AsyncIterator[str]:
        """Async iterator over payloads published to ``topic``."""
        pass

    async def close(self) -> None:
        """Release connections."""


def _as_text(value: Payload) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


def redis_url(address: str) -> str:
    """Accept ``host:port`` or a full ``redis://`` / ``rediss://`` URL."""
    if "://" in address:
        return address
    return f"redis://{address}"


class RedisCacheGateway(CacheGateway):
    """Redis implementation using ``redis.asyncio``."""

    def __init__(self, settings: CacheSettings, client: Optional[redis.Redis] = None):
        if not settings.address and client is None:
            raise CacheError("Redis cache requires an address")
        self.settings = settings
        self.logger = get_logger_for_component("cache_gateway")
        self._client = client or redis.Redis.from_url(
            redis_url(settings.address),
            password=settings.password or None,
            db=settings.db,
            decode_responses=True,
        )

    async def connect(self) -> None:
        try:
            await self._client.ping()
        except RedisError as e:
            raise CacheError(f"Failed to connect to Redis at {self.settings.address}: {e}") from e
        self.logger.info("Connected to cache")

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self._client.get(key)
        except RedisError as e:
            raise CacheError(f"Cache read failed: {e}", key=key) from e
        return _as_text(value) if value is not None else None

    async def set(self, key: str, value: Payload, ttl: Optional[float] = None) -> None:
        try:
            await self._client.set(key, value, ex=int(ttl) if ttl else None)
        except RedisError as e:
            raise CacheError(f"Cache write failed: {e}", key=key) from e

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except RedisError as e:
            raise CacheError(f"Cache delete failed: {e}", key=key) from e

    async def publish(self, topic: str, payload: Payload) -> None:
        try:
            await self._client.publish(topic, payload)
        except RedisError as e:
            raise CacheError(f"Publish to {topic} failed: {e}", key=topic) from e

    def subscribe(self, topic: str) -> AsyncIterator[str]:
        return self._listen(topic)

    async def _listen(self, topic: str) -> AsyncIterator[str]:
        pubsub = self._client.pubsub()
        await pubsub.subscribe(topic)
        self.logger.info(f"Subscribed to {topic}")
        try:
            async for message in pubsub.listen():
                if message.get("type") == "message":
                    yield _as_text(message["data"])
        finally:
            await pubsub.unsubscribe(topic)
            await pubsub.aclose()

    async def close(self) -> None:
        await self._client.aclose()


class MemoryCacheGateway(CacheGateway):
    """Process-local gateway; TTLs are honored and topics fan out to every subscriber."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._store: Dict[str, Tuple[str, Optional[float]]] = {}
        self._subscribers: Dict[str, List[asyncio.Queue]] = defaultdict(list)
        self.logger = get_logger_for_component("cache_gateway")

    async def get(self, key: str) -> Optional[str]:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._store[key]
            return None
        return value

    async def set(self, key: str, value: Payload, ttl: Optional[float] = None) -> None:
        expires_at = self._clock() + ttl if ttl else None
        self._store[key] = (_as_text(value), expires_at)

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    async def publish(self, topic: str, payload: Payload) -> None:
        for queue in list(self._subscribers.get(topic, ())):
            queue.put_nowait(_as_text(payload))

    def subscribe(self, topic: str) -> AsyncIterator[str]:
        # Register now so messages published before the first read are kept
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers[topic].append(queue)
        return self._drain(topic, queue)

    async def _drain(self, topic: str, queue: asyncio.Queue) -> AsyncIterator[str]:
        try:
            while True:
                yield await queue.get()
        finally:
            self._subscribers[topic].remove(queue)

    async def close(self) -> None:
        self._store.clear()


def create_cache_gateway(settings: LufeedSettings) -> CacheGateway:
    """Redis gateway when a cache address is configured, in-memory otherwise."""
    if settings.cache.address:
        return RedisCacheGateway(settings.cache)
    get_logger_for_component("cache_gateway").warning(
        "No cache address configured, using in-memory cache"
    )
    return MemoryCacheGateway()
