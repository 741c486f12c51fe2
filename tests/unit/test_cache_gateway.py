"""
Unit Tests for the Cache Gateway
================================

Tests for the in-memory gateway and the Redis gateway over a mocked client.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from lufeed_parser.cache.gateway import (
    CacheGateway,
    MemoryCacheGateway,
    RedisCacheGateway,
    create_cache_gateway,
    redis_url,
)
from lufeed_parser.config.settings import CacheSettings, LoggingSettings, LufeedSettings
from lufeed_parser.models import FeedItem
from lufeed_parser.utils.exceptions import CacheError


class FakeClock:

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestMemoryCacheGateway:
    """Test cases for MemoryCacheGateway."""

    @pytest.mark.asyncio
    async def test_item_round_trip(self):
        cache = MemoryCacheGateway()
        item = FeedItem(title="Title", url="https://example.com/a", image_url="https://example.com/a.png")

        await cache.set(item.url, item.to_cache(), ttl=3600)
        restored = FeedItem.from_cache(await cache.get(item.url))

        assert restored == item

    @pytest.mark.asyncio
    async def test_missing_key(self):
        assert await MemoryCacheGateway().get("nope") is None

    @pytest.mark.asyncio
    async def test_ttl_expiry(self):
        clock = FakeClock()
        cache = MemoryCacheGateway(clock=clock)

        await cache.set("k", "v", ttl=10)
        clock.now += 9
        assert await cache.get("k") == "v"
        clock.now += 1
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_bytes_are_stored_as_text(self):
        cache = MemoryCacheGateway()
        await cache.set("k", b"value")
        assert await cache.get("k") == "value"

    @pytest.mark.asyncio
    async def test_delete(self):
        cache = MemoryCacheGateway()
        await cache.set("k", "v")
        await cache.delete("k")
        await cache.delete("k")
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_publish_fans_out_to_subscribers(self):
        cache = MemoryCacheGateway()
        first = cache.subscribe("topic")
        second = cache.subscribe("topic")

        await cache.publish("topic", "hello")
        await cache.publish("other", "ignored")

        assert await asyncio.wait_for(first.__anext__(), 1) == "hello"
        assert await asyncio.wait_for(second.__anext__(), 1) == "hello"

    @pytest.mark.asyncio
    async def test_publish_without_subscribers_is_dropped(self):
        cache = MemoryCacheGateway()
        await cache.publish("topic", "lost")
        subscription = cache.subscribe("topic")
        await cache.publish("topic", "kept")
        assert await asyncio.wait_for(subscription.__anext__(), 1) == "kept"


class TestRedisCacheGateway:
    """Test cases for RedisCacheGateway over a mocked client."""

    def _gateway(self, client):
        return RedisCacheGateway(CacheSettings(address="localhost:6379"), client=client)

    @pytest.mark.asyncio
    async def test_connect_pings(self):
        client = AsyncMock()
        await self._gateway(client).connect()
        client.ping.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_connect_failure(self):
        client = AsyncMock()
        client.ping.side_effect = RedisConnectionError("refused")
        with pytest.raises(CacheError):
            await self._gateway(client).connect()

    @pytest.mark.asyncio
    async def test_set_uses_expiry_in_seconds(self):
        client = AsyncMock()
        await self._gateway(client).set("k", "v", ttl=86400)
        client.set.assert_awaited_once_with("k", "v", ex=86400)

    @pytest.mark.asyncio
    async def test_get(self):
        client = AsyncMock()
        client.get.return_value = "payload"
        assert await self._gateway(client).get("k") == "payload"

    @pytest.mark.asyncio
    async def test_get_error_is_cache_error(self):
        client = AsyncMock()
        client.get.side_effect = RedisConnectionError("gone")
        with pytest.raises(CacheError):
            await self._gateway(client).get("k")

    @pytest.mark.asyncio
    async def test_publish_and_delete(self):
        client = AsyncMock()
        gateway = self._gateway(client)
        await gateway.publish("topic", "data")
        await gateway.delete("k")
        client.publish.assert_awaited_once_with("topic", "data")
        client.delete.assert_awaited_once_with("k")

    @pytest.mark.asyncio
    async def test_subscribe_yields_messages_only(self):
        async def listen():
            yield {"type": "subscribe", "data": 1}
            yield {"type": "message", "data": "first"}
            yield {"type": "message", "data": b"second"}

        pubsub = MagicMock()
        pubsub.subscribe = AsyncMock()
        pubsub.unsubscribe = AsyncMock()
        pubsub.aclose = AsyncMock()
        pubsub.listen = listen
        client = MagicMock()
        client.pubsub.return_value = pubsub

        received = [payload async for payload in self._gateway(client).subscribe("topic")]

        assert received == ["first", "second"]
        pubsub.subscribe.assert_awaited_once_with("topic")
        pubsub.aclose.assert_awaited_once()


class TestCacheGatewayContract:

    def test_contract_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            CacheGateway()

    def test_incomplete_implementation_is_rejected(self):
        class KeyValueOnly(CacheGateway):
            async def get(self, key):
                return None

            async def set(self, key, value, ttl=None):
                pass

            async def delete(self, key):
                pass

        with pytest.raises(TypeError):
            KeyValueOnly()


class TestFactory:

    def test_memory_without_address(self):
        settings = LufeedSettings(logging=LoggingSettings(file_path=None))
        assert isinstance(create_cache_gateway(settings), MemoryCacheGateway)

    def test_redis_with_address(self):
        settings = LufeedSettings(
            cache=CacheSettings(address="localhost:6379"),
            logging=LoggingSettings(file_path=None),
        )
        assert isinstance(create_cache_gateway(settings), RedisCacheGateway)

    def test_redis_url(self):
        assert redis_url("cache:6379") == "redis://cache:6379"
        assert redis_url("rediss://cache:6380/1") == "rediss://cache:6380/1"
