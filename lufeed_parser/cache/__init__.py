"""
Lufeed Parser Cache
===================

Item cache and publish/subscribe transport.
"""

from .gateway import (
    CacheGateway,
    MemoryCacheGateway,
    RedisCacheGateway,
    create_cache_gateway,
)

__all__ = ["CacheGateway", "MemoryCacheGateway", "RedisCacheGateway", "create_cache_gateway"]
