# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cache infrastructure using Redis.

Example:
    from src.infrastructure.cache import ReadCache, init_redis, get_redis

    await init_redis(settings)
    cache = ReadCache(get_redis(), ttl=settings.cache.default_ttl)
    await cache.invalidate([CacheKeys.course(course_id)])
    await close_redis()
"""

from src.infrastructure.cache.keys import CacheKeys
from src.infrastructure.cache.processed_events import ProcessedEventStore
from src.infrastructure.cache.read_cache import ReadCache
from src.infrastructure.cache.redis_client import (
    RedisClient,
    RedisError,
    close_redis,
    get_redis,
    init_redis,
)

__all__ = [
    "CacheKeys",
    "ProcessedEventStore",
    "ReadCache",
    "RedisClient",
    "RedisError",
    "close_redis",
    "get_redis",
    "init_redis",
]
