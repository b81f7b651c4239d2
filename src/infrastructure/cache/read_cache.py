# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Best-effort read-through cache for query results.

Only serialized read models (DTO dictionaries) are cached, never mutable
aggregates. The cache is an optimization: any Redis failure is logged and
the call falls through to the loader, and invalidation failures never
undo an already committed mutation.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from src.infrastructure.cache.redis_client import RedisClient, RedisError

logger = logging.getLogger(__name__)


class ReadCache:
    """Read-through cache over RedisClient.

    Attributes:
        _redis: Connected Redis client.
        _ttl: Expiry for cached entries in seconds.
    """

    def __init__(self, redis: RedisClient, ttl: int = 3600) -> None:
        self._redis = redis
        self._ttl = ttl

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[dict[str, Any] | list[Any] | None]],
    ) -> Any:
        """Return the cached value for key, loading and storing it on a miss.

        None results are not cached.
        """
        try:
            cached = await self._redis.get(key)
        except RedisError as e:
            logger.warning("Cache read failed for %s: %s", key, str(e))
            cached = None

        if cached is not None:
            logger.debug("Cache hit: %s", key)
            return cached

        value = await loader()
        if value is None:
            return None

        try:
            await self._redis.set(key, value, expire_seconds=self._ttl)
        except RedisError as e:
            logger.warning("Cache write failed for %s: %s", key, str(e))
        return value

    async def invalidate(self, keys: Iterable[str] = (), patterns: Iterable[str] = ()) -> None:
        """Drop keys and key patterns after a successful mutation."""
        keys = [key for key in keys if key]
        try:
            if keys:
                await self._redis.delete(*keys)
            for pattern in patterns:
                await self._redis.delete_pattern(pattern)
        except RedisError as e:
            logger.warning("Cache invalidation failed for %s: %s", keys, str(e))
