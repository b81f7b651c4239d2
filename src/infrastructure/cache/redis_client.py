# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Redis client for read-through caching and event deduplication.

This module provides an async Redis client wrapper with JSON
serialization. Every redis-py failure is re-raised as RedisError so
callers handle a single exception type.

Example:
    from src.infrastructure.cache import init_redis, get_redis

    # Initialize at startup
    await init_redis(settings)

    redis = get_redis()
    await redis.set("course:123", course_dto, expire_seconds=3600)
    first = await redis.set_if_absent("processed:evt-1", "1", expire_seconds=60)
"""

import json
from typing import TYPE_CHECKING, Any, Optional

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError as BaseRedisError

if TYPE_CHECKING:
    from src.core.config.settings import Settings

# Module-level state
_redis_client: Optional["RedisClient"] = None


class RedisError(Exception):
    """Exception raised for Redis operation failures.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying Redis error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class RedisClient:
    """Async Redis client with JSON values.

    Attributes:
        _settings: Application settings.
        _pool: The Redis connection pool.
        _redis: The redis-py client bound to the pool.

    Example:
        client = RedisClient(settings)
        await client.connect()
        await client.set("section:1", {"id": "1"})
        section = await client.get("section:1")
        await client.close()
    """

    def __init__(self, settings: "Settings") -> None:
        self._settings = settings
        self._pool: Optional[ConnectionPool] = None
        self._redis: Optional[Redis] = None

    async def connect(self) -> None:
        """Create the Redis connection pool and verify it.

        Raises:
            RedisError: If connection fails.
        """
        try:
            self._pool = ConnectionPool.from_url(
                self._settings.redis.url,
                max_connections=self._settings.redis.max_connections,
                decode_responses=True,
            )
            self._redis = Redis(connection_pool=self._pool)
            await self._redis.ping()
        except BaseRedisError as e:
            raise RedisError("Failed to connect to Redis", e) from e

    async def close(self) -> None:
        """Close the Redis connection pool."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

        if self._pool is not None:
            await self._pool.disconnect()
            self._pool = None

    def _ensure_connected(self) -> Redis:
        if self._redis is None:
            raise RedisError("Redis client not connected. Call connect() first.")
        return self._redis

    @staticmethod
    def _serialize(value: Any) -> str:
        if isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False, default=str)

    @staticmethod
    def _deserialize(value: Optional[str]) -> Any:
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value

    async def get(self, key: str) -> Any:
        """Get a value by key.

        Returns:
            The deserialized value or None if not found.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        try:
            return self._deserialize(await redis.get(key))
        except BaseRedisError as e:
            raise RedisError(f"Failed to get key: {key}", e) from e

    async def set(self, key: str, value: Any, expire_seconds: Optional[int] = None) -> None:
        """Set a key, JSON-serializing non-string values.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        try:
            await redis.set(key, self._serialize(value), ex=expire_seconds)
        except BaseRedisError as e:
            raise RedisError(f"Failed to set key: {key}", e) from e

    async def set_if_absent(self, key: str, value: Any, expire_seconds: Optional[int] = None) -> bool:
        """Atomically set a key only if it does not exist (SET NX).

        Returns:
            True if the key was set, False if it already existed.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        try:
            result = await redis.set(key, self._serialize(value), ex=expire_seconds, nx=True)
            return bool(result)
        except BaseRedisError as e:
            raise RedisError(f"Failed to set key if absent: {key}", e) from e

    async def delete(self, *keys: str) -> int:
        """Delete keys.

        Returns:
            Number of keys that existed and were deleted.

        Raises:
            RedisError: If the operation fails.
        """
        if not keys:
            return 0
        redis = self._ensure_connected()
        try:
            return await redis.delete(*keys)
        except BaseRedisError as e:
            raise RedisError(f"Failed to delete keys: {', '.join(keys)}", e) from e

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching a glob pattern using SCAN.

        Returns:
            Number of keys deleted.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        try:
            keys = [key async for key in redis.scan_iter(match=pattern)]
            if keys:
                return await redis.delete(*keys)
            return 0
        except BaseRedisError as e:
            raise RedisError(f"Failed to delete keys matching: {pattern}", e) from e

    async def ping(self) -> bool:
        """Check if Redis is reachable."""
        try:
            redis = self._ensure_connected()
            await redis.ping()
            return True
        except (RedisError, BaseRedisError):
            return False


# ========== Module-level functions ==========


async def init_redis(settings: "Settings") -> None:
    """Initialize the global Redis client at application startup.

    Raises:
        RedisError: If connection fails.
    """
    global _redis_client

    _redis_client = RedisClient(settings)
    await _redis_client.connect()


async def close_redis() -> None:
    """Close the global Redis client at application shutdown."""
    global _redis_client

    if _redis_client is not None:
        await _redis_client.close()
        _redis_client = None


def get_redis() -> RedisClient:
    """Get the global Redis client.

    Raises:
        RedisError: If Redis has not been initialized.
    """
    if _redis_client is None:
        raise RedisError("Redis not initialized. Call init_redis() first.")
    return _redis_client
