# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Deduplication of consumed integration events.

Kafka delivers at least once. Consumers claim an event id with SET NX
before applying it; a second delivery of the same id finds the claim and
is skipped. A claim is released when processing fails so that the
redelivery can run again.
"""

import logging

from src.infrastructure.cache.keys import CacheKeys
from src.infrastructure.cache.redis_client import RedisClient

logger = logging.getLogger(__name__)


class ProcessedEventStore:
    """Redis-backed record of processed event ids per consumer."""

    def __init__(self, redis: RedisClient, consumer: str, ttl: int = 7 * 24 * 3600) -> None:
        self._redis = redis
        self._consumer = consumer
        self._ttl = ttl

    async def claim(self, event_id: str) -> bool:
        """Claim an event for processing.

        Returns:
            True if this is the first claim, False if already processed.

        Raises:
            RedisError: If Redis is unavailable.
        """
        key = CacheKeys.processed_event(self._consumer, event_id)
        claimed = await self._redis.set_if_absent(key, "1", expire_seconds=self._ttl)
        if not claimed:
            logger.info("Skipping already processed event: consumer=%s, event=%s", self._consumer, event_id)
        return claimed

    async def release(self, event_id: str) -> None:
        """Drop a claim after a failed processing attempt."""
        await self._redis.delete(CacheKeys.processed_event(self._consumer, event_id))
