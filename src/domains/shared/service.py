# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Base class wiring the collaborators every domain service uses."""

from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

from src.domains.shared.concurrency import ConflictRetryPolicy
from src.infrastructure.cache.read_cache import ReadCache
from src.infrastructure.events.bus import DEFAULT_SOURCE, EventBus, EventData
from src.infrastructure.events.producer import EventProducer, emit_event

T = TypeVar("T")


class DomainService:
    """Common collaborators of the course services.

    Every collaborator is optional so that services can be exercised with
    repositories only.

    Attributes:
        producer: Integration event producer.
        cache: Read-through cache to invalidate after mutations.
        event_bus: In-process event bus.
        retry_policy: Conflict retry policy for read-modify-write cycles.
        source: Service name stamped on emitted events.
    """

    def __init__(
        self,
        producer: EventProducer | None = None,
        cache: ReadCache | None = None,
        event_bus: EventBus | None = None,
        retry_policy: ConflictRetryPolicy | None = None,
        source: str = DEFAULT_SOURCE,
    ) -> None:
        self.producer = producer
        self.cache = cache
        self.event_bus = event_bus
        self.retry_policy = retry_policy or ConflictRetryPolicy()
        self.source = source

    async def _emit(self, topic: str, event_type: str, payload: dict[str, Any], key: str | None = None) -> None:
        """Fire-and-forget publication of an integration event."""
        event = EventData(event_type=event_type, payload=payload, source=self.source)
        await emit_event(self.producer, topic, event, key=key)

    async def _publish_local(self, event_type: str, payload: dict[str, Any]) -> None:
        if self.event_bus is not None:
            await self.event_bus.publish(event_type, payload)

    async def _invalidate(self, keys: Iterable[str] = (), patterns: Iterable[str] = ()) -> None:
        if self.cache is not None:
            await self.cache.invalidate(keys, patterns)

    async def _cached(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
    ) -> Any:
        if self.cache is None:
            return await loader()
        return await self.cache.get_or_load(key, loader)

    async def _with_retry(self, cycle: Callable[[], Awaitable[T]]) -> T:
        return await self.retry_policy.run(cycle)
