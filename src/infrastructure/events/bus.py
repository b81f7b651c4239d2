# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-process event bus and the shared event envelope.

Domain services publish in-process events (for example when a lesson is
created) so that other parts of the service can react without a direct
dependency. The same EventData envelope is serialized onto Kafka by the
event producer.

Example:
    from src.infrastructure.events import get_event_bus, EventTypes

    event_bus = get_event_bus()

    async def on_lesson_created(event):
        print(event.payload["course_id"])

    event_bus.subscribe(EventTypes.Lesson.CREATED, on_lesson_created)
    event_bus.subscribe("lesson.*", on_any_lesson_event)

    await event_bus.publish(
        EventTypes.Lesson.CREATED,
        {"lesson_id": "l-1", "course_id": "c-1"},
    )
"""

import asyncio
import fnmatch
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable
from uuid import uuid4

from src.utils.datetime import format_iso, utc_now

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "course-service"


@dataclass
class EventData:
    """Event envelope.

    Attributes:
        event_type: The event type string.
        payload: Domain fields of the event.
        event_id: Fresh unique identifier per emission.
        timestamp: Emission time.
        source: Originating service.
    """

    event_type: str
    payload: dict[str, Any]
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=utc_now)
    source: str = DEFAULT_SOURCE

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON message shape shared with other services."""
        return {
            "eventType": self.event_type,
            "eventId": self.event_id,
            "timestamp": format_iso(self.timestamp),
            "source": self.source,
            "payload": self.payload,
        }


# Type alias for event handlers
EventHandler = Callable[[EventData], Awaitable[None]]


def _is_pattern(event_type: str) -> bool:
    return "*" in event_type or "?" in event_type


class EventBus:
    """In-memory async event bus with wildcard subscriptions.

    Handlers run concurrently; a failing handler is logged and never
    affects the publisher or the other handlers. Designed for
    single-process asyncio use.
    """

    def __init__(self, source: str = DEFAULT_SOURCE) -> None:
        self._source = source
        self._handlers: dict[str, list[EventHandler]] = {}
        self._pattern_handlers: dict[str, list[EventHandler]] = {}
        self._event_count = 0

    def _registry(self, event_type: str) -> dict[str, list[EventHandler]]:
        return self._pattern_handlers if _is_pattern(event_type) else self._handlers

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Subscribe a handler to an event type or fnmatch pattern."""
        self._registry(event_type).setdefault(event_type, []).append(handler)
        logger.debug("Subscribed handler to: %s", event_type)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> bool:
        """Remove a handler.

        Returns:
            True if handler was found and removed, False otherwise.
        """
        registry = self._registry(event_type)
        handlers = registry.get(event_type)
        if not handlers or handler not in handlers:
            return False
        handlers.remove(handler)
        if not handlers:
            del registry[event_type]
        return True

    def _matching_handlers(self, event_type: str) -> list[EventHandler]:
        matched = list(self._handlers.get(event_type, []))
        for pattern, handlers in self._pattern_handlers.items():
            if fnmatch.fnmatch(event_type, pattern):
                matched.extend(handlers)
        return matched

    async def publish(self, event_type: str, payload: dict[str, Any]) -> EventData:
        """Publish an event to all matching subscribers.

        Args:
            event_type: The event type string.
            payload: Event data dictionary.

        Returns:
            The published EventData.
        """
        event = EventData(event_type=event_type, payload=payload, source=self._source)
        self._event_count += 1

        handlers = self._matching_handlers(event_type)
        if not handlers:
            logger.debug("No handlers for event: %s", event_type)
            return event

        logger.debug("Publishing event %s to %d handlers", event_type, len(handlers))

        async def safe_call(handler: EventHandler) -> None:
            try:
                await handler(event)
            except Exception as e:
                logger.error(
                    "Handler error for event %s: %s",
                    event_type,
                    str(e),
                    exc_info=True,
                )

        await asyncio.gather(*(safe_call(handler) for handler in handlers))
        return event

    def clear(self) -> None:
        """Remove all subscriptions."""
        self._handlers.clear()
        self._pattern_handlers.clear()

    def get_stats(self) -> dict[str, Any]:
        """Get subscription and event counts."""
        return {
            "exact_subscriptions": len(self._handlers),
            "pattern_subscriptions": len(self._pattern_handlers),
            "total_handlers": sum(len(h) for h in self._handlers.values())
            + sum(len(h) for h in self._pattern_handlers.values()),
            "events_published": self._event_count,
        }


# Singleton instance
_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get the singleton event bus instance."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Reset the event bus singleton between tests."""
    global _event_bus
    if _event_bus is not None:
        _event_bus.clear()
    _event_bus = None
