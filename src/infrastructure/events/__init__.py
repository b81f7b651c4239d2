# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Event infrastructure for the course service.

Components:
- EventBus: In-memory pub/sub with pattern matching for in-process reactions
- EventData: Event envelope shared by the bus and Kafka messages
- KafkaEventProducer: Integration event publication through Kafka
- emit_event: Fire-and-forget publication helper

Architecture:
    Service → EventBus.publish() → in-process handlers (content counters)
    Service → emit_event() → KafkaEventProducer → Kafka topic
"""

from src.infrastructure.events.bus import (
    EventBus,
    EventData,
    EventHandler,
    get_event_bus,
    reset_event_bus,
)
from src.infrastructure.events.producer import (
    EventProducer,
    EventProducerError,
    KafkaEventProducer,
    emit_event,
)
from src.infrastructure.events.types import EventTypes, IntegrationEvents, KafkaTopics

__all__ = [
    # Event Bus
    "EventBus",
    "EventData",
    "EventHandler",
    "get_event_bus",
    "reset_event_bus",
    # Producer
    "EventProducer",
    "EventProducerError",
    "KafkaEventProducer",
    "emit_event",
    # Names
    "EventTypes",
    "IntegrationEvents",
    "KafkaTopics",
]
