# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Kafka event producer.

Domain services depend on the EventProducer abstraction. The Kafka
implementation wraps kafka-python's blocking KafkaProducer and runs sends
in a worker thread so the event loop is never blocked.

Events are emitted after the triggering mutation has been committed, so
emit_event() never lets a delivery failure reach the caller.

Example:
    >>> producer = KafkaEventProducer(settings.kafka)
    >>> await producer.connect()
    >>> await emit_event(
    ...     producer,
    ...     KafkaTopics.COURSE_PUBLISHED,
    ...     EventData(IntegrationEvents.COURSE_PUBLISHED, {"courseId": "c-1"}),
    ...     key="c-1",
    ... )
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from kafka import KafkaProducer
from kafka.errors import KafkaError

from src.infrastructure.events.bus import EventData

if TYPE_CHECKING:
    from src.core.config.settings import KafkaSettings

logger = logging.getLogger(__name__)


class EventProducerError(Exception):
    """Raised when an event cannot be handed to the broker."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class EventProducer(ABC):
    """Publishes integration events to a message broker."""

    @abstractmethod
    async def produce(self, topic: str, key: str | None, value: dict[str, Any]) -> None:
        """Publish one message.

        Raises:
            EventProducerError: If the message could not be delivered.
        """
        ...


class KafkaEventProducer(EventProducer):
    """EventProducer backed by kafka-python.

    Attributes:
        _settings: Kafka settings.
        _producer: Underlying KafkaProducer, created on connect().
    """

    def __init__(self, settings: "KafkaSettings") -> None:
        self._settings = settings
        self._producer: KafkaProducer | None = None

    async def connect(self) -> None:
        """Create the underlying producer.

        Raises:
            EventProducerError: If the brokers cannot be reached.
        """
        if self._producer is not None:
            return

        try:
            self._producer = await asyncio.to_thread(
                KafkaProducer,
                bootstrap_servers=self._settings.servers_list,
                client_id=self._settings.client_id,
                acks=self._settings.acks if self._settings.acks == "all" else int(self._settings.acks),
                retries=self._settings.retries,
                key_serializer=lambda k: k.encode("utf-8") if k is not None else None,
                value_serializer=lambda v: json.dumps(v, default=str).encode("utf-8"),
            )
        except KafkaError as e:
            raise EventProducerError("Failed to connect to Kafka", e) from e

        logger.info("Connected to Kafka: %s", self._settings.bootstrap_servers)

    async def close(self) -> None:
        """Flush pending messages and close the producer."""
        if self._producer is None:
            return
        producer, self._producer = self._producer, None
        await asyncio.to_thread(producer.close, self._settings.send_timeout)
        logger.info("Kafka producer closed")

    def _send_blocking(
        self,
        producer: KafkaProducer,
        topic: str,
        key: str | None,
        value: dict[str, Any],
    ) -> None:
        future = producer.send(topic, key=key, value=value)
        future.get(timeout=self._settings.send_timeout)

    async def produce(self, topic: str, key: str | None, value: dict[str, Any]) -> None:
        producer = self._producer
        if producer is None:
            raise EventProducerError("Kafka producer not connected. Call connect() first.")
        try:
            await asyncio.to_thread(self._send_blocking, producer, topic, key, value)
        except KafkaError as e:
            raise EventProducerError(f"Failed to produce to topic {topic}", e) from e


async def emit_event(
    producer: EventProducer | None,
    topic: str,
    event: EventData,
    key: str | None = None,
) -> bool:
    """Publish an event without ever propagating a failure.

    Args:
        producer: Producer to publish with; None disables publication.
        topic: Kafka topic.
        event: Event envelope.
        key: Partition key, usually the aggregate id.

    Returns:
        True if the event was handed to the broker.
    """
    if producer is None:
        logger.debug("No event producer configured, dropping %s", event.event_type)
        return False

    try:
        await producer.produce(topic, key, event.to_dict())
    except Exception as e:
        logger.error(
            "Failed to emit %s (event_id=%s) to %s: %s",
            event.event_type,
            event.event_id,
            topic,
            str(e),
            exc_info=True,
        )
        return False

    logger.debug("Emitted %s to %s: event_id=%s", event.event_type, topic, event.event_id)
    return True
