# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for service wiring and lifecycle."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core import container as container_module
from src.core.config import Settings
from src.core.container import create_container, start_services, stop_services
from src.infrastructure.cache import RedisClient, RedisError
from src.infrastructure.events import EventProducerError, KafkaEventProducer
from src.models.section import CreateSectionCommand


class TestCreateContainer:
    """Tests for create_container."""

    @pytest.mark.asyncio
    async def test_services_share_event_bus(self, repos, course, instructor_id):
        """Test section creation reaches the course counters."""
        container = create_container(repos, Settings())

        await container.sections.create_section(
            CreateSectionCommand(user_id=instructor_id, course_id=course.id, title="Basics")
        )

        assert repos.courses.items[course.id].number_of_sections == 1
        assert container.event_bus.get_stats()["exact_subscriptions"] == 6

    def test_without_redis(self, repos):
        container = create_container(repos, Settings())

        assert container.courses.cache is None
        assert container.enrollments.processed_events is None
        assert container.courses.producer is None

    def test_with_redis(self, repos):
        redis = AsyncMock(spec=RedisClient)

        container = create_container(repos, Settings(), redis=redis)

        assert container.courses.cache is not None
        assert container.enrollments.processed_events is not None
        assert container.redis is redis

    def test_cache_can_be_disabled(self, repos, monkeypatch):
        monkeypatch.setenv("CACHE_ENABLED", "false")

        container = create_container(repos, Settings(), redis=AsyncMock(spec=RedisClient))

        assert container.courses.cache is None
        assert container.enrollments.processed_events is not None

    def test_retry_policy_from_settings(self, repos, monkeypatch):
        monkeypatch.setenv("CONCURRENCY_MAX_ATTEMPTS", "7")

        container = create_container(repos, Settings())

        assert container.reviews.retry_policy.max_attempts == 7


class TestLifecycle:
    """Tests for start_services and stop_services."""

    @pytest.mark.asyncio
    async def test_start_degrades_without_infrastructure(self, repos, monkeypatch):
        """Test unreachable Redis and Kafka leave a working container."""
        monkeypatch.setattr(container_module, "setup_logging", MagicMock())
        monkeypatch.setattr(container_module, "init_redis", AsyncMock(side_effect=RedisError("refused")))
        monkeypatch.setattr(
            KafkaEventProducer, "connect", AsyncMock(side_effect=EventProducerError("no brokers"))
        )

        container = await start_services(repos, Settings())

        assert container.redis is None
        assert container.producer is None
        assert container.courses.cache is None

    @pytest.mark.asyncio
    async def test_stop_closes_infrastructure(self, repos, monkeypatch):
        close_redis = AsyncMock()
        monkeypatch.setattr(container_module, "close_redis", close_redis)
        producer = KafkaEventProducer(Settings().kafka)
        monkeypatch.setattr(producer, "close", AsyncMock())

        container = create_container(repos, Settings(), producer=producer, redis=AsyncMock(spec=RedisClient))
        await stop_services(container)

        producer.close.assert_awaited_once()
        close_redis.assert_awaited_once()
        assert container.event_bus.get_stats()["total_handlers"] == 0
