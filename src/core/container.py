# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Service wiring and process lifecycle.

The transport layer (gRPC handlers, Kafka consumers) is expected to call
``start_services`` once at startup, dispatch commands to the services of
the returned container, and call ``stop_services`` on shutdown.

Repositories are supplied by the storage adapter; everything else is
built from settings.
"""

import logging
from dataclasses import dataclass

from src.core.config import Settings, get_settings
from src.domains.certificate.repository import CertificateRepository
from src.domains.certificate.service import CertificateService
from src.domains.course.repository import CourseRepository
from src.domains.course.service import CourseService
from src.domains.enrollment.repository import EnrollmentRepository, ProgressRepository
from src.domains.enrollment.service import EnrollmentService
from src.domains.lesson.repository import LessonRepository
from src.domains.lesson.service import LessonService
from src.domains.quiz.repository import QuizRepository
from src.domains.quiz.service import QuizService
from src.domains.review.repository import ReviewRepository
from src.domains.review.service import ReviewService
from src.domains.section.repository import SectionRepository
from src.domains.section.service import SectionService
from src.domains.shared.concurrency import ConflictRetryPolicy
from src.infrastructure.cache import (
    ProcessedEventStore,
    ReadCache,
    RedisClient,
    close_redis,
    get_redis,
    init_redis,
)
from src.infrastructure.events import EventBus, EventProducer, KafkaEventProducer
from src.infrastructure.telemetry import setup_telemetry_from_settings
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)

ORDER_CONSUMER = "course-service.enrollment"


@dataclass
class Repositories:
    """Storage adapters the services depend on."""

    courses: CourseRepository
    sections: SectionRepository
    lessons: LessonRepository
    quizzes: QuizRepository
    reviews: ReviewRepository
    enrollments: EnrollmentRepository
    progress: ProgressRepository
    certificates: CertificateRepository


@dataclass
class ServiceContainer:
    """Wired services and the infrastructure they share."""

    courses: CourseService
    sections: SectionService
    lessons: LessonService
    quizzes: QuizService
    reviews: ReviewService
    enrollments: EnrollmentService
    certificates: CertificateService
    event_bus: EventBus
    producer: EventProducer | None = None
    redis: RedisClient | None = None


def create_container(
    repositories: Repositories,
    settings: Settings | None = None,
    producer: EventProducer | None = None,
    redis: RedisClient | None = None,
    event_bus: EventBus | None = None,
) -> ServiceContainer:
    """Build every service around the given collaborators.

    Args:
        repositories: Storage adapters.
        settings: Application settings (defaults to the cached settings).
        producer: Integration event producer, events are dropped when None.
        redis: Redis client backing the read cache and order deduplication.
        event_bus: In-process event bus, a fresh one when None.

    Returns:
        The wired container. Course counters follow content events.
    """
    settings = settings or get_settings()
    event_bus = event_bus or EventBus(source=settings.service_name)

    cache = None
    processed_events = None
    if redis is not None:
        if settings.cache.enabled:
            cache = ReadCache(redis, ttl=settings.cache.default_ttl)
        processed_events = ProcessedEventStore(redis, ORDER_CONSUMER, ttl=settings.cache.processed_event_ttl)

    collaborators = {
        "producer": producer,
        "cache": cache,
        "event_bus": event_bus,
        "retry_policy": ConflictRetryPolicy.from_settings(settings.concurrency),
        "source": settings.service_name,
    }

    repos = repositories
    container = ServiceContainer(
        courses=CourseService(repos.courses, **collaborators),
        sections=SectionService(repos.sections, repos.courses, **collaborators),
        lessons=LessonService(repos.lessons, repos.sections, repos.courses, **collaborators),
        quizzes=QuizService(repos.quizzes, repos.sections, repos.courses, **collaborators),
        reviews=ReviewService(repos.reviews, repos.courses, repos.enrollments, **collaborators),
        enrollments=EnrollmentService(
            repos.enrollments,
            repos.progress,
            repos.courses,
            repos.lessons,
            repos.quizzes,
            processed_events=processed_events,
            **collaborators,
        ),
        certificates=CertificateService(repos.certificates, repos.enrollments, repos.courses, **collaborators),
        event_bus=event_bus,
        producer=producer,
        redis=redis,
    )
    container.courses.register_handlers(event_bus)
    return container


async def start_services(repositories: Repositories, settings: Settings | None = None) -> ServiceContainer:
    """Initialize logging, telemetry, Redis and Kafka, then wire services.

    Redis and Kafka are optional at startup: when one cannot be reached the
    services run without caching or without event publication.
    """
    settings = settings or get_settings()
    setup_logging(settings)
    logger.info(
        "Starting course service: environment=%s, debug=%s",
        settings.environment,
        settings.debug,
    )

    try:
        setup_telemetry_from_settings(settings)
    except Exception as e:
        logger.warning("Failed to setup telemetry: %s", str(e))

    redis: RedisClient | None = None
    try:
        await init_redis(settings)
        redis = get_redis()
        logger.info("Redis connection initialized")
    except Exception as e:
        logger.warning("Failed to initialize Redis: %s", str(e))

    producer: KafkaEventProducer | None = KafkaEventProducer(settings.kafka)
    try:
        await producer.connect()
        logger.info("Kafka producer connected")
    except Exception as e:
        logger.warning("Failed to connect Kafka producer: %s", str(e))
        producer = None

    return create_container(repositories, settings, producer=producer, redis=redis)


async def stop_services(container: ServiceContainer) -> None:
    """Release the infrastructure held by a container."""
    container.event_bus.clear()

    if isinstance(container.producer, KafkaEventProducer):
        try:
            await container.producer.close()
            logger.info("Kafka producer closed")
        except Exception as e:
            logger.warning("Error closing Kafka producer: %s", str(e))

    if container.redis is not None:
        try:
            await close_redis()
            logger.info("Redis connection closed")
        except Exception as e:
            logger.warning("Error closing Redis: %s", str(e))

    logger.info("Course service stopped")
