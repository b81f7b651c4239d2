# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course service for managing the course lifecycle.

This module provides the CourseService class for:
- Course creation (idempotent, unique slug) and partial updates
- Price changes and soft deletion
- Publication and unpublication
- Course lookups by id and slug
- Catalog and instructor course listings
- Content counters kept in sync from in-process content events
"""

from __future__ import annotations

import logging
from typing import Any

from src.domains.course.entities import Course
from src.domains.course.repository import SORTABLE_FIELDS, CourseQuery, CourseRepository
from src.domains.errors import CourseAlreadyExistsError, CourseNotFoundError
from src.domains.shared.guards import ensure_can_manage_course, find_replay
from src.domains.shared.service import DomainService
from src.infrastructure.cache.keys import CacheKeys
from src.infrastructure.events.bus import EventBus, EventData
from src.infrastructure.events.types import EventTypes, IntegrationEvents, KafkaTopics
from src.infrastructure.telemetry.tracing import traced
from src.models.course import (
    SORT_OPTIONS,
    CourseActionCommand,
    CourseListResponse,
    CoursePageQuery,
    CourseResponse,
    CreateCourseCommand,
    ListCoursesQuery,
    UpdateCourseCommand,
    UpdateCoursePriceCommand,
)
from src.utils.datetime import format_iso
from src.utils.text import clean_search_text

logger = logging.getLogger(__name__)

# In-process content event -> (sections, lessons, quizzes) counter deltas.
_CONTENT_DELTAS: dict[str, tuple[int, int, int]] = {
    EventTypes.Section.CREATED: (1, 0, 0),
    EventTypes.Section.DELETED: (-1, 0, 0),
    EventTypes.Lesson.CREATED: (0, 1, 0),
    EventTypes.Lesson.DELETED: (0, -1, 0),
    EventTypes.Quiz.CREATED: (0, 0, 1),
    EventTypes.Quiz.DELETED: (0, 0, -1),
}


def course_event_payload(course: Course) -> dict[str, Any]:
    """Integration event payload describing a course."""
    return {
        "courseId": course.id,
        "instructorId": course.instructor_id,
        "title": course.title,
        "slug": course.slug,
        "status": course.status.value,
        "price": course.price,
        "discountPrice": course.discount_price,
        "currency": course.currency,
        "thumbnail": course.thumbnail,
        "updatedAt": format_iso(course.updated_at),
    }


class CourseService(DomainService):
    """Service for course lifecycle operations.

    Attributes:
        courses: Course repository.
    """

    def __init__(self, courses: CourseRepository, **collaborators: Any) -> None:
        """Initialize course service.

        Args:
            courses: Course repository.
            **collaborators: Optional DomainService collaborators.
        """
        super().__init__(**collaborators)
        self.courses = courses

    # =========================================================================
    # Commands
    # =========================================================================

    @traced("course.create")
    async def create_course(self, command: CreateCourseCommand) -> CourseResponse:
        """Create a draft course.

        Args:
            command: Course creation data.

        Returns:
            The created course, or the course previously created with the
            same idempotency key.

        Raises:
            CourseAlreadyExistsError: If the derived slug is taken.
            CourseValidationError: If the course data is invalid.
        """
        existing = await find_replay(command.idempotency_key, self.courses.find_by_idempotency_key, "course")
        if existing is not None:
            return self._to_response(existing)

        course = Course.create(
            instructor_id=command.user_id,
            title=command.title,
            idempotency_key=command.idempotency_key,
            description=command.description,
            thumbnail=command.thumbnail,
            level=command.level,
            language=command.language,
            category_id=command.category_id,
            price=command.price,
            discount_price=command.discount_price,
            currency=command.currency.upper(),
        )

        if await self.courses.find_by_slug(course.slug) is not None:
            raise CourseAlreadyExistsError(slug=course.slug)

        course = await self.courses.save(course)

        logger.info("Created course: course=%s, slug=%s, instructor=%s", course.id, course.slug, course.instructor_id)

        await self._invalidate(patterns=[CacheKeys.instructor_courses_pattern(course.instructor_id)])
        await self._emit(
            KafkaTopics.COURSE_CREATED,
            IntegrationEvents.COURSE_CREATED,
            course_event_payload(course),
            key=course.id,
        )
        return self._to_response(course)

    @traced("course.update")
    async def update_course(self, command: UpdateCourseCommand) -> CourseResponse:
        """Partially update course details.

        A title change re-derives the slug, which must stay unique.

        Raises:
            CourseNotFoundError: If course not found.
            UnauthorizedError: If the user cannot manage the course.
            CourseAlreadyExistsError: If the new slug is taken.
        """
        previous_slug: str | None = None

        async def cycle() -> Course:
            nonlocal previous_slug
            course = await self._get_course(command.course_id)
            ensure_can_manage_course(course, command.user_id, command.is_admin)

            previous_slug = course.slug
            slug_changed = course.update_details(
                title=command.title,
                description=command.description,
                thumbnail=command.thumbnail,
                level=command.level,
                language=command.language,
                category_id=command.category_id,
            )
            if slug_changed:
                other = await self.courses.find_by_slug(course.slug)
                if other is not None and other.id != course.id:
                    raise CourseAlreadyExistsError(slug=course.slug)

            return await self.courses.update(course)

        course = await self._with_retry(cycle)

        logger.info("Updated course: course=%s, by=%s", course.id, command.user_id)

        await self._invalidate_course(course, previous_slug)
        await self._emit(
            KafkaTopics.COURSE_UPDATED,
            IntegrationEvents.COURSE_UPDATED,
            course_event_payload(course),
            key=course.id,
        )
        return self._to_response(course)

    @traced("course.update_price")
    async def update_course_price(self, command: UpdateCoursePriceCommand) -> CourseResponse:
        """Change the price of a course.

        Raises:
            CourseNotFoundError: If course not found.
            UnauthorizedError: If the user cannot manage the course.
            CourseValidationError: If the price is invalid.
        """

        async def cycle() -> Course:
            course = await self._get_course(command.course_id)
            ensure_can_manage_course(course, command.user_id, command.is_admin)
            course.update_price(command.price, command.discount_price, command.currency)
            return await self.courses.update(course)

        course = await self._with_retry(cycle)

        logger.info("Updated course price: course=%s, price=%s %s", course.id, course.price, course.currency)

        await self._invalidate_course(course)
        await self._emit(
            KafkaTopics.COURSE_UPDATED,
            IntegrationEvents.COURSE_UPDATED,
            course_event_payload(course),
            key=course.id,
        )
        return self._to_response(course)

    @traced("course.delete")
    async def delete_course(self, command: CourseActionCommand) -> None:
        """Soft delete a course.

        Reviews, enrollments and certificates of the course are kept.

        Raises:
            CourseNotFoundError: If course not found.
            UnauthorizedError: If the user cannot manage the course.
        """

        async def cycle() -> Course:
            course = await self._get_course(command.course_id)
            ensure_can_manage_course(course, command.user_id, command.is_admin)
            course.soft_delete()
            return await self.courses.update(course)

        course = await self._with_retry(cycle)

        logger.info("Deleted course: course=%s, by=%s", course.id, command.user_id)

        await self._invalidate_course(course)
        await self._emit(
            KafkaTopics.COURSE_DELETED,
            IntegrationEvents.COURSE_DELETED,
            {"courseId": course.id, "instructorId": course.instructor_id, "deletedAt": format_iso(course.deleted_at)},
            key=course.id,
        )

    @traced("course.publish")
    async def publish_course(self, command: CourseActionCommand) -> CourseResponse:
        """Publish a course.

        Publishing an already published course is a no-op and emits
        nothing.

        Raises:
            CourseNotFoundError: If course not found.
            UnauthorizedError: If the user cannot manage the course.
            CourseValidationError: If the course is not ready to publish.
        """

        async def cycle() -> tuple[Course, bool]:
            course = await self._get_course(command.course_id)
            ensure_can_manage_course(course, command.user_id, command.is_admin)
            if not course.publish():
                return course, False
            return await self.courses.update(course), True

        course, changed = await self._with_retry(cycle)
        if not changed:
            logger.info("Course already published: course=%s", course.id)
            return self._to_response(course)

        logger.info("Published course: course=%s, by=%s", course.id, command.user_id)

        await self._invalidate_course(course)
        await self._emit(
            KafkaTopics.COURSE_PUBLISHED,
            IntegrationEvents.COURSE_PUBLISHED,
            course_event_payload(course),
            key=course.id,
        )
        return self._to_response(course)

    @traced("course.unpublish")
    async def unpublish_course(self, command: CourseActionCommand) -> CourseResponse:
        """Take a published course offline.

        Raises:
            CourseNotFoundError: If course not found.
            UnauthorizedError: If the user cannot manage the course.
            CourseValidationError: If the course is not published.
        """

        async def cycle() -> Course:
            course = await self._get_course(command.course_id)
            ensure_can_manage_course(course, command.user_id, command.is_admin)
            course.unpublish()
            return await self.courses.update(course)

        course = await self._with_retry(cycle)

        logger.info("Unpublished course: course=%s, by=%s", course.id, command.user_id)

        await self._invalidate_course(course)
        await self._emit(
            KafkaTopics.COURSE_UNPUBLISHED,
            IntegrationEvents.COURSE_UNPUBLISHED,
            course_event_payload(course),
            key=course.id,
        )
        return self._to_response(course)

    # =========================================================================
    # Queries
    # =========================================================================

    @traced("course.get")
    async def get_course(self, course_id: str) -> CourseResponse:
        """Get a course by id.

        Raises:
            CourseNotFoundError: If course not found.
        """

        async def load() -> dict[str, Any] | None:
            course = await self.courses.find_by_id(course_id)
            return self._to_response(course).model_dump(mode="json") if course else None

        data = await self._cached(CacheKeys.course(course_id), load)
        if data is None:
            raise CourseNotFoundError(course_id=course_id)
        return CourseResponse.model_validate(data)

    @traced("course.get_by_slug")
    async def get_course_by_slug(self, slug: str) -> CourseResponse:
        """Get a course by slug.

        Raises:
            CourseNotFoundError: If course not found.
        """

        async def load() -> dict[str, Any] | None:
            course = await self.courses.find_by_slug(slug)
            return self._to_response(course).model_dump(mode="json") if course else None

        data = await self._cached(CacheKeys.course_by_slug(slug), load)
        if data is None:
            raise CourseNotFoundError(slug=slug)
        return CourseResponse.model_validate(data)

    @traced("course.list")
    async def list_courses(self, query: ListCoursesQuery | None = None) -> CourseListResponse:
        """List the course catalog with filters, sorting and paging."""
        query = query or ListCoursesQuery()
        course_query = self._course_query(
            query,
            status=query.status,
            search=clean_search_text(query.search),
            category_ids=tuple(query.category_ids),
            levels=tuple(query.levels),
            min_price=query.min_price,
            max_price=query.max_price,
            min_rating=query.min_rating,
        )
        courses, total = await self.courses.find_all(course_query)

        logger.debug("Listed courses: returned=%d, total=%d", len(courses), total)
        return CourseListResponse(
            items=[self._to_response(course) for course in courses],
            total=total,
            page=query.page,
            page_size=query.page_size,
        )

    @traced("course.list_by_instructor")
    async def list_instructor_courses(
        self,
        instructor_id: str,
        query: CoursePageQuery | None = None,
    ) -> CourseListResponse:
        """List every active course of an instructor, drafts included."""
        query = query or CoursePageQuery()
        course_query = self._course_query(query, instructor_id=instructor_id)

        async def load() -> dict[str, Any]:
            courses, total = await self.courses.find_all(course_query)
            return CourseListResponse(
                items=[self._to_response(course) for course in courses],
                total=total,
                page=query.page,
                page_size=query.page_size,
            ).model_dump(mode="json")

        key = CacheKeys.instructor_courses_page(
            instructor_id,
            query.page,
            query.page_size,
            course_query.sort_by,
            "desc" if course_query.descending else "asc",
        )
        data = await self._cached(key, load)
        return CourseListResponse.model_validate(data)

    # =========================================================================
    # In-process event handlers
    # =========================================================================

    def register_handlers(self, event_bus: EventBus) -> None:
        """Subscribe the content counter handler to content events."""
        for event_type in _CONTENT_DELTAS:
            event_bus.subscribe(event_type, self.apply_content_change)

    async def apply_content_change(self, event: EventData) -> None:
        """Adjust section, lesson and quiz counters for a content event."""
        deltas = _CONTENT_DELTAS.get(event.event_type)
        course_id = event.payload.get("course_id")
        if deltas is None or not course_id:
            return

        async def cycle() -> Course | None:
            course = await self.courses.find_by_id(course_id)
            if course is None:
                logger.warning("Content event for missing course: event=%s, course=%s", event.event_type, course_id)
                return None
            sections, lessons, quizzes = deltas
            course.adjust_content_counts(sections=sections, lessons=lessons, quizzes=quizzes)
            return await self.courses.update(course)

        course = await self._with_retry(cycle)
        if course is not None:
            logger.debug(
                "Adjusted content counts: course=%s, sections=%d, lessons=%d, quizzes=%d",
                course.id,
                course.number_of_sections,
                course.number_of_lessons,
                course.number_of_quizzes,
            )
            await self._invalidate_course(course)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get_course(self, course_id: str) -> Course:
        course = await self.courses.find_by_id(course_id)
        if not course:
            raise CourseNotFoundError(course_id=course_id)
        return course

    async def _invalidate_course(self, course: Course, previous_slug: str | None = None) -> None:
        keys = [CacheKeys.course(course.id), CacheKeys.course_by_slug(course.slug)]
        if previous_slug and previous_slug != course.slug:
            keys.append(CacheKeys.course_by_slug(previous_slug))
        await self._invalidate(keys, [CacheKeys.instructor_courses_pattern(course.instructor_id)])

    @staticmethod
    def _course_query(page: CoursePageQuery, **filters: Any) -> CourseQuery:
        """Resolve paging and sort options into a repository query.

        A named sort option sets both field and order. Unknown fields fall
        back to updated_at and unknown orders to descending.
        """
        sort_by = page.sort_by or "updated_at"
        sort_order = page.sort_order.lower()
        if sort_by in SORT_OPTIONS:
            sort_by, sort_order = SORT_OPTIONS[sort_by]
        elif sort_by not in SORTABLE_FIELDS:
            sort_by = "updated_at"
        return CourseQuery(
            sort_by=sort_by,
            descending=sort_order != "asc",
            limit=page.page_size,
            offset=(page.page - 1) * page.page_size,
            **filters,
        )

    def _to_response(self, course: Course) -> CourseResponse:
        return CourseResponse.model_validate(course)
