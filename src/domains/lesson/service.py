# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson service.

Lessons live inside a section of a course. Creation and deletion are
announced on the in-process event bus so the course lesson counter and
the enrollment progress stay in sync.
"""

from __future__ import annotations

import logging
from typing import Any

from src.domains.course.entities import Course
from src.domains.course.repository import CourseRepository
from src.domains.errors import CourseNotFoundError, LessonNotFoundError, SectionNotFoundError
from src.domains.lesson.entities import Lesson
from src.domains.lesson.repository import LessonRepository
from src.domains.section.entities import Section
from src.domains.section.repository import SectionRepository
from src.domains.shared.guards import ensure_can_manage_course, find_replay
from src.domains.shared.service import DomainService
from src.infrastructure.cache.keys import CacheKeys
from src.infrastructure.events.types import EventTypes
from src.infrastructure.telemetry.tracing import traced
from src.models.lesson import (
    CreateLessonCommand,
    DeleteLessonCommand,
    LessonResponse,
    UpdateLessonCommand,
)

logger = logging.getLogger(__name__)


class LessonService(DomainService):
    """Service for section lessons."""

    def __init__(
        self,
        lessons: LessonRepository,
        sections: SectionRepository,
        courses: CourseRepository,
        **collaborators: Any,
    ) -> None:
        super().__init__(**collaborators)
        self.lessons = lessons
        self.sections = sections
        self.courses = courses

    @traced("lesson.create")
    async def create_lesson(self, command: CreateLessonCommand) -> LessonResponse:
        """Add a lesson to a section.

        Args:
            command: Lesson creation data.

        Returns:
            The created lesson, or the lesson previously created with the
            same idempotency key.

        Raises:
            CourseNotFoundError: If course not found.
            UnauthorizedError: If the user cannot manage the course.
            SectionNotFoundError: If the section is not part of the course.
            LessonValidationError: If the lesson data is invalid.
        """
        existing = await find_replay(command.idempotency_key, self.lessons.find_by_idempotency_key, "lesson")
        if existing is not None:
            return LessonResponse.model_validate(existing)

        course = await self._get_course(command.course_id)
        ensure_can_manage_course(course, command.user_id, command.is_admin)
        section = await self._get_section(command.section_id, course.id)

        lesson = await self.lessons.save(
            Lesson(
                section_id=section.id,
                course_id=course.id,
                title=command.title,
                description=command.description,
                content_type=command.content_type,
                content_url=command.content_url,
                order=command.order,
                metadata=command.metadata,
                is_preview=command.is_preview,
                is_published=command.is_published,
                duration=command.duration,
                idempotency_key=command.idempotency_key,
            )
        )

        logger.info(
            "Created lesson: lesson=%s, section=%s, course=%s, type=%s",
            lesson.id,
            section.id,
            course.id,
            lesson.content_type.value,
        )

        await self._invalidate([CacheKeys.section_lessons(section.id)])
        await self._publish_local(
            EventTypes.Lesson.CREATED,
            {"course_id": course.id, "section_id": section.id, "lesson_id": lesson.id},
        )
        return LessonResponse.model_validate(lesson)

    @traced("lesson.update")
    async def update_lesson(self, command: UpdateLessonCommand) -> LessonResponse:
        """Partially update a lesson.

        Raises:
            CourseNotFoundError: If course not found.
            UnauthorizedError: If the user cannot manage the course.
            LessonNotFoundError: If the lesson is not part of the course.
        """
        course = await self._get_course(command.course_id)
        ensure_can_manage_course(course, command.user_id, command.is_admin)
        lesson = await self._get_lesson(command.lesson_id, course.id)

        lesson.update_details(
            title=command.title,
            description=command.description,
            content_type=command.content_type,
            content_url=command.content_url,
            order=command.order,
            metadata=command.metadata,
            is_preview=command.is_preview,
            is_published=command.is_published,
            duration=command.duration,
        )
        lesson = await self.lessons.update(lesson)

        logger.info("Updated lesson: lesson=%s, course=%s", lesson.id, course.id)

        await self._invalidate([CacheKeys.lesson(lesson.id), CacheKeys.section_lessons(lesson.section_id)])
        return LessonResponse.model_validate(lesson)

    @traced("lesson.delete")
    async def delete_lesson(self, command: DeleteLessonCommand) -> None:
        """Soft delete a lesson.

        Raises:
            CourseNotFoundError: If course not found.
            UnauthorizedError: If the user cannot manage the course.
            LessonNotFoundError: If the lesson is not part of the course.
        """
        course = await self._get_course(command.course_id)
        ensure_can_manage_course(course, command.user_id, command.is_admin)
        lesson = await self._get_lesson(command.lesson_id, course.id)

        lesson.soft_delete()
        await self.lessons.update(lesson)

        logger.info("Deleted lesson: lesson=%s, course=%s", lesson.id, course.id)

        await self._invalidate([CacheKeys.lesson(lesson.id), CacheKeys.section_lessons(lesson.section_id)])
        await self._publish_local(
            EventTypes.Lesson.DELETED,
            {"course_id": course.id, "section_id": lesson.section_id, "lesson_id": lesson.id},
        )

    @traced("lesson.get")
    async def get_lesson(self, lesson_id: str) -> LessonResponse:
        """Get a lesson by id.

        Raises:
            LessonNotFoundError: If lesson not found.
        """

        async def load() -> dict[str, Any] | None:
            lesson = await self.lessons.find_by_id(lesson_id)
            if lesson is None or lesson.is_deleted:
                return None
            return LessonResponse.model_validate(lesson).model_dump(mode="json")

        data = await self._cached(CacheKeys.lesson(lesson_id), load)
        if data is None:
            raise LessonNotFoundError(lesson_id=lesson_id)
        return LessonResponse.model_validate(data)

    @traced("lesson.list")
    async def list_lessons(self, section_id: str) -> list[LessonResponse]:
        """List the active lessons of a section in order."""

        async def load() -> list[dict[str, Any]]:
            lessons = await self.lessons.find_by_section_id(section_id)
            return [
                LessonResponse.model_validate(lesson).model_dump(mode="json")
                for lesson in sorted(lessons, key=lambda item: item.order)
                if not lesson.is_deleted
            ]

        data = await self._cached(CacheKeys.section_lessons(section_id), load)
        return [LessonResponse.model_validate(item) for item in data]

    async def _get_course(self, course_id: str) -> Course:
        course = await self.courses.find_by_id(course_id)
        if not course:
            raise CourseNotFoundError(course_id=course_id)
        return course

    async def _get_section(self, section_id: str, course_id: str) -> Section:
        section = await self.sections.find_by_id(section_id)
        if not section or section.is_deleted or section.course_id != course_id:
            raise SectionNotFoundError(section_id=section_id, course_id=course_id)
        return section

    async def _get_lesson(self, lesson_id: str, course_id: str) -> Lesson:
        lesson = await self.lessons.find_by_id(lesson_id)
        if not lesson or lesson.is_deleted or lesson.course_id != course_id:
            raise LessonNotFoundError(lesson_id=lesson_id, course_id=course_id)
        return lesson
