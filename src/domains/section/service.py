# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Section service.

Sections are owned by a course; every mutation is authorized against the
owning course and announced on the in-process event bus so the course
counters follow.
"""

from __future__ import annotations

import logging
from typing import Any

from src.domains.course.entities import Course
from src.domains.course.repository import CourseRepository
from src.domains.errors import CourseNotFoundError, SectionNotFoundError
from src.domains.section.entities import Section
from src.domains.section.repository import SectionRepository
from src.domains.shared.guards import ensure_can_manage_course, find_replay
from src.domains.shared.service import DomainService
from src.infrastructure.cache.keys import CacheKeys
from src.infrastructure.events.types import EventTypes
from src.infrastructure.telemetry.tracing import traced
from src.models.section import (
    CreateSectionCommand,
    DeleteSectionCommand,
    SectionResponse,
    UpdateSectionCommand,
)

logger = logging.getLogger(__name__)


class SectionService(DomainService):
    """Service for course sections."""

    def __init__(
        self,
        sections: SectionRepository,
        courses: CourseRepository,
        **collaborators: Any,
    ) -> None:
        super().__init__(**collaborators)
        self.sections = sections
        self.courses = courses

    @traced("section.create")
    async def create_section(self, command: CreateSectionCommand) -> SectionResponse:
        """Add a section to a course.

        Raises:
            CourseNotFoundError: If course not found.
            UnauthorizedError: If the user cannot manage the course.
        """
        existing = await find_replay(command.idempotency_key, self.sections.find_by_idempotency_key, "section")
        if existing is not None:
            return SectionResponse.model_validate(existing)

        course = await self._get_course(command.course_id)
        ensure_can_manage_course(course, command.user_id, command.is_admin)

        section = await self.sections.save(
            Section(
                course_id=course.id,
                title=command.title.strip(),
                description=command.description,
                order=command.order,
                is_published=command.is_published,
                idempotency_key=command.idempotency_key,
            )
        )

        logger.info("Created section: section=%s, course=%s", section.id, course.id)

        await self._invalidate([CacheKeys.course_sections(course.id)])
        await self._publish_local(
            EventTypes.Section.CREATED,
            {"course_id": course.id, "section_id": section.id},
        )
        return SectionResponse.model_validate(section)

    @traced("section.update")
    async def update_section(self, command: UpdateSectionCommand) -> SectionResponse:
        """Partially update a section.

        Raises:
            CourseNotFoundError: If course not found.
            UnauthorizedError: If the user cannot manage the course.
            SectionNotFoundError: If the section is not part of the course.
        """
        course = await self._get_course(command.course_id)
        ensure_can_manage_course(course, command.user_id, command.is_admin)
        section = await self._get_section(command.section_id, course.id)

        section.update_details(
            title=command.title,
            description=command.description,
            order=command.order,
            is_published=command.is_published,
        )
        section = await self.sections.update(section)

        logger.info("Updated section: section=%s, course=%s", section.id, course.id)

        await self._invalidate([CacheKeys.section(section.id), CacheKeys.course_sections(course.id)])
        return SectionResponse.model_validate(section)

    @traced("section.delete")
    async def delete_section(self, command: DeleteSectionCommand) -> None:
        """Soft delete a section.

        Lessons and quizzes of the section are left untouched.

        Raises:
            CourseNotFoundError: If course not found.
            UnauthorizedError: If the user cannot manage the course.
            SectionNotFoundError: If the section is not part of the course.
        """
        course = await self._get_course(command.course_id)
        ensure_can_manage_course(course, command.user_id, command.is_admin)
        section = await self._get_section(command.section_id, course.id)

        section.soft_delete()
        await self.sections.update(section)

        logger.info("Deleted section: section=%s, course=%s", section.id, course.id)

        await self._invalidate([CacheKeys.section(section.id), CacheKeys.course_sections(course.id)])
        await self._publish_local(
            EventTypes.Section.DELETED,
            {"course_id": course.id, "section_id": section.id},
        )

    @traced("section.get")
    async def get_section(self, section_id: str) -> SectionResponse:
        """Get a section by id.

        Raises:
            SectionNotFoundError: If section not found.
        """

        async def load() -> dict[str, Any] | None:
            section = await self.sections.find_by_id(section_id)
            if section is None or section.is_deleted:
                return None
            return SectionResponse.model_validate(section).model_dump(mode="json")

        data = await self._cached(CacheKeys.section(section_id), load)
        if data is None:
            raise SectionNotFoundError(section_id=section_id)
        return SectionResponse.model_validate(data)

    @traced("section.list")
    async def list_sections(self, course_id: str) -> list[SectionResponse]:
        """List the active sections of a course in order."""

        async def load() -> list[dict[str, Any]]:
            sections = await self.sections.find_by_course_id(course_id)
            return [
                SectionResponse.model_validate(section).model_dump(mode="json")
                for section in sorted(sections, key=lambda s: s.order)
                if not section.is_deleted
            ]

        data = await self._cached(CacheKeys.course_sections(course_id), load)
        return [SectionResponse.model_validate(item) for item in data]

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
