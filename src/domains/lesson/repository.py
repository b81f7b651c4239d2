# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Persistence contract for lessons."""

from abc import ABC, abstractmethod

from src.domains.lesson.entities import Lesson


class LessonRepository(ABC):
    """Abstract lesson store. Missing lessons are returned as None."""

    @abstractmethod
    async def find_by_id(self, lesson_id: str) -> Lesson | None:
        ...

    @abstractmethod
    async def find_by_idempotency_key(self, key: str) -> Lesson | None:
        ...

    @abstractmethod
    async def find_by_section_id(self, section_id: str) -> list[Lesson]:
        """List active lessons of a section ordered by position."""
        ...

    @abstractmethod
    async def find_by_course_id(self, course_id: str) -> list[Lesson]:
        """List active lessons across all sections of a course."""
        ...

    @abstractmethod
    async def save(self, lesson: Lesson) -> Lesson:
        ...

    @abstractmethod
    async def update(self, lesson: Lesson) -> Lesson:
        ...
