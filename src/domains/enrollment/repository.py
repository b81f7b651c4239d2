# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Persistence contracts for enrollments and progress entries.

Enrollment lookups return enrollments with their progress entries attached,
and the list lookups skip soft-deleted enrollments. Enrollment writes cover
the enrollment row only; progress entries are written through
ProgressRepository. update() raises ConcurrencyConflictError when the stored
version no longer matches.
"""

from abc import ABC, abstractmethod

from src.domains.enrollment.entities import Enrollment, Progress


class EnrollmentRepository(ABC):
    """Abstract enrollment store. Missing enrollments are returned as None."""

    @abstractmethod
    async def find_by_id(self, enrollment_id: str) -> Enrollment | None:
        ...

    @abstractmethod
    async def find_by_student_and_course(self, student_id: str, course_id: str) -> Enrollment | None:
        ...

    @abstractmethod
    async def find_by_student_id(self, student_id: str) -> list[Enrollment]:
        """Enrollments of a student that are not soft-deleted, newest first."""
        ...

    @abstractmethod
    async def find_by_course_id(self, course_id: str) -> list[Enrollment]:
        """Enrollments of a course that are not soft-deleted, newest first."""
        ...

    @abstractmethod
    async def save(self, enrollment: Enrollment) -> Enrollment:
        """Insert a new enrollment."""
        ...

    @abstractmethod
    async def update(self, enrollment: Enrollment) -> Enrollment:
        """Persist enrollment fields with a conditional version check."""
        ...


class ProgressRepository(ABC):
    """Abstract progress entry store."""

    @abstractmethod
    async def find_by_enrollment_id(self, enrollment_id: str) -> list[Progress]:
        ...

    @abstractmethod
    async def upsert_many(self, entries: list[Progress]) -> list[Progress]:
        ...
