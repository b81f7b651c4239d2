# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Persistence contract for courses.

Implementations return None for missing or soft-deleted courses and raise
ConcurrencyConflictError from update() when the stored version no longer
matches the version the course was loaded with.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from src.domains.course.entities import Course, CourseLevel, CourseStatus

# Fields a course listing may be sorted by.
SORTABLE_FIELDS = ("updated_at", "created_at", "title", "price", "rating")


@dataclass(frozen=True)
class CourseQuery:
    """Filter, sort and page of a course listing.

    Every filter left as None (or empty) matches all courses. Soft-deleted
    courses are never listed.
    """

    instructor_id: str | None = None
    status: CourseStatus | None = None
    search: str | None = None
    category_ids: tuple[str, ...] = ()
    levels: tuple[CourseLevel, ...] = ()
    min_price: float | None = None
    max_price: float | None = None
    min_rating: float | None = None
    sort_by: str = "updated_at"
    descending: bool = True
    limit: int = 10
    offset: int = 0


class CourseRepository(ABC):
    """Abstract course store."""

    @abstractmethod
    async def find_by_id(self, course_id: str) -> Course | None:
        """Load an active course by id."""
        ...

    @abstractmethod
    async def find_by_slug(self, slug: str) -> Course | None:
        """Load an active course by slug."""
        ...

    @abstractmethod
    async def find_by_idempotency_key(self, key: str) -> Course | None:
        """Load the course created with the given idempotency key."""
        ...

    @abstractmethod
    async def find_all(self, query: CourseQuery) -> tuple[list[Course], int]:
        """List active courses matching a query.

        Returns:
            Tuple of (courses on the requested page, total matching count).
        """
        ...

    @abstractmethod
    async def save(self, course: Course) -> Course:
        """Insert a new course."""
        ...

    @abstractmethod
    async def update(self, course: Course) -> Course:
        """Persist a modified course with a conditional version check."""
        ...
