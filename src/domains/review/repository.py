# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Persistence contract for reviews.

save() enforces one active review per user and course and raises
AlreadyReviewedError otherwise. update() and delete() are conditional
writes: they raise ConcurrencyConflictError when the stored version no
longer matches the version the review was loaded with, so a review change
is committed at most once per loaded state.
"""

from abc import ABC, abstractmethod

from src.domains.review.entities import Review


class ReviewRepository(ABC):
    """Abstract review store.

    Lookups ignore soft-deleted reviews. Missing reviews are returned as
    None.
    """

    @abstractmethod
    async def find_by_id(self, review_id: str) -> Review | None:
        ...

    @abstractmethod
    async def find_by_user_and_course(self, user_id: str, course_id: str) -> Review | None:
        ...

    @abstractmethod
    async def find_by_enrollment_id(self, enrollment_id: str) -> Review | None:
        ...

    @abstractmethod
    async def find_by_course_id(
        self,
        course_id: str,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Review], int]:
        """Page through the reviews of a course, newest first.

        Returns:
            Tuple of (reviews, total count).
        """
        ...

    @abstractmethod
    async def save(self, review: Review) -> Review:
        """Insert a review, unique per user and course among active reviews."""
        ...

    @abstractmethod
    async def update(self, review: Review) -> Review:
        """Persist a modified review with a conditional version check."""
        ...

    @abstractmethod
    async def delete(self, review: Review) -> None:
        """Persist the soft deletion of a review with a version check."""
        ...
