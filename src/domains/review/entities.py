# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course review entity.

A review is written by an enrolled student and carries a denormalized
snapshot of the author so listings do not need a user lookup.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

from src.domains.errors import ReviewValidationError
from src.utils.datetime import utc_now


@dataclass(frozen=True)
class UserSnapshot:
    """Author details copied onto the review at write time."""

    id: str
    name: str | None = None
    avatar: str | None = None
    email: str | None = None


@dataclass
class Review:
    """Review of a course by one of its students.

    Attributes:
        user_id: Author.
        user: Author snapshot.
        course_id: Reviewed course.
        enrollment_id: Enrollment the author reviewed through.
        rating: Integer rating between 1 and 5.
        comment: Free text.
        version: Optimistic concurrency version, bumped by repositories.
    """

    user_id: str
    user: UserSnapshot
    course_id: str
    enrollment_id: str
    rating: int
    comment: str = ""
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    deleted_at: datetime | None = None
    version: int = 0

    def __post_init__(self) -> None:
        self.validate_rating()

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def validate_rating(self) -> None:
        """Raise ReviewValidationError unless rating is an integer in [1, 5]."""
        if isinstance(self.rating, bool) or not isinstance(self.rating, int):
            raise ReviewValidationError("Rating must be an integer", rating=self.rating)
        if not 1 <= self.rating <= 5:
            raise ReviewValidationError("Rating must be between 1 and 5", rating=self.rating)

    def update(self, rating: int, comment: str | None = None) -> None:
        if self.is_deleted:
            raise ReviewValidationError("Cannot update a deleted review")
        self.rating = rating
        if comment is not None:
            self.comment = comment
        self.updated_at = utc_now()

    def delete(self) -> None:
        if self.is_deleted:
            raise ReviewValidationError("Review already deleted")
        self.deleted_at = utc_now()
        self.updated_at = self.deleted_at
