# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course aggregate.

The course owns its publication lifecycle, its price, the counters of its
content (sections, lessons, quizzes) and the running mean of its review
ratings. The mean is maintained incrementally: every review mutation
adjusts it in O(1) instead of recomputing it from all reviews.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from src.domains.errors import CourseValidationError
from src.utils.datetime import utc_now
from src.utils.text import slugify

MIN_RATING = 1
MAX_RATING = 5


class CourseStatus(str, Enum):
    """Publication status of a course."""

    DRAFT = "draft"
    PUBLISHED = "published"
    UNPUBLISHED = "unpublished"


class CourseLevel(str, Enum):
    """Audience level of a course."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    ALL_LEVELS = "all-levels"


def validate_rating(rating: Any) -> int:
    """Validate a review rating.

    Args:
        rating: Candidate rating.

    Returns:
        The rating as an integer.

    Raises:
        CourseValidationError: If rating is not an integer in [1, 5].
    """
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise CourseValidationError("Rating must be an integer", rating=rating)
    if not MIN_RATING <= rating <= MAX_RATING:
        raise CourseValidationError(
            f"Rating must be between {MIN_RATING} and {MAX_RATING}",
            rating=rating,
        )
    return rating


@dataclass
class Course:
    """Course aggregate root.

    Attributes:
        id: Course identifier.
        instructor_id: Owning instructor.
        title: Course title.
        slug: URL slug derived from the title, unique across courses.
        status: Publication status.
        rating: Mean of all active review ratings.
        number_of_rating: Number of active review ratings.
        students: Number of enrolled students.
        number_of_sections: Active sections.
        number_of_lessons: Active lessons.
        number_of_quizzes: Active quizzes.
        version: Optimistic concurrency version, bumped by repositories.
    """

    instructor_id: str
    title: str
    slug: str = ""
    id: str = field(default_factory=lambda: str(uuid4()))
    description: str | None = None
    thumbnail: str | None = None
    level: CourseLevel = CourseLevel.ALL_LEVELS
    language: str = "en"
    category_id: str | None = None
    price: float = 0.0
    discount_price: float | None = None
    currency: str = "USD"
    status: CourseStatus = CourseStatus.DRAFT
    rating: float = 0.0
    number_of_rating: int = 0
    students: int = 0
    number_of_sections: int = 0
    number_of_lessons: int = 0
    number_of_quizzes: int = 0
    idempotency_key: str | None = None
    published_at: datetime | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    deleted_at: datetime | None = None
    version: int = 0

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise CourseValidationError("Course title is required")
        if not self.instructor_id:
            raise CourseValidationError("Course instructor is required")
        if not self.slug:
            self.slug = slugify(self.title)
        if not self.slug:
            raise CourseValidationError("Course title must contain letters or digits")
        self._validate_price(self.price, self.discount_price)

    @classmethod
    def create(
        cls,
        instructor_id: str,
        title: str,
        idempotency_key: str | None = None,
        **details: Any,
    ) -> Course:
        """Build a new draft course with a slug derived from its title."""
        return cls(
            instructor_id=instructor_id,
            title=title.strip(),
            idempotency_key=idempotency_key,
            **details,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def is_published(self) -> bool:
        return self.status == CourseStatus.PUBLISHED

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def is_owned_by(self, user_id: str) -> bool:
        return self.instructor_id == user_id

    def publication_blockers(self) -> list[str]:
        """List the reasons the course cannot be published yet."""
        reasons: list[str] = []
        if self.number_of_sections < 1:
            reasons.append("course must have at least one section")
        if self.number_of_lessons < 1:
            reasons.append("course must have at least one lesson")
        if self.price <= 0:
            reasons.append("course must have a price greater than zero")
        if not self.thumbnail:
            reasons.append("course must have a thumbnail")
        return reasons

    def publish(self) -> bool:
        """Publish the course.

        Returns:
            False when the course was already published, True otherwise.

        Raises:
            CourseValidationError: If the course is deleted or incomplete.
        """
        if self.is_published:
            return False
        if self.is_deleted:
            raise CourseValidationError("Deleted course cannot be published")

        blockers = self.publication_blockers()
        if blockers:
            raise CourseValidationError(
                "Course cannot be published: " + "; ".join(blockers),
                reasons=blockers,
            )

        self.status = CourseStatus.PUBLISHED
        self.published_at = utc_now()
        self._touch()
        return True

    def unpublish(self) -> None:
        """Take a published course offline.

        Raises:
            CourseValidationError: If the course is not published.
        """
        if not self.is_published:
            raise CourseValidationError(
                "Only published courses can be unpublished",
                status=self.status.value,
            )
        self.status = CourseStatus.UNPUBLISHED
        self._touch()

    def soft_delete(self) -> None:
        if self.is_deleted:
            raise CourseValidationError("Course is already deleted")
        self.deleted_at = utc_now()
        self.status = CourseStatus.UNPUBLISHED if self.is_published else self.status
        self._touch()

    # -------------------------------------------------------------------------
    # Details and price
    # -------------------------------------------------------------------------

    def update_details(
        self,
        title: str | None = None,
        description: str | None = None,
        thumbnail: str | None = None,
        level: CourseLevel | None = None,
        language: str | None = None,
        category_id: str | None = None,
    ) -> bool:
        """Apply a partial update.

        Returns:
            True if the title changed and the slug was re-derived.
        """
        slug_changed = False
        if title is not None:
            title = title.strip()
            if not title:
                raise CourseValidationError("Course title is required")
            new_slug = slugify(title)
            if not new_slug:
                raise CourseValidationError("Course title must contain letters or digits")
            slug_changed = new_slug != self.slug
            self.title = title
            self.slug = new_slug
        if description is not None:
            self.description = description
        if thumbnail is not None:
            self.thumbnail = thumbnail
        if level is not None:
            self.level = level
        if language is not None:
            self.language = language
        if category_id is not None:
            self.category_id = category_id
        self._touch()
        return slug_changed

    def update_price(
        self,
        price: float,
        discount_price: float | None = None,
        currency: str | None = None,
    ) -> None:
        self._validate_price(price, discount_price)
        self.price = price
        self.discount_price = discount_price
        if currency:
            self.currency = currency.upper()
        self._touch()

    @staticmethod
    def _validate_price(price: float, discount_price: float | None) -> None:
        if price < 0:
            raise CourseValidationError("Price cannot be negative", price=price)
        if discount_price is not None and not 0 <= discount_price <= price:
            raise CourseValidationError(
                "Discount price must be between zero and the price",
                discount_price=discount_price,
            )

    # -------------------------------------------------------------------------
    # Counters
    # -------------------------------------------------------------------------

    def increment_students(self) -> None:
        self.students += 1
        self._touch()

    def decrement_students(self) -> None:
        self.students = max(0, self.students - 1)
        self._touch()

    def adjust_content_counts(
        self,
        sections: int = 0,
        lessons: int = 0,
        quizzes: int = 0,
    ) -> None:
        """Shift the content counters, never below zero."""
        self.number_of_sections = max(0, self.number_of_sections + sections)
        self.number_of_lessons = max(0, self.number_of_lessons + lessons)
        self.number_of_quizzes = max(0, self.number_of_quizzes + quizzes)
        self._touch()

    # -------------------------------------------------------------------------
    # Rating
    # -------------------------------------------------------------------------

    def rate_course(self, rating: int) -> None:
        """Fold a new review rating into the running mean."""
        rating = validate_rating(rating)
        total = self.rating * self.number_of_rating + rating
        self.number_of_rating += 1
        self.rating = total / self.number_of_rating
        self._touch()

    def change_rating(self, old_rating: int, new_rating: int) -> None:
        """Replace one rating with another, keeping the count.

        Raises:
            CourseValidationError: If a rating is invalid or there is no
                rating to change.
        """
        old_rating = validate_rating(old_rating)
        new_rating = validate_rating(new_rating)
        if self.number_of_rating <= 0:
            raise CourseValidationError("Course has no ratings to update")
        total = self.rating * self.number_of_rating - old_rating + new_rating
        self.rating = total / self.number_of_rating
        self._touch()

    def remove_rating(self, rating: int) -> None:
        """Withdraw a rating from the running mean.

        Removing the last rating resets the mean to zero.

        Raises:
            CourseValidationError: If the rating is invalid or there is no
                rating to remove.
        """
        rating = validate_rating(rating)
        if self.number_of_rating <= 0:
            raise CourseValidationError("Course has no ratings to remove")
        if self.number_of_rating == 1:
            self.rating = 0.0
            self.number_of_rating = 0
        else:
            total = self.rating * self.number_of_rating - rating
            self.number_of_rating -= 1
            self.rating = total / self.number_of_rating
        self._touch()

    def _touch(self) -> None:
        self.updated_at = utc_now()
