# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Review service.

Reviews feed the course rating. Each review mutation commits the review
first, with a conditional write, and then folds the rating change into the
course in a separate conflict retry cycle that reloads only the course. A
duplicated or concurrent command therefore loses on the review write and
never applies its rating change twice.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from src.domains.course.entities import Course, validate_rating
from src.domains.course.repository import CourseRepository
from src.domains.enrollment.entities import Enrollment
from src.domains.enrollment.repository import EnrollmentRepository
from src.domains.errors import (
    AlreadyReviewedError,
    CourseNotFoundError,
    EnrollmentNotFoundError,
    ReviewNotFoundError,
    UnauthorizedError,
)
from src.domains.review.entities import Review, UserSnapshot
from src.domains.review.repository import ReviewRepository
from src.domains.shared.service import DomainService
from src.infrastructure.cache.keys import CacheKeys
from src.infrastructure.events.types import IntegrationEvents, KafkaTopics
from src.infrastructure.telemetry.tracing import traced
from src.models.common import PageParams
from src.models.review import (
    AddReviewCommand,
    DeleteReviewCommand,
    ReviewCommand,
    ReviewListResponse,
    ReviewResponse,
    UpdateReviewCommand,
)

logger = logging.getLogger(__name__)


class ReviewService(DomainService):
    """Service for course reviews and the course rating."""

    def __init__(
        self,
        reviews: ReviewRepository,
        courses: CourseRepository,
        enrollments: EnrollmentRepository,
        **collaborators: Any,
    ) -> None:
        super().__init__(**collaborators)
        self.reviews = reviews
        self.courses = courses
        self.enrollments = enrollments

    @traced("review.add")
    async def add_review(self, command: AddReviewCommand) -> ReviewResponse:
        """Review a course the user is enrolled in.

        Args:
            command: Review data with the enrollment it is written through.

        Returns:
            The created review.

        Raises:
            EnrollmentNotFoundError: If the enrollment is missing or does not
                belong to the user and course.
            CourseNotFoundError: If course not found.
            AlreadyReviewedError: If the user already reviewed the course.
            ReviewValidationError: If the rating is invalid.
        """
        course, _ = await self._load_context(command)

        if await self.reviews.find_by_user_and_course(command.user_id, course.id) is not None:
            raise AlreadyReviewedError(user_id=command.user_id, course_id=course.id)

        review = Review(
            user_id=command.user_id,
            user=UserSnapshot(
                id=command.user_id,
                name=command.author.name,
                avatar=command.author.avatar,
                email=command.author.email,
            ),
            course_id=course.id,
            enrollment_id=command.enrollment_id,
            rating=command.rating,
            comment=command.comment,
        )
        review = await self.reviews.save(review)
        course = await self._apply_rating(course.id, lambda c: c.rate_course(review.rating))

        logger.info(
            "Added review: review=%s, course=%s, rating=%d, course_rating=%.4f (%d)",
            review.id,
            course.id,
            review.rating,
            course.rating,
            course.number_of_rating,
        )

        await self._invalidate_reviews(course, review)
        await self._emit(
            KafkaTopics.COURSE_REVIEW_SUBMITTED,
            IntegrationEvents.COURSE_REVIEW_SUBMITTED,
            {
                "reviewId": review.id,
                "courseId": course.id,
                "instructorId": course.instructor_id,
                "userId": review.user_id,
                "rating": review.rating,
                "comment": review.comment,
                "courseRating": course.rating,
                "numberOfRating": course.number_of_rating,
            },
            key=course.id,
        )
        return ReviewResponse.model_validate(review)

    @traced("review.update")
    async def update_review(self, command: UpdateReviewCommand) -> ReviewResponse:
        """Change the rating and comment of the user's review.

        Raises:
            EnrollmentNotFoundError: If the enrollment does not match.
            CourseNotFoundError: If course not found.
            ReviewNotFoundError: If review not found.
            UnauthorizedError: If the user did not write the review.
            CourseValidationError: If the new rating is invalid.
        """

        async def cycle() -> tuple[Review, int]:
            course, _ = await self._load_context(command)
            review = await self._get_own_review(command, course.id)
            new_rating = validate_rating(command.rating)

            old_rating = review.rating
            review.update(new_rating, command.comment)
            return await self.reviews.update(review), old_rating

        review, old_rating = await self._with_retry(cycle)
        course = await self._apply_rating(
            review.course_id,
            lambda c: c.change_rating(old_rating, review.rating),
        )

        logger.info("Updated review: review=%s, course=%s, rating=%d", review.id, course.id, review.rating)

        await self._invalidate_reviews(course, review)
        return ReviewResponse.model_validate(review)

    @traced("review.delete")
    async def delete_review(self, command: DeleteReviewCommand) -> None:
        """Soft delete the user's review and withdraw its rating.

        Raises:
            EnrollmentNotFoundError: If the enrollment does not match.
            CourseNotFoundError: If course not found.
            ReviewNotFoundError: If review not found, including a review
                deleted by a concurrent command.
            UnauthorizedError: If the user did not write the review.
        """

        async def cycle() -> Review:
            course, _ = await self._load_context(command)
            review = await self._get_own_review(command, course.id)
            review.delete()
            await self.reviews.delete(review)
            return review

        review = await self._with_retry(cycle)
        course = await self._apply_rating(review.course_id, lambda c: c.remove_rating(review.rating))

        logger.info("Deleted review: review=%s, course=%s", review.id, course.id)

        await self._invalidate_reviews(course, review)

    @traced("review.get")
    async def get_review(self, review_id: str) -> ReviewResponse:
        """Get a review by id.

        Raises:
            ReviewNotFoundError: If review not found.
        """

        async def load() -> dict[str, Any] | None:
            review = await self.reviews.find_by_id(review_id)
            if review is None or review.is_deleted:
                return None
            return ReviewResponse.model_validate(review).model_dump(mode="json")

        data = await self._cached(CacheKeys.review(review_id), load)
        if data is None:
            raise ReviewNotFoundError(review_id=review_id)
        return ReviewResponse.model_validate(data)

    @traced("review.get_by_enrollment")
    async def get_review_by_enrollment(self, enrollment_id: str, user_id: str) -> ReviewResponse:
        """Get the review a student wrote through one of their enrollments.

        Raises:
            EnrollmentNotFoundError: If the enrollment is missing or belongs
                to another user.
            ReviewNotFoundError: If no review was written through it.
        """
        enrollment = await self.enrollments.find_by_id(enrollment_id)
        if not enrollment or enrollment.is_deleted:
            raise EnrollmentNotFoundError(enrollment_id=enrollment_id)
        if not enrollment.belongs_to(user_id):
            logger.warning("Review lookup enrollment mismatch: enrollment=%s, user=%s", enrollment.id, user_id)
            raise EnrollmentNotFoundError(
                "Enrollment does not match the user",
                enrollment_id=enrollment.id,
                reason="mismatch",
            )

        review = await self.reviews.find_by_enrollment_id(enrollment.id)
        if review is None or review.is_deleted:
            raise ReviewNotFoundError(enrollment_id=enrollment.id)
        return ReviewResponse.model_validate(review)

    @traced("review.list")
    async def list_course_reviews(self, course_id: str, page: PageParams | None = None) -> ReviewListResponse:
        """Page through the reviews of a course, newest first."""
        page = page or PageParams()

        async def load() -> dict[str, Any]:
            reviews, total = await self.reviews.find_by_course_id(course_id, limit=page.limit, offset=page.offset)
            return ReviewListResponse(
                items=[ReviewResponse.model_validate(review) for review in reviews],
                total=total,
                limit=page.limit,
                offset=page.offset,
            ).model_dump(mode="json")

        data = await self._cached(CacheKeys.course_reviews_page(course_id, page.limit, page.offset), load)
        return ReviewListResponse.model_validate(data)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _load_context(self, command: ReviewCommand) -> tuple[Course, Enrollment]:
        """Load and cross-check the enrollment and course of a review command."""
        enrollment = await self.enrollments.find_by_id(command.enrollment_id)
        if not enrollment or enrollment.is_deleted:
            raise EnrollmentNotFoundError(enrollment_id=command.enrollment_id)

        course = await self.courses.find_by_id(command.course_id)
        if not course:
            raise CourseNotFoundError(course_id=command.course_id)

        if not enrollment.belongs_to(command.user_id, course.id):
            logger.warning(
                "Review enrollment mismatch: enrollment=%s, user=%s, course=%s",
                enrollment.id,
                command.user_id,
                course.id,
            )
            raise EnrollmentNotFoundError(
                "Enrollment does not match the user and course",
                enrollment_id=enrollment.id,
                reason="mismatch",
            )
        return course, enrollment

    async def _get_own_review(self, command: UpdateReviewCommand | DeleteReviewCommand, course_id: str) -> Review:
        review = await self.reviews.find_by_id(command.review_id)
        if not review or review.is_deleted or review.course_id != course_id:
            raise ReviewNotFoundError(review_id=command.review_id)
        if review.user_id != command.user_id:
            raise UnauthorizedError(
                "Only the author can modify this review",
                review_id=review.id,
                user_id=command.user_id,
            )
        return review

    async def _apply_rating(self, course_id: str, change: Callable[[Course], None]) -> Course:
        """Fold a committed review change into the course rating.

        Only the course is reloaded on a conflict; the review change it
        reflects is already committed and is applied exactly once.
        """

        async def cycle() -> Course:
            course = await self.courses.find_by_id(course_id)
            if not course:
                raise CourseNotFoundError(course_id=course_id)
            change(course)
            return await self.courses.update(course)

        return await self._with_retry(cycle)

    async def _invalidate_reviews(self, course: Course, review: Review) -> None:
        await self._invalidate(
            [CacheKeys.review(review.id), CacheKeys.course(course.id), CacheKeys.course_by_slug(course.slug)],
            [CacheKeys.course_reviews_pattern(course.id), CacheKeys.instructor_courses_pattern(course.instructor_id)],
        )
