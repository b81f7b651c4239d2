# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment service for managing student course enrollments.

This module provides the EnrollmentService class for:
- Enrollment creation from paid orders (each order event applied once)
- Quiz result and quiz attempt submission
- Lesson watch progress and completion
- Enrollment withdrawal
- Enrollment and progress lookups
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from src.domains.course.entities import Course
from src.domains.course.repository import CourseRepository
from src.domains.enrollment.entities import Enrollment, Progress, UnitType
from src.domains.enrollment.repository import EnrollmentRepository, ProgressRepository
from src.domains.errors import (
    CourseNotFoundError,
    DomainError,
    EnrollmentNotFoundError,
    EnrollmentValidationError,
    QuizNotFoundError,
    UnauthorizedError,
)
from src.domains.lesson.repository import LessonRepository
from src.domains.quiz.entities import Quiz
from src.domains.quiz.repository import QuizRepository
from src.domains.shared.guards import ensure_can_manage_course
from src.domains.shared.service import DomainService
from src.infrastructure.cache.keys import CacheKeys
from src.infrastructure.cache.processed_events import ProcessedEventStore
from src.infrastructure.events.types import IntegrationEvents, KafkaTopics
from src.infrastructure.telemetry.tracing import traced
from src.models.enrollment import (
    DeleteEnrollmentCommand,
    EnrollmentCheckResponse,
    EnrollmentProgressResponse,
    EnrollmentResponse,
    OrderCourseSucceededEvent,
    ProgressResponse,
    QuizSubmissionResponse,
    SubmitQuizAttemptCommand,
    SubmitQuizCommand,
    UpdateLessonProgressCommand,
)
from src.utils.datetime import format_iso

logger = logging.getLogger(__name__)

# Grades a quiz for an enrollment progress entry and returns the score.
QuizGrader = Callable[[Quiz, Progress], float]


class EnrollmentService(DomainService):
    """Service for student enrollments and their progress.

    Attributes:
        enrollments: Enrollment repository.
        progress: Progress entry repository.
        courses: Course repository.
        lessons: Lesson repository, used to seed lesson progress.
        quizzes: Quiz repository, used to seed and grade quiz progress.
        processed_events: Consumed order event store, optional.
    """

    def __init__(
        self,
        enrollments: EnrollmentRepository,
        progress: ProgressRepository,
        courses: CourseRepository,
        lessons: LessonRepository,
        quizzes: QuizRepository,
        processed_events: ProcessedEventStore | None = None,
        **collaborators: Any,
    ) -> None:
        super().__init__(**collaborators)
        self.enrollments = enrollments
        self.progress = progress
        self.courses = courses
        self.lessons = lessons
        self.quizzes = quizzes
        self.processed_events = processed_events

    # =========================================================================
    # Order consumption
    # =========================================================================

    @traced("enrollment.create_from_order")
    async def create_enrollments_from_order(self, event: OrderCourseSucceededEvent) -> list[EnrollmentResponse]:
        """Enroll the buyer of an order in every purchased course.

        Items whose course is missing or already enrolled are skipped. A
        redelivered order event is ignored.

        Args:
            event: Paid order event.

        Returns:
            The enrollments created for this delivery.

        Raises:
            RedisError: If the processed event store is unavailable.
        """
        if not event.items:
            logger.warning("Order has no course items: order=%s", event.order_id)
            return []

        if self.processed_events is not None and not await self.processed_events.claim(event.event_id):
            return []

        created: list[EnrollmentResponse] = []
        try:
            for item in event.items:
                try:
                    enrollment = await self._enroll(event, item.course_id)
                except DomainError as e:
                    logger.error(
                        "Failed to enroll from order: order=%s, user=%s, course=%s, error=%s",
                        event.order_id,
                        event.user_id,
                        item.course_id,
                        e,
                    )
                    continue
                if enrollment is not None:
                    created.append(self._to_response(enrollment))
        except Exception:
            if self.processed_events is not None:
                await self.processed_events.release(event.event_id)
            raise

        logger.info(
            "Processed order: order=%s, user=%s, items=%d, enrolled=%d",
            event.order_id,
            event.user_id,
            len(event.items),
            len(created),
        )
        return created

    async def _enroll(self, event: OrderCourseSucceededEvent, course_id: str) -> Enrollment | None:
        existing = await self.enrollments.find_by_student_and_course(event.user_id, course_id)
        if existing is not None and not existing.is_deleted:
            logger.warning("User already enrolled, skipping: user=%s, course=%s", event.user_id, course_id)
            return None

        course = await self.courses.find_by_id(course_id)
        if course is None or course.is_deleted:
            logger.warning("Course not found, skipping enrollment: course=%s, order=%s", course_id, event.order_id)
            return None

        enrollment = Enrollment(
            student_id=event.user_id,
            course_id=course.id,
            instructor_id=course.instructor_id,
            order_id=event.order_id,
            idempotency_key=f"{event.order_id}:{course.id}",
        )
        entries = await self._seed_progress(enrollment.id, course.id)
        enrollment.attach_progress(entries)

        enrollment = await self.enrollments.save(enrollment)
        await self.progress.upsert_many(entries)

        logger.info(
            "Created enrollment: enrollment=%s, user=%s, course=%s, units=%d",
            enrollment.id,
            enrollment.student_id,
            course.id,
            enrollment.total_learning_units,
        )

        course = await self._adjust_students(course.id, increment=True)
        await self._invalidate(
            [CacheKeys.enrollment_check(enrollment.student_id, enrollment.course_id)],
        )
        await self._emit(
            KafkaTopics.COURSE_ENROLLMENT_CREATED,
            IntegrationEvents.ENROLLMENT_CREATED,
            {
                "enrollmentId": enrollment.id,
                "courseId": enrollment.course_id,
                "studentId": enrollment.student_id,
                "instructorId": enrollment.instructor_id,
                "orderId": enrollment.order_id,
                "enrolledAt": format_iso(enrollment.enrolled_at),
                "students": course.students if course else None,
            },
            key=enrollment.course_id,
        )
        await self._emit(
            KafkaTopics.NOTIFICATION_IN_APP,
            IntegrationEvents.NOTIFICATION_IN_APP,
            {
                "userId": enrollment.student_id,
                "title": "Enrollment successful",
                "message": "You've been successfully enrolled in your new course. Start learning now!",
                "type": "course_enrollment",
                "actionUrl": f"/learn/{enrollment.id}",
                "icon": "school",
                "priority": "high",
                "appId": "Course",
                "category": "enrollment",
            },
            key=enrollment.course_id,
        )
        return enrollment

    async def _seed_progress(self, enrollment_id: str, course_id: str) -> list[Progress]:
        """Build one progress entry per active lesson and quiz of a course."""
        entries = [
            Progress.for_lesson(enrollment_id, lesson.id, lesson.duration)
            for lesson in await self.lessons.find_by_course_id(course_id)
            if not lesson.is_deleted
        ]
        entries.extend(
            Progress.for_quiz(enrollment_id, quiz.id, quiz.is_required)
            for quiz in await self.quizzes.find_by_course_id(course_id)
            if not quiz.is_deleted
        )
        return entries

    # =========================================================================
    # Progress
    # =========================================================================

    @traced("enrollment.submit_quiz")
    async def submit_quiz(self, command: SubmitQuizCommand) -> QuizSubmissionResponse:
        """Record an already graded quiz result.

        Raises:
            EnrollmentNotFoundError: If enrollment not found.
            UnauthorizedError: If the enrollment belongs to another user.
            EnrollmentValidationError: If the enrollment is no longer active.
            QuizNotFoundError: If the quiz is not part of the course.
            ProgressNotFoundError: If the enrollment does not track the quiz.
        """
        return await self._record_quiz(
            command.user_id,
            command.enrollment_id,
            command.quiz_id,
            lambda _quiz, _entry: command.score,
        )

    @traced("enrollment.submit_quiz_attempt")
    async def submit_quiz_attempt(self, command: SubmitQuizAttemptCommand) -> QuizSubmissionResponse:
        """Grade submitted answers and record the attempt.

        Raises:
            EnrollmentNotFoundError: If enrollment not found.
            UnauthorizedError: If the enrollment belongs to another user.
            EnrollmentValidationError: If the enrollment is not active or the
                attempt limit is reached.
            QuizNotFoundError: If the quiz is not part of the course.
            ProgressNotFoundError: If the enrollment does not track the quiz.
        """

        def grade(quiz: Quiz, entry: Progress) -> float:
            if quiz.max_attempts is not None and entry.attempts >= quiz.max_attempts:
                raise EnrollmentValidationError(
                    "Maximum quiz attempts reached",
                    quiz_id=quiz.id,
                    max_attempts=quiz.max_attempts,
                )
            return quiz.evaluate_percentage(command.answers)

        return await self._record_quiz(command.user_id, command.enrollment_id, command.quiz_id, grade)

    async def _record_quiz(
        self,
        user_id: str,
        enrollment_id: str,
        quiz_id: str,
        grade: QuizGrader,
    ) -> QuizSubmissionResponse:
        async def cycle() -> tuple[Enrollment, Quiz, Progress, float, bool]:
            enrollment = await self._get_own_enrollment(enrollment_id, user_id)
            enrollment.ensure_active()

            quiz = await self.quizzes.find_by_id(quiz_id)
            if not quiz or quiz.is_deleted or quiz.course_id != enrollment.course_id:
                raise QuizNotFoundError(quiz_id=quiz_id)

            entry = enrollment.get_progress(quiz.id, UnitType.QUIZ)
            score = grade(quiz, entry)
            passed = quiz.is_passing(score)
            enrollment.complete_quiz(quiz.id, score, passed, quiz.is_required)

            enrollment = await self.enrollments.update(enrollment)
            await self.progress.upsert_many([entry])
            return enrollment, quiz, entry, score, passed

        enrollment, quiz, entry, score, passed = await self._with_retry(cycle)

        logger.info(
            "Recorded quiz result: enrollment=%s, quiz=%s, score=%.2f, passed=%s, attempts=%d, progress=%.2f",
            enrollment.id,
            quiz.id,
            score,
            passed,
            entry.attempts,
            enrollment.progress_percent,
        )

        await self._invalidate_enrollment(enrollment)
        return QuizSubmissionResponse(
            enrollment_id=enrollment.id,
            quiz_id=quiz.id,
            score=score,
            passing_score=quiz.passing_score,
            passed=passed,
            unit_completed=entry.completed,
            attempts=entry.attempts,
            progress_percent=enrollment.progress_percent,
            status=enrollment.status,
        )

    @traced("enrollment.update_lesson_progress")
    async def update_lesson_progress(self, command: UpdateLessonProgressCommand) -> EnrollmentResponse:
        """Record lesson watch progress or explicit completion.

        A lesson completes once 80 percent of it was watched.

        Raises:
            EnrollmentNotFoundError: If enrollment not found.
            UnauthorizedError: If the enrollment belongs to another user.
            EnrollmentValidationError: If the enrollment is no longer active.
            ProgressNotFoundError: If the enrollment does not track the lesson.
        """

        async def cycle() -> Enrollment:
            enrollment = await self._get_own_enrollment(command.enrollment_id, command.user_id)
            enrollment.ensure_active()

            entry = enrollment.get_progress(command.lesson_id, UnitType.LESSON)
            if command.position_seconds or command.duration_seconds:
                enrollment.record_lesson_watch(command.lesson_id, command.position_seconds, command.duration_seconds)
            if command.completed:
                enrollment.complete_lesson(command.lesson_id)

            enrollment = await self.enrollments.update(enrollment)
            await self.progress.upsert_many([entry])
            return enrollment

        enrollment = await self._with_retry(cycle)

        logger.info(
            "Updated lesson progress: enrollment=%s, lesson=%s, progress=%.2f, status=%s",
            enrollment.id,
            command.lesson_id,
            enrollment.progress_percent,
            enrollment.status.value,
        )

        await self._invalidate_enrollment(enrollment)
        return self._to_response(enrollment)

    # =========================================================================
    # Withdrawal
    # =========================================================================

    @traced("enrollment.delete")
    async def delete_enrollment(self, command: DeleteEnrollmentCommand) -> None:
        """Soft delete an enrollment with its progress entries.

        Reviews and certificates issued through the enrollment are kept.

        Raises:
            EnrollmentNotFoundError: If enrollment not found.
            UnauthorizedError: If the user is neither the student nor admin.
        """

        async def cycle() -> Enrollment:
            enrollment = await self._get_enrollment(command.enrollment_id)
            if not command.is_admin and enrollment.student_id != command.user_id:
                raise UnauthorizedError(
                    "Only the student or an admin can delete this enrollment",
                    enrollment_id=enrollment.id,
                    user_id=command.user_id,
                )
            enrollment.soft_delete()
            entries = list(enrollment.progress_entries)
            enrollment = await self.enrollments.update(enrollment)
            await self.progress.upsert_many(entries)
            return enrollment

        enrollment = await self._with_retry(cycle)
        await self._adjust_students(enrollment.course_id, increment=False)

        logger.info("Deleted enrollment: enrollment=%s, by=%s", enrollment.id, command.user_id)

        await self._invalidate_enrollment(enrollment)

    # =========================================================================
    # Queries
    # =========================================================================

    @traced("enrollment.get")
    async def get_enrollment(self, enrollment_id: str) -> EnrollmentResponse:
        """Get an enrollment with its progress entries.

        Raises:
            EnrollmentNotFoundError: If enrollment not found.
        """

        async def load() -> dict[str, Any] | None:
            enrollment = await self.enrollments.find_by_id(enrollment_id)
            if enrollment is None or enrollment.is_deleted:
                return None
            return self._to_response(enrollment).model_dump(mode="json")

        data = await self._cached(CacheKeys.enrollment(enrollment_id), load)
        if data is None:
            raise EnrollmentNotFoundError(enrollment_id=enrollment_id)
        return EnrollmentResponse.model_validate(data)

    @traced("enrollment.check")
    async def check_enrollment(self, user_id: str, course_id: str) -> EnrollmentCheckResponse:
        """Check whether a user is enrolled in a course."""

        async def load() -> dict[str, Any]:
            enrollment = await self.enrollments.find_by_student_and_course(user_id, course_id)
            if enrollment is None or enrollment.is_deleted:
                return EnrollmentCheckResponse(is_enrolled=False).model_dump(mode="json")
            return EnrollmentCheckResponse(
                is_enrolled=True,
                enrollment_id=enrollment.id,
                status=enrollment.status,
            ).model_dump(mode="json")

        data = await self._cached(CacheKeys.enrollment_check(user_id, course_id), load)
        return EnrollmentCheckResponse.model_validate(data)

    @traced("enrollment.list_by_user")
    async def list_user_enrollments(self, user_id: str) -> list[EnrollmentResponse]:
        enrollments = await self.enrollments.find_by_student_id(user_id)
        return [self._to_response(enrollment) for enrollment in enrollments]

    @traced("enrollment.list_by_course")
    async def list_course_enrollments(
        self,
        course_id: str,
        user_id: str,
        is_admin: bool = False,
    ) -> list[EnrollmentResponse]:
        """List the enrollments of a course for its instructor or an admin.

        Raises:
            CourseNotFoundError: If course not found.
            UnauthorizedError: If the user cannot manage the course.
        """
        course = await self.courses.find_by_id(course_id)
        if not course:
            raise CourseNotFoundError(course_id=course_id)
        ensure_can_manage_course(course, user_id, is_admin)

        enrollments = await self.enrollments.find_by_course_id(course_id)
        return [self._to_response(enrollment) for enrollment in enrollments]

    @traced("enrollment.get_progress")
    async def get_enrollment_progress(self, enrollment_id: str, user_id: str) -> EnrollmentProgressResponse:
        """Get the progress of an enrollment split into lessons and quizzes.

        Raises:
            EnrollmentNotFoundError: If enrollment not found.
            UnauthorizedError: If the enrollment belongs to another user.
        """

        async def load() -> dict[str, Any] | None:
            enrollment = await self.enrollments.find_by_id(enrollment_id)
            if enrollment is None or enrollment.is_deleted:
                return None
            entries = [entry for entry in enrollment.progress_entries if entry.is_active]
            return EnrollmentProgressResponse(
                enrollment_id=enrollment.id,
                course_id=enrollment.course_id,
                student_id=enrollment.student_id,
                status=enrollment.status,
                progress_percent=enrollment.progress_percent,
                completed_learning_units=enrollment.completed_learning_units,
                total_learning_units=enrollment.total_learning_units,
                lessons=[ProgressResponse.model_validate(e) for e in entries if e.unit_type == UnitType.LESSON],
                quizzes=[ProgressResponse.model_validate(e) for e in entries if e.unit_type == UnitType.QUIZ],
            ).model_dump(mode="json")

        data = await self._cached(CacheKeys.enrollment_progress(enrollment_id), load)
        if data is None:
            raise EnrollmentNotFoundError(enrollment_id=enrollment_id)

        progress = EnrollmentProgressResponse.model_validate(data)
        if progress.student_id != user_id:
            logger.warning("Progress accessed by another user: enrollment=%s, user=%s", enrollment_id, user_id)
            raise UnauthorizedError(
                "Enrollment belongs to another user",
                enrollment_id=enrollment_id,
                user_id=user_id,
            )
        return progress

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get_enrollment(self, enrollment_id: str) -> Enrollment:
        enrollment = await self.enrollments.find_by_id(enrollment_id)
        if not enrollment or enrollment.is_deleted:
            raise EnrollmentNotFoundError(enrollment_id=enrollment_id)
        return enrollment

    async def _get_own_enrollment(self, enrollment_id: str, user_id: str) -> Enrollment:
        enrollment = await self._get_enrollment(enrollment_id)
        if enrollment.student_id != user_id:
            logger.warning("Enrollment accessed by another user: enrollment=%s, user=%s", enrollment.id, user_id)
            raise UnauthorizedError(
                "Enrollment belongs to another user",
                enrollment_id=enrollment.id,
                user_id=user_id,
            )
        return enrollment

    async def _adjust_students(self, course_id: str, increment: bool) -> Course | None:
        async def cycle() -> Course | None:
            course = await self.courses.find_by_id(course_id)
            if course is None:
                logger.warning("Course not found while adjusting students: course=%s", course_id)
                return None
            if increment:
                course.increment_students()
            else:
                course.decrement_students()
            return await self.courses.update(course)

        course = await self._with_retry(cycle)
        if course is not None:
            await self._invalidate(
                [CacheKeys.course(course.id), CacheKeys.course_by_slug(course.slug)],
                [CacheKeys.instructor_courses_pattern(course.instructor_id)],
            )
        return course

    async def _invalidate_enrollment(self, enrollment: Enrollment) -> None:
        await self._invalidate(
            [
                CacheKeys.enrollment(enrollment.id),
                CacheKeys.enrollment_progress(enrollment.id),
                CacheKeys.enrollment_check(enrollment.student_id, enrollment.course_id),
            ]
        )

    def _to_response(self, enrollment: Enrollment) -> EnrollmentResponse:
        return EnrollmentResponse.model_validate(enrollment)
