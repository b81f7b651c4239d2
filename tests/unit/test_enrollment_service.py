# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for EnrollmentService."""

from unittest.mock import AsyncMock

import pytest

from src.domains.enrollment.entities import EnrollmentStatus, UnitType
from src.domains.enrollment.service import EnrollmentService
from src.domains.errors import (
    CourseNotFoundError,
    EnrollmentNotFoundError,
    EnrollmentValidationError,
    ProgressNotFoundError,
    QuizNotFoundError,
    UnauthorizedError,
)
from src.infrastructure.cache import CacheKeys, ProcessedEventStore, ReadCache
from src.infrastructure.events import IntegrationEvents, KafkaTopics
from src.models.enrollment import (
    DeleteEnrollmentCommand,
    OrderCourseSucceededEvent,
    SubmitQuizAttemptCommand,
    SubmitQuizCommand,
    UpdateLessonProgressCommand,
)
from src.utils.datetime import utc_now


def make_service(repos, collaborators, processed_events=None) -> EnrollmentService:
    return EnrollmentService(
        repos.enrollments,
        repos.progress,
        repos.courses,
        repos.lessons,
        repos.quizzes,
        processed_events=processed_events,
        **collaborators,
    )


@pytest.fixture
def service(repos, collaborators) -> EnrollmentService:
    return make_service(repos, collaborators)


def order_event(user_id: str, *course_ids: str, event_id: str = "evt-1") -> OrderCourseSucceededEvent:
    return OrderCourseSucceededEvent.model_validate(
        {
            "eventId": event_id,
            "orderId": "order-1",
            "userId": user_id,
            "items": [{"courseId": course_id} for course_id in course_ids],
        }
    )


class TestEnrollFromOrder:
    """Tests for order driven enrollment."""

    @pytest.mark.asyncio
    async def test_order_creates_enrollment_with_progress(
        self, service, repos, course, lesson_factory, quiz_factory, student_id, producer
    ):
        lesson = lesson_factory(duration=300)
        quiz = quiz_factory(is_required=True)

        created = await service.create_enrollments_from_order(order_event(student_id, course.id))

        assert len(created) == 1
        enrollment = created[0]
        assert enrollment.status == EnrollmentStatus.ACTIVE
        assert enrollment.total_learning_units == 2
        assert {p.unit_id for p in enrollment.progress_entries} == {lesson.id, quiz.id}
        assert len(repos.progress.items) == 2
        assert repos.courses.items[course.id].students == 1

        assert producer.topics() == [KafkaTopics.COURSE_ENROLLMENT_CREATED, KafkaTopics.NOTIFICATION_IN_APP]
        notification = producer.messages[1][2]
        assert notification["eventType"] == IntegrationEvents.NOTIFICATION_IN_APP
        assert notification["payload"]["actionUrl"] == f"/learn/{enrollment.id}"
        assert notification["payload"]["userId"] == student_id

    @pytest.mark.asyncio
    async def test_already_enrolled_and_missing_courses_are_skipped(
        self, service, repos, course, enrollment_factory, student_id
    ):
        enrollment_factory()

        created = await service.create_enrollments_from_order(order_event(student_id, course.id, "missing"))

        assert created == []
        assert len(repos.enrollments.items) == 1
        assert repos.courses.items[course.id].students == 0

    @pytest.mark.asyncio
    async def test_multiple_items(self, service, repos, course, course_factory, student_id):
        other = course_factory(title="Another Course")

        created = await service.create_enrollments_from_order(order_event(student_id, course.id, other.id))

        assert {e.course_id for e in created} == {course.id, other.id}

    @pytest.mark.asyncio
    async def test_empty_order(self, service, student_id):
        assert await service.create_enrollments_from_order(order_event(student_id)) == []

    @pytest.mark.asyncio
    async def test_redelivered_event_is_ignored(self, repos, collaborators, course, student_id):
        processed = AsyncMock(spec=ProcessedEventStore)
        processed.claim.side_effect = [True, False]
        service = make_service(repos, collaborators, processed_events=processed)

        first = await service.create_enrollments_from_order(order_event(student_id, course.id))
        second = await service.create_enrollments_from_order(order_event(student_id, course.id))

        assert len(first) == 1
        assert second == []
        assert repos.courses.items[course.id].students == 1

    @pytest.mark.asyncio
    async def test_claim_released_on_infrastructure_failure(
        self, repos, collaborators, course, student_id, monkeypatch
    ):
        processed = AsyncMock(spec=ProcessedEventStore)
        processed.claim.return_value = True
        service = make_service(repos, collaborators, processed_events=processed)
        monkeypatch.setattr(repos.enrollments, "save", AsyncMock(side_effect=RuntimeError("database down")))

        with pytest.raises(RuntimeError):
            await service.create_enrollments_from_order(order_event(student_id, course.id))

        processed.release.assert_awaited_once_with("evt-1")


class TestQuizSubmission:
    """Tests for quiz results and graded attempts."""

    @pytest.mark.asyncio
    async def test_failed_required_quiz_counts_attempt_only(self, service, quiz_factory, enrollment_factory, student_id):
        quiz = quiz_factory(is_required=True)
        enrollment = enrollment_factory(quizzes=[quiz])

        result = await service.submit_quiz(
            SubmitQuizCommand(user_id=student_id, enrollment_id=enrollment.id, quiz_id=quiz.id, score=40)
        )

        assert result.passed is False
        assert result.unit_completed is False
        assert result.attempts == 1
        assert result.progress_percent == 0
        assert result.status == EnrollmentStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_passing_required_quiz_completes_enrollment(
        self, service, repos, quiz_factory, enrollment_factory, student_id
    ):
        quiz = quiz_factory(is_required=True)
        enrollment = enrollment_factory(quizzes=[quiz])
        command = SubmitQuizCommand(user_id=student_id, enrollment_id=enrollment.id, quiz_id=quiz.id, score=85)

        first = await service.submit_quiz(command)
        second = await service.submit_quiz(command)

        assert first.passed is True
        assert first.unit_completed is True
        assert first.progress_percent == 100
        assert first.status == EnrollmentStatus.COMPLETED
        assert second.attempts == 2
        stored = await service.get_enrollment(enrollment.id)
        assert stored.completed_learning_units == 1

    @pytest.mark.asyncio
    async def test_attempt_is_graded(self, service, quiz_factory, enrollment_factory, student_id):
        quiz = quiz_factory()
        enrollment = enrollment_factory(quizzes=[quiz])

        result = await service.submit_quiz_attempt(
            SubmitQuizAttemptCommand(user_id=student_id, enrollment_id=enrollment.id, quiz_id=quiz.id, answers=[True])
        )

        assert result.score == 100
        assert result.passed is True

    @pytest.mark.asyncio
    async def test_max_attempts_enforced(self, service, quiz_factory, enrollment_factory, student_id):
        quiz = quiz_factory(max_attempts=1, is_required=True)
        enrollment = enrollment_factory(quizzes=[quiz])
        command = SubmitQuizAttemptCommand(
            user_id=student_id, enrollment_id=enrollment.id, quiz_id=quiz.id, answers=[False]
        )

        await service.submit_quiz_attempt(command)

        with pytest.raises(EnrollmentValidationError):
            await service.submit_quiz_attempt(command)

    @pytest.mark.asyncio
    async def test_other_users_enrollment(self, service, quiz_factory, enrollment_factory):
        quiz = quiz_factory()
        enrollment = enrollment_factory(quizzes=[quiz])

        with pytest.raises(UnauthorizedError):
            await service.submit_quiz(
                SubmitQuizCommand(user_id="student-2", enrollment_id=enrollment.id, quiz_id=quiz.id, score=90)
            )

    @pytest.mark.asyncio
    async def test_quiz_of_other_course(self, service, repos, quiz_factory, enrollment_factory, student_id):
        quiz = quiz_factory(course_id="other-course")
        enrollment = enrollment_factory()

        with pytest.raises(QuizNotFoundError):
            await service.submit_quiz(
                SubmitQuizCommand(user_id=student_id, enrollment_id=enrollment.id, quiz_id=quiz.id, score=90)
            )

    @pytest.mark.asyncio
    async def test_untracked_quiz(self, service, quiz_factory, enrollment_factory, student_id):
        quiz = quiz_factory()
        enrollment = enrollment_factory()

        with pytest.raises(ProgressNotFoundError):
            await service.submit_quiz(
                SubmitQuizCommand(user_id=student_id, enrollment_id=enrollment.id, quiz_id=quiz.id, score=90)
            )


class TestLessonProgress:
    """Tests for lesson watch progress."""

    @pytest.mark.asyncio
    async def test_watch_threshold_completes_lesson(
        self, service, repos, lesson_factory, enrollment_factory, student_id
    ):
        lesson = lesson_factory(duration=100)
        other = lesson_factory(title="Virtual environments", duration=100)
        enrollment = enrollment_factory(lessons=[lesson, other])

        partial = await service.update_lesson_progress(
            UpdateLessonProgressCommand(
                user_id=student_id, enrollment_id=enrollment.id, lesson_id=lesson.id, position_seconds=50
            )
        )
        assert partial.completed_learning_units == 0

        watched = await service.update_lesson_progress(
            UpdateLessonProgressCommand(
                user_id=student_id, enrollment_id=enrollment.id, lesson_id=lesson.id, position_seconds=85
            )
        )
        assert watched.completed_learning_units == 1
        assert watched.progress_percent == 50

        entry = next(p for p in repos.progress.items.values() if p.unit_id == lesson.id)
        assert entry.completed is True
        assert entry.watch_time == 85

    @pytest.mark.asyncio
    async def test_explicit_completion(self, service, lesson_factory, enrollment_factory, student_id):
        lesson = lesson_factory()
        enrollment = enrollment_factory(lessons=[lesson])

        result = await service.update_lesson_progress(
            UpdateLessonProgressCommand(
                user_id=student_id, enrollment_id=enrollment.id, lesson_id=lesson.id, completed=True
            )
        )

        assert result.status == EnrollmentStatus.COMPLETED
        assert result.completed_at is not None

    @pytest.mark.asyncio
    async def test_untracked_lesson(self, service, enrollment_factory, student_id):
        enrollment = enrollment_factory()

        with pytest.raises(ProgressNotFoundError):
            await service.update_lesson_progress(
                UpdateLessonProgressCommand(
                    user_id=student_id, enrollment_id=enrollment.id, lesson_id="missing", completed=True
                )
            )


class TestDeleteAndQueries:
    """Tests for withdrawal and lookups."""

    @pytest.mark.asyncio
    async def test_delete_drops_enrollment_and_decrements(
        self, service, repos, course, lesson_factory, enrollment_factory, student_id
    ):
        repos.courses.items[course.id].students = 1
        enrollment = enrollment_factory(lessons=[lesson_factory()])

        await service.delete_enrollment(DeleteEnrollmentCommand(user_id=student_id, enrollment_id=enrollment.id))

        stored = repos.enrollments.items[enrollment.id]
        assert stored.status == EnrollmentStatus.DROPPED
        assert all(not p.is_active for p in repos.progress.items.values())
        assert repos.courses.items[course.id].students == 0
        with pytest.raises(EnrollmentNotFoundError):
            await service.get_enrollment(enrollment.id)
        assert (await service.check_enrollment(student_id, course.id)).is_enrolled is False

    @pytest.mark.asyncio
    async def test_delete_by_other_user(self, service, enrollment_factory):
        enrollment = enrollment_factory()

        with pytest.raises(UnauthorizedError):
            await service.delete_enrollment(DeleteEnrollmentCommand(user_id="student-2", enrollment_id=enrollment.id))

    @pytest.mark.asyncio
    async def test_admin_may_delete(self, service, repos, enrollment_factory):
        enrollment = enrollment_factory()

        await service.delete_enrollment(
            DeleteEnrollmentCommand(user_id="admin-1", is_admin=True, enrollment_id=enrollment.id)
        )

        assert repos.enrollments.items[enrollment.id].is_deleted

    @pytest.mark.asyncio
    async def test_check_enrollment(self, service, course, enrollment_factory, student_id):
        enrollment = enrollment_factory()

        found = await service.check_enrollment(student_id, course.id)
        missing = await service.check_enrollment("student-2", course.id)

        assert found.is_enrolled is True
        assert found.enrollment_id == enrollment.id
        assert missing.is_enrolled is False

    @pytest.mark.asyncio
    async def test_get_enrollment_includes_progress(self, service, lesson_factory, enrollment_factory):
        lesson = lesson_factory()
        enrollment = enrollment_factory(lessons=[lesson])

        result = await service.get_enrollment(enrollment.id)

        assert [p.unit_type for p in result.progress_entries] == [UnitType.LESSON]


class TestEnrollmentLookups:
    """Tests for enrollment listings and progress summaries."""

    @pytest.mark.asyncio
    async def test_list_user_enrollments(self, service, course, course_factory, enrollment_factory, student_id):
        other_course = course_factory(title="Rust Intro")
        first = enrollment_factory()
        second = enrollment_factory(course_id=other_course.id)
        enrollment_factory(student_id="student-2")
        enrollment_factory(course_id=course_factory(title="Dropped").id, deleted_at=utc_now())

        result = await service.list_user_enrollments(student_id)

        assert {e.id for e in result} == {first.id, second.id}

    @pytest.mark.asyncio
    async def test_list_course_enrollments_for_instructor(
        self, service, course, enrollment_factory, instructor_id, lesson_factory
    ):
        lesson = lesson_factory()
        enrollment_factory(lessons=[lesson])
        enrollment_factory(student_id="student-2", lessons=[lesson])

        result = await service.list_course_enrollments(course.id, instructor_id)

        assert {e.student_id for e in result} == {"student-1", "student-2"}
        assert all(len(e.progress_entries) == 1 for e in result)

    @pytest.mark.asyncio
    async def test_list_course_enrollments_requires_course_manager(self, service, course, enrollment_factory):
        enrollment_factory()

        with pytest.raises(UnauthorizedError):
            await service.list_course_enrollments(course.id, "student-1")
        assert len(await service.list_course_enrollments(course.id, "admin-1", is_admin=True)) == 1
        with pytest.raises(CourseNotFoundError):
            await service.list_course_enrollments("missing", "admin-1", is_admin=True)

    @pytest.mark.asyncio
    async def test_progress_split_by_unit_type(
        self, service, lesson_factory, quiz_factory, enrollment_factory, student_id
    ):
        lesson = lesson_factory()
        quiz = quiz_factory()
        enrollment = enrollment_factory(lessons=[lesson, lesson_factory(title="Variables")], quizzes=[quiz])
        await service.update_lesson_progress(
            UpdateLessonProgressCommand(
                user_id=student_id, enrollment_id=enrollment.id, lesson_id=lesson.id, completed=True
            )
        )

        result = await service.get_enrollment_progress(enrollment.id, student_id)

        assert result.enrollment_id == enrollment.id
        assert len(result.lessons) == 2
        assert [q.unit_id for q in result.quizzes] == [quiz.id]
        assert result.completed_learning_units == 1
        assert result.total_learning_units == 3
        assert result.progress_percent == pytest.approx(33.33)

    @pytest.mark.asyncio
    async def test_progress_of_other_user(self, service, enrollment_factory):
        enrollment = enrollment_factory()

        with pytest.raises(UnauthorizedError):
            await service.get_enrollment_progress(enrollment.id, "student-2")
        with pytest.raises(EnrollmentNotFoundError):
            await service.get_enrollment_progress("missing", "student-2")

    @pytest.mark.asyncio
    async def test_progress_is_cached_and_invalidated(
        self, repos, collaborators, lesson_factory, enrollment_factory, student_id
    ):
        cache = AsyncMock(spec=ReadCache)

        async def passthrough(key, loader):
            return await loader()

        cache.get_or_load.side_effect = passthrough
        service = make_service(repos, collaborators)
        service.cache = cache
        lesson = lesson_factory()
        enrollment = enrollment_factory(lessons=[lesson])

        await service.get_enrollment_progress(enrollment.id, student_id)
        await service.update_lesson_progress(
            UpdateLessonProgressCommand(
                user_id=student_id, enrollment_id=enrollment.id, lesson_id=lesson.id, completed=True
            )
        )

        key = CacheKeys.enrollment_progress(enrollment.id)
        assert key in [call.args[0] for call in cache.get_or_load.await_args_list]
        assert any(key in call.args[0] for call in cache.invalidate.await_args_list)
