# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across the unit tests:
- In-memory repositories with optimistic version checks
- A recording event producer
- Factories for courses, content and enrollments
"""

import copy
from collections.abc import Callable
from typing import Any

import pytest

from src.core.config import clear_settings_cache
from src.core.container import Repositories
from src.domains.certificate.entities import Certificate
from src.domains.certificate.repository import CertificateRepository
from src.domains.course.entities import Course
from src.domains.course.repository import CourseQuery, CourseRepository
from src.domains.enrollment.entities import Enrollment, Progress
from src.domains.enrollment.repository import EnrollmentRepository, ProgressRepository
from src.domains.errors import AlreadyReviewedError, ConcurrencyConflictError
from src.domains.lesson.entities import Lesson
from src.domains.lesson.repository import LessonRepository
from src.domains.quiz.entities import Question, QuestionOption, QuestionType, Quiz
from src.domains.quiz.repository import QuizRepository
from src.domains.review.entities import Review
from src.domains.review.repository import ReviewRepository
from src.domains.section.entities import Section
from src.domains.section.repository import SectionRepository
from src.domains.shared.concurrency import ConflictRetryPolicy
from src.infrastructure.events.bus import EventBus
from src.infrastructure.events.producer import EventProducer, EventProducerError


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (requires Redis or Kafka)"
    )


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Rebuild settings for every test so env overrides do not leak."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# In-memory repositories
# =============================================================================


class InMemoryStore:
    """Dict-backed store handing out copies, like a real database would."""

    def __init__(self) -> None:
        self.items: dict[str, Any] = {}
        self.writes = 0

    def _get(self, item_id: str) -> Any:
        item = self.items.get(item_id)
        return copy.deepcopy(item) if item is not None else None

    def _find(self, predicate: Callable[[Any], bool]) -> list[Any]:
        return [copy.deepcopy(item) for item in self.items.values() if predicate(item)]

    def _insert(self, item: Any) -> Any:
        self.writes += 1
        self.items[item.id] = copy.deepcopy(item)
        return copy.deepcopy(item)

    def _replace(self, item: Any) -> Any:
        stored = self.items.get(item.id)
        if stored is not None and hasattr(item, "version"):
            if stored.version != item.version:
                raise ConcurrencyConflictError(resource=type(item).__name__, id=item.id)
            item = copy.deepcopy(item)
            item.version += 1
        self.writes += 1
        self.items[item.id] = copy.deepcopy(item)
        return copy.deepcopy(item)


class InMemoryCourseRepository(InMemoryStore, CourseRepository):
    async def find_by_id(self, course_id: str) -> Course | None:
        course = self._get(course_id)
        return course if course is not None and not course.is_deleted else None

    async def find_by_slug(self, slug: str) -> Course | None:
        found = self._find(lambda c: c.slug == slug and not c.is_deleted)
        return found[0] if found else None

    async def find_by_idempotency_key(self, key: str) -> Course | None:
        found = self._find(lambda c: c.idempotency_key == key)
        return found[0] if found else None

    async def find_all(self, query: CourseQuery) -> tuple[list[Course], int]:
        def matches(c: Course) -> bool:
            text = f"{c.title} {c.description or ''}".lower()
            return (
                not c.is_deleted
                and (query.instructor_id is None or c.instructor_id == query.instructor_id)
                and (query.status is None or c.status == query.status)
                and (query.search is None or query.search.lower() in text)
                and (not query.category_ids or c.category_id in query.category_ids)
                and (not query.levels or c.level in query.levels)
                and (query.min_price is None or c.price >= query.min_price)
                and (query.max_price is None or c.price <= query.max_price)
                and (query.min_rating is None or c.rating >= query.min_rating)
            )

        found = self._find(matches)
        found.sort(key=lambda c: getattr(c, query.sort_by), reverse=query.descending)
        return found[query.offset:query.offset + query.limit], len(found)

    async def save(self, course: Course) -> Course:
        return self._insert(course)

    async def update(self, course: Course) -> Course:
        return self._replace(course)


class InMemorySectionRepository(InMemoryStore, SectionRepository):
    async def find_by_id(self, section_id: str) -> Section | None:
        return self._get(section_id)

    async def find_by_idempotency_key(self, key: str) -> Section | None:
        found = self._find(lambda s: s.idempotency_key == key)
        return found[0] if found else None

    async def find_by_course_id(self, course_id: str) -> list[Section]:
        return self._find(lambda s: s.course_id == course_id and not s.is_deleted)

    async def save(self, section: Section) -> Section:
        return self._insert(section)

    async def update(self, section: Section) -> Section:
        return self._replace(section)


class InMemoryLessonRepository(InMemoryStore, LessonRepository):
    async def find_by_id(self, lesson_id: str) -> Lesson | None:
        return self._get(lesson_id)

    async def find_by_idempotency_key(self, key: str) -> Lesson | None:
        found = self._find(lambda lesson: lesson.idempotency_key == key)
        return found[0] if found else None

    async def find_by_section_id(self, section_id: str) -> list[Lesson]:
        return self._find(lambda lesson: lesson.section_id == section_id and not lesson.is_deleted)

    async def find_by_course_id(self, course_id: str) -> list[Lesson]:
        return self._find(lambda lesson: lesson.course_id == course_id and not lesson.is_deleted)

    async def save(self, lesson: Lesson) -> Lesson:
        return self._insert(lesson)

    async def update(self, lesson: Lesson) -> Lesson:
        return self._replace(lesson)


class InMemoryQuizRepository(InMemoryStore, QuizRepository):
    async def find_by_id(self, quiz_id: str) -> Quiz | None:
        return self._get(quiz_id)

    async def find_by_idempotency_key(self, key: str) -> Quiz | None:
        found = self._find(lambda q: q.idempotency_key == key)
        return found[0] if found else None

    async def find_by_section_id(self, section_id: str) -> Quiz | None:
        found = self._find(lambda q: q.section_id == section_id and not q.is_deleted)
        return found[0] if found else None

    async def find_by_course_id(self, course_id: str) -> list[Quiz]:
        return self._find(lambda q: q.course_id == course_id and not q.is_deleted)

    async def save(self, quiz: Quiz) -> Quiz:
        return self._insert(quiz)

    async def update(self, quiz: Quiz) -> Quiz:
        return self._replace(quiz)


class InMemoryReviewRepository(InMemoryStore, ReviewRepository):
    async def find_by_id(self, review_id: str) -> Review | None:
        review = self._get(review_id)
        return review if review is not None and not review.is_deleted else None

    async def find_by_user_and_course(self, user_id: str, course_id: str) -> Review | None:
        found = self._find(lambda r: r.user_id == user_id and r.course_id == course_id and not r.is_deleted)
        return found[0] if found else None

    async def find_by_enrollment_id(self, enrollment_id: str) -> Review | None:
        found = self._find(lambda r: r.enrollment_id == enrollment_id and not r.is_deleted)
        return found[0] if found else None

    async def find_by_course_id(
        self,
        course_id: str,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Review], int]:
        found = self._find(lambda r: r.course_id == course_id and not r.is_deleted)
        found.sort(key=lambda r: r.created_at, reverse=True)
        return found[offset:offset + limit], len(found)

    async def save(self, review: Review) -> Review:
        if await self.find_by_user_and_course(review.user_id, review.course_id) is not None:
            raise AlreadyReviewedError(user_id=review.user_id, course_id=review.course_id)
        return self._insert(review)

    async def update(self, review: Review) -> Review:
        return self._replace(review)

    async def delete(self, review: Review) -> None:
        self._replace(review)


class InMemoryProgressRepository(InMemoryStore, ProgressRepository):
    async def find_by_enrollment_id(self, enrollment_id: str) -> list[Progress]:
        return self._find(lambda p: p.enrollment_id == enrollment_id)

    async def upsert_many(self, entries: list[Progress]) -> list[Progress]:
        return [self._replace(entry) for entry in entries]


class InMemoryEnrollmentRepository(InMemoryStore, EnrollmentRepository):
    """Stores the enrollment row only; progress is attached on load."""

    def __init__(self, progress: InMemoryProgressRepository) -> None:
        super().__init__()
        self.progress = progress

    async def _with_progress(self, enrollment: Enrollment | None) -> Enrollment | None:
        if enrollment is not None:
            enrollment.attach_progress(await self.progress.find_by_enrollment_id(enrollment.id))
        return enrollment

    async def find_by_id(self, enrollment_id: str) -> Enrollment | None:
        return await self._with_progress(self._get(enrollment_id))

    async def find_by_student_and_course(self, student_id: str, course_id: str) -> Enrollment | None:
        found = self._find(lambda e: e.student_id == student_id and e.course_id == course_id)
        return await self._with_progress(found[0] if found else None)

    async def _list(self, predicate: Callable[[Enrollment], bool]) -> list[Enrollment]:
        found = self._find(lambda e: predicate(e) and not e.is_deleted)
        found.sort(key=lambda e: e.enrolled_at, reverse=True)
        return [await self._with_progress(e) for e in found]

    async def find_by_student_id(self, student_id: str) -> list[Enrollment]:
        return await self._list(lambda e: e.student_id == student_id)

    async def find_by_course_id(self, course_id: str) -> list[Enrollment]:
        return await self._list(lambda e: e.course_id == course_id)

    async def save(self, enrollment: Enrollment) -> Enrollment:
        return self._insert(enrollment)

    async def update(self, enrollment: Enrollment) -> Enrollment:
        return self._replace(enrollment)


class InMemoryCertificateRepository(InMemoryStore, CertificateRepository):
    async def find_by_id(self, certificate_id: str) -> Certificate | None:
        return self._get(certificate_id)

    async def find_by_enrollment_id(self, enrollment_id: str) -> Certificate | None:
        found = self._find(lambda c: c.enrollment_id == enrollment_id)
        return found[0] if found else None

    async def find_by_number(self, certificate_number: str) -> Certificate | None:
        found = self._find(lambda c: c.certificate_number == certificate_number)
        return found[0] if found else None

    async def find_by_user_id(self, user_id: str) -> list[Certificate]:
        return self._find(lambda c: c.user_id == user_id)

    async def save(self, certificate: Certificate) -> Certificate:
        return self._insert(certificate)

    async def update(self, certificate: Certificate) -> Certificate:
        return self._replace(certificate)


class RecordingProducer(EventProducer):
    """Event producer keeping published messages in memory."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.messages: list[tuple[str, str | None, dict[str, Any]]] = []

    async def produce(self, topic: str, key: str | None, value: dict[str, Any]) -> None:
        if self.fail:
            raise EventProducerError("broker unavailable")
        self.messages.append((topic, key, value))

    def topics(self) -> list[str]:
        return [topic for topic, _, _ in self.messages]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def repos() -> Repositories:
    """Provide a fresh set of in-memory repositories."""
    progress = InMemoryProgressRepository()
    return Repositories(
        courses=InMemoryCourseRepository(),
        sections=InMemorySectionRepository(),
        lessons=InMemoryLessonRepository(),
        quizzes=InMemoryQuizRepository(),
        reviews=InMemoryReviewRepository(),
        enrollments=InMemoryEnrollmentRepository(progress),
        progress=progress,
        certificates=InMemoryCertificateRepository(),
    )


@pytest.fixture
def producer() -> RecordingProducer:
    return RecordingProducer()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def retry_policy() -> ConflictRetryPolicy:
    """Retry policy without backoff delays."""
    return ConflictRetryPolicy(max_attempts=3, wait_min=0, wait_max=0)


@pytest.fixture
def collaborators(producer, event_bus, retry_policy) -> dict[str, Any]:
    """Keyword arguments shared by every service under test."""
    return {"producer": producer, "event_bus": event_bus, "retry_policy": retry_policy}


@pytest.fixture
def instructor_id() -> str:
    return "instructor-1"


@pytest.fixture
def student_id() -> str:
    return "student-1"


@pytest.fixture
def course_factory(repos, instructor_id):
    """Store a course and return it."""

    def factory(**overrides: Any) -> Course:
        data = {"instructor_id": instructor_id, "title": "Python for Data Science"}
        data.update(overrides)
        course = Course(**data)
        repos.courses.items[course.id] = copy.deepcopy(course)
        return course

    return factory


@pytest.fixture
def course(course_factory) -> Course:
    return course_factory()


@pytest.fixture
def section(repos, course) -> Section:
    section = Section(course_id=course.id, title="Getting started")
    repos.sections.items[section.id] = copy.deepcopy(section)
    return section


@pytest.fixture
def make_question():
    """Build a valid question of the given type."""

    def factory(question_type: QuestionType = QuestionType.TRUE_FALSE, point: float = 1) -> Question:
        if question_type == QuestionType.MULTIPLE_CHOICE:
            return Question(
                question="Which keyword defines a function?",
                type=question_type,
                correct_answer=1,
                options=[QuestionOption("class"), QuestionOption("def", is_correct=True)],
                point=point,
            )
        if question_type == QuestionType.TRUE_FALSE:
            return Question(
                question="Lists are mutable",
                type=question_type,
                correct_answer=True,
                options=[QuestionOption("True", is_correct=True), QuestionOption("False")],
                point=point,
            )
        return Question(
            question="Name the package installer",
            type=question_type,
            correct_answer="pip",
            point=point,
        )

    return factory


@pytest.fixture
def lesson_factory(repos, section):
    def factory(**overrides: Any) -> Lesson:
        data = {"section_id": section.id, "course_id": section.course_id, "title": "Installing Python"}
        data.update(overrides)
        lesson = Lesson(**data)
        repos.lessons.items[lesson.id] = copy.deepcopy(lesson)
        return lesson

    return factory


@pytest.fixture
def quiz_factory(repos, section, make_question):
    def factory(**overrides: Any) -> Quiz:
        data = {
            "section_id": section.id,
            "course_id": section.course_id,
            "questions": [make_question()],
            "title": "Basics check",
        }
        data.update(overrides)
        quiz = Quiz(**data)
        repos.quizzes.items[quiz.id] = copy.deepcopy(quiz)
        return quiz

    return factory


@pytest.fixture
def enrollment_factory(repos, course, student_id):
    """Store an active enrollment tracking the given lessons and quizzes."""

    def factory(
        lessons: list[Lesson] = (),
        quizzes: list[Quiz] = (),
        **overrides: Any,
    ) -> Enrollment:
        data = {"student_id": student_id, "course_id": course.id, "instructor_id": course.instructor_id}
        data.update(overrides)
        enrollment = Enrollment(**data)
        entries = [Progress.for_lesson(enrollment.id, lesson.id, lesson.duration) for lesson in lessons]
        entries += [Progress.for_quiz(enrollment.id, quiz.id, quiz.is_required) for quiz in quizzes]
        enrollment.attach_progress(entries)
        repos.enrollments.items[enrollment.id] = copy.deepcopy(enrollment)
        for entry in entries:
            repos.progress.items[entry.id] = copy.deepcopy(entry)
        return enrollment

    return factory
