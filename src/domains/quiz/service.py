# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Quiz service.

A section carries at most one quiz: creating a quiz for a section that
already has one returns the existing quiz unchanged.
"""

from __future__ import annotations

import logging
from typing import Any

from src.domains.course.entities import Course
from src.domains.course.repository import CourseRepository
from src.domains.errors import CourseNotFoundError, QuizNotFoundError, SectionNotFoundError
from src.domains.quiz.entities import Quiz
from src.domains.quiz.repository import QuizRepository
from src.domains.section.repository import SectionRepository
from src.domains.shared.guards import ensure_can_manage_course, find_replay
from src.domains.shared.service import DomainService
from src.infrastructure.cache.keys import CacheKeys
from src.infrastructure.events.types import EventTypes
from src.infrastructure.telemetry.tracing import traced
from src.models.quiz import CreateQuizCommand, DeleteQuizCommand, QuizResponse, UpdateQuizCommand

logger = logging.getLogger(__name__)


class QuizService(DomainService):
    """Service for section quizzes."""

    def __init__(
        self,
        quizzes: QuizRepository,
        sections: SectionRepository,
        courses: CourseRepository,
        **collaborators: Any,
    ) -> None:
        super().__init__(**collaborators)
        self.quizzes = quizzes
        self.sections = sections
        self.courses = courses

    @traced("quiz.create")
    async def create_quiz(self, command: CreateQuizCommand) -> QuizResponse:
        """Create the quiz of a section.

        Args:
            command: Quiz creation data.

        Returns:
            The created quiz, the quiz created earlier with the same
            idempotency key, or the quiz the section already has.

        Raises:
            CourseNotFoundError: If course not found.
            UnauthorizedError: If the user cannot manage the course.
            SectionNotFoundError: If the section is not part of the course.
            QuizValidationError: If the quiz or a question is invalid.
        """
        existing = await find_replay(command.idempotency_key, self.quizzes.find_by_idempotency_key, "quiz")
        if existing is not None:
            return self._to_response(existing)

        existing = await self.quizzes.find_by_section_id(command.section_id)
        if existing is not None and not existing.is_deleted:
            logger.info("Section already has a quiz: section=%s, quiz=%s", command.section_id, existing.id)
            return self._to_response(existing)

        course = await self._get_course(command.course_id)
        ensure_can_manage_course(course, command.user_id, command.is_admin)

        section = await self.sections.find_by_id(command.section_id)
        if not section or section.is_deleted or section.course_id != course.id:
            raise SectionNotFoundError(section_id=command.section_id, course_id=course.id)

        quiz = Quiz(
            section_id=section.id,
            course_id=course.id,
            questions=[question.to_entity() for question in command.questions],
            title=command.title,
            description=command.description,
            time_limit=command.time_limit,
            max_attempts=command.max_attempts,
            passing_score=command.passing_score,
            is_required=command.is_required,
            idempotency_key=command.idempotency_key,
        )
        quiz = await self.quizzes.save(quiz)

        logger.info(
            "Created quiz: quiz=%s, section=%s, questions=%d, required=%s",
            quiz.id,
            section.id,
            len(quiz.questions),
            quiz.is_required,
        )

        await self._invalidate([CacheKeys.section_quiz(section.id), CacheKeys.course_quizzes(course.id)])
        await self._publish_local(
            EventTypes.Quiz.CREATED,
            {"course_id": course.id, "section_id": section.id, "quiz_id": quiz.id},
        )
        return self._to_response(quiz)

    @traced("quiz.update")
    async def update_quiz(self, command: UpdateQuizCommand) -> QuizResponse:
        """Partially update a quiz.

        Submitted questions replace the existing ones and are validated
        again.

        Raises:
            CourseNotFoundError: If course not found.
            UnauthorizedError: If the user cannot manage the course.
            QuizNotFoundError: If the quiz is not part of the course.
            QuizValidationError: If the update is invalid.
        """
        course = await self._get_course(command.course_id)
        ensure_can_manage_course(course, command.user_id, command.is_admin)
        quiz = await self._get_quiz(command.quiz_id, course.id)

        questions = None
        if command.questions is not None:
            questions = [question.to_entity() for question in command.questions]

        quiz.update_details(
            title=command.title,
            description=command.description,
            time_limit=command.time_limit,
            max_attempts=command.max_attempts,
            passing_score=command.passing_score,
            questions=questions,
            is_required=command.is_required,
        )
        quiz = await self.quizzes.update(quiz)

        logger.info("Updated quiz: quiz=%s, course=%s", quiz.id, course.id)

        await self._invalidate_quiz(quiz)
        return self._to_response(quiz)

    @traced("quiz.delete")
    async def delete_quiz(self, command: DeleteQuizCommand) -> None:
        """Soft delete a quiz.

        Raises:
            CourseNotFoundError: If course not found.
            UnauthorizedError: If the user cannot manage the course.
            QuizNotFoundError: If the quiz is not part of the course.
        """
        course = await self._get_course(command.course_id)
        ensure_can_manage_course(course, command.user_id, command.is_admin)
        quiz = await self._get_quiz(command.quiz_id, course.id)

        quiz.soft_delete()
        await self.quizzes.update(quiz)

        logger.info("Deleted quiz: quiz=%s, course=%s", quiz.id, course.id)

        await self._invalidate_quiz(quiz)
        await self._publish_local(
            EventTypes.Quiz.DELETED,
            {"course_id": course.id, "section_id": quiz.section_id, "quiz_id": quiz.id},
        )

    @traced("quiz.get")
    async def get_quiz(self, quiz_id: str) -> QuizResponse:
        """Get a quiz by id.

        Raises:
            QuizNotFoundError: If quiz not found.
        """

        async def load() -> dict[str, Any] | None:
            quiz = await self.quizzes.find_by_id(quiz_id)
            if quiz is None or quiz.is_deleted:
                return None
            return self._to_response(quiz).model_dump(mode="json")

        data = await self._cached(CacheKeys.quiz(quiz_id), load)
        if data is None:
            raise QuizNotFoundError(quiz_id=quiz_id)
        return QuizResponse.model_validate(data)

    @traced("quiz.get_by_section")
    async def get_section_quiz(self, section_id: str) -> QuizResponse:
        """Get the quiz of a section.

        Raises:
            QuizNotFoundError: If the section has no quiz.
        """

        async def load() -> dict[str, Any] | None:
            quiz = await self.quizzes.find_by_section_id(section_id)
            if quiz is None or quiz.is_deleted:
                return None
            return self._to_response(quiz).model_dump(mode="json")

        data = await self._cached(CacheKeys.section_quiz(section_id), load)
        if data is None:
            raise QuizNotFoundError(section_id=section_id)
        return QuizResponse.model_validate(data)

    @traced("quiz.list")
    async def list_course_quizzes(self, course_id: str) -> list[QuizResponse]:
        """List the active quizzes of a course."""

        async def load() -> list[dict[str, Any]]:
            quizzes = await self.quizzes.find_by_course_id(course_id)
            return [self._to_response(quiz).model_dump(mode="json") for quiz in quizzes if not quiz.is_deleted]

        data = await self._cached(CacheKeys.course_quizzes(course_id), load)
        return [QuizResponse.model_validate(item) for item in data]

    async def _get_course(self, course_id: str) -> Course:
        course = await self.courses.find_by_id(course_id)
        if not course:
            raise CourseNotFoundError(course_id=course_id)
        return course

    async def _get_quiz(self, quiz_id: str, course_id: str) -> Quiz:
        quiz = await self.quizzes.find_by_id(quiz_id)
        if not quiz or quiz.is_deleted or quiz.course_id != course_id:
            raise QuizNotFoundError(quiz_id=quiz_id, course_id=course_id)
        return quiz

    async def _invalidate_quiz(self, quiz: Quiz) -> None:
        await self._invalidate(
            [
                CacheKeys.quiz(quiz.id),
                CacheKeys.section_quiz(quiz.section_id),
                CacheKeys.course_quizzes(quiz.course_id),
            ]
        )

    def _to_response(self, quiz: Quiz) -> QuizResponse:
        return QuizResponse.model_validate(quiz)
