# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Quiz aggregate and its questions.

A quiz belongs to exactly one section. It grades submitted answers
positionally: answer ``i`` is compared against question ``i``.

Answer formats per question type:
    - multiple-choice: an option index, or a list of option indexes/values
      when the correct answer is a list (order-insensitive). The stored
      answer must reference exactly the options flagged correct.
    - true-false: a bool
    - short-answer: a string, compared case-insensitively after trimming
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from src.domains.errors import QuizQuestionNotFoundError, QuizValidationError
from src.utils.datetime import utc_now

DEFAULT_PASSING_SCORE = 70.0


class QuestionType(str, Enum):
    """Supported question types."""

    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    SHORT_ANSWER = "short-answer"


@dataclass(frozen=True)
class QuestionOption:
    """Answer option of a multiple-choice or true-false question."""

    value: str
    is_correct: bool = False


@dataclass
class Question:
    """Quiz question.

    Attributes:
        question: Question text.
        type: Question type.
        correct_answer: Expected answer, shape depends on type.
        options: Answer options (required for multiple-choice and true-false).
        point: Points awarded for a correct answer (defaults to 1).
        required: Whether the learner must answer the question.
        time_limit: Optional per-question time limit in seconds.
    """

    question: str
    type: QuestionType
    correct_answer: Any
    id: str = field(default_factory=lambda: str(uuid4()))
    options: list[QuestionOption] = field(default_factory=list)
    point: float = 1
    required: bool = True
    time_limit: int | None = None
    explanation: str | None = None

    def __post_init__(self) -> None:
        if not self.question or not self.question.strip():
            raise QuizValidationError("Question text is required")
        self.question = self.question.strip()
        try:
            self.type = QuestionType(self.type)
        except ValueError as e:
            raise QuizValidationError("Invalid question type", type=self.type) from e

        if not isinstance(self.point, (int, float)) or isinstance(self.point, bool) or self.point <= 0:
            self.point = 1

        if self.type in (QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE):
            if not self.options:
                raise QuizValidationError(
                    "Options required for this question type",
                    question_id=self.id,
                )
        if self.type == QuestionType.MULTIPLE_CHOICE:
            correct = {i for i, option in enumerate(self.options) if option.is_correct}
            if not correct:
                raise QuizValidationError(
                    "Multiple choice question requires at least one correct option",
                    question_id=self.id,
                )
            if self._answer_indexes() != correct:
                raise QuizValidationError(
                    "Correct answer must reference exactly the correct options",
                    question_id=self.id,
                    correct_answer=self.correct_answer,
                )
        elif self.type == QuestionType.TRUE_FALSE:
            if not isinstance(self.correct_answer, bool):
                raise QuizValidationError(
                    "True/false answer must be a boolean",
                    question_id=self.id,
                )
        elif not isinstance(self.correct_answer, str):
            raise QuizValidationError(
                "Short answer must be a string",
                question_id=self.id,
            )

    def _answer_indexes(self) -> set[int] | None:
        if isinstance(self.correct_answer, list):
            return self._option_indexes(self.correct_answer)
        return self._option_indexes([self.correct_answer], by_value=False)

    def _option_indexes(self, items: list[Any], by_value: bool = True) -> set[int] | None:
        """Resolve option indexes or values to indexes, None if any item is unknown."""
        if not items:
            return None
        values = [option.value for option in self.options]
        indexes: set[int] = set()
        for item in items:
            if isinstance(item, int) and not isinstance(item, bool) and 0 <= item < len(values):
                indexes.add(item)
            elif by_value and isinstance(item, str) and item in values:
                indexes.add(values.index(item))
            else:
                return None
        return indexes

    def is_correct(self, provided: Any) -> bool:
        """Grade a single answer."""
        correct = self.correct_answer
        match self.type:
            case QuestionType.MULTIPLE_CHOICE:
                if isinstance(correct, list):
                    if not isinstance(provided, list):
                        return False
                    return self._option_indexes(provided) == self._answer_indexes()
                if isinstance(provided, bool) or not isinstance(provided, int):
                    return False
                return provided == correct
            case QuestionType.TRUE_FALSE:
                return isinstance(provided, bool) and provided == correct
            case QuestionType.SHORT_ANSWER:
                return (
                    isinstance(provided, str)
                    and isinstance(correct, str)
                    and provided.strip().lower() == correct.strip().lower()
                )
        return False


@dataclass
class Quiz:
    """Section quiz.

    Attributes:
        id: Quiz identifier.
        section_id: Owning section (at most one quiz per section).
        course_id: Owning course.
        questions: Ordered questions, at least one.
        passing_score: Percentage needed to pass; defaults to 70.
        max_attempts: Attempt limit, unlimited when None.
        is_required: Whether passing is required for course completion.
    """

    section_id: str
    course_id: str
    questions: list[Question]
    id: str = field(default_factory=lambda: str(uuid4()))
    title: str | None = None
    description: str | None = None
    time_limit: int | None = None
    max_attempts: int | None = None
    passing_score: float = DEFAULT_PASSING_SCORE
    is_required: bool = False
    idempotency_key: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    deleted_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.section_id:
            raise QuizValidationError("Section ID is required")
        if not self.course_id:
            raise QuizValidationError("Course ID is required")
        if not self.questions:
            raise QuizValidationError("Quiz must have at least one question")
        self.questions = list(self.questions)
        self.passing_score = _normalize_passing_score(self.passing_score)
        if self.max_attempts is not None and self.max_attempts < 1:
            raise QuizValidationError("Max attempts must be at least 1")
        if self.title:
            self.title = self.title.strip()

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def get_question(self, question_id: str) -> Question:
        for question in self.questions:
            if question.id == question_id:
                return question
        raise QuizQuestionNotFoundError(question_id=question_id)

    def update_details(
        self,
        title: str | None = None,
        description: str | None = None,
        time_limit: int | None = None,
        max_attempts: int | None = None,
        passing_score: float | None = None,
        questions: list[Question] | None = None,
        is_required: bool | None = None,
    ) -> None:
        """Apply a partial update.

        A non-positive passing score is ignored. Questions are replaced as a
        whole and an empty list is rejected.
        """
        if title is not None:
            self.title = title.strip()
        if description is not None:
            self.description = description.strip()
        if time_limit is not None:
            self.time_limit = time_limit
        if max_attempts is not None:
            if max_attempts < 1:
                raise QuizValidationError("Max attempts must be at least 1")
            self.max_attempts = max_attempts
        if passing_score is not None and passing_score > 0:
            self.passing_score = _normalize_passing_score(passing_score)
        if questions is not None:
            if not questions:
                raise QuizValidationError("Quiz must have at least one question")
            self.questions = list(questions)
        if is_required is not None:
            self.is_required = is_required
        self.updated_at = utc_now()

    def soft_delete(self) -> None:
        self.deleted_at = utc_now()
        self.updated_at = self.deleted_at

    # -------------------------------------------------------------------------
    # Grading
    # -------------------------------------------------------------------------

    @property
    def max_score(self) -> float:
        return sum(question.point for question in self.questions)

    def evaluate_score(self, answers: Sequence[Any]) -> float:
        """Sum the points of correctly answered questions."""
        score: float = 0
        for index, question in enumerate(self.questions):
            if index < len(answers) and question.is_correct(answers[index]):
                score += question.point
        return score

    def evaluate_percentage(self, answers: Sequence[Any]) -> float:
        """Score as a percentage of the maximum, rounded to 2 decimals."""
        max_score = self.max_score
        if max_score <= 0:
            return 0.0
        return round(self.evaluate_score(answers) / max_score * 100, 2)

    def is_passing(self, score: float, is_percentage: bool = True) -> bool:
        """Check a score against the passing threshold.

        Args:
            score: Percentage score, or raw points when is_percentage is False.
            is_percentage: Whether score is already a percentage.
        """
        if not is_percentage:
            max_score = self.max_score
            if max_score <= 0:
                return False
            score = score / max_score * 100
        return score >= self.passing_score


def _normalize_passing_score(value: float | None) -> float:
    if value is None or value <= 0:
        return DEFAULT_PASSING_SCORE
    if value > 100:
        raise QuizValidationError("Passing score cannot exceed 100", passing_score=value)
    return float(value)
