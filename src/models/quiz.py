# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Quiz commands and responses."""

from datetime import datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from src.domains.quiz.entities import Question, QuestionOption, QuestionType
from src.models.common import ManagementCommand, ResponseModel


class QuestionOptionInput(BaseModel):
    """Answer option as submitted by the instructor."""

    value: str
    is_correct: bool = False


class QuestionInput(BaseModel):
    """Question as submitted by the instructor."""

    id: str | None = None
    question: str
    type: QuestionType
    correct_answer: Any = None
    options: list[QuestionOptionInput] = Field(default_factory=list)
    point: float = 1
    required: bool = True
    time_limit: int | None = None
    explanation: str | None = None

    def to_entity(self) -> Question:
        """Build the domain question; domain rules are checked there."""
        return Question(
            id=self.id or str(uuid4()),
            question=self.question,
            type=self.type,
            correct_answer=self.correct_answer,
            options=[QuestionOption(value=o.value, is_correct=o.is_correct) for o in self.options],
            point=self.point,
            required=self.required,
            time_limit=self.time_limit,
            explanation=self.explanation,
        )


class CreateQuizCommand(ManagementCommand):
    """Create the quiz of a section."""

    course_id: str
    section_id: str
    idempotency_key: str | None = None
    title: str | None = None
    description: str | None = None
    time_limit: int | None = Field(default=None, ge=0)
    max_attempts: int | None = Field(default=None, ge=1)
    passing_score: float | None = None
    is_required: bool = False
    questions: list[QuestionInput]


class UpdateQuizCommand(ManagementCommand):
    """Partially update a quiz; questions are replaced as a whole."""

    course_id: str
    quiz_id: str
    title: str | None = None
    description: str | None = None
    time_limit: int | None = Field(default=None, ge=0)
    max_attempts: int | None = Field(default=None, ge=1)
    passing_score: float | None = None
    is_required: bool | None = None
    questions: list[QuestionInput] | None = None


class DeleteQuizCommand(ManagementCommand):
    """Soft delete a quiz."""

    course_id: str
    quiz_id: str


class QuestionOptionResponse(ResponseModel):
    value: str
    is_correct: bool


class QuestionResponse(ResponseModel):
    id: str
    question: str
    type: QuestionType
    correct_answer: Any = None
    options: list[QuestionOptionResponse]
    point: float
    required: bool
    time_limit: int | None = None
    explanation: str | None = None


class QuizResponse(ResponseModel):
    """Quiz read model including answers, for course managers."""

    id: str
    section_id: str
    course_id: str
    title: str | None = None
    description: str | None = None
    time_limit: int | None = None
    max_attempts: int | None = None
    passing_score: float
    is_required: bool
    max_score: float
    questions: list[QuestionResponse]
    created_at: datetime
    updated_at: datetime
