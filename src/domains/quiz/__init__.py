# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Quiz domain package.

This package provides section quizzes including:
- Question validation per question type
- Grading of submitted answers
- Passing score checks
"""

from src.domains.quiz.entities import (
    DEFAULT_PASSING_SCORE,
    Question,
    QuestionOption,
    QuestionType,
    Quiz,
)
from src.domains.quiz.repository import QuizRepository

__all__ = [
    "DEFAULT_PASSING_SCORE",
    "Question",
    "QuestionOption",
    "QuestionType",
    "Quiz",
    "QuizRepository",
]
