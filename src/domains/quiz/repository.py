# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Persistence contract for quizzes."""

from abc import ABC, abstractmethod

from src.domains.quiz.entities import Quiz


class QuizRepository(ABC):
    """Abstract quiz store. Missing quizzes are returned as None."""

    @abstractmethod
    async def find_by_id(self, quiz_id: str) -> Quiz | None:
        ...

    @abstractmethod
    async def find_by_idempotency_key(self, key: str) -> Quiz | None:
        ...

    @abstractmethod
    async def find_by_section_id(self, section_id: str) -> Quiz | None:
        """Load the quiz of a section; a section holds at most one."""
        ...

    @abstractmethod
    async def find_by_course_id(self, course_id: str) -> list[Quiz]:
        ...

    @abstractmethod
    async def save(self, quiz: Quiz) -> Quiz:
        ...

    @abstractmethod
    async def update(self, quiz: Quiz) -> Quiz:
        ...
