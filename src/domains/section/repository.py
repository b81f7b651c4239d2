# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Persistence contract for sections."""

from abc import ABC, abstractmethod

from src.domains.section.entities import Section


class SectionRepository(ABC):
    """Abstract section store. Missing sections are returned as None."""

    @abstractmethod
    async def find_by_id(self, section_id: str) -> Section | None:
        ...

    @abstractmethod
    async def find_by_idempotency_key(self, key: str) -> Section | None:
        ...

    @abstractmethod
    async def find_by_course_id(self, course_id: str) -> list[Section]:
        """List active sections of a course ordered by position."""
        ...

    @abstractmethod
    async def save(self, section: Section) -> Section:
        ...

    @abstractmethod
    async def update(self, section: Section) -> Section:
        ...
