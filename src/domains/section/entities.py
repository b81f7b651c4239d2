# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Section entity, an ordered chapter of a course."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

from src.domains.errors import SectionValidationError
from src.utils.datetime import utc_now


@dataclass
class Section:
    """Course section.

    Attributes:
        id: Section identifier.
        course_id: Owning course.
        title: Section title.
        order: Position within the course.
        is_published: Whether learners can see the section.
    """

    course_id: str
    title: str
    id: str = field(default_factory=lambda: str(uuid4()))
    description: str | None = None
    order: int = 0
    is_published: bool = False
    idempotency_key: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    deleted_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise SectionValidationError("Section title is required")
        if self.order < 0:
            raise SectionValidationError("Section order cannot be negative")

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def update_details(
        self,
        title: str | None = None,
        description: str | None = None,
        order: int | None = None,
        is_published: bool | None = None,
    ) -> None:
        if title is not None:
            if not title.strip():
                raise SectionValidationError("Section title is required")
            self.title = title.strip()
        if description is not None:
            self.description = description
        if order is not None:
            if order < 0:
                raise SectionValidationError("Section order cannot be negative")
            self.order = order
        if is_published is not None:
            self.is_published = is_published
        self.updated_at = utc_now()

    def soft_delete(self) -> None:
        self.deleted_at = utc_now()
        self.is_published = False
        self.updated_at = self.deleted_at
