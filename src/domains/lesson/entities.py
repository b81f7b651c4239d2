# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson entity, a single learning unit inside a section."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from src.domains.errors import LessonValidationError
from src.utils.datetime import utc_now


class ContentType(str, Enum):
    """Kind of content a lesson delivers."""

    VIDEO = "video"
    TEXT = "text"
    QUIZ = "quiz"
    PDF = "pdf"
    LINK = "link"


@dataclass
class Lesson:
    """Course lesson.

    Attributes:
        id: Lesson identifier.
        section_id: Owning section.
        course_id: Course of the owning section.
        title: Lesson title.
        content_type: Kind of content.
        content_url: Location of the content (video, pdf, link).
        metadata: Free-form content metadata (file name, size, mime type).
        duration: Length in seconds, used for watch progress.
    """

    section_id: str
    course_id: str
    title: str
    id: str = field(default_factory=lambda: str(uuid4()))
    description: str | None = None
    content_type: ContentType = ContentType.TEXT
    content_url: str | None = None
    order: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)
    is_preview: bool = False
    is_published: bool = False
    duration: int | None = None
    idempotency_key: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    deleted_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise LessonValidationError("Lesson title is required")
        self.title = self.title.strip()
        self._validate(self.order, self.duration)
        self.metadata = dict(self.metadata)

    @staticmethod
    def _validate(order: int | None, duration: int | None) -> None:
        if order is not None and order < 0:
            raise LessonValidationError("Lesson order cannot be negative")
        if duration is not None and duration < 0:
            raise LessonValidationError("Lesson duration cannot be negative")

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def update_details(
        self,
        title: str | None = None,
        description: str | None = None,
        content_type: ContentType | None = None,
        content_url: str | None = None,
        order: int | None = None,
        metadata: dict[str, Any] | None = None,
        is_preview: bool | None = None,
        is_published: bool | None = None,
        duration: int | None = None,
    ) -> None:
        """Apply a partial update; metadata keys are merged."""
        self._validate(order, duration)
        if title is not None:
            if not title.strip():
                raise LessonValidationError("Lesson title is required")
            self.title = title.strip()
        if description is not None:
            self.description = description
        if content_type is not None:
            self.content_type = content_type
        if content_url is not None:
            self.content_url = content_url
        if order is not None:
            self.order = order
        if metadata is not None:
            self.metadata = {**self.metadata, **metadata}
        if is_preview is not None:
            self.is_preview = is_preview
        if is_published is not None:
            self.is_published = is_published
        if duration is not None:
            self.duration = duration
        self.updated_at = utc_now()

    def soft_delete(self) -> None:
        self.deleted_at = utc_now()
        self.is_published = False
        self.updated_at = self.deleted_at
