# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson commands and responses."""

from datetime import datetime
from typing import Any

from pydantic import Field

from src.domains.lesson.entities import ContentType
from src.models.common import ManagementCommand, ResponseModel


class CreateLessonCommand(ManagementCommand):
    """Add a lesson to a section."""

    course_id: str
    section_id: str
    idempotency_key: str | None = None
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    content_type: ContentType = ContentType.TEXT
    content_url: str | None = None
    order: int = Field(default=0, ge=0)
    metadata: dict[str, Any] = Field(default_factory=dict)
    is_preview: bool = False
    is_published: bool = False
    duration: int | None = Field(default=None, ge=0, description="Length in seconds")


class UpdateLessonCommand(ManagementCommand):
    """Partially update a lesson."""

    course_id: str
    lesson_id: str
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    content_type: ContentType | None = None
    content_url: str | None = None
    order: int | None = Field(default=None, ge=0)
    metadata: dict[str, Any] | None = None
    is_preview: bool | None = None
    is_published: bool | None = None
    duration: int | None = Field(default=None, ge=0)


class DeleteLessonCommand(ManagementCommand):
    """Soft delete a lesson."""

    course_id: str
    lesson_id: str


class LessonResponse(ResponseModel):
    """Lesson read model."""

    id: str
    section_id: str
    course_id: str
    title: str
    description: str | None = None
    content_type: ContentType
    content_url: str | None = None
    order: int
    metadata: dict[str, Any]
    is_preview: bool
    is_published: bool
    duration: int | None = None
    created_at: datetime
    updated_at: datetime
