# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Section commands and responses."""

from datetime import datetime

from pydantic import Field

from src.models.common import ManagementCommand, ResponseModel


class CreateSectionCommand(ManagementCommand):
    """Add a section to a course."""

    course_id: str
    idempotency_key: str | None = None
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    order: int = Field(default=0, ge=0)
    is_published: bool = False


class UpdateSectionCommand(ManagementCommand):
    """Partially update a section."""

    course_id: str
    section_id: str
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    order: int | None = Field(default=None, ge=0)
    is_published: bool | None = None


class DeleteSectionCommand(ManagementCommand):
    """Soft delete a section."""

    course_id: str
    section_id: str


class SectionResponse(ResponseModel):
    """Section read model."""

    id: str
    course_id: str
    title: str
    description: str | None = None
    order: int
    is_published: bool
    created_at: datetime
    updated_at: datetime
