# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared command and response building blocks."""

from pydantic import BaseModel, ConfigDict, Field


class Command(BaseModel):
    """Base for commands; identity is verified upstream."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    user_id: str = Field(min_length=1, description="Acting user ID")


class ManagementCommand(Command):
    """Command on a course-owned resource."""

    is_admin: bool = Field(default=False, description="Whether the acting user is an admin")


class ResponseModel(BaseModel):
    """Base for responses built from domain entities."""

    model_config = ConfigDict(from_attributes=True)


class PageParams(BaseModel):
    """Offset pagination parameters."""

    model_config = ConfigDict(frozen=True)

    limit: int = Field(default=20, ge=1, le=100, description="Page size")
    offset: int = Field(default=0, ge=0, description="Items to skip")
