# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Review commands and responses.

Ratings are validated by the domain, not here, so that out-of-range values
surface as domain validation errors.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from src.models.common import Command, ResponseModel


class ReviewAuthor(BaseModel):
    """Author details supplied by the identity layer."""

    name: str | None = None
    avatar: str | None = None
    email: str | None = None


class ReviewCommand(Command):
    """Fields shared by every review command."""

    enrollment_id: str
    course_id: str


class AddReviewCommand(ReviewCommand):
    rating: int
    comment: str = Field(default="", max_length=5000)
    author: ReviewAuthor = Field(default_factory=ReviewAuthor)


class UpdateReviewCommand(ReviewCommand):
    review_id: str
    rating: int
    comment: str | None = Field(default=None, max_length=5000)


class DeleteReviewCommand(ReviewCommand):
    review_id: str


class ReviewUserResponse(ResponseModel):
    id: str
    name: str | None = None
    avatar: str | None = None
    email: str | None = None


class ReviewResponse(ResponseModel):
    """Review read model."""

    id: str
    user_id: str
    user: ReviewUserResponse
    course_id: str
    enrollment_id: str
    rating: int
    comment: str
    created_at: datetime
    updated_at: datetime


class ReviewListResponse(BaseModel):
    """Page of course reviews."""

    items: list[ReviewResponse]
    total: int
    limit: int
    offset: int
