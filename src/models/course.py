# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course commands and responses."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.domains.course.entities import CourseLevel, CourseStatus
from src.models.common import Command, ManagementCommand, ResponseModel


class CreateCourseCommand(Command):
    """Create a draft course owned by the acting instructor."""

    idempotency_key: str | None = Field(default=None, description="Caller supplied idempotency key")
    title: str = Field(min_length=1, max_length=255, description="Course title")
    description: str | None = Field(default=None, description="Course description")
    thumbnail: str | None = Field(default=None, description="Thumbnail URL")
    level: CourseLevel = Field(default=CourseLevel.ALL_LEVELS, description="Audience level")
    language: str = Field(default="en", description="Course language")
    category_id: str | None = Field(default=None, description="Category ID")
    price: float = Field(default=0.0, description="Price")
    discount_price: float | None = Field(default=None, description="Discounted price")
    currency: str = Field(default="USD", description="ISO currency code")


class UpdateCourseCommand(ManagementCommand):
    """Partially update course details."""

    course_id: str
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    thumbnail: str | None = None
    level: CourseLevel | None = None
    language: str | None = None
    category_id: str | None = None


class UpdateCoursePriceCommand(ManagementCommand):
    """Change the course price."""

    course_id: str
    price: float
    discount_price: float | None = None
    currency: str | None = None


class CourseActionCommand(ManagementCommand):
    """Publish, unpublish or delete a course."""

    course_id: str


class CourseResponse(ResponseModel):
    """Course read model."""

    id: str
    instructor_id: str
    title: str
    slug: str
    description: str | None = None
    thumbnail: str | None = None
    level: CourseLevel
    language: str
    category_id: str | None = None
    price: float
    discount_price: float | None = None
    currency: str
    status: CourseStatus
    rating: float
    number_of_rating: int
    students: int
    number_of_sections: int
    number_of_lessons: int
    number_of_quizzes: int
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


# Named sort options mapped to (field, order).
SORT_OPTIONS: dict[str, tuple[str, str]] = {
    "latest": ("updated_at", "desc"),
    "popular": ("rating", "desc"),
    "rating": ("rating", "desc"),
    "price-low": ("price", "asc"),
    "price-high": ("price", "desc"),
}


class CoursePageQuery(BaseModel):
    """Page and sort order of a course listing.

    sort_by takes a sortable field or a named sort option; anything else
    falls back to the most recently updated courses first.
    """

    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1, description="1-based page number")
    page_size: int = Field(default=10, ge=1, le=100, description="Courses per page")
    sort_by: str | None = Field(default=None, description="Sort field or option")
    sort_order: str = Field(default="desc", description="asc or desc")


class ListCoursesQuery(CoursePageQuery):
    """Catalog listing filters."""

    status: CourseStatus | None = None
    search: str | None = Field(default=None, max_length=200, description="Title or description text")
    category_ids: list[str] = Field(default_factory=list)
    levels: list[CourseLevel] = Field(default_factory=list)
    min_price: float | None = Field(default=None, ge=0)
    max_price: float | None = Field(default=None, ge=0)
    min_rating: float | None = Field(default=None, ge=0, le=5)


class CourseListResponse(BaseModel):
    """Page of courses."""

    items: list[CourseResponse]
    total: int
    page: int
    page_size: int
