# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course domain package.

This package provides course management functionality including:
- Course details, pricing and publication
- Rating aggregate fed by reviews
- Content and student counters

The service lives in src.domains.course.service.
"""

from src.domains.course.entities import (
    Course,
    CourseLevel,
    CourseStatus,
    validate_rating,
)
from src.domains.course.repository import CourseRepository

__all__ = [
    "Course",
    "CourseLevel",
    "CourseStatus",
    "CourseRepository",
    "validate_rating",
]
