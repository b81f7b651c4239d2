# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment domain package.

This package provides student course enrollments including:
- Enrollment creation from paid orders
- Per-unit progress for lessons and quizzes
- Completion tracking
"""

from src.domains.enrollment.entities import (
    LESSON_COMPLETION_PERCENT,
    Enrollment,
    EnrollmentStatus,
    Progress,
    UnitType,
)
from src.domains.enrollment.repository import EnrollmentRepository, ProgressRepository

__all__ = [
    "LESSON_COMPLETION_PERCENT",
    "Enrollment",
    "EnrollmentRepository",
    "EnrollmentStatus",
    "Progress",
    "ProgressRepository",
    "UnitType",
]
