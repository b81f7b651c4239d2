# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson domain package."""

from src.domains.lesson.entities import ContentType, Lesson
from src.domains.lesson.repository import LessonRepository

__all__ = [
    "ContentType",
    "Lesson",
    "LessonRepository",
]
