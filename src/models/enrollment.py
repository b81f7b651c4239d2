# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment commands, consumed order events and responses."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.domains.enrollment.entities import EnrollmentStatus, UnitType
from src.models.common import Command, ManagementCommand, ResponseModel


class OrderItem(BaseModel):
    """Course line of a paid order."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    course_id: str = Field(alias="courseId")


class OrderCourseSucceededEvent(BaseModel):
    """Payload of the order service's OrderCourseSucceeded event."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    event_id: str = Field(alias="eventId")
    order_id: str = Field(alias="orderId")
    user_id: str = Field(alias="userId")
    items: list[OrderItem] = Field(default_factory=list)


class SubmitQuizCommand(Command):
    """Record an already graded quiz result."""

    enrollment_id: str
    quiz_id: str
    score: float = Field(ge=0, le=100, description="Score percentage")


class SubmitQuizAttemptCommand(Command):
    """Grade submitted answers and record the attempt."""

    enrollment_id: str
    quiz_id: str
    answers: list[Any]


class UpdateLessonProgressCommand(Command):
    """Report watch progress or explicit completion of a lesson."""

    enrollment_id: str
    lesson_id: str
    position_seconds: int = Field(default=0, ge=0)
    duration_seconds: int | None = Field(default=None, ge=0)
    completed: bool = False


class DeleteEnrollmentCommand(ManagementCommand):
    enrollment_id: str


class ProgressResponse(ResponseModel):
    id: str
    unit_id: str
    unit_type: UnitType
    is_required: bool
    completed: bool
    completed_at: datetime | None = None
    watch_time: int
    duration: int
    score: float | None = None
    best_score: float | None = None
    passed: bool | None = None
    attempts: int


class EnrollmentResponse(ResponseModel):
    """Enrollment read model with progress."""

    id: str
    student_id: str
    course_id: str
    order_id: str | None = None
    status: EnrollmentStatus
    total_learning_units: int
    completed_learning_units: int
    progress_percent: float
    enrolled_at: datetime
    completed_at: datetime | None = None
    progress_entries: list[ProgressResponse] = Field(default_factory=list)


class QuizSubmissionResponse(BaseModel):
    """Outcome of a quiz submission."""

    enrollment_id: str
    quiz_id: str
    score: float
    passing_score: float
    passed: bool
    unit_completed: bool
    attempts: int
    progress_percent: float
    status: EnrollmentStatus


class EnrollmentCheckResponse(BaseModel):
    is_enrolled: bool
    enrollment_id: str | None = None
    status: EnrollmentStatus | None = None


class EnrollmentProgressResponse(BaseModel):
    """Progress summary of an enrollment split by unit type."""

    enrollment_id: str
    course_id: str
    student_id: str
    status: EnrollmentStatus
    progress_percent: float
    completed_learning_units: int
    total_learning_units: int
    lessons: list[ProgressResponse] = Field(default_factory=list)
    quizzes: list[ProgressResponse] = Field(default_factory=list)
