# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment aggregate and its per-unit progress entries.

An enrollment tracks one progress entry per learning unit (lesson or quiz)
of the course. Completion of a unit is monotonic: once a unit is complete
it stays complete, so the completed unit count and the progress percentage
never decrease while the set of units is unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import uuid4

from src.domains.errors import EnrollmentValidationError, ProgressNotFoundError
from src.utils.datetime import utc_now

LESSON_COMPLETION_PERCENT = 80


class EnrollmentStatus(str, Enum):
    """Lifecycle status of an enrollment."""

    ACTIVE = "active"
    COMPLETED = "completed"
    DROPPED = "dropped"


class UnitType(str, Enum):
    """Kind of learning unit a progress entry tracks."""

    LESSON = "lesson"
    QUIZ = "quiz"


@dataclass
class Progress:
    """Progress of one enrollment on one learning unit.

    Attributes:
        enrollment_id: Owning enrollment.
        unit_id: Lesson or quiz id.
        unit_type: Kind of unit.
        is_required: Whether the unit gates course completion.
        completed: Whether the unit counts as done.
        watch_time: Furthest watched position in seconds (lessons).
        duration: Lesson length in seconds (lessons).
        score: Latest quiz score percentage (quizzes).
        best_score: Highest quiz score percentage (quizzes).
        passed: Whether the latest quiz attempt passed (quizzes).
        attempts: Number of quiz attempts (quizzes).
    """

    enrollment_id: str
    unit_id: str
    unit_type: UnitType
    id: str = field(default_factory=lambda: str(uuid4()))
    is_required: bool = True
    completed: bool = False
    completed_at: datetime | None = None
    watch_time: int = 0
    duration: int = 0
    score: float | None = None
    best_score: float | None = None
    passed: bool | None = None
    attempts: int = 0
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    deleted_at: datetime | None = None

    @classmethod
    def for_lesson(cls, enrollment_id: str, lesson_id: str, duration: int | None = None) -> Progress:
        return cls(
            enrollment_id=enrollment_id,
            unit_id=lesson_id,
            unit_type=UnitType.LESSON,
            duration=duration or 0,
        )

    @classmethod
    def for_quiz(cls, enrollment_id: str, quiz_id: str, is_required: bool) -> Progress:
        return cls(
            enrollment_id=enrollment_id,
            unit_id=quiz_id,
            unit_type=UnitType.QUIZ,
            is_required=is_required,
        )

    @property
    def is_active(self) -> bool:
        return self.deleted_at is None

    @property
    def watch_percent(self) -> float:
        if self.duration <= 0:
            return 0.0
        return min(100.0, round(self.watch_time / self.duration * 100, 2))

    def mark_lesson_completed(self) -> bool:
        """Complete a lesson unit.

        Returns:
            True if the unit transitioned to completed.
        """
        if self.unit_type != UnitType.LESSON:
            raise EnrollmentValidationError("Progress entry is not a lesson", unit_id=self.unit_id)
        if self.completed:
            return False
        self._complete()
        return True

    def update_watch_progress(
        self,
        position_seconds: int,
        duration_seconds: int | None = None,
        absolute: bool = True,
    ) -> bool:
        """Record watch time; the lesson completes at 80 percent.

        Args:
            position_seconds: Current position, or watched delta when
                absolute is False.
            duration_seconds: Lesson length, replaces the stored one if set.
            absolute: Whether position_seconds is an absolute position.

        Returns:
            True if the unit transitioned to completed.
        """
        if self.unit_type != UnitType.LESSON:
            raise EnrollmentValidationError("Progress entry is not a lesson", unit_id=self.unit_id)
        if position_seconds < 0:
            raise EnrollmentValidationError("Watch position cannot be negative")

        if absolute:
            self.watch_time = max(self.watch_time, int(position_seconds))
        else:
            self.watch_time += int(position_seconds)
        if duration_seconds and duration_seconds > 0:
            self.duration = int(duration_seconds)
        self.updated_at = utc_now()

        if not self.completed and self.watch_percent >= LESSON_COMPLETION_PERCENT:
            self._complete()
            return True
        return False

    def mark_quiz_completed(self, score: float, passed: bool, require_passing_score: bool) -> bool:
        """Record a quiz attempt.

        When require_passing_score is set the unit completes only on a
        passing attempt, otherwise any attempt completes it. A completed
        unit is never reverted; later attempts only update score and passed.

        Returns:
            True if the unit transitioned to completed.
        """
        if self.unit_type != UnitType.QUIZ:
            raise EnrollmentValidationError("Progress entry is not a quiz", unit_id=self.unit_id)

        self.attempts += 1
        self.score = score
        self.best_score = score if self.best_score is None else max(self.best_score, score)
        self.passed = passed
        self.updated_at = utc_now()

        if self.completed:
            return False
        if require_passing_score and not passed:
            return False
        self._complete()
        return True

    def soft_delete(self) -> None:
        if self.deleted_at is None:
            self.deleted_at = utc_now()
            self.updated_at = self.deleted_at

    def _complete(self) -> None:
        self.completed = True
        self.completed_at = utc_now()
        self.updated_at = self.completed_at


@dataclass
class Enrollment:
    """A student's enrollment in a course.

    Attributes:
        student_id: Enrolled student.
        course_id: Course the student is enrolled in.
        status: Lifecycle status.
        progress_entries: One entry per learning unit.
        total_learning_units: Active units.
        completed_learning_units: Active completed units.
        progress_percent: Completed share in percent, 2 decimals.
        version: Optimistic concurrency version, bumped by repositories.
    """

    student_id: str
    course_id: str
    id: str = field(default_factory=lambda: str(uuid4()))
    instructor_id: str | None = None
    order_id: str | None = None
    idempotency_key: str | None = None
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE
    progress_entries: list[Progress] = field(default_factory=list)
    total_learning_units: int = 0
    completed_learning_units: int = 0
    progress_percent: float = 0.0
    enrolled_at: datetime = field(default_factory=utc_now)
    completed_at: datetime | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    deleted_at: datetime | None = None
    version: int = 0

    def __post_init__(self) -> None:
        if self.progress_entries:
            self._recalculate()

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_completed(self) -> bool:
        return self.status == EnrollmentStatus.COMPLETED

    def belongs_to(self, user_id: str, course_id: str | None = None) -> bool:
        if self.student_id != user_id:
            return False
        return course_id is None or self.course_id == course_id

    def ensure_active(self) -> None:
        """Raise EnrollmentValidationError for dropped or deleted enrollments."""
        if self.is_deleted or self.status == EnrollmentStatus.DROPPED:
            raise EnrollmentValidationError(
                "Enrollment is no longer active",
                enrollment_id=self.id,
            )

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    def attach_progress(self, entries: list[Progress]) -> None:
        """Replace the progress entries and recompute the aggregate."""
        for entry in entries:
            if entry.enrollment_id != self.id:
                raise EnrollmentValidationError(
                    "Progress entry belongs to another enrollment",
                    unit_id=entry.unit_id,
                )
        self.progress_entries = list(entries)
        self._recalculate()

    def get_progress(self, unit_id: str, unit_type: UnitType) -> Progress:
        for entry in self.progress_entries:
            if entry.is_active and entry.unit_id == unit_id and entry.unit_type == unit_type:
                return entry
        raise ProgressNotFoundError(
            f"{unit_type.value.capitalize()} progress not found for {unit_id}",
            unit_id=unit_id,
        )

    def complete_lesson(self, lesson_id: str) -> bool:
        """Mark a lesson complete; returns True if it newly completed."""
        changed = self.get_progress(lesson_id, UnitType.LESSON).mark_lesson_completed()
        self._recalculate()
        return changed

    def record_lesson_watch(
        self,
        lesson_id: str,
        position_seconds: int,
        duration_seconds: int | None = None,
    ) -> bool:
        """Record watch progress; returns True if the lesson newly completed."""
        entry = self.get_progress(lesson_id, UnitType.LESSON)
        changed = entry.update_watch_progress(position_seconds, duration_seconds)
        self._recalculate()
        return changed

    def complete_quiz(
        self,
        quiz_id: str,
        score: float,
        passed: bool,
        require_passing_score: bool,
    ) -> bool:
        """Record a quiz attempt; returns True if the quiz newly completed."""
        entry = self.get_progress(quiz_id, UnitType.QUIZ)
        changed = entry.mark_quiz_completed(score, passed, require_passing_score)
        self._recalculate()
        return changed

    def soft_delete(self) -> None:
        if self.is_deleted:
            return
        self.deleted_at = utc_now()
        self.updated_at = self.deleted_at
        if self.status == EnrollmentStatus.ACTIVE:
            self.status = EnrollmentStatus.DROPPED
        for entry in self.progress_entries:
            entry.soft_delete()

    def _recalculate(self) -> None:
        active = [entry for entry in self.progress_entries if entry.is_active]
        self.total_learning_units = len(active)
        self.completed_learning_units = sum(1 for entry in active if entry.completed)

        if self.total_learning_units == 0:
            self.progress_percent = 0.0
        else:
            percent = self.completed_learning_units / self.total_learning_units * 100
            self.progress_percent = min(100.0, round(percent, 2))

        required_done = all(entry.completed for entry in active if entry.is_required)
        if (
            self.completed_learning_units > 0
            and required_done
            and self.status == EnrollmentStatus.ACTIVE
            and not self.is_deleted
        ):
            self.status = EnrollmentStatus.COMPLETED
            self.completed_at = utc_now()
        self.updated_at = utc_now()
