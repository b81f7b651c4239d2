# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain error taxonomy for the course service.

Every domain failure carries an explicit ErrorKind tag and a stable
error_code. Transport adapters translate errors with
to_transport_status(), which matches on the kind rather than on the
concrete exception class.

Example:
    >>> try:
    ...     await service.publish_course(command)
    ... except DomainError as e:
    ...     status = to_transport_status(e)
    ...     print(status.grpc_code, status.http_status, e.error_code)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Tag carried by every domain error."""

    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    ALREADY_EXISTS = "already_exists"
    ALREADY_REVIEWED = "already_reviewed"
    VALIDATION = "validation"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class TransportStatus:
    """Transport-level rendering of a domain error.

    Attributes:
        grpc_code: gRPC status code name (e.g. NOT_FOUND).
        http_status: Equivalent HTTP status code.
        retryable: Whether retrying the same command may succeed.
    """

    grpc_code: str
    http_status: int
    retryable: bool = False


class DomainError(Exception):
    """Base exception for all course service domain errors.

    Attributes:
        kind: Error kind tag.
        error_code: Stable machine readable code.
        message: Human readable message.
        details: Optional structured context.
    """

    kind: ErrorKind = ErrorKind.VALIDATION
    error_code: str = "DOMAIN_ERROR"
    default_message: str = "Domain error"

    def __init__(self, message: str | None = None, **details: Any) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.error_code}: {self.message}"


class NotFoundError(DomainError):
    """Base exception for missing aggregates."""

    kind = ErrorKind.NOT_FOUND
    error_code = "NOT_FOUND"
    default_message = "Resource not found"


class UnauthorizedError(DomainError):
    """Raised when the acting user may not perform the operation."""

    kind = ErrorKind.UNAUTHORIZED
    error_code = "UNAUTHORIZED"
    default_message = "You are not authorized to perform this action"


class AlreadyExistsError(DomainError):
    """Base exception for uniqueness violations."""

    kind = ErrorKind.ALREADY_EXISTS
    error_code = "ALREADY_EXISTS"
    default_message = "Resource already exists"


class ValidationError(DomainError):
    """Base exception for domain rule violations."""

    kind = ErrorKind.VALIDATION
    error_code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class ConcurrencyConflictError(DomainError):
    """Raised by repositories when a conditional write loses a race.

    Services retry the whole load-mutate-save cycle on this error.
    """

    kind = ErrorKind.CONFLICT
    error_code = "CONCURRENCY_CONFLICT"
    default_message = "Aggregate was modified concurrently"


# =============================================================================
# Course
# =============================================================================


class CourseNotFoundError(NotFoundError):
    """Raised when course is not found."""

    error_code = "COURSE_NOT_FOUND"
    default_message = "Course not found"


class CourseAlreadyExistsError(AlreadyExistsError):
    """Raised when a course with the same slug already exists."""

    error_code = "COURSE_ALREADY_EXISTS"
    default_message = "Course with this title already exists"


class CourseValidationError(ValidationError):
    """Raised when a course mutation violates a course rule."""

    error_code = "COURSE_VALIDATION_ERROR"
    default_message = "Course validation failed"


# =============================================================================
# Section / Lesson / Quiz
# =============================================================================


class SectionNotFoundError(NotFoundError):
    """Raised when section is not found."""

    error_code = "SECTION_NOT_FOUND"
    default_message = "Section not found"


class SectionValidationError(ValidationError):
    """Raised when section data is invalid."""

    error_code = "SECTION_VALIDATION_ERROR"
    default_message = "Section validation failed"


class LessonNotFoundError(NotFoundError):
    """Raised when lesson is not found."""

    error_code = "LESSON_NOT_FOUND"
    default_message = "Lesson not found"


class LessonValidationError(ValidationError):
    """Raised when lesson data is invalid."""

    error_code = "LESSON_VALIDATION_ERROR"
    default_message = "Lesson validation failed"


class QuizNotFoundError(NotFoundError):
    """Raised when quiz is not found."""

    error_code = "QUIZ_NOT_FOUND"
    default_message = "Quiz not found"


class QuizQuestionNotFoundError(NotFoundError):
    """Raised when a quiz question is not found."""

    error_code = "QUIZ_QUESTION_NOT_FOUND"
    default_message = "Quiz question not found"


class QuizValidationError(ValidationError):
    """Raised when quiz or question data is invalid."""

    error_code = "QUIZ_VALIDATION_ERROR"
    default_message = "Quiz validation failed"


# =============================================================================
# Review
# =============================================================================


class ReviewNotFoundError(NotFoundError):
    """Raised when review is not found."""

    error_code = "REVIEW_NOT_FOUND"
    default_message = "Review not found"


class AlreadyReviewedError(DomainError):
    """Raised when the user already reviewed the course."""

    kind = ErrorKind.ALREADY_REVIEWED
    error_code = "ALREADY_REVIEWED"
    default_message = "You have already reviewed this course"


class ReviewValidationError(ValidationError):
    """Raised when review data or state is invalid."""

    error_code = "REVIEW_VALIDATION_ERROR"
    default_message = "Review validation failed"


# =============================================================================
# Enrollment / Progress / Certificate
# =============================================================================


class EnrollmentNotFoundError(NotFoundError):
    """Raised when enrollment is not found or does not match the caller."""

    error_code = "ENROLLMENT_NOT_FOUND"
    default_message = "Enrollment not found"


class ProgressNotFoundError(NotFoundError):
    """Raised when an enrollment has no progress entry for a unit."""

    error_code = "PROGRESS_NOT_FOUND"
    default_message = "Progress not found"


class EnrollmentValidationError(ValidationError):
    """Raised when an enrollment mutation violates an enrollment rule."""

    error_code = "ENROLLMENT_VALIDATION_ERROR"
    default_message = "Enrollment validation failed"


class CertificateNotFoundError(NotFoundError):
    """Raised when certificate is not found."""

    error_code = "CERTIFICATE_NOT_FOUND"
    default_message = "Certificate not found"


class CertificateValidationError(ValidationError):
    """Raised when a certificate cannot be issued or updated."""

    error_code = "CERTIFICATE_VALIDATION_ERROR"
    default_message = "Certificate validation failed"


# =============================================================================
# Transport mapping
# =============================================================================


def to_transport_status(error: DomainError) -> TransportStatus:
    """Translate a domain error into its transport status.

    Args:
        error: Domain error raised by a service.

    Returns:
        gRPC code name, HTTP status and retry hint for the error kind.
    """
    match error.kind:
        case ErrorKind.NOT_FOUND:
            return TransportStatus("NOT_FOUND", 404)
        case ErrorKind.UNAUTHORIZED:
            return TransportStatus("PERMISSION_DENIED", 403)
        case ErrorKind.ALREADY_EXISTS | ErrorKind.ALREADY_REVIEWED:
            return TransportStatus("ALREADY_EXISTS", 409)
        case ErrorKind.VALIDATION:
            return TransportStatus("INVALID_ARGUMENT", 400)
        case ErrorKind.CONFLICT:
            return TransportStatus("ABORTED", 409, retryable=True)


def is_retryable(error: Exception) -> bool:
    """Check whether a failed command may be retried unchanged.

    Business-rule failures are final. Anything that is not a domain error
    is an infrastructure failure, and idempotency keys make replaying the
    command safe.
    """
    if isinstance(error, DomainError):
        return to_transport_status(error).retryable
    return True
