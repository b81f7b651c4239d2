# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Certificate service.

Issues one certificate per completed enrollment. Generating again for the
same enrollment returns the existing certificate, refreshing the printed
student name when it changed.
"""

from __future__ import annotations

import logging
from typing import Any

from src.domains.certificate.entities import Certificate
from src.domains.certificate.repository import CertificateRepository
from src.domains.course.repository import CourseRepository
from src.domains.enrollment.repository import EnrollmentRepository
from src.domains.errors import (
    CertificateNotFoundError,
    CertificateValidationError,
    CourseNotFoundError,
    EnrollmentNotFoundError,
    UnauthorizedError,
)
from src.domains.shared.service import DomainService
from src.infrastructure.cache.keys import CacheKeys
from src.infrastructure.events.types import IntegrationEvents, KafkaTopics
from src.infrastructure.telemetry.tracing import traced
from src.models.certificate import CertificateResponse, GenerateCertificateCommand
from src.utils.datetime import format_iso, utc_now

logger = logging.getLogger(__name__)


class CertificateService(DomainService):
    """Service for course completion certificates."""

    def __init__(
        self,
        certificates: CertificateRepository,
        enrollments: EnrollmentRepository,
        courses: CourseRepository,
        **collaborators: Any,
    ) -> None:
        super().__init__(**collaborators)
        self.certificates = certificates
        self.enrollments = enrollments
        self.courses = courses

    @traced("certificate.generate")
    async def generate_certificate(self, command: GenerateCertificateCommand) -> CertificateResponse:
        """Issue the certificate of a completed enrollment.

        Args:
            command: Enrollment and the name to print.

        Returns:
            The new or existing certificate of the enrollment.

        Raises:
            EnrollmentNotFoundError: If enrollment not found.
            UnauthorizedError: If the enrollment belongs to another user.
            CertificateValidationError: If the course is not completed or the
                name is invalid.
            CourseNotFoundError: If the course no longer exists.
        """
        enrollment = await self.enrollments.find_by_id(command.enrollment_id)
        if not enrollment or enrollment.is_deleted:
            raise EnrollmentNotFoundError(enrollment_id=command.enrollment_id)

        if enrollment.student_id != command.user_id:
            raise UnauthorizedError(
                "Only the enrolled student can get this certificate",
                enrollment_id=enrollment.id,
                user_id=command.user_id,
            )

        if not enrollment.is_completed and enrollment.progress_percent < 100:
            raise CertificateValidationError(
                "Course must be completed to generate certificate",
                enrollment_id=enrollment.id,
                progress_percent=enrollment.progress_percent,
            )

        existing = await self.certificates.find_by_enrollment_id(enrollment.id)
        if existing is not None:
            if existing.update_student_name(command.student_name):
                existing = await self.certificates.update(existing)
                logger.info("Renamed certificate holder: certificate=%s", existing.id)
                await self._invalidate_certificate(existing)
            return CertificateResponse.model_validate(existing)

        course = await self.courses.find_by_id(enrollment.course_id)
        if not course:
            raise CourseNotFoundError(course_id=enrollment.course_id)

        certificate = Certificate(
            enrollment_id=enrollment.id,
            user_id=enrollment.student_id,
            course_id=course.id,
            course_title=course.title,
            student_name=command.student_name,
            completed_at=enrollment.completed_at or utc_now(),
        )
        certificate = await self.certificates.save(certificate)

        logger.info(
            "Issued certificate: certificate=%s, number=%s, enrollment=%s",
            certificate.id,
            certificate.certificate_number,
            enrollment.id,
        )

        await self._invalidate_certificate(certificate)
        await self._emit(
            KafkaTopics.COURSE_CERTIFICATE_ISSUED,
            IntegrationEvents.CERTIFICATE_ISSUED,
            {
                "certificateId": certificate.id,
                "certificateNumber": certificate.certificate_number,
                "enrollmentId": certificate.enrollment_id,
                "courseId": certificate.course_id,
                "userId": certificate.user_id,
                "issueDate": format_iso(certificate.issue_date),
            },
            key=certificate.course_id,
        )
        return CertificateResponse.model_validate(certificate)

    @traced("certificate.get")
    async def get_certificate(self, certificate_id: str) -> CertificateResponse:
        """Get a certificate by id.

        Raises:
            CertificateNotFoundError: If certificate not found.
        """

        async def load() -> dict[str, Any] | None:
            certificate = await self.certificates.find_by_id(certificate_id)
            return CertificateResponse.model_validate(certificate).model_dump(mode="json") if certificate else None

        data = await self._cached(CacheKeys.certificate(certificate_id), load)
        if data is None:
            raise CertificateNotFoundError(certificate_id=certificate_id)
        return CertificateResponse.model_validate(data)

    @traced("certificate.get_by_number")
    async def get_certificate_by_number(self, certificate_number: str) -> CertificateResponse:
        """Look up a certificate by its public number, for verification.

        Raises:
            CertificateNotFoundError: If certificate not found.
        """
        certificate = await self.certificates.find_by_number(certificate_number.strip().upper())
        if not certificate:
            raise CertificateNotFoundError(certificate_number=certificate_number)
        return CertificateResponse.model_validate(certificate)

    @traced("certificate.get_by_enrollment")
    async def get_certificate_by_enrollment(self, enrollment_id: str, user_id: str) -> CertificateResponse:
        """Get the certificate issued for an enrollment to its student.

        Raises:
            CertificateNotFoundError: If no certificate was issued.
            UnauthorizedError: If the certificate belongs to another user.
        """
        certificate = await self.certificates.find_by_enrollment_id(enrollment_id)
        if not certificate:
            raise CertificateNotFoundError(enrollment_id=enrollment_id)
        if certificate.user_id != user_id:
            raise UnauthorizedError(
                "Only the certificate holder can view it",
                enrollment_id=enrollment_id,
                user_id=user_id,
            )
        return CertificateResponse.model_validate(certificate)

    @traced("certificate.list")
    async def list_user_certificates(self, user_id: str) -> list[CertificateResponse]:
        async def load() -> list[dict[str, Any]]:
            certificates = await self.certificates.find_by_user_id(user_id)
            return [CertificateResponse.model_validate(c).model_dump(mode="json") for c in certificates]

        data = await self._cached(CacheKeys.user_certificates(user_id), load)
        return [CertificateResponse.model_validate(item) for item in data]

    async def _invalidate_certificate(self, certificate: Certificate) -> None:
        await self._invalidate(
            [CacheKeys.certificate(certificate.id), CacheKeys.user_certificates(certificate.user_id)]
        )
