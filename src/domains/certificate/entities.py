# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course completion certificate."""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

from src.domains.errors import CertificateValidationError
from src.utils.datetime import epoch_millis, utc_now
from src.utils.text import to_base36

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 100


def generate_certificate_number() -> str:
    """Build a certificate number: ``CERT-<base36 millis>-<8 random>``."""
    timestamp = to_base36(epoch_millis())
    random_part = to_base36(secrets.randbits(41)).rjust(8, "0")[:8]
    return f"CERT-{timestamp}-{random_part}".upper()


def _validate_student_name(name: str | None) -> str:
    if not name or len(name.strip()) < MIN_NAME_LENGTH:
        raise CertificateValidationError(
            f"Student name must be at least {MIN_NAME_LENGTH} characters"
        )
    if len(name.strip()) > MAX_NAME_LENGTH:
        raise CertificateValidationError(
            f"Student name must be at most {MAX_NAME_LENGTH} characters"
        )
    return name.strip()


@dataclass
class Certificate:
    """Certificate issued for a completed enrollment.

    Attributes:
        enrollment_id: Completed enrollment, one certificate per enrollment.
        user_id: Certificate holder.
        course_id: Completed course.
        course_title: Course title at issue time.
        student_name: Name printed on the certificate.
        certificate_number: Unique public number.
    """

    enrollment_id: str
    user_id: str
    course_id: str
    course_title: str
    student_name: str
    completed_at: datetime
    id: str = field(default_factory=lambda: str(uuid4()))
    certificate_number: str = field(default_factory=generate_certificate_number)
    issue_date: datetime = field(default_factory=utc_now)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        self.student_name = _validate_student_name(self.student_name)

    def update_student_name(self, name: str) -> bool:
        """Rename the holder; returns False when the name is unchanged."""
        name = _validate_student_name(name)
        if name == self.student_name:
            return False
        self.student_name = name
        self.updated_at = utc_now()
        return True
