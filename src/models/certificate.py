# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Certificate commands and responses."""

from datetime import datetime

from src.models.common import Command, ResponseModel


class GenerateCertificateCommand(Command):
    enrollment_id: str
    student_name: str


class CertificateResponse(ResponseModel):
    id: str
    certificate_number: str
    enrollment_id: str
    user_id: str
    course_id: str
    course_title: str
    student_name: str
    completed_at: datetime
    issue_date: datetime
