# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain layer of the course service.

Each domain package holds its entities and repository contracts; the
use cases live in the package's service module.

Domains:
    course: Course details, pricing, publication and rating.
    section: Ordered chapters of a course.
    lesson: Learning units inside a section.
    quiz: Section quizzes and grading.
    review: Student reviews feeding the course rating.
    enrollment: Student enrollments and unit progress.
    certificate: Completion certificates.
    shared: Guards, retry policy and the service base class.
"""
