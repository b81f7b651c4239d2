"""Course Service.

Course-management domain service: courses, sections, lessons, quizzes,
reviews, enrollments and certificates, with Kafka event publication and
Redis-backed caching.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
