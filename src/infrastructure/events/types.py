# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Centralized event type and topic definitions.

Two families of names live here:
- EventTypes: in-process events published on the EventBus
- IntegrationEvents / KafkaTopics: events exchanged with other services
"""


class EventTypes:
    """In-process domain events organized by aggregate."""

    class Section:
        CREATED = "section.created"
        DELETED = "section.deleted"

    class Lesson:
        CREATED = "lesson.created"
        DELETED = "lesson.deleted"

    class Quiz:
        CREATED = "quiz.created"
        DELETED = "quiz.deleted"


class IntegrationEvents:
    """Values of the ``eventType`` field of Kafka messages."""

    COURSE_CREATED = "CourseCreated"
    COURSE_UPDATED = "CourseUpdated"
    COURSE_DELETED = "CourseDeleted"
    COURSE_PUBLISHED = "CoursePublished"
    COURSE_UNPUBLISHED = "CourseUnpublished"
    COURSE_REVIEW_SUBMITTED = "CourseReviewSubmitted"
    ENROLLMENT_CREATED = "CourseEnrollmentCreated"
    CERTIFICATE_ISSUED = "CourseCertificateIssued"
    NOTIFICATION_IN_APP = "NotificationInApp"
    ORDER_COURSE_SUCCEEDED = "OrderCourseSucceeded"


class KafkaTopics:
    """Kafka topics produced or consumed by the course service."""

    COURSE_CREATED = "course.created"
    COURSE_UPDATED = "course.updated"
    COURSE_DELETED = "course.deleted"
    COURSE_PUBLISHED = "course.published"
    COURSE_UNPUBLISHED = "course.unpublished"
    COURSE_REVIEW_SUBMITTED = "course.review.submitted"
    COURSE_ENROLLMENT_CREATED = "course.enrollment.created"
    COURSE_CERTIFICATE_ISSUED = "course.certificate.issued"
    NOTIFICATION_IN_APP = "notification.in-app"

    # Consumed
    ORDER_COURSE_SUCCEEDED = "order.course.succeeded"
