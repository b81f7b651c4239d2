# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cache key namespace for course service read models."""


class CacheKeys:
    """Builders for every cache key the service reads or invalidates."""

    # Course
    @staticmethod
    def course(course_id: str) -> str:
        return f"course:{course_id}"

    @staticmethod
    def course_by_slug(slug: str) -> str:
        return f"course:slug:{slug}"

    @staticmethod
    def instructor_courses_page(instructor_id: str, page: int, page_size: int, sort_by: str, sort_order: str) -> str:
        return f"courses:instructor:{instructor_id}:page:{page}:size:{page_size}:sort:{sort_by}:{sort_order}"

    @staticmethod
    def instructor_courses_pattern(instructor_id: str) -> str:
        return f"courses:instructor:{instructor_id}:*"

    # Section
    @staticmethod
    def section(section_id: str) -> str:
        return f"section:{section_id}"

    @staticmethod
    def course_sections(course_id: str) -> str:
        return f"sections:course:{course_id}"

    # Lesson
    @staticmethod
    def lesson(lesson_id: str) -> str:
        return f"lesson:{lesson_id}"

    @staticmethod
    def section_lessons(section_id: str) -> str:
        return f"lessons:section:{section_id}"

    # Quiz
    @staticmethod
    def quiz(quiz_id: str) -> str:
        return f"quiz:{quiz_id}"

    @staticmethod
    def section_quiz(section_id: str) -> str:
        return f"quiz:section:{section_id}"

    @staticmethod
    def course_quizzes(course_id: str) -> str:
        return f"quizzes:course:{course_id}"

    # Review
    @staticmethod
    def review(review_id: str) -> str:
        return f"review:{review_id}"

    @staticmethod
    def course_reviews_pattern(course_id: str) -> str:
        return f"reviews:course:{course_id}:*"

    @staticmethod
    def course_reviews_page(course_id: str, limit: int, offset: int) -> str:
        return f"reviews:course:{course_id}:limit:{limit}:offset:{offset}"

    # Enrollment
    @staticmethod
    def enrollment(enrollment_id: str) -> str:
        return f"enrollment:{enrollment_id}"

    @staticmethod
    def enrollment_check(user_id: str, course_id: str) -> str:
        return f"enrollment:check:{user_id}:{course_id}"

    @staticmethod
    def enrollment_progress(enrollment_id: str) -> str:
        return f"progress:enrollment:{enrollment_id}"

    # Certificate
    @staticmethod
    def certificate(certificate_id: str) -> str:
        return f"certificate:{certificate_id}"

    @staticmethod
    def user_certificates(user_id: str) -> str:
        return f"certificates:user:{user_id}"

    # Event processing
    @staticmethod
    def processed_event(consumer: str, event_id: str) -> str:
        return f"processed-event:{consumer}:{event_id}"
