# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the Course aggregate."""

import pytest

from src.domains.course.entities import Course, CourseStatus, validate_rating
from src.domains.errors import CourseValidationError


def make_course(**overrides) -> Course:
    data = {"instructor_id": "instructor-1", "title": "Intro to Python"}
    data.update(overrides)
    return Course(**data)


def publishable_course() -> Course:
    return make_course(
        price=49.0,
        thumbnail="https://cdn.example.com/python.png",
        number_of_sections=1,
        number_of_lessons=3,
    )


class TestCourseCreation:
    """Tests for course construction."""

    def test_slug_derived_from_title(self):
        """Test the slug is derived from the title."""
        course = Course.create(instructor_id="instructor-1", title="  Intro to Python: Part 1 ")

        assert course.title == "Intro to Python: Part 1"
        assert course.slug == "intro-to-python-part-1"
        assert course.status == CourseStatus.DRAFT
        assert course.rating == 0
        assert course.number_of_rating == 0

    def test_blank_title_rejected(self):
        """Test a blank title is rejected."""
        with pytest.raises(CourseValidationError):
            make_course(title="   ")

    def test_title_without_slug_characters_rejected(self):
        """Test a title that yields an empty slug is rejected."""
        with pytest.raises(CourseValidationError):
            make_course(title="!!!")

    def test_negative_price_rejected(self):
        """Test negative prices are rejected."""
        with pytest.raises(CourseValidationError):
            make_course(price=-1)

    def test_discount_above_price_rejected(self):
        """Test a discount above the price is rejected."""
        with pytest.raises(CourseValidationError):
            make_course(price=10, discount_price=20)


class TestCourseRating:
    """Tests for the rating aggregate."""

    @pytest.mark.parametrize(
        "ratings",
        [[5], [4, 5], [1, 2, 3, 4, 5], [3, 3, 3, 1], [5, 1, 5, 1, 2, 4]],
    )
    def test_rating_is_mean_of_ratings(self, ratings):
        """Test the running mean equals the arithmetic mean."""
        course = make_course()
        for rating in ratings:
            course.rate_course(rating)

        assert course.number_of_rating == len(ratings)
        assert course.rating == pytest.approx(sum(ratings) / len(ratings))

    def test_remove_is_inverse_of_rate(self):
        """Test removing a rating restores the previous state."""
        course = make_course()
        course.rate_course(4)
        course.rate_course(2)
        before = (course.rating, course.number_of_rating)

        course.rate_course(5)
        course.remove_rating(5)

        assert course.rating == pytest.approx(before[0])
        assert course.number_of_rating == before[1]

    def test_removing_last_rating_resets(self):
        """Test removing the only rating resets the aggregate."""
        course = make_course()
        course.rate_course(3)

        course.remove_rating(3)

        assert course.rating == 0
        assert course.number_of_rating == 0

    def test_remove_without_ratings_fails(self):
        """Test removing from an unrated course fails."""
        with pytest.raises(CourseValidationError):
            make_course().remove_rating(3)

    def test_change_equals_remove_then_rate(self):
        """Test change_rating matches remove_rating followed by rate_course."""
        changed = make_course()
        replayed = make_course()
        for course in (changed, replayed):
            for rating in (2, 4, 5):
                course.rate_course(rating)

        changed.change_rating(4, 1)
        replayed.remove_rating(4)
        replayed.rate_course(1)

        assert changed.number_of_rating == 3
        assert changed.rating == pytest.approx(replayed.rating)

    def test_change_without_ratings_fails(self):
        """Test changing a rating of an unrated course fails."""
        with pytest.raises(CourseValidationError):
            make_course().change_rating(3, 4)

    def test_review_lifecycle_scenario(self):
        """Test add 4 and 5, remove 4, change 5 to 3."""
        course = make_course()

        course.rate_course(4)
        course.rate_course(5)
        assert (course.rating, course.number_of_rating) == (pytest.approx(4.5), 2)

        course.remove_rating(4)
        assert (course.rating, course.number_of_rating) == (pytest.approx(5), 1)

        course.change_rating(5, 3)
        assert (course.rating, course.number_of_rating) == (pytest.approx(3), 1)

    def test_mean_is_not_rounded(self):
        """Test the stored mean keeps full precision."""
        course = make_course()
        for rating in (1, 1, 2):
            course.rate_course(rating)

        assert course.rating == pytest.approx(4 / 3)

    @pytest.mark.parametrize("rating", [0, 6, 3.5, "4", True, None])
    def test_invalid_ratings_rejected(self, rating):
        """Test ratings outside integers 1..5 are rejected."""
        with pytest.raises(CourseValidationError):
            validate_rating(rating)


class TestCoursePublication:
    """Tests for publish and unpublish transitions."""

    def test_publish_ready_course(self):
        """Test a complete draft course can be published."""
        course = publishable_course()

        assert course.publish() is True
        assert course.status == CourseStatus.PUBLISHED
        assert course.published_at is not None

    def test_publish_twice_is_noop(self):
        """Test publishing a published course reports no change."""
        course = publishable_course()
        course.publish()
        published_at = course.published_at

        assert course.publish() is False
        assert course.published_at == published_at

    def test_publish_lists_blockers(self):
        """Test an incomplete course cannot be published."""
        course = make_course()

        with pytest.raises(CourseValidationError) as exc_info:
            course.publish()

        assert len(exc_info.value.details["reasons"]) == 4
        assert course.status == CourseStatus.DRAFT

    def test_deleted_course_cannot_be_published(self):
        """Test a deleted course cannot be published."""
        course = publishable_course()
        course.soft_delete()

        with pytest.raises(CourseValidationError):
            course.publish()

    def test_unpublish_requires_published(self):
        """Test only published courses can be unpublished."""
        course = publishable_course()

        with pytest.raises(CourseValidationError):
            course.unpublish()

        course.publish()
        course.unpublish()
        assert course.status == CourseStatus.UNPUBLISHED


class TestCourseUpdates:
    """Tests for partial updates and counters."""

    def test_title_change_reports_slug_change(self):
        """Test a new title re-derives the slug."""
        course = make_course()

        assert course.update_details(title="Advanced Python") is True
        assert course.slug == "advanced-python"

    def test_other_fields_keep_slug(self):
        """Test updates without a title keep the slug."""
        course = make_course()

        assert course.update_details(description="Learn it all") is False
        assert course.slug == "intro-to-python"
        assert course.description == "Learn it all"

    def test_update_price_upper_cases_currency(self):
        """Test currency codes are normalized."""
        course = make_course()

        course.update_price(20, 15, "eur")

        assert (course.price, course.discount_price, course.currency) == (20, 15, "EUR")

    def test_counters_never_go_negative(self):
        """Test content and student counters are floored at zero."""
        course = make_course()

        course.adjust_content_counts(sections=-1, lessons=2, quizzes=-3)
        course.decrement_students()

        assert course.number_of_sections == 0
        assert course.number_of_lessons == 2
        assert course.number_of_quizzes == 0
        assert course.students == 0
