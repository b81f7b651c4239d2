# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for conflict retries and use case tracing."""

from types import SimpleNamespace

import pytest
import structlog

from src.domains.errors import ConcurrencyConflictError, CourseNotFoundError
from src.domains.shared.concurrency import ConflictRetryPolicy
from src.infrastructure.telemetry.tracing import traced


class TestConflictRetryPolicy:
    """Tests for whole-cycle retries."""

    @pytest.mark.asyncio
    async def test_retries_until_success(self, retry_policy):
        attempts = []

        async def cycle():
            attempts.append(len(attempts) + 1)
            if len(attempts) < 3:
                raise ConcurrencyConflictError()
            return "saved"

        assert await retry_policy.run(cycle) == "saved"
        assert attempts == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        policy = ConflictRetryPolicy(max_attempts=2, wait_min=0, wait_max=0)
        attempts = []

        async def cycle():
            attempts.append(1)
            raise ConcurrencyConflictError()

        with pytest.raises(ConcurrencyConflictError):
            await policy.run(cycle)
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_other_errors_are_not_retried(self, retry_policy):
        attempts = []

        async def cycle():
            attempts.append(1)
            raise CourseNotFoundError()

        with pytest.raises(CourseNotFoundError):
            await retry_policy.run(cycle)
        assert len(attempts) == 1

    def test_at_least_one_attempt(self):
        assert ConflictRetryPolicy(max_attempts=0).max_attempts == 1


class TestTraced:
    """Tests for the use case decorator."""

    @pytest.mark.asyncio
    async def test_result_is_returned(self):
        class Service:
            @traced("course.get")
            async def get(self, course_id: str) -> dict:
                return {"id": course_id}

        assert await Service().get(course_id="c-1") == {"id": "c-1"}

    @pytest.mark.asyncio
    async def test_domain_error_propagates(self):
        class Service:
            @traced("course.get")
            async def get(self, course_id: str) -> dict:
                raise CourseNotFoundError(course_id=course_id)

        with pytest.raises(CourseNotFoundError):
            await Service().get("c-1")

    @pytest.mark.asyncio
    async def test_unexpected_error_propagates(self):
        class Service:
            @traced("course.get")
            async def get(self) -> dict:
                raise RuntimeError("database down")

        with pytest.raises(RuntimeError, match="database down"):
            await Service().get()

    def test_wraps_preserves_name(self):
        class Service:
            @traced("course.publish")
            async def publish_course(self) -> None:
                """Publish a course."""

        assert Service.publish_course.__name__ == "publish_course"
        assert Service.publish_course.__doc__ == "Publish a course."

    @pytest.mark.asyncio
    async def test_binds_command_context_while_running(self):
        """Test command ids reach log context only for the use case's duration."""
        seen = {}

        class Service:
            @traced("course.get")
            async def get(self, command) -> None:
                seen.update(structlog.contextvars.get_contextvars())

        structlog.contextvars.clear_contextvars()
        await Service().get(SimpleNamespace(course_id="c-1", user_id="u-1"))

        assert seen["operation"] == "course.get"
        assert seen["course_id"] == "c-1"
        assert seen["user_id"] == "u-1"
        assert structlog.contextvars.get_contextvars() == {}

    @pytest.mark.asyncio
    async def test_nested_use_case_restores_outer_context(self):
        inner_seen = {}
        outer_after = {}

        class Service:
            @traced("course.get")
            async def inner(self, course_id: str) -> None:
                inner_seen.update(structlog.contextvars.get_contextvars())

            @traced("course.publish")
            async def outer(self, course_id: str) -> None:
                await self.inner(course_id="c-2")
                outer_after.update(structlog.contextvars.get_contextvars())

        structlog.contextvars.clear_contextvars()
        await Service().outer(course_id="c-1")

        assert inner_seen["course_id"] == "c-2"
        assert outer_after == {"operation": "course.publish", "course_id": "c-1"}
