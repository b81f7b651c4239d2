# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Uniform logging and tracing for use cases.

Every service method that implements a use case is decorated with
traced(). The decorator opens a span named after the use case, binds the
command identifiers to every log line emitted while the use case runs, logs
the start and the outcome, and tags the span with the domain error code
when the use case fails. Use case bodies stay free of tracing code and
can be tested without a tracer.

Example:
    class CourseService:
        @traced("course.publish")
        async def publish_course(self, command: PublishCourseCommand) -> CourseResponse:
            ...
"""

import functools
import time
from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from src.domains.errors import DomainError
from src.utils.logging import bind_context, get_logger, reset_context

P = ParamSpec("P")
R = TypeVar("R")

logger = get_logger(__name__)
tracer = trace.get_tracer("course-service")

# Command fields copied onto spans and log lines when present.
_CONTEXT_FIELDS = (
    "user_id",
    "course_id",
    "section_id",
    "lesson_id",
    "quiz_id",
    "review_id",
    "enrollment_id",
    "idempotency_key",
)


def _command_context(args: tuple[Any, ...], kwargs: dict[str, Any]) -> dict[str, Any]:
    context: dict[str, Any] = {}
    for value in (*args, *kwargs.values()):
        for name in _CONTEXT_FIELDS:
            field_value = getattr(value, name, None)
            if isinstance(field_value, str) and name not in context:
                context[name] = field_value
    for name in _CONTEXT_FIELDS:
        if isinstance(kwargs.get(name), str):
            context.setdefault(name, kwargs[name])
    return context


def traced(operation: str) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Wrap an async use case in a span and structured log lines.

    Args:
        operation: Span and log name, e.g. ``review.add``.

    Returns:
        Decorator preserving the wrapped coroutine's signature.
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            context = _command_context(args[1:], kwargs)
            started = time.perf_counter()

            tokens = bind_context(operation=operation, **context)
            try:
                with tracer.start_as_current_span(operation) as span:
                    for name, value in context.items():
                        span.set_attribute(f"course_service.{name}", value)
                    logger.debug("use_case.started")

                    try:
                        result = await func(*args, **kwargs)
                    except DomainError as e:
                        span.set_attribute("domain.error_code", e.error_code)
                        span.set_attribute("domain.error_kind", e.kind.value)
                        span.set_status(Status(StatusCode.ERROR, e.message))
                        logger.info("use_case.rejected", error_code=e.error_code, error=e.message)
                        raise
                    except Exception as e:
                        span.record_exception(e)
                        span.set_status(Status(StatusCode.ERROR, str(e)))
                        logger.error("use_case.failed", error=str(e), exc_info=True)
                        raise

                    logger.debug(
                        "use_case.completed",
                        duration_ms=round((time.perf_counter() - started) * 1000, 2),
                    )
                    return result
            finally:
                reset_context(tokens)

        return wrapper

    return decorator
