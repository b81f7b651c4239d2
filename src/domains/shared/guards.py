# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Guards shared by every course-owned use case.

- ensure_can_manage_course: admin or owning instructor, else Unauthorized
- find_replay: idempotency-key lookup performed before any create
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

from src.domains.errors import UnauthorizedError

if TYPE_CHECKING:
    from src.domains.course.entities import Course

logger = logging.getLogger(__name__)

T = TypeVar("T")


def ensure_can_manage_course(course: "Course", user_id: str, is_admin: bool = False) -> None:
    """Authorize a mutation on a course or on a resource it owns.

    Callers check existence first so that NotFound takes precedence.

    Raises:
        UnauthorizedError: If the user is neither admin nor the instructor.
    """
    if is_admin or course.is_owned_by(user_id):
        return
    logger.warning(
        "Unauthorized course mutation: user=%s, course=%s, instructor=%s",
        user_id,
        course.id,
        course.instructor_id,
    )
    raise UnauthorizedError(
        "Only the course instructor or an admin can modify this course",
        course_id=course.id,
        user_id=user_id,
    )


async def find_replay(
    idempotency_key: str | None,
    lookup: Callable[[str], Awaitable[T | None]],
    resource: str,
) -> T | None:
    """Return the aggregate already created with this idempotency key.

    Args:
        idempotency_key: Caller supplied key, lookups are skipped when empty.
        lookup: Repository find_by_idempotency_key.
        resource: Resource name for the log line.

    Returns:
        The existing aggregate, or None when the command is new.
    """
    if not idempotency_key:
        return None
    existing = await lookup(idempotency_key)
    if existing is not None:
        logger.info(
            "%s deduplicated by idempotency key: key=%s, id=%s",
            resource.capitalize(),
            idempotency_key,
            getattr(existing, "id", None),
        )
    return existing
