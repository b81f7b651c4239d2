# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Retry of whole load-mutate-save cycles on concurrency conflicts.

Repositories detect lost updates with a version check and raise
ConcurrencyConflictError. The cycle is retried from the load step, so each
attempt mutates fresh state. Any other error propagates immediately.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.domains.errors import ConcurrencyConflictError

if TYPE_CHECKING:
    from src.core.config.settings import ConcurrencySettings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConflictRetryPolicy:
    """Bounded exponential-backoff retry on ConcurrencyConflictError.

    Attributes:
        max_attempts: Total attempts including the first.
        wait_min: Minimum wait between attempts in seconds.
        wait_max: Maximum wait between attempts in seconds.
    """

    def __init__(self, max_attempts: int = 3, wait_min: float = 0.05, wait_max: float = 1.0) -> None:
        self.max_attempts = max(1, max_attempts)
        self.wait_min = wait_min
        self.wait_max = wait_max

    @classmethod
    def from_settings(cls, settings: "ConcurrencySettings") -> "ConflictRetryPolicy":
        return cls(settings.max_attempts, settings.wait_min, settings.wait_max)

    @staticmethod
    def _log_retry(state: RetryCallState) -> None:
        logger.warning(
            "Concurrency conflict, retrying %s (attempt %d)",
            getattr(state.fn, "__qualname__", "cycle"),
            state.attempt_number,
        )

    async def run(self, cycle: Callable[[], Awaitable[T]]) -> T:
        """Run cycle, re-running it from scratch after each conflict.

        Raises:
            ConcurrencyConflictError: If every attempt conflicted.
        """
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.wait_min, min=self.wait_min, max=self.wait_max),
            retry=retry_if_exception_type(ConcurrencyConflictError),
            before_sleep=self._log_retry,
            reraise=True,
        ):
            with attempt:
                return await cycle()
        raise AssertionError("unreachable")
