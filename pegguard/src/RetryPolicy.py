"""RetryPolicy: Bounded fixed-delay retries within a single job cycle.

A cycle is attempted once and then retried up to ``max_attempts`` more times,
sleeping ``delay`` seconds between attempts. Exhausting the retries is not an
error for the caller: the next scheduled tick is the recovery path.

.. code-block:: python

    >>> policy = RetryPolicy(max_attempts=3, delay=5.0)
    >>> state = await policy.run(cycle, label="job-1")
    >>> state.attempt  # 4 if every attempt failed
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from .errors import AllEndpointsUnavailable, LedgerCallFailure

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    LedgerCallFailure,
    AllEndpointsUnavailable,
)


@dataclass
class RetryState:
    """Outcome of one cycle invocation.

    :ivar attempt: Number of attempts made.
    :ivar succeeded: Whether an attempt completed without a retryable error.
    :ivar last_error: Error of the last failed attempt.
    :ivar result: Return value of the successful attempt.
    """

    attempt: int = 0
    succeeded: bool = False
    last_error: BaseException | None = None
    result: Any = None


class RetryPolicy:
    """Fixed-delay bounded retry around a cycle coroutine.

    :ivar max_attempts: Extra attempts after the first one.
    :ivar delay: Seconds to wait between attempts.
    :ivar retry_on: Exception types counted as cycle failures.
    """

    DEFAULT_MAX_ATTEMPTS = 3
    DEFAULT_DELAY_SECONDS = 5.0

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        delay: float = DEFAULT_DELAY_SECONDS,
        retry_on: tuple[type[BaseException], ...] = RETRYABLE_ERRORS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize the retry policy.

        :param max_attempts: Extra attempts after the first (default: 3).
        :param delay: Seconds between attempts (default: 5.0).
        :param retry_on: Exception types that trigger a retry.
        :param sleep: Delay primitive, replaceable in tests.
        :raises ValueError: If max_attempts or delay is negative.
        """
        if max_attempts < 0:
            raise ValueError("max_attempts must be non-negative")
        if delay < 0:
            raise ValueError("delay must be non-negative")
        self.max_attempts = max_attempts
        self.delay = delay
        self.retry_on = retry_on
        self._sleep = sleep

    async def run(
        self, cycle: Callable[[], Awaitable[Any]], label: str = ""
    ) -> RetryState:
        """Run ``cycle`` with retries.

        Errors outside ``retry_on`` propagate immediately.

        :param cycle: Zero-argument coroutine function performing one cycle.
        :param label: Job label for log lines.
        :returns: RetryState describing the outcome.
        """
        state = RetryState()
        total_attempts = self.max_attempts + 1

        while state.attempt < total_attempts:
            state.attempt += 1
            try:
                state.result = await cycle()
                state.succeeded = True
                return state
            except self.retry_on as e:
                state.last_error = e
                logger.error(
                    f"[{label}] cycle failed (attempt {state.attempt}/{total_attempts}): {e}"
                )

            if state.attempt < total_attempts:
                logger.info(f"[{label}] retrying in {self.delay:g}s...")
                await self._sleep(self.delay)

        logger.error(f"[{label}] max retries reached, will retry on next interval")
        return state
