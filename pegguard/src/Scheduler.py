"""Scheduler: One independent fixed-period loop per job.

Each job runs once immediately and then on a fixed period measured on the
event loop clock, independent of how long its cycles take. Cycles of
different jobs run concurrently. A tick that fires while the same job's
previous cycle is still in flight is skipped, so a job never has two cycles
submitting transactions at once.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence

from .errors import ConfigurationError
from .RetryPolicy import RetryPolicy, RetryState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduledJob:
    """A job cycle bound to its label and tick period.

    :ivar label: Job label used in logs and counters.
    :ivar interval: Seconds between ticks.
    :ivar cycle: Zero-argument coroutine function running one cycle.
    """

    label: str
    interval: float
    cycle: Callable[[], Awaitable[Any]]


class Scheduler:
    """Runs scheduled jobs until the process exits.

    :ivar jobs: Jobs to run.
    :ivar retry_policy: Retry policy wrapped around every cycle.
    :ivar skipped_ticks: Per-label count of ticks skipped due to overlap.
    :ivar failed_cycles: Per-label count of cycles that ended in failure.
    """

    def __init__(self, jobs: Sequence[ScheduledJob], retry_policy: RetryPolicy) -> None:
        self.jobs = list(jobs)
        self.retry_policy = retry_policy
        self.skipped_ticks: Counter[str] = Counter()
        self.failed_cycles: Counter[str] = Counter()
        self._locks: dict[int, asyncio.Lock] = {id(job): asyncio.Lock() for job in self.jobs}

    async def run_once(self, job: ScheduledJob) -> RetryState | None:
        """Run one tick of a job.

        Failures are logged and counted, never raised.

        :param job: Job to tick.
        :returns: Retry outcome, or None if the tick was skipped or the cycle
            raised an unexpected error.
        """
        lock = self._locks.setdefault(id(job), asyncio.Lock())
        if lock.locked():
            self.skipped_ticks[job.label] += 1
            logger.warning(f"[{job.label}] previous cycle still running, skipping tick")
            return None

        async with lock:
            try:
                state = await self.retry_policy.run(job.cycle, label=job.label)
            except Exception:
                self.failed_cycles[job.label] += 1
                logger.exception(f"[{job.label}] loop failed")
                return None

            if not state.succeeded:
                self.failed_cycles[job.label] += 1
            return state

    async def _job_loop(self, job: ScheduledJob, ticks: int | None) -> None:
        loop = asyncio.get_running_loop()
        in_flight: set[asyncio.Task] = set()
        next_tick = loop.time()
        count = 0

        while True:
            task = asyncio.create_task(self.run_once(job))
            in_flight.add(task)
            task.add_done_callback(in_flight.discard)
            count += 1
            if ticks is not None and count >= ticks:
                break

            next_tick += job.interval
            await asyncio.sleep(max(0.0, next_tick - loop.time()))

        if in_flight:
            await asyncio.gather(*in_flight)

    async def run(self, ticks: int | None = None) -> None:
        """Run every job's loop concurrently.

        :param ticks: Ticks per job before returning, None to run forever.
        :raises ConfigurationError: If there are no jobs to schedule.
        """
        if not self.jobs:
            raise ConfigurationError("No jobs to schedule")

        for job in self.jobs:
            logger.info(f"[{job.label}] scheduled every {job.interval:g}s")
        await asyncio.gather(*(self._job_loop(job, ticks) for job in self.jobs))
