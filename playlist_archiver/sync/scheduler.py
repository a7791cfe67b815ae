"""
Scheduler loop for the archiver daemon.

States:
    IDLE        sleeping until the next wake time
    REFRESHING  running a refresh cycle (wrapped in the retry loop)

Each cycle is retried according to the configured RetryOptions. A cycle
that still fails once the retries are spent ends the loop by propagating
its error; the CLI turns that into a non-zero exit.

The clock and the sleep function are injectable so tests can drive the
loop without waiting.
"""

import time
from datetime import datetime
from enum import Enum
from typing import Callable

from apscheduler.triggers.cron import CronTrigger

from playlist_archiver.core.index import ArchiveIndex
from playlist_archiver.core.logger import get_logger
from playlist_archiver.core.retry import RetryOptions, retry_call
from playlist_archiver.core.schedule import build_trigger, next_wake_time, resolve_timezone
from playlist_archiver.sync.context import ArchiveContext
from playlist_archiver.sync.engine import SourceReport, refresh

logger = get_logger(__name__)


class SchedulerState(Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


class Scheduler:
    """
    Runs refresh cycles on a cron schedule.

    Attributes:
        context: Process context.
        index: In-memory index shared by every cycle.
        trigger: Cron trigger, or None for a cycle every 24 hours.
        retry: Retry options wrapped around each cycle.
        state: Current SchedulerState.
        cycles: Number of completed cycles.
    """

    def __init__(
        self,
        context: ArchiveContext,
        index: ArchiveIndex,
        trigger: CronTrigger | None = None,
        retry: RetryOptions | None = None,
        clock: Callable[[], datetime] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.context = context
        self.index = index
        self.trigger = trigger
        self.retry = retry if retry is not None else context.config.retry
        self.state = SchedulerState.IDLE
        self.cycles = 0

        zone = resolve_timezone(context.config.schedule.timezone)
        self._clock = clock if clock is not None else (lambda: datetime.now(zone))
        self._sleep = sleep

        if self.retry.is_unbounded_hot_loop:
            logger.warning(
                "Retry policy is immediate with unlimited retries: a persistent "
                "failure will retry in a tight loop"
            )

    @classmethod
    def from_context(cls, context: ArchiveContext, index: ArchiveIndex, **kwargs) -> "Scheduler":
        schedule = context.config.schedule
        trigger = build_trigger(schedule.cron, schedule.timezone)
        return cls(context, index, trigger=trigger, **kwargs)

    def next_wake(self) -> datetime:
        return next_wake_time(self.trigger, self._clock())

    def run_cycle(self) -> list[SourceReport]:
        """
        Run one refresh cycle through the retry loop.

        Raises:
            Exception: The last error of the cycle once retries are spent.
        """
        self.state = SchedulerState.REFRESHING
        logger.info("Starting refresh cycle")

        try:
            reports = retry_call(
                lambda: refresh(self.context, self.index),
                self.retry,
                "Refresh failed",
                sleep=self._sleep,
            )
        finally:
            self.state = SchedulerState.IDLE

        self.cycles += 1
        logger.info("Refresh cycle complete")
        return reports

    def wait_for_next_wake(self) -> datetime:
        """Block until the next scheduled wake time and return it."""
        now = self._clock()
        wake = next_wake_time(self.trigger, now)
        seconds = max(0.0, (wake - now).total_seconds())

        logger.info(f"Next refresh at {wake.isoformat()} (in {seconds:.0f}s)")
        self._sleep(seconds)
        return wake

    def run(self, max_cycles: int | None = None) -> None:
        """
        Run the daemon loop.

        Args:
            max_cycles: Stop after this many cycles. None runs forever.

        Behavior:
            1. If schedule.run_on_start, refresh immediately
            2. Sleep until the next wake time
            3. Refresh, then go to 2
        """
        if self.context.config.schedule.run_on_start and (max_cycles is None or max_cycles > 0):
            self.run_cycle()

        while max_cycles is None or self.cycles < max_cycles:
            self.wait_for_next_wake()
            self.run_cycle()
