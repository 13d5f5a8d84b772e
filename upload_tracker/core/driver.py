"""
Simulates incremental upload progress for one item at a time.

Each item gets its own asyncio task which ticks on a fixed interval, reports
progress back to the tracker, and finally asks the outcome resolver for a
terminal state. Drivers never block on one another.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from upload_tracker.models.config import TrackerConfig
from upload_tracker.models.upload import UploadState

from .resolver import OutcomeResolver, RandomOutcomeResolver

if TYPE_CHECKING:
    from .tracker import UploadTracker

log = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class ProgressDriver:
    """
    Spawns and runs per-item progress tasks.

    The driver only talks to the tracker through `advance` and `finalize`.
    Removing an item from the tracker turns those calls into no-ops, which is
    the only cancellation signal a running task gets.
    """

    def __init__(
        self,
        resolver: OutcomeResolver | None = None,
        min_duration: float = 2.0,
        max_duration: float = 5.0,
        tick_interval: float = 0.1,
        rng: random.Random | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """
        Initializes the driver.

        Args:
            resolver: Decides each item's outcome. Defaults to a random
                resolver with a 20% failure rate.
            min_duration: Lower bound of the simulated duration, in seconds.
            max_duration: Upper bound of the simulated duration, in seconds.
            tick_interval: Seconds between two progress reports.
            rng: Source of randomness for durations.
            sleep: Awaitable used to wait between ticks. Tests inject a
                zero-delay version to run simulations without wall-clock time.
        """
        if min_duration < 0 or max_duration < min_duration:
            raise ValueError(
                f"Invalid duration range [{min_duration}, {max_duration}]."
            )
        if tick_interval <= 0:
            raise ValueError("Tick interval must be greater than zero.")

        self._rng = rng or random.Random()
        self.resolver = resolver or RandomOutcomeResolver(rng=self._rng)
        self.min_duration = min_duration
        self.max_duration = max_duration
        self.tick_interval = tick_interval
        self._sleep = sleep

    @classmethod
    def from_config(
        cls,
        config: TrackerConfig,
        resolver: OutcomeResolver | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> "ProgressDriver":
        """Builds a driver, and a random resolver if none is given, from config."""
        rng = random.Random(config.seed)
        if resolver is None:
            resolver = RandomOutcomeResolver(
                failure_probability=config.failure_probability,
                rng=rng,
                error_message=config.error_message,
            )
        return cls(
            resolver=resolver,
            min_duration=config.min_duration,
            max_duration=config.max_duration,
            tick_interval=config.tick_interval,
            rng=rng,
            sleep=sleep,
        )

    def draw_duration(self) -> float:
        """Draws a simulated duration uniformly from the configured range."""
        if self.min_duration == self.max_duration:
            return self.min_duration
        return self._rng.uniform(self.min_duration, self.max_duration)

    def start(self, tracker: "UploadTracker", item_id: str) -> asyncio.Task:
        """Spawns the progress task for one item. Requires a running event loop."""
        return asyncio.create_task(
            self.run(tracker, item_id), name=f"upload-driver-{item_id}"
        )

    async def run(self, tracker: "UploadTracker", item_id: str) -> None:
        """Drives one item from 0% to a terminal state."""
        duration = self.draw_duration()
        log.debug(f"Driving {item_id} for {duration:.2f}s")

        tick = 0
        elapsed = 0.0
        while elapsed < duration:
            if item_id not in tracker:
                log.debug(f"{item_id} was removed, stopping its driver early")
                return
            await self._sleep(self.tick_interval)
            tick += 1
            elapsed = tick * self.tick_interval
            tracker.advance(item_id, min(elapsed / duration * 100, 100))

        item = tracker.get(item_id)
        if item is None or item.is_terminal:
            return

        try:
            resolution = self.resolver.resolve(item)
        except Exception as e:
            log.error(f"Outcome resolver failed for {item_id}: {e}")
            tracker.finalize(item_id, UploadState.FAILED, str(e) or None)
            return
        tracker.finalize(item_id, resolution.state, resolution.error_message)
