import asyncio
import logging
import math
import time
from enum import Enum
from typing import Awaitable, Callable, Optional

from .console import ReadingConsole
from .dispatcher import AggregateWriteError, MetricDispatcher
from .extractor import ReadingExtractor
from .readers.base import MeasureError
from .session import SensorSession

logger = logging.getLogger(__name__)


class SensorErrorPolicy(Enum):
    """What a failed measurement does to the loop."""
    EXIT = "exit"
    SKIP = "skip"


class CycleScheduler:
    """Runs measure -> extract -> dispatch on a fixed period, forever.

    Cycles never overlap. A tick that arrives while a cycle is still
    running is skipped with a warning, and the schedule realigns to the
    next tick that is still in the future.
    """

    def __init__(
        self,
        session: SensorSession,
        extractor: ReadingExtractor,
        dispatcher: MetricDispatcher,
        interval: float = 60.0,
        on_sensor_error: SensorErrorPolicy = SensorErrorPolicy.EXIT,
        console: Optional[ReadingConsole] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")

        self.session = session
        self.extractor = extractor
        self.dispatcher = dispatcher
        self.interval = interval
        self.on_sensor_error = on_sensor_error
        self.console = console
        self._clock = clock
        self._sleep = sleep

        self.cycles = 0
        self.skipped_ticks = 0

    async def run_cycle(self) -> bool:
        """Run one full cycle.

        Returns:
            True if metrics were dispatched and every write succeeded.

        Raises:
            MeasureError: If the measurement failed and the policy is EXIT.
        """
        try:
            reading, state = await self.session.measure()
        except MeasureError as e:
            if self.on_sensor_error == SensorErrorPolicy.EXIT:
                raise
            logger.error(f"Retrieving sensor data failed, skipping cycle: {e}")
            return False

        if self.console:
            self.console.show(reading, state)

        metrics = self.extractor.extract(reading, state)
        if metrics is None:
            logger.info(f"Not dispatching {state.name} reading")
            return False

        try:
            await self.dispatcher.dispatch(metrics)
        except AggregateWriteError as e:
            logger.error(f"Writing metrics failed: {e}")
            return False

        logger.info(f"Dispatched {len(metrics)} metrics")
        return True

    async def run(self, max_cycles: Optional[int] = None):
        """Run cycles every ``interval`` seconds.

        The first cycle starts one interval after the call, like a periodic
        timer. ``max_cycles`` stops the loop after that many cycles; None
        runs until cancelled or until an error propagates.
        """
        logger.info(f"Sampling every {self.interval}s")
        next_tick = self._clock() + self.interval

        while max_cycles is None or self.cycles < max_cycles:
            delay = next_tick - self._clock()
            if delay > 0:
                await self._sleep(delay)

            await self.run_cycle()
            self.cycles += 1
            next_tick += self.interval

            now = self._clock()
            if now > next_tick:
                missed = math.ceil((now - next_tick) / self.interval)
                self.skipped_ticks += missed
                logger.warning(
                    f"Cycle overran the {self.interval}s interval, skipping {missed} tick(s)"
                )
                next_tick += missed * self.interval
