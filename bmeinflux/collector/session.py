"""Sensor session: owns the driver and runs one trigger/read per cycle."""

import asyncio
import concurrent.futures
import logging
from typing import Awaitable, Callable, Optional, Tuple, TypeVar

from bmeinflux.shared.models import PowerMode, ReadinessState, Reading, SensorSettings
from .readers.base import (
    MeasureError,
    SensorConfigError,
    SensorDriver,
    SensorError,
    SensorInitError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SensorSession:
    """Wraps a forced-mode sensor driver for use from the event loop.

    Driver calls block on the bus, so they run on a single worker thread
    owned by the session; the driver never sees two calls at once. Settings
    and power mode are applied once before sampling; after that only
    ``measure()`` is called.
    """

    def __init__(
        self,
        driver: SensorDriver,
        poll_attempts: int = 10,
        poll_interval: float = 0.05,
        measure_timeout: Optional[float] = 10.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Use ``SensorSession.initialize()`` to open the sensor as well.

        Args:
            driver: An opened sensor driver.
            poll_attempts: Reads to try once the measurement should be done.
            poll_interval: Seconds to wait between reads.
            measure_timeout: Upper bound for one ``measure()`` call, None for no bound.
            sleep: Coroutine used to wait for the measurement to complete.
        """
        if poll_attempts < 1:
            raise ValueError(f"poll_attempts must be at least 1, got {poll_attempts}")

        self.driver = driver
        self.poll_attempts = poll_attempts
        self.poll_interval = poll_interval
        self.measure_timeout = measure_timeout
        self._sleep = sleep

        self.settings: Optional[SensorSettings] = None
        self.power_mode = PowerMode.SLEEP

        self._executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="sensor")
        self._pending: Optional[concurrent.futures.Future] = None

    @classmethod
    async def initialize(
        cls,
        driver: SensorDriver,
        bus: int,
        address: int,
        **kwargs,
    ) -> "SensorSession":
        """Open the sensor on the given bus and address.

        Raises:
            SensorInitError: If the device cannot be reached or misidentifies itself.
        """
        session = cls(driver, **kwargs)
        try:
            await session._call(driver.open, bus, address)
        except SensorInitError:
            raise
        except (SensorError, OSError, RuntimeError) as e:
            raise SensorInitError(f"Init failed: {e}") from e

        logger.info(f"Sensor session ready on bus {bus} at 0x{address:02x}")
        return session

    @property
    def busy(self) -> bool:
        """True while a driver call abandoned by a timeout is still running."""
        return self._pending is not None and not self._pending.done()

    async def _call(self, func: Callable[..., T], *args) -> T:
        self._pending = self._executor.submit(func, *args)
        return await asyncio.wrap_future(self._pending)

    @property
    def measurement_wait(self) -> float:
        """Seconds a triggered measurement needs before it can be read."""
        if self.settings is None:
            return 0.0
        return self.settings.measurement_duration_ms / 1000.0

    async def apply_settings(self, settings: SensorSettings) -> None:
        """Write the sensor settings. Only allowed once.

        Raises:
            SensorConfigError: If settings were already applied or the sensor rejects them.
        """
        if self.settings is not None:
            raise SensorConfigError("Sensor settings were already applied")

        try:
            await self._call(self.driver.configure, settings)
        except SensorConfigError:
            raise
        except (SensorError, OSError) as e:
            raise SensorConfigError(f"Setting sensor settings failed: {e}") from e

        self.settings = settings
        logger.info(f"Applied sensor settings: {settings}")
        if self.measure_timeout is not None and self.measurement_wait >= self.measure_timeout:
            logger.warning(
                f"Measurement takes {self.measurement_wait}s, longer than measure_timeout {self.measure_timeout}s"
            )

    async def set_power_mode(self, mode: PowerMode) -> None:
        """Arm the sensor, normally for forced (single-shot) measurements.

        Raises:
            SensorConfigError: If the sensor rejects the mode.
        """
        try:
            await self._call(self.driver.set_power_mode, mode)
        except SensorConfigError:
            raise
        except (SensorError, OSError) as e:
            raise SensorConfigError(f"Setting sensor mode failed: {e}") from e

        self.power_mode = mode
        logger.info(f"Sensor power mode set to {mode.name}")

    async def measure(self) -> Tuple[Reading, ReadinessState]:
        """Trigger one measurement and wait for it to complete.

        Waits the measurement duration implied by the settings, then reads
        until the sensor reports fresh data. If it never does within
        ``poll_attempts`` reads, the last read is returned as STALE.

        Raises:
            MeasureError: If the sensor is not armed, a bus call fails,
                the measurement exceeds ``measure_timeout``, or a call from
                an earlier timed-out measurement is still running.
        """
        if self.power_mode != PowerMode.FORCED:
            raise MeasureError("Sensor is not in forced mode")
        if self.busy:
            raise MeasureError("Sensor is still busy with a timed-out measurement")

        try:
            return await asyncio.wait_for(self._measure(), timeout=self.measure_timeout)
        except asyncio.TimeoutError:
            raise MeasureError(f"Measurement timed out after {self.measure_timeout}s") from None

    async def _measure(self) -> Tuple[Reading, ReadinessState]:
        try:
            await self._call(self.driver.trigger_measurement)
            await self._sleep(self.measurement_wait)

            reading, state = await self._call(self.driver.read)
            attempt = 1
            while state != ReadinessState.FRESH and attempt < self.poll_attempts:
                await self._sleep(self.poll_interval)
                reading, state = await self._call(self.driver.read)
                attempt += 1
        except MeasureError:
            raise
        except (SensorError, OSError) as e:
            raise MeasureError(f"Retrieving sensor data failed: {e}") from e

        if state != ReadinessState.FRESH:
            logger.debug(f"No new data after {attempt} reads")
        return reading, state

    async def close(self) -> None:
        if self.busy:
            logger.warning("Closing sensor session while a driver call is still running")
        else:
            await self._call(self.driver.close)
        self._executor.shutdown(wait=False)
