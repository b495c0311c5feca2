import random
from typing import Dict, Optional, Tuple
import logging

from bmeinflux.shared.models import PowerMode, ReadinessState, Reading, SensorSettings
from .base import MeasureError, SensorConfigError, SensorDriver, SensorInitError

logger = logging.getLogger(__name__)

# base value, step size per measurement
BASELINES = {
    'temperature': (22.0, 0.5),        # room temperature in Celsius
    'pressure': (1013.25, 0.8),        # sea level hPa
    'humidity': (45.0, 2.0),           # relative %
    'gas_resistance': (50000.0, 1500.0),  # Ohm, clean air
}


class DummyDriver(SensorDriver):
    def __init__(self, seed: Optional[int] = None):
        """
        Simulated forced-mode sensor. Each trigger produces one new
        measurement; reading it a second time without a new trigger
        returns the same values marked STALE.
        """
        self._random = random.Random(seed)
        self.address: Optional[int] = None
        self.settings: Optional[SensorSettings] = None
        self.mode = PowerMode.SLEEP

        # Keep last values to avoid wild jumps
        self.last_values: Dict[str, float] = {}
        self._latest: Optional[Reading] = None
        self._unread = False

    def open(self, bus: int, address: int) -> None:
        if self.address is not None:
            raise SensorInitError(f"Dummy sensor already open at 0x{self.address:02x}")
        self.address = address
        logger.info(f"Opened simulated sensor on bus {bus} at 0x{address:02x}")

    def configure(self, settings: SensorSettings) -> None:
        if self.address is None:
            raise SensorConfigError("Dummy sensor is not open")
        self.settings = settings

    def set_power_mode(self, mode: PowerMode) -> None:
        if self.address is None:
            raise SensorConfigError("Dummy sensor is not open")
        self.mode = mode

    def _get_numeric_value(self, metric: str) -> float:
        """Generate a somewhat realistic varying value"""
        base_value, variation = BASELINES[metric]
        if metric not in self.last_values:
            self.last_values[metric] = base_value

        # Random walk with mean reversion
        current = self.last_values[metric]
        new_value = current + self._random.uniform(-variation, variation)
        new_value = new_value * 0.9 + base_value * 0.1

        self.last_values[metric] = new_value
        return new_value

    def trigger_measurement(self) -> None:
        if self.mode != PowerMode.FORCED:
            raise MeasureError("Dummy sensor is not in forced mode")

        self._latest = Reading(
            temperature=round(self._get_numeric_value('temperature'), 2),
            pressure=round(self._get_numeric_value('pressure'), 2),
            humidity=round(self._get_numeric_value('humidity'), 2),
            gas_resistance=round(self._get_numeric_value('gas_resistance'), 1),
        )
        self._unread = True

    def read(self) -> Tuple[Reading, ReadinessState]:
        if self._latest is None:
            raise MeasureError("No measurement has been triggered")

        state = ReadinessState.FRESH if self._unread else ReadinessState.STALE
        self._unread = False
        return self._latest, state

    def close(self) -> None:
        self.address = None
        self.mode = PowerMode.SLEEP
