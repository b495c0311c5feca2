"""Base class for sensor drivers."""

from abc import ABC, abstractmethod
from typing import Tuple
import logging

from bmeinflux.shared.models import PowerMode, ReadinessState, Reading, SensorSettings

logger = logging.getLogger(__name__)


class SensorError(Exception):
    """Base class for sensor failures."""

    pass


class SensorInitError(SensorError):
    """The sensor could not be reached or identified itself wrongly."""

    pass


class SensorConfigError(SensorError):
    """The sensor rejected its settings or power mode."""

    pass


class MeasureError(SensorError):
    """A single trigger/read cycle failed."""

    pass


class SensorDriver(ABC):
    """Base class for forced-mode environmental sensor drivers.

    All methods block on bus I/O; callers run them off the event loop.
    """

    @abstractmethod
    def open(self, bus: int, address: int) -> None:
        """Open the sensor on the given bus and device address."""
        pass

    @abstractmethod
    def configure(self, settings: SensorSettings) -> None:
        """Write oversampling, filter and gas heater settings."""
        pass

    @abstractmethod
    def set_power_mode(self, mode: PowerMode) -> None:
        pass

    @abstractmethod
    def trigger_measurement(self) -> None:
        """Start one forced-mode measurement."""
        pass

    @abstractmethod
    def read(self) -> Tuple[Reading, ReadinessState]:
        """Read back the latest data and whether it is new."""
        pass

    def close(self) -> None:
        pass
