"""Core data models for sensor readings."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict


class ReadinessState(Enum):
    """Whether a reading comes from a freshly completed measurement."""
    FRESH = "fresh"
    STALE = "stale"


class PowerMode(Enum):
    """Sensor power modes."""
    SLEEP = "sleep"
    FORCED = "forced"


@dataclass(frozen=True)
class Reading:
    """A single snapshot of the four quantities the sensor measures.

    Units: temperature in °C, pressure in hPa, humidity in % relative,
    gas resistance in Ohm.
    """
    temperature: float
    pressure: float
    humidity: float
    gas_resistance: float


@dataclass(frozen=True)
class NamedMetric:
    """One named value taken from a reading, plus its descriptive tags."""
    name: str
    value: float
    tags: Dict[str, str] = field(default_factory=dict)


OVERSAMPLING_LEVELS = (0, 1, 2, 4, 8, 16)
FILTER_SIZES = (0, 1, 3, 7, 15, 31, 63, 127)


@dataclass(frozen=True)
class SensorSettings:
    """Sensor configuration, applied once before sampling starts."""
    humidity_oversampling: int = 2
    pressure_oversampling: int = 4
    temperature_oversampling: int = 8
    filter_size: int = 3
    gas_enabled: bool = True
    heater_temperature: int = 320
    heater_duration_ms: int = 1500
    ambient_temperature: int = 25

    def __post_init__(self):
        for name in ("humidity_oversampling", "pressure_oversampling", "temperature_oversampling"):
            value = getattr(self, name)
            if value not in OVERSAMPLING_LEVELS:
                raise ValueError(f"{name} must be one of {OVERSAMPLING_LEVELS}, got {value}")
        if self.filter_size not in FILTER_SIZES:
            raise ValueError(f"filter_size must be one of {FILTER_SIZES}, got {self.filter_size}")
        if self.heater_duration_ms <= 0:
            raise ValueError(f"heater_duration_ms must be positive, got {self.heater_duration_ms}")

    @property
    def measurement_duration_ms(self) -> int:
        """How long one forced-mode measurement takes with these settings.

        Temperature/pressure/humidity conversion time follows the Bosch
        profile-duration formula (1963 us per oversampling cycle plus fixed
        switching and wake-up time), then the gas heater runs if enabled.
        """
        cycles = self.temperature_oversampling + self.pressure_oversampling + self.humidity_oversampling
        tph_us = cycles * 1963 + 477 * 4 + 477 * 5 + 500
        duration = tph_us // 1000 + 1
        if self.gas_enabled:
            duration += self.heater_duration_ms
        return duration

    @classmethod
    def from_dict(cls, data: dict) -> "SensorSettings":
        """Create settings from a dictionary, keeping defaults for missing keys."""
        defaults = cls()
        return cls(
            humidity_oversampling=int(data.get("humidity_oversampling", defaults.humidity_oversampling)),
            pressure_oversampling=int(data.get("pressure_oversampling", defaults.pressure_oversampling)),
            temperature_oversampling=int(data.get("temperature_oversampling", defaults.temperature_oversampling)),
            filter_size=int(data.get("filter_size", defaults.filter_size)),
            gas_enabled=bool(data.get("gas_enabled", defaults.gas_enabled)),
            heater_temperature=int(data.get("heater_temperature", defaults.heater_temperature)),
            heater_duration_ms=int(data.get("heater_duration_ms", defaults.heater_duration_ms)),
            ambient_temperature=int(data.get("ambient_temperature", defaults.ambient_temperature)),
        )
