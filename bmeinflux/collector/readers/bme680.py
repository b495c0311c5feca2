"""BME680 driver backed by the Pimoroni bme680 library."""

from typing import Optional, Tuple
import logging

import bme680
from smbus2 import SMBus

from bmeinflux.shared.models import PowerMode, ReadinessState, Reading, SensorSettings
from .base import MeasureError, SensorConfigError, SensorDriver, SensorInitError

logger = logging.getLogger(__name__)


def _oversampling(level: int) -> int:
    if level == 0:
        return bme680.OS_NONE
    return getattr(bme680, f"OS_{level}X")


def _filter_size(size: int) -> int:
    return getattr(bme680, f"FILTER_SIZE_{size}")


class ForcedModeBME680(bme680.BME680):
    """bme680.BME680 that lets a triggered measurement finish.

    The library's get_sensor_data() writes FORCED_MODE before polling,
    which restarts any measurement in flight. While ``measuring`` is set
    that write is skipped, so get_sensor_data() only reads back.
    """

    measuring = False

    def set_power_mode(self, value, *args, **kwargs):
        if value == bme680.FORCED_MODE and self.measuring:
            return
        super().set_power_mode(value, *args, **kwargs)

    def start_measurement(self):
        self.measuring = False
        self.set_power_mode(bme680.FORCED_MODE)
        self.measuring = True


class BME680Driver(SensorDriver):
    """Talks to a BME680 over I2C."""

    def __init__(self):
        self._bus: Optional[SMBus] = None
        self._sensor: Optional[ForcedModeBME680] = None
        self._last: Optional[Reading] = None

    def _require_sensor(self, error_cls) -> ForcedModeBME680:
        if self._sensor is None:
            raise error_cls("BME680 is not open")
        return self._sensor

    def open(self, bus: int, address: int) -> None:
        try:
            self._bus = SMBus(bus)
            # The constructor checks the chip id and soft-resets the device
            self._sensor = ForcedModeBME680(i2c_addr=address, i2c_device=self._bus)
        except (OSError, RuntimeError) as e:
            self.close()
            raise SensorInitError(f"BME680 not available on bus {bus} at 0x{address:02x}: {e}") from e

        logger.info(f"Opened BME680 on bus {bus} at 0x{address:02x}")

    def configure(self, settings: SensorSettings) -> None:
        sensor = self._require_sensor(SensorConfigError)
        try:
            sensor.set_humidity_oversample(_oversampling(settings.humidity_oversampling))
            sensor.set_pressure_oversample(_oversampling(settings.pressure_oversampling))
            sensor.set_temperature_oversample(_oversampling(settings.temperature_oversampling))
            sensor.set_filter(_filter_size(settings.filter_size))

            if settings.gas_enabled:
                sensor.ambient_temperature = settings.ambient_temperature
                sensor.set_gas_heater_temperature(settings.heater_temperature, nb_profile=0)
                sensor.set_gas_heater_duration(settings.heater_duration_ms, nb_profile=0)
                sensor.select_gas_heater_profile(0)
                sensor.set_gas_status(bme680.ENABLE_GAS_MEAS)
            else:
                sensor.set_gas_status(bme680.DISABLE_GAS_MEAS)
        except (OSError, ValueError) as e:
            raise SensorConfigError(f"Setting sensor settings failed: {e}") from e

    def set_power_mode(self, mode: PowerMode) -> None:
        sensor = self._require_sensor(SensorConfigError)
        value = bme680.FORCED_MODE if mode == PowerMode.FORCED else bme680.SLEEP_MODE
        try:
            sensor.set_power_mode(value)
        except OSError as e:
            raise SensorConfigError(f"Setting sensor mode failed: {e}") from e

    def trigger_measurement(self) -> None:
        sensor = self._require_sensor(MeasureError)
        try:
            sensor.start_measurement()
        except OSError as e:
            raise MeasureError(f"Triggering measurement failed: {e}") from e

    def read(self) -> Tuple[Reading, ReadinessState]:
        """Read back the triggered measurement without restarting it.

        Returns the previous reading as STALE while no new data is ready.

        Raises:
            MeasureError: On bus errors, or if no measurement has ever completed.
        """
        sensor = self._require_sensor(MeasureError)
        try:
            # get_sensor_data() returns True only when the new-data flag is set
            fresh = sensor.get_sensor_data()
        except OSError as e:
            raise MeasureError(f"Retrieving sensor data failed: {e}") from e

        if not fresh:
            if self._last is None:
                raise MeasureError("No completed measurement available yet")
            return self._last, ReadinessState.STALE

        sensor.measuring = False
        data = sensor.data
        if not data.heat_stable:
            logger.debug("Gas heater not stable yet, gas resistance may be off")

        try:
            reading = Reading(
                temperature=float(data.temperature),
                pressure=float(data.pressure),
                humidity=float(data.humidity),
                gas_resistance=float(data.gas_resistance),
            )
        except (TypeError, ValueError) as e:
            raise MeasureError(f"Sensor returned incomplete data: {e}") from e

        self._last = reading
        return reading, ReadinessState.FRESH

    def close(self) -> None:
        self._sensor = None
        if self._bus is not None:
            self._bus.close()
            self._bus = None
