"""Sensor drivers for data collection.

Hardware drivers are imported on demand so the service runs without the
hardware libraries installed when using the dummy driver.
"""

from .base import (
    MeasureError,
    SensorConfigError,
    SensorDriver,
    SensorError,
    SensorInitError,
)
from .dummy import DummyDriver

DRIVER_TYPES = {
    'bme680': '.bme680.BME680Driver',
    'dummy': '.dummy.DummyDriver',
}


def create_driver(driver_type: str) -> SensorDriver:
    """Create a new driver instance based on type"""
    if driver_type not in DRIVER_TYPES:
        raise ValueError(f"Unsupported sensor driver: {driver_type}")

    # Import and instantiate the driver class dynamically
    module_name, class_name = DRIVER_TYPES[driver_type].rsplit('.', 1)
    full_module_path = f"bmeinflux.collector.readers{module_name}"
    driver_class = getattr(__import__(full_module_path, fromlist=[class_name]), class_name)
    return driver_class()


__all__ = [
    "SensorDriver",
    "SensorError",
    "SensorInitError",
    "SensorConfigError",
    "MeasureError",
    "DummyDriver",
    "DRIVER_TYPES",
    "create_driver",
]
