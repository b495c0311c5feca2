from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union
import logging

from bmeinflux.shared.config import get_config_path, get_log_level, load_env, load_yaml_config
from bmeinflux.shared.influx import InfluxConfig
from bmeinflux.shared.models import SensorSettings
from bmeinflux.collector.collector import SensorErrorPolicy
from bmeinflux.collector.extractor import DispatchPolicy
from bmeinflux.collector.readers import DRIVER_TYPES

logger = logging.getLogger(__name__)

I2C_ADDRESSES = {
    'primary': 0x76,
    'secondary': 0x77,
}


@dataclass(frozen=True)
class SensorConfig:
    driver: str = 'bme680'
    i2c_bus: int = 1
    address: int = I2C_ADDRESSES['primary']
    poll_attempts: int = 10
    poll_interval: float = 0.05
    settings: SensorSettings = field(default_factory=SensorSettings)


@dataclass(frozen=True)
class Config:
    influx: InfluxConfig
    sensor: SensorConfig
    collection_interval: float = 60.0
    device_id: str = 'MAC'
    sensor_name: str = 'bme680'
    measurement: str = 'sensor'
    dispatch_on: DispatchPolicy = DispatchPolicy.NOT_FRESH
    on_sensor_error: SensorErrorPolicy = SensorErrorPolicy.EXIT
    measure_timeout: Optional[float] = 10.0
    write_timeout: Optional[float] = 10.0
    log_level: str = 'INFO'
    log_file: Optional[str] = None


def parse_address(value: Union[int, str]) -> int:
    """Accept 0x76, '0x76', 118 or 'primary'/'secondary'"""
    if isinstance(value, int):
        return value
    text = str(value).strip().lower()
    if text in I2C_ADDRESSES:
        return I2C_ADDRESSES[text]
    try:
        return int(text, 0)
    except ValueError:
        raise ValueError(f"Invalid I2C address: {value!r}") from None


def _parse_enum(enum_cls, value, key: str):
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ValueError(f"Invalid {key} {value!r}, expected one of: {choices}") from None


def _optional_float(value) -> Optional[float]:
    return None if value is None else float(value)


def load_sensor_config(sensor_data: dict) -> SensorConfig:
    defaults = SensorConfig()
    driver = sensor_data.get('driver', defaults.driver)
    if driver not in DRIVER_TYPES:
        raise ValueError(f"Unsupported sensor driver {driver!r}, expected one of: {', '.join(DRIVER_TYPES)}")

    return SensorConfig(
        driver=driver,
        i2c_bus=int(sensor_data.get('i2c_bus', defaults.i2c_bus)),
        address=parse_address(sensor_data.get('address', defaults.address)),
        poll_attempts=int(sensor_data.get('poll_attempts', defaults.poll_attempts)),
        poll_interval=float(sensor_data.get('poll_interval', defaults.poll_interval)),
        settings=SensorSettings.from_dict(sensor_data.get('settings') or {}),
    )


def load_config(path: Optional[Union[str, Path]] = None) -> Config:
    """Load configuration from YAML file and environment variables

    An explicit path must exist. Without one, config/config-{env}.yaml is
    used when present and built-in defaults otherwise. InfluxDB credentials
    always come from the environment (or config/.env).

    Raises:
        ConfigError: If InfluxDB environment variables are missing.
        FileNotFoundError: If an explicit config path does not exist.
        ValueError: If a config value is invalid.
    """
    load_env()

    if path is None:
        config_path = get_config_path()
        if config_path.exists():
            config_data = load_yaml_config(config_path)
        else:
            logger.warning(f"No config file found at {config_path}, using defaults")
            config_data = {}
    else:
        config_data = load_yaml_config(path)

    defaults = Config(influx=None, sensor=SensorConfig())

    return Config(
        influx=InfluxConfig.from_env(),
        sensor=load_sensor_config(config_data.get('sensor') or {}),
        collection_interval=float(config_data.get('collection_interval', defaults.collection_interval)),
        device_id=str(config_data.get('device_id', defaults.device_id)),
        sensor_name=str(config_data.get('sensor_name', defaults.sensor_name)),
        measurement=str(config_data.get('measurement', defaults.measurement)),
        dispatch_on=_parse_enum(DispatchPolicy, config_data.get('dispatch_on', defaults.dispatch_on.value), 'dispatch_on'),
        on_sensor_error=_parse_enum(
            SensorErrorPolicy, config_data.get('on_sensor_error', defaults.on_sensor_error.value), 'on_sensor_error'
        ),
        measure_timeout=_optional_float(config_data.get('measure_timeout', defaults.measure_timeout)),
        write_timeout=_optional_float(config_data.get('write_timeout', defaults.write_timeout)),
        log_level=get_log_level(config_data),
        log_file=config_data.get('log_file') or None,
    )
