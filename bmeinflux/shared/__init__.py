"""Shared utilities for bmeinflux services."""

from .models import NamedMetric, PowerMode, ReadinessState, Reading, SensorSettings
from .influx import InfluxClient, InfluxConfig, Measurement, WriteError
from .config import ConfigError, load_yaml_config, get_config_path
from .logging import setup_logging

__all__ = [
    "Reading",
    "ReadinessState",
    "PowerMode",
    "NamedMetric",
    "SensorSettings",
    "InfluxClient",
    "InfluxConfig",
    "Measurement",
    "WriteError",
    "ConfigError",
    "load_yaml_config",
    "get_config_path",
    "setup_logging",
]
