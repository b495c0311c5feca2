"""BME680 to InfluxDB sampling service."""

__version__ = "0.1.0"
