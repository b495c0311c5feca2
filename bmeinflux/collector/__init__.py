"""Sensor sampling and delivery service."""

from .collector import CycleScheduler, SensorErrorPolicy


async def run(config):
    """Set up the sensor and database client, then sample until stopped."""
    import logging

    from bmeinflux.shared.influx import InfluxClient
    from bmeinflux.shared.models import PowerMode
    from .console import ReadingConsole
    from .dispatcher import MetricDispatcher
    from .extractor import ReadingExtractor
    from .readers import create_driver
    from .session import SensorSession

    logger = logging.getLogger(__name__)

    session = await SensorSession.initialize(
        create_driver(config.sensor.driver),
        config.sensor.i2c_bus,
        config.sensor.address,
        poll_attempts=config.sensor.poll_attempts,
        poll_interval=config.sensor.poll_interval,
        measure_timeout=config.measure_timeout,
    )
    try:
        await session.apply_settings(config.sensor.settings)
        await session.set_power_mode(PowerMode.FORCED)

        async with InfluxClient(config.influx) as client:
            scheduler = CycleScheduler(
                session,
                ReadingExtractor(config.device_id, config.sensor_name, config.dispatch_on),
                MetricDispatcher(client, config.measurement, config.write_timeout),
                interval=config.collection_interval,
                on_sensor_error=config.on_sensor_error,
                console=ReadingConsole(),
            )
            logger.info(
                f"Writing to {config.influx.address} database {config.influx.database} "
                f"(dispatch_on={config.dispatch_on.value}, on_sensor_error={config.on_sensor_error.value})"
            )
            await scheduler.run()
    finally:
        await session.close()


def main():
    """Entry point for the sampling service."""
    import asyncio
    import logging
    import sys

    import yaml

    from .config.settings import load_config
    from .readers.base import SensorError
    from bmeinflux.shared.config import ConfigError
    from bmeinflux.shared.logging import setup_logging

    logger = logging.getLogger(__name__)

    try:
        config = load_config()
    except (ConfigError, FileNotFoundError, ValueError, yaml.YAMLError) as e:
        setup_logging()
        logger.error(f"Configuration failed: {e}")
        sys.exit(1)

    setup_logging(config.log_level, config.log_file)

    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except SensorError as e:
        logger.error(f"Sensor failure, stopping: {e}")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Error: {e}")
        sys.exit(1)


__all__ = ["CycleScheduler", "SensorErrorPolicy", "run", "main"]
