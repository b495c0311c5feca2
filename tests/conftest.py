import asyncio
import logging
from typing import List, Optional

import pytest

from bmeinflux.shared.influx import Measurement
from bmeinflux.shared.models import ReadinessState, Reading


class RecordingClient:
    """Stands in for InfluxClient: records every write, optionally slow or failing."""

    def __init__(self, delay: float = 0.0, fail_types: Optional[dict] = None):
        self.delay = delay
        self.fail_types = fail_types or {}
        self.writes: List[Measurement] = []
        self.completed: List[str] = []

    async def write(self, measurement: Measurement) -> None:
        self.writes.append(measurement)
        if self.delay:
            await asyncio.sleep(self.delay)
        metric_type = measurement.tags.get("type")
        if metric_type in self.fail_types:
            raise self.fail_types[metric_type]
        self.completed.append(metric_type)


class FakeClock:
    """A monotonic clock that only moves when something sleeps on it."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeSession:
    """Stands in for SensorSession: hands out scripted measurements."""

    def __init__(self, clock: FakeClock, state=ReadinessState.STALE, reading: Optional[Reading] = None,
                 errors: Optional[list] = None, duration: float = 0.0):
        self.clock = clock
        self.state = state
        self.reading = reading or Reading(temperature=22.5, pressure=1013.2, humidity=40.1, gas_resistance=12345.0)
        self.errors = list(errors or [])
        self.duration = duration
        self.calls: List[float] = []

    async def measure(self):
        self.calls.append(self.clock())
        self.clock.now += self.duration
        if self.errors:
            error = self.errors.pop(0)
            if error is not None:
                raise error
        return self.reading, self.state


@pytest.fixture
def reading():
    return Reading(temperature=22.5, pressure=1013.2, humidity=40.1, gas_resistance=12345.0)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def influx_env(monkeypatch):
    monkeypatch.setenv("INFLUX_ADDRESS", "http://influx.local:8086/")
    monkeypatch.setenv("INFLUX_USER", "writer")
    monkeypatch.setenv("INFLUX_PASSWORD", "secret")
    monkeypatch.setenv("INFLUX_DATABASE", "environment")


@pytest.fixture
def restore_logging():
    """Remove the handlers setup_logging() installs on the root logger."""
    from bmeinflux.shared import logging as logging_module

    root = logging.getLogger()
    level = root.level
    yield
    for handler in logging_module._handlers:
        root.removeHandler(handler)
        handler.close()
    logging_module._handlers.clear()
    root.setLevel(level)
