"""Turns a sensor reading into the named metrics that get written."""

import logging
from enum import Enum
from typing import Optional, Tuple

from bmeinflux.shared.models import NamedMetric, ReadinessState, Reading

logger = logging.getLogger(__name__)

# External metric names; "gasresistence" is the name existing dashboards query
METRIC_NAMES = ("temperature", "pressure", "humidity", "gasresistence")


class DispatchPolicy(Enum):
    """Which readiness states get dispatched."""
    NOT_FRESH = "not_fresh"
    FRESH = "fresh"
    ALWAYS = "always"

    def allows(self, state: ReadinessState) -> bool:
        if self is DispatchPolicy.ALWAYS:
            return True
        if self is DispatchPolicy.FRESH:
            return state == ReadinessState.FRESH
        return state != ReadinessState.FRESH


class ReadingExtractor:
    """Maps a reading to four tagged metrics, or None to skip the cycle."""

    def __init__(
        self,
        device_id: str = "MAC",
        sensor_name: str = "bme680",
        policy: DispatchPolicy = DispatchPolicy.NOT_FRESH,
    ):
        self.device_id = device_id
        self.sensor_name = sensor_name
        self.policy = policy

    def _metric(self, name: str, value: float) -> NamedMetric:
        return NamedMetric(
            name=name,
            value=value,
            tags={"id": self.device_id, "name": self.sensor_name, "type": name},
        )

    def extract(self, reading: Reading, state: ReadinessState) -> Optional[Tuple[NamedMetric, ...]]:
        if not self.policy.allows(state):
            logger.debug(f"Skipping {state.name} reading under policy {self.policy.value}")
            return None

        values = (
            reading.temperature,
            reading.pressure,
            reading.humidity,
            reading.gas_resistance,
        )
        return tuple(self._metric(name, value) for name, value in zip(METRIC_NAMES, values))
