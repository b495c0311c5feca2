"""Concurrent writes of one cycle's metrics."""

import asyncio
import logging
from typing import List, Optional, Protocol, Sequence, Tuple

from bmeinflux.shared.influx import Measurement, WriteError, WriteTimeoutError
from bmeinflux.shared.models import NamedMetric

logger = logging.getLogger(__name__)


class MetricWriter(Protocol):
    async def write(self, measurement: Measurement) -> None:
        ...


class AggregateWriteError(Exception):
    """One or more writes of a cycle failed.

    Attributes:
        failures: (metric name, error) for every failed write, in metric order.
        error: The first failure, for callers that only care about one cause.
    """

    def __init__(self, failures: List[Tuple[str, WriteError]], attempted: int):
        self.failures = failures
        self.attempted = attempted
        self.error = failures[0][1]
        detail = "; ".join(f"{name}: {type(err).__name__}: {err}" for name, err in failures)
        super().__init__(f"{len(failures)} of {attempted} writes failed ({detail})")


class MetricDispatcher:
    """Writes each metric as its own point, all at once, and joins on every outcome."""

    def __init__(
        self,
        client: MetricWriter,
        measurement: str = "sensor",
        write_timeout: Optional[float] = 10.0,
    ):
        self.client = client
        self.measurement = measurement
        self.write_timeout = write_timeout

    def build_measurement(self, metric: NamedMetric) -> Measurement:
        point = Measurement(self.measurement)
        point.add_field("value", float(metric.value))
        for key, value in metric.tags.items():
            point.add_tag(key, value)
        return point

    async def _write(self, metric: NamedMetric) -> None:
        try:
            await asyncio.wait_for(self.client.write(self.build_measurement(metric)), timeout=self.write_timeout)
        except asyncio.TimeoutError:
            raise WriteTimeoutError(f"Write of {metric.name} timed out after {self.write_timeout}s") from None

    async def dispatch(self, metrics: Sequence[NamedMetric]) -> None:
        """Write all metrics concurrently.

        Every write runs to completion even when others fail.

        Raises:
            AggregateWriteError: If any write failed.
        """
        results = await asyncio.gather(
            *[self._write(metric) for metric in metrics],
            return_exceptions=True,
        )

        failures: List[Tuple[str, WriteError]] = []
        for metric, result in zip(metrics, results):
            if isinstance(result, WriteError):
                failures.append((metric.name, result))
            elif isinstance(result, BaseException):
                raise result

        if failures:
            raise AggregateWriteError(failures, attempted=len(metrics))

        logger.debug(f"Wrote {len(metrics)} metrics")
