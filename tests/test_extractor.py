import pytest

from bmeinflux.collector.extractor import METRIC_NAMES, DispatchPolicy, ReadingExtractor
from bmeinflux.shared.models import ReadinessState


def test_extracts_four_named_metrics_from_same_reading(reading):
    metrics = ReadingExtractor().extract(reading, ReadinessState.STALE)

    assert [m.name for m in metrics] == ["temperature", "pressure", "humidity", "gasresistence"]
    assert [m.value for m in metrics] == [22.5, 1013.2, 40.1, 12345.0]


def test_tags_carry_device_model_and_metric_type(reading):
    metrics = ReadingExtractor(device_id="b8:27:eb:00:00:01").extract(reading, ReadinessState.STALE)

    temperature = metrics[0]
    assert temperature.tags == {"id": "b8:27:eb:00:00:01", "name": "bme680", "type": "temperature"}
    for metric in metrics:
        assert metric.tags["type"] == metric.name


def test_default_policy_dispatches_only_non_fresh_readings(reading):
    extractor = ReadingExtractor()

    assert extractor.policy is DispatchPolicy.NOT_FRESH
    assert extractor.extract(reading, ReadinessState.FRESH) is None
    assert extractor.extract(reading, ReadinessState.STALE) is not None


def test_fresh_policy_skips_stale_readings(reading):
    extractor = ReadingExtractor(policy=DispatchPolicy.FRESH)

    assert extractor.extract(reading, ReadinessState.STALE) is None
    assert len(extractor.extract(reading, ReadinessState.FRESH)) == 4


@pytest.mark.parametrize("state", list(ReadinessState))
def test_always_policy_dispatches_every_state(reading, state):
    metrics = ReadingExtractor(policy=DispatchPolicy.ALWAYS).extract(reading, state)

    assert {m.name for m in metrics} == set(METRIC_NAMES)
