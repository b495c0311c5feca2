import logging

import pytest

from bmeinflux.collector.collector import CycleScheduler, SensorErrorPolicy
from bmeinflux.collector.dispatcher import MetricDispatcher
from bmeinflux.collector.extractor import DispatchPolicy, ReadingExtractor
from bmeinflux.collector.readers.base import MeasureError
from bmeinflux.shared.influx import InfluxTransportError
from bmeinflux.shared.models import ReadinessState
from conftest import FakeSession, RecordingClient


def make_scheduler(session, client, clock, **kwargs):
    return CycleScheduler(
        session,
        kwargs.pop("extractor", ReadingExtractor()),
        MetricDispatcher(client),
        interval=kwargs.pop("interval", 60.0),
        clock=clock,
        sleep=clock.sleep,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_measures_exactly_once_per_tick(fake_clock):
    session = FakeSession(fake_clock)
    client = RecordingClient()
    scheduler = make_scheduler(session, client, fake_clock)
    start = fake_clock.now

    await scheduler.run(max_cycles=5)

    assert session.calls == [start + 60 * k for k in range(1, 6)]
    assert fake_clock.sleeps == [60.0] * 5
    assert len(client.writes) == 20
    assert scheduler.skipped_ticks == 0


@pytest.mark.asyncio
async def test_overrun_skips_ticks_and_logs(fake_clock, caplog):
    session = FakeSession(fake_clock, duration=150.0)
    scheduler = make_scheduler(session, RecordingClient(), fake_clock)
    start = fake_clock.now

    with caplog.at_level(logging.WARNING):
        await scheduler.run(max_cycles=2)

    # first cycle runs 60..210, so ticks at 120 and 180 are skipped
    assert session.calls == [start + 60, start + 240]
    assert scheduler.skipped_ticks == 4
    assert "skipping 2 tick(s)" in caplog.text


@pytest.mark.asyncio
async def test_cycle_ending_on_a_tick_runs_that_tick(fake_clock, caplog):
    session = FakeSession(fake_clock, duration=120.0)
    scheduler = make_scheduler(session, RecordingClient(), fake_clock)
    start = fake_clock.now

    with caplog.at_level(logging.WARNING):
        await scheduler.run(max_cycles=2)

    # each cycle ends exactly on a tick, so only the one tick inside it is lost
    assert session.calls == [start + 60, start + 180]
    assert scheduler.skipped_ticks == 2
    assert "skipping 1 tick(s)" in caplog.text
    assert "skipping 2" not in caplog.text


@pytest.mark.asyncio
async def test_skipped_reading_issues_no_writes(fake_clock):
    session = FakeSession(fake_clock, state=ReadinessState.FRESH)
    client = RecordingClient()
    scheduler = make_scheduler(session, client, fake_clock)

    assert await scheduler.run_cycle() is False
    assert client.writes == []


@pytest.mark.asyncio
async def test_fresh_policy_dispatches_fresh_readings(fake_clock):
    session = FakeSession(fake_clock, state=ReadinessState.FRESH)
    client = RecordingClient()
    scheduler = make_scheduler(session, client, fake_clock, extractor=ReadingExtractor(policy=DispatchPolicy.FRESH))

    assert await scheduler.run_cycle() is True
    assert len(client.writes) == 4


@pytest.mark.asyncio
async def test_write_failures_are_logged_and_loop_continues(fake_clock, caplog):
    session = FakeSession(fake_clock)
    client = RecordingClient(fail_types={"humidity": InfluxTransportError("connection refused")})
    scheduler = make_scheduler(session, client, fake_clock)

    with caplog.at_level(logging.ERROR):
        await scheduler.run(max_cycles=3)

    assert len(session.calls) == 3
    assert len(client.writes) == 12
    assert "Writing metrics failed" in caplog.text
    assert "humidity" in caplog.text


@pytest.mark.asyncio
async def test_sensor_error_stops_loop_by_default(fake_clock):
    session = FakeSession(fake_clock, errors=[None, MeasureError("i2c read failed")])
    client = RecordingClient()
    scheduler = make_scheduler(session, client, fake_clock)

    with pytest.raises(MeasureError):
        await scheduler.run(max_cycles=5)

    assert len(session.calls) == 2
    assert len(client.writes) == 4


@pytest.mark.asyncio
async def test_skip_policy_logs_sensor_error_and_continues(fake_clock, caplog):
    session = FakeSession(fake_clock, errors=[MeasureError("i2c read failed")])
    client = RecordingClient()
    scheduler = make_scheduler(session, client, fake_clock, on_sensor_error=SensorErrorPolicy.SKIP)

    with caplog.at_level(logging.ERROR):
        await scheduler.run(max_cycles=3)

    assert len(session.calls) == 3
    assert len(client.writes) == 8
    assert "i2c read failed" in caplog.text


@pytest.mark.asyncio
async def test_console_shows_each_reading(fake_clock):
    shown = []

    class Console:
        def show(self, reading, state):
            shown.append((reading, state))

    session = FakeSession(fake_clock)
    scheduler = make_scheduler(session, RecordingClient(), fake_clock, console=Console())

    await scheduler.run(max_cycles=2)

    assert shown == [(session.reading, ReadinessState.STALE)] * 2


def test_interval_must_be_positive(fake_clock):
    with pytest.raises(ValueError):
        make_scheduler(FakeSession(fake_clock), RecordingClient(), fake_clock, interval=0)
