from typing import List

import pytest

from plasmaspot.driver import EventSchedule, RunContext, SimulationDriver
from plasmaspot.errors import ConfigurationError, DrivingIndexError
from plasmaspot.io.drivers import DrivingIndexSeries


class RecordingEngine:
    def __init__(self) -> None:
        self.advances: List[float] = []
        self.driving: List[float] = []

    def advance(self, duration_s: float) -> None:
        self.advances.append(duration_s)

    def set_driving_parameter(self, model: int, values) -> None:
        self.driving.append(values[0])


class RecordingWriter:
    def __init__(self) -> None:
        self.times: List[float] = []

    def write(self, t: float, model) -> None:
        self.times.append(t)


class RecordingInjector:
    def __init__(self) -> None:
        self.times: List[float] = []

    def set_time(self, t: float) -> None:
        self.times.append(t)


def _context(series, run_end, **kwargs) -> RunContext:
    params = dict(
        engine=RecordingEngine(),
        series=series,
        run_start=0.0,
        run_end=run_end,
        output_start=0.0,
        output_mode="state",
        state_writer=RecordingWriter(),
        output_period=900.0,
        clock_period=300.0,
    )
    params.update(kwargs)
    return RunContext(**params)


def test_next_dispatch_is_minimum_of_pending_events():
    schedule = EventSchedule(index=10.0, state=20.0, sample=15.0, clock=30.0, run_end=25.0)
    assert schedule.next_dispatch() == 10.0
    assert not schedule.finished()
    schedule.index = 40.0
    assert schedule.next_dispatch() == 15.0
    schedule.sample = 26.0
    schedule.state = 120.0
    assert schedule.next_dispatch() == 26.0
    assert schedule.finished()


def test_driver_advances_to_nearest_event_and_stops_past_end():
    series = DrivingIndexSeries([0.0, 10.0, 40.0], [1.0, 2.0, 3.0])
    ctx = _context(series, 25.0, output_start=20.0, output_period=100.0, clock_period=30.0)
    injector = RecordingInjector()
    ctx.injector = injector

    summary = SimulationDriver(ctx).run()

    assert ctx.engine.advances == [10.0, 10.0]
    assert ctx.engine.driving == [1.0, 1.0, 2.0]
    assert ctx.state_writer.times == [20.0]
    assert injector.times == [0.0, 0.0, 10.0]
    assert summary["ticks"] == 3
    assert summary["end_time"] == 20.0
    assert summary["index_updates"] == 2


def test_index_series_exhaustion_disables_updates():
    series = DrivingIndexSeries([0.0, 3600.0, 7200.0], [1.0, 2.0, 3.0])
    ctx = _context(series, 4 * 3600.0)

    driver = SimulationDriver(ctx)
    summary = driver.run()

    assert summary["index_updates"] == 3
    assert ctx.engine.driving == [1.0, 1.0, 2.0, 3.0]
    assert driver.schedule.index > ctx.run_end
    assert sum(ctx.engine.advances) == pytest.approx(4 * 3600.0)
    assert summary["state_writes"] == 17


def test_clock_refresh_bounds_each_advance():
    series = DrivingIndexSeries([0.0], [2.0])
    ctx = _context(series, 3600.0, output_period=3600.0, clock_period=300.0)

    SimulationDriver(ctx).run()

    assert max(ctx.engine.advances) <= 300.0
    assert sum(ctx.engine.advances) == pytest.approx(3600.0)


def test_start_before_series_fails_loudly():
    series = DrivingIndexSeries([100.0, 200.0], [1.0, 2.0])
    ctx = _context(series, 1000.0)
    with pytest.raises(DrivingIndexError):
        SimulationDriver(ctx)


def test_context_validation():
    series = DrivingIndexSeries([0.0], [1.0])
    with pytest.raises(ConfigurationError):
        _context(series, -1.0)
    with pytest.raises(ConfigurationError):
        _context(series, 10.0, state_writer=None)
    with pytest.raises(ConfigurationError):
        _context(series, 10.0, output_mode="samples")
