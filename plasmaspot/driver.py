"""Event-scheduling time stepper.

The engine can only be advanced by an arbitrary duration, so the driver keeps
a small schedule of next-fire times (driving-index update, state write,
sample write, injector clock refresh) and always advances to the nearest
one.  Each event moves its own next-fire time after dispatching, possibly
past the run end, which disables it for the rest of the run.  The loop ends
once the nearest pending event lies beyond the run end.

Only one of the state and sample outputs is active in a run; the other sink
starts disabled.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional

from . import constants
from .clock import format_time
from .engine import PlasmasphereModel
from .errors import ConfigurationError
from .io.drivers import DrivingIndexSeries
from .io.samples import SampleSchedule, SampleWriter
from .io.writer import StateWriter
from .physics.potential import EPOT_PLASMAPAUSE
from .physics.spot import SpotInjector
from .runtime.progress import ProgressReporter

logger = logging.getLogger(__name__)

OutputMode = Literal["state", "samples"]


@dataclass
class EventSchedule:
    """Next-fire times of the four dispatchable events plus the run end."""

    index: float
    state: float
    sample: float
    clock: float
    run_end: float

    def next_dispatch(self) -> float:
        return min(self.index, self.state, self.sample, self.clock)

    def finished(self) -> bool:
        return self.next_dispatch() > self.run_end

    def disabled_time(self) -> float:
        return self.run_end + 1.0


@dataclass
class RunContext:
    """Run-wide state threaded through the driver."""

    engine: PlasmasphereModel
    series: DrivingIndexSeries
    run_start: float
    run_end: float
    output_start: float
    output_mode: OutputMode = "state"
    output_period: float = constants.OUTPUT_DT_DEFAULT
    clock_period: float = constants.CLOCK_REFRESH_DEFAULT
    injector: Optional[SpotInjector] = None
    state_writer: Optional[StateWriter] = None
    sample_schedule: Optional[SampleSchedule] = None
    sample_writer: Optional[SampleWriter] = None
    potential_model: int = EPOT_PLASMAPAUSE
    progress: Optional[ProgressReporter] = None
    index_pointer: int = 0
    counters: Dict[str, int] = field(
        default_factory=lambda: {"index_updates": 0, "state_writes": 0, "sample_writes": 0, "ticks": 0}
    )

    def __post_init__(self) -> None:
        if self.output_mode not in ("state", "samples"):
            raise ConfigurationError(f"unknown output mode {self.output_mode!r}")
        if self.run_end < self.run_start:
            raise ConfigurationError("run end time precedes run start time")
        if self.output_mode == "state" and self.state_writer is None:
            raise ConfigurationError("state output mode requires a state writer")
        if self.output_mode == "samples" and (self.sample_schedule is None or self.sample_writer is None):
            raise ConfigurationError("sample output mode requires a sample schedule and writer")
        if self.output_period <= 0.0 or self.clock_period <= 0.0:
            raise ConfigurationError("output and clock periods must be positive")


def select_start_index(series: DrivingIndexSeries, t_start: float) -> int:
    """Index of the driving value in force at ``t_start``.

    Raises :class:`~plasmaspot.errors.DrivingIndexError` when the series
    begins after ``t_start``.
    """
    return series.find(t_start)


class SimulationDriver:
    """Advance the engine through the run, dispatching events in order."""

    def __init__(self, context: RunContext) -> None:
        self.ctx = context
        self.time = context.run_start
        self.schedule = self._initial_schedule()

    def _initial_schedule(self) -> EventSchedule:
        ctx = self.ctx
        ctx.index_pointer = select_start_index(ctx.series, ctx.run_start)
        disabled = ctx.run_end + 1.0
        state = ctx.output_start if ctx.output_mode == "state" else disabled
        sample = ctx.sample_schedule.time if ctx.output_mode == "samples" else disabled
        return EventSchedule(
            index=ctx.series.time(ctx.index_pointer),
            state=state,
            sample=sample,
            clock=ctx.run_start,
            run_end=ctx.run_end,
        )

    def _apply_index(self) -> None:
        ctx = self.ctx
        value = ctx.series.value(ctx.index_pointer)
        logger.info("driving index %s at %s", value, format_time(self.time))
        ctx.engine.set_driving_parameter(ctx.potential_model, [value])
        ctx.index_pointer += 1
        ctx.counters["index_updates"] += 1
        if ctx.index_pointer >= len(ctx.series):
            logger.info("driving index series exhausted; index updates disabled")
            self.schedule.index = self.schedule.disabled_time()
        else:
            self.schedule.index = ctx.series.time(ctx.index_pointer)

    def _write_state(self) -> None:
        ctx = self.ctx
        logger.info("writing state at %s", format_time(self.time))
        ctx.state_writer.write(self.time, ctx.engine)
        ctx.counters["state_writes"] += 1
        self.schedule.state += ctx.output_period

    def _write_sample(self) -> None:
        ctx = self.ctx
        logger.info("writing sample at %s", format_time(self.time))
        ctx.sample_writer.write(self.time, ctx.engine, ctx.sample_schedule)
        ctx.counters["sample_writes"] += 1
        self.schedule.sample = ctx.sample_schedule.advance()

    def tick(self, next_time: float) -> float:
        """Run one loop iteration toward ``next_time``; return the next dispatch time."""
        ctx = self.ctx
        if ctx.injector is not None:
            ctx.injector.set_time(self.time)
        self.schedule.clock += ctx.clock_period

        if next_time > self.time:
            logger.debug("advancing %.1f s", next_time - self.time)
            ctx.engine.advance(next_time - self.time)
            self.time = next_time

        if self.time >= self.schedule.index:
            self._apply_index()
        if ctx.output_mode == "state" and self.time >= self.schedule.state:
            self._write_state()
        if ctx.output_mode == "samples" and self.time >= self.schedule.sample:
            self._write_sample()

        ctx.counters["ticks"] += 1
        return self.schedule.next_dispatch()

    def run(self) -> Dict[str, Any]:
        ctx = self.ctx
        # The value in force at the start is applied before the loop as well.
        ctx.engine.set_driving_parameter(ctx.potential_model, [ctx.series.value(ctx.index_pointer)])
        logger.info(
            "run from %s to %s (%s output)",
            format_time(ctx.run_start),
            format_time(ctx.run_end),
            ctx.output_mode,
        )
        next_time = ctx.run_start
        while next_time <= ctx.run_end:
            next_time = self.tick(next_time)
            if ctx.progress is not None:
                ctx.progress.update(self.time - ctx.run_start)
        if ctx.progress is not None:
            ctx.progress.finish(self.time - ctx.run_start)
        summary: Dict[str, Any] = dict(ctx.counters)
        summary["end_time"] = self.time
        return summary


__all__ = ["EventSchedule", "RunContext", "SimulationDriver", "select_start_index"]
