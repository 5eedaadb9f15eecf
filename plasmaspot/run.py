"""CLI entry point and run assembly for spot-filling plasmasphere runs."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import config_utils, constants
from .clock import SimulationClock, format_time
from .config_utils import build_config, configure_logging, resolve_run_window
from .driver import RunContext, SimulationDriver, select_start_index
from .engine import PlasmasphereModel
from .errors import ConfigurationError
from .grid import GridCoordinates
from .io.drivers import DrivingIndexSeries
from .io.samples import SampleSchedule, SampleWriter
from .io.writer import StateWriter, write_summary
from .physics.filling import DefaultFilling, FillingParams
from .physics.saturation import Saturation
from .physics.spot import SpotConfig, SpotInjector
from .runtime.progress import ProgressReporter
from .schema import Config

logger = logging.getLogger(__name__)

SAMPLES_FILE_DEFAULT = "samples.parquet"


def build_filling(cfg: Config) -> DefaultFilling:
    """Baseline filling from the ``filling`` and ``saturation`` blocks."""

    if cfg.filling.enabled:
        params = FillingParams(
            f_max=cfg.filling.f_max,
            tau_closed=cfg.filling.tau_closed_days * constants.SECONDS_PER_DAY,
            tau_open=cfg.filling.tau_open_days * constants.SECONDS_PER_DAY,
        )
    else:
        params = FillingParams()
    baseline = DefaultFilling(params)
    if cfg.saturation.enabled:
        baseline.set_saturation(Saturation(a=cfg.saturation.a, b=cfg.saturation.b))
    return baseline


def build_context(cfg: Config) -> RunContext:
    """Load inputs and assemble the engine, filling strategy and output sink."""

    series = DrivingIndexSeries.from_csv(cfg.io.inputs)
    start, end, output_start = resolve_run_window(cfg, series)
    # Fail on uncovered start times before any output file is created.
    select_start_index(series, start)

    baseline = build_filling(cfg)
    injector: Optional[SpotInjector] = None
    strategy = baseline
    if cfg.spot.enabled:
        spot = SpotConfig.from_offsets(
            start,
            cfg.spot.start_offset_s,
            cfg.spot.stop_offset_s,
            colatitude_deg=cfg.spot.colatitude_deg,
            longitude_deg=cfg.spot.longitude_deg,
            radius_km=cfg.spot.radius_km,
            factor=cfg.spot.factor,
        )
        injector = SpotInjector(baseline, spot, SimulationClock())
        strategy = injector
        logger.info(
            "spot at theta=%.1f phi=%.1f R=%.0f km x%.3g from %s to %s",
            spot.colatitude_deg,
            spot.longitude_deg,
            spot.radius_km,
            spot.factor,
            format_time(spot.active_start),
            format_time(spot.active_end),
        )

    grid = cfg.grid
    coords = GridCoordinates.uniform(grid.n_theta, grid.n_phi, grid.theta_min_deg, grid.theta_max_deg)
    engine = PlasmasphereModel(coords, max_step_s=grid.max_step_s, filling=strategy)

    progress = None
    if cfg.io.progress.enable:
        progress = ProgressReporter(end - start, refresh_seconds=cfg.io.progress.refresh_seconds, enabled=True)

    common: Dict[str, Any] = dict(
        engine=engine,
        series=series,
        run_start=start,
        run_end=end,
        output_start=output_start,
        output_period=cfg.run.output_dt_s,
        clock_period=cfg.run.clock_refresh_s,
        injector=injector,
        progress=progress,
    )
    if cfg.io.samples is not None:
        schedule = SampleSchedule.from_csv(cfg.io.samples, output_start, cfg.run.output_dt_s)
        writer = SampleWriter(cfg.io.output or Path(SAMPLES_FILE_DEFAULT))
        return RunContext(output_mode="samples", sample_schedule=schedule, sample_writer=writer, **common)

    state_writer = StateWriter(cfg.io.output or Path(constants.OUTPUT_FILE_DEFAULT))
    state_writer.open(engine)
    return RunContext(output_mode="state", state_writer=state_writer, **common)


def close_context(ctx: RunContext) -> None:
    if ctx.state_writer is not None:
        ctx.state_writer.close()
    if ctx.sample_writer is not None:
        ctx.sample_writer.close()


def run_simulation(cfg: Config) -> Dict[str, Any]:
    """Run the configured simulation and return the driver summary."""

    ctx = build_context(cfg)
    try:
        summary = SimulationDriver(ctx).run()
    finally:
        close_context(ctx)
    summary["output_mode"] = ctx.output_mode
    if cfg.io.summary is not None:
        write_summary(summary, cfg.io.summary)
    logger.info(
        "run finished: %d index updates, %d state writes, %d sample writes",
        summary["index_updates"],
        summary["state_writes"],
        summary["sample_writes"],
    )
    return summary


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------


def _calendar(values: Optional[List[int]]) -> Optional[str]:
    if values is None:
        return None
    yr, mo, dy, hr = values
    return f"{yr:04d}-{mo:02d}-{dy:02d}T{hr:02d}:00:00+00:00"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run the plasmasphere density model with an optional substorm spot"
    )
    parser.add_argument("inputs", nargs="*", type=Path, help="Driving-index CSV files in increasing time order")
    parser.add_argument("--config", type=Path, help="Path to YAML configuration")
    parser.add_argument("-s", "--start", nargs=4, type=int, metavar=("YR", "MO", "DY", "HR"), help="Run start (UT)")
    parser.add_argument("-e", "--end", nargs=4, type=int, metavar=("YR", "MO", "DY", "HR"), help="Run end (UT)")
    parser.add_argument(
        "--output-start",
        nargs=4,
        type=int,
        metavar=("YR", "MO", "DY", "HR"),
        help="First output time; earlier time is model pre-conditioning",
    )
    parser.add_argument("--dt", type=float, help="Seconds between outputs (default 900)")
    parser.add_argument("-T", "--duration", type=float, help="Run length in seconds; ignored when --end is given")
    parser.add_argument("-o", "--output", type=Path, help="Output file (default output.dat)")
    parser.add_argument("--samples", type=Path, help="Write samples at the L, longitude pairs in this file")
    parser.add_argument(
        "-f",
        "--filling",
        nargs=3,
        type=float,
        metavar=("FMAX", "TAU_CLOSED_DAYS", "TAU_OPEN_DAYS"),
        help="Use the custom filling model with these parameters",
    )
    parser.add_argument("--saturation", nargs=2, type=float, metavar=("A", "B"), help="Saturation neq=10^(A+B*L)")
    parser.add_argument("--spot-start", type=float, help="Spot on, seconds after run start")
    parser.add_argument("--spot-stop", type=float, help="Spot off, seconds after run start")
    parser.add_argument("--spot-colatitude", type=float, help="Spot centre colatitude (deg)")
    parser.add_argument("--spot-longitude", type=float, help="Spot centre local time (deg east of midnight)")
    parser.add_argument("--spot-radius", type=float, help="Spot radius at the surface (km)")
    parser.add_argument("--spot-factor", type=float, help="Spot amplification of saturation and fMax")
    parser.add_argument(
        "--override",
        action="append",
        nargs="+",
        metavar="PATH=VALUE",
        help="Configuration overrides using dotted paths, e.g. --override spot.radius_km=500",
    )
    parser.add_argument("--overrides-file", action="append", type=Path, help="File with one PATH=VALUE per line")
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar over simulated time")
    return parser


def args_to_mapping(args: argparse.Namespace) -> Dict[str, Any]:
    """Translate parsed CLI options into a configuration mapping."""

    run: Dict[str, Any] = {}
    for key, value in (("start", args.start), ("end", args.end), ("output_start", args.output_start)):
        if value is not None:
            run[key] = _calendar(value)
    if args.dt is not None:
        run["output_dt_s"] = args.dt
    if args.duration is not None:
        run["duration_s"] = args.duration

    filling: Dict[str, Any] = {}
    if args.filling is not None:
        filling = {
            "enabled": True,
            "f_max": args.filling[0],
            "tau_closed_days": args.filling[1],
            "tau_open_days": args.filling[2],
        }
    saturation: Dict[str, Any] = {}
    if args.saturation is not None:
        saturation = {"enabled": True, "a": args.saturation[0], "b": args.saturation[1]}

    spot: Dict[str, Any] = {}
    for key, value in (
        ("start_offset_s", args.spot_start),
        ("stop_offset_s", args.spot_stop),
        ("colatitude_deg", args.spot_colatitude),
        ("longitude_deg", args.spot_longitude),
        ("radius_km", args.spot_radius),
        ("factor", args.spot_factor),
    ):
        if value is not None:
            spot[key] = value

    io: Dict[str, Any] = {}
    if args.inputs:
        io["inputs"] = [str(p) for p in args.inputs]
    if args.output is not None:
        io["output"] = str(args.output)
    if args.samples is not None:
        io["samples"] = str(args.samples)
    if args.quiet:
        io["quiet"] = True
    if args.progress:
        io["progress"] = {"enable": True}

    mapping: Dict[str, Any] = {}
    for name, block in (("run", run), ("filling", filling), ("saturation", saturation), ("spot", spot), ("io", io)):
        if block:
            mapping[name] = block
    return mapping


def config_from_args(args: argparse.Namespace) -> Config:
    data: Dict[str, Any] = config_utils.load_yaml(args.config) if args.config is not None else {}
    data = config_utils.merge_mappings(data, args_to_mapping(args))
    overrides: List[str] = []
    for override_path in args.overrides_file or []:
        overrides.extend(config_utils.read_overrides_file(override_path))
    for group in args.override or []:
        overrides.extend(group)
    data = config_utils.apply_overrides_dict(data, overrides)
    return build_config(data)


def main(argv: Optional[List[str]] = None) -> int:
    """Command line entry point."""

    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(logging.WARNING if args.quiet else logging.INFO, suppress_warnings=args.quiet)
    try:
        cfg = config_from_args(args)
        if cfg.io.quiet and not args.quiet:
            logging.getLogger().setLevel(logging.WARNING)
        run_simulation(cfg)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return 1
    return 0


__all__ = [
    "build_context",
    "build_filling",
    "build_parser",
    "args_to_mapping",
    "config_from_args",
    "run_simulation",
    "main",
]

if __name__ == "__main__":  # pragma: no cover - standard CLI entrypoint
    sys.exit(main())
