"""Configuration schema for plasmasphere spot runs.

This module defines Pydantic models that mirror the structure of the YAML
configuration files accepted by :mod:`plasmaspot.run`.  Command line options
are merged into the same mapping before validation, so every run, however it
was configured, is described by one :class:`Config`.  Unknown keys are
rejected.
"""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from . import constants
from .clock import to_seconds
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid")


class RunWindow(_Strict):
    """Run timing.  Unset times fall back to the extent of the driving series."""

    start: Optional[datetime] = Field(None, description="Run start (UTC); default: first driving-index time")
    end: Optional[datetime] = Field(None, description="Run end (UTC); takes priority over duration_s")
    output_start: Optional[datetime] = Field(None, description="First output time; default: run start")
    duration_s: Optional[float] = Field(None, gt=0.0, description="Run length in seconds when end is unset")
    output_dt_s: float = Field(constants.OUTPUT_DT_DEFAULT, gt=0.0, description="Seconds between state frames or samples")
    clock_refresh_s: float = Field(
        constants.CLOCK_REFRESH_DEFAULT,
        gt=0.0,
        description="Seconds between spot clock refreshes",
    )

    @model_validator(mode="after")
    def _check_order(self) -> "RunWindow":
        if self.start is not None and self.end is not None and to_seconds(self.end) < to_seconds(self.start):
            raise ConfigurationError(f"run end ({self.end}) precedes run start ({self.start})")
        return self


class Filling(_Strict):
    """Baseline filling parameters; ``enabled`` selects the custom filling model."""

    enabled: bool = False
    f_max: float = Field(constants.F_MAX_DEFAULT, description="Maximum flux [m^-2 s^-1]")
    tau_closed_days: float = Field(constants.TAU_CLOSED_DEFAULT / constants.SECONDS_PER_DAY, gt=0.0)
    tau_open_days: float = Field(constants.TAU_OPEN_DEFAULT / constants.SECONDS_PER_DAY, gt=0.0)


class SaturationModel(_Strict):
    """Saturation ``neq = 10**(a + b*L)``."""

    enabled: bool = False
    a: float = constants.SATURATION_A_DEFAULT
    b: float = constants.SATURATION_B_DEFAULT


class Spot(_Strict):
    """Spot window (offsets from the run start) and geometry.

    The spot is active only when both offsets are given.
    """

    start_offset_s: Optional[float] = Field(None, description="Activation time, seconds after run start")
    stop_offset_s: Optional[float] = Field(None, description="Deactivation time, seconds after run start")
    colatitude_deg: float = Field(constants.SPOT_COLATITUDE_DEFAULT, gt=0.0, lt=180.0)
    longitude_deg: float = Field(constants.SPOT_LONGITUDE_DEFAULT, description="Local time, degrees east of midnight")
    radius_km: float = Field(constants.SPOT_RADIUS_KM_DEFAULT, gt=0.0)
    factor: float = Field(constants.SPOT_FACTOR_DEFAULT, description="Amplification of saturation and f_max")

    @model_validator(mode="after")
    def _check_window(self) -> "Spot":
        if (self.start_offset_s is None) != (self.stop_offset_s is None):
            raise ConfigurationError("spot.start_offset_s and spot.stop_offset_s must be given together")
        if self.enabled and self.stop_offset_s < self.start_offset_s:
            raise ConfigurationError("spot.stop_offset_s precedes spot.start_offset_s")
        return self

    @property
    def enabled(self) -> bool:
        return self.start_offset_s is not None and self.stop_offset_s is not None


class Grid(_Strict):
    n_theta: int = Field(46, ge=1)
    n_phi: int = Field(72, ge=1)
    # Single hemisphere so that L = 1/sin^2(theta) is monotonic along the grid
    theta_min_deg: float = Field(20.0, gt=0.0, le=90.0)
    theta_max_deg: float = Field(65.0, gt=0.0, le=90.0)
    max_step_s: float = Field(300.0, gt=0.0, description="Longest engine sub-step")

    @model_validator(mode="after")
    def _check_range(self) -> "Grid":
        if self.theta_max_deg < self.theta_min_deg:
            raise ConfigurationError("grid.theta_max_deg must not be below grid.theta_min_deg")
        if self.n_theta > 1 and self.theta_max_deg == self.theta_min_deg:
            raise ConfigurationError("grid.theta_min_deg and grid.theta_max_deg must differ when n_theta > 1")
        return self


class Progress(_Strict):
    enable: bool = False
    refresh_seconds: float = Field(1.0, gt=0.0)


class IO(_Strict):
    inputs: List[Path] = Field(default_factory=list, description="Driving-index CSV files, in time order")
    output: Optional[Path] = Field(None, description="State stream path (default output.dat) or sample table path")
    samples: Optional[Path] = Field(None, description="Sample location file; switches to sample output")
    summary: Optional[Path] = Field(None, description="Optional JSON run summary")
    quiet: bool = False
    progress: Progress = Progress()


class Config(_Strict):
    """Top-level configuration object."""

    run: RunWindow = RunWindow()
    filling: Filling = Filling()
    saturation: SaturationModel = SaturationModel()
    spot: Spot = Spot()
    grid: Grid = Grid()
    io: IO = IO()

    @model_validator(mode="before")
    @classmethod
    def _require_mapping(cls, data: Any) -> Any:
        if data is None:
            return {}
        return data

    @model_validator(mode="after")
    def _check_combinations(self) -> "Config":
        if not self.io.inputs:
            raise ConfigurationError("No driving-index input files specified")
        if self.saturation.enabled and not self.filling.enabled:
            raise ConfigurationError("A custom saturation model requires the custom filling model")
        return self


__all__ = [
    "RunWindow",
    "Filling",
    "SaturationModel",
    "Spot",
    "Grid",
    "Progress",
    "IO",
    "Config",
]
