"""Sampled observations of the model density.

Instead of full state frames, a run may emit the density at a fixed list of
``(L, longitude)`` locations every ``period`` seconds starting at the output
start time.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List

import numpy as np
import pandas as pd

from ..errors import ConfigurationError
from .writer import write_parquet

logger = logging.getLogger(__name__)


class SampleSchedule:
    """Observation locations and the emission time stepping."""

    def __init__(self, l_shells, longitudes, t_start: float, period: float) -> None:
        self.l_shells = np.asarray(l_shells, dtype=float)
        self.longitudes = np.asarray(longitudes, dtype=float)
        if self.l_shells.ndim != 1 or self.l_shells.shape != self.longitudes.shape:
            raise ConfigurationError("sample L-shells and longitudes must be 1D arrays of equal length")
        if self.l_shells.size == 0:
            raise ConfigurationError("sample location list is empty")
        if period <= 0.0:
            raise ConfigurationError("sample period must be positive")
        self.period = float(period)
        self.time = float(t_start)

    @classmethod
    def from_csv(cls, path: Path, t_start: float, period: float) -> "SampleSchedule":
        """Read ``l_shell``/``longitude_deg`` pairs; headerless files use the first two columns."""
        df = pd.read_csv(Path(path))
        if {"l_shell", "longitude_deg"}.issubset(df.columns):
            l_vals, lon_vals = df["l_shell"], df["longitude_deg"]
        else:
            df = pd.read_csv(Path(path), header=None)
            if df.shape[1] < 2:
                raise ConfigurationError(f"sample file {path} needs two columns")
            l_vals, lon_vals = df.iloc[:, 0], df.iloc[:, 1]
        return cls(l_vals.to_numpy(dtype=float), lon_vals.to_numpy(dtype=float), t_start, period)

    def __len__(self) -> int:
        return int(self.l_shells.size)

    def advance(self) -> float:
        self.time += self.period
        return self.time


class SampleWriter:
    """Collect sample rows and write them as a Parquet table on close."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._rows: List[Dict[str, float]] = []
        self.records = 0

    def write(self, t: float, model, schedule: SampleSchedule) -> None:
        density = model.sample(schedule.l_shells, schedule.longitudes)
        for l_val, lon, den in zip(schedule.l_shells, schedule.longitudes, density):
            self._rows.append(
                {"time": float(t), "l_shell": float(l_val), "longitude_deg": float(lon), "density": float(den)}
            )
        self.records += 1

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self._rows, columns=["time", "l_shell", "longitude_deg", "density"])

    def close(self) -> None:
        write_parquet(self.to_frame(), self.path)
        logger.info("wrote %d sample record(s) to %s", self.records, self.path)


__all__ = ["SampleSchedule", "SampleWriter"]
