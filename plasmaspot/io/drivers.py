"""Driving-index time series.

The series is an ordered sequence of ``(time, value)`` pairs.  Times are
simulated seconds since the epoch; files are plain CSV tables with ``time``
and ``value`` columns (``time`` may be any string pandas parses as a date).
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Sequence, Union

import numpy as np
import pandas as pd

from ..errors import DrivingIndexError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class DrivingIndexSeries:
    """Nearest-at-or-before lookup over a geomagnetic index series."""

    def __init__(self, times: Iterable[float], values: Iterable[float]) -> None:
        self.times = np.asarray(list(times), dtype=float)
        self.values = np.asarray(list(values), dtype=float)
        if self.times.ndim != 1 or self.times.shape != self.values.shape:
            raise DrivingIndexError("driving index times and values must be 1D arrays of equal length")
        if self.times.size == 0:
            raise DrivingIndexError("driving index series is empty")
        if np.any(np.diff(self.times) < 0.0):
            raise DrivingIndexError("driving index times must be non-decreasing")

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "DrivingIndexSeries":
        missing = {"time", "value"} - set(df.columns)
        if missing:
            raise DrivingIndexError(f"driving index table lacks columns: {sorted(missing)}")
        time_col = df["time"]
        try:
            if pd.api.types.is_numeric_dtype(time_col):
                times = time_col.to_numpy(dtype=float)
            else:
                stamps = pd.to_datetime(time_col, utc=True)
                times = (stamps - pd.Timestamp(0, tz="UTC")).dt.total_seconds().to_numpy(dtype=float)
            values = df["value"].to_numpy(dtype=float)
        except (TypeError, ValueError) as exc:
            raise DrivingIndexError(f"unreadable driving index table: {exc}") from exc
        return cls(times, values)

    @classmethod
    def from_csv(cls, paths: Union[PathLike, Sequence[PathLike]]) -> "DrivingIndexSeries":
        """Load and concatenate CSV files in the order given."""
        if isinstance(paths, (str, Path)):
            paths = [paths]
        if not paths:
            raise DrivingIndexError("no driving index files given")
        frames = []
        for p in paths:
            try:
                frames.append(pd.read_csv(Path(p)))
            except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
                raise DrivingIndexError(f"cannot read driving index file {p}: {exc}") from exc
        logger.info("loaded %d driving index file(s)", len(frames))
        return cls.from_frame(pd.concat(frames, ignore_index=True))

    def __len__(self) -> int:
        return int(self.times.size)

    def time(self, i: int) -> float:
        return float(self.times[i])

    def value(self, i: int) -> float:
        return float(self.values[i])

    @property
    def first_time(self) -> float:
        return float(self.times[0])

    @property
    def last_time(self) -> float:
        return float(self.times[-1])

    def find(self, t: float) -> int:
        """Index of the last entry whose time is at or before ``t``."""
        i = int(np.searchsorted(self.times, float(t), side="right")) - 1
        if i < 0:
            raise DrivingIndexError(
                f"no driving index data at or before t={t} (series starts at {self.first_time})"
            )
        return i


__all__ = ["DrivingIndexSeries"]
