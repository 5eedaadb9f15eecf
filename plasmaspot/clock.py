"""Simulated time helpers.

Simulated times are plain floats holding seconds since the Unix epoch (UTC).
The helpers here convert between that representation and calendar fields
used by configuration and output headers.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Sequence, Tuple

import pandas as pd

logger = logging.getLogger(__name__)


def to_seconds(value) -> float:
    """Return seconds since the epoch for a datetime-like or numeric value."""

    if isinstance(value, (int, float)):
        return float(value)
    stamp = pd.Timestamp(value)
    if stamp.tzinfo is None:
        stamp = stamp.tz_localize("UTC")
    return float(stamp.timestamp())


def from_seconds(t: float) -> datetime:
    return datetime.fromtimestamp(float(t), tz=timezone.utc)


def from_fields(fields: Sequence[int]) -> float:
    """Build a simulated time from ``(yr, mo, dy, hr)`` style fields."""

    parts = [int(v) for v in fields]
    if not 3 <= len(parts) <= 6:
        raise ValueError(f"expected 3-6 calendar fields, got {len(parts)}")
    parts += [0] * (6 - len(parts))
    yr, mo, dy, hr, mn, se = parts
    return datetime(yr, mo, dy, hr, mn, se, tzinfo=timezone.utc).timestamp()


def split_fields(t: float) -> Tuple[int, int, int, int, int, int]:
    """Return ``(yr, mo, dy, hr, mn, se)`` for a simulated time."""

    dt = from_seconds(t)
    return dt.year, dt.month, dt.day, dt.hour, dt.minute, dt.second


def format_time(t: float) -> str:
    yr, mo, dy, hr, mn, se = split_fields(t)
    return f"{yr}/{mo}/{dy} {hr}:{mn:02d}:{se:02d}"


@dataclass
class SimulationClock:
    """Current simulated time shared between the driver and the injector."""

    # -inf until the driver pushes the first time
    now: float = float("-inf")

    def set(self, t: float) -> None:
        t = float(t)
        if t < self.now:
            raise ValueError(f"simulation clock cannot move backwards ({t} < {self.now})")
        self.now = t


__all__ = [
    "SimulationClock",
    "to_seconds",
    "from_seconds",
    "from_fields",
    "split_fields",
    "format_time",
]
