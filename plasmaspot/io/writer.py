"""Output helper utilities.

Full model states are appended to a gzip stream: a six-integer timestamp
header (``yr mo dy hr mn se``) followed by the engine's binary state.  Sample
tables are written to Parquet through :mod:`pyarrow` and run summaries to
JSON.  All functions create destination directories when necessary.
"""
from __future__ import annotations

import gzip
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from ..clock import split_fields

logger = logging.getLogger(__name__)

TIME_HEADER_DTYPE = np.int32
TIME_HEADER_FIELDS = 6

SAMPLE_UNITS = {
    "time": "s",
    "l_shell": "R_E",
    "longitude_deg": "deg",
    "density": "cm^-3",
}


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def write_parquet(df: pd.DataFrame, path: Path, *, compression: str = "snappy") -> None:
    """Write a DataFrame to a Parquet file using ``pyarrow``.

    Column units known to the package are stored in the schema metadata
    under ``units``.
    """
    _ensure_parent(path)
    table = pa.Table.from_pandas(df, preserve_index=False)
    units = {k: v for k, v in SAMPLE_UNITS.items() if k in df.columns}
    metadata = dict(table.schema.metadata or {})
    metadata[b"units"] = json.dumps(units, sort_keys=True).encode("utf-8")
    table = table.replace_schema_metadata(metadata)
    compression_arg = None if compression == "none" else compression
    pq.write_table(table, path, compression=compression_arg)


def write_summary(summary: Mapping[str, Any], path: Path) -> None:
    """Write a run summary dictionary as indented JSON."""
    _ensure_parent(path)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(summary, fh, indent=2, sort_keys=True)


class StateWriter:
    """Append-only gzip stream of timestamped model states."""

    def __init__(self, path: Path, *, compresslevel: int = 9) -> None:
        self.path = Path(path)
        self.compresslevel = compresslevel
        self._fh: Optional[gzip.GzipFile] = None
        self.frames = 0

    def open(self, model) -> None:
        _ensure_parent(self.path)
        self._fh = gzip.open(self.path, "wb", compresslevel=self.compresslevel)
        model.write_header(self._fh)

    def write(self, t: float, model) -> None:
        if self._fh is None:
            raise RuntimeError("StateWriter.open() must be called before write()")
        header = np.array(split_fields(t), dtype=TIME_HEADER_DTYPE)
        self._fh.write(header.tobytes())
        model.write_state(self._fh)
        self.frames += 1

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None


def read_state_stream(path: Path) -> Tuple[np.ndarray, np.ndarray, List[Tuple[int, ...]], List[np.ndarray]]:
    """Read back a stream written by :class:`StateWriter` with the reference engine.

    Returns ``(theta, phi, timestamps, frames)`` where each frame is the
    ``[i_phi, i_theta]`` density array.
    """
    with gzip.open(Path(path), "rb") as fh:
        raw = fh.read()
    offset = 0
    n_phi, n_theta = np.frombuffer(raw, dtype=np.int32, count=2, offset=offset)
    offset += 8
    theta = np.frombuffer(raw, dtype=np.float32, count=int(n_theta), offset=offset)
    offset += 4 * int(n_theta)
    phi = np.frombuffer(raw, dtype=np.float32, count=int(n_phi), offset=offset)
    offset += 4 * int(n_phi)
    frame_size = int(n_phi) * int(n_theta)
    record = 4 * TIME_HEADER_FIELDS + 4 * frame_size
    stamps: List[Tuple[int, ...]] = []
    frames: List[np.ndarray] = []
    while offset + record <= len(raw):
        header = np.frombuffer(raw, dtype=TIME_HEADER_DTYPE, count=TIME_HEADER_FIELDS, offset=offset)
        offset += 4 * TIME_HEADER_FIELDS
        frame = np.frombuffer(raw, dtype=np.float32, count=frame_size, offset=offset)
        offset += 4 * frame_size
        stamps.append(tuple(int(v) for v in header))
        frames.append(frame.reshape(int(n_phi), int(n_theta)))
    return theta, phi, stamps, frames


__all__ = [
    "StateWriter",
    "read_state_stream",
    "write_parquet",
    "write_summary",
]
