"""Helper utilities for loading and normalising configuration inputs."""
from __future__ import annotations

import logging
import warnings
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from .clock import to_seconds
from .errors import ConfigurationError
from .io.drivers import DrivingIndexSeries
from .schema import Config

logger = logging.getLogger(__name__)


def parse_override_value(raw: str) -> Any:
    """Parse a CLI override value into a Python object."""

    text = raw.strip()
    lower = text.lower()
    if lower in {"true", "false"}:
        return lower == "true"
    if lower in {"none", "null"}:
        return None
    try:
        return int(text)
    except ValueError:
        try:
            return float(text)
        except ValueError:
            pass
    if (text.startswith('"') and text.endswith('"')) or (text.startswith("'") and text.endswith("'")):
        return text[1:-1]
    return text


def apply_overrides_dict(payload: Dict[str, Any], overrides: Sequence[str]) -> Dict[str, Any]:
    """Apply dotted-path ``PATH=VALUE`` overrides to a configuration dictionary."""

    if not overrides:
        return payload
    for item in overrides:
        key, sep, value_str = item.partition("=")
        if not sep:
            raise ConfigurationError(f"Invalid override '{item}'; expected path=value")
        parts = [segment for segment in key.strip().split(".") if segment]
        if not parts:
            raise ConfigurationError(f"Invalid override '{item}'; empty path")
        target: Any = payload
        for segment in parts[:-1]:
            if not isinstance(target, dict):
                raise ConfigurationError(f"Cannot traverse into non-mapping for override '{item}' at '{segment}'")
            if segment not in target or target[segment] is None:
                target[segment] = {}
            target = target[segment]
        if not isinstance(target, dict):
            raise ConfigurationError(f"Cannot set override '{item}'; target is not a mapping")
        target[parts[-1]] = parse_override_value(value_str)
    return payload


def read_overrides_file(path: Path) -> List[str]:
    """Return ``PATH=VALUE`` lines from a file, skipping blanks and ``#`` comments."""

    lines: List[str] = []
    for raw in Path(path).read_text(encoding="utf-8").splitlines():
        text = raw.strip()
        if text and not text.startswith("#"):
            lines.append(text)
    return lines


def load_yaml(path: Path) -> Dict[str, Any]:
    from ruamel.yaml import YAML

    yaml = YAML(typ="safe")
    with Path(path).open("r", encoding="utf-8") as fh:
        data = yaml.load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping at the top level")
    return data


def merge_mappings(base: Dict[str, Any], extra: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``extra`` into ``base``; values in ``extra`` win."""

    for key, value in extra.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            merge_mappings(base[key], value)
        else:
            base[key] = value
    return base


def build_config(data: Optional[Mapping[str, Any]]) -> Config:
    """Validate a raw mapping, reporting any failure as :class:`ConfigurationError`."""

    try:
        return Config.model_validate(dict(data or {}))
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc


def load_config(path: Path, overrides: Optional[Sequence[str]] = None) -> Config:
    """Load a YAML configuration file into a :class:`Config` instance."""

    data = load_yaml(path)
    if overrides:
        data = apply_overrides_dict(data, overrides)
    return build_config(data)


def resolve_run_window(cfg: Config, series: DrivingIndexSeries) -> Tuple[float, float, float]:
    """Return ``(start, end, output_start)`` in simulated seconds.

    The start defaults to the first driving-index time.  The end is taken from
    an explicit end time, else start plus duration, else the last driving-index
    time.
    """
    run = cfg.run
    start = to_seconds(run.start) if run.start is not None else series.first_time
    if run.end is not None:
        end = to_seconds(run.end)
        source = "run.end"
    elif run.duration_s is not None:
        end = start + float(run.duration_s)
        source = "run.duration_s"
    else:
        end = series.last_time
        source = "driving series"
    if end < start:
        raise ConfigurationError(f"run end ({end}) precedes run start ({start}); end taken from {source}")
    output_start = to_seconds(run.output_start) if run.output_start is not None else start
    logger.debug("run window start=%s end=%s (%s) output_start=%s", start, end, source, output_start)
    return start, end, output_start


def configure_logging(level: int, suppress_warnings: bool = False) -> None:
    """Configure root logging and optionally silence Python warnings."""

    logging.basicConfig(level=level)
    root = logging.getLogger()
    root.setLevel(level)
    if suppress_warnings:
        warnings.filterwarnings("ignore")
    logging.captureWarnings(True)


__all__ = [
    "apply_overrides_dict",
    "build_config",
    "configure_logging",
    "load_config",
    "load_yaml",
    "merge_mappings",
    "parse_override_value",
    "read_overrides_file",
    "resolve_run_window",
]
