"""Custom exceptions for the :mod:`plasmaspot` package."""
from __future__ import annotations


class PlasmaSpotError(Exception):
    """Base exception for plasmasphere run errors."""


class ConfigurationError(PlasmaSpotError, ValueError):
    """Invalid run configuration or parameter combination."""


class DrivingIndexError(ConfigurationError):
    """The driving-index series cannot supply the requested time range."""


class GridShapeError(PlasmaSpotError, ValueError):
    """Grid field arrays disagree with the grid coordinate vectors."""


__all__ = [
    "PlasmaSpotError",
    "ConfigurationError",
    "DrivingIndexError",
    "GridShapeError",
]
