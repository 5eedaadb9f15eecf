"""Event-driven plasmasphere density runs with localized spot filling."""
from . import constants, grid
from .errors import PlasmaSpotError

__all__ = ["constants", "grid", "PlasmaSpotError"]
