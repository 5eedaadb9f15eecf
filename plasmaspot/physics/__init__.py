"""Physics components: saturation, filling strategies, spot injection and potential."""

from . import filling, potential, saturation, spot
from .filling import DefaultFilling, FillingParams, FillingStrategy
from .saturation import Saturation
from .spot import SpotConfig, SpotInjector

__all__ = [
    "filling",
    "potential",
    "saturation",
    "spot",
    "DefaultFilling",
    "FillingParams",
    "FillingStrategy",
    "Saturation",
    "SpotConfig",
    "SpotInjector",
]
