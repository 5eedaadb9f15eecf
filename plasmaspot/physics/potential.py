"""Driving-index parameterised potential model.

Only the plasmapause location is modelled: flux tubes inside
``L_pp = 5.6 - 0.46 Kp`` (Carpenter & Anderson 1992) are closed and refill,
tubes outside are open and drain.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..errors import ConfigurationError
from ..grid import GridCoordinates

logger = logging.getLogger(__name__)

EPOT_PLASMAPAUSE = 0

PLASMAPAUSE_L0 = 5.6
PLASMAPAUSE_SLOPE = 0.46


@dataclass
class PlasmapausePotential:
    kp: float = 0.0

    def set_parameters(self, values: Sequence[float]) -> None:
        if len(values) < 1:
            raise ConfigurationError("plasmapause model needs one driving value")
        self.kp = float(values[0])

    @property
    def plasmapause_l(self) -> float:
        return PLASMAPAUSE_L0 - PLASMAPAUSE_SLOPE * self.kp

    def closed_mask(self, coords: GridCoordinates) -> np.ndarray:
        inside = coords.r < self.plasmapause_l
        return np.broadcast_to(inside[None, :], coords.shape).copy()


POTENTIAL_MODELS = {EPOT_PLASMAPAUSE: PlasmapausePotential}


def make_potential(model: int) -> PlasmapausePotential:
    try:
        factory = POTENTIAL_MODELS[model]
    except KeyError:
        raise ConfigurationError(f"unknown potential model id {model!r}") from None
    return factory()


__all__ = ["EPOT_PLASMAPAUSE", "PlasmapausePotential", "POTENTIAL_MODELS", "make_potential"]
