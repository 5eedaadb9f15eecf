"""Baseline filling of plasmaspheric flux tubes.

A filling strategy is called once per engine sub-step with the grid
coordinates, the mutable field arrays and the sub-step length.  Strategies
mutate ``fields.n`` and ``fields.den`` in place and return nothing.
:class:`DefaultFilling` is the baseline behaviour; decorating strategies such
as :class:`~plasmaspot.physics.spot.SpotInjector` hold a reference to it and
call it first.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Protocol

import numpy as np

from .. import constants
from ..errors import ConfigurationError
from ..grid import GridCoordinates, GridFields
from .saturation import Saturation

logger = logging.getLogger(__name__)


class FillingStrategy(Protocol):
    """Callback interface used by the engine for each sub-step."""

    def fill(self, coords: GridCoordinates, fields: GridFields, dt: float) -> None:
        ...


@dataclass(frozen=True)
class FillingParams:
    """Baseline filling parameters.

    ``f_max`` is the maximum ionospheric upflow (m^-2 s^-1); ``tau_closed``
    and ``tau_open`` are the relaxation timescales (s) of closed and open
    flux tubes.
    """

    f_max: float = constants.F_MAX_DEFAULT
    tau_closed: float = constants.TAU_CLOSED_DEFAULT
    tau_open: float = constants.TAU_OPEN_DEFAULT

    def __post_init__(self) -> None:
        if self.tau_closed <= 0.0 or self.tau_open <= 0.0:
            raise ConfigurationError("filling timescales must be positive")
        if not math.isfinite(self.f_max):
            raise ConfigurationError("filling f_max must be finite")


class DefaultFilling:
    """Saturation-limited refilling of closed tubes and draining of open ones."""

    def __init__(self, params: Optional[FillingParams] = None, saturation: Optional[Saturation] = None) -> None:
        self.params = params if params is not None else FillingParams()
        self.saturation = saturation if saturation is not None else Saturation()

    def set_saturation(self, saturation: Saturation) -> None:
        self.saturation = saturation

    def fill(self, coords: GridCoordinates, fields: GridFields, dt: float) -> None:
        if dt <= 0.0:
            return
        sat = np.broadcast_to(self.saturation(coords.r)[None, :], fields.den.shape)
        closed = fields.closed if fields.closed is not None else np.ones(fields.den.shape, dtype=bool)
        opened = ~closed

        if closed.any():
            den = fields.den[closed]
            s = sat[closed]
            # Flux-limited refilling, never faster than relaxation over tau_closed.
            dn_flux = self.params.f_max * (s - den) / s * dt / fields.bi[closed]
            dn_relax = (s - den) * fields.vol[closed] * (1.0 - math.exp(-dt / self.params.tau_closed))
            dn = np.where(np.abs(dn_flux) < np.abs(dn_relax), dn_flux, dn_relax)
            fields.n[closed] += dn
            fields.den[closed] = fields.n[closed] / fields.vol[closed]

        if opened.any():
            fields.den[opened] *= math.exp(-dt / self.params.tau_open)
            fields.n[opened] = fields.den[opened] * fields.vol[opened]


__all__ = ["FillingStrategy", "FillingParams", "DefaultFilling"]
