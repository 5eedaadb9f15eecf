"""Localized spot filling simulating substorm-enhanced ionization.

The spot is a circle of fixed radius on the Earth's surface.  While the
simulated time lies inside the activation window, every grid cell whose
foot point falls strictly inside the circle receives an extra flux that
drives its density toward an amplified saturation level:

``flux = (s_sat - den) / s_sat * s_fmax``

where ``s_sat`` and ``s_fmax`` are the baseline saturation (evaluated at the
L-shell of the spot centre) and maximum flux multiplied by the spot factor.
The edge is hard: cells at or beyond the radius are left untouched.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .. import constants
from ..clock import SimulationClock
from ..errors import ConfigurationError
from ..grid import GridCoordinates, GridFields, l_shell
from .filling import DefaultFilling

logger = logging.getLogger(__name__)

_DEG = math.pi / 180.0


@dataclass(frozen=True)
class SpotConfig:
    """Activation window, location and strength of the spot.

    Parameters
    ----------
    active_start, active_end:
        Simulated times (s since epoch) bounding the window, inclusive.
    colatitude_deg:
        Colatitude of the spot centre.
    longitude_deg:
        Local time of the spot centre in degrees east of midnight.
    radius_km:
        Radius of the spot at the Earth's surface.
    factor:
        Multiplier applied to the saturation density and maximum flux.
    """

    active_start: float
    active_end: float
    colatitude_deg: float = constants.SPOT_COLATITUDE_DEFAULT
    longitude_deg: float = constants.SPOT_LONGITUDE_DEFAULT
    radius_km: float = constants.SPOT_RADIUS_KM_DEFAULT
    factor: float = constants.SPOT_FACTOR_DEFAULT

    def __post_init__(self) -> None:
        if self.active_start > self.active_end:
            raise ConfigurationError(
                f"spot window start ({self.active_start}) is after its end ({self.active_end})"
            )
        if not self.radius_km > 0.0:
            raise ConfigurationError("spot radius must be positive")

    @classmethod
    def from_offsets(
        cls,
        run_start: float,
        start_offset_s: float,
        stop_offset_s: float,
        **kwargs,
    ) -> "SpotConfig":
        """Build a spot whose window is given relative to the run start."""
        return cls(
            active_start=float(run_start) + float(start_offset_s),
            active_end=float(run_start) + float(stop_offset_s),
            **kwargs,
        )

    def contains_time(self, t: float) -> bool:
        return self.active_start <= t <= self.active_end


def wrap_longitude_deg(delta):
    """Normalise a longitude difference into ``[-180, 180]`` degrees."""

    delta = np.asarray(delta, dtype=float)
    delta = np.where(delta > 180.0, delta - 360.0, delta)
    delta = np.where(delta < -180.0, delta + 360.0, delta)
    if delta.ndim == 0:
        return float(delta)
    return delta


def spot_offsets_km(
    theta_deg,
    phi_deg,
    center_theta_deg: float,
    center_phi_deg: float,
    earth_radius_km: float = constants.EARTH_RADIUS_KM,
) -> Tuple[np.ndarray, np.ndarray]:
    """Return north-south and east-west surface offsets from the spot centre.

    ``theta_deg`` runs along axis 1 and ``phi_deg`` along axis 0 of the
    result, matching the ``[i_phi, i_theta]`` layout of the field arrays.
    The east-west offset shrinks with ``sin(theta)`` toward the pole and is
    exactly zero there.
    """
    theta = np.atleast_1d(np.asarray(theta_deg, dtype=float))[None, :]
    phi = np.atleast_1d(np.asarray(phi_deg, dtype=float))[:, None]
    north_south = (theta - center_theta_deg) * _DEG * earth_radius_km
    dphi = wrap_longitude_deg(phi - center_phi_deg)
    east_west = dphi * _DEG * earth_radius_km * np.sin(theta * _DEG)
    return np.broadcast_arrays(north_south, east_west)


def spot_distance_km(
    theta_deg,
    phi_deg,
    center_theta_deg: float,
    center_phi_deg: float,
    earth_radius_km: float = constants.EARTH_RADIUS_KM,
) -> np.ndarray:
    ns, ew = spot_offsets_km(theta_deg, phi_deg, center_theta_deg, center_phi_deg, earth_radius_km)
    return np.sqrt(ns * ns + ew * ew)


def spot_mask(coords: GridCoordinates, spot: SpotConfig) -> np.ndarray:
    """Boolean ``[i_phi, i_theta]`` mask of cells strictly inside the spot."""

    r = spot_distance_km(coords.theta, coords.phi, spot.colatitude_deg, spot.longitude_deg)
    return r < spot.radius_km


def injected_flux(den, spot_saturation: float, spot_f_max: float):
    """Relaxation flux toward the amplified saturation level.

    Positive below ``spot_saturation`` and negative above it.
    """
    return (spot_saturation - den) / spot_saturation * spot_f_max


class SpotInjector:
    """Filling strategy that adds a spot on top of the baseline filling.

    The injector owns no copy of the baseline parameters: it reads ``f_max``
    and the saturation function from the wrapped :class:`DefaultFilling` at
    every call, so a saturation model attached to the baseline is honoured.
    """

    def __init__(
        self,
        baseline: DefaultFilling,
        spot: SpotConfig,
        clock: Optional[SimulationClock] = None,
    ) -> None:
        self.baseline = baseline
        self.spot = spot
        self.clock = clock if clock is not None else SimulationClock()

    @property
    def saturation(self):
        return self.baseline.saturation

    def set_time(self, t: float) -> None:
        self.clock.set(t)

    def is_active(self, t: Optional[float] = None) -> bool:
        return self.spot.contains_time(self.clock.now if t is None else t)

    def spot_levels(self) -> Tuple[float, float]:
        """Return ``(s_sat, s_fmax)`` for the current baseline parameters."""

        d_sat = self.baseline.saturation(l_shell(self.spot.colatitude_deg))
        return self.spot.factor * d_sat, self.spot.factor * self.baseline.params.f_max

    def fill(self, coords: GridCoordinates, fields: GridFields, dt: float) -> None:
        self.baseline.fill(coords, fields, dt)
        if not self.is_active():
            return
        logger.debug("spot active at t=%s", self.clock.now)
        mask = spot_mask(coords, self.spot)
        if not mask.any():
            return
        s_sat, s_fmax = self.spot_levels()
        flux = injected_flux(fields.den[mask], s_sat, s_fmax)
        fields.n[mask] += flux * dt / fields.bi[mask]
        fields.den[mask] = fields.n[mask] / fields.vol[mask]


__all__ = [
    "SpotConfig",
    "SpotInjector",
    "injected_flux",
    "spot_distance_km",
    "spot_mask",
    "spot_offsets_km",
    "wrap_longitude_deg",
]
