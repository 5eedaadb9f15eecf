"""Ionospheric grid utilities for the plasmasphere model.

The grid is laid out in colatitude ``theta`` and longitude ``phi`` at the
ionospheric foot points of dipole flux tubes.  Longitude is measured in
degrees of local time east of midnight.  Field arrays are indexed
``[i_phi, i_theta]``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

import numpy as np

from . import constants
from .errors import GridShapeError

# Equatorial surface field of the dipole (T)
B0_TESLA: float = 3.12e-5


def l_shell(theta_deg):
    """Return the dipole L-shell of the field line with foot point ``theta_deg``.

    Parameters
    ----------
    theta_deg:
        Colatitude in degrees, scalar or array.

    Returns
    -------
    float or ndarray
        ``1 / sin(theta)**2``.
    """
    s = np.sin(np.radians(theta_deg))
    return 1.0 / (s * s)


def flux_tube_volume(l_value):
    """Flux tube volume per unit magnetic flux in cm^3 Wb^-1.

    Uses the closed-form dipole approximation ``V = 32/35 L^4 R_E / B0``.
    """
    re_m = constants.EARTH_RADIUS_KM * 1.0e3
    return (32.0 / 35.0) * np.power(l_value, 4) * re_m / B0_TESLA * 1.0e6


def ionospheric_field(theta_deg):
    """Dipole field magnitude at the surface for colatitude ``theta_deg`` (T)."""

    c = np.cos(np.radians(theta_deg))
    return B0_TESLA * np.sqrt(1.0 + 3.0 * c * c)


@dataclass
class GridCoordinates:
    """Bin centres of the ionospheric grid.

    Parameters
    ----------
    r:
        L-shell of each colatitude bin.
    theta:
        Colatitude of the bin centres (deg).
    phi:
        Longitude of the bin centres (deg east of midnight).
    """

    r: np.ndarray
    theta: np.ndarray
    phi: np.ndarray

    @classmethod
    def from_angles(cls, theta: Iterable[float], phi: Iterable[float]) -> "GridCoordinates":
        theta_arr = np.asarray(list(theta), dtype=float)
        phi_arr = np.asarray(list(phi), dtype=float)
        if theta_arr.ndim != 1 or theta_arr.size < 1 or phi_arr.ndim != 1 or phi_arr.size < 1:
            raise ValueError("theta and phi must be non-empty one dimensional arrays")
        return cls(r=l_shell(theta_arr), theta=theta_arr, phi=phi_arr)

    @classmethod
    def uniform(
        cls,
        n_theta: int = 46,
        n_phi: int = 72,
        theta_min: float = 20.0,
        theta_max: float = 65.0,
    ) -> "GridCoordinates":
        """Generate a grid with evenly spaced colatitudes and longitudes."""
        theta = np.linspace(theta_min, theta_max, n_theta)
        phi = np.arange(n_phi) * (360.0 / n_phi)
        return cls.from_angles(theta, phi)

    @property
    def shape(self) -> tuple[int, int]:
        return (self.phi.size, self.theta.size)


@dataclass
class GridFields:
    """Parallel field arrays mutated by the filling strategies.

    ``n`` holds particles per unit flux, ``den`` the derived density
    ``n / vol``, ``vol`` the flux tube volume and ``bi`` the ionospheric
    field used to convert a surface flux to particles per unit flux.
    ``closed`` marks flux tubes inside the plasmapause.
    """

    n: np.ndarray
    den: np.ndarray
    vol: np.ndarray
    bi: np.ndarray
    closed: Optional[np.ndarray] = field(default=None)

    @classmethod
    def dipole(cls, coords: GridCoordinates, density: float = 0.0) -> "GridFields":
        """Fields for a dipole geometry with a uniform initial density."""
        shape = coords.shape
        vol = np.broadcast_to(flux_tube_volume(coords.r)[None, :], shape).copy()
        bi = np.broadcast_to(ionospheric_field(coords.theta)[None, :], shape).copy()
        den = np.full(shape, float(density))
        return cls(n=den * vol, den=den, vol=vol, bi=bi, closed=np.ones(shape, dtype=bool))

    def validate(self, coords: GridCoordinates) -> None:
        expected = coords.shape
        for name in ("n", "den", "vol", "bi"):
            arr = getattr(self, name)
            if arr.shape != expected:
                raise GridShapeError(f"field {name} has shape {arr.shape}, expected {expected}")
        if self.closed is not None and self.closed.shape != expected:
            raise GridShapeError(f"closed mask has shape {self.closed.shape}, expected {expected}")


__all__ = [
    "B0_TESLA",
    "GridCoordinates",
    "GridFields",
    "flux_tube_volume",
    "ionospheric_field",
    "l_shell",
]
