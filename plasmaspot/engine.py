"""Reference plasmasphere density engine.

:class:`PlasmasphereModel` exposes the small surface the run driver relies
on: ``advance``, ``set_driving_parameter``, ``write_header``/``write_state``
and a pluggable filling strategy invoked once per internal sub-step.
"""
from __future__ import annotations

import logging
import math
from typing import BinaryIO, Optional, Sequence

import numpy as np
from scipy.interpolate import RegularGridInterpolator

from .grid import GridCoordinates, GridFields
from .physics.filling import DefaultFilling, FillingStrategy
from .physics.potential import EPOT_PLASMAPAUSE, PlasmapausePotential, make_potential

logger = logging.getLogger(__name__)

MAX_STEP_DEFAULT = 300.0


class PlasmasphereModel:
    """Grid state advanced by a filling strategy under a potential model."""

    def __init__(
        self,
        coords: Optional[GridCoordinates] = None,
        *,
        max_step_s: float = MAX_STEP_DEFAULT,
        filling: Optional[FillingStrategy] = None,
    ) -> None:
        if max_step_s <= 0.0:
            raise ValueError("max_step_s must be positive")
        self.coords = coords if coords is not None else GridCoordinates.uniform()
        self.max_step_s = float(max_step_s)
        self.filling: FillingStrategy = filling if filling is not None else DefaultFilling()
        self.potential_model = EPOT_PLASMAPAUSE
        self.potential: PlasmapausePotential = make_potential(EPOT_PLASMAPAUSE)
        self.fields = GridFields.dipole(self.coords)
        self.fields.closed = self.potential.closed_mask(self.coords)
        self.fields.validate(self.coords)
        self._saturate_closed()
        self.elapsed_s = 0.0

    def _saturate_closed(self) -> None:
        saturation = getattr(self.filling, "saturation", None)
        if saturation is None:
            saturation = DefaultFilling().saturation
        sat = np.broadcast_to(saturation(self.coords.r)[None, :], self.coords.shape)
        closed = self.fields.closed
        self.fields.den[closed] = sat[closed]
        self.fields.n[closed] = self.fields.den[closed] * self.fields.vol[closed]

    def set_filling(self, filling: FillingStrategy) -> None:
        self.filling = filling

    def set_driving_parameter(self, model: int, values: Sequence[float]) -> None:
        if model != self.potential_model:
            self.potential = make_potential(model)
            self.potential_model = model
        self.potential.set_parameters(values)
        self.fields.closed = self.potential.closed_mask(self.coords)

    def advance(self, duration_s: float) -> None:
        """Advance the grid by ``duration_s`` seconds in sub-steps of at most ``max_step_s``."""
        if duration_s <= 0.0:
            return
        n_steps = max(int(math.ceil(duration_s / self.max_step_s)), 1)
        dt = duration_s / n_steps
        for _ in range(n_steps):
            self.filling.fill(self.coords, self.fields, dt)
        self.elapsed_s += duration_s

    def write_header(self, fh: BinaryIO) -> None:
        n_phi, n_theta = self.coords.shape
        fh.write(np.array([n_phi, n_theta], dtype=np.int32).tobytes())
        fh.write(self.coords.theta.astype(np.float32).tobytes())
        fh.write(self.coords.phi.astype(np.float32).tobytes())

    def write_state(self, fh: BinaryIO) -> None:
        fh.write(self.fields.den.astype(np.float32).tobytes())

    def sample(self, l_shells: Sequence[float], longitudes: Sequence[float]) -> np.ndarray:
        """Density at ``(L, longitude)`` points, linear in L and periodic in longitude."""
        l_axis = self.coords.r[::-1]
        den = self.fields.den[:, ::-1]
        phi = self.coords.phi
        # Close the longitude circle so points past the last bin interpolate to the first.
        phi_ext = np.append(phi, phi[0] + 360.0)
        den_ext = np.vstack([den, den[:1]])
        interp = RegularGridInterpolator(
            (phi_ext, l_axis), den_ext, method="linear", bounds_error=False, fill_value=np.nan
        )
        lon = np.mod(np.asarray(longitudes, dtype=float) - phi[0], 360.0) + phi[0]
        pts = np.column_stack([lon, np.asarray(l_shells, dtype=float)])
        return interp(pts)


__all__ = ["PlasmasphereModel", "MAX_STEP_DEFAULT"]
