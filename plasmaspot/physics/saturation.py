"""Saturation density as a function of L-shell."""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .. import constants


@dataclass(frozen=True)
class Saturation:
    """Equilibrium density ``neq = 10**(a + b*L)`` in cm^-3.

    The default coefficients reproduce the empirical saturated plasmasphere
    profile used by the density model.
    """

    a: float = constants.SATURATION_A_DEFAULT
    b: float = constants.SATURATION_B_DEFAULT

    def __call__(self, l_value):
        result = np.power(10.0, self.a + self.b * np.asarray(l_value, dtype=float))
        if np.ndim(result) == 0:
            return float(result)
        return result


__all__ = ["Saturation"]
