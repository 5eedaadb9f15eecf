import numpy as np
import pytest

from plasmaspot.grid import GridCoordinates, GridFields
from plasmaspot.errors import ConfigurationError, GridShapeError
from plasmaspot.physics.filling import DefaultFilling, FillingParams
from plasmaspot.physics.saturation import Saturation


def _grid():
    coords = GridCoordinates.uniform(n_theta=10, n_phi=8)
    return coords, GridFields.dipole(coords, density=1.0)


def test_saturation_default_profile():
    sat = Saturation()
    assert sat(4.0) == pytest.approx(10 ** (3.9043 - 0.3145 * 4.0))
    values = sat(np.array([2.0, 3.0]))
    assert values.shape == (2,)
    assert values[0] > values[1]


def test_closed_tubes_refill_toward_saturation():
    coords, fields = _grid()
    filling = DefaultFilling()
    before = fields.den.copy()
    filling.fill(coords, fields, 300.0)
    sat = filling.saturation(coords.r)[None, :]
    assert np.all(fields.den > before)
    assert np.all(fields.den <= sat)
    np.testing.assert_allclose(fields.n, fields.den * fields.vol)


def test_open_tubes_drain():
    coords, fields = _grid()
    fields.closed[:, :] = False
    filling = DefaultFilling(FillingParams(tau_open=3600.0))
    filling.fill(coords, fields, 3600.0)
    np.testing.assert_allclose(fields.den, np.exp(-1.0))
    np.testing.assert_allclose(fields.n, fields.den * fields.vol)


def test_non_positive_step_is_noop():
    coords, fields = _grid()
    before = fields.den.copy()
    DefaultFilling().fill(coords, fields, 0.0)
    assert np.array_equal(fields.den, before)


def test_filling_params_validation():
    with pytest.raises(ConfigurationError):
        FillingParams(tau_closed=0.0)


def test_grid_fields_shape_validation():
    coords, fields = _grid()
    fields.validate(coords)
    fields.bi = fields.bi[:, :-1]
    with pytest.raises(GridShapeError):
        fields.validate(coords)
