import numpy as np
import pytest

from plasmaspot.engine import PlasmasphereModel
from plasmaspot.errors import ConfigurationError, GridShapeError
from plasmaspot.grid import GridCoordinates, GridFields
from plasmaspot.physics.potential import EPOT_PLASMAPAUSE, PlasmapausePotential


class CountingFilling:
    def __init__(self) -> None:
        self.steps = []

    def fill(self, coords, fields, dt) -> None:
        self.steps.append(dt)


def test_advance_splits_into_bounded_substeps():
    filling = CountingFilling()
    model = PlasmasphereModel(GridCoordinates.uniform(6, 8), max_step_s=300.0, filling=filling)
    model.advance(700.0)
    assert len(filling.steps) == 3
    assert sum(filling.steps) == pytest.approx(700.0)
    assert max(filling.steps) <= 300.0
    model.advance(0.0)
    assert len(filling.steps) == 3
    assert model.elapsed_s == pytest.approx(700.0)


def test_plasmapause_moves_inward_with_activity():
    coords = GridCoordinates.uniform(46, 8)
    model = PlasmasphereModel(coords)
    quiet_closed = model.fields.closed.sum()
    model.set_driving_parameter(EPOT_PLASMAPAUSE, [6.0])
    assert model.fields.closed.sum() < quiet_closed
    assert isinstance(model.potential, PlasmapausePotential)
    assert model.potential.plasmapause_l == pytest.approx(5.6 - 0.46 * 6.0)
    closed_l = coords.r[model.fields.closed[0]]
    assert np.all(closed_l < model.potential.plasmapause_l)


def test_unknown_potential_model_is_rejected():
    model = PlasmasphereModel(GridCoordinates.uniform(4, 4))
    with pytest.raises(ConfigurationError):
        model.set_driving_parameter(99, [1.0])


def test_initial_state_is_saturated_inside_plasmapause():
    coords = GridCoordinates.uniform(10, 8)
    model = PlasmasphereModel(coords)
    sat = model.filling.saturation(coords.r)
    closed = model.fields.closed[0]
    np.testing.assert_allclose(model.fields.den[0, closed], sat[closed])
    assert np.all(model.fields.den[0, ~closed] == 0.0)


def test_sample_interpolates_grid_and_wraps_longitude():
    coords = GridCoordinates.from_angles(np.arange(25.0, 60.0, 1.0), np.arange(0.0, 360.0, 10.0))
    model = PlasmasphereModel(coords)
    model.fields.den[:, :] = np.arange(coords.phi.size, dtype=float)[:, None]
    l_mid = float(coords.r[10])
    values = model.sample([l_mid, l_mid, l_mid], [20.0, 355.0, -5.0])
    assert values[0] == pytest.approx(2.0)
    # Between the last bin (350 deg, value 35) and the first (0 deg, value 0).
    assert values[1] == pytest.approx(17.5)
    assert values[2] == pytest.approx(17.5)


def test_engine_rejects_fields_that_do_not_match_grid(monkeypatch):
    coords = GridCoordinates.uniform(6, 8)

    def _wrong_shape(c, density=0.0):
        return GridFields(
            n=np.zeros((3, 3)),
            den=np.zeros((3, 3)),
            vol=np.ones((3, 3)),
            bi=np.ones((3, 3)),
            closed=np.ones((3, 3), dtype=bool),
        )

    monkeypatch.setattr(GridFields, "dipole", staticmethod(_wrong_shape))
    with pytest.raises(GridShapeError):
        PlasmasphereModel(coords)
