import math

import numpy as np
import pytest

from plasmaspot import constants
from plasmaspot.grid import GridCoordinates
from plasmaspot.physics.spot import (
    SpotConfig,
    spot_distance_km,
    spot_mask,
    spot_offsets_km,
    wrap_longitude_deg,
)

KM_PER_DEG = math.pi / 180.0 * constants.EARTH_RADIUS_KM


def test_wrap_longitude_into_half_circle():
    assert wrap_longitude_deg(358.0) == pytest.approx(-2.0)
    assert wrap_longitude_deg(-358.0) == pytest.approx(2.0)
    assert wrap_longitude_deg(180.0) == pytest.approx(180.0)
    assert wrap_longitude_deg(-180.0) == pytest.approx(-180.0)
    np.testing.assert_allclose(wrap_longitude_deg(np.array([190.0, -190.0, 10.0])), [-170.0, 170.0, 10.0])


def test_longitude_wraparound_gives_short_separation():
    ns, ew = spot_offsets_km([30.0], [359.0], 30.0, 1.0)
    expected = 2.0 * KM_PER_DEG * math.sin(math.radians(30.0))
    assert ns[0, 0] == pytest.approx(0.0)
    assert abs(ew[0, 0]) == pytest.approx(expected)
    dist = spot_distance_km([30.0], [359.0], 30.0, 1.0)
    assert dist[0, 0] == pytest.approx(expected)


def test_offsets_layout_is_phi_by_theta():
    ns, ew = spot_offsets_km([20.0, 30.0, 40.0], [0.0, 90.0], 30.0, 0.0)
    assert ns.shape == (2, 3)
    assert ew.shape == (2, 3)
    np.testing.assert_allclose(ns[0], [-10.0 * KM_PER_DEG, 0.0, 10.0 * KM_PER_DEG])
    np.testing.assert_allclose(ew[:, 1], [0.0, 90.0 * KM_PER_DEG * 0.5])


def test_east_west_scale_collapses_at_pole():
    _, ew = spot_offsets_km([0.0], [0.0, 90.0, 180.0], 10.0, 0.0)
    np.testing.assert_allclose(ew[:, 0], 0.0, atol=1e-9)
    dist = spot_distance_km([0.0], [0.0, 90.0, 180.0], 10.0, 0.0)
    np.testing.assert_allclose(dist[:, 0], 10.0 * KM_PER_DEG)


def test_spot_edge_is_strict():
    coords = GridCoordinates.from_angles([30.0, 35.0], [315.0])
    edge = float(spot_distance_km([35.0], [315.0], 30.0, 315.0)[0, 0])
    spot = SpotConfig(active_start=0.0, active_end=1.0, colatitude_deg=30.0, longitude_deg=315.0, radius_km=edge)
    mask = spot_mask(coords, spot)
    assert mask.tolist() == [[True, False]]


def test_spot_config_rejects_bad_window_and_radius():
    with pytest.raises(ValueError):
        SpotConfig(active_start=10.0, active_end=0.0)
    with pytest.raises(ValueError):
        SpotConfig(active_start=0.0, active_end=10.0, radius_km=0.0)


def test_spot_config_from_offsets():
    spot = SpotConfig.from_offsets(1000.0, 60.0, 3600.0, radius_km=500.0)
    assert spot.active_start == 1060.0
    assert spot.active_end == 4600.0
    assert spot.radius_km == 500.0
    assert spot.contains_time(1060.0) and spot.contains_time(4600.0)
    assert not spot.contains_time(4600.5)
