from pathlib import Path

import numpy as np
import pandas as pd
import pyarrow.parquet as pq
import pytest

from plasmaspot.clock import from_fields
from plasmaspot.engine import PlasmasphereModel
from plasmaspot.errors import ConfigurationError
from plasmaspot.grid import GridCoordinates
from plasmaspot.io.samples import SampleSchedule, SampleWriter
from plasmaspot.io.writer import StateWriter, read_state_stream


def test_state_stream_headers_and_frames(tmp_path: Path):
    model = PlasmasphereModel(GridCoordinates.uniform(5, 4))
    path = tmp_path / "out" / "state.dat"
    writer = StateWriter(path)
    writer.open(model)
    t0 = from_fields([2003, 10, 29, 6])
    writer.write(t0, model)
    writer.write(t0 + 905.0, model)
    writer.close()

    theta, phi, stamps, frames = read_state_stream(path)
    np.testing.assert_allclose(theta, model.coords.theta, rtol=1e-6)
    np.testing.assert_allclose(phi, model.coords.phi, rtol=1e-6)
    assert stamps == [(2003, 10, 29, 6, 0, 0), (2003, 10, 29, 6, 15, 5)]
    assert len(frames) == 2
    np.testing.assert_allclose(frames[0], model.fields.den, rtol=1e-6)
    assert writer.frames == 2


def test_state_writer_requires_open(tmp_path: Path):
    model = PlasmasphereModel(GridCoordinates.uniform(3, 3))
    with pytest.raises(RuntimeError):
        StateWriter(tmp_path / "x.dat").write(0.0, model)


def test_sample_schedule_from_csv(tmp_path: Path):
    path = tmp_path / "locations.csv"
    pd.DataFrame({"l_shell": [3.0, 4.0], "longitude_deg": [0.0, 90.0]}).to_csv(path, index=False)
    schedule = SampleSchedule.from_csv(path, t_start=100.0, period=60.0)
    assert len(schedule) == 2
    assert schedule.time == 100.0
    assert schedule.advance() == 160.0
    assert schedule.advance() == 220.0

    bare = tmp_path / "bare.csv"
    bare.write_text("2.5,45\n3.5,180\n", encoding="utf-8")
    bare_schedule = SampleSchedule.from_csv(bare, t_start=0.0, period=1.0)
    np.testing.assert_allclose(bare_schedule.l_shells, [2.5, 3.5])
    np.testing.assert_allclose(bare_schedule.longitudes, [45.0, 180.0])


def test_sample_schedule_validation():
    with pytest.raises(ConfigurationError):
        SampleSchedule([], [], 0.0, 60.0)
    with pytest.raises(ConfigurationError):
        SampleSchedule([3.0], [0.0], 0.0, 0.0)


def test_sample_writer_parquet(tmp_path: Path):
    model = PlasmasphereModel(GridCoordinates.uniform(20, 12))
    schedule = SampleSchedule([2.0, 3.0], [0.0, 180.0], t_start=0.0, period=60.0)
    path = tmp_path / "samples.parquet"
    writer = SampleWriter(path)
    writer.write(0.0, model, schedule)
    writer.write(60.0, model, schedule)
    writer.close()

    df = pd.read_parquet(path)
    assert list(df.columns) == ["time", "l_shell", "longitude_deg", "density"]
    assert df["time"].tolist() == [0.0, 0.0, 60.0, 60.0]
    assert np.all(np.isfinite(df["density"]))
    assert b"units" in pq.read_schema(path).metadata
