"""Tests for the two-stream cover fusion."""

import numpy as np
import pandas as pd
import pytest

from snowfree.snow.fuser import (
    StreamFuser,
    mask_invalid_codes,
    recode_true_zero,
    unmask_no_observation,
    remask_no_observation,
    restore_true_zero,
)
from snowfree.contracts import GridMismatch
from tests.helpers.fake_series import make_cover_series, make_raster


pytestmark = pytest.mark.unit

NAN = np.nan


@pytest.fixture
def fuser(internal_config):
    return StreamFuser(internal_config)


def _one_day(values_a, values_b, start="2003-03-01"):
    a = make_cover_series(np.array(values_a, dtype=float).reshape(1, 1, -1), start=start)
    b = make_cover_series(np.array(values_b, dtype=float).reshape(1, 1, -1), start=start)
    return a, b


class TestTransforms:

    def test_mask_invalid_codes(self, fuser):
        cover = make_raster([[0.0, 100.0, 200.0, -1.0]]).band_data()
        out = mask_invalid_codes(cover, 100.0).values[0]

        assert out[0] == 0.0
        assert out[1] == 100.0
        assert np.isnan(out[2:]).all()

    def test_zero_round_trip(self):
        cover = make_raster([[0.0, 40.0, NAN]]).band_data()

        coded = unmask_no_observation(recode_true_zero(cover, -10.0), -100.0)
        np.testing.assert_array_equal(coded.values, [[-10.0, 40.0, -100.0]])

        restored = restore_true_zero(remask_no_observation(coded, -100.0), -10.0).values[0]
        assert restored[0] == 0.0
        assert restored[1] == 40.0
        assert np.isnan(restored[2])


class TestStreamFuser:

    def test_init_reads_config(self, fuser):
        assert fuser.zero_sentinel == -10.0
        assert fuser.fill == -100.0
        assert fuser.valid_max == 100.0
        assert fuser.cover_name == "cover"

    def test_takes_larger_valid_reading(self, fuser):
        a, b = _one_day([50.0, 0.0, 0.0], [30.0, 40.0, 0.0])
        fused = fuser.fuse(a, b)

        assert fused.bands == ["cover"]
        np.testing.assert_array_equal(fused.stack().values[0, 0], [50.0, 40.0, 0.0])

    def test_true_zero_survives_masked_partner(self, fuser):
        a, b = _one_day([0.0, NAN], [NAN, 0.0])
        out = fuser.fuse(a, b).stack().values[0, 0]

        np.testing.assert_array_equal(out, [0.0, 0.0])

    def test_no_observation_stays_masked(self, fuser):
        a, b = _one_day([NAN], [NAN])
        assert np.isnan(fuser.fuse(a, b).stack().values).all()

    def test_invalid_codes_ignored(self, fuser):
        a, b = _one_day([150.0, 250.0], [20.0, 211.0])
        out = fuser.fuse(a, b).stack().values[0, 0]

        assert out[0] == 20.0
        assert np.isnan(out[1])

    def test_unmatched_days_dropped(self, fuser):
        a = make_cover_series(np.full((5, 1, 1), 10.0), start="2003-01-01")
        b = make_cover_series(np.full((3, 1, 1), 20.0), start="2003-01-03")

        fused = fuser.fuse(a, b)
        assert len(fused) == 3
        assert pd.Timestamp(fused.first_time()) == pd.Timestamp("2003-01-03")
        assert (fused.stack().values == 20.0).all()

    def test_disjoint_streams_give_empty_series(self, fuser):
        a = make_cover_series(np.ones((2, 1, 1)), start="2003-01-01")
        b = make_cover_series(np.ones((2, 1, 1)), start="2003-06-01")
        assert len(fuser.fuse(a, b)) == 0

    def test_inputs_unchanged(self, fuser):
        a, b = _one_day([0.0, NAN], [NAN, 30.0])
        before = a.dataset.copy(deep=True)
        fuser.fuse(a, b)
        assert a.dataset.identical(before)

    def test_fuse_day(self, fuser):
        a = make_raster([[0.0, NAN, 70.0]], time_start="2003-01-01")
        b = make_raster([[NAN, NAN, 90.0]])

        out = fuser.fuse_day(a, b)
        assert out.bands == ["cover"]
        assert out.get("time_start") == "2003-01-01"
        assert out.values[0, 0] == 0.0
        assert np.isnan(out.values[0, 1])
        assert out.values[0, 2] == 90.0

    def test_grid_mismatch(self, fuser):
        with pytest.raises(GridMismatch):
            fuser.fuse_day(make_raster(np.ones((1, 2))), make_raster(np.ones((2, 2))))
