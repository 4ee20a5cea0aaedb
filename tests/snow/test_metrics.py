"""Tests for the multi-year phenology metrics."""

import numpy as np
import pytest

from snowfree.snow.metrics import PhenologyMetrics, PhenologyResult
from tests.helpers.fake_series import make_raster, make_year_stack


pytestmark = pytest.mark.unit

YEARS = [2003, 2004, 2005]


@pytest.fixture
def metrics(internal_config):
    return PhenologyMetrics(internal_config)


@pytest.fixture
def stacks():
    """Four pixels: trending, trending off-land, snowless, over-long season."""
    melt = np.array([
        [[100.0, 100.0, 366.0, 10.0]],
        [[102.0, 102.0, 366.0, 10.0]],
        [[104.0, 104.0, 366.0, 10.0]],
    ])
    acc = np.array([
        [[200.0, 200.0, 366.0, 330.0]],
        [[200.0, 200.0, 366.0, 330.0]],
        [[200.0, 200.0, 366.0, 330.0]],
    ])
    return make_year_stack(melt, YEARS, "snowmelt"), make_year_stack(acc, YEARS, "snowacc")


@pytest.fixture
def land():
    return make_raster([[1.0, 0.0, 1.0, 1.0]], name="land_mask")


def test_season_length(metrics, stacks):
    melt, acc = stacks
    snowfree = metrics.season_length(melt, acc)

    assert snowfree.bands == ["snowfree"]
    np.testing.assert_array_equal(snowfree.stack().values[:, 0, 0], [100.0, 98.0, 96.0])
    assert (snowfree.stack().values[:, 0, 2] == 0).all()


def test_validity_retains_snowless_pixels(metrics, stacks):
    melt, acc = stacks
    median = metrics.season_median(metrics.season_length(melt, acc))
    validity = metrics.validity_mask(median)

    np.testing.assert_array_equal(median.values, [[98.0, 98.0, 0.0, 320.0]])
    np.testing.assert_array_equal(validity.values, [[1.0, 1.0, 1.0, 0.0]])


def test_melt_trend(metrics, stacks):
    melt, _ = stacks
    trend = metrics.melt_trend(melt)

    assert trend.bands == ["scale", "offset"]
    scale = trend.select("scale").values
    offset = trend.select("offset").values
    assert scale[0, 0] == pytest.approx(2.0)
    assert offset[0, 0] == pytest.approx(102.0 - 2.0 * 2004)
    assert scale[0, 2] == pytest.approx(0.0)
    assert offset[0, 2] == pytest.approx(366.0)


def test_single_year_trend_is_masked(metrics):
    melt = make_year_stack(np.full((1, 2, 2), 120.0), [2003], "snowmelt")
    trend = metrics.melt_trend(melt)
    assert np.isnan(trend.select("scale").values).all()


def test_compute(metrics, stacks, land):
    melt, acc = stacks
    result = metrics.compute(melt, acc, land)

    assert isinstance(result, PhenologyResult)
    np.testing.assert_array_equal(result.mask.values, [[1.0, 0.0, 1.0, 0.0]])

    masked = result.masked_trend.select("scale").values[0]
    assert masked[0] == pytest.approx(2.0)
    assert np.isnan(masked[1])
    assert masked[2] == pytest.approx(0.0)
    assert np.isnan(masked[3])

    filtered = result.filtered_trend.select("scale").values[0]
    np.testing.assert_allclose(filtered, [2.0, 0.0, 0.0, 0.0])


def test_ceiling_is_configurable(make_config, stacks):
    melt, acc = stacks
    metrics = PhenologyMetrics(make_config(SEASON_LENGTH_CEILING=50))

    validity = metrics.validity_mask(metrics.season_median(metrics.season_length(melt, acc)))
    np.testing.assert_array_equal(validity.values, [[0.0, 0.0, 1.0, 0.0]])
