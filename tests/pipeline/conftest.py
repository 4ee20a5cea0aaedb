"""Pipeline test fixtures."""

import pytest

from snowfree.schemas import ParamConfig, resolve_config
from snowfree.pipeline.year_tracker import YearProcessingTracker
from tests.helpers.fake_series import make_sensor_dataset


@pytest.fixture
def tracker(temp_dir):
    """Year tracker backed by a temporary SQLite database."""
    t = YearProcessingTracker(temp_dir / "test_tracker.db")
    yield t
    t.close()


@pytest.fixture
def pipeline_config():
    """Three-year config with short thread timeouts."""
    def _make(**user_overrides):
        param = ParamConfig(
            period={"t0": 2003, "t1": 2005},
            loader={"put_timeout": 0.05},
            processor={"queue_timeout": 0.05, "status_interval": 0.05},
        )
        return resolve_config(param, user_overrides or None, None)

    return _make


@pytest.fixture
def sensor_datasets():
    """Sensor A and B datasets for 2003-2005 with melt DOY 100, 102, 104."""
    return {
        "MOD10A1": make_sensor_dataset(2003, 2005, melt_shift=2),
        "MYD10A1": make_sensor_dataset(2003, 2005, melt_shift=2),
    }
