"""Tests for the per-year loader thread."""

import queue

import numpy as np
import pandas as pd
import pytest

from snowfree.pipeline.loader import YearLoader, YearData
from snowfree.errors import AcquisitionError
from snowfree.contracts import ContractViolation
from snowfree.snow import StreamFuser, EventEncoder, YearReducer
from tests.helpers.fake_series import FakeProvider, make_cover_dataset


pytestmark = [pytest.mark.unit, pytest.mark.pipeline]


def _drain(q):
    items = []
    while True:
        item = q.get_nowait()
        items.append(item)
        if item is None:
            return items


def test_load_year_queries_window_without_dec_31(pipeline_config, sensor_datasets):
    provider = FakeProvider(sensor_datasets)
    loader = YearLoader(pipeline_config(), provider, queue.Queue())

    data = loader.load_year(2003)

    assert isinstance(data, YearData)
    assert data.error is None
    assert len(data.sensor_a) == 364
    assert len(data.sensor_b) == 364
    assert pd.Timestamp(data.sensor_a.times[-1]) == pd.Timestamp("2003-12-30")
    assert provider.queries[0] == ("MOD10A1", "NDSI_Snow_Cover",
                                   pd.Timestamp("2003-01-01"), pd.Timestamp("2003-12-31"))
    assert provider.queries[1][0] == "MYD10A1"


def test_run_queues_years_in_order_then_sentinel(pipeline_config, sensor_datasets):
    q = queue.Queue()
    loader = YearLoader(pipeline_config(), FakeProvider(sensor_datasets), q)
    loader.run()

    items = _drain(q)
    assert [item.year for item in items[:-1]] == [2003, 2004, 2005]
    assert items[-1] is None
    assert len(items[1].sensor_a) == 365


def test_acquisition_failure_is_reported_not_raised(pipeline_config, sensor_datasets, tracker):
    provider = FakeProvider(sensor_datasets, fail_years={2004})
    q = queue.Queue()
    YearLoader(pipeline_config(), provider, q, tracker=tracker).run()

    items = _drain(q)
    failed = items[1]
    assert failed.year == 2004
    assert isinstance(failed.error, AcquisitionError)
    assert failed.error.year == 2004
    assert failed.sensor_a is None

    assert tracker.get_failed_years() == [2004]
    assert tracker.get_year_status(2003)["days_a"] == 364
    assert items[2].error is None


def test_contract_violation_passed_through(pipeline_config, sensor_datasets):
    provider = FakeProvider(sensor_datasets, fail_years={2003}, error=ContractViolation)
    data = YearLoader(pipeline_config(), provider, queue.Queue()).load_year(2003)

    assert isinstance(data.error, ContractViolation)


def test_contract_violation_recorded_in_tracker(pipeline_config, sensor_datasets, tracker):
    provider = FakeProvider(sensor_datasets, fail_years={2003}, error=ContractViolation)
    YearLoader(pipeline_config(), provider, queue.Queue(), tracker=tracker).load_year(2003)

    status = tracker.get_year_status(2003)
    assert status["status"] == "failed"
    assert "Contract violation" in status["error_message"]
    assert tracker.get_failed_years() == [2003]


def test_unknown_dataset_is_acquisition_error(make_config, sensor_datasets):
    config = make_config(T0=2003, T1=2003, SENSOR_A="MISSING")
    data = YearLoader(config, FakeProvider(sensor_datasets), queue.Queue()).load_year(2003)

    assert isinstance(data.error, AcquisitionError)


def test_stopped_loader_sends_nothing(pipeline_config, sensor_datasets):
    q = queue.Queue()
    loader = YearLoader(pipeline_config(), FakeProvider(sensor_datasets), q)
    loader.stop()
    loader.run()

    assert loader.stopped()
    assert q.empty()


def test_leap_year_last_day_does_not_read_as_no_event(internal_config):
    # cell 0 is bare only on Dec 30 and Dec 31, cell 1 is never bare
    times = pd.date_range("2004-01-01", "2004-12-31", freq="D")
    data = np.full((len(times), 1, 2), 90.0)
    data[-2:, 0, 0] = 0.0
    ds = make_cover_dataset(data, times=times)
    provider = FakeProvider({"MOD10A1": ds, "MYD10A1": ds})

    loaded = YearLoader(internal_config, provider, queue.Queue()).load_year(2004)
    assert loaded.error is None
    assert len(loaded.sensor_a) == 365
    assert pd.Timestamp(loaded.sensor_a.times[-1]) == pd.Timestamp("2004-12-30")

    fused = StreamFuser(internal_config).fuse(loaded.sensor_a, loaded.sensor_b)
    events = EventEncoder(internal_config).encode(fused)
    summary = YearReducer(internal_config).reduce(events, 2004)

    no_event = internal_config.reducer.no_event_doy
    assert summary.melt.values[0, 0] == summary.acc.values[0, 0] == 365
    assert summary.melt.values[0, 0] != no_event
    assert summary.melt.values[0, 1] == summary.acc.values[0, 1] == no_event
