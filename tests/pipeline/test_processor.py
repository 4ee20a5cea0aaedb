"""Tests for the per-year processor thread."""

import queue

import numpy as np
import pandas as pd
import pytest

from snowfree.pipeline.loader import YearData
from snowfree.pipeline.processor import YearProcessor
from snowfree.pipeline.accumulator import YearStackAccumulator
from snowfree.errors import AcquisitionError
from snowfree.contracts import ContractViolation
from snowfree.catalog import XarraySeriesProvider
from snowfree.snow.snow_utils import year_window
from tests.helpers.fake_series import make_cover_series


pytestmark = [pytest.mark.unit, pytest.mark.pipeline]

BAND = "NDSI_Snow_Cover"


def _year_data(sensor_datasets, year):
    provider = XarraySeriesProvider(sensor_datasets)
    start, end = year_window(year)
    return YearData(
        year=year,
        sensor_a=provider.query("MOD10A1", BAND, start, end),
        sensor_b=provider.query("MYD10A1", BAND, start, end),
    )


def _empty_year(year):
    # streams never share a date, so the fused series is empty
    a = make_cover_series(np.zeros((2, 2, 2)), start=f"{year}-01-01")
    b = make_cover_series(np.zeros((2, 2, 2)), start=f"{year}-06-01")
    return YearData(year=year, sensor_a=a, sensor_b=b)


def _run(processor, items):
    for item in items:
        processor.input_queue.put(item)
    processor.input_queue.put(None)
    processor.run()
    return processor


def test_process_year(pipeline_config, sensor_datasets, tracker):
    tracker.register_year(2003, "MOD10A1", "MYD10A1")
    processor = YearProcessor(queue.Queue(), pipeline_config(), tracker=tracker)

    stacks = processor.process_year(_year_data(sensor_datasets, 2003), YearStackAccumulator())

    assert stacks.years == [2003]
    assert (stacks.melt[0].values == 100).all()
    assert (stacks.acc[0].values == 300).all()

    status = tracker.get_year_status(2003)
    assert status["status"] == "completed"
    assert status["days_fused"] == 364


def test_run_accumulates_all_years(pipeline_config, sensor_datasets):
    processor = YearProcessor(queue.Queue(), pipeline_config())
    items = [_year_data(sensor_datasets, year) for year in (2003, 2004, 2005)]
    _run(processor, items)

    assert processor.accumulator.years == [2003, 2004, 2005]
    melt = processor.accumulator.melt_series().stack().values[:, 0, 0]
    np.testing.assert_array_equal(melt, [100.0, 102.0, 104.0])
    assert processor.fatal_error is None

    diagnostics = processor.get_diagnostics()
    assert list(diagnostics["status"]) == ["completed"] * 3


def test_failed_acquisition_skips_year(pipeline_config, sensor_datasets):
    processor = YearProcessor(queue.Queue(), pipeline_config())
    items = [
        _year_data(sensor_datasets, 2003),
        YearData(year=2004, error=AcquisitionError("Acquisition failed for 2004", year=2004)),
        _year_data(sensor_datasets, 2005),
    ]
    _run(processor, items)

    assert processor.accumulator.years == [2003, 2005]
    diagnostics = processor.get_diagnostics().set_index("year")
    assert diagnostics.loc[2004, "status"] == "failed"
    assert "2004" in diagnostics.loc[2004, "message"]


def test_empty_year_skipped_by_default(pipeline_config, sensor_datasets, tracker):
    tracker.register_year(2004, "MOD10A1", "MYD10A1")
    processor = YearProcessor(queue.Queue(), pipeline_config(), tracker=tracker)
    _run(processor, [_year_data(sensor_datasets, 2003), _empty_year(2004)])

    assert processor.accumulator.years == [2003]
    assert tracker.get_year_status(2004)["status"] == "empty"
    assert processor.get_diagnostics()["status"].tolist() == ["completed", "empty"]


def test_empty_year_sentinel_policy(pipeline_config, sensor_datasets):
    processor = YearProcessor(queue.Queue(), pipeline_config(EMPTY_YEAR_POLICY="sentinel"))
    _run(processor, [_year_data(sensor_datasets, 2003), _empty_year(2004)])

    assert processor.accumulator.years == [2003, 2004]
    assert (processor.accumulator.melt[1].values == 366).all()
    assert (processor.accumulator.acc[1].values == 366).all()


def test_contract_violation_is_fatal(pipeline_config, sensor_datasets):
    processor = YearProcessor(queue.Queue(), pipeline_config())
    violation = ContractViolation("Grid contract violated")
    _run(processor, [YearData(year=2003, error=violation), _year_data(sensor_datasets, 2004)])

    assert processor.fatal_error is violation
    assert len(processor.accumulator) == 0


def test_process_year_raises_contract_violation(pipeline_config):
    processor = YearProcessor(queue.Queue(), pipeline_config())
    with pytest.raises(ContractViolation):
        processor.process_year(YearData(year=2003, error=ContractViolation("bad")), YearStackAccumulator())


def test_unexpected_error_reported(pipeline_config, sensor_datasets):
    processor = YearProcessor(queue.Queue(), pipeline_config())
    broken = YearData(year=2003, sensor_a="not a series", sensor_b="not a series")
    _run(processor, [broken, _year_data(sensor_datasets, 2004)])

    assert processor.accumulator.years == [2004]
    assert processor.get_diagnostics()["status"].tolist() == ["failed", "completed"]


def test_probe_records_pixel_series(pipeline_config, sensor_datasets):
    processor = YearProcessor(queue.Queue(), pipeline_config(PROBE_Y=0, PROBE_X=1))
    _run(processor, [_year_data(sensor_datasets, 2003)])

    probe = processor.get_probe()
    assert list(probe.columns) == ["sensor_a", "sensor_b", "fused"]
    assert len(probe) == 364
    assert probe.loc[pd.Timestamp("2003-06-01"), "fused"] == 0.0


def test_probe_disabled_by_default(pipeline_config):
    processor = YearProcessor(queue.Queue(), pipeline_config())
    assert processor.get_probe() is None
