"""End-to-end tests for PipelineOrchestrator."""

import numpy as np
import pytest

from snowfree.pipeline.orchestrator import PipelineOrchestrator
from snowfree.snow.metrics import PhenologyResult
from snowfree.errors import SnowfreeError
from snowfree.contracts import ContractViolation
from tests.helpers.fake_series import FakeProvider, make_raster


pytestmark = [pytest.mark.pipeline]


@pytest.fixture
def land():
    return make_raster([[1.0, 1.0], [0.0, 1.0]], name="land_mask")


def test_run_produces_trend(pipeline_config, sensor_datasets, land, output_dirs):
    orch = PipelineOrchestrator(pipeline_config(), FakeProvider(sensor_datasets), land,
                                output_dirs=output_dirs, configure_logging=False)
    result = orch.run()

    assert isinstance(result, PhenologyResult)
    assert list(result.melt.times) == [2003, 2004, 2005]

    scale = result.masked_trend.select("scale").values
    assert scale[0, 0] == pytest.approx(2.0)
    assert np.isnan(scale[1, 0])
    np.testing.assert_allclose(result.filtered_trend.select("scale").values,
                               [[2.0, 2.0], [0.0, 2.0]])

    assert result.melt_image.bands == ["2003_snowmelt", "2004_snowmelt", "2005_snowmelt"]
    assert result.acc_image.bands[-1] == "2005_snowacc"
    assert result.diagnostics["status"].tolist() == ["completed"] * 3
    assert result.probe is None

    assert (output_dirs["analysis"] / "year_processing.db").exists()


def test_failed_year_is_skipped(pipeline_config, sensor_datasets, land):
    provider = FakeProvider(sensor_datasets, fail_years={2004})
    orch = PipelineOrchestrator(pipeline_config(), provider, land, configure_logging=False)
    result = orch.run()

    assert list(result.melt.times) == [2003, 2005]
    assert result.trend.select("scale").values[0, 0] == pytest.approx(2.0)
    statuses = result.diagnostics.set_index("year")["status"]
    assert statuses[2004] == "failed"


def test_all_years_failed_raises(pipeline_config, sensor_datasets, land):
    provider = FakeProvider(sensor_datasets, fail_years={2003, 2004, 2005})
    orch = PipelineOrchestrator(pipeline_config(), provider, land, configure_logging=False)

    with pytest.raises(SnowfreeError, match="No year"):
        orch.run()


def test_contract_violation_aborts_run(pipeline_config, sensor_datasets, land):
    provider = FakeProvider(sensor_datasets, fail_years={2004}, error=ContractViolation)
    orch = PipelineOrchestrator(pipeline_config(), provider, land, configure_logging=False)

    with pytest.raises(ContractViolation):
        orch.run()


def test_stop_is_idempotent(pipeline_config, sensor_datasets, land):
    orch = PipelineOrchestrator(pipeline_config(), FakeProvider(sensor_datasets), land,
                                configure_logging=False)
    orch.run()
    orch.stop()
    orch.stop()
    assert not orch.processor.is_alive()
