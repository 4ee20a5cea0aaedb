"""End-to-end test of the command-line pipeline runner on NetCDF inputs."""

import logging

import numpy as np
import pandas as pd
import pytest
import xarray as xr

from snowfree.cli.run_snowfree import run_snowfree_pipeline, build_provider
from snowfree.schemas import resolve_config
from tests.helpers.fake_series import make_sensor_dataset


pytestmark = pytest.mark.pipeline


@pytest.fixture
def restore_root_logging():
    """The orchestrator reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def netcdf_inputs(temp_dir):
    paths = {}
    for sensor in ("mod", "myd"):
        path = temp_dir / f"{sensor}10a1.nc"
        make_sensor_dataset(2003, 2005, melt_shift=2).to_netcdf(path, engine="netcdf4")
        paths[sensor] = str(path)

    land = xr.Dataset(
        {"land_mask": (("y", "x"), np.array([[1, 1], [0, 1]], dtype="int8"))},
        coords={"y": [0, 1], "x": [0, 1]},
    )
    land_path = temp_dir / "land.nc"
    land.to_netcdf(land_path, engine="netcdf4")
    paths["land"] = str(land_path)
    return paths


def test_build_provider_requires_paths(param_config):
    with pytest.raises(ValueError, match="SENSOR_A_PATHS"):
        build_provider(resolve_config(param_config))


def test_run_pipeline(temp_dir, netcdf_inputs, restore_root_logging):
    base = temp_dir / "out"
    config_path = temp_dir / "user_config.py"
    config_path.write_text(
        "CONFIG = {\n"
        f"    'BASE_DIR': {str(base)!r},\n"
        f"    'SENSOR_A_PATHS': [{netcdf_inputs['mod']!r}],\n"
        f"    'SENSOR_B_PATHS': [{netcdf_inputs['myd']!r}],\n"
        f"    'LAND_MASK_PATH': {netcdf_inputs['land']!r},\n"
        "    'PROBE_Y': 0,\n"
        "    'PROBE_X': 0,\n"
        "}\n"
    )

    result = run_snowfree_pipeline(str(config_path), cli_args={"t0": 2003, "t1": 2005, "base_dir": None})

    assert result.masked_trend.select("scale").values[0, 0] == pytest.approx(2.0)

    analysis = base / "analysis"
    trend_files = list(analysis.glob("trend_2003_2005_*.nc"))
    assert len(trend_files) == 1
    with xr.open_dataset(trend_files[0], engine="netcdf4") as saved:
        assert set(saved.data_vars) == {"scale", "offset"}

    assert len(list(analysis.glob("snowmelt_2003_2005_*.nc"))) == 1
    diagnostics = pd.read_csv(next(analysis.glob("diagnostics_2003_2005_*.csv")))
    assert diagnostics["status"].tolist() == ["completed"] * 3
    assert len(list(analysis.glob("probe_2003_2005_*.csv"))) == 1
    assert len(list((base / "logs").glob("pipeline_*.log"))) == 1
    assert (analysis / "year_processing.db").exists()


def test_missing_land_mask(temp_dir, netcdf_inputs):
    config_path = temp_dir / "user_config.py"
    config_path.write_text(
        f"CONFIG = {{'BASE_DIR': {str(temp_dir / 'out')!r}, 'T0': 2003, 'T1': 2003}}\n"
    )
    with pytest.raises(ValueError, match="LAND_MASK_PATH"):
        run_snowfree_pipeline(str(config_path))
