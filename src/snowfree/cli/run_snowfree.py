"""Core snowfree pipeline execution logic.

This module contains the actual pipeline runner, separated from argument parsing.
Scripts are thin wrappers; this is the real implementation.
"""

import json
import logging
from pathlib import Path
from types import SimpleNamespace
from typing import Optional, Dict, Any

from snowfree.catalog.provider import XarraySeriesProvider, load_land_mask
from snowfree.pipeline.orchestrator import PipelineOrchestrator
from snowfree.schemas import init_runtime_config, InternalConfig
from snowfree.setup_directories import get_analysis_path
from snowfree.snow.metrics import PhenologyResult

logger = logging.getLogger(__name__)


def build_provider(config: InternalConfig) -> XarraySeriesProvider:
    """Open both sensor streams from the NetCDF paths in the config."""
    sources = config.sources
    if not sources.sensor_a_paths or not sources.sensor_b_paths:
        raise ValueError("SENSOR_A_PATHS and SENSOR_B_PATHS must list the input NetCDF files")

    return XarraySeriesProvider.from_netcdf(
        {sources.sensor_a: sources.sensor_a_paths, sources.sensor_b: sources.sensor_b_paths},
        coord_names=config.global_.coord_names.model_dump(),
    )


def save_results(result: PhenologyResult, config: InternalConfig) -> Dict[str, Path]:
    """Write the trend, median, mask, stacks and diagnostics to analysis/."""
    t0, t1 = config.period.t0, config.period.t1
    products = {
        "trend": result.masked_trend,
        "trend_filtered": result.filtered_trend,
        "median": result.median,
        "mask": result.mask,
        "snowmelt": result.melt_image,
        "snowacc": result.acc_image,
    }

    written = {}
    for product, raster in products.items():
        if raster is None:
            continue
        path = get_analysis_path(config.output_dirs, product, t0, t1, config.run_id)
        raster.dataset.to_netcdf(path, mode='w', engine='netcdf4', format='NETCDF4')
        written[product] = path

    path = get_analysis_path(config.output_dirs, "diagnostics", t0, t1, config.run_id, ext="csv")
    result.diagnostics.to_csv(path, index=False)
    written["diagnostics"] = path

    if result.probe is not None:
        path = get_analysis_path(config.output_dirs, "probe", t0, t1, config.run_id, ext="csv")
        result.probe.to_csv(path)
        written["probe"] = path

    for product, path in written.items():
        logger.info("Saved %s: %s", product, path)
    return written


def run_snowfree_pipeline(
    user_config_path: str,
    cli_args: Optional[Dict[str, Any]] = None,
    rerun: bool = False,
    verbose: bool = False
) -> PhenologyResult:
    """Execute the snowfree pipeline.

    This is the core pipeline execution function. It:
    1. Loads and resolves configuration (Param < User < CLI)
    2. Sets up output directories (optionally cleaning them first)
    3. Opens the sensor streams and the land mask
    4. Runs the orchestrator to completion
    5. Saves the products to analysis/

    Parameters
    ----------
    user_config_path : str
        Path to user config file (Python file with CONFIG dict).
    cli_args : dict, optional
        CLI argument overrides. Keys: t0, t1, base_dir. All optional.
    rerun : bool, optional
        If True, delete output directories before running.
    verbose : bool, optional
        If True, enable DEBUG logging and print full resolved config.

    Returns
    -------
    PhenologyResult

    Raises
    ------
    FileNotFoundError
        If user_config_path does not exist.
    ValueError
        If configuration validation fails or input paths are missing.

    Examples
    --------
    Run with CLI overrides::

        run_snowfree_pipeline(
            "config/my_config.py",
            cli_args={"t0": 2005, "t1": 2010},
        )
    """
    cli_args = {k: v for k, v in (cli_args or {}).items() if v is not None}
    args = SimpleNamespace(config=user_config_path, rerun=rerun, verbose=verbose, **cli_args)
    config = init_runtime_config(args)

    print(f"\n{'='*60}")
    print("snowfree Snow Phenology Pipeline")
    print('='*60)
    print(f"Config:  {user_config_path}")
    print(f"Period:  {config.period.t0}-{config.period.t1}")
    print(f"Sensors: {config.sources.sensor_a} + {config.sources.sensor_b}")
    print(f"Output:  {config.base_dir}")
    print('='*60)

    if verbose:
        print("\nFull Internal Configuration:")
        print(json.dumps(config.model_dump(by_alias=True), indent=2, default=str))
        print('='*60)

    if not config.sources.land_mask_path:
        raise ValueError("LAND_MASK_PATH must point to a NetCDF land mask")

    provider = build_provider(config)
    land_mask = load_land_mask(
        config.sources.land_mask_path,
        config.sources.land_mask_band,
        coord_names=config.global_.coord_names.model_dump(),
    )

    orchestrator = PipelineOrchestrator(config, provider, land_mask)
    result = orchestrator.run()
    save_results(result, config)
    return result
