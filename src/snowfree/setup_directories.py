"""
Directory setup for the snowfree pipeline.

Flat layout under one base directory:
- analysis/ : tracker database and exported rasters
- logs/     : pipeline log files
"""

from pathlib import Path
from datetime import datetime, timezone


def setup_output_directories(base_output_dir=None):
    """
    Set up organized output directory structure.

    Parameters
    ----------
    base_output_dir : str or Path, optional
        Base output directory. If None, uses ./snowfree_output.

    Returns
    -------
    dict
        Dictionary with paths: 'base', 'analysis', 'logs'
    """
    if base_output_dir is None:
        base_output_dir = Path.cwd() / "snowfree_output"

    base_output_dir = Path(base_output_dir).expanduser().resolve()

    directories = {
        "base": base_output_dir,
        "analysis": base_output_dir / "analysis",
        "logs": base_output_dir / "logs",
    }

    for path in directories.values():
        path.mkdir(parents=True, exist_ok=True)

    print("\nOutput directories created:")
    for key, path in directories.items():
        print(f"  {key:12s}: {path}")

    return directories


def get_analysis_path(output_dirs, product, t0, t1, run_id=None, ext="nc"):
    """
    Get analysis file path for an exported product.

    Parameters
    ----------
    output_dirs : dict
        Output directories from setup_output_directories()
    product : str
        Product name, e.g. 'trend', 'median', 'snowmelt'
    t0, t1 : int
        Period covered by the product
    run_id : str, optional
        Run identifier appended to the filename
    ext : str
        File extension without dot

    Returns
    -------
    Path
        analysis/{product}_{t0}_{t1}[_{run_id}].{ext}

    Example
    -------
    >>> get_analysis_path(dirs, 'trend', 2003, 2016)
    Path('output/analysis/trend_2003_2016.nc')
    """
    analysis_dir = Path(output_dirs["analysis"])
    analysis_dir.mkdir(parents=True, exist_ok=True)

    suffix = f"_{run_id}" if run_id else ""
    return analysis_dir / f"{product}_{t0}_{t1}{suffix}.{ext}"


def get_log_path(output_dirs, run_id=None):
    """
    Get log file path.

    Returns
    -------
    Path
        logs/pipeline_{run_id}.log, or a timestamped name without run_id
    """
    log_dir = Path(output_dirs["logs"])
    log_dir.mkdir(parents=True, exist_ok=True)

    if run_id is None:
        run_id = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return log_dir / f"pipeline_{run_id}.log"
