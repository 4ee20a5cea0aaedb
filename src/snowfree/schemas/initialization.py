"""Complete runtime initialization for the snowfree pipeline.

This module handles ALL initialization responsibilities:
- Configuration resolution (CLI > User > Param)
- Output directory setup
- Cleanup handling (--rerun)
- Configuration persistence with run ID
- Returns fully ready InternalConfig for orchestrator
"""

import importlib.util
import shutil
import json
import uuid
from pathlib import Path
from typing import Dict
from datetime import datetime, timezone

from snowfree.schemas.resolve import resolve_config
from snowfree.schemas.param import ParamConfig
from snowfree.schemas.user import UserConfig
from snowfree.schemas.cli import CLIConfig
from snowfree.schemas.internal import InternalConfig
from snowfree.setup_directories import setup_output_directories


def load_user_config_dict(config_path: str) -> dict:
    """Load user config dict from Python file.

    Returns the raw dict before Pydantic validation.

    Raises
    ------
    FileNotFoundError
        If config file does not exist.
    ValueError
        If no CONFIG dict found in file.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    spec = importlib.util.spec_from_file_location("config_module", path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Could not load config module from {path}")

    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    # Find CONFIG dict
    for name in dir(module):
        if name.startswith('CONFIG'):
            obj = getattr(module, name)
            if isinstance(obj, dict):
                return obj

    raise ValueError(f"No CONFIG dict found in {path}")


def generate_run_id() -> str:
    """Timestamped run identifier, e.g. ``20250305_150000_1a2b3c``."""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return f"{stamp}_{uuid.uuid4().hex[:6]}"


def _handle_rerun_cleanup(base_dir: str, rerun: bool) -> None:
    """Handle --rerun directory cleanup if requested."""
    if not rerun:
        return

    base_dir_path = Path(base_dir)
    if base_dir_path.exists():
        print(f"Cleaning output directory: {base_dir_path}")
        shutil.rmtree(base_dir_path)
        print("Output directory cleaned")


def _persist_runtime_config(config: InternalConfig, output_dirs: Dict[str, Path]) -> Path:
    """Persist final runtime configuration to output directory with run ID."""
    config_output_dir = Path(output_dirs["base"])
    config_output_dir.mkdir(parents=True, exist_ok=True)

    config_file = config_output_dir / f"runtime_config_{config.run_id}.json"

    config_dict = config.model_dump(by_alias=True)
    config_dict["created_at"] = datetime.now(timezone.utc).isoformat()

    with open(config_file, 'w') as f:
        json.dump(config_dict, f, indent=2, default=str)

    print(f"Runtime config saved: {config_file}")
    return config_file


def init_runtime_config(args) -> InternalConfig:
    """Complete runtime initialization - single entry point for snowfree.

    Handles ALL initialization responsibilities:
    1. Configuration resolution (CLI > User > Param)
    2. Cleanup handling (--rerun)
    3. Output directory setup
    4. Configuration persistence with run ID

    Parameters
    ----------
    args : argparse.Namespace
        Command line arguments: ``config`` (user config path) plus
        optional ``t0``, ``t1``, ``base_dir``, ``rerun`` and ``verbose``.

    Returns
    -------
    InternalConfig
        Fully validated configuration with ``base_dir``, ``output_dirs``
        and ``run_id`` set.

    Examples
    --------
    >>> args = parser.parse_args()
    >>> config = init_runtime_config(args)
    >>> orchestrator = PipelineOrchestrator(config, provider, land_mask)
    """
    config_path = getattr(args, 'config', None)
    if not config_path:
        raise ValueError("Config path required in args.config")

    param_cfg = ParamConfig()
    user_cfg = UserConfig.model_validate(load_user_config_dict(config_path))

    cli_args = {
        k: v
        for k, v in {
            "t0": getattr(args, 't0', None),
            "t1": getattr(args, 't1', None),
            "base_dir": getattr(args, 'base_dir', None),
            "log_level": "DEBUG" if getattr(args, 'verbose', False) else None,
        }.items()
        if v is not None
    }
    cli_cfg = CLIConfig.model_validate(cli_args)

    internal_config_dict = resolve_config(param_cfg, user_cfg, cli_cfg).model_dump()
    if not internal_config_dict.get("base_dir"):
        raise ValueError("BASE_DIR must be set in the user config or with --base-dir")

    _handle_rerun_cleanup(internal_config_dict["base_dir"], getattr(args, 'rerun', False))

    output_dirs = setup_output_directories(internal_config_dict["base_dir"])
    internal_config_dict["output_dirs"] = {k: str(v) for k, v in output_dirs.items()}
    internal_config_dict["run_id"] = generate_run_id()

    config = InternalConfig.model_validate(internal_config_dict)

    _persist_runtime_config(config, output_dirs)
    print(f"Runtime initialization complete. Run ID: {config.run_id}")

    return config


__all__ = ['init_runtime_config', 'load_user_config_dict', 'generate_run_id']
