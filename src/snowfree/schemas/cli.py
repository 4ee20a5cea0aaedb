"""CLIConfig: Command-line operational overrides.

Minimal configuration for operational parameters that commonly change
between runs: period, output path, verbosity.

This schema handles command-line arguments parsed by argparse.
"""

from typing import Literal, Optional
from pydantic import model_validator
from snowfree.schemas.base import SnowfreeBaseModel


class CLIConfig(SnowfreeBaseModel):
    """Command-line configuration overrides.

    Operational-only settings that override user and param configs.
    Highest priority in config resolution.

    Usage
    -----
        cli_cfg = CLIConfig(t0=2005, t1=2010, base_dir="/scratch/snowfree")

        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    t0: Optional[int] = None
    t1: Optional[int] = None
    base_dir: Optional[str] = None
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = None

    @model_validator(mode="after")
    def check_period_order(self):
        """Reject an inverted period when both ends come from the command line."""
        if self.t0 is not None and self.t1 is not None and self.t1 < self.t0:
            raise ValueError(f"--t1 ({self.t1}) must not precede --t0 ({self.t0})")
        return self

    def to_internal_overrides(self) -> dict:
        """Convert CLI config to internal config structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        if self.base_dir is not None:
            overrides["base_dir"] = str(self.base_dir)

        period = {}
        if self.t0 is not None:
            period["t0"] = self.t0
        if self.t1 is not None:
            period["t1"] = self.t1
        if period:
            overrides["period"] = period

        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides
