#!/usr/bin/env python3
"""``snowfree`` Snow Phenology Pipeline Runner.

Usage:
    python scripts/run_snowfree_pipeline.py scripts/user_config.py
    python scripts/run_snowfree_pipeline.py scripts/user_config.py --t0 2005 --t1 2010
    python scripts/run_snowfree_pipeline.py scripts/user_config.py --base-dir /scratch/snowfree --rerun
"""

import argparse
import sys

from snowfree.cli import run_snowfree_pipeline
from snowfree.contracts import ContractViolation
from snowfree.errors import SnowfreeError


def main():
    parser = argparse.ArgumentParser(description="Run the snowfree snow phenology pipeline")
    parser.add_argument("config", help="Path to user config file")
    parser.add_argument("--t0", type=int, help="First year")
    parser.add_argument("--t1", type=int, help="Last year (inclusive)")
    parser.add_argument("--base-dir", help="Output directory")
    parser.add_argument("--rerun", action="store_true", help="Delete output directories before running")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    try:
        run_snowfree_pipeline(
            args.config,
            cli_args={"t0": args.t0, "t1": args.t1, "base_dir": args.base_dir},
            rerun=args.rerun,
            verbose=args.verbose,
        )
    except (ContractViolation, SnowfreeError) as e:
        print(f"Pipeline failed: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
