"""Command-line interface modules for snowfree pipeline execution.

This package contains core execution logic, making scripts/ optional and deletable.
"""

from snowfree.cli.run_snowfree import run_snowfree_pipeline

__all__ = ['run_snowfree_pipeline']
