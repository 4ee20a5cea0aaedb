"""Pydantic configuration schemas for the snowfree pipeline.

All configuration validation, coercion, and normalization happens at
schema validation time via Pydantic.

Exports
-------
resolve_config : function
    Single entrypoint for configuration resolution
init_runtime_config : function
    Resolution plus directory setup, run ID and config persistence
InternalConfig : class
    Fully validated, authoritative runtime configuration
ParamConfig : class
    Expert defaults (complete)
UserConfig : class
    User-facing configuration (forgiving, minimal)
CLIConfig : class
    Command-line operational overrides
"""

from snowfree.schemas.resolve import resolve_config, deep_merge
from snowfree.schemas.internal import InternalConfig
from snowfree.schemas.param import ParamConfig
from snowfree.schemas.user import UserConfig
from snowfree.schemas.cli import CLIConfig
from snowfree.schemas.initialization import init_runtime_config, load_user_config_dict

__all__ = [
    'resolve_config',
    'deep_merge',
    'init_runtime_config',
    'load_user_config_dict',
    'InternalConfig',
    'ParamConfig',
    'UserConfig',
    'CLIConfig',
]
