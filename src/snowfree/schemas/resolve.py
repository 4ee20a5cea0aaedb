"""Layered configuration resolution for snowfree runs.

:func:`resolve_config` is the only way runtime code obtains an
:class:`InternalConfig`. Layers are applied lowest first:

1. ParamConfig (expert defaults shipped with the package)
2. UserConfig (per-site user file)
3. CLIConfig (command-line overrides)

After the layers are merged, checks that span sections are run. Pydantic
validates each section on its own and cannot see, for example, that a
no-event DOY must sit above every day a year can produce.
"""

from typing import Union, Optional

from snowfree.schemas.param import ParamConfig
from snowfree.schemas.user import UserConfig
from snowfree.schemas.cli import CLIConfig
from snowfree.schemas.internal import InternalConfig
from snowfree.snow.snow_utils import MAX_EVENT_DOY


def deep_merge(base: dict, *overrides: dict) -> dict:
    """Merge ``overrides`` into a copy of ``base``, later layers winning.

    Nested dictionaries are merged key by key; any other value replaces the
    one below it.

    Examples
    --------
    >>> deep_merge({"reducer": {"no_event_doy": 366, "empty_year_policy": "skip"}},
    ...            {"reducer": {"empty_year_policy": "sentinel"}})
    {'reducer': {'no_event_doy': 366, 'empty_year_policy': 'sentinel'}}
    """
    result = base.copy()

    for override in overrides:
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = deep_merge(result[key], value)
            else:
                result[key] = value

    return result


def _as_model(cfg, model):
    """Coerce a dict (or None) layer into ``model``; models pass through."""
    if isinstance(cfg, model):
        return cfg
    return model.model_validate(cfg or {})


def _check_event_codes(config: InternalConfig) -> InternalConfig:
    """Reject no-event markers that a real snow-free day could also produce."""
    doy = config.reducer.no_event_doy
    code = config.encoder.no_event_code
    if doy <= MAX_EVENT_DOY:
        raise ValueError(
            f"reducer.no_event_doy={doy} collides with real event days; "
            f"it must exceed {MAX_EVENT_DOY}"
        )
    if code <= MAX_EVENT_DOY:
        raise ValueError(
            f"encoder.no_event_code={code} collides with real event days; "
            f"it must exceed {MAX_EVENT_DOY}"
        )
    return config


def resolve_config(
    param_cfg: Union[dict, ParamConfig],
    user_cfg: Optional[Union[dict, UserConfig]] = None,
    cli_cfg: Optional[Union[dict, CLIConfig]] = None,
) -> InternalConfig:
    """Build the frozen runtime configuration for one snowfree run.

    Parameters
    ----------
    param_cfg : dict or ParamConfig
        Expert defaults covering every section. Required.
    user_cfg : dict or UserConfig, optional
        Site overrides (study period, cover threshold, file paths).
    cli_cfg : dict or CLIConfig, optional
        Command-line overrides.

    Returns
    -------
    InternalConfig

    Raises
    ------
    ValidationError
        If a layer or the merged result fails schema validation
        (e.g. T1 before T0).
    ValueError
        If the no-event DOY or no-event code is not above the largest DOY
        a year window can produce.

    Examples
    --------
    >>> from snowfree.schemas import resolve_config, ParamConfig, UserConfig
    >>> config = resolve_config(ParamConfig(), UserConfig(T0=2005, COVER_THRESHOLD=10))
    >>> config.period.t0
    2005
    >>> config.encoder.cover_threshold
    10.0
    """
    param = _as_model(param_cfg, ParamConfig)
    user = _as_model(user_cfg, UserConfig)
    cli = _as_model(cli_cfg, CLIConfig)

    merged = deep_merge(
        param.model_dump(by_alias=True),  # 'global', not 'global_'
        user.to_internal_overrides(),
        cli.to_internal_overrides(),
    )

    return _check_event_codes(InternalConfig.model_validate(merged))
