"""UserConfig: Forgiving, minimal user-facing configuration.

This schema accepts user inputs in a variety of formats, with aliases
for common naming patterns (e.g., T0 → period.t0, SENSOR_A → sources.sensor_a).

UserConfig is intentionally minimal - users only specify what they want
to override from the expert defaults. Validation is lenient to accept
both uppercase and lowercase keys, integers where floats are expected, etc.
"""

from typing import Literal, Optional, Union
from pydantic import Field, field_validator
from snowfree.schemas.base import SnowfreeBaseModel


class UserSourcesConfig(SnowfreeBaseModel):
    """User-facing sources config."""
    sensor_a: Optional[str] = None
    sensor_b: Optional[str] = None
    band: Optional[str] = None
    sensor_a_paths: Optional[list[str]] = None
    sensor_b_paths: Optional[list[str]] = None
    land_mask_path: Optional[str] = None
    land_mask_band: Optional[str] = None


class UserFuserConfig(SnowfreeBaseModel):
    """User-facing fusion config."""
    zero_sentinel: Optional[float] = None
    no_observation_fill: Optional[float] = None
    valid_max: Optional[float] = None


class UserEncoderConfig(SnowfreeBaseModel):
    """User-facing encoder config."""
    cover_threshold: Optional[float] = None
    no_event_code: Optional[int] = None


class UserReducerConfig(SnowfreeBaseModel):
    """User-facing reducer config."""
    no_event_doy: Optional[int] = None
    empty_year_policy: Optional[str] = None

    @field_validator("empty_year_policy", mode="before")
    @classmethod
    def normalize_policy(cls, v):
        """Normalize policy names to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v


class UserMetricsConfig(SnowfreeBaseModel):
    """User-facing metrics config."""
    season_length_ceiling: Optional[float] = None
    land_value: Optional[int] = None


class UserGlobalConfig(SnowfreeBaseModel):
    """User-facing global config."""
    var_names: Optional[dict[str, str]] = None
    coord_names: Optional[dict[str, str]] = None


class UserConfig(SnowfreeBaseModel):
    """User-facing configuration schema.

    Minimal, forgiving, and uses common aliases. Users only specify
    what they want to override from ParamConfig defaults.

    This config is converted to internal overrides during resolution.

    Usage
    -----
        user_cfg = UserConfig(
            T0=2003,
            T1=2016,
            BASE_DIR="/data/snowfree",
            SENSOR_A_PATHS=["mod10a1_2003.nc"],
        )

        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    # Top-level operational settings
    t0: Optional[int] = Field(None, alias="T0")
    t1: Optional[int] = Field(None, alias="T1")
    base_dir: Optional[str] = Field(None, alias="BASE_DIR")

    # Sources (flat aliases)
    sensor_a: Optional[str] = Field(None, alias="SENSOR_A")
    sensor_b: Optional[str] = Field(None, alias="SENSOR_B")
    band: Optional[str] = Field(None, alias="BAND")
    sensor_a_paths: Optional[Union[str, list[str]]] = Field(None, alias="SENSOR_A_PATHS")
    sensor_b_paths: Optional[Union[str, list[str]]] = Field(None, alias="SENSOR_B_PATHS")
    land_mask_path: Optional[str] = Field(None, alias="LAND_MASK_PATH")
    land_mask_band: Optional[str] = Field(None, alias="LAND_MASK_BAND")

    # Science settings (flat aliases)
    cover_threshold: Optional[float] = Field(None, alias="COVER_THRESHOLD")
    season_length_ceiling: Optional[float] = Field(None, alias="SEASON_LENGTH_CEILING")
    empty_year_policy: Optional[Literal["skip", "sentinel"]] = Field(None, alias="EMPTY_YEAR_POLICY")

    # Probe pixel (enabled when both are given)
    probe_y: Optional[float] = Field(None, alias="PROBE_Y")
    probe_x: Optional[float] = Field(None, alias="PROBE_X")

    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = Field(None, alias="LOG_LEVEL")

    # Nested overrides (advanced users)
    sources: Optional[UserSourcesConfig] = None
    fuser: Optional[UserFuserConfig] = None
    encoder: Optional[UserEncoderConfig] = None
    reducer: Optional[UserReducerConfig] = None
    metrics: Optional[UserMetricsConfig] = None
    global_: Optional[UserGlobalConfig] = Field(None, alias="global")

    model_config = SnowfreeBaseModel.model_config.copy()
    # Allow forgiving input dictionaries (ignore unknown legacy keys)
    model_config.update({"populate_by_name": True, "extra": "ignore"})

    @field_validator("t0", "t1", mode="before")
    @classmethod
    def coerce_year(cls, v):
        """Accept years given as strings ("2003")."""
        if isinstance(v, str):
            return int(v.strip())
        return v

    @field_validator("cover_threshold", "season_length_ceiling", mode="before")
    @classmethod
    def coerce_numeric_fields(cls, v):
        """Accept int or float for numeric fields."""
        if v is not None:
            return float(v)
        return v

    @field_validator("sensor_a_paths", "sensor_b_paths", mode="before")
    @classmethod
    def coerce_path_list(cls, v):
        """Accept a single path as a one-element list."""
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("empty_year_policy", "log_level", mode="before")
    @classmethod
    def normalize_choice(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v.upper() if v.lower() in ("debug", "info", "warning", "error", "critical") else v.lower()
        return v

    def to_internal_overrides(self) -> dict:
        """Convert flat UserConfig to nested InternalConfig structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        if self.base_dir is not None:
            overrides["base_dir"] = str(self.base_dir)

        # Period section
        period = {}
        if self.t0 is not None:
            period["t0"] = self.t0
        if self.t1 is not None:
            period["t1"] = self.t1
        if period:
            overrides["period"] = period

        # Sources section
        sources = {}
        for name in ("sensor_a", "sensor_b", "band", "sensor_a_paths", "sensor_b_paths",
                     "land_mask_path", "land_mask_band"):
            value = getattr(self, name)
            if value is not None:
                sources[name] = value

        # Merge with explicit sources config
        if self.sources is not None:
            sources.update(self.sources.model_dump(exclude_none=True))

        if sources:
            overrides["sources"] = sources

        # Fuser section
        if self.fuser is not None:
            fuser = self.fuser.model_dump(exclude_none=True)
            if fuser:
                overrides["fuser"] = fuser

        # Encoder section
        encoder = {}
        if self.cover_threshold is not None:
            encoder["cover_threshold"] = self.cover_threshold
        if self.encoder is not None:
            encoder.update(self.encoder.model_dump(exclude_none=True))
        if encoder:
            overrides["encoder"] = encoder

        # Reducer section
        reducer = {}
        if self.empty_year_policy is not None:
            reducer["empty_year_policy"] = self.empty_year_policy
        if self.reducer is not None:
            reducer.update(self.reducer.model_dump(exclude_none=True))
        if reducer:
            overrides["reducer"] = reducer

        # Metrics section
        metrics = {}
        if self.season_length_ceiling is not None:
            metrics["season_length_ceiling"] = self.season_length_ceiling
        if self.metrics is not None:
            metrics.update(self.metrics.model_dump(exclude_none=True))
        if metrics:
            overrides["metrics"] = metrics

        # Global section
        if self.global_ is not None:
            global_cfg = self.global_.model_dump(exclude_none=True)
            if global_cfg:
                overrides["global"] = global_cfg

        # Probe section
        if self.probe_y is not None and self.probe_x is not None:
            overrides["probe"] = {"enabled": True, "y": self.probe_y, "x": self.probe_x}

        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides
