"""InternalConfig: Authoritative runtime configuration.

This is the ONLY config schema that runtime code sees. It is fully validated,
normalized, and contains NO optional fields that processing code depends on.

All .get() calls, fallback defaults, and validation logic are FORBIDDEN in
runtime code - everything is explicit here.
"""

from typing import Literal, Optional
from pydantic import Field, ConfigDict, model_validator
from snowfree.schemas.base import SnowfreeBaseModel


# =============================================================================
# Nested Configuration Models (Runtime)
# =============================================================================

class InternalPeriodConfig(SnowfreeBaseModel):
    """Runtime period (inclusive years)."""
    t0: int
    t1: int

    @model_validator(mode="after")
    def check_order(self):
        if self.t1 < self.t0:
            raise ValueError(f"t1 ({self.t1}) must not precede t0 ({self.t0})")
        return self


class InternalSourcesConfig(SnowfreeBaseModel):
    """Runtime sensor and land-mask sources."""
    sensor_a: str
    sensor_b: str
    band: str
    sensor_a_paths: list[str]
    sensor_b_paths: list[str]
    land_mask_path: Optional[str]  # Required by the CLI, not by the library
    land_mask_band: str


class InternalFuserConfig(SnowfreeBaseModel):
    """Runtime fusion codes."""
    zero_sentinel: float
    no_observation_fill: float
    valid_max: float = Field(gt=0)

    @model_validator(mode="after")
    def check_codes(self):
        if not self.no_observation_fill < self.zero_sentinel < 0:
            raise ValueError(
                "Fusion codes must satisfy no_observation_fill < zero_sentinel < 0, got "
                f"{self.no_observation_fill} and {self.zero_sentinel}"
            )
        return self


class InternalEncoderConfig(SnowfreeBaseModel):
    """Runtime DOY encoding."""
    cover_threshold: float = Field(ge=0)
    no_event_code: int


class InternalReducerConfig(SnowfreeBaseModel):
    """Runtime yearly reduction."""
    no_event_doy: int = Field(ge=1)
    empty_year_policy: Literal["skip", "sentinel"]


class InternalMetricsConfig(SnowfreeBaseModel):
    """Runtime metrics."""
    season_length_ceiling: float = Field(gt=0)
    land_value: int


class InternalVarNamesConfig(SnowfreeBaseModel):
    """Runtime band name mappings."""
    cover: str
    doy: str
    snowmelt: str
    snowacc: str
    snowfree: str
    year: str


class InternalCoordNamesConfig(SnowfreeBaseModel):
    """Runtime coordinate name mappings."""
    time: str
    y: str
    x: str


class InternalGlobalConfig(SnowfreeBaseModel):
    """Runtime global settings."""
    var_names: InternalVarNamesConfig
    coord_names: InternalCoordNamesConfig


class InternalLoaderConfig(SnowfreeBaseModel):
    """Runtime loader thread settings."""
    max_queue_size: int = Field(ge=1)
    put_timeout: float = Field(gt=0)


class InternalProcessorConfig(SnowfreeBaseModel):
    """Runtime processor thread settings."""
    queue_timeout: float = Field(gt=0)
    status_interval: float = Field(gt=0)
    tracker_db_filename: str


class InternalProbeConfig(SnowfreeBaseModel):
    """Runtime pixel probe."""
    enabled: bool
    y: Optional[float]
    x: Optional[float]

    @model_validator(mode="after")
    def check_location(self):
        if self.enabled and (self.y is None or self.x is None):
            raise ValueError("Probe enabled without a y/x location")
        return self


class InternalLoggingConfig(SnowfreeBaseModel):
    """Runtime logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


# =============================================================================
# Main InternalConfig
# =============================================================================

class InternalConfig(SnowfreeBaseModel):
    """Authoritative runtime configuration.

    This is the ONLY configuration schema that processing code sees.
    It is fully validated, immutable, and contains explicit values for
    all parameters.

    Usage
    -----
    Runtime modules receive InternalConfig and access fields directly:

        def __init__(self, config: InternalConfig):
            self.threshold = config.encoder.cover_threshold  # NOT .get()
            self.cover_name = config.global_.var_names.cover

    Rules
    -----
    - NO .get() calls
    - NO fallback defaults
    - NO validation

    All of that happens during config resolution, not in runtime code.
    """

    period: InternalPeriodConfig
    sources: InternalSourcesConfig
    fuser: InternalFuserConfig
    encoder: InternalEncoderConfig
    reducer: InternalReducerConfig
    metrics: InternalMetricsConfig
    global_: InternalGlobalConfig = Field(alias="global")
    loader: InternalLoaderConfig
    processor: InternalProcessorConfig
    probe: InternalProbeConfig
    logging: InternalLoggingConfig

    # Set by init_runtime_config()
    base_dir: Optional[str] = None
    output_dirs: Optional[dict[str, str]] = None
    run_id: Optional[str] = None

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        frozen=True,  # Immutable after construction
        populate_by_name=True,  # Allow both 'global' and 'global_'
    )
