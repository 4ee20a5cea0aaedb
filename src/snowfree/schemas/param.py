"""ParamConfig: Expert defaults for the snowfree pipeline.

This module defines the complete default configuration. ALL pipeline
parameters must have defaults here. No runtime code should define
fallback values - this is the single source of truth for defaults.

Runtime code NEVER reads from ParamConfig directly - it only receives InternalConfig.
"""

from typing import Literal, Optional
from pydantic import Field, field_validator, model_validator
from snowfree.schemas.base import SnowfreeBaseModel


# =============================================================================
# Nested Configuration Models
# =============================================================================

class PeriodConfig(SnowfreeBaseModel):
    """Years to process, inclusive on both ends."""
    t0: int = Field(2003, ge=1900, description="First year (2003 is the first full Aqua year)")
    t1: int = Field(2016, ge=1900, description="Last year")

    @model_validator(mode="after")
    def check_order(self):
        if self.t1 < self.t0:
            raise ValueError(f"t1 ({self.t1}) must not precede t0 ({self.t0})")
        return self


class SourcesConfig(SnowfreeBaseModel):
    """Sensor streams and the land mask."""
    sensor_a: str = "MOD10A1"
    sensor_b: str = "MYD10A1"
    band: str = "NDSI_Snow_Cover"
    sensor_a_paths: list[str] = Field(default_factory=list)
    sensor_b_paths: list[str] = Field(default_factory=list)
    land_mask_path: Optional[str] = None
    land_mask_band: str = "land_mask"


class FuserConfig(SnowfreeBaseModel):
    """Stream fusion codes."""
    zero_sentinel: float = Field(-10.0, description="Temporary code for valid 0% readings")
    no_observation_fill: float = Field(-100.0, description="Temporary code for masked cells")
    valid_max: float = Field(100.0, gt=0, description="Largest valid cover value")

    @model_validator(mode="after")
    def check_codes(self):
        if not self.no_observation_fill < self.zero_sentinel < 0:
            raise ValueError(
                "Fusion codes must satisfy no_observation_fill < zero_sentinel < 0, got "
                f"{self.no_observation_fill} and {self.zero_sentinel}"
            )
        return self


class EncoderConfig(SnowfreeBaseModel):
    """DOY event encoding."""
    cover_threshold: float = Field(5.0, ge=0, description="Cover (%) at or below which a day is snow-free")
    no_event_code: int = 9999

    @field_validator("cover_threshold", mode="before")
    @classmethod
    def coerce_threshold_to_float(cls, v):
        """Allow int or float for threshold."""
        return float(v)


class ReducerConfig(SnowfreeBaseModel):
    """Yearly reduction."""
    no_event_doy: int = Field(366, ge=1, description="Melt/acc DOY for pixels without a low-cover day")
    empty_year_policy: Literal["skip", "sentinel"] = "skip"


class MetricsConfig(SnowfreeBaseModel):
    """Derived metrics."""
    season_length_ceiling: float = Field(306.0, gt=0, description="Median snow-free length must be below this")
    land_value: int = 1


class VarNamesConfig(SnowfreeBaseModel):
    """Band name mappings."""
    cover: str = "cover"
    doy: str = "doy"
    snowmelt: str = "snowmelt"
    snowacc: str = "snowacc"
    snowfree: str = "snowfree"
    year: str = "year"


class CoordNamesConfig(SnowfreeBaseModel):
    """Coordinate names used by the input datasets."""
    time: str = "time"
    y: str = "y"
    x: str = "x"


class GlobalConfig(SnowfreeBaseModel):
    """Global pipeline settings."""
    var_names: VarNamesConfig = Field(default_factory=VarNamesConfig)
    coord_names: CoordNamesConfig = Field(default_factory=CoordNamesConfig)


class LoaderConfig(SnowfreeBaseModel):
    """Year loader thread."""
    max_queue_size: int = Field(2, ge=1, description="Years acquired ahead of processing")
    put_timeout: float = Field(1.0, gt=0)


class ProcessorConfig(SnowfreeBaseModel):
    """Year processor thread."""
    queue_timeout: float = Field(1.0, gt=0)
    status_interval: float = Field(30.0, gt=0, description="Seconds between status log lines")
    tracker_db_filename: str = "year_processing.db"


class ProbeConfig(SnowfreeBaseModel):
    """Optional pixel probe for visual validation of the fused series."""
    enabled: bool = False
    y: Optional[float] = None
    x: Optional[float] = None

    @model_validator(mode="after")
    def check_location(self):
        if self.enabled and (self.y is None or self.x is None):
            raise ValueError("Probe enabled without a y/x location")
        return self


class LoggingConfig(SnowfreeBaseModel):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


# =============================================================================
# Main ParamConfig
# =============================================================================

class ParamConfig(SnowfreeBaseModel):
    """Complete expert configuration with all defaults.

    This is the single source of truth for all pipeline parameters.
    Every tunable parameter MUST have a default here.

    Usage
    -----
    This config is NOT used directly by runtime code. It serves as the
    base layer in config resolution:

        internal_cfg = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    period: PeriodConfig = Field(default_factory=PeriodConfig)
    sources: SourcesConfig = Field(default_factory=SourcesConfig)
    fuser: FuserConfig = Field(default_factory=FuserConfig)
    encoder: EncoderConfig = Field(default_factory=EncoderConfig)
    reducer: ReducerConfig = Field(default_factory=ReducerConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    global_: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    loader: LoaderConfig = Field(default_factory=LoaderConfig)
    processor: ProcessorConfig = Field(default_factory=ProcessorConfig)
    probe: ProbeConfig = Field(default_factory=ProbeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    base_dir: Optional[str] = None

    model_config = SnowfreeBaseModel.model_config.copy()
    model_config.update({"populate_by_name": True})  # Allow both 'global' and 'global_'
