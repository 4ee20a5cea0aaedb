"""Derived multi-year metrics: snow-free season, validity mask, melt trend.

The engine consumes the year-indexed melt and accumulation stacks and
produces:

- ``snowfree``: per-year season length, ``acc - melt``
- ``median``: per-pixel median season length across years
- ``validity``: ``median < season_length_ceiling`` (1/0)
- ``trend``: per-pixel linear fit of melt DOY on year (bands ``scale``,
  ``offset``)
- ``mask``: validity AND land
- ``masked_trend`` / ``filtered_trend``: the trend restricted to the mask,
  by masking or by zeroing respectively

Pixels with no snow in a year carry melt = acc = 366, so their season
length is 0 and they pass the ceiling check. This all-no-data case is
retained as-is.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

import numpy as np
import pandas as pd
import xarray as xr

from snowfree.raster.model import Raster, RasterSeries
from snowfree.snow.snow_utils import linear_fit
from snowfree.contracts import require, assert_same_grid

if TYPE_CHECKING:
    from snowfree.schemas import InternalConfig

__all__ = ['PhenologyMetrics', 'PhenologyResult']

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PhenologyResult:
    """Final trend product plus the intermediates it was derived from."""
    melt: RasterSeries
    acc: RasterSeries
    snowfree: RasterSeries
    median: Raster
    validity: Raster
    mask: Raster
    trend: Raster
    masked_trend: Raster
    filtered_trend: Raster
    melt_image: Optional[Raster] = None
    acc_image: Optional[Raster] = None
    diagnostics: pd.DataFrame = field(default_factory=pd.DataFrame)
    probe: Optional[pd.DataFrame] = None


class PhenologyMetrics:
    """Config-driven metrics engine over the melt/acc stacks."""

    def __init__(self, config: "InternalConfig"):
        self.ceiling = config.metrics.season_length_ceiling
        self.land_value = config.metrics.land_value
        var_names = config.global_.var_names
        self.snowfree_name = var_names.snowfree
        self.time_band = var_names.year

        logger.info("PhenologyMetrics initialized: ceiling=%s, land_value=%s",
                    self.ceiling, self.land_value)

    def season_length(self, melt: RasterSeries, acc: RasterSeries) -> RasterSeries:
        """Per-year snow-free season length ``acc - melt``.

        Years are paired by exact year tag; negative or degenerate values
        are passed through unchanged.
        """
        joined = acc.inner_join(melt)
        acc_band, melt_band = joined.bands
        snowfree = joined.stack(acc_band) - joined.stack(melt_band)
        return RasterSeries.from_dataarray(snowfree, name=self.snowfree_name)

    def season_median(self, snowfree: RasterSeries) -> Raster:
        """Per-pixel median season length across years."""
        require(len(snowfree) > 0, "Metrics contract violated: no years to take the median of")
        return Raster.from_dataarray(snowfree.stack().median("time"), name="median")

    def validity_mask(self, median: Raster) -> Raster:
        """1 where the median season is shorter than the ceiling, else 0."""
        return median.lt(self.ceiling).rename("validity")

    def melt_trend(self, melt: RasterSeries) -> Raster:
        """Per-pixel least-squares fit of melt DOY against year.

        Returns a two-band raster, ``scale`` (slope, days per year) and
        ``offset`` (intercept). Cells with fewer than two distinct years
        are masked.
        """
        melt_band = melt.bands[0]
        with_time = melt.add_time_band(self.time_band)
        slope, intercept = linear_fit(
            with_time.stack(self.time_band), with_time.stack(melt_band), dim="time"
        )
        return Raster(xr.Dataset({"scale": slope, "offset": intercept}))

    def final_mask(self, validity: Raster, land: Raster) -> Raster:
        """Combined mask: valid season AND land."""
        assert_same_grid(validity.dataset, land.dataset)
        return validity.logical_and(land.eq(self.land_value)).rename("mask")

    def apply_mask(self, trend: Raster, mask: Raster) -> Raster:
        """Mask the trend outside the combined mask."""
        return trend.update_mask(mask)

    def filter_trend(self, trend: Raster, mask: Raster) -> Raster:
        """Zero the trend outside the combined mask."""
        return trend.multiply(mask)

    def compute(self, melt: RasterSeries, acc: RasterSeries, land: Raster) -> PhenologyResult:
        """Run every metric over the completed stacks.

        Parameters
        ----------
        melt, acc : RasterSeries
            Year-indexed melt and accumulation stacks.
        land : Raster
            Land mask on the same grid (``land_value`` marks land).

        Returns
        -------
        PhenologyResult
        """
        snowfree = self.season_length(melt, acc)
        median = self.season_median(snowfree)
        validity = self.validity_mask(median)
        trend = self.melt_trend(melt)
        mask = self.final_mask(validity, land)

        result = PhenologyResult(
            melt=melt,
            acc=acc,
            snowfree=snowfree,
            median=median,
            validity=validity,
            mask=mask,
            trend=trend,
            masked_trend=self.apply_mask(trend, mask),
            filtered_trend=self.filter_trend(trend, mask),
        )
        logger.info("Metrics computed over %d years: %d valid cells of %d",
                    len(snowfree), int(np.nansum(mask.values)), mask.values.size)
        return result
