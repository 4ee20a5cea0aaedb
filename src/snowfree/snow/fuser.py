"""Fusion of two redundant daily snow-cover streams.

Both sensors under-report snow (cloud, viewing geometry), so the fused
value is the larger of the two valid readings. A genuine 0% reading must
not be confused with "no observation", which is why valid zeros are
recoded to a negative sentinel before the masked cells are filled, and
the fill sits below that sentinel.
"""

import logging
from typing import TYPE_CHECKING

import numpy as np
import xarray as xr

from snowfree.raster.model import Raster, RasterSeries
from snowfree.contracts import require, assert_same_grid, assert_cover_series

if TYPE_CHECKING:
    from snowfree.schemas import InternalConfig

__all__ = [
    'StreamFuser',
    'mask_invalid_codes',
    'recode_true_zero',
    'unmask_no_observation',
    'remask_no_observation',
    'restore_true_zero',
]

logger = logging.getLogger(__name__)


# ============================================================================
# PER-CELL TRANSFORMS
# ============================================================================

def mask_invalid_codes(cover: xr.DataArray, valid_max: float) -> xr.DataArray:
    """Mask values outside ``[0, valid_max]`` (cloud, night, water codes)."""
    return cover.where((cover >= 0) & (cover <= valid_max))


def recode_true_zero(cover: xr.DataArray, sentinel: float) -> xr.DataArray:
    """Replace valid 0 readings with ``sentinel``; masked cells stay masked."""
    return cover.where(cover != 0, sentinel)


def unmask_no_observation(cover: xr.DataArray, fill: float) -> xr.DataArray:
    """Fill masked cells with the no-observation code."""
    return cover.fillna(fill)


def remask_no_observation(fused: xr.DataArray, fill: float) -> xr.DataArray:
    """Mask cells where neither stream had a reading."""
    return fused.where(fused != fill)


def restore_true_zero(fused: xr.DataArray, sentinel: float) -> xr.DataArray:
    """Turn the zero sentinel back into 0."""
    return fused.where(fused != sentinel, 0.0)


# ============================================================================
# FUSER
# ============================================================================

class StreamFuser:
    """Config-driven fusion of sensor A and sensor B cover series."""

    def __init__(self, config: "InternalConfig"):
        """Store fusion parameters.

        Parameters
        ----------
        config : InternalConfig
            Uses ``config.fuser`` (zero sentinel, no-observation fill,
            valid range) and ``config.global_.var_names.cover`` for the
            output band name.
        """
        self.zero_sentinel = config.fuser.zero_sentinel
        self.fill = config.fuser.no_observation_fill
        self.valid_max = config.fuser.valid_max
        self.cover_name = config.global_.var_names.cover

        logger.info("StreamFuser initialized: zero_sentinel=%s, fill=%s, valid_max=%s",
                    self.zero_sentinel, self.fill, self.valid_max)

    def _prepare(self, cover: xr.DataArray) -> xr.DataArray:
        cover = mask_invalid_codes(cover, self.valid_max)
        cover = recode_true_zero(cover, self.zero_sentinel)
        return unmask_no_observation(cover, self.fill)

    def fuse_arrays(self, a: xr.DataArray, b: xr.DataArray) -> xr.DataArray:
        """Fuse two aligned cover arrays cell by cell."""
        fused = np.maximum(self._prepare(a), self._prepare(b))
        fused = remask_no_observation(fused, self.fill)
        return restore_true_zero(fused, self.zero_sentinel)

    def fuse_day(self, a: Raster, b: Raster) -> Raster:
        """Fuse one day's pair of single-band rasters."""
        assert_same_grid(a.dataset, b.dataset)
        fused = self.fuse_arrays(a.band_data(), b.band_data())
        return Raster.from_dataarray(fused, name=self.cover_name, **a.attrs)

    def fuse(self, sensor_a: RasterSeries, sensor_b: RasterSeries) -> RasterSeries:
        """Pair the streams by exact date and fuse every matched day.

        Days present in only one stream are dropped (inner join).

        Parameters
        ----------
        sensor_a, sensor_b : RasterSeries
            Single-band cover series on the same grid.

        Returns
        -------
        RasterSeries
            Fused series with one band named after the cover variable.
        """
        joined = sensor_a.inner_join(sensor_b)
        require(
            len(joined.bands) == 2,
            f"Fusion contract violated: expected two joined bands, got {joined.bands}"
        )
        band_a, band_b = joined.bands

        fused = self.fuse_arrays(joined.stack(band_a), joined.stack(band_b))
        series = RasterSeries.from_dataarray(fused, name=self.cover_name)

        assert_cover_series(series, self.cover_name)
        logger.debug("Fused %d days (A=%d, B=%d)", len(series), len(sensor_a), len(sensor_b))
        return series
