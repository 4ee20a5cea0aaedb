"""Reduction of a year's DOY events to melt and accumulation dates."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import xarray as xr

from snowfree.raster.model import Raster, RasterSeries
from snowfree.contracts import assert_year_summary

if TYPE_CHECKING:
    from snowfree.schemas import InternalConfig

__all__ = ['YearSummary', 'YearReducer']

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class YearSummary:
    """Per-pixel melt and accumulation DOY for one year.

    ``melt`` is the first low-cover day, ``acc`` the last; both equal the
    no-event DOY (366) where no such day exists.
    """
    year: int
    melt: Raster
    acc: Raster


class YearReducer:
    """Per-pixel min/max over a year's event series."""

    def __init__(self, config: "InternalConfig"):
        self.no_event_doy = config.reducer.no_event_doy

    def _constant(self, template: xr.DataArray, name: str, year: int) -> Raster:
        data = np.full((template.sizes["y"], template.sizes["x"]), float(self.no_event_doy))
        da = xr.DataArray(data, dims=("y", "x"), coords={"y": template["y"], "x": template["x"]})
        return Raster.from_dataarray(da, name=name, year=year)

    def sentinel_summary(self, year: int, template: RasterSeries | Raster) -> YearSummary:
        """All-sentinel summary on the grid of ``template`` (used for empty years)."""
        grid = template.dataset[template.bands[0]]
        return YearSummary(
            year=year,
            melt=self._constant(grid, "melt", year),
            acc=self._constant(grid, "acc", year),
        )

    def reduce(self, events: RasterSeries, year: int) -> YearSummary:
        """Reduce an event series to the year's melt (min DOY) and acc (max DOY).

        Parameters
        ----------
        events : RasterSeries
            Single-band DOY series; masked where no event occurred.
        year : int
            Year tag for the summary.

        Returns
        -------
        YearSummary
            Fully unmasked melt and acc rasters.
        """
        if len(events) == 0:
            logger.debug("Year %d: no event days, all cells get %d", year, self.no_event_doy)
            return self.sentinel_summary(year, events)

        doy = events.stack()
        melt = doy.fillna(np.inf).min("time")
        acc = doy.fillna(-np.inf).max("time")
        melt = melt.where(np.isfinite(melt), self.no_event_doy)
        acc = acc.where(np.isfinite(acc), self.no_event_doy)

        summary = YearSummary(
            year=year,
            melt=Raster.from_dataarray(melt, name="melt", year=year),
            acc=Raster.from_dataarray(acc, name="acc", year=year),
        )
        assert_year_summary(summary, self.no_event_doy)
        return summary
