"""Threshold-crossing DOY encoding of a fused cover series."""

import logging
from typing import TYPE_CHECKING

import xarray as xr

from snowfree.raster.model import RasterSeries
from snowfree.snow.snow_utils import day_of_year
from snowfree.contracts import require, assert_event_series

if TYPE_CHECKING:
    from snowfree.schemas import InternalConfig

__all__ = ['EventEncoder']

logger = logging.getLogger(__name__)


class EventEncoder:
    """Replace low-cover days with their DOY and mask everything else."""

    def __init__(self, config: "InternalConfig"):
        self.threshold = config.encoder.cover_threshold
        self.no_event_code = config.encoder.no_event_code
        self.doy_name = config.global_.var_names.doy

        logger.info("EventEncoder initialized: threshold=%s", self.threshold)

    def encode(self, fused: RasterSeries, start=None) -> RasterSeries:
        """Encode each day as its DOY where cover is at or below the threshold.

        Parameters
        ----------
        fused : RasterSeries
            Single-band fused cover series.
        start : datetime-like, optional
            Day counted as DOY 1. Defaults to the first timestamp of
            ``fused``.

        Returns
        -------
        RasterSeries
            One band of DOY values; masked where cover exceeds the
            threshold or no observation exists.
        """
        if start is None:
            require(len(fused) > 0, "Encoding contract violated: empty series and no start date")
            start = fused.first_time()

        cover = fused.stack()
        doy = day_of_year(cover["time"], start)

        # masked cover compares False and falls through to the no-event code
        events = xr.where(cover <= self.threshold, doy, self.no_event_code)
        events = events.where(events != self.no_event_code)

        series = RasterSeries.from_dataarray(events, name=self.doy_name)
        assert_event_series(series, self.doy_name, self.no_event_code)
        return series
