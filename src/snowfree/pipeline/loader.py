"""Per-year acquisition of both sensor streams.

Runs in its own thread ahead of the processor: for each year of the
period it queries both sensors from the provider and hands the pair to
the processor through a bounded queue. Failures are reported per year
and never abort the loop.
"""

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from snowfree.raster.model import RasterSeries
from snowfree.errors import AcquisitionError
from snowfree.contracts import ContractViolation
from snowfree.snow.snow_utils import year_window

if TYPE_CHECKING:
    from snowfree.schemas import InternalConfig
    from snowfree.catalog.provider import RasterSeriesProvider
    from snowfree.pipeline.year_tracker import YearProcessingTracker

__all__ = ['YearData', 'YearLoader']

logger = logging.getLogger(__name__)


@dataclass
class YearData:
    """One year's sensor series, or the error that prevented acquiring them."""
    year: int
    sensor_a: Optional[RasterSeries] = None
    sensor_b: Optional[RasterSeries] = None
    error: Optional[Exception] = None


class YearLoader(threading.Thread):
    """Queries both sensors for every year and queues the results.

    **Queue Communication:** puts one ``YearData`` per year in ascending
    order, then ``None`` as the end-of-period sentinel.

    Example usage (typically called by orchestrator)::

        loader = YearLoader(config, provider, output_queue=year_queue)
        loader.start()
        ...
        loader.join()
    """

    def __init__(self, config: "InternalConfig", provider: "RasterSeriesProvider",
                 output_queue: queue.Queue,
                 tracker: "YearProcessingTracker" = None,
                 name: str = "YearLoader"):
        """Initialize loader.

        Parameters
        ----------
        config : InternalConfig
            Uses ``period`` (years), ``sources`` (dataset ids and band) and
            ``loader`` (queue put timeout).
        provider : RasterSeriesProvider
            Catalog returning a RasterSeries for a dataset and date range.
        output_queue : queue.Queue
            Queue to the processor thread.
        tracker : YearProcessingTracker, optional
            Records the acquisition stage of each year.
        name : str, optional
            Thread name for logging.
        """
        super().__init__(daemon=True, name=name)

        self.config = config
        self.provider = provider
        self.output_queue = output_queue
        self.tracker = tracker
        self._stop_event = threading.Event()

        self.years = list(range(config.period.t0, config.period.t1 + 1))
        self.sensor_a = config.sources.sensor_a
        self.sensor_b = config.sources.sensor_b
        self.band = config.sources.band
        self.put_timeout = config.loader.put_timeout

    def stop(self):
        """Signal the loader thread to stop after the current year."""
        self._stop_event.set()

    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def load_year(self, year: int) -> YearData:
        """Query both sensors over ``[Jan 1 year, Dec 31 year)``.

        Contract violations are passed through to the processor as fatal;
        any other provider failure becomes an AcquisitionError for the year.
        """
        start, end = year_window(year)
        if self.tracker:
            self.tracker.register_year(year, self.sensor_a, self.sensor_b)

        try:
            sensor_a = self.provider.query(self.sensor_a, self.band, start, end)
            sensor_b = self.provider.query(self.sensor_b, self.band, start, end)
        except ContractViolation as e:
            logger.error("Year %d: contract violation during acquisition: %s", year, e)
            if self.tracker:
                self.tracker.mark_stage_complete(year, "acquired", error=f"Contract violation: {e}")
            return YearData(year=year, error=e)
        except Exception as e:
            error = AcquisitionError(f"Acquisition failed for {year}: {e}", year=year)
            logger.error("%s", error)
            if self.tracker:
                self.tracker.mark_stage_complete(year, "acquired", error=str(error))
            return YearData(year=year, error=error)

        if self.tracker:
            self.tracker.mark_stage_complete(
                year, "acquired", days_a=len(sensor_a), days_b=len(sensor_b)
            )
        logger.info("Acquired %d: %s=%d days, %s=%d days",
                    year, self.sensor_a, len(sensor_a), self.sensor_b, len(sensor_b))
        return YearData(year=year, sensor_a=sensor_a, sensor_b=sensor_b)

    def _put(self, item: Optional[YearData]) -> bool:
        """Put with periodic stop checks so a full queue can't hang shutdown."""
        while not self.stopped():
            try:
                self.output_queue.put(item, timeout=self.put_timeout)
                return True
            except queue.Full:
                continue
        return False

    def run(self):
        """Main loader loop (runs in thread)."""
        logger.info("Loader started: %d years (%d-%d)",
                    len(self.years), self.years[0], self.years[-1])
        try:
            for year in self.years:
                if self.stopped():
                    break
                if not self._put(self.load_year(year)):
                    break
        finally:
            self._put(None)
            logger.info("Loader stopped")
