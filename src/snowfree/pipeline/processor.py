"""Per-year phenology processing.

Consumes acquired years from the loader queue and runs each through
fusion, DOY encoding and yearly reduction, folding the summaries into the
multi-year accumulator.
"""

import logging
import queue
import threading
from typing import Optional, Dict, List, TYPE_CHECKING

import pandas as pd

from snowfree.raster.model import RasterSeries
from snowfree.snow.fuser import StreamFuser
from snowfree.snow.event_encoder import EventEncoder
from snowfree.snow.year_reducer import YearReducer
from snowfree.pipeline.accumulator import YearStackAccumulator
from snowfree.pipeline.loader import YearData
from snowfree.errors import SnowfreeError, EmptyYear
from snowfree.contracts import ContractViolation

if TYPE_CHECKING:
    from snowfree.schemas import InternalConfig
    from snowfree.pipeline.year_tracker import YearProcessingTracker

__all__ = ['YearProcessor']

logger = logging.getLogger(__name__)


class YearProcessor(threading.Thread):
    """Processes acquired years through the per-year pipeline.

    **Processing Pipeline:**

    For each year, the processor performs (in order):

    1. **Fusion**: Inner-joins sensor A and B by date and keeps the larger
       valid reading per cell and day.
    2. **Encoding**: Replaces low-cover days with their DOY.
    3. **Reduction**: Per-pixel first (melt) and last (accumulation) DOY.
    4. **Stacking**: Appends the summary to the year-aligned stacks.

    **Per-year conditions:**

    - Failed acquisition: reported and the year is skipped.
    - Empty year (no fused days): reported; skipped or recorded as an
      all-366 year depending on ``reducer.empty_year_policy``.
    - Contract violation: fatal; stored in ``fatal_error`` and the thread
      stops.

    Example usage (typically called by orchestrator)::

        processor = YearProcessor(year_queue, config, tracker=tracker)
        processor.start()
        processor.join()
        stacks = processor.accumulator
    """

    def __init__(self, input_queue: queue.Queue, config: "InternalConfig",
                 tracker: "YearProcessingTracker" = None,
                 name: str = "YearProcessor"):
        """Initialize processor with validated configuration.

        Parameters
        ----------
        input_queue : queue.Queue
            Queue of YearData from the loader thread. None signals shutdown.
        config : InternalConfig
            Fully validated runtime configuration.
        tracker : YearProcessingTracker, optional
            Records fused/reduced stages and per-year failures.
        name : str, optional
            Thread name for logging (default: "YearProcessor").
        """
        super().__init__(daemon=True, name=name)

        self.input_queue = input_queue
        self.config = config
        self.tracker = tracker
        self._stop_event = threading.Event()

        self.fuser = StreamFuser(config)
        self.encoder = EventEncoder(config)
        self.reducer = YearReducer(config)

        var_names = config.global_.var_names
        self.accumulator = YearStackAccumulator(melt_name=var_names.snowmelt,
                                                acc_name=var_names.snowacc)
        self.empty_year_policy = config.reducer.empty_year_policy
        self.queue_timeout = config.processor.queue_timeout

        self.probe = config.probe if config.probe.enabled else None
        self.probe_frames: List[pd.DataFrame] = []

        self.diagnostics: List[Dict] = []
        self.fatal_error: Optional[ContractViolation] = None

    def stop(self):
        """Signal the processor thread to stop."""
        self._stop_event.set()

    def stopped(self):
        return self._stop_event.is_set()

    def _report(self, year: int, status: str, message: str = ""):
        self.diagnostics.append({"year": year, "status": status, "message": message})

    def _record_probe(self, item: YearData, fused: RasterSeries):
        frames = []
        for label, series in (("sensor_a", item.sensor_a), ("sensor_b", item.sensor_b), ("fused", fused)):
            if len(series):
                frame = series.sample(self.probe.y, self.probe.x)
                frames.append(frame.iloc[:, 0].rename(label))
        if frames:
            self.probe_frames.append(pd.concat(frames, axis=1))

    def _handle_empty(self, year: int, fused: RasterSeries,
                      accumulator: YearStackAccumulator) -> YearStackAccumulator:
        error = EmptyYear(f"No fused days for {year}", year=year)
        logger.warning("%s (policy=%s)", error, self.empty_year_policy)
        if self.tracker:
            self.tracker.mark_empty(year, str(error))
        self._report(year, "empty", str(error))

        if self.empty_year_policy == "sentinel":
            return accumulator.add(self.reducer.sentinel_summary(year, fused))
        return accumulator

    def process_year(self, item: YearData, accumulator: YearStackAccumulator) -> YearStackAccumulator:
        """Run one year through fuse -> encode -> reduce and stack the result.

        Parameters
        ----------
        item : YearData
            Acquired series (or acquisition error) for one year.
        accumulator : YearStackAccumulator
            Stacks accumulated so far.

        Returns
        -------
        YearStackAccumulator
            Accumulator with this year's summary appended, or unchanged if
            the year was skipped.

        Raises
        ------
        ContractViolation
            If any stage breaks a pipeline invariant (fatal).
        """
        year = item.year

        if item.error is not None:
            if isinstance(item.error, ContractViolation):
                raise item.error
            logger.warning("Skipping %d: %s", year, item.error)
            self._report(year, "failed", str(item.error))
            return accumulator

        fused = self.fuser.fuse(item.sensor_a, item.sensor_b)
        if self.tracker:
            self.tracker.mark_stage_complete(year, "fused", days_fused=len(fused))
        if self.probe is not None:
            self._record_probe(item, fused)

        if len(fused) == 0:
            return self._handle_empty(year, fused, accumulator)

        events = self.encoder.encode(fused)
        summary = self.reducer.reduce(events, year)
        accumulator = accumulator.add(summary)

        if self.tracker:
            self.tracker.mark_stage_complete(year, "reduced")
        self._report(year, "completed")
        logger.info("Processed %d: %d fused days", year, len(fused))
        return accumulator

    def run(self):
        """Main processor loop (runs in thread).

        Reads YearData from input_queue until the None sentinel arrives or
        stop() is called.
        """
        logger.info("Processor started, waiting for years...")

        while not self.stopped():
            try:
                item = self.input_queue.get(timeout=self.queue_timeout)
            except queue.Empty:
                continue

            try:
                if item is None:
                    break
                self.accumulator = self.process_year(item, self.accumulator)
            except ContractViolation as e:
                logger.error("Contract violation in %s: %s", item.year, e)
                self.fatal_error = e
                break
            except SnowfreeError as e:
                logger.warning("Skipping %s: %s", item.year, e)
                self._report(item.year, "failed", str(e))
            except Exception as e:
                logger.exception("Failed to process year: %s", item.year)
                if self.tracker:
                    self.tracker.mark_stage_complete(item.year, "reduced", error=str(e))
                self._report(item.year, "failed", str(e))
            finally:
                self.input_queue.task_done()

        logger.info("Processor stopped")

    def get_diagnostics(self) -> pd.DataFrame:
        """Per-year outcome records as a DataFrame."""
        return pd.DataFrame(self.diagnostics, columns=["year", "status", "message"])

    def get_probe(self) -> Optional[pd.DataFrame]:
        """Probe pixel time series across all processed years, if enabled."""
        if not self.probe_frames:
            return None
        return pd.concat(self.probe_frames).sort_index()
