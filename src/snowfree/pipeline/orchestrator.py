"""Multi-threaded pipeline orchestration.

Coordinates the loader and processor threads with a queue in between,
then runs the metrics engine over the completed stacks. Manages logging,
per-year tracking and graceful shutdown.
"""

import queue
import time
import logging
from dataclasses import replace
from pathlib import Path
from typing import Dict, Optional, TYPE_CHECKING

from snowfree.raster.model import Raster
from snowfree.pipeline.loader import YearLoader
from snowfree.pipeline.processor import YearProcessor
from snowfree.pipeline.year_tracker import YearProcessingTracker
from snowfree.snow.metrics import PhenologyMetrics, PhenologyResult
from snowfree.errors import SnowfreeError
from snowfree.setup_directories import get_log_path

if TYPE_CHECKING:
    from snowfree.schemas import InternalConfig
    from snowfree.catalog.provider import RasterSeriesProvider

__all__ = ['PipelineOrchestrator']

logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """Manages the threaded snow-phenology pipeline.

    This is the main entry point for running ``snowfree``.

    **Pipeline Architecture:**

    1. **Loader Thread**: Queries sensor A and B for each year of
       ``[t0, t1]`` and queues the pairs in ascending year order.

    2. **Processor Thread**: Fuses, encodes and reduces each year, folding
       the summaries into the melt/accumulation stacks.

    3. **Metrics** (main thread, after both threads finish): season length,
       median, validity mask, melt-day trend and the land/validity mask.

    **Year Tracking:**

    The YearProcessingTracker SQLite database records the state of each
    year (acquired, fused, reduced, empty or failed).

    **Logging:**

    All output goes to both console and log file
    (logs/pipeline_{run_id}.log). Level controlled via
    ``config.logging.level``.

    Example usage::

        orch = PipelineOrchestrator(config, provider, land_mask, output_dirs)
        result = orch.run()
        result.masked_trend.dataset.to_netcdf("trend.nc")
    """

    def __init__(self, config: "InternalConfig", provider: "RasterSeriesProvider",
                 land_mask: Raster, output_dirs: Optional[Dict[str, Path]] = None,
                 configure_logging: bool = True):
        """Initialize orchestrator.

        Parameters
        ----------
        config : InternalConfig
            Fully validated runtime configuration.
        provider : RasterSeriesProvider
            Source of the daily sensor series.
        land_mask : Raster
            Land mask on the series grid.
        output_dirs : dict, optional
            Output directory paths from setup_output_directories(). Without
            them, no log file and no tracker database are written.
        configure_logging : bool
            Install file and console handlers on the root logger.
        """
        self.config = config
        self.provider = provider
        self.land_mask = land_mask
        self.output_dirs = output_dirs or config.output_dirs
        self.configure_logging = configure_logging

        self.year_queue = queue.Queue(maxsize=config.loader.max_queue_size)

        self.loader = None
        self.processor = None
        self.tracker = None
        self.metrics = PhenologyMetrics(config)

        self._stopped = False
        self._start_time = None

    def _setup_logging(self):
        """Configure root logger with file and console handlers."""
        log_level = getattr(logging, self.config.logging.level.upper(), logging.INFO)

        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        root = logging.getLogger()
        root.setLevel(log_level)
        for handler in root.handlers[:]:
            root.removeHandler(handler)

        log_path = None
        if self.output_dirs:
            log_path = get_log_path(self.output_dirs, self.config.run_id)

            fh = logging.FileHandler(log_path)
            fh.setLevel(log_level)
            fh.setFormatter(formatter)
            root.addHandler(fh)

        ch = logging.StreamHandler()
        ch.setLevel(log_level)
        ch.setFormatter(formatter)
        root.addHandler(ch)

        logger.info("Logging: level=%s, file=%s", logging.getLevelName(log_level), log_path)

    def _setup_tracker(self):
        if not self.output_dirs:
            return
        tracker_path = Path(self.output_dirs["analysis"]) / self.config.processor.tracker_db_filename
        self.tracker = YearProcessingTracker(tracker_path)
        logger.info("Year tracker: %s", tracker_path)

    def run(self) -> PhenologyResult:
        """Run the pipeline to completion and compute the metrics.

        Blocks until every year of the period has been processed.

        Returns
        -------
        PhenologyResult
            Masked trend plus intermediates, band images and per-year
            diagnostics.

        Raises
        ------
        ContractViolation
            If any stage broke a pipeline invariant.
        SnowfreeError
            If no year of the period produced a summary.
        """
        if self.configure_logging:
            self._setup_logging()
        self._setup_tracker()

        period = self.config.period
        logger.info("=" * 60)
        logger.info("Starting snowfree pipeline: %d-%d", period.t0, period.t1)
        logger.info("=" * 60)
        self._start_time = time.time()

        self.loader = YearLoader(self.config, self.provider, self.year_queue, tracker=self.tracker)
        self.processor = YearProcessor(self.year_queue, self.config, tracker=self.tracker)
        self.loader.start()
        self.processor.start()

        try:
            self._wait_for_processor()
        except KeyboardInterrupt:
            logger.info("Shutdown signal received (Ctrl+C)")
            raise
        finally:
            self.stop()

        if self.processor.fatal_error is not None:
            raise self.processor.fatal_error

        stacks = self.processor.accumulator
        if len(stacks) == 0:
            raise SnowfreeError(f"No year in {period.t0}-{period.t1} produced a summary")

        result = self.metrics.compute(stacks.melt_series(), stacks.acc_series(), self.land_mask)
        return replace(
            result,
            melt_image=stacks.to_band_image("melt"),
            acc_image=stacks.to_band_image("acc"),
            diagnostics=self.processor.get_diagnostics(),
            probe=self.processor.get_probe(),
        )

    def _wait_for_processor(self):
        """Block until the processor drains the queue, logging status."""
        interval = self.config.processor.status_interval
        while self.processor.is_alive():
            self.processor.join(timeout=interval)
            if self.processor.is_alive():
                self._log_status()

    def stop(self):
        """Stop threads and close the tracker. Safe to call multiple times."""
        if self._stopped:
            return
        self._stopped = True

        for name, thread in [("Loader", self.loader), ("Processor", self.processor)]:
            if thread and thread.is_alive():
                logger.info("Stopping %s...", name)
                thread.stop()
                thread.join(timeout=5)
                if thread.is_alive():
                    logger.warning("%s did not stop cleanly", name)

        elapsed = time.time() - self._start_time if self._start_time else 0
        logger.info("=" * 60)
        logger.info("Pipeline stopped. Runtime: %.1f seconds", elapsed)

        if self.tracker:
            stats = self.tracker.get_statistics()
            logger.info("Statistics: total=%d, completed=%d, empty=%d, failed=%d",
                        stats.get('total') or 0, stats.get('completed') or 0,
                        stats.get('empty') or 0, stats.get('failed') or 0)
            self.tracker.close()

        logger.info("=" * 60)

    def _log_status(self):
        logger.info(
            "Status: L=%s P=%s Q=%d years=%d",
            "alive" if self.loader and self.loader.is_alive() else "done",
            "alive" if self.processor and self.processor.is_alive() else "done",
            self.year_queue.qsize(),
            len(self.processor.accumulator) if self.processor else 0,
        )
