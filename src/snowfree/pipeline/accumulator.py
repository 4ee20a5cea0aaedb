"""Immutable multi-year accumulator for the melt and accumulation stacks."""

import logging
from dataclasses import dataclass, replace

from snowfree.raster.model import Raster, RasterSeries
from snowfree.contracts import require, assert_same_grid, assert_stacks_aligned

__all__ = ['YearStackAccumulator']

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class YearStackAccumulator:
    """Year-aligned melt and accumulation stacks.

    Folded through the year loop: every ``add`` returns a new accumulator,
    so both stacks always grow together and stay the same length.

    Example::

        acc = YearStackAccumulator()
        for summary in summaries:
            acc = acc.add(summary)
        melt = acc.melt_series()
    """
    melt: tuple[Raster, ...] = ()
    acc: tuple[Raster, ...] = ()
    melt_name: str = "snowmelt"
    acc_name: str = "snowacc"

    @property
    def years(self) -> list[int]:
        return [raster.get("time_start") for raster in self.melt]

    def __len__(self) -> int:
        return len(self.melt)

    def add(self, summary) -> "YearStackAccumulator":
        """Append one YearSummary; years must be strictly ascending.

        Parameters
        ----------
        summary : YearSummary
            Melt and accumulation rasters for ``summary.year``.

        Returns
        -------
        YearStackAccumulator
            New accumulator with ``melt`` tagged ``melt_name`` and ``acc``
            tagged ``acc_name``, both timestamped with the year.
        """
        years = self.years
        require(
            not years or summary.year > years[-1],
            f"Stack contract violated: year {summary.year} added after {years[-1] if years else None}"
        )
        if self.melt:
            assert_same_grid(self.melt[0].dataset, summary.melt.dataset)

        melt = summary.melt.rename(self.melt_name).set(time_start=summary.year)
        acc = summary.acc.rename(self.acc_name).set(time_start=summary.year)
        updated = replace(self, melt=self.melt + (melt,), acc=self.acc + (acc,))

        assert_stacks_aligned(updated)
        logger.debug("Accumulated year %d (%d years)", summary.year, len(updated))
        return updated

    def melt_series(self) -> RasterSeries:
        """Melt stack as a RasterSeries indexed by year."""
        return RasterSeries.from_rasters(self.melt, self.years)

    def acc_series(self) -> RasterSeries:
        """Accumulation stack as a RasterSeries indexed by year."""
        return RasterSeries.from_rasters(self.acc, self.years)

    def to_band_image(self, stack: str) -> Raster:
        """Flatten a stack into one multi-band raster.

        Bands are named ``"{year}_{name}"`` (e.g. ``2003_snowmelt``) in
        ascending year order.

        Parameters
        ----------
        stack : str
            ``"melt"`` or ``"acc"``.
        """
        require(stack in ("melt", "acc"), f"Unknown stack: {stack}")
        rasters = self.melt if stack == "melt" else self.acc
        require(len(rasters) > 0, "Stack contract violated: cannot flatten an empty stack")

        image = None
        for raster in rasters:
            year = raster.get("time_start")
            band = raster.rename(f"{year}_{raster.bands[0]}")
            image = band if image is None else image.add_bands(band)
        return image
