"""Phenology stage contracts.

Enforces the guarantees between fusion, DOY encoding, yearly reduction
and multi-year stacking.
"""

from typing import TYPE_CHECKING

import numpy as np
from snowfree.contracts.base import require

if TYPE_CHECKING:
    from snowfree.raster.model import RasterSeries
    from snowfree.snow.year_reducer import YearSummary
    from snowfree.pipeline.accumulator import YearStackAccumulator


def assert_cover_series(series: "RasterSeries", cover_band: str) -> None:
    """Enforce fused cover series contract.

    Called after stream fusion. Verifies the cover band exists, is laid out
    as (time, y, x), and every unmasked value is a cover fraction.

    Raises
    ------
    ContractViolation
        If any invariant is violated
    """
    require(
        cover_band in series.bands,
        f"Cover contract violated: band '{cover_band}' not found"
    )
    cover = series.stack(cover_band)
    require(
        cover.dims == ("time", "y", "x"),
        f"Cover contract violated: dims are {cover.dims}, expected ('time', 'y', 'x')"
    )
    if cover.size:
        values = cover.values
        require(
            not np.any(values[~np.isnan(values)] < 0),
            "Cover contract violated: negative cover after fusion (sentinel leaked)"
        )


def assert_event_series(series: "RasterSeries", doy_band: str, no_event_code: int) -> None:
    """Enforce DOY event series contract.

    Unmasked cells hold a 1-based day of year; the no-event code never
    survives encoding.
    """
    require(
        doy_band in series.bands,
        f"Event contract violated: band '{doy_band}' not found"
    )
    values = series.stack(doy_band).values
    valid = values[~np.isnan(values)]
    if valid.size:
        require(
            valid.min() >= 1,
            f"Event contract violated: DOY below 1 (min={valid.min()})"
        )
        require(
            not np.any(valid == no_event_code),
            f"Event contract violated: no-event code {no_event_code} left unmasked"
        )


def assert_year_summary(summary: "YearSummary", no_event_doy: int) -> None:
    """Enforce yearly reduction contract.

    Every cell is unmasked, and either ``melt <= acc`` or both equal the
    no-event DOY.
    """
    melt = summary.melt.values
    acc = summary.acc.values
    require(
        melt.shape == acc.shape,
        f"Year contract violated: melt shape {melt.shape} != acc shape {acc.shape}"
    )
    require(
        not np.isnan(melt).any() and not np.isnan(acc).any(),
        f"Year contract violated: masked cells in {summary.year} summary"
    )
    both_sentinel = (melt == no_event_doy) & (acc == no_event_doy)
    require(
        bool(np.all((melt <= acc) | both_sentinel)),
        f"Year contract violated: melt > acc in {summary.year}"
    )


def assert_stacks_aligned(accumulator: "YearStackAccumulator") -> None:
    """Enforce 1:1 year alignment of the melt and accumulation stacks."""
    require(
        len(accumulator.melt) == len(accumulator.acc),
        f"Stack contract violated: {len(accumulator.melt)} melt vs "
        f"{len(accumulator.acc)} acc entries"
    )
    for melt, acc in zip(accumulator.melt, accumulator.acc):
        require(
            melt.get("time_start") == acc.get("time_start"),
            f"Stack contract violated: melt year {melt.get('time_start')} "
            f"paired with acc year {acc.get('time_start')}"
        )
