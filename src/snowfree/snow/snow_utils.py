"""Utility functions for day-of-year arithmetic and per-pixel regression.

Centralized helpers for:
- Whole-day differences between timestamps
- 1-based day-of-year relative to a series start
- NaN-aware ordinary least-squares fit along one dimension

These support the event encoder and the metrics engine.
"""

import logging

import numpy as np
import pandas as pd
import xarray as xr

__all__ = ['days_between', 'day_of_year', 'year_window', 'linear_fit', 'MAX_EVENT_DOY']

logger = logging.getLogger(__name__)

# Dec 30 of a leap year, the last day inside year_window
MAX_EVENT_DOY = 365


# ============================================================================
# TIME UTILITIES
# ============================================================================

def days_between(start, times: xr.DataArray) -> xr.DataArray:
    """Whole days elapsed from ``start`` to each timestamp.

    Parameters
    ----------
    start : datetime-like
        Reference timestamp (anything ``pd.Timestamp`` accepts).
    times : xr.DataArray
        datetime64 timestamps.

    Returns
    -------
    xr.DataArray
        Integer day counts (floor of the elapsed time).
    """
    origin = np.datetime64(pd.Timestamp(start), "ns")
    delta = times - origin
    return (delta // np.timedelta64(1, "D")).astype(int)


def day_of_year(times: xr.DataArray, start) -> xr.DataArray:
    """1-based day index of each timestamp relative to ``start``.

    The first day of the series is DOY 1. Note this is not the calendar
    day-of-year when ``start`` is not January 1st.
    """
    return days_between(start, times) + 1


def year_window(year: int) -> tuple[pd.Timestamp, pd.Timestamp]:
    """Acquisition window ``[Jan 1 of year, Dec 31 of year)``.

    The end is exclusive, so December 31 is never loaded and the largest
    DOY a year can produce is :data:`MAX_EVENT_DOY` (365, reached on
    December 30 of a leap year). This keeps every real event day below the
    no-event DOY.
    """
    return pd.Timestamp(year=year, month=1, day=1), pd.Timestamp(year=year, month=12, day=31)


# ============================================================================
# REGRESSION
# ============================================================================

def linear_fit(x: xr.DataArray, y: xr.DataArray, dim: str = "time") -> tuple[xr.DataArray, xr.DataArray]:
    """Ordinary least-squares fit ``y = slope * x + intercept`` along ``dim``.

    Only samples where both ``x`` and ``y`` are valid contribute. Cells with
    fewer than two valid samples, or with no spread in ``x`` (all samples
    from the same year), get NaN slope and intercept instead of raising.

    Parameters
    ----------
    x, y : xr.DataArray
        Predictor and response; broadcastable against each other.
    dim : str
        Dimension to fit along.

    Returns
    -------
    slope, intercept : xr.DataArray
        Per-cell coefficients with ``dim`` reduced away.
    """
    x, y = xr.broadcast(x.astype(float), y.astype(float))
    valid = x.notnull() & y.notnull()
    xv = x.where(valid)
    yv = y.where(valid)

    n = valid.sum(dim)
    has_samples = n > 0
    x_mean = xv.sum(dim) / n.where(has_samples)
    y_mean = yv.sum(dim) / n.where(has_samples)

    dx = xv - x_mean
    dy = yv - y_mean
    sxx = (dx * dx).sum(dim)
    sxy = (dx * dy).sum(dim)

    fit_ok = (n >= 2) & (sxx > 0)
    slope = sxy / sxx.where(fit_ok)
    intercept = y_mean - slope * x_mean

    degenerate = int((~fit_ok).sum())
    if degenerate:
        logger.debug("Linear fit: %d cells with fewer than two distinct samples", degenerate)

    return slope, intercept
