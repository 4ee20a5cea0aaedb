"""Typed raster model over xarray.

A Raster is a 2-D multi-band grid on (y, x); a RasterSeries is an ascending
time-ordered sequence of such grids on (time, y, x). Both wrap an
``xr.Dataset`` whose data variables are the bands. Masked (no-data) cells
are NaN, so every band is stored as float.

Cell-wise operations propagate the mask: a result cell is masked when either
operand cell is masked. Operands must share grid geometry; a mismatch raises
GridMismatch.
"""

import logging
from typing import Callable, Iterator, Sequence

import numpy as np
import pandas as pd
import xarray as xr

from snowfree.contracts import require, assert_same_grid

__all__ = ['Raster', 'RasterSeries']

logger = logging.getLogger(__name__)

GRID_DIMS = ("y", "x")
SERIES_DIMS = ("time", "y", "x")


def _strip_coords(ds: xr.Dataset) -> xr.Dataset:
    """Drop scalar/auxiliary coordinates left over from selections."""
    return ds.reset_coords(drop=True)


class Raster:
    """Multi-band 2-D grid with NaN as the mask.

    Metadata such as the acquisition time (``time_start``) or the year tag
    of a stacked summary lives in the dataset attrs and is read with
    :meth:`get`.
    """

    def __init__(self, ds: xr.Dataset):
        for band in ds.data_vars:
            require(
                ds[band].dims == GRID_DIMS,
                f"Raster contract violated: band '{band}' has dims {ds[band].dims}, expected {GRID_DIMS}"
            )
        self._ds = _strip_coords(ds)

    @classmethod
    def from_array(cls, values, valid=None, name: str = "constant",
                   y: Sequence | None = None, x: Sequence | None = None, **attrs) -> "Raster":
        """Build a single-band raster from an external grid.

        Parameters
        ----------
        values : array-like
            2-D cell values.
        valid : array-like of bool, optional
            Validity bits; False cells are masked. If None, NaN cells in
            ``values`` are the only masked cells.
        name : str
            Band name.
        y, x : sequence, optional
            Cell coordinates (default: integer indices).
        **attrs
            Metadata stored on the raster.
        """
        data = np.asarray(values, dtype=float)
        require(data.ndim == 2, f"Raster contract violated: got {data.ndim}-D values, expected 2-D")
        if valid is not None:
            data = np.where(np.asarray(valid, dtype=bool), data, np.nan)
        coords = {
            "y": np.arange(data.shape[0]) if y is None else np.asarray(y),
            "x": np.arange(data.shape[1]) if x is None else np.asarray(x),
        }
        da = xr.DataArray(data, dims=GRID_DIMS, coords=coords, name=name)
        return cls(da.to_dataset().assign_attrs(attrs))

    @classmethod
    def from_dataarray(cls, da: xr.DataArray, name: str | None = None, **attrs) -> "Raster":
        """Wrap a 2-D DataArray on (y, x) as a single-band raster."""
        name = name or da.name or "constant"
        ds = da.astype(float).rename(name).to_dataset()
        ds.attrs = {**da.attrs, **attrs}
        return cls(ds)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def dataset(self) -> xr.Dataset:
        return self._ds

    @property
    def bands(self) -> list[str]:
        return list(self._ds.data_vars)

    @property
    def shape(self) -> tuple[int, int]:
        return (self._ds.sizes["y"], self._ds.sizes["x"])

    @property
    def attrs(self) -> dict:
        return dict(self._ds.attrs)

    @property
    def values(self) -> np.ndarray:
        """Cell values of a single-band raster (masked cells are NaN)."""
        return self.band_data().values

    @property
    def valid(self) -> np.ndarray:
        """Validity bits of a single-band raster."""
        return self.band_data().notnull().values

    def band_data(self, band: str | None = None) -> xr.DataArray:
        if band is None:
            require(
                len(self.bands) == 1,
                f"Raster contract violated: expected a single band, got {self.bands}"
            )
            band = self.bands[0]
        return self._ds[band]

    def get(self, key: str, default=None):
        """Read a metadata property."""
        return self._ds.attrs.get(key, default)

    def set(self, **attrs) -> "Raster":
        """Return a copy with metadata properties added or replaced."""
        ds = self._ds.copy()
        ds.attrs = {**self._ds.attrs, **attrs}
        return Raster(ds)

    def select(self, band: str, new_name: str | None = None) -> "Raster":
        """Return one band as a raster (optionally renamed), keeping metadata."""
        require(band in self._ds.data_vars, f"Raster contract violated: band '{band}' not found")
        ds = self._ds[[band]]
        if new_name:
            ds = ds.rename({band: new_name})
        return Raster(ds)

    def rename(self, name: str) -> "Raster":
        """Rename the band of a single-band raster."""
        return self.select(self.band_data().name, new_name=name)

    def add_bands(self, other: "Raster") -> "Raster":
        """Append the bands of ``other``; name collisions get a ``_1`` suffix."""
        assert_same_grid(self._ds, other.dataset)
        ds = self._ds.copy()
        for band in other.bands:
            target = f"{band}_1" if band in ds.data_vars else band
            ds[target] = other.dataset[band]
        return Raster(ds)

    # ------------------------------------------------------------------
    # Mask handling
    # ------------------------------------------------------------------

    def unmask(self, value: float) -> "Raster":
        """Fill masked cells with ``value``."""
        return Raster(self._ds.fillna(value))

    def update_mask(self, condition: "Raster") -> "Raster":
        """Mask cells where ``condition`` is zero or masked."""
        assert_same_grid(self._ds, condition.dataset)
        cond = condition.band_data()
        return Raster(self._ds.where(cond.notnull() & (cond != 0)))

    def where(self, condition: "Raster", other: float) -> "Raster":
        """Replace cells where ``condition`` is non-zero with ``other``.

        Masked condition cells leave the raster unchanged.
        """
        assert_same_grid(self._ds, condition.dataset)
        cond = condition.band_data()
        hit = cond.notnull() & (cond != 0)
        return Raster(self._ds.where(~hit, other))

    def replace(self, source: float, target: float) -> "Raster":
        """Recode cells equal to ``source`` as ``target``; masked cells stay masked."""
        return Raster(self._ds.where(self._ds != source, target))

    # ------------------------------------------------------------------
    # Cell-wise operations
    # ------------------------------------------------------------------

    def _binary(self, other, op: Callable) -> "Raster":
        if isinstance(other, Raster):
            assert_same_grid(self._ds, other.dataset)
            rhs = other.band_data()
            rhs_valid = rhs.notnull()
        else:
            rhs = other
            rhs_valid = True

        out = xr.Dataset(attrs={})
        for band in self.bands:
            lhs = self._ds[band]
            out[band] = op(lhs, rhs).astype(float).where(lhs.notnull() & rhs_valid)
        return Raster(out)

    def max(self, other) -> "Raster":
        return self._binary(other, np.maximum)

    def add(self, other) -> "Raster":
        return self._binary(other, lambda a, b: a + b)

    def subtract(self, other) -> "Raster":
        return self._binary(other, lambda a, b: a - b)

    def multiply(self, other) -> "Raster":
        return self._binary(other, lambda a, b: a * b)

    def lt(self, other) -> "Raster":
        return self._binary(other, lambda a, b: a < b)

    def eq(self, other) -> "Raster":
        return self._binary(other, lambda a, b: a == b)

    def neq(self, other) -> "Raster":
        return self._binary(other, lambda a, b: a != b)

    def logical_and(self, other) -> "Raster":
        return self._binary(other, lambda a, b: (a != 0) & (b != 0))

    def __repr__(self) -> str:
        return f"Raster(bands={self.bands}, shape={self.shape}, attrs={self.attrs})"


class RasterSeries:
    """Ascending time-ordered sequence of rasters sharing one grid.

    The time axis holds either datetimes (daily observations) or integer
    year tags (multi-year stacks), one entry per timestamp. Series are
    never mutated; every operation returns a new series.
    """

    def __init__(self, ds: xr.Dataset):
        require("time" in ds.dims, "Series contract violated: missing 'time' dimension")
        for band in ds.data_vars:
            require(
                ds[band].dims == SERIES_DIMS,
                f"Series contract violated: band '{band}' has dims {ds[band].dims}, expected {SERIES_DIMS}"
            )
        times = pd.Index(ds["time"].values)
        require(
            times.is_unique,
            f"Series contract violated: duplicate timestamps {list(times[times.duplicated()].unique())}"
        )
        self._ds = _strip_coords(ds).sortby("time")

    @classmethod
    def from_rasters(cls, rasters: Sequence[Raster], times: Sequence) -> "RasterSeries":
        """Stack rasters along a new time axis."""
        require(len(rasters) > 0, "Series contract violated: no rasters to stack")
        require(
            len(rasters) == len(times),
            f"Series contract violated: {len(rasters)} rasters for {len(times)} times"
        )
        for raster in rasters[1:]:
            assert_same_grid(rasters[0].dataset, raster.dataset)
        ds = xr.concat(
            [r.dataset for r in rasters],
            dim=pd.Index(list(times), name="time"),
            combine_attrs="drop",
        )
        return cls(ds.transpose(*SERIES_DIMS))

    @classmethod
    def from_dataarray(cls, da: xr.DataArray, name: str | None = None) -> "RasterSeries":
        """Wrap a (time, y, x) DataArray as a single-band series."""
        name = name or da.name or "constant"
        ds = da.astype(float).rename(name).to_dataset()
        ds.attrs = {}
        return cls(ds.transpose(*SERIES_DIMS))

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def dataset(self) -> xr.Dataset:
        return self._ds

    @property
    def bands(self) -> list[str]:
        return list(self._ds.data_vars)

    @property
    def times(self) -> np.ndarray:
        return self._ds["time"].values

    def __len__(self) -> int:
        return self._ds.sizes["time"]

    def __iter__(self) -> Iterator[tuple]:
        for i, t in enumerate(self.times):
            yield t, Raster(self._ds.isel(time=i)).set(time_start=t)

    def first(self) -> Raster:
        require(len(self) > 0, "Series contract violated: empty series has no first raster")
        return next(iter(self))[1]

    def first_time(self):
        """First (earliest) timestamp of the series."""
        require(len(self) > 0, "Series contract violated: empty series has no first time")
        return self.times[0]

    def stack(self, band: str | None = None) -> xr.DataArray:
        """Return one band as a (time, y, x) DataArray."""
        if band is None:
            require(
                len(self.bands) == 1,
                f"Series contract violated: expected a single band, got {self.bands}"
            )
            band = self.bands[0]
        require(band in self._ds.data_vars, f"Series contract violated: band '{band}' not found")
        return self._ds[band]

    def select(self, *bands: str) -> "RasterSeries":
        for band in bands:
            require(band in self._ds.data_vars, f"Series contract violated: band '{band}' not found")
        return RasterSeries(self._ds[list(bands)])

    def rename(self, mapping: dict) -> "RasterSeries":
        return RasterSeries(self._ds.rename(mapping))

    # ------------------------------------------------------------------
    # Time operations
    # ------------------------------------------------------------------

    def filter_date(self, start, end) -> "RasterSeries":
        """Keep entries with ``start <= time < end``."""
        times = self._ds["time"]
        keep = (times >= np.datetime64(pd.Timestamp(start))) & (times < np.datetime64(pd.Timestamp(end)))
        return RasterSeries(self._ds.isel(time=np.flatnonzero(keep.values)))

    def inner_join(self, other: "RasterSeries") -> "RasterSeries":
        """Pair entries with identical timestamps and concatenate their bands.

        Entries without an exact match on the other side are dropped
        silently. Bands of ``other`` whose names collide get a ``_1`` suffix.
        """
        assert_same_grid(self._ds, other.dataset)
        common = np.intersect1d(self.times, other.times)
        dropped = len(self) + len(other) - 2 * len(common)
        if dropped:
            logger.debug("Inner join dropped %d unmatched entries (%d paired)",
                         dropped, len(common))

        left = self._ds.sel(time=common)
        right = other.dataset.sel(time=common)
        joined = left.copy()
        for band in right.data_vars:
            target = f"{band}_1" if band in joined.data_vars else band
            joined[target] = right[band]
        return RasterSeries(joined)

    def add_time_band(self, name: str) -> "RasterSeries":
        """Attach a band holding each entry's own timestamp value.

        Integer year tags are used as-is; datetimes become days since
        1970-01-01.
        """
        time = self._ds["time"]
        if np.issubdtype(time.dtype, np.datetime64):
            time = (time - np.datetime64("1970-01-01")) / np.timedelta64(1, "D")
        template = self._ds[self.bands[0]]
        band = time.astype(float).broadcast_like(template).transpose(*SERIES_DIMS)
        return RasterSeries(self._ds.assign({name: band}))

    def sample(self, y, x) -> pd.DataFrame:
        """Time series of all bands at the cell nearest to (y, x)."""
        point = self._ds.sel(y=y, x=x, method="nearest")
        return point.to_dataframe()[self.bands]

    def __repr__(self) -> str:
        return f"RasterSeries(bands={self.bands}, n={len(self)})"
