"""Raster series providers.

The pipeline only needs one capability from its imagery catalog: "give me
this band of this dataset between these dates, as a RasterSeries". Any
object with a matching ``query`` method can serve; XarraySeriesProvider
adapts in-memory or NetCDF-backed xarray datasets.
"""

import logging
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol, Sequence, Union, runtime_checkable

import numpy as np
import pandas as pd
import xarray as xr

from snowfree.raster.model import Raster, RasterSeries
from snowfree.contracts import require

__all__ = ['RasterSeriesProvider', 'XarraySeriesProvider', 'load_land_mask']

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@runtime_checkable
class RasterSeriesProvider(Protocol):
    """Catalog returning a band of a dataset over a half-open date range."""

    def query(self, dataset_id: str, band: str, start, end) -> RasterSeries:
        ...


def _canonical_names(ds: xr.Dataset, coord_names: Mapping[str, str]) -> xr.Dataset:
    """Rename dataset coordinates to the pipeline's time/y/x names."""
    mapping = {
        source: canonical
        for canonical, source in coord_names.items()
        if source != canonical and (source in ds.dims or source in ds.coords)
    }
    return ds.rename(mapping) if mapping else ds


def _open_netcdf(paths: Union[PathLike, Sequence[PathLike]]) -> xr.Dataset:
    if isinstance(paths, (str, Path)):
        paths = [paths]
    datasets = [xr.open_dataset(path, engine="netcdf4") for path in paths]
    if len(datasets) == 1:
        return datasets[0]
    return xr.concat(datasets, dim="time").sortby("time")


class XarraySeriesProvider:
    """Serve RasterSeries out of xarray datasets keyed by dataset id.

    Parameters
    ----------
    datasets : dict
        ``{dataset_id: xr.Dataset}``; each dataset has the requested bands
        on (time, y, x).
    coord_names : dict, optional
        Mapping of canonical coordinate names (``time``, ``y``, ``x``) to
        the names used in the datasets (e.g. ``{"y": "lat", "x": "lon"}``).

    Examples
    --------
    >>> provider = XarraySeriesProvider.from_netcdf({
    ...     "MOD10A1": ["mod_2003.nc", "mod_2004.nc"],
    ...     "MYD10A1": ["myd_2003.nc", "myd_2004.nc"],
    ... })
    >>> series = provider.query("MOD10A1", "NDSI_Snow_Cover", "2003-01-01", "2004-01-01")
    """

    def __init__(self, datasets: Dict[str, xr.Dataset],
                 coord_names: Optional[Mapping[str, str]] = None):
        coord_names = dict(coord_names or {})
        self.datasets = {
            dataset_id: _canonical_names(ds, coord_names)
            for dataset_id, ds in datasets.items()
        }
        logger.info("XarraySeriesProvider initialized: %s", sorted(self.datasets))

    @classmethod
    def from_netcdf(cls, paths: Dict[str, Union[PathLike, Sequence[PathLike]]],
                    coord_names: Optional[Mapping[str, str]] = None) -> "XarraySeriesProvider":
        """Open one NetCDF file (or several, concatenated on time) per dataset."""
        return cls({dataset_id: _open_netcdf(p) for dataset_id, p in paths.items()}, coord_names)

    def query(self, dataset_id: str, band: str, start, end) -> RasterSeries:
        """Return ``band`` of ``dataset_id`` with ``start <= time < end``.

        Raises
        ------
        KeyError
            If the dataset or band is unknown.
        """
        if dataset_id not in self.datasets:
            raise KeyError(f"Unknown dataset: {dataset_id}")
        ds = self.datasets[dataset_id]
        if band not in ds.data_vars:
            raise KeyError(f"Band '{band}' not in dataset {dataset_id}")

        times = ds["time"]
        keep = (times >= np.datetime64(pd.Timestamp(start))) & (times < np.datetime64(pd.Timestamp(end)))
        subset = ds[band].isel(time=np.flatnonzero(keep.values))

        logger.debug("Query %s/%s [%s, %s): %d entries", dataset_id, band, start, end, subset.sizes["time"])
        return RasterSeries.from_dataarray(subset.transpose("time", "y", "x"), name=band)


def load_land_mask(path: PathLike, band: str,
                   coord_names: Optional[Mapping[str, str]] = None) -> Raster:
    """Read a land mask band from NetCDF as a single-band Raster.

    A leading time dimension, if present, is reduced to its first entry.
    """
    ds = _canonical_names(xr.open_dataset(path, engine="netcdf4"), dict(coord_names or {}))
    require(band in ds.data_vars, f"Land mask band '{band}' not found in {path}")
    da = ds[band]
    if "time" in da.dims:
        da = da.isel(time=0)
    return Raster.from_dataarray(da.transpose("y", "x").load(), name=band)
