"""Grid contract.

Enforces the guarantee that every raster in a run shares identical grid
geometry and cell alignment before any cell-wise operation.
"""

import numpy as np
import xarray as xr
from snowfree.contracts.base import require
from snowfree.contracts.failure import GridMismatch


def assert_same_grid(a: xr.Dataset | xr.DataArray, b: xr.Dataset | xr.DataArray,
                     dims: tuple = ("y", "x")) -> None:
    """Enforce identical geometry of two gridded objects.

    Parameters
    ----------
    a, b : xr.Dataset or xr.DataArray
        Objects carrying the spatial dimensions in ``dims``.

    dims : tuple, optional
        Spatial dimension names (default ("y", "x")).

    Raises
    ------
    GridMismatch
        If a spatial dimension is missing, sizes differ, or coordinates
        are not cell-aligned.
    """
    for dim in dims:
        require(
            dim in a.dims and dim in b.dims,
            f"Grid contract violated: missing '{dim}' dimension",
            GridMismatch,
        )
        require(
            a.sizes[dim] == b.sizes[dim],
            f"Grid contract violated: '{dim}' size {a.sizes[dim]} != {b.sizes[dim]}",
            GridMismatch,
        )
        if dim in a.coords and dim in b.coords:
            require(
                np.array_equal(a[dim].values, b[dim].values),
                f"Grid contract violated: '{dim}' coordinates are not aligned",
                GridMismatch,
            )
