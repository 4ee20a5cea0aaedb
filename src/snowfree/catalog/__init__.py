"""Raster series providers and land-mask loading."""

from .provider import RasterSeriesProvider, XarraySeriesProvider, load_land_mask

__all__ = ['RasterSeriesProvider', 'XarraySeriesProvider', 'load_land_mask']
