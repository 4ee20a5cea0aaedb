"""Raster and RasterSeries model."""

from .model import Raster, RasterSeries

__all__ = ['Raster', 'RasterSeries']
