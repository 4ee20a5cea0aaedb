"""`snowfree` - fused snow phenology metrics and melt-day trends.

Derives first snow-melt day, snow-accumulation day and snow-free season
length per pixel from two redundant daily snow-cover streams (e.g. MODIS
Terra and Aqua), and fits a multi-year melt-day trend.

Subpackages:
- raster: Typed Raster / RasterSeries model over xarray
- snow: Stream fusion, DOY event encoding, yearly reduction, derived metrics
- pipeline: Year loader, processor, accumulator, tracker, orchestrator
- catalog: Raster time-series providers
- schemas: Pydantic configuration
"""

__version__ = "0.1.0"
