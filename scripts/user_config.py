"""snowfree User Configuration.

This is the user-facing configuration file. Modify settings here to customize
the pipeline behavior. Advanced settings are in snowfree.schemas.param.

Usage:
    python scripts/run_snowfree_pipeline.py scripts/user_config.py
    python scripts/run_snowfree_pipeline.py scripts/user_config.py --t0 2005 --t1 2010
"""

CONFIG = {
    # ========================================================================
    # PERIOD & OUTPUT
    # ========================================================================
    "T0": 2003,               # First year (2003 is the first full Aqua year)
    "T1": 2016,               # Last year, inclusive
    "BASE_DIR": "./snowfree_output",  # All outputs go here

    # ========================================================================
    # SENSOR STREAMS
    # ========================================================================
    "SENSOR_A": "MOD10A1",    # Terra daily snow cover
    "SENSOR_B": "MYD10A1",    # Aqua daily snow cover
    "BAND": "NDSI_Snow_Cover",
    "SENSOR_A_PATHS": ["data/MOD10A1_2003_2016.nc"],
    "SENSOR_B_PATHS": ["data/MYD10A1_2003_2016.nc"],

    # ========================================================================
    # LAND MASK
    # ========================================================================
    "LAND_MASK_PATH": "data/land_mask.nc",
    "LAND_MASK_BAND": "land_mask",   # 1 = land

    # ========================================================================
    # SCIENCE SETTINGS
    # ========================================================================
    "COVER_THRESHOLD": 5,            # Cover (%) at or below which a day counts as snow-free
    "SEASON_LENGTH_CEILING": 306,    # Median snow-free season must be shorter than this
    "EMPTY_YEAR_POLICY": "skip",     # "skip" or "sentinel" for years with no fused days

    # ========================================================================
    # PROBE PIXEL (optional; writes the fused series at this location)
    # ========================================================================
    "PROBE_Y": None,
    "PROBE_X": None,
}
