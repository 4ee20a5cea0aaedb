"""Formal pipeline invariants.

This file documents what each stage MUST produce. This is architecture, not code.
Use this file as a reviewer anchor and system reference.
"""

PIPELINE_INVARIANTS = {
    "grid": [
        "All rasters in one run share 'y' and 'x' sizes and coordinates",
        "Masked cells are NaN; every other value is a valid observation",
    ],

    "fusion": [
        "Sensor streams are paired by exact date (inner join)",
        "Fused value is the larger of the valid sensor readings",
        "Cells with no valid reading from either sensor are masked",
        "A valid zero reading survives fusion as 0",
    ],

    "encoding": [
        "DOY is days since the first day of the year's series, 1-based",
        "Cells with cover <= threshold hold their DOY; others are masked",
    ],

    "reduction": [
        "melt = min(DOY), acc = max(DOY) over unmasked days",
        "No qualifying day -> melt = acc = no-event DOY (366)",
        "No masked cells in a year summary",
    ],

    "stacking": [
        "Years are strictly ascending",
        "Melt and accumulation stacks have equal length and year tags",
    ],

    "metrics": [
        "snowfree = snowacc - snowmelt for every paired year",
        "Validity mask = median(snowfree) < season length ceiling",
        "Trend bands are 'scale' (slope) and 'offset' (intercept)",
        "Cells with fewer than two distinct years have masked trend",
    ],
}

# Which stages are optional vs required
STAGE_REQUIREMENTS = {
    "grid": "REQUIRED",
    "fusion": "REQUIRED",
    "encoding": "REQUIRED",
    "reduction": "REQUIRED",
    "stacking": "REQUIRED",
    "metrics": "REQUIRED",
}
