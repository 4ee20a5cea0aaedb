"""Snow-phenology stages: fusion, DOY encoding, yearly reduction, metrics."""

from .fuser import StreamFuser
from .event_encoder import EventEncoder
from .year_reducer import YearReducer, YearSummary
from .metrics import PhenologyMetrics, PhenologyResult

__all__ = [
    'StreamFuser',
    'EventEncoder',
    'YearReducer',
    'YearSummary',
    'PhenologyMetrics',
    'PhenologyResult',
]
