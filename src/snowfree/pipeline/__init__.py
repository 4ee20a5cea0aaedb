"""Threaded year pipeline: loader, processor, accumulator, tracker, orchestrator."""

from .accumulator import YearStackAccumulator
from .year_tracker import YearProcessingTracker
from .loader import YearData, YearLoader
from .processor import YearProcessor
from .orchestrator import PipelineOrchestrator

__all__ = [
    'YearStackAccumulator',
    'YearProcessingTracker',
    'YearData',
    'YearLoader',
    'YearProcessor',
    'PipelineOrchestrator',
]
