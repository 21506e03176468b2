"""
Harvest: incremental scan of a lazily rendered list followed by deep analysis.
"""

from .analysis import AnalysisPipeline
from .engine import HarvestEngine
from .state import HarvestPhase, HarvestState

__all__ = [
    "AnalysisPipeline",
    "HarvestEngine",
    "HarvestPhase",
    "HarvestState",
]
