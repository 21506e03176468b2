from .engine import SweepEngine, SweepState

__all__ = [
    "SweepEngine",
    "SweepState",
]
