"""
Progress and cancellation primitives shared by the engines and the scheduler.
"""

from .cancellation import CancellationToken, OperationCancelledError
from .sink import NullProgress, ProgressSink, ProgressSnapshot, RunProgress

__all__ = [
    "CancellationToken",
    "NullProgress",
    "OperationCancelledError",
    "ProgressSink",
    "ProgressSnapshot",
    "RunProgress",
]
