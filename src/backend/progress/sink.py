"""
Progress reporting surface consumed by the engines.

The percentages reported by the engines are approximate UX signals
(the total item count is unknown while scrolling), never completion contracts.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Protocol


class ProgressSink(Protocol):
    def update(self, percent: float, status: str) -> None: ...

    def set_sub_status(self, text: str) -> None: ...


class NullProgress:
    """Sink that drops every update."""

    def update(self, percent: float, status: str) -> None:
        return None

    def set_sub_status(self, text: str) -> None:
        return None


@dataclass(frozen=True)
class ProgressSnapshot:
    percent: float = 0.0
    status: str = ""
    sub_status: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "percent": round(self.percent, 2),
            "status": self.status,
            "sub_status": self.sub_status,
        }


class RunProgress:
    """
    In-memory sink backing a scheduled run.

    Keeps only the latest snapshot; readers (API handlers) get an immutable copy.
    A new status clears the previous sub-status.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot = ProgressSnapshot()

    def update(self, percent: float, status: str) -> None:
        with self._lock:
            self._snapshot = ProgressSnapshot(percent=float(percent), status=status, sub_status="")

    def set_sub_status(self, text: str) -> None:
        with self._lock:
            self._snapshot = ProgressSnapshot(
                percent=self._snapshot.percent,
                status=self._snapshot.status,
                sub_status=text,
            )

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return self._snapshot
