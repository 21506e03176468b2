from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from src.shared.media.models import SaveMode
from src.shared.stats.metrics import compute_items_per_s, compute_runtime_s
from src.shared.task_status import TaskStatus

from ..progress.cancellation import CancellationToken
from ..progress.sink import RunProgress


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_utc_z(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class JobKind(str, Enum):
    HARVEST = "harvest"
    SWEEP = "sweep"


@dataclass
class Run:
    run_id: str
    target: str  # list page url; one active run per target
    kind: JobKind
    status: TaskStatus
    created_at: datetime
    updated_at: datetime
    mode: SaveMode = SaveMode.ALL  # harvest only
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    error: Optional[str] = None
    # Set by the runner: {"items": int, ...} plus kind-specific fields.
    result: Optional[dict[str, Any]] = None
    token: CancellationToken = field(default_factory=CancellationToken, repr=False)
    progress: RunProgress = field(default_factory=RunProgress, repr=False)

    def items_processed(self) -> int:
        if not self.result:
            return 0
        try:
            return int(self.result.get("items", 0) or 0)
        except (TypeError, ValueError):
            return 0

    def to_public_dict(self, *, now: Optional[datetime] = None) -> dict[str, Any]:
        runtime_s = compute_runtime_s(self.started_at, self.finished_at, now=now)
        return {
            "run_id": self.run_id,
            "target": self.target,
            "kind": self.kind.value,
            "mode": self.mode.value if self.kind == JobKind.HARVEST else None,
            "status": self.status.value,
            "created_at": format_utc_z(self.created_at),
            "updated_at": format_utc_z(self.updated_at),
            "started_at": format_utc_z(self.started_at),
            "finished_at": format_utc_z(self.finished_at),
            "cancel_requested": self.token.cancelled,
            "progress": self.progress.snapshot().to_dict(),
            "runtime_s": round(runtime_s, 3),
            "items_per_s": round(compute_items_per_s(self.items_processed(), runtime_s), 3),
            "result": self.result,
            "error": self.error,
        }
