from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def _ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def compute_runtime_s(
    started_at: Optional[datetime],
    finished_at: Optional[datetime],
    *,
    now: Optional[datetime] = None,
) -> float:
    """
    Compute job runtime in seconds.

    Contract:
    - Runtime starts when the job enters Running (started_at).
    - Queued time is not included (started_at stays None while Queued).
    - An unfinished job is measured against `now`.
    """
    if started_at is None:
        return 0.0

    if now is None:
        now = datetime.now(timezone.utc)

    start = _ensure_utc(started_at)
    end = _ensure_utc(finished_at) if finished_at is not None else _ensure_utc(now)

    return max(0.0, float((end - start).total_seconds()))


def compute_items_per_s(items_processed: int, runtime_s: float) -> float:
    """
    items_per_s = items_processed / runtime   (runtime > 0)

    items_processed is the harvest's unique item count or the sweep's
    total_processed counter.
    """
    if runtime_s <= 0:
        return 0.0
    return float(max(0, int(items_processed))) / float(runtime_s)
