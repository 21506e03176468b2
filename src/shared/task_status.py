"""
Job status enum shared by the scheduler, the API layer and tests.

Lifecycle:
    Idle -> Queued -> Running -> Done / Failed / Cancelled
"""

from __future__ import annotations

from enum import Enum


class TaskStatus(str, Enum):
    IDLE = "Idle"
    QUEUED = "Queued"
    RUNNING = "Running"
    DONE = "Done"
    FAILED = "Failed"
    CANCELLED = "Cancelled"

    def is_locked(self) -> bool:
        """A target with a Queued/Running job cannot accept another job."""
        return self in (TaskStatus.QUEUED, TaskStatus.RUNNING)

    def is_finished(self) -> bool:
        return self in (TaskStatus.DONE, TaskStatus.FAILED, TaskStatus.CANCELLED)
