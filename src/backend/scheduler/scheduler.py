from __future__ import annotations

import asyncio
import json
import logging
import uuid
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from src.shared.media.models import SaveMode
from src.shared.task_status import TaskStatus

from ..progress.cancellation import OperationCancelledError
from .config import SchedulerConfig
from .models import JobKind, Run, utc_now


logger = logging.getLogger(__name__)


class SchedulerConflictError(RuntimeError):
    pass


RunnerFn = Callable[[Run], Awaitable[Optional[dict[str, Any]]]]


class Scheduler:
    """
    In-memory FIFO job scheduler with per-target mutual exclusion.

    - Global FIFO queue
    - MaxConcurrent gate (from SchedulerConfig)
    - One active run per target url (Queued/Running)
    - Cancel is cooperative for Running jobs: the run's token is set and the
      engine stops at its next poll point
    """

    def __init__(
        self,
        *,
        config: SchedulerConfig,
        runs_dir: Path,
        runner: RunnerFn,
    ) -> None:
        self._config = config
        self._runs_dir = Path(runs_dir)
        self._runner = runner

        self._lock = asyncio.Lock()
        self._queue: list[str] = []
        self._running_tasks: dict[str, asyncio.Task[None]] = {}
        self._runs: dict[str, Run] = {}
        self._active_run_by_target: dict[str, str] = {}
        self._target_status: dict[str, TaskStatus] = {}

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------

    async def enqueue(
        self,
        *,
        target: str,
        kind: JobKind | str,
        mode: SaveMode | str = SaveMode.ALL,
    ) -> Run:
        if not target or not target.strip():
            raise ValueError("target 不能为空")
        try:
            job_kind = JobKind(kind)
        except ValueError as exc:
            raise ValueError("kind 必须是 harvest 或 sweep") from exc
        save_mode = mode if isinstance(mode, SaveMode) else SaveMode.parse(mode)

        async with self._lock:
            if target in self._active_run_by_target:
                raise SchedulerConflictError(f"目标 {target} 已有活跃任务（Queued/Running）")

            now = utc_now()
            # FIFO: a non-empty queue means new jobs go to the tail, never straight to Running.
            should_queue = bool(self._queue) or len(self._running_tasks) >= self._config.max_concurrent
            run = Run(
                run_id=str(uuid.uuid4()),
                target=target,
                kind=job_kind,
                mode=save_mode,
                status=TaskStatus.QUEUED,
                created_at=now,
                updated_at=now,
            )

            self._runs[run.run_id] = run
            self._active_run_by_target[target] = run.run_id
            self._target_status[target] = TaskStatus.QUEUED

            if should_queue:
                self._queue.append(run.run_id)
                self._persist_run(run)
            else:
                self._start_run_locked(run.run_id)

            self._try_start_queued_locked()
            return run

    async def cancel(self, *, target: str) -> TaskStatus:
        if not target or not target.strip():
            raise ValueError("target 不能为空")

        async with self._lock:
            run_id = self._active_run_by_target.get(target)
            if not run_id:
                return self._target_status.get(target, TaskStatus.IDLE)

            run = self._runs.get(run_id)
            if not run:
                self._active_run_by_target.pop(target, None)
                self._target_status[target] = TaskStatus.IDLE
                return TaskStatus.IDLE

            if run.status == TaskStatus.QUEUED:
                self._queue = [rid for rid in self._queue if rid != run_id]
                run.token.cancel()
                run.status = TaskStatus.CANCELLED
                run.updated_at = utc_now()
                self._persist_run(run)
                self._active_run_by_target.pop(target, None)
                self._target_status[target] = TaskStatus.IDLE
                return TaskStatus.IDLE

            if run.status == TaskStatus.RUNNING:
                run.token.cancel()
                run.progress.set_sub_status("Cancelling...")
                # The run wrapper settles the final status once the engine returns.
                return TaskStatus.RUNNING

            self._active_run_by_target.pop(target, None)
            self._target_status[target] = run.status
            return run.status

    async def get_run(self, run_id: str) -> Optional[Run]:
        async with self._lock:
            return self._runs.get(run_id)

    async def get_target_state(self, *, target: str) -> dict[str, Any]:
        if not target or not target.strip():
            raise ValueError("target 不能为空")

        async with self._lock:
            return self._target_state_locked(target)

    async def snapshot(self) -> dict[str, Any]:
        async with self._lock:
            queued = []
            for rid in self._queue:
                run = self._runs.get(rid)
                if run:
                    queued.append({"run_id": rid, "target": run.target, "kind": run.kind.value})

            running = []
            for rid in self._running_tasks.keys():
                run = self._runs.get(rid)
                if run:
                    running.append({"run_id": rid, "target": run.target, "kind": run.kind.value})

            targets = [self._target_state_locked(t) for t in sorted(self._target_status.keys())]

            return {
                "max_concurrent": self._config.max_concurrent,
                "running_count": len(self._running_tasks),
                "queued_count": len(self._queue),
                "running": running,
                "queued": queued,
                "targets": targets,
            }

    async def reschedule(self) -> None:
        """
        Called when max_concurrent changes (or as a manual kick) to fill available slots.
        """
        async with self._lock:
            self._try_start_queued_locked()

    async def wait_idle(self) -> None:
        """Wait until every running task has finished (queued jobs get promoted meanwhile)."""
        while True:
            async with self._lock:
                tasks = list(self._running_tasks.values())
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)

    # ---------------------------------------------------------------------
    # Internals (lock must be held where indicated)
    # ---------------------------------------------------------------------

    def _target_state_locked(self, target: str) -> dict[str, Any]:
        status = self._target_status.get(target, TaskStatus.IDLE)
        run_id = self._active_run_by_target.get(target)
        queued_position: Optional[int] = None
        if run_id and run_id in self._queue:
            queued_position = self._queue.index(run_id) + 1
        return {
            "target": target,
            "status": status,
            "run_id": run_id,
            "queued_position": queued_position,
        }

    def _persist_run(self, run: Run) -> None:
        try:
            self._runs_dir.mkdir(parents=True, exist_ok=True)
            path = self._runs_dir / f"{run.run_id}.json"
            path.write_text(json.dumps(run.to_public_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as exc:
            # In-memory state is authoritative; a failed write must not block scheduling.
            logger.warning("Failed to persist run %s: %s", run.run_id, exc)

    def _start_run_locked(self, run_id: str) -> None:
        run = self._runs.get(run_id)
        if not run:
            return

        now = utc_now()
        run.status = TaskStatus.RUNNING
        run.started_at = now
        run.updated_at = now
        self._target_status[run.target] = TaskStatus.RUNNING
        self._persist_run(run)

        task = asyncio.create_task(self._run_wrapper(run_id), name=f"fav-run-{run.kind.value}-{run_id}")
        self._running_tasks[run_id] = task

    def _try_start_queued_locked(self) -> None:
        while len(self._running_tasks) < self._config.max_concurrent and self._queue:
            run_id = self._queue.pop(0)
            run = self._runs.get(run_id)
            if not run:
                continue
            if run.status != TaskStatus.QUEUED:
                continue
            self._start_run_locked(run_id)

    async def _run_wrapper(self, run_id: str) -> None:
        run = self._runs.get(run_id)
        if not run:
            return

        final_status: TaskStatus
        error: Optional[str] = None
        try:
            run.result = await self._runner(run)
            final_status = TaskStatus.CANCELLED if run.token.cancelled else TaskStatus.DONE
        except (OperationCancelledError, asyncio.CancelledError):
            final_status = TaskStatus.CANCELLED
        except Exception as exc:  # noqa: BLE001 - surface as string to UI
            logger.exception("Run %s (%s) failed", run_id, run.kind.value)
            final_status = TaskStatus.FAILED
            error = str(exc)

        await self._finish_run(run_id, final_status=final_status, error=error)

    async def _finish_run(self, run_id: str, *, final_status: TaskStatus, error: Optional[str]) -> None:
        async with self._lock:
            run = self._runs.get(run_id)
            if not run:
                self._running_tasks.pop(run_id, None)
                return

            target = run.target
            now = utc_now()
            run.status = final_status
            run.error = error
            run.finished_at = now
            run.updated_at = now
            self._persist_run(run)

            self._running_tasks.pop(run_id, None)
            if self._active_run_by_target.get(target) == run_id:
                self._active_run_by_target.pop(target, None)
            self._target_status[target] = final_status

            self._try_start_queued_locked()
