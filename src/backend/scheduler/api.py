from __future__ import annotations

from typing import Any, Literal, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from src.shared.task_status import TaskStatus
from src.shared.validators.page_url import validate_page_url

from .models import JobKind
from .scheduler import Scheduler, SchedulerConflictError


class HarvestIn(BaseModel):
    target: str = Field(min_length=1)
    mode: Literal["images", "videos", "all"] = "all"


class SweepIn(BaseModel):
    target: str = Field(min_length=1)


class CancelIn(BaseModel):
    target: str = Field(min_length=1)


class TargetStateOut(BaseModel):
    target: str
    status: TaskStatus
    run_id: Optional[str] = None
    queued_position: Optional[int] = None


class SchedulerSnapshotOut(BaseModel):
    max_concurrent: int
    running_count: int
    queued_count: int
    running: list[dict[str, str]]
    queued: list[dict[str, str]]
    targets: list[TargetStateOut]


def _normalize_target(target: str) -> str:
    result = validate_page_url(target)
    if not result.valid or result.url is None:
        raise HTTPException(status_code=400, detail=result.error or "URL 格式无效")
    return result.url


def create_scheduler_router(*, scheduler: Scheduler) -> APIRouter:
    router = APIRouter(prefix="/api/jobs", tags=["jobs"])

    async def _target_state(target: str) -> TargetStateOut:
        state = await scheduler.get_target_state(target=target)
        return TargetStateOut(**state)

    async def _enqueue(target: str, kind: JobKind, mode: str = "all") -> TargetStateOut:
        try:
            await scheduler.enqueue(target=target, kind=kind, mode=mode)
        except SchedulerConflictError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return await _target_state(target)

    @router.get("/state", response_model=SchedulerSnapshotOut)
    async def get_state() -> SchedulerSnapshotOut:
        snap = await scheduler.snapshot()
        return SchedulerSnapshotOut(
            max_concurrent=snap["max_concurrent"],
            running_count=snap["running_count"],
            queued_count=snap["queued_count"],
            running=snap["running"],
            queued=snap["queued"],
            targets=[TargetStateOut(**t) for t in snap["targets"]],
        )

    @router.get("/runs/{run_id}")
    async def get_run(run_id: str) -> dict[str, Any]:
        run = await scheduler.get_run(run_id)
        if run is None:
            raise HTTPException(status_code=404, detail=f"未找到任务：{run_id}")
        return run.to_public_dict()

    @router.post("/harvest", response_model=TargetStateOut)
    async def start_harvest(body: HarvestIn) -> TargetStateOut:
        return await _enqueue(_normalize_target(body.target), JobKind.HARVEST, body.mode)

    @router.post("/sweep", response_model=TargetStateOut)
    async def start_sweep(body: SweepIn) -> TargetStateOut:
        return await _enqueue(_normalize_target(body.target), JobKind.SWEEP)

    @router.post("/cancel", response_model=TargetStateOut)
    async def cancel_run(body: CancelIn) -> TargetStateOut:
        target = _normalize_target(body.target)
        try:
            await scheduler.cancel(target=target)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return await _target_state(target)

    return router
