"""
Tests for scheduler FIFO queue, per-target locking and cancel behavior.

Covers:
1. MaxConcurrent=1: first target Running, the rest Queued in FIFO order
2. Running completes -> queue head transitions to Running
3. Queued Cancel removes from queue and unlocks the target immediately
4. Running Cancel is cooperative: the token is set, the run ends Cancelled
5. A second job for a locked target is rejected
6. Runner failure -> Failed with the error message
"""

import asyncio
import json
import shutil
import tempfile
import unittest
from pathlib import Path

from src.backend.progress.cancellation import OperationCancelledError
from src.backend.scheduler.config import SchedulerConfig
from src.backend.scheduler.models import JobKind, Run
from src.backend.scheduler.scheduler import Scheduler, SchedulerConflictError
from src.shared.media.models import SaveMode
from src.shared.task_status import TaskStatus


T1 = "https://site.test/favorites/1"
T2 = "https://site.test/favorites/2"
T3 = "https://site.test/favorites/3"


class SchedulerTestCase(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.runs_dir = Path(self.temp_dir) / "runs"
        self.release: dict[str, asyncio.Event] = {}
        self.started: dict[str, asyncio.Event] = {}

        async def controllable_runner(run: Run):
            if run.target in self.started:
                self.started[run.target].set()
            if run.target in self.release:
                await self.release[run.target].wait()
            return {"items": 3}

        self.runner_fn = controllable_runner

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _scheduler(self, max_concurrent: int = 1, runner=None) -> Scheduler:
        return Scheduler(
            config=SchedulerConfig(max_concurrent=max_concurrent),
            runs_dir=self.runs_dir,
            runner=runner or self.runner_fn,
        )

    def _hold(self, *targets: str) -> None:
        for t in targets:
            self.release[t] = asyncio.Event()
            self.started[t] = asyncio.Event()


class TestFifoQueueing(SchedulerTestCase):
    def test_one_running_rest_queued_in_order(self):
        async def run_test():
            self._hold(T1, T2, T3)
            scheduler = self._scheduler(max_concurrent=1)

            await scheduler.enqueue(target=T1, kind="harvest", mode="images")
            await scheduler.enqueue(target=T2, kind="sweep")
            await scheduler.enqueue(target=T3, kind=JobKind.HARVEST)
            await asyncio.wait_for(self.started[T1].wait(), timeout=1.0)

            snap = await scheduler.snapshot()
            self.assertEqual(snap["running_count"], 1)
            self.assertEqual(snap["queued_count"], 2)
            self.assertEqual([q["target"] for q in snap["queued"]], [T2, T3])
            self.assertEqual([q["kind"] for q in snap["queued"]], ["sweep", "harvest"])

            state = await scheduler.get_target_state(target=T3)
            self.assertEqual(state["status"], TaskStatus.QUEUED)
            self.assertEqual(state["queued_position"], 2)

            self.release[T1].set()
            await asyncio.wait_for(self.started[T2].wait(), timeout=1.0)
            state = await scheduler.get_target_state(target=T2)
            self.assertEqual(state["status"], TaskStatus.RUNNING)
            self.assertIsNone(state["queued_position"])

            self.release[T2].set()
            self.release[T3].set()
            await scheduler.wait_idle()

            for t in (T1, T2, T3):
                state = await scheduler.get_target_state(target=t)
                self.assertEqual(state["status"], TaskStatus.DONE)
                self.assertIsNone(state["run_id"])

        asyncio.run(run_test())

    def test_reschedule_fills_new_slots(self):
        async def run_test():
            self._hold(T1, T2)
            config = SchedulerConfig(max_concurrent=1)
            scheduler = Scheduler(config=config, runs_dir=self.runs_dir, runner=self.runner_fn)

            await scheduler.enqueue(target=T1, kind="harvest")
            await scheduler.enqueue(target=T2, kind="harvest")
            self.assertEqual((await scheduler.snapshot())["queued_count"], 1)

            config.max_concurrent = 2
            await scheduler.reschedule()
            await asyncio.wait_for(self.started[T2].wait(), timeout=1.0)
            self.assertEqual((await scheduler.snapshot())["running_count"], 2)

            self.release[T1].set()
            self.release[T2].set()
            await scheduler.wait_idle()

        asyncio.run(run_test())


class TestLocking(SchedulerTestCase):
    def test_second_job_for_active_target_rejected(self):
        async def run_test():
            self._hold(T1)
            scheduler = self._scheduler()
            await scheduler.enqueue(target=T1, kind="harvest")

            with self.assertRaises(SchedulerConflictError):
                await scheduler.enqueue(target=T1, kind="sweep")

            self.release[T1].set()
            await scheduler.wait_idle()
            # Finished targets accept new jobs.
            run = await scheduler.enqueue(target=T1, kind="sweep")
            await scheduler.wait_idle()
            self.assertEqual(run.status, TaskStatus.DONE)

        asyncio.run(run_test())

    def test_invalid_arguments(self):
        async def run_test():
            scheduler = self._scheduler()
            with self.assertRaises(ValueError):
                await scheduler.enqueue(target="  ", kind="harvest")
            with self.assertRaises(ValueError):
                await scheduler.enqueue(target=T1, kind="download")

        asyncio.run(run_test())


class TestCancel(SchedulerTestCase):
    def test_cancel_queued_unlocks_immediately(self):
        async def run_test():
            self._hold(T1, T2)
            scheduler = self._scheduler()
            await scheduler.enqueue(target=T1, kind="harvest")
            queued = await scheduler.enqueue(target=T2, kind="harvest")

            status = await scheduler.cancel(target=T2)

            self.assertEqual(status, TaskStatus.IDLE)
            self.assertEqual(queued.status, TaskStatus.CANCELLED)
            self.assertEqual((await scheduler.snapshot())["queued_count"], 0)
            persisted = json.loads((self.runs_dir / f"{queued.run_id}.json").read_text(encoding="utf-8"))
            self.assertEqual(persisted["status"], "Cancelled")

            # Target is free again right away.
            again = await scheduler.enqueue(target=T2, kind="sweep")
            self.assertEqual(again.status, TaskStatus.QUEUED)

            self.release[T1].set()
            self.release[T2].set()
            await scheduler.wait_idle()

        asyncio.run(run_test())

    def test_cancel_running_is_cooperative(self):
        async def run_test():
            started = asyncio.Event()

            async def polling_runner(run: Run):
                started.set()
                ticks = 0
                while not run.token.cancelled:
                    ticks += 1
                    await asyncio.sleep(0.01)
                return {"items": ticks}

            scheduler = self._scheduler(runner=polling_runner)
            run = await scheduler.enqueue(target=T1, kind="sweep")
            await asyncio.wait_for(started.wait(), timeout=1.0)

            status = await scheduler.cancel(target=T1)
            self.assertEqual(status, TaskStatus.RUNNING)
            self.assertEqual(run.progress.snapshot().sub_status, "Cancelling...")

            await scheduler.wait_idle()
            self.assertEqual(run.status, TaskStatus.CANCELLED)
            self.assertIsNotNone(run.result)
            self.assertTrue(run.to_public_dict()["cancel_requested"])

        asyncio.run(run_test())

    def test_cancelled_error_from_runner_means_cancelled(self):
        async def run_test():
            async def runner(run: Run):
                raise OperationCancelledError()

            scheduler = self._scheduler(runner=runner)
            run = await scheduler.enqueue(target=T1, kind="harvest")
            await scheduler.wait_idle()
            self.assertEqual(run.status, TaskStatus.CANCELLED)
            self.assertIsNone(run.error)

        asyncio.run(run_test())

    def test_cancel_unknown_target_is_idle(self):
        async def run_test():
            scheduler = self._scheduler()
            self.assertEqual(await scheduler.cancel(target=T3), TaskStatus.IDLE)

        asyncio.run(run_test())


class TestResults(SchedulerTestCase):
    def test_runner_is_required(self):
        with self.assertRaises(TypeError):
            Scheduler(config=SchedulerConfig(), runs_dir=self.runs_dir)  # type: ignore[call-arg]

    def test_failure_is_reported(self):
        async def run_test():
            async def runner(run: Run):
                raise RuntimeError("page did not load")

            scheduler = self._scheduler(runner=runner)
            run = await scheduler.enqueue(target=T1, kind="harvest")
            await scheduler.wait_idle()
            return run

        with self.assertLogs("src.backend.scheduler.scheduler", level="ERROR"):
            run = asyncio.run(run_test())
        self.assertEqual(run.status, TaskStatus.FAILED)
        self.assertEqual(run.error, "page did not load")

    def test_result_and_mode_are_persisted(self):
        async def run_test():
            scheduler = self._scheduler()
            run = await scheduler.enqueue(target=T1, kind="harvest", mode="saveVideos")
            await scheduler.wait_idle()
            return run

        run = asyncio.run(run_test())
        self.assertEqual(run.mode, SaveMode.VIDEOS)
        data = json.loads((self.runs_dir / f"{run.run_id}.json").read_text(encoding="utf-8"))
        self.assertEqual(data["status"], "Done")
        self.assertEqual(data["mode"], "videos")
        self.assertEqual(data["result"], {"items": 3})


if __name__ == "__main__":
    unittest.main()
