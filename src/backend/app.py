from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI

from .pipeline.job_runner import create_job_runner
from .scheduler.api import create_scheduler_router
from .scheduler.config import SchedulerConfig
from .scheduler.scheduler import Scheduler
from .settings.api import create_settings_router
from .settings.store import SettingsStore


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


def create_app(*, data_dir: Path | None = None) -> FastAPI:
    repo_root = _repo_root()
    data_dir = Path(data_dir) if data_dir is not None else repo_root / "data"
    config_path = data_dir / "config.json"
    runs_dir = data_dir / "runs"
    results_dir = data_dir / "results"

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    store = SettingsStore(path=config_path)
    scheduler_config = SchedulerConfig(max_concurrent=store.load().max_concurrent)
    runner = create_job_runner(store=store, results_dir=results_dir)
    scheduler = Scheduler(config=scheduler_config, runs_dir=runs_dir, runner=runner)

    app = FastAPI(title="favorites-collector")
    app.include_router(create_settings_router(store=store, scheduler_config=scheduler_config, scheduler=scheduler))
    app.include_router(create_scheduler_router(scheduler=scheduler))

    app.state.settings_store = store
    app.state.scheduler_config = scheduler_config
    app.state.scheduler = scheduler
    app.state.data_dir = data_dir
    return app


app = create_app()
