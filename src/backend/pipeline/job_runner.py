from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncContextManager, AsyncIterator, Awaitable, Callable, Optional, Sequence

from playwright.async_api import Page, async_playwright

from src.shared.media.models import MediaRecord, SaveMode

from ..harvest.engine import HarvestEngine
from ..net.pacing import Pacer
from ..progress.cancellation import CancellationToken
from ..progress.sink import ProgressSink
from ..scheduler.models import JobKind, Run
from ..services.media_api import MediaApiClient
from ..settings.models import GlobalSettings
from ..settings.store import SettingsStore
from ..sweep.engine import SweepEngine
from ..viewport.driver import ViewportDriver
from ..viewport.playwright_dom import PlaywrightDom


logger = logging.getLogger(__name__)


SessionFactory = Callable[[GlobalSettings], AsyncContextManager[Page]]

NAVIGATION_TIMEOUT_MS = 60_000


@asynccontextmanager
async def open_browser_session(settings: GlobalSettings) -> AsyncIterator[Page]:
    """
    Persistent Chromium profile, so a sign-in done once in that profile is reused.
    """
    browser = settings.get_browser()
    user_data_dir = Path(browser.user_data_dir).expanduser()
    user_data_dir.mkdir(parents=True, exist_ok=True)

    async with async_playwright() as pw:
        context = await pw.chromium.launch_persistent_context(
            str(user_data_dir),
            headless=browser.headless,
            proxy=settings.get_proxy().to_playwright(),
        )
        try:
            page = context.pages[0] if context.pages else await context.new_page()
            yield page
        finally:
            await context.close()


def write_manifest(path: Path, *, mode: SaveMode, records: Sequence[MediaRecord]) -> Path:
    payload = {
        "mode": mode.value,
        "count": len(records),
        "media": [r.to_dict() for r in records],
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    tmp_path.replace(path)
    return path


async def run_collector_job(
    *,
    kind: JobKind,
    target: str,
    settings: GlobalSettings,
    token: CancellationToken,
    progress: ProgressSink,
    mode: SaveMode = SaveMode.ALL,
    manifest_path: Optional[Path] = None,
    session_factory: SessionFactory = open_browser_session,
) -> dict[str, Any]:
    """
    Single job: open browser -> navigate -> harvest (scan -> analyze) or sweep.

    Returns a result summary; `items` is the unique item count (harvest) or
    the processed count (sweep).
    """
    timing = settings.get_timing()
    selectors = settings.get_selectors()

    async with session_factory(settings) as page:
        progress.update(0, f"Opening {target}...")
        await page.goto(target, wait_until="domcontentloaded", timeout=NAVIGATION_TIMEOUT_MS)

        dom = PlaywrightDom(page)
        pacer = Pacer(settings.get_pacing())
        driver = ViewportDriver(
            dom=dom,
            pacer=pacer,
            nudge_px=timing.nudge_px,
            settle_delay_ms=timing.settle_delay_ms,
        )
        client = MediaApiClient(request=page.context.request, config=settings.get_api())

        if kind == JobKind.SWEEP:
            sweeper = SweepEngine(
                dom=dom,
                driver=driver,
                removal=client,
                token=token,
                progress=progress,
                timing=timing,
                selectors=selectors,
                pacer=pacer,
            )
            total = await sweeper.sweep_all()
            progress.update(100, f"Unfavorited {total} items")
            stats = sweeper.state.stats() if sweeper.state else {}
            return {**stats, "items": total}

        harvester = HarvestEngine(
            dom=dom,
            driver=driver,
            analysis=client,
            token=token,
            progress=progress,
            timing=timing,
            selectors=selectors,
            pacer=pacer,
        )
        records = await harvester.harvest(mode)

    result: dict[str, Any] = harvester.state.stats() if harvester.state else {}
    result["items"] = result.get("unique_items", 0)
    result["returned"] = len(records)
    if manifest_path is not None:
        write_manifest(manifest_path, mode=mode, records=records)
        result["manifest"] = str(manifest_path)
    progress.update(100, f"Collected {len(records)} media items")
    return result


async def run_scheduled_job(
    *,
    run: Run,
    store: SettingsStore,
    results_dir: Path,
    session_factory: SessionFactory = open_browser_session,
) -> dict[str, Any]:
    manifest_path = None
    if run.kind == JobKind.HARVEST:
        manifest_path = Path(results_dir) / f"{run.run_id}.json"

    logger.info("Starting %s job %s for %s", run.kind.value, run.run_id, run.target)
    return await run_collector_job(
        kind=run.kind,
        target=run.target,
        settings=store.load(),
        token=run.token,
        progress=run.progress,
        mode=run.mode,
        manifest_path=manifest_path,
        session_factory=session_factory,
    )


def create_job_runner(
    *,
    store: SettingsStore,
    results_dir: Path,
    session_factory: SessionFactory = open_browser_session,
) -> Callable[[Run], Awaitable[dict[str, Any]]]:
    async def _runner(run: Run) -> dict[str, Any]:
        return await run_scheduled_job(
            run=run,
            store=store,
            results_dir=results_dir,
            session_factory=session_factory,
        )

    return _runner
