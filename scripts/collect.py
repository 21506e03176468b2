#!/usr/bin/env python3
from __future__ import annotations

"""
Run one harvest or sweep against the configured browser profile.

Settings come from data/config.json (written by the WebUI); CLI flags
override the target url, the mode and headless mode for this run only.

Examples:
  python3 scripts/collect.py harvest --mode images --out data/results/images.json
  python3 scripts/collect.py sweep --yes

Notes:
- Sign in once in the persistent profile (run headful) before running headless.
- Ctrl+C requests a cooperative stop: a harvest stopped while scanning fails,
  a harvest stopped while analyzing keeps what was resolved so far,
  a sweep reports the count processed so far.
"""

import argparse
import asyncio
import logging
import signal
import sys
from dataclasses import replace
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.backend.pipeline.job_runner import run_collector_job  # noqa: E402
from src.backend.progress.cancellation import CancellationToken, OperationCancelledError  # noqa: E402
from src.backend.scheduler.models import JobKind  # noqa: E402
from src.backend.settings.store import SettingsStore  # noqa: E402
from src.shared.media.models import SaveMode  # noqa: E402
from src.shared.validators.page_url import validate_page_url  # noqa: E402


class ConsoleProgress:
    def __init__(self) -> None:
        self._last = ""

    def update(self, percent: float, status: str) -> None:
        line = f"[{percent:5.1f}%] {status}"
        if line != self._last:
            print(line, flush=True)
            self._last = line

    def set_sub_status(self, text: str) -> None:
        print(f"         {text}", flush=True)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Harvest or sweep a favorites list")
    parser.add_argument("job", choices=[k.value for k in JobKind])
    parser.add_argument("--config", default=str(REPO_ROOT / "data" / "config.json"))
    parser.add_argument("--url", default=None, help="List page url (default: settings favorites_url)")
    parser.add_argument("--mode", choices=[m.value for m in SaveMode], default=SaveMode.ALL.value)
    parser.add_argument("--out", default=str(REPO_ROOT / "data" / "results" / "manifest.json"))
    parser.add_argument("--headless", action="store_true")
    parser.add_argument("--yes", action="store_true", help="Confirm a destructive sweep")
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser.parse_args(argv)


async def _main(args: argparse.Namespace) -> int:
    settings = SettingsStore(path=Path(args.config)).load()
    browser = settings.get_browser()
    if args.headless:
        settings.browser = replace(browser, headless=True)

    checked = validate_page_url(args.url or browser.favorites_url)
    if not checked.valid or checked.url is None:
        print(f"error: {checked.error}", file=sys.stderr)
        return 2

    kind = JobKind(args.job)
    if kind == JobKind.SWEEP and not args.yes:
        print("error: sweep removes every item of the list; re-run with --yes", file=sys.stderr)
        return 2

    token = CancellationToken()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel)
    except NotImplementedError:
        # Windows event loops: Ctrl+C raises KeyboardInterrupt instead.
        pass

    try:
        result = await run_collector_job(
            kind=kind,
            target=checked.url,
            settings=settings,
            token=token,
            progress=ConsoleProgress(),
            mode=SaveMode(args.mode),
            manifest_path=Path(args.out) if kind == JobKind.HARVEST else None,
        )
    except OperationCancelledError as exc:
        print(f"cancelled: {exc}", file=sys.stderr)
        return 130

    print(f"done: {result}")
    return 130 if token.cancelled else 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(_main(args))


if __name__ == "__main__":
    raise SystemExit(main())
