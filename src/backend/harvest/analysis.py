"""
Deep analysis phase: resolve every queued item into concrete media records.

Runs strictly after scanning. Requests go out one at a time with a pause after
each one (also after failures). Cancellation here is not fatal: the records
resolved so far are returned.
"""

from __future__ import annotations

import logging
from typing import Optional

from src.shared.media.models import MediaRecord, SaveMode, filter_records

from ..net.pacing import Pacer
from ..progress.cancellation import CancellationToken
from ..progress.sink import NullProgress, ProgressSink
from ..services.media_api import AnalysisService
from ..settings.models import TimingConfig
from .state import HarvestState


logger = logging.getLogger(__name__)


ANALYSIS_PROGRESS_BASE = 50.0
ANALYSIS_PROGRESS_SPAN = 40.0


class AnalysisPipeline:
    def __init__(
        self,
        *,
        service: AnalysisService,
        token: CancellationToken,
        progress: Optional[ProgressSink] = None,
        timing: Optional[TimingConfig] = None,
        pacer: Optional[Pacer] = None,
    ) -> None:
        self._service = service
        self._token = token
        self._progress = progress or NullProgress()
        self._timing = timing or TimingConfig()
        self._pacer = pacer or Pacer()

    async def run(self, state: HarvestState, mode: SaveMode) -> list[MediaRecord]:
        total = len(state.pending)
        for index, item in enumerate(state.pending):
            if self._token.cancelled:
                logger.info("Analysis cancelled after %d/%d items", index, total)
                break

            self._progress.update(
                ANALYSIS_PROGRESS_BASE + (index / total) * ANALYSIS_PROGRESS_SPAN,
                f"Analyzing Item {index + 1}/{total}...",
            )
            self._progress.set_sub_status(f"Opening analysis for {item.id}...")

            try:
                entries = await self._service.request_analysis(item.id, item.url)
                added = 0
                for entry in entries:
                    if not entry.url:
                        continue
                    if state.add_media(MediaRecord.from_analyzed(entry)):
                        added += 1
                state.analyzed += 1
                logger.debug("Analysis of %s resolved %d entries (%d new)", item.id, len(entries), added)
            except Exception as exc:  # noqa: BLE001 - one failed item never aborts the pipeline
                state.analysis_failures += 1
                logger.warning("Analysis failed for %s: %s", item.id, exc)

            await self._pacer.sleep_ms(self._timing.analysis_delay_ms)

        return filter_records(state.all_media.values(), mode)
