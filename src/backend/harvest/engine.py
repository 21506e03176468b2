"""
Harvest engine: scroll a lazily rendered list until idle, then analyze.

Phases:
    SCROLLING -> ANALYZING -> DONE        (CANCELLED reachable from both)

Scanning stops after `max_idle_scrolls` consecutive scrolls that did not
grow the surface extent. A plain "height unchanged" check gives false idles on
pages that render more content after a short delay, so from the second idle
scroll on a back-and-forth nudge forces a re-layout before the next measurement.

Every newly seen item is queued for deep analysis, even when the card already
shows a media url: directly observed urls can carry expired signed tokens.
"""

from __future__ import annotations

import logging
from typing import Optional

from src.shared.media.models import MediaRecord, SaveMode

from ..net.pacing import Pacer
from ..progress.cancellation import CancellationToken, OperationCancelledError
from ..progress.sink import NullProgress, ProgressSink
from ..services.media_api import AnalysisService
from ..settings.models import SelectorConfig, TimingConfig
from ..viewport.dom import DomAccessor
from ..viewport.driver import ViewportDriver
from .analysis import AnalysisPipeline
from .state import HarvestPhase, HarvestState


logger = logging.getLogger(__name__)


SCAN_PROGRESS_PERCENT = 30.0


class HarvestEngine:
    def __init__(
        self,
        *,
        dom: DomAccessor,
        driver: ViewportDriver,
        analysis: AnalysisService,
        token: CancellationToken,
        progress: Optional[ProgressSink] = None,
        timing: Optional[TimingConfig] = None,
        selectors: Optional[SelectorConfig] = None,
        pacer: Optional[Pacer] = None,
    ) -> None:
        self._dom = dom
        self._driver = driver
        self._token = token
        self._progress = progress or NullProgress()
        self._timing = timing or TimingConfig()
        self._selectors = selectors or SelectorConfig()
        self._pacer = pacer or Pacer()
        self._pipeline = AnalysisPipeline(
            service=analysis,
            token=token,
            progress=self._progress,
            timing=self._timing,
            pacer=self._pacer,
        )
        self._state: Optional[HarvestState] = None

    @property
    def state(self) -> Optional[HarvestState]:
        """State of the current/last run (for summaries and tests)."""
        return self._state

    async def harvest(self, mode: SaveMode | str = SaveMode.ALL) -> list[MediaRecord]:
        """
        Scan the list, analyze every unique item and return the records for `mode`.

        Raises:
            OperationCancelledError: if cancelled while scanning (no media is returned).
        """
        save_mode = mode if isinstance(mode, SaveMode) else SaveMode.parse(mode)
        state = HarvestState()
        self._state = state

        try:
            await self.scan(state)
        except OperationCancelledError:
            state.phase = HarvestPhase.CANCELLED
            logger.info("Harvest cancelled while scanning (%d unique items seen)", len(state.seen_ids))
            raise

        state.phase = HarvestPhase.ANALYZING
        logger.info("Scan finished: %d unique items queued for analysis", len(state.pending))

        records = await self._pipeline.run(state, save_mode)

        state.phase = HarvestPhase.CANCELLED if self._token.cancelled else HarvestPhase.DONE
        logger.info("Harvest %s: %s", state.phase.value, state.stats())
        return records

    async def scan(self, state: HarvestState) -> None:
        surface = await self._driver.locate_scroll_surface()
        last_extent = await self._driver.extent(surface)
        idle_count = 0
        max_idle = self._timing.max_idle_scrolls

        while idle_count < max_idle:
            self._token.raise_if_cancelled()

            await self._collect_visible(state)
            self._progress.update(
                SCAN_PROGRESS_PERCENT,
                f"Scanning... Identified {len(state.seen_ids)} unique items",
            )

            await self._driver.advance(surface)
            await self._pacer.sleep_ms(self._timing.scroll_delay_ms)

            new_extent = await self._driver.extent(surface)
            if new_extent == last_extent:
                idle_count += 1
                logger.debug("Scroll extent unchanged (%d/%d)", idle_count, max_idle)
                if idle_count > 1:
                    await self._driver.nudge(surface)
            else:
                idle_count = 0
                last_extent = new_extent

    async def _collect_visible(self, state: HarvestState) -> int:
        added = 0
        for element in await self._dom.query_visible_items(self._selectors.card):
            descriptor = await self._dom.extract_identity(element)
            if descriptor is None or not descriptor.id:
                state.extraction_misses += 1
                continue
            if state.add_descriptor(descriptor):
                added += 1
        return added
