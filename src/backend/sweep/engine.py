"""
Sweep engine: remove every item of the list ("unfavorite all").

Per visible item the direct UI control is tried first; the remote removal call
is the fallback for items whose control is missing or failed. An item counts
once: the processed-id set and the per-item `clicked` flag keep the two paths
from both firing for the same item.

Termination differs from the harvest scan: removing items can keep the list
from growing while new items are still revealed underneath, so a pass only
ends the sweep when it took no action AND the extent has been unchanged for
at least two consecutive passes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..net.pacing import Pacer
from ..progress.cancellation import CancellationToken
from ..progress.sink import NullProgress, ProgressSink
from ..services.media_api import RemovalService
from ..settings.models import SelectorConfig, TimingConfig
from ..viewport.dom import DomAccessor, ElementRef
from ..viewport.driver import ViewportDriver


logger = logging.getLogger(__name__)


SWEEP_PROGRESS_CAP = 98
SWEEP_STALL_PASSES = 2


@dataclass
class SweepState:
    processed_ids: set[str] = field(default_factory=set)
    total_processed: int = 0

    # Statistics
    clicked: int = 0
    removed_remotely: int = 0
    removal_failures: int = 0
    passes: int = 0

    def stats(self) -> dict:
        return {
            "total_processed": self.total_processed,
            "clicked": self.clicked,
            "removed_remotely": self.removed_remotely,
            "removal_failures": self.removal_failures,
            "passes": self.passes,
        }


class SweepEngine:
    def __init__(
        self,
        *,
        dom: DomAccessor,
        driver: ViewportDriver,
        removal: RemovalService,
        token: CancellationToken,
        progress: Optional[ProgressSink] = None,
        timing: Optional[TimingConfig] = None,
        selectors: Optional[SelectorConfig] = None,
        pacer: Optional[Pacer] = None,
    ) -> None:
        self._dom = dom
        self._driver = driver
        self._removal = removal
        self._token = token
        self._progress = progress or NullProgress()
        self._timing = timing or TimingConfig()
        self._selectors = selectors or SelectorConfig()
        self._pacer = pacer or Pacer()
        self._state: Optional[SweepState] = None

    @property
    def state(self) -> Optional[SweepState]:
        return self._state

    async def sweep_all(self) -> int:
        """
        Sweep until the list is exhausted or the run is cancelled.

        Never raises on cancellation; returns the number of items processed so far.
        """
        state = SweepState()
        self._state = state
        logger.info("Starting sweep")

        surface = await self._driver.locate_scroll_surface()
        unchanged_passes = 0
        last_extent: Optional[float] = None

        while not self._token.cancelled:
            state.passes += 1
            acted = 0
            for element in await self._dom.query_visible_items(self._selectors.list_item):
                if self._token.cancelled:
                    break
                acted += await self._process_item(state, element)
                self._progress.update(
                    min(SWEEP_PROGRESS_CAP, state.total_processed * 2),
                    f"Unfavorited {state.total_processed} items...",
                )

            current_extent = await self._driver.extent(surface)
            if current_extent == last_extent:
                unchanged_passes += 1
            else:
                unchanged_passes = 0
                last_extent = current_extent

            if acted == 0 and unchanged_passes >= SWEEP_STALL_PASSES:
                logger.debug("Sweep pass %d: no actions, extent stable; list exhausted", state.passes)
                break
            if self._token.cancelled:
                break

            await self._driver.advance(surface)
            await self._pacer.sleep_ms(self._timing.scroll_delay_ms)

        if self._token.cancelled:
            logger.info("Sweep cancelled: %s", state.stats())
        else:
            logger.info("Sweep finished: %s", state.stats())
        return state.total_processed

    async def _process_item(self, state: SweepState, element: ElementRef) -> int:
        acted = 0
        clicked = False

        control = await self._dom.find_action_control(element, self._selectors.unsave_button)
        if control is not None:
            try:
                await self._dom.invoke(control)
            except Exception as exc:  # noqa: BLE001 - fall back to the remote call below
                logger.warning("Direct unsave action failed, falling back to removal call: %s", exc)
            else:
                clicked = True
                acted += 1
                state.clicked += 1
                state.total_processed += 1
                await self._pacer.sleep_ms(self._timing.settle_delay_ms)

        descriptor = await self._dom.extract_identity(element)
        if descriptor is not None and descriptor.id and descriptor.id not in state.processed_ids:
            state.processed_ids.add(descriptor.id)
            if not clicked:
                if await self._removal.remove_item(descriptor.id):
                    state.removed_remotely += 1
                else:
                    state.removal_failures += 1
                acted += 1
                state.total_processed += 1
                await self._pacer.sleep_ms(self._timing.unfavorite_delay_ms)

        return acted
