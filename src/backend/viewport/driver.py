"""
Viewport driver: picks the scrollable surface and moves it.

The hosting page's scroll region is not statically known (it may be nested
arbitrarily), so the surface is chosen at run start as the candidate with the
greatest scroll extent, falling back to the document root.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..net.pacing import Pacer
from ..settings.models import DEFAULT_NUDGE_PX, DEFAULT_SETTLE_DELAY_MS
from .dom import DomAccessor, SurfaceHandle


logger = logging.getLogger(__name__)


class ViewportDriver:
    def __init__(
        self,
        *,
        dom: DomAccessor,
        pacer: Optional[Pacer] = None,
        nudge_px: int = DEFAULT_NUDGE_PX,
        settle_delay_ms: int = DEFAULT_SETTLE_DELAY_MS,
    ) -> None:
        self._dom = dom
        self._pacer = pacer or Pacer()
        self._nudge_px = nudge_px
        self._settle_delay_ms = settle_delay_ms

    async def locate_scroll_surface(self) -> SurfaceHandle:
        candidates = [c for c in await self._dom.scroll_candidates() if c is not None]
        if not candidates:
            logger.debug("No scroll candidate found, using document root")
            return await self._dom.document_root()

        best = candidates[0]
        best_extent = await self._dom.surface_extent(best)
        for candidate in candidates[1:]:
            extent = await self._dom.surface_extent(candidate)
            # Strictly greater: the first candidate wins ties.
            if extent > best_extent:
                best, best_extent = candidate, extent

        logger.info("Using scroll surface with extent %s (%d candidates)", best_extent, len(candidates))
        return best

    async def advance(self, surface: SurfaceHandle) -> None:
        height = await self._dom.viewport_height()
        await self._dom.scroll_surface_by(surface, height / 2)

    async def extent(self, surface: SurfaceHandle) -> float:
        return await self._dom.surface_extent(surface)

    async def nudge(self, surface: SurfaceHandle) -> None:
        """Back-then-forward wiggle forcing a re-layout of lazily rendered content."""
        await self._dom.scroll_surface_by(surface, -self._nudge_px)
        await self._pacer.sleep_ms(self._settle_delay_ms)
        await self._dom.scroll_surface_by(surface, self._nudge_px)
