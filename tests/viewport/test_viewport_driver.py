"""
Tests for src/backend/viewport/driver.py
"""

import asyncio
import unittest

from src.backend.net.pacing import Pacer, PacingConfig
from src.backend.viewport.driver import ViewportDriver
from tests.support.fakes import FakeDom, FakeSurface


class TestLocateScrollSurface(unittest.TestCase):
    def test_largest_extent_wins(self) -> None:
        small = FakeSurface("small", extents=[500])
        large = FakeSurface("large", extents=[4000])
        medium = FakeSurface("medium", extents=[1200])
        dom = FakeDom(candidates=[small, large, medium])

        surface = asyncio.run(ViewportDriver(dom=dom).locate_scroll_surface())

        self.assertIs(surface, large)

    def test_first_candidate_wins_ties(self) -> None:
        first = FakeSurface("first", extents=[3000])
        second = FakeSurface("second", extents=[3000])
        dom = FakeDom(candidates=[first, second])

        surface = asyncio.run(ViewportDriver(dom=dom).locate_scroll_surface())

        self.assertIs(surface, first)

    def test_falls_back_to_document_root(self) -> None:
        dom = FakeDom(candidates=[])

        surface = asyncio.run(ViewportDriver(dom=dom).locate_scroll_surface())

        self.assertIs(surface, dom.root)


class TestMovement(unittest.TestCase):
    def test_advance_scrolls_by_half_viewport(self) -> None:
        dom = FakeDom(viewport=1000)
        driver = ViewportDriver(dom=dom)

        asyncio.run(driver.advance(dom.surface))

        self.assertEqual(dom.scrolls, [("main", 500.0)])
        self.assertEqual(dom.surface.advances, 1)

    def test_nudge_goes_back_then_forward_with_settle_wait(self) -> None:
        dom = FakeDom()
        pacer = Pacer(PacingConfig(enabled=False))
        driver = ViewportDriver(dom=dom, pacer=pacer, nudge_px=120, settle_delay_ms=250)

        asyncio.run(driver.nudge(dom.surface))

        self.assertEqual(dom.scrolls, [("main", -120), ("main", 120)])
        self.assertEqual(pacer.waits_ms, (250,))
        self.assertEqual(dom.surface.advances, 0)

    def test_extent_reads_current_surface_extent(self) -> None:
        dom = FakeDom(extents=[1000, 1800])
        driver = ViewportDriver(dom=dom)

        before = asyncio.run(driver.extent(dom.surface))
        asyncio.run(driver.advance(dom.surface))
        after = asyncio.run(driver.extent(dom.surface))

        self.assertEqual((before, after), (1000, 1800))


if __name__ == "__main__":
    unittest.main()
