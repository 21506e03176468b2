"""
Playwright (async API) binding of the DOM accessor contract.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from playwright.async_api import ElementHandle, Error as PlaywrightError, Page

from src.shared.media.identity import descriptor_from_snapshot
from src.shared.media.models import ItemDescriptor


logger = logging.getLogger(__name__)


_SCROLL_CANDIDATES_JS = """
() => {
  const found = [
    document.querySelector('main'),
    document.querySelector('[role="main"]'),
    document.querySelector('.overflow-y-auto'),
    document.querySelector('.overflow-auto'),
    ...Array.from(document.querySelectorAll('div')).filter((el) => {
      const style = window.getComputedStyle(el);
      return style.overflowY === 'auto' || style.overflowY === 'scroll';
    }),
  ];
  return found.filter((el) => el !== null);
}
"""

_DOCUMENT_ROOT_JS = "() => document.scrollingElement || document.documentElement"

_ITEM_SNAPSHOT_JS = """
(el) => {
  const link = el.matches('a[href]') ? el : el.querySelector('a[href*="/post/"], a[href]');
  const media = el.querySelector('video[src], video source[src], img[src]');
  const mediaUrl = media ? (media.currentSrc || media.src || media.getAttribute('src') || '') : '';
  return {
    data_id: el.getAttribute('data-post-id') || el.getAttribute('data-id') || '',
    href: link ? link.href : '',
    media_url: mediaUrl,
  };
}
"""


class PlaywrightDom:
    def __init__(self, page: Page) -> None:
        self._page = page

    async def scroll_candidates(self) -> list[ElementHandle]:
        array_handle = await self._page.evaluate_handle(_SCROLL_CANDIDATES_JS)
        try:
            props = await array_handle.get_properties()
            candidates = []
            for handle in props.values():
                element = handle.as_element()
                if element is not None:
                    candidates.append(element)
            return candidates
        finally:
            await array_handle.dispose()

    async def document_root(self) -> ElementHandle:
        handle = await self._page.evaluate_handle(_DOCUMENT_ROOT_JS)
        element = handle.as_element()
        if element is None:
            raise RuntimeError("document root is not an element")
        return element

    async def viewport_height(self) -> float:
        return float(await self._page.evaluate("() => window.innerHeight"))

    async def surface_extent(self, surface: ElementHandle) -> float:
        return float(await surface.evaluate("(el) => el.scrollHeight"))

    async def scroll_surface_by(self, surface: ElementHandle, delta: float) -> None:
        await surface.evaluate("(el, dy) => { el.scrollTop += dy; }", delta)

    async def query_visible_items(self, selector: str) -> list[ElementHandle]:
        return await self._page.query_selector_all(selector)

    async def extract_identity(self, element: ElementHandle) -> Optional[ItemDescriptor]:
        try:
            snapshot: Any = await element.evaluate(_ITEM_SNAPSHOT_JS)
        except PlaywrightError as exc:
            # Virtualized lists detach elements while we iterate.
            logger.debug("Element detached before identity extraction: %s", exc)
            return None
        if not isinstance(snapshot, dict):
            return None
        return descriptor_from_snapshot(snapshot)

    async def find_action_control(self, element: ElementHandle, selector: str) -> Optional[ElementHandle]:
        try:
            return await element.query_selector(selector)
        except PlaywrightError as exc:
            logger.debug("Element detached before control lookup: %s", exc)
            return None

    async def invoke(self, control: ElementHandle) -> None:
        await control.click()
