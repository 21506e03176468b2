"""
Viewport binding: scroll surface selection, scrolling and item access.

The Playwright binding lives in playwright_dom.py and is imported explicitly
by the job runner, so the engines stay importable without a browser.
"""

from .dom import DomAccessor
from .driver import ViewportDriver

__all__ = [
    "DomAccessor",
    "ViewportDriver",
]
