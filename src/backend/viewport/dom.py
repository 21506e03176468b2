"""
DOM accessor contract consumed by the viewport driver and the engines.

Handles/elements/controls are opaque to the core; only the accessor knows
what they are (Playwright ElementHandles in production, plain objects in tests).
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from src.shared.media.models import ItemDescriptor


SurfaceHandle = Any
ElementRef = Any
ControlRef = Any


class DomAccessor(Protocol):
    async def scroll_candidates(self) -> Sequence[SurfaceHandle]:
        """Main region, role=main, auto/scroll-overflow elements, tagged overflow containers."""
        ...

    async def document_root(self) -> SurfaceHandle: ...

    async def viewport_height(self) -> float: ...

    async def surface_extent(self, surface: SurfaceHandle) -> float: ...

    async def scroll_surface_by(self, surface: SurfaceHandle, delta: float) -> None: ...

    async def query_visible_items(self, selector: str) -> Sequence[ElementRef]: ...

    async def extract_identity(self, element: ElementRef) -> Optional[ItemDescriptor]: ...

    async def find_action_control(self, element: ElementRef, selector: str) -> Optional[ControlRef]: ...

    async def invoke(self, control: ControlRef) -> None: ...
