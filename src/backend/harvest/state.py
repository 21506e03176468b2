"""
Run-owned accumulator for one harvest.

Owned exclusively by a single run and discarded at run end; nothing here is
shared across runs, so no locking is needed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from src.shared.media.models import ItemDescriptor, MediaRecord


class HarvestPhase(str, Enum):
    SCROLLING = "scrolling"
    ANALYZING = "analyzing"
    DONE = "done"
    CANCELLED = "cancelled"


@dataclass
class HarvestState:
    # url -> first record resolved for that url (insertion order = resolution order)
    all_media: dict[str, MediaRecord] = field(default_factory=dict)
    pending: list[ItemDescriptor] = field(default_factory=list)
    seen_ids: set[str] = field(default_factory=set)
    phase: HarvestPhase = HarvestPhase.SCROLLING

    # Statistics
    analyzed: int = 0
    analysis_failures: int = 0
    extraction_misses: int = 0

    def add_descriptor(self, descriptor: ItemDescriptor) -> bool:
        """Queue a first-seen item. Returns False for an id seen before."""
        if descriptor.id in self.seen_ids:
            return False
        self.seen_ids.add(descriptor.id)
        self.pending.append(descriptor)
        return True

    def add_media(self, record: MediaRecord) -> bool:
        """First writer wins per url. Returns True if the record was inserted."""
        if record.url in self.all_media:
            return False
        self.all_media[record.url] = record
        return True

    def stats(self) -> dict:
        return {
            "phase": self.phase.value,
            "unique_items": len(self.seen_ids),
            "analyzed": self.analyzed,
            "analysis_failures": self.analysis_failures,
            "extraction_misses": self.extraction_misses,
            "media": len(self.all_media),
        }
