from .identity import descriptor_from_snapshot, find_uuid
from .models import (
    AnalyzedMedia,
    ItemDescriptor,
    MediaKind,
    MediaRecord,
    SaveMode,
    filter_records,
    parse_analysis_entries,
)

__all__ = [
    "AnalyzedMedia",
    "ItemDescriptor",
    "MediaKind",
    "MediaRecord",
    "SaveMode",
    "descriptor_from_snapshot",
    "filter_records",
    "find_uuid",
    "parse_analysis_entries",
]
