"""
Media domain models shared by the harvest and sweep engines (pure logic).

- ItemDescriptor: identity read from one rendered list item
- AnalyzedMedia: one entry returned by deep analysis, kind decided at the boundary
- MediaRecord: resolved, retrievable media entity keyed by url
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Optional


VIDEO_EXTENSION = "mp4"
IMAGE_EXTENSION = "jpg"


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"

    @staticmethod
    def from_type_tag(value: Any) -> "MediaKind":
        # Only an explicit "video" tag is a video; anything else (or nothing) is an image.
        if isinstance(value, str) and value.strip().lower() == MediaKind.VIDEO.value:
            return MediaKind.VIDEO
        return MediaKind.IMAGE

    @property
    def extension(self) -> str:
        return VIDEO_EXTENSION if self == MediaKind.VIDEO else IMAGE_EXTENSION


class SaveMode(str, Enum):
    IMAGES = "images"
    VIDEOS = "videos"
    ALL = "all"

    @staticmethod
    def parse(value: Any) -> "SaveMode":
        """
        Accepts images/videos/all plus the legacy saveImages/saveVideos aliases.
        Unknown values mean no filtering.
        """
        raw = str(value or "").strip()
        aliases = {
            "images": SaveMode.IMAGES,
            "saveimages": SaveMode.IMAGES,
            "videos": SaveMode.VIDEOS,
            "savevideos": SaveMode.VIDEOS,
        }
        return aliases.get(raw.lower(), SaveMode.ALL)


@dataclass(frozen=True)
class ItemDescriptor:
    id: str
    url: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "url": self.url}


@dataclass(frozen=True)
class AnalyzedMedia:
    kind: MediaKind
    id: str
    url: str

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "AnalyzedMedia":
        return AnalyzedMedia(
            kind=MediaKind.from_type_tag(data.get("type")),
            id=str(data.get("id") or ""),
            url=str(data.get("url") or ""),
        )


@dataclass(frozen=True)
class MediaRecord:
    url: str
    filename: str
    id: str

    @property
    def is_video(self) -> bool:
        return self.filename.lower().endswith(f".{VIDEO_EXTENSION}")

    @staticmethod
    def from_analyzed(media: AnalyzedMedia) -> "MediaRecord":
        return MediaRecord(
            url=media.url,
            filename=f"{media.id}.{media.kind.extension}",
            id=media.id,
        )

    def to_dict(self) -> dict[str, str]:
        return {"url": self.url, "filename": self.filename, "id": self.id}


def parse_analysis_entries(raw: Any) -> list[AnalyzedMedia]:
    """
    Normalize an untyped analysis payload into AnalyzedMedia entries.

    Accepted shapes: a list of entries, or an object carrying the list under
    "results" / "media" / "items". Non-object entries are ignored; entries
    without a url are kept (the pipeline skips them).
    """
    entries: Optional[Iterable[Any]] = None
    if isinstance(raw, list):
        entries = raw
    elif isinstance(raw, Mapping):
        for key in ("results", "media", "items"):
            value = raw.get(key)
            if isinstance(value, list):
                entries = value
                break

    if entries is None:
        return []

    return [AnalyzedMedia.from_dict(e) for e in entries if isinstance(e, Mapping)]


def filter_records(records: Iterable[MediaRecord], mode: SaveMode) -> list[MediaRecord]:
    if mode == SaveMode.IMAGES:
        return [r for r in records if not r.is_video]
    if mode == SaveMode.VIDEOS:
        return [r for r in records if r.is_video]
    return list(records)
