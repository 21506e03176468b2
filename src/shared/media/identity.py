"""
Item identity extraction from the raw attributes of a rendered list item.

The DOM binding reads three optional strings from an element; this module
decides the identity so the rule is testable without a browser:

1. explicit data attribute (data-post-id / data-id)
2. first UUID in the item's link href (e.g. /imagine/post/<uuid>)
3. first UUID in the media url (generated assets embed the post uuid)

No id -> None (the element is skipped, not counted, not retried).
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from .models import ItemDescriptor


UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)


def find_uuid(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    m = UUID_PATTERN.search(value)
    return m.group(0).lower() if m else None


def descriptor_from_snapshot(snapshot: Optional[Mapping[str, Any]]) -> Optional[ItemDescriptor]:
    if not snapshot:
        return None

    data_id = str(snapshot.get("data_id") or "").strip()
    href = str(snapshot.get("href") or "").strip()
    media_url = str(snapshot.get("media_url") or "").strip()

    item_id = data_id or find_uuid(href) or find_uuid(media_url)
    if not item_id:
        return None

    return ItemDescriptor(id=item_id, url=media_url or href)
