"""
Remote analysis/removal calls, issued through the browser session.

Requests go through Playwright's APIRequestContext bound to the signed-in
browser context, so cookies are shared with the page and never stored here.
No retries: a failed call is reported once and the caller moves on.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, Sequence

from playwright.async_api import APIRequestContext, Error as PlaywrightError

from src.shared.media.models import AnalyzedMedia, parse_analysis_entries

from ..settings.models import ApiConfig


logger = logging.getLogger(__name__)


class AnalysisService(Protocol):
    async def request_analysis(self, item_id: str, url: str) -> Sequence[AnalyzedMedia]: ...


class RemovalService(Protocol):
    async def remove_item(self, item_id: str) -> bool: ...


class AnalysisRequestError(RuntimeError):
    """One item's deep analysis call failed (transport, status or payload)."""

    def __init__(self, message: str, *, item_id: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.item_id = item_id
        self.status_code = status_code


class MediaApiClient:
    def __init__(self, *, request: APIRequestContext, config: Optional[ApiConfig] = None) -> None:
        self._request = request
        self._config = config or ApiConfig()

    @property
    def config(self) -> ApiConfig:
        return self._config

    async def _post_json(self, path: str, payload: dict[str, Any]):
        return await self._request.post(
            self._config.endpoint(path),
            data=payload,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            timeout=self._config.timeout_s * 1000.0,
        )

    async def request_analysis(self, item_id: str, url: str) -> list[AnalyzedMedia]:
        try:
            resp = await self._post_json(self._config.analysis_path, {"id": item_id, "url": url})
        except PlaywrightError as exc:
            raise AnalysisRequestError(f"analysis request failed: {exc}", item_id=item_id) from exc

        # The context keeps every response body until it is disposed.
        try:
            if not resp.ok:
                raise AnalysisRequestError(
                    f"analysis request returned HTTP {resp.status}",
                    item_id=item_id,
                    status_code=resp.status,
                )

            try:
                raw = await resp.json()
            except (PlaywrightError, ValueError) as exc:
                raise AnalysisRequestError(
                    f"analysis response is not JSON: {exc}",
                    item_id=item_id,
                    status_code=resp.status,
                ) from exc
        finally:
            await resp.dispose()

        return parse_analysis_entries(raw)

    async def remove_item(self, item_id: str) -> bool:
        try:
            resp = await self._post_json(self._config.removal_path, {"id": item_id})
        except PlaywrightError as exc:
            logger.warning("Removal call failed for %s: %s", item_id, exc)
            return False

        try:
            if not resp.ok:
                logger.warning("Removal call for %s returned HTTP %s", item_id, resp.status)
                return False
            return True
        finally:
            await resp.dispose()
