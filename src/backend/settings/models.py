from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..net.pacing import PacingConfig
from ..net.proxy import ProxyConfig


DEFAULT_MAX_CONCURRENT = 1
# Every job launches a persistent context on the same profile directory, which
# Chromium locks; only one session can hold it at a time.
MAX_BROWSER_SESSIONS = 1

DEFAULT_MAX_IDLE_SCROLLS = 5
DEFAULT_SCROLL_DELAY_MS = 1500
DEFAULT_ANALYSIS_DELAY_MS = 1000
DEFAULT_UNFAVORITE_DELAY_MS = 200
DEFAULT_SETTLE_DELAY_MS = 300
DEFAULT_NUDGE_PX = 100

DEFAULT_CARD_SELECTOR = 'div[role="listitem"]'
DEFAULT_LIST_ITEM_SELECTOR = 'div[role="listitem"]'
DEFAULT_UNSAVE_BUTTON_SELECTOR = 'button[aria-label="Unsave"]'

DEFAULT_FAVORITES_URL = "https://grok.com/imagine/favorites"
DEFAULT_USER_DATA_DIR = "data/browser-profile"

DEFAULT_API_BASE_URL = "https://grok.com"
DEFAULT_ANALYSIS_PATH = "/rest/media/post/get"
DEFAULT_REMOVAL_PATH = "/rest/media/post/unlike"
DEFAULT_API_TIMEOUT_S = 30.0


def _int_or(value: Any, default: int, *, minimum: int = 0) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return max(minimum, parsed)


def _float_or(value: Any, default: float, *, minimum: float = 0.0) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    return max(minimum, parsed)


def _str_or(value: Any, default: str) -> str:
    text = str(value or "").strip()
    return text or default


@dataclass
class TimingConfig:
    """
    Timing constants for the scroll/analysis/sweep loops.

    Attributes:
        max_idle_scrolls: Consecutive idle scrolls that end the harvest scan.
        scroll_delay_ms: Wait after each scroll before measuring extent.
        analysis_delay_ms: Wait after each deep analysis request (even on failure).
        unfavorite_delay_ms: Wait after each remote removal call.
        settle_delay_ms: Wait after a direct UI action and between nudge halves.
        nudge_px: Distance of the backward/forward wiggle.
    """
    max_idle_scrolls: int = DEFAULT_MAX_IDLE_SCROLLS
    scroll_delay_ms: int = DEFAULT_SCROLL_DELAY_MS
    analysis_delay_ms: int = DEFAULT_ANALYSIS_DELAY_MS
    unfavorite_delay_ms: int = DEFAULT_UNFAVORITE_DELAY_MS
    settle_delay_ms: int = DEFAULT_SETTLE_DELAY_MS
    nudge_px: int = DEFAULT_NUDGE_PX

    def to_persist_dict(self) -> dict[str, Any]:
        return {
            "max_idle_scrolls": self.max_idle_scrolls,
            "scroll_delay_ms": self.scroll_delay_ms,
            "analysis_delay_ms": self.analysis_delay_ms,
            "unfavorite_delay_ms": self.unfavorite_delay_ms,
            "settle_delay_ms": self.settle_delay_ms,
            "nudge_px": self.nudge_px,
        }

    @classmethod
    def from_persist_dict(cls, data: dict[str, Any]) -> "TimingConfig":
        return cls(
            max_idle_scrolls=_int_or(data.get("max_idle_scrolls"), DEFAULT_MAX_IDLE_SCROLLS, minimum=1),
            scroll_delay_ms=_int_or(data.get("scroll_delay_ms"), DEFAULT_SCROLL_DELAY_MS),
            analysis_delay_ms=_int_or(data.get("analysis_delay_ms"), DEFAULT_ANALYSIS_DELAY_MS),
            unfavorite_delay_ms=_int_or(data.get("unfavorite_delay_ms"), DEFAULT_UNFAVORITE_DELAY_MS),
            settle_delay_ms=_int_or(data.get("settle_delay_ms"), DEFAULT_SETTLE_DELAY_MS),
            nudge_px=_int_or(data.get("nudge_px"), DEFAULT_NUDGE_PX),
        )


@dataclass
class SelectorConfig:
    card: str = DEFAULT_CARD_SELECTOR
    list_item: str = DEFAULT_LIST_ITEM_SELECTOR
    unsave_button: str = DEFAULT_UNSAVE_BUTTON_SELECTOR

    def to_persist_dict(self) -> dict[str, Any]:
        return {
            "card": self.card,
            "list_item": self.list_item,
            "unsave_button": self.unsave_button,
        }

    @classmethod
    def from_persist_dict(cls, data: dict[str, Any]) -> "SelectorConfig":
        return cls(
            card=_str_or(data.get("card"), DEFAULT_CARD_SELECTOR),
            list_item=_str_or(data.get("list_item"), DEFAULT_LIST_ITEM_SELECTOR),
            unsave_button=_str_or(data.get("unsave_button"), DEFAULT_UNSAVE_BUTTON_SELECTOR),
        )


@dataclass
class BrowserConfig:
    favorites_url: str = DEFAULT_FAVORITES_URL
    # Persistent profile directory; the user signs in there once.
    user_data_dir: str = DEFAULT_USER_DATA_DIR
    headless: bool = False

    def to_persist_dict(self) -> dict[str, Any]:
        return {
            "favorites_url": self.favorites_url,
            "user_data_dir": self.user_data_dir,
            "headless": self.headless,
        }

    @classmethod
    def from_persist_dict(cls, data: dict[str, Any]) -> "BrowserConfig":
        return cls(
            favorites_url=_str_or(data.get("favorites_url"), DEFAULT_FAVORITES_URL),
            user_data_dir=_str_or(data.get("user_data_dir"), DEFAULT_USER_DATA_DIR),
            headless=bool(data.get("headless", False)),
        )


@dataclass
class ApiConfig:
    base_url: str = DEFAULT_API_BASE_URL
    analysis_path: str = DEFAULT_ANALYSIS_PATH
    removal_path: str = DEFAULT_REMOVAL_PATH
    timeout_s: float = DEFAULT_API_TIMEOUT_S

    def endpoint(self, path: str) -> str:
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")

    def to_persist_dict(self) -> dict[str, Any]:
        return {
            "base_url": self.base_url,
            "analysis_path": self.analysis_path,
            "removal_path": self.removal_path,
            "timeout_s": self.timeout_s,
        }

    @classmethod
    def from_persist_dict(cls, data: dict[str, Any]) -> "ApiConfig":
        return cls(
            base_url=_str_or(data.get("base_url"), DEFAULT_API_BASE_URL),
            analysis_path=_str_or(data.get("analysis_path"), DEFAULT_ANALYSIS_PATH),
            removal_path=_str_or(data.get("removal_path"), DEFAULT_REMOVAL_PATH),
            timeout_s=_float_or(data.get("timeout_s"), DEFAULT_API_TIMEOUT_S, minimum=1.0),
        )


@dataclass
class GlobalSettings:
    max_concurrent: int = DEFAULT_MAX_CONCURRENT
    timing: Optional[TimingConfig] = None
    selectors: Optional[SelectorConfig] = None
    browser: Optional[BrowserConfig] = None
    api: Optional[ApiConfig] = None
    proxy: Optional[ProxyConfig] = None
    pacing: Optional[PacingConfig] = None

    def get_timing(self) -> TimingConfig:
        """Get timing config, using defaults if not set."""
        return self.timing or TimingConfig()

    def get_selectors(self) -> SelectorConfig:
        return self.selectors or SelectorConfig()

    def get_browser(self) -> BrowserConfig:
        return self.browser or BrowserConfig()

    def get_api(self) -> ApiConfig:
        return self.api or ApiConfig()

    def get_proxy(self) -> ProxyConfig:
        """Get proxy config, using defaults if not set."""
        return self.proxy or ProxyConfig()

    def get_pacing(self) -> PacingConfig:
        return self.pacing or PacingConfig()

    def to_persist_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "version": 1,
            "max_concurrent": self.max_concurrent,
        }
        sections = {
            "timing": self.timing,
            "selectors": self.selectors,
            "browser": self.browser,
            "api": self.api,
            "proxy": self.proxy,
            "pacing": self.pacing,
        }
        for key, section in sections.items():
            if section is not None:
                data[key] = section.to_persist_dict()
        return data

    @classmethod
    def from_persist_dict(cls, data: dict[str, Any]) -> "GlobalSettings":
        def section(key: str, parser):
            raw = data.get(key)
            if isinstance(raw, dict):
                return parser(raw)
            return None

        return cls(
            max_concurrent=min(
                MAX_BROWSER_SESSIONS,
                _int_or(data.get("max_concurrent"), DEFAULT_MAX_CONCURRENT, minimum=1),
            ),
            timing=section("timing", TimingConfig.from_persist_dict),
            selectors=section("selectors", SelectorConfig.from_persist_dict),
            browser=section("browser", BrowserConfig.from_persist_dict),
            api=section("api", ApiConfig.from_persist_dict),
            proxy=section("proxy", ProxyConfig.from_persist_dict),
            pacing=section("pacing", PacingConfig.from_persist_dict),
        )
