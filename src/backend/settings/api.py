from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from src.shared.validators.page_url import validate_page_url

from ..net.pacing import PacingConfig
from ..net.proxy import ProxyConfig
from ..scheduler.config import SchedulerConfig
from ..scheduler.scheduler import Scheduler
from .models import (
    MAX_BROWSER_SESSIONS,
    ApiConfig,
    BrowserConfig,
    GlobalSettings,
    SelectorConfig,
    TimingConfig,
)
from .store import SettingsStore


class TimingIn(BaseModel):
    max_idle_scrolls: int = Field(ge=1, le=100, default=5)
    scroll_delay_ms: int = Field(ge=0, le=60_000, default=1500)
    analysis_delay_ms: int = Field(ge=0, le=60_000, default=1000)
    unfavorite_delay_ms: int = Field(ge=0, le=60_000, default=200)
    settle_delay_ms: int = Field(ge=0, le=10_000, default=300)
    nudge_px: int = Field(ge=0, le=2_000, default=100)


class SelectorsIn(BaseModel):
    card: str = Field(min_length=1)
    list_item: str = Field(min_length=1)
    unsave_button: str = Field(min_length=1)


class BrowserIn(BaseModel):
    favorites_url: str = Field(min_length=1)
    user_data_dir: str = Field(min_length=1)
    headless: bool = False


class ApiIn(BaseModel):
    base_url: str = Field(min_length=1)
    analysis_path: str = Field(min_length=1)
    removal_path: str = Field(min_length=1)
    timeout_s: float = Field(ge=1.0, le=300.0, default=30.0)


class MaxConcurrentIn(BaseModel):
    max_concurrent: int = Field(ge=1, le=MAX_BROWSER_SESSIONS)


class ProxyIn(BaseModel):
    enabled: bool = False
    url: str = ""


class PacingIn(BaseModel):
    jitter_max_ms: int = Field(ge=0, le=10_000, default=0)
    enabled: bool = True


class ProxyOut(BaseModel):
    enabled: bool
    url_configured: bool  # Don't expose actual URL (may embed credentials)


class SettingsOut(BaseModel):
    max_concurrent: int
    timing: TimingIn
    selectors: SelectorsIn
    browser: BrowserIn
    api: ApiIn
    proxy: ProxyOut
    pacing: PacingIn


def _public_settings(settings: GlobalSettings) -> SettingsOut:
    proxy = settings.get_proxy()
    return SettingsOut(
        max_concurrent=settings.max_concurrent,
        timing=TimingIn(**settings.get_timing().to_persist_dict()),
        selectors=SelectorsIn(**settings.get_selectors().to_persist_dict()),
        browser=BrowserIn(**settings.get_browser().to_persist_dict()),
        api=ApiIn(**settings.get_api().to_persist_dict()),
        proxy=ProxyOut(enabled=proxy.enabled, url_configured=bool(proxy.url.strip())),
        pacing=PacingIn(**settings.get_pacing().to_persist_dict()),
    )


def _require_http_url(value: str, *, field_name: str) -> str:
    result = validate_page_url(value)
    if not result.valid or result.url is None:
        raise HTTPException(status_code=400, detail=f"{field_name}: {result.error}")
    return result.url


def create_settings_router(
    *, store: SettingsStore, scheduler_config: SchedulerConfig, scheduler: Scheduler
) -> APIRouter:
    router = APIRouter(prefix="/api/settings", tags=["settings"])

    def _set_section(key: str, value) -> SettingsOut:
        return _public_settings(store.set_value(key=key, value=value))

    @router.get("", response_model=SettingsOut)
    def get_settings() -> SettingsOut:
        return _public_settings(store.load())

    @router.post("/timing", response_model=SettingsOut)
    def set_timing(body: TimingIn) -> SettingsOut:
        return _set_section("timing", TimingConfig(**body.model_dump()))

    @router.post("/selectors", response_model=SettingsOut)
    def set_selectors(body: SelectorsIn) -> SettingsOut:
        return _set_section(
            "selectors",
            SelectorConfig(
                card=body.card.strip(),
                list_item=body.list_item.strip(),
                unsave_button=body.unsave_button.strip(),
            ),
        )

    @router.post("/browser", response_model=SettingsOut)
    def set_browser(body: BrowserIn) -> SettingsOut:
        browser = BrowserConfig(
            favorites_url=_require_http_url(body.favorites_url, field_name="favorites_url"),
            user_data_dir=body.user_data_dir.strip(),
            headless=body.headless,
        )
        return _set_section("browser", browser)

    @router.post("/api", response_model=SettingsOut)
    def set_api(body: ApiIn) -> SettingsOut:
        api = ApiConfig(
            base_url=_require_http_url(body.base_url, field_name="base_url").rstrip("/"),
            analysis_path=body.analysis_path.strip(),
            removal_path=body.removal_path.strip(),
            timeout_s=body.timeout_s,
        )
        return _set_section("api", api)

    @router.post("/max-concurrent", response_model=SettingsOut)
    async def set_max_concurrent(body: MaxConcurrentIn) -> SettingsOut:
        try:
            scheduler_config.set_max_concurrent(body.max_concurrent)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        updated = store.set_value(key="max_concurrent", value=body.max_concurrent)
        await scheduler.reschedule()
        return _public_settings(updated)

    @router.post("/proxy", response_model=SettingsOut)
    def set_proxy(body: ProxyIn) -> SettingsOut:
        proxy = ProxyConfig(enabled=body.enabled, url=body.url.strip())

        is_valid, error = proxy.validate()
        if not is_valid:
            raise HTTPException(status_code=400, detail=error)

        return _set_section("proxy", proxy)

    @router.delete("/proxy", response_model=SettingsOut)
    def clear_proxy() -> SettingsOut:
        return _set_section("proxy", ProxyConfig(enabled=False, url=""))

    @router.post("/pacing", response_model=SettingsOut)
    def set_pacing(body: PacingIn) -> SettingsOut:
        return _set_section("pacing", PacingConfig(jitter_max_ms=body.jitter_max_ms, enabled=body.enabled))

    return router
