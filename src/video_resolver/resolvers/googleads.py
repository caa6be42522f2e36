"""Google Ads Transparency resolver.

Renders the creative page in a headless browser, records hosting-platform
URLs seen on the network, scans the rendered markup (and every frame) for
YouTube identifiers, and hands the first identifier back as a watch URL that
the caller must re-resolve with :class:`~video_resolver.resolvers.youtube.YouTubeResolver`.
"""

from __future__ import annotations

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, Route

from ..canonical import clean_url
from ..config import ResolverConfig, load_config
from ..debug import ensure_debug_html
from ..errors import NotFound, TransportError
from ..ladders import GOOGLEADS_ID_LADDER, HOSTING_URL_RE, extract_video_ids
from ..logging import jlog
from ..models import GoogleAdsDetails, Platform, StrategyAttempt, VideoReference
from ..playwright import BrowserFactory, cleanup_playwright, open_page
from ..urls import is_google_ads_url, parse_ids_from_url, youtube_thumbnail_url, youtube_watch_url
from .base import Attempts, Resolver

DEFAULT_TITLE = "Google Ads Video"


async def _continue_route(route: Route) -> None:
    await route.continue_()


def _dedupe(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


class GoogleAdsResolver(Resolver):
    platform = Platform.GOOGLEADS

    def __init__(self, browser_factory: BrowserFactory, config: ResolverConfig | None = None) -> None:
        self.browser_factory = browser_factory
        self.config = config or load_config()

    @staticmethod
    def matches(url: str) -> bool:
        return is_google_ads_url(url)

    async def _scan_content(self, page: Page) -> list[str]:
        fragments = GOOGLEADS_ID_LADDER.scan(clean_url(await page.content()))
        jlog("info", event="googleads_html_matches", count=len(fragments))
        for frame in page.frames:
            try:
                frame_html = await frame.content()
            except PlaywrightError as exc:
                jlog("debug", event="googleads_frame_unreadable", frame_url=getattr(frame, "url", None), error=str(exc))
                continue
            fragments.extend(GOOGLEADS_ID_LADDER.scan(clean_url(frame_html)))
        return fragments

    async def _collect(self, url: str, tag: str) -> list[str]:
        """Drive one browser over ``url``; return every hosting URL/fragment observed."""

        captured: list[str] = []

        def on_response(response) -> None:
            if HOSTING_URL_RE.search(response.url):
                jlog("info", event="googleads_network_match", match=response.url[:120])
                captured.append(response.url)

        browser = context = None
        try:
            browser = await self.browser_factory.launch()
            context, page = await open_page(browser, user_agent=self.config.user_agent, viewport=self.config.viewport)
            await page.route("**/*", _continue_route)
            page.on("response", on_response)

            await page.goto(url, wait_until="networkidle", timeout=self.config.nav_timeout_ms)
            # Deferred player scripts keep issuing requests after network idle.
            await page.wait_for_timeout(self.config.settle_ms)

            if self.config.debug_html:
                await ensure_debug_html(page, tag, self.config.debug_dir)
            fragments = await self._scan_content(page)
        finally:
            await cleanup_playwright(context, browser)
            jlog("debug", event="googleads_browser_closed")
        return _dedupe(captured + fragments)

    async def _resolve(self, url: str, attempts: Attempts) -> VideoReference:
        advertiser_id, creative_id = parse_ids_from_url(url)
        jlog("info", event="googleads_ids", advertiser_id=advertiser_id, creative_id=creative_id)

        try:
            matches = await self._collect(url, creative_id or "googleads")
        except PlaywrightError as exc:
            attempts.append(StrategyAttempt("browser", "error", str(exc)))
            raise TransportError(f"browser automation failed: {exc}") from exc

        video_ids = extract_video_ids(matches)
        jlog("info", event="googleads_video_ids", urls=len(matches), video_ids=video_ids)
        if not video_ids:
            attempts.append(StrategyAttempt("browser", "empty"))
            raise NotFound("no YouTube video found on the ad page")
        attempts.append(StrategyAttempt("browser", "found"))

        video_id = video_ids[0]
        return VideoReference(
            video_url=youtube_watch_url(video_id),
            thumbnail_url=youtube_thumbnail_url(video_id),
            title=DEFAULT_TITLE,
            details=GoogleAdsDetails(
                video_id=video_id,
                is_youtube=True,
                advertiser_id=advertiser_id,
                creative_id=creative_id,
            ),
        )


__all__ = ["GoogleAdsResolver"]
