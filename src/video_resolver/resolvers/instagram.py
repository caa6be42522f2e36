"""Instagram resolver.

Strategy ladder, first success wins:

1. GraphQL query API (several known doc IDs), with ad detection and an
   optional local pre-download of ad-gated videos;
2. the public ``/embed/`` page;
3. the legacy ``?__a=1`` JSON endpoints.

A transport failure in one strategy is logged and the next strategy runs.
Every strategy needs the session cookie; without it nothing is attempted.
"""

from __future__ import annotations

import asyncio
import json
import re
import urllib.parse
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable

import requests
from playwright.async_api import Error as PlaywrightError

from ..canonical import clean_url
from ..config import ResolverConfig, load_config
from ..downloader import AdPreDownload, Downloader, YtDlpDownloader, ad_download_target, verify_output
from ..errors import MissingCredential, NotFound, ProcessFailure, TransportError
from ..ladders import (
    CAPTION_TEXT_RE,
    CDN_FALLBACK_LADDER,
    EMBED_CANDIDATE_LADDER,
    PAYLOAD_CANDIDATE_LADDER,
    THUMBNAIL_LADDER,
    collect_candidates,
)
from ..logging import jlog
from ..models import Candidate, InstagramDetails, Platform, StrategyAttempt, VideoReference
from ..playwright import BrowserFactory, cleanup_playwright, open_page
from ..session import INSTAGRAM_SESSION_KEY, SessionCredential, SessionStore, default_session_store, load_credential
from ..urls import is_instagram_url, parse_shortcode
from .base import Attempts, Resolver

GRAPHQL_URL = "https://www.instagram.com/graphql/query/"
GRAPHQL_DOC_IDS = (
    "8845758582119845",  # reel/post media info
    "7153581528070080",
)
EMBED_URL = "https://www.instagram.com/p/{shortcode}/embed/"
LEGACY_API_URLS = (
    "https://www.instagram.com/reel/{shortcode}/?__a=1&__d=dis",
    "https://www.instagram.com/p/{shortcode}/?__a=1&__d=dis",
)
IG_APP_ID = "936619743392459"
IG_ASBD_ID = "129477"

DEFAULT_TITLE = "Instagram Reels Video"
TITLE_MAX_CHARS = 100
MEDIA_FETCH_TIMEOUT_S = 60

AD_MARKER_RES = (
    re.compile(r"\"product_type\"\s*:\s*\"ad\""),
    re.compile(r"product_type\.ad"),
    re.compile(r"\"is_paid_partnership\"\s*:\s*true"),
)
_AD_VIDEO_KEYS_RE = re.compile(r"\"(video[^\"]*|dash[^\"]*|playback[^\"]*|media[^\"]*url)\"\s*:", re.IGNORECASE)
_AD_MEDIA_URLS_RE = re.compile(r"https?:[^\"]+\.(?:mp4|m3u8|mpd)[^\"]*", re.IGNORECASE)
_AD_MEDIA_REQUEST_RE = re.compile(r"\.mp4|cdninstagram\.com/o1/v/")

_VIDEO_SRC_JS = """
() => {
    const video = document.querySelector('video');
    if (!video) return null;
    const source = video.querySelector('source');
    return video.src || (source ? source.src : null);
}
"""
_PLAY_VIDEO_JS = "() => { const v = document.querySelector('video'); if (v) v.play(); }"


# ============================
# Payload helpers
# ============================


def rank_candidates(candidates: list[Candidate]) -> Candidate | None:
    """Prefer the legacy ``/v/`` delivery path over ``/o1/v/``; else the first candidate."""

    for candidate in candidates:
        if "/v/" in candidate.url and "/o1/v/" not in candidate.url:
            return candidate
    return candidates[0] if candidates else None


def extract_video_candidate(text: str) -> Candidate | None:
    candidates = collect_candidates(text, PAYLOAD_CANDIDATE_LADDER)
    if candidates:
        jlog(
            "info",
            event="instagram_candidates",
            count=len(candidates),
            candidates=[{"source": c.source, "url": c.url[:150]} for c in candidates],
        )
        chosen = rank_candidates(candidates)
        if chosen is not None and "/v/" in chosen.url and "/o1/v/" not in chosen.url:
            jlog("info", event="instagram_legacy_cdn_selected", source=chosen.source)
        return chosen
    hit = CDN_FALLBACK_LADDER.first_match(text)
    if hit:
        rung, value = hit
        return Candidate(url=clean_url(value), source=rung.name)
    return None


def extract_thumbnail(text: str) -> str | None:
    value = THUMBNAIL_LADDER.first(text)
    return clean_url(value) or None


def extract_title(text: str) -> str:
    match = CAPTION_TEXT_RE.search(text or "")
    if not match:
        return DEFAULT_TITLE
    raw = match.group(1)
    try:
        caption = json.loads(f'"{raw}"')
    except ValueError:
        caption = raw
    caption = caption.strip()[:TITLE_MAX_CHARS]
    return caption or DEFAULT_TITLE


def is_ad_payload(text: str) -> bool:
    return any(marker.search(text) for marker in AD_MARKER_RES)


def ad_payload_inventory(text: str) -> dict:
    """Summarize the media-related keys and URLs in an ad payload for diagnostics."""

    keys = sorted({m.group(1) for m in _AD_VIDEO_KEYS_RE.finditer(text)})
    urls = list(dict.fromkeys(clean_url(u)[:150] for u in _AD_MEDIA_URLS_RE.findall(text)))
    return {
        "video_keys": keys,
        "media_urls": urls,
        "has_dash": "dash_info" in text or "dash_manifest" in text,
    }


def build_headers(credential: SessionCredential, url_type: str, shortcode: str, user_agent: str) -> dict[str, str]:
    return {
        "User-Agent": user_agent,
        "Accept": "*/*",
        "Accept-Language": "en-US,en;q=0.9",
        "Cookie": credential.cookie_header(),
        "X-IG-App-ID": IG_APP_ID,
        "X-ASBD-ID": IG_ASBD_ID,
        "X-Requested-With": "XMLHttpRequest",
        "Sec-Fetch-Dest": "empty",
        "Sec-Fetch-Mode": "cors",
        "Sec-Fetch-Site": "same-origin",
        "Referer": f"https://www.instagram.com/{url_type}/{shortcode}/",
    }


def graphql_url(doc_id: str, shortcode: str) -> str:
    variables = json.dumps({"shortcode": shortcode}, separators=(",", ":"))
    return f"{GRAPHQL_URL}?" + urllib.parse.urlencode({"doc_id": doc_id, "variables": variables})


@dataclass(frozen=True)
class Post:
    url: str
    shortcode: str
    url_type: str
    credential: SessionCredential
    headers: dict[str, str]


Strategy = Callable[[Post], Awaitable["VideoReference | None"]]


# ============================
# Resolver
# ============================


class InstagramResolver(Resolver):
    platform = Platform.INSTAGRAM

    def __init__(
        self,
        config: ResolverConfig | None = None,
        *,
        session_store: SessionStore | None = None,
        http: requests.Session | None = None,
        downloader: Downloader | None = None,
        browser_factory: BrowserFactory | None = None,
    ) -> None:
        self.config = config or load_config()
        self.session_store = session_store or default_session_store(self.config.instagram_cookies_json)
        self.http = http or requests.Session()
        self.downloader = downloader or YtDlpDownloader(
            self.config.ytdlp_binary,
            timeout_s=self.config.process_timeout_s,
            min_bytes=self.config.min_download_bytes,
        )
        self.browser_factory = browser_factory

    @staticmethod
    def matches(url: str) -> bool:
        return is_instagram_url(url)

    def strategies(self) -> list[tuple[str, Strategy]]:
        return [
            ("graphql", self._try_graphql),
            ("embed", self._try_embed),
            ("legacy_api", self._try_legacy_api),
        ]

    async def _resolve(self, url: str, attempts: Attempts) -> VideoReference:
        shortcode, url_type = parse_shortcode(url)
        if not shortcode:
            raise NotFound("no shortcode in URL")
        jlog("info", event="instagram_shortcode", shortcode=shortcode, url_type=url_type)

        credential = await asyncio.to_thread(load_credential, self.session_store, INSTAGRAM_SESSION_KEY)
        if credential is None:
            raise MissingCredential("instagram sessionid is not configured")

        post = Post(
            url=url,
            shortcode=shortcode,
            url_type=url_type,
            credential=credential,
            headers=build_headers(credential, url_type, shortcode, self.config.user_agent),
        )
        for name, strategy in self.strategies():
            try:
                reference = await strategy(post)
            except TransportError as exc:
                jlog("warning", event="instagram_strategy_failed", strategy=name, error=str(exc))
                attempts.append(StrategyAttempt(name, "error", str(exc)))
                continue
            if reference is None:
                attempts.append(StrategyAttempt(name, "empty"))
                continue
            attempts.append(StrategyAttempt(name, "found"))
            return reference
        raise NotFound("all instagram strategies exhausted")

    # ---------------- transport ----------------

    def _get_sync(self, url: str, headers: dict[str, str]) -> str:
        try:
            resp = self.http.get(url, headers=headers, timeout=self.config.http_timeout_s)
            resp.raise_for_status()
        except requests.RequestException as exc:
            status = getattr(getattr(exc, "response", None), "status_code", None)
            raise TransportError(f"GET {url[:80]} failed: {status or exc}") from exc
        return resp.text

    async def _get(self, url: str, headers: dict[str, str]) -> str:
        return await asyncio.to_thread(self._get_sync, url, headers)

    async def _first_payload_hit(
        self, urls: list[str], headers: dict[str, str], label: str
    ) -> tuple[Candidate, str] | None:
        """Fetch ``urls`` in order; return the first ``(candidate, payload)`` found.

        Raises :class:`TransportError` only when every request failed.
        """

        errors: list[str] = []
        for endpoint in urls:
            try:
                text = await self._get(endpoint, headers)
            except TransportError as exc:
                jlog("info", event="instagram_request_failed", strategy=label, error=str(exc))
                errors.append(str(exc))
                continue
            jlog("info", event="instagram_response", strategy=label, length=len(text))
            candidate = extract_video_candidate(text)
            if candidate is not None:
                return candidate, text
        if errors and len(errors) == len(urls):
            raise TransportError("; ".join(errors))
        return None

    # ---------------- strategies ----------------

    async def _try_graphql(self, post: Post) -> VideoReference | None:
        urls = [graphql_url(doc_id, post.shortcode) for doc_id in GRAPHQL_DOC_IDS]
        hit = await self._first_payload_hit(urls, post.headers, "graphql")
        if hit is None:
            return None
        candidate, text = hit

        is_ad = is_ad_payload(text)
        details = InstagramDetails(shortcode=post.shortcode, is_ad=is_ad, strategy="graphql")
        reference = VideoReference(
            video_url=candidate.url,
            thumbnail_url=extract_thumbnail(text),
            title=extract_title(text),
            details=details,
        )
        if not is_ad:
            return reference

        jlog("info", event="instagram_ad_detected", shortcode=post.shortcode, **ad_payload_inventory(text))
        local = await self._pre_download(post)
        if local is None:
            jlog("info", event="instagram_ad_remote_fallback", shortcode=post.shortcode)
            return reference
        return VideoReference(
            video_url=local.served_url,
            thumbnail_url=reference.thumbnail_url,
            title=reference.title,
            details=InstagramDetails(
                shortcode=post.shortcode,
                is_ad=True,
                is_local_video=True,
                local_path=str(local.file_path),
                strategy="graphql",
            ),
        )

    async def _try_embed(self, post: Post) -> VideoReference | None:
        headers = {**post.headers, "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"}
        html = await self._get(EMBED_URL.format(shortcode=post.shortcode), headers)
        hit = EMBED_CANDIDATE_LADDER.first_match(html)
        if not hit:
            return None
        rung, value = hit
        jlog("info", event="instagram_embed_candidate", source=rung.name)
        return VideoReference(
            video_url=clean_url(value),
            thumbnail_url=extract_thumbnail(html),
            title=extract_title(html),
            details=InstagramDetails(shortcode=post.shortcode, strategy="embed"),
        )

    async def _try_legacy_api(self, post: Post) -> VideoReference | None:
        urls = [template.format(shortcode=post.shortcode) for template in LEGACY_API_URLS]
        hit = await self._first_payload_hit(urls, post.headers, "legacy_api")
        if hit is None:
            return None
        candidate, text = hit
        return VideoReference(
            video_url=candidate.url,
            thumbnail_url=extract_thumbnail(text),
            title=extract_title(text),
            details=InstagramDetails(shortcode=post.shortcode, strategy="legacy_api"),
        )

    # ---------------- ad pre-download ----------------

    async def _pre_download(self, post: Post) -> AdPreDownload | None:
        file_path, served_url = ad_download_target(self.config.temp_dir, post.shortcode)
        try:
            await self.downloader.download(post.url, file_path, self.config.instagram_cookies_txt)
            return AdPreDownload(file_path=file_path, served_url=served_url)
        except ProcessFailure as exc:
            jlog("warning", event="instagram_ad_download_failed", shortcode=post.shortcode, error=str(exc), stderr=exc.stderr)

        if not (self.config.browser_ad_fallback and self.browser_factory is not None):
            return None
        try:
            await self._download_with_browser(post, file_path)
            return AdPreDownload(file_path=file_path, served_url=served_url)
        except (ProcessFailure, TransportError) as exc:
            jlog("warning", event="instagram_browser_download_failed", shortcode=post.shortcode, error=str(exc))
            return None

    async def _locate_video_in_browser(self, post: Post) -> str | None:
        if self.browser_factory is None:
            raise ProcessFailure("browser download needs a browser factory")
        browser = context = None
        try:
            browser = await self.browser_factory.launch()
            context, page = await open_page(browser, user_agent=self.config.user_agent, viewport=self.config.viewport)
            await context.add_cookies(
                [
                    {
                        "name": "sessionid",
                        "value": post.credential.session_id,
                        "domain": ".instagram.com",
                        "path": "/",
                        "httpOnly": True,
                        "secure": True,
                    },
                    {"name": "ds_user_id", "value": post.credential.user_id, "domain": ".instagram.com", "path": "/"},
                ]
            )
            await page.goto(post.url, wait_until="networkidle", timeout=self.config.nav_timeout_ms)
            video_url = await page.evaluate(_VIDEO_SRC_JS)
            if video_url and not video_url.startswith("blob:"):
                return video_url

            captured: list[str] = []

            def on_request(request) -> None:
                if _AD_MEDIA_REQUEST_RE.search(request.url):
                    captured.append(request.url)

            page.on("request", on_request)
            await page.reload(wait_until="networkidle", timeout=self.config.nav_timeout_ms)
            await page.evaluate(_PLAY_VIDEO_JS)
            await page.wait_for_timeout(self.config.settle_ms)
            return captured[-1] if captured else None
        except PlaywrightError as exc:
            raise TransportError(f"browser automation failed: {exc}") from exc
        finally:
            await cleanup_playwright(context, browser)

    def _fetch_to_file(self, media_url: str, output_path: Path, credential: SessionCredential) -> None:
        headers = {
            "User-Agent": self.config.user_agent,
            "Cookie": credential.cookie_header(),
            "Referer": "https://www.instagram.com/",
        }
        try:
            resp = self.http.get(media_url, headers=headers, timeout=MEDIA_FETCH_TIMEOUT_S)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise TransportError(f"media fetch failed: {exc}") from exc
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_bytes(resp.content)
        except OSError as exc:
            raise ProcessFailure(f"cannot write {output_path}: {exc}") from exc

    async def _download_with_browser(self, post: Post, output_path: Path) -> Path:
        media_url = await self._locate_video_in_browser(post)
        if not media_url:
            raise ProcessFailure("no video source found in the rendered post")
        jlog("info", event="instagram_browser_video_found", url=media_url[:150])
        await asyncio.to_thread(self._fetch_to_file, media_url, output_path, post.credential)
        size = verify_output(output_path, self.config.min_download_bytes)
        jlog("info", event="instagram_browser_download_done", output=str(output_path), bytes=size)
        return output_path


__all__ = [
    "InstagramResolver",
    "ad_payload_inventory",
    "build_headers",
    "extract_thumbnail",
    "extract_title",
    "extract_video_candidate",
    "graphql_url",
    "is_ad_payload",
    "rank_candidates",
]
