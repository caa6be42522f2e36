"""YouTube resolver: identifier ladder + yt-dlp metadata + format selection."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Protocol

import yt_dlp
from yt_dlp.utils import YoutubeDLError

from ..config import ResolverConfig, load_config
from ..cookies import prepare_cookie_file
from ..errors import NotFound, TransportError
from ..ladders import YOUTUBE_ID_LADDER
from ..logging import jlog
from ..models import Platform, StrategyAttempt, VideoReference, YouTubeDetails
from ..session import YOUTUBE_COOKIE_KEY, SessionStore
from ..urls import is_youtube_url, youtube_watch_url
from .base import Attempts, Resolver

DEFAULT_CONTAINER = "mp4"
DEFAULT_TITLE = "YouTube Video"
_MANIFEST_MARKERS = (".m3u8", "manifest")


@dataclass(frozen=True)
class MediaFormat:
    url: str | None
    container: str | None = None
    video_codec: str | None = None
    audio_codec: str | None = None
    height: int | None = None
    quality_label: str | None = None

    @property
    def is_direct(self) -> bool:
        return bool(self.url) and not any(marker in self.url for marker in _MANIFEST_MARKERS)

    @property
    def is_combined(self) -> bool:
        # yt-dlp reports "none" for a missing stream and None when unknown.
        return self.video_codec != "none" and self.audio_codec != "none"


@dataclass(frozen=True)
class ExtractedInfo:
    title: str | None
    thumbnail: str | None
    formats: tuple[MediaFormat, ...]
    url: str | None = None


class FormatExtractor(Protocol):
    async def extract(self, url: str, *, cookies_path: Path | None = None) -> ExtractedInfo: ...


def parse_info(info: dict[str, Any]) -> ExtractedInfo:
    formats = tuple(
        MediaFormat(
            url=f.get("url"),
            container=f.get("ext"),
            video_codec=f.get("vcodec"),
            audio_codec=f.get("acodec"),
            height=f.get("height"),
            quality_label=f.get("format_note") or f.get("resolution"),
        )
        for f in info.get("formats") or []
        if isinstance(f, dict)
    )
    return ExtractedInfo(
        title=info.get("title"),
        thumbnail=info.get("thumbnail"),
        formats=formats,
        url=info.get("url"),
    )


class YtDlpFormatExtractor:
    """Runs ``yt_dlp.YoutubeDL.extract_info`` (no download) in a worker thread."""

    BASE_OPTIONS: dict[str, Any] = {
        "quiet": True,
        "no_warnings": True,
        "skip_download": True,
        "nocheckcertificate": True,
        "prefer_free_formats": True,
        "noplaylist": True,
    }

    def __init__(self, options: dict[str, Any] | None = None) -> None:
        self.options = {**self.BASE_OPTIONS, **(options or {})}

    def _extract_sync(self, url: str, cookies_path: Path | None) -> dict[str, Any]:
        opts = dict(self.options)
        if cookies_path is not None:
            opts["cookiefile"] = str(cookies_path)
        with yt_dlp.YoutubeDL(opts) as ydl:
            info = ydl.extract_info(url, download=False)
        if not info:
            raise TransportError(f"yt-dlp returned no info for {url}")
        return ydl.sanitize_info(info)

    async def extract(self, url: str, *, cookies_path: Path | None = None) -> ExtractedInfo:
        try:
            info = await asyncio.to_thread(self._extract_sync, url, cookies_path)
        except YoutubeDLError as exc:
            raise TransportError(str(exc)) from exc
        return parse_info(info)


def _by_height(formats: Iterable[MediaFormat]) -> list[MediaFormat]:
    return sorted(formats, key=lambda f: f.height or 0, reverse=True)


def select_format(formats: Iterable[MediaFormat], container: str = DEFAULT_CONTAINER) -> MediaFormat | None:
    """Pick the most playable format.

    Priority: combined audio+video direct ``container`` (tallest), any direct
    ``container`` (tallest), any direct URL, then anything with a URL.
    """

    formats = list(formats)
    combined = _by_height(f for f in formats if f.container == container and f.is_combined and f.is_direct)
    if combined:
        return combined[0]
    same_container = _by_height(f for f in formats if f.container == container and f.is_direct)
    if same_container:
        return same_container[0]
    for f in formats:
        if f.is_direct:
            return f
    for f in formats:
        if f.url:
            jlog("info", event="youtube_manifest_fallback", quality=f.quality_label)
            return f
    return None


class YouTubeResolver(Resolver):
    platform = Platform.YOUTUBE

    def __init__(
        self,
        config: ResolverConfig | None = None,
        *,
        extractor: FormatExtractor | None = None,
        session_store: SessionStore | None = None,
    ) -> None:
        self.config = config or load_config()
        self.extractor = extractor or YtDlpFormatExtractor()
        self.session_store = session_store

    @staticmethod
    def matches(url: str) -> bool:
        return is_youtube_url(url)

    @staticmethod
    def extract_video_id(url: str) -> str | None:
        return YOUTUBE_ID_LADDER.first(url)

    def _cookies_path(self) -> Path | None:
        try:
            return prepare_cookie_file(self.config.youtube_cookies_txt, self.session_store, YOUTUBE_COOKIE_KEY)
        except OSError as exc:
            jlog("warning", event="youtube_cookie_prepare_failed", error=str(exc))
            return None

    async def _resolve(self, url: str, attempts: Attempts) -> VideoReference:
        video_id = self.extract_video_id(url)
        if not video_id:
            raise NotFound("no YouTube video id in URL")
        jlog("info", event="youtube_video_id", video_id=video_id)

        cookies_path = await asyncio.to_thread(self._cookies_path)
        if cookies_path:
            jlog("info", event="youtube_cookie_file", path=str(cookies_path))

        try:
            info = await self.extractor.extract(youtube_watch_url(video_id), cookies_path=cookies_path)
        except TransportError as exc:
            attempts.append(StrategyAttempt("yt-dlp", "error", str(exc)))
            raise

        selected = select_format(info.formats)
        direct_url = selected.url if selected else info.url
        if not direct_url:
            attempts.append(StrategyAttempt("yt-dlp", "empty"))
            raise NotFound("no downloadable format")
        attempts.append(StrategyAttempt("yt-dlp", "found"))

        quality = (selected.quality_label if selected else None) or "unknown"
        jlog("info", event="youtube_format_selected", video_id=video_id, quality=quality)
        return VideoReference(
            video_url=direct_url,
            thumbnail_url=info.thumbnail,
            title=info.title or DEFAULT_TITLE,
            details=YouTubeDetails(video_id=video_id, quality=quality),
        )


__all__ = [
    "ExtractedInfo",
    "FormatExtractor",
    "MediaFormat",
    "YouTubeResolver",
    "YtDlpFormatExtractor",
    "parse_info",
    "select_format",
]
