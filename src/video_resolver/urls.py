"""URL predicates and identifier parsing for the supported platforms."""

from __future__ import annotations

import re
import urllib.parse

from .ladders import SHORTCODE_LADDER

GATC_HOST = "adstransparency.google.com"
GATC_URL_RE = re.compile(r"/advertiser/(AR[0-9]+)/creative/(CR[0-9]+)")

_YOUTUBE_HOSTS = {"youtube.com", "www.youtube.com", "m.youtube.com", "music.youtube.com"}
_YOUTUBE_PATH_RE = re.compile(r"^/(?:watch/?$|shorts/|embed/)")
_INSTAGRAM_HOSTS = {"instagram.com", "www.instagram.com", "m.instagram.com"}
_INSTAGRAM_PATH_RE = re.compile(r"^/(?:p|reel|reels|tv)/[A-Za-z0-9_-]+")


def _host_and_path(url: str) -> tuple[str, str]:
    try:
        parsed = urllib.parse.urlparse(url.strip())
    except (AttributeError, ValueError):
        return "", ""
    if parsed.scheme not in ("http", "https"):
        return "", ""
    return (parsed.hostname or "").lower(), parsed.path or ""


def is_youtube_url(url: str) -> bool:
    host, path = _host_and_path(url)
    if host == "youtu.be":
        return len(path) > 1
    return host in _YOUTUBE_HOSTS and bool(_YOUTUBE_PATH_RE.match(path))


def is_instagram_url(url: str) -> bool:
    host, path = _host_and_path(url)
    return host in _INSTAGRAM_HOSTS and bool(_INSTAGRAM_PATH_RE.match(path))


def is_google_ads_url(url: str) -> bool:
    host, _ = _host_and_path(url)
    return host == GATC_HOST


def parse_ids_from_url(url: str) -> tuple[str | None, str | None]:
    """Return ``(advertiser_id, creative_id)`` from a transparency-center URL."""

    match = GATC_URL_RE.search(url or "")
    if not match:
        return None, None
    return match.group(1), match.group(2)


def parse_shortcode(url: str) -> tuple[str | None, str]:
    """Return ``(shortcode, path_prefix)``; the prefix defaults to ``p``."""

    hit = SHORTCODE_LADDER.first_match(url)
    if not hit:
        return None, "p"
    rung, shortcode = hit
    return shortcode, rung.name


def youtube_watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def youtube_thumbnail_url(video_id: str) -> str:
    return f"https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"


__all__ = [
    "GATC_HOST",
    "GATC_URL_RE",
    "is_google_ads_url",
    "is_instagram_url",
    "is_youtube_url",
    "parse_ids_from_url",
    "parse_shortcode",
    "youtube_thumbnail_url",
    "youtube_watch_url",
]
