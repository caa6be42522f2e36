"""Ordered regex ladders used to pull identifiers and media URLs out of text.

A ladder is a list of ``Rung`` objects evaluated in order; :meth:`PatternLadder.first`
returns the value of the first rung that matches, :meth:`PatternLadder.all` every
value in ladder order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from .canonical import clean_url
from .models import Candidate

Extractor = Callable[[re.Match], Optional[str]]

YOUTUBE_ID_CHARS = "A-Za-z0-9_-"
YOUTUBE_ID_LEN = 11
_ID = rf"([{YOUTUBE_ID_CHARS}]{{{YOUTUBE_ID_LEN}}})(?![{YOUTUBE_ID_CHARS}])"
_NON_ID_CHARS_RE = re.compile(rf"[^{YOUTUBE_ID_CHARS}]")


def _group1(match: re.Match[str]) -> str | None:
    return match.group(1)


@dataclass(frozen=True)
class Rung:
    name: str
    pattern: re.Pattern[str]
    extract: Extractor = _group1

    def search(self, text: str) -> str | None:
        match = self.pattern.search(text)
        return self.extract(match) if match else None

    def finditer(self, text: str) -> Iterable[tuple[str, str]]:
        """Yield ``(whole_match, value)`` pairs for every match in ``text``."""

        for match in self.pattern.finditer(text):
            value = self.extract(match)
            if value:
                yield match.group(0), value


class PatternLadder:
    def __init__(self, rungs: Iterable[Rung]) -> None:
        self.rungs: tuple[Rung, ...] = tuple(rungs)

    def __iter__(self):
        return iter(self.rungs)

    def __len__(self) -> int:
        return len(self.rungs)

    def extended(self, *rungs: Rung) -> "PatternLadder":
        return PatternLadder((*self.rungs, *rungs))

    def first_match(self, text: str | None) -> tuple[Rung, str] | None:
        if not text:
            return None
        for rung in self.rungs:
            value = rung.search(text)
            if value:
                return rung, value
        return None

    def first(self, text: str | None) -> str | None:
        hit = self.first_match(text)
        return hit[1] if hit else None

    def all(self, text: str | None) -> list[str]:
        """Every extracted value, ladder order first then position, without duplicates."""

        if not text:
            return []
        seen: dict[str, None] = {}
        for rung in self.rungs:
            for _, value in rung.finditer(text):
                seen.setdefault(value, None)
        return list(seen)

    def scan(self, text: str | None) -> list[str]:
        """Raw matched fragments (not extracted values) in ladder order."""

        if not text:
            return []
        return [whole for rung in self.rungs for whole, _ in rung.finditer(text)]


# ============================
# YouTube / Google Ads
# ============================

YOUTUBE_ID_LADDER = PatternLadder(
    [
        Rung("watch", re.compile(rf"youtube\.com/watch\?(?:[^\s\"'<>#]*?&)?v={_ID}")),
        Rung("shorts", re.compile(rf"youtube\.com/shorts/{_ID}")),
        Rung("short_domain", re.compile(rf"youtu\.be/{_ID}")),
        Rung("embed", re.compile(rf"youtube\.com/embed/{_ID}")),
    ]
)

GOOGLEADS_ID_LADDER = YOUTUBE_ID_LADDER.extended(
    Rung("video_id_field", re.compile(rf"\"videoId\"\s*:\s*\"{_ID}\"")),
    Rung("video_id_param", re.compile(rf"video_id[=:]{_ID}")),
)

# Response URLs worth recording while an ad page loads.
HOSTING_URL_RE = re.compile(r"youtube\.com/watch|youtu\.be/|youtube\.com/embed/|googlevideo\.com")


def heuristic_video_id(text: str) -> str | None:
    """Treat ``text`` as a bare identifier if it is exactly 11 id characters once stripped."""

    stripped = _NON_ID_CHARS_RE.sub("", text or "")
    return stripped if len(stripped) == YOUTUBE_ID_LEN else None


def extract_video_ids(fragments: Iterable[str], ladder: PatternLadder = GOOGLEADS_ID_LADDER) -> list[str]:
    """Return distinct video IDs found in ``fragments``, ladder hits before heuristic ones."""

    fragments = list(fragments)
    ids: dict[str, None] = {}
    for fragment in fragments:
        for value in ladder.all(fragment):
            ids.setdefault(value, None)
    for fragment in fragments:
        guess = heuristic_video_id(fragment)
        if guess:
            ids.setdefault(guess, None)
    return list(ids)


# ============================
# Instagram
# ============================

INSTAGRAM_PATH_PREFIXES = ("p", "reel", "reels", "tv")

SHORTCODE_LADDER = PatternLadder(
    Rung(prefix, re.compile(rf"instagram\.com/{prefix}/([A-Za-z0-9_-]+)")) for prefix in INSTAGRAM_PATH_PREFIXES
)

_VERSION_URL_RE = re.compile(r"\"url\"\s*:\s*\"([^\"]+)\"")


def _first_version_url(match: re.Match[str]) -> str | None:
    inner = _VERSION_URL_RE.search(match.group(1))
    return inner.group(1) if inner else None


VIDEO_URL_FIELD = Rung("video_url", re.compile(r"\"video_url\"\s*:\s*\"([^\"]+)\""))
VIDEO_VERSIONS_FIELD = Rung("video_versions", re.compile(r"\"video_versions\"\s*:\s*\[([^\]]+)\]"), _first_version_url)
EMBED_VIDEO_SRC = Rung("video_src", re.compile(r"video[^>]*src=\"([^\"]+\.mp4[^\"]*)\"", re.IGNORECASE))

PAYLOAD_CANDIDATE_LADDER = PatternLadder([VIDEO_URL_FIELD, VIDEO_VERSIONS_FIELD])
EMBED_CANDIDATE_LADDER = PatternLadder([VIDEO_URL_FIELD, EMBED_VIDEO_SRC])

# Raw CDN URLs, accepted only when no structured field yielded a candidate.
_SLASH = r"(?:\\?/)"
CDN_FALLBACK_LADDER = PatternLadder(
    [
        Rung("cdn_mp4", re.compile(rf"(https?:{_SLASH}{_SLASH}[^\"]*?cdninstagram\.com{_SLASH}[^\"]*?\.mp4[^\"]*)")),
        Rung("cdn_o1", re.compile(rf"(https?:{_SLASH}{_SLASH}[^\"]*?cdninstagram\.com{_SLASH}o1{_SLASH}v{_SLASH}[^\"]+)")),
    ]
)

THUMBNAIL_LADDER = PatternLadder(
    [
        Rung("display_url", re.compile(r"\"display_url\"\s*:\s*\"([^\"]+)\"")),
        Rung("thumbnail_url", re.compile(r"\"thumbnail_url\"\s*:\s*\"([^\"]+)\"")),
        Rung("image_versions2", re.compile(r"\"image_versions2\"[^}]*\"url\"\s*:\s*\"([^\"]+)\"")),
    ]
)

CAPTION_TEXT_RE = re.compile(r"\"text\"\s*:\s*\"((?:[^\"\\]|\\.)+)\"")


def collect_candidates(text: str | None, ladder: PatternLadder) -> list[Candidate]:
    """All canonicalized candidates from ``text``, tagged with their rung name."""

    if not text:
        return []
    out: list[Candidate] = []
    for rung in ladder:
        for _, value in rung.finditer(text):
            url = clean_url(value)
            if url:
                out.append(Candidate(url=url, source=rung.name))
    return out


__all__ = [
    "CAPTION_TEXT_RE",
    "CDN_FALLBACK_LADDER",
    "EMBED_CANDIDATE_LADDER",
    "GOOGLEADS_ID_LADDER",
    "HOSTING_URL_RE",
    "INSTAGRAM_PATH_PREFIXES",
    "PAYLOAD_CANDIDATE_LADDER",
    "PatternLadder",
    "Rung",
    "SHORTCODE_LADDER",
    "THUMBNAIL_LADDER",
    "YOUTUBE_ID_LADDER",
    "collect_candidates",
    "extract_video_ids",
    "heuristic_video_id",
]
