"""Result types returned by the resolvers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class Platform(str, Enum):
    YOUTUBE = "youtube"
    INSTAGRAM = "instagram"
    GOOGLEADS = "googleads"


class ErrorKind(str, Enum):
    UNSUPPORTED_PLATFORM = "UnsupportedPlatform"
    MISSING_CREDENTIAL = "MissingCredential"
    TRANSPORT_ERROR = "TransportError"
    NOT_FOUND = "NotFound"
    PROCESS_FAILURE = "ProcessFailure"


@dataclass(frozen=True, slots=True)
class YouTubeDetails:
    video_id: str
    quality: str


@dataclass(frozen=True, slots=True)
class InstagramDetails:
    shortcode: str
    is_ad: bool = False
    is_local_video: bool = False
    local_path: str | None = None
    strategy: str | None = None


@dataclass(frozen=True, slots=True)
class GoogleAdsDetails:
    video_id: str
    # The watch URL is not directly playable; re-resolve it with the YouTube resolver.
    is_youtube: bool = True
    advertiser_id: str | None = None
    creative_id: str | None = None


PlatformDetails = Union[YouTubeDetails, InstagramDetails, GoogleAdsDetails]

_DETAILS_PLATFORM = {
    YouTubeDetails: Platform.YOUTUBE,
    InstagramDetails: Platform.INSTAGRAM,
    GoogleAdsDetails: Platform.GOOGLEADS,
}


@dataclass(frozen=True, slots=True)
class VideoReference:
    """A resolved video: the common fields plus a per-platform payload."""

    video_url: str
    title: str
    details: PlatformDetails
    thumbnail_url: str | None = None

    def __post_init__(self) -> None:
        if not self.video_url:
            raise ValueError("video_url must be a non-empty URL or served path")

    @property
    def platform(self) -> Platform:
        return _DETAILS_PLATFORM[type(self.details)]

    @property
    def needs_delegation(self) -> bool:
        return isinstance(self.details, GoogleAdsDetails) and self.details.is_youtube

    def as_dict(self) -> dict[str, Any]:
        """Flatten into the caller-facing mapping (camelCase keys kept for API clients)."""

        out: dict[str, Any] = {
            "video_url": self.video_url,
            "thumbnail_url": self.thumbnail_url,
            "title": self.title,
            "platform": self.platform.value,
        }
        d = self.details
        if isinstance(d, YouTubeDetails):
            out.update(videoId=d.video_id, quality=d.quality)
        elif isinstance(d, InstagramDetails):
            out.update(isAd=d.is_ad)
            if d.is_local_video:
                out.update(isLocalVideo=True, local_path=d.local_path)
        elif isinstance(d, GoogleAdsDetails):
            out.update(videoId=d.video_id, isYouTube=d.is_youtube)
            if d.advertiser_id:
                out["advertiserId"] = d.advertiser_id
            if d.creative_id:
                out["creativeId"] = d.creative_id
        return out


@dataclass(frozen=True, slots=True)
class Candidate:
    """A scraped URL tagged with the field or pattern that produced it."""

    url: str
    source: str


@dataclass(frozen=True, slots=True)
class StrategyAttempt:
    name: str
    outcome: str  # "found" | "empty" | "error"
    detail: str | None = None


@dataclass(frozen=True, slots=True)
class Resolved:
    reference: VideoReference
    attempts: tuple[StrategyAttempt, ...] = ()


@dataclass(frozen=True, slots=True)
class NoResult:
    reason: str
    attempts: tuple[StrategyAttempt, ...] = ()

    @property
    def kind(self) -> ErrorKind:
        return ErrorKind.NOT_FOUND

    @property
    def had_errors(self) -> bool:
        """True when at least one strategy failed rather than coming back empty."""

        return any(a.outcome == "error" for a in self.attempts)


@dataclass(frozen=True, slots=True)
class Failed:
    kind: ErrorKind
    message: str
    attempts: tuple[StrategyAttempt, ...] = field(default=())

    def as_dict(self) -> dict[str, str]:
        return {"kind": self.kind.value, "message": self.message}


Resolution = Union[Resolved, NoResult, Failed]


__all__ = [
    "Candidate",
    "ErrorKind",
    "Failed",
    "GoogleAdsDetails",
    "InstagramDetails",
    "NoResult",
    "Platform",
    "PlatformDetails",
    "Resolution",
    "Resolved",
    "StrategyAttempt",
    "VideoReference",
    "YouTubeDetails",
]
