"""Runtime configuration for the resolvers (environment-overridable defaults)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_VIEWPORT = {"width": 1920, "height": 1080}

# Timeouts (overridable via env)
DEFAULT_NAV_TIMEOUT_MS = int(os.getenv("RESOLVER_NAV_TIMEOUT_MS", "30000"))
DEFAULT_SETTLE_MS = int(os.getenv("RESOLVER_SETTLE_MS", "3000"))
DEFAULT_HTTP_TIMEOUT_S = float(os.getenv("RESOLVER_HTTP_TIMEOUT_S", "15"))
DEFAULT_PROCESS_TIMEOUT_S = float(os.getenv("RESOLVER_PROCESS_TIMEOUT_S", "300"))
DEFAULT_RESOLVE_TIMEOUT_S = float(os.getenv("RESOLVER_TIMEOUT_S", "120"))

# Files
DEFAULT_DATA_DIR = Path(os.getenv("RESOLVER_DATA_DIR", "."))
DEFAULT_TEMP_DIR = Path(os.getenv("RESOLVER_TEMP_DIR", str(DEFAULT_DATA_DIR / "temp")))
DEFAULT_DEBUG_DIR = os.getenv("RESOLVER_DEBUG_DIR", "media/debug")
SERVED_TEMP_PREFIX = "/temp"

# Ad pre-download
MIN_DOWNLOAD_BYTES = 1000
YTDLP_BINARY = os.getenv("YTDLP_BINARY", "yt-dlp")

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).lower() in _TRUE_VALUES


@dataclass(frozen=True)
class ResolverConfig:
    user_agent: str = DEFAULT_USER_AGENT
    viewport: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_VIEWPORT))
    nav_timeout_ms: int = DEFAULT_NAV_TIMEOUT_MS
    settle_ms: int = DEFAULT_SETTLE_MS
    http_timeout_s: float = DEFAULT_HTTP_TIMEOUT_S
    process_timeout_s: float = DEFAULT_PROCESS_TIMEOUT_S
    resolve_timeout_s: float | None = DEFAULT_RESOLVE_TIMEOUT_S
    temp_dir: Path = DEFAULT_TEMP_DIR
    debug_dir: str = DEFAULT_DEBUG_DIR
    instagram_cookies_json: Path = DEFAULT_DATA_DIR / "instagram_cookies.json"
    instagram_cookies_txt: Path = DEFAULT_DATA_DIR / "instagram_cookies.txt"
    youtube_cookies_txt: Path = DEFAULT_DATA_DIR / "youtube_cookies.txt"
    ytdlp_binary: str = YTDLP_BINARY
    min_download_bytes: int = MIN_DOWNLOAD_BYTES
    browser_ad_fallback: bool = False
    debug_html: bool = False
    executable_path: str | None = None


def load_config(**overrides) -> ResolverConfig:
    """Build a :class:`ResolverConfig` from the environment, then apply ``overrides``."""

    data_dir = Path(os.getenv("RESOLVER_DATA_DIR", str(DEFAULT_DATA_DIR)))
    values = dict(
        temp_dir=Path(os.getenv("RESOLVER_TEMP_DIR", str(data_dir / "temp"))),
        instagram_cookies_json=data_dir / "instagram_cookies.json",
        instagram_cookies_txt=data_dir / "instagram_cookies.txt",
        youtube_cookies_txt=data_dir / "youtube_cookies.txt",
        browser_ad_fallback=_env_flag("RESOLVER_BROWSER_AD_FALLBACK"),
        debug_html=_env_flag("RESOLVER_DEBUG_HTML"),
        executable_path=os.getenv("PLAYWRIGHT_EXECUTABLE_PATH") or None,
    )
    timeout = os.getenv("RESOLVER_TIMEOUT_S")
    if timeout is not None and timeout.strip().lower() in {"", "0", "none"}:
        values["resolve_timeout_s"] = None
    values.update(overrides)
    return ResolverConfig(**values)


__all__ = [
    "DEFAULT_NAV_TIMEOUT_MS",
    "DEFAULT_SETTLE_MS",
    "DEFAULT_USER_AGENT",
    "MIN_DOWNLOAD_BYTES",
    "SERVED_TEMP_PREFIX",
    "ResolverConfig",
    "load_config",
]
