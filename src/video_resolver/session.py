"""Session credentials: a remote settings table backed by a local cookie export."""

from __future__ import annotations

import json
import urllib.parse
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Protocol

from .db import get_setting, remote_configured
from .logging import jlog

INSTAGRAM_SESSION_KEY = "instagram_sessionid"
YOUTUBE_COOKIE_KEY = "youtube_cookie"


class SessionStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...


class PostgresSettingsStore:
    """Reads ``settings.value`` rows; never writes."""

    def __init__(self, connect=None) -> None:
        self._connect = connect

    def get(self, key: str) -> Optional[str]:
        if self._connect is not None:
            return get_setting(key, connect=self._connect)
        return get_setting(key)


class CookieJarStore:
    """Looks keys up in a browser cookie export (a JSON list of cookie objects)."""

    def __init__(self, path: Path, names: Mapping[str, str]) -> None:
        self.path = Path(path)
        self.names = dict(names)

    def get(self, key: str) -> Optional[str]:
        name = self.names.get(key)
        if not name or not self.path.exists():
            return None
        try:
            cookies = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            jlog("warning", event="cookie_file_unreadable", path=str(self.path), error=str(exc))
            return None
        if not isinstance(cookies, list):
            return None
        for cookie in cookies:
            if isinstance(cookie, dict) and cookie.get("name") == name and cookie.get("value"):
                return str(cookie["value"])
        return None


class TieredSessionStore:
    """Remote store first, local store as fallback."""

    def __init__(self, remote: SessionStore | None, local: SessionStore | None) -> None:
        self.remote = remote
        self.local = local

    def get(self, key: str) -> Optional[str]:
        if self.remote is not None:
            value = self.remote.get(key)
            if value:
                jlog("info", event="session_loaded", key=key, tier="remote")
                return value
        if self.local is not None:
            value = self.local.get(key)
            if value:
                jlog("info", event="session_loaded", key=key, tier="local")
                return value
        return None


def default_session_store(instagram_cookies_json: Path) -> TieredSessionStore:
    remote = PostgresSettingsStore() if remote_configured() else None
    local = CookieJarStore(instagram_cookies_json, {INSTAGRAM_SESSION_KEY: "sessionid"})
    return TieredSessionStore(remote, local)


@dataclass(frozen=True)
class SessionCredential:
    session_id: str

    @property
    def user_id(self) -> str:
        return self.session_id.split(":", 1)[0]

    def cookie_header(self) -> str:
        return f"sessionid={self.session_id}; ds_user_id={self.user_id}"

    def __repr__(self) -> str:
        return f"SessionCredential(user_id={self.user_id!r})"


def load_credential(store: SessionStore, key: str = INSTAGRAM_SESSION_KEY) -> SessionCredential | None:
    raw = store.get(key)
    if not raw:
        return None
    return SessionCredential(urllib.parse.unquote(raw))


__all__ = [
    "INSTAGRAM_SESSION_KEY",
    "YOUTUBE_COOKIE_KEY",
    "CookieJarStore",
    "PostgresSettingsStore",
    "SessionCredential",
    "SessionStore",
    "TieredSessionStore",
    "default_session_store",
    "load_credential",
]
