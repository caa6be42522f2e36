"""Cookie-file preparation for the yt-dlp based resolvers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from .logging import jlog
from .session import SessionStore

NETSCAPE_HEADER = "# Netscape HTTP Cookie File"


def json_to_netscape(text: str, *, default_domain: str = ".youtube.com") -> Optional[str]:
    """Convert a JSON cookie export into Netscape cookie-file text.

    Returns ``None`` when ``text`` is not a JSON list.
    """

    try:
        cookies = json.loads(text)
    except ValueError:
        return None
    if not isinstance(cookies, list):
        return None

    lines = [NETSCAPE_HEADER]
    for c in cookies:
        if not isinstance(c, dict):
            continue
        name, value = c.get("name"), c.get("value")
        if not name or not value:
            continue
        domain = c.get("domain") or default_domain
        flag = "TRUE" if domain.startswith(".") else "FALSE"
        path = c.get("path") or "/"
        secure = "TRUE" if c.get("secure") else "FALSE"
        expiry = int(c["expirationDate"]) if c.get("expirationDate") else 0
        lines.append(f"{domain}\t{flag}\t{path}\t{secure}\t{expiry}\t{name}\t{value}")
    return "\n".join(lines)


def prepare_cookie_file(path: Path, store: SessionStore | None = None, key: str | None = None) -> Optional[Path]:
    """Return a Netscape cookie file for yt-dlp, or ``None`` if no cookies are available.

    An existing file holding a JSON export is rewritten in place; otherwise the
    remote store is consulted and its value cached at ``path``.
    """

    path = Path(path)
    if path.exists():
        content = path.read_text(encoding="utf-8").strip()
        if content.startswith("["):
            converted = json_to_netscape(content)
            if converted:
                path.write_text(converted, encoding="utf-8")
                jlog("info", event="cookie_file_converted", path=str(path))
        return path

    if store is None or key is None:
        return None
    value = store.get(key)
    if not value:
        return None
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json_to_netscape(value) or value, encoding="utf-8")
    jlog("info", event="cookie_file_cached", path=str(path), key=key)
    return path


__all__ = ["NETSCAPE_HEADER", "json_to_netscape", "prepare_cookie_file"]
