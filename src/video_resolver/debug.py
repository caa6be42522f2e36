"""Debug artifact helpers for the browser-driven resolvers."""

from __future__ import annotations

import os

from playwright.async_api import Page

from .logging import jlog

DEBUG_DIR = "media/debug"


def ensure_debug_dir(debug_dir: str = DEBUG_DIR) -> str:
    """Create the debug directory if it does not exist and return the path."""

    os.makedirs(debug_dir, exist_ok=True)
    return debug_dir


async def ensure_debug_html(page: Page, tag: str, debug_dir: str = DEBUG_DIR) -> str | None:
    """Persist the current page HTML for later debugging (best effort)."""

    try:
        ensure_debug_dir(debug_dir)
        html = await page.content()
        path = os.path.join(debug_dir, f"page_{tag}.html")
        with open(path, "w", encoding="utf-8") as f:
            f.write(html)
        return path
    except Exception as exc:
        jlog("error", event="debug_save_html_error", tag=tag, error=str(exc))
        return None


__all__ = ["DEBUG_DIR", "ensure_debug_dir", "ensure_debug_html"]
