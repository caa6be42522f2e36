"""Resolver version resolution helpers."""

from __future__ import annotations

import os

RESOLVER_NAME = "video_resolver"
RESOLVER_VERSION = "2026-10-19.1"


def get_resolver_version(name: str = RESOLVER_NAME, version: str = RESOLVER_VERSION) -> str:
    """Return a human-readable version string with an env override."""

    return os.getenv("VIDEO_RESOLVER_VERSION", f"{name}:{version}")


__all__ = ["RESOLVER_NAME", "RESOLVER_VERSION", "get_resolver_version"]
