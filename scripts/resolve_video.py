#!/usr/bin/env python3
"""CLI shim for the video resolver.

Usage examples:
  python scripts/resolve_video.py "https://www.youtube.com/shorts/dQw4w9WgXcQ"
  python scripts/resolve_video.py --follow-delegation \
    "https://adstransparency.google.com/advertiser/AR123/creative/CR456?region=US"
"""
from __future__ import annotations

from video_resolver.cli import main

if __name__ == "__main__":
    main()
