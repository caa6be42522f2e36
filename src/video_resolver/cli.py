"""Command-line entry point: resolve one or more post URLs and print JSON."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import dataclass
from pathlib import Path

from .config import DEFAULT_NAV_TIMEOUT_MS, DEFAULT_SETTLE_MS, load_config
from .dispatcher import build_dispatcher
from .logging import configure_logging, jlog, logging_context, set_global_context
from .models import Failed, NoResult, Resolution, Resolved
from .playwright import PlaywrightBrowserFactory
from .versioning import get_resolver_version


@dataclass(frozen=True)
class CliArgs:
    urls: list[str]
    follow_delegation: bool
    nav_timeout_ms: int
    settle_ms: int
    timeout_s: float | None
    data_dir: str | None
    browser_ad_fallback: bool
    debug_html: bool


def parse_args(argv: list[str] | None = None) -> CliArgs:
    p = argparse.ArgumentParser(description="Resolve social-media post links to playable video URLs")
    p.add_argument("urls", nargs="+", help="Post URLs (YouTube, Instagram, Google Ads Transparency)")
    p.add_argument(
        "--follow-delegation",
        action="store_true",
        help="Re-resolve Google Ads results through the YouTube resolver to get a direct URL.",
    )
    p.add_argument("--nav-timeout-ms", type=int, default=DEFAULT_NAV_TIMEOUT_MS)
    p.add_argument("--settle-ms", type=int, default=DEFAULT_SETTLE_MS)
    p.add_argument(
        "--timeout-s",
        type=float,
        help="Deadline for a single resolution (default from RESOLVER_TIMEOUT_S env or 120; 0 disables).",
    )
    p.add_argument("--data-dir", help="Directory holding cookie files and the temp/ download folder.")
    p.add_argument(
        "--browser-ad-fallback",
        action="store_true",
        help="If yt-dlp cannot pre-download an Instagram ad, try capturing it with a browser.",
    )
    p.add_argument("--debug-html", action="store_true", help="Dump rendered ad pages into the debug directory.")
    ns = p.parse_args(argv)
    if ns.timeout_s is not None and ns.timeout_s < 0:
        p.error("--timeout-s must be >= 0")
    return CliArgs(
        urls=list(ns.urls),
        follow_delegation=ns.follow_delegation,
        nav_timeout_ms=ns.nav_timeout_ms,
        settle_ms=ns.settle_ms,
        timeout_s=ns.timeout_s,
        data_dir=ns.data_dir,
        browser_ad_fallback=ns.browser_ad_fallback,
        debug_html=ns.debug_html,
    )


def _config_overrides(args: CliArgs) -> dict:
    overrides: dict = {"nav_timeout_ms": args.nav_timeout_ms, "settle_ms": args.settle_ms}
    if args.timeout_s is not None:
        overrides["resolve_timeout_s"] = args.timeout_s or None
    if args.data_dir:
        data_dir = Path(args.data_dir)
        overrides.update(
            temp_dir=data_dir / "temp",
            instagram_cookies_json=data_dir / "instagram_cookies.json",
            instagram_cookies_txt=data_dir / "instagram_cookies.txt",
            youtube_cookies_txt=data_dir / "youtube_cookies.txt",
        )
    if args.browser_ad_fallback:
        overrides["browser_ad_fallback"] = True
    if args.debug_html:
        overrides["debug_html"] = True
    return overrides


def render(url: str, result: Resolution) -> dict:
    if isinstance(result, Resolved):
        return {"url": url, "ok": True, "result": result.reference.as_dict()}
    if isinstance(result, NoResult):
        return {"url": url, "ok": False, "kind": result.kind.value, "message": result.reason}
    if isinstance(result, Failed):
        return {"url": url, "ok": False, **result.as_dict()}
    raise TypeError(f"unexpected resolution type: {type(result).__name__}")


async def run(args: CliArgs) -> int:
    config = load_config(**_config_overrides(args))
    failures = 0
    async with PlaywrightBrowserFactory(executable_path=config.executable_path) as factory:
        dispatcher = build_dispatcher(factory, config)
        for url in args.urls:
            with logging_context(request_url=url):
                result = await dispatcher.resolve(url, follow_delegation=args.follow_delegation)
            if not isinstance(result, Resolved):
                failures += 1
            print(json.dumps(render(url, result), ensure_ascii=False))
    jlog("info", event="cli_done", total=len(args.urls), failures=failures)
    return 1 if failures else 0


def main(argv: list[str] | None = None) -> None:
    configure_logging()
    set_global_context(app="video_resolver")
    with logging_context(resolver_version=get_resolver_version()):
        args = parse_args(argv)
        sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
