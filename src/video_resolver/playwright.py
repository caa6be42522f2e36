"""Playwright lifecycle helpers shared by the browser-driven resolvers."""

from __future__ import annotations

from typing import Any, Protocol

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from .logging import jlog

CHROMIUM_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-web-security",
    "--disable-features=IsolateOrigins,site-per-process",
]


class BrowserFactory(Protocol):
    """Anything that can hand out a fresh browser instance per resolution call."""

    async def launch(self) -> Browser: ...


class PlaywrightBrowserFactory:
    """Owns one Playwright driver; launches a new Chromium per :meth:`launch`.

    Call :meth:`start` before use and :meth:`stop` at shutdown, or use it as an
    async context manager.
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        args: list[str] | None = None,
        executable_path: str | None = None,
    ) -> None:
        self.headless = headless
        self.args = list(args if args is not None else CHROMIUM_LAUNCH_ARGS)
        self.executable_path = executable_path
        self._playwright: Any = None

    async def start(self) -> "PlaywrightBrowserFactory":
        if self._playwright is None:
            self._playwright = await async_playwright().start()
        return self

    async def stop(self) -> None:
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def launch(self) -> Browser:
        if self._playwright is None:
            raise RuntimeError("PlaywrightBrowserFactory.start() must be awaited before launch()")
        return await self._playwright.chromium.launch(
            headless=self.headless,
            args=self.args,
            executable_path=self.executable_path,
        )

    async def __aenter__(self) -> "PlaywrightBrowserFactory":
        return await self.start()

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()


async def open_page(browser: Browser, *, user_agent: str, viewport: dict[str, int]) -> tuple[BrowserContext, Page]:
    context = await browser.new_context(user_agent=user_agent, viewport=viewport)
    page = await context.new_page()
    return context, page


async def cleanup_playwright(context, browser) -> None:
    """Close the context and browser, ignoring errors from already-dead instances."""

    try:
        if context:
            await context.close()
    except Exception as exc:
        jlog("debug", event="context_close_failed", error=str(exc))
    try:
        if browser:
            await browser.close()
    except Exception as exc:
        jlog("debug", event="browser_close_failed", error=str(exc))


__all__ = [
    "CHROMIUM_LAUNCH_ARGS",
    "BrowserFactory",
    "PlaywrightBrowserFactory",
    "cleanup_playwright",
    "open_page",
]
