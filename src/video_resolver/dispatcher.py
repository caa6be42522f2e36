"""Top-level entry point: route a URL to the resolver that claims it."""

from __future__ import annotations

import asyncio
from typing import Sequence

from .config import ResolverConfig, load_config
from .logging import jlog
from .models import ErrorKind, Failed, Resolution, Resolved
from .playwright import BrowserFactory
from .resolvers.base import Resolver
from .resolvers.googleads import GoogleAdsResolver
from .resolvers.instagram import InstagramResolver
from .resolvers.youtube import YouTubeResolver
from .session import SessionStore, default_session_store


class Dispatcher:
    """Tries exactly one resolver per URL: the first whose predicate matches."""

    def __init__(self, resolvers: Sequence[Resolver], *, timeout_s: float | None = None) -> None:
        self.resolvers = list(resolvers)
        self.timeout_s = timeout_s

    def resolver_for(self, url: str) -> Resolver | None:
        for resolver in self.resolvers:
            if resolver.matches(url):
                return resolver
        return None

    async def _resolve_once(self, url: str) -> Resolution:
        resolver = self.resolver_for(url)
        if resolver is None:
            jlog("info", event="unsupported_platform", url=url)
            return Failed(ErrorKind.UNSUPPORTED_PLATFORM, f"no resolver accepts {url}")
        if self.timeout_s is None:
            return await resolver.resolve(url)
        try:
            return await asyncio.wait_for(resolver.resolve(url), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            jlog("warning", event="resolve_deadline_exceeded", url=url, timeout_s=self.timeout_s)
            return Failed(ErrorKind.TRANSPORT_ERROR, f"resolution exceeded {self.timeout_s}s")

    async def resolve(self, url: str, *, follow_delegation: bool = False) -> Resolution:
        """Resolve ``url``.

        With ``follow_delegation`` a result that points at a hosting-platform
        page (Google Ads to YouTube) is re-dispatched once to get a playable URL.
        """

        result = await self._resolve_once(url)
        if follow_delegation and isinstance(result, Resolved) and result.reference.needs_delegation:
            delegated = result.reference.video_url
            jlog("info", event="delegating", url=url, delegated_url=delegated)
            return await self._resolve_once(delegated)
        return result


def build_dispatcher(
    browser_factory: BrowserFactory,
    config: ResolverConfig | None = None,
    *,
    session_store: SessionStore | None = None,
) -> Dispatcher:
    """Wire the default resolver set in dispatch order."""

    config = config or load_config()
    session_store = session_store or default_session_store(config.instagram_cookies_json)
    resolvers: list[Resolver] = [
        YouTubeResolver(config, session_store=session_store),
        InstagramResolver(config, session_store=session_store, browser_factory=browser_factory),
        GoogleAdsResolver(browser_factory, config),
    ]
    return Dispatcher(resolvers, timeout_s=config.resolve_timeout_s)


__all__ = ["Dispatcher", "build_dispatcher"]
