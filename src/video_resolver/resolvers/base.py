"""Common contract implemented by every platform resolver."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..errors import NotFound, ResolverError
from ..logging import logging_context, reslog
from ..models import Failed, NoResult, Platform, Resolution, Resolved, StrategyAttempt, VideoReference

Attempts = list[StrategyAttempt]


class Resolver(ABC):
    platform: Platform

    @staticmethod
    @abstractmethod
    def matches(url: str) -> bool:
        """Static URL predicate used by the dispatcher."""

    @abstractmethod
    async def _resolve(self, url: str, attempts: Attempts) -> VideoReference:
        """Resolve ``url`` or raise a :class:`ResolverError`; record strategies in ``attempts``."""

    async def resolve(self, url: str) -> Resolution:
        attempts: Attempts = []
        platform = self.platform.value
        with logging_context(platform=platform):
            reslog("resolve_start", platform=platform, url=url)
            try:
                reference = await self._resolve(url, attempts)
            except NotFound as exc:
                reslog("resolve_not_found", platform=platform, url=url, reason=str(exc), attempts=len(attempts))
                return NoResult(str(exc), tuple(attempts))
            except ResolverError as exc:
                reslog("resolve_failed", platform=platform, url=url, level="warning", kind=exc.kind.value, error=str(exc))
                return Failed(exc.kind, str(exc), tuple(attempts))
            reslog("resolve_done", platform=platform, url=url, video_url=reference.video_url)
            return Resolved(reference, tuple(attempts))
