"""Structured logging helpers shared by the resolvers and the CLI."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator

UTC = getattr(datetime, "UTC", timezone.utc)
_LOGGER_NAME = "resolver"
_configured = False
_base_context: dict[str, Any] = {}
# Per-task scope stack; asyncio tasks each see their own copy.
_context_stack: ContextVar[tuple[dict[str, Any], ...]] = ContextVar("resolver_log_context", default=())


def configure_logging(level: int = logging.INFO) -> None:
    """Configure the global logging formatter once."""

    global _configured
    if _configured:
        return
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")
    _configured = True


def set_global_context(**fields: Any) -> None:
    """Add persistent context fields that appear on every structured log."""

    _base_context.update({k: v for k, v in fields.items() if v is not None})


@contextmanager
def logging_context(**fields: Any) -> Iterator[None]:
    """Push a temporary logging context for the duration of the ``with`` block."""

    ctx = {k: v for k, v in fields.items() if v is not None}
    token = _context_stack.set((*_context_stack.get(), ctx))
    try:
        yield
    finally:
        _context_stack.reset(token)


def _merged_context() -> dict[str, Any]:
    merged: dict[str, Any] = {}
    merged.update(_base_context)
    for ctx in _context_stack.get():
        merged.update(ctx)
    return merged


def _utcnow_iso() -> str:
    return datetime.now(UTC).isoformat()


def jlog(level: str, /, **fields: Any) -> None:
    """Emit a structured JSON log payload under the ``resolver`` logger."""

    log = logging.getLogger(_LOGGER_NAME)
    record = {"ts": _utcnow_iso(), **_merged_context(), **fields}
    getattr(log, level.lower())(json.dumps(record, ensure_ascii=False, sort_keys=True, default=str))


def reslog(event: str, *, platform: str, url: str, level: str = "info", **kw: Any) -> None:
    """Shortcut for resolution-scoped JSON logging records."""

    jlog(level, event=event, platform=platform, url=url, **kw)


__all__ = ["configure_logging", "jlog", "logging_context", "reslog", "set_global_context"]
