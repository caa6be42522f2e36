"""Normalization of URL fragments scraped out of HTML/JSON payloads."""

from __future__ import annotations

import re

_REPLACEMENTS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\\u0026", re.IGNORECASE), "&"),
    (re.compile(r"\\/"), "/"),
    (re.compile(r"\\u0025", re.IGNORECASE), "%"),
    (re.compile(r"&amp;"), "&"),
    (re.compile(r'\\"'), '"'),
)


def clean_url(url: str | None) -> str:
    """Return ``url`` with JSON/HTML escaping removed.

    Handles escaped slashes, ``\\u0026``/``\\u0025`` sequences, ``&amp;`` and
    escaped quotes. Applying it twice gives the same result as applying it once.
    """

    if not url:
        return ""
    out = url
    for pattern, repl in _REPLACEMENTS:
        out = pattern.sub(repl, out)
    return out.strip()


__all__ = ["clean_url"]
