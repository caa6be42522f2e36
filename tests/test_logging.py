import asyncio
import json
import logging

from video_resolver.logging import jlog, logging_context


def _payloads(caplog):
    return [json.loads(r.getMessage()) for r in caplog.records if r.name == "resolver"]


def test_concurrent_contexts_stay_separate(caplog):
    async def resolve(platform: str, delay: float) -> None:
        with logging_context(platform=platform):
            await asyncio.sleep(delay)
            jlog("info", event="after_sleep", expected=platform)

    async def main() -> None:
        await asyncio.gather(resolve("instagram", 0.05), resolve("youtube", 0.01))

    with caplog.at_level(logging.INFO, logger="resolver"):
        asyncio.run(main())

    records = [p for p in _payloads(caplog) if p["event"] == "after_sleep"]
    assert len(records) == 2
    for payload in records:
        assert payload["platform"] == payload["expected"]


def test_nested_context_is_restored(caplog):
    with caplog.at_level(logging.INFO, logger="resolver"):
        with logging_context(platform="googleads"):
            with logging_context(platform="youtube", url="u"):
                jlog("info", event="inner")
            jlog("info", event="outer")
        jlog("info", event="outside")

    inner, outer, outside = _payloads(caplog)[-3:]
    assert (inner["platform"], inner["url"]) == ("youtube", "u")
    assert outer["platform"] == "googleads" and "url" not in outer
    assert "platform" not in outside
