import json
import logging
from pathlib import Path

import pytest

from video_resolver.cli import _config_overrides, parse_args, render
from video_resolver.logging import jlog, logging_context
from video_resolver.models import ErrorKind, Failed, InstagramDetails, NoResult, Resolved, VideoReference


def test_parse_args_defaults():
    args = parse_args(["https://youtu.be/dQw4w9WgXcQ"])
    assert args.urls == ["https://youtu.be/dQw4w9WgXcQ"]
    assert not args.follow_delegation
    assert args.timeout_s is None
    assert _config_overrides(args) == {"nav_timeout_ms": args.nav_timeout_ms, "settle_ms": args.settle_ms}


def test_parse_args_overrides(tmp_path):
    args = parse_args(
        [
            "--follow-delegation",
            "--timeout-s",
            "0",
            "--data-dir",
            str(tmp_path),
            "--browser-ad-fallback",
            "a",
            "b",
        ]
    )
    overrides = _config_overrides(args)
    assert args.urls == ["a", "b"]
    assert overrides["resolve_timeout_s"] is None
    assert overrides["temp_dir"] == Path(tmp_path) / "temp"
    assert overrides["instagram_cookies_json"] == Path(tmp_path) / "instagram_cookies.json"
    assert overrides["browser_ad_fallback"] is True
    assert "debug_html" not in overrides


def test_parse_args_rejects_negative_timeout():
    with pytest.raises(SystemExit):
        parse_args(["--timeout-s", "-1", "https://youtu.be/dQw4w9WgXcQ"])


def test_render_outcomes():
    ref = VideoReference("https://v/1.mp4", "t", InstagramDetails("abc"))
    ok = render("u", Resolved(ref))
    assert ok["ok"] is True
    assert ok["result"]["platform"] == "instagram"

    assert render("u", NoResult("exhausted")) == {"url": "u", "ok": False, "kind": "NotFound", "message": "exhausted"}
    failed = render("u", Failed(ErrorKind.UNSUPPORTED_PLATFORM, "nope"))
    assert failed["kind"] == "UnsupportedPlatform"


def test_jlog_merges_context(caplog):
    with caplog.at_level(logging.INFO, logger="resolver"):
        with logging_context(platform="youtube"):
            jlog("info", event="lookup", path=Path("/tmp/x"))
    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["event"] == "lookup"
    assert payload["platform"] == "youtube"
    assert payload["path"] == "/tmp/x"


def test_render_rejects_unknown_results():
    with pytest.raises(TypeError):
        render("u", object())
