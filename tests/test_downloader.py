import asyncio
import stat
import sys
from pathlib import Path

import pytest

from video_resolver.downloader import YtDlpDownloader, ad_download_target, verify_output
from video_resolver.errors import ProcessFailure


def test_ad_download_target_names_file_and_served_url(tmp_path):
    path, served = ad_download_target(tmp_path, "AbC123")
    assert path.parent == tmp_path
    assert path.name.startswith("ad_AbC123_") and path.suffix == ".mp4"
    assert served == f"/temp/{path.name}"


def test_build_args_adds_cookies_only_when_present(tmp_path):
    downloader = YtDlpDownloader("yt-dlp")
    out = tmp_path / "o.mp4"
    cookies = tmp_path / "cookies.txt"
    assert downloader.build_args("https://u", out, cookies) == [
        "yt-dlp",
        "--no-check-certificate",
        "-o",
        str(out),
        "--no-playlist",
        "https://u",
    ]
    cookies.write_text("# Netscape HTTP Cookie File\n", encoding="utf-8")
    args = downloader.build_args("https://u", out, cookies)
    assert args[-3:] == ["--cookies", str(cookies), "https://u"]


def test_verify_output(tmp_path):
    with pytest.raises(ProcessFailure):
        verify_output(tmp_path / "missing.mp4")
    small = tmp_path / "small.mp4"
    small.write_bytes(b"\0" * 1000)
    with pytest.raises(ProcessFailure):
        verify_output(small)
    big = tmp_path / "big.mp4"
    big.write_bytes(b"\0" * 1001)
    assert verify_output(big) == 1001


def test_missing_binary_is_process_failure(tmp_path):
    downloader = YtDlpDownloader(str(tmp_path / "no-such-yt-dlp"))
    with pytest.raises(ProcessFailure, match="not installed"):
        asyncio.run(downloader.download("https://u", tmp_path / "o.mp4"))


def test_nonzero_exit_carries_stderr(tmp_path):
    # the interpreter rejects yt-dlp's flags and exits non-zero
    downloader = YtDlpDownloader(sys.executable, timeout_s=30)
    with pytest.raises(ProcessFailure) as info:
        asyncio.run(downloader.download("https://u", tmp_path / "o.mp4"))
    assert info.value.returncode not in (None, 0)
    assert info.value.stderr


def _fake_binary(tmp_path: Path, body: str) -> str:
    script = tmp_path / "fake-yt-dlp"
    script.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IEXEC)
    return str(script)


@pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")
def test_successful_download_is_verified(tmp_path):
    # $3 is the output path following "-o"
    binary = _fake_binary(tmp_path, 'head -c 2048 /dev/zero > "$3"\n')
    out = tmp_path / "temp" / "ad.mp4"
    result = asyncio.run(YtDlpDownloader(binary, timeout_s=30).download("https://u", out))
    assert result == out
    assert out.stat().st_size == 2048


@pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")
def test_tiny_output_is_rejected(tmp_path):
    binary = _fake_binary(tmp_path, 'printf "x" > "$3"\n')
    with pytest.raises(ProcessFailure, match="too small"):
        asyncio.run(YtDlpDownloader(binary, timeout_s=30).download("https://u", tmp_path / "o.mp4"))


@pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")
def test_hung_process_is_killed(tmp_path):
    binary = _fake_binary(tmp_path, "exec sleep 30\n")
    with pytest.raises(ProcessFailure, match="timed out"):
        asyncio.run(YtDlpDownloader(binary, timeout_s=0.2).download("https://u", tmp_path / "o.mp4"))


def test_unwritable_output_directory_is_process_failure(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")
    downloader = YtDlpDownloader("yt-dlp-does-not-exist")
    with pytest.raises(ProcessFailure, match="cannot create output directory"):
        asyncio.run(downloader.download("https://u", blocker / "temp" / "o.mp4"))
    with pytest.raises(ProcessFailure):
        verify_output(blocker / "o.mp4")
