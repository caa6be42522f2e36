"""External downloader process (yt-dlp) used for ad pre-downloads."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .config import MIN_DOWNLOAD_BYTES, SERVED_TEMP_PREFIX, YTDLP_BINARY
from .errors import ProcessFailure
from .logging import jlog

_STDERR_TAIL_CHARS = 300


@dataclass(frozen=True)
class AdPreDownload:
    file_path: Path
    served_url: str


class Downloader(Protocol):
    async def download(self, url: str, output_path: Path, cookies_path: Path | None = None) -> Path: ...


def ad_download_target(temp_dir: Path, shortcode: str) -> tuple[Path, str]:
    """Return ``(file_path, served_url)`` for a new ad pre-download of ``shortcode``."""

    filename = f"ad_{shortcode}_{int(time.time() * 1000)}.mp4"
    return Path(temp_dir) / filename, f"{SERVED_TEMP_PREFIX}/{filename}"


def verify_output(output_path: Path, min_bytes: int = MIN_DOWNLOAD_BYTES) -> int:
    """Return the output size, raising :class:`ProcessFailure` when missing or too small."""

    try:
        size = output_path.stat().st_size
    except FileNotFoundError:
        raise ProcessFailure(f"no output file at {output_path}") from None
    except OSError as exc:
        raise ProcessFailure(f"cannot stat {output_path}: {exc}") from exc
    if size <= min_bytes:
        raise ProcessFailure(f"output file too small ({size} bytes)")
    return size


class YtDlpDownloader:
    def __init__(
        self,
        binary: str = YTDLP_BINARY,
        *,
        timeout_s: float = 300.0,
        min_bytes: int = MIN_DOWNLOAD_BYTES,
    ) -> None:
        self.binary = binary
        self.timeout_s = timeout_s
        self.min_bytes = min_bytes

    def build_args(self, url: str, output_path: Path, cookies_path: Path | None) -> list[str]:
        args = [self.binary, "--no-check-certificate", "-o", str(output_path), "--no-playlist"]
        if cookies_path is not None and Path(cookies_path).exists():
            args += ["--cookies", str(cookies_path)]
        args.append(url)
        return args

    async def download(self, url: str, output_path: Path, cookies_path: Path | None = None) -> Path:
        output_path = Path(output_path)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ProcessFailure(f"cannot create output directory {output_path.parent}: {exc}") from exc
        args = self.build_args(url, output_path, cookies_path)
        jlog("info", event="ytdlp_download_start", url=url, output=str(output_path))

        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise ProcessFailure(f"{self.binary} is not installed") from exc
        except OSError as exc:
            raise ProcessFailure(f"could not start {self.binary}: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise ProcessFailure(f"{self.binary} timed out after {self.timeout_s}s") from None
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
            raise

        err_text = (stderr or b"").decode("utf-8", errors="replace")
        if proc.returncode != 0:
            raise ProcessFailure(
                f"{self.binary} exited with code {proc.returncode}",
                returncode=proc.returncode,
                stderr=err_text[-_STDERR_TAIL_CHARS:],
            )
        size = verify_output(output_path, self.min_bytes)
        jlog("info", event="ytdlp_download_done", url=url, output=str(output_path), bytes=size)
        return output_path


__all__ = ["AdPreDownload", "Downloader", "YtDlpDownloader", "ad_download_target", "verify_output"]
