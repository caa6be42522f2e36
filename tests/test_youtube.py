import asyncio
import json

from fakes import DictStore
from video_resolver.config import load_config
from video_resolver.errors import TransportError
from video_resolver.models import ErrorKind, Failed, NoResult, Resolved
from video_resolver.resolvers.youtube import (
    ExtractedInfo,
    MediaFormat,
    YouTubeResolver,
    parse_info,
    select_format,
)

VIDEO_ID = "dQw4w9WgXcQ"


class FakeExtractor:
    def __init__(self, info: ExtractedInfo | None = None, error: Exception | None = None) -> None:
        self.info = info
        self.error = error
        self.calls = []

    async def extract(self, url, *, cookies_path=None):
        self.calls.append((url, cookies_path))
        if self.error is not None:
            raise self.error
        return self.info


def _formats():
    return [
        MediaFormat("https://r1.googlevideo.com/videoplayback?itag=18", "mp4", "avc1", "mp4a", 360, "360p"),
        MediaFormat("https://r1.googlevideo.com/videoplayback?itag=137", "mp4", "avc1", "none", 1080, "1080p"),
        MediaFormat("https://manifest.googlevideo.com/api/manifest/hls_playlist/index.m3u8", "mp4", None, None, 1080, "1080p"),
    ]


def test_select_format_prefers_combined_direct_mp4():
    chosen = select_format(_formats())
    assert chosen.quality_label == "360p"
    # same answer regardless of input order
    assert select_format(list(reversed(_formats()))) == chosen


def test_select_format_falls_through_priority_rungs():
    video_only = MediaFormat("https://r/1080.mp4", "mp4", "avc1", "none", 1080, "1080p")
    webm = MediaFormat("https://r/720.webm", "webm", "vp9", "opus", 720, "720p")
    manifest = MediaFormat("https://r/master.m3u8", "mp4", "avc1", "mp4a", 720, "720p")

    assert select_format([webm, video_only]) == video_only
    assert select_format([manifest, webm]) == webm
    assert select_format([manifest]) == manifest
    assert select_format([MediaFormat(None)]) is None
    assert select_format([]) is None


def test_parse_info_maps_yt_dlp_fields():
    info = parse_info(
        {
            "title": "Song",
            "thumbnail": "https://i.ytimg.com/vi/x/maxresdefault.jpg",
            "formats": [
                {"url": "https://a", "ext": "mp4", "vcodec": "avc1", "acodec": "mp4a", "height": 360, "format_note": "360p"},
                {"url": "https://b", "ext": "webm", "resolution": "640x360"},
                "garbage",
            ],
        }
    )
    assert info.title == "Song"
    assert [f.quality_label for f in info.formats] == ["360p", "640x360"]
    assert info.formats[0].is_combined
    assert parse_info({}).formats == ()


def _resolver(tmp_path, extractor, store=None):
    config = load_config(youtube_cookies_txt=tmp_path / "youtube_cookies.txt")
    return YouTubeResolver(config, extractor=extractor, session_store=store)


def test_resolve_returns_selected_format(tmp_path):
    extractor = FakeExtractor(ExtractedInfo("Never Gonna", "https://thumb/1.jpg", tuple(_formats())))
    result = asyncio.run(_resolver(tmp_path, extractor).resolve(f"https://youtu.be/{VIDEO_ID}?si=x"))

    assert isinstance(result, Resolved)
    ref = result.reference
    assert ref.video_url.endswith("itag=18")
    assert ref.title == "Never Gonna"
    assert ref.details.video_id == VIDEO_ID
    assert ref.details.quality == "360p"
    assert extractor.calls == [(f"https://www.youtube.com/watch?v={VIDEO_ID}", None)]
    assert [a.outcome for a in result.attempts] == ["found"]


def test_resolve_defaults_title_and_quality(tmp_path):
    info = ExtractedInfo(None, None, (MediaFormat("https://r/v.mp4", "mp4"),))
    result = asyncio.run(_resolver(tmp_path, FakeExtractor(info)).resolve(f"https://www.youtube.com/shorts/{VIDEO_ID}"))
    assert result.reference.title == "YouTube Video"
    assert result.reference.details.quality == "unknown"


def test_resolve_without_video_id_is_not_found(tmp_path):
    extractor = FakeExtractor()
    result = asyncio.run(_resolver(tmp_path, extractor).resolve("https://www.youtube.com/watch?v=short"))
    assert isinstance(result, NoResult)
    assert extractor.calls == []


def test_resolve_without_formats_is_not_found(tmp_path):
    result = asyncio.run(_resolver(tmp_path, FakeExtractor(ExtractedInfo("t", None, ()))).resolve(f"https://youtu.be/{VIDEO_ID}"))
    assert isinstance(result, NoResult)
    assert [a.outcome for a in result.attempts] == ["empty"]


def test_extractor_failure_is_transport_error(tmp_path):
    extractor = FakeExtractor(error=TransportError("HTTP Error 429"))
    result = asyncio.run(_resolver(tmp_path, extractor).resolve(f"https://youtu.be/{VIDEO_ID}"))
    assert isinstance(result, Failed)
    assert result.kind is ErrorKind.TRANSPORT_ERROR
    assert "429" in result.message
    assert result.attempts[0].outcome == "error"


def test_remote_cookie_is_converted_and_passed_to_extractor(tmp_path):
    store = DictStore({"youtube_cookie": json.dumps([{"domain": ".youtube.com", "name": "SID", "value": "a"}])})
    extractor = FakeExtractor(ExtractedInfo("t", None, tuple(_formats())))
    asyncio.run(_resolver(tmp_path, extractor, store).resolve(f"https://youtu.be/{VIDEO_ID}"))

    cookies_path = extractor.calls[0][1]
    assert cookies_path == tmp_path / "youtube_cookies.txt"
    assert cookies_path.read_text(encoding="utf-8").startswith("# Netscape HTTP Cookie File")


def test_matches_is_static():
    assert YouTubeResolver.matches(f"https://www.youtube.com/embed/{VIDEO_ID}")
    assert not YouTubeResolver.matches("https://www.instagram.com/reel/abc/")
