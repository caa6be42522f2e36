import asyncio

from fakes import FakeBrowserFactory, FakeFrame, FakePage, FakeRoute
from video_resolver.config import load_config
from video_resolver.models import ErrorKind, Failed, NoResult, Resolved
from video_resolver.resolvers.googleads import GoogleAdsResolver

AD_URL = "https://adstransparency.google.com/advertiser/AR111/creative/CR222?region=US"


def _resolver(factory, tmp_path=None, **overrides):
    overrides.setdefault("settle_ms", 5)
    if tmp_path is not None:
        overrides.setdefault("debug_dir", str(tmp_path / "debug"))
    return GoogleAdsResolver(factory, load_config(**overrides))


def test_network_capture_wins_over_markup():
    page = FakePage(
        html='<script>{"videoId":"HtMlVideo01"}</script>',
        network=["https://www.youtube.com/embed/NeTwOrK0001?autoplay=1", "https://fonts.gstatic.com/x.woff"],
    )
    factory = FakeBrowserFactory(page)
    result = asyncio.run(_resolver(factory).resolve(AD_URL))

    assert isinstance(result, Resolved)
    ref = result.reference
    assert ref.video_url == "https://www.youtube.com/watch?v=NeTwOrK0001"
    assert ref.thumbnail_url == "https://img.youtube.com/vi/NeTwOrK0001/maxresdefault.jpg"
    assert ref.title == "Google Ads Video"
    assert ref.needs_delegation
    assert ref.details.advertiser_id == "AR111"
    assert ref.details.creative_id == "CR222"
    assert factory.open_instances == 0


def test_frames_are_scanned_and_detached_frames_skipped():
    page = FakePage(
        html="<html>nothing here</html>",
        frames=[
            FakeFrame(fail=True, url="https://detached"),
            FakeFrame(r'<iframe src="https:\/\/www.youtube.com\/embed\/FrAmEvIdEo1"></iframe>'),
        ],
    )
    result = asyncio.run(_resolver(FakeBrowserFactory(page)).resolve(AD_URL))
    assert isinstance(result, Resolved)
    assert result.reference.details.video_id == "FrAmEvIdEo1"


def test_navigation_contract():
    page = FakePage(html='src="https://www.youtube.com/watch?v=dQw4w9WgXcQ"')
    factory = FakeBrowserFactory(page)
    asyncio.run(_resolver(factory, nav_timeout_ms=1234, settle_ms=77).resolve(AD_URL))

    assert page.goto_calls == [(AD_URL, "networkidle", 1234)]
    assert page.waited_ms == [77]
    assert factory.browsers[0].context_kwargs["viewport"] == {"width": 1920, "height": 1080}
    assert "Mozilla/5.0" in factory.browsers[0].context_kwargs["user_agent"]

    route = FakeRoute()
    asyncio.run(page.route_handler(route))
    assert route.continued


def test_empty_page_is_not_found():
    factory = FakeBrowserFactory(FakePage(html="<html><img src='banner.png'></html>"))
    result = asyncio.run(_resolver(factory).resolve(AD_URL))
    assert isinstance(result, NoResult)
    assert [a.outcome for a in result.attempts] == ["empty"]
    assert factory.open_instances == 0


def test_navigation_failure_releases_browser():
    factory = FakeBrowserFactory(FakePage(fail_goto=True))
    result = asyncio.run(_resolver(factory).resolve(AD_URL))

    assert isinstance(result, Failed)
    assert result.kind is ErrorKind.TRANSPORT_ERROR
    assert factory.launched == 1
    assert factory.open_instances == 0
    assert factory.browsers[0].context.closed


def test_launch_failure_is_transport_error():
    factory = FakeBrowserFactory(fail_launch=True)
    result = asyncio.run(_resolver(factory).resolve(AD_URL))
    assert isinstance(result, Failed)
    assert result.kind is ErrorKind.TRANSPORT_ERROR


def test_debug_html_is_written_when_enabled(tmp_path):
    page = FakePage(html='"videoId":"dQw4w9WgXcQ"')
    asyncio.run(_resolver(FakeBrowserFactory(page), tmp_path, debug_html=True).resolve(AD_URL))
    assert (tmp_path / "debug" / "page_CR222.html").read_text(encoding="utf-8") == page.html
