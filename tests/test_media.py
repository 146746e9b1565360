"""Tests for media download commands and URL extraction."""

from unittest.mock import AsyncMock

import pytest

from conftest import FakeResponder, add_account, invoke, make_api
from lookupbot.accounts import Account
from lookupbot.api.client import LookupAPIError
from lookupbot.api.models import MediaItem, MediaProbe
from lookupbot.dispatcher import Invocation, SoftFailure, Success
from lookupbot.tools.media import (
    MediaDownloader,
    detect_platform,
    extract_item_list,
    extract_single_item,
    extract_video_url,
    find_first_url,
    item_url,
)
from lookupbot.utils.constants import MAX_INLINE_VIDEO_BYTES, Platform


def _nested(depth: int, leaf: str) -> dict:
    value: object = leaf
    for _ in range(depth):
        value = {"wrapper": value}
    return value


# ---------------------------------------------------------------------------
# URL extraction
# ---------------------------------------------------------------------------


class TestDetectPlatform:
    @pytest.mark.parametrize(
        "url,platform",
        [
            ("https://www.instagram.com/reel/abc/", Platform.INSTAGRAM),
            ("https://fb.watch/xyz", Platform.FACEBOOK),
            ("https://snapchat.com/t/H2D8zTxt", Platform.SNAPCHAT),
            ("https://pin.it/4gsJMxtt1", Platform.PINTEREST),
            ("https://www.terabox.com/s/1abc", Platform.TERABOX),
            ("https://youtu.be/dQw4w9WgXcQ", Platform.YOUTUBE),
            ("https://example.com/video.mp4", Platform.UNKNOWN),
        ],
    )
    def test_detects(self, url, platform) -> None:
        assert detect_platform(url) == platform


class TestFindFirstUrl:
    def test_preferred_keys_win_over_insertion_order(self) -> None:
        data = {"thumbnail": "https://img.example.com/t.jpg", "video": "https://cdn.example.com/v.mp4"}
        assert find_first_url(data) == "https://cdn.example.com/v.mp4"

    def test_falls_back_to_other_keys(self) -> None:
        assert find_first_url({"meta": {"thumb": "https://img/t.jpg"}}) == "https://img/t.jpg"

    def test_searches_lists(self) -> None:
        data = {"medias": [{"quality": "hd"}, {"src": "https://cdn/v.mp4"}]}
        assert find_first_url(data) == "https://cdn/v.mp4"

    def test_ignores_non_http_strings(self) -> None:
        assert find_first_url({"video": "ftp://x", "note": "nothing"}) is None

    def test_depth_bound(self) -> None:
        assert find_first_url(_nested(10, "https://deep/v.mp4")) == "https://deep/v.mp4"
        assert find_first_url(_nested(40, "https://deep/v.mp4")) is None

    def test_extract_prefers_hd(self) -> None:
        data = {"sd": "https://cdn/sd.mp4", "hd": "https://cdn/hd.mp4", "video": "https://cdn/v.mp4"}
        assert extract_video_url(data) == "https://cdn/hd.mp4"

    def test_single_item_playlist(self) -> None:
        item = extract_single_item({"video": "https://cdn/index.m3u8", "isM3U8": True})
        assert item.is_playlist is True
        assert item.is_m3u8 is True

    def test_single_item_missing(self) -> None:
        assert extract_single_item({"error": "not found"}) is None


class TestItemList:
    def test_shapes(self) -> None:
        assert extract_item_list([1, 2]) == [1, 2]
        assert extract_item_list({"data": [{"url": "https://a"}]}) == [{"url": "https://a"}]
        assert extract_item_list({"videos": []}) == []
        assert extract_item_list({"download": "https://a"}) == [{"download": "https://a"}]
        assert extract_item_list({"status": "error"}) == []

    def test_item_url_key_order(self) -> None:
        assert item_url({"url": "https://u", "download": "https://d"}) == "https://d"
        assert item_url("https://plain") == "https://plain"
        assert item_url({"name": "file"}) is None


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------


class TestSendSmart:
    @pytest.mark.asyncio
    async def test_small_video_sent_inline(self) -> None:
        api = make_api()
        responder = FakeResponder()

        await MediaDownloader(api, 0).send_smart(responder, MediaItem(url="https://cdn/v.mp4"), "🎬 Video")

        [(url, caption)] = responder.videos
        assert url == "https://cdn/v.mp4"
        assert "video/mp4" in caption
        assert responder.replies == []

    @pytest.mark.asyncio
    async def test_oversize_video_sent_as_link(self) -> None:
        api = make_api()
        api.probe.return_value = MediaProbe(size=MAX_INLINE_VIDEO_BYTES + 1, content_type="video/mp4")
        responder = FakeResponder()

        await MediaDownloader(api, 0).send_smart(responder, MediaItem(url="https://cdn/big.mp4"), "🎬 Video")

        assert responder.videos == []
        assert "Download Link" in responder.last
        assert "https://cdn/big.mp4" in responder.last

    @pytest.mark.asyncio
    async def test_video_at_exact_limit_sent_as_link(self) -> None:
        api = make_api()
        api.probe.return_value = MediaProbe(size=MAX_INLINE_VIDEO_BYTES, content_type="video/mp4")
        responder = FakeResponder()

        await MediaDownloader(api, 0).send_smart(responder, MediaItem(url="https://cdn/edge.mp4"), "🎬 Video")

        assert responder.videos == []
        assert "https://cdn/edge.mp4" in responder.last

    def test_inline_limit_is_exclusive(self) -> None:
        assert MediaProbe(size=MAX_INLINE_VIDEO_BYTES - 1, content_type="video/mp4").can_inline is True
        assert MediaProbe(size=MAX_INLINE_VIDEO_BYTES, content_type="video/mp4").can_inline is False

    @pytest.mark.asyncio
    async def test_non_video_sent_as_link(self) -> None:
        api = make_api()
        api.probe.return_value = MediaProbe(size=100, content_type="text/html")
        responder = FakeResponder()

        await MediaDownloader(api, 0).send_smart(responder, MediaItem(url="https://cdn/page"), "🎬 Video")

        assert responder.videos == []

    @pytest.mark.asyncio
    async def test_playlist_never_probed(self) -> None:
        api = make_api()
        responder = FakeResponder()

        await MediaDownloader(api, 0).send_smart(responder, MediaItem(url="https://cdn/index.m3u8"), "🎬")

        api.probe.assert_not_awaited()
        assert "m3u8" in responder.last

    @pytest.mark.asyncio
    async def test_inline_failure_falls_back_to_link(self) -> None:
        api = make_api()
        responder = FakeResponder()
        responder.send_video = AsyncMock(side_effect=RuntimeError("upload rejected"))

        await MediaDownloader(api, 0).send_smart(responder, MediaItem(url="https://cdn/v.mp4"), "🎬")

        assert "https://cdn/v.mp4" in responder.last


class TestFetch:
    def _invocation(self, command: str) -> Invocation:
        return Invocation(actor_id="u1", command=command, argument=None, responder=FakeResponder())

    @pytest.mark.asyncio
    async def test_unsupported_platform_is_soft_failure(self) -> None:
        downloader = MediaDownloader(make_api(), 0)
        invocation = self._invocation("dl")

        outcome = await downloader.auto(Account(id="u1"), "https://youtu.be/x", invocation)

        assert isinstance(outcome, SoftFailure)
        assert "Unsupported platform" in outcome.reason

    @pytest.mark.asyncio
    async def test_downloader_error_is_soft_failure(self) -> None:
        api = make_api()
        api.download.side_effect = LookupAPIError("HTTP 502")
        outcome = await MediaDownloader(api, 0).single("insta", "https://instagram.com/p/1", FakeResponder())
        assert isinstance(outcome, SoftFailure)
        assert "Instagram" in outcome.reason

    @pytest.mark.asyncio
    async def test_response_without_url_is_soft_failure(self) -> None:
        api = make_api()
        api.download.return_value = {"status": "ok"}
        outcome = await MediaDownloader(api, 0).single("fb", "https://facebook.com/v/1", FakeResponder())
        assert isinstance(outcome, SoftFailure)

    @pytest.mark.asyncio
    async def test_terabox_sends_each_item(self) -> None:
        api = make_api()
        api.download_terabox.return_value = {
            "data": [
                {"title": "First", "size": "12 MB", "download": "https://tb/1"},
                {"name": "no link here"},
                {"title": 42, "url": "https://tb/3", "Channel": "Uploads"},
            ]
        }
        responder = FakeResponder()

        outcome = await MediaDownloader(api, 0).terabox("https://terabox.com/s/1", responder)

        assert isinstance(outcome, Success)
        assert [item.url for item in outcome.payload] == ["https://tb/1", "https://tb/3"]
        assert outcome.payload[1].title == "42"
        assert outcome.payload[1].channel == "Uploads"
        assert len(responder.replies) == 3
        assert "2/3" in responder.replies[1][0]

    @pytest.mark.asyncio
    async def test_terabox_empty(self) -> None:
        outcome = await MediaDownloader(make_api(), 0).terabox("https://terabox.com/s/1", FakeResponder())
        assert isinstance(outcome, SoftFailure)


class TestMediaCommands:
    @pytest.mark.asyncio
    async def test_dl_bills_and_delivers(self, services, api) -> None:
        user = add_account(services, "u1", approved=True, credits=2)

        outcome, responder = await invoke(services, "u1", "dl", "https://www.instagram.com/reel/abc/")

        assert isinstance(outcome, Success)
        api.download.assert_awaited_once_with("insta", "https://www.instagram.com/reel/abc/")
        assert responder.videos
        assert user.credits == 1
        assert user.total_queries == 1

    @pytest.mark.asyncio
    async def test_invalid_link_rejected_before_billing(self, services, api) -> None:
        user = add_account(services, "u1", approved=True, credits=2)

        _, responder = await invoke(services, "u1", "insta", "not-a-link")

        assert "not a valid link" in responder.last
        assert user.credits == 2
        api.download.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_download_refunded(self, services, api) -> None:
        user = add_account(services, "u1", approved=True, credits=1)
        api.download.return_value = {}
        api.download.side_effect = LookupAPIError("Empty response")

        outcome, responder = await invoke(services, "u1", "pin", "https://pin.it/abc")

        assert isinstance(outcome, SoftFailure)
        assert user.credits == 1
        assert "refunded" in responder.last
