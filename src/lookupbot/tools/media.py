"""Media download commands: dl (auto-detect), insta, fb, snap, pin, terabox.

Downloader responses are loosely structured JSON. A playable URL is located
with a bounded key-priority search, and each item is sent inline when it is
video content under the upload ceiling, or as a plain link otherwise.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

from lookupbot.accounts import Account
from lookupbot.api.client import LookupAPI, LookupAPIError
from lookupbot.api.models import MediaItem
from lookupbot.dispatcher import CommandSpec, Invocation, Outcome, SoftFailure, Success
from lookupbot.errors import ValidationError
from lookupbot.transport import Responder
from lookupbot.utils.constants import (
    DIRECT_URL_KEYS,
    ITEM_URL_KEYS,
    MAX_URL_SEARCH_DEPTH,
    PLATFORM_LABELS,
    PREFERRED_URL_KEYS,
    SUPPORTED_PLATFORMS,
    Platform,
)
from lookupbot.utils.formatters import escape_markdown

logger = logging.getLogger(__name__)

_PLATFORM_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    (Platform.INSTAGRAM, re.compile(r"instagram\.com")),
    (Platform.FACEBOOK, re.compile(r"facebook\.com|fb\.watch")),
    (Platform.SNAPCHAT, re.compile(r"snapchat\.com")),
    (Platform.PINTEREST, re.compile(r"pinterest\.com|pin\.it")),
    (Platform.TERABOX, re.compile(r"terabox|teraboxshare|teradl")),
    (Platform.YOUTUBE, re.compile(r"youtube\.com|youtu\.be")),
    (Platform.TWITTER, re.compile(r"twitter\.com|x\.com")),
    (Platform.TIKTOK, re.compile(r"tiktok\.com")),
]

_EXAMPLES = {
    "dl": "https://www.instagram.com/reel/DSSvFDgjU3s/",
    Platform.INSTAGRAM: "https://www.instagram.com/reel/DSSvFDgjU3s/",
    Platform.FACEBOOK: "https://www.facebook.com/reel/1157396829623170/",
    Platform.SNAPCHAT: "https://snapchat.com/t/H2D8zTxt",
    Platform.PINTEREST: "https://pin.it/4gsJMxtt1",
    Platform.TERABOX: "https://terabox.com/s/xxxxxxxx",
}


def detect_platform(url: str) -> str:
    for platform, pattern in _PLATFORM_PATTERNS:
        if pattern.search(url):
            return platform
    return Platform.UNKNOWN


def is_http_url(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(("http://", "https://"))


def find_first_url(obj: Any, depth: int = 0, max_depth: int = MAX_URL_SEARCH_DEPTH) -> str | None:
    """Depth-first search for the first http(s) URL in a JSON-like value.

    Dict keys in ``PREFERRED_URL_KEYS`` are visited first, in that order, then
    the remaining keys in their own order. Gives up below ``max_depth``.
    """
    if depth > max_depth:
        return None
    if isinstance(obj, str):
        return obj if is_http_url(obj) else None
    if isinstance(obj, list):
        for item in obj:
            found = find_first_url(item, depth + 1, max_depth)
            if found:
                return found
        return None
    if isinstance(obj, dict):
        preferred = [k for k in PREFERRED_URL_KEYS if k in obj]
        rest = [k for k in obj if k not in PREFERRED_URL_KEYS]
        for key in preferred + rest:
            found = find_first_url(obj[key], depth + 1, max_depth)
            if found:
                return found
    return None


def extract_video_url(data: Any) -> str | None:
    """HD-first direct keys, then the deep search."""
    if isinstance(data, dict):
        for key in DIRECT_URL_KEYS:
            if is_http_url(data.get(key)):
                return data[key]
    return find_first_url(data)


def extract_single_item(data: Any) -> MediaItem | None:
    if isinstance(data, dict) and data.get("isM3U8") and is_http_url(data.get("video")):
        return MediaItem(url=data["video"], is_playlist=True)
    url = extract_video_url(data)
    return MediaItem(url=url) if url else None


def extract_item_list(data: Any) -> list[Any]:
    """Locate the list of files in a multi-file response.

    Accepts a bare list, a list under ``data`` or ``videos``, or a single
    object that itself carries a link.
    """
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("data", "videos"):
            if isinstance(data.get(key), list):
                return data[key]
        if data.get("download") or data.get("url"):
            return [data]
    return []


def item_url(item: Any) -> str | None:
    if isinstance(item, str):
        return item if is_http_url(item) else None
    if isinstance(item, dict):
        for key in ITEM_URL_KEYS:
            if is_http_url(item.get(key)):
                return item[key]
    return None


class MediaDownloader:
    """Download handlers bound to one ``LookupAPI``."""

    def __init__(self, api: LookupAPI, send_delay_secs: float = 1.2) -> None:
        self.api = api
        self.send_delay_secs = send_delay_secs

    # -- delivery -------------------------------------------------------------

    async def send_smart(self, responder: Responder, item: MediaItem, caption: str) -> None:
        """Send ``item`` inline when possible, else as a download link."""
        if item.is_m3u8:
            await responder.reply(
                f"{caption}\n\n⬇️ Direct Download Link:\n{item.url}\n\n"
                "⚠️ Note: This is a streaming playlist (m3u8)."
            )
            return
        probe = await self.api.probe(item.url)
        full_caption = f"{caption}\n\n📊 Size: {probe.size_mb}MB | Type: {probe.content_type or 'Unknown'}"
        if probe.can_inline:
            try:
                await responder.send_video(item.url, full_caption)
                return
            except Exception:
                logger.warning("Inline send of %s failed; sending link.", item.url, exc_info=True)
        await responder.reply(f"{full_caption}\n\n⬇️ Download Link:\n{item.url}")

    async def pause(self) -> None:
        if self.send_delay_secs > 0:
            await asyncio.sleep(self.send_delay_secs)

    # -- platforms ------------------------------------------------------------

    async def single(self, platform: str, url: str, responder: Responder) -> Outcome:
        label = PLATFORM_LABELS.get(platform, platform)
        try:
            data = await self.api.download(platform, url)
        except LookupAPIError as e:
            logger.warning("%s download failed for %s: %s", platform, url, e)
            return SoftFailure(f"❌ Failed to download {label} video.")
        item = extract_single_item(data)
        if item is None:
            logger.error("No video URL in %s response: %r", platform, data)
            return SoftFailure(f"❌ Failed to get direct {label} video URL from API.")
        await self.send_smart(responder, item, f"🎬 {label} Video")
        return Success(payload=[item])

    async def terabox(self, url: str, responder: Responder) -> Outcome:
        try:
            data = await self.api.download_terabox(url)
        except LookupAPIError as e:
            logger.warning("TeraBox download failed for %s: %s", url, e)
            return SoftFailure("❌ Failed to process TeraBox link.")
        entries = extract_item_list(data)
        if not entries:
            return SoftFailure("❌ No videos found in TeraBox link.")

        delivered: list[MediaItem] = []
        total = len(entries)
        for i, entry in enumerate(entries):
            link = item_url(entry)
            if link is None:
                logger.info("No link in TeraBox item %d: %r", i + 1, entry)
                await responder.reply(f"❌ Could not extract download link for video {i + 1}/{total}")
                continue
            fields = entry if isinstance(entry, dict) else {}
            item = MediaItem.model_validate({
                "url": link,
                "title": str(fields.get("title") or fields.get("name") or f"TeraBox Video {i + 1}"),
                "size": str(fields.get("size") or "Unknown"),
                "channel": str(fields.get("Channel") or fields.get("channel") or "") or None,
            })
            if i > 0:
                await self.pause()
            lines = [
                f"📦 *TeraBox Video {i + 1}/{total}*",
                "",
                f"*Title:* `{escape_markdown(item.title)}`",
                f"*Size:* `{escape_markdown(item.size)}`",
            ]
            if item.channel:
                lines.append(f"*Channel:* `{escape_markdown(item.channel)}`")
            lines += ["", "*Download:* ", item.url]
            await responder.reply("\n".join(lines))
            delivered.append(item)

        if not delivered:
            return SoftFailure("❌ No downloadable videos found in TeraBox link.")
        return Success(payload=delivered)

    async def fetch(self, platform: str, url: str, responder: Responder) -> Outcome:
        if platform == Platform.TERABOX:
            return await self.terabox(url, responder)
        if platform not in SUPPORTED_PLATFORMS:
            return SoftFailure(
                "❌ Unsupported platform. Supported: "
                + ", ".join(PLATFORM_LABELS[p] for p in SUPPORTED_PLATFORMS)
            )
        return await self.single(platform, url, responder)

    # -- handlers -------------------------------------------------------------

    async def auto(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        platform = detect_platform(argument or "")
        logger.debug("Detected platform %s for %s.", platform, argument)
        return await self.fetch(platform, argument or "", invocation.responder)

    def handler(self, platform: str):
        async def _handle(account: Account, argument: str | None, invocation: Invocation) -> Outcome:
            return await self.fetch(platform, argument or "", invocation.responder)

        return _handle


def validate_url(value: str) -> str:
    if not is_http_url(value):
        raise ValidationError(f"❌ '{value}' is not a valid link. Send a full http(s) URL.")
    return value


def _usage(command: str) -> str:
    return f"❌ Please provide a video URL.\nUsage: /{command} <url>\nExample: /{command} {_EXAMPLES[command]}"


def media_commands(api: LookupAPI, send_delay_secs: float = 1.2) -> list[CommandSpec]:
    downloader = MediaDownloader(api, send_delay_secs)
    specs = [
        CommandSpec(name="dl", handler=downloader.auto, usage=_usage("dl"), validator=validate_url),
    ]
    for platform in SUPPORTED_PLATFORMS:
        specs.append(
            CommandSpec(
                name=platform,
                handler=downloader.handler(platform),
                usage=_usage(platform),
                validator=validate_url,
            )
        )
    return specs
