"""Lookup and media-downloader API client using httpx."""

import logging
import re
from typing import Any
from urllib.parse import quote

import httpx

from lookupbot.api.models import MediaProbe
from lookupbot.errors import CollaboratorFailure
from lookupbot.utils.constants import Platform

logger = logging.getLogger(__name__)

_M3U8_RE = re.compile(r"https://[^\"'\s]+\.m3u8[^\"'\s]*")


class LookupAPIError(CollaboratorFailure):
    """Lookup or downloader API error."""

    pass


class LookupAPI:
    """Client for the lookup and media-downloader collaborators."""

    def __init__(
        self,
        endpoints: dict[str, str],
        downloader_base_url: str | None = None,
        terabox_api_url: str | None = None,
        terabox_api_key: str | None = None,
        timeout: float = 30.0,
        probe_timeout: float = 10.0,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            endpoints: URL template per lookup kind, with a ``{query}`` placeholder
            downloader_base_url: Base URL of the single-video downloader
            terabox_api_url: Multi-file downloader endpoint
            terabox_api_key: Key sent to the multi-file downloader
            timeout: Request timeout in seconds
            probe_timeout: Timeout for HEAD probes of media URLs
            user_agent: User-Agent header for every request (httpx default when None)
            transport: Optional httpx transport (tests)
        """
        self.endpoints = dict(endpoints)
        self.downloader_base_url = downloader_base_url.rstrip("/") if downloader_base_url else None
        self.terabox_api_url = terabox_api_url
        self.terabox_api_key = terabox_api_key
        self.probe_timeout = probe_timeout
        headers = {"User-Agent": user_agent} if user_agent else None
        self.client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers=headers,
            transport=transport,
        )

    @property
    def user_agent(self) -> str:
        """User-Agent the bot presents to collaborators."""
        return self.client.headers.get("user-agent", "")

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "LookupAPI":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Make an HTTP request to a collaborator.

        Returns:
            Parsed JSON when the response declares it, else the body text

        Raises:
            LookupAPIError: If the request fails
        """
        kwargs: dict[str, Any] = {"params": params}
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            response = await self.client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise LookupAPIError(
                f"HTTP {e.response.status_code} from {e.request.url.host}"
            ) from e
        except httpx.HTTPError as e:
            raise LookupAPIError(f"Request failed: {e!r}") from e

        content_type = response.headers.get("content-type", "")
        if "json" in content_type:
            try:
                return response.json()
            except ValueError as e:
                raise LookupAPIError("Malformed JSON response") from e
        return response.text

    # -- lookups --------------------------------------------------------------

    async def lookup(self, kind: str, query: str = "") -> Any:
        """Query the lookup endpoint for ``kind``. Empty payloads are failures."""
        template = self.endpoints.get(kind)
        if template is None:
            raise LookupAPIError(f"No endpoint configured for '{kind}' lookups")
        url = template.format(query=quote(query, safe=""))
        data = await self._request("GET", url)
        if not data:
            raise LookupAPIError(f"Empty response for '{kind}' lookup")
        logger.debug("Lookup %s succeeded.", kind)
        return data

    # -- downloads ------------------------------------------------------------

    async def download(self, platform: str, url: str) -> Any:
        """Ask the single-video downloader for ``url`` on ``platform``.

        A playlist found in a textual response is returned as
        ``{"video": <m3u8 url>, "isM3U8": True}``.
        """
        if not self.downloader_base_url:
            raise LookupAPIError("Media downloader is not configured")
        data = await self._request(
            "GET", f"{self.downloader_base_url}/{platform}", params={"video": url}
        )
        if isinstance(data, str) and ".m3u8" in data:
            match = _M3U8_RE.search(data)
            if match:
                return {"video": match.group(0), "isM3U8": True}
        if not data:
            raise LookupAPIError(f"Empty response from {platform} downloader")
        return data

    async def download_terabox(self, url: str) -> Any:
        if not self.terabox_api_url:
            raise LookupAPIError("TeraBox downloader is not configured")
        params = {"link": url}
        if self.terabox_api_key:
            params["key"] = self.terabox_api_key
        data = await self._request("GET", self.terabox_api_url, params=params)
        if not data:
            raise LookupAPIError(f"Empty response from {Platform.TERABOX} downloader")
        return data

    async def probe(self, url: str) -> MediaProbe:
        """HEAD ``url`` for size and type. Never raises; failures are unreachable probes."""
        try:
            response = await self.client.head(url, timeout=self.probe_timeout)
        except httpx.HTTPError as e:
            logger.debug("Probe of %s failed: %r", url, e)
            return MediaProbe(reachable=False)
        try:
            size = int(response.headers.get("content-length") or 0)
        except ValueError:
            size = 0
        return MediaProbe(size=size, content_type=response.headers.get("content-type", ""))
