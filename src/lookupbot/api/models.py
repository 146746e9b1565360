"""Pydantic models for collaborator responses."""

from pydantic import BaseModel, ConfigDict, Field

from lookupbot.utils.constants import MAX_INLINE_VIDEO_BYTES


class IpInfo(BaseModel):
    """IP geolocation record. Unknown fields are kept."""

    model_config = ConfigDict(extra="allow")

    ip: str | None = None
    hostname: str | None = None
    city: str | None = None
    region: str | None = None
    country: str | None = None
    loc: str | None = None
    org: str | None = None
    postal: str | None = None
    timezone: str | None = None


class MediaItem(BaseModel):
    """One downloadable file extracted from a downloader response."""

    model_config = ConfigDict(populate_by_name=True)

    url: str
    title: str | None = None
    size: str | None = None
    channel: str | None = Field(None, alias="Channel")
    is_playlist: bool = False

    @property
    def is_m3u8(self) -> bool:
        return self.is_playlist or ".m3u8" in self.url


class MediaProbe(BaseModel):
    """Result of a HEAD request against a media URL."""

    size: int = 0
    content_type: str = ""
    reachable: bool = True

    @property
    def size_mb(self) -> str:
        if not self.reachable:
            return "Unknown"
        return f"{self.size / (1024 * 1024):.2f}"

    @property
    def can_inline(self) -> bool:
        """Video content small enough to upload. An unknown (zero) size counts as small."""
        return (
            self.reachable
            and "video" in self.content_type
            and self.size < MAX_INLINE_VIDEO_BYTES
        )
