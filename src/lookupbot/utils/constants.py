"""Constants and enums for the lookup bot."""

from enum import IntEnum


class ToolTier(IntEnum):
    """Credit cost tiers for commands."""

    FREE = 0
    PAID = 1


class Platform(str):
    """Media platforms understood by the downloader collaborators."""

    INSTAGRAM = "insta"
    FACEBOOK = "fb"
    SNAPCHAT = "snap"
    PINTEREST = "pin"
    TERABOX = "terabox"
    YOUTUBE = "youtube"
    TWITTER = "twitter"
    TIKTOK = "tiktok"
    UNKNOWN = "unknown"


# Platforms with a working downloader collaborator
SUPPORTED_PLATFORMS = (
    Platform.INSTAGRAM,
    Platform.FACEBOOK,
    Platform.SNAPCHAT,
    Platform.PINTEREST,
    Platform.TERABOX,
)

PLATFORM_LABELS: dict[str, str] = {
    Platform.INSTAGRAM: "Instagram",
    Platform.FACEBOOK: "Facebook",
    Platform.SNAPCHAT: "Snapchat",
    Platform.PINTEREST: "Pinterest",
    Platform.TERABOX: "TeraBox",
}


# Credits set on an account when its registration is approved
STARTING_CREDITS = 25

# Balance of the bootstrap admin (premium, so never actually consumed)
ADMIN_BOOTSTRAP_CREDITS = 999_999

# Default grant for the lucky draw
LUCKY_DEFAULT_AMOUNT = 100

DEFAULT_MAINTENANCE_MESSAGE = "Bot is currently under maintenance. Please try again later."

# Inline video ceiling (exclusive), kept under the transport's 50 MB upload limit
MAX_INLINE_VIDEO_BYTES = 49 * 1024 * 1024

# Statuses returned by the membership check that count as joined
MEMBER_STATUSES = frozenset({"member", "administrator", "creator", "restricted"})

# Commands a user may issue before satisfying the membership gate
MEMBERSHIP_EXEMPT_COMMANDS = frozenset({"start", "verify"})

# Key-priority order for locating a playable URL in downloader payloads
PREFERRED_URL_KEYS = (
    "video",
    "url",
    "download",
    "download_url",
    "link",
    "hd",
    "sd",
    "hd_url",
    "sd_url",
    "hdLink",
    "sdLink",
    "result",
    "data",
    "media",
    "medias",
    "links",
    "response",
)

# Keys checked first on single-video responses (HD before SD)
DIRECT_URL_KEYS = ("hd", "hd_url", "video", "url")

# Keys carrying the download link of one item in a multi-file response
ITEM_URL_KEYS = ("download", "url", "download_url", "link", "src", "source")

# Nesting depth at which the URL search gives up
MAX_URL_SEARCH_DEPTH = 32

TOP_USERS_LIMIT = 10

# Domains used by the tempmail generator
TEMP_MAIL_DOMAINS = ("10minutemail.com", "tempmail.org", "guerrillamail.com")
TEMP_MAIL_LIFETIME = "10 minutes"


COMMAND_COSTS: dict[str, int] = {
    # Free
    "start": ToolTier.FREE,
    "help": ToolTier.FREE,
    "register": ToolTier.FREE,
    "checkstatus": ToolTier.FREE,
    "sync": ToolTier.FREE,
    "credits": ToolTier.FREE,
    "stats": ToolTier.FREE,
    "myip": ToolTier.FREE,
    "ping": ToolTier.FREE,
    "useragent": ToolTier.FREE,
    "tempmail": ToolTier.FREE,
    "menu": ToolTier.FREE,
    "tool": ToolTier.FREE,
    # Lookups
    "ip": ToolTier.PAID,
    "email": ToolTier.PAID,
    "bin": ToolTier.PAID,
    "ff": ToolTier.PAID,
    # Downloads
    "dl": ToolTier.PAID,
    "insta": ToolTier.PAID,
    "fb": ToolTier.PAID,
    "snap": ToolTier.PAID,
    "pin": ToolTier.PAID,
    "terabox": ToolTier.PAID,
}
