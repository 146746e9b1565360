"""Configuration management for the lookup bot."""

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lookupbot.utils.constants import DEFAULT_MAINTENANCE_MESSAGE, STARTING_CREDITS


def _default_lookup_endpoints() -> dict[str, str]:
    return {
        "ip": "https://ipinfo.io/{query}/json",
        "myip": "https://ipinfo.io/json",
        "email": "https://emailvalidation.io/api/verify?email={query}",
        "bin": "https://binsapi.vercel.app/api/bin?bin={query}",
        "ff": "https://anku-ffapi-inky.vercel.app/ff?uid={query}",
    }


class Settings(BaseSettings):
    """Lookup bot settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    bot_token: str
    admin_user_id: str

    # Membership gate (disabled when channel_id is unset)
    channel_id: int | None = None
    channel_url: str | None = None

    registration_strategy: Literal["admin_approval", "channel_auto"] = "admin_approval"
    starting_credits: int = STARTING_CREDITS
    maintenance_message: str = DEFAULT_MAINTENANCE_MESSAGE
    refund_premium_failures: bool = True

    # Collaborator endpoints; "{query}" is replaced by the url-encoded argument
    lookup_endpoints: dict[str, str] = Field(default_factory=_default_lookup_endpoints)
    downloader_base_url: str | None = None
    terabox_api_url: str | None = None
    terabox_api_key: str | None = None

    request_timeout_secs: float = 30.0
    probe_timeout_secs: float = 10.0
    # User-Agent sent to collaborators; httpx default when unset
    user_agent: str | None = None
    media_send_delay_secs: float = 1.2
    membership_check_delay_secs: float = 1.5

    log_level: str = "INFO"

    @model_validator(mode="after")
    def _check_strategy(self) -> "Settings":
        if self.registration_strategy == "channel_auto" and self.channel_id is None:
            raise ValueError("registration_strategy=channel_auto requires channel_id")
        return self

    @property
    def membership_gate_enabled(self) -> bool:
        return self.channel_id is not None


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()  # type: ignore[call-arg]
