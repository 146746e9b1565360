"""Pytest configuration and fixtures."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from lookupbot.accounts import Account
from lookupbot.api.client import LookupAPI
from lookupbot.api.models import MediaProbe
from lookupbot.config import Settings
from lookupbot.dispatcher import Invocation
from lookupbot.services import Services, build_services

ADMIN_ID = "1000"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeResponder:
    """Records everything sent back to the invoking user."""

    def __init__(self) -> None:
        self.replies: list[tuple[str, object]] = []
        self.edits: list[tuple[str, object]] = []
        self.answers: list[str | None] = []
        self.videos: list[tuple[str, str]] = []
        self.documents: list[tuple[str, bytes, str]] = []

    async def reply(self, text, buttons=None) -> None:
        self.replies.append((text, buttons))

    async def edit(self, text, buttons=None) -> None:
        self.edits.append((text, buttons))

    async def answer(self, text=None) -> None:
        self.answers.append(text)

    async def send_video(self, url, caption) -> None:
        self.videos.append((url, caption))

    async def send_document(self, filename, content, caption) -> None:
        self.documents.append((filename, content, caption))

    @property
    def texts(self) -> list[str]:
        return [text for text, _ in self.replies + self.edits]

    @property
    def last(self) -> str:
        return self.texts[-1]


class FakeNotifier:
    """Records notifications; identities in ``unreachable`` fail delivery."""

    def __init__(self, unreachable: set[str] | None = None) -> None:
        self.sent: list[tuple[str, str, object]] = []
        self.unreachable = unreachable or set()

    async def notify(self, identity, text, buttons=None) -> bool:
        if str(identity) in self.unreachable:
            return False
        self.sent.append((str(identity), text, buttons))
        return True

    def to(self, identity: str) -> list[str]:
        return [text for ident, text, _ in self.sent if ident == identity]


def make_api() -> AsyncMock:
    api = AsyncMock(spec=LookupAPI)
    api.lookup = AsyncMock(return_value={"ip": "8.8.8.8", "city": "Mountain View"})
    api.download = AsyncMock(return_value={"hd": "https://cdn.example.com/video.mp4"})
    api.download_terabox = AsyncMock(return_value=[])
    api.probe = AsyncMock(return_value=MediaProbe(size=1024, content_type="video/mp4"))
    api.user_agent = "LookupBot/2.1 (X11; Linux x86_64)"
    return api


def make_settings(**overrides) -> Settings:
    values = {
        "bot_token": "test-token",
        "admin_user_id": ADMIN_ID,
        "media_send_delay_secs": 0.0,
        "membership_check_delay_secs": 0.0,
    }
    values.update(overrides)
    return Settings(**values)


def add_account(services: Services, identity: str, **fields) -> Account:
    account = services.store.get_or_create(identity, display_name=f"User {identity}")
    for key, value in fields.items():
        setattr(account, key, value)
    services.store.upsert(account)
    return account


async def invoke(
    services: Services,
    actor_id: str,
    command: str,
    argument: str | None = None,
    is_callback: bool = False,
) -> tuple[object, FakeResponder]:
    responder = FakeResponder()
    outcome = await services.dispatcher.execute(
        Invocation(
            actor_id=actor_id,
            command=command,
            argument=argument,
            responder=responder,
            is_callback=is_callback,
        )
    )
    return outcome, responder


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def api() -> AsyncMock:
    return make_api()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def services(settings: Settings, notifier: FakeNotifier, api: AsyncMock) -> Services:
    return build_services(settings, notifier, api=api)


@pytest.fixture
def admin(services: Services) -> Account:
    return services.store.get(ADMIN_ID)
