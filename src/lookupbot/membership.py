"""Channel-membership gate: tracks identities known to be channel members."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from lookupbot.transport import Button, Buttons
from lookupbot.utils.constants import MEMBER_STATUSES

logger = logging.getLogger(__name__)

MembershipCheck = Callable[[str], Awaitable[bool]]


class MembershipGate:
    """Verification markers backed by an external membership check.

    An identity is added on a passing check and removed as soon as a later
    check fails. Markers are not persisted.
    """

    def __init__(
        self,
        check: MembershipCheck,
        channel_url: str | None = None,
        recheck_delay_secs: float = 0.0,
    ) -> None:
        self._check = check
        self.channel_url = channel_url
        self.recheck_delay_secs = recheck_delay_secs
        self._verified: set[str] = set()

    def is_verified(self, identity: str) -> bool:
        return str(identity) in self._verified

    @property
    def verified(self) -> frozenset[str]:
        return frozenset(self._verified)

    async def check(self, identity: str) -> bool:
        """Run the external check and update the marker. Errors count as not joined."""
        identity = str(identity)
        try:
            joined = await self._check(identity)
        except Exception:
            logger.warning("Membership check failed for %s.", identity, exc_info=True)
            joined = False
        if joined:
            self._verified.add(identity)
        else:
            self._verified.discard(identity)
        return joined

    async def verify(self, identity: str) -> bool:
        """Check after a short delay, giving the channel time to register a fresh join."""
        if self.recheck_delay_secs > 0:
            await asyncio.sleep(self.recheck_delay_secs)
        return await self.check(identity)

    def join_buttons(self, identity: str, verify_label: str = "✅ Verify Membership") -> Buttons:
        """Join link plus a re-check button bound to ``identity``."""
        row: list[Button] = []
        if self.channel_url:
            row.append(Button("📢 Join Channel", url=self.channel_url))
        row.append(Button(verify_label, callback_data=f"verify_{identity}"))
        return [row]


def telegram_membership_check(bot, channel_id: int) -> MembershipCheck:
    """Build a membership check from a python-telegram-bot ``Bot``."""

    async def _check(identity: str) -> bool:
        member = await bot.get_chat_member(channel_id, int(identity))
        logger.debug("Membership of %s in %s: %s", identity, channel_id, member.status)
        return str(member.status) in MEMBER_STATUSES

    return _check
