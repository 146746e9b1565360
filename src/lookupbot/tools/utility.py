"""Free utility commands: useragent and tempmail."""

from __future__ import annotations

import logging
import random
import re
import string

from lookupbot.accounts import Account
from lookupbot.api.client import LookupAPI
from lookupbot.dispatcher import CommandSpec, Invocation, Outcome, Success
from lookupbot.utils.constants import TEMP_MAIL_DOMAINS, TEMP_MAIL_LIFETIME

logger = logging.getLogger(__name__)

_PRODUCT_RE = re.compile(r"^([^/\s]+)/(\S+)")
_COMMENT_RE = re.compile(r"\(([^)]*)\)")

_LOCAL_PART_ALPHABET = string.ascii_lowercase + string.digits
_LOCAL_PART_LENGTH = 13


def describe_user_agent(user_agent: str) -> dict[str, str | bool]:
    """Split a User-Agent header into product, version, platform and mobile flag."""
    product = _PRODUCT_RE.match(user_agent)
    comment = _COMMENT_RE.search(user_agent)
    platform = comment.group(1).split(";")[0].strip() if comment else ""
    return {
        "product": product.group(1) if product else (user_agent or "Unknown"),
        "version": product.group(2) if product else "Unknown",
        "platform": platform or "Unknown",
        "mobile": "mobile" in user_agent.lower(),
    }


class UtilityTools:
    def __init__(self, api: LookupAPI, rng: random.Random | None = None) -> None:
        self.api = api
        self.rng = rng or random.Random()

    async def user_agent(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        ua = self.api.user_agent
        info = describe_user_agent(ua)
        return Success(
            "🖥️ *Browser & System Information* 🖥️\n\n"
            "🌐 Client Details:\n"
            f"• Product: {info['product']}\n"
            f"• Version: {info['version']}\n"
            f"• Platform: {info['platform']}\n"
            f"• Mobile: {'Yes' if info['mobile'] else 'No'}\n\n"
            f"📱 User Agent String:\n`{ua}`\n\n"
            "💡 This is the user agent the bot presents to lookup services.",
            payload={"user_agent": ua, **info},
        )

    def generate_address(self) -> tuple[str, str]:
        """A random local part at one of the temporary-mail domains."""
        local = "".join(self.rng.choices(_LOCAL_PART_ALPHABET, k=_LOCAL_PART_LENGTH))
        domain = self.rng.choice(TEMP_MAIL_DOMAINS)
        return f"{local}@{domain}", domain

    async def temp_mail(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        address, domain = self.generate_address()
        logger.debug("Generated temporary address for %s.", account.id)
        return Success(
            "📧 *Temporary Email Generated* 📧\n\n"
            f"🔑 Email Address:\n`{address}`\n\n"
            "⏰ Details:\n"
            f"• Expires in: {TEMP_MAIL_LIFETIME}\n"
            f"• Domain: {domain}\n\n"
            "💡 Use it for throwaway sign-ups only, never for important mail.",
            payload={"email": address, "domain": domain, "expires_in": TEMP_MAIL_LIFETIME},
        )


def utility_commands(api: LookupAPI, rng: random.Random | None = None) -> list[CommandSpec]:
    tools = UtilityTools(api, rng)
    return [
        CommandSpec(name="useragent", handler=tools.user_agent),
        CommandSpec(name="tempmail", handler=tools.temp_mail),
    ]
