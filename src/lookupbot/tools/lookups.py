"""Lookup commands: ip, email, bin, ff and the free myip."""

from __future__ import annotations

import ipaddress
import logging
import re
from dataclasses import dataclass
from typing import Any

from lookupbot.accounts import Account
from lookupbot.api.client import LookupAPI, LookupAPIError
from lookupbot.api.models import IpInfo
from lookupbot.dispatcher import CommandSpec, Invocation, Outcome, SoftFailure, Success
from lookupbot.errors import ValidationError
from lookupbot.utils.formatters import fenced_json

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

SELF_QUERY = "self"


@dataclass(frozen=True)
class LookupKind:
    """Presentation and input rules for one lookup kind."""

    kind: str
    title: str
    usage: str
    failure: str


LOOKUP_KINDS: dict[str, LookupKind] = {
    "ip": LookupKind(
        "ip",
        "🌐 IP Information",
        "❌ Please provide an IP address.\nUsage: /ip <ip address>",
        "❌ Failed to fetch IP information.",
    ),
    "email": LookupKind(
        "email",
        "📧 Email Validation",
        "❌ Please provide an email address.\nUsage: /email <address>",
        "❌ Failed to validate email.",
    ),
    "bin": LookupKind(
        "bin",
        "💳 BIN Information",
        "❌ Please provide a BIN number.\nUsage: /bin <first 6-8 card digits>",
        "❌ Failed to fetch BIN information.",
    ),
    "ff": LookupKind(
        "ff",
        "🎮 Free Fire Player Info",
        "❌ Please provide a Free Fire UID.\nUsage: /ff <uid>",
        "❌ Failed to fetch Free Fire player information.",
    ),
}


# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------


def validate_ip(value: str) -> str:
    if value.lower() == SELF_QUERY:
        return SELF_QUERY
    try:
        return str(ipaddress.ip_address(value))
    except ValueError:
        raise ValidationError(f"❌ '{value}' is not a valid IP address.\nUsage: /ip <ip address>") from None


def validate_email(value: str) -> str:
    if not _EMAIL_RE.match(value):
        raise ValidationError(f"❌ '{value}' is not a valid email address.\nUsage: /email <address>")
    return value


def validate_bin(value: str) -> str:
    digits = value.replace(" ", "")
    if not digits.isdigit() or not 6 <= len(digits) <= 8:
        raise ValidationError("❌ A BIN is the first 6 to 8 digits of a card.\nUsage: /bin <digits>")
    return digits


def validate_uid(value: str) -> str:
    if not value.isdigit():
        raise ValidationError("❌ A Free Fire UID is numeric.\nUsage: /ff <uid>")
    return value


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def format_result(title: str, payload: Any) -> str:
    return f"*{title}*\n\n{fenced_json(payload)}"


def normalize_ip_payload(payload: Any) -> Any:
    """Validate an IP record and drop empty fields. Non-dict payloads pass through."""
    if not isinstance(payload, dict):
        return payload
    return IpInfo.model_validate(payload).model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


class LookupTools:
    """Handlers bound to one ``LookupAPI``."""

    def __init__(self, api: LookupAPI) -> None:
        self.api = api

    async def run(self, kind: str, query: str) -> Outcome:
        spec = LOOKUP_KINDS[kind]
        try:
            if kind == "ip" and query == SELF_QUERY:
                payload = await self.api.lookup("myip")
            else:
                payload = await self.api.lookup(kind, query)
        except LookupAPIError as e:
            logger.warning("%s lookup failed for %r: %s", kind, query, e)
            return SoftFailure(spec.failure)
        if kind == "ip":
            payload = normalize_ip_payload(payload)
        return Success(format_result(spec.title, payload), payload=payload)

    def handler(self, kind: str):
        async def _handle(account: Account, argument: str | None, invocation: Invocation) -> Outcome:
            return await self.run(kind, argument or "")

        return _handle

    async def my_ip(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        try:
            payload = await self.api.lookup("myip")
        except LookupAPIError as e:
            logger.warning("myip lookup failed: %s", e)
            return SoftFailure(LOOKUP_KINDS["ip"].failure)
        return Success(format_result("🌐 Your IP Information", normalize_ip_payload(payload)))


def lookup_commands(api: LookupAPI) -> list[CommandSpec]:
    tools = LookupTools(api)
    validators = {
        "ip": validate_ip,
        "email": validate_email,
        "bin": validate_bin,
        "ff": validate_uid,
    }
    specs = [
        CommandSpec(
            name=kind,
            handler=tools.handler(kind),
            usage=spec.usage,
            validator=validators[kind],
            default_argument=SELF_QUERY if kind == "ip" else None,
        )
        for kind, spec in LOOKUP_KINDS.items()
    ]
    specs.append(CommandSpec(name="myip", handler=tools.my_ip))
    return specs
