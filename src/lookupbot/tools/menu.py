"""Inline menu: category screens and the pending-input flow behind tool buttons.

A ``tool_<name>`` button either runs a no-argument command straight away
(``IMMEDIATE_TOOLS``) or asks for the argument and remembers which tool the
next plain-text message from that identity is meant for. The text message
then goes through the dispatcher like the equivalent slash command.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from lookupbot.accounts import Account
from lookupbot.dispatcher import CommandSpec, Invocation, Outcome, Success
from lookupbot.errors import ValidationError
from lookupbot.transport import Button, Buttons

logger = logging.getLogger(__name__)


class PendingInputs:
    """The tool each identity is expected to send input for. One slot per identity."""

    def __init__(self) -> None:
        self._tools: dict[str, str] = {}

    def expect(self, identity: str, tool: str) -> None:
        self._tools[str(identity)] = tool

    def pop(self, identity: str) -> str | None:
        return self._tools.pop(str(identity), None)

    def cancel(self, identity: str) -> bool:
        return self.pop(identity) is not None


@dataclass(frozen=True)
class MenuScreen:
    text: str
    buttons: Buttons


def _tool(label: str, name: str) -> Button:
    return Button(label, callback_data=f"tool_{name}")


def _menu(label: str, section: str) -> Button:
    return Button(label, callback_data=f"menu_{section}")


BACK = _menu("🔙 Back to Main Menu", "main")
CANCEL_BUTTONS: Buttons = [[_menu("❌ Cancel", "cancel")]]

MAIN_MENU: Buttons = [
    [_menu("🔍 Lookup Tools", "lookup"), _menu("📱 Media Downloaders", "downloaders")],
    [_menu("📊 System Commands", "system"), _menu("❌ Cancel", "cancel")],
]

MENUS: dict[str, MenuScreen] = {
    "main": MenuScreen(
        "🚀 *Lookup Bot* 🚀\n\nPlease select a category:",
        MAIN_MENU,
    ),
    "lookup": MenuScreen(
        "🔍 *Lookup Tools* 🔍\n\nSelect a tool:",
        [
            [_tool("🌐 IP Lookup", "ip"), _tool("📧 Email Validation", "email")],
            [_tool("💳 BIN Lookup", "bin"), _tool("🎮 Free Fire Stats", "ff")],
            [BACK],
        ],
    ),
    "downloaders": MenuScreen(
        "📱 *Media Downloaders* 📱\n\nSelect a platform:",
        [
            [_tool("🎬 Universal Downloader", "dl"), _tool("👻 Snapchat", "snap")],
            [_tool("💎 Instagram", "insta"), _tool("❤️ Pinterest", "pin")],
            [_tool("📘 Facebook", "fb"), _tool("📁 TeraBox", "terabox")],
            [BACK],
        ],
    ),
    "system": MenuScreen(
        "📊 *System Commands* 📊\n\nSelect a command:",
        [
            [_tool("🌐 My IP", "myip"), _tool("🖥️ User Agent", "useragent")],
            [_tool("📧 Temporary Email", "tempmail"), _tool("📊 My Stats", "stats")],
            [_tool("💳 My Credits", "credits"), _tool("📋 Check Status", "checkstatus")],
            [_tool("🔄 Sync Account", "sync"), BACK],
        ],
    ),
}

# Tool buttons that run at once instead of asking for input
IMMEDIATE_TOOLS = frozenset(
    {"myip", "useragent", "tempmail", "stats", "credits", "checkstatus", "sync"}
)

TOOL_PROMPTS: dict[str, str] = {
    "ip": (
        "🌐 *IP Lookup*\n\nPlease send the IP address you want to look up.\n\n"
        "Example: 8.8.8.8\n\nSend \"self\" to look up the bot's own IP."
    ),
    "email": (
        "📧 *Email Validation*\n\nPlease send the email address you want to validate.\n\n"
        "Example: user@example.com"
    ),
    "bin": "💳 *BIN Lookup*\n\nPlease send the BIN you want to look up.\n\nExample: 460075",
    "ff": (
        "🎮 *Free Fire Statistics*\n\nPlease send the Free Fire UID you want to look up.\n\n"
        "Example: 2819649271"
    ),
    "dl": (
        "🎬 *Universal Video Downloader*\n\nPlease send the video URL you want to download.\n\n"
        "Example: https://www.instagram.com/reel/DSSvFDgjU3s/"
    ),
    "snap": (
        "👻 *Snapchat Video Downloader*\n\nPlease send the Snapchat video URL.\n\n"
        "Example: https://snapchat.com/t/H2D8zTxt"
    ),
    "insta": (
        "💎 *Instagram Video Downloader*\n\nPlease send the Instagram video URL.\n\n"
        "Example: https://www.instagram.com/reel/DSSvFDgjU3s/"
    ),
    "pin": (
        "❤️ *Pinterest Video Downloader*\n\nPlease send the Pinterest video URL.\n\n"
        "Example: https://pin.it/4gsJMxtt1"
    ),
    "fb": (
        "📘 *Facebook Video Downloader*\n\nPlease send the Facebook video URL.\n\n"
        "Example: https://www.facebook.com/reel/1157396829623170/"
    ),
    "terabox": (
        "📁 *TeraBox Downloader*\n\nPlease send the TeraBox share URL.\n\n"
        "Example: https://terabox.com/s/xxxxxxxx"
    ),
}

CANCELLED = "❌ Operation cancelled. Use /start to begin again."


class MenuTools:
    """Handlers for the ``menu`` and ``tool`` callbacks."""

    def __init__(self, pending: PendingInputs) -> None:
        self.pending = pending

    async def menu(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        section = argument or "main"
        if section == "cancel":
            self.pending.cancel(account.id)
            return Success(CANCELLED)
        screen = MENUS.get(section)
        if screen is None:
            raise ValidationError("❌ Unknown menu. Use /menu to start again.")
        return Success(screen.text, buttons=screen.buttons)

    async def tool(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        prompt = TOOL_PROMPTS.get(argument or "")
        if prompt is None:
            self.pending.cancel(account.id)
            raise ValidationError("❌ Unknown tool. Please try again.")
        self.pending.expect(account.id, argument)
        logger.debug("Waiting for %s input from %s.", argument, account.id)
        return Success(prompt, buttons=CANCEL_BUTTONS)


def menu_commands(pending: PendingInputs) -> list[CommandSpec]:
    tools = MenuTools(pending)
    return [
        CommandSpec(name="menu", handler=tools.menu, requires_approval=False),
        CommandSpec(name="tool", handler=tools.tool, usage="❌ Unknown tool. Please try again."),
    ]
