"""Account commands: start, help, register, checkstatus, sync, credits, stats, ping, verify."""

from __future__ import annotations

import logging

from lookupbot.accounts import Account
from lookupbot.dispatcher import CommandSpec, Invocation, Outcome, Success
from lookupbot.errors import AuthorizationError, NotFoundError
from lookupbot.membership import MembershipGate
from lookupbot.messages import get_message
from lookupbot.registration import RegistrationPipeline
from lookupbot.store import AccountStore, bootstrap_admin
from lookupbot.tools.menu import MAIN_MENU
from lookupbot.utils.formatters import format_date

logger = logging.getLogger(__name__)

HELP_TEXT = """📖 *Lookup Bot Guide*

🔍 *Lookups* (1 credit each)
• /ip <address> - IP geolocation (the bot's own IP without an argument)
• /email <address> - Email validation
• /bin <digits> - Card BIN information
• /ff <uid> - Free Fire player info

🎬 *Downloads* (1 credit each)
• /dl <url> - Auto-detect the platform
• /insta /fb /snap /pin <url> - Platform downloaders
• /terabox <url> - TeraBox files

🆓 *Free*
• /menu - Interactive menu
• /myip - Bot IP information
• /useragent - The bot's user agent
• /tempmail - Generate a temporary email address
• /credits - Your balance
• /stats - Your usage
• /checkstatus - Registration status
• /register - Request access
• /sync - Restore a lost admin account
• /ping - Check the bot

💡 Failed lookups are refunded automatically."""


class AccountTools:
    """Handlers for the commands every identity can reach."""

    def __init__(
        self,
        store: AccountStore,
        registrations: RegistrationPipeline,
        membership: MembershipGate | None = None,
        admin_user_id: str | None = None,
    ) -> None:
        self.store = store
        self.registrations = registrations
        self.membership = membership
        self.admin_user_id = str(admin_user_id) if admin_user_id is not None else None

    def _needs_verification(self, account: Account) -> bool:
        return (
            self.membership is not None
            and not account.is_admin
            and not self.membership.is_verified(account.id)
        )

    async def start(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        name = account.display_name or "there"
        if account.approved:
            return Success(
                f"👋 Welcome back, {name}!\n\n"
                f"💳 Balance: {account.credits} credits\n"
                "Pick a category below or use /help to see every command.",
                buttons=MAIN_MENU,
            )
        if self._needs_verification(account):
            return Success(
                f"👋 Welcome, {name}!\n\n"
                "📢 Join our updates channel, then press Verify to continue.",
                buttons=self.membership.join_buttons(account.id),
            )
        return Success(
            f"👋 Welcome, {name}!\n\n"
            "📋 Use /register to request access. "
            f"Approved accounts start with {self.registrations.starting_credits} credits."
        )

    async def help(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        return Success(HELP_TEXT)

    async def register(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        result = await self.registrations.submit(account)
        return Success(result["message"], payload=result)

    async def check_status(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        status = self.registrations.status(account.id)
        if status == "approved":
            return Success(
                "📋 *Your Registration Status*\n\n"
                f"• Telegram ID: `{account.id}`\n"
                "• Status: ✅ Approved\n"
                f"• Credits: {account.credits} 🪙\n"
                f"• Premium: {'💎 Yes' if account.is_premium else '🔹 No'}\n"
                f"• Member Since: {format_date(account.created_at)}\n\n"
                "✅ Your account is approved and ready to use!"
            )
        if status == "pending":
            return Success(get_message("already_pending"))
        if self._needs_verification(account):
            return Success(
                "❌ No registration found.\n\n"
                "Please join the updates channel and verify your membership before registering.",
                buttons=self.membership.join_buttons(account.id),
            )
        return Success("❌ No registration found.\n\nUse /register to submit a request.")

    async def sync(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        """Re-provision the configured admin after a restart."""
        if account.approved:
            return Success("✅ Your account is already synced and approved!")
        if account.id == self.admin_user_id:
            bootstrap_admin(self.store, account.id)
            return Success("✅ Admin account synced successfully!")
        raise NotFoundError(
            "❌ No approved registration found.\n\n"
            "Accounts live in memory and do not survive a restart. "
            "Use /register to submit a new request."
        )

    async def credits(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        if account.is_premium:
            tier = "💎 Premium Member\n✅ Unlimited queries"
        else:
            tier = f"🔹 Standard Member\n📊 Queries available: {account.credits}"
        return Success(
            "💳 *Credit Information*\n\n"
            f"🪙 Current Balance: {account.credits} credits\n\n"
            f"{tier}\n\n"
            f"📈 Total Queries: {account.total_queries}\n\n"
            "💡 Each lookup consumes 1 credit. Contact the admin for more."
        )

    async def stats(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        return Success(
            "📊 *Your Usage Statistics*\n\n"
            f"• User: {account.mention}\n"
            f"• Status: {'💎 Premium' if account.is_premium else '🔹 Standard'}\n"
            f"• Credits: {account.credits} 🪙\n"
            f"• Member Since: {format_date(account.created_at)}\n"
            f"• Total Queries: {account.total_queries}"
        )

    async def ping(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        return Success("🏓 Pong! You are verified.")

    async def verify(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        """Re-check channel membership for the identity bound to the button."""
        if argument is not None and argument != account.id:
            raise AuthorizationError(get_message("verify_not_owner"))
        if self.membership is None or self.membership.is_verified(account.id):
            return Success(get_message("verify_already"))
        if await self.membership.verify(account.id):
            logger.info("Identity %s verified channel membership.", account.id)
            return Success(get_message("verify_success"))
        return Success(
            get_message("verify_failed"),
            buttons=self.membership.join_buttons(account.id),
        )


def account_commands(
    store: AccountStore,
    registrations: RegistrationPipeline,
    membership: MembershipGate | None = None,
    admin_user_id: str | None = None,
) -> list[CommandSpec]:
    tools = AccountTools(store, registrations, membership, admin_user_id)
    return [
        CommandSpec(name="start", handler=tools.start, requires_approval=False),
        CommandSpec(name="help", handler=tools.help, requires_approval=False),
        CommandSpec(name="register", handler=tools.register, requires_approval=False),
        CommandSpec(name="checkstatus", handler=tools.check_status, requires_approval=False),
        CommandSpec(name="sync", handler=tools.sync, requires_approval=False),
        CommandSpec(name="credits", handler=tools.credits),
        CommandSpec(name="stats", handler=tools.stats),
        CommandSpec(name="ping", handler=tools.ping, requires_approval=False),
        CommandSpec(name="verify", handler=tools.verify, requires_approval=False),
    ]
