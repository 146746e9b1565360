"""Admin commands: argument parsing and reply rendering over ``AdminControlSurface``."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from lookupbot.accounts import Account
from lookupbot.admin import AdminControlSurface
from lookupbot.dispatcher import CommandSpec, Invocation, Outcome, Success
from lookupbot.errors import ValidationError
from lookupbot.ledger import parse_amount
from lookupbot.utils.constants import LUCKY_DEFAULT_AMOUNT
from lookupbot.utils.formatters import format_date, percent

logger = logging.getLogger(__name__)

# Longest account listing sent in one reply
_LIST_LIMIT = 50

ADMIN_PANEL = """🌟 *Admin Control Panel* 🌟

💰 *Credits*
• /give <user_id> <amount>
• /remove <user_id> <amount>
• /setcredits <user_id> <amount>
• /giveall <amount>
• /removeall <amount>

👑 *Users*
• /premium <user_id> - toggle premium
• /removepremium <user_id>
• /masspremium, /massremovepremium
• /makeadmin <user_id>, /removeadmin <user_id>
• /checkuser <user_id>, /resetuser <user_id>
• /users, /topusers, /premiumlist, /activity

📋 *Registrations*
• /registrations, /approve <user_id>, /reject <user_id>, /approveall

🔧 *System*
• /adminstats, /logs, /reset\\_daily, /backup
• /broadcast <message>
• /announce <title>|<message>
• /maintenance on [message] | off
• /lucky [amount]

📊 *Current Statistics*
• Total Users: {total}
• Approved Users: {approved}
• Premium Users: {premium}
• Pending Registrations: {pending}
• Maintenance Mode: {maintenance}"""


def _split(argument: str | None, count: int, usage: str) -> list[str]:
    parts = (argument or "").split()
    if len(parts) < count:
        raise ValidationError(usage)
    return parts


def _on_off(flag: bool) -> str:
    return "ON" if flag else "OFF"


def _account_line(account: Account) -> str:
    badges = ("💎" if account.is_premium else "") + ("👑" if account.is_admin else "")
    return f"• {account.mention} (`{account.id}`) {badges} - {account.credits} credits, {account.total_queries} queries"


def _listing(title: str, accounts: list[Account]) -> str:
    if not accounts:
        return f"{title}\n\nNo users found."
    lines = [_account_line(a) for a in accounts[:_LIST_LIMIT]]
    if len(accounts) > _LIST_LIMIT:
        lines.append(f"… and {len(accounts) - _LIST_LIMIT} more")
    return f"{title} ({len(accounts)})\n\n" + "\n".join(lines)


def _tally(result: dict) -> str:
    return f"📨 Notified: {result['sent']} sent, {result['failed']} failed"


class AdminCommands:
    """Handlers that translate admin command arguments into surface calls."""

    def __init__(self, surface: AdminControlSurface) -> None:
        self.surface = surface

    # -- panel and reports ----------------------------------------------------

    async def panel(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        stats = self.surface.stats(account)
        return Success(
            ADMIN_PANEL.format(
                total=stats["total"],
                approved=stats["approved"],
                premium=stats["premium"],
                pending=stats["pending"],
                maintenance=_on_off(stats["maintenance_mode"]),
            )
        )

    async def admin_stats(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        s = self.surface.stats(account)
        average = f"{s['total_queries'] / s['approved']:.1f}" if s["approved"] else "0"
        return Success(
            "📊 *Admin Statistics*\n\n"
            f"• Total Users: {s['total']}\n"
            f"• Approved Users: {s['approved']}\n"
            f"• Premium Users: {s['premium']}\n"
            f"• Admin Users: {s['admins']}\n"
            f"• Pending Registrations: {s['pending']}\n"
            f"• Verified Members: {s['verified']}\n\n"
            f"• Total Queries: {s['total_queries']}\n"
            f"• Average Queries/User: {average}\n"
            f"• Premium Conversion: {percent(s['premium'], s['total'])}%\n"
            f"• Approval Rate: {percent(s['approved'], s['total'])}%\n\n"
            f"• Maintenance Mode: {_on_off(s['maintenance_mode'])}"
        )

    async def users(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        return Success(_listing("👥 *All Users*", self.surface.list_users(account)))

    async def top_users(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        return Success(_listing("🏆 *Top Users by Queries*", self.surface.top_users(account)))

    async def premium_list(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        return Success(_listing("💎 *Premium Members*", self.surface.premium_users(account)))

    async def activity(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        result = self.surface.activity(account)
        ranked = result["accounts"]
        lines = [
            f"{i}. {a.mention} - {a.total_queries} queries" for i, a in enumerate(ranked, start=1)
        ]
        return Success(
            "📈 *Activity* 📈\n\n"
            f"👥 Most Active Users (Top {len(ranked)}):\n"
            + ("\n".join(lines) if lines else "No recent activity")
            + "\n\n📊 Summary:\n"
            f"• Active Users: {len(ranked)}\n"
            f"• Total Queries: {result['total_queries']}\n"
            f"• Average Queries: {result['average']:.1f}"
        )

    async def logs(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        s = self.surface.system_overview(account)
        started = s["started_at"].strftime("%Y-%m-%d %H:%M:%S UTC")
        return Success(
            "📜 *System Overview* 📜\n\n"
            "📊 Current Status:\n"
            "• Bot: ✅ Online\n"
            f"• Total Users: {s['total']}\n"
            f"• Approved Users: {s['approved']}\n"
            f"• Premium Users: {s['premium']}\n"
            f"• Admin Users: {s['admins']}\n"
            f"• Verified Users: {s['verified']}\n"
            f"• Pending Registrations: {s['pending']}\n"
            f"• Total Queries: {s['total_queries']}\n\n"
            "🔧 Configuration:\n"
            f"• Maintenance Mode: {_on_off(s['maintenance_mode'])}\n"
            f"• Started: {started}\n"
            f"• Admin IDs: {', '.join(s['admin_ids'])}\n\n"
            "📝 Detailed logs are written to the process log output."
        )

    async def check_user(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        result = self.surface.inspect(account, argument)
        target = result["account"]
        verified = result["verified"]
        return Success(
            "🔍 *User Details*\n\n"
            f"• ID: `{target.id}`\n"
            f"• User: {target.mention}\n"
            f"• Approved: {'✅' if target.approved else '❌'}\n"
            f"• Credits: {target.credits}\n"
            f"• Premium: {'💎 Yes' if target.is_premium else 'No'}\n"
            f"• Admin: {'👑 Yes' if target.is_admin else 'No'}\n"
            f"• Total Queries: {target.total_queries}\n"
            f"• Member Since: {format_date(target.created_at)}\n"
            f"• Pending Request: {'Yes' if result['pending_request'] else 'No'}\n"
            f"• Channel Verified: {'n/a' if verified is None else ('Yes' if verified else 'No')}"
        )

    # -- per-account ----------------------------------------------------------

    async def give(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        target_id, raw = _split(argument, 2, "💰 Usage: /give <user_id> <amount>")[:2]
        result = await self.surface.grant_credits(account, target_id, parse_amount(raw))
        target = result["account"]
        return Success(
            f"✅ Granted {result['amount']} credits to {target.mention}.\n"
            f"💳 New Balance: {target.credits} credits"
        )

    async def remove(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        target_id, raw = _split(argument, 2, "💸 Usage: /remove <user_id> <amount>")[:2]
        result = await self.surface.remove_credits(account, target_id, parse_amount(raw))
        target = result["account"]
        return Success(
            f"✅ Removed {result['amount']} credits from {target.mention}.\n"
            f"💳 New Balance: {target.credits} credits"
        )

    async def set_credits(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        target_id, raw = _split(argument, 2, "🎯 Usage: /setcredits <user_id> <amount>")[:2]
        result = await self.surface.set_credits(account, target_id, parse_amount(raw, allow_zero=True))
        target = result["account"]
        return Success(
            f"✅ Credits for {target.mention} set: {result['previous']} → {target.credits}."
        )

    async def premium(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        result = await self.surface.set_premium(account, argument)
        state = "granted to" if result["is_premium"] else "removed from"
        return Success(f"✅ Premium {state} {result['account'].mention}.")

    async def remove_premium(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        result = await self.surface.set_premium(account, argument, enabled=False)
        return Success(f"✅ Premium removed from {result['account'].mention}.")

    async def make_admin(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        result = await self.surface.set_admin(account, argument, enabled=True)
        return Success(f"👑 {result['account'].mention} is now an admin.")

    async def remove_admin(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        result = await self.surface.set_admin(account, argument, enabled=False)
        return Success(f"🚫 Admin status removed from {result['account'].mention}.")

    async def reset_user(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        result = await self.surface.reset_account(account, argument)
        before = result["before"]
        target = result["account"]
        return Success(
            f"🔄 Account {target.mention} reset.\n\n"
            f"• Credits: {before['credits']} → 0\n"
            f"• Queries: {before['total_queries']} → 0\n"
            f"• Premium: {'Yes → No' if before['is_premium'] else 'No'}\n"
            f"• Admin: {'Yes (unchanged)' if target.is_admin else 'No'}"
        )

    # -- population-wide ------------------------------------------------------

    async def give_all(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        result = await self.surface.grant_all(account, parse_amount(argument))
        return Success(
            "🌍 *Global Credits Granted*\n\n"
            f"• Users Updated: {result['updated']}\n"
            f"• Credits per User: {result['amount']}\n"
            f"• Total Distributed: {result['updated'] * result['amount']}\n"
            f"{_tally(result)}"
        )

    async def remove_all(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        result = await self.surface.remove_all(account, parse_amount(argument))
        return Success(
            "🗑️ *Global Credits Removed*\n\n"
            f"• Users Updated: {result['updated']}\n"
            f"• Skipped (insufficient balance): {result['skipped']}\n"
            f"• Credits per User: {result['amount']}\n"
            f"{_tally(result)}"
        )

    async def mass_premium(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        result = await self.surface.premium_all(account)
        return Success(f"👑 Premium granted to {result['updated']} users.\n{_tally(result)}")

    async def mass_remove_premium(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        result = await self.surface.revoke_premium_all(account)
        return Success(f"🚫 Premium removed from {result['updated']} users.\n{_tally(result)}")

    async def lucky(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        amount = parse_amount(argument) if argument else LUCKY_DEFAULT_AMOUNT
        result = await self.surface.lucky_draw(account, amount)
        winner = result["account"]
        return Success(
            "🍀 *Lucky Draw Completed*\n\n"
            f"• Winner: {winner.mention} (`{winner.id}`)\n"
            f"• Prize: {result['amount']} credits\n"
            f"• Participants: {result['participants']}\n"
            f"• Winner's New Balance: {winner.credits} credits"
        )

    async def broadcast(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        result = await self.surface.broadcast(account, argument or "")
        return Success(
            f"📢 Broadcast finished.\n• Recipients: {result['recipients']}\n{_tally(result)}"
        )

    async def announce(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        title, sep, message = (argument or "").partition("|")
        if not sep:
            raise ValidationError("🎭 Usage: /announce <title>|<message>")
        result = await self.surface.announce(account, title, message)
        return Success(
            f"🎭 Announcement sent.\n• Recipients: {result['recipients']}\n{_tally(result)}"
        )

    async def reset_daily(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        result = self.surface.reset_daily(account)
        return Success(f"🔄 Query counters reset on {result['updated']} users.")

    # -- process-wide ---------------------------------------------------------

    async def maintenance(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        action, _, message = (argument or "").strip().partition(" ")
        action = action.lower()
        if action == "on":
            result = await self.surface.set_maintenance(account, True, message)
            return Success(
                "⚙️ *Maintenance Mode Enabled*\n\n"
                f"• Message: \"{result['state'].maintenance_message}\"\n"
                f"{_tally(result)}"
            )
        if action == "off":
            await self.surface.set_maintenance(account, False)
            return Success("⚙️ *Maintenance Mode Disabled*\n\nAll users can use the bot normally.")
        raise ValidationError("❌ Invalid action. Use \"on\" or \"off\".")

    async def backup(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        snapshot = self.surface.backup(account)
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S")
        content = json.dumps(snapshot, indent=2, ensure_ascii=False).encode("utf-8")
        await invocation.responder.send_document(
            f"lookupbot_backup_{stamp}.json",
            content,
            "💾 Database Backup\n\n"
            f"• Users: {len(snapshot['users'])}\n"
            f"• Registrations: {len(snapshot['registrations'])}\n"
            f"• Verified Users: {len(snapshot['verified_users'])}",
        )
        return Success(payload=snapshot)

    # -- registrations --------------------------------------------------------

    async def registrations(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        pending = self.surface.pending_registrations(account)
        if not pending:
            return Success("📋 No pending registrations.")
        lines = [
            f"• {r.mention} (`{r.id}`) since {format_date(r.submitted_at)}"
            for r in pending[:_LIST_LIMIT]
        ]
        return Success(f"📋 *Pending Registrations* ({len(pending)})\n\n" + "\n".join(lines))

    async def approve(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        result = await self.surface.approve(account, argument)
        target = result["account"]
        note = "" if result["notified"] else "\n⚠️ The user could not be notified."
        return Success(f"✅ Approved {target.mention} (`{target.id}`) with {target.credits} credits.{note}")

    async def reject(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        result = await self.surface.reject(account, argument)
        request = result["request"]
        return Success(f"❌ Rejected the registration of {request.mention} (`{request.id}`).")

    async def approve_all(self, account: Account, argument: str | None, invocation: Invocation) -> Outcome:
        result = await self.surface.approve_all(account)
        if not result["approved"] and not result["failed"]:
            return Success("📋 No pending registrations.")
        return Success(
            "✅ *Bulk Approval Finished*\n\n"
            f"• Approved: {len(result['approved'])}\n"
            f"• Failed: {len(result['failed'])}"
        )


def admin_commands(surface: AdminControlSurface) -> list[CommandSpec]:
    cmds = AdminCommands(surface)

    def spec(name, handler, usage=None):
        return CommandSpec(
            name=name, handler=handler, requires_approval=False, usage=usage, admin_only=True,
        )

    return [
        spec("admin", cmds.panel),
        spec("adminstats", cmds.admin_stats),
        spec("users", cmds.users),
        spec("topusers", cmds.top_users),
        spec("premiumlist", cmds.premium_list),
        spec("activity", cmds.activity),
        spec("logs", cmds.logs),
        spec("checkuser", cmds.check_user, "🔍 Usage: /checkuser <user_id>"),
        spec("give", cmds.give, "💰 Usage: /give <user_id> <amount>"),
        spec("remove", cmds.remove, "💸 Usage: /remove <user_id> <amount>"),
        spec("setcredits", cmds.set_credits, "🎯 Usage: /setcredits <user_id> <amount>"),
        spec("premium", cmds.premium, "⭐ Usage: /premium <user_id>"),
        spec("removepremium", cmds.remove_premium, "🚫 Usage: /removepremium <user_id>"),
        spec("makeadmin", cmds.make_admin, "👑 Usage: /makeadmin <user_id>"),
        spec("removeadmin", cmds.remove_admin, "🚫 Usage: /removeadmin <user_id>"),
        spec("resetuser", cmds.reset_user, "🔄 Usage: /resetuser <user_id>"),
        spec("giveall", cmds.give_all, "🌍 Usage: /giveall <amount>"),
        spec("removeall", cmds.remove_all, "🗑️ Usage: /removeall <amount>"),
        spec("masspremium", cmds.mass_premium),
        spec("massremovepremium", cmds.mass_remove_premium),
        spec("lucky", cmds.lucky),
        spec("broadcast", cmds.broadcast, "📢 Usage: /broadcast <message>"),
        spec("announce", cmds.announce, "🎭 Usage: /announce <title>|<message>"),
        spec("reset_daily", cmds.reset_daily),
        spec("maintenance", cmds.maintenance, "⚙️ Usage: /maintenance on [message] | off"),
        spec("backup", cmds.backup),
        spec("registrations", cmds.registrations),
        spec("approve", cmds.approve, "✅ Usage: /approve <user_id>"),
        spec("reject", cmds.reject, "❌ Usage: /reject <user_id>"),
        spec("approveall", cmds.approve_all),
    ]
