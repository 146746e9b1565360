"""Admin control surface: account, population and process-wide operations.

Every operation takes the acting account first and refuses non-admins with
``AuthorizationError``. Mutations of another identity's account are followed
by a best-effort notification to that identity; a failed notification is
logged and counted, never raised. Population-wide operations walk accounts
one at a time and isolate failures per account.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from typing import Any

from lookupbot import ledger
from lookupbot.accounts import Account, ProcessState
from lookupbot.errors import AuthorizationError, NotFoundError, ValidationError
from lookupbot.membership import MembershipGate
from lookupbot.messages import get_message
from lookupbot.registration import RegistrationPipeline
from lookupbot.store import AccountStore
from lookupbot.transport import Notifier
from lookupbot.utils.constants import (
    DEFAULT_MAINTENANCE_MESSAGE,
    LUCKY_DEFAULT_AMOUNT,
    TOP_USERS_LIMIT,
)

logger = logging.getLogger(__name__)


def _check_positive(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError("Please provide a valid positive amount.")


class AdminControlSurface:
    """Admin-only operations over the account store and process state."""

    def __init__(
        self,
        store: AccountStore,
        state: ProcessState,
        registrations: RegistrationPipeline,
        notifier: Notifier,
        membership: MembershipGate | None = None,
        default_maintenance_message: str = DEFAULT_MAINTENANCE_MESSAGE,
        rng: random.Random | None = None,
        started_at: datetime | None = None,
    ) -> None:
        self.store = store
        self.state = state
        self.registrations = registrations
        self.notifier = notifier
        self.membership = membership
        self.default_maintenance_message = default_maintenance_message
        self.rng = rng or random.Random()
        self.started_at = started_at or datetime.now(timezone.utc)

    # -- helpers --------------------------------------------------------------

    def _require_admin(self, actor: Account) -> None:
        if not actor.is_admin:
            logger.warning("Non-admin %s attempted an admin operation.", actor.id)
            raise AuthorizationError(get_message("admin_only"))

    def _target(self, identity: str) -> Account:
        account = self.store.get(str(identity).strip())
        if account is None:
            raise NotFoundError("❌ User not found.")
        return account

    def _approved(self) -> list[Account]:
        return [a for a in self.store.all() if a.approved]

    async def _notify(self, identity: str, text: str) -> bool:
        """Best-effort delivery. Failures are logged, never raised."""
        try:
            return await self.notifier.notify(identity, text)
        except Exception:
            logger.warning("Notification to %s raised.", identity, exc_info=True)
            return False

    async def _notify_each(self, accounts: list[Account], render) -> dict[str, int]:
        sent = failed = 0
        for account in accounts:
            if await self._notify(account.id, render(account)):
                sent += 1
            else:
                failed += 1
        return {"sent": sent, "failed": failed}

    # -- per-account ----------------------------------------------------------

    async def grant_credits(self, actor: Account, identity: str, amount: int) -> dict[str, Any]:
        self._require_admin(actor)
        target = self._target(identity)
        balance = ledger.grant(target, amount)
        self.store.upsert(target)
        logger.info("Admin %s granted %d credits to %s.", actor.id, amount, target.id)
        notified = await self._notify(
            target.id, get_message("credits_received", amount=amount, balance=balance)
        )
        return {"success": True, "account": target, "amount": amount, "notified": notified}

    async def remove_credits(self, actor: Account, identity: str, amount: int) -> dict[str, Any]:
        self._require_admin(actor)
        target = self._target(identity)
        balance = ledger.revoke(target, amount)
        self.store.upsert(target)
        logger.info("Admin %s removed %d credits from %s.", actor.id, amount, target.id)
        notified = await self._notify(
            target.id, get_message("credits_deducted", amount=amount, balance=balance)
        )
        return {"success": True, "account": target, "amount": amount, "notified": notified}

    async def set_credits(self, actor: Account, identity: str, amount: int) -> dict[str, Any]:
        self._require_admin(actor)
        target = self._target(identity)
        previous = ledger.set_balance(target, amount)
        self.store.upsert(target)
        logger.info("Admin %s set %s credits %d -> %d.", actor.id, target.id, previous, amount)
        notified = await self._notify(
            target.id,
            get_message("credits_set", delta=amount - previous, balance=amount),
        )
        return {"success": True, "account": target, "previous": previous, "notified": notified}

    async def set_premium(self, actor: Account, identity: str, enabled: bool | None = None) -> dict[str, Any]:
        """Set premium on ``identity``; ``enabled=None`` toggles it."""
        self._require_admin(actor)
        target = self._target(identity)
        new_value = (not target.is_premium) if enabled is None else enabled
        if enabled is False and not target.is_premium:
            raise ValidationError("❌ User is not a premium member.")
        target.is_premium = new_value
        self.store.upsert(target)
        logger.info("Admin %s set premium=%s on %s.", actor.id, new_value, target.id)
        key = "premium_granted" if new_value else "premium_revoked"
        notified = await self._notify(target.id, get_message(key))
        return {"success": True, "account": target, "is_premium": new_value, "notified": notified}

    async def set_admin(self, actor: Account, identity: str, enabled: bool) -> dict[str, Any]:
        self._require_admin(actor)
        target = self._target(identity)
        if not enabled and target.id == actor.id:
            raise ValidationError("❌ You cannot remove your own admin status.")
        if target.is_admin == enabled:
            state = "already" if enabled else "not"
            raise ValidationError(f"⚠️ User is {state} an admin.")
        target.is_admin = enabled
        if enabled:
            target.approved = True
            self.registrations.discard(target.id)
        self.store.upsert(target)
        logger.info("Admin %s set admin=%s on %s.", actor.id, enabled, target.id)
        key = "admin_granted" if enabled else "admin_revoked"
        notified = await self._notify(target.id, get_message(key))
        return {"success": True, "account": target, "notified": notified}

    def inspect(self, actor: Account, identity: str) -> dict[str, Any]:
        self._require_admin(actor)
        target = self._target(identity)
        return {
            "success": True,
            "account": target,
            "pending_request": self.registrations.get_request(target.id) is not None,
            "verified": self.membership.is_verified(target.id) if self.membership else None,
        }

    async def reset_account(self, actor: Account, identity: str) -> dict[str, Any]:
        """Zero credits, queries and premium. The admin flag is kept."""
        self._require_admin(actor)
        target = self._target(identity)
        before = {
            "credits": target.credits,
            "total_queries": target.total_queries,
            "is_premium": target.is_premium,
        }
        target.credits = 0
        target.total_queries = 0
        target.is_premium = False
        self.store.upsert(target)
        logger.info("Admin %s reset account %s.", actor.id, target.id)
        notified = await self._notify(target.id, get_message("account_reset"))
        return {"success": True, "account": target, "before": before, "notified": notified}

    # -- population-wide ------------------------------------------------------

    async def grant_all(self, actor: Account, amount: int) -> dict[str, Any]:
        self._require_admin(actor)
        _check_positive(amount)
        recipients = self._approved()
        for account in recipients:
            ledger.grant(account, amount)
            self.store.upsert(account)
        logger.info("Admin %s granted %d credits to %d accounts.", actor.id, amount, len(recipients))
        tally = await self._notify_each(
            recipients,
            lambda a: get_message("credits_received", amount=amount, balance=a.credits),
        )
        return {"success": True, "updated": len(recipients), "amount": amount, **tally}

    async def remove_all(self, actor: Account, amount: int) -> dict[str, Any]:
        """Remove ``amount`` from every approved account that can afford it."""
        self._require_admin(actor)
        _check_positive(amount)
        affected: list[Account] = []
        skipped = 0
        for account in self._approved():
            if account.credits < amount:
                skipped += 1
                continue
            ledger.revoke(account, amount)
            self.store.upsert(account)
            affected.append(account)
        logger.info(
            "Admin %s removed %d credits from %d accounts (%d skipped).",
            actor.id, amount, len(affected), skipped,
        )
        tally = await self._notify_each(
            affected,
            lambda a: get_message("credits_deducted", amount=amount, balance=a.credits),
        )
        return {"success": True, "updated": len(affected), "skipped": skipped, "amount": amount, **tally}

    async def premium_all(self, actor: Account) -> dict[str, Any]:
        self._require_admin(actor)
        upgraded = [a for a in self._approved() if not a.is_premium]
        for account in upgraded:
            account.is_premium = True
            self.store.upsert(account)
        logger.info("Admin %s granted premium to %d accounts.", actor.id, len(upgraded))
        tally = await self._notify_each(upgraded, lambda a: get_message("premium_granted"))
        return {"success": True, "updated": len(upgraded), **tally}

    async def revoke_premium_all(self, actor: Account) -> dict[str, Any]:
        """Strip premium from every non-admin premium account."""
        self._require_admin(actor)
        downgraded = [a for a in self.store.all() if a.is_premium and not a.is_admin]
        for account in downgraded:
            account.is_premium = False
            self.store.upsert(account)
        logger.info("Admin %s revoked premium from %d accounts.", actor.id, len(downgraded))
        tally = await self._notify_each(downgraded, lambda a: get_message("premium_revoked"))
        return {"success": True, "updated": len(downgraded), **tally}

    async def lucky_draw(self, actor: Account, amount: int = LUCKY_DEFAULT_AMOUNT) -> dict[str, Any]:
        """Grant ``amount`` to one uniformly chosen approved account."""
        self._require_admin(actor)
        candidates = self._approved()
        if not candidates:
            raise NotFoundError("❌ No approved users found for lucky draw.")
        winner = self.rng.choice(candidates)
        balance = ledger.grant(winner, amount)
        self.store.upsert(winner)
        logger.info("Lucky draw: %s won %d credits.", winner.id, amount)
        notified = await self._notify(
            winner.id, get_message("lucky_winner", amount=amount, balance=balance)
        )
        return {
            "success": True,
            "account": winner,
            "amount": amount,
            "participants": len(candidates),
            "notified": notified,
        }

    async def broadcast(self, actor: Account, text: str) -> dict[str, Any]:
        self._require_admin(actor)
        text = (text or "").strip()
        if not text:
            raise ValidationError("📢 Usage: /broadcast <message>")
        recipients = self._approved()
        tally = await self._notify_each(recipients, lambda a: get_message("broadcast", message=text))
        logger.info("Broadcast by %s: %d sent, %d failed.", actor.id, tally["sent"], tally["failed"])
        return {"success": True, "recipients": len(recipients), **tally}

    async def announce(self, actor: Account, title: str, message: str) -> dict[str, Any]:
        self._require_admin(actor)
        title, message = (title or "").strip(), (message or "").strip()
        if not title or not message:
            raise ValidationError("🎭 Usage: /announce <title>|<message>")
        recipients = self._approved()
        tally = await self._notify_each(
            recipients, lambda a: get_message("announcement", title=title, message=message)
        )
        logger.info("Announcement by %s: %d sent, %d failed.", actor.id, tally["sent"], tally["failed"])
        return {"success": True, "recipients": len(recipients), **tally}

    def reset_daily(self, actor: Account) -> dict[str, Any]:
        """Zero every non-zero query counter."""
        self._require_admin(actor)
        reset = 0
        for account in self.store.all():
            if account.total_queries > 0:
                account.total_queries = 0
                self.store.upsert(account)
                reset += 1
        logger.info("Admin %s reset query counters on %d accounts.", actor.id, reset)
        return {"success": True, "updated": reset}

    # -- process-wide ---------------------------------------------------------

    async def set_maintenance(self, actor: Account, enabled: bool, message: str | None = None) -> dict[str, Any]:
        """Toggle maintenance mode.

        Turning it on notifies every approved non-admin account with the
        maintenance message.
        """
        self._require_admin(actor)
        self.state.maintenance_mode = enabled
        tally = {"sent": 0, "failed": 0}
        if enabled:
            self.state.maintenance_message = (message or "").strip() or self.default_maintenance_message
            logger.info("Maintenance mode enabled by %s.", actor.id)
            recipients = [a for a in self._approved() if not a.is_admin]
            tally = await self._notify_each(recipients, lambda a: self.state.maintenance_message)
        else:
            logger.info("Maintenance mode disabled by %s.", actor.id)
        return {"success": True, "state": self.state, **tally}

    # -- registrations --------------------------------------------------------

    def pending_registrations(self, actor: Account) -> list:
        self._require_admin(actor)
        return self.registrations.pending()

    async def approve(self, actor: Account, identity: str) -> dict[str, Any]:
        self._require_admin(actor)
        return await self.registrations.approve(identity)

    async def reject(self, actor: Account, identity: str) -> dict[str, Any]:
        self._require_admin(actor)
        return await self.registrations.reject(identity)

    async def approve_all(self, actor: Account) -> dict[str, Any]:
        self._require_admin(actor)
        return await self.registrations.approve_all()

    # -- reporting ------------------------------------------------------------

    def stats(self, actor: Account) -> dict[str, Any]:
        self._require_admin(actor)
        accounts = self.store.all()
        approved = sum(1 for a in accounts if a.approved)
        return {
            "total": len(accounts),
            "approved": approved,
            "premium": sum(1 for a in accounts if a.is_premium),
            "admins": sum(1 for a in accounts if a.is_admin),
            "pending": len(self.registrations.pending()),
            "total_queries": sum(a.total_queries for a in accounts),
            "verified": len(self.membership.verified) if self.membership else 0,
            "maintenance_mode": self.state.maintenance_mode,
        }

    def list_users(self, actor: Account) -> list[Account]:
        """All accounts, premium first."""
        self._require_admin(actor)
        return sorted(self.store.all(), key=lambda a: not a.is_premium)

    def top_users(self, actor: Account, limit: int = TOP_USERS_LIMIT) -> list[Account]:
        self._require_admin(actor)
        return sorted(self.store.all(), key=lambda a: a.total_queries, reverse=True)[:limit]

    def activity(self, actor: Account, limit: int = TOP_USERS_LIMIT) -> dict[str, Any]:
        """Most active approved accounts, with the total and mean over that group."""
        self._require_admin(actor)
        ranked = sorted(self._approved(), key=lambda a: a.total_queries, reverse=True)[:limit]
        total = sum(a.total_queries for a in ranked)
        return {
            "accounts": ranked,
            "total_queries": total,
            "average": total / len(ranked) if ranked else 0.0,
        }

    def system_overview(self, actor: Account) -> dict[str, Any]:
        """``stats`` plus process start time and the current admin identities."""
        overview = self.stats(actor)
        overview["started_at"] = self.started_at
        overview["admin_ids"] = sorted(a.id for a in self.store.all() if a.is_admin)
        return overview

    def premium_users(self, actor: Account) -> list[Account]:
        self._require_admin(actor)
        return [a for a in self.store.all() if a.is_premium]

    def backup(self, actor: Account) -> dict[str, Any]:
        """Snapshot of accounts, pending requests, verification markers and process state."""
        self._require_admin(actor)
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "users": [a.to_dict() for a in self.store.all()],
            "registrations": self.registrations.export(),
            "verified_users": sorted(self.membership.verified) if self.membership else [],
            **self.state.to_dict(),
        }
