"""Admission gate: the ordered checks every command passes before its handler runs.

Order: admin bypass, channel membership, maintenance, approval, credit debit.
The first four are ``screen()``; the debit is ``charge()`` so the dispatcher
can validate arguments in between and never bill a malformed invocation.
Each check raises a ``BotError`` subclass to block.
"""

from __future__ import annotations

import logging

from lookupbot import ledger
from lookupbot.accounts import Account, ProcessState
from lookupbot.errors import (
    ApprovalRequiredError,
    InsufficientCreditsError,
    MaintenanceError,
    MembershipRequiredError,
)
from lookupbot.membership import MembershipGate
from lookupbot.messages import get_message
from lookupbot.utils.constants import MEMBERSHIP_EXEMPT_COMMANDS

logger = logging.getLogger(__name__)


class AdmissionGate:
    def __init__(self, state: ProcessState, membership: MembershipGate | None = None) -> None:
        self.state = state
        self.membership = membership

    async def screen(self, account: Account, command: str, requires_approval: bool) -> None:
        """Run the non-billing checks. Raises on the first block."""
        if account.is_admin:
            return

        if self.membership is not None and command not in MEMBERSHIP_EXEMPT_COMMANDS:
            await self._check_membership(account)

        if self.state.maintenance_mode:
            raise MaintenanceError(self.state.maintenance_message)

        if requires_approval and not account.approved:
            raise ApprovalRequiredError(get_message("approval_required"))

    async def _check_membership(self, account: Account) -> None:
        # Unverified identities must go through the verify callback first
        if not self.membership.is_verified(account.id):
            raise MembershipRequiredError(
                get_message("membership_required"), self.membership.join_buttons(account.id)
            )
        if await self.membership.check(account.id):
            return
        logger.info("Membership of %s lapsed; verification cleared.", account.id)
        raise MembershipRequiredError(
            get_message("membership_lost"),
            self.membership.join_buttons(account.id, verify_label="✅ Verify Again"),
        )

    def charge(self, account: Account, cost: int) -> bool:
        """Debit ``cost`` credits.

        Returns True when a refund is owed should the command fail. Admins
        and free commands are never billed.
        """
        if cost <= 0 or account.is_admin:
            return False
        if not ledger.try_debit(account, cost):
            raise InsufficientCreditsError(
                get_message("insufficient_credits", cost=cost, balance=account.credits)
            )
        return True
