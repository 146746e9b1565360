"""Registration pipeline: turns an unapproved identity into an approved account.

Per identity the states are unknown -> pending -> approved, with rejection
deleting the request and returning the identity to unknown. How a submission
is resolved is decided by a pluggable ``RegistrationPolicy``:

- ``AdminApprovalPolicy`` opens a request and asks the admins to approve it.
- ``ChannelAutoApprovalPolicy`` approves on the spot once the external
  membership check passes.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Protocol

from lookupbot.accounts import Account, RegistrationRequest
from lookupbot.errors import MembershipRequiredError, NotFoundError
from lookupbot.membership import MembershipGate
from lookupbot.messages import get_message
from lookupbot.store import AccountStore
from lookupbot.transport import Button, Notifier
from lookupbot.utils.constants import STARTING_CREDITS

logger = logging.getLogger(__name__)


class RegistrationPolicy(Protocol):
    """Decides what happens to a fresh registration submission."""

    async def submit(self, pipeline: RegistrationPipeline, account: Account) -> dict[str, Any]: ...


class AdminApprovalPolicy:
    """Queue a request and notify the admins with approve/reject buttons."""

    async def submit(self, pipeline: RegistrationPipeline, account: Account) -> dict[str, Any]:
        request = pipeline.open_request(account)
        buttons = [[
            Button("✅ Approve", callback_data=f"approve_{request.id}"),
            Button("❌ Reject", callback_data=f"reject_{request.id}"),
        ]]
        await pipeline.notify_admins(
            get_message("admin_new_request", mention=request.mention, identity=request.id),
            buttons,
        )
        return {
            "success": True,
            "status": "pending",
            "message": get_message("registration_submitted"),
        }


class ChannelAutoApprovalPolicy:
    """Approve immediately when the identity is a channel member."""

    def __init__(self, membership: MembershipGate) -> None:
        self.membership = membership

    async def submit(self, pipeline: RegistrationPipeline, account: Account) -> dict[str, Any]:
        if not await self.membership.check(account.id):
            raise MembershipRequiredError(
                get_message("registration_join_first"),
                self.membership.join_buttons(account.id),
            )
        pipeline.activate(account)
        await pipeline.notify_admins(
            get_message("admin_new_user", mention=account.mention, identity=account.id)
        )
        return {
            "success": True,
            "status": "approved",
            "message": get_message(
                "registration_auto_approved", credits=pipeline.starting_credits
            ),
        }


class RegistrationPipeline:
    """Pending registration requests plus the approve/reject transitions."""

    def __init__(
        self,
        store: AccountStore,
        notifier: Notifier,
        policy: RegistrationPolicy,
        starting_credits: int = STARTING_CREDITS,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.policy = policy
        self.starting_credits = starting_credits
        self._requests: OrderedDict[str, RegistrationRequest] = OrderedDict()

    # -- queries --------------------------------------------------------------

    def pending(self) -> list[RegistrationRequest]:
        return list(self._requests.values())

    def get_request(self, identity: str) -> RegistrationRequest | None:
        return self._requests.get(str(identity))

    def status(self, identity: str) -> str:
        """One of ``approved``, ``pending`` or ``unknown``."""
        account = self.store.get(identity)
        if account is not None and account.approved:
            return "approved"
        if str(identity) in self._requests:
            return "pending"
        return "unknown"

    # -- transitions ----------------------------------------------------------

    async def submit(self, account: Account) -> dict[str, Any]:
        """Handle a registration command from ``account``.

        Already approved or already pending submissions are no-ops that
        report the current state.
        """
        if account.approved:
            return {"success": False, "status": "approved", "message": get_message("already_approved")}
        if account.id in self._requests:
            return {"success": False, "status": "pending", "message": get_message("already_pending")}
        return await self.policy.submit(self, account)

    def open_request(self, account: Account) -> RegistrationRequest:
        request = RegistrationRequest(
            id=account.id, display_name=account.display_name, handle=account.handle,
        )
        self._requests[account.id] = request
        logger.info("Registration request opened for %s.", account.id)
        return request

    def activate(self, account: Account) -> Account:
        """Mark ``account`` approved with the starting balance and drop its request."""
        account.approved = True
        account.credits = self.starting_credits
        self.store.upsert(account)
        self._requests.pop(account.id, None)
        logger.info("Account %s approved with %d credits.", account.id, account.credits)
        return account

    def discard(self, identity: str) -> bool:
        """Drop the pending request for ``identity`` without notifying anyone."""
        request = self._requests.pop(str(identity), None)
        if request is None:
            return False
        logger.info("Registration request for %s discarded.", request.id)
        return True

    async def approve(self, identity: str) -> dict[str, Any]:
        """Approve the pending request for ``identity`` and notify the user."""
        identity = str(identity)
        request = self._requests.get(identity)
        if request is None:
            raise NotFoundError(get_message("request_not_found"))
        account = self.store.get_or_create(
            identity, display_name=request.display_name, handle=request.handle,
        )
        self.activate(account)
        notified = await self.notifier.notify(
            identity, get_message("registration_approved", credits=self.starting_credits)
        )
        return {"success": True, "account": account, "notified": notified}

    async def reject(self, identity: str) -> dict[str, Any]:
        """Drop the pending request for ``identity`` and notify the user."""
        identity = str(identity)
        request = self._requests.pop(identity, None)
        if request is None:
            raise NotFoundError(get_message("request_not_found"))
        logger.info("Registration request for %s rejected.", identity)
        notified = await self.notifier.notify(identity, get_message("registration_rejected"))
        return {"success": True, "request": request, "notified": notified}

    async def approve_all(self) -> dict[str, Any]:
        """Approve every pending request, one at a time.

        Not atomic across requests: each approval removes its own request, so
        re-running after a partial pass picks up exactly what is left.
        """
        approved: list[Account] = []
        failed: list[str] = []
        for request in list(self._requests.values()):
            try:
                result = await self.approve(request.id)
            except Exception:
                logger.exception("Bulk approval failed for %s.", request.id)
                failed.append(request.id)
                continue
            approved.append(result["account"])
        logger.info("Bulk approval: %d approved, %d failed.", len(approved), len(failed))
        return {"success": True, "approved": approved, "failed": failed}

    async def notify_admins(self, text: str, buttons=None) -> int:
        """Notify every admin account. Returns the number of deliveries."""
        delivered = 0
        for account in self.store.all():
            if account.is_admin and await self.notifier.notify(account.id, text, buttons):
                delivered += 1
        return delivered

    def export(self) -> list[dict[str, Any]]:
        return [request.to_dict() for request in self._requests.values()]
