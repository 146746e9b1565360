"""Account store with per-identity locks.

``InMemoryAccountStore`` is the default backing and has no durability: a
restart drops every account. Anything implementing ``AccountStore`` can be
substituted without touching the gate, ledger or dispatcher.
"""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from typing import Protocol

from lookupbot.accounts import Account
from lookupbot.utils.constants import ADMIN_BOOTSTRAP_CREDITS

logger = logging.getLogger(__name__)


class AccountStore(Protocol):
    """Storage contract for Account records, keyed by identity."""

    def get(self, account_id: str) -> Account | None: ...

    def get_or_create(
        self,
        account_id: str,
        display_name: str | None = None,
        handle: str | None = None,
    ) -> Account: ...

    def upsert(self, account: Account) -> None: ...

    def all(self) -> list[Account]: ...

    def lock(self, account_id: str) -> asyncio.Lock: ...


class InMemoryAccountStore:
    """Process-lifetime dictionary of accounts.

    - ``get_or_create()`` is the sole creation path and is idempotent per id.
    - ``lock()`` hands out one asyncio lock per identity so that a user's
      consecutive commands never interleave their ledger mutations.
    """

    def __init__(self) -> None:
        self._accounts: OrderedDict[str, Account] = OrderedDict()
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, account_id: str) -> Account | None:
        return self._accounts.get(str(account_id))

    def get_or_create(
        self,
        account_id: str,
        display_name: str | None = None,
        handle: str | None = None,
    ) -> Account:
        """Return the account for ``account_id``, creating an unapproved one on miss.

        Display metadata is cosmetic: it seeds a new record and refreshes an
        existing one when supplied.
        """
        account_id = str(account_id)
        account = self._accounts.get(account_id)
        if account is None:
            account = Account(id=account_id, display_name=display_name, handle=handle)
            self._accounts[account_id] = account
            logger.debug("Created account %s.", account_id)
            return account
        if display_name is not None:
            account.display_name = display_name
        if handle is not None:
            account.handle = handle
        return account

    def upsert(self, account: Account) -> None:
        self._accounts[account.id] = account

    def all(self) -> list[Account]:
        return list(self._accounts.values())

    def lock(self, account_id: str) -> asyncio.Lock:
        """Get or create the lock for one identity."""
        account_id = str(account_id)
        if account_id not in self._locks:
            self._locks[account_id] = asyncio.Lock()
        return self._locks[account_id]


def bootstrap_admin(store: AccountStore, admin_id: str) -> Account:
    """Provision (or restore) the configured admin as approved, admin and premium."""
    account = store.get_or_create(admin_id, display_name="Admin")
    account.approved = True
    account.is_admin = True
    account.is_premium = True
    account.credits = max(account.credits, ADMIN_BOOTSTRAP_CREDITS)
    store.upsert(account)
    logger.info("Bootstrap admin %s provisioned.", admin_id)
    return account
