"""Credit ledger operations on an Account.

All functions mutate the account in place. ``try_debit()`` returns False on
insufficient balance (not exceptional); admin mutations raise
``ValidationError`` on bad input instead of clamping.
"""

from __future__ import annotations

import logging

from lookupbot.accounts import Account
from lookupbot.errors import ValidationError

logger = logging.getLogger(__name__)


def try_debit(account: Account, amount: int = 1) -> bool:
    """Deduct ``amount`` credits. Returns False if insufficient.

    Premium accounts always succeed without mutation.
    """
    if amount < 0:
        return False
    if account.is_premium:
        return True
    if account.credits < amount:
        return False
    account.credits -= amount
    return True


def refund(account: Account, amount: int = 1) -> None:
    """Give back a debit after the paid operation failed.

    Unconditional, premium included: a premium refund follows a no-op debit
    and inflates the balance. Callers that want to avoid that check
    ``is_premium`` themselves.
    """
    account.credits += amount


def parse_amount(raw: str | None, *, allow_zero: bool = False) -> int:
    """Parse an admin-supplied credit amount.

    Raises ValidationError for non-numeric input, and for values below 1
    (or below 0 when ``allow_zero``).
    """
    try:
        amount = int(str(raw).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"'{raw}' is not a valid amount.") from None
    floor = 0 if allow_zero else 1
    if amount < floor:
        kind = "non-negative" if allow_zero else "positive"
        raise ValidationError(f"Please provide a valid {kind} amount.")
    return amount


def grant(account: Account, amount: int) -> int:
    """Add ``amount`` (> 0) credits. Returns the new balance."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError("Please provide a valid positive amount.")
    account.credits += amount
    return account.credits


def revoke(account: Account, amount: int) -> int:
    """Remove ``amount`` (> 0) credits without going below zero."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError("Please provide a valid positive amount.")
    if account.credits < amount:
        raise ValidationError(
            f"User only has {account.credits} credits. Cannot remove {amount}."
        )
    account.credits -= amount
    return account.credits


def set_balance(account: Account, amount: int) -> int:
    """Set the balance to ``amount`` (>= 0). Returns the previous balance."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise ValidationError("Please provide a valid non-negative amount.")
    previous = account.credits
    account.credits = amount
    return previous
