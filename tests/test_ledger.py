"""Tests for credit ledger operations."""

import pytest

from lookupbot import ledger
from lookupbot.accounts import Account
from lookupbot.errors import ValidationError


class TestTryDebit:
    def test_debits_when_sufficient(self) -> None:
        account = Account(id="1", credits=5)
        assert ledger.try_debit(account) is True
        assert account.credits == 4

    def test_exact_balance_reaches_zero(self) -> None:
        account = Account(id="1", credits=3)
        assert ledger.try_debit(account, 3) is True
        assert account.credits == 0

    def test_insufficient_leaves_balance(self) -> None:
        account = Account(id="1", credits=0)
        assert ledger.try_debit(account) is False
        assert account.credits == 0

    def test_no_partial_debit(self) -> None:
        account = Account(id="1", credits=2)
        assert ledger.try_debit(account, 3) is False
        assert account.credits == 2

    def test_premium_never_mutates(self) -> None:
        account = Account(id="1", credits=0, is_premium=True)
        for _ in range(5):
            assert ledger.try_debit(account) is True
        assert account.credits == 0

    def test_sequence_never_goes_negative(self) -> None:
        account = Account(id="1", credits=2)
        results = [ledger.try_debit(account) for _ in range(4)]
        ledger.refund(account)
        results.append(ledger.try_debit(account))
        assert results == [True, True, False, False, True]
        assert account.credits == 0


class TestRefund:
    def test_refund_adds_back(self) -> None:
        account = Account(id="1", credits=1)
        ledger.try_debit(account)
        ledger.refund(account)
        assert account.credits == 1

    def test_refund_is_unconditional_for_premium(self) -> None:
        """Premium debit is a no-op, so the refund inflates the balance."""
        account = Account(id="1", credits=10, is_premium=True)
        ledger.try_debit(account)
        ledger.refund(account)
        assert account.credits == 11


class TestAdminMutations:
    def test_grant(self) -> None:
        account = Account(id="1", credits=5)
        assert ledger.grant(account, 500) == 505

    @pytest.mark.parametrize("amount", [0, -1, True])
    def test_grant_rejects_non_positive(self, amount) -> None:
        account = Account(id="1", credits=5)
        with pytest.raises(ValidationError):
            ledger.grant(account, amount)
        assert account.credits == 5

    def test_revoke_refuses_to_cross_zero(self) -> None:
        account = Account(id="1", credits=3)
        with pytest.raises(ValidationError, match="only has 3"):
            ledger.revoke(account, 4)
        assert account.credits == 3
        assert ledger.revoke(account, 3) == 0

    def test_set_balance_returns_previous(self) -> None:
        account = Account(id="1", credits=7)
        assert ledger.set_balance(account, 0) == 7
        assert account.credits == 0

    def test_set_balance_rejects_negative(self) -> None:
        account = Account(id="1", credits=7)
        with pytest.raises(ValidationError):
            ledger.set_balance(account, -1)
        assert account.credits == 7


class TestParseAmount:
    def test_parses_integer_text(self) -> None:
        assert ledger.parse_amount(" 42 ") == 42

    @pytest.mark.parametrize("raw", ["abc", "1.5", "", None])
    def test_rejects_non_numeric(self, raw) -> None:
        with pytest.raises(ValidationError):
            ledger.parse_amount(raw)

    def test_zero_needs_allow_zero(self) -> None:
        with pytest.raises(ValidationError, match="positive"):
            ledger.parse_amount("0")
        assert ledger.parse_amount("0", allow_zero=True) == 0

    def test_negative_rejected_even_with_allow_zero(self) -> None:
        with pytest.raises(ValidationError, match="non-negative"):
            ledger.parse_amount("-3", allow_zero=True)
