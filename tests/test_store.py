"""Tests for the in-memory account store."""

import asyncio

import pytest

from lookupbot.accounts import Account
from lookupbot.store import InMemoryAccountStore, bootstrap_admin
from lookupbot.utils.constants import ADMIN_BOOTSTRAP_CREDITS


class TestGetOrCreate:
    def test_creates_unapproved_zero_credit_account(self) -> None:
        store = InMemoryAccountStore()
        account = store.get_or_create("42", display_name="Ann", handle="ann")
        assert account.approved is False
        assert account.credits == 0
        assert account.mention == "@ann"
        assert store.get("42") is account

    def test_idempotent_per_id(self) -> None:
        store = InMemoryAccountStore()
        first = store.get_or_create("42")
        first.credits = 9
        second = store.get_or_create("42")
        assert second is first
        assert second.credits == 9
        assert len(store.all()) == 1

    def test_refreshes_metadata_when_supplied(self) -> None:
        store = InMemoryAccountStore()
        store.get_or_create("42", display_name="Ann")
        account = store.get_or_create("42", handle="ann_new")
        assert account.display_name == "Ann"
        assert account.handle == "ann_new"

    def test_ids_are_normalized_to_strings(self) -> None:
        store = InMemoryAccountStore()
        store.get_or_create(42)
        assert store.get("42") is not None

    def test_get_missing_returns_none(self) -> None:
        assert InMemoryAccountStore().get("nope") is None


class TestUpsertAndAll:
    def test_upsert_replaces_record(self) -> None:
        store = InMemoryAccountStore()
        store.upsert(Account(id="1", credits=5))
        store.upsert(Account(id="1", credits=8))
        assert [a.credits for a in store.all()] == [8]


class TestLocks:
    def test_same_lock_per_identity(self) -> None:
        store = InMemoryAccountStore()
        assert store.lock("1") is store.lock("1")
        assert store.lock("1") is not store.lock("2")

    @pytest.mark.asyncio
    async def test_lock_serializes_same_identity(self) -> None:
        store = InMemoryAccountStore()
        order: list[str] = []

        async def task(name: str) -> None:
            async with store.lock("1"):
                order.append(f"{name}-start")
                await asyncio.sleep(0)
                order.append(f"{name}-end")

        await asyncio.gather(task("a"), task("b"))
        assert order == ["a-start", "a-end", "b-start", "b-end"]


class TestBootstrapAdmin:
    def test_provisions_admin(self) -> None:
        store = InMemoryAccountStore()
        account = bootstrap_admin(store, "7")
        assert account.approved and account.is_admin and account.is_premium
        assert account.credits == ADMIN_BOOTSTRAP_CREDITS

    def test_keeps_higher_balance(self) -> None:
        store = InMemoryAccountStore()
        store.upsert(Account(id="7", credits=ADMIN_BOOTSTRAP_CREDITS + 5))
        assert bootstrap_admin(store, "7").credits == ADMIN_BOOTSTRAP_CREDITS + 5
