"""Tests for the registration pipeline and its policies."""

from unittest.mock import AsyncMock

import pytest

from conftest import ADMIN_ID, FakeNotifier
from lookupbot.errors import MembershipRequiredError, NotFoundError
from lookupbot.membership import MembershipGate
from lookupbot.registration import (
    AdminApprovalPolicy,
    ChannelAutoApprovalPolicy,
    RegistrationPipeline,
)
from lookupbot.store import InMemoryAccountStore, bootstrap_admin


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _pipeline(policy=None, notifier=None):
    store = InMemoryAccountStore()
    bootstrap_admin(store, ADMIN_ID)
    notifier = notifier or FakeNotifier()
    pipeline = RegistrationPipeline(store, notifier, policy or AdminApprovalPolicy())
    return pipeline, store, notifier


# ---------------------------------------------------------------------------
# Admin approval
# ---------------------------------------------------------------------------


class TestAdminApprovalSubmit:
    @pytest.mark.asyncio
    async def test_submit_opens_request_and_notifies_admin(self) -> None:
        pipeline, store, notifier = _pipeline()
        account = store.get_or_create("u1", handle="user1")

        result = await pipeline.submit(account)

        assert result["status"] == "pending"
        assert pipeline.status("u1") == "pending"
        [(identity, text, buttons)] = notifier.sent
        assert identity == ADMIN_ID
        assert "@user1" in text
        callbacks = [b.callback_data for b in buttons[0]]
        assert callbacks == ["approve_u1", "reject_u1"]

    @pytest.mark.asyncio
    async def test_double_submit_yields_one_request(self) -> None:
        pipeline, store, notifier = _pipeline()
        account = store.get_or_create("u1")

        await pipeline.submit(account)
        second = await pipeline.submit(account)

        assert second["success"] is False
        assert second["status"] == "pending"
        assert "already pending" in second["message"]
        assert len(pipeline.pending()) == 1
        assert len(notifier.sent) == 1

    @pytest.mark.asyncio
    async def test_approved_account_submit_is_noop(self) -> None:
        pipeline, store, _ = _pipeline()
        account = store.get_or_create("u1")
        account.approved = True

        result = await pipeline.submit(account)

        assert result["status"] == "approved"
        assert "already registered" in result["message"]
        assert pipeline.pending() == []


class TestApproveReject:
    @pytest.mark.asyncio
    async def test_approve_sets_starting_credits_and_deletes_request(self) -> None:
        pipeline, store, notifier = _pipeline()
        await pipeline.submit(store.get_or_create("u1"))

        result = await pipeline.approve("u1")

        account = store.get("u1")
        assert result["success"] is True
        assert account.approved is True
        assert account.credits == 25
        assert pipeline.get_request("u1") is None
        assert pipeline.status("u1") == "approved"
        assert any("Approved" in text for text in notifier.to("u1"))

    @pytest.mark.asyncio
    async def test_approve_without_request_raises(self) -> None:
        pipeline, _, _ = _pipeline()
        with pytest.raises(NotFoundError):
            await pipeline.approve("ghost")

    @pytest.mark.asyncio
    async def test_reject_returns_identity_to_unknown(self) -> None:
        pipeline, store, notifier = _pipeline()
        account = store.get_or_create("u1")
        await pipeline.submit(account)

        await pipeline.reject("u1")

        assert pipeline.status("u1") == "unknown"
        assert account.approved is False
        assert account.credits == 0
        assert any("Rejected" in text for text in notifier.to("u1"))

        # May register again afterwards
        again = await pipeline.submit(account)
        assert again["status"] == "pending"

    @pytest.mark.asyncio
    async def test_discard_drops_request_silently(self) -> None:
        pipeline, store, notifier = _pipeline()
        await pipeline.submit(store.get_or_create("u1"))
        sent_before = len(notifier.sent)

        assert pipeline.discard("u1") is True
        assert pipeline.discard("u1") is False
        assert pipeline.status("u1") == "unknown"
        assert len(notifier.sent) == sent_before

    @pytest.mark.asyncio
    async def test_unreachable_user_still_approved(self) -> None:
        pipeline, store, _ = _pipeline(notifier=FakeNotifier(unreachable={"u1"}))
        await pipeline.submit(store.get_or_create("u1"))

        result = await pipeline.approve("u1")

        assert result["notified"] is False
        assert store.get("u1").approved is True


class TestApproveAll:
    @pytest.mark.asyncio
    async def test_approves_every_pending_request(self) -> None:
        pipeline, store, notifier = _pipeline()
        for identity in ("u1", "u2", "u3"):
            await pipeline.submit(store.get_or_create(identity))

        result = await pipeline.approve_all()

        assert len(result["approved"]) == 3
        assert result["failed"] == []
        assert pipeline.pending() == []
        for identity in ("u1", "u2", "u3"):
            assert store.get(identity).credits == 25
            assert notifier.to(identity)

    @pytest.mark.asyncio
    async def test_rerun_after_partial_failure_resumes(self) -> None:
        pipeline, store, _ = _pipeline()
        for identity in ("u1", "u2"):
            await pipeline.submit(store.get_or_create(identity))

        original = pipeline.approve
        calls = {"n": 0}

        async def flaky(identity):
            calls["n"] += 1
            if identity == "u2" and calls["n"] == 2:
                raise RuntimeError("crash mid-bulk")
            return await original(identity)

        pipeline.approve = flaky
        first = await pipeline.approve_all()
        assert [a.id for a in first["approved"]] == ["u1"]
        assert first["failed"] == ["u2"]
        assert [r.id for r in pipeline.pending()] == ["u2"]

        second = await pipeline.approve_all()
        assert [a.id for a in second["approved"]] == ["u2"]
        assert pipeline.pending() == []
        assert store.get("u1").credits == 25


# ---------------------------------------------------------------------------
# Channel auto-approval
# ---------------------------------------------------------------------------


class TestChannelAutoApproval:
    @pytest.mark.asyncio
    async def test_member_is_approved_immediately(self) -> None:
        membership = MembershipGate(AsyncMock(return_value=True), channel_url="https://t.me/chan")
        pipeline, store, notifier = _pipeline(ChannelAutoApprovalPolicy(membership))
        account = store.get_or_create("u1")

        result = await pipeline.submit(account)

        assert result["status"] == "approved"
        assert account.approved is True
        assert account.credits == 25
        assert pipeline.pending() == []
        assert notifier.to(ADMIN_ID)

    @pytest.mark.asyncio
    async def test_non_member_is_told_to_join(self) -> None:
        membership = MembershipGate(AsyncMock(return_value=False), channel_url="https://t.me/chan")
        pipeline, store, notifier = _pipeline(ChannelAutoApprovalPolicy(membership))
        account = store.get_or_create("u1")

        with pytest.raises(MembershipRequiredError) as exc_info:
            await pipeline.submit(account)

        assert account.approved is False
        assert pipeline.pending() == []
        urls = [b.url for b in exc_info.value.buttons[0] if b.url]
        assert urls == ["https://t.me/chan"]
        assert notifier.sent == []
