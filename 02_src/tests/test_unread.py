"""Tests for UnreadCounter."""

import pytest

from teamchat.channel import PrivateChannel, PrivateScope
from teamchat.models import PrivateMessage
from teamchat.orchestrator import UnreadCounter

OWNER = "owner-1"


async def send(storage, sender_id, receiver_id, body="hi"):
    return await storage.insert_private_message(
        PrivateMessage(
            id="", team_owner_id=OWNER, sender_id=sender_id, receiver_id=receiver_id,
            sender_name=sender_id, body=body, created_at=None,
        )
    )


class TestUnreadCounter:
    """Tests for UnreadCounter."""

    @pytest.mark.asyncio
    async def test_counts_live_messages(self, storage, feed):
        counter = UnreadCounter(storage, feed, OWNER, "bob-1")
        await counter.start()

        for _ in range(3):
            await send(storage, "alice-1", "bob-1")
        await send(storage, "owner-1", "bob-1")
        await send(storage, "bob-1", "alice-1")

        assert counter.counts == {"alice-1": 3, "owner-1": 1}
        assert counter.total == 4
        await counter.stop()

    @pytest.mark.asyncio
    async def test_opening_thread_clears_only_that_sender(self, storage, feed, bob_session):
        for _ in range(3):
            await send(storage, "alice-1", "bob-1")
        await send(storage, "owner-1", "bob-1")
        changes = []
        counter = UnreadCounter(storage, feed, OWNER, "bob-1", on_change=changes.append)
        await counter.start()
        assert counter.count("alice-1") == 3

        channel = PrivateChannel(storage, feed, bob_session)
        await channel.open(PrivateScope(OWNER, "alice-1"))

        assert counter.count("alice-1") == 0
        assert counter.count("owner-1") == 1
        assert changes[-1] == {"owner-1": 1}
        await channel.close()
        await counter.stop()

    @pytest.mark.asyncio
    async def test_clear_is_local(self, storage, feed):
        await send(storage, "alice-1", "bob-1")
        counter = UnreadCounter(storage, feed, OWNER, "bob-1")
        await counter.start()

        counter.clear("alice-1")

        assert counter.total == 0
        assert await storage.count_unread_by_sender(OWNER, "bob-1") == {"alice-1": 1}
        await counter.stop()

    @pytest.mark.asyncio
    async def test_other_receivers_do_not_count(self, storage, feed):
        counter = UnreadCounter(storage, feed, OWNER, "bob-1")
        await counter.start()

        await send(storage, "alice-1", "carol-1")

        assert counter.counts == {}
        await counter.stop()
