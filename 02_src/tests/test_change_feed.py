"""Tests for ChangeFeed."""

import asyncio
from datetime import datetime, timezone

import pytest

from teamchat.change_feed import ChangeFeed
from teamchat.errors import FeedUnavailableError
from teamchat.models import ChangeEvent, ChangeType, Table


def make_event(record: dict, table=Table.TEAM_MESSAGES, change=ChangeType.INSERT, old=None):
    return ChangeEvent(
        id="evt",
        table=table,
        type=change,
        record=record,
        old_record=old or {},
        timestamp=datetime.now(timezone.utc),
    )


class TestChangeFeedSubscribe:
    """Tests for subscription filtering."""

    @pytest.mark.asyncio
    async def test_filters_by_table_and_column(self, feed):
        """Only events on the table with matching columns are delivered."""
        calls = []

        async def handler(event):
            calls.append(event.record["id"])

        feed.subscribe(Table.TEAM_MESSAGES, handler, filters={"owner_id": "o1"})

        await feed.publish(make_event({"id": "m1", "owner_id": "o1"}))
        await feed.publish(make_event({"id": "m2", "owner_id": "o2"}))
        await feed.publish(make_event({"id": "m3", "owner_id": "o1"}, table=Table.PRIVATE_MESSAGES))

        assert calls == ["m1"]

    @pytest.mark.asyncio
    async def test_filters_by_event_type(self, feed):
        calls = []

        async def handler(event):
            calls.append(event.type)

        feed.subscribe(Table.TEAM_MESSAGES, handler, events={ChangeType.DELETE})

        await feed.publish(make_event({"id": "m1"}))
        await feed.publish(make_event({}, change=ChangeType.DELETE, old={"id": "m1"}))

        assert calls == [ChangeType.DELETE]

    @pytest.mark.asyncio
    async def test_delete_filters_on_old_record(self, feed):
        """DELETE events carry the row in old_record; filters use it."""
        calls = []

        async def handler(event):
            calls.append(event.row["id"])

        feed.subscribe(Table.TEAM_MESSAGES, handler, filters={"owner_id": "o1"})
        await feed.publish(
            make_event({}, change=ChangeType.DELETE, old={"id": "m1", "owner_id": "o1"})
        )

        assert calls == ["m1"]

    @pytest.mark.asyncio
    async def test_close_stops_delivery(self, feed):
        calls = []

        async def handler(event):
            calls.append(event)

        sub = feed.subscribe(Table.TEAM_MESSAGES, handler)
        sub.close()
        sub.close()

        await feed.publish(make_event({"id": "m1"}))
        assert calls == []
        assert feed.subscription_count == 0


class TestChangeFeedPublish:
    """Tests for publishing."""

    @pytest.mark.asyncio
    async def test_handler_error_does_not_affect_others(self, feed):
        """A failing handler is logged; other handlers still run."""
        calls = []

        async def failing(event):
            raise ValueError("boom")

        async def working(event):
            calls.append(event)

        feed.subscribe(Table.TEAM_MESSAGES, failing)
        feed.subscribe(Table.TEAM_MESSAGES, working)

        await feed.publish(make_event({"id": "m1"}))
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_handlers_run_concurrently(self, feed):
        """Handlers are gathered, so one waiting handler does not block another."""
        order = []
        gate = asyncio.Event()

        async def waiter(event):
            await gate.wait()
            order.append("waiter")

        async def opener(event):
            order.append("opener")
            gate.set()

        feed.subscribe(Table.TEAM_MESSAGES, waiter)
        feed.subscribe(Table.TEAM_MESSAGES, opener)

        await asyncio.wait_for(feed.publish(make_event({"id": "m1"})), timeout=1)
        assert order == ["opener", "waiter"]


class TestChangeFeedConnection:
    """Tests for transport drop and reconnect."""

    @pytest.mark.asyncio
    async def test_disconnect_drops_subscriptions(self, feed):
        dropped = []

        async def handler(event):
            pass

        feed.subscribe(Table.TEAM_MESSAGES, handler, on_drop=lambda: dropped.append(1))
        feed.disconnect()

        assert dropped == [1]
        assert feed.subscription_count == 0
        assert not feed.connected

    @pytest.mark.asyncio
    async def test_subscribe_while_disconnected_raises(self, feed):
        feed.disconnect()

        async def handler(event):
            pass

        with pytest.raises(FeedUnavailableError):
            feed.subscribe(Table.TEAM_MESSAGES, handler)

        feed.reconnect()
        assert feed.subscribe(Table.TEAM_MESSAGES, handler).active

    @pytest.mark.asyncio
    async def test_reconnect_does_not_restore_plain_subscriptions(self):
        feed = ChangeFeed()
        calls = []

        async def handler(event):
            calls.append(event)

        feed.subscribe(Table.TEAM_MESSAGES, handler)
        feed.disconnect()
        feed.reconnect()

        await feed.publish(make_event({"id": "m1"}))
        assert calls == []
