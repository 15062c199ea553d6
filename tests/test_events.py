"""Tests for the event bus."""

import pytest

from liftsync.services.events import EventBus


class TestEventBus:
    """Tests for publish and subscribe."""

    @pytest.mark.asyncio
    async def test_sync_and_async_handlers(self):
        bus = EventBus()
        received = []

        async def on_async(payload):
            received.append(("async", payload))

        bus.subscribe("ping", lambda payload: received.append(("sync", payload)))
        bus.subscribe("ping", on_async)

        assert await bus.publish("ping", 1) == 2
        assert received == [("sync", 1), ("async", 1)]

    @pytest.mark.asyncio
    async def test_failing_handler_isolated(self):
        bus = EventBus()
        received = []

        def broken(_payload):
            raise RuntimeError("boom")

        bus.subscribe("ping", broken)
        bus.subscribe("ping", received.append)

        assert await bus.publish("ping", "x") == 1
        assert received == ["x"]

    @pytest.mark.asyncio
    async def test_no_handlers(self):
        assert await EventBus().publish("nobody-listens") == 0

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        bus = EventBus()
        received = []
        bus.subscribe("ping", received.append)
        bus.unsubscribe("ping", received.append)
        await bus.publish("ping", 1)
        assert received == []
        assert bus.handler_count("ping") == 0

    @pytest.mark.asyncio
    async def test_publish_returns_with_working_and_failing_handlers(self):
        """Logging a delivery or a handler failure never breaks publish."""
        bus = EventBus()
        received = []

        async def broken(_payload):
            raise ValueError("bad payload")

        bus.subscribe("profile", received.append)
        bus.subscribe("profile", broken)

        delivered = await bus.publish("profile", {"username": "lifter"})

        assert delivered == 1
        assert received == [{"username": "lifter"}]
