"""Broadcasters: listener registration, dispatch isolation, Redis wire format."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
import redis.asyncio as redis

from tableacl.infrastructure.messaging import (
    BroadcasterFactory,
    BroadcastEvent,
    BroadcastListener,
    BroadcastMessage,
    LocalBroadcaster,
)
from tableacl.infrastructure.messaging.redis_broadcaster import RedisBroadcaster
from tests.conftest import make_settings


class RecordingListener(BroadcastListener):
    """Collects every notification it receives."""

    def __init__(self) -> None:
        self.changes: list[tuple[str, BroadcastEvent, str]] = []
        self.clear_all_count = 0

    async def on_clear_all(self, broadcaster) -> None:
        self.clear_all_count += 1

    async def on_entity_change(self, broadcaster, entity, event, cache_key) -> None:
        self.changes.append((entity, event, cache_key))


class FailingListener(BroadcastListener):
    async def on_clear_all(self, broadcaster) -> None:
        raise RuntimeError("boom")

    async def on_entity_change(self, broadcaster, entity, event, cache_key) -> None:
        raise RuntimeError("boom")


class TestLocalBroadcaster:
    @pytest.mark.asyncio
    async def test_entity_change_reaches_only_that_entity(self) -> None:
        bus = LocalBroadcaster()
        acl_listener = RecordingListener()
        other_listener = RecordingListener()
        bus.register_listener(acl_listener, "table_acl")
        bus.register_listener(other_listener, "project")

        assert await bus.announce("table_acl", BroadcastEvent.UPDATE, "p1") is True

        assert acl_listener.changes == [("table_acl", BroadcastEvent.UPDATE, "p1")]
        assert other_listener.changes == []

    @pytest.mark.asyncio
    async def test_clear_all_reaches_every_listener_once(self) -> None:
        bus = LocalBroadcaster()
        listener = RecordingListener()
        bus.register_listener(listener, "table_acl", "project")
        await bus.announce_clear_all()
        assert listener.clear_all_count == 1

    def test_register_twice_is_noop_and_unregister_removes(self) -> None:
        bus = LocalBroadcaster()
        listener = RecordingListener()
        bus.register_listener(listener, "table_acl")
        bus.register_listener(listener, "table_acl")
        assert bus.listener_count("table_acl") == 1
        assert bus.unregister_listener(listener) is True
        assert bus.listener_count() == 0
        assert bus.unregister_listener(listener) is False

    def test_register_requires_entity(self) -> None:
        with pytest.raises(ValueError):
            LocalBroadcaster().register_listener(RecordingListener())

    @pytest.mark.asyncio
    async def test_failing_listener_is_isolated(self, caplog) -> None:
        bus = LocalBroadcaster()
        good = RecordingListener()
        bus.register_listener(FailingListener(), "table_acl")
        bus.register_listener(good, "table_acl")

        assert await bus.announce("table_acl", BroadcastEvent.CREATE, "p1") is True
        await bus.announce_clear_all()

        assert good.changes == [("table_acl", BroadcastEvent.CREATE, "p1")]
        assert good.clear_all_count == 1
        assert "FailingListener failed" in caplog.text

    @pytest.mark.asyncio
    async def test_announce_rejects_clear_all_event(self) -> None:
        with pytest.raises(ValueError):
            await LocalBroadcaster().announce("table_acl", BroadcastEvent.CLEAR_ALL, "p1")


class TestBroadcastMessage:
    def test_dict_round_trip(self) -> None:
        message = BroadcastMessage("table_acl", BroadcastEvent.DROP, "p1", "node-1")
        data = message.to_dict()
        assert data["event"] == "drop"
        assert BroadcastMessage.from_dict(data) == message


class TestRedisBroadcaster:
    @pytest.fixture
    def client(self):
        client = MagicMock()
        client.publish = AsyncMock(return_value=1)
        return client

    @pytest.mark.asyncio
    async def test_announce_publishes_json_on_entity_channel(self, client) -> None:
        bus = RedisBroadcaster("tableacl:broadcast:test", redis_client=client, node_id="n1")
        assert await bus.announce("table_acl", BroadcastEvent.UPDATE, "p1") is True
        channel, payload = client.publish.await_args.args
        assert channel == "tableacl:broadcast:test:table_acl"
        assert json.loads(payload) == {
            "entity": "table_acl",
            "event": "update",
            "cache_key": "p1",
            "origin": "n1",
        }

    @pytest.mark.asyncio
    async def test_clear_all_published_on_all_channel(self, client) -> None:
        bus = RedisBroadcaster("prefix", redis_client=client)
        assert await bus.announce_clear_all() is True
        assert client.publish.await_args.args[0] == "prefix:all"

    @pytest.mark.asyncio
    async def test_publish_error_returns_false(self, client) -> None:
        client.publish = AsyncMock(side_effect=redis.ConnectionError("down"))
        bus = RedisBroadcaster("prefix", redis_client=client)
        assert await bus.announce("table_acl", BroadcastEvent.UPDATE, "p1") is False

    @pytest.mark.asyncio
    async def test_unavailable_returns_false(self) -> None:
        bus = RedisBroadcaster("prefix")
        assert bus.is_available() is False
        assert await bus.announce("table_acl", BroadcastEvent.UPDATE, "p1") is False

    @pytest.mark.asyncio
    async def test_handle_message_dispatches_to_listeners(self, client) -> None:
        bus = RedisBroadcaster("prefix", redis_client=client)
        listener = RecordingListener()
        bus.register_listener(listener, "table_acl")
        data = BroadcastMessage("table_acl", BroadcastEvent.UPDATE, "p1", "other").to_dict()

        await bus.handle_message({"type": "psubscribe", "data": 1})
        await bus.handle_message(
            {"type": "pmessage", "channel": "prefix:table_acl", "data": json.dumps(data)}
        )

        assert listener.changes == [("table_acl", BroadcastEvent.UPDATE, "p1")]

    @pytest.mark.asyncio
    async def test_handle_message_ignores_malformed_payload(self, client, caplog) -> None:
        bus = RedisBroadcaster("prefix", redis_client=client)
        listener = RecordingListener()
        bus.register_listener(listener, "table_acl")
        await bus.handle_message({"type": "pmessage", "data": "{not json"})
        await bus.handle_message({"type": "pmessage", "data": json.dumps({"entity": "x"})})
        assert listener.changes == []
        assert "Failed to parse broadcast message" in caplog.text

    @pytest.mark.asyncio
    async def test_start_without_client_or_settings_does_not_subscribe(self) -> None:
        bus = RedisBroadcaster("prefix")
        await bus.start()
        assert bus._listen_task is None

    @pytest.mark.asyncio
    async def test_subscription_resumes_after_connection_loss(self, client, caplog) -> None:
        data = BroadcastMessage("table_acl", BroadcastEvent.UPDATE, "p1", "other").to_dict()

        async def dropped_connection():
            raise redis.ConnectionError("connection reset")
            yield

        async def healthy_connection():
            yield {"type": "pmessage", "channel": "prefix:table_acl", "data": json.dumps(data)}
            await asyncio.Event().wait()

        pubsub = MagicMock()
        pubsub.psubscribe = AsyncMock()
        pubsub.punsubscribe = AsyncMock()
        pubsub.aclose = AsyncMock()
        pubsub.listen = MagicMock(side_effect=[dropped_connection(), healthy_connection()])
        client.pubsub.return_value = pubsub
        client.aclose = AsyncMock()
        bus = RedisBroadcaster("prefix", redis_client=client, reconnect_delay=0)
        listener = RecordingListener()
        bus.register_listener(listener, "table_acl")

        await bus.start()
        for _ in range(100):
            if listener.changes:
                break
            await asyncio.sleep(0.01)
        await bus.stop()

        assert listener.changes == [("table_acl", BroadcastEvent.UPDATE, "p1")]
        assert pubsub.psubscribe.await_count == 2
        assert "Broadcast subscription lost" in caplog.text


class TestBroadcasterFactory:
    def test_local(self) -> None:
        assert isinstance(
            BroadcasterFactory.create_broadcaster(make_settings()), LocalBroadcaster
        )

    def test_redis_channel_scoped_by_deployment(self) -> None:
        bus = BroadcasterFactory.create_broadcaster(
            make_settings(broadcast_backend="redis", deployment_id="tenant-a")
        )
        assert isinstance(bus, RedisBroadcaster)
        assert bus.channel_prefix == "tableacl:broadcast:tenant-a"
