import json
from datetime import datetime
from unittest.mock import MagicMock

from prpal.events.broadcaster import (
    REPLY_EVENT,
    SYNC_STATUS_EVENT,
    InMemoryBroadcaster,
    RedisBroadcaster,
    broadcaster,
    channel_for,
)
from prpal.tests.unit.helpers import FailingBroadcaster


def test_channel_name():
    assert channel_for(12) == "conversation_12"


def test_redis_broadcaster_publishes_json_envelope():
    connection = MagicMock()

    assert RedisBroadcaster(connection).publish(
        5, SYNC_STATUS_EVENT, {"sync_status": "completed", "last_synced_at": datetime(2024, 1, 2)}
    )

    channel, body = connection.publish.call_args.args
    assert channel == "conversation_5"
    assert json.loads(body) == {
        "event": "sync_status",
        "data": {"sync_status": "completed", "last_synced_at": "2024-01-02T00:00:00"},
    }


def test_in_memory_subscribers_receive_events_for_their_review():
    live_updates = InMemoryBroadcaster()
    received = []
    unsubscribe = live_updates.subscribe(1, lambda event, payload: received.append((event, payload)))

    live_updates.publish(1, REPLY_EVENT, {"target": "llm_placeholder_3"})
    live_updates.publish(2, REPLY_EVENT, {"target": "llm_placeholder_4"})
    unsubscribe()
    live_updates.publish(1, REPLY_EVENT, {"target": "llm_placeholder_5"})

    assert received == [(REPLY_EVENT, {"target": "llm_placeholder_3"})]


def test_publish_failures_are_swallowed():
    assert FailingBroadcaster().publish(1, SYNC_STATUS_EVENT, {}) is False


def test_request_mode_uses_in_memory_broadcaster():
    assert isinstance(broadcaster(), InMemoryBroadcaster)
    assert broadcaster() is broadcaster()
