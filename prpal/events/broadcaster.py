"""Live updates for open review views.

Publishing is fire-and-forget: a broken channel is logged and never fails
the sync or reply that triggered it.
"""

import json
from abc import ABC, abstractmethod
from collections import defaultdict
from functools import lru_cache
from typing import Any, Callable, Dict, List

from fastapi.encoders import jsonable_encoder

from prpal.config import settings
from prpal.utils.logger import logger

SYNC_STATUS_EVENT = "sync_status"
REPLY_EVENT = "reply"

Subscriber = Callable[[str, Dict[str, Any]], None]


def channel_for(review_id: int) -> str:
    return f"conversation_{review_id}"


class Broadcaster(ABC):
    def publish(self, review_id: int, event: str, payload: Dict[str, Any]) -> bool:
        channel = channel_for(review_id)
        try:
            self._publish(channel, event, jsonable_encoder(payload))
        except Exception as e:
            logger.warning(f"Failed to broadcast '{event}' to {channel}: {e}")
            return False
        logger.debug(f"Broadcast '{event}' to {channel}")
        return True

    @abstractmethod
    def _publish(self, channel: str, event: str, payload: Dict[str, Any]):
        pass


class RedisBroadcaster(Broadcaster):
    def __init__(self, connection):
        self.connection = connection

    def _publish(self, channel: str, event: str, payload: Dict[str, Any]):
        self.connection.publish(channel, json.dumps({"event": event, "data": payload}))


class InMemoryBroadcaster(Broadcaster):
    """Delivers to in-process callbacks; used when jobs run inside the web process."""

    def __init__(self):
        self._subscribers: Dict[str, List[Subscriber]] = defaultdict(list)

    def subscribe(self, review_id: int, callback: Subscriber) -> Callable[[], None]:
        channel = channel_for(review_id)
        self._subscribers[channel].append(callback)

        def unsubscribe():
            if callback in self._subscribers[channel]:
                self._subscribers[channel].remove(callback)

        return unsubscribe

    def _publish(self, channel: str, event: str, payload: Dict[str, Any]):
        for callback in list(self._subscribers.get(channel, [])):
            callback(event, payload)


@lru_cache(maxsize=None)
def broadcaster() -> Broadcaster:
    if settings.QUEUE_MODE in ["redis", "redislite"]:
        from prpal.events.dispatcher import redis_conn

        if redis_conn is not None:
            return RedisBroadcaster(redis_conn)
    return InMemoryBroadcaster()
