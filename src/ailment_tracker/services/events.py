"""In-process publish/subscribe broker for ailment change notifications.

Every subscriber of a channel receives every message published on it after
it subscribed. Delivery is scheduled on the subscriber's own event loop, so
a publisher never runs subscriber code inline and may publish from a worker
thread.
"""

import asyncio
import copy
import logging
import threading
from dataclasses import dataclass
from typing import Any

from ailment_tracker.constants import CHANNELS
from ailment_tracker.sync.transport import OnData, OnError, PushChannel, Subscription

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class _Subscriber:
    channel: str
    on_data: OnData
    on_error: OnError | None
    loop: asyncio.AbstractEventLoop | None


class BrokerSubscription(Subscription):
    def __init__(self, broker: "EventBroker", subscriber: _Subscriber):
        self._broker = broker
        self._subscriber = subscriber

    def unsubscribe(self) -> None:
        self._broker._remove(self._subscriber)


class EventBroker(PushChannel):
    def __init__(self) -> None:
        self._subscribers: dict[str, list[_Subscriber]] = {c: [] for c in CHANNELS}
        self._lock = threading.Lock()

    def subscribe(
        self, channel: str, on_data: OnData, on_error: OnError | None = None
    ) -> BrokerSubscription:
        if channel not in self._subscribers:
            raise ValueError(f"Unknown channel: {channel}")
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        subscriber = _Subscriber(channel, on_data, on_error, loop)
        with self._lock:
            self._subscribers[channel].append(subscriber)
        logger.debug("Subscribed to %s", channel)
        return BrokerSubscription(self, subscriber)

    def _remove(self, subscriber: _Subscriber) -> None:
        with self._lock:
            subscribers = self._subscribers[subscriber.channel]
            if subscriber in subscribers:
                subscribers.remove(subscriber)
                logger.debug("Unsubscribed from %s", subscriber.channel)

    def subscriber_count(self, channel: str) -> int:
        with self._lock:
            return len(self._subscribers.get(channel, []))

    def publish(self, channel: str, payload: dict[str, Any]) -> int:
        """Fan ``payload`` out to the channel's subscribers; returns how many."""
        if channel not in self._subscribers:
            raise ValueError(f"Unknown channel: {channel}")
        with self._lock:
            subscribers = list(self._subscribers[channel])

        for subscriber in subscribers:
            message = copy.deepcopy(payload)
            if subscriber.loop is None:
                self._deliver(subscriber, message)
            elif subscriber.loop.is_closed():
                logger.debug("Dropping %s message for closed loop", channel)
            else:
                subscriber.loop.call_soon_threadsafe(self._deliver, subscriber, message)
        logger.debug("Published %s to %d subscribers", channel, len(subscribers))
        return len(subscribers)

    @staticmethod
    def _deliver(subscriber: _Subscriber, message: dict[str, Any]) -> None:
        try:
            subscriber.on_data(message)
        except Exception as e:
            logger.exception("Subscriber of %s failed", subscriber.channel)
            if subscriber.on_error is not None:
                subscriber.on_error(e)
