"""
In-process publish/subscribe for a shared controller connection.

Topics:
- ``channel-0`` .. ``channel-15``: handler receives the channel state (bool)
- ``connected`` / ``disconnected``: handler receives no arguments

Several consumers may subscribe to the same topic; each consumer is
expected to unsubscribe when it goes away. Within one topic handlers are
called in subscription order, and events are delivered in publish order.

Example:
    >>> bus = ChannelEventBus()
    >>> subscription = bus.subscribe(channel_topic(3), print)
    >>> bus.publish(channel_topic(3), True)
    True
    1
    >>> subscription.unsubscribe()
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Final

from hlksw16.protocol.constants import ProtocolConstants

logger = logging.getLogger(__name__)

TOPIC_CONNECTED: Final[str] = "connected"
TOPIC_DISCONNECTED: Final[str] = "disconnected"

LIFECYCLE_TOPICS: Final[tuple[str, ...]] = (TOPIC_CONNECTED, TOPIC_DISCONNECTED)


def channel_topic(channel: int) -> str:
    """
    Get the topic name for a channel.

    Raises:
        ValueError: If channel is out of range.
    """
    if isinstance(channel, bool) or not isinstance(channel, int):
        raise ValueError(f"Channel must be an integer, got {channel!r}")
    if not 0 <= channel < ProtocolConstants.CHANNEL_COUNT:
        raise ValueError(
            f"Channel must be 0-{ProtocolConstants.CHANNEL_COUNT - 1}, got {channel}"
        )
    return f"channel-{channel}"


CHANNEL_TOPICS: Final[tuple[str, ...]] = tuple(
    channel_topic(channel) for channel in range(ProtocolConstants.CHANNEL_COUNT)
)

ALL_TOPICS: Final[frozenset[str]] = frozenset(CHANNEL_TOPICS + LIFECYCLE_TOPICS)

Handler = Callable[..., Any]


class Subscription:
    """
    Handle returned by subscribe().

    Unsubscribing is idempotent. The handle also works as a context manager
    that unsubscribes on exit.
    """

    def __init__(self, bus: ChannelEventBus, topic: str, handler: Handler) -> None:
        self._bus = bus
        self.topic = topic
        self.handler = handler
        self._active = True

    @property
    def active(self) -> bool:
        """Whether the handler is still registered."""
        return self._active

    def unsubscribe(self) -> None:
        """Remove the handler from the bus."""
        if not self._active:
            return
        self._active = False
        self._bus._remove(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.unsubscribe()

    def __repr__(self) -> str:
        status = "active" if self._active else "inactive"
        return f"Subscription({self.topic!r}, {status})"


class ChannelEventBus:
    """
    Topic-keyed event fan-out.

    The bus keeps an explicit count of live subscriptions so that the owning
    connection can tell when nobody is listening any more.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[Subscription]] = {
            topic: [] for topic in sorted(ALL_TOPICS)
        }

    def subscribe(self, topic: str, handler: Handler) -> Subscription:
        """
        Register a handler for a topic.

        Args:
            topic: One of the channel or lifecycle topics.
            handler: Callable invoked for every event on the topic.

        Returns:
            Subscription handle used to unsubscribe.

        Raises:
            ValueError: If the topic is unknown.
            TypeError: If handler is not callable.
        """
        if topic not in self._subscriptions:
            raise ValueError(f"Unknown topic: {topic!r}")
        if not callable(handler):
            raise TypeError(f"Handler must be callable, got {handler!r}")

        subscription = Subscription(self, topic, handler)
        self._subscriptions[topic].append(subscription)
        logger.debug("Subscribed to %s (%d on topic)", topic, len(self._subscriptions[topic]))
        return subscription

    def publish(self, topic: str, *args: Any) -> int:
        """
        Deliver an event to every handler on a topic.

        A failing handler is logged and does not prevent delivery to the
        remaining handlers.

        Args:
            topic: Topic to publish on.
            *args: Event payload passed to each handler.

        Returns:
            Number of handlers called.

        Raises:
            ValueError: If the topic is unknown.
        """
        if topic not in self._subscriptions:
            raise ValueError(f"Unknown topic: {topic!r}")

        delivered = 0
        for subscription in tuple(self._subscriptions[topic]):
            if not subscription.active:
                continue
            try:
                subscription.handler(*args)
            except Exception:
                logger.exception("Handler for %s raised", topic)
            delivered += 1
        return delivered

    def subscriber_count(self, topic: str | None = None) -> int:
        """
        Count live subscriptions.

        Args:
            topic: Topic to count, or None for all topics.
        """
        if topic is not None:
            if topic not in self._subscriptions:
                raise ValueError(f"Unknown topic: {topic!r}")
            return len(self._subscriptions[topic])
        return sum(len(subscriptions) for subscriptions in self._subscriptions.values())

    def clear(self) -> None:
        """Drop every subscription."""
        for subscriptions in self._subscriptions.values():
            for subscription in subscriptions:
                subscription._active = False
            subscriptions.clear()

    def _remove(self, subscription: Subscription) -> None:
        subscriptions = self._subscriptions[subscription.topic]
        if subscription in subscriptions:
            subscriptions.remove(subscription)
            logger.debug(
                "Unsubscribed from %s (%d on topic)", subscription.topic, len(subscriptions)
            )

    def __repr__(self) -> str:
        return f"ChannelEventBus(subscribers={self.subscriber_count()})"
