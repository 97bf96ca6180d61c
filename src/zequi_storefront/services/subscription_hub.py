"""Live subscriptions over the document store.

Each topic (menu, categories, orders, about, contact, logo) has a snapshot
loader. A subscriber's callback fires once immediately with the current
snapshot and again after every write the services publish, until the
returned handle is disposed.

Subscriptions are independent: every callback owns its own state, and a
failing callback never prevents delivery to the others.
"""

import itertools
import logging
from collections.abc import Callable
from typing import Any

from zequi_storefront.observability.metrics import record_subscription_change

logger = logging.getLogger(__name__)

SnapshotLoader = Callable[[], Any]
SnapshotCallback = Callable[[Any], None]


class Subscription:
    """Disposal handle returned by ``SubscriptionHub.subscribe``."""

    def __init__(self, hub: "SubscriptionHub", topic: str, token: int) -> None:
        """Initialize the handle.

        Args:
            hub: Hub the subscription is registered with
            topic: Subscribed topic
            token: Registration token within the topic
        """
        self.hub = hub
        self.topic = topic
        self.token = token
        self._active = True

    @property
    def active(self) -> bool:
        """True until ``unsubscribe`` is called."""
        return self._active

    def unsubscribe(self) -> None:
        """Stop deliveries. Calling it again is a no-op."""
        if not self._active:
            return
        self._active = False
        self.hub._remove(self.topic, self.token)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.unsubscribe()


class SubscriptionHub:
    """Registry of topics, their loaders and their live callbacks."""

    def __init__(self) -> None:
        """Initialize an empty hub."""
        self._loaders: dict[str, SnapshotLoader] = {}
        self._subscribers: dict[str, dict[int, SnapshotCallback]] = {}
        self._tokens = itertools.count(1)

    def register_topic(self, topic: str, loader: SnapshotLoader) -> None:
        """Declare a topic and how to load its current snapshot.

        Args:
            topic: Topic name
            loader: Zero-argument callable returning the current snapshot
        """
        self._loaders[topic] = loader
        self._subscribers.setdefault(topic, {})

    @property
    def topics(self) -> list[str]:
        """Registered topic names."""
        return list(self._loaders)

    def subscriber_count(self, topic: str) -> int:
        """Number of live subscriptions on ``topic``."""
        return len(self._subscribers.get(topic, {}))

    def snapshot(self, topic: str) -> Any:
        """Load the current snapshot of ``topic``.

        Raises:
            KeyError: If the topic is not registered
        """
        if topic not in self._loaders:
            raise KeyError(f"Unknown topic: {topic}")
        return self._loaders[topic]()

    def subscribe(self, topic: str, callback: SnapshotCallback) -> Subscription:
        """Register ``callback`` and deliver the current snapshot to it.

        A callback that raises on the first snapshot is not kept.

        Args:
            topic: Topic to follow
            callback: Called with each snapshot

        Returns:
            Subscription: Handle whose ``unsubscribe`` stops deliveries

        Raises:
            KeyError: If the topic is not registered
        """
        current = self.snapshot(topic)

        token = next(self._tokens)
        self._subscribers[topic][token] = callback
        record_subscription_change(topic, 1)
        logger.debug(f"Subscription {token} opened on {topic}")

        try:
            callback(current)
        except Exception:
            self._remove(topic, token)
            raise
        return Subscription(self, topic, token)

    def publish(self, topic: str) -> int:
        """Reload ``topic`` and fan the snapshot out to every subscriber.

        Args:
            topic: Topic whose data changed

        Returns:
            int: Number of callbacks that received the snapshot
        """
        callbacks = list(self._subscribers.get(topic, {}).items())
        if not callbacks:
            return 0

        try:
            current = self.snapshot(topic)
        except Exception as e:
            logger.error(f"Failed to load snapshot for {topic}: {e}")
            return 0

        delivered = 0
        for token, callback in callbacks:
            try:
                callback(current)
                delivered += 1
            except Exception:
                logger.exception(f"Subscriber {token} on {topic} failed")

        return delivered

    def _remove(self, topic: str, token: int) -> None:
        if self._subscribers.get(topic, {}).pop(token, None) is not None:
            record_subscription_change(topic, -1)
            logger.debug(f"Subscription {token} closed on {topic}")
