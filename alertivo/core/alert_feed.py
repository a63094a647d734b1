"""In-process alert feed with filtered, cancellable subscriptions."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

AlertPredicate = Callable[[dict[str, Any]], bool]

_CLOSED = object()


def pending_for_responder(responder_id: str) -> AlertPredicate:
    """Matches alerts assigned to ``responder_id`` that are still pending."""

    def _match(alert: dict[str, Any]) -> bool:
        return alert.get("assigned_responder") == responder_id and alert.get("status") == "pending"

    return _match


class Subscription:
    """
    Async stream of alert upserts that match a predicate.

    Iterate with ``async for``; iteration ends after ``close()``. Delivery is
    at-least-once: the same alert may arrive more than once.
    """

    def __init__(self, feed: AlertFeed, predicate: AlertPredicate, loop: asyncio.AbstractEventLoop) -> None:
        self._feed = feed
        self._predicate = predicate
        self._loop = loop
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self.closed = False

    def offer(self, alert: dict[str, Any]) -> bool:
        """Queue ``alert`` if it matches. Safe to call from any thread."""
        if self.closed or self._loop.is_closed():
            return False
        try:
            matched = self._predicate(alert)
        except Exception:  # noqa: BLE001 - a bad filter must not break publishing
            logger.exception("Alert subscription predicate failed")
            return False
        if matched:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, alert)
        return matched

    async def get(self) -> dict[str, Any]:
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> dict[str, Any]:
        if self.closed and self._queue.empty():
            raise StopAsyncIteration
        return await self.get()

    def close(self) -> None:
        """Unsubscribe. Pending iteration finishes; later publishes are ignored."""
        if self.closed:
            return
        self.closed = True
        self._feed._remove(self)
        if not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._queue.put_nowait, _CLOSED)


class AlertFeed:
    """Fans alert upserts out to subscribers. One instance per application."""

    def __init__(self) -> None:
        self._subscriptions: set[Subscription] = set()
        self._lock = threading.Lock()

    def subscribe(self, predicate: AlertPredicate) -> Subscription:
        """Open a subscription bound to the running event loop."""
        subscription = Subscription(self, predicate, asyncio.get_running_loop())
        with self._lock:
            self._subscriptions.add(subscription)
        logger.info("Alert subscription opened (total=%s)", self.subscriber_count)
        return subscription

    def publish(self, alert: dict[str, Any]) -> int:
        """Offer ``alert`` to every subscriber; returns how many matched."""
        with self._lock:
            subscriptions = list(self._subscriptions)
        return sum(1 for subscription in subscriptions if subscription.offer(alert))

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscriptions.discard(subscription)
        logger.info("Alert subscription closed (total=%s)", self.subscriber_count)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)
