"""
POS Event Bus - Subscriber Registry
===================================
Which engine reacts to which committed event.

Event types are engine.domain.action.vN, e.g. 'orders.order.settled.v1'.
Subscriptions run in registration order; the wiring registers them once
at startup, so lookups hand out immutable snapshots.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from threading import Lock
from typing import Callable

from core.events.errors import (
    DuplicateSubscriberError,
    InvalidEventTypeFormat,
    SelfSubscriptionError,
)

logger = logging.getLogger("pos.events")

EVENT_TYPE_PATTERN = re.compile(r"^[a-z_]+\.[a-z_]+\.[a-z_]+\.v\d+$")


@dataclass(frozen=True)
class Subscription:
    event_type: str
    handler: Callable
    engine: str

    @property
    def name(self) -> str:
        return getattr(self.handler, "__qualname__", repr(self.handler))


def source_engine_of(event_type: str) -> str:
    return event_type.partition(".")[0]


class SubscriberRegistry:
    def __init__(self):
        self._by_type: dict[str, tuple[Subscription, ...]] = {}
        self._lock = Lock()

    def register_subscriber(
        self,
        event_type: str,
        handler: Callable,
        subscriber_engine: str,
        allow_self_subscription: bool = False,
    ) -> Subscription:
        if not isinstance(event_type, str) or not EVENT_TYPE_PATTERN.match(event_type):
            raise InvalidEventTypeFormat(event_type)
        if not callable(handler):
            raise TypeError(f"Handler for {event_type} must be callable.")
        if source_engine_of(event_type) == subscriber_engine and not allow_self_subscription:
            raise SelfSubscriptionError(subscriber_engine, event_type)

        subscription = Subscription(event_type, handler, subscriber_engine)
        with self._lock:
            current = self._by_type.get(event_type, ())
            if any(s.handler == handler for s in current):
                raise DuplicateSubscriberError(event_type, subscription.name)
            self._by_type[event_type] = current + (subscription,)

        logger.info(
            f"{subscriber_engine} listens to {event_type} via {subscription.name}"
        )
        return subscription

    def subscriptions_for(self, event_type: str) -> tuple[Subscription, ...]:
        with self._lock:
            return self._by_type.get(event_type, ())

    def event_types(self) -> frozenset[str]:
        """Event types with at least one subscriber."""
        with self._lock:
            return frozenset(self._by_type)
