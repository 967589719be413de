"""
POS Event Bus - Dispatcher
==========================
Hands a committed event to each subscription in turn. A subscriber that
raises is logged and reported; the rest still run, and the publishing
transaction, already committed, stays as it is.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from core.events.envelope import DomainEvent
from core.events.registry import SubscriberRegistry

logger = logging.getLogger("pos.events")


@dataclass(frozen=True)
class SubscriberFailure:
    subscriber: str
    engine: str
    error: Exception


@dataclass(frozen=True)
class DispatchReport:
    event: DomainEvent
    notified: int
    failures: tuple[SubscriberFailure, ...]

    @property
    def ok(self) -> bool:
        return not self.failures


def dispatch(event: DomainEvent, registry: SubscriberRegistry) -> DispatchReport:
    """Never raises on subscriber errors."""
    notified = 0
    failures = []
    for subscription in registry.subscriptions_for(event.event_type):
        try:
            subscription.handler(event)
        except Exception as exc:
            failures.append(SubscriberFailure(subscription.name, subscription.engine, exc))
            logger.error(
                f"{subscription.engine} failed on {event.event_type} "
                f"(event {event.event_id}, correlation {event.correlation_id}): {exc}",
                exc_info=True,
            )
        else:
            notified += 1

    if notified or failures:
        logger.debug(
            f"{event.event_type} {event.event_id}: "
            f"{notified} notified, {len(failures)} failed"
        )
    return DispatchReport(event=event, notified=notified, failures=tuple(failures))
