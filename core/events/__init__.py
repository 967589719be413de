"""
POS Event Bus - Public API
==========================
The ledger store commits state; the bus then tells other engines.
"""

from core.events.dispatcher import DispatchReport, SubscriberFailure, dispatch
from core.events.envelope import DomainEvent, event_from_command
from core.events.errors import (
    DuplicateSubscriberError,
    InvalidEventTypeFormat,
    SelfSubscriptionError,
    SubscriptionError,
)
from core.events.registry import Subscription, SubscriberRegistry

__all__ = [
    "dispatch",
    "DispatchReport",
    "SubscriberFailure",
    "DomainEvent",
    "event_from_command",
    "Subscription",
    "SubscriberRegistry",
    "SubscriptionError",
    "InvalidEventTypeFormat",
    "DuplicateSubscriberError",
    "SelfSubscriptionError",
]
