"""
POS Event Bus - Errors
======================
Raised while wiring subscriptions, never while dispatching: a broken
subscriber is logged by the dispatcher instead.
"""


class SubscriptionError(Exception):
    """Base error for subscription wiring. Carries a machine-readable code."""

    code = "SUBSCRIPTION_ERROR"


class InvalidEventTypeFormat(SubscriptionError):
    """Event type is not engine.domain.action.vN."""

    code = "INVALID_EVENT_TYPE"

    def __init__(self, event_type):
        self.event_type = event_type
        super().__init__(
            f"Event type {event_type!r} is not of the form "
            f"engine.domain.action.vN (e.g. 'orders.order.settled.v1')."
        )


class DuplicateSubscriberError(SubscriptionError):
    code = "DUPLICATE_SUBSCRIBER"

    def __init__(self, event_type: str, name: str):
        self.event_type = event_type
        self.name = name
        super().__init__(f"{name} already listens to {event_type}.")


class SelfSubscriptionError(SubscriptionError):
    """An engine reacting to its own events would loop through the store."""

    code = "SELF_SUBSCRIPTION"

    def __init__(self, engine: str, event_type: str):
        self.engine = engine
        self.event_type = event_type
        super().__init__(
            f"Engine '{engine}' may not react to its own event {event_type} "
            f"unless allow_self_subscription is set."
        )
