"""Tests for core.events - envelope, registry and post-commit dispatch."""

import uuid
from datetime import datetime, timezone

import pytest

from core.events import (
    DomainEvent,
    DuplicateSubscriberError,
    InvalidEventTypeFormat,
    SelfSubscriptionError,
)
from core.events.dispatcher import dispatch
from core.events.registry import SubscriberRegistry

NOW = datetime(2026, 2, 21, 9, 0, 0, tzinfo=timezone.utc)


def _event(event_type="orders.order.created.v1", **overrides):
    fields = dict(
        event_type=event_type,
        payload={"order_id": "o-1"},
        occurred_at=NOW,
        correlation_id=uuid.uuid4(),
        causation_id=uuid.uuid4(),
        actor_type="HUMAN",
        actor_id="cashier-1",
        source_engine=event_type.split(".")[0],
    )
    fields.update(overrides)
    return DomainEvent(**fields)


class TestDomainEvent:
    def test_get_reads_payload(self):
        event = _event()
        assert event.get("order_id") == "o-1"
        assert event.get("missing", 0) == 0

    def test_namespace_must_match_engine(self):
        with pytest.raises(ValueError):
            _event(source_engine="cash")

    def test_naive_time_rejected(self):
        with pytest.raises(ValueError):
            _event(occurred_at=datetime(2026, 1, 1))

    def test_event_from_command(self):
        from core.commands import Command
        from core.events import event_from_command

        cmd = Command(
            command_id=uuid.uuid4(),
            command_type="cash.shift.open.request",
            actor_type="HUMAN",
            actor_id="cashier-1",
            payload={},
            issued_at=NOW,
            correlation_id=uuid.uuid4(),
            source_engine="cash",
        )
        event = event_from_command(cmd, "cash.shift.opened.v1", {"shift_id": "s-1"})
        assert event.causation_id == cmd.command_id
        assert event.correlation_id == cmd.correlation_id
        assert event.occurred_at == NOW


class TestSubscriberRegistry:
    def test_register_and_lookup(self):
        registry = SubscriberRegistry()
        handler = lambda event: None
        registry.register_subscriber("orders.order.settled.v1", handler, subscriber_engine="cash")

        (subscription,) = registry.subscriptions_for("orders.order.settled.v1")
        assert subscription.engine == "cash"
        assert subscription.handler is handler
        assert registry.subscriptions_for("orders.order.created.v1") == ()
        assert registry.event_types() == {"orders.order.settled.v1"}

    def test_duplicate_rejected(self):
        registry = SubscriberRegistry()
        handler = lambda event: None
        registry.register_subscriber("orders.order.settled.v1", handler, subscriber_engine="cash")
        with pytest.raises(DuplicateSubscriberError):
            registry.register_subscriber("orders.order.settled.v1", handler, subscriber_engine="cash")

    def test_self_subscription_blocked(self):
        registry = SubscriberRegistry()
        with pytest.raises(SelfSubscriptionError):
            registry.register_subscriber(
                "orders.order.settled.v1", lambda e: None, subscriber_engine="orders",
            )

    @pytest.mark.parametrize("event_type", [
        "orders", "orders.order.settled", "Orders.order.settled.v1", None,
    ])
    def test_bad_event_type(self, event_type):
        with pytest.raises(InvalidEventTypeFormat) as exc:
            SubscriberRegistry().register_subscriber(event_type, lambda e: None, "cash")
        assert exc.value.code == "INVALID_EVENT_TYPE"

    def test_self_subscription_can_be_allowed(self):
        registry = SubscriberRegistry()
        registry.register_subscriber(
            "orders.order.settled.v1", lambda e: None, "orders",
            allow_self_subscription=True,
        )
        assert len(registry.subscriptions_for("orders.order.settled.v1")) == 1


class TestDispatch:
    def test_failure_is_isolated(self, caplog):
        registry = SubscriberRegistry()
        received = []

        def broken(event):
            raise RuntimeError("subscriber down")

        registry.register_subscriber("orders.order.created.v1", broken, "inventory")
        registry.register_subscriber("orders.order.created.v1", received.append, "reporting")

        with caplog.at_level("ERROR", logger="pos.events"):
            report = dispatch(_event(), registry)

        assert report.notified == 1
        assert not report.ok
        (failure,) = report.failures
        assert failure.engine == "inventory"
        assert isinstance(failure.error, RuntimeError)
        assert len(received) == 1
        assert "subscriber down" in caplog.text

    def test_no_subscribers(self):
        report = dispatch(_event(), SubscriberRegistry())
        assert report.notified == 0
        assert report.ok
