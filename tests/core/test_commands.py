"""
Tests for core.commands - Command contract, rejections and the
LedgerService lifecycle.
"""

import logging
import uuid
from datetime import datetime, timezone

import pytest

from core.commands import Command, RejectionReason, derive_source_engine
from core.errors import ConflictError, InvalidTransitionError

NOW = datetime(2026, 2, 21, 9, 0, 0, tzinfo=timezone.utc)


def _command(**overrides):
    fields = dict(
        command_id=uuid.uuid4(),
        command_type="orders.order.settle.request",
        actor_type="HUMAN",
        actor_id="cashier-1",
        payload={"order_id": "o-1"},
        issued_at=NOW,
        correlation_id=uuid.uuid4(),
        source_engine="orders",
    )
    fields.update(overrides)
    return Command(**fields)


class TestCommandContract:
    def test_valid_command(self):
        cmd = _command()
        assert cmd.causation_id is None
        assert derive_source_engine(cmd.command_type) == "orders"

    @pytest.mark.parametrize("overrides, message", [
        ({"command_type": "orders.order.settle"}, "must end with"),
        ({"command_type": "orders.settle.request"}, "minimum 4 segments"),
        ({"source_engine": "cash"}, "does not match"),
        ({"actor_type": "ROBOT"}, "not valid"),
        ({"actor_id": ""}, "actor_id"),
        ({"issued_at": datetime(2026, 2, 21)}, "timezone-aware"),
        ({"command_id": "not-a-uuid"}, "command_id"),
        ({"correlation_id": "x"}, "correlation_id"),
    ])
    def test_invalid_commands(self, overrides, message):
        with pytest.raises(ValueError, match=message):
            _command(**overrides)

    def test_payload_must_be_dict(self):
        with pytest.raises(TypeError):
            _command(payload=["x"])


class TestRejectionReason:
    def test_to_dict(self):
        reason = RejectionReason(code="ORDER_VOID", message="void", policy_name="p")
        assert reason.to_dict() == {"code": "ORDER_VOID", "message": "void", "policy_name": "p"}

    def test_requires_fields(self):
        with pytest.raises(ValueError):
            RejectionReason(code="", message="m", policy_name="p")

    def test_error_from_rejection_keeps_code(self):
        reason = RejectionReason(code="SHIFT_CLOSED", message="closed", policy_name="p")
        error = ConflictError.from_rejection(reason)
        assert error.code == "SHIFT_CLOSED"
        assert str(error) == "closed"


class TestLedgerService:
    def _service(self, store, clock):
        from core.commands.service import LedgerService

        class Probe(LedgerService):
            engine = "orders"

        return Probe(store=store, clock=clock)

    def test_command_uses_clock_and_context(self, store, clock):
        from core.commands.service import CommandContext
        from engines.orders.commands import UnsettleOrderRequest

        service = self._service(store, clock)
        correlation = uuid.uuid4()
        cmd = service._command(
            UnsettleOrderRequest(order_id="o-1"),
            CommandContext(actor_type="DEVICE", actor_id="queue-board", correlation_id=correlation),
        )
        assert cmd.issued_at == clock.now_utc()
        assert cmd.actor_type == "DEVICE"
        assert cmd.correlation_id == correlation

    def test_enforce_logs_and_raises(self, store, clock, caplog):
        service = self._service(store, clock)
        reason = RejectionReason(
            code="ILLEGAL_QUEUE_TRANSITION", message="nope", policy_name="queue_transition_policy",
        )
        with caplog.at_level(logging.WARNING, logger="pos.commands"):
            with pytest.raises(InvalidTransitionError) as exc:
                service._enforce(_command(), reason, InvalidTransitionError)
        assert exc.value.code == "ILLEGAL_QUEUE_TRANSITION"
        assert "queue_transition_policy" in caplog.text

    def test_enforce_passes_without_rejection(self, store, clock):
        self._service(store, clock)._enforce(_command(), None, ConflictError)

    def test_caused_by_links_event(self):
        from core.commands.service import CommandContext
        from core.events import DomainEvent

        event = DomainEvent(
            event_type="orders.order.settled.v1",
            payload={},
            occurred_at=NOW,
            correlation_id=uuid.uuid4(),
            causation_id=None,
            actor_type="HUMAN",
            actor_id="cashier-1",
            source_engine="orders",
        )
        ctx = CommandContext.caused_by(event, "system:test")
        assert ctx.actor_type == "SYSTEM"
        assert ctx.correlation_id == event.correlation_id
        assert ctx.causation_id == event.event_id
