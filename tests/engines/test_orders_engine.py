"""POS Orders Engine tests: ticket state machine, discount and settlement."""

import threading
from datetime import timedelta
from decimal import Decimal

import pytest

from core.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ReferentialError,
    ValidationError,
)
from core.ledger_store.memory import InMemoryLedgerStore
from core.ledger_store.records import PaymentStatus, QueueStatus


class TestOrderCommands:
    def test_create_request_to_command(self):
        import uuid
        from datetime import datetime, timezone

        from engines.orders.commands import CreateOrderRequest

        cmd = CreateOrderRequest.from_lines([("p-1", 2)], note=" no sugar ").to_command(
            actor_type="HUMAN",
            actor_id="cashier-1",
            command_id=uuid.uuid4(),
            correlation_id=uuid.uuid4(),
            issued_at=datetime(2026, 2, 21, tzinfo=timezone.utc),
        )
        assert cmd.command_type == "orders.order.create.request"
        assert cmd.source_engine == "orders"
        assert cmd.payload["lines"] == [{"product_id": "p-1", "quantity": 2}]
        assert cmd.payload["note"] == "no sugar"

    def test_empty_order_rejected(self):
        from engines.orders.commands import CreateOrderRequest

        with pytest.raises(ValidationError, match="at least one line"):
            CreateOrderRequest.from_lines([])

    @pytest.mark.parametrize("qty", [0, -1, 1.5, True])
    def test_non_positive_or_fractional_quantity_rejected(self, qty):
        from engines.orders.commands import OrderLine

        with pytest.raises(ValidationError):
            OrderLine.coerce(("p-1", qty))

    def test_line_accepts_dict(self):
        from engines.orders.commands import OrderLine

        line = OrderLine.coerce({"product_id": "p-1", "quantity": 3})
        assert line.quantity == 3

    def test_unknown_method_rejected(self):
        from engines.orders.commands import SettleOrderRequest

        with pytest.raises(ValidationError, match="method"):
            SettleOrderRequest(order_id="o-1", method="bitcoin")

    @pytest.mark.parametrize("given, expected", [
        (150, Decimal("100")),
        (-10, Decimal("0")),
        ("12.5", Decimal("12.5")),
    ])
    def test_discount_percent_clamped(self, given, expected):
        from engines.orders.commands import ApplyDiscountRequest

        assert ApplyDiscountRequest(order_id="o-1", percent=given).percent == expected


class TestCreateOrder:
    def test_latte_scenario(self, system, latte):
        order = system.orders.create_order([(latte.id, 2)])
        assert order.subtotal == Decimal("100.00")
        assert order.total == Decimal("100.00")
        assert order.discount_amount == Decimal("0.00")
        assert order.queue_status == QueueStatus.QUEUED
        assert order.payment_status == PaymentStatus.UNPAID

        order = system.orders.apply_discount_percent(order.id, 10)
        assert order.discount_amount == Decimal("10.00")
        assert order.total == Decimal("90.00")

        order = system.orders.settle(order.id, "cash")
        assert order.payment_status == PaymentStatus.PAID
        assert order.paid_method == "cash"
        assert order.paid_at == system.clock.now_utc()

    def test_price_is_snapshotted(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        system.catalog.save_product("LAT", "Latte", "65.00")

        items = system.orders.list_items(order.id)
        assert items[0].unit_price == Decimal("50.00")
        assert system.orders.get_order(order.id).total == Decimal("50.00")

    def test_codes_are_sequential_per_day(self, system, latte, clock):
        first = system.orders.create_order([(latte.id, 1)])
        second = system.orders.create_order([(latte.id, 1)])
        clock.advance(hours=24)
        next_day = system.orders.create_order([(latte.id, 1)])

        assert first.code == "260221-001"
        assert second.code == "260221-002"
        assert next_day.code == "260222-001"

    def test_items_keep_line_order(self, system, latte, mocha):
        order = system.orders.create_order([(mocha.id, 1), (latte.id, 3)])
        items = system.orders.list_items(order.id)
        assert [(i.position, i.product_id, i.quantity) for i in items] == [
            (1, mocha.id, 1), (2, latte.id, 3),
        ]
        assert order.subtotal == Decimal("205.00")

    def test_unknown_product(self, system, latte):
        with pytest.raises(NotFoundError):
            system.orders.create_order([(latte.id, 1), ("missing", 1)])
        assert system.reporting.list_orders() == []

    def test_inactive_product(self, system, latte):
        system.catalog.set_product_active(latte.id, False)
        with pytest.raises(ValidationError):
            system.orders.create_order([(latte.id, 1)])


class TestAdvance:
    def test_full_sequence_stamps_times(self, system, latte, clock):
        order = system.orders.create_order([(latte.id, 1)])
        clock.advance(minutes=2)
        order = system.orders.advance(order.id, QueueStatus.PREPARING)
        started = clock.now_utc()
        clock.advance(minutes=3)
        order = system.orders.advance(order.id, QueueStatus.DONE)
        order = system.orders.advance(order.id, QueueStatus.VOID)

        assert order.queue_status == QueueStatus.VOID
        assert order.started_at == started
        assert order.done_at == started + timedelta(minutes=3)

    def test_skip_fails(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        with pytest.raises(InvalidTransitionError):
            system.orders.advance(order.id, QueueStatus.DONE)
        assert system.orders.get_order(order.id).queue_status == QueueStatus.QUEUED

    def test_backward_fails(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        system.orders.advance(order.id, QueueStatus.PREPARING)
        system.orders.advance(order.id, QueueStatus.DONE)
        with pytest.raises(InvalidTransitionError):
            system.orders.advance(order.id, QueueStatus.PREPARING)

    def test_void_is_terminal(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        for status in (QueueStatus.PREPARING, QueueStatus.DONE, QueueStatus.VOID):
            system.orders.advance(order.id, status)
        with pytest.raises(InvalidTransitionError):
            system.orders.advance(order.id, QueueStatus.VOID)

    def test_version_bumps(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        assert order.version == 1
        assert system.orders.advance(order.id, QueueStatus.PREPARING).version == 2

    def test_unknown_order(self, system):
        with pytest.raises(NotFoundError):
            system.orders.advance("missing", QueueStatus.PREPARING)


class TestDiscount:
    def test_total_never_negative(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        order = system.orders.apply_discount_percent(order.id, 150)
        assert order.discount_amount == Decimal("50.00")
        assert order.total == Decimal("0.00")

    def test_rounds_half_up(self, system):
        product = system.catalog.save_product("ESP", "Espresso", "33.33")
        order = system.orders.create_order([(product.id, 1)])
        order = system.orders.apply_discount_percent(order.id, "15")
        assert order.discount_amount == Decimal("5.00")
        assert order.total == Decimal("28.33")

    def test_reapply_replaces_previous(self, system, latte):
        order = system.orders.create_order([(latte.id, 2)])
        system.orders.apply_discount_percent(order.id, 50)
        order = system.orders.apply_discount_percent(order.id, 0)
        assert order.total == order.subtotal

    def test_paid_order_rejects_discount(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        system.orders.settle(order.id, "card")
        with pytest.raises(InvalidTransitionError):
            system.orders.apply_discount_percent(order.id, 10)


class TestSettlement:
    def test_settle_records_one_payment(self, system, latte):
        order = system.orders.create_order([(latte.id, 2)])
        system.orders.settle(order.id, "transfer")

        payments = system.orders.list_payments(order.id)
        assert [(p.method, p.amount) for p in payments] == [("transfer", Decimal("100.00"))]

    def test_same_method_retry_is_noop(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        first = system.orders.settle(order.id, "cash")
        again = system.orders.settle(order.id, "cash")

        assert again == first
        assert len(system.orders.list_payments(order.id)) == 1

    def test_other_method_conflicts(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        system.orders.settle(order.id, "cash")
        with pytest.raises(ConflictError):
            system.orders.settle(order.id, "card")

        current = system.orders.get_order(order.id)
        assert current.paid_method == "cash"
        assert len(system.orders.list_payments(order.id)) == 1

    def test_tendered_below_total_rejected(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        with pytest.raises(ValidationError) as exc:
            system.orders.settle(order.id, "transfer", amount="1")

        assert exc.value.code == "TENDERED_BELOW_TOTAL"
        current = system.orders.get_order(order.id)
        assert current.payment_status == PaymentStatus.UNPAID
        assert system.orders.list_payments(order.id) == []

    def test_overpayment_records_total_and_reports_change(self, system, latte):
        seen = []
        system.registry.register_subscriber(
            "orders.order.settled.v1", seen.append, subscriber_engine="audit",
        )
        order = system.orders.create_order([(latte.id, 1)])
        system.orders.settle(order.id, "cash", amount="100")

        assert [p.amount for p in system.orders.list_payments(order.id)] == [
            Decimal("50.00")
        ]
        payload = seen[0].payload
        assert payload["amount"] == "50.00"
        assert payload["tendered"] == "100.00"
        assert payload["change"] == "50.00"

    def test_unsettle_reverses(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        system.orders.settle(order.id, "promptpay")
        order = system.orders.unsettle(order.id)

        assert order.payment_status == PaymentStatus.UNPAID
        assert order.paid_at is None
        assert order.paid_method is None
        amounts = [p.amount for p in system.orders.list_payments(order.id)]
        assert amounts == [Decimal("50.00"), Decimal("-50.00")]

    def test_unsettle_unpaid_is_noop(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        assert system.orders.unsettle(order.id) == order
        assert system.orders.list_payments(order.id) == []

    def test_settle_after_unsettle_with_new_method(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        system.orders.settle(order.id, "cash")
        system.orders.unsettle(order.id)
        order = system.orders.settle(order.id, "card")
        assert order.paid_method == "card"

    def test_paid_state_allowed_in_any_live_status(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        system.orders.settle(order.id, "cash")
        order = system.orders.advance(order.id, QueueStatus.PREPARING)
        assert order.is_paid

    def test_void_order_rejects_payment_changes(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        system.orders.settle(order.id, "cash")
        for status in (QueueStatus.PREPARING, QueueStatus.DONE, QueueStatus.VOID):
            system.orders.advance(order.id, status)
        with pytest.raises(InvalidTransitionError):
            system.orders.unsettle(order.id)


class TestDeleteOrder:
    def test_delete_unpaid(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        system.orders.delete_order(order.id)
        with pytest.raises(NotFoundError):
            system.orders.get_order(order.id)
        assert system.store.list_order_items(order.id) == []

    def test_payments_block_delete(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        system.orders.settle(order.id, "cash")
        with pytest.raises(ReferentialError):
            system.orders.delete_order(order.id)
        assert system.orders.get_order(order.id).is_paid


class TestOrderConcurrency:
    def test_stale_write_conflicts(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        moved = order.evolve(queue_status=QueueStatus.PREPARING)
        assert system.store.compare_and_set_order(moved, order.version)
        assert not system.store.compare_and_set_order(
            order.evolve(note="stale"), order.version,
        )

    def test_racing_terminals_advance_once(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        outcomes = []
        barrier = threading.Barrier(4)

        def terminal():
            barrier.wait()
            try:
                system.orders.advance(order.id, QueueStatus.PREPARING)
                outcomes.append("ok")
            except (InvalidTransitionError, ConflictError):
                outcomes.append("rejected")

        threads = [threading.Thread(target=terminal) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ["ok", "rejected", "rejected", "rejected"]
        assert system.orders.get_order(order.id).version == 2

    def test_racing_settles_record_one_payment(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        barrier = threading.Barrier(3)

        def terminal():
            barrier.wait()
            system.orders.settle(order.id, "cash")

        threads = [threading.Thread(target=terminal) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(system.orders.list_payments(order.id)) == 1


class StaleSequenceStore(InMemoryLedgerStore):
    """Hands out an already-taken sequence `stale_reads` times."""

    stale_reads = 0

    def next_order_sequence(self, code_prefix):
        if self.stale_reads:
            self.stale_reads -= 1
            return 1
        return super().next_order_sequence(code_prefix)


class TestOrderCodeAllocation:
    def _system(self, clock, stale_reads):
        from core.bootstrap.wiring import build_pos_system

        store = StaleSequenceStore()
        system = build_pos_system(store=store, clock=clock)
        latte = system.catalog.save_product("LAT", "Latte", "50")
        system.orders.create_order([(latte.id, 1)])
        store.stale_reads = stale_reads
        return system, latte

    def test_taken_code_is_retried(self, clock):
        system, latte = self._system(clock, stale_reads=1)
        order = system.orders.create_order([(latte.id, 1)])

        assert order.code == "260221-002"
        assert order.version == 1
        assert system.orders.get_order(order.id) == order

    def test_gives_up_after_repeated_collisions(self, clock):
        system, latte = self._system(clock, stale_reads=10)
        with pytest.raises(ConflictError) as exc:
            system.orders.create_order([(latte.id, 1)])
        assert exc.value.code == "DUPLICATE_ORDER_CODE"


class TestOrderEvents:
    def test_events_published_after_commit(self, system, latte):
        seen = []
        system.registry.register_subscriber(
            "orders.order.settled.v1", seen.append, subscriber_engine="reporting",
        )
        order = system.orders.create_order([(latte.id, 1)])
        system.orders.settle(order.id, "card")
        system.orders.settle(order.id, "card")

        assert len(seen) == 1
        event = seen[0]
        assert event.source_engine == "orders"
        assert event.payload["method"] == "card"
        assert event.payload["amount"] == "50.00"
        assert event.payload["code"] == order.code

    def test_rejected_command_publishes_nothing(self, system, latte):
        seen = []
        system.registry.register_subscriber(
            "orders.order.advanced.v1", seen.append, subscriber_engine="reporting",
        )
        order = system.orders.create_order([(latte.id, 1)])
        with pytest.raises(InvalidTransitionError):
            system.orders.advance(order.id, QueueStatus.DONE)
        assert seen == []
