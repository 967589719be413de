"""Cross-engine reactions: cash linkage and recipe consumption policy."""

from decimal import Decimal

import pytest

from core.config.rules import ConsumptionPolicy, PosSettings
from core.ledger_store.records import CashTxnType, QueueStatus


def _wired(store, clock, **overrides):
    from core.bootstrap.wiring import build_pos_system

    return build_pos_system(store=store, clock=clock, settings=PosSettings(**overrides))


def _menu(system):
    latte = system.catalog.save_product("LAT", "Latte", "50")
    beans = system.inventory.register_ingredient("Beans")
    system.recipes.set_recipe(latte.id, [(beans.id, 18)])
    return latte, beans


class TestCashLinkage:
    def test_cash_settlement_posts_sale_cash(self, system, latte):
        shift = system.cash.open_shift(1000)
        order = system.orders.create_order([(latte.id, 2)])
        system.orders.settle(order.id, "cash")
        system.orders.settle(order.id, "cash")

        movements = system.cash.movements(shift.id)
        assert [(m.txn_type, m.amount, m.reference) for m in movements] == [
            (CashTxnType.SALE_CASH, Decimal("100.00"), f"order:{order.id}"),
        ]
        assert system.cash.expected_cash(shift.id) == Decimal("1100.00")

    def test_non_cash_settlement_ignored(self, system, latte):
        shift = system.cash.open_shift(0)
        order = system.orders.create_order([(latte.id, 1)])
        system.orders.settle(order.id, "promptpay")
        assert system.cash.movements(shift.id) == []

    def test_unsettle_posts_refund(self, system, latte):
        shift = system.cash.open_shift(0)
        order = system.orders.create_order([(latte.id, 1)])
        system.orders.settle(order.id, "cash")
        system.orders.unsettle(order.id)

        assert [m.txn_type for m in system.cash.movements(shift.id)] == [
            CashTxnType.SALE_CASH, CashTxnType.REFUND_CASH,
        ]
        assert system.cash.expected_cash(shift.id) == Decimal("0.00")

    def test_overpaid_cash_posts_only_the_total(self, system, latte):
        shift = system.cash.open_shift(1000)
        order = system.orders.create_order([(latte.id, 1)])
        system.orders.settle(order.id, "cash", amount="100")

        assert system.cash.expected_cash(shift.id) == Decimal("1050.00")
        summary = system.reporting.sales_summary()
        assert summary.by_method == {"cash": Decimal("50.00")}
        assert summary.sales == Decimal("50.00")

    def test_unsettle_skips_refund_when_sale_never_reached_drawer(
        self, system, latte, caplog
    ):
        order = system.orders.create_order([(latte.id, 1)])
        system.orders.settle(order.id, "cash")
        shift = system.cash.open_shift(1000)
        with caplog.at_level("WARNING", logger="pos.cash"):
            system.orders.unsettle(order.id)

        assert system.cash.movements(shift.id) == []
        assert system.cash.expected_cash(shift.id) == Decimal("1000.00")
        assert "never reached a drawer" in caplog.text

    def test_refund_follows_sale_across_shifts(self, system, latte):
        first = system.cash.open_shift(0)
        order = system.orders.create_order([(latte.id, 1)])
        system.orders.settle(order.id, "cash")
        system.cash.close_shift(first.id, 50)

        second = system.cash.open_shift(0)
        system.orders.unsettle(order.id)
        assert [(m.txn_type, m.amount) for m in system.cash.movements(second.id)] == [
            (CashTxnType.REFUND_CASH, Decimal("-50.00")),
        ]

    def test_no_open_shift_logs_and_keeps_settlement(self, system, latte, caplog):
        order = system.orders.create_order([(latte.id, 1)])
        with caplog.at_level("WARNING", logger="pos.cash"):
            settled = system.orders.settle(order.id, "cash")

        assert settled.is_paid
        assert "No open shift" in caplog.text

    def test_cash_movement_carries_correlation(self, system, latte):
        seen = []
        system.registry.register_subscriber(
            "cash.movement.recorded.v1", seen.append, subscriber_engine="reporting",
        )
        system.cash.open_shift(0)
        order = system.orders.create_order([(latte.id, 1)])
        system.orders.settle(order.id, "cash")

        assert len(seen) == 1
        assert seen[0].actor_type == "SYSTEM"
        assert seen[0].actor_id == "system:cash.subscription"
        assert seen[0].causation_id is not None

    def test_linkage_can_be_disabled(self, store, clock):
        system = _wired(store, clock, link_cash_sales=False)
        latte = system.catalog.save_product("LAT", "Latte", "50")
        shift = system.cash.open_shift(0)
        order = system.orders.create_order([(latte.id, 1)])
        system.orders.settle(order.id, "cash")
        assert system.cash.movements(shift.id) == []


class TestConsumptionPolicy:
    def test_manual_posts_nothing(self, store, clock):
        system = _wired(store, clock)
        latte, beans = _menu(system)
        order = system.orders.create_order([(latte.id, 1)])
        system.orders.settle(order.id, "card")
        assert system.inventory.on_hand(beans.id) == Decimal("0.000")

    def test_on_settle(self, store, clock):
        system = _wired(store, clock, consumption_policy=ConsumptionPolicy.ON_SETTLE)
        latte, beans = _menu(system)
        order = system.orders.create_order([(latte.id, 2)])
        system.orders.settle(order.id, "card")
        system.orders.unsettle(order.id)
        system.orders.settle(order.id, "card")

        assert system.inventory.on_hand(beans.id) == Decimal("-36.000")

    def test_on_done(self, store, clock):
        system = _wired(store, clock, consumption_policy=ConsumptionPolicy.ON_DONE)
        latte, beans = _menu(system)
        order = system.orders.create_order([(latte.id, 1)])
        system.orders.advance(order.id, QueueStatus.PREPARING)
        assert system.inventory.on_hand(beans.id) == Decimal("0.000")

        system.orders.advance(order.id, QueueStatus.DONE)
        assert system.inventory.on_hand(beans.id) == Decimal("-18.000")

    def test_failing_subscriber_does_not_roll_back(self, system, latte):
        def explode(event):
            raise RuntimeError("boom")

        system.registry.register_subscriber(
            "orders.order.created.v1", explode, subscriber_engine="reporting",
        )
        order = system.orders.create_order([(latte.id, 1)])
        assert system.orders.get_order(order.id) == order

    @pytest.mark.parametrize("policy, event_types", [
        (ConsumptionPolicy.MANUAL, set()),
        (ConsumptionPolicy.ON_SETTLE, {"orders.order.settled.v1"}),
        (ConsumptionPolicy.ON_DONE, {"orders.order.advanced.v1"}),
    ])
    def test_registered_subscriptions(self, store, clock, policy, event_types):
        system = _wired(store, clock, consumption_policy=policy, link_cash_sales=False)
        assert set(system.registry.event_types()) == event_types
