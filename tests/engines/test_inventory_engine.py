"""POS Inventory Engine tests: append-only ledger, packs, low stock."""

from decimal import Decimal

import pytest

from core.errors import NotFoundError, ReferentialError, ValidationError
from core.ledger_store.records import MovementKind


@pytest.fixture
def beans(system):
    return system.inventory.register_ingredient(
        "Coffee beans", unit="g", min_level=500,
        purchase_unit="bag", base_per_purchase=1000,
    )


@pytest.fixture
def milk(system):
    return system.inventory.register_ingredient("Milk", unit="ml", min_level=1000)


class TestMovementRules:
    def test_waste_is_forced_negative(self, system, beans):
        for given in ("30", "-30"):
            movement = system.inventory.record_movement(beans.id, MovementKind.WASTE, given)
            assert movement.quantity == Decimal("-30.000")

    @pytest.mark.parametrize("qty", ["0", "-5"])
    def test_in_requires_positive(self, system, beans, qty):
        with pytest.raises(ValidationError):
            system.inventory.record_movement(beans.id, MovementKind.IN, qty)

    def test_adjust_keeps_sign(self, system, beans):
        assert system.inventory.record_movement(beans.id, "adjust", "-12.5").quantity == Decimal("-12.500")
        assert system.inventory.record_movement(beans.id, "adjust", "7").quantity == Decimal("7.000")

    def test_adjust_zero_rejected(self, system, beans):
        with pytest.raises(ValidationError):
            system.inventory.record_movement(beans.id, "adjust", 0)

    def test_unknown_kind_rejected(self, system, beans):
        with pytest.raises(ValidationError, match="kind"):
            system.inventory.record_movement(beans.id, "theft", 1)

    def test_unknown_ingredient(self, system):
        with pytest.raises(NotFoundError):
            system.inventory.record_movement("missing", MovementKind.IN, 1)


class TestOnHand:
    def test_on_hand_is_sum_of_movements(self, system, beans):
        system.inventory.record_movement(beans.id, MovementKind.IN, 1000)
        system.inventory.record_movement(beans.id, MovementKind.WASTE, 18)
        system.inventory.record_movement(beans.id, "adjust", "-2.5")

        assert system.inventory.on_hand(beans.id) == Decimal("979.500")
        assert sum(m.quantity for m in system.inventory.movements(beans.id)) == Decimal("979.500")

    def test_selling_below_zero_is_allowed(self, system, beans):
        system.inventory.record_movement(beans.id, "adjust", "-40")
        assert system.inventory.on_hand(beans.id) == Decimal("-40.000")

    def test_audit_finds_no_drift(self, system, beans, milk):
        for qty in ("100", "-3", "0.25", "-0.125"):
            system.inventory.record_movement(beans.id, "adjust", qty)
            system.inventory.record_movement(milk.id, "adjust", qty)
        system.inventory.receive_packs(beans.id, 2)
        assert system.inventory.audit_on_hand() == []

    def test_audit_reports_drift(self, system, beans, store):
        system.inventory.record_movement(beans.id, MovementKind.IN, 10)
        store._tables.onhand[beans.id] = Decimal("99.000")

        drift = system.inventory.audit_on_hand()
        assert [(d.ingredient_id, d.maintained, d.replayed) for d in drift] == [
            (beans.id, Decimal("99.000"), Decimal("10.000")),
        ]


class TestPacks:
    def test_receive_packs_uses_pack_size(self, system, beans):
        movement = system.inventory.receive_packs(beans.id, 3)
        assert movement.kind == MovementKind.IN
        assert movement.quantity == Decimal("3000.000")
        assert system.inventory.on_hand_in_packs(beans.id) == Decimal("3.000")

    def test_explicit_pack_size(self, system, milk):
        system.inventory.receive_packs(milk.id, 2, pack_size=1000)
        assert system.inventory.on_hand(milk.id) == Decimal("2000.000")
        assert system.inventory.on_hand_in_packs(milk.id) is None

    def test_unknown_pack_size(self, system, milk):
        with pytest.raises(ValidationError):
            system.inventory.receive_packs(milk.id, 2)
        assert system.inventory.movements(milk.id) == []

    def test_pack_count_must_be_positive(self, system, beans):
        with pytest.raises(ValidationError):
            system.inventory.receive_packs(beans.id, 0)


class TestLowStock:
    def test_low_stock_at_or_below_min_level(self, system, beans, milk):
        system.inventory.record_movement(beans.id, MovementKind.IN, 500)
        system.inventory.record_movement(milk.id, MovementKind.IN, 1500)

        low = system.inventory.low_stock()
        assert [level.ingredient.id for level in low] == [beans.id]
        assert low[0].on_hand_in_packs == Decimal("0.500")

    def test_inactive_ingredients_are_not_reported(self, system, beans):
        system.inventory.deactivate_ingredient(beans.id)
        assert system.inventory.low_stock() == []

    def test_stock_levels_sorted_by_name(self, system, beans, milk):
        names = [level.ingredient.name for level in system.inventory.stock_levels()]
        assert names == ["Coffee beans", "Milk"]


class TestIngredientLifecycle:
    def test_register_normalizes(self, system):
        ingredient = system.inventory.register_ingredient("  Sugar ", unit="", min_level="0.5")
        assert ingredient.name == "Sugar"
        assert ingredient.unit == "g"
        assert ingredient.min_level == Decimal("0.500")
        assert ingredient.is_active

    def test_negative_min_level_rejected(self, system):
        with pytest.raises(ValidationError):
            system.inventory.register_ingredient("Sugar", min_level=-1)

    def test_deactivate_and_reactivate(self, system, beans):
        assert not system.inventory.deactivate_ingredient(beans.id).is_active
        assert system.inventory.set_ingredient_active(beans.id, True).is_active
        assert system.inventory.list_ingredients(active_only=True) == [
            system.inventory.get_ingredient(beans.id),
        ]

    def test_delete_unused(self, system, milk):
        system.inventory.delete_ingredient(milk.id)
        with pytest.raises(NotFoundError):
            system.inventory.get_ingredient(milk.id)

    def test_movements_block_delete(self, system, beans):
        system.inventory.record_movement(beans.id, MovementKind.IN, 1)
        with pytest.raises(ReferentialError):
            system.inventory.delete_ingredient(beans.id)
        assert system.inventory.get_ingredient(beans.id)

    def test_recipe_blocks_delete(self, system, beans, latte):
        system.recipes.set_recipe(latte.id, [(beans.id, 18)])
        with pytest.raises(ReferentialError):
            system.inventory.delete_ingredient(beans.id)


class TestPostConsumption:
    def test_posts_negative_adjustments_once(self, system, beans, milk, latte):
        system.recipes.set_recipe(latte.id, [(beans.id, 18), (milk.id, 150)])
        order = system.orders.create_order([(latte.id, 2)])

        posted = system.inventory.post_consumption(order.id)
        again = system.inventory.post_consumption(order.id)

        assert {(m.ingredient_id, m.quantity) for m in posted} == {
            (beans.id, Decimal("-36.000")), (milk.id, Decimal("-300.000")),
        }
        assert all(m.kind == MovementKind.ADJUST for m in posted)
        assert all(m.reference == f"order:{order.id}" for m in posted)
        assert again == []
        assert system.inventory.on_hand(beans.id) == Decimal("-36.000")

    def test_unknown_order_not_found(self, system):
        with pytest.raises(NotFoundError):
            system.inventory.post_consumption("missing-order")

    def test_order_without_recipe_posts_nothing(self, system, latte):
        order = system.orders.create_order([(latte.id, 1)])
        assert system.inventory.post_consumption(order.id) == []

    def test_requires_resolver(self, store, clock):
        from engines.inventory.services import InventoryService

        service = InventoryService(store=store, clock=clock)
        with pytest.raises(RuntimeError):
            service.post_consumption("o-1")
