"""
POS Recipes Engine - Application Service
========================================
Bill of materials: product → ordered (ingredient, qty per serving).

set_recipe replaces the whole line set in one transaction; if anything
fails the product keeps its previous recipe. theoretical_consumption is
a pure read: posting it to the stock ledger belongs to inventory.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from core.commands.service import CommandContext, LedgerService
from core.errors import NotFoundError
from core.ledger_store.records import OrderItemRecord, RecipeLineRecord
from core.primitives.amounts import round3
from engines.recipes.commands import SetRecipeRequest
from engines.recipes.events import (
    build_recipe_replaced_payload,
    resolve_recipes_event_type,
)
from engines.recipes.policies import (
    recipe_ingredients_must_exist_policy,
    recipe_product_must_exist_policy,
)


@dataclass(frozen=True)
class RecipeLineView:
    """Recipe line joined with its ingredient for display."""
    ingredient_id: str
    ingredient_name: str
    unit: str
    qty_per_unit: Decimal
    position: int


class RecipeService(LedgerService):
    """Recipes Engine application service."""

    engine = "recipes"

    def set_recipe(
        self,
        product_id: str,
        lines: Iterable = (),
        *,
        context: Optional[CommandContext] = None,
    ) -> list[RecipeLineView]:
        request = SetRecipeRequest.from_lines(product_id, lines)
        command = self._command(request, context)

        with self._store.atomic():
            product = self._store.get_product(product_id)
            self._enforce(
                command, recipe_product_must_exist_policy(command, product), NotFoundError,
            )
            ingredients = {
                line.ingredient_id: self._store.get_ingredient(line.ingredient_id)
                for line in request.lines
            }
            self._enforce(
                command,
                recipe_ingredients_must_exist_policy(command, ingredients),
                NotFoundError,
            )

            previous = self._store.list_recipe_lines(product_id)
            records = [
                RecipeLineRecord(
                    product_id=product_id,
                    ingredient_id=line.ingredient_id,
                    qty_per_unit=line.qty_per_unit,
                    position=position,
                )
                for position, line in enumerate(request.lines, start=1)
            ]
            self._store.replace_recipe(product_id, records)
            self._publish(
                command,
                resolve_recipes_event_type(command.command_type),
                build_recipe_replaced_payload(command, len(previous), records),
            )

        self._logger.info(
            f"Recipe of {product.name} replaced: "
            f"{len(previous)} → {len(records)} line(s)"
        )
        return self.get_recipe(product_id)

    def get_recipe(self, product_id: str) -> list[RecipeLineView]:
        if self._store.get_product(product_id) is None:
            raise NotFoundError(
                f"Product '{product_id}' not found.", code="PRODUCT_NOT_FOUND",
            )
        views = []
        for line in self._store.list_recipe_lines(product_id):
            ingredient = self._store.get_ingredient(line.ingredient_id)
            views.append(RecipeLineView(
                ingredient_id=line.ingredient_id,
                ingredient_name=ingredient.name if ingredient else "",
                unit=ingredient.unit if ingredient else "",
                qty_per_unit=line.qty_per_unit,
                position=line.position,
            ))
        return views

    def consumption_for_items(
        self, items: Iterable[OrderItemRecord]
    ) -> dict[str, Decimal]:
        """ingredient_id → Σ item.quantity × qty_per_unit, in first-use order."""
        usage: dict[str, Decimal] = {}
        recipes: dict[str, list[RecipeLineRecord]] = {}
        for item in items:
            if item.product_id not in recipes:
                recipes[item.product_id] = self._store.list_recipe_lines(item.product_id)
            for line in recipes[item.product_id]:
                usage[line.ingredient_id] = (
                    usage.get(line.ingredient_id, Decimal("0"))
                    + line.qty_per_unit * item.quantity
                )
        return {iid: round3(amount) for iid, amount in usage.items()}

    def theoretical_consumption(self, order_id: str) -> dict[str, Decimal]:
        if self._store.get_order(order_id) is None:
            raise NotFoundError(
                f"Order '{order_id}' not found.", code="ORDER_NOT_FOUND",
            )
        return self.consumption_for_items(self._store.list_order_items(order_id))
