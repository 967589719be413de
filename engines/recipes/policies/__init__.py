"""
POS Recipes Engine - Policies
=============================
"""

from __future__ import annotations

from typing import Mapping, Optional

from core.commands.base import Command
from core.commands.rejection import ReasonCode, RejectionReason
from core.ledger_store.records import IngredientRecord, ProductRecord


def recipe_product_must_exist_policy(
    command: Command, product: Optional[ProductRecord]
) -> Optional[RejectionReason]:
    if product is not None:
        return None
    return RejectionReason(
        code=ReasonCode.PRODUCT_NOT_FOUND,
        message=f"Product '{command.payload['product_id']}' not found.",
        policy_name="recipe_product_must_exist_policy",
    )


def recipe_ingredients_must_exist_policy(
    command: Command, ingredients: Mapping[str, Optional[IngredientRecord]]
) -> Optional[RejectionReason]:
    missing = [iid for iid, ingredient in ingredients.items() if ingredient is None]
    if not missing:
        return None
    return RejectionReason(
        code=ReasonCode.INGREDIENT_NOT_FOUND,
        message=f"Unknown ingredient(s): {', '.join(sorted(missing))}.",
        policy_name="recipe_ingredients_must_exist_policy",
    )
