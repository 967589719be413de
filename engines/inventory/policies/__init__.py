"""
POS Inventory Engine - Policies
===============================
"""

from __future__ import annotations

from typing import Optional

from core.commands.base import Command
from core.commands.rejection import ReasonCode, RejectionReason
from core.ledger_store.records import IngredientRecord


def ingredient_must_exist_policy(
    command: Command, ingredient: Optional[IngredientRecord]
) -> Optional[RejectionReason]:
    if ingredient is not None:
        return None
    return RejectionReason(
        code=ReasonCode.INGREDIENT_NOT_FOUND,
        message=f"Ingredient '{command.payload.get('ingredient_id')}' not found.",
        policy_name="ingredient_must_exist_policy",
    )


def ingredient_unreferenced_policy(
    command: Command, ingredient: IngredientRecord, is_referenced: bool
) -> Optional[RejectionReason]:
    """Recipe lines and ledger rows pin an ingredient; deactivate instead."""
    if not is_referenced:
        return None
    return RejectionReason(
        code=ReasonCode.INGREDIENT_REFERENCED,
        message=(
            f"Ingredient '{ingredient.name}' has recipe lines or stock "
            f"movements. Deactivate it instead of deleting."
        ),
        policy_name="ingredient_unreferenced_policy",
    )


def pack_size_known_policy(
    command: Command, ingredient: IngredientRecord
) -> Optional[RejectionReason]:
    if command.payload.get("pack_size") is not None:
        return None
    if ingredient.base_per_purchase is not None:
        return None
    return RejectionReason(
        code="PACK_SIZE_UNKNOWN",
        message=(
            f"Ingredient '{ingredient.name}' has no base_per_purchase; "
            f"give pack_size explicitly."
        ),
        policy_name="pack_size_known_policy",
    )
