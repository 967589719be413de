"""
POS Recipes Engine - Event Types and Payload Builders
=====================================================
"""

from __future__ import annotations

from typing import Iterable

from core.commands.base import Command
from core.ledger_store.records import RecipeLineRecord


RECIPES_RECIPE_REPLACED_V1 = "recipes.recipe.replaced.v1"

RECIPES_EVENT_TYPES = (
    RECIPES_RECIPE_REPLACED_V1,
)

COMMAND_TO_EVENT_TYPE = {
    "recipes.recipe.set.request": RECIPES_RECIPE_REPLACED_V1,
}


def resolve_recipes_event_type(command_type: str) -> str | None:
    return COMMAND_TO_EVENT_TYPE.get(command_type)


def build_recipe_replaced_payload(
    command: Command,
    previous_count: int,
    lines: Iterable[RecipeLineRecord],
) -> dict:
    return {
        "actor_id": command.actor_id,
        "actor_type": command.actor_type,
        "command_id": str(command.command_id),
        "product_id": command.payload["product_id"],
        "previous_line_count": previous_count,
        "lines": [
            {
                "ingredient_id": line.ingredient_id,
                "qty_per_unit": str(line.qty_per_unit),
                "position": line.position,
            }
            for line in lines
        ],
    }
