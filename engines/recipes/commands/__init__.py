"""
POS Recipes Engine - Request Commands
=====================================
A recipe is saved as a whole: the submitted line set replaces every
existing line of the product. Lines with an empty ingredient or a
quantity <= 0 are dropped before anything is written.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from core.commands.base import Command
from core.errors import ValidationError
from core.primitives.amounts import quantity


# ══════════════════════════════════════════════════════════════
# COMMAND TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

RECIPES_RECIPE_SET_REQUEST = "recipes.recipe.set.request"

RECIPES_COMMAND_TYPES = frozenset({
    RECIPES_RECIPE_SET_REQUEST,
})


# ══════════════════════════════════════════════════════════════
# REQUEST COMMANDS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RecipeLineInput:
    ingredient_id: str
    qty_per_unit: Decimal

    @classmethod
    def coerce(cls, line) -> RecipeLineInput:
        """Accept a RecipeLineInput, an (ingredient_id, qty) pair or a dict."""
        if isinstance(line, cls):
            return line
        if isinstance(line, dict):
            return cls(line.get("ingredient_id") or "", line.get("qty_per_unit"))
        try:
            ingredient_id, qty = line
        except (TypeError, ValueError):
            raise ValidationError(f"Unrecognised recipe line: {line!r}.") from None
        return cls(ingredient_id or "", qty)

    @property
    def is_blank(self) -> bool:
        return not self.ingredient_id or self.qty_per_unit is None


@dataclass(frozen=True)
class SetRecipeRequest:
    product_id: str
    lines: Tuple[RecipeLineInput, ...] = ()

    def __post_init__(self):
        if not self.product_id or not isinstance(self.product_id, str):
            raise ValidationError("product_id must be non-empty.")

        kept = []
        seen = set()
        for raw in self.lines:
            line = RecipeLineInput.coerce(raw)
            if line.is_blank:
                continue
            qty = quantity(line.qty_per_unit, "qty_per_unit")
            if qty <= 0:
                continue
            if line.ingredient_id in seen:
                raise ValidationError(
                    f"Ingredient '{line.ingredient_id}' appears more than once."
                )
            seen.add(line.ingredient_id)
            kept.append(RecipeLineInput(line.ingredient_id, qty))
        object.__setattr__(self, "lines", tuple(kept))

    @classmethod
    def from_lines(cls, product_id: str, lines: Iterable) -> SetRecipeRequest:
        return cls(product_id=product_id, lines=tuple(lines or ()))

    def to_command(
        self,
        *,
        actor_type: str,
        actor_id: str,
        command_id: uuid.UUID,
        correlation_id: uuid.UUID,
        issued_at: datetime,
        causation_id: Optional[uuid.UUID] = None,
    ) -> Command:
        return Command(
            command_id=command_id,
            command_type=RECIPES_RECIPE_SET_REQUEST,
            actor_type=actor_type,
            actor_id=actor_id,
            payload={
                "product_id": self.product_id,
                "lines": [
                    {"ingredient_id": l.ingredient_id, "qty_per_unit": l.qty_per_unit}
                    for l in self.lines
                ],
            },
            issued_at=issued_at,
            correlation_id=correlation_id,
            source_engine="recipes",
            causation_id=causation_id,
        )
