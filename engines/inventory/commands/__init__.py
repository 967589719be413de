"""
POS Inventory Engine - Request Commands
=======================================
Typed stock requests that convert into canonical Command objects.

Quantities are in the ingredient's base unit (g, ml, pcs) unless a
request says packs. Sign rules are applied here, before anything
reaches the ledger:
    in      → must be > 0
    waste   → always stored negative
    adjust  → any non-zero signed value
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from core.commands.base import Command
from core.errors import ValidationError
from core.ledger_store.records import MovementKind
from core.primitives.amounts import ZERO, quantity


# ══════════════════════════════════════════════════════════════
# COMMAND TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

INVENTORY_INGREDIENT_REGISTER_REQUEST = "inventory.ingredient.register.request"
INVENTORY_INGREDIENT_SET_ACTIVE_REQUEST = "inventory.ingredient.set_active.request"
INVENTORY_INGREDIENT_DELETE_REQUEST = "inventory.ingredient.delete.request"
INVENTORY_MOVEMENT_RECORD_REQUEST = "inventory.movement.record.request"
INVENTORY_PACKS_RECEIVE_REQUEST = "inventory.packs.receive.request"
INVENTORY_CONSUMPTION_POST_REQUEST = "inventory.consumption.post.request"

INVENTORY_COMMAND_TYPES = frozenset({
    INVENTORY_INGREDIENT_REGISTER_REQUEST,
    INVENTORY_INGREDIENT_SET_ACTIVE_REQUEST,
    INVENTORY_INGREDIENT_DELETE_REQUEST,
    INVENTORY_MOVEMENT_RECORD_REQUEST,
    INVENTORY_PACKS_RECEIVE_REQUEST,
    INVENTORY_CONSUMPTION_POST_REQUEST,
})

CONSUMPTION_REASON = "sale"


def consumption_reference(order_id: str) -> str:
    return f"order:{order_id}"


def _command(
    command_type: str,
    payload: dict,
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
        command_type=command_type,
        actor_type=actor_type,
        actor_id=actor_id,
        payload=payload,
        issued_at=issued_at,
        correlation_id=correlation_id,
        source_engine="inventory",
        causation_id=causation_id,
    )


def _require(value, name: str) -> None:
    if not value or not isinstance(value, str):
        raise ValidationError(f"{name} must be non-empty.")


# ══════════════════════════════════════════════════════════════
# REQUEST COMMANDS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RegisterIngredientRequest:
    name: str
    unit: str = "g"
    min_level: Decimal = ZERO
    purchase_unit: Optional[str] = None
    base_per_purchase: Optional[Decimal] = None

    def __post_init__(self):
        _require(self.name, "name")
        object.__setattr__(self, "name", self.name.strip())
        object.__setattr__(self, "unit", (self.unit or "g").strip() or "g")
        min_level = quantity(self.min_level, "min_level")
        if min_level < 0:
            raise ValidationError("min_level must be >= 0.")
        object.__setattr__(self, "min_level", min_level)
        object.__setattr__(
            self, "purchase_unit", (self.purchase_unit or "").strip() or None,
        )
        if self.base_per_purchase is not None:
            pack = quantity(self.base_per_purchase, "base_per_purchase")
            if pack <= 0:
                raise ValidationError("base_per_purchase must be > 0.")
            object.__setattr__(self, "base_per_purchase", pack)

    def to_command(self, **kwargs) -> Command:
        return _command(
            INVENTORY_INGREDIENT_REGISTER_REQUEST,
            {
                "name": self.name,
                "unit": self.unit,
                "min_level": self.min_level,
                "purchase_unit": self.purchase_unit,
                "base_per_purchase": self.base_per_purchase,
            },
            **kwargs,
        )


@dataclass(frozen=True)
class SetIngredientActiveRequest:
    """Deactivation is always safe; it only hides the ingredient."""
    ingredient_id: str
    active: bool

    def __post_init__(self):
        _require(self.ingredient_id, "ingredient_id")
        if not isinstance(self.active, bool):
            raise ValidationError("active must be bool.")

    def to_command(self, **kwargs) -> Command:
        return _command(
            INVENTORY_INGREDIENT_SET_ACTIVE_REQUEST,
            {"ingredient_id": self.ingredient_id, "active": self.active},
            **kwargs,
        )


@dataclass(frozen=True)
class DeleteIngredientRequest:
    ingredient_id: str

    def __post_init__(self):
        _require(self.ingredient_id, "ingredient_id")

    def to_command(self, **kwargs) -> Command:
        return _command(
            INVENTORY_INGREDIENT_DELETE_REQUEST,
            {"ingredient_id": self.ingredient_id},
            **kwargs,
        )


@dataclass(frozen=True)
class RecordMovementRequest:
    """`quantity` holds the signed value that will be stored."""
    ingredient_id: str
    kind: str
    quantity: Decimal
    reason: str = ""
    reference: Optional[str] = None

    def __post_init__(self):
        _require(self.ingredient_id, "ingredient_id")
        if self.kind not in MovementKind.ALL:
            raise ValidationError(
                f"kind must be one of {MovementKind.ALL}, got '{self.kind}'."
            )
        qty = quantity(self.quantity)
        if qty == 0:
            raise ValidationError("quantity must be non-zero.")
        if self.kind == MovementKind.IN and qty < 0:
            raise ValidationError("quantity for 'in' must be > 0.")
        if self.kind == MovementKind.WASTE:
            qty = -abs(qty)
        object.__setattr__(self, "quantity", qty)
        object.__setattr__(self, "reason", (self.reason or "").strip())

    def to_command(self, **kwargs) -> Command:
        return _command(
            INVENTORY_MOVEMENT_RECORD_REQUEST,
            {
                "ingredient_id": self.ingredient_id,
                "kind": self.kind,
                "quantity": self.quantity,
                "reason": self.reason,
                "reference": self.reference,
            },
            **kwargs,
        )


@dataclass(frozen=True)
class ReceivePacksRequest:
    """pack_size=None means: use the ingredient's base_per_purchase."""
    ingredient_id: str
    pack_count: Decimal
    pack_size: Optional[Decimal] = None

    def __post_init__(self):
        _require(self.ingredient_id, "ingredient_id")
        count = quantity(self.pack_count, "pack_count")
        if count <= 0:
            raise ValidationError("pack_count must be > 0.")
        object.__setattr__(self, "pack_count", count)
        if self.pack_size is not None:
            size = quantity(self.pack_size, "pack_size")
            if size <= 0:
                raise ValidationError("pack_size must be > 0.")
            object.__setattr__(self, "pack_size", size)

    def to_command(self, **kwargs) -> Command:
        return _command(
            INVENTORY_PACKS_RECEIVE_REQUEST,
            {
                "ingredient_id": self.ingredient_id,
                "pack_count": self.pack_count,
                "pack_size": self.pack_size,
            },
            **kwargs,
        )


@dataclass(frozen=True)
class PostConsumptionRequest:
    order_id: str

    def __post_init__(self):
        _require(self.order_id, "order_id")

    def to_command(self, **kwargs) -> Command:
        return _command(
            INVENTORY_CONSUMPTION_POST_REQUEST,
            {
                "order_id": self.order_id,
                "reference": consumption_reference(self.order_id),
            },
            **kwargs,
        )
