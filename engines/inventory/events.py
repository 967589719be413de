"""
POS Inventory Engine - Event Types and Payload Builders
=======================================================
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from core.commands.base import Command
from core.ledger_store.records import IngredientRecord, InventoryMovementRecord


# ══════════════════════════════════════════════════════════════
# EVENT TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

INVENTORY_INGREDIENT_REGISTERED_V1 = "inventory.ingredient.registered.v1"
INVENTORY_INGREDIENT_ACTIVATION_CHANGED_V1 = "inventory.ingredient.activation_changed.v1"
INVENTORY_INGREDIENT_DELETED_V1 = "inventory.ingredient.deleted.v1"
INVENTORY_MOVEMENT_RECORDED_V1 = "inventory.movement.recorded.v1"
INVENTORY_PACKS_RECEIVED_V1 = "inventory.packs.received.v1"
INVENTORY_CONSUMPTION_POSTED_V1 = "inventory.consumption.posted.v1"

INVENTORY_EVENT_TYPES = (
    INVENTORY_INGREDIENT_REGISTERED_V1,
    INVENTORY_INGREDIENT_ACTIVATION_CHANGED_V1,
    INVENTORY_INGREDIENT_DELETED_V1,
    INVENTORY_MOVEMENT_RECORDED_V1,
    INVENTORY_PACKS_RECEIVED_V1,
    INVENTORY_CONSUMPTION_POSTED_V1,
)


# ══════════════════════════════════════════════════════════════
# COMMAND → EVENT MAPPING
# ══════════════════════════════════════════════════════════════

COMMAND_TO_EVENT_TYPE = {
    "inventory.ingredient.register.request": INVENTORY_INGREDIENT_REGISTERED_V1,
    "inventory.ingredient.set_active.request": INVENTORY_INGREDIENT_ACTIVATION_CHANGED_V1,
    "inventory.ingredient.delete.request": INVENTORY_INGREDIENT_DELETED_V1,
    "inventory.movement.record.request": INVENTORY_MOVEMENT_RECORDED_V1,
    "inventory.packs.receive.request": INVENTORY_PACKS_RECEIVED_V1,
    "inventory.consumption.post.request": INVENTORY_CONSUMPTION_POSTED_V1,
}


def resolve_inventory_event_type(command_type: str) -> str | None:
    return COMMAND_TO_EVENT_TYPE.get(command_type)


# ══════════════════════════════════════════════════════════════
# PAYLOAD BUILDERS
# ══════════════════════════════════════════════════════════════

def _base_payload(command: Command) -> dict:
    return {
        "actor_id": command.actor_id,
        "actor_type": command.actor_type,
        "command_id": str(command.command_id),
    }


def _movement(movement: InventoryMovementRecord) -> dict:
    return {
        "movement_id": movement.id,
        "ingredient_id": movement.ingredient_id,
        "kind": movement.kind,
        "quantity": str(movement.quantity),
        "reason": movement.reason,
        "reference": movement.reference,
    }


def build_ingredient_registered_payload(
    command: Command, ingredient: IngredientRecord
) -> dict:
    payload = _base_payload(command)
    payload.update({
        "ingredient_id": ingredient.id,
        "name": ingredient.name,
        "unit": ingredient.unit,
        "min_level": str(ingredient.min_level),
        "purchase_unit": ingredient.purchase_unit,
        "base_per_purchase": (
            str(ingredient.base_per_purchase)
            if ingredient.base_per_purchase is not None else None
        ),
    })
    return payload


def build_ingredient_activation_payload(
    command: Command, ingredient: IngredientRecord
) -> dict:
    payload = _base_payload(command)
    payload.update({
        "ingredient_id": ingredient.id,
        "is_active": ingredient.is_active,
    })
    return payload


def build_ingredient_deleted_payload(
    command: Command, ingredient: IngredientRecord
) -> dict:
    payload = _base_payload(command)
    payload.update({"ingredient_id": ingredient.id, "name": ingredient.name})
    return payload


def build_movement_recorded_payload(
    command: Command, movement: InventoryMovementRecord, on_hand: Decimal
) -> dict:
    payload = _base_payload(command)
    payload.update(_movement(movement))
    payload["on_hand"] = str(on_hand)
    return payload


def build_packs_received_payload(
    command: Command,
    movement: InventoryMovementRecord,
    pack_count: Decimal,
    pack_size: Decimal,
    on_hand: Decimal,
) -> dict:
    payload = build_movement_recorded_payload(command, movement, on_hand)
    payload.update({
        "pack_count": str(pack_count),
        "pack_size": str(pack_size),
    })
    return payload


def build_consumption_posted_payload(
    command: Command, movements: Iterable[InventoryMovementRecord]
) -> dict:
    payload = _base_payload(command)
    payload.update({
        "order_id": command.payload["order_id"],
        "reference": command.payload["reference"],
        "movements": [_movement(m) for m in movements],
    })
    return payload
