"""
POS Inventory Engine - Application Service
==========================================
Append-only ingredient ledger with derived on-hand.

on_hand(ingredient) is always Σ movement.quantity. The store either
folds the rows on read or keeps an aggregate updated in the same
transaction as the insert; audit_on_hand() replays the full log and
reports any ingredient where the two disagree.

Low stock is an alert, not a gate: nothing here stops selling below zero.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Mapping, Optional, Protocol

from core.commands.service import CommandContext, LedgerService
from core.errors import NotFoundError, ReferentialError, ValidationError
from core.ledger_store.records import (
    IngredientRecord,
    InventoryMovementRecord,
    MovementKind,
)
from core.primitives.amounts import round3
from engines.inventory.commands import (
    CONSUMPTION_REASON,
    DeleteIngredientRequest,
    PostConsumptionRequest,
    ReceivePacksRequest,
    RecordMovementRequest,
    RegisterIngredientRequest,
    SetIngredientActiveRequest,
)
from engines.inventory.events import (
    build_consumption_posted_payload,
    build_ingredient_activation_payload,
    build_ingredient_deleted_payload,
    build_ingredient_registered_payload,
    build_movement_recorded_payload,
    build_packs_received_payload,
    resolve_inventory_event_type,
)
from engines.inventory.policies import (
    ingredient_must_exist_policy,
    ingredient_unreferenced_policy,
    pack_size_known_policy,
)


# ══════════════════════════════════════════════════════════════
# COLLABORATORS
# ══════════════════════════════════════════════════════════════

class ConsumptionResolver(Protocol):
    def theoretical_consumption(self, order_id: str) -> Mapping[str, Decimal]:
        ...


# ══════════════════════════════════════════════════════════════
# READ MODELS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StockLevel:
    ingredient: IngredientRecord
    on_hand: Decimal
    on_hand_in_packs: Optional[Decimal]

    @property
    def is_low(self) -> bool:
        return self.on_hand <= self.ingredient.min_level


@dataclass(frozen=True)
class OnHandDiscrepancy:
    ingredient_id: str
    maintained: Decimal
    replayed: Decimal


def packs_for(on_hand: Decimal, ingredient: IngredientRecord) -> Optional[Decimal]:
    if not ingredient.base_per_purchase:
        return None
    return round3(on_hand / ingredient.base_per_purchase)


# ══════════════════════════════════════════════════════════════
# APPLICATION SERVICE
# ══════════════════════════════════════════════════════════════

class InventoryService(LedgerService):
    """Inventory Engine application service."""

    engine = "inventory"

    def __init__(self, *, recipes: Optional[ConsumptionResolver] = None, **kwargs):
        super().__init__(**kwargs)
        self._recipes = recipes

    def _ingredient(self, command) -> IngredientRecord:
        ingredient = self._store.get_ingredient(command.payload["ingredient_id"])
        self._enforce(
            command, ingredient_must_exist_policy(command, ingredient), NotFoundError,
        )
        return ingredient

    def _append(self, command, ingredient_id: str, kind: str, qty: Decimal,
                reason: str = "", reference: Optional[str] = None
                ) -> InventoryMovementRecord:
        movement = InventoryMovementRecord(
            id=str(uuid.uuid4()),
            ingredient_id=ingredient_id,
            quantity=qty,
            kind=kind,
            reason=reason,
            reference=reference,
            created_at=command.issued_at,
        )
        self._store.append_inventory_movement(movement)
        return movement

    def _emit(self, command, payload: dict) -> None:
        self._publish(
            command, resolve_inventory_event_type(command.command_type), payload,
        )

    # ══════════════════════════════════════════════════════════
    # INGREDIENTS
    # ══════════════════════════════════════════════════════════

    def register_ingredient(
        self,
        name: str,
        unit: str = "g",
        min_level=0,
        purchase_unit: Optional[str] = None,
        base_per_purchase=None,
        *,
        context: Optional[CommandContext] = None,
    ) -> IngredientRecord:
        request = RegisterIngredientRequest(
            name=name, unit=unit, min_level=min_level,
            purchase_unit=purchase_unit, base_per_purchase=base_per_purchase,
        )
        command = self._command(request, context)

        ingredient = IngredientRecord(
            id=str(uuid.uuid4()),
            name=request.name,
            unit=request.unit,
            min_level=request.min_level,
            purchase_unit=request.purchase_unit,
            base_per_purchase=request.base_per_purchase,
        )
        with self._store.atomic():
            self._store.save_ingredient(ingredient)
            self._emit(command, build_ingredient_registered_payload(command, ingredient))

        self._logger.info(f"Ingredient registered: {ingredient.name} ({ingredient.unit})")
        return ingredient

    def set_ingredient_active(
        self,
        ingredient_id: str,
        active: bool,
        *,
        context: Optional[CommandContext] = None,
    ) -> IngredientRecord:
        request = SetIngredientActiveRequest(ingredient_id=ingredient_id, active=active)
        command = self._command(request, context)

        with self._store.atomic():
            ingredient = self._ingredient(command)
            if ingredient.is_active == active:
                return ingredient
            ingredient = replace(ingredient, is_active=active)
            self._store.save_ingredient(ingredient)
            self._emit(command, build_ingredient_activation_payload(command, ingredient))

        self._logger.info(
            f"Ingredient {ingredient.name} {'activated' if active else 'deactivated'}"
        )
        return ingredient

    def deactivate_ingredient(
        self, ingredient_id: str, *, context: Optional[CommandContext] = None
    ) -> IngredientRecord:
        return self.set_ingredient_active(ingredient_id, False, context=context)

    def delete_ingredient(
        self, ingredient_id: str, *, context: Optional[CommandContext] = None
    ) -> None:
        request = DeleteIngredientRequest(ingredient_id=ingredient_id)
        command = self._command(request, context)

        with self._store.atomic():
            ingredient = self._ingredient(command)
            self._enforce(
                command,
                ingredient_unreferenced_policy(
                    command, ingredient,
                    self._store.ingredient_is_referenced(ingredient.id),
                ),
                ReferentialError,
            )
            self._store.delete_ingredient(ingredient.id)
            self._emit(command, build_ingredient_deleted_payload(command, ingredient))

        self._logger.info(f"Ingredient deleted: {ingredient.name}")

    # ══════════════════════════════════════════════════════════
    # LEDGER
    # ══════════════════════════════════════════════════════════

    def record_movement(
        self,
        ingredient_id: str,
        kind: str,
        qty,
        reason: str = "",
        reference: Optional[str] = None,
        *,
        context: Optional[CommandContext] = None,
    ) -> InventoryMovementRecord:
        request = RecordMovementRequest(
            ingredient_id=ingredient_id, kind=kind, quantity=qty,
            reason=reason, reference=reference,
        )
        command = self._command(request, context)

        with self._store.atomic():
            ingredient = self._ingredient(command)
            movement = self._append(
                command, ingredient.id, request.kind, request.quantity,
                request.reason, request.reference,
            )
            on_hand = self._store.on_hand(ingredient.id)
            self._emit(command, build_movement_recorded_payload(command, movement, on_hand))

        self._logger.info(
            f"Stock {movement.kind} {movement.quantity} {ingredient.unit} "
            f"of {ingredient.name} → on hand {on_hand}"
        )
        return movement

    def receive_packs(
        self,
        ingredient_id: str,
        pack_count,
        pack_size=None,
        *,
        context: Optional[CommandContext] = None,
    ) -> InventoryMovementRecord:
        """Post `in pack_count × pack_size` base units."""
        request = ReceivePacksRequest(
            ingredient_id=ingredient_id, pack_count=pack_count, pack_size=pack_size,
        )
        command = self._command(request, context)

        with self._store.atomic():
            ingredient = self._ingredient(command)
            self._enforce(
                command, pack_size_known_policy(command, ingredient), ValidationError,
            )
            pack_size = request.pack_size or ingredient.base_per_purchase
            received = round3(request.pack_count * pack_size)
            movement = self._append(
                command, ingredient.id, MovementKind.IN, received,
                reason=f"received {request.pack_count} x {pack_size}",
            )
            on_hand = self._store.on_hand(ingredient.id)
            self._emit(
                command,
                build_packs_received_payload(
                    command, movement, request.pack_count, pack_size, on_hand,
                ),
            )

        self._logger.info(
            f"Received {request.pack_count} pack(s) of {ingredient.name} "
            f"= {received} {ingredient.unit}"
        )
        return movement

    def post_consumption(
        self, order_id: str, *, context: Optional[CommandContext] = None
    ) -> list[InventoryMovementRecord]:
        """
        Deduct an order's theoretical consumption from stock.

        Idempotent per order: once movements carry the order's reference,
        later calls post nothing and return an empty list.
        """
        if self._recipes is None:
            raise RuntimeError("InventoryService has no recipe resolver wired.")

        request = PostConsumptionRequest(order_id=order_id)
        command = self._command(request, context)
        reference = command.payload["reference"]

        with self._store.atomic():
            # Row lock on the order serializes concurrent posts for it.
            if self._store.get_order(order_id, for_update=True) is None:
                raise NotFoundError(
                    f"Order '{order_id}' not found.", code="ORDER_NOT_FOUND",
                )
            if self._store.list_inventory_movements(reference=reference):
                self._logger.info(f"Consumption for {reference} already posted")
                return []

            usage = self._recipes.theoretical_consumption(order_id)
            movements = [
                self._append(
                    command, ingredient_id, MovementKind.ADJUST, -amount,
                    reason=CONSUMPTION_REASON, reference=reference,
                )
                for ingredient_id, amount in usage.items()
                if amount > 0
            ]
            if movements:
                self._emit(command, build_consumption_posted_payload(command, movements))

        self._logger.info(
            f"Consumption posted for {reference}: {len(movements)} movement(s)"
        )
        return movements

    # ══════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════

    def get_ingredient(self, ingredient_id: str) -> IngredientRecord:
        ingredient = self._store.get_ingredient(ingredient_id)
        if ingredient is None:
            raise NotFoundError(
                f"Ingredient '{ingredient_id}' not found.",
                code="INGREDIENT_NOT_FOUND",
            )
        return ingredient

    def list_ingredients(self, active_only: bool = False) -> list[IngredientRecord]:
        return [
            i for i in self._store.list_ingredients()
            if i.is_active or not active_only
        ]

    def movements(self, ingredient_id: str) -> list[InventoryMovementRecord]:
        self.get_ingredient(ingredient_id)
        return self._store.list_inventory_movements(ingredient_id=ingredient_id)

    def on_hand(self, ingredient_id: str) -> Decimal:
        self.get_ingredient(ingredient_id)
        return self._store.on_hand(ingredient_id)

    def on_hand_in_packs(self, ingredient_id: str) -> Optional[Decimal]:
        ingredient = self.get_ingredient(ingredient_id)
        return packs_for(self._store.on_hand(ingredient_id), ingredient)

    def stock_levels(self) -> list[StockLevel]:
        """Active ingredients sorted by name."""
        levels = []
        for ingredient in self._store.list_ingredients():
            if not ingredient.is_active:
                continue
            on_hand = self._store.on_hand(ingredient.id)
            levels.append(StockLevel(
                ingredient=ingredient,
                on_hand=on_hand,
                on_hand_in_packs=packs_for(on_hand, ingredient),
            ))
        return levels

    def low_stock(self) -> list[StockLevel]:
        return [level for level in self.stock_levels() if level.is_low]

    def audit_on_hand(self) -> list[OnHandDiscrepancy]:
        """Replay every ingredient's log against the maintained value."""
        drift = []
        with self._store.atomic():
            for ingredient in self._store.list_ingredients():
                maintained = self._store.on_hand(ingredient.id)
                replayed = self._store.replay_on_hand(ingredient.id)
                if maintained != replayed:
                    drift.append(OnHandDiscrepancy(ingredient.id, maintained, replayed))
        for item in drift:
            self._logger.error(
                f"On-hand drift for {item.ingredient_id}: "
                f"maintained {item.maintained}, replayed {item.replayed}"
            )
        return drift
