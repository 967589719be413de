"""
POS Catalog Engine - Request Commands
=====================================
Typed product maintenance requests that convert into canonical
Command objects.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from core.commands.base import Command
from core.errors import ValidationError
from core.primitives.amounts import money


# ══════════════════════════════════════════════════════════════
# COMMAND TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

CATALOG_PRODUCT_SAVE_REQUEST = "catalog.product.save.request"
CATALOG_PRODUCT_SET_ACTIVE_REQUEST = "catalog.product.set_active.request"
CATALOG_PRODUCT_DELETE_REQUEST = "catalog.product.delete.request"

CATALOG_COMMAND_TYPES = frozenset({
    CATALOG_PRODUCT_SAVE_REQUEST,
    CATALOG_PRODUCT_SET_ACTIVE_REQUEST,
    CATALOG_PRODUCT_DELETE_REQUEST,
})


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
        source_engine="catalog",
        causation_id=causation_id,
    )


# ══════════════════════════════════════════════════════════════
# REQUEST COMMANDS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SaveProductRequest:
    """Create or update a product, keyed on sku."""
    sku: str
    name: str
    price: Decimal
    category: str = ""
    is_active: bool = True

    def __post_init__(self):
        if not isinstance(self.sku, str) or not self.sku.strip():
            raise ValidationError("sku must be non-empty.")
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValidationError("name must be non-empty.")
        price = money(self.price, "price")
        if price < 0:
            raise ValidationError("price must be >= 0.")
        object.__setattr__(self, "sku", self.sku.strip())
        object.__setattr__(self, "name", self.name.strip())
        object.__setattr__(self, "price", price)
        object.__setattr__(self, "category", (self.category or "").strip())
        if not isinstance(self.is_active, bool):
            raise ValidationError("is_active must be bool.")

    def to_command(self, **kwargs) -> Command:
        return _command(
            CATALOG_PRODUCT_SAVE_REQUEST,
            {
                "sku": self.sku,
                "name": self.name,
                "price": self.price,
                "category": self.category,
                "is_active": self.is_active,
            },
            **kwargs,
        )


@dataclass(frozen=True)
class SetProductActiveRequest:
    """Soft-delete (or restore) a product."""
    product_id: str
    active: bool

    def __post_init__(self):
        if not self.product_id:
            raise ValidationError("product_id must be non-empty.")
        if not isinstance(self.active, bool):
            raise ValidationError("active must be bool.")

    def to_command(self, **kwargs) -> Command:
        return _command(
            CATALOG_PRODUCT_SET_ACTIVE_REQUEST,
            {"product_id": self.product_id, "active": self.active},
            **kwargs,
        )


@dataclass(frozen=True)
class DeleteProductRequest:
    """Hard delete; only allowed for products nothing references."""
    product_id: str

    def __post_init__(self):
        if not self.product_id:
            raise ValidationError("product_id must be non-empty.")

    def to_command(self, **kwargs) -> Command:
        return _command(
            CATALOG_PRODUCT_DELETE_REQUEST,
            {"product_id": self.product_id},
            **kwargs,
        )
