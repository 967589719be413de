"""
POS Catalog Engine - Event Types and Payload Builders
=====================================================
"""

from __future__ import annotations

from core.commands.base import Command
from core.ledger_store.records import ProductRecord


# ══════════════════════════════════════════════════════════════
# EVENT TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

CATALOG_PRODUCT_SAVED_V1 = "catalog.product.saved.v1"
CATALOG_PRODUCT_ACTIVATION_CHANGED_V1 = "catalog.product.activation_changed.v1"
CATALOG_PRODUCT_DELETED_V1 = "catalog.product.deleted.v1"

CATALOG_EVENT_TYPES = (
    CATALOG_PRODUCT_SAVED_V1,
    CATALOG_PRODUCT_ACTIVATION_CHANGED_V1,
    CATALOG_PRODUCT_DELETED_V1,
)


# ══════════════════════════════════════════════════════════════
# COMMAND → EVENT MAPPING
# ══════════════════════════════════════════════════════════════

COMMAND_TO_EVENT_TYPE = {
    "catalog.product.save.request": CATALOG_PRODUCT_SAVED_V1,
    "catalog.product.set_active.request": CATALOG_PRODUCT_ACTIVATION_CHANGED_V1,
    "catalog.product.delete.request": CATALOG_PRODUCT_DELETED_V1,
}


def resolve_catalog_event_type(command_type: str) -> str | None:
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


def build_product_saved_payload(
    command: Command, product: ProductRecord, created: bool
) -> dict:
    payload = _base_payload(command)
    payload.update({
        "product_id": product.id,
        "sku": product.sku,
        "name": product.name,
        "price": str(product.price),
        "category": product.category,
        "is_active": product.is_active,
        "created": created,
    })
    return payload


def build_product_activation_payload(
    command: Command, product: ProductRecord
) -> dict:
    payload = _base_payload(command)
    payload.update({
        "product_id": product.id,
        "is_active": product.is_active,
    })
    return payload


def build_product_deleted_payload(
    command: Command, product: ProductRecord
) -> dict:
    payload = _base_payload(command)
    payload.update({
        "product_id": product.id,
        "sku": product.sku,
    })
    return payload
