"""
POS Orders Engine - Event Types and Payload Builders
====================================================
Published after the order transaction commits. Cash and inventory
react to these; the orders engine never writes their ledgers itself.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional

from core.commands.base import Command
from core.ledger_store.records import OrderItemRecord, OrderRecord


# ══════════════════════════════════════════════════════════════
# EVENT TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

ORDERS_ORDER_CREATED_V1 = "orders.order.created.v1"
ORDERS_ORDER_ADVANCED_V1 = "orders.order.advanced.v1"
ORDERS_ORDER_DISCOUNT_APPLIED_V1 = "orders.order.discount_applied.v1"
ORDERS_ORDER_SETTLED_V1 = "orders.order.settled.v1"
ORDERS_ORDER_UNSETTLED_V1 = "orders.order.unsettled.v1"
ORDERS_ORDER_DELETED_V1 = "orders.order.deleted.v1"

ORDERS_EVENT_TYPES = (
    ORDERS_ORDER_CREATED_V1,
    ORDERS_ORDER_ADVANCED_V1,
    ORDERS_ORDER_DISCOUNT_APPLIED_V1,
    ORDERS_ORDER_SETTLED_V1,
    ORDERS_ORDER_UNSETTLED_V1,
    ORDERS_ORDER_DELETED_V1,
)


# ══════════════════════════════════════════════════════════════
# COMMAND → EVENT MAPPING
# ══════════════════════════════════════════════════════════════

COMMAND_TO_EVENT_TYPE = {
    "orders.order.create.request": ORDERS_ORDER_CREATED_V1,
    "orders.order.advance.request": ORDERS_ORDER_ADVANCED_V1,
    "orders.order.apply_discount.request": ORDERS_ORDER_DISCOUNT_APPLIED_V1,
    "orders.order.settle.request": ORDERS_ORDER_SETTLED_V1,
    "orders.order.unsettle.request": ORDERS_ORDER_UNSETTLED_V1,
    "orders.order.delete.request": ORDERS_ORDER_DELETED_V1,
}


def resolve_orders_event_type(command_type: str) -> str | None:
    return COMMAND_TO_EVENT_TYPE.get(command_type)


# ══════════════════════════════════════════════════════════════
# PAYLOAD BUILDERS
# ══════════════════════════════════════════════════════════════

def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _base_payload(command: Command, order: OrderRecord) -> dict:
    return {
        "actor_id": command.actor_id,
        "actor_type": command.actor_type,
        "command_id": str(command.command_id),
        "order_id": order.id,
        "code": order.code,
    }


def build_order_created_payload(
    command: Command, order: OrderRecord, items: Iterable[OrderItemRecord]
) -> dict:
    payload = _base_payload(command, order)
    payload.update({
        "opened_at": _iso(order.opened_at),
        "subtotal": str(order.subtotal),
        "total": str(order.total),
        "items": [
            {
                "product_id": item.product_id,
                "quantity": item.quantity,
                "unit_price": str(item.unit_price),
            }
            for item in items
        ],
    })
    return payload


def build_order_advanced_payload(
    command: Command, before: OrderRecord, after: OrderRecord
) -> dict:
    payload = _base_payload(command, after)
    payload.update({
        "from_status": before.queue_status,
        "to_status": after.queue_status,
        "started_at": _iso(after.started_at),
        "done_at": _iso(after.done_at),
    })
    return payload


def build_discount_applied_payload(
    command: Command, order: OrderRecord, percent: Decimal
) -> dict:
    payload = _base_payload(command, order)
    payload.update({
        "percent": str(percent),
        "subtotal": str(order.subtotal),
        "discount_amount": str(order.discount_amount),
        "total": str(order.total),
    })
    return payload


def build_order_settled_payload(
    command: Command, order: OrderRecord, amount: Decimal, tendered: Decimal
) -> dict:
    """amount is what the ledger took; tendered minus amount is the change."""
    payload = _base_payload(command, order)
    payload.update({
        "method": order.paid_method,
        "amount": str(amount),
        "tendered": str(tendered),
        "change": str(tendered - amount),
        "total": str(order.total),
        "paid_at": _iso(order.paid_at),
    })
    return payload


def build_order_unsettled_payload(
    command: Command, order: OrderRecord, method: str, amount: Decimal
) -> dict:
    """amount is the positive value that was reversed."""
    payload = _base_payload(command, order)
    payload.update({
        "method": method,
        "amount": str(amount),
    })
    return payload


def build_order_deleted_payload(command: Command, order: OrderRecord) -> dict:
    payload = _base_payload(command, order)
    payload.update({
        "queue_status": order.queue_status,
        "payment_status": order.payment_status,
    })
    return payload
