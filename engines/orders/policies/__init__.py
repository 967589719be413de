"""
POS Orders Engine - Policies
============================
Judge an orders command against the order as currently stored.
Each policy returns a RejectionReason or None.
"""

from __future__ import annotations

from typing import Mapping, Optional

from core.commands.base import Command
from core.commands.rejection import ReasonCode, RejectionReason
from core.ledger_store.records import OrderRecord, ProductRecord, QueueStatus


# Legal forward steps. void is terminal.
NEXT_QUEUE_STATUS = {
    QueueStatus.QUEUED: QueueStatus.PREPARING,
    QueueStatus.PREPARING: QueueStatus.DONE,
    QueueStatus.DONE: QueueStatus.VOID,
}


def order_must_exist_policy(
    command: Command, order: Optional[OrderRecord]
) -> Optional[RejectionReason]:
    if order is not None:
        return None
    return RejectionReason(
        code=ReasonCode.ORDER_NOT_FOUND,
        message=f"Order '{command.payload.get('order_id')}' not found.",
        policy_name="order_must_exist_policy",
    )


def order_not_void_policy(
    command: Command, order: OrderRecord
) -> Optional[RejectionReason]:
    """Void tickets accept no discount or payment changes."""
    if not order.is_void:
        return None
    return RejectionReason(
        code=ReasonCode.ORDER_VOID,
        message=f"Order {order.code} is void.",
        policy_name="order_not_void_policy",
    )


def queue_transition_policy(
    command: Command, order: OrderRecord
) -> Optional[RejectionReason]:
    """Only the adjacent forward step is legal: queued → preparing → done → void."""
    requested = command.payload["next_status"]
    allowed = NEXT_QUEUE_STATUS.get(order.queue_status)
    if requested == allowed:
        return None
    return RejectionReason(
        code=ReasonCode.ILLEGAL_QUEUE_TRANSITION,
        message=(
            f"Order {order.code} cannot move from "
            f"'{order.queue_status}' to '{requested}'."
        ),
        policy_name="queue_transition_policy",
    )


def discount_requires_unpaid_policy(
    command: Command, order: OrderRecord
) -> Optional[RejectionReason]:
    """A paid total is pinned by the payment ledger."""
    if not order.is_paid:
        return None
    return RejectionReason(
        code=ReasonCode.ORDER_ALREADY_PAID,
        message=f"Order {order.code} is paid; unsettle it before discounting.",
        policy_name="discount_requires_unpaid_policy",
    )


def settle_method_policy(
    command: Command, order: OrderRecord
) -> Optional[RejectionReason]:
    """A paid order may only be re-settled with the method it was paid with."""
    method = command.payload["method"]
    if not order.is_paid or order.paid_method == method:
        return None
    return RejectionReason(
        code=ReasonCode.ORDER_PAID_WITH_OTHER_METHOD,
        message=(
            f"Order {order.code} is already paid by {order.paid_method}; "
            f"refusing to settle again by {method}."
        ),
        policy_name="settle_method_policy",
    )


def tendered_covers_total_policy(
    command: Command, order: OrderRecord
) -> Optional[RejectionReason]:
    """The tendered amount, when given, must cover the total."""
    tendered = command.payload.get("amount")
    if tendered is None or tendered >= order.total:
        return None
    return RejectionReason(
        code=ReasonCode.TENDERED_BELOW_TOTAL,
        message=(
            f"Order {order.code} totals {order.total}; "
            f"{tendered} tendered does not cover it."
        ),
        policy_name="tendered_covers_total_policy",
    )


def order_without_payments_policy(
    command: Command, order: OrderRecord, payment_count: int
) -> Optional[RejectionReason]:
    if payment_count == 0:
        return None
    return RejectionReason(
        code=ReasonCode.ORDER_HAS_PAYMENTS,
        message=(
            f"Order {order.code} has {payment_count} payment row(s) and "
            f"cannot be deleted."
        ),
        policy_name="order_without_payments_policy",
    )


def products_must_exist_policy(
    command: Command, products: Mapping[str, Optional[ProductRecord]]
) -> Optional[RejectionReason]:
    missing = sorted(pid for pid, product in products.items() if product is None)
    if not missing:
        return None
    return RejectionReason(
        code=ReasonCode.PRODUCT_NOT_FOUND,
        message=f"Unknown product(s): {', '.join(missing)}.",
        policy_name="products_must_exist_policy",
    )


def products_must_be_active_policy(
    command: Command, products: Mapping[str, ProductRecord]
) -> Optional[RejectionReason]:
    inactive = sorted(p.name for p in products.values() if not p.is_active)
    if not inactive:
        return None
    return RejectionReason(
        code=ReasonCode.PRODUCT_INACTIVE,
        message=f"Inactive product(s) cannot be ordered: {', '.join(inactive)}.",
        policy_name="products_must_be_active_policy",
    )
