"""
POS Cash Engine - Event Subscriptions
=====================================
Cash reacts to order payment events (read-only towards orders).

Subscriptions:
- orders.order.settled.v1   → sale_cash into the open shift
- orders.order.unsettled.v1 → refund_cash out of the open shift

Only method == "cash" touches the drawer. With no open shift the event
is logged and nothing is posted; the cashier records it by hand.
A refund never exceeds what the drawer actually took for the order.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

from core.commands.service import CommandContext
from core.events.envelope import DomainEvent
from core.events.registry import SubscriberRegistry
from core.ledger_store.records import CashTxnType, PaymentMethod
from core.primitives.amounts import ZERO_MONEY

logger = logging.getLogger("pos.cash")

SYSTEM_ACTOR_ID = "system:cash.subscription"

CASH_SUBSCRIPTIONS: Dict[str, str] = {
    "orders.order.settled.v1": "handle_order_settled",
    "orders.order.unsettled.v1": "handle_order_unsettled",
}


def order_reference(order_id) -> str:
    return f"order:{order_id}"


class CashSubscriptionHandler:
    """
    Handles events from the orders engine.
    Triggers cash commands for cash-method payments only.
    """

    def __init__(self, cash_service):
        self._cash_service = cash_service

    def _amount(self, event: DomainEvent) -> Optional[Decimal]:
        if event.get("method") != PaymentMethod.CASH:
            return None
        try:
            amount = Decimal(str(event.get("amount", "0")))
        except InvalidOperation:
            logger.warning(
                f"{event.event_type} for order {event.get('code')} "
                f"has unreadable amount {event.get('amount')!r}; skipped"
            )
            return None
        if amount == 0:
            return None
        return amount

    def _record(self, event: DomainEvent, txn_type: str, amount: Decimal) -> None:
        shift = self._cash_service.current_shift()
        if shift is None:
            logger.warning(
                f"No open shift: {txn_type} {amount} for order "
                f"{event.get('code')} not posted to the drawer"
            )
            return

        self._cash_service.record_movement(
            shift.id,
            txn_type,
            amount,
            note=f"order {event.get('code')}",
            reference=order_reference(event.get("order_id")),
            context=CommandContext.caused_by(event, SYSTEM_ACTOR_ID),
        )

    def handle_order_settled(self, event: DomainEvent) -> None:
        amount = self._amount(event)
        if amount is not None:
            self._record(event, CashTxnType.SALE_CASH, amount)

    def handle_order_unsettled(self, event: DomainEvent) -> None:
        amount = self._amount(event)
        if amount is None:
            return

        posted = self._cash_service.posted_for_reference(
            order_reference(event.get("order_id"))
        )
        if posted <= ZERO_MONEY:
            logger.warning(
                f"Order {event.get('code')} never reached a drawer; "
                f"refund of {amount} not posted"
            )
            return
        self._record(event, CashTxnType.REFUND_CASH, min(amount, posted))


def register_cash_subscriptions(
    registry: SubscriberRegistry, handler: CashSubscriptionHandler
) -> None:
    for event_type, method_name in CASH_SUBSCRIPTIONS.items():
        registry.register_subscriber(
            event_type, getattr(handler, method_name), subscriber_engine="cash",
        )
