"""
POS Inventory Engine - Event Subscriptions
==========================================
Inventory reacts to order events according to the consumption policy.

    MANUAL     → no subscription; the stock desk posts consumption
    ON_SETTLE  → orders.order.settled.v1
    ON_DONE    → orders.order.advanced.v1 with to_status = done

Both paths call post_consumption, which is idempotent per order, so a
ticket that is settled, unsettled and settled again is only deducted once.
"""

from __future__ import annotations

import logging
from typing import Dict

from core.commands.service import CommandContext
from core.config.rules import ConsumptionPolicy
from core.events.envelope import DomainEvent
from core.events.registry import SubscriberRegistry
from core.ledger_store.records import QueueStatus

logger = logging.getLogger("pos.inventory")

SYSTEM_ACTOR_ID = "system:inventory.subscription"

ORDERS_ORDER_SETTLED_V1 = "orders.order.settled.v1"
ORDERS_ORDER_ADVANCED_V1 = "orders.order.advanced.v1"

INVENTORY_SUBSCRIPTIONS: Dict[ConsumptionPolicy, Dict[str, str]] = {
    ConsumptionPolicy.MANUAL: {},
    ConsumptionPolicy.ON_SETTLE: {ORDERS_ORDER_SETTLED_V1: "handle_order_settled"},
    ConsumptionPolicy.ON_DONE: {ORDERS_ORDER_ADVANCED_V1: "handle_order_advanced"},
}


class InventorySubscriptionHandler:
    """
    Turns order events into PostConsumption commands.
    System actor is used; the event's correlation_id is carried over.
    """

    def __init__(self, inventory_service):
        self._inventory_service = inventory_service

    def _post(self, event: DomainEvent) -> None:
        order_id = event.get("order_id")
        if not order_id:
            logger.warning(f"{event.event_type} without order_id; skipped")
            return
        self._inventory_service.post_consumption(
            order_id,
            context=CommandContext.caused_by(event, SYSTEM_ACTOR_ID),
        )

    def handle_order_settled(self, event: DomainEvent) -> None:
        self._post(event)

    def handle_order_advanced(self, event: DomainEvent) -> None:
        if event.get("to_status") != QueueStatus.DONE:
            return
        self._post(event)


def register_inventory_subscriptions(
    registry: SubscriberRegistry,
    handler: InventorySubscriptionHandler,
    policy: ConsumptionPolicy,
) -> None:
    for event_type, method_name in INVENTORY_SUBSCRIPTIONS[policy].items():
        registry.register_subscriber(
            event_type, getattr(handler, method_name), subscriber_engine="inventory",
        )
    logger.info(f"Consumption policy: {policy.value}")
