"""
POS Bootstrap - System Wiring
=============================
One place that builds every engine service over a shared store, clock,
registry and settings, and registers the cross-engine subscriptions the
settings ask for.

    system = build_pos_system()                       # in-memory store
    system = build_pos_system(store=DjangoLedgerStore(), settings=...)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from core.config.rules import PosSettings
from core.events.registry import SubscriberRegistry
from core.ledger_store.memory import InMemoryLedgerStore
from core.time.clock import Clock, get_default_clock
from engines.cash.services import CashService
from engines.cash.subscriptions import CashSubscriptionHandler, register_cash_subscriptions
from engines.catalog.services import CatalogService
from engines.inventory.services import InventoryService
from engines.inventory.subscriptions import (
    InventorySubscriptionHandler,
    register_inventory_subscriptions,
)
from engines.orders.services import OrderService
from engines.recipes.services import RecipeService
from engines.reporting.services import ReportingService

logger = logging.getLogger("pos.bootstrap")


@dataclass(frozen=True)
class PosSystem:
    store: object
    clock: Clock
    settings: PosSettings
    registry: SubscriberRegistry
    catalog: CatalogService
    orders: OrderService
    recipes: RecipeService
    inventory: InventoryService
    cash: CashService
    reporting: ReportingService


def build_pos_system(
    store=None,
    settings: Optional[PosSettings] = None,
    clock: Optional[Clock] = None,
    registry: Optional[SubscriberRegistry] = None,
) -> PosSystem:
    store = store if store is not None else InMemoryLedgerStore()
    settings = settings or PosSettings()
    clock = clock or get_default_clock()
    registry = registry if registry is not None else SubscriberRegistry()

    shared = dict(store=store, clock=clock, registry=registry, settings=settings)
    recipes = RecipeService(**shared)
    inventory = InventoryService(recipes=recipes, **shared)
    cash = CashService(**shared)

    register_inventory_subscriptions(
        registry, InventorySubscriptionHandler(inventory), settings.consumption_policy,
    )
    if settings.link_cash_sales:
        register_cash_subscriptions(registry, CashSubscriptionHandler(cash))

    system = PosSystem(
        store=store,
        clock=clock,
        settings=settings,
        registry=registry,
        catalog=CatalogService(**shared),
        orders=OrderService(**shared),
        recipes=recipes,
        inventory=inventory,
        cash=cash,
        reporting=ReportingService(**shared),
    )
    logger.info(
        f"POS system wired on {type(store).__name__}: "
        f"consumption={settings.consumption_policy.value}, "
        f"cash_link={'on' if settings.link_cash_sales else 'off'}"
    )
    return system


def build_django_pos_system(clock: Optional[Clock] = None) -> PosSystem:
    """Wire against the ORM store using settings.POS."""
    from django.conf import settings as django_settings

    from core.ledger_store.repository import DjangoLedgerStore

    return build_pos_system(
        store=DjangoLedgerStore(),
        settings=PosSettings.from_mapping(getattr(django_settings, "POS", None)),
        clock=clock,
    )
