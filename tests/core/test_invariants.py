"""
POS Invariant Tests
===================
Cross-cutting rules that must hold for the whole codebase, plus the
startup self-check that guards the Django ledger schema.
"""

import importlib

import pytest

from core.bootstrap.errors import SystemBootstrapError


# ══════════════════════════════════════════════════════════════
# INVARIANT 1: Records, commands and events are frozen
# ══════════════════════════════════════════════════════════════

FROZEN_MODELS = [
    "core.commands.base.Command",
    "core.commands.rejection.RejectionReason",
    "core.events.envelope.DomainEvent",
    "core.config.rules.PosSettings",
    "core.ledger_store.records.OrderRecord",
    "core.ledger_store.records.InventoryMovementRecord",
    "core.ledger_store.records.CashMovementRecord",
    "engines.orders.commands.CreateOrderRequest",
    "engines.inventory.commands.RecordMovementRequest",
    "engines.cash.commands.RecordCashMovementRequest",
]


@pytest.mark.parametrize("model_path", FROZEN_MODELS)
def test_models_are_frozen(model_path):
    module_path, class_name = model_path.rsplit(".", 1)
    cls = getattr(importlib.import_module(module_path), class_name)
    assert cls.__dataclass_params__.frozen, f"{model_path} is not frozen"


# ══════════════════════════════════════════════════════════════
# INVARIANT 2: Every command type maps to exactly one event type
# ══════════════════════════════════════════════════════════════

ENGINE_EVENT_MAPS = [
    ("engines.catalog.commands", "CATALOG_COMMAND_TYPES", "engines.catalog.events"),
    ("engines.orders.commands", "ORDERS_COMMAND_TYPES", "engines.orders.events"),
    ("engines.inventory.commands", "INVENTORY_COMMAND_TYPES", "engines.inventory.events"),
    ("engines.recipes.commands", "RECIPES_COMMAND_TYPES", "engines.recipes.events"),
    ("engines.cash.commands", "CASH_COMMAND_TYPES", "engines.cash.events"),
]


@pytest.mark.parametrize("commands_path, constant, events_path", ENGINE_EVENT_MAPS)
def test_command_types_have_events(commands_path, constant, events_path):
    command_types = getattr(importlib.import_module(commands_path), constant)
    mapping = importlib.import_module(events_path).COMMAND_TO_EVENT_TYPE
    assert set(mapping) == set(command_types)
    engine = commands_path.split(".")[1]
    for command_type, event_type in mapping.items():
        assert command_type.startswith(f"{engine}.")
        assert event_type.startswith(f"{engine}.")
        assert event_type.endswith(".v1")


# ══════════════════════════════════════════════════════════════
# INVARIANT 3: Startup self-check
# ══════════════════════════════════════════════════════════════

@pytest.mark.django_db(transaction=True)
class TestBootstrapChecks:
    def test_all_checks_pass_on_migrated_schema(self):
        from core.bootstrap.self_check import run_bootstrap_checks

        run_bootstrap_checks()

    def test_missing_table_refuses_start(self, monkeypatch):
        from django.db import connection

        from core.bootstrap.invariants import check_ledger_tables

        monkeypatch.setattr(connection.introspection, "table_names", lambda *a, **k: ["products"])
        with pytest.raises(SystemBootstrapError) as exc:
            check_ledger_tables()
        assert exc.value.invariant == "LEDGER_TABLES"

    def test_on_hand_replay_check(self):
        from core.bootstrap.invariants import check_on_hand_replay
        from core.bootstrap.wiring import build_pos_system
        from core.ledger_store.repository import DjangoLedgerStore

        system = build_pos_system(store=DjangoLedgerStore())
        beans = system.inventory.register_ingredient("Beans")
        system.inventory.record_movement(beans.id, "in", 100)
        check_on_hand_replay()

    def test_guard_check(self):
        from core.bootstrap.invariants import check_append_only_guards

        check_append_only_guards()
