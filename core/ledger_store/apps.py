"""
POS Core - Ledger Store App Configuration
=========================================
Relational home of the POS ledgers.

This app:
- Declares header tables (products, orders, ingredients, shifts)
- Declares append-only ledgers (payments, inventory, cash)
- Enforces single-open-shift and compare-and-set at the database

This app does NOT:
- Decide business rules (engines do)
- Dispatch events (core.events does)
"""

from django.apps import AppConfig


class LedgerStoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core.ledger_store"
    label = "ledger_store"
    verbose_name = "POS Ledger Store"
