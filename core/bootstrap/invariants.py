"""
POS Bootstrap - Invariant Checks
================================
Each function verifies one startup law and raises SystemBootstrapError
when it does not hold. Nothing here migrates, repairs or creates rows.
"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from django.db import connection

from core.bootstrap.errors import SystemBootstrapError

logger = logging.getLogger("pos.bootstrap")

LEDGER_TABLES = (
    "products",
    "orders",
    "order_items",
    "payments",
    "ingredients",
    "recipes",
    "inventory_movements",
    "shifts",
    "cash_movements",
)


# ══════════════════════════════════════════════════════════════
# CHECK 1: Ledger tables exist
# ══════════════════════════════════════════════════════════════

def check_ledger_tables():
    existing = set(connection.introspection.table_names())
    missing = [name for name in LEDGER_TABLES if name not in existing]
    if missing:
        raise SystemBootstrapError(
            invariant="LEDGER_TABLES",
            detail=f"Missing table(s) {missing}. Run migrations before starting.",
        )
    logger.info("✓ Ledger tables exist.")


# ══════════════════════════════════════════════════════════════
# CHECK 2: Append-only guards active
# ══════════════════════════════════════════════════════════════

def check_append_only_guards():
    """
    Loaded (non-adding) ledger rows must refuse save() and delete().
    Uses unsaved instances flagged as loaded; the database is not touched.
    """
    from core.ledger_store.models import CashMovement, InventoryMovement, Payment

    now = datetime.now(timezone.utc)
    samples = (
        Payment(entry_id=uuid.uuid4(), method="cash", amount=Decimal("0"), created_at=now),
        InventoryMovement(
            entry_id=uuid.uuid4(), quantity=Decimal("0"), kind="adjust", created_at=now,
        ),
        CashMovement(
            entry_id=uuid.uuid4(), amount=Decimal("0"), txn_type="cash_in", created_at=now,
        ),
    )
    for row in samples:
        row._state.adding = False
        for action in (row.save, row.delete):
            try:
                action()
            except PermissionError:
                continue
            raise SystemBootstrapError(
                invariant="APPEND_ONLY_GUARDS",
                detail=f"{type(row).__name__}.{action.__name__}() did not refuse a loaded row.",
            )
    logger.info("✓ Append-only guards active.")


# ══════════════════════════════════════════════════════════════
# CHECK 3: Single open shift
# ══════════════════════════════════════════════════════════════

def check_single_open_shift():
    from core.ledger_store.models import Shift

    open_count = Shift.objects.filter(closed_at__isnull=True).count()
    if open_count > 1:
        raise SystemBootstrapError(
            invariant="SINGLE_OPEN_SHIFT",
            detail=f"{open_count} shifts are open at once.",
        )
    logger.info("✓ At most one open shift.")


# ══════════════════════════════════════════════════════════════
# CHECK 4: On-hand agrees with the movement log
# ══════════════════════════════════════════════════════════════

def check_on_hand_replay():
    from core.ledger_store.repository import DjangoLedgerStore

    store = DjangoLedgerStore()
    drifted = [
        ingredient.id
        for ingredient in store.list_ingredients()
        if store.on_hand(ingredient.id) != store.replay_on_hand(ingredient.id)
    ]
    if drifted:
        raise SystemBootstrapError(
            invariant="ON_HAND_REPLAY",
            detail=f"On-hand disagrees with the movement log for {drifted}.",
        )
    logger.info("✓ On-hand matches movement replay.")
