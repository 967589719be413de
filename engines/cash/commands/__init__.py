"""
POS Cash Engine - Request Commands
==================================
Typed shift requests that convert into canonical Command objects.

Cash movement signs are normalized here:
    sale_cash, cash_in                 → stored positive
    cash_out, refund_cash, expense     → stored negative
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from core.commands.base import Command
from core.errors import ValidationError
from core.ledger_store.records import CashTxnType
from core.primitives.amounts import money


# ══════════════════════════════════════════════════════════════
# COMMAND TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

CASH_SHIFT_OPEN_REQUEST = "cash.shift.open.request"
CASH_SHIFT_CLOSE_REQUEST = "cash.shift.close.request"
CASH_MOVEMENT_RECORD_REQUEST = "cash.movement.record.request"

CASH_COMMAND_TYPES = frozenset({
    CASH_SHIFT_OPEN_REQUEST,
    CASH_SHIFT_CLOSE_REQUEST,
    CASH_MOVEMENT_RECORD_REQUEST,
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
        source_engine="cash",
        causation_id=causation_id,
    )


def signed_amount(txn_type: str, amount: Decimal) -> Decimal:
    if txn_type in CashTxnType.OUTFLOWS:
        return -abs(amount)
    return abs(amount)


# ══════════════════════════════════════════════════════════════
# REQUEST COMMANDS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OpenShiftRequest:
    opening_cash: Decimal
    note: str = ""

    def __post_init__(self):
        opening = money(self.opening_cash, "opening_cash")
        if opening < 0:
            raise ValidationError("opening_cash must be >= 0.")
        object.__setattr__(self, "opening_cash", opening)
        object.__setattr__(self, "note", (self.note or "").strip())

    def to_command(self, **kwargs) -> Command:
        return _command(
            CASH_SHIFT_OPEN_REQUEST,
            {"opening_cash": self.opening_cash, "note": self.note},
            **kwargs,
        )


@dataclass(frozen=True)
class RecordCashMovementRequest:
    """`amount` holds the signed value that will be stored."""
    shift_id: str
    txn_type: str
    amount: Decimal
    note: str = ""
    reference: Optional[str] = None

    def __post_init__(self):
        if not self.shift_id:
            raise ValidationError("shift_id must be non-empty.")
        if self.txn_type not in CashTxnType.ALL:
            raise ValidationError(
                f"txn_type must be one of {CashTxnType.ALL}, got '{self.txn_type}'."
            )
        amount = money(self.amount)
        if amount == 0:
            raise ValidationError("amount must be non-zero.")
        object.__setattr__(self, "amount", signed_amount(self.txn_type, amount))
        object.__setattr__(self, "note", (self.note or "").strip())

    def to_command(self, **kwargs) -> Command:
        return _command(
            CASH_MOVEMENT_RECORD_REQUEST,
            {
                "shift_id": self.shift_id,
                "txn_type": self.txn_type,
                "amount": self.amount,
                "note": self.note,
                "reference": self.reference,
            },
            **kwargs,
        )


@dataclass(frozen=True)
class CloseShiftRequest:
    shift_id: str
    counted_cash: Decimal
    note: Optional[str] = None

    def __post_init__(self):
        if not self.shift_id:
            raise ValidationError("shift_id must be non-empty.")
        counted = money(self.counted_cash, "counted_cash")
        if counted < 0:
            raise ValidationError("counted_cash must be >= 0.")
        object.__setattr__(self, "counted_cash", counted)

    def to_command(self, **kwargs) -> Command:
        return _command(
            CASH_SHIFT_CLOSE_REQUEST,
            {
                "shift_id": self.shift_id,
                "counted_cash": self.counted_cash,
                "note": self.note,
            },
            **kwargs,
        )
