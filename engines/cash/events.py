"""
POS Cash Engine - Event Types and Payload Builders
==================================================
One open shift at a time; each shift owns its cash movements.
"""

from __future__ import annotations

from decimal import Decimal

from core.commands.base import Command
from core.ledger_store.records import CashMovementRecord, ShiftRecord


# ══════════════════════════════════════════════════════════════
# EVENT TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

CASH_SHIFT_OPENED_V1 = "cash.shift.opened.v1"
CASH_SHIFT_CLOSED_V1 = "cash.shift.closed.v1"
CASH_MOVEMENT_RECORDED_V1 = "cash.movement.recorded.v1"

CASH_EVENT_TYPES = (
    CASH_SHIFT_OPENED_V1,
    CASH_SHIFT_CLOSED_V1,
    CASH_MOVEMENT_RECORDED_V1,
)


# ══════════════════════════════════════════════════════════════
# COMMAND → EVENT MAPPING
# ══════════════════════════════════════════════════════════════

COMMAND_TO_EVENT_TYPE = {
    "cash.shift.open.request": CASH_SHIFT_OPENED_V1,
    "cash.shift.close.request": CASH_SHIFT_CLOSED_V1,
    "cash.movement.record.request": CASH_MOVEMENT_RECORDED_V1,
}


def resolve_cash_event_type(command_type: str) -> str | None:
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


def build_shift_opened_payload(command: Command, shift: ShiftRecord) -> dict:
    payload = _base_payload(command)
    payload.update({
        "shift_id": shift.id,
        "opening_cash": str(shift.opening_cash),
        "opened_at": shift.opened_at.isoformat(),
        "opened_by": command.actor_id,
    })
    return payload


def build_shift_closed_payload(
    command: Command, shift: ShiftRecord, expected: Decimal
) -> dict:
    payload = _base_payload(command)
    payload.update({
        "shift_id": shift.id,
        "expected_cash": str(expected),
        "closing_cash": str(shift.closing_cash),
        "cash_diff": str(shift.cash_diff),
        "closed_at": shift.closed_at.isoformat(),
        "closed_by": command.actor_id,
    })
    return payload


def build_movement_recorded_payload(
    command: Command, movement: CashMovementRecord
) -> dict:
    payload = _base_payload(command)
    payload.update({
        "movement_id": movement.id,
        "shift_id": movement.shift_id,
        "txn_type": movement.txn_type,
        "amount": str(movement.amount),
        "reference": movement.reference,
    })
    return payload
