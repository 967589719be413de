"""
POS Cash Engine - Policies
==========================
Engine-specific checks for shift operations.
"""

from __future__ import annotations

from typing import Optional

from core.commands.base import Command
from core.commands.rejection import ReasonCode, RejectionReason
from core.ledger_store.records import ShiftRecord


def no_open_shift_policy(
    command: Command, open_shift: Optional[ShiftRecord]
) -> Optional[RejectionReason]:
    """The store re-checks this inside the inserting transaction."""
    if open_shift is None:
        return None
    return RejectionReason(
        code=ReasonCode.SHIFT_ALREADY_OPEN,
        message=(
            f"Shift {open_shift.id} opened at {open_shift.opened_at:%Y-%m-%d %H:%M} "
            f"is still open. Close it first."
        ),
        policy_name="no_open_shift_policy",
    )


def shift_must_exist_policy(
    command: Command, shift: Optional[ShiftRecord]
) -> Optional[RejectionReason]:
    if shift is not None:
        return None
    return RejectionReason(
        code=ReasonCode.SHIFT_NOT_FOUND,
        message=f"Shift '{command.payload.get('shift_id')}' not found.",
        policy_name="shift_must_exist_policy",
    )


def shift_must_be_open_policy(
    command: Command, shift: ShiftRecord
) -> Optional[RejectionReason]:
    """Closed shifts accept neither movements nor a second close."""
    if shift.is_open:
        return None
    return RejectionReason(
        code=ReasonCode.SHIFT_CLOSED,
        message=(
            f"Shift {shift.id} was closed at {shift.closed_at:%Y-%m-%d %H:%M}."
        ),
        policy_name="shift_must_be_open_policy",
    )
