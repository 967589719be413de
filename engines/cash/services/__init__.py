"""
POS Cash Engine - Application Service
=====================================
Cash-drawer shift ledger.

    no open shift → open → closed → (a new shift may open)

expected_cash = opening_cash + Σ signed movement amounts
cash_diff     = round2(counted - expected_cash)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Optional

from core.commands.service import CommandContext, LedgerService
from core.errors import ConflictError, NotFoundError
from core.ledger_store.records import CashMovementRecord, CashTxnType, ShiftRecord
from core.primitives.amounts import ZERO_MONEY, round2
from engines.cash.commands import (
    CloseShiftRequest,
    OpenShiftRequest,
    RecordCashMovementRequest,
)
from engines.cash.events import (
    build_movement_recorded_payload,
    build_shift_closed_payload,
    build_shift_opened_payload,
    resolve_cash_event_type,
)
from engines.cash.policies import (
    no_open_shift_policy,
    shift_must_be_open_policy,
    shift_must_exist_policy,
)


# ══════════════════════════════════════════════════════════════
# READ MODELS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ShiftSummary:
    shift: ShiftRecord
    totals_by_type: dict
    expected_cash: Decimal
    movement_count: int


# ══════════════════════════════════════════════════════════════
# APPLICATION SERVICE
# ══════════════════════════════════════════════════════════════

class CashService(LedgerService):
    """Cash Engine application service."""

    engine = "cash"

    def _emit(self, command, payload: dict) -> None:
        self._publish(command, resolve_cash_event_type(command.command_type), payload)

    def _open_for_write(self, command) -> ShiftRecord:
        shift = self._store.get_shift(command.payload["shift_id"], for_update=True)
        self._enforce(command, shift_must_exist_policy(command, shift), NotFoundError)
        self._enforce(command, shift_must_be_open_policy(command, shift), ConflictError)
        return shift

    # ── commands ──────────────────────────────────────────────

    def open_shift(
        self,
        opening_cash,
        note: str = "",
        *,
        context: Optional[CommandContext] = None,
    ) -> ShiftRecord:
        request = OpenShiftRequest(opening_cash=opening_cash, note=note)
        command = self._command(request, context)

        shift = ShiftRecord(
            id=str(uuid.uuid4()),
            opened_at=command.issued_at,
            opening_cash=request.opening_cash,
            note=request.note,
        )
        with self._store.atomic():
            self._enforce(
                command,
                no_open_shift_policy(command, self._store.get_open_shift()),
                ConflictError,
            )
            self._store.insert_shift(shift)
            self._emit(command, build_shift_opened_payload(command, shift))

        self._logger.info(f"Shift opened: {shift.id} with {shift.opening_cash}")
        return shift

    def record_movement(
        self,
        shift_id: str,
        txn_type: str,
        amount,
        note: str = "",
        reference: Optional[str] = None,
        *,
        context: Optional[CommandContext] = None,
    ) -> CashMovementRecord:
        request = RecordCashMovementRequest(
            shift_id=shift_id, txn_type=txn_type, amount=amount,
            note=note, reference=reference,
        )
        command = self._command(request, context)

        with self._store.atomic():
            shift = self._open_for_write(command)
            movement = CashMovementRecord(
                id=str(uuid.uuid4()),
                shift_id=shift.id,
                amount=request.amount,
                txn_type=request.txn_type,
                note=request.note,
                reference=request.reference,
                created_at=command.issued_at,
            )
            self._store.append_cash_movement(movement)
            self._emit(command, build_movement_recorded_payload(command, movement))

        self._logger.info(
            f"Cash {movement.txn_type} {movement.amount} on shift {shift.id}"
        )
        return movement

    def close_shift(
        self,
        shift_id: str,
        counted_cash,
        note: Optional[str] = None,
        *,
        context: Optional[CommandContext] = None,
    ) -> ShiftRecord:
        request = CloseShiftRequest(
            shift_id=shift_id, counted_cash=counted_cash, note=note,
        )
        command = self._command(request, context)

        with self._store.atomic():
            shift = self._open_for_write(command)
            expected = self._expected(shift)
            closed = replace(
                shift,
                closed_at=command.issued_at,
                closing_cash=request.counted_cash,
                cash_diff=round2(request.counted_cash - expected),
                note=request.note if request.note is not None else shift.note,
            )
            self._store.update_shift(closed)
            self._emit(command, build_shift_closed_payload(command, closed, expected))

        level = self._logger.warning if closed.cash_diff else self._logger.info
        level(
            f"Shift closed: {closed.id} expected {expected}, "
            f"counted {closed.closing_cash}, diff {closed.cash_diff}"
        )
        return closed

    # ── queries ───────────────────────────────────────────────

    def _expected(self, shift: ShiftRecord) -> Decimal:
        return round2(shift.opening_cash + self._store.cash_movement_total(shift.id))

    def get_shift(self, shift_id: str) -> ShiftRecord:
        shift = self._store.get_shift(shift_id)
        if shift is None:
            raise NotFoundError(f"Shift '{shift_id}' not found.", code="SHIFT_NOT_FOUND")
        return shift

    def current_shift(self) -> Optional[ShiftRecord]:
        return self._store.get_open_shift()

    def expected_cash(self, shift_id: str) -> Decimal:
        return self._expected(self.get_shift(shift_id))

    def movements(self, shift_id: str) -> list[CashMovementRecord]:
        self.get_shift(shift_id)
        return self._store.list_cash_movements(shift_id)

    def posted_for_reference(self, reference: str) -> Decimal:
        """Net drawer amount carrying this reference, across all shifts."""
        return self._store.cash_reference_total(reference)

    def shift_summary(self, shift_id: str) -> ShiftSummary:
        shift = self.get_shift(shift_id)
        movements = self._store.list_cash_movements(shift_id)
        totals = {txn_type: ZERO_MONEY for txn_type in CashTxnType.ALL}
        for movement in movements:
            totals[movement.txn_type] = round2(totals[movement.txn_type] + movement.amount)
        return ShiftSummary(
            shift=shift,
            totals_by_type=totals,
            expected_cash=self._expected(shift),
            movement_count=len(movements),
        )
