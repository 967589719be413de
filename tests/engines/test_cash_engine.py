"""POS Cash Engine tests: shift lifecycle and expected-cash reconciliation."""

from decimal import Decimal

import pytest

from core.errors import ConflictError, NotFoundError, ValidationError
from core.ledger_store.records import CashTxnType


class TestCashCommands:
    @pytest.mark.parametrize("txn_type, given, stored", [
        (CashTxnType.CASH_IN, "-200", Decimal("200.00")),
        (CashTxnType.SALE_CASH, "90", Decimal("90.00")),
        (CashTxnType.CASH_OUT, "50", Decimal("-50.00")),
        (CashTxnType.REFUND_CASH, "-10", Decimal("-10.00")),
        (CashTxnType.EXPENSE, "12.345", Decimal("-12.35")),
    ])
    def test_sign_normalized(self, txn_type, given, stored):
        from engines.cash.commands import RecordCashMovementRequest

        request = RecordCashMovementRequest(shift_id="s-1", txn_type=txn_type, amount=given)
        assert request.amount == stored

    def test_zero_amount_rejected(self):
        from engines.cash.commands import RecordCashMovementRequest

        with pytest.raises(ValidationError):
            RecordCashMovementRequest(shift_id="s-1", txn_type="cash_in", amount=0)

    def test_unknown_txn_type_rejected(self):
        from engines.cash.commands import RecordCashMovementRequest

        with pytest.raises(ValidationError, match="txn_type"):
            RecordCashMovementRequest(shift_id="s-1", txn_type="tip", amount=1)

    def test_negative_opening_rejected(self):
        from engines.cash.commands import OpenShiftRequest

        with pytest.raises(ValidationError):
            OpenShiftRequest(opening_cash=-1)


class TestShiftLifecycle:
    def test_reconciliation_scenario(self, system):
        shift = system.cash.open_shift(1000)
        system.cash.record_movement(shift.id, CashTxnType.CASH_IN, 200)
        system.cash.record_movement(shift.id, CashTxnType.CASH_OUT, 50)

        assert system.cash.expected_cash(shift.id) == Decimal("1150.00")

        closed = system.cash.close_shift(shift.id, 1140)
        assert closed.cash_diff == Decimal("-10.00")
        assert closed.closing_cash == Decimal("1140.00")
        assert closed.closed_at == system.clock.now_utc()
        assert system.cash.current_shift() is None

    def test_second_open_shift_conflicts(self, system):
        system.cash.open_shift(500)
        with pytest.raises(ConflictError):
            system.cash.open_shift(100)

    def test_new_shift_after_close(self, system):
        first = system.cash.open_shift(500)
        system.cash.close_shift(first.id, 500)
        second = system.cash.open_shift(300)
        assert system.cash.current_shift() == second

    def test_closed_shift_rejects_movements(self, system):
        shift = system.cash.open_shift(0)
        system.cash.close_shift(shift.id, 0)
        with pytest.raises(ConflictError):
            system.cash.record_movement(shift.id, CashTxnType.CASH_IN, 10)
        assert system.cash.movements(shift.id) == []

    def test_close_twice_conflicts(self, system):
        shift = system.cash.open_shift(100)
        system.cash.close_shift(shift.id, 100)
        with pytest.raises(ConflictError):
            system.cash.close_shift(shift.id, 90)
        assert system.cash.get_shift(shift.id).closing_cash == Decimal("100.00")

    def test_unknown_shift(self, system):
        with pytest.raises(NotFoundError):
            system.cash.record_movement("missing", CashTxnType.CASH_IN, 10)
        with pytest.raises(NotFoundError):
            system.cash.expected_cash("missing")

    def test_summary(self, system):
        shift = system.cash.open_shift("250.50")
        system.cash.record_movement(shift.id, CashTxnType.SALE_CASH, 90)
        system.cash.record_movement(shift.id, CashTxnType.SALE_CASH, 45)
        system.cash.record_movement(shift.id, CashTxnType.EXPENSE, 20, note="ice")

        summary = system.cash.shift_summary(shift.id)
        assert summary.movement_count == 3
        assert summary.expected_cash == Decimal("365.50")
        assert summary.totals_by_type[CashTxnType.SALE_CASH] == Decimal("135.00")
        assert summary.totals_by_type[CashTxnType.EXPENSE] == Decimal("-20.00")
        assert summary.totals_by_type[CashTxnType.CASH_OUT] == Decimal("0.00")

    def test_surplus_is_positive_diff(self, system):
        shift = system.cash.open_shift(100)
        closed = system.cash.close_shift(shift.id, "100.25", note="coins found")
        assert closed.cash_diff == Decimal("0.25")
        assert closed.note == "coins found"
