"""
POS Orders Engine - Application Service
=======================================
The ticket state machine.

Two independent axes:
    queue:   queued → preparing → done → void
    payment: unpaid ↔ paid   (any queue status except void)

Every header write is a compare-and-set on `version`. A terminal that
lost a race gets ConflictError and re-reads before retrying.

Payments are an append-only ledger: settle appends the total, unsettle
appends the reversing row. Settling a paid order again with the same
method is a no-op; with another method it is a ConflictError.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from decimal import Decimal
from typing import Iterable, Optional

from core.commands.base import Command
from core.commands.rejection import ReasonCode
from core.commands.service import CommandContext, LedgerService
from core.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ReferentialError,
    ValidationError,
)
from core.ledger_store.records import (
    OrderItemRecord,
    OrderRecord,
    PaymentRecord,
    PaymentStatus,
    QueueStatus,
)
from core.primitives.amounts import HUNDRED, ZERO_MONEY, round2
from engines.orders.commands import (
    AdvanceOrderRequest,
    ApplyDiscountRequest,
    CreateOrderRequest,
    DeleteOrderRequest,
    SettleOrderRequest,
    UnsettleOrderRequest,
)
from engines.orders.events import (
    build_discount_applied_payload,
    build_order_advanced_payload,
    build_order_created_payload,
    build_order_deleted_payload,
    build_order_settled_payload,
    build_order_unsettled_payload,
    resolve_orders_event_type,
)
from engines.orders.policies import (
    discount_requires_unpaid_policy,
    order_must_exist_policy,
    order_not_void_policy,
    order_without_payments_policy,
    products_must_be_active_policy,
    products_must_exist_policy,
    queue_transition_policy,
    settle_method_policy,
    tendered_covers_total_policy,
)


ORDER_CODE_ATTEMPTS = 3


def compute_total(subtotal: Decimal, discount_amount: Decimal) -> Decimal:
    """total = max(0, subtotal - discount)."""
    return max(ZERO_MONEY, round2(subtotal - discount_amount))


class OrderService(LedgerService):
    """Orders Engine application service."""

    engine = "orders"

    # ══════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════

    def _load(self, command: Command) -> OrderRecord:
        order = self._store.get_order(command.payload["order_id"], for_update=True)
        self._enforce(command, order_must_exist_policy(command, order), NotFoundError)
        return order

    def _write(self, command: Command, before: OrderRecord, after: OrderRecord) -> None:
        if not self._store.compare_and_set_order(after, before.version):
            self._logger.warning(
                f"Stale write on order {before.code}: version {before.version} "
                f"changed underneath {command.command_type}"
            )
            raise ConflictError(
                f"Order {before.code} was changed by another terminal; "
                f"reload and retry.",
                code=ReasonCode.STALE_ORDER_VERSION,
            )

    def _emit(self, command: Command, payload: dict) -> None:
        self._publish(command, resolve_orders_event_type(command.command_type), payload)

    def _next_code(self, command: Command) -> str:
        prefix = command.issued_at.strftime("%y%m%d")
        sequence = self._store.next_order_sequence(prefix)
        return f"{prefix}-{sequence:0{self._settings.order_code_width}d}"

    def _insert_with_fresh_code(
        self, command: Command, draft: OrderRecord, items: list
    ) -> OrderRecord:
        """
        Another terminal can take the same daily sequence between our read
        and our insert. The store rejects the loser with DUPLICATE_ORDER_CODE
        inside a savepoint, so the code is re-read and the insert retried.
        """
        for _ in range(ORDER_CODE_ATTEMPTS - 1):
            order = replace(draft, code=self._next_code(command))
            try:
                self._store.insert_order(order, items)
                return order
            except ConflictError as exc:
                if exc.code != "DUPLICATE_ORDER_CODE":
                    raise
                self._logger.info(f"Order code {order.code} taken; retrying")

        order = replace(draft, code=self._next_code(command))
        self._store.insert_order(order, items)
        return order

    # ══════════════════════════════════════════════════════════
    # COMMANDS
    # ══════════════════════════════════════════════════════════

    def create_order(
        self,
        lines: Iterable,
        note: str = "",
        *,
        context: Optional[CommandContext] = None,
    ) -> OrderRecord:
        """
        Open a ticket. Prices are snapshotted from the catalog now and
        never change afterwards.
        """
        request = CreateOrderRequest.from_lines(lines, note)
        command = self._command(request, context)

        with self._store.atomic():
            products = {
                line.product_id: self._store.get_product(line.product_id)
                for line in request.lines
            }
            self._enforce(
                command, products_must_exist_policy(command, products), NotFoundError,
            )
            self._enforce(
                command, products_must_be_active_policy(command, products), ValidationError,
            )

            order_id = str(uuid.uuid4())
            items = []
            for position, line in enumerate(request.lines, start=1):
                unit_price = products[line.product_id].price
                items.append(OrderItemRecord(
                    order_id=order_id,
                    position=position,
                    product_id=line.product_id,
                    quantity=line.quantity,
                    unit_price=unit_price,
                    subtotal=round2(unit_price * line.quantity),
                ))
            subtotal = round2(sum((item.subtotal for item in items), ZERO_MONEY))

            order = self._insert_with_fresh_code(command, OrderRecord(
                id=order_id,
                code="",
                opened_at=command.issued_at,
                subtotal=subtotal,
                discount_amount=ZERO_MONEY,
                total=subtotal,
                note=request.note,
            ), items)
            self._emit(command, build_order_created_payload(command, order, items))

        self._logger.info(
            f"Order created: {order.code} ({len(items)} line(s), total {order.total})"
        )
        return order

    def advance(
        self,
        order_id: str,
        next_status: str,
        *,
        context: Optional[CommandContext] = None,
    ) -> OrderRecord:
        request = AdvanceOrderRequest(order_id=order_id, next_status=next_status)
        command = self._command(request, context)

        with self._store.atomic():
            order = self._load(command)
            self._enforce(
                command, queue_transition_policy(command, order), InvalidTransitionError,
            )
            changes = {"queue_status": next_status}
            if next_status == QueueStatus.PREPARING:
                changes["started_at"] = command.issued_at
            elif next_status == QueueStatus.DONE:
                changes["done_at"] = command.issued_at
            updated = order.evolve(**changes)
            self._write(command, order, updated)
            self._emit(command, build_order_advanced_payload(command, order, updated))

        self._logger.info(
            f"Order {order.code}: {order.queue_status} → {updated.queue_status}"
        )
        return updated

    def apply_discount_percent(
        self,
        order_id: str,
        percent,
        *,
        context: Optional[CommandContext] = None,
    ) -> OrderRecord:
        request = ApplyDiscountRequest(order_id=order_id, percent=percent)
        command = self._command(request, context)

        with self._store.atomic():
            order = self._load(command)
            self._enforce(
                command, order_not_void_policy(command, order), InvalidTransitionError,
            )
            self._enforce(
                command, discount_requires_unpaid_policy(command, order),
                InvalidTransitionError,
            )
            discount = round2(order.subtotal * request.percent / HUNDRED)
            updated = order.evolve(
                discount_amount=discount,
                total=compute_total(order.subtotal, discount),
            )
            self._write(command, order, updated)
            self._emit(
                command, build_discount_applied_payload(command, updated, request.percent),
            )

        self._logger.info(
            f"Order {order.code}: discount {request.percent}% = "
            f"{updated.discount_amount}, total {updated.total}"
        )
        return updated

    def settle(
        self,
        order_id: str,
        method: str,
        amount=None,
        *,
        context: Optional[CommandContext] = None,
    ) -> OrderRecord:
        request = SettleOrderRequest(order_id=order_id, method=method, amount=amount)
        command = self._command(request, context)

        with self._store.atomic():
            order = self._load(command)
            self._enforce(
                command, order_not_void_policy(command, order), InvalidTransitionError,
            )
            self._enforce(command, settle_method_policy(command, order), ConflictError)
            if order.is_paid:
                self._logger.info(
                    f"Order {order.code} already paid by {order.paid_method}; "
                    f"settle retry ignored"
                )
                return order

            self._enforce(
                command, tendered_covers_total_policy(command, order), ValidationError,
            )

            # The ledger takes the total; change goes back to the customer.
            paid_amount = order.total
            tendered = request.amount if request.amount is not None else paid_amount
            updated = order.evolve(
                payment_status=PaymentStatus.PAID,
                paid_at=command.issued_at,
                paid_method=request.method,
            )
            self._write(command, order, updated)
            self._store.append_payment(PaymentRecord(
                id=str(uuid.uuid4()),
                order_id=order.id,
                method=request.method,
                amount=paid_amount,
                created_at=command.issued_at,
            ))
            self._emit(
                command,
                build_order_settled_payload(command, updated, paid_amount, tendered),
            )

        self._logger.info(
            f"Order {order.code} settled: {paid_amount} by {request.method}"
        )
        return updated

    def unsettle(
        self,
        order_id: str,
        *,
        context: Optional[CommandContext] = None,
    ) -> OrderRecord:
        request = UnsettleOrderRequest(order_id=order_id)
        command = self._command(request, context)

        with self._store.atomic():
            order = self._load(command)
            self._enforce(
                command, order_not_void_policy(command, order), InvalidTransitionError,
            )
            if not order.is_paid:
                return order

            method = order.paid_method
            net_paid = round2(sum(
                (p.amount for p in self._store.list_payments(order.id)), ZERO_MONEY,
            ))
            updated = order.evolve(
                payment_status=PaymentStatus.UNPAID,
                paid_at=None,
                paid_method=None,
            )
            self._write(command, order, updated)
            self._store.append_payment(PaymentRecord(
                id=str(uuid.uuid4()),
                order_id=order.id,
                method=method,
                amount=-net_paid,
                created_at=command.issued_at,
            ))
            self._emit(
                command, build_order_unsettled_payload(command, updated, method, net_paid),
            )

        self._logger.info(f"Order {order.code} unsettled: {net_paid} by {method} reversed")
        return updated

    def delete_order(
        self,
        order_id: str,
        *,
        context: Optional[CommandContext] = None,
    ) -> None:
        """Items first, then the header. Payment rows block the delete."""
        request = DeleteOrderRequest(order_id=order_id)
        command = self._command(request, context)

        with self._store.atomic():
            order = self._load(command)
            payments = self._store.list_payments(order.id)
            self._enforce(
                command,
                order_without_payments_policy(command, order, len(payments)),
                ReferentialError,
            )
            self._store.delete_order(order.id)
            self._emit(command, build_order_deleted_payload(command, order))

        self._logger.info(f"Order deleted: {order.code}")

    # ══════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════

    def get_order(self, order_id: str) -> OrderRecord:
        order = self._store.get_order(order_id)
        if order is None:
            raise NotFoundError(
                f"Order '{order_id}' not found.", code=ReasonCode.ORDER_NOT_FOUND,
            )
        return order

    def list_items(self, order_id: str) -> list[OrderItemRecord]:
        self.get_order(order_id)
        return self._store.list_order_items(order_id)

    def list_payments(self, order_id: str) -> list[PaymentRecord]:
        self.get_order(order_id)
        return self._store.list_payments(order_id)
