"""
POS Reporting Engine - Read Models
==================================
Queue board, order listing/detail and sales summary.

Read-only: nothing here opens a write transaction or takes row locks,
so a report may be a moment behind a terminal that is mid-commit.
Day ranges are UTC calendar days, both ends inclusive.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Iterable, Optional

from core.commands.service import LedgerService
from core.errors import NotFoundError, ValidationError
from core.ledger_store.records import (
    OrderItemRecord,
    OrderRecord,
    PaymentRecord,
    QueueStatus,
)
from core.primitives.amounts import ZERO_MONEY, round2

ITEM_SEPARATOR = " • "


# ══════════════════════════════════════════════════════════════
# READ MODELS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class QueueTicket:
    order: OrderRecord
    summary: str


@dataclass(frozen=True)
class QueueBoard:
    generated_at: datetime
    queued: list = field(default_factory=list)
    preparing: list = field(default_factory=list)
    done_unpaid: list = field(default_factory=list)
    done_paid: list = field(default_factory=list)

    @property
    def ticket_count(self) -> int:
        return (
            len(self.queued) + len(self.preparing)
            + len(self.done_unpaid) + len(self.done_paid)
        )


@dataclass(frozen=True)
class OrderLineView:
    position: int
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


@dataclass(frozen=True)
class OrderDetail:
    order: OrderRecord
    items: list
    payments: list

    @property
    def net_paid(self) -> Decimal:
        return round2(sum((p.amount for p in self.payments), ZERO_MONEY))


@dataclass(frozen=True)
class DailySales:
    day: date
    bills: int
    sales: Decimal


@dataclass(frozen=True)
class ProductSales:
    product_id: str
    name: str
    quantity: int
    sales: Decimal


@dataclass(frozen=True)
class SalesSummary:
    date_from: date
    date_to: date
    bills: int
    sales: Decimal
    average_bill: Decimal
    by_day: list
    by_method: dict
    top_products: list


# ══════════════════════════════════════════════════════════════
# HELPERS
# ══════════════════════════════════════════════════════════════

def day_bounds(date_from: date, date_to: date) -> tuple[datetime, datetime]:
    """[date_from 00:00, date_to + 1 day 00:00) in UTC."""
    if date_to < date_from:
        raise ValidationError(
            f"date_to {date_to} is before date_from {date_from}.",
            code="INVALID_DATE_RANGE",
        )
    start = datetime.combine(date_from, time.min, tzinfo=timezone.utc)
    end = datetime.combine(date_to + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return start, end


def summarize_items(items: Iterable[OrderItemRecord], names: dict) -> str:
    """Latte × 2 • Mocha × 1"""
    return ITEM_SEPARATOR.join(
        f"{names.get(item.product_id, item.product_id)} × {item.quantity}"
        for item in sorted(items, key=lambda i: i.position)
    )


def _group(rows: Iterable, key) -> dict:
    grouped: dict = {}
    for row in rows:
        grouped.setdefault(key(row), []).append(row)
    return grouped


# ══════════════════════════════════════════════════════════════
# SERVICE
# ══════════════════════════════════════════════════════════════

class ReportingService(LedgerService):
    """Reporting Engine read service."""

    engine = "reporting"

    def _product_names(self) -> dict:
        return {p.id: p.name for p in self._store.list_products()}

    def _today(self) -> date:
        return self._clock.now_utc().date()

    # ── queue board ───────────────────────────────────────────

    def queue_board(self, now: Optional[datetime] = None) -> QueueBoard:
        """
        Kitchen/bar board. Tickets opened within the horizon; done
        tickets drop off once done_visible_minutes have passed.
        """
        now = now or self._clock.now_utc()
        horizon = now - timedelta(hours=self._settings.queue_horizon_hours)
        done_cutoff = now - timedelta(minutes=self._settings.done_visible_minutes)

        orders = [
            o for o in self._store.list_orders_opened(horizon, now + timedelta(seconds=1))
            if o.queue_status != QueueStatus.VOID
            and not (
                o.queue_status == QueueStatus.DONE
                and o.done_at is not None
                and o.done_at < done_cutoff
            )
        ]
        items = _group(
            self._store.list_items_for_orders(o.id for o in orders),
            lambda item: item.order_id,
        )
        names = self._product_names()

        board = QueueBoard(generated_at=now)
        for order in orders:
            ticket = QueueTicket(order, summarize_items(items.get(order.id, ()), names))
            if order.queue_status == QueueStatus.QUEUED:
                board.queued.append(ticket)
            elif order.queue_status == QueueStatus.PREPARING:
                board.preparing.append(ticket)
            elif order.is_paid:
                board.done_paid.append(ticket)
            else:
                board.done_unpaid.append(ticket)
        return board

    # ── orders ────────────────────────────────────────────────

    def list_orders(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        search: str = "",
    ) -> list[OrderRecord]:
        """Orders opened in the range, newest first. Defaults to today."""
        date_from = date_from or self._today()
        date_to = date_to or date_from
        start, end = day_bounds(date_from, date_to)

        orders = self._store.list_orders_opened(start, end)
        needle = (search or "").strip().lower()
        if needle:
            orders = [
                o for o in orders
                if needle in o.code.lower() or o.id.lower().startswith(needle)
            ]
        return sorted(orders, key=lambda o: (o.opened_at, o.code), reverse=True)

    def order_detail(self, order_id: str) -> OrderDetail:
        order = self._store.get_order(order_id)
        if order is None:
            raise NotFoundError(f"Order '{order_id}' not found.", code="ORDER_NOT_FOUND")
        names = self._product_names()
        lines = [
            OrderLineView(
                position=item.position,
                product_id=item.product_id,
                product_name=names.get(item.product_id, ""),
                quantity=item.quantity,
                unit_price=item.unit_price,
                subtotal=item.subtotal,
            )
            for item in self._store.list_order_items(order_id)
        ]
        return OrderDetail(
            order=order, items=lines, payments=self._store.list_payments(order_id),
        )

    # ── sales ─────────────────────────────────────────────────

    def _method_totals(
        self, orders: list[OrderRecord], payments: list[PaymentRecord]
    ) -> dict:
        totals: dict = {}
        by_order = _group(payments, lambda p: p.order_id)
        for order in orders:
            rows = by_order.get(order.id)
            if rows:
                for payment in rows:
                    totals[payment.method] = totals.get(payment.method, ZERO_MONEY) + payment.amount
            else:
                method = order.paid_method or "other"
                totals[method] = totals.get(method, ZERO_MONEY) + order.total
        return {method: round2(amount) for method, amount in sorted(totals.items())}

    def sales_summary(
        self, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> SalesSummary:
        """Paid, non-void orders by paid_at day."""
        date_from = date_from or self._today()
        date_to = date_to or date_from
        start, end = day_bounds(date_from, date_to)

        orders = [
            o for o in self._store.list_orders_paid(start, end)
            if o.is_paid and not o.is_void
        ]
        order_ids = [o.id for o in orders]

        bills = len(orders)
        sales = round2(sum((o.total for o in orders), ZERO_MONEY))
        average = round2(sales / bills) if bills else ZERO_MONEY

        by_day = [
            DailySales(
                day=day,
                bills=len(rows),
                sales=round2(sum((o.total for o in rows), ZERO_MONEY)),
            )
            for day, rows in sorted(_group(orders, lambda o: o.paid_at.date()).items())
        ]

        names = self._product_names()
        quantities: dict = {}
        amounts: dict = {}
        for item in self._store.list_items_for_orders(order_ids):
            quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity
            amounts[item.product_id] = amounts.get(item.product_id, ZERO_MONEY) + item.subtotal
        ranked = sorted(
            quantities,
            key=lambda pid: (-quantities[pid], -amounts[pid], names.get(pid, pid)),
        )
        top = [
            ProductSales(
                product_id=pid,
                name=names.get(pid, ""),
                quantity=quantities[pid],
                sales=round2(amounts[pid]),
            )
            for pid in ranked[: self._settings.top_products_limit]
        ]

        return SalesSummary(
            date_from=date_from,
            date_to=date_to,
            bills=bills,
            sales=sales,
            average_bill=average,
            by_day=by_day,
            by_method=self._method_totals(
                orders, self._store.list_payments_for_orders(order_ids),
            ),
            top_products=top,
        )
