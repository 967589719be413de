"""
POS Orders Engine - Request Commands
====================================
Typed ticket requests that convert into canonical Command objects.

Input validation happens here (ValidationError); state checks happen in
policies against the stored order.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from core.commands.base import Command
from core.errors import ValidationError
from core.ledger_store.records import PaymentMethod, QueueStatus
from core.primitives.amounts import clamp_percent, money


# ══════════════════════════════════════════════════════════════
# COMMAND TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

ORDERS_ORDER_CREATE_REQUEST = "orders.order.create.request"
ORDERS_ORDER_ADVANCE_REQUEST = "orders.order.advance.request"
ORDERS_ORDER_APPLY_DISCOUNT_REQUEST = "orders.order.apply_discount.request"
ORDERS_ORDER_SETTLE_REQUEST = "orders.order.settle.request"
ORDERS_ORDER_UNSETTLE_REQUEST = "orders.order.unsettle.request"
ORDERS_ORDER_DELETE_REQUEST = "orders.order.delete.request"

ORDERS_COMMAND_TYPES = frozenset({
    ORDERS_ORDER_CREATE_REQUEST,
    ORDERS_ORDER_ADVANCE_REQUEST,
    ORDERS_ORDER_APPLY_DISCOUNT_REQUEST,
    ORDERS_ORDER_SETTLE_REQUEST,
    ORDERS_ORDER_UNSETTLE_REQUEST,
    ORDERS_ORDER_DELETE_REQUEST,
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
        source_engine="orders",
        causation_id=causation_id,
    )


def _require_order_id(order_id: str) -> None:
    if not order_id or not isinstance(order_id, str):
        raise ValidationError("order_id must be non-empty.")


# ══════════════════════════════════════════════════════════════
# REQUEST COMMANDS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OrderLine:
    """One (product, quantity) line of a new ticket."""
    product_id: str
    quantity: int

    def __post_init__(self):
        if not self.product_id or not isinstance(self.product_id, str):
            raise ValidationError("product_id must be non-empty.")
        if (
            isinstance(self.quantity, bool)
            or not isinstance(self.quantity, int)
            or self.quantity <= 0
        ):
            raise ValidationError(
                f"quantity must be a positive integer, got {self.quantity!r}."
            )

    @classmethod
    def coerce(cls, line) -> OrderLine:
        """Accept an OrderLine, a (product_id, quantity) pair or a dict."""
        if isinstance(line, cls):
            return line
        if isinstance(line, dict):
            return cls(product_id=line.get("product_id"), quantity=line.get("quantity"))
        try:
            product_id, qty = line
        except (TypeError, ValueError):
            raise ValidationError(f"Unrecognised order line: {line!r}.") from None
        return cls(product_id=product_id, quantity=qty)


@dataclass(frozen=True)
class CreateOrderRequest:
    lines: Tuple[OrderLine, ...]
    note: str = ""

    def __post_init__(self):
        if not self.lines:
            raise ValidationError("An order needs at least one line.")
        object.__setattr__(
            self, "lines", tuple(OrderLine.coerce(line) for line in self.lines),
        )
        object.__setattr__(self, "note", (self.note or "").strip())

    @classmethod
    def from_lines(cls, lines: Iterable, note: str = "") -> CreateOrderRequest:
        return cls(lines=tuple(lines or ()), note=note)

    def to_command(self, **kwargs) -> Command:
        return _command(
            ORDERS_ORDER_CREATE_REQUEST,
            {
                "lines": [
                    {"product_id": line.product_id, "quantity": line.quantity}
                    for line in self.lines
                ],
                "note": self.note,
            },
            **kwargs,
        )


@dataclass(frozen=True)
class AdvanceOrderRequest:
    order_id: str
    next_status: str

    def __post_init__(self):
        _require_order_id(self.order_id)
        if self.next_status not in QueueStatus.ALL:
            raise ValidationError(
                f"next_status must be one of {QueueStatus.ALL}, "
                f"got '{self.next_status}'."
            )

    def to_command(self, **kwargs) -> Command:
        return _command(
            ORDERS_ORDER_ADVANCE_REQUEST,
            {"order_id": self.order_id, "next_status": self.next_status},
            **kwargs,
        )


@dataclass(frozen=True)
class ApplyDiscountRequest:
    """Percent outside [0, 100] is clamped, not rejected."""
    order_id: str
    percent: Decimal

    def __post_init__(self):
        _require_order_id(self.order_id)
        object.__setattr__(self, "percent", clamp_percent(self.percent))

    def to_command(self, **kwargs) -> Command:
        return _command(
            ORDERS_ORDER_APPLY_DISCOUNT_REQUEST,
            {"order_id": self.order_id, "percent": self.percent},
            **kwargs,
        )


@dataclass(frozen=True)
class SettleOrderRequest:
    order_id: str
    method: str
    amount: Optional[Decimal] = None

    def __post_init__(self):
        _require_order_id(self.order_id)
        if self.method not in PaymentMethod.ALL:
            raise ValidationError(
                f"method must be one of {PaymentMethod.ALL}, got '{self.method}'."
            )
        if self.amount is not None:
            amount = money(self.amount)
            if amount < 0:
                raise ValidationError("amount must be >= 0.")
            object.__setattr__(self, "amount", amount)

    def to_command(self, **kwargs) -> Command:
        return _command(
            ORDERS_ORDER_SETTLE_REQUEST,
            {"order_id": self.order_id, "method": self.method, "amount": self.amount},
            **kwargs,
        )


@dataclass(frozen=True)
class UnsettleOrderRequest:
    order_id: str

    def __post_init__(self):
        _require_order_id(self.order_id)

    def to_command(self, **kwargs) -> Command:
        return _command(
            ORDERS_ORDER_UNSETTLE_REQUEST, {"order_id": self.order_id}, **kwargs,
        )


@dataclass(frozen=True)
class DeleteOrderRequest:
    order_id: str

    def __post_init__(self):
        _require_order_id(self.order_id)

    def to_command(self, **kwargs) -> Command:
        return _command(
            ORDERS_ORDER_DELETE_REQUEST, {"order_id": self.order_id}, **kwargs,
        )
