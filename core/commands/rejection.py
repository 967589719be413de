"""
POS Command Layer - Rejection Model
===================================
Structured rejection reasons for denied commands.

Engine policies return a RejectionReason (or None). The engine service
turns a rejection into the matching PosError subclass, so the code and
message reach the caller unchanged.

Every rejection must be:
- Deterministic (same input and state → same rejection)
- Machine-readable (code)
- Human-readable (message)
"""

from __future__ import annotations

from dataclasses import dataclass


# ══════════════════════════════════════════════════════════════
# REJECTION REASON (frozen explanation structure)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RejectionReason:
    """
    Structured reason for command rejection.

    Fields:
        code:        Machine-readable rejection code (e.g. 'ORDER_VOID').
        message:     Human-readable explanation.
        policy_name: Name of the policy that caused rejection.
    """

    code: str
    message: str
    policy_name: str

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

        if not self.policy_name or not isinstance(self.policy_name, str):
            raise ValueError("policy_name must be a non-empty string.")

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
        }


# ══════════════════════════════════════════════════════════════
# STANDARD REJECTION CODES
# ══════════════════════════════════════════════════════════════

class ReasonCode:
    """
    Known rejection codes. Extensible by engines.

    Convention: SCREAMING_SNAKE_CASE.
    """

    # ── Orders ────────────────────────────────────────────────
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    ORDER_VOID = "ORDER_VOID"
    ORDER_ALREADY_PAID = "ORDER_ALREADY_PAID"
    ORDER_PAID_WITH_OTHER_METHOD = "ORDER_PAID_WITH_OTHER_METHOD"
    TENDERED_BELOW_TOTAL = "TENDERED_BELOW_TOTAL"
    ORDER_HAS_PAYMENTS = "ORDER_HAS_PAYMENTS"
    ILLEGAL_QUEUE_TRANSITION = "ILLEGAL_QUEUE_TRANSITION"
    STALE_ORDER_VERSION = "STALE_ORDER_VERSION"

    # ── Catalog / recipes ─────────────────────────────────────
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    PRODUCT_INACTIVE = "PRODUCT_INACTIVE"
    PRODUCT_REFERENCED = "PRODUCT_REFERENCED"

    # ── Inventory ─────────────────────────────────────────────
    INGREDIENT_NOT_FOUND = "INGREDIENT_NOT_FOUND"
    INGREDIENT_REFERENCED = "INGREDIENT_REFERENCED"

    # ── Cash ──────────────────────────────────────────────────
    SHIFT_NOT_FOUND = "SHIFT_NOT_FOUND"
    SHIFT_ALREADY_OPEN = "SHIFT_ALREADY_OPEN"
    SHIFT_CLOSED = "SHIFT_CLOSED"
