"""
POS Catalog Engine - Policies
=============================
"""

from __future__ import annotations

from typing import Optional

from core.commands.base import Command
from core.commands.rejection import ReasonCode, RejectionReason
from core.ledger_store.records import ProductRecord


def product_must_exist_policy(
    command: Command, product: Optional[ProductRecord]
) -> Optional[RejectionReason]:
    if product is not None:
        return None
    return RejectionReason(
        code=ReasonCode.PRODUCT_NOT_FOUND,
        message=f"Product '{command.payload.get('product_id')}' not found.",
        policy_name="product_must_exist_policy",
    )


def product_unreferenced_policy(
    command: Command, product: ProductRecord, is_referenced: bool
) -> Optional[RejectionReason]:
    """Order items and recipe lines pin a product; deactivate it instead."""
    if not is_referenced:
        return None
    return RejectionReason(
        code=ReasonCode.PRODUCT_REFERENCED,
        message=(
            f"Product '{product.sku}' is used by orders or recipes. "
            f"Deactivate it instead of deleting."
        ),
        policy_name="product_unreferenced_policy",
    )
