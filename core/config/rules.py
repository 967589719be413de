"""
POS Core Config - Operating Rules
=================================
Store-level knobs that change how engines react to each other and how
the read models slice time. Engines never read Django settings
directly; they receive a PosSettings instance from the wiring layer.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Mapping, Optional


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class ConsumptionPolicy(Enum):
    MANUAL = "MANUAL"        # stock desk posts consumption explicitly
    ON_SETTLE = "ON_SETTLE"  # post when the bill is paid
    ON_DONE = "ON_DONE"      # post when the ticket reaches done


# ══════════════════════════════════════════════════════════════
# SETTINGS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PosSettings:
    """
    Fields:
        consumption_policy:   When recipe consumption hits the stock ledger.
        link_cash_sales:      Post cash settlements into the open shift.
        queue_horizon_hours:  How far back the queue board looks.
        done_visible_minutes: How long a done ticket stays on the board.
        top_products_limit:   Rows in the sales summary top list.
        order_code_width:     Zero padding of the daily order sequence.
    """

    consumption_policy: ConsumptionPolicy = ConsumptionPolicy.MANUAL
    link_cash_sales: bool = True
    queue_horizon_hours: int = 12
    done_visible_minutes: int = 60
    top_products_limit: int = 15
    order_code_width: int = 3

    def __post_init__(self) -> None:
        if not isinstance(self.consumption_policy, ConsumptionPolicy):
            raise ValueError(
                f"consumption_policy must be ConsumptionPolicy, "
                f"got {self.consumption_policy!r}."
            )
        if not isinstance(self.link_cash_sales, bool):
            raise ValueError("link_cash_sales must be bool.")
        for name in (
            "queue_horizon_hours",
            "done_visible_minutes",
            "top_products_limit",
            "order_code_width",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value!r}.")

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> PosSettings:
        """
        Build settings from a plain mapping such as Django's settings.POS.
        Keys are case-insensitive; unknown keys are rejected.
        """
        if not data:
            return cls()

        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for raw_key, value in data.items():
            key = str(raw_key).lower()
            if key not in known:
                raise ValueError(f"Unknown POS setting '{raw_key}'.")
            kwargs[key] = value

        policy = kwargs.get("consumption_policy")
        if isinstance(policy, str):
            try:
                kwargs["consumption_policy"] = ConsumptionPolicy(policy.upper())
            except ValueError:
                raise ValueError(
                    f"consumption_policy must be one of "
                    f"{[p.value for p in ConsumptionPolicy]}, got '{policy}'."
                ) from None

        return cls(**kwargs)
