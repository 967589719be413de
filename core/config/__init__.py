"""
POS Core Config - Public API
============================
"""

from core.config.rules import ConsumptionPolicy, PosSettings

__all__ = [
    "ConsumptionPolicy",
    "PosSettings",
]
