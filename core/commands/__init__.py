"""
POS Command Layer
=================
Every mutation begins as a Command. Policies judge it against the
current stored state and either let it through or return a
RejectionReason that the engine raises as a PosError.
"""

from core.commands.base import (
    Command,
    VALID_ACTOR_TYPES,
    derive_source_engine,
)
from core.commands.rejection import (
    ReasonCode,
    RejectionReason,
)

__all__ = [
    "Command",
    "VALID_ACTOR_TYPES",
    "derive_source_engine",
    "ReasonCode",
    "RejectionReason",
]
