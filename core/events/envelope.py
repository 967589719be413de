"""
POS Event Bus - Domain Event Envelope
=====================================
A DomainEvent is the fact an engine publishes after its store
transaction commits. It carries the outcome of an accepted Command.

Rules:
- Immutable (frozen dataclass)
- event_type follows engine.domain.action.vN format
- correlation_id / causation_id link the event to its command
- payload holds plain JSON-friendly values (str, int, Decimal as str)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from core.commands.base import Command


@dataclass(frozen=True)
class DomainEvent:
    """
    Published fact.

    Fields:
        event_id:       Unique identifier (UUID).
        event_type:     e.g. 'orders.order.settled.v1'.
        payload:        Outcome data (dict).
        occurred_at:    Taken from the issuing command (service clock).
        correlation_id: Copied from the command.
        causation_id:   The command that produced this event.
        actor_type:     Copied from the command.
        actor_id:       Copied from the command.
        source_engine:  Engine that emitted the event.
    """

    event_type: str
    payload: dict
    occurred_at: datetime
    correlation_id: uuid.UUID
    causation_id: Optional[uuid.UUID]
    actor_type: str
    actor_id: str
    source_engine: str
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self):
        if not self.event_type or len(self.event_type.split(".")) < 3:
            raise ValueError(
                f"event_type '{self.event_type}' must follow "
                f"engine.domain.action format."
            )
        if self.event_type.split(".")[0] != self.source_engine:
            raise ValueError(
                f"event_type namespace does not match "
                f"source_engine '{self.source_engine}'."
            )
        if not isinstance(self.payload, dict):
            raise TypeError("payload must be a dict.")
        if self.occurred_at.tzinfo is None:
            raise ValueError("occurred_at must be timezone-aware.")

    def get(self, key: str, default: Any = None) -> Any:
        return self.payload.get(key, default)


def event_from_command(
    command: Command, event_type: str, payload: dict
) -> DomainEvent:
    """Build the event that records an accepted command's outcome."""
    return DomainEvent(
        event_type=event_type,
        payload=payload,
        occurred_at=command.issued_at,
        correlation_id=command.correlation_id,
        causation_id=command.command_id,
        actor_type=command.actor_type,
        actor_id=command.actor_id,
        source_engine=command.source_engine,
    )
