"""
POS Command Layer - Ledger Service Base
=======================================
Shared command lifecycle for every engine service.

Flow (one call of a public service method):
    1. Request dataclass validates raw input (ValidationError)
    2. Request → canonical Command (actor, correlation, clock time)
    3. Inside store.atomic(): policies judge the stored state;
       a RejectionReason is raised as the matching PosError
    4. The engine writes its rows
    5. The resulting DomainEvent is queued with store.on_commit,
       so subscribers only ever hear committed truth

The base does NOT:
- Contain engine-specific rules
- Swallow errors (every PosError reaches the caller)
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Callable, Optional, Type

from core.commands.base import Command
from core.commands.rejection import RejectionReason
from core.config.rules import PosSettings
from core.errors import PosError
from core.events.dispatcher import dispatch
from core.events.envelope import DomainEvent, event_from_command
from core.events.registry import SubscriberRegistry
from core.time.clock import Clock, get_default_clock

logger = logging.getLogger("pos.commands")


# ══════════════════════════════════════════════════════════════
# COMMAND CONTEXT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CommandContext:
    """
    Who is asking, and which story the request belongs to.

    Terminals pass their own context; subscriptions derive one from the
    event they react to so the whole chain shares a correlation_id.
    """

    actor_type: str = "HUMAN"
    actor_id: str = "pos-terminal"
    correlation_id: Optional[uuid.UUID] = None
    causation_id: Optional[uuid.UUID] = None

    @classmethod
    def caused_by(cls, event: DomainEvent, actor_id: str) -> CommandContext:
        return cls(
            actor_type="SYSTEM",
            actor_id=actor_id,
            correlation_id=event.correlation_id,
            causation_id=event.event_id,
        )


DEFAULT_CONTEXT = CommandContext()


# ══════════════════════════════════════════════════════════════
# SERVICE BASE
# ══════════════════════════════════════════════════════════════

class LedgerService:
    """Base for engine application services."""

    engine: str = ""

    def __init__(
        self,
        *,
        store,
        clock: Optional[Clock] = None,
        registry: Optional[SubscriberRegistry] = None,
        settings: Optional[PosSettings] = None,
    ):
        self._store = store
        self._clock = clock or get_default_clock()
        self._registry = registry if registry is not None else SubscriberRegistry()
        self._settings = settings or PosSettings()
        self._logger = logging.getLogger(f"pos.{self.engine}")

    @property
    def store(self):
        return self._store

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def registry(self) -> SubscriberRegistry:
        return self._registry

    def _command(
        self, request, context: Optional[CommandContext] = None
    ) -> Command:
        ctx = context or DEFAULT_CONTEXT
        return request.to_command(
            actor_type=ctx.actor_type,
            actor_id=ctx.actor_id,
            command_id=uuid.uuid4(),
            correlation_id=ctx.correlation_id or uuid.uuid4(),
            issued_at=self._clock.now_utc(),
            causation_id=ctx.causation_id,
        )

    def _enforce(
        self,
        command: Command,
        rejection: Optional[RejectionReason],
        error_cls: Type[PosError],
    ) -> None:
        """Raise error_cls when a policy rejected the command."""
        if rejection is None:
            return
        logger.warning(
            f"Command rejected: {command.command_type} "
            f"(command_id: {command.command_id}) "
            f"[{rejection.policy_name}] {rejection.code}: {rejection.message}"
        )
        raise error_cls.from_rejection(rejection)

    def _publish(
        self,
        command: Command,
        event_type: str,
        payload: dict,
    ) -> DomainEvent:
        """Queue the event for dispatch once the transaction commits."""
        event = event_from_command(command, event_type, payload)
        registry = self._registry
        self._store.on_commit(_dispatcher(event, registry))
        return event


def _dispatcher(
    event: DomainEvent, registry: SubscriberRegistry
) -> Callable[[], None]:
    def _run() -> None:
        dispatch(event, registry)
    return _run
