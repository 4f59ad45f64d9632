"""
Game Loop - The serialized command path for every session.

The loop:
1. Receives a command from the gateway (or from a fired deferred task)
2. Looks the session up in the registry
3. Applies the command under the session's lock
4. Resolves each event's audience into transport references
5. Publishes the deliveries and schedules any deferred follow-ups
6. Removes the session once its last participant is gone

Commands for one session never interleave; different sessions run
independently.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Awaitable, Callable
import logging

from .manager import Session, SessionManager
from .scheduler import Scheduler
from ..engine_core.commands import Command, CommandType, CreateSession, Disconnect
from ..engine_core.errors import ErrorCode
from ..engine_core.events import CommandResult, Event, Target

logger = logging.getLogger(__name__)


@dataclass
class Delivery:
    """An event together with the transport references it goes to."""
    event: Event
    recipients: list[str] = field(default_factory=list)


Publisher = Callable[[list[Delivery]], Awaitable[None]]


class GameLoop:
    """
    The main command driver.

    Usage:
        loop = GameLoop(manager, scheduler, publisher=gateway.publish)

        # Command comes in from a connection
        deliveries = await loop.submit(MakeBid(...), transport_ref="conn-1")

        # Connection closes
        await loop.disconnect("conn-1")
    """

    def __init__(
        self,
        manager: SessionManager,
        scheduler: Scheduler,
        publisher: Publisher | None = None,
    ):
        self.manager = manager
        self.scheduler = scheduler
        self.publisher = publisher

    async def submit(self, command: Command, transport_ref: str | None = None) -> list[Delivery]:
        """
        Run a command from a participant.

        Returns every delivery produced (they are also published).
        """
        if isinstance(command, CreateSession):
            session = self.manager.create_session()
            return await self._run(session, command, transport_ref)

        if isinstance(command, Disconnect):
            return await self.disconnect(command.transport_ref)

        session = self.manager.get_session(command.session_id)
        if session is None:
            deliveries = [
                Delivery(
                    Event.error("Game not found", ErrorCode.NOT_FOUND, command.session_id),
                    [transport_ref] if transport_ref else [],
                )
            ]
            await self.publish(deliveries)
            return deliveries
        return await self._run(session, command, transport_ref)

    async def disconnect(self, transport_ref: str) -> list[Delivery]:
        """Remove ``transport_ref``'s seat from every session holding one."""
        deliveries = []
        for session in self.manager.sessions_for_transport(transport_ref):
            deliveries.extend(await self._run(session, Disconnect(transport_ref), None))
        return deliveries

    async def _run(
        self,
        session: Session,
        command: Command,
        transport_ref: str | None,
    ) -> list[Delivery]:
        async with session.lock:
            # The session may have been removed while we waited for the lock
            if self.manager.get_session(session.session_id) is not session:
                if command.command_type in (CommandType.SCRIPTED_MOVE, CommandType.BEGIN_ROUND):
                    return []
                result = CommandResult.failure(
                    "Game not found", ErrorCode.NOT_FOUND, session.session_id
                )
            else:
                result = session.machine.apply(command, transport_ref)
                session.touch()

            deliveries = self._address(session, result, transport_ref)

            if session.state.is_empty:
                self.manager.end_session(session.session_id, reason="empty")
            else:
                for deferred in result.deferred:
                    self._schedule(session.session_id, deferred.delay, deferred.command)

            await self.publish(deliveries)
        return deliveries

    def _schedule(self, session_id: str, delay: float, command: Command):
        async def fire():
            session = self.manager.get_session(session_id)
            if session is None:
                logger.warning(
                    "Dropping %s for removed session %s",
                    command.command_type.value, session_id,
                )
                return
            await self._run(session, command, None)

        self.scheduler.schedule(delay, fire)

    def _address(
        self,
        session: Session,
        result: CommandResult,
        transport_ref: str | None,
    ) -> list[Delivery]:
        """Turn event audiences into concrete transport references."""
        session_refs = [
            p.transport_ref for p in session.state.players
            if p.transport_ref is not None
        ]
        deliveries = []
        for event in result.events:
            if event.target == Target.SESSION:
                recipients = list(session_refs)
            else:
                recipients = [transport_ref] if transport_ref else []
            deliveries.append(Delivery(event, recipients))
        return deliveries

    async def publish(self, deliveries: list[Delivery]):
        if self.publisher and deliveries:
            await self.publisher(deliveries)
