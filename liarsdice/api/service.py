"""
API Service - Business logic layer between the gateway and the engine.

The service:
1. Validates inbound messages and turns them into engine commands
2. Feeds commands through the serialized game loop
3. Builds REST views of sessions

This layer is framework-agnostic (can be used with FastAPI, a raw
websocket server, or tests).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
import logging

from pydantic import ValidationError

from .schemas import (
    BidInfo,
    ErrorCode,
    ErrorResponse,
    GameStateResponse,
    PlayerInfo,
    SessionStatus,
    client_message_adapter,
)
from ..config import GameConfig
from ..engine_core.events import Event, EventType, Target
from ..engine_core.state import GamePhase
from ..session import AsyncioScheduler, Delivery, GameLoop, Scheduler, Session, SessionManager
from ..session.game_loop import Publisher

logger = logging.getLogger(__name__)


@dataclass
class GameService:
    """
    Main service for browser clients.

    Usage:
        service = GameService(config=GameConfig.from_env())
        service.set_publisher(connections.publish)

        await service.handle_message({"type": "createSession", "name": "Ana"}, "conn-1")
        await service.disconnect("conn-1")
    """
    config: GameConfig = field(default_factory=GameConfig)
    session_manager: SessionManager | None = None
    scheduler: Scheduler = field(default_factory=AsyncioScheduler)
    game_loop: GameLoop = field(init=False)

    def __post_init__(self):
        if self.session_manager is None:
            self.session_manager = SessionManager(config=self.config)
        self.game_loop = GameLoop(self.session_manager, self.scheduler)

    def set_publisher(self, publisher: Publisher):
        self.game_loop.publisher = publisher

    async def handle_message(self, raw: Any, transport_ref: str) -> list[Delivery]:
        """
        Validate one inbound message and run it.

        Malformed messages produce a VALIDATION_ERROR event for the sender
        only; the engine never sees them.
        """
        try:
            message = client_message_adapter.validate_python(raw)
        except ValidationError as e:
            logger.warning("Rejected malformed message from %s: %s", transport_ref, e)
            deliveries = [Delivery(self._validation_error(e), [transport_ref])]
            await self.game_loop.publish(deliveries)
            return deliveries

        return await self.game_loop.submit(message.to_command(), transport_ref)

    async def disconnect(self, transport_ref: str) -> list[Delivery]:
        return await self.game_loop.disconnect(transport_ref)

    def get_game_state(self, session_id: str) -> GameStateResponse | ErrorResponse:
        """
        Get the public view of a session.
        """
        session = self.session_manager.get_session(session_id)
        if not session:
            return ErrorResponse(
                error="Game not found",
                error_code=ErrorCode.NOT_FOUND,
            )
        return self._build_game_state(session)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_sessions()

    def cleanup(self) -> list[str]:
        """Sweep abandoned sessions."""
        return self.session_manager.cleanup_stale_sessions()

    async def shutdown(self):
        await self.scheduler.shutdown()

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _validation_error(self, error: ValidationError) -> Event:
        first = error.errors()[0] if error.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = first.get("msg", "Invalid message")
        if location:
            message = f"{location}: {message}"
        return Event(
            event_type=EventType.ERROR,
            payload={"message": message, "code": ErrorCode.VALIDATION_ERROR.value},
            target=Target.REQUESTER,
        )

    def _build_game_state(self, session: Session) -> GameStateResponse:
        state = session.state
        status = {
            GamePhase.LOBBY: SessionStatus.LOBBY,
            GamePhase.ACTIVE: SessionStatus.ACTIVE,
            GamePhase.FINISHED: SessionStatus.FINISHED,
        }[state.phase]

        players = [
            PlayerInfo(
                player_id=p.player_id,
                name=p.name,
                dice_count=p.dice_count,
                is_turn=p.is_turn,
                is_scripted=p.is_scripted,
                dice=list(p.dice) if state.reveal_all else None,
            )
            for p in state.players
        ]

        current = state.current_player
        bid = state.current_bid
        return GameStateResponse(
            session_id=state.session_id,
            status=status,
            players=players,
            current_bid=(
                BidInfo(count=bid.count, value=bid.value, player_id=bid.player_id)
                if bid else None
            ),
            current_turn_player_id=current.player_id if current and state.started else None,
            round_number=state.round_number,
            reveal_all=state.reveal_all,
            winner_id=state.winner_id,
        )
