"""
Reducer - The session state machine.

The reducer is the single point of state mutation for a session.
All changes to a GameState must go through SessionMachine.apply().

Design principles:
- Validate, then apply: a rejected command never touches state
- Every accepted command returns the events it produced
- Timer-driven follow-ups (scripted move, next round) are returned as
  Deferred commands; the caller decides how to wait for them
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable
import logging
import random
import uuid

from .bid import Bid, is_higher, is_valid_range
from .commands import (
    Command, CommandType, CreateSession, JoinSession, AddScriptedOpponent,
    StartSession, MakeBid, CallBluff, Disconnect, ScriptedMove, BeginRound,
)
from .dice import roll_dice
from .errors import (
    GameError, NotFoundError, InvalidStateError, OutOfTurnError,
    IllegalBidError, SessionFullError,
)
from .events import Event, EventType, Deferred, CommandResult
from .state import GameState, Participant, RoundPhase
from ..config import GameConfig

if TYPE_CHECKING:
    from ..bots import BotPolicy

logger = logging.getLogger(__name__)


def new_player_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass
class SessionMachine:
    """
    Applies commands to one session's GameState.

    States: lobby -> active -> finished. Nothing leaves finished.
    """
    state: GameState
    config: GameConfig = field(default_factory=GameConfig)
    bot: BotPolicy | None = None
    rng: random.Random | None = None
    id_factory: Callable[[], str] = new_player_id

    @property
    def session_id(self) -> str:
        return self.state.session_id

    def apply(self, command: Command, transport_ref: str | None = None) -> CommandResult:
        """
        Apply a command to the session.

        ``transport_ref`` identifies the requester's connection; it is stored
        on participants who join and otherwise only used for routing.
        """
        handler = self._get_handler(command.command_type)
        try:
            return handler(command, transport_ref)
        except GameError as e:
            logger.info(
                "Rejected %s in session %s: %s",
                command.command_type.value, self.session_id, e.message,
            )
            return CommandResult.failure(e.message, e.code, self.session_id)

    def _get_handler(self, command_type: CommandType):
        handlers = {
            CommandType.CREATE_SESSION: self._handle_create,
            CommandType.JOIN_SESSION: self._handle_join,
            CommandType.ADD_SCRIPTED_OPPONENT: self._handle_add_scripted,
            CommandType.START_SESSION: self._handle_start,
            CommandType.MAKE_BID: self._handle_make_bid,
            CommandType.CALL_BLUFF: self._handle_call_bluff,
            CommandType.DISCONNECT: self._handle_disconnect,
            CommandType.SCRIPTED_MOVE: self._handle_scripted_move,
            CommandType.BEGIN_ROUND: self._handle_begin_round,
        }
        return handlers[command_type]

    # =========================================================================
    # Lobby
    # =========================================================================

    def _handle_create(self, command: CreateSession, transport_ref: str | None) -> CommandResult:
        if not self.state.is_empty:
            raise InvalidStateError("Game already created")

        # The creator holds a placeholder turn until the game starts
        player = self._seat(command.name, transport_ref, is_scripted=False)
        player.is_turn = True

        logger.info("Game created: %s by player %s", self.session_id, player.name)
        return CommandResult.ok([
            Event.to_requester(
                EventType.SESSION_CREATED, self.session_id,
                sessionId=self.session_id,
                participantId=player.player_id,
                game=self.state.snapshot(),
            ),
        ])

    def _handle_join(self, command: JoinSession, transport_ref: str | None) -> CommandResult:
        self._require_lobby()
        self._require_seat_free()

        player = self._seat(command.name, transport_ref, is_scripted=False)

        logger.info("Player %s joined game %s", player.name, self.session_id)
        game = self.state.snapshot()
        return CommandResult.ok([
            Event.to_requester(
                EventType.SESSION_JOINED, self.session_id,
                sessionId=self.session_id,
                participantId=player.player_id,
                game=game,
            ),
            Event.to_session(
                EventType.PARTICIPANT_JOINED, self.session_id,
                participant=player.to_dict(),
                game=game,
            ),
        ])

    def _handle_add_scripted(self, command: AddScriptedOpponent, transport_ref: str | None) -> CommandResult:
        self._require_lobby()
        self._require_seat_free()

        player = self._seat(self.config.scripted_name, None, is_scripted=True)

        logger.info("Computer player added to game %s", self.session_id)
        return CommandResult.ok([
            Event.to_session(
                EventType.SCRIPTED_OPPONENT_ADDED, self.session_id,
                participantId=player.player_id,
                game=self.state.snapshot(),
                message=f"{player.name} player added to the game.",
            ),
        ])

    def _handle_start(self, command: StartSession, transport_ref: str | None) -> CommandResult:
        if self.state.started:
            raise InvalidStateError("Game already started")
        if len(self.state.players) < 2:
            raise InvalidStateError("Need at least 2 players to start")

        first = self.state.players[0]
        self.state.started = True
        self.state.round_number = 1
        self.state.round_phase = RoundPhase.AWAITING_BID
        self.state.set_turn(first.player_id)

        logger.info("Game %s started", self.session_id)
        return CommandResult.ok(
            [
                Event.to_session(
                    EventType.SESSION_STARTED, self.session_id,
                    game=self.state.snapshot(),
                    message=f"Game started! {first.name}'s turn to bid.",
                ),
            ],
            self._scripted_follow_up(),
        )

    # =========================================================================
    # Bidding
    # =========================================================================

    def _handle_make_bid(self, command: MakeBid, transport_ref: str | None) -> CommandResult:
        player = self._require_actor(command.player_id, command.scripted)

        if not is_valid_range(command.count, command.value):
            raise IllegalBidError("Invalid bid! Count must be at least 1 and value between 1 and 6.")

        bid = Bid(count=command.count, value=command.value, player_id=player.player_id)
        if not is_higher(bid, self.state.current_bid):
            raise IllegalBidError(
                "Invalid bid! You must bid a higher count or same count with higher value."
            )

        # Next seat by position, eliminated seats included
        index = self.state.index_of(player.player_id)
        next_player = self.state.players[(index + 1) % len(self.state.players)]

        self.state.current_bid = bid
        self.state.set_turn(next_player.player_id)

        logger.info(
            "Player %s bid %d %ss in game %s",
            player.name, bid.count, bid.value, self.session_id,
        )
        return CommandResult.ok(
            [
                Event.to_session(
                    EventType.BID_MADE, self.session_id,
                    bid=bid.to_dict(),
                    nextActorId=next_player.player_id,
                    game=self.state.snapshot(),
                    message=(
                        f"{player.name} bid {bid.count} {bid.value}s. "
                        f"{next_player.name}'s turn!"
                    ),
                ),
            ],
            self._scripted_follow_up(),
        )

    def _handle_call_bluff(self, command: CallBluff, transport_ref: str | None) -> CommandResult:
        challenger = self._require_actor(command.player_id, command.scripted)

        bid = self.state.current_bid
        if bid is None:
            raise InvalidStateError("No bid to call bluff on")
        bidder = self.state.get_player(bid.player_id)
        if bidder is None:
            raise NotFoundError("Player not found")

        # Resolve against the hands as they stand before anyone re-rolls
        revealed = {p.player_id: list(p.dice) for p in self.state.players}
        total = self.state.total_matching(bid.value)

        if total >= bid.count:
            loser = challenger
            message = (
                f"{challenger.name} called bluff, but there were {total} {bid.value}s. "
                f"{challenger.name} loses a die!"
            )
        else:
            loser = bidder
            message = (
                f"{challenger.name} called bluff! There were only {total} {bid.value}s. "
                f"{bidder.name} loses a die!"
            )

        self.state.reveal_all = True
        self.state.round_phase = RoundPhase.RESOLVING_BLUFF

        loser.dice_count -= 1
        loser.dice = roll_dice(loser.dice_count, self.rng)
        for player in self.state.players:
            if player is not loser and player.dice_count > 0:
                player.dice = roll_dice(player.dice_count, self.rng)

        logger.info(
            "Player %s called bluff in game %s: %d %ss on the table, %s loses a die",
            challenger.name, self.session_id, total, bid.value, loser.name,
        )
        events = [
            Event.to_session(
                EventType.BLUFF_RESOLVED, self.session_id,
                challengerId=challenger.player_id,
                loserId=loser.player_id,
                matchingCount=total,
                bidValue=bid.value,
                bidCount=bid.count,
                revealedHands=revealed,
                game=self.state.snapshot(),
                message=message,
            ),
        ]

        if any(p.dice_count == 0 for p in self.state.players):
            game_over = self._finish()
            if game_over is not None:
                events.append(game_over)
            return CommandResult.ok(events)

        self.state.round_phase = RoundPhase.ROUND_TRANSITION
        return CommandResult.ok(
            events,
            [
                Deferred(
                    delay=self.config.round_delay,
                    command=BeginRound(
                        session_id=self.session_id,
                        round_number=self.state.round_number,
                        challenger_id=challenger.player_id,
                    ),
                ),
            ],
        )

    def _finish(self) -> Event | None:
        """End the game. No game-over event when nobody is left holding dice."""
        winner = next((p for p in self.state.players if p.dice_count > 0), None)
        self.state.over = True
        self.state.winner_id = winner.player_id if winner else None
        self.state.set_turn(None)

        if winner is None:
            logger.warning("Game %s ended with no participant holding dice", self.session_id)
            return None

        message = f"Game over! {winner.name} wins!"
        logger.info("Game %s over. %s", self.session_id, message)
        return Event.to_session(
            EventType.GAME_OVER, self.session_id,
            winnerId=self.state.winner_id,
            game=self.state.snapshot(),
            message=message,
        )

    # =========================================================================
    # Deferred continuations
    # =========================================================================

    def _handle_begin_round(self, command: BeginRound, transport_ref: str | None) -> CommandResult:
        state = self.state
        if (
            state.over
            or state.round_phase != RoundPhase.ROUND_TRANSITION
            or state.round_number != command.round_number
        ):
            logger.warning("Ignoring stale round transition for game %s", self.session_id)
            return CommandResult.noop()

        challenger = state.get_player(command.challenger_id)
        if challenger is None:
            logger.warning(
                "Challenger %s left game %s before the next round",
                command.challenger_id, self.session_id,
            )
            return CommandResult.noop()

        state.current_bid = None
        state.reveal_all = False
        state.round_phase = RoundPhase.AWAITING_BID
        state.round_number += 1
        state.set_turn(challenger.player_id)

        logger.info("New round in game %s", self.session_id)
        return CommandResult.ok(
            [
                Event.to_session(
                    EventType.ROUND_STARTED, self.session_id,
                    game=state.snapshot(),
                    message=f"New round! {challenger.name}'s turn to bid.",
                ),
            ],
            self._scripted_follow_up(),
        )

    def _handle_scripted_move(self, command: ScriptedMove, transport_ref: str | None) -> CommandResult:
        state = self.state
        actor = state.current_player
        if (
            state.over
            or not state.started
            or state.turn_token != command.turn_token
            or actor is None
            or not actor.is_scripted
        ):
            logger.warning("Ignoring stale scripted move for game %s", self.session_id)
            return CommandResult.noop()
        if not state.human_players():
            logger.info("No human left in game %s; computer stays idle", self.session_id)
            return CommandResult.noop()
        if self.bot is None:
            logger.warning("No bot configured for game %s", self.session_id)
            return CommandResult.noop()

        opponent_dice = sum(p.dice_count for p in state.players if not p.is_scripted)
        decision = self.bot.decide(list(actor.dice), state.current_bid, opponent_dice)
        logger.debug("Scripted move in game %s: %s", self.session_id, decision)

        if decision.is_call_bluff:
            return self.apply(CallBluff(self.session_id, actor.player_id, scripted=True))
        return self.apply(
            MakeBid(
                self.session_id, actor.player_id,
                count=decision.count, value=decision.value, scripted=True,
            )
        )

    # =========================================================================
    # Transport
    # =========================================================================

    def _handle_disconnect(self, command: Disconnect, transport_ref: str | None) -> CommandResult:
        player = self.state.find_by_transport(command.transport_ref)
        if player is None:
            return CommandResult.noop()

        self.state.players.remove(player)

        logger.info("Player %s left game %s", player.name, self.session_id)
        return CommandResult.ok([
            Event.to_session(
                EventType.PARTICIPANT_LEFT, self.session_id,
                participantId=player.player_id,
                game=self.state.snapshot(),
                message=f"{player.name} has left the game.",
            ),
        ])

    # =========================================================================
    # Helpers
    # =========================================================================

    def _seat(self, name: str, transport_ref: str | None, is_scripted: bool) -> Participant:
        player = Participant(
            player_id=self._unique_player_id(),
            name=name,
            dice=roll_dice(self.config.starting_dice, self.rng),
            dice_count=self.config.starting_dice,
            is_turn=False,
            transport_ref=transport_ref,
            is_scripted=is_scripted,
        )
        self.state.players.append(player)
        return player

    def _unique_player_id(self) -> str:
        player_id = self.id_factory()
        while self.state.get_player(player_id) is not None:
            player_id = self.id_factory()
        return player_id

    def _require_lobby(self):
        if self.state.started:
            raise InvalidStateError("Game already started")

    def _require_seat_free(self):
        if len(self.state.players) >= self.config.max_players:
            raise SessionFullError("Game is full")

    def _require_actor(self, player_id: str, scripted: bool) -> Participant:
        """Validate that ``player_id`` may bid or call right now."""
        if not self.state.started:
            raise InvalidStateError("Game has not started")
        if self.state.over:
            raise InvalidStateError("Game is over")

        player = self.state.get_player(player_id)
        if player is None:
            raise NotFoundError("Player not found")
        if player.is_scripted != scripted:
            raise InvalidStateError(f"{player.name} is controlled by the server")
        if not player.is_turn:
            raise OutOfTurnError("Not your turn")
        if self.state.round_phase != RoundPhase.AWAITING_BID:
            raise InvalidStateError("Wait for the next round to start")
        return player

    def _scripted_follow_up(self) -> list[Deferred]:
        """Schedule the scripted opponent if it now holds the turn."""
        actor = self.state.current_player
        if actor is None or not actor.is_scripted:
            return []
        # Nobody to play against
        if not self.state.human_players():
            return []
        return [
            Deferred(
                delay=self.config.scripted_move_delay,
                command=ScriptedMove(self.session_id, self.state.turn_token),
            ),
        ]
