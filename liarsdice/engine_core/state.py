"""
Game State - The authoritative in-memory record of one session.

Design principles:
- Mutated in place, but only by the state machine in reducer.py
- Participant order is turn order (insertion order)
- Serializable: snapshot() produces the payload every event carries

snapshot() includes every participant's dice and is broadcast to the whole
session, so hiding opponents' hands until revealAll is the client's job.
The REST view (GameService) is public and masks hands itself.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .bid import Bid


class GamePhase(Enum):
    """High-level session phases."""
    LOBBY = "lobby"
    ACTIVE = "active"
    FINISHED = "finished"


class RoundPhase(Enum):
    """Sub-phases of an active game."""
    AWAITING_BID = "awaiting_bid"
    RESOLVING_BLUFF = "resolving_bluff"
    ROUND_TRANSITION = "round_transition"


@dataclass
class Participant:
    """
    One seat in a session.

    A participant with no dice left is eliminated but stays in the
    sequence; only a disconnect removes the record.
    """
    player_id: str
    name: str
    dice: list[int] = field(default_factory=list)
    dice_count: int = 0
    is_turn: bool = False
    transport_ref: str | None = None  # Gateway routing only
    is_scripted: bool = False

    @property
    def is_eliminated(self) -> bool:
        return self.dice_count == 0

    def count_face(self, value: int) -> int:
        """How many dice in hand show ``value``."""
        return sum(1 for d in self.dice if d == value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.player_id,
            "name": self.name,
            "dice": list(self.dice),
            "diceCount": self.dice_count,
            "isTurn": self.is_turn,
            "isScripted": self.is_scripted,
        }


@dataclass
class GameState:
    """
    Complete state of one session.

    Invariants:
    - at most one participant holds the turn while the game is active
    - len(players) never exceeds the configured capacity
    """
    session_id: str
    players: list[Participant] = field(default_factory=list)
    current_bid: Bid | None = None
    started: bool = False
    over: bool = False
    winner_id: str | None = None
    reveal_all: bool = False

    round_phase: RoundPhase = RoundPhase.AWAITING_BID
    round_number: int = 0

    # Bumped on every turn hand-off; deferred tasks compare against it
    turn_token: int = 0

    @property
    def phase(self) -> GamePhase:
        if self.over:
            return GamePhase.FINISHED
        if self.started:
            return GamePhase.ACTIVE
        return GamePhase.LOBBY

    @property
    def current_player(self) -> Participant | None:
        for player in self.players:
            if player.is_turn:
                return player
        return None

    @property
    def winner(self) -> Participant | None:
        if self.winner_id is None:
            return None
        return self.get_player(self.winner_id)

    @property
    def is_empty(self) -> bool:
        return not self.players

    def get_player(self, player_id: str) -> Participant | None:
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None

    def index_of(self, player_id: str) -> int:
        for i, player in enumerate(self.players):
            if player.player_id == player_id:
                return i
        return -1

    def find_by_transport(self, transport_ref: str) -> Participant | None:
        for player in self.players:
            if player.transport_ref == transport_ref:
                return player
        return None

    def human_players(self) -> list[Participant]:
        return [p for p in self.players if not p.is_scripted]

    def total_matching(self, value: int) -> int:
        """Dice showing ``value`` across every hand."""
        return sum(p.count_face(value) for p in self.players)

    def set_turn(self, player_id: str | None):
        """Give the turn to exactly one participant (or nobody)."""
        for player in self.players:
            player.is_turn = player.player_id == player_id
        self.turn_token += 1

    def snapshot(self) -> dict[str, Any]:
        """
        Full game view carried by session-wide events.

        Hands are included unmasked; clients show only their own until
        ``revealAll`` is set.
        """
        winner = self.winner
        return {
            "id": self.session_id,
            "players": [p.to_dict() for p in self.players],
            "currentBid": self.current_bid.to_dict() if self.current_bid else None,
            "started": self.started,
            "over": self.over,
            "winner": winner.to_dict() if winner else None,
            "revealAll": self.reveal_all,
        }
