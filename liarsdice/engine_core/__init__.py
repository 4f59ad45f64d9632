"""
Engine Core - Authoritative liar's dice rules.

The engine is the runtime that:
1. Rolls dice
2. Orders bids
3. Holds each session's GameState
4. Applies commands through the SessionMachine
5. Emits events and deferred follow-ups for the gateway to deliver
"""

from .bid import Bid, is_higher, is_valid_range, minimal_raise
from .commands import (
    Command,
    CommandType,
    CreateSession,
    JoinSession,
    AddScriptedOpponent,
    StartSession,
    MakeBid,
    CallBluff,
    Disconnect,
    ScriptedMove,
    BeginRound,
)
from .dice import roll_dice, DIE_FACES
from .errors import (
    ErrorCode,
    GameError,
    NotFoundError,
    InvalidStateError,
    OutOfTurnError,
    IllegalBidError,
    SessionFullError,
    SessionIdCollision,
)
from .events import Event, EventType, Target, Deferred, CommandResult
from .reducer import SessionMachine
from .state import GameState, GamePhase, Participant, RoundPhase

__all__ = [
    "Bid",
    "is_higher",
    "is_valid_range",
    "minimal_raise",
    "Command",
    "CommandType",
    "CreateSession",
    "JoinSession",
    "AddScriptedOpponent",
    "StartSession",
    "MakeBid",
    "CallBluff",
    "Disconnect",
    "ScriptedMove",
    "BeginRound",
    "roll_dice",
    "DIE_FACES",
    "ErrorCode",
    "GameError",
    "NotFoundError",
    "InvalidStateError",
    "OutOfTurnError",
    "IllegalBidError",
    "SessionFullError",
    "SessionIdCollision",
    "Event",
    "EventType",
    "Target",
    "Deferred",
    "CommandResult",
    "SessionMachine",
    "GameState",
    "GamePhase",
    "Participant",
    "RoundPhase",
]
