"""
Command System - Every way a session can be asked to change.

Commands represent:
1. Participant commands delivered by the gateway (create, join, bid, ...)
2. Transport notifications (disconnect)
3. Deferred continuations scheduled by the engine itself
   (scripted opponent move, round transition)

The set is closed: ``Command`` is the union of every variant, and each
variant carries its ``command_type`` tag so handlers can be looked up
exhaustively.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union


class CommandType(Enum):
    """Types of commands accepted by the engine."""
    # Participant commands
    CREATE_SESSION = "createSession"
    JOIN_SESSION = "joinSession"
    ADD_SCRIPTED_OPPONENT = "addScriptedOpponent"
    START_SESSION = "startSession"
    MAKE_BID = "makeBid"
    CALL_BLUFF = "callBluff"

    # Transport notifications
    DISCONNECT = "disconnect"

    # Deferred continuations
    SCRIPTED_MOVE = "scriptedMove"
    BEGIN_ROUND = "beginRound"


@dataclass(frozen=True)
class CreateSession:
    command_type: ClassVar[CommandType] = CommandType.CREATE_SESSION
    name: str


@dataclass(frozen=True)
class JoinSession:
    command_type: ClassVar[CommandType] = CommandType.JOIN_SESSION
    session_id: str
    name: str


@dataclass(frozen=True)
class AddScriptedOpponent:
    command_type: ClassVar[CommandType] = CommandType.ADD_SCRIPTED_OPPONENT
    session_id: str


@dataclass(frozen=True)
class StartSession:
    command_type: ClassVar[CommandType] = CommandType.START_SESSION
    session_id: str


@dataclass(frozen=True)
class MakeBid:
    """
    Raise the current bid.

    ``scripted`` is set only when the bid was produced by the scripted
    opponent; humans cannot act for the scripted seat.
    """
    command_type: ClassVar[CommandType] = CommandType.MAKE_BID
    session_id: str
    player_id: str
    count: int
    value: int
    scripted: bool = False


@dataclass(frozen=True)
class CallBluff:
    command_type: ClassVar[CommandType] = CommandType.CALL_BLUFF
    session_id: str
    player_id: str
    scripted: bool = False


@dataclass(frozen=True)
class Disconnect:
    command_type: ClassVar[CommandType] = CommandType.DISCONNECT
    transport_ref: str


@dataclass(frozen=True)
class ScriptedMove:
    """Let the scripted opponent act, if it still holds turn ``turn_token``."""
    command_type: ClassVar[CommandType] = CommandType.SCRIPTED_MOVE
    session_id: str
    turn_token: int


@dataclass(frozen=True)
class BeginRound:
    """Reset the table after a bluff call and hand the turn to the challenger."""
    command_type: ClassVar[CommandType] = CommandType.BEGIN_ROUND
    session_id: str
    round_number: int
    challenger_id: str


Command = Union[
    CreateSession,
    JoinSession,
    AddScriptedOpponent,
    StartSession,
    MakeBid,
    CallBluff,
    Disconnect,
    ScriptedMove,
    BeginRound,
]
