"""
Pydantic Schemas for the gateway - wire contract for browser clients.

Inbound WebSocket messages are a discriminated union on ``type``; each
variant converts into exactly one engine command. Outbound messages are
``{"type": <event name>, "payload": {...}}``.

Error Codes:
- NOT_FOUND: Unknown session or participant
- INVALID_STATE: Command arrived in the wrong phase
- OUT_OF_TURN: Actor does not hold the turn
- ILLEGAL_BID: Bid out of range or not higher than the current bid
- FULL: Session has no free seat
- VALIDATION_ERROR: Message could not be parsed
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union
from pydantic import BaseModel, Field, TypeAdapter

from ..engine_core.commands import (
    AddScriptedOpponent,
    CallBluff,
    CreateSession,
    JoinSession,
    MakeBid,
    StartSession,
)


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    LOBBY = "lobby"
    ACTIVE = "active"
    FINISHED = "finished"


class ErrorCode(str, Enum):
    """Structured error codes."""
    NOT_FOUND = "NOT_FOUND"
    INVALID_STATE = "INVALID_STATE"
    OUT_OF_TURN = "OUT_OF_TURN"
    ILLEGAL_BID = "ILLEGAL_BID"
    FULL = "FULL"
    VALIDATION_ERROR = "VALIDATION_ERROR"


# =============================================================================
# Inbound messages (WebSocket)
# =============================================================================

_wire_config = {"populate_by_name": True}

PlayerName = Annotated[str, Field(min_length=1, max_length=40)]


class CreateSessionMessage(BaseModel):
    """Start a new game and take its first seat."""
    type: Literal["createSession"]
    name: PlayerName

    model_config = _wire_config

    def to_command(self) -> CreateSession:
        return CreateSession(name=self.name)


class JoinSessionMessage(BaseModel):
    """Take a free seat in a game that has not started."""
    type: Literal["joinSession"]
    session_id: str = Field(..., alias="sessionId")
    name: PlayerName

    model_config = _wire_config

    def to_command(self) -> JoinSession:
        return JoinSession(session_id=self.session_id, name=self.name)


class AddScriptedOpponentMessage(BaseModel):
    """Fill the free seat with the computer player."""
    type: Literal["addScriptedOpponent"]
    session_id: str = Field(..., alias="sessionId")

    model_config = _wire_config

    def to_command(self) -> AddScriptedOpponent:
        return AddScriptedOpponent(session_id=self.session_id)


class StartSessionMessage(BaseModel):
    type: Literal["startSession"]
    session_id: str = Field(..., alias="sessionId")

    model_config = _wire_config

    def to_command(self) -> StartSession:
        return StartSession(session_id=self.session_id)


class MakeBidMessage(BaseModel):
    """Raise the bid. Ranges are enforced by the engine (ILLEGAL_BID)."""
    type: Literal["makeBid"]
    session_id: str = Field(..., alias="sessionId")
    participant_id: str = Field(..., alias="participantId")
    count: int
    value: int

    model_config = _wire_config

    def to_command(self) -> MakeBid:
        return MakeBid(
            session_id=self.session_id,
            player_id=self.participant_id,
            count=self.count,
            value=self.value,
        )


class CallBluffMessage(BaseModel):
    type: Literal["callBluff"]
    session_id: str = Field(..., alias="sessionId")
    participant_id: str = Field(..., alias="participantId")

    model_config = _wire_config

    def to_command(self) -> CallBluff:
        return CallBluff(session_id=self.session_id, player_id=self.participant_id)


ClientMessage = Annotated[
    Union[
        CreateSessionMessage,
        JoinSessionMessage,
        AddScriptedOpponentMessage,
        StartSessionMessage,
        MakeBidMessage,
        CallBluffMessage,
    ],
    Field(discriminator="type"),
]

client_message_adapter = TypeAdapter(ClientMessage)


class ServerMessage(BaseModel):
    """Outbound event envelope."""
    type: str = Field(..., description="Event name, e.g. bid-made")
    payload: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Shared Models (REST)
# =============================================================================

class BidInfo(BaseModel):
    """The outstanding bid."""
    count: int
    value: int
    player_id: str


class PlayerInfo(BaseModel):
    """
    Player information for display.

    ``dice`` is only filled in while all hands are revealed.
    """
    player_id: str
    name: str
    dice_count: int
    is_turn: bool = False
    is_scripted: bool = False
    dice: Optional[list[int]] = None


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class GameStateResponse(BaseModel):
    """Public view of a session."""
    session_id: str
    status: SessionStatus
    players: list[PlayerInfo] = Field(default_factory=list)
    current_bid: Optional[BidInfo] = None
    current_turn_player_id: Optional[str] = None
    round_number: int = 0
    reveal_all: bool = False
    winner_id: Optional[str] = None
    api_version: str = "v1"


class SessionListResponse(BaseModel):
    """Response listing live sessions."""
    sessions: list[str]
    count: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    sessions: int = 0
