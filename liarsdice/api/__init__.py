"""
API Module - Browser-facing gateway.

Exposes the engine over a WebSocket for play plus a few REST views.
The browser client:
1. Opens a WebSocket and creates or joins a game
2. Optionally adds the computer opponent
3. Sends bids and bluff calls
4. Receives every event for its session

All state is session-scoped. No accounts; a participant id is the only
identity and is trusted for the life of the session.
"""

from .schemas import (
    # Inbound
    ClientMessage,
    CreateSessionMessage,
    JoinSessionMessage,
    AddScriptedOpponentMessage,
    StartSessionMessage,
    MakeBidMessage,
    CallBluffMessage,
    # Outbound / REST
    ServerMessage,
    GameStateResponse,
    SessionListResponse,
    ErrorResponse,
    HealthResponse,
    PlayerInfo,
    BidInfo,
    # Enums
    ErrorCode,
    SessionStatus,
)
from .service import GameService
from .app import create_app, ConnectionManager

__all__ = [
    "ClientMessage",
    "CreateSessionMessage",
    "JoinSessionMessage",
    "AddScriptedOpponentMessage",
    "StartSessionMessage",
    "MakeBidMessage",
    "CallBluffMessage",
    "ServerMessage",
    "GameStateResponse",
    "SessionListResponse",
    "ErrorResponse",
    "HealthResponse",
    "PlayerInfo",
    "BidInfo",
    "ErrorCode",
    "SessionStatus",
    "GameService",
    "create_app",
    "ConnectionManager",
]
