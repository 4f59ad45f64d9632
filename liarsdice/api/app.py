"""
FastAPI Application - WebSocket gateway and REST views.

Endpoints:
    WS     /api/v1/ws                   Play: send commands, receive events
    GET    /api/v1/sessions             List live sessions
    GET    /api/v1/sessions/{id}        Public view of one session
    GET    /health                      Health check

WebSocket protocol:
    Client -> server: {"type": "createSession", "name": "Ana"}
                      {"type": "makeBid", "sessionId": ..., "participantId": ..., "count": 2, "value": 3}
    Server -> client: {"type": "bid-made", "payload": {...}}

Every connection gets a server-issued transport reference; closing the
socket removes its seat from any session it joined.
"""

from contextlib import asynccontextmanager
from typing import Optional, Union
import asyncio
import json
import logging
import uuid

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .schemas import (
    ErrorCode,
    ErrorResponse,
    GameStateResponse,
    HealthResponse,
    ServerMessage,
    SessionListResponse,
)
from .service import GameService
from .. import __version__
from ..config import GameConfig
from ..session import Delivery

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_SECONDS = 60.0


class ConnectionManager:
    """Maps transport references to open WebSockets."""

    def __init__(self):
        self.active_connections: dict[str, WebSocket] = {}

    async def connect(self, websocket: WebSocket) -> str:
        await websocket.accept()
        transport_ref = uuid.uuid4().hex
        self.active_connections[transport_ref] = websocket
        return transport_ref

    def disconnect(self, transport_ref: str):
        self.active_connections.pop(transport_ref, None)

    async def publish(self, deliveries: list[Delivery]):
        """Send each event to its recipients, dropping connections that fail."""
        dead_connections = []
        for delivery in deliveries:
            message = ServerMessage(
                type=delivery.event.event_type.value,
                payload=delivery.event.payload,
            ).model_dump()
            for transport_ref in delivery.recipients:
                websocket = self.active_connections.get(transport_ref)
                if websocket is None:
                    continue
                try:
                    await websocket.send_json(message)
                except (RuntimeError, WebSocketDisconnect) as e:
                    logger.warning("Dropping connection %s: %s", transport_ref, e)
                    dead_connections.append(transport_ref)
        for transport_ref in dead_connections:
            self.disconnect(transport_ref)


def create_app(service: Optional[GameService] = None, config: Optional[GameConfig] = None):
    """
    Create the FastAPI application.

    Args:
        service: Optional GameService instance (creates new if not provided)
        config: Settings for a new service (read from env if not provided)

    Returns:
        FastAPI application instance
    """
    api_config = config or (service.config if service else GameConfig.from_env())
    api_service = service or GameService(config=api_config)
    connections = ConnectionManager()
    api_service.set_publisher(connections.publish)

    async def sweep_stale_sessions():
        while True:
            await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
            removed = api_service.cleanup()
            if removed:
                logger.info("Removed %d stale sessions", len(removed))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper = asyncio.create_task(sweep_stale_sessions())
        try:
            yield
        finally:
            sweeper.cancel()
            await asyncio.gather(sweeper, return_exceptions=True)
            await api_service.shutdown()

    app = FastAPI(
        title="Liar's Dice API",
        description="""
Two-seat liar's dice with an optional computer opponent.

## Playing

Open a WebSocket to `/api/v1/ws` and send JSON commands. Events come back
as `{"type": ..., "payload": ...}`; most carry a full `game` snapshot.

## Error Codes

| Code | Description |
|------|-------------|
| `NOT_FOUND` | Unknown session or participant |
| `INVALID_STATE` | Command arrived in the wrong phase |
| `OUT_OF_TURN` | Not your turn |
| `ILLEGAL_BID` | Bid out of range or not higher than the current bid |
| `FULL` | No free seat |
| `VALIDATION_ERROR` | Message could not be parsed |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=api_config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.service = api_service
    app.state.connections = connections

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """
        Play over a WebSocket.

        Messages from client: createSession, joinSession, addScriptedOpponent,
        startSession, makeBid, callBluff.

        Messages from server: session-created, session-joined, participant-joined,
        scripted-opponent-added, session-started, bid-made, bluff-resolved,
        round-started, game-over, participant-left, error.
        """
        transport_ref = await connections.connect(websocket)
        logger.info("Client connected: %s", transport_ref)

        try:
            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {
                            "message": "Invalid JSON",
                            "code": ErrorCode.VALIDATION_ERROR.value,
                        },
                    })
                    continue
                await api_service.handle_message(message, transport_ref)
        except WebSocketDisconnect:
            pass
        finally:
            logger.info("Client disconnected: %s", transport_ref)
            connections.disconnect(transport_ref)
            await api_service.disconnect(transport_ref)

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List live sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get the public view of a session",
    )
    async def get_session(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        """Hands stay hidden unless the table is revealed after a bluff call."""
        response = api_service.get_game_state(session_id)
        if isinstance(response, ErrorResponse):
            return JSONResponse(status_code=404, content=response.model_dump(mode="json"))
        return response

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="liarsdice",
            version=__version__,
            sessions=len(api_service.list_sessions()),
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Liar's Dice API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
            "websocket": "/api/v1/ws",
        }

    return app


# For running directly: uvicorn liarsdice.api.app:app
app = create_app()
