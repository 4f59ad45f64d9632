"""
Session Manager - Creates and tracks game sessions.

LIFECYCLE:
1. A participant asks to create a game -> new session (in-memory only)
2. Commands for the session run one at a time under its lock
3. The last participant disconnects -> session removed
4. Sessions with no human left that sit idle too long are swept by
   cleanup_stale_sessions()

PERSISTENCE RULES:
- NO database; sessions live for the life of the process
- The manager is the only place sessions are created or destroyed
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable
import asyncio
import logging
import random
import time
import uuid

from ..bots import BotPolicy, HeuristicBot, get_personality
from ..config import GameConfig
from ..engine_core.errors import SessionIdCollision
from ..engine_core.reducer import SessionMachine
from ..engine_core.state import GameState

logger = logging.getLogger(__name__)

MAX_ID_ATTEMPTS = 8


def new_session_id() -> str:
    return uuid.uuid4().hex[:6]


@dataclass
class Session:
    """
    An ephemeral game session.

    Contains:
    - The state machine (and through it the GameState)
    - A lock serializing every command for this session
    - Activity timestamps for stale-session cleanup
    """
    session_id: str
    machine: SessionMachine
    created_at: float
    last_activity: float
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def state(self) -> GameState:
        return self.machine.state

    def is_active(self) -> bool:
        """Check if the game can still change."""
        return not self.state.over

    def has_humans(self) -> bool:
        return bool(self.state.human_players())

    def touch(self):
        self.last_activity = time.time()


class SessionManager:
    """
    Registry of live sessions keyed by session id.

    Responsibilities:
    - Allocate session ids and build each session's state machine
    - Look sessions up by id or by a participant's transport reference
    - Remove sessions that are empty or abandoned
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        bot_factory: Callable[[], BotPolicy] | None = None,
        rng: random.Random | None = None,
        id_factory: Callable[[], str] = new_session_id,
    ):
        self.config = config or GameConfig()
        self.bot_factory = bot_factory or self._default_bot
        self.rng = rng
        self.id_factory = id_factory
        self._sessions: dict[str, Session] = {}

    def _default_bot(self) -> BotPolicy:
        return HeuristicBot(personality=get_personality(self.config.personality))

    def create_session(self) -> Session:
        """
        Create a new, empty session.

        Raises:
            SessionIdCollision: if no unused id could be generated
        """
        session_id = self._allocate_id()
        now = time.time()
        machine = SessionMachine(
            state=GameState(session_id=session_id),
            config=self.config,
            bot=self.bot_factory(),
            rng=self.rng,
        )
        session = Session(
            session_id=session_id,
            machine=machine,
            created_at=now,
            last_activity=now,
        )
        self._sessions[session_id] = session
        logger.info("Session %s created", session_id)
        return session

    def _allocate_id(self) -> str:
        for _ in range(MAX_ID_ATTEMPTS):
            session_id = self.id_factory()
            if session_id not in self._sessions:
                return session_id
        raise SessionIdCollision(
            f"Could not allocate a free session id after {MAX_ID_ATTEMPTS} attempts"
        )

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "empty") -> bool:
        """Remove a session. Returns False if it was already gone."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        logger.info("Session %s removed (%s)", session_id, reason)
        return True

    def sessions_for_transport(self, transport_ref: str) -> list[Session]:
        """Sessions in which ``transport_ref`` holds a seat."""
        return [
            session for session in self._sessions.values()
            if session.state.find_by_transport(transport_ref) is not None
        ]

    def list_active_sessions(self) -> list[str]:
        """List IDs of sessions whose game is not over."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def list_sessions(self) -> list[str]:
        return list(self._sessions)

    def cleanup_stale_sessions(self, max_idle_seconds: float | None = None) -> list[str]:
        """
        Remove sessions nobody can reach any more.

        A session is stale when no human participant remains and it has
        been idle longer than ``max_idle_seconds``.
        """
        if max_idle_seconds is None:
            max_idle_seconds = self.config.session_max_idle
        now = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if not session.has_humans() and now - session.last_activity > max_idle_seconds
        ]
        for session_id in stale:
            self.end_session(session_id, reason="stale")
        return stale

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions
