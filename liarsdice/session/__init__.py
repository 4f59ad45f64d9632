"""
Session Module - Manages ephemeral game sessions.

A session represents one liar's dice match:
- Created when a participant asks for a new game
- Holds the authoritative state machine
- Serializes every command (human, scripted, timer-driven)
- Destroyed when its last participant leaves

Sessions are EPHEMERAL:
- No persistence to database
- Scoped to the lifetime of the process
"""

from .manager import SessionManager, Session
from .scheduler import Scheduler, AsyncioScheduler
from .game_loop import GameLoop, Delivery

__all__ = [
    "SessionManager",
    "Session",
    "Scheduler",
    "AsyncioScheduler",
    "GameLoop",
    "Delivery",
]
