"""
Event System - Everything the engine tells the outside world.

Every state change produces one or more events. An event names who
should receive it (the requester only, or every participant of the
session) but never how it gets there; the gateway owns delivery.

Follow-up work the engine needs done later (a scripted move, the next
round) is returned as ``Deferred`` entries alongside the events.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .commands import Command
from .errors import ErrorCode


class EventType(Enum):
    """Names of outbound events."""
    SESSION_CREATED = "session-created"
    ERROR = "error"
    SESSION_JOINED = "session-joined"
    PARTICIPANT_JOINED = "participant-joined"
    SCRIPTED_OPPONENT_ADDED = "scripted-opponent-added"
    SESSION_STARTED = "session-started"
    BID_MADE = "bid-made"
    BLUFF_RESOLVED = "bluff-resolved"
    ROUND_STARTED = "round-started"
    GAME_OVER = "game-over"
    PARTICIPANT_LEFT = "participant-left"


class Target(Enum):
    """Audience of an event."""
    REQUESTER = "requester"
    SESSION = "session"


@dataclass
class Event:
    """An outbound event with its payload and audience."""
    event_type: EventType
    payload: dict[str, Any]
    target: Target = Target.SESSION
    session_id: str | None = None

    def to_message(self) -> dict[str, Any]:
        """Wire form: {"type": ..., "payload": ...}."""
        return {"type": self.event_type.value, "payload": self.payload}

    @classmethod
    def error(cls, message: str, code: ErrorCode, session_id: str | None = None) -> Event:
        return cls(
            event_type=EventType.ERROR,
            payload={"message": message, "code": code.value},
            target=Target.REQUESTER,
            session_id=session_id,
        )

    @classmethod
    def to_requester(cls, event_type: EventType, session_id: str, **payload: Any) -> Event:
        return cls(event_type, dict(payload), Target.REQUESTER, session_id)

    @classmethod
    def to_session(cls, event_type: EventType, session_id: str, **payload: Any) -> Event:
        return cls(event_type, dict(payload), Target.SESSION, session_id)


@dataclass
class Deferred:
    """A command to re-enter the session's command path after ``delay`` seconds."""
    delay: float
    command: Command


@dataclass
class CommandResult:
    """
    Result of applying a command.

    Contains:
    - Whether the command was accepted
    - Events to deliver
    - Deferred follow-up commands
    - Error details (if rejected)
    """
    success: bool
    events: list[Event] = field(default_factory=list)
    deferred: list[Deferred] = field(default_factory=list)
    error: str | None = None
    error_code: ErrorCode | None = None

    @classmethod
    def failure(cls, error: str, error_code: ErrorCode, session_id: str | None = None) -> CommandResult:
        """Create a rejection carrying a single requester-only error event."""
        return cls(
            success=False,
            events=[Event.error(error, error_code, session_id)],
            error=error,
            error_code=error_code,
        )

    @classmethod
    def ok(cls, events: list[Event] | None = None, deferred: list[Deferred] | None = None) -> CommandResult:
        return cls(success=True, events=events or [], deferred=deferred or [])

    @classmethod
    def noop(cls) -> CommandResult:
        """Accepted but nothing happened (stale deferred task)."""
        return cls(success=True)

    def event_types(self) -> list[EventType]:
        return [e.event_type for e in self.events]
