"""
Error taxonomy for the game engine.

Every rule violation is recoverable by the caller: the state machine
raises one of these while validating, converts it into a targeted
``error`` event, and leaves the session untouched.
"""

from __future__ import annotations
from enum import Enum


class ErrorCode(Enum):
    """Machine-readable reason a command was rejected."""
    NOT_FOUND = "NOT_FOUND"
    INVALID_STATE = "INVALID_STATE"
    OUT_OF_TURN = "OUT_OF_TURN"
    ILLEGAL_BID = "ILLEGAL_BID"
    FULL = "FULL"


class GameError(Exception):
    """Base class for rejected commands."""
    code: ErrorCode = ErrorCode.INVALID_STATE

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(GameError):
    """Unknown session or participant."""
    code = ErrorCode.NOT_FOUND


class InvalidStateError(GameError):
    """Command arrived in the wrong phase."""
    code = ErrorCode.INVALID_STATE


class OutOfTurnError(GameError):
    """Actor does not hold the turn."""
    code = ErrorCode.OUT_OF_TURN


class IllegalBidError(GameError):
    """Bid is out of range or does not outrank the current bid."""
    code = ErrorCode.ILLEGAL_BID


class SessionFullError(GameError):
    """Session already seats its maximum number of participants."""
    code = ErrorCode.FULL


class SessionIdCollision(RuntimeError):
    """Could not allocate an unused session id. Not recoverable."""
