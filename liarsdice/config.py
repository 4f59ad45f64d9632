"""
Configuration - Tunable constants for the engine and the server.

Values come from environment variables (``GameConfig.from_env()``) with
defaults matching the classic two-seat game. Bad values fail at startup.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import os

ENV_PREFIX = "LIARSDICE_"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}")


@dataclass
class GameConfig:
    """
    Engine and server settings.

    Delays are in seconds.
    """
    max_players: int = 2
    starting_dice: int = 5
    scripted_name: str = "Computer"
    scripted_move_delay: float = 1.5
    round_delay: float = 3.0
    personality: str = "classic"
    session_max_idle: float = 3600.0
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    def __post_init__(self):
        if self.max_players < 2:
            raise ValueError("max_players must be at least 2")
        if self.starting_dice < 1:
            raise ValueError("starting_dice must be at least 1")
        if self.scripted_move_delay < 0 or self.round_delay < 0:
            raise ValueError("delays cannot be negative")

    @classmethod
    def from_env(cls) -> GameConfig:
        """Build a config from LIARSDICE_* environment variables."""
        return cls(
            max_players=_env_int("MAX_PLAYERS", 2),
            starting_dice=_env_int("STARTING_DICE", 5),
            scripted_name=os.getenv(ENV_PREFIX + "SCRIPTED_NAME", "Computer"),
            scripted_move_delay=_env_float("AI_DELAY", 1.5),
            round_delay=_env_float("ROUND_DELAY", 3.0),
            personality=os.getenv(ENV_PREFIX + "AI_PERSONALITY", "classic"),
            session_max_idle=_env_float("SESSION_MAX_IDLE", 3600.0),
            allowed_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
        )
