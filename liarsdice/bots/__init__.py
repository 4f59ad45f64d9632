"""
Bots module - Scripted opponent implementations.

Provides:
- BotPolicy: Interface for bot decision-making
- Heuristic helpers: probability estimate, most common face
- Personality: Configurable play styles
- HeuristicBot: The liar's dice computer player
"""

from .policy import BotPolicy, BotDecision, DecisionType
from .evaluator import estimate_bid_probability, most_common_face, face_counts
from .personality import (
    Personality, PERSONALITIES, get_personality, CLASSIC, CAUTIOUS, SUSPICIOUS,
)
from .dice_bot import HeuristicBot

__all__ = [
    "BotPolicy",
    "BotDecision",
    "DecisionType",
    "estimate_bid_probability",
    "most_common_face",
    "face_counts",
    "Personality",
    "PERSONALITIES",
    "get_personality",
    "CLASSIC",
    "CAUTIOUS",
    "SUSPICIOUS",
    "HeuristicBot",
]
