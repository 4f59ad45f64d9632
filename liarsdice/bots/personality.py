"""
Bot Personalities - Configurable play styles.

Personalities adjust:
- Bluff threshold (how unlikely a bid must look before calling it)
- Value-raise chance (how often a weak hand bumps the face instead of the count)
- Opening bid size
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass
class Personality:
    """A scripted-opponent play style."""
    name: str
    description: str = ""

    # Call bluff when the estimated probability falls below this
    bluff_threshold: float = 0.3

    # With no pair in hand, chance of raising the face rather than the count
    value_raise_chance: float = 0.5

    # Opening bids draw their count from 1..opening_max_count
    opening_max_count: int = 3


# ============================================================================
# Predefined Personalities
# ============================================================================

CLASSIC = Personality(
    name="Classic",
    description="The original computer player",
)

CAUTIOUS = Personality(
    name="Cautious",
    description="Rarely calls bluff, keeps bids small",
    bluff_threshold=0.15,
    value_raise_chance=0.7,
    opening_max_count=2,
)

SUSPICIOUS = Personality(
    name="Suspicious",
    description="Calls bluff on anything that looks shaky",
    bluff_threshold=0.45,
    value_raise_chance=0.3,
)

PERSONALITIES: dict[str, Personality] = {
    "classic": CLASSIC,
    "cautious": CAUTIOUS,
    "suspicious": SUSPICIOUS,
}


def get_personality(name: str) -> Personality:
    """Look up a predefined personality by key."""
    try:
        return PERSONALITIES[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown personality {name!r}; choose from {sorted(PERSONALITIES)}"
        )
