"""
Bid Ordering - The single rule every bid must satisfy.

A bid claims "at least ``count`` dice showing ``value`` exist across all
hands". Bids are totally ordered by (count, value): a candidate beats the
reference when it names more dice, or the same number of dice of a higher
face. The first bid of a round is only range-checked.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any

from .dice import DIE_FACES


@dataclass(frozen=True)
class Bid:
    """An immutable claim made by one participant."""
    count: int
    value: int
    player_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"count": self.count, "value": self.value, "playerId": self.player_id}


def is_valid_range(count: int, value: int) -> bool:
    """Check the declared ranges: count >= 1, value in 1..6."""
    return count >= 1 and 1 <= value <= DIE_FACES


def is_higher(candidate: Bid, reference: Bid | None) -> bool:
    """
    Return True if ``candidate`` strictly outranks ``reference``.

    Any candidate outranks a missing reference.
    """
    if reference is None:
        return True
    if candidate.count > reference.count:
        return True
    return candidate.count == reference.count and candidate.value > reference.value


def minimal_raise(reference: Bid, player_id: str) -> Bid:
    """
    Smallest bid that outranks ``reference``.

    Same count with the next face; after a six, one more die of ones.
    """
    count = reference.count
    value = reference.value + 1
    if value > DIE_FACES:
        value = 1
        count += 1
    return Bid(count=count, value=value, player_id=player_id)
