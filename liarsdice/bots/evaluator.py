"""
Heuristic Evaluator - Cheap estimates the scripted opponent relies on.

The probability estimate is deliberately rough: it multiplies
(1/6) * (remaining opponent dice) / k for each extra matching die the bid
still needs, then clamps to [0, 1]. It is not a binomial tail and should
not be "corrected"; the opponent's behaviour depends on this exact shape.
"""

from __future__ import annotations

from ..engine_core.bid import Bid
from ..engine_core.dice import DIE_FACES

PROB_PER_DIE = 1 / DIE_FACES


def face_counts(hand: list[int]) -> list[int]:
    """Frequency of each face; index 0 is unused."""
    counts = [0] * (DIE_FACES + 1)
    for value in hand:
        counts[value] += 1
    return counts


def most_common_face(hand: list[int]) -> tuple[int, int]:
    """
    Return (value, count) of the most frequent face in ``hand``.

    Faces are scanned 1..6 and only a strictly larger count replaces the
    best so far, so ties go to the lowest face. An empty hand gives (1, 0).
    """
    counts = face_counts(hand)
    best_value, best_count = 1, 0
    for value in range(1, DIE_FACES + 1):
        if counts[value] > best_count:
            best_value, best_count = value, counts[value]
    return best_value, best_count


def estimate_bid_probability(hand: list[int], bid: Bid, opponent_dice_total: int) -> float:
    """
    Rough chance that ``bid`` is true from the holder of ``hand``.

    1.0 when the hand already covers the bid, 0.0 when opponents do not
    hold enough dice to make up the difference.
    """
    have = sum(1 for d in hand if d == bid.value)
    needed = bid.count - have

    if needed <= 0:
        return 1.0
    if needed > opponent_dice_total:
        return 0.0

    probability = 1.0
    for i in range(needed):
        probability *= PROB_PER_DIE * (opponent_dice_total - i) / (i + 1)
    return min(1.0, max(0.0, probability))
