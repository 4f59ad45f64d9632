"""
Heuristic Bot - The scripted opponent.

Decision process:
1. No outstanding bid: open with a small random bid
2. Estimate the chance the outstanding bid is true
3. Below the bluff threshold: call bluff
4. Otherwise raise, leaning on the face the bot holds most of
5. Clamp to the minimal legal raise if the heuristic undershoots
"""

from __future__ import annotations
import logging
import random

from .policy import BotPolicy, BotDecision
from .personality import Personality, CLASSIC
from .evaluator import estimate_bid_probability, most_common_face
from ..engine_core.bid import Bid, is_higher, minimal_raise
from ..engine_core.dice import DIE_FACES

logger = logging.getLogger(__name__)


class HeuristicBot(BotPolicy):
    """
    Liar's dice opponent driven by a probability estimate.

    Uses:
    - Personality for thresholds
    - An injectable random source for reproducible play
    """

    def __init__(
        self,
        personality: Personality | None = None,
        rng: random.Random | None = None,
    ):
        self.personality = personality or CLASSIC
        self.rng = rng or random.Random()

    def decide(
        self,
        hand: list[int],
        current_bid: Bid | None,
        opponent_dice_total: int,
    ) -> BotDecision:
        if current_bid is None:
            return self._opening_bid()

        probability = estimate_bid_probability(hand, current_bid, opponent_dice_total)
        logger.debug(
            "%s weighs %d %ss against %d opponent dice: p=%.3f",
            self.personality.name, current_bid.count, current_bid.value,
            opponent_dice_total, probability,
        )

        if probability < self.personality.bluff_threshold:
            return BotDecision.call_bluff(
                probability,
                explanation=f"p={probability:.3f} below {self.personality.bluff_threshold}",
            )

        count, value = self._raise(hand, current_bid)
        return BotDecision.new_bid(
            count, value, probability,
            explanation=f"raise over {current_bid.count} {current_bid.value}s",
        )

    def _opening_bid(self) -> BotDecision:
        count = self.rng.randint(1, self.personality.opening_max_count)
        value = self.rng.randint(1, DIE_FACES)
        return BotDecision.new_bid(count, value, explanation="opening bid")

    def _raise(self, hand: list[int], current_bid: Bid) -> tuple[int, int]:
        """Pick a new (count, value) that outranks ``current_bid``."""
        max_value, max_count = most_common_face(hand)
        new_count, new_value = current_bid.count, current_bid.value

        if max_count >= 2:
            if max_value > current_bid.value:
                new_value = max_value
            elif max_value < current_bid.value:
                new_count = current_bid.count + 1
                new_value = max_value
            else:
                new_count = current_bid.count + 1
        else:
            roll = self.rng.random()
            if roll < self.personality.value_raise_chance and current_bid.value < DIE_FACES:
                new_value = current_bid.value + 1
            else:
                new_count = current_bid.count + 1
                new_value = self.rng.randint(1, DIE_FACES)

        candidate = Bid(count=new_count, value=new_value, player_id=current_bid.player_id)
        if not is_higher(candidate, current_bid):
            candidate = minimal_raise(current_bid, current_bid.player_id)
        return candidate.count, candidate.value
