"""
Bot Policy - Interface for scripted-opponent decision-making.

A BotPolicy looks at the bot's own hand, the outstanding bid and how many
dice its opponents hold, and returns a decision:
- call the current bid a bluff, or
- raise with a new bid
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..engine_core.bid import Bid


class DecisionType(Enum):
    CALL_BLUFF = "call_bluff"
    NEW_BID = "new_bid"


@dataclass
class BotDecision:
    """
    A decision made by a bot.

    Contains:
    - What to do (call bluff or bid)
    - The bid, when bidding
    - The estimated chance the outstanding bid is true
    - Explanation (for logs/debugging)
    """
    decision_type: DecisionType
    count: int | None = None
    value: int | None = None
    probability: float = 1.0
    explanation: str = ""

    @property
    def is_call_bluff(self) -> bool:
        return self.decision_type == DecisionType.CALL_BLUFF

    @classmethod
    def call_bluff(cls, probability: float, explanation: str = "") -> BotDecision:
        return cls(
            decision_type=DecisionType.CALL_BLUFF,
            probability=probability,
            explanation=explanation,
        )

    @classmethod
    def new_bid(
        cls,
        count: int,
        value: int,
        probability: float = 1.0,
        explanation: str = "",
    ) -> BotDecision:
        return cls(
            decision_type=DecisionType.NEW_BID,
            count=count,
            value=value,
            probability=probability,
            explanation=explanation,
        )


class BotPolicy(ABC):
    """
    Abstract base class for bot policies.

    Implementations must only ever return a bid that outranks
    ``current_bid``, and must not call a bluff when there is no bid.
    """

    @abstractmethod
    def decide(
        self,
        hand: list[int],
        current_bid: Bid | None,
        opponent_dice_total: int,
    ) -> BotDecision:
        """
        Choose the next move.

        Args:
            hand: The bot's own dice
            current_bid: Outstanding bid, or None at the start of a round
            opponent_dice_total: Dice held by everyone else

        Returns:
            BotDecision to call bluff or bid
        """
        pass
