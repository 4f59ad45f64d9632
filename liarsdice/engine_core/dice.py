"""
Dice Roller - Produces fresh hands of six-sided dice.

Rolling has no hidden state of its own; it only consumes entropy from the
random source it is given (the module-level ``random`` by default), so it
can be called any number of times per session. Tests inject a seeded
``random.Random`` for reproducible hands.
"""

from __future__ import annotations
import random

DIE_FACES = 6


def roll_dice(count: int, rng: random.Random | None = None) -> list[int]:
    """
    Roll ``count`` independent dice, each uniform in 1..6.

    Returns an empty list for a count of zero.
    """
    if count < 0:
        raise ValueError(f"Cannot roll a negative number of dice: {count}")
    source = rng or random
    return [source.randint(1, DIE_FACES) for _ in range(count)]
