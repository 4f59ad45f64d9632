"""
Tests for bid ordering and dice rolling.
"""

import random

import pytest

from ..engine_core.bid import Bid, is_higher, is_valid_range, minimal_raise
from ..engine_core.dice import DIE_FACES, roll_dice


class TestBidOrdering:
    """Tests for is_higher."""

    def test_anything_beats_no_bid(self):
        assert is_higher(Bid(1, 1, "p1"), None)

    def test_more_dice_wins_regardless_of_face(self):
        assert is_higher(Bid(3, 1, "p1"), Bid(2, 6, "p2"))

    def test_same_count_needs_higher_face(self):
        assert is_higher(Bid(2, 4, "p1"), Bid(2, 3, "p2"))
        assert not is_higher(Bid(2, 3, "p1"), Bid(2, 3, "p2"))
        assert not is_higher(Bid(2, 2, "p1"), Bid(2, 3, "p2"))

    def test_fewer_dice_never_wins(self):
        assert not is_higher(Bid(1, 6, "p1"), Bid(2, 1, "p2"))

    def test_ordering_ignores_bidder(self):
        assert not is_higher(Bid(2, 3, "p2"), Bid(2, 3, "p1"))


class TestBidRange:
    """Tests for is_valid_range."""

    @pytest.mark.parametrize("count,value", [(1, 1), (1, 6), (30, 3)])
    def test_valid(self, count, value):
        assert is_valid_range(count, value)

    @pytest.mark.parametrize("count,value", [(0, 3), (-1, 3), (2, 0), (2, 7)])
    def test_invalid(self, count, value):
        assert not is_valid_range(count, value)


class TestMinimalRaise:
    """Tests for minimal_raise."""

    def test_bumps_face(self):
        bid = minimal_raise(Bid(2, 3, "p1"), "p2")
        assert (bid.count, bid.value, bid.player_id) == (2, 4, "p2")

    def test_after_six_adds_a_die_of_ones(self):
        bid = minimal_raise(Bid(2, 6, "p1"), "p2")
        assert (bid.count, bid.value) == (3, 1)

    def test_result_always_outranks(self):
        for count in range(1, 4):
            for value in range(1, DIE_FACES + 1):
                reference = Bid(count, value, "p1")
                assert is_higher(minimal_raise(reference, "p2"), reference)


class TestBidSerialization:
    def test_to_dict_uses_wire_names(self):
        assert Bid(2, 5, "p1").to_dict() == {"count": 2, "value": 5, "playerId": "p1"}


class TestRollDice:
    """Tests for roll_dice."""

    def test_roll_length_and_faces(self):
        dice = roll_dice(50, random.Random(3))
        assert len(dice) == 50
        assert all(1 <= d <= DIE_FACES for d in dice)

    def test_roll_zero(self):
        assert roll_dice(0) == []

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            roll_dice(-1)

    def test_seeded_rolls_repeat(self):
        assert roll_dice(5, random.Random(9)) == roll_dice(5, random.Random(9))
