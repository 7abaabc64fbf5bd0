"""
Unit tests for trump ordering, play types and player hands.
"""

import pytest

from dagunzi.game.cards import Card
from dagunzi.game.constants import Rank, Suit
from dagunzi.game.player import Player
from dagunzi.game.plays import PlayType, combination_key, group_identical, resolve_play_type
from dagunzi.game.trump import TrumpInfo, tribute_value


def card(suit, rank, card_id):
    return Card(suit, rank, card_id)


def joker(rank, card_id):
    return Card(None, rank, card_id)


# ============================================================================
# Test TrumpInfo
# ============================================================================


class TestTrumpInfo:
    """Test trump classification and strength ordering."""

    def setup_method(self):
        self.trump = TrumpInfo(Suit.SPADE, Rank.FIVE)

    def test_is_trump(self):
        """Jokers, trump-rank cards and trump-suit cards are trump."""
        assert self.trump.is_trump(joker(Rank.BIG_JOKER, 1))
        assert self.trump.is_trump(joker(Rank.SMALL_JOKER, 2))
        assert self.trump.is_trump(card(Suit.HEART, Rank.FIVE, 3))
        assert self.trump.is_trump(card(Suit.SPADE, Rank.FOUR, 4))
        assert not self.trump.is_trump(card(Suit.HEART, Rank.ACE, 5))

    def test_two_is_not_automatically_trump(self):
        """Twos only become trump as the level rank or in the trump suit."""
        assert not self.trump.is_trump(card(Suit.HEART, Rank.TWO, 6))

    def test_strength_order(self):
        """BJ > SJ > level in trump suit > level off suit > trump suit > side suits."""
        ordered = [
            joker(Rank.BIG_JOKER, 1),
            joker(Rank.SMALL_JOKER, 2),
            card(Suit.SPADE, Rank.FIVE, 3),
            card(Suit.HEART, Rank.FIVE, 4),
            card(Suit.SPADE, Rank.TWO, 5),
            card(Suit.SPADE, Rank.ACE, 6),
            card(Suit.SPADE, Rank.THREE, 7),
            card(Suit.HEART, Rank.TWO, 8),
            card(Suit.HEART, Rank.ACE, 9),
            card(Suit.CLUB, Rank.THREE, 10),
        ]
        strengths = [self.trump.card_strength(c) for c in ordered]
        assert strengths == sorted(strengths, reverse=True)
        assert len(set(strengths[:8])) == 8

    def test_level_cards_off_suit_tie(self):
        """Level-rank cards outside the trump suit are equally strong."""
        hearts = card(Suit.HEART, Rank.FIVE, 1)
        clubs = card(Suit.CLUB, Rank.FIVE, 2)
        assert self.trump.card_strength(hearts) == self.trump.card_strength(clubs)

    def test_effective_suit(self):
        """Trump cards have no effective suit."""
        assert self.trump.effective_suit(card(Suit.HEART, Rank.FIVE, 1)) is None
        assert self.trump.effective_suit(card(Suit.SPADE, Rank.NINE, 2)) is None
        assert self.trump.effective_suit(card(Suit.CLUB, Rank.NINE, 3)) == Suit.CLUB

    def test_str(self):
        """String form names suit and rank."""
        assert str(self.trump) == "Trump(♠, 5)"

    def test_tribute_value(self):
        """Jokers first, then 2 > A > K."""
        values = [
            tribute_value(joker(Rank.BIG_JOKER, 1)),
            tribute_value(joker(Rank.SMALL_JOKER, 2)),
            tribute_value(card(Suit.CLUB, Rank.TWO, 3)),
            tribute_value(card(Suit.CLUB, Rank.ACE, 4)),
            tribute_value(card(Suit.CLUB, Rank.KING, 5)),
        ]
        assert values == sorted(values, reverse=True)
        assert len(set(values)) == 5


# ============================================================================
# Test Play Types
# ============================================================================


class TestPlayTypes:
    """Test play type resolution."""

    def test_single(self):
        assert resolve_play_type([card(Suit.HEART, Rank.NINE, 1)]) == PlayType.SINGLE

    def test_bang(self):
        """Two copies of one suit/rank form a Bang."""
        cards = [card(Suit.HEART, Rank.QUEEN, 1), card(Suit.HEART, Rank.QUEEN, 53)]
        assert resolve_play_type(cards) == PlayType.BANG

    def test_gunzi(self):
        """Three copies of one suit/rank form a Gunzi."""
        cards = [card(Suit.HEART, Rank.QUEEN, i) for i in (1, 53, 105)]
        assert resolve_play_type(cards) == PlayType.GUNZI

    def test_joker_bang(self):
        """Jokers of one kind combine."""
        cards = [joker(Rank.BIG_JOKER, 160), joker(Rank.BIG_JOKER, 161)]
        assert resolve_play_type(cards) == PlayType.BANG

    def test_mixed_ranks(self):
        """Different ranks form nothing."""
        cards = [card(Suit.HEART, Rank.KING, 1), card(Suit.HEART, Rank.NINE, 2)]
        assert resolve_play_type(cards) is None

    def test_mixed_suits(self):
        """Same rank in different suits forms nothing."""
        cards = [card(Suit.HEART, Rank.KING, 1), card(Suit.CLUB, Rank.KING, 2)]
        assert resolve_play_type(cards) is None

    def test_mixed_jokers(self):
        """A Big Joker and a Small Joker form nothing."""
        cards = [joker(Rank.BIG_JOKER, 1), joker(Rank.SMALL_JOKER, 2)]
        assert resolve_play_type(cards) is None

    def test_same_card_twice(self):
        """One physical card cannot be used twice."""
        queen = card(Suit.HEART, Rank.QUEEN, 1)
        assert resolve_play_type([queen, queen]) is None

    def test_invalid_counts(self):
        """Empty and four-card plays are not recognized."""
        assert resolve_play_type([]) is None
        cards = [card(Suit.HEART, Rank.QUEEN, i) for i in range(4)]
        assert resolve_play_type(cards) is None

    def test_card_count(self):
        assert PlayType.SINGLE.card_count == 1
        assert PlayType.BANG.card_count == 2
        assert PlayType.GUNZI.card_count == 3

    def test_group_identical(self):
        """Copies group under one (suit, rank) key."""
        cards = [
            card(Suit.HEART, Rank.QUEEN, 1),
            card(Suit.HEART, Rank.QUEEN, 53),
            card(Suit.CLUB, Rank.QUEEN, 2),
        ]
        groups = group_identical(cards)
        assert len(groups[(Suit.HEART, Rank.QUEEN)]) == 2
        assert len(groups[(Suit.CLUB, Rank.QUEEN)]) == 1

    def test_combination_key_ignores_copy(self):
        """Plays from different copies are interchangeable."""
        first = [card(Suit.HEART, Rank.QUEEN, 1)]
        second = [card(Suit.HEART, Rank.QUEEN, 53)]
        assert combination_key(first) == combination_key(second)


# ============================================================================
# Test Player Class
# ============================================================================


class TestPlayer:
    """Test Player class functionality."""

    def test_teams(self):
        """Seats 0/2 and 1/3 are partners."""
        assert [Player(i, f"P{i}").team for i in range(4)] == [0, 1, 0, 1]

    def test_add_and_remove(self):
        """Cards are removed by id."""
        player = Player(0, "Alice")
        first = card(Suit.HEART, Rank.QUEEN, 1)
        second = card(Suit.HEART, Rank.QUEEN, 53)
        player.add_cards([first, second])

        player.remove_cards([second])
        assert player.hand == [first]

    def test_remove_missing_card(self):
        """Removing a card not held raises ValueError."""
        player = Player(0, "Alice")
        player.add_cards([card(Suit.HEART, Rank.QUEEN, 1)])
        with pytest.raises(ValueError, match="does not hold"):
            player.remove_cards([card(Suit.HEART, Rank.QUEEN, 53)])

    def test_has_cards_multiset(self):
        """The same card cannot be counted twice."""
        player = Player(0, "Alice")
        queen = card(Suit.HEART, Rank.QUEEN, 1)
        player.add_cards([queen])
        assert player.has_cards([queen])
        assert not player.has_cards([queen, queen])

    def test_cards_of_suit(self):
        """Trump-rank cards leave their printed suit."""
        trump = TrumpInfo(Suit.SPADE, Rank.THREE)
        player = Player(1, "Bob")
        heart_three = card(Suit.HEART, Rank.THREE, 1)
        heart_nine = card(Suit.HEART, Rank.NINE, 2)
        spade_nine = card(Suit.SPADE, Rank.NINE, 3)
        player.add_cards([heart_three, heart_nine, spade_nine])

        assert player.cards_of_suit(Suit.HEART, trump) == [heart_nine]
        assert set(player.cards_of_suit(None, trump)) == {heart_three, spade_nine}
        assert set(player.trump_cards(trump)) == {heart_three, spade_nine}

    def test_sort_hand(self):
        """Hands sort strongest first."""
        trump = TrumpInfo(Suit.CLUB, Rank.THREE)
        player = Player(0, "Alice")
        low = card(Suit.HEART, Rank.FOUR, 1)
        trump_card = card(Suit.CLUB, Rank.FOUR, 2)
        big = joker(Rank.BIG_JOKER, 3)
        player.add_cards([low, trump_card, big])

        player.sort_hand(trump)
        assert player.hand == [big, trump_card, low]

    def test_reset_round(self):
        player = Player(0, "Alice")
        player.add_cards([card(Suit.HEART, Rank.QUEEN, 1)])
        player.reset_round()
        assert player.hand == []
