"""
Game constants for Dalian Dagunzi.

This module defines the suits, ranks and table-level constants used
throughout the game: deck composition, dealing sizes, scoring thresholds
and the level ladder that team levels climb across rounds.
"""

from enum import Enum, IntEnum
from typing import Dict, List


# ============================================================================
# Suits and Ranks
# ============================================================================


class Suit(Enum):
    """Card suit. Carries display metadata only."""

    SPADE = "SPADE"
    HEART = "HEART"
    DIAMOND = "DIAMOND"
    CLUB = "CLUB"

    @property
    def symbol(self) -> str:
        return SUIT_SYMBOLS[self]

    @property
    def display_name(self) -> str:
        return SUIT_NAMES[self]


SUIT_SYMBOLS: Dict[Suit, str] = {
    Suit.SPADE: "♠",
    Suit.HEART: "♥",
    Suit.DIAMOND: "♦",
    Suit.CLUB: "♣",
}

SUIT_NAMES: Dict[Suit, str] = {
    Suit.SPADE: "Spades",
    Suit.HEART: "Hearts",
    Suit.DIAMOND: "Diamonds",
    Suit.CLUB: "Clubs",
}

SUITS: List[Suit] = list(Suit)


class Rank(IntEnum):
    """
    Card rank ordered by plain comparison value.

    Two ranks above Ace (the elevated-2 convention); jokers sit above
    every natural rank.
    """

    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14
    TWO = 15
    SMALL_JOKER = 16
    BIG_JOKER = 17

    @property
    def points(self) -> int:
        """Scoring value: 5 for Five, 10 for Ten and King, 0 otherwise."""
        return RANK_POINTS.get(self, 0)

    @property
    def symbol(self) -> str:
        return RANK_SYMBOLS[self]

    @property
    def is_joker(self) -> bool:
        return self in (Rank.SMALL_JOKER, Rank.BIG_JOKER)


RANK_POINTS: Dict[Rank, int] = {Rank.FIVE: 5, Rank.TEN: 10, Rank.KING: 10}

RANK_SYMBOLS: Dict[Rank, str] = {
    Rank.THREE: "3",
    Rank.FOUR: "4",
    Rank.FIVE: "5",
    Rank.SIX: "6",
    Rank.SEVEN: "7",
    Rank.EIGHT: "8",
    Rank.NINE: "9",
    Rank.TEN: "10",
    Rank.JACK: "J",
    Rank.QUEEN: "Q",
    Rank.KING: "K",
    Rank.ACE: "A",
    Rank.TWO: "2",
    Rank.SMALL_JOKER: "SJ",
    Rank.BIG_JOKER: "BJ",
}

# The 13 ranks present in every suit, ascending
NATURAL_RANKS: List[Rank] = [rank for rank in Rank if not rank.is_joker]

# Team levels climb this ladder; TWO is the top level
LEVEL_ORDER: List[Rank] = list(NATURAL_RANKS)
STARTING_LEVEL = Rank.THREE


# ============================================================================
# Table constants
# ============================================================================

NUM_PLAYERS = 4
NUM_TEAMS = 2
DEFAULT_DECK_COPIES = 3
DEFAULT_JOKERS_PER_KIND = 3
DEFAULT_HAND_SIZE = 39
DEFAULT_KITTY_SIZE = 6
CARDS_PER_COPY = 52

# Minimum number of level-rank cards in one suit needed to declare it
DECLARE_MIN_COUNT = 2


# ============================================================================
# Scoring constants
# ============================================================================

DECLARER_WIN_THRESHOLD = 120  # declarer wins while defenders hold fewer points
TRIBUTE_LOW_THRESHOLD = 80
TRIBUTE_HIGH_THRESHOLD = 150
TRIBUTE_UNIT = 10
KITTY_MULTIPLIER = 2
BIG_JOKER_BLOOD = 2
SMALL_JOKER_BLOOD = 1
