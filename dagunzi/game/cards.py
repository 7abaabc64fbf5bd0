"""
Card and Deck model for Dalian Dagunzi.

A table plays with several copies of the standard 52-card pack plus a fixed
number of small and big jokers. Physically distinct copies of the same
suit/rank are told apart by a unique ``id``; two cards are equal only when
their ids match. That is what lets a Bang (two identical cards) or a Gunzi
(three identical cards) be formed from different copies.
"""

import random
from dataclasses import dataclass
from typing import List, Optional

from dagunzi.game.constants import (
    CARDS_PER_COPY,
    DEFAULT_DECK_COPIES,
    DEFAULT_JOKERS_PER_KIND,
    NATURAL_RANKS,
    SUITS,
    Rank,
    Suit,
)
from dagunzi.game.exceptions import ResourceExhaustedException


# ============================================================================
# Card Class
# ============================================================================


@dataclass(frozen=True, eq=False)
class Card:
    """
    Immutable playing card.

    Attributes:
        suit: Printed suit, or None for jokers
        rank: Card rank
        id: Unique identifier across all deck copies
    """

    suit: Optional[Suit]
    rank: Rank
    id: int

    def __post_init__(self):
        """Validate card creation."""
        if self.rank.is_joker and self.suit is not None:
            raise ValueError(f"Jokers carry no suit, got {self.suit}")
        if not self.rank.is_joker and self.suit is None:
            raise ValueError(f"Non-joker card {self.rank.name} needs a suit")

    @property
    def points(self) -> int:
        return self.rank.points

    @property
    def is_joker(self) -> bool:
        return self.rank.is_joker

    @property
    def display_name(self) -> str:
        """Human readable name: 'Q♠', 'BJ'."""
        if self.suit is None:
            return self.rank.symbol
        return f"{self.rank.symbol}{self.suit.symbol}"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __copy__(self) -> "Card":
        return self

    def __deepcopy__(self, memo) -> "Card":
        # Immutable: engine copies share card objects
        return self

    def __str__(self) -> str:
        return self.display_name

    def __repr__(self) -> str:
        suit = self.suit.name if self.suit is not None else None
        return f"Card({suit}, {self.rank.name}, id={self.id})"


# ============================================================================
# Deck Class
# ============================================================================


class Deck:
    """
    Multi-copy deck with shuffling and sequential dealing.

    Ids are assigned in a fixed order: copy by copy (suits in declaration
    order, ranks ascending), then every small joker, then every big joker.

    Attributes:
        copies: Number of 52-card packs
        jokers_per_kind: Number of small jokers (and of big jokers)
        cards: Cards not yet dealt, in dealing order
    """

    def __init__(
        self,
        copies: int = DEFAULT_DECK_COPIES,
        jokers_per_kind: int = DEFAULT_JOKERS_PER_KIND,
        rng: Optional[random.Random] = None,
    ):
        if copies < 1:
            raise ValueError(f"copies must be at least 1, got {copies}")
        if jokers_per_kind < 0:
            raise ValueError(f"jokers_per_kind must be non-negative, got {jokers_per_kind}")

        self.copies = copies
        self.jokers_per_kind = jokers_per_kind
        self._rng = rng if rng is not None else random.Random()
        self.cards: List[Card] = []
        self.reset()

    @property
    def size(self) -> int:
        """Total number of cards in a full deck."""
        return self.copies * CARDS_PER_COPY + 2 * self.jokers_per_kind

    def reset(self) -> None:
        """Rebuild the full, unshuffled deck."""
        cards: List[Card] = []
        next_id = 0
        for _ in range(self.copies):
            for suit in SUITS:
                for rank in NATURAL_RANKS:
                    cards.append(Card(suit, rank, next_id))
                    next_id += 1
        for joker in (Rank.SMALL_JOKER, Rank.BIG_JOKER):
            for _ in range(self.jokers_per_kind):
                cards.append(Card(None, joker, next_id))
                next_id += 1
        self.cards = cards

    def shuffle(self) -> None:
        """Randomize card order with a uniform permutation."""
        self._rng.shuffle(self.cards)

    def deal(self, num_cards: int) -> List[Card]:
        """
        Deal cards from the top of the deck.

        Args:
            num_cards: Number of cards to take

        Returns:
            The dealt cards, in dealing order

        Raises:
            ResourceExhaustedException: If fewer than num_cards remain
        """
        if num_cards < 0:
            raise ValueError(f"num_cards must be non-negative, got {num_cards}")
        if num_cards > len(self.cards):
            raise ResourceExhaustedException(
                f"Cannot deal {num_cards} cards, only {len(self.cards)} remain"
            )

        dealt = self.cards[:num_cards]
        self.cards = self.cards[num_cards:]
        return dealt

    def remaining(self) -> int:
        """Return number of cards left in deck."""
        return len(self.cards)


def build_full_deck(
    copies: int = DEFAULT_DECK_COPIES,
    jokers_per_kind: int = DEFAULT_JOKERS_PER_KIND,
) -> List[Card]:
    """Return every card of an unshuffled deck, in id order."""
    return list(Deck(copies, jokers_per_kind).cards)
