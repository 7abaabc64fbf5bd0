"""
Trump-aware card ordering.

Once a round's trump suit and trump rank are declared, every card gets a
strength used for trick comparison and an "effective suit" used for the
follow-suit rule. Trump cards (both jokers, every card of the trump rank,
every card of the trump suit) have no effective suit: they all belong to
the trump group.

Strength order, descending:
    Big Joker > Small Joker > trump rank in trump suit > trump rank in other
    suits > other trump-suit cards (by rank) > non-trump cards (by rank)
"""

from dataclasses import dataclass
from typing import Optional

from dagunzi.game.cards import Card
from dagunzi.game.constants import Rank, Suit


BIG_JOKER_STRENGTH = 1000
SMALL_JOKER_STRENGTH = 999
TRUMP_RANK_IN_SUIT_STRENGTH = 998
TRUMP_RANK_OFF_SUIT_STRENGTH = 997
TRUMP_SUIT_BASE = 900


@dataclass(frozen=True)
class TrumpInfo:
    """
    Declared trump for one round.

    Attributes:
        trump_suit: Declared trump suit
        trump_rank: Level rank of the declaring team
    """

    trump_suit: Optional[Suit]
    trump_rank: Rank

    def is_trump(self, card: Card) -> bool:
        """Jokers, trump-rank cards of any suit and trump-suit cards are trump."""
        if card.is_joker:
            return True
        if card.rank == self.trump_rank:
            return True
        return self.trump_suit is not None and card.suit == self.trump_suit

    def card_strength(self, card: Card) -> int:
        """
        Total-order strength used to compare cards within a trick.

        Args:
            card: Card to rate

        Returns:
            Integer strength; higher beats lower
        """
        rank = card.rank
        if rank == Rank.BIG_JOKER:
            return BIG_JOKER_STRENGTH
        if rank == Rank.SMALL_JOKER:
            return SMALL_JOKER_STRENGTH
        if rank == self.trump_rank:
            if self.trump_suit is not None and card.suit == self.trump_suit:
                return TRUMP_RANK_IN_SUIT_STRENGTH
            return TRUMP_RANK_OFF_SUIT_STRENGTH
        if self.trump_suit is not None and card.suit == self.trump_suit:
            return TRUMP_SUIT_BASE + rank.value
        return rank.value

    def effective_suit(self, card: Card) -> Optional[Suit]:
        """Suit used for follow legality; None for any trump card."""
        if self.is_trump(card):
            return None
        return card.suit

    @staticmethod
    def effective_rank_strength(rank: Rank) -> int:
        """Trump-less rank ordering: 2 > A > K > Q > ... > 3."""
        return int(rank)

    def __str__(self) -> str:
        suit = self.trump_suit.symbol if self.trump_suit is not None else "-"
        return f"Trump({suit}, {self.trump_rank.symbol})"


def tribute_value(card: Card) -> int:
    """Rank a card for tribute exchange: jokers highest, then 2 > A > K ..."""
    if card.rank == Rank.BIG_JOKER:
        return BIG_JOKER_STRENGTH
    if card.rank == Rank.SMALL_JOKER:
        return SMALL_JOKER_STRENGTH
    return TrumpInfo.effective_rank_strength(card.rank)
