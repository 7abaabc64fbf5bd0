"""
Play type resolution.

A play is one to three cards. Only three shapes exist:

    SINGLE  - any one card
    BANG    - two cards of identical suit and rank from different copies
    GUNZI   - three cards of identical suit and rank from different copies

Anything else (two different ranks, mixed suits, four cards) is not a
recognized play type.
"""

from collections import defaultdict
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from dagunzi.game.cards import Card
from dagunzi.game.constants import Rank, Suit


class PlayType(Enum):
    """Recognized combination shapes."""

    SINGLE = 1
    BANG = 2
    GUNZI = 3

    @property
    def card_count(self) -> int:
        return self.value


_TYPES_BY_COUNT = {play_type.card_count: play_type for play_type in PlayType}


def resolve_play_type(cards: Sequence[Card]) -> Optional[PlayType]:
    """
    Classify a proposed set of cards.

    Args:
        cards: Cards to classify

    Returns:
        The matching PlayType, or None if the cards form no recognized shape

    Examples:
        >>> resolve_play_type([q1])               # PlayType.SINGLE
        >>> resolve_play_type([q1, q2])           # PlayType.BANG (same suit/rank)
        >>> resolve_play_type([king, nine])       # None
    """
    play_type = _TYPES_BY_COUNT.get(len(cards))
    if play_type is None:
        return None
    if play_type is PlayType.SINGLE:
        return play_type

    first = cards[0]
    if any(card.rank != first.rank or card.suit != first.suit for card in cards):
        return None
    if len({card.id for card in cards}) != len(cards):
        return None
    return play_type


def group_identical(cards: Sequence[Card]) -> Dict[Tuple[Optional[Suit], Rank], List[Card]]:
    """Group cards by (suit, rank); each group can form combinations."""
    groups: Dict[Tuple[Optional[Suit], Rank], List[Card]] = defaultdict(list)
    for card in cards:
        groups[(card.suit, card.rank)].append(card)
    return dict(groups)


def find_combinations(cards: Sequence[Card], play_type: PlayType) -> List[List[Card]]:
    """
    All distinct Bangs or Gunzis formable from ``cards``, one per (suit, rank).

    Singles are returned one per card.
    """
    if play_type is PlayType.SINGLE:
        return [[card] for card in cards]
    size = play_type.card_count
    return [group[:size] for group in group_identical(cards).values() if len(group) >= size]


def combination_key(cards: Sequence[Card]) -> Tuple[Tuple[str, int], ...]:
    """Identity-free signature of a play; equal keys are interchangeable plays."""
    return tuple(
        sorted((card.suit.name if card.suit else "", int(card.rank)) for card in cards)
    )
