"""Player seat: identity, team and hand."""

from collections import Counter
from typing import Iterable, List, Optional, Sequence

from dagunzi.game.cards import Card
from dagunzi.game.constants import SUITS, NUM_TEAMS, Suit
from dagunzi.game.trump import TrumpInfo


class Player:
    """
    One of the four seats at the table.

    Seats 0 and 2 form team 0, seats 1 and 3 form team 1.

    Attributes:
        id: Seat index (0-3)
        name: Display name
        hand: Cards currently held
        is_human: Whether decisions come from a human input adapter
    """

    def __init__(self, id: int, name: str, is_human: bool = False):
        self.id = id
        self.name = name
        self.is_human = is_human
        self.hand: List[Card] = []

    @property
    def team(self) -> int:
        return self.id % NUM_TEAMS

    def add_cards(self, cards: Iterable[Card]) -> None:
        """Add cards to the hand."""
        self.hand.extend(cards)

    def remove_cards(self, cards: Sequence[Card]) -> None:
        """
        Remove cards from the hand.

        Raises:
            ValueError: If any card is not held
        """
        if not self.has_cards(cards):
            missing = [str(card) for card in cards if card not in self.hand]
            raise ValueError(f"{self.name} does not hold {missing or list(map(str, cards))}")
        removing = {card.id for card in cards}
        self.hand = [card for card in self.hand if card.id not in removing]

    def has_cards(self, cards: Sequence[Card]) -> bool:
        """Multiset containment: every requested card, counted by id, is held."""
        held = Counter(card.id for card in self.hand)
        wanted = Counter(card.id for card in cards)
        return all(held[card_id] >= count for card_id, count in wanted.items())

    def cards_of_suit(self, suit: Optional[Suit], trump_info: TrumpInfo) -> List[Card]:
        """Cards whose effective suit is ``suit``; None selects the trump group."""
        return [card for card in self.hand if trump_info.effective_suit(card) == suit]

    def trump_cards(self, trump_info: TrumpInfo) -> List[Card]:
        return [card for card in self.hand if trump_info.is_trump(card)]

    def sort_hand(self, trump_info: Optional[TrumpInfo] = None) -> None:
        """Sort strongest first; without trump, by rank then suit order."""
        if trump_info is None:
            self.hand.sort(key=lambda c: (-int(c.rank), _suit_order(c), c.id))
        else:
            self.hand.sort(
                key=lambda c: (-trump_info.card_strength(c), _suit_order(c), c.id)
            )

    def reset_round(self) -> None:
        """Clear round-specific state."""
        self.hand = []

    def __str__(self) -> str:
        return f"Player({self.name}, seat={self.id}, team={self.team})"

    def __repr__(self) -> str:
        return self.__str__()


def _suit_order(card: Card) -> int:
    return SUITS.index(card.suit) if card.suit is not None else -1
