"""
Common interface for computer players.

Every difficulty tier answers the same three questions the driver asks:

    choose_trump_suit  - which suit to declare, if any
    choose_kitty_cards - which cards the dealer buries
    choose_cards       - what to play on the live trick

Tiers are independent implementations; Medium and Hard compose an Easy
instance for shared follow logic and rollouts rather than subclassing it.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from dagunzi.game.cards import Card
from dagunzi.game.constants import Rank, Suit
from dagunzi.game.engine import GameEngine
from dagunzi.game.player import Player
from dagunzi.game.trump import TrumpInfo


class AIStrategy(ABC):
    """Decision-making capability shared by all difficulty tiers."""

    name: str = "ai"

    @abstractmethod
    def choose_trump_suit(self, hand: Sequence[Card], target_rank: Rank) -> Optional[Suit]:
        """
        Pick a suit to declare trump in.

        Args:
            hand: Cards currently held
            target_rank: Level rank of the seat's team

        Returns:
            Suit to declare, or None to pass
        """

    @abstractmethod
    def choose_kitty_cards(
        self, hand: Sequence[Card], kitty: Sequence[Card], trump_info: TrumpInfo
    ) -> List[Card]:
        """
        Pick the cards the dealer buries.

        Args:
            hand: Dealer's hand, including the picked-up kitty
            kitty: Kitty as dealt
            trump_info: Declared trump

        Returns:
            Exactly as many cards as the kitty holds, all from ``hand``
        """

    @abstractmethod
    def choose_cards(self, player: Player, engine: GameEngine) -> List[Card]:
        """
        Pick a play for the live trick.

        Returns:
            Cards that pass ``engine.is_valid_play`` for this seat
        """
