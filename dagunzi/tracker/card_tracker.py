"""
Card tracking for opponent modeling.

The tracker remembers what the table has revealed during a round:

    1. Every card played (and by whom)
    2. Suits a seat is known to be void in, revealed when the seat could
       not follow the lead's effective suit

Void knowledge uses effective suits: a seat that cannot follow a trump lead
is void in trump, recorded under the ``None`` key.

Lifecycle: reset at the start of every round, updated between turns by the
engine's listener hooks, read only by AI strategies.
"""

from collections import Counter, defaultdict
from typing import Dict, List, Optional, Set

from dagunzi.game.cards import Card, build_full_deck
from dagunzi.game.constants import (
    DEFAULT_DECK_COPIES,
    DEFAULT_JOKERS_PER_KIND,
    NUM_PLAYERS,
    Rank,
    Suit,
)
from dagunzi.game.engine import GameEngine, GameListener, PlayEvent


class CardTracker(GameListener):
    """
    Round-scoped memory of played cards and void suits.

    Attributes:
        all_cards: Every card of the deck in id order
        played: Cards played this round
        void_suits: Seat -> effective suits the seat is known not to hold
    """

    def __init__(
        self,
        deck_copies: int = DEFAULT_DECK_COPIES,
        jokers_per_kind: int = DEFAULT_JOKERS_PER_KIND,
    ):
        self.all_cards: List[Card] = build_full_deck(deck_copies, jokers_per_kind)
        self.played: Set[Card] = set()
        self.void_suits: Dict[int, Set[Optional[Suit]]] = {}
        self._played_by_seat: Dict[int, List[Card]] = defaultdict(list)
        self.reset()

    def reset(self) -> None:
        """Forget everything; called at the start of every round."""
        self.played = set()
        self.void_suits = {seat: set() for seat in range(NUM_PLAYERS)}
        self._played_by_seat = defaultdict(list)

    def attach(self, engine: GameEngine) -> None:
        """Follow a live engine: match its deck and listen to its events."""
        config = engine.config
        self.all_cards = build_full_deck(config.deck_copies, config.jokers_per_kind)
        self.reset()
        engine.add_listener(self)

    # ------------------------------------------------------------------
    # Listener hooks
    # ------------------------------------------------------------------

    def on_round_start(self, engine: GameEngine) -> None:
        self.reset()

    def on_play(self, event: PlayEvent) -> None:
        for card in event.cards:
            self.card_played(card, event.seat)
        if not event.followed_suit:
            self.mark_void_suit(event.seat, event.lead_suit)

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def card_played(self, card: Card, seat: int) -> None:
        if card not in self.played:
            self.played.add(card)
            self._played_by_seat[seat].append(card)

    def mark_void_suit(self, seat: int, suit: Optional[Suit]) -> None:
        """Record that a seat holds no cards of an effective suit (None = trump)."""
        self.void_suits.setdefault(seat, set()).add(suit)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_void(self, seat: int, suit: Optional[Suit]) -> bool:
        return suit in self.void_suits.get(seat, set())

    def void_suits_of(self, seat: int) -> Set[Optional[Suit]]:
        return set(self.void_suits.get(seat, set()))

    def played_cards(self) -> List[Card]:
        return sorted(self.played, key=lambda card: card.id)

    def cards_played_by(self, seat: int) -> List[Card]:
        return list(self._played_by_seat.get(seat, []))

    def remaining_card_count(self) -> int:
        return len(self.all_cards) - len(self.played)

    def remaining_cards_of_suit(self, suit: Suit) -> List[Card]:
        """Unplayed cards printed with this suit."""
        return [c for c in self.all_cards if c.suit == suit and c not in self.played]

    def remaining_cards_of_rank(self, rank: Rank) -> List[Card]:
        return [c for c in self.all_cards if c.rank == rank and c not in self.played]

    def remaining_count_of_suit(self, suit: Suit) -> int:
        return len(self.remaining_cards_of_suit(suit))

    def remaining_count_of_rank(self, rank: Rank) -> int:
        return len(self.remaining_cards_of_rank(rank))

    def remaining_points(self) -> int:
        """Points not yet played (held in hands or buried in the kitty)."""
        return sum(c.points for c in self.all_cards if c not in self.played)

    def played_by_suit(self) -> Dict[Suit, int]:
        counts = Counter(card.suit for card in self.played if card.suit is not None)
        return {suit: counts.get(suit, 0) for suit in Suit}

    def played_by_rank(self) -> Dict[Rank, int]:
        counts = Counter(card.rank for card in self.played)
        return {rank: counts.get(rank, 0) for rank in Rank}

    def __str__(self) -> str:
        voids = {
            seat: sorted(s.symbol if s else "trump" for s in suits)
            for seat, suits in self.void_suits.items()
            if suits
        }
        return f"CardTracker(played={len(self.played)}, voids={voids})"
