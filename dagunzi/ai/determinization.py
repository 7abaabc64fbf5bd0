"""
Determinization sampling for the Hard search.

This module implements determinization: turning the hidden-information
position seen by one seat into a concrete, fully known game by redealing
every card that seat cannot see. Searching many such worlds and averaging
the results approximates play under uncertainty.

Determinization Sampling Strategy:

Goal: Generate complete game states where hidden hands are revealed in a
      way that's consistent with the void suits observed so far.

Approach: Two-pass constrained fill
    1. Pool every hidden card: the other three hands, plus the kitty when
       the observer is not the dealer
    2. Shuffle the pool uniformly
    3. Pass one: fill the most constrained seats first, each taking only
       cards outside its known void suits
    4. Pass two: any seat still short takes leftover cards regardless of
       constraints (counted as violations)
    5. Whatever remains becomes the hidden kitty

Hand sizes are always preserved, so the sampled world is a legal position.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

import numpy as np

from dagunzi.game.cards import Card
from dagunzi.game.constants import NUM_PLAYERS, Suit
from dagunzi.game.engine import GameEngine
from dagunzi.game.trump import TrumpInfo
from dagunzi.tracker.card_tracker import CardTracker

logger = logging.getLogger(__name__)


@dataclass
class PlayerConstraints:
    """
    Constraints on what cards a hidden seat can hold.

    Attributes:
        seat: Seat index
        cards_in_hand: Number of cards the seat holds
        cannot_have_suits: Effective suits the seat is void in (None = trump)
    """

    seat: int
    cards_in_hand: int
    cannot_have_suits: Set[Optional[Suit]] = field(default_factory=set)

    def can_have_card(self, card: Card, trump_info: TrumpInfo) -> bool:
        return trump_info.effective_suit(card) not in self.cannot_have_suits


class Determinizer:
    """
    Samples consistent hidden hands for one observing seat.

    Attributes:
        rng: numpy Generator used for shuffling
        samples_drawn: Number of worlds sampled so far
        constraint_violations: Cards placed against a void constraint
    """

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.samples_drawn = 0
        self.constraint_violations = 0

    def build_constraints(
        self, engine: GameEngine, observer: int, tracker: Optional[CardTracker] = None
    ) -> Dict[int, PlayerConstraints]:
        """Constraints for every seat other than the observer."""
        constraints = {}
        for seat in range(NUM_PLAYERS):
            if seat == observer:
                continue
            voids = tracker.void_suits_of(seat) if tracker is not None else set()
            constraints[seat] = PlayerConstraints(
                seat=seat,
                cards_in_hand=len(engine.players[seat].hand),
                cannot_have_suits=voids,
            )
        return constraints

    def hidden_cards(self, engine: GameEngine, observer: int) -> Tuple[List[Card], bool]:
        """
        Cards the observer cannot see.

        Returns:
            (hidden cards, whether the kitty is among them)
        """
        hidden: List[Card] = []
        for seat in range(NUM_PLAYERS):
            if seat != observer:
                hidden.extend(engine.players[seat].hand)
        kitty_hidden = observer != engine.dealer_index and bool(engine.kitty)
        if kitty_hidden:
            hidden.extend(engine.kitty)
        return hidden, kitty_hidden

    def sample_determinization(
        self, engine: GameEngine, observer: int, tracker: Optional[CardTracker] = None
    ) -> Tuple[Dict[int, List[Card]], Optional[List[Card]]]:
        """
        Sample one consistent assignment of the hidden cards.

        Args:
            engine: Position to determinize
            observer: Seat whose knowledge is preserved
            tracker: Source of void-suit knowledge (optional)

        Returns:
            (seat -> hand, kitty or None when the kitty is known to the observer)
        """
        trump_info = engine.trump_info
        constraints = self.build_constraints(engine, observer, tracker)
        hidden, kitty_hidden = self.hidden_cards(engine, observer)

        order = self.rng.permutation(len(hidden))
        pool = [hidden[i] for i in order]

        # Most constrained seats choose first
        seats = sorted(
            constraints.values(), key=lambda c: (-len(c.cannot_have_suits), c.seat)
        )
        hands: Dict[int, List[Card]] = {c.seat: [] for c in seats}

        for constraint in seats:
            remaining: List[Card] = []
            hand = hands[constraint.seat]
            for card in pool:
                if len(hand) < constraint.cards_in_hand and constraint.can_have_card(card, trump_info):
                    hand.append(card)
                else:
                    remaining.append(card)
            pool = remaining

        for constraint in seats:
            hand = hands[constraint.seat]
            missing = constraint.cards_in_hand - len(hand)
            if missing > 0:
                hand.extend(pool[:missing])
                pool = pool[missing:]
                self.constraint_violations += missing
                logger.debug(
                    f"Seat {constraint.seat}: {missing} card(s) placed against void constraints"
                )

        self.samples_drawn += 1
        if kitty_hidden:
            return hands, pool
        return hands, None

    def create_determinized_game(
        self, engine: GameEngine, observer: int, tracker: Optional[CardTracker] = None
    ) -> GameEngine:
        """
        Copy the engine and install a sampled deal of the hidden cards.

        The original engine is not modified.
        """
        world = engine.copy()
        hands, kitty = self.sample_determinization(world, observer, tracker)
        world.redeal_hidden(hands, kitty)
        return world
