"""
Medium computer player: deterministic heuristics with opponent modeling.

Adds to the Easy tier:
    - Trump declaration picks the suit with the best length + level-card count
    - Kitty burial keeps trump, point cards and long suits
    - Leads are chosen by a per-suit score built from CardTracker knowledge:
      suits where opponents are known void score higher, suits where the
      partner is void score lower, and suits that are mostly played out
      score higher

Following reuses the Easy tier's follow and partner-support logic.
"""

from collections import Counter
from typing import List, Optional, Sequence

from dagunzi.ai.base import AIStrategy
from dagunzi.ai.easy import EasyAI
from dagunzi.ai.heuristics import cards_by_suit, fallback_play
from dagunzi.game.cards import Card
from dagunzi.game.constants import DECLARE_MIN_COUNT, NUM_PLAYERS, SUITS, Rank, Suit
from dagunzi.game.engine import GameEngine
from dagunzi.game.player import Player
from dagunzi.game.plays import PlayType, group_identical
from dagunzi.game.trump import TrumpInfo
from dagunzi.tracker.card_tracker import CardTracker

OPPONENT_VOID_BONUS = 20
PARTNER_VOID_PENALTY = 30
PLAYED_OUT_BASELINE = 26


class MediumAI(AIStrategy):
    """Heuristic-deterministic strategy."""

    name = "medium"

    def __init__(self, tracker: Optional[CardTracker] = None, easy: Optional[EasyAI] = None):
        self.tracker = tracker
        self._easy = easy if easy is not None else EasyAI()

    def choose_trump_suit(self, hand: Sequence[Card], target_rank: Rank) -> Optional[Suit]:
        """Declarable suit maximising suit length plus level-rank count."""
        best_suit: Optional[Suit] = None
        best_score = -1
        for suit in SUITS:
            rank_count = sum(1 for c in hand if c.rank == target_rank and c.suit == suit)
            if rank_count < DECLARE_MIN_COUNT:
                continue
            length = sum(1 for c in hand if c.suit == suit)
            score = length + rank_count
            if score > best_score:
                best_suit, best_score = suit, score
        return best_suit

    def choose_kitty_cards(
        self, hand: Sequence[Card], kitty: Sequence[Card], trump_info: TrumpInfo
    ) -> List[Card]:
        """
        Bury the cards with the lowest keep-score.

        Keep-score:
            trump                 1000 + strength
            point card            500 + points + suit length
            card of a long suit   200 + rank + 10 * suit length   (length >= 5)
            anything else         rank + 10 * suit length

        Jokers are only buried when too few other cards remain.
        """
        lengths = Counter(trump_info.effective_suit(c) for c in hand)

        def keep_score(card: Card) -> int:
            if trump_info.is_trump(card):
                return 1000 + trump_info.card_strength(card)
            length = lengths[card.suit]
            if card.points > 0:
                return 500 + card.points + length
            if length >= 5:
                return 200 + int(card.rank) + 10 * length
            return int(card.rank) + 10 * length

        ordered = sorted(hand, key=lambda c: (c.is_joker, keep_score(c), c.id))
        return ordered[: len(kitty)]

    def choose_cards(self, player: Player, engine: GameEngine) -> List[Card]:
        if engine.trick_plays_made == 0:
            choice = self.choose_lead(player, engine)
        else:
            choice = self._easy.choose_follow(player, engine)
        if not engine.is_valid_play(player.id, choice):
            choice = fallback_play(player, engine)
        return choice

    def suit_lead_score(self, seat: int, suit: Suit, held: int) -> int:
        """Desirability of leading ``suit`` holding ``held`` cards of it."""
        score = 10 * held
        if self.tracker is None:
            return score
        partner = (seat + 2) % NUM_PLAYERS
        opponents = ((seat + 1) % NUM_PLAYERS, (seat + 3) % NUM_PLAYERS)
        score += OPPONENT_VOID_BONUS * sum(1 for o in opponents if self.tracker.is_void(o, suit))
        if self.tracker.is_void(partner, suit):
            score -= PARTNER_VOID_PENALTY
        score += max(0, PLAYED_OUT_BASELINE - self.tracker.remaining_count_of_suit(suit))
        return score

    def choose_lead(self, player: Player, engine: GameEngine) -> List[Card]:
        trump_info = engine.trump_info
        grouped = cards_by_suit(player.hand, trump_info)

        best_suit: Optional[Suit] = None
        best_score = None
        for suit in SUITS:
            if not grouped[suit]:
                continue
            score = self.suit_lead_score(player.id, suit, len(grouped[suit]))
            if best_score is None or score > best_score:
                best_suit, best_score = suit, score

        if best_suit is None:
            return [grouped[None][0]]

        cards = grouped[best_suit]
        ranks = {c.rank for c in cards}
        if Rank.ACE in ranks:
            lead_rank = Rank.ACE
        elif Rank.KING in ranks:
            lead_rank = Rank.KING
        else:
            lead_rank = cards[-1].rank

        group = group_identical(cards)[(best_suit, lead_rank)]
        size = min(len(group), PlayType.GUNZI.card_count)
        return group[:size]
