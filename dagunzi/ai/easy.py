"""
Easy computer player: cheap heuristics with a little randomness.

Leading:
    - Lead a strong non-trump Gunzi/Bang (King or better) when one is held
    - Sometimes clear small trumps with a low trump combination
    - Otherwise lead the lowest non-point card of the longest non-trump suit

Following:
    - Follow suit with the cheapest card that still wins when the trick is
      worth taking, otherwise play low
    - Dump point cards onto a trick the partner is winning
    - Trump in only when the trick already holds meaningful points

Easy is also the rollout policy of the Hard search, so every decision here
must stay fast.
"""

import random
from collections import Counter
from typing import List, Optional, Sequence

from dagunzi.ai.base import AIStrategy
from dagunzi.ai.heuristics import (
    MEANINGFUL_TRICK_POINTS,
    beats_current,
    cards_by_suit,
    fallback_play,
    find_combinations,
    highest_points_first,
    is_partner_winning,
    is_strong_rank,
    play_low,
    strength_key,
)
from dagunzi.game.cards import Card
from dagunzi.game.constants import DECLARE_MIN_COUNT, NUM_PLAYERS, SUITS, Rank, Suit
from dagunzi.game.engine import GameEngine
from dagunzi.game.player import Player
from dagunzi.game.plays import PlayType
from dagunzi.game.trump import TRUMP_SUIT_BASE, TrumpInfo

# Trump combinations weaker than a trump-suit Ten count as "small trumps"
SMALL_TRUMP_LIMIT = TRUMP_SUIT_BASE + int(Rank.TEN)


class EasyAI(AIStrategy):
    """Heuristic-random strategy."""

    name = "easy"

    def __init__(self, rng: Optional[random.Random] = None, small_trump_lead_chance: float = 0.3):
        self._rng = rng if rng is not None else random.Random()
        self.small_trump_lead_chance = small_trump_lead_chance

    def choose_trump_suit(self, hand: Sequence[Card], target_rank: Rank) -> Optional[Suit]:
        """Random suit among those holding two or more level-rank cards."""
        counts = Counter(c.suit for c in hand if c.rank == target_rank and c.suit is not None)
        eligible = [suit for suit in SUITS if counts[suit] >= DECLARE_MIN_COUNT]
        if not eligible:
            return None
        return self._rng.choice(eligible)

    def choose_kitty_cards(
        self, hand: Sequence[Card], kitty: Sequence[Card], trump_info: TrumpInfo
    ) -> List[Card]:
        """Bury low non-trump, non-point cards first; jokers last."""
        ordered = sorted(
            hand,
            key=lambda c: (
                c.is_joker,
                trump_info.is_trump(c),
                c.points > 0,
                trump_info.card_strength(c),
                c.id,
            ),
        )
        return ordered[: len(kitty)]

    def choose_cards(self, player: Player, engine: GameEngine) -> List[Card]:
        if engine.trick_plays_made == 0:
            choice = self.choose_lead(player, engine)
        else:
            choice = self.choose_follow(player, engine)
        if not engine.is_valid_play(player.id, choice):
            choice = fallback_play(player, engine)
        return choice

    # ------------------------------------------------------------------
    # Leading
    # ------------------------------------------------------------------

    def choose_lead(self, player: Player, engine: GameEngine) -> List[Card]:
        trump_info = engine.trump_info
        combo = self._combination_lead(player.hand, trump_info)
        if combo is not None:
            return combo

        grouped = cards_by_suit(player.hand, trump_info)
        side_suits = [grouped[suit] for suit in SUITS if grouped[suit]]
        if side_suits:
            longest = max(side_suits, key=len)
            non_point = [c for c in longest if c.points == 0]
            return [(non_point or longest)[0]]
        return [grouped[None][0]]

    def _combination_lead(self, hand: Sequence[Card], trump_info: TrumpInfo) -> Optional[List[Card]]:
        for play_type in (PlayType.GUNZI, PlayType.BANG):
            strong = [
                combo
                for combo in find_combinations(hand, play_type)
                if not trump_info.is_trump(combo[0]) and is_strong_rank(combo[0].rank)
            ]
            if strong:
                return max(strong, key=lambda combo: trump_info.card_strength(combo[0]))

        small_trumps = [
            combo
            for play_type in (PlayType.GUNZI, PlayType.BANG)
            for combo in find_combinations(hand, play_type)
            if trump_info.is_trump(combo[0])
            and combo[0].points == 0
            and trump_info.card_strength(combo[0]) < SMALL_TRUMP_LIMIT
        ]
        if small_trumps and self._rng.random() < self.small_trump_lead_chance:
            return min(small_trumps, key=lambda combo: trump_info.card_strength(combo[0]))
        return None

    # ------------------------------------------------------------------
    # Following
    # ------------------------------------------------------------------

    def choose_follow(self, player: Player, engine: GameEngine) -> List[Card]:
        """Follow logic shared with the Medium tier."""
        required = engine.current_trick_play_type.card_count
        if required == 1:
            return self._follow_single(player, engine)
        return self._follow_multi(player, engine, required)

    def _follow_single(self, player: Player, engine: GameEngine) -> List[Card]:
        trump_info = engine.trump_info
        lead_suit = engine.lead_suit()
        valid = sorted(engine.legal_single_cards(player.id), key=strength_key(trump_info))
        partner_winning = is_partner_winning(player.id, engine)
        points = engine.trick_points()
        last_to_play = engine.trick_plays_made == NUM_PLAYERS - 1

        following = any(trump_info.effective_suit(c) == lead_suit for c in valid)
        if partner_winning:
            dumps = [
                c
                for c in highest_points_first(valid, trump_info)
                if c.points > 0 and (following or not trump_info.is_trump(c))
            ]
            if dumps:
                return [dumps[0]]
            return play_low(valid, trump_info)

        if following:
            if points > 0 or last_to_play:
                winners = [c for c in valid if beats_current([c], engine)]
                if winners:
                    return [winners[0]]
            return play_low(valid, trump_info)

        if points >= MEANINGFUL_TRICK_POINTS:
            trumps = [c for c in valid if trump_info.is_trump(c) and beats_current([c], engine)]
            if trumps:
                return [trumps[0]]
        return play_low(valid, trump_info)

    def _follow_multi(self, player: Player, engine: GameEngine, required: int) -> List[Card]:
        trump_info = engine.trump_info
        play_type = engine.current_trick_play_type
        suit_cards = sorted(
            player.cards_of_suit(engine.lead_suit(), trump_info), key=strength_key(trump_info)
        )
        partner_winning = is_partner_winning(player.id, engine)
        worth_taking = (
            engine.trick_points() >= MEANINGFUL_TRICK_POINTS
            or engine.trick_plays_made == NUM_PLAYERS - 1
        )

        shapes = find_combinations(suit_cards, play_type)
        if shapes:
            if partner_winning:
                return max(shapes, key=lambda combo: sum(c.points for c in combo))
            if worth_taking:
                winners = [combo for combo in shapes if beats_current(combo, engine)]
                if winners:
                    return winners[0]
            return min(shapes, key=lambda combo: sum(c.points for c in combo))

        if len(suit_cards) >= required:
            if partner_winning:
                return highest_points_first(suit_cards, trump_info)[:required]
            return play_low(suit_cards, trump_info, required)

        need = required - len(suit_cards)
        suit_ids = {c.id for c in suit_cards}
        others = [c for c in player.hand if c.id not in suit_ids]

        if not suit_cards and not partner_winning and worth_taking:
            trumps = [c for c in others if trump_info.is_trump(c)]
            winners = [
                combo
                for combo in find_combinations(sorted(trumps, key=strength_key(trump_info)), play_type)
                if beats_current(combo, engine)
            ]
            if winners:
                return winners[0]

        if partner_winning:
            fillers = [c for c in highest_points_first(others, trump_info) if not trump_info.is_trump(c)]
            fillers += play_low([c for c in others if c not in fillers], trump_info, need)
        else:
            fillers = play_low(others, trump_info, need)
        return suit_cards + fillers[:need]
