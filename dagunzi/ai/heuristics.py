"""
Shared card-play heuristics used by every AI tier.

Helpers here read the live engine but never mutate it.
"""

from itertools import combinations
from typing import Dict, List, Optional, Sequence

from dagunzi.game.cards import Card
from dagunzi.game.constants import SUITS, Rank, Suit
from dagunzi.game.engine import GameEngine
from dagunzi.game.player import Player
from dagunzi.game.plays import PlayType, find_combinations
from dagunzi.game.trump import TrumpInfo


MEANINGFUL_TRICK_POINTS = 10


def strength_key(trump_info: TrumpInfo):
    """Sort key: weakest first, ties broken by id for determinism."""
    return lambda card: (trump_info.card_strength(card), card.id)


def is_partner_winning(seat: int, engine: GameEngine) -> bool:
    """True when the seat's partner is currently winning the trick."""
    winner = engine.current_winner()
    return winner is not None and winner == engine.partner_of(seat)


def play_low(cards: Sequence[Card], trump_info: TrumpInfo, count: int = 1) -> List[Card]:
    """
    Pick the cheapest cards to throw away.

    Non-trump non-point cards go first, then non-trump point cards, then
    trump; weaker before stronger within each group.
    """
    def cost(card: Card):
        is_trump = trump_info.is_trump(card)
        return (is_trump, card.points > 0, trump_info.card_strength(card), card.id)

    return sorted(cards, key=cost)[:count]


def highest_points_first(cards: Sequence[Card], trump_info: TrumpInfo) -> List[Card]:
    """Point cards first (most points, weakest), then the rest weakest first."""
    return sorted(
        cards,
        key=lambda c: (-c.points, trump_info.is_trump(c), trump_info.card_strength(c), c.id),
    )


def cards_by_suit(hand: Sequence[Card], trump_info: TrumpInfo) -> Dict[Optional[Suit], List[Card]]:
    """Hand grouped by effective suit (None = trump), weakest first."""
    grouped: Dict[Optional[Suit], List[Card]] = {suit: [] for suit in SUITS}
    grouped[None] = []
    for card in sorted(hand, key=strength_key(trump_info)):
        grouped[trump_info.effective_suit(card)].append(card)
    return grouped


def beats_current(cards: Sequence[Card], engine: GameEngine) -> bool:
    """Whether these cards would take the lead of the trick in progress."""
    trump_info = engine.trump_info
    winner = engine.current_winner()
    if winner is None:
        return True
    best = engine.competing_strength(winner)
    lead_suit = engine.lead_suit()
    play_type = engine.current_trick_play_type
    if play_type in (PlayType.BANG, PlayType.GUNZI):
        shapes = find_combinations(cards, play_type)
        if not shapes or len(cards) != play_type.card_count:
            return False
    strengths = [
        trump_info.card_strength(c)
        for c in cards
        if trump_info.is_trump(c) or trump_info.effective_suit(c) == lead_suit
    ]
    return bool(strengths) and max(strengths) > best


def fallback_play(player: Player, engine: GameEngine) -> List[Card]:
    """
    Any legal play, found by direct search.

    Used when a heuristic choice fails validation. Singles are tried first,
    then suit-first fills, then every combination of the required size.

    Raises:
        ValueError: If the seat has no legal play at all
    """
    trump_info = engine.trump_info
    hand = sorted(player.hand, key=strength_key(trump_info))
    if engine.trick_plays_made == 0:
        return [hand[0]]

    required = engine.current_trick_play_type.card_count
    suit_cards = player.cards_of_suit(engine.lead_suit(), trump_info)
    suit_cards.sort(key=strength_key(trump_info))
    shapes = find_combinations(suit_cards, engine.current_trick_play_type)
    if shapes:
        attempt = shapes[0]
    elif len(suit_cards) >= required:
        attempt = suit_cards[:required]
    else:
        others = [c for c in hand if c not in suit_cards]
        attempt = suit_cards + play_low(others, trump_info, required - len(suit_cards))
    if engine.is_valid_play(player.id, attempt):
        return attempt

    for combo in combinations(hand, required):
        if engine.is_valid_play(player.id, list(combo)):
            return list(combo)
    raise ValueError(f"{player.name} has no legal play")


def is_strong_rank(rank: Rank) -> bool:
    """King and above (Ace, Two) count as strong lead material."""
    return rank >= Rank.KING and not rank.is_joker
