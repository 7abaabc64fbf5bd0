"""
Candidate play generation for the Hard search.

Every candidate returned has passed ``engine.is_valid_play``, so the search
can only ever choose among legal plays. Interchangeable plays (same suits
and ranks drawn from different deck copies) are collapsed to one candidate.

Leading:
    every Gunzi and Bang, then singles spread from both ends of each suit
Following a single:
    the legal singles, spread from both ends
Following a Bang/Gunzi:
    only the matching combinations when the lead suit holds one, otherwise
    same-suit subsets; a seat short of the lead suit plays all its suit
    cards plus filler subsets
"""

from itertools import combinations, islice
from typing import List, Sequence, Set, Tuple

from dagunzi.ai.heuristics import cards_by_suit, find_combinations, strength_key
from dagunzi.game.cards import Card
from dagunzi.game.engine import GameEngine
from dagunzi.game.player import Player
from dagunzi.game.plays import PlayType, combination_key, group_identical


def generate_candidates(
    player: Player,
    engine: GameEngine,
    max_candidates: int = 20,
    max_combinations: int = 50,
) -> List[List[Card]]:
    """
    Enumerate legal plays for the seat to move.

    Args:
        player: Seat to move
        engine: Live (or simulated) engine
        max_candidates: Cap on the number of candidates returned
        max_combinations: Cap on subsets enumerated for multi-card follows

    Returns:
        Up to max_candidates distinct, validator-passing plays
    """
    trump_info = engine.trump_info
    seen: Set[Tuple] = set()
    result: List[List[Card]] = []

    def offer(cards: Sequence[Card]) -> None:
        key = combination_key(cards)
        if key in seen or len(result) >= max_candidates:
            return
        seen.add(key)
        if engine.is_valid_play(player.id, list(cards)):
            result.append(list(cards))

    if engine.trick_plays_made == 0:
        for play_type in (PlayType.GUNZI, PlayType.BANG):
            for combo in find_combinations(player.hand, play_type):
                offer(combo)
        spreads = [
            _spread(distinct_cards(suit_cards))
            for suit_cards in cards_by_suit(player.hand, trump_info).values()
        ]
        for card in _round_robin(spreads):
            offer([card])
        return result

    play_type = engine.current_trick_play_type
    required = play_type.card_count
    if required == 1:
        legal = sorted(engine.legal_single_cards(player.id), key=strength_key(trump_info))
        for card in _spread(distinct_cards(legal)):
            offer([card])
        return result

    suit_cards = sorted(
        player.cards_of_suit(engine.lead_suit(), trump_info), key=strength_key(trump_info)
    )
    shapes = find_combinations(suit_cards, play_type)
    if shapes:
        for combo in shapes:
            offer(combo)
        return result
    if len(suit_cards) >= required:
        pool = distinct_cards(suit_cards, copies=required)
        for combo in islice(combinations(pool, required), max_combinations):
            offer(combo)
        return result

    need = required - len(suit_cards)
    suit_ids = {c.id for c in suit_cards}
    others = sorted(
        (c for c in player.hand if c.id not in suit_ids), key=strength_key(trump_info)
    )
    if not suit_cards:
        for combo in find_combinations(others, play_type):
            offer(combo)
    pool = distinct_cards(others, copies=need)
    for fill in islice(combinations(pool, need), max_combinations):
        offer(suit_cards + list(fill))
    return result


def distinct_cards(cards: Sequence[Card], copies: int = 1) -> List[Card]:
    """Keep at most ``copies`` cards of each (suit, rank), preserving order."""
    kept: List[Card] = []
    for group in group_identical(cards).values():
        kept.extend(group[:copies])
    order = {card.id: index for index, card in enumerate(cards)}
    return sorted(kept, key=lambda card: order[card.id])


def _spread(cards: Sequence[Card]) -> List[Card]:
    """Interleave from both ends: lowest, highest, second lowest, ..."""
    spread: List[Card] = []
    low, high = 0, len(cards) - 1
    while low <= high:
        spread.append(cards[low])
        if high != low:
            spread.append(cards[high])
        low += 1
        high -= 1
    return spread


def _round_robin(groups: Sequence[Sequence[Card]]) -> List[Card]:
    """Take one card from each group in turn until all are exhausted."""
    merged: List[Card] = []
    depth = max((len(group) for group in groups), default=0)
    for index in range(depth):
        for group in groups:
            if index < len(group):
                merged.append(group[index])
    return merged
