"""Shared fixtures for the AI tests."""

import itertools
import random

import pytest

from dagunzi.game.cards import Card
from dagunzi.game.constants import Suit
from dagunzi.game.engine import GameEngine

_ids = itertools.count(30_000)


@pytest.fixture
def make_card():
    """Factory for cards with ids outside the dealt deck (suit None = joker)."""

    def factory(suit, rank):
        return Card(suit, rank, next(_ids))

    return factory


@pytest.fixture
def make_position():
    """
    Factory for an engine in PLAYING with the given hands.

    Trump rank is the starting level (Three); the dealer re-buries the dealt
    kitty and leads first.
    """

    def factory(hands, trump_suit=Suit.SPADE, dealer=0, seed=3, listeners=()):
        engine = GameEngine(rng=random.Random(seed))
        for listener in listeners:
            listener.attach(engine)
        engine.start_new_round()
        for seat, cards in enumerate(hands):
            engine.players[seat].hand = list(cards)
        engine.declare_trump(dealer, trump_suit, force=True)
        engine.set_kitty(engine.dealt_kitty)
        return engine

    return factory


def play_out_round(engine, strategies):
    """Drive a PLAYING engine to ROUND_END with one strategy per seat."""
    while not engine.is_round_over():
        if engine.is_trick_complete():
            engine.evaluate_trick()
            continue
        player = engine.players[engine.current_player_index]
        engine.play_cards(player.id, strategies[player.id].choose_cards(player, engine))


@pytest.fixture
def play_round():
    """Factory that deals a full seeded round and plays it out."""

    def factory(strategies, seed=7):
        engine = GameEngine(rng=random.Random(seed))
        engine.start_new_round()
        dealer = engine.declare_trump_from_kitty()
        buried = strategies[dealer].choose_kitty_cards(
            engine.players[dealer].hand, engine.dealt_kitty, engine.trump_info
        )
        engine.set_kitty(buried)
        play_out_round(engine, strategies)
        return engine

    return factory
