"""
Dagunzi Game Engine Package.

This package contains the core rules for Dalian Dagunzi: the card model,
trump ordering, play types, seats, scoring and the GameEngine state machine.
"""

from dagunzi.game.constants import (
    SUITS,
    NATURAL_RANKS,
    LEVEL_ORDER,
    NUM_PLAYERS,
    Rank,
    Suit,
)
from dagunzi.game.exceptions import (
    DagunziException,
    GameStateException,
    IllegalPlayException,
    InvalidDeclarationException,
    ResourceExhaustedException,
)
from dagunzi.game.cards import Card, Deck
from dagunzi.game.trump import TrumpInfo, tribute_value
from dagunzi.game.plays import PlayType, resolve_play_type
from dagunzi.game.player import Player
from dagunzi.game.scoring import RoundResult
from dagunzi.game.engine import (
    GameEngine,
    GameListener,
    GamePhase,
    PlayEvent,
    TrickSnapshot,
)

__all__ = [
    "SUITS",
    "NATURAL_RANKS",
    "LEVEL_ORDER",
    "NUM_PLAYERS",
    "Rank",
    "Suit",
    "DagunziException",
    "GameStateException",
    "IllegalPlayException",
    "InvalidDeclarationException",
    "ResourceExhaustedException",
    "Card",
    "Deck",
    "TrumpInfo",
    "tribute_value",
    "PlayType",
    "resolve_play_type",
    "Player",
    "RoundResult",
    "GameEngine",
    "GameListener",
    "GamePhase",
    "PlayEvent",
    "TrickSnapshot",
]
