"""
Computer players for Dagunzi.

Three difficulty tiers share the AIStrategy interface:

    easy    EasyAI    heuristics with a little randomness
    medium  MediumAI  deterministic heuristics using CardTracker voids
    hard    HardAI    determinized rollout search under a time budget
"""

import random
from typing import Optional

from dagunzi.ai.base import AIStrategy
from dagunzi.ai.easy import EasyAI
from dagunzi.ai.medium import MediumAI
from dagunzi.ai.hard import HardAI, SearchStats
from dagunzi.config import DIFFICULTIES, GameConfig
from dagunzi.tracker.card_tracker import CardTracker


def create_strategy(
    difficulty: str,
    tracker: Optional[CardTracker] = None,
    config: Optional[GameConfig] = None,
    rng: Optional[random.Random] = None,
) -> AIStrategy:
    """
    Build the strategy for a difficulty name.

    Args:
        difficulty: 'easy', 'medium' or 'hard' (case-insensitive)
        tracker: Card knowledge for the Medium and Hard tiers
        config: Search budget for the Hard tier
        rng: Random source (Easy decisions, Hard seeding)

    Returns:
        AIStrategy instance

    Raises:
        ValueError: If the difficulty is unknown
    """
    name = difficulty.lower()
    if name == "easy":
        return EasyAI(rng)
    if name == "medium":
        return MediumAI(tracker, EasyAI(rng))
    if name == "hard":
        return HardAI(tracker, config, rng)
    raise ValueError(f"Unknown difficulty {difficulty!r}, expected one of {DIFFICULTIES}")


__all__ = [
    "AIStrategy",
    "EasyAI",
    "MediumAI",
    "HardAI",
    "SearchStats",
    "create_strategy",
]
