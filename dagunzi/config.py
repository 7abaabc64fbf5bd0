"""
Game Configuration System

Centralized configuration for a Dagunzi table: deck layout, Hard-AI search
budget and session options (seat difficulties, tracker, seeding, logging).
"""

import json
import logging
import os
from dataclasses import dataclass, asdict, field, fields
from typing import Any, Dict, List, Optional

from dagunzi.game.constants import (
    CARDS_PER_COPY,
    DEFAULT_DECK_COPIES,
    DEFAULT_HAND_SIZE,
    DEFAULT_JOKERS_PER_KIND,
    DEFAULT_KITTY_SIZE,
    NUM_PLAYERS,
)

logger = logging.getLogger(__name__)

DIFFICULTIES = ("easy", "medium", "hard")


@dataclass
class GameConfig:
    """Configuration for a game session."""

    # Table layout
    deck_copies: int = DEFAULT_DECK_COPIES
    jokers_per_kind: int = DEFAULT_JOKERS_PER_KIND
    hand_size: int = DEFAULT_HAND_SIZE
    kitty_size: int = DEFAULT_KITTY_SIZE

    # Hard AI search budget
    num_determinizations: int = 30
    time_budget_seconds: float = 1.5
    max_candidates: int = 20
    max_combinations: int = 50
    max_rollout_steps: int = 200
    num_workers: int = 1  # 1 = sequential search

    # Session settings
    difficulties: List[str] = field(default_factory=lambda: ["hard", "medium", "hard", "medium"])
    human_seats: List[int] = field(default_factory=list)
    player_names: Optional[List[str]] = None
    tracker_enabled: bool = True
    seed: Optional[int] = None
    num_rounds: int = 1

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @property
    def deck_size(self) -> int:
        return self.deck_copies * CARDS_PER_COPY + 2 * self.jokers_per_kind

    def effective_workers(self) -> int:
        """Worker count bounded by the machine's core count."""
        return max(1, min(self.num_workers, os.cpu_count() or 1))

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert config to dictionary.

        Returns:
            Dictionary representation of config
        """
        return asdict(self)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'GameConfig':
        """
        Build a config from a dictionary such as a parsed JSON table file.

        Unknown keys are skipped with a warning. Difficulty names are
        lower-cased and the log level upper-cased, so hand-written files
        may use any casing.

        Args:
            config_dict: Dictionary of configuration values

        Returns:
            GameConfig instance (not yet validated)
        """
        valid_keys = {f.name for f in fields(cls)}
        unknown = sorted(k for k in config_dict if k not in valid_keys)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")

        values = {k: v for k, v in config_dict.items() if k in valid_keys}
        if 'difficulties' in values:
            values['difficulties'] = [str(d).lower() for d in values['difficulties']]
        if 'log_level' in values:
            values['log_level'] = str(values['log_level']).upper()
        return cls(**values)

    @classmethod
    def from_file(cls, filepath: str) -> 'GameConfig':
        """
        Load and validate a table config from JSON.

        Raises:
            OSError: If the file cannot be read
            ValueError: If the JSON is malformed or the table is inconsistent
        """
        with open(filepath, 'r') as f:
            config = cls.from_dict(json.load(f))
        config.validate()
        logger.info(f"Loaded config from {filepath}")
        return config

    def save(self, filepath: str):
        """Validate, then write the config to ``filepath`` as JSON."""
        self.validate()
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def validate(self) -> bool:
        """
        Validate configuration values.

        Returns:
            True if config is valid

        Raises:
            ValueError: If config values are invalid
        """
        if self.deck_copies not in (2, 3):
            raise ValueError(f"deck_copies must be 2 or 3, got {self.deck_copies}")

        if self.jokers_per_kind < 0:
            raise ValueError(
                f"jokers_per_kind must be non-negative, got {self.jokers_per_kind}"
            )

        if self.hand_size <= 0:
            raise ValueError(f"hand_size must be positive, got {self.hand_size}")

        if self.kitty_size <= 0:
            raise ValueError(f"kitty_size must be positive, got {self.kitty_size}")

        dealt = NUM_PLAYERS * self.hand_size + self.kitty_size
        if dealt != self.deck_size:
            raise ValueError(
                f"{NUM_PLAYERS} hands of {self.hand_size} plus a kitty of "
                f"{self.kitty_size} need {dealt} cards, deck has {self.deck_size}"
            )

        if self.num_determinizations <= 0:
            raise ValueError(
                f"num_determinizations must be positive, got {self.num_determinizations}"
            )

        if self.time_budget_seconds <= 0:
            raise ValueError(
                f"time_budget_seconds must be positive, got {self.time_budget_seconds}"
            )

        if self.max_candidates <= 0 or self.max_combinations <= 0:
            raise ValueError("max_candidates and max_combinations must be positive")

        if self.max_rollout_steps <= 0:
            raise ValueError(
                f"max_rollout_steps must be positive, got {self.max_rollout_steps}"
            )

        if self.num_workers <= 0:
            raise ValueError(f"num_workers must be positive, got {self.num_workers}")

        if len(self.difficulties) != NUM_PLAYERS:
            raise ValueError(
                f"difficulties must name {NUM_PLAYERS} seats, got {len(self.difficulties)}"
            )

        for difficulty in self.difficulties:
            if difficulty not in DIFFICULTIES:
                raise ValueError(
                    f"difficulty must be one of {DIFFICULTIES}, got {difficulty!r}"
                )

        for seat in self.human_seats:
            if seat not in range(NUM_PLAYERS):
                raise ValueError(f"human seat must be 0-{NUM_PLAYERS - 1}, got {seat}")

        if self.player_names is not None and len(self.player_names) != NUM_PLAYERS:
            raise ValueError(
                f"player_names must name {NUM_PLAYERS} seats, got {len(self.player_names)}"
            )

        if self.num_rounds <= 0:
            raise ValueError(f"num_rounds must be positive, got {self.num_rounds}")

        if self.log_level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR'):
            raise ValueError(f"log_level must be a logging level name, got {self.log_level}")

        return True

    def __str__(self) -> str:
        """String representation of config."""
        lines = ["Game Configuration:"]
        lines.append(f"  Table: {self.deck_copies} decks ({self.deck_size} cards), hand={self.hand_size}, kitty={self.kitty_size}")
        lines.append(f"  Search: {self.num_determinizations} determinizations, {self.time_budget_seconds}s budget, {self.num_workers} worker(s)")
        lines.append(f"  Seats: {', '.join(self.difficulties)}, humans={self.human_seats or 'none'}")
        lines.append(f"  Tracker: {'on' if self.tracker_enabled else 'off'}, seed={self.seed}, rounds={self.num_rounds}")
        return "\n".join(lines)


def get_fast_config() -> GameConfig:
    """
    Get a fast config for testing/debugging.

    Keeps the standard table but shrinks the Hard AI search so a decision
    takes a fraction of a second.

    Returns:
        GameConfig with reduced computational requirements
    """
    return GameConfig(
        num_determinizations=2,
        time_budget_seconds=0.3,
        max_candidates=6,
        max_combinations=20,
    )


def get_default_config() -> GameConfig:
    """
    Get the standard table config.

    Returns:
        GameConfig with full search budget
    """
    return GameConfig()  # Uses defaults
