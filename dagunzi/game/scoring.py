"""
Round scoring for Dalian Dagunzi.

At the end of a round the defenders' accumulated points decide the winner:

    defender_points < 120   -> declarer team wins
    defender_points >= 120  -> defender team wins

The winning team always climbs at least one level. A declarer win is
boosted by the kitty "bloods" (2 per buried Big Joker, 1 per buried Small
Joker); a defender win earns one extra level when the defenders captured
the final trick (and with it the doubled kitty).

Tribute owed to the next round depends on how lopsided the score was:

    points < 80    -> (80 - points) // 10
    points > 150   -> (points - 150) // 10
    otherwise      -> 0

plus the kitty bloods, whichever side won.

Example:
    >>> RoundResult.from_round(0, declarer_team=0, kitty_bloods=4).tribute_count
    12
"""

from dataclasses import dataclass
from typing import Iterable

from dagunzi.game.cards import Card
from dagunzi.game.constants import (
    BIG_JOKER_BLOOD,
    DECLARER_WIN_THRESHOLD,
    LEVEL_ORDER,
    NUM_TEAMS,
    SMALL_JOKER_BLOOD,
    TRIBUTE_HIGH_THRESHOLD,
    TRIBUTE_LOW_THRESHOLD,
    TRIBUTE_UNIT,
    Rank,
)


@dataclass(frozen=True)
class RoundResult:
    """
    Outcome of one round, computed once at round end.

    Attributes:
        defender_points: Points captured by the defending team
        declarer_team: Team of the dealer
        defender_team: The other team
        declarer_wins: True when defenders stayed under the threshold
        level_change: Levels the winning team advances (always >= 1)
        winning_team: Team that advances
        tribute_count: Tribute units owed by the losing team next round
        kitty_bloods: Joker penalty from the buried kitty
        last_trick_captured_by_defender: Whether defenders took the final trick
    """

    defender_points: int
    declarer_team: int
    defender_team: int
    declarer_wins: bool
    level_change: int
    winning_team: int
    tribute_count: int
    kitty_bloods: int
    last_trick_captured_by_defender: bool

    @classmethod
    def from_round(
        cls,
        defender_points: int,
        declarer_team: int,
        kitty_bloods: int = 0,
        last_trick_captured_by_defender: bool = False,
    ) -> "RoundResult":
        """
        Score a finished round.

        Args:
            defender_points: Points captured by the defenders
            declarer_team: Team index (0 or 1) of the dealer
            kitty_bloods: Joker penalty of the buried kitty
            last_trick_captured_by_defender: Whether defenders won the last trick

        Returns:
            Immutable RoundResult

        Raises:
            ValueError: If an argument is out of range
        """
        if defender_points < 0:
            raise ValueError(f"defender_points must be non-negative, got {defender_points}")
        if declarer_team not in range(NUM_TEAMS):
            raise ValueError(f"declarer_team must be 0 or 1, got {declarer_team}")
        if kitty_bloods < 0:
            raise ValueError(f"kitty_bloods must be non-negative, got {kitty_bloods}")

        defender_team = 1 - declarer_team
        declarer_wins = defender_points < DECLARER_WIN_THRESHOLD

        if declarer_wins:
            winning_team = declarer_team
            level_change = 1 + kitty_bloods
        else:
            winning_team = defender_team
            level_change = 2 if last_trick_captured_by_defender else 1

        return cls(
            defender_points=defender_points,
            declarer_team=declarer_team,
            defender_team=defender_team,
            declarer_wins=declarer_wins,
            level_change=level_change,
            winning_team=winning_team,
            tribute_count=tribute_units(defender_points) + kitty_bloods,
            kitty_bloods=kitty_bloods,
            last_trick_captured_by_defender=last_trick_captured_by_defender,
        )

    @property
    def losing_team(self) -> int:
        return 1 - self.winning_team

    def __str__(self) -> str:
        side = "declarers" if self.declarer_wins else "defenders"
        return (
            f"RoundResult({side} win, defender_points={self.defender_points}, "
            f"+{self.level_change} level(s) for team {self.winning_team}, "
            f"tribute={self.tribute_count})"
        )


def tribute_units(defender_points: int) -> int:
    """Tribute from score lopsidedness alone, before kitty bloods."""
    if defender_points < TRIBUTE_LOW_THRESHOLD:
        return (TRIBUTE_LOW_THRESHOLD - defender_points) // TRIBUTE_UNIT
    if defender_points > TRIBUTE_HIGH_THRESHOLD:
        return (defender_points - TRIBUTE_HIGH_THRESHOLD) // TRIBUTE_UNIT
    return 0


def count_kitty_bloods(kitty: Iterable[Card]) -> int:
    """2 per Big Joker plus 1 per Small Joker buried in the kitty."""
    bloods = 0
    for card in kitty:
        if card.rank == Rank.BIG_JOKER:
            bloods += BIG_JOKER_BLOOD
        elif card.rank == Rank.SMALL_JOKER:
            bloods += SMALL_JOKER_BLOOD
    return bloods


def advance_level(level: Rank, steps: int) -> Rank:
    """Move a team level up the ladder, stopping at the top level (TWO)."""
    index = LEVEL_ORDER.index(level)
    return LEVEL_ORDER[min(index + max(steps, 0), len(LEVEL_ORDER) - 1)]
