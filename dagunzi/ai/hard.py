"""
Hard computer player: determinized Monte-Carlo rollout search.

Trump declaration and kitty burial reuse the Medium heuristics. Card play
is chosen by search:

    for each of up to N determinizations (hidden cards redealt respecting
    known void suits):
        for each legal candidate play:
            copy the determinized world, apply the candidate, and play the
            rest of the round with the Easy policy for every seat
            score = defender points, negated if the acting seat declared

The candidate with the best average score over its completed rollouts is
played. The search runs under a wall-clock budget checked with a monotonic
clock before every rollout; rollouts already running may finish but no new
ones start after the deadline. Determinizations can run on a thread pool
bounded by the core count; results are summed, so order does not matter.

A rollout that raises is abandoned and scored 0; a determinization that
cannot be built is skipped. If no rollout completes, the Medium choice is
played instead.
"""

import logging
import random
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from dagunzi.ai.base import AIStrategy
from dagunzi.ai.candidates import generate_candidates
from dagunzi.ai.determinization import Determinizer
from dagunzi.ai.easy import EasyAI
from dagunzi.ai.medium import MediumAI
from dagunzi.config import GameConfig
from dagunzi.game.cards import Card
from dagunzi.game.constants import Rank, Suit
from dagunzi.game.engine import GameEngine
from dagunzi.game.player import Player
from dagunzi.game.trump import TrumpInfo
from dagunzi.tracker.card_tracker import CardTracker

logger = logging.getLogger(__name__)


@dataclass
class SearchStats:
    """Statistics of the most recent search."""

    candidates: int = 0
    determinizations: int = 0
    rollouts: int = 0
    failed_rollouts: int = 0
    abandoned_determinizations: int = 0
    elapsed_seconds: float = 0.0
    fell_back: bool = False


@dataclass
class DeterminizationResult:
    """Rollout sums for one sampled world, one entry per candidate."""

    totals: np.ndarray
    counts: np.ndarray
    completed: int = 0
    failures: int = 0
    abandoned: bool = False


class HardAI(AIStrategy):
    """
    Determinization + rollout search strategy.

    Attributes:
        tracker: Void-suit knowledge used to constrain determinizations
        config: Search budget (determinizations, time, caps, workers)
        last_search: SearchStats of the most recent card decision
    """

    name = "hard"

    def __init__(
        self,
        tracker: Optional[CardTracker] = None,
        config: Optional[GameConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.tracker = tracker
        self.config = config if config is not None else GameConfig()
        self._rng = rng if rng is not None else random.Random(self.config.seed)
        self._medium = MediumAI(tracker, EasyAI(random.Random(self._rng.getrandbits(32))))
        self.last_search: Optional[SearchStats] = None

    def choose_trump_suit(self, hand: Sequence[Card], target_rank: Rank) -> Optional[Suit]:
        return self._medium.choose_trump_suit(hand, target_rank)

    def choose_kitty_cards(
        self, hand: Sequence[Card], kitty: Sequence[Card], trump_info: TrumpInfo
    ) -> List[Card]:
        return self._medium.choose_kitty_cards(hand, kitty, trump_info)

    def choose_cards(self, player: Player, engine: GameEngine) -> List[Card]:
        """
        Pick a play by rollout search.

        Returns:
            One of the generated, validator-passing candidates (or the
            Medium choice when the search produced nothing)
        """
        candidates = generate_candidates(
            player, engine, self.config.max_candidates, self.config.max_combinations
        )
        stats = SearchStats(candidates=len(candidates))
        self.last_search = stats

        if not candidates:
            stats.fell_back = True
            return self._medium.choose_cards(player, engine)
        if len(candidates) == 1:
            return list(candidates[0])

        start = time.monotonic()
        totals, counts = self.search(player.id, engine, candidates, stats)
        stats.elapsed_seconds = time.monotonic() - start

        if not counts.any() or stats.rollouts == stats.failed_rollouts:
            logger.debug(f"{player.name}: no rollout completed, using medium heuristics")
            stats.fell_back = True
            return self._medium.choose_cards(player, engine)

        averages = np.full(len(candidates), -np.inf)
        completed = counts > 0
        averages[completed] = totals[completed] / counts[completed]
        best = int(np.argmax(averages))
        logger.debug(
            f"{player.name}: {stats.rollouts} rollouts over {stats.determinizations} "
            f"determinizations in {stats.elapsed_seconds:.2f}s, "
            f"best {[str(c) for c in candidates[best]]} avg {averages[best]:.1f}"
        )
        return list(candidates[best])

    def search(
        self,
        seat: int,
        engine: GameEngine,
        candidates: List[List[Card]],
        stats: Optional[SearchStats] = None,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Run rollouts for every candidate across determinizations.

        Args:
            seat: Acting seat
            engine: Live engine (never mutated)
            candidates: Legal plays to evaluate
            stats: Optional SearchStats to fill in

        Returns:
            (summed scores, completed rollout counts), one entry per candidate
        """
        stats = stats if stats is not None else SearchStats(candidates=len(candidates))
        deadline = time.monotonic() + self.config.time_budget_seconds
        seeds = [self._rng.getrandbits(32) for _ in range(self.config.num_determinizations)]
        totals = np.zeros(len(candidates))
        counts = np.zeros(len(candidates), dtype=np.int64)
        workers = self.config.effective_workers()

        if workers <= 1:
            for index, seed in enumerate(seeds):
                if time.monotonic() >= deadline:
                    break
                self._accumulate(
                    self._run_determinization(seat, engine, candidates, seed, deadline, index),
                    totals,
                    counts,
                    stats,
                )
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [
                    executor.submit(
                        self._run_determinization, seat, engine, candidates, seed, deadline, index
                    )
                    for index, seed in enumerate(seeds)
                ]
                for future in as_completed(futures):
                    self._accumulate(future.result(), totals, counts, stats)

        return totals, counts

    @staticmethod
    def _accumulate(
        result: DeterminizationResult, totals: np.ndarray, counts: np.ndarray, stats: SearchStats
    ) -> None:
        if result.abandoned:
            stats.abandoned_determinizations += 1
            return
        if result.completed:
            stats.determinizations += 1
        totals += result.totals
        counts += result.counts
        stats.rollouts += int(result.counts.sum())
        stats.failed_rollouts += result.failures

    def _run_determinization(
        self,
        seat: int,
        engine: GameEngine,
        candidates: List[List[Card]],
        seed: int,
        deadline: float,
        offset: int,
    ) -> DeterminizationResult:
        result = DeterminizationResult(
            totals=np.zeros(len(candidates)),
            counts=np.zeros(len(candidates), dtype=np.int64),
        )
        if time.monotonic() >= deadline:
            return result

        determinizer = Determinizer(np.random.default_rng(seed))
        try:
            world = determinizer.create_determinized_game(engine, seat, self.tracker)
        except Exception as exc:
            logger.debug(f"Determinization abandoned for seat {seat}: {exc!r}")
            result.abandoned = True
            return result
        policy = EasyAI(random.Random(seed))

        # Each determinization starts at a different candidate
        for step in range(len(candidates)):
            if time.monotonic() >= deadline:
                break
            index = (offset + step) % len(candidates)
            score, ok = self.rollout(world, seat, candidates[index], policy)
            result.totals[index] += score
            result.counts[index] += 1
            if ok:
                result.completed += 1
            else:
                result.failures += 1
        return result

    def rollout(
        self, world: GameEngine, seat: int, candidate: List[Card], policy: EasyAI
    ) -> Tuple[float, bool]:
        """
        Play the candidate, then the rest of the round with the Easy policy.

        Returns:
            (score from the acting seat's perspective, whether the rollout completed)
        """
        try:
            sim = world.copy()
            sim.play_cards(seat, candidate)
            for _ in range(self.config.max_rollout_steps):
                if sim.is_round_over():
                    break
                if sim.is_trick_complete():
                    sim.evaluate_trick()
                    continue
                current = sim.players[sim.current_player_index]
                sim.play_cards(current.id, policy.choose_cards(current, sim))
        except Exception as exc:
            logger.debug(f"Rollout abandoned for seat {seat}: {exc!r}")
            return 0.0, False

        points = float(sim.defender_points)
        if sim.players[seat].team == sim.declarer_team:
            return -points, True
        return points, True
