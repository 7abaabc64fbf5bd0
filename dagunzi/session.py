"""
Session driver: plays whole rounds at one table.

GameSession wires the pieces together the way a front end would:

    1. Build four seats, the engine and (optionally) a shared CardTracker
    2. Give every seat a strategy from its configured difficulty, or a
       HumanStrategy wrapping the caller's input callable
    3. Run each round through the engine's state machine:
       start -> tribute -> declaration -> kitty -> tricks -> result

Declaration order:
    - First round: the first seat holding a Big Joker declares a random suit
    - Later rounds: seats are asked in turn, starting after the previous
      dealer; the first seat whose strategy names a declarable suit wins
    - Nobody declares: trump is taken from the kitty

The engine remains the only judge of legality; a human play that fails
validation is asked for again.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from dagunzi.ai import AIStrategy, MediumAI, create_strategy
from dagunzi.config import GameConfig
from dagunzi.game.cards import Card
from dagunzi.game.constants import NUM_PLAYERS, Rank, Suit
from dagunzi.game.engine import GameEngine
from dagunzi.game.exceptions import IllegalPlayException
from dagunzi.game.player import Player
from dagunzi.game.scoring import RoundResult
from dagunzi.game.trump import TrumpInfo
from dagunzi.tracker.card_tracker import CardTracker

logger = logging.getLogger(__name__)

HumanInput = Callable[[Player, GameEngine], Sequence[Card]]

MAX_INPUT_ATTEMPTS = 3


@dataclass
class RoundSummary:
    """What happened in one round, for logs and result tables."""

    round_number: int
    dealer: int
    trump: str
    declaration: str
    result: RoundResult
    team_levels: List[str]
    tricks_played: int
    tribute: List[str] = field(default_factory=list)


class HumanStrategy(AIStrategy):
    """
    Seat driven by an external input callable.

    Card play comes from ``human_input(player, engine)``. Trump declaration
    and kitty burial are delegated to the Medium heuristics.
    """

    name = "human"

    def __init__(self, human_input: HumanInput, helper: Optional[AIStrategy] = None):
        self.human_input = human_input
        self._helper = helper if helper is not None else MediumAI()

    def choose_trump_suit(self, hand: Sequence[Card], target_rank: Rank) -> Optional[Suit]:
        return self._helper.choose_trump_suit(hand, target_rank)

    def choose_kitty_cards(
        self, hand: Sequence[Card], kitty: Sequence[Card], trump_info: TrumpInfo
    ) -> List[Card]:
        return self._helper.choose_kitty_cards(hand, kitty, trump_info)

    def choose_cards(self, player: Player, engine: GameEngine) -> List[Card]:
        return list(self.human_input(player, engine))


class GameSession:
    """
    One table of four seats playing consecutive rounds.

    Attributes:
        config: Session configuration
        players: The four seats
        engine: Rules engine
        tracker: Shared CardTracker, or None when disabled
        strategies: Strategy per seat
        summaries: RoundSummary of every completed round
    """

    def __init__(self, config: Optional[GameConfig] = None, human_input: Optional[HumanInput] = None):
        """
        Build the table.

        Args:
            config: Session configuration (defaults to GameConfig())
            human_input: Callable supplying plays for ``config.human_seats``

        Raises:
            ValueError: If the config is invalid, or human seats are
                configured without an input callable
        """
        self.config = config if config is not None else GameConfig()
        self.config.validate()
        if self.config.human_seats and human_input is None:
            raise ValueError("human_seats configured but no human_input callable given")

        self._rng = random.Random(self.config.seed)
        names = self.config.player_names or [f"Player {i + 1}" for i in range(NUM_PLAYERS)]
        self.players = [
            Player(i, names[i], is_human=i in self.config.human_seats)
            for i in range(NUM_PLAYERS)
        ]
        self.engine = GameEngine(
            self.players, self.config, random.Random(self._rng.getrandbits(32))
        )

        self.tracker: Optional[CardTracker] = None
        if self.config.tracker_enabled:
            self.tracker = CardTracker(self.config.deck_copies, self.config.jokers_per_kind)
            self.tracker.attach(self.engine)

        self.strategies: List[AIStrategy] = []
        for seat in range(NUM_PLAYERS):
            seat_rng = random.Random(self._rng.getrandbits(32))
            if seat in self.config.human_seats:
                strategy = HumanStrategy(human_input, MediumAI(self.tracker))
            else:
                strategy = create_strategy(
                    self.config.difficulties[seat], self.tracker, self.config, seat_rng
                )
            self.strategies.append(strategy)

        self.summaries: List[RoundSummary] = []
        logger.debug(
            "Seats: "
            + ", ".join(f"{p.name}={s.name}" for p, s in zip(self.players, self.strategies))
        )

    # ------------------------------------------------------------------
    # Rounds
    # ------------------------------------------------------------------

    def play_game(self, num_rounds: Optional[int] = None) -> List[RoundSummary]:
        """
        Play several rounds in a row.

        Args:
            num_rounds: Rounds to play (defaults to ``config.num_rounds``)

        Returns:
            Summaries of the rounds played by this call
        """
        rounds = num_rounds if num_rounds is not None else self.config.num_rounds
        if rounds <= 0:
            raise ValueError(f"num_rounds must be positive, got {rounds}")
        return [self.play_round() for _ in range(rounds)]

    def play_round(self) -> RoundSummary:
        """Play one full round and score it."""
        engine = self.engine
        engine.start_new_round()

        tribute = engine.perform_auto_tribute() or []
        for message in tribute:
            logger.info(message)

        declaration = self._declare_trump()
        dealer = engine.players[engine.dealer_index]
        buried = self.strategies[dealer.id].choose_kitty_cards(
            dealer.hand, engine.dealt_kitty, engine.trump_info
        )
        engine.set_kitty(buried)

        while not engine.is_round_over():
            if engine.is_trick_complete():
                engine.evaluate_trick()
                continue
            self._play_turn(engine.players[engine.current_player_index])

        result = engine.calculate_round_result()
        summary = RoundSummary(
            round_number=engine.round_number,
            dealer=engine.dealer_index,
            trump=str(engine.trump_info),
            declaration=declaration,
            result=result,
            team_levels=[level.symbol for level in engine.team_levels],
            tricks_played=engine.tricks_played,
            tribute=list(tribute),
        )
        self.summaries.append(summary)
        return summary

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _declare_trump(self) -> str:
        engine = self.engine
        if engine.is_first_round():
            for seat in range(NUM_PLAYERS):
                if engine.player_has_big_joker(seat):
                    suit = engine.declare_trump_random_suit(seat)
                    logger.info(f"{self.players[seat].name} holds a Big Joker, trump is {suit.display_name}")
                    return "big_joker"
        else:
            start = (engine.dealer_index + 1) % NUM_PLAYERS
            for offset in range(NUM_PLAYERS):
                seat = (start + offset) % NUM_PLAYERS
                player = self.players[seat]
                level = engine.team_levels[player.team]
                suit = self.strategies[seat].choose_trump_suit(player.hand, level)
                if suit is not None and suit in engine.declarable_suits(seat):
                    engine.declare_trump(seat, suit)
                    logger.info(f"{player.name} declares {engine.trump_info}")
                    return "declared"

        dealer = engine.declare_trump_from_kitty()
        logger.info(f"Nobody declared, trump from kitty is {engine.trump_info}, dealer {dealer}")
        return "kitty"

    def _play_turn(self, player: Player) -> None:
        strategy = self.strategies[player.id]
        if not player.is_human:
            self.engine.play_cards(player.id, strategy.choose_cards(player, self.engine))
            return

        for attempt in range(1, MAX_INPUT_ATTEMPTS + 1):
            cards = strategy.choose_cards(player, self.engine)
            try:
                self.engine.play_cards(player.id, cards)
                return
            except IllegalPlayException as exc:
                if attempt == MAX_INPUT_ATTEMPTS:
                    raise
                logger.warning(f"{exc}; asking {player.name} again")
