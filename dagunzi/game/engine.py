"""
Core game engine for Dalian Dagunzi.

This module implements the rules state machine: dealing, tribute, trump
declaration, kitty burial, trick play with full legality checking, trick
evaluation and round-end scoring. The engine is the single source of truth
for legality; AI strategies and human input adapters only propose plays.

Round lifecycle:

    ROUND_END -> DEALING -> DECLARING_TRUMP -> PREPARING_KITTY -> PLAYING
        ^                                                            |
        +------------------------------------------------------------+

Observers (the CardTracker, a UI) register as GameListener instances and
receive immutable events between turns. They are never copied into the
simulation clones produced by ``copy()``.
"""

import copy
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple, Union

from dagunzi.game.cards import Card, Deck
from dagunzi.game.constants import (
    DECLARE_MIN_COUNT,
    KITTY_MULTIPLIER,
    NUM_PLAYERS,
    NUM_TEAMS,
    STARTING_LEVEL,
    SUITS,
    Rank,
    Suit,
)
from dagunzi.game.exceptions import (
    GameStateException,
    IllegalPlayException,
    InvalidDeclarationException,
    ResourceExhaustedException,
)
from dagunzi.game.player import Player
from dagunzi.game.plays import PlayType, find_combinations, resolve_play_type
from dagunzi.game.scoring import RoundResult, advance_level, count_kitty_bloods
from dagunzi.game.trump import TrumpInfo, tribute_value

if TYPE_CHECKING:
    from dagunzi.config import GameConfig

logger = logging.getLogger(__name__)

CardsArg = Union[Card, Sequence[Card]]


# ============================================================================
# Phases, events and snapshots
# ============================================================================


class GamePhase(Enum):
    """Engine state machine phases."""

    ROUND_END = "round_end"
    DEALING = "dealing"
    DECLARING_TRUMP = "declaring_trump"
    PREPARING_KITTY = "preparing_kitty"
    PLAYING = "playing"


@dataclass(frozen=True)
class PlayEvent:
    """
    A validated play, as seen by listeners.

    Attributes:
        seat: Seat that played
        cards: Cards played
        is_lead: Whether this play opened the trick
        lead_suit: Effective suit of the lead (None = trump)
        followed_suit: False when a follower could not follow the lead suit
        trick_index: Index of the trick within the round
    """

    seat: int
    cards: Tuple[Card, ...]
    is_lead: bool
    lead_suit: Optional[Suit]
    followed_suit: bool
    trick_index: int


@dataclass(frozen=True)
class CompletedTrick:
    """Record of an evaluated trick."""

    index: int
    leader: int
    winner: int
    play_type: PlayType
    cards: Tuple[Tuple[Card, ...], ...]
    points: int


@dataclass(frozen=True)
class TrickSnapshot:
    """Observer-safe, read-only view of the trick in progress."""

    leader: int
    play_type: Optional[PlayType]
    plays_made: int
    cards: Tuple[Tuple[Card, ...], ...]
    current_player: int
    trump_info: Optional[TrumpInfo]
    defender_points: int


class GameListener:
    """Base class for engine observers. Override the hooks you need."""

    def on_round_start(self, engine: "GameEngine") -> None:
        pass

    def on_play(self, event: PlayEvent) -> None:
        pass

    def on_trick_complete(self, trick: CompletedTrick) -> None:
        pass


# ============================================================================
# GameEngine Class
# ============================================================================


class GameEngine:
    """
    Rules state machine for one four-seat table.

    Attributes:
        players: The four seats; seats 0/2 are team 0, seats 1/3 team 1
        config: Table configuration (deck copies, hand and kitty size)
        phase: Current GamePhase
        trump_info: Declared trump for the round (None before declaration)
        current_player_index: Seat whose turn it is
        dealer_index: Seat that declared trump and owns the kitty
        current_trick_leader: Seat that opened the current trick
        current_trick_play_type: PlayType of the lead (None before the lead)
        trick_plays_made: Plays made in the current trick (0-4)
        total_cards_played: Cards played this round
        tricks_played: Tricks evaluated this round
        defender_points: Points captured by the defending team this round
        team_levels: Level rank of each team; persists across rounds
        round_number: Rounds started so far
        previous_winning_team: Winner of the last scored round
        previous_tribute_count: Tribute owed from the last scored round
        last_trick_captured_by_defender: Whether defenders won the final trick
        trick_history: Tricks evaluated this round
    """

    def __init__(
        self,
        players: Optional[List[Player]] = None,
        config: Optional["GameConfig"] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize engine in ROUND_END with both teams at the starting level.

        Args:
            players: Exactly four players with ids 0-3. Defaults to four AI seats.
            config: Table configuration. Defaults to the standard 3-deck table.
            rng: Random source for shuffling and random declarations

        Raises:
            ValueError: If the players or config are invalid
        """
        if players is None:
            players = [Player(i, f"Player {i + 1}") for i in range(NUM_PLAYERS)]
        if len(players) != NUM_PLAYERS:
            raise ValueError(f"Exactly {NUM_PLAYERS} players required, got {len(players)}")
        for position, player in enumerate(players):
            if player.id != position:
                raise ValueError(f"Player at position {position} has id {player.id}")

        from dagunzi.config import GameConfig

        self.config = config if config is not None else GameConfig()
        self.config.validate()
        self._rng = rng if rng is not None else random.Random(self.config.seed)
        self._listeners: List[GameListener] = []

        self.players: List[Player] = list(players)
        self.phase = GamePhase.ROUND_END
        self.trump_info: Optional[TrumpInfo] = None
        self.current_player_index = 0
        self.dealer_index = 0

        self._kitty: List[Card] = []
        self._dealt_kitty: List[Card] = []
        self._trick_cards: List[List[Card]] = [[] for _ in range(NUM_PLAYERS)]
        self.current_trick_leader = 0
        self.current_trick_play_type: Optional[PlayType] = None
        self.trick_plays_made = 0
        self.total_cards_played = 0
        self.tricks_played = 0
        self.trick_history: List[CompletedTrick] = []

        self.defender_points = 0
        self.last_trick_captured_by_defender = False
        self.team_levels: List[Rank] = [STARTING_LEVEL] * NUM_TEAMS
        self.round_number = 0

        self.previous_winning_team: Optional[int] = None
        self.previous_tribute_count = 0
        self._tribute_settled = True
        self._round_played = False
        self._round_result: Optional[RoundResult] = None

    # ------------------------------------------------------------------
    # Copying and observers
    # ------------------------------------------------------------------

    def __getstate__(self):
        state = self.__dict__.copy()
        state["_listeners"] = []
        return state

    def copy(self) -> "GameEngine":
        """
        Create deep copy of the engine for simulation.

        Hands, trick state, kitty and the random source are copied; listeners
        are not, so a simulated game never reaches the live tracker or UI.

        Returns:
            Independent GameEngine
        """
        return copy.deepcopy(self)

    def redeal_hidden(
        self, hands: Dict[int, List[Card]], kitty: Optional[List[Card]] = None
    ) -> None:
        """
        Replace hidden hands (and optionally the kitty) with another deal.

        Used on simulation copies to install a determinization. The new deal
        must hold exactly the same cards in the same per-seat counts.

        Raises:
            ValueError: If the new deal does not conserve the hidden cards
        """
        old_ids = set()
        new_ids = set()
        for seat, cards in hands.items():
            self._check_seat(seat)
            if len(cards) != len(self.players[seat].hand):
                raise ValueError(
                    f"Seat {seat} must receive {len(self.players[seat].hand)} cards, "
                    f"got {len(cards)}"
                )
            old_ids.update(card.id for card in self.players[seat].hand)
            new_ids.update(card.id for card in cards)
        if kitty is not None:
            if len(kitty) != len(self._kitty):
                raise ValueError(f"Kitty must hold {len(self._kitty)} cards, got {len(kitty)}")
            old_ids.update(card.id for card in self._kitty)
            new_ids.update(card.id for card in kitty)
        if old_ids != new_ids:
            raise ValueError("Redeal must use exactly the hidden cards")

        for seat, cards in hands.items():
            self.players[seat].hand = list(cards)
            self.players[seat].sort_hand(self.trump_info)
        if kitty is not None:
            self._kitty = list(kitty)

    def add_listener(self, listener: GameListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: GameListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def kitty(self) -> List[Card]:
        """Kitty cards. Empty while the dealer holds the picked-up kitty."""
        return list(self._kitty)

    @property
    def dealt_kitty(self) -> List[Card]:
        """The kitty as dealt, before the dealer picked it up."""
        return list(self._dealt_kitty)

    @property
    def current_trick_cards(self) -> List[List[Card]]:
        """Per-seat cards of the trick in progress (copies)."""
        return [list(cards) for cards in self._trick_cards]

    @property
    def declarer_team(self) -> int:
        return self.players[self.dealer_index].team

    @property
    def deck_size(self) -> int:
        return self.config.deck_size

    def team_of(self, seat: int) -> int:
        return self.players[seat].team

    @staticmethod
    def partner_of(seat: int) -> int:
        return (seat + 2) % NUM_PLAYERS

    def is_round_over(self) -> bool:
        return self.phase == GamePhase.ROUND_END

    def is_first_round(self) -> bool:
        return self.round_number == 1

    def is_trick_complete(self) -> bool:
        return self.trick_plays_made == NUM_PLAYERS

    def kitty_bloods(self) -> int:
        return count_kitty_bloods(self._kitty)

    def lead_cards(self) -> List[Card]:
        """Cards that opened the current trick (empty before the lead)."""
        if self.trick_plays_made == 0:
            return []
        return list(self._trick_cards[self.current_trick_leader])

    def lead_suit(self) -> Optional[Suit]:
        """
        Effective suit of the current lead; None means trump was led.

        Raises:
            GameStateException: If nobody has led yet
        """
        if self.trick_plays_made == 0 or self.trump_info is None:
            raise GameStateException("No card has been led in this trick")
        return self.trump_info.effective_suit(self._trick_cards[self.current_trick_leader][0])

    def trick_points(self) -> int:
        """Point value of all cards in the current trick."""
        return sum(card.points for cards in self._trick_cards for card in cards)

    def trick_snapshot(self) -> TrickSnapshot:
        return TrickSnapshot(
            leader=self.current_trick_leader,
            play_type=self.current_trick_play_type,
            plays_made=self.trick_plays_made,
            cards=tuple(tuple(cards) for cards in self._trick_cards),
            current_player=self.current_player_index,
            trump_info=self.trump_info,
            defender_points=self.defender_points,
        )

    def cards_in_play(self) -> int:
        """Cards held, in the kitty, or played; constant within a round."""
        in_hands = sum(len(player.hand) for player in self.players)
        return in_hands + len(self._kitty) + self.total_cards_played

    # ------------------------------------------------------------------
    # Dealing and tribute
    # ------------------------------------------------------------------

    def start_new_round(self) -> None:
        """
        Shuffle, deal every seat and the kitty, and open trump declaration.

        If the previous round was played but never scored, it is scored first
        so its tribute and level change carry over.

        Raises:
            GameStateException: If the current round is still in progress
        """
        if self.phase != GamePhase.ROUND_END:
            raise GameStateException(f"Cannot start a new round in phase {self.phase.value}")
        if self._round_played and self._round_result is None:
            self.calculate_round_result()

        self.round_number += 1
        self.phase = GamePhase.DEALING
        self.trump_info = None
        self.defender_points = 0
        self.last_trick_captured_by_defender = False
        self.total_cards_played = 0
        self.tricks_played = 0
        self.trick_history = []
        self._reset_trick()
        self._round_played = False
        self._round_result = None
        self._tribute_settled = not (
            self.previous_tribute_count > 0 and self.previous_winning_team is not None
        )

        deck = Deck(self.config.deck_copies, self.config.jokers_per_kind, self._rng)
        deck.shuffle()
        for player in self.players:
            player.reset_round()
            player.add_cards(deck.deal(self.config.hand_size))
            player.sort_hand()
        self._kitty = deck.deal(self.config.kitty_size)
        self._dealt_kitty = list(self._kitty)
        if deck.remaining() != 0:
            raise ResourceExhaustedException(
                f"{deck.remaining()} cards left undealt after dealing hands and kitty"
            )

        self.phase = GamePhase.DECLARING_TRUMP
        logger.debug(f"Round {self.round_number} dealt, levels={self._levels_str()}")
        for listener in list(self._listeners):
            listener.on_round_start(self)

    def is_tribute_required(self) -> bool:
        return (
            not self._tribute_settled
            and self.previous_tribute_count > 0
            and self.previous_winning_team is not None
        )

    def perform_tribute(self, giver_index: int, tribute_card: Card, return_card: Card) -> int:
        """
        Perform one tribute exchange chosen by the driver.

        Args:
            giver_index: Losing-team seat giving the tribute card
            tribute_card: Card handed to the winning team
            return_card: Card the receiving seat gives back

        Returns:
            Seat index of the receiver

        Raises:
            GameStateException: If no tribute is owed or trump is already declared
            InvalidDeclarationException: If the exchange is not allowed
        """
        self._check_tribute_phase()
        self._check_seat(giver_index)
        if not self.is_tribute_required():
            raise GameStateException("Tribute is not required")

        giver = self.players[giver_index]
        if giver.team == self.previous_winning_team:
            raise InvalidDeclarationException("Winning team cannot give tribute")
        if not giver.has_cards([tribute_card]):
            raise InvalidDeclarationException(f"{giver.name} does not hold {tribute_card}")

        receiver = self._tribute_receiver()
        if not receiver.has_cards([return_card]):
            raise InvalidDeclarationException(f"{receiver.name} does not hold {return_card}")

        self._exchange(giver, tribute_card, receiver, return_card)
        return receiver.id

    def perform_auto_tribute(self) -> Optional[List[str]]:
        """
        Settle the owed tribute automatically.

        Repeats ``previous_tribute_count`` times: the losing team's highest
        card (jokers first, then 2 > A > K ...) goes to the first seat of the
        winning team, which returns its lowest non-joker card.

        Returns:
            One message per exchange, or None if no tribute was owed

        Raises:
            GameStateException: If trump has already been declared
        """
        if not self.is_tribute_required():
            return None
        self._check_tribute_phase()

        losing_team = 1 - self.previous_winning_team
        receiver = self._tribute_receiver()
        messages: List[str] = []

        for _ in range(self.previous_tribute_count):
            giver: Optional[Player] = None
            best: Optional[Card] = None
            for player in self.players:
                if player.team != losing_team:
                    continue
                for card in player.hand:
                    if best is None or tribute_value(card) > tribute_value(best):
                        best, giver = card, player
            if giver is None or best is None or not receiver.hand:
                break

            non_jokers = [card for card in receiver.hand if not card.is_joker]
            returned = min(non_jokers or receiver.hand, key=tribute_value)

            self._exchange(giver, best, receiver, returned)
            messages.append(
                f"{giver.name} pays {best} to {receiver.name} and receives {returned}"
            )

        self.finish_tribute()
        return messages or None

    def finish_tribute(self) -> None:
        """Mark the tribute settled and open trump declaration."""
        self._check_tribute_phase()
        self._tribute_settled = True
        for player in self.players:
            player.sort_hand()
        self.phase = GamePhase.DECLARING_TRUMP

    # ------------------------------------------------------------------
    # Trump declaration and kitty
    # ------------------------------------------------------------------

    def declarable_suits(self, seat: int) -> List[Suit]:
        """Suits in which the seat holds at least two cards of its team level."""
        self._check_seat(seat)
        player = self.players[seat]
        level = self.team_levels[player.team]
        return [
            suit
            for suit in SUITS
            if sum(1 for c in player.hand if c.rank == level and c.suit == suit)
            >= DECLARE_MIN_COUNT
        ]

    def declare_trump(self, seat: int, suit: Suit, force: bool = False) -> None:
        """
        Declare trump; the declaring seat becomes dealer and takes the kitty.

        Args:
            seat: Declaring seat
            suit: Trump suit
            force: Skip the two-level-cards eligibility check

        Raises:
            GameStateException: If trump cannot be declared in this phase
            InvalidDeclarationException: If the seat may not declare this suit
        """
        self._check_declaration_phase()
        self._check_seat(seat)
        if not force and suit not in self.declarable_suits(seat):
            raise InvalidDeclarationException(
                f"{self.players[seat].name} needs {DECLARE_MIN_COUNT} "
                f"{self.team_levels[self.players[seat].team].symbol}{suit.symbol} to declare"
            )
        self._install_trump(seat, suit)

    def player_has_big_joker(self, seat: int) -> bool:
        self._check_seat(seat)
        return any(card.rank == Rank.BIG_JOKER for card in self.players[seat].hand)

    def declare_trump_random_suit(self, seat: int) -> Suit:
        """
        First-round declaration: a Big Joker holder declares a random suit.

        Returns:
            The suit chosen

        Raises:
            GameStateException: If trump cannot be declared in this phase
            InvalidDeclarationException: If the seat holds no Big Joker
        """
        self._check_declaration_phase()
        if not self.player_has_big_joker(seat):
            raise InvalidDeclarationException(
                f"{self.players[seat].name} holds no Big Joker"
            )
        suit = self._rng.choice(SUITS)
        self._install_trump(seat, suit)
        return suit

    def declare_trump_from_kitty(self) -> int:
        """
        Nobody declared: the kitty's least represented suit becomes trump.

        Jokers are ignored when counting; ties go to the earlier suit. A
        random seat becomes dealer.

        Returns:
            The dealer seat

        Raises:
            GameStateException: If trump cannot be declared in this phase
        """
        self._check_declaration_phase()
        counts = {suit: 0 for suit in SUITS}
        for card in self._kitty:
            if card.suit is not None:
                counts[card.suit] += 1
        trump_suit = min(SUITS, key=lambda suit: counts[suit])

        dealer = self._rng.randrange(NUM_PLAYERS)
        self._install_trump(dealer, trump_suit)
        return dealer

    def set_kitty(self, kitty_cards: Sequence[Card]) -> None:
        """
        Dealer buries the kitty and leads the first trick.

        Jokers may be buried; they count as kitty bloods at scoring time.

        Args:
            kitty_cards: Exactly kitty_size cards from the dealer's hand

        Raises:
            GameStateException: If not in PREPARING_KITTY
            ResourceExhaustedException: If the card count is wrong
            InvalidDeclarationException: If the dealer does not hold the cards
        """
        if self.phase != GamePhase.PREPARING_KITTY:
            raise GameStateException(f"Cannot set kitty in phase {self.phase.value}")
        kitty_cards = list(kitty_cards)
        if len(kitty_cards) != self.config.kitty_size:
            raise ResourceExhaustedException(
                f"Kitty must contain exactly {self.config.kitty_size} cards, "
                f"got {len(kitty_cards)}"
            )
        dealer = self.players[self.dealer_index]
        if not dealer.has_cards(kitty_cards):
            raise InvalidDeclarationException("Dealer does not hold all specified kitty cards")

        dealer.remove_cards(kitty_cards)
        self._kitty = kitty_cards
        for player in self.players:
            player.sort_hand(self.trump_info)

        self.current_trick_leader = self.dealer_index
        self.current_player_index = self.dealer_index
        self.phase = GamePhase.PLAYING
        logger.debug(
            f"Kitty buried by {dealer.name} ({self.kitty_bloods()} blood), play begins"
        )

    # ------------------------------------------------------------------
    # Trick play
    # ------------------------------------------------------------------

    def is_valid_play(self, seat: int, cards: CardsArg) -> bool:
        """
        Check whether a seat may play these cards now.

        Rules:
        - Only the current seat, only in the PLAYING phase
        - Cards must be held (counted by id)
        - A lead must be a Single, Bang or Gunzi
        - A follow must match the lead's card count, and must contain as
          many cards of the lead's effective suit as the seat can supply
          (all of them when the seat holds enough)

        Followers never have to form a Bang or Gunzi; shape only decides
        whether their cards compete in ``evaluate_trick``.

        Returns:
            True if the play is legal
        """
        return self._validation_error(seat, _as_list(cards)) is None

    def legal_single_cards(self, seat: int) -> List[Card]:
        """
        Cards that may appear in some legal play by this seat.

        For single-card tricks this is exactly the set of legal plays.
        """
        player = self.players[seat]
        if self.trick_plays_made == 0 or self.trump_info is None:
            return list(player.hand)
        suit_cards = player.cards_of_suit(self.lead_suit(), self.trump_info)
        required = self.current_trick_play_type.card_count
        if len(suit_cards) >= required:
            return suit_cards
        return list(player.hand)

    def play_card(self, seat: int, card: Card) -> None:
        self.play_cards(seat, [card])

    def play_cards(self, seat: int, cards: CardsArg) -> None:
        """
        Validate and apply a play.

        Args:
            seat: Playing seat
            cards: Card or cards to play

        Raises:
            GameStateException: If not in the PLAYING phase
            IllegalPlayException: If the play is illegal (state unchanged)
        """
        cards = _as_list(cards)
        if self.phase != GamePhase.PLAYING:
            raise GameStateException(f"Cannot play cards in phase {self.phase.value}")
        reason = self._validation_error(seat, cards)
        if reason is not None:
            raise IllegalPlayException(seat, cards, reason)

        is_lead = self.trick_plays_made == 0
        if is_lead:
            self.current_trick_play_type = resolve_play_type(cards)
            self.current_trick_leader = seat
        lead_suit = self.trump_info.effective_suit(
            cards[0] if is_lead else self._trick_cards[self.current_trick_leader][0]
        )
        followed = is_lead or all(
            self.trump_info.effective_suit(card) == lead_suit for card in cards
        )

        self._trick_cards[seat] = list(cards)
        self.players[seat].remove_cards(cards)
        self.trick_plays_made += 1
        self.total_cards_played += len(cards)
        if self.trick_plays_made < NUM_PLAYERS:
            self.current_player_index = (self.current_player_index + 1) % NUM_PLAYERS

        event = PlayEvent(
            seat=seat,
            cards=tuple(cards),
            is_lead=is_lead,
            lead_suit=lead_suit,
            followed_suit=followed,
            trick_index=self.tricks_played,
        )
        for listener in list(self._listeners):
            listener.on_play(event)

    def competing_strength(self, seat: int) -> Optional[int]:
        """
        Strength a seat's play brings to the current trick.

        The strongest card that is trump or of the lead's effective suit
        counts. Against a Bang or Gunzi lead, a follower competes only when
        its own play forms the same combination.

        Returns:
            Strength, or None if the seat has not played or cannot compete
        """
        cards = self._trick_cards[seat]
        if not cards or self.trump_info is None:
            return None
        play_type = self.current_trick_play_type
        if (
            seat != self.current_trick_leader
            and play_type in (PlayType.BANG, PlayType.GUNZI)
            and resolve_play_type(cards) != play_type
        ):
            return None

        lead_suit = self.lead_suit()
        strengths = [
            self.trump_info.card_strength(card)
            for card in cards
            if self.trump_info.is_trump(card) or self.trump_info.effective_suit(card) == lead_suit
        ]
        return max(strengths) if strengths else None

    def current_winner(self) -> Optional[int]:
        """Seat currently winning the trick; earlier plays keep ties."""
        if self.trick_plays_made == 0:
            return None
        winner: Optional[int] = None
        best = -1
        for offset in range(self.trick_plays_made):
            seat = (self.current_trick_leader + offset) % NUM_PLAYERS
            strength = self.competing_strength(seat)
            if strength is not None and strength > best:
                best, winner = strength, seat
        return winner

    def evaluate_trick(self) -> int:
        """
        Resolve a complete trick.

        The winner leads next. Trick points go to the defenders when a
        defender wins. On the final trick the kitty's points are added,
        doubled, and the round ends.

        Returns:
            Winning seat

        Raises:
            GameStateException: If fewer than four seats have played
        """
        if self.phase != GamePhase.PLAYING or not self.is_trick_complete():
            raise GameStateException("Trick is not complete")

        winner = self.current_winner()
        points = self.trick_points()
        is_last = all(not player.hand for player in self.players)
        if is_last:
            points += sum(card.points for card in self._kitty) * KITTY_MULTIPLIER

        defender_won = self.players[winner].team != self.declarer_team
        if defender_won:
            self.defender_points += points
        if is_last:
            self.last_trick_captured_by_defender = defender_won

        completed = CompletedTrick(
            index=self.tricks_played,
            leader=self.current_trick_leader,
            winner=winner,
            play_type=self.current_trick_play_type,
            cards=tuple(tuple(cards) for cards in self._trick_cards),
            points=points,
        )
        self.trick_history.append(completed)
        self.tricks_played += 1

        self._reset_trick()
        self.current_trick_leader = winner
        self.current_player_index = winner
        logger.debug(
            f"Trick {completed.index + 1} won by {self.players[winner].name} "
            f"({points} pts), defenders at {self.defender_points}"
        )

        if is_last:
            self.phase = GamePhase.ROUND_END
            self._round_played = True
            logger.debug(f"Round {self.round_number} over, defenders took {self.defender_points}")

        for listener in list(self._listeners):
            listener.on_trick_complete(completed)
        return winner

    # ------------------------------------------------------------------
    # Round end
    # ------------------------------------------------------------------

    def calculate_round_result(self) -> RoundResult:
        """
        Score the finished round and advance the winning team's level.

        The result is computed once per round; later calls return it again
        without re-applying the level change.

        Raises:
            GameStateException: If the round is not over
        """
        if self.phase != GamePhase.ROUND_END or not self._round_played:
            raise GameStateException("Round is not over")
        if self._round_result is not None:
            return self._round_result

        result = RoundResult.from_round(
            defender_points=self.defender_points,
            declarer_team=self.declarer_team,
            kitty_bloods=self.kitty_bloods(),
            last_trick_captured_by_defender=self.last_trick_captured_by_defender,
        )
        self.previous_winning_team = result.winning_team
        self.previous_tribute_count = result.tribute_count
        self.team_levels[result.winning_team] = advance_level(
            self.team_levels[result.winning_team], result.level_change
        )
        self._round_result = result
        logger.info(f"Round {self.round_number}: {result}; levels {self._levels_str()}")
        return result

    def get_game_state(self, perspective: Optional[int] = None) -> Dict:
        """
        Get observable game state for a UI or log.

        Args:
            perspective: If given, only this seat's hand is revealed

        Returns:
            Dictionary of the public state, with card names as strings
        """
        players_state = []
        for player in self.players:
            show_hand = perspective is None or player.id == perspective
            players_state.append(
                {
                    "name": player.name,
                    "seat": player.id,
                    "team": player.team,
                    "is_human": player.is_human,
                    "hand": [str(card) for card in player.hand] if show_hand else None,
                    "hand_size": len(player.hand),
                }
            )

        show_kitty = perspective is None or perspective == self.dealer_index
        return {
            "phase": self.phase.value,
            "round": self.round_number,
            "trump": str(self.trump_info) if self.trump_info else None,
            "dealer": self.dealer_index,
            "current_player": self.current_player_index,
            "team_levels": [level.symbol for level in self.team_levels],
            "defender_points": self.defender_points,
            "players": players_state,
            "kitty": [str(card) for card in self._kitty] if show_kitty else None,
            "current_trick": {
                "leader": self.current_trick_leader,
                "play_type": (
                    self.current_trick_play_type.name if self.current_trick_play_type else None
                ),
                "cards": [[str(card) for card in cards] for cards in self._trick_cards],
            },
            "tricks_played": self.tricks_played,
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _validation_error(self, seat: int, cards: List[Card]) -> Optional[str]:
        if self.phase != GamePhase.PLAYING:
            return f"not in playing phase ({self.phase.value})"
        if seat != self.current_player_index:
            return f"not seat {seat}'s turn"
        if not cards:
            return "no cards played"
        player = self.players[seat]
        if not player.has_cards(cards):
            return "cards not in hand"

        if self.trick_plays_made == 0:
            if resolve_play_type(cards) is None:
                return "cards do not form a single, bang or gunzi"
            return None

        required = self.current_trick_play_type.card_count
        if len(cards) != required:
            return f"must play {required} card(s)"

        lead_suit = self.lead_suit()
        label = lead_suit.display_name if lead_suit is not None else "trump"
        suit_cards = player.cards_of_suit(lead_suit, self.trump_info)
        in_suit = sum(1 for card in cards if self.trump_info.effective_suit(card) == lead_suit)
        if in_suit < min(len(suit_cards), required):
            return f"must follow {label}"

        # A seat able to match the lead's shape in suit has to
        play_type = self.current_trick_play_type
        if play_type is not PlayType.SINGLE and find_combinations(suit_cards, play_type):
            if in_suit != required or resolve_play_type(cards) is not play_type:
                return f"must play a {play_type.name.lower()} of {label}"
        return None

    def _reset_trick(self) -> None:
        self._trick_cards = [[] for _ in range(NUM_PLAYERS)]
        self.current_trick_play_type = None
        self.trick_plays_made = 0

    def _install_trump(self, seat: int, suit: Suit) -> None:
        self.dealer_index = seat
        dealer = self.players[seat]
        self.trump_info = TrumpInfo(suit, self.team_levels[dealer.team])

        dealer.add_cards(self._kitty)
        self._kitty = []
        for player in self.players:
            player.sort_hand(self.trump_info)
        self.phase = GamePhase.PREPARING_KITTY
        logger.debug(f"{dealer.name} declares {self.trump_info} and takes the kitty")

    def _tribute_receiver(self) -> Player:
        return next(p for p in self.players if p.team == self.previous_winning_team)

    @staticmethod
    def _exchange(giver: Player, given: Card, receiver: Player, returned: Card) -> None:
        giver.remove_cards([given])
        receiver.add_cards([given])
        receiver.remove_cards([returned])
        giver.add_cards([returned])
        logger.debug(f"Tribute: {giver.name} -> {given}, {receiver.name} -> {returned}")

    def _check_tribute_phase(self) -> None:
        if self.phase not in (GamePhase.DEALING, GamePhase.DECLARING_TRUMP):
            raise GameStateException(
                f"Tribute must be settled before trump is declared (phase {self.phase.value})"
            )

    def _check_declaration_phase(self) -> None:
        if self.phase not in (GamePhase.DEALING, GamePhase.DECLARING_TRUMP):
            raise GameStateException(f"Cannot declare trump in phase {self.phase.value}")
        if self.is_tribute_required():
            raise GameStateException("Tribute must be settled before trump is declared")

    @staticmethod
    def _check_seat(seat: int) -> None:
        if seat not in range(NUM_PLAYERS):
            raise ValueError(f"seat must be 0-{NUM_PLAYERS - 1}, got {seat}")

    def _levels_str(self) -> str:
        return "/".join(level.symbol for level in self.team_levels)


def _as_list(cards: CardsArg) -> List[Card]:
    if isinstance(cards, Card):
        return [cards]
    return list(cards)
