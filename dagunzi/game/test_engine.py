"""
Unit tests for the GameEngine state machine.

Tests dealing, tribute, trump declaration, kitty burial, play validation,
trick evaluation, round scoring, copying and listener notifications.
Controlled positions are built by dealing a real round, replacing the
hands, and burying the dealt kitty again.
"""

import itertools
import random

import pytest

from dagunzi.config import GameConfig
from dagunzi.game.cards import Card
from dagunzi.game.constants import SUITS, Rank, Suit
from dagunzi.game.engine import GameEngine, GameListener, GamePhase
from dagunzi.game.exceptions import (
    GameStateException,
    IllegalPlayException,
    InvalidDeclarationException,
    ResourceExhaustedException,
)
from dagunzi.game.player import Player
from dagunzi.game.plays import PlayType

_ids = itertools.count(10_000)


def make_card(suit, rank):
    """Card with an id outside the dealt deck."""
    return Card(suit, rank, next(_ids))


def make_joker(rank):
    return Card(None, rank, next(_ids))


def make_playing_engine(hands, trump_suit=Suit.SPADE, dealer=0, seed=3):
    """
    Engine in PLAYING with the given hands.

    Trump rank is the starting level (Three); the dealer buries the kitty
    it was dealt and leads first.
    """
    engine = GameEngine(rng=random.Random(seed))
    engine.start_new_round()
    for seat, cards in enumerate(hands):
        engine.players[seat].hand = list(cards)
    engine.declare_trump(dealer, trump_suit, force=True)
    engine.set_kitty(engine.dealt_kitty)
    return engine


class RecordingListener(GameListener):
    def __init__(self):
        self.rounds = 0
        self.plays = []
        self.tricks = []

    def on_round_start(self, engine):
        self.rounds += 1

    def on_play(self, event):
        self.plays.append(event)

    def on_trick_complete(self, trick):
        self.tricks.append(trick)


@pytest.fixture
def engine():
    return GameEngine(rng=random.Random(42))


@pytest.fixture
def dealt_engine(engine):
    engine.start_new_round()
    return engine


@pytest.fixture
def bang_position():
    """Seat 0 holds a Bang of heart Queens; spades are trump."""
    hands = [
        [make_card(Suit.HEART, Rank.QUEEN), make_card(Suit.HEART, Rank.QUEEN), make_card(Suit.CLUB, Rank.FOUR)],
        [make_card(Suit.HEART, Rank.KING), make_card(Suit.HEART, Rank.NINE), make_card(Suit.CLUB, Rank.SIX)],
        [make_card(Suit.HEART, Rank.FOUR), make_card(Suit.HEART, Rank.SIX), make_card(Suit.CLUB, Rank.SEVEN)],
        [make_card(Suit.CLUB, Rank.SEVEN), make_card(Suit.CLUB, Rank.EIGHT), make_card(Suit.DIAMOND, Rank.NINE)],
    ]
    return make_playing_engine(hands)


# ============================================================================
# Test Setup and Dealing
# ============================================================================


class TestEngineSetup:
    """Test engine construction and dealing."""

    def test_default_players(self, engine):
        """Four seats in two partnerships."""
        assert len(engine.players) == 4
        assert [p.team for p in engine.players] == [0, 1, 0, 1]
        assert engine.phase == GamePhase.ROUND_END
        assert engine.team_levels == [Rank.THREE, Rank.THREE]

    def test_wrong_player_count(self):
        """Exactly four players are required."""
        with pytest.raises(ValueError, match="Exactly 4 players"):
            GameEngine([Player(0, "A"), Player(1, "B")])

    def test_player_ids_must_match_seats(self):
        players = [Player(i, f"P{i}") for i in (0, 1, 3, 2)]
        with pytest.raises(ValueError, match="position 2"):
            GameEngine(players)

    def test_invalid_config(self):
        """Configs whose deal does not add up are rejected."""
        with pytest.raises(ValueError, match="need"):
            GameEngine(config=GameConfig(hand_size=40))

    def test_standard_deal(self, dealt_engine):
        """162 cards: four hands of 39 and a kitty of 6."""
        assert dealt_engine.deck_size == 162
        assert [len(p.hand) for p in dealt_engine.players] == [39, 39, 39, 39]
        assert len(dealt_engine.kitty) == 6
        assert dealt_engine.cards_in_play() == 162
        assert dealt_engine.phase == GamePhase.DECLARING_TRUMP
        assert dealt_engine.round_number == 1
        assert dealt_engine.is_first_round()

    def test_dealt_cards_unique(self, dealt_engine):
        """No card is dealt twice."""
        ids = [c.id for p in dealt_engine.players for c in p.hand]
        ids += [c.id for c in dealt_engine.kitty]
        assert len(set(ids)) == 162

    def test_two_deck_table(self):
        """A 2-deck table deals 25 cards each and an 8-card kitty."""
        config = GameConfig(deck_copies=2, jokers_per_kind=2, hand_size=25, kitty_size=8)
        engine = GameEngine(config=config, rng=random.Random(1))
        engine.start_new_round()
        assert [len(p.hand) for p in engine.players] == [25, 25, 25, 25]
        assert len(engine.kitty) == 8

    def test_seeded_deal_reproducible(self):
        first = GameEngine(rng=random.Random(9))
        second = GameEngine(rng=random.Random(9))
        first.start_new_round()
        second.start_new_round()
        assert [c.id for c in first.players[0].hand] == [c.id for c in second.players[0].hand]

    def test_cannot_restart_mid_round(self, dealt_engine):
        with pytest.raises(GameStateException, match="Cannot start a new round"):
            dealt_engine.start_new_round()


# ============================================================================
# Test Trump Declaration and Kitty
# ============================================================================


class TestDeclaration:
    """Test trump declaration and kitty burial."""

    def test_declare_requires_two_level_cards(self, dealt_engine):
        """Declaring needs two level-rank cards of the suit."""
        player = dealt_engine.players[1]
        player.hand = [make_card(Suit.HEART, Rank.THREE), make_card(Suit.CLUB, Rank.FOUR)]
        with pytest.raises(InvalidDeclarationException, match="needs 2"):
            dealt_engine.declare_trump(1, Suit.HEART)

    def test_declarable_suits(self, dealt_engine):
        player = dealt_engine.players[1]
        player.hand = [
            make_card(Suit.HEART, Rank.THREE),
            make_card(Suit.HEART, Rank.THREE),
            make_card(Suit.CLUB, Rank.THREE),
        ]
        assert dealt_engine.declarable_suits(1) == [Suit.HEART]

    def test_declare_takes_kitty(self, dealt_engine):
        """The dealer holds 45 cards until it buries 6."""
        dealt_kitty = dealt_engine.kitty
        dealt_engine.declare_trump(2, Suit.CLUB, force=True)

        dealer = dealt_engine.players[2]
        assert dealt_engine.dealer_index == 2
        assert dealt_engine.phase == GamePhase.PREPARING_KITTY
        assert len(dealer.hand) == 45
        assert dealt_engine.kitty == []
        assert dealt_engine.dealt_kitty == dealt_kitty
        assert dealt_engine.trump_info.trump_suit == Suit.CLUB
        assert dealt_engine.trump_info.trump_rank == Rank.THREE
        assert dealt_engine.cards_in_play() == 162

        buried = dealer.hand[-6:]
        dealt_engine.set_kitty(buried)
        assert len(dealer.hand) == 39
        assert dealt_engine.kitty == buried
        assert dealt_engine.phase == GamePhase.PLAYING
        assert dealt_engine.current_player_index == 2
        assert dealt_engine.cards_in_play() == 162

    def test_declare_twice(self, dealt_engine):
        dealt_engine.declare_trump(0, Suit.CLUB, force=True)
        with pytest.raises(GameStateException, match="Cannot declare trump"):
            dealt_engine.declare_trump(1, Suit.HEART, force=True)

    def test_random_suit_needs_big_joker(self, dealt_engine):
        dealt_engine.players[3].hand = [make_card(Suit.HEART, Rank.FOUR)]
        with pytest.raises(InvalidDeclarationException, match="no Big Joker"):
            dealt_engine.declare_trump_random_suit(3)

    def test_random_suit_with_big_joker(self, dealt_engine):
        dealt_engine.players[3].hand.append(make_joker(Rank.BIG_JOKER))
        suit = dealt_engine.declare_trump_random_suit(3)
        assert suit in SUITS
        assert dealt_engine.dealer_index == 3
        assert dealt_engine.trump_info.trump_suit == suit

    def test_trump_from_kitty(self, dealt_engine):
        """The kitty's least represented suit becomes trump."""
        kitty = dealt_engine.kitty
        counts = {suit: sum(1 for c in kitty if c.suit == suit) for suit in SUITS}
        expected = min(SUITS, key=lambda suit: counts[suit])

        dealer = dealt_engine.declare_trump_from_kitty()
        assert dealer in range(4)
        assert dealt_engine.dealer_index == dealer
        assert dealt_engine.trump_info.trump_suit == expected

    def test_set_kitty_wrong_count(self, dealt_engine):
        dealt_engine.declare_trump(0, Suit.CLUB, force=True)
        with pytest.raises(ResourceExhaustedException, match="exactly 6"):
            dealt_engine.set_kitty(dealt_engine.players[0].hand[:5])

    def test_set_kitty_cards_not_held(self, dealt_engine):
        dealt_engine.declare_trump(0, Suit.CLUB, force=True)
        foreign = dealt_engine.players[1].hand[:6]
        with pytest.raises(InvalidDeclarationException, match="does not hold"):
            dealt_engine.set_kitty(foreign)

    def test_set_kitty_wrong_phase(self, dealt_engine):
        with pytest.raises(GameStateException, match="Cannot set kitty"):
            dealt_engine.set_kitty(dealt_engine.players[0].hand[:6])

    def test_play_before_declaration(self, dealt_engine):
        with pytest.raises(GameStateException, match="Cannot play cards"):
            dealt_engine.play_cards(0, dealt_engine.players[0].hand[:1])

    def test_jokers_in_kitty_count_as_bloods(self, dealt_engine):
        dealt_engine.declare_trump(0, Suit.CLUB, force=True)
        dealer = dealt_engine.players[0]
        dealer.hand.extend([make_joker(Rank.BIG_JOKER), make_joker(Rank.SMALL_JOKER)])
        jokers = dealer.hand[-2:]
        others = [c for c in dealer.hand if not c.is_joker][:4]
        dealt_engine.set_kitty(jokers + others)
        assert dealt_engine.kitty_bloods() == 3


# ============================================================================
# Test Play Validation
# ============================================================================


class TestPlayValidation:
    """Test lead and follow legality."""

    def test_lead_bang(self, bang_position):
        queens = bang_position.players[0].hand[:2]
        bang_position.play_cards(0, queens)
        assert bang_position.current_trick_play_type == PlayType.BANG
        assert bang_position.lead_suit() == Suit.HEART
        assert bang_position.current_player_index == 1

    def test_lead_must_form_shape(self, bang_position):
        """Two different cards are not a lead."""
        queen = bang_position.players[0].hand[0]
        four = bang_position.players[0].hand[2]
        with pytest.raises(IllegalPlayException, match="single, bang or gunzi"):
            bang_position.play_cards(0, [queen, four])
        assert len(bang_position.players[0].hand) == 3
        assert bang_position.trick_plays_made == 0

    def test_not_your_turn(self, bang_position):
        with pytest.raises(IllegalPlayException, match="turn") as exc_info:
            bang_position.play_cards(1, bang_position.players[1].hand[:1])
        assert exc_info.value.seat == 1

    def test_cards_not_held(self, bang_position):
        foreign = bang_position.players[1].hand[:1]
        assert not bang_position.is_valid_play(0, foreign)
        with pytest.raises(IllegalPlayException, match="not in hand"):
            bang_position.play_cards(0, foreign)

    def test_follower_must_match_count(self, bang_position):
        bang_position.play_cards(0, bang_position.players[0].hand[:2])
        king = next(c for c in bang_position.players[1].hand if c.rank == Rank.KING)
        with pytest.raises(IllegalPlayException, match="must play 2"):
            bang_position.play_cards(1, [king])

    def test_follower_must_follow_suit(self, bang_position):
        """A seat holding two hearts must play both against a heart Bang."""
        bang_position.play_cards(0, bang_position.players[0].hand[:2])
        hand = bang_position.players[1].hand
        king = next(c for c in hand if c.rank == Rank.KING)
        club = next(c for c in hand if c.suit == Suit.CLUB)
        assert not bang_position.is_valid_play(1, [king, club])
        with pytest.raises(IllegalPlayException, match="must follow Hearts"):
            bang_position.play_cards(1, [king, club])

    def test_follower_need_not_form_bang(self, bang_position):
        """King and Nine of hearts follow a Bang legally."""
        bang_position.play_cards(0, bang_position.players[0].hand[:2])
        hearts = [c for c in bang_position.players[1].hand if c.suit == Suit.HEART]
        assert bang_position.is_valid_play(1, hearts)

    def test_follower_holding_bang_must_play_it(self):
        """A seat with K-K-9 of hearts may not split its Bang against a heart Bang."""
        kings = [make_card(Suit.HEART, Rank.KING), make_card(Suit.HEART, Rank.KING)]
        nine = make_card(Suit.HEART, Rank.NINE)
        hands = [
            [make_card(Suit.HEART, Rank.QUEEN), make_card(Suit.HEART, Rank.QUEEN), make_card(Suit.CLUB, Rank.NINE)],
            kings + [nine],
            [make_card(Suit.DIAMOND, Rank.FOUR), make_card(Suit.DIAMOND, Rank.SIX), make_card(Suit.DIAMOND, Rank.SEVEN)],
            [make_card(Suit.DIAMOND, Rank.EIGHT), make_card(Suit.DIAMOND, Rank.NINE), make_card(Suit.DIAMOND, Rank.TEN)],
        ]
        engine = make_playing_engine(hands)
        engine.play_cards(0, [c for c in engine.players[0].hand if c.rank == Rank.QUEEN])

        assert not engine.is_valid_play(1, [kings[0], nine])
        with pytest.raises(IllegalPlayException, match="must play a bang of Hearts"):
            engine.play_cards(1, [kings[1], nine])
        assert engine.is_valid_play(1, kings)
        engine.play_cards(1, kings)
        assert engine.current_winner() == 1

    def test_follower_holding_bang_against_gunzi(self):
        """Only a matching Gunzi is forced; a Bang plus a loose card still follows."""
        hands = [
            [make_card(Suit.HEART, Rank.QUEEN) for _ in range(3)],
            [make_card(Suit.HEART, Rank.KING), make_card(Suit.HEART, Rank.KING), make_card(Suit.HEART, Rank.NINE)],
            [make_card(Suit.DIAMOND, Rank.FOUR), make_card(Suit.DIAMOND, Rank.SIX), make_card(Suit.DIAMOND, Rank.SEVEN)],
            [make_card(Suit.DIAMOND, Rank.EIGHT), make_card(Suit.DIAMOND, Rank.NINE), make_card(Suit.DIAMOND, Rank.TEN)],
        ]
        engine = make_playing_engine(hands)
        engine.play_cards(0, list(engine.players[0].hand))
        assert engine.current_trick_play_type == PlayType.GUNZI
        assert engine.is_valid_play(1, list(engine.players[1].hand))

    def test_short_follower_plays_all_suit_cards(self):
        """With one heart left it must be part of the follow."""
        seven = make_card(Suit.HEART, Rank.SEVEN)
        clubs = [make_card(Suit.CLUB, Rank.FOUR), make_card(Suit.CLUB, Rank.SIX)]
        hands = [
            [make_card(Suit.HEART, Rank.QUEEN), make_card(Suit.HEART, Rank.QUEEN), make_card(Suit.CLUB, Rank.NINE)],
            [seven] + clubs,
            [make_card(Suit.DIAMOND, Rank.FOUR), make_card(Suit.DIAMOND, Rank.SIX), make_card(Suit.DIAMOND, Rank.SEVEN)],
            [make_card(Suit.DIAMOND, Rank.EIGHT), make_card(Suit.DIAMOND, Rank.NINE), make_card(Suit.DIAMOND, Rank.TEN)],
        ]
        engine = make_playing_engine(hands)
        engine.play_cards(0, engine.players[0].hand[:2])

        assert not engine.is_valid_play(1, clubs)
        assert engine.is_valid_play(1, [seven, clubs[0]])

    def test_void_follower_plays_anything(self, bang_position):
        bang_position.play_cards(0, bang_position.players[0].hand[:2])
        bang_position.play_cards(1, [c for c in bang_position.players[1].hand if c.suit == Suit.HEART])
        bang_position.play_cards(2, [c for c in bang_position.players[2].hand if c.suit == Suit.HEART])
        hand = bang_position.players[3].hand
        assert bang_position.is_valid_play(3, [hand[0], hand[2]])

    def test_trump_lead_follow(self):
        """Trump-rank cards of any suit follow a trump lead."""
        level_heart = make_card(Suit.HEART, Rank.THREE)
        hands = [
            [make_card(Suit.SPADE, Rank.NINE), make_card(Suit.CLUB, Rank.NINE)],
            [level_heart, make_card(Suit.HEART, Rank.NINE)],
            [make_card(Suit.CLUB, Rank.FOUR), make_card(Suit.CLUB, Rank.FIVE)],
            [make_card(Suit.CLUB, Rank.SIX), make_card(Suit.CLUB, Rank.SEVEN)],
        ]
        engine = make_playing_engine(hands)
        spade_nine = next(c for c in engine.players[0].hand if c.suit == Suit.SPADE)
        engine.play_cards(0, [spade_nine])
        assert engine.lead_suit() is None
        assert engine.legal_single_cards(1) == [level_heart]

    def test_play_single_card_argument(self, bang_position):
        """A lone Card is accepted as well as a list."""
        four = bang_position.players[0].hand[2]
        bang_position.play_card(0, four)
        assert bang_position.current_trick_play_type == PlayType.SINGLE

    def test_lead_suit_without_lead(self, bang_position):
        with pytest.raises(GameStateException, match="No card has been led"):
            bang_position.lead_suit()


# ============================================================================
# Test Trick Evaluation
# ============================================================================


class TestTrickEvaluation:
    """Test trick winners and point capture."""

    def test_bang_beats_mismatched_higher_cards(self, bang_position):
        """King and Nine cannot beat a Bang of Queens."""
        engine = bang_position
        engine.play_cards(0, engine.players[0].hand[:2])
        engine.play_cards(1, [c for c in engine.players[1].hand if c.suit == Suit.HEART])
        engine.play_cards(2, [c for c in engine.players[2].hand if c.suit == Suit.HEART])
        engine.play_cards(3, [c for c in engine.players[3].hand if c.suit == Suit.CLUB])

        assert engine.competing_strength(1) is None
        assert engine.current_winner() == 0
        assert engine.trick_points() == 10
        assert engine.evaluate_trick() == 0
        assert engine.current_player_index == 0
        assert engine.defender_points == 0
        assert engine.tricks_played == 1

    def test_higher_bang_wins(self):
        hands = [
            [make_card(Suit.HEART, Rank.QUEEN), make_card(Suit.HEART, Rank.QUEEN), make_card(Suit.CLUB, Rank.FOUR)],
            [make_card(Suit.HEART, Rank.ACE), make_card(Suit.HEART, Rank.ACE), make_card(Suit.CLUB, Rank.SIX)],
            [make_card(Suit.HEART, Rank.KING), make_card(Suit.HEART, Rank.SIX), make_card(Suit.CLUB, Rank.SEVEN)],
            [make_card(Suit.CLUB, Rank.TEN), make_card(Suit.CLUB, Rank.EIGHT), make_card(Suit.DIAMOND, Rank.NINE)],
        ]
        engine = make_playing_engine(hands)
        for seat in range(3):
            engine.play_cards(seat, [c for c in engine.players[seat].hand if c.suit == Suit.HEART])
        engine.play_cards(3, [c for c in engine.players[3].hand if c.suit == Suit.CLUB])

        assert engine.evaluate_trick() == 1
        assert engine.defender_points == 20

    def test_trump_bang_beats_side_bang(self):
        hands = [
            [make_card(Suit.HEART, Rank.ACE), make_card(Suit.HEART, Rank.ACE), make_card(Suit.CLUB, Rank.FOUR)],
            [make_card(Suit.HEART, Rank.FOUR), make_card(Suit.HEART, Rank.SIX), make_card(Suit.CLUB, Rank.SIX)],
            [make_card(Suit.HEART, Rank.SEVEN), make_card(Suit.HEART, Rank.EIGHT), make_card(Suit.CLUB, Rank.SEVEN)],
            [make_card(Suit.SPADE, Rank.FOUR), make_card(Suit.SPADE, Rank.FOUR), make_card(Suit.DIAMOND, Rank.NINE)],
        ]
        engine = make_playing_engine(hands)
        for seat in range(4):
            hand = sorted(engine.players[seat].hand, key=lambda c: c.suit == Suit.CLUB or c.suit == Suit.DIAMOND)
            engine.play_cards(seat, hand[:2])

        assert engine.current_winner() == 3

    def test_earlier_play_keeps_tie(self):
        """Identical cards: the first played wins."""
        hands = [
            [make_card(Suit.HEART, Rank.ACE)],
            [make_card(Suit.HEART, Rank.ACE)],
            [make_card(Suit.HEART, Rank.FOUR)],
            [make_card(Suit.HEART, Rank.SIX)],
        ]
        engine = make_playing_engine(hands)
        for seat in range(4):
            engine.play_cards(seat, engine.players[seat].hand)
        assert engine.current_winner() == 0

    def test_off_suit_level_card_trumps(self):
        """A void follower wins with a level-rank card of a side suit."""
        hands = [
            [make_card(Suit.HEART, Rank.ACE), make_card(Suit.CLUB, Rank.FOUR)],
            [make_card(Suit.DIAMOND, Rank.THREE), make_card(Suit.CLUB, Rank.SIX)],
            [make_card(Suit.HEART, Rank.FOUR), make_card(Suit.CLUB, Rank.SEVEN)],
            [make_card(Suit.HEART, Rank.SIX), make_card(Suit.CLUB, Rank.EIGHT)],
        ]
        engine = make_playing_engine(hands)
        engine.play_cards(0, [c for c in engine.players[0].hand if c.suit == Suit.HEART])
        engine.play_cards(1, [c for c in engine.players[1].hand if c.rank == Rank.THREE])
        engine.play_cards(2, [c for c in engine.players[2].hand if c.suit == Suit.HEART])
        engine.play_cards(3, [c for c in engine.players[3].hand if c.suit == Suit.HEART])
        assert engine.evaluate_trick() == 1
        assert engine.current_player_index == 1

    def test_discard_cannot_win(self):
        """An off-suit non-trump card never wins."""
        hands = [
            [make_card(Suit.HEART, Rank.FOUR)],
            [make_card(Suit.CLUB, Rank.ACE)],
            [make_card(Suit.HEART, Rank.SIX)],
            [make_card(Suit.DIAMOND, Rank.ACE)],
        ]
        engine = make_playing_engine(hands)
        for seat in range(4):
            engine.play_cards(seat, engine.players[seat].hand)
        assert engine.current_winner() == 2

    def test_evaluate_incomplete_trick(self, bang_position):
        bang_position.play_cards(0, bang_position.players[0].hand[:2])
        with pytest.raises(GameStateException, match="not complete"):
            bang_position.evaluate_trick()

    def test_last_trick_doubles_kitty(self):
        """Defenders winning the final trick take the kitty points twice."""
        hands = [
            [make_card(Suit.HEART, Rank.FOUR)],
            [make_card(Suit.HEART, Rank.ACE)],
            [make_card(Suit.HEART, Rank.FIVE)],
            [make_card(Suit.HEART, Rank.SIX)],
        ]
        engine = make_playing_engine(hands)
        kitty_points = sum(c.points for c in engine.kitty)
        for seat in range(4):
            engine.play_cards(seat, engine.players[seat].hand)

        assert engine.evaluate_trick() == 1
        assert engine.defender_points == 5 + 2 * kitty_points
        assert engine.last_trick_captured_by_defender
        assert engine.is_round_over()

    def test_declarer_last_trick(self):
        hands = [
            [make_card(Suit.HEART, Rank.ACE)],
            [make_card(Suit.HEART, Rank.KING)],
            [make_card(Suit.HEART, Rank.FIVE)],
            [make_card(Suit.HEART, Rank.SIX)],
        ]
        engine = make_playing_engine(hands)
        for seat in range(4):
            engine.play_cards(seat, engine.players[seat].hand)
        engine.evaluate_trick()
        assert engine.defender_points == 0
        assert not engine.last_trick_captured_by_defender


# ============================================================================
# Test Round Result
# ============================================================================


class TestRoundResult:
    """Test scoring at round end."""

    def _finished_engine(self):
        hands = [
            [make_card(Suit.HEART, Rank.ACE)],
            [make_card(Suit.HEART, Rank.KING)],
            [make_card(Suit.HEART, Rank.FIVE)],
            [make_card(Suit.HEART, Rank.SIX)],
        ]
        engine = make_playing_engine(hands)
        for seat in range(4):
            engine.play_cards(seat, engine.players[seat].hand)
        engine.evaluate_trick()
        return engine

    def test_result_before_round_end(self, bang_position):
        with pytest.raises(GameStateException, match="Round is not over"):
            bang_position.calculate_round_result()

    def test_result_advances_level_once(self):
        engine = self._finished_engine()
        result = engine.calculate_round_result()

        assert result.declarer_wins
        assert result.winning_team == 0
        expected = [Rank.THREE, Rank.THREE]
        expected[0] = Rank(Rank.THREE + result.level_change)
        assert engine.team_levels == expected

        again = engine.calculate_round_result()
        assert again is result
        assert engine.team_levels == expected

    def test_result_recorded_for_next_round(self):
        engine = self._finished_engine()
        result = engine.calculate_round_result()
        assert engine.previous_winning_team == result.winning_team
        assert engine.previous_tribute_count == result.tribute_count

    def test_next_round_scores_unscored_round(self):
        """Starting a new round scores the previous one first."""
        engine = self._finished_engine()
        engine.start_new_round()
        assert engine.previous_winning_team == 0
        assert engine.team_levels[0] > Rank.THREE
        assert engine.round_number == 2
        assert not engine.is_first_round()


# ============================================================================
# Test Tribute
# ============================================================================


class TestTribute:
    """Test tribute exchanges between rounds."""

    @pytest.fixture
    def tribute_engine(self):
        engine = GameEngine(rng=random.Random(11))
        engine.previous_winning_team = 0
        engine.previous_tribute_count = 2
        engine.start_new_round()
        return engine

    def test_tribute_required(self, tribute_engine):
        assert tribute_engine.is_tribute_required()

    def test_declaration_blocked_until_tribute(self, tribute_engine):
        with pytest.raises(GameStateException, match="Tribute must be settled"):
            tribute_engine.declare_trump(0, Suit.HEART, force=True)

    def test_auto_tribute(self, tribute_engine):
        """The losing team's best cards go to the winning team."""
        losers = [p for p in tribute_engine.players if p.team == 1]
        best_before = max(
            (c for p in losers for c in p.hand),
            key=lambda c: (c.rank.is_joker, int(c.rank)),
        )

        messages = tribute_engine.perform_auto_tribute()

        assert len(messages) == 2
        assert not tribute_engine.is_tribute_required()
        assert tribute_engine.cards_in_play() == 162
        assert [len(p.hand) for p in tribute_engine.players] == [39, 39, 39, 39]
        assert best_before in tribute_engine.players[0].hand
        tribute_engine.declare_trump(1, Suit.HEART, force=True)

    def test_auto_tribute_not_owed(self, dealt_engine):
        assert dealt_engine.perform_auto_tribute() is None

    def test_manual_tribute(self, tribute_engine):
        giver = tribute_engine.players[1]
        receiver = tribute_engine.players[0]
        given = giver.hand[0]
        returned = receiver.hand[-1]

        assert tribute_engine.perform_tribute(1, given, returned) == 0
        assert given in receiver.hand
        assert returned in giver.hand

    def test_winning_team_cannot_pay(self, tribute_engine):
        with pytest.raises(InvalidDeclarationException, match="Winning team"):
            tribute_engine.perform_tribute(
                2, tribute_engine.players[2].hand[0], tribute_engine.players[0].hand[0]
            )

    def test_tribute_not_required(self, dealt_engine):
        with pytest.raises(GameStateException, match="not required"):
            dealt_engine.perform_tribute(
                1, dealt_engine.players[1].hand[0], dealt_engine.players[0].hand[0]
            )


# ============================================================================
# Test Copy, Redeal and Listeners
# ============================================================================


class TestCopyAndListeners:
    """Test simulation copies and observer notifications."""

    def test_copy_is_independent(self, bang_position):
        clone = bang_position.copy()
        clone.play_cards(0, clone.players[0].hand[:2])

        assert bang_position.trick_plays_made == 0
        assert len(bang_position.players[0].hand) == 3
        assert len(clone.players[0].hand) == 1

    def test_copy_drops_listeners(self, bang_position):
        listener = RecordingListener()
        bang_position.add_listener(listener)
        clone = bang_position.copy()
        clone.play_cards(0, clone.players[0].hand[:2])
        assert listener.plays == []

    def test_listener_events(self, bang_position):
        listener = RecordingListener()
        bang_position.add_listener(listener)
        engine = bang_position

        engine.play_cards(0, engine.players[0].hand[:2])
        engine.play_cards(1, [c for c in engine.players[1].hand if c.suit == Suit.HEART])
        engine.play_cards(2, [c for c in engine.players[2].hand if c.suit == Suit.HEART])
        engine.play_cards(3, [c for c in engine.players[3].hand if c.suit == Suit.CLUB])
        engine.evaluate_trick()

        assert len(listener.plays) == 4
        assert listener.plays[0].is_lead
        assert listener.plays[1].followed_suit
        assert not listener.plays[3].followed_suit
        assert listener.plays[3].lead_suit == Suit.HEART
        assert len(listener.tricks) == 1
        assert listener.tricks[0].winner == 0

    def test_round_start_notified(self, engine):
        listener = RecordingListener()
        engine.add_listener(listener)
        engine.start_new_round()
        assert listener.rounds == 1

    def test_remove_listener(self, engine):
        listener = RecordingListener()
        engine.add_listener(listener)
        engine.remove_listener(listener)
        engine.start_new_round()
        assert listener.rounds == 0

    def test_redeal_hidden(self, dealt_engine):
        clone = dealt_engine.copy()
        first, second = clone.players[1].hand, clone.players[3].hand
        clone.redeal_hidden({1: list(second), 3: list(first)})
        assert set(clone.players[1].hand) == set(second)
        assert set(dealt_engine.players[1].hand) == set(first)

    def test_redeal_wrong_count(self, dealt_engine):
        hand = dealt_engine.players[1].hand
        with pytest.raises(ValueError, match="must receive 39"):
            dealt_engine.redeal_hidden({1: hand[:-1]})

    def test_redeal_foreign_cards(self, dealt_engine):
        foreign = dealt_engine.players[2].hand
        with pytest.raises(ValueError, match="exactly the hidden cards"):
            dealt_engine.redeal_hidden({1: foreign})

    def test_game_state_perspective(self, dealt_engine):
        """Only the perspective seat's hand is revealed."""
        state = dealt_engine.get_game_state(perspective=1)
        assert state["players"][1]["hand"] is not None
        assert state["players"][0]["hand"] is None
        assert state["players"][0]["hand_size"] == 39
        assert state["phase"] == "declaring_trump"

    def test_trick_snapshot(self, bang_position):
        bang_position.play_cards(0, bang_position.players[0].hand[:2])
        snapshot = bang_position.trick_snapshot()
        assert snapshot.leader == 0
        assert snapshot.plays_made == 1
        assert snapshot.play_type == PlayType.BANG
        assert len(snapshot.cards[0]) == 2
