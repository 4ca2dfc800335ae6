"""
Tests for the AI: difficulty profiles, search, policies and hints.
"""

import threading

import pytest

from ..bots import (
    AIDecisionEngine,
    AlphaBetaSearch,
    GreedyPolicy,
    PolicyKind,
    RandomPolicy,
    evaluator_for,
    get_profile,
)
from ..bots.evaluator import WIN_SCORE
from ..bots.search import MATE_BAND
from ..engine_core import ErrorCode, GameSettings
from ..games.dots_and_boxes import HORIZONTAL, VERTICAL
from .conftest import draw_line, play_positions

# X on (0,0) and (1,0), O on (0,1) and (1,1); X to move wins at (2,0).
X_WINS_NEXT = [(0, 0), (0, 1), (1, 0), (1, 1)]
# X on (0,0) and (1,0), O on (1,1); O must block at (2,0).
O_MUST_BLOCK = [(0, 0), (1, 1), (1, 0)]


def cell(move):
    return move.data["x"], move.data["y"]


@pytest.fixture
def ai(tictactoe):
    return AIDecisionEngine(tictactoe, seed=7)


@pytest.fixture
def two_box_endgame(dots, players):
    """
    Two boxes side by side, Bob to move.

    The shared side takes the left box and keeps the turn for the right
    one; the outer side would hand both boxes to Alice.
    """
    state = dots.create_initial_state(
        GameSettings(game_type="dots_and_boxes", custom_rules={"width": 3, "height": 2}), players
    )
    for kind, row, col in [
        (HORIZONTAL, 0, 0),
        (HORIZONTAL, 1, 0),
        (VERTICAL, 0, 0),
        (HORIZONTAL, 0, 1),
        (HORIZONTAL, 1, 1),
    ]:
        state = draw_line(dots, state, kind, row, col)
    assert state.current_player.id == "bob"
    return state


class TestDifficulty:
    """Tests for level profiles."""

    def test_policy_per_level(self):
        """Levels 1 and 2 play without search; 5 and up deepen iteratively."""
        assert get_profile("tictactoe", 1).policy == PolicyKind.RANDOM
        assert get_profile("tictactoe", 2).policy == PolicyKind.GREEDY
        assert get_profile("tictactoe", 3).policy == PolicyKind.SEARCH
        assert not get_profile("tictactoe", 4).iterative_deepening
        assert get_profile("tictactoe", 5).iterative_deepening

    def test_depth_grows_with_level(self):
        """Higher levels never search shallower."""
        depths = [get_profile("dots_and_boxes", level).depth for level in range(3, 7)]
        assert depths == sorted(depths)

    def test_time_limit_scales(self):
        """The thinking budget follows the time scale."""
        profile = get_profile("sprouts", 6)
        assert profile.time_limit(1.0) == pytest.approx(2.0)
        assert profile.time_limit(0.5) == pytest.approx(1.0)

    @pytest.mark.parametrize("level", [0, 7])
    def test_level_out_of_range(self, level):
        """Levels run from 1 to 6."""
        with pytest.raises(ValueError):
            get_profile("tictactoe", level)

    def test_unknown_game(self):
        """Profiles exist only for known games."""
        with pytest.raises(ValueError):
            get_profile("chess", 3)


class TestSearch:
    """Tests for alpha-beta search."""

    def test_depth_must_be_positive(self, tictactoe):
        """A search needs at least one ply."""
        with pytest.raises(ValueError):
            AlphaBetaSearch(tictactoe, evaluator_for(tictactoe), max_depth=0)

    def test_immediate_win(self, tictactoe, ttt_state):
        """A winning move is returned without searching deeper."""
        state = play_positions(tictactoe, ttt_state, X_WINS_NEXT)
        result = AlphaBetaSearch(tictactoe, evaluator_for(tictactoe), max_depth=4).search(state, "alice")
        assert cell(result.move) == (2, 0)
        assert result.is_forced_win
        assert result.depth_reached == 1

    def test_exact_root_scores(self, tictactoe, ttt_state):
        """Every move but the block loses, and each gets its own score."""
        state = play_positions(tictactoe, ttt_state, O_MUST_BLOCK)
        search = AlphaBetaSearch(
            tictactoe, evaluator_for(tictactoe), max_depth=4, iterative_deepening=False, exact_root=True
        )
        result = search.search(state, "bob")
        assert cell(result.move) == (2, 0)
        assert len(result.scored_moves) == 6
        for move, score in result.scored_moves[1:]:
            assert score <= -WIN_SCORE + MATE_BAND

    def test_cancelled_search(self, tictactoe, ttt_state):
        """A set cancel event stops the search."""
        from ..bots.search import SearchCancelled

        event = threading.Event()
        event.set()
        search = AlphaBetaSearch(tictactoe, evaluator_for(tictactoe), max_depth=3, cancel_event=event)
        with pytest.raises(SearchCancelled):
            search.search(ttt_state, "alice")


class TestPolicies:
    """Tests for the random and greedy levels."""

    def test_random_is_seeded(self, tictactoe, ttt_state):
        """Two random policies with one seed agree."""
        moves = tictactoe.get_legal_moves(ttt_state)
        first = RandomPolicy(seed=3).select_move(ttt_state, moves, "alice")
        second = RandomPolicy(seed=3).select_move(ttt_state, moves, "alice")
        assert first.move.data == second.move.data

    def test_greedy_takes_win(self, tictactoe, ttt_state):
        """One-ply lookahead sees a win in one."""
        state = play_positions(tictactoe, ttt_state, X_WINS_NEXT)
        policy = GreedyPolicy(evaluator_for(tictactoe), seed=1)
        decision = policy.select_move(state, tictactoe.get_legal_moves(state), "alice")
        assert cell(decision.move) == (2, 0)


class TestDecisionEngine:
    """Tests for get_move and its error results."""

    @pytest.mark.parametrize("level", [2, 3, 4, 5, 6])
    def test_takes_win_in_one(self, tictactoe, ttt_state, level):
        """Every level above random finds a win in one."""
        state = play_positions(tictactoe, ttt_state, X_WINS_NEXT)
        result = AIDecisionEngine(tictactoe, seed=1).get_move(state, level, "alice")
        assert result.success
        assert cell(result.data) == (2, 0)

    @pytest.mark.parametrize("level", [3, 4, 6])
    def test_blocks_threat(self, tictactoe, ttt_state, level):
        """Searching levels block a line about to be completed."""
        state = play_positions(tictactoe, ttt_state, O_MUST_BLOCK)
        result = AIDecisionEngine(tictactoe).get_move(state, level, "bob")
        assert cell(result.data) == (2, 0)

    def test_seeded_levels_repeat(self, tictactoe, ttt_state):
        """The same seed plays the same random move."""
        first = AIDecisionEngine(tictactoe, seed=42).get_move(ttt_state, 1, "alice")
        second = AIDecisionEngine(tictactoe, seed=42).get_move(ttt_state, 1, "alice")
        assert first.data.data == second.data.data

    def test_move_is_legal(self, ai, tictactoe, ttt_state):
        """The chosen move passes validation."""
        move = ai.get_move(ttt_state, 1, "alice").data
        assert tictactoe.validate_move(ttt_state, move, "alice").is_valid

    def test_no_moves_in_finished_game(self, ai, tictactoe, ttt_state):
        """A finished game has nothing to play."""
        state = play_positions(tictactoe, ttt_state, [(0, 0), (1, 0), (0, 1), (1, 1), (0, 2)])
        result = ai.get_move(state, 3, "alice")
        assert result.error.code == ErrorCode.AI_NO_MOVES

    def test_not_your_turn(self, ai, ttt_state):
        """The AI only plays for the side to move."""
        assert ai.get_move(ttt_state, 3, "bob").error.code == ErrorCode.NOT_YOUR_TURN

    def test_unknown_player(self, ai, ttt_state):
        """Strangers get no move."""
        assert ai.get_move(ttt_state, 3, "mallory").error.code == ErrorCode.PLAYER_NOT_FOUND

    def test_invalid_level(self, ai, ttt_state):
        """An unknown level is an AI error."""
        assert ai.get_move(ttt_state, 9, "alice").error.code == ErrorCode.AI_ERROR

    def test_cancelled(self, ai, ttt_state):
        """A cancelled search becomes an AI error, not an exception."""
        event = threading.Event()
        event.set()
        result = ai.get_move(ttt_state, 4, "alice", cancel_event=event)
        assert result.error.code == ErrorCode.AI_ERROR

    @pytest.mark.parametrize("level", [2, 3, 4])
    def test_dots_keeps_the_turn(self, dots, two_box_endgame, level):
        """Taking the shared side wins both boxes."""
        result = AIDecisionEngine(dots, seed=1).get_move(two_box_endgame, level, "bob")
        assert result.data.type.value == VERTICAL
        assert (result.data.data["row"], result.data.data["col"]) == (0, 1)

    def test_sprouts_move(self, sprouts, sprouts_state):
        """The searching levels produce a legal curve."""
        result = AIDecisionEngine(sprouts).get_move(sprouts_state, 3, "alice")
        assert result.success
        assert sprouts.validate_move(sprouts_state, result.data, "alice").is_valid


class TestHints:
    """Tests for hints and position evaluation."""

    def test_hint_blocks(self, ai, tictactoe, ttt_state):
        """The hint points at the only move that does not lose."""
        state = play_positions(tictactoe, ttt_state, O_MUST_BLOCK)
        hint = ai.get_hint(state, "bob")
        assert cell(hint.suggestion) == (2, 0)
        assert hint.explanation
        assert 0.1 <= hint.confidence <= 1.0

    def test_hint_is_deterministic(self, tictactoe, ttt_state):
        """Hints ignore the seed."""
        state = play_positions(tictactoe, ttt_state, [(1, 1)])
        first = AIDecisionEngine(tictactoe, seed=1).get_hint(state, "bob")
        second = AIDecisionEngine(tictactoe, seed=2).get_hint(state, "bob")
        assert first.suggestion.data == second.suggestion.data
        assert first.confidence == second.confidence
        assert first.explanation == second.explanation

    def test_winning_hint(self, ai, tictactoe, ttt_state):
        """A winning move is explained as such."""
        state = play_positions(tictactoe, ttt_state, X_WINS_NEXT)
        hint = ai.get_hint(state, "alice")
        assert cell(hint.suggestion) == (2, 0)
        assert hint.explanation == "This move wins the game."
        assert hint.confidence == 1.0

    def test_no_hint_when_finished(self, ai, tictactoe, ttt_state):
        """No hint once the game is over."""
        state = play_positions(tictactoe, ttt_state, [(0, 0), (1, 0), (0, 1), (1, 1), (0, 2)])
        assert ai.get_hint(state, "bob") is None

    def test_dots_hint(self, dots, two_box_endgame):
        """The hint keeps the turn and both boxes."""
        hint = AIDecisionEngine(dots).get_hint(two_box_endgame, "bob")
        assert (hint.suggestion.data["row"], hint.suggestion.data["col"]) == (0, 1)
        assert hint.explanation == "This move leads to a forced win."

    def test_evaluate_position(self, ai, tictactoe, ttt_state):
        """Positions score in [-1, 1]; finished games score exactly."""
        assert -1.0 <= ai.evaluate_position(ttt_state, "alice") <= 1.0
        state = play_positions(tictactoe, ttt_state, [(0, 0), (1, 0), (0, 1), (1, 1), (0, 2)])
        assert ai.evaluate_position(state, "alice") == 1.0
        assert ai.evaluate_position(state, "bob") == -1.0

    def test_box_margin_feature(self, dots, dots_state):
        """Owning a box counts for the owner and against the opponent."""
        state = dots_state
        for kind, row, col in [(HORIZONTAL, 0, 0), (VERTICAL, 0, 0), (HORIZONTAL, 1, 0), (VERTICAL, 0, 1)]:
            state = draw_line(dots, state, kind, row, col)
        evaluator = evaluator_for(dots)
        assert evaluator.features(state, "bob")["score"] == pytest.approx(10.0)
        assert evaluator.features(state, "alice")["score"] == pytest.approx(-10.0)
