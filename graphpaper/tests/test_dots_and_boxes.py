"""
Tests for the dots-and-boxes engine.

Tests:
- Grid setup and move generation
- Box completion and the extra turn
- Game end and scoring
- Chain analysis
"""

import pytest

from ..engine_core import ErrorCode, GameSettings, MoveType, TerminalReason, create_move
from ..games.dots_and_boxes import HORIZONTAL, VERTICAL, analyze_game_state
from .conftest import draw_line


def draw_all(engine, state, lines):
    for kind, row, col in lines:
        state = draw_line(engine, state, kind, row, col)
    return state


class TestSetup:
    """Tests for creating a grid."""

    def test_line_and_box_counts(self, dots, dots_state):
        """A 3x3-dot grid has twelve lines and four boxes."""
        meta = dots_state.metadata
        assert len(dots.get_legal_moves(dots_state)) == 12
        assert meta.total_boxes == 4
        assert len(meta.horizontal_lines) == 3 and len(meta.horizontal_lines[0]) == 2
        assert len(meta.vertical_lines) == 2 and len(meta.vertical_lines[0]) == 3

    def test_default_grid(self, dots, players):
        """Without a size the grid is 4x4 dots."""
        state = dots.create_initial_state(None, players)
        assert state.metadata.total_boxes == 9

    def test_rectangular_grid(self, dots, players):
        """Width and height can differ."""
        settings = GameSettings(game_type="dots_and_boxes", custom_rules={"width": 4, "height": 2})
        meta = dots.create_initial_state(settings, players).metadata
        assert (meta.box_rows, meta.box_cols) == (1, 3)

    @pytest.mark.parametrize("size", [1, 9])
    def test_grid_out_of_range(self, dots, players, size):
        """Grids must be 2-8 dots per side."""
        with pytest.raises(ValueError):
            dots.create_initial_state(GameSettings(game_type="dots_and_boxes", grid_size=size), players)


class TestMoves:
    """Tests for drawing lines."""

    def test_plain_line_passes_turn(self, dots, dots_state):
        """A line that completes nothing hands the turn over."""
        state = draw_line(dots, dots_state, HORIZONTAL, 0, 0)
        assert state.current_player.id == "bob"
        assert state.metadata.last_move_completed_boxes == 0

    def test_completing_box_keeps_turn(self, dots, dots_state):
        """Completing a box scores it and the same player moves again."""
        state = draw_all(dots, dots_state, [
            (HORIZONTAL, 0, 0),  # alice
            (VERTICAL, 0, 0),  # bob
            (HORIZONTAL, 1, 0),  # alice
        ])
        assert state.current_player.id == "bob"

        state = draw_line(dots, state, VERTICAL, 0, 1)
        meta = state.metadata
        assert meta.boxes[0][0] == 1
        assert meta.player_scores == (0, 1)
        assert meta.last_move_completed_boxes == 1
        assert state.players[1].score == 1
        assert state.current_player.id == "bob"

    def test_one_line_two_boxes(self, dots, dots_state):
        """A shared side can close two boxes at once."""
        state = draw_all(dots, dots_state, [
            (HORIZONTAL, 0, 0),
            (HORIZONTAL, 1, 0),
            (VERTICAL, 0, 0),
            (HORIZONTAL, 0, 1),
            (HORIZONTAL, 1, 1),
            (VERTICAL, 0, 2),
        ])
        assert state.current_player.id == "alice"

        state = draw_line(dots, state, VERTICAL, 0, 1)
        assert state.metadata.player_scores == (2, 0)
        assert state.metadata.last_move_completed_boxes == 2
        assert state.current_player.id == "alice"

    def test_line_already_drawn(self, dots, dots_state):
        """A line can only be drawn once."""
        state = draw_line(dots, dots_state, HORIZONTAL, 0, 0)
        move = create_move("bob", MoveType.HORIZONTAL, {"row": 0, "col": 0})
        result = dots.apply_move(state, move)
        assert result.error.code == ErrorCode.INVALID_MOVE

    def test_line_off_grid(self, dots, dots_state):
        """Lines must exist on the grid."""
        move = create_move("alice", MoveType.VERTICAL, {"row": 2, "col": 0})
        result = dots.apply_move(dots_state, move)
        assert result.error.code == ErrorCode.INVALID_MOVE

    def test_boolean_position(self, dots, dots_state):
        """Row and column must be plain integers."""
        move = create_move("alice", MoveType.HORIZONTAL, {"row": False, "col": True})
        result = dots.apply_move(dots_state, move)
        assert result.error.code == ErrorCode.INVALID_MOVE

    def test_not_your_turn(self, dots, dots_state):
        """Bob cannot draw on Alice's turn."""
        move = create_move("bob", MoveType.VERTICAL, {"row": 0, "col": 0})
        result = dots.apply_move(dots_state, move)
        assert result.error.code == ErrorCode.NOT_YOUR_TURN


class TestGameEnd:
    """Tests for finishing a game."""

    def test_last_box_ends_game(self, dots, players):
        """Claiming the last box finishes the game with a winner."""
        state = dots.create_initial_state(GameSettings(game_type="dots_and_boxes", grid_size=2), players)
        state = draw_all(dots, state, [
            (HORIZONTAL, 0, 0),
            (HORIZONTAL, 1, 0),
            (VERTICAL, 0, 0),
            (VERTICAL, 0, 1),  # bob closes the only box
        ])
        assert state.is_complete
        terminal = dots.is_terminal(state)
        assert terminal.winner == "bob"
        assert terminal.reason == TerminalReason.VICTORY
        assert dots.get_legal_moves(state) == []

    def test_scoreboard_ranks(self, dots, players):
        """The scoreboard ranks by boxes owned."""
        state = dots.create_initial_state(GameSettings(game_type="dots_and_boxes", grid_size=2), players)
        state = draw_all(dots, state, [
            (HORIZONTAL, 0, 0),
            (HORIZONTAL, 1, 0),
            (VERTICAL, 0, 0),
            (VERTICAL, 0, 1),
        ])
        board = dots.evaluate(state)
        assert board.score_of("bob") == 1
        assert board.score_of("alice") == 0
        assert [p.rank for p in board.players] == [2, 1]


class TestAnalysis:
    """Tests for chain and safety analysis."""

    def test_completable_box(self, dots, dots_state):
        """A box with three sides can be taken."""
        state = draw_all(dots, dots_state, [
            (HORIZONTAL, 0, 0),
            (VERTICAL, 0, 0),
            (HORIZONTAL, 1, 0),
        ])
        analysis = dots.analyze_game_state(state)
        assert analysis.completable_boxes == [(0, 0)]

    def test_third_side_is_unsafe(self, dots, dots_state):
        """Giving a box its third side is not a safe move."""
        state = draw_all(dots, dots_state, [(HORIZONTAL, 0, 0), (VERTICAL, 0, 0)])
        analysis = dots.analyze_game_state(state)
        assert analysis.completable_boxes == []
        assert (HORIZONTAL, 1, 0) not in analysis.safe_moves
        assert (HORIZONTAL, 0, 1) in analysis.safe_moves

    def test_long_chain(self, dots, players):
        """Three boxes in a corridor form one long chain."""
        settings = GameSettings(game_type="dots_and_boxes", custom_rules={"width": 4, "height": 2})
        state = dots.create_initial_state(settings, players)
        state = draw_all(dots, state, [
            (HORIZONTAL, 0, 0), (HORIZONTAL, 0, 1), (HORIZONTAL, 0, 2),
            (HORIZONTAL, 1, 0), (HORIZONTAL, 1, 1), (HORIZONTAL, 1, 2),
        ])
        analysis = analyze_game_state(state.metadata)
        assert len(analysis.long_chains) == 1
        assert analysis.long_chains[0].length == 3
        assert analysis.safe_moves == []

    def test_owned_box_annotation(self, dots, dots_state):
        """Owned boxes are shaded in their owner's colour."""
        state = draw_all(dots, dots_state, [
            (HORIZONTAL, 0, 0),
            (VERTICAL, 0, 0),
            (HORIZONTAL, 1, 0),
            (VERTICAL, 0, 1),
        ])
        areas = [a for a in dots.get_annotations(state) if a.kind.value == "area"]
        assert len(areas) == 1
        assert areas[0].color == "#2196F3"
