"""
Tests for the tic-tac-toe engine.

Tests:
- Initial state and move generation
- Validation order and error codes
- Wins, draws and terminal detection
- Annotations
"""

import pytest

from ..engine_core import ErrorCode, GamePhase, Move, MoveType, TerminalReason, create_move
from ..games.tictactoe import LineKind, symbol_for
from .conftest import place, play_positions


class TestInitialState:
    """Tests for creating a game."""

    def test_empty_board(self, ttt_state):
        """A new game has an empty board and X to move."""
        meta = ttt_state.metadata
        assert all(cell is None for row in meta.board for cell in row)
        assert ttt_state.turn_number == 1
        assert ttt_state.phase == GamePhase.PLAYING
        assert symbol_for(ttt_state, ttt_state.current_player.id) == "X"

    def test_nine_legal_moves(self, tictactoe, ttt_state):
        """Every cell is playable at the start."""
        moves = tictactoe.get_legal_moves(ttt_state, "alice")
        assert len(moves) == 9
        assert {(m.data["x"], m.data["y"]) for m in moves} == {(x, y) for x in range(3) for y in range(3)}

    def test_no_moves_for_waiting_player(self, tictactoe, ttt_state):
        """The player not on turn has no legal moves."""
        assert tictactoe.get_legal_moves(ttt_state, "bob") == []

    def test_wrong_player_count(self, tictactoe, players):
        """Tic-tac-toe needs two players."""
        with pytest.raises(ValueError):
            tictactoe.create_initial_state(None, players[:1])


class TestValidation:
    """Tests for move validation."""

    def test_not_your_turn(self, tictactoe, ttt_state):
        """Bob cannot move first."""
        move = create_move("bob", MoveType.PLACE, {"x": 0, "y": 0, "symbol": "O"})
        result = tictactoe.apply_move(ttt_state, move)
        assert not result.success
        assert result.error.code == ErrorCode.NOT_YOUR_TURN

    def test_unknown_player(self, tictactoe, ttt_state):
        """Moves from strangers are rejected."""
        move = create_move("mallory", MoveType.PLACE, {"x": 0, "y": 0, "symbol": "X"})
        validation = tictactoe.validate_move(ttt_state, move, "mallory")
        assert not validation.is_valid
        assert validation.error.code == ErrorCode.PLAYER_NOT_FOUND

    def test_wrong_move_type(self, tictactoe, ttt_state):
        """Only place moves exist in tic-tac-toe."""
        move = create_move("alice", MoveType.HORIZONTAL, {"row": 0, "col": 0})
        result = tictactoe.apply_move(ttt_state, move)
        assert result.error.code == ErrorCode.INVALID_MOVE

    def test_off_board(self, tictactoe, ttt_state):
        """Coordinates outside 0-2 are invalid."""
        move = create_move("alice", MoveType.PLACE, {"x": 3, "y": 0, "symbol": "X"})
        result = tictactoe.apply_move(ttt_state, move)
        assert result.error.code == ErrorCode.INVALID_MOVE

    def test_boolean_coordinates(self, tictactoe, ttt_state):
        """True and False are not board coordinates."""
        move = create_move("alice", MoveType.PLACE, {"x": True, "y": False, "symbol": "X"})
        result = tictactoe.apply_move(ttt_state, move)
        assert result.error.code == ErrorCode.INVALID_MOVE

    def test_occupied_cell(self, tictactoe, ttt_state):
        """A cell can only be marked once."""
        state = place(tictactoe, ttt_state, 1, 1)
        move = create_move("bob", MoveType.PLACE, {"x": 1, "y": 1, "symbol": "O"})
        result = tictactoe.apply_move(state, move)
        assert result.error.code == ErrorCode.INVALID_MOVE
        assert "occupied" in result.error.message

    def test_wrong_symbol(self, tictactoe, ttt_state):
        """X cannot place an O."""
        move = create_move("alice", MoveType.PLACE, {"x": 0, "y": 0, "symbol": "O"})
        result = tictactoe.apply_move(ttt_state, move)
        assert result.error.code == ErrorCode.INVALID_MOVE

    def test_rejected_move_leaves_state(self, tictactoe, ttt_state):
        """A rejected move never changes the input state."""
        move = create_move("alice", MoveType.PLACE, {"x": 9, "y": 9, "symbol": "X"})
        before = tictactoe.serialize_state(ttt_state)
        tictactoe.apply_move(ttt_state, move)
        assert tictactoe.serialize_state(ttt_state) == before

    def test_history_owns_move_data(self, tictactoe, ttt_state):
        """Changing a move's data after it was played leaves history alone."""
        data = {"x": 1, "y": 1, "symbol": "X"}
        move = Move(type=MoveType.PLACE, player_id="alice", data=data)
        state = tictactoe.apply_move(ttt_state, move).data
        data["x"] = 2
        assert state.move_history[0].data == {"x": 1, "y": 1, "symbol": "X"}
        tictactoe.check_consistency(state)


class TestOutcome:
    """Tests for wins and draws."""

    def test_column_win_for_x(self, tictactoe, ttt_state):
        """X taking the left column wins with a vertical line."""
        state = play_positions(tictactoe, ttt_state, [(0, 0), (1, 0), (0, 1), (1, 1), (0, 2)])

        meta = state.metadata
        assert meta.winner == "X"
        assert meta.winning_line.kind == LineKind.VERTICAL
        assert state.is_complete
        assert state.phase == GamePhase.FINISHED

        terminal = tictactoe.is_terminal(state)
        assert terminal.winner == "alice"
        assert terminal.reason == TerminalReason.VICTORY
        assert terminal.final_scores.winner == "alice"

    def test_no_move_after_win(self, tictactoe, ttt_state):
        """The board is closed once somebody has won."""
        state = play_positions(tictactoe, ttt_state, [(0, 0), (1, 0), (0, 1), (1, 1), (0, 2)])
        assert tictactoe.get_legal_moves(state) == []

        move = create_move("bob", MoveType.PLACE, {"x": 2, "y": 2, "symbol": "O"})
        result = tictactoe.apply_move(state, move)
        assert result.error.code == ErrorCode.INVALID_GAME_STATE

    def test_turn_does_not_advance_on_win(self, tictactoe, ttt_state):
        """The winner stays the current player of the final state."""
        state = play_positions(tictactoe, ttt_state, [(0, 0), (1, 0), (0, 1), (1, 1), (0, 2)])
        assert state.current_player.id == "alice"
        assert state.turn_number == 6

    def test_diagonal_win(self, tictactoe, ttt_state):
        """Diagonals count as lines."""
        state = play_positions(tictactoe, ttt_state, [(0, 0), (1, 0), (1, 1), (2, 0), (2, 2)])
        assert state.metadata.winning_line.kind == LineKind.DIAGONAL

    def test_draw(self, tictactoe, ttt_state):
        """A full board without a line is a draw."""
        # X O X / X O O / O X X
        state = play_positions(tictactoe, ttt_state, [
            (0, 0), (1, 0), (2, 0), (1, 1), (0, 1), (2, 1), (1, 2), (0, 2), (2, 2),
        ])
        terminal = tictactoe.is_terminal(state)
        assert terminal.is_draw
        assert terminal.winner is None
        assert terminal.reason == TerminalReason.DRAW
        assert state.metadata.is_draw

    def test_running_game_not_terminal(self, tictactoe, ttt_state):
        """A board with moves left and no line is still running."""
        state = place(tictactoe, ttt_state, 1, 1)
        assert tictactoe.is_terminal(state) is None
        assert state.current_player.id == "bob"

    def test_resignation(self, tictactoe, ttt_state):
        """Resigning hands the game to the opponent."""
        result = tictactoe.resign(ttt_state, "alice")
        assert result.success
        terminal = tictactoe.is_terminal(result.data)
        assert terminal.reason == TerminalReason.RESIGNATION
        assert terminal.winner == "bob"


class TestAnnotations:
    """Tests for presentation hints."""

    def test_winning_line_and_last_move(self, tictactoe, ttt_state):
        """A won board highlights the line and the last move."""
        state = play_positions(tictactoe, ttt_state, [(0, 0), (1, 0), (0, 1), (1, 1), (0, 2)])
        styles = {a.style for a in tictactoe.get_annotations(state)}
        assert "last-move" in styles
        assert len(tictactoe.get_annotations(state)) == 2

    def test_empty_board_has_none(self, tictactoe, ttt_state):
        """Nothing to highlight before the first move."""
        assert tictactoe.get_annotations(ttt_state) == []
