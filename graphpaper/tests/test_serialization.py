"""
Tests for state snapshots and history replay.
"""

import json

import pytest

from ..engine_core import EngineInvariantError, GamePhase, Player
from .conftest import play_positions


def play_first_moves(engine, state, count):
    for _ in range(count):
        moves = engine.get_legal_moves(state)
        if not moves:
            break
        state = engine.apply_move(state, moves[0]).data
    return state


class TestRoundTrip:
    """Tests for serialize_state / deserialize_state."""

    @pytest.mark.parametrize("engine_name,state_name,moves", [
        ("tictactoe", "ttt_state", 4),
        ("dots", "dots_state", 6),
        ("sprouts", "sprouts_state", 2),
    ])
    def test_round_trip(self, request, engine_name, state_name, moves):
        """A restored state equals the original, history included."""
        engine = request.getfixturevalue(engine_name)
        state = play_first_moves(engine, request.getfixturevalue(state_name), moves)

        restored = engine.deserialize_state(engine.serialize_state(state))
        assert restored == state
        assert [m.id for m in restored.move_history] == [m.id for m in state.move_history]

    def test_finished_game(self, tictactoe, ttt_state):
        """A finished game stays finished after a round trip."""
        state = play_positions(tictactoe, ttt_state, [(0, 0), (1, 0), (0, 1), (1, 1), (0, 2)])
        restored = tictactoe.deserialize_state(tictactoe.serialize_state(state))
        assert restored.phase == GamePhase.FINISHED
        assert tictactoe.is_terminal(restored).winner == "alice"

    def test_ai_player_fields(self, tictactoe):
        """AI flags, levels and colours survive."""
        players = [
            Player(id="ai", name="AI", is_ai=True, difficulty=5, color="#000000"),
            Player(id="human", name="Human"),
        ]
        state = tictactoe.create_initial_state(None, players)
        restored = tictactoe.deserialize_state(tictactoe.serialize_state(state))
        assert restored.players == state.players

    def test_snapshot_is_json(self, dots, dots_state):
        """Snapshots are plain versioned JSON."""
        data = json.loads(dots.serialize_state(dots_state))
        assert data["game_type"] == "dots_and_boxes"
        assert data["version"] == 1

    def test_wrong_game_type(self, tictactoe, dots, dots_state):
        """A snapshot only loads into its own engine."""
        with pytest.raises(ValueError):
            tictactoe.deserialize_state(dots.serialize_state(dots_state))

    @pytest.mark.parametrize("text", ["", "not json", '{"id": "x"}', "[]"])
    def test_malformed(self, tictactoe, text):
        """Garbage text raises ValueError."""
        with pytest.raises(ValueError):
            tictactoe.deserialize_state(text)


class TestReplay:
    """Tests for replaying move history."""

    def test_replay_matches(self, dots, dots_state):
        """Replaying the history rebuilds the metadata."""
        state = play_first_moves(dots, dots_state, 8)
        replayed = dots.replay_history(state)
        assert replayed.metadata == state.metadata
        assert replayed.current_player_index == state.current_player_index

    def test_tampered_metadata(self, tictactoe, ttt_state):
        """Metadata that no longer matches the history is reported."""
        state = play_positions(tictactoe, ttt_state, [(1, 1)])
        tampered = state._copy_with(metadata=ttt_state.metadata)
        with pytest.raises(EngineInvariantError):
            tictactoe.check_consistency(tampered)

    def test_sprouts_replay(self, sprouts, sprouts_state):
        """Sprouts curves replay to the same drawing."""
        state = play_first_moves(sprouts, sprouts_state, 3)
        sprouts.check_consistency(state)
