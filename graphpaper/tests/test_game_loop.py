"""
Tests for the AI game loop and the session manager.

Tests:
- AI moves are applied through the turn manager
- Stale, cancelled and slow answers are dropped
- An AI without moves resigns
- Session lifecycle
"""

import threading
import time

import pytest

from ..bots import AIDecisionEngine
from ..engine_core import ErrorCode, GameSettings, MoveType, Player, Result, create_move
from ..session import GameLoop, LoopState, SessionManager, TurnManager
from ..session.manager import SessionState


class ScriptedAI:
    """Answers with a fixed result, optionally after a delay."""

    def __init__(self, answer, delay=0.0):
        self.answer = answer
        self.delay = delay

    def get_move(self, state, difficulty, player_id, cancel_event=None):
        time.sleep(self.delay)
        return self.answer(state, player_id) if callable(self.answer) else self.answer


class BlockingAI:
    """Plays the first free cell once released."""

    def __init__(self):
        self.release = threading.Event()

    def get_move(self, state, difficulty, player_id, cancel_event=None):
        self.release.wait(5.0)
        return Result.ok(first_cell(state, player_id))


def first_cell(state, player_id):
    symbol = "X" if state.current_player_index == 0 else "O"
    for y, row in enumerate(state.metadata.board):
        for x, value in enumerate(row):
            if value is None:
                return create_move(player_id, MoveType.PLACE, {"x": x, "y": y, "symbol": symbol})
    raise AssertionError("board is full")


@pytest.fixture
def ai_manager(tictactoe, ai_players):
    tm = TurnManager(tictactoe, tictactoe.create_initial_state(None, ai_players))
    tm.start_turn()
    yield tm
    tm.dispose()


def make_loop(tm, ai, **kwargs):
    kwargs.setdefault("min_latency", 0.0)
    kwargs.setdefault("max_latency", 5.0)
    return GameLoop(tm, ai, **kwargs)


class TestGameLoop:
    """Tests for single AI turns."""

    def test_ai_move_applied(self, tictactoe, ai_manager):
        """The AI move lands in the turn manager."""
        loop = make_loop(ai_manager, AIDecisionEngine(tictactoe, seed=1))
        result = loop.request_ai_move().result(timeout=5)
        loop.shutdown()

        assert result.success
        assert result.player_id == "ai_a"
        assert result.loop_state == LoopState.IDLE
        assert ai_manager.state.turn_number == 2
        assert ai_manager.state.move_history[-1].data == result.move.data

    def test_stale_answer_dropped(self, ai_manager):
        """A move for a turn that has already passed is never applied."""
        ai = BlockingAI()
        loop = make_loop(ai_manager, ai)
        future = loop.request_ai_move()
        assert loop.state == LoopState.THINKING

        ai_manager.skip_turn()
        ai.release.set()
        result = future.result(timeout=5)
        loop.shutdown()

        assert result.stale
        assert not result.success
        assert ai_manager.state.move_history == ()
        assert ai_manager.state.current_player.id == "ai_b"

    def test_cancel(self, ai_manager):
        """Cancelled requests apply nothing."""
        ai = BlockingAI()
        loop = make_loop(ai_manager, ai)
        future = loop.request_ai_move()
        loop.cancel()
        ai.release.set()
        result = future.result(timeout=5)
        loop.shutdown()

        assert result.error.code == ErrorCode.AI_ERROR
        assert ai_manager.state.turn_number == 1

    def test_slow_answer_times_out(self, ai_manager):
        """Answers over the latency limit are dropped."""
        ai = ScriptedAI(lambda state, player_id: Result.ok(first_cell(state, player_id)), delay=0.1)
        loop = make_loop(ai_manager, ai, max_latency=0.01)
        result = loop.request_ai_move().result(timeout=5)
        loop.shutdown()

        assert result.error.code == ErrorCode.TIMEOUT
        assert ai_manager.state.turn_number == 1

    def test_minimum_latency(self, ai_manager):
        """Fast answers are held back to the minimum latency."""
        ai = ScriptedAI(lambda state, player_id: Result.ok(first_cell(state, player_id)))
        loop = make_loop(ai_manager, ai, min_latency=0.1)
        result = loop.request_ai_move().result(timeout=5)
        loop.shutdown()

        assert result.success
        assert result.elapsed >= 0.1

    def test_no_moves_resigns(self, ai_manager):
        """An AI that cannot move resigns and the opponent wins."""
        ai = ScriptedAI(Result.fail(ErrorCode.AI_NO_MOVES, "No legal moves available"))
        loop = make_loop(ai_manager, ai)
        result = loop.request_ai_move().result(timeout=5)
        loop.shutdown()

        assert result.resigned
        assert result.winner == "ai_b"
        assert result.loop_state == LoopState.GAME_OVER
        assert ai_manager.is_game_over()

    def test_ai_error_passed_through(self, ai_manager):
        """Other AI errors are reported without resigning."""
        ai = ScriptedAI(Result.fail(ErrorCode.AI_ERROR, "broken"))
        loop = make_loop(ai_manager, ai)
        result = loop.request_ai_move().result(timeout=5)
        loop.shutdown()

        assert result.error.code == ErrorCode.AI_ERROR
        assert not result.resigned


class TestRunAITurns:
    """Tests for playing AI turns back to back."""

    @pytest.mark.parametrize("level", [1, 2, 3])
    def test_ai_game_finishes(self, tictactoe, level):
        """Two AIs play tic-tac-toe to the end."""
        players = [
            Player(id="ai_a", name="AI A", is_ai=True, difficulty=level),
            Player(id="ai_b", name="AI B", is_ai=True, difficulty=level),
        ]
        tm = TurnManager(tictactoe, tictactoe.create_initial_state(None, players))
        tm.start_turn()
        loop = make_loop(tm, AIDecisionEngine(tictactoe, seed=5))
        results = loop.run_ai_turns()
        loop.shutdown()

        assert all(r.success for r in results)
        assert 5 <= len(results) <= 9
        assert tm.is_game_over()
        assert loop.state == LoopState.GAME_OVER
        tictactoe.check_consistency(tm.state)

    def test_stops_for_human(self, tictactoe, players):
        """The loop waits when a human is to move."""
        tm = TurnManager(tictactoe, tictactoe.create_initial_state(None, players))
        tm.start_turn()
        loop = make_loop(tm, AIDecisionEngine(tictactoe))
        assert loop.run_ai_turns() == []
        loop.shutdown()


class TestSessions:
    """Tests for the session manager."""

    def test_lifecycle(self, ai_players):
        """A session is created, played out and ended."""
        manager = SessionManager()
        session = manager.create_session("tictactoe", ai_players, seed=3)

        assert manager.get_session(session.session_id) is session
        assert session.is_active()
        assert session.is_ai_turn()
        assert manager.list_active_sessions() == [session.session_id]

        session.game_loop.run_ai_turns()
        assert not session.is_active()
        assert manager.list_active_sessions() == []

        manager.end_session(session.session_id)
        assert session.state == SessionState.GAME_OVER
        assert manager.get_session(session.session_id) is None

    def test_unknown_game(self, ai_players):
        """Unknown game types are refused."""
        with pytest.raises(ValueError):
            SessionManager().create_session("chess", ai_players)

    def test_bad_settings(self, ai_players):
        """Settings the engine rejects are refused."""
        settings = GameSettings(game_type="dots_and_boxes", grid_size=12)
        with pytest.raises(ValueError):
            SessionManager().create_session("dots_and_boxes", ai_players, settings=settings)

    def test_cleanup_stale(self, ai_players):
        """Only old finished sessions are cleaned up."""
        manager = SessionManager()
        finished = manager.create_session("tictactoe", ai_players, seed=1)
        finished.game_loop.run_ai_turns()
        finished.created_at -= 7200
        running = manager.create_session("tictactoe", ai_players, seed=1)
        running.created_at -= 7200

        manager.cleanup_stale_sessions(max_age_seconds=3600)
        assert manager.get_session(finished.session_id) is None
        assert finished.state == SessionState.ABANDONED
        assert manager.get_session(running.session_id) is running
        manager.end_session(running.session_id, reason="abandoned")

    @pytest.mark.parametrize("game_type,settings", [
        ("dots_and_boxes", GameSettings(game_type="dots_and_boxes", grid_size=3)),
        ("sprouts", GameSettings(game_type="sprouts", starting_points=2)),
        ("sprouts", GameSettings(game_type="sprouts", starting_points=3)),
        ("sprouts", GameSettings(game_type="sprouts", starting_points=4)),
    ])
    def test_random_games_finish(self, ai_players, game_type, settings):
        """Random AIs finish dots and sprouts games."""
        manager = SessionManager()
        session = manager.create_session(game_type, ai_players, settings=settings, seed=11)
        session.game_loop.run_ai_turns()
        state = session.turn_manager.state

        terminal = session.engine.is_terminal(state)
        assert terminal is not None
        assert terminal.winner in {"ai_a", "ai_b", None}
        assert all(p.is_active for p in state.players)
        session.engine.check_consistency(state)
        manager.end_session(session.session_id)
