"""
Pytest fixtures for Graphpaper tests.
"""

import pytest

from ..engine_core import GameSettings, GameState, MoveType, Player, create_move
from ..games import DotsAndBoxesEngine, SproutsEngine, TicTacToeEngine
from ..games.tictactoe import symbol_for


@pytest.fixture
def players() -> list[Player]:
    """Two human players."""
    return [
        Player(id="alice", name="Alice", color="#E91E63"),
        Player(id="bob", name="Bob", color="#2196F3"),
    ]


@pytest.fixture
def ai_players() -> list[Player]:
    """Two AI players."""
    return [
        Player(id="ai_a", name="AI A", is_ai=True, difficulty=1),
        Player(id="ai_b", name="AI B", is_ai=True, difficulty=1),
    ]


@pytest.fixture
def tictactoe() -> TicTacToeEngine:
    return TicTacToeEngine()


@pytest.fixture
def dots() -> DotsAndBoxesEngine:
    return DotsAndBoxesEngine()


@pytest.fixture
def sprouts() -> SproutsEngine:
    return SproutsEngine()


@pytest.fixture
def ttt_state(tictactoe, players) -> GameState:
    """Fresh tic-tac-toe game, Alice (X) to move."""
    return tictactoe.create_initial_state(None, players)


@pytest.fixture
def dots_state(dots, players) -> GameState:
    """Fresh 3x3-dot game (four boxes), Alice to move."""
    return dots.create_initial_state(GameSettings(game_type="dots_and_boxes", grid_size=3), players)


@pytest.fixture
def sprouts_state(sprouts, players) -> GameState:
    """Fresh three-point sprouts game."""
    return sprouts.create_initial_state(GameSettings(game_type="sprouts", starting_points=3), players)


def place(engine, state: GameState, x: int, y: int) -> GameState:
    """Play x, y for the side to move; fails the test if rejected."""
    player_id = state.current_player.id
    move = create_move(player_id, MoveType.PLACE, {"x": x, "y": y, "symbol": symbol_for(state, player_id)})
    result = engine.apply_move(state, move)
    assert result.success, result.error
    return result.data


def draw_line(engine, state: GameState, kind: str, row: int, col: int) -> GameState:
    """Draw a dots-and-boxes line for the side to move."""
    move = create_move(state.current_player.id, MoveType(kind), {"row": row, "col": col})
    result = engine.apply_move(state, move)
    assert result.success, result.error
    return result.data


def play_positions(engine, state: GameState, positions) -> GameState:
    for x, y in positions:
        state = place(engine, state, x, y)
    return state
