"""
Games module - Game-specific rules engines.

Each game has its own subpackage with:
- Game-specific metadata (the payload of GameState.metadata)
- Board/geometry helpers
- A RulesEngine implementation

Engines are chosen once per session with get_engine().
"""

from ..engine_core.rules import RulesEngine
from .tictactoe import TicTacToeEngine
from .dots_and_boxes import DotsAndBoxesEngine
from .sprouts import SproutsEngine

ENGINES: dict[str, type[RulesEngine]] = {
    TicTacToeEngine.game_type: TicTacToeEngine,
    DotsAndBoxesEngine.game_type: DotsAndBoxesEngine,
    SproutsEngine.game_type: SproutsEngine,
}


def get_engine(game_type: str) -> RulesEngine:
    """Create the rules engine for a game type. Raises ValueError if unknown."""
    engine_cls = ENGINES.get(game_type)
    if engine_cls is None:
        raise ValueError(f"Unknown game type: {game_type} (known: {', '.join(sorted(ENGINES))})")
    return engine_cls()


__all__ = [
    "ENGINES",
    "get_engine",
    "TicTacToeEngine",
    "DotsAndBoxesEngine",
    "SproutsEngine",
]
