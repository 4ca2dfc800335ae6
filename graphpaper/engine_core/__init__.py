"""
Engine Core - Immutable game state and the rules contract.

The core is the runtime that:
1. Creates an initial GameState for a game type
2. Validates moves against the current state
3. Applies moves, producing new states
4. Detects terminal states and scores them
5. Round-trips states through an opaque text snapshot
"""

from .state import GameState, GamePhase, Player, next_active_player_index
from .move import Move, MoveType, create_move, is_index
from .result import ErrorCode, GameError, Result, ValidationResult, EngineInvariantError
from .rules import (
    RulesEngine,
    GameSettings,
    TerminalResult,
    TerminalReason,
    Scoreboard,
    PlayerScore,
    Annotation,
    AnnotationKind,
    rank_scores,
)

__all__ = [
    "GameState",
    "GamePhase",
    "Player",
    "next_active_player_index",
    "Move",
    "MoveType",
    "create_move",
    "is_index",
    "ErrorCode",
    "GameError",
    "Result",
    "ValidationResult",
    "EngineInvariantError",
    "RulesEngine",
    "GameSettings",
    "TerminalResult",
    "TerminalReason",
    "Scoreboard",
    "PlayerScore",
    "Annotation",
    "AnnotationKind",
    "rank_scores",
]
