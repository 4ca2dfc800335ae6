"""
Session Module - Runs games turn by turn.

A session represents one play-through of a game:
- Created when a game starts
- Holds the current game state behind a turn manager
- Runs AI turns in the background
- Dropped when the game ends

Sessions are in-memory only.
"""

from .turn_manager import (
    TurnManager,
    TurnManagerConfig,
    TimerConfig,
    TurnInfo,
    TurnPhase,
    TurnEvent,
    TurnEventType,
)
from .game_loop import GameLoop, LoopState, TurnResult
from .manager import SessionManager, Session, SessionState

__all__ = [
    "TurnManager",
    "TurnManagerConfig",
    "TimerConfig",
    "TurnInfo",
    "TurnPhase",
    "TurnEvent",
    "TurnEventType",
    "GameLoop",
    "LoopState",
    "TurnResult",
    "SessionManager",
    "Session",
    "SessionState",
]
