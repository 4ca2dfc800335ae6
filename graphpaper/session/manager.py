"""
Session Manager - Creates and manages game sessions.

A session is one play-through of one game:
- The rules engine chosen once, by game type
- A turn manager holding the current state
- A game loop for the AI players
- Session metadata

Sessions live in memory only and are dropped when they end.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence
import logging
import time
import uuid

from ..bots.decision import AIDecisionEngine
from ..engine_core.rules import GameSettings, RulesEngine
from ..engine_core.state import Player
from ..games import get_engine
from .game_loop import GameLoop
from .turn_manager import TurnManager, TurnManagerConfig

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a game session."""
    ACTIVE = "active"
    GAME_OVER = "game_over"  # ended by the rules
    ABANDONED = "abandoned"  # closed early or timed out


@dataclass
class Session:
    """
    An in-memory game session.

    Contains:
    - The rules engine for the game type
    - The turn manager (current canonical state)
    - The game loop driving AI players
    """
    session_id: str
    game_type: str
    engine: RulesEngine
    turn_manager: TurnManager
    game_loop: GameLoop
    created_at: float

    state: SessionState = SessionState.ACTIVE
    metadata: dict[str, Any] = field(default_factory=dict)

    def is_active(self) -> bool:
        """True while the session can still take moves."""
        return self.state == SessionState.ACTIVE and not self.turn_manager.is_game_over()

    def is_ai_turn(self) -> bool:
        return not self.turn_manager.is_game_over() and self.turn_manager.state.current_player.is_ai


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions for a game type and a set of players
    - Track active sessions
    - Clean up finished sessions
    """

    def __init__(self):
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        game_type: str,
        players: Sequence[Player],
        settings: GameSettings | None = None,
        turn_config: TurnManagerConfig | None = None,
        seed: int | None = None,
    ) -> Session:
        """
        Create a new game session and start its first turn.

        Raises ValueError for an unknown game type or unusable settings.
        """
        engine = get_engine(game_type)
        settings = settings or GameSettings(game_type=game_type)
        state = engine.create_initial_state(settings, players)

        turn_manager = TurnManager(engine, state, turn_config)
        game_loop = GameLoop(turn_manager, AIDecisionEngine(engine, seed=seed))

        session = Session(
            session_id=str(uuid.uuid4()),
            game_type=game_type,
            engine=engine,
            turn_manager=turn_manager,
            game_loop=game_loop,
            created_at=time.time(),
        )
        self._sessions[session.session_id] = session
        turn_manager.start_turn()
        logger.info("Created %s session %s", game_type, session.session_id)
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Look up a live session."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed"):
        """
        End a session and release its timer and worker thread.

        The session is removed from memory.
        """
        session = self._sessions.pop(session_id, None)
        if session:
            if reason == "completed":
                session.state = SessionState.GAME_OVER
            else:
                session.state = SessionState.ABANDONED
            session.game_loop.shutdown()
            session.turn_manager.dispose()
            logger.info("Ended session %s (%s)", session_id, reason)

    def list_active_sessions(self) -> list[str]:
        """Session ids whose games are still running."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600):
        """
        Clean up finished sessions older than max_age.

        Meant to be run from a periodic housekeeping task.
        """
        current_time = time.time()
        to_remove = [
            session_id for session_id, session in self._sessions.items()
            if current_time - session.created_at > max_age_seconds and not session.is_active()
        ]
        for session_id in to_remove:
            self.end_session(session_id, reason="stale")
