"""
Game Loop - Runs AI turns in the background.

The loop:
1. Snapshot the state the AI should answer
2. Search on a worker thread (cancellable)
3. Pad fast answers up to the minimum latency
4. Apply the move only if the game is still at the snapshot
5. Resign for an AI that has no legal move

Results that arrive after the game moved on are dropped, never applied.
"""

from __future__ import annotations
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING
import logging
import threading
import time

from .. import config
from ..engine_core.move import Move
from ..engine_core.result import ErrorCode, GameError

if TYPE_CHECKING:
    from ..bots.decision import AIDecisionEngine
    from ..engine_core.state import GameState
    from .turn_manager import TurnManager

logger = logging.getLogger(__name__)

DEFAULT_DIFFICULTY = 3


class LoopState(Enum):
    """State of the game loop."""
    IDLE = "idle"
    THINKING = "thinking"
    GAME_OVER = "game_over"


@dataclass
class TurnResult:
    """
    Result of one AI turn.

    `stale` is set when the game moved on while the AI was thinking; the
    move was then discarded.
    """
    success: bool
    loop_state: LoopState
    player_id: str | None = None
    move: Move | None = None
    error: GameError | None = None
    elapsed: float = 0.0
    stale: bool = False
    resigned: bool = False
    winner: str | None = None


class GameLoop:
    """
    Drives AI players of one turn manager.

    Usage:
        loop = GameLoop(turn_manager, AIDecisionEngine(engine))
        future = loop.request_ai_move()
        result = future.result()

    Latencies are in seconds and default to GRAPHPAPER_AI_MIN_LATENCY_MS /
    GRAPHPAPER_AI_MAX_LATENCY_MS.
    """

    def __init__(
        self,
        turn_manager: TurnManager,
        ai: AIDecisionEngine,
        min_latency: float | None = None,
        max_latency: float | None = None,
        executor: ThreadPoolExecutor | None = None,
    ):
        self.turn_manager = turn_manager
        self.ai = ai
        self.min_latency = config.GRAPHPAPER_AI_MIN_LATENCY_MS / 1000.0 if min_latency is None else min_latency
        self.max_latency = config.GRAPHPAPER_AI_MAX_LATENCY_MS / 1000.0 if max_latency is None else max_latency
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="graphpaper-ai")
        self._pending: set[threading.Event] = set()
        self._pending_lock = threading.Lock()

    @property
    def state(self) -> LoopState:
        if self.turn_manager.is_game_over():
            return LoopState.GAME_OVER
        with self._pending_lock:
            return LoopState.THINKING if self._pending else LoopState.IDLE

    def request_ai_move(self, difficulty: int | None = None) -> Future[TurnResult]:
        """
        Ask the AI to play for the current player.

        Difficulty defaults to the player's own level.
        """
        snapshot = self.turn_manager.state
        player = snapshot.current_player
        level = difficulty or player.difficulty or DEFAULT_DIFFICULTY

        cancel_event = threading.Event()
        with self._pending_lock:
            self._pending.add(cancel_event)
        return self._executor.submit(self._think_and_apply, snapshot, player.id, level, cancel_event)

    def cancel(self):
        """Abandon every in-flight search."""
        with self._pending_lock:
            for event in self._pending:
                event.set()

    def run_ai_turns(self, max_turns: int = 1000) -> list[TurnResult]:
        """Play AI turns back to back until a human is to move or the game ends."""
        results = []
        while len(results) < max_turns and not self.turn_manager.is_game_over():
            if not self.turn_manager.state.current_player.is_ai:
                break
            result = self.request_ai_move().result()
            results.append(result)
            if not result.success:
                break
        return results

    def shutdown(self):
        self.cancel()
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def _settled_state(self) -> LoopState:
        return LoopState.GAME_OVER if self.turn_manager.is_game_over() else LoopState.IDLE

    # ------------------------------------------------------------------

    def _think_and_apply(
        self,
        snapshot: GameState,
        player_id: str,
        difficulty: int,
        cancel_event: threading.Event,
    ) -> TurnResult:
        try:
            return self._run(snapshot, player_id, difficulty, cancel_event)
        finally:
            with self._pending_lock:
                self._pending.discard(cancel_event)

    def _run(
        self,
        snapshot: GameState,
        player_id: str,
        difficulty: int,
        cancel_event: threading.Event,
    ) -> TurnResult:
        started = time.monotonic()
        result = self.ai.get_move(snapshot, difficulty, player_id, cancel_event=cancel_event)
        elapsed = time.monotonic() - started

        if cancel_event.is_set():
            return TurnResult(
                success=False,
                loop_state=self._settled_state(),
                player_id=player_id,
                error=GameError(ErrorCode.AI_ERROR, "AI move was cancelled"),
                elapsed=elapsed,
            )
        if elapsed > self.max_latency:
            logger.warning("AI %s took %.2fs, over the %.2fs limit", player_id, elapsed, self.max_latency)
            return TurnResult(
                success=False,
                loop_state=self._settled_state(),
                player_id=player_id,
                error=GameError(ErrorCode.TIMEOUT, f"AI took {elapsed:.2f}s"),
                elapsed=elapsed,
            )
        if elapsed < self.min_latency:
            # An interrupted wait means cancel() was called.
            if cancel_event.wait(self.min_latency - elapsed):
                return TurnResult(
                    success=False,
                    loop_state=self._settled_state(),
                    player_id=player_id,
                    error=GameError(ErrorCode.AI_ERROR, "AI move was cancelled"),
                    elapsed=time.monotonic() - started,
                )
            elapsed = time.monotonic() - started

        with self.turn_manager.lock:
            current = self.turn_manager.state
            if current.id != snapshot.id or current.turn_number != snapshot.turn_number:
                logger.warning(
                    "Dropping stale AI move for %s: game is at turn %d, answer was for turn %d",
                    player_id, current.turn_number, snapshot.turn_number,
                )
                return TurnResult(success=False, loop_state=self._settled_state(), player_id=player_id,
                                  elapsed=elapsed, stale=True)

            if not result.success:
                if result.error.code == ErrorCode.AI_NO_MOVES:
                    resigned = self.turn_manager.resign(player_id)
                    terminal = self.turn_manager.engine.is_terminal(self.turn_manager.state)
                    return TurnResult(
                        success=resigned.success,
                        loop_state=self._settled_state(),
                        player_id=player_id,
                        error=resigned.error,
                        elapsed=elapsed,
                        resigned=resigned.success,
                        winner=terminal.winner if terminal else None,
                    )
                return TurnResult(success=False, loop_state=self._settled_state(), player_id=player_id,
                                  error=result.error, elapsed=elapsed)

            applied = self.turn_manager.make_move(result.data)
            terminal = self.turn_manager.engine.is_terminal(self.turn_manager.state)
            return TurnResult(
                success=applied.success,
                loop_state=self._settled_state(),
                player_id=player_id,
                move=result.data,
                error=applied.error,
                elapsed=elapsed,
                winner=terminal.winner if terminal else None,
            )
