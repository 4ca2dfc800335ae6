"""
Turn Manager - Turn phases, timers, undo and notifications for one game.

Phases run pre_turn -> move -> post_turn -> (pre_turn | ended).

Design principles:
- The rules engine owns the transition; the manager only sequences it
- Every operation a caller can trigger returns a Result
- Observers are per instance; subscribe() returns an unsubscribe callable
- A turn timer only fires for the turn it was armed for
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
import logging
import threading
import time

from ..config import GRAPHPAPER_MAX_UNDO_DEPTH
from ..engine_core.move import Move
from ..engine_core.result import ErrorCode, Result
from ..engine_core.rules import RulesEngine, TerminalResult
from ..engine_core.state import GameState, Player, next_active_player_index

logger = logging.getLogger(__name__)


class TurnPhase(str, Enum):
    PRE_TURN = "pre_turn"
    MOVE = "move"
    POST_TURN = "post_turn"
    ENDED = "ended"


class TurnEventType(str, Enum):
    TURN_CHANGED = "turn_changed"
    MOVE_MADE = "move_made"
    STATE_CHANGED = "state_changed"
    GAME_ENDED = "game_ended"
    TURN_TIMEOUT = "turn_timeout"
    TURN_SKIPPED = "turn_skipped"
    MOVE_UNDONE = "move_undone"


@dataclass
class TimerConfig:
    time_per_turn: float = 30.0  # seconds


@dataclass
class TurnManagerConfig:
    allow_undo: bool = True
    max_undo_depth: int = GRAPHPAPER_MAX_UNDO_DEPTH
    enable_timer: bool = False
    timer: TimerConfig = field(default_factory=TimerConfig)
    skip_inactive_players: bool = True


@dataclass(frozen=True)
class TurnInfo:
    current_player: Player
    player_index: int
    turn_number: int
    phase: TurnPhase
    time_remaining: float | None = None
    can_undo: bool = False
    valid_moves: tuple[Move, ...] | None = None


@dataclass(frozen=True)
class TurnEvent:
    """Payload passed to observers."""
    type: TurnEventType
    state: GameState
    turn_info: TurnInfo | None = None
    move: Move | None = None
    terminal: TerminalResult | None = None
    player_id: str | None = None
    message: str = ""


Observer = Callable[[TurnEvent], Any]


class TurnManager:
    """
    Drives the turns of one game.

    Usage:
        manager = TurnManager(engine, state)
        manager.subscribe("move_made", on_move)
        manager.start_turn()
        result = manager.make_move(move)

    The manager is safe to call from a timer thread and the game loop's
    worker; `lock` guards every state change.
    """

    def __init__(
        self,
        engine: RulesEngine,
        initial_state: GameState,
        config: TurnManagerConfig | None = None,
    ):
        self.engine = engine
        self.config = config or TurnManagerConfig()
        self.lock = threading.RLock()

        self._state = initial_state
        self._phase = TurnPhase.PRE_TURN
        self._undo_stack: deque[GameState] = deque(maxlen=max(self.config.max_undo_depth, 0))
        self._observers: dict[TurnEventType, list[Observer]] = {}
        self._timer: threading.Timer | None = None
        self._turn_started_at: float | None = None
        self._disposed = False

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, event: TurnEventType | str, callback: Observer) -> Callable[[], None]:
        """Register a callback; call the returned function to unsubscribe."""
        event_type = TurnEventType(event)
        self._observers.setdefault(event_type, []).append(callback)

        def unsubscribe():
            callbacks = self._observers.get(event_type, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def _emit(self, event: TurnEvent):
        for callback in list(self._observers.get(event.type, [])):
            callback(event)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def phase(self) -> TurnPhase:
        return self._phase

    def get_turn_info(self, include_moves: bool = True) -> TurnInfo:
        with self.lock:
            time_remaining = None
            if self.config.enable_timer and self._turn_started_at is not None:
                elapsed = time.monotonic() - self._turn_started_at
                time_remaining = max(0.0, self.config.timer.time_per_turn - elapsed)
            valid_moves = tuple(self.get_valid_moves()) if include_moves else None
            return TurnInfo(
                current_player=self._state.current_player,
                player_index=self._state.current_player_index,
                turn_number=self._state.turn_number,
                phase=self._phase,
                time_remaining=time_remaining,
                can_undo=self.config.allow_undo and bool(self._undo_stack),
                valid_moves=valid_moves,
            )

    def get_valid_moves(self) -> list[Move]:
        return self.engine.get_legal_moves(self._state, self._state.current_player.id)

    def is_game_over(self) -> bool:
        return self._phase == TurnPhase.ENDED or self.engine.is_terminal(self._state) is not None

    # ------------------------------------------------------------------
    # Turn flow
    # ------------------------------------------------------------------

    def start_turn(self):
        """Begin the turn of the current player, skipping inactive players."""
        with self.lock:
            if self._disposed or self._phase == TurnPhase.ENDED:
                return
            terminal = self.engine.is_terminal(self._state)
            if terminal is not None:
                self._end_game(terminal)
                return

            self._phase = TurnPhase.PRE_TURN
            self._turn_started_at = time.monotonic()

            if self.config.skip_inactive_players and not self._state.current_player.is_active:
                index = next_active_player_index(self._state.players, self._state.current_player_index)
                self._state = self._state._copy_with(current_player_index=index)

            if self.config.enable_timer:
                self._start_timer()

            logger.info(
                "Turn %d of %s: %s",
                self._state.turn_number, self._state.id, self._state.current_player.id,
            )
            self._emit(TurnEvent(
                type=TurnEventType.TURN_CHANGED,
                state=self._state,
                turn_info=self.get_turn_info(include_moves=False),
            ))
            self._phase = TurnPhase.MOVE

    def make_move(self, move: Move) -> Result[GameState]:
        with self.lock:
            if self._phase == TurnPhase.ENDED:
                return Result.fail(ErrorCode.GAME_OVER, "The game has ended")
            if self._phase != TurnPhase.MOVE:
                return Result.fail(
                    ErrorCode.INVALID_GAME_STATE, f"Cannot make a move during the {self._phase.value} phase"
                )
            if move.player_id != self._state.current_player.id:
                return Result.fail(ErrorCode.NOT_YOUR_TURN, f"Not {move.player_id}'s turn")

            validation = self.engine.validate_move(self._state, move, move.player_id)
            if not validation.is_valid:
                return Result.from_error(validation.error)

            self._phase = TurnPhase.POST_TURN
            previous = self._state
            result = self.engine.apply_move(previous, move)
            if not result.success:
                self._phase = TurnPhase.MOVE
                return result

            if self.config.allow_undo and self._undo_stack.maxlen:
                self._undo_stack.append(previous)
            self._state = result.data
            self._clear_timer()

            self._emit(TurnEvent(type=TurnEventType.MOVE_MADE, state=self._state, move=move,
                                 player_id=move.player_id))

            terminal = self.engine.is_terminal(self._state)
            if terminal is not None:
                self._end_game(terminal)
            else:
                self.start_turn()

            self._emit(TurnEvent(type=TurnEventType.STATE_CHANGED, state=self._state, move=move))
            return result

    def undo_move(self) -> Result[GameState]:
        """Restore the state before the last move and restart that turn."""
        with self.lock:
            if not self.config.allow_undo:
                return Result.fail(ErrorCode.INVALID_GAME_STATE, "Undo is not allowed")
            if not self._undo_stack:
                return Result.fail(ErrorCode.INVALID_GAME_STATE, "No moves to undo")

            self._clear_timer()
            self._state = self._undo_stack.pop()
            self._phase = TurnPhase.PRE_TURN
            logger.info("Undid a move in %s, back to turn %d", self._state.id, self._state.turn_number)
            self._emit(TurnEvent(type=TurnEventType.MOVE_UNDONE, state=self._state))
            self.start_turn()
            self._emit(TurnEvent(type=TurnEventType.STATE_CHANGED, state=self._state))
            return Result.ok(self._state)

    def skip_turn(self) -> Result[GameState]:
        """Voluntary pass: the turn goes to the next active player."""
        with self.lock:
            if self._phase == TurnPhase.ENDED:
                return Result.fail(ErrorCode.GAME_OVER, "The game has ended")
            player_id = self._state.current_player.id
            self._clear_timer()
            self._emit(TurnEvent(type=TurnEventType.TURN_SKIPPED, state=self._state, player_id=player_id))
            self._advance()
            self.start_turn()
            return Result.ok(self._state)

    def force_end_turn(self) -> Result[GameState]:
        """End the current turn because its time ran out."""
        with self.lock:
            if self._phase == TurnPhase.ENDED:
                return Result.fail(ErrorCode.GAME_OVER, "The game has ended")
            player_id = self._state.current_player.id
            self._clear_timer()
            logger.warning("Turn %d of %s timed out for %s", self._state.turn_number, self._state.id, player_id)
            self._emit(TurnEvent(
                type=TurnEventType.TURN_TIMEOUT,
                state=self._state,
                player_id=player_id,
                message="Turn timed out",
            ))
            self._advance()
            self.start_turn()
            return Result.ok(self._state)

    def resign(self, player_id: str) -> Result[GameState]:
        with self.lock:
            if self._phase == TurnPhase.ENDED:
                return Result.fail(ErrorCode.GAME_OVER, "The game has ended")
            result = self.engine.resign(self._state, player_id)
            if not result.success:
                return result
            self._clear_timer()
            self._state = result.data
            self._end_game(self.engine.is_terminal(self._state))
            self._emit(TurnEvent(type=TurnEventType.STATE_CHANGED, state=self._state, player_id=player_id))
            return result

    def reset(self, new_state: GameState):
        """Start over from `new_state`. Call start_turn() afterwards."""
        with self.lock:
            self._clear_timer()
            self._state = new_state
            self._phase = TurnPhase.PRE_TURN
            self._undo_stack.clear()
            self._turn_started_at = None

    def dispose(self):
        with self.lock:
            self._clear_timer()
            self._disposed = True
            self._observers.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _advance(self):
        # Passing is not a move: history and metadata stay as they are.
        index = next_active_player_index(self._state.players, self._state.current_player_index)
        self._state = self._state._copy_with(
            current_player_index=index,
            turn_number=self._state.turn_number + 1,
        )

    def _end_game(self, terminal: TerminalResult | None):
        self._phase = TurnPhase.ENDED
        self._clear_timer()
        if terminal is not None:
            logger.info("Game %s ended: %s, winner %s", self._state.id, terminal.reason.value, terminal.winner)
        self._emit(TurnEvent(type=TurnEventType.GAME_ENDED, state=self._state, terminal=terminal))

    def _start_timer(self):
        self._clear_timer()
        armed_for = self._state.turn_number
        self._timer = threading.Timer(self.config.timer.time_per_turn, self._on_timeout, args=(armed_for,))
        self._timer.daemon = True
        self._timer.start()

    def _clear_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timeout(self, armed_for: int):
        with self.lock:
            if self._disposed or self._phase != TurnPhase.MOVE or self._state.turn_number != armed_for:
                return
            self.force_end_turn()
