"""
Rules Engine - The state-transition contract every game implements.

The engine is the single point of state transition.
All moves go through apply_move().

Design principles:
- Pure functions: (state, move) -> new state
- Validates before applying
- Returns Result with success/failure, never raises for bad moves
- Game-specific behaviour lives in subclasses; callers only see this contract
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Sequence
import copy
import logging
import uuid

from .move import Move, MoveType
from .result import ErrorCode, EngineInvariantError, Result, ValidationResult
from .schemas import GameStateSnapshot, MoveSnapshot, PlayerSnapshot
from .state import GamePhase, GameState, Player, next_active_player_index

logger = logging.getLogger(__name__)


class TerminalReason(str, Enum):
    """Why a game ended."""
    VICTORY = "victory"
    DRAW = "draw"
    NO_LEGAL_MOVES = "no_legal_moves"
    RESIGNATION = "resignation"


@dataclass(frozen=True)
class PlayerScore:
    player_id: str
    score: float
    rank: int


@dataclass(frozen=True)
class Scoreboard:
    """Scores and ranks for every player."""
    players: tuple[PlayerScore, ...]
    winner: str | None = None
    is_draw: bool = False

    def score_of(self, player_id: str) -> float:
        for entry in self.players:
            if entry.player_id == player_id:
                return entry.score
        return 0.0


@dataclass(frozen=True)
class TerminalResult:
    """How a finished game ended. Pure function of the state."""
    winner: str | None
    is_draw: bool
    reason: TerminalReason
    final_scores: Scoreboard | None = None


class AnnotationKind(str, Enum):
    HIGHLIGHT = "highlight"
    ARROW = "arrow"
    TEXT = "text"
    AREA = "area"


@dataclass(frozen=True)
class Annotation:
    """
    A presentation hint (winning line, last move, ...).

    Coordinates are in the game's own space: cells, dots or canvas units.
    """
    kind: AnnotationKind
    coordinates: tuple[tuple[float, float], ...]
    color: str = ""
    style: str = ""
    label: str = ""


@dataclass
class GameSettings:
    """Settings used to create a new game."""
    game_type: str
    player_count: int = 2
    time_limit: float | None = None  # seconds per turn
    enable_ai: bool = False
    difficulty: int = 3
    grid_size: int | None = None  # dots per side (dots-and-boxes)
    starting_points: int | None = None  # sprouts
    custom_rules: dict[str, Any] = field(default_factory=dict)


def rank_scores(players: Sequence[Player], scores: Sequence[float]) -> Scoreboard:
    """
    Build a scoreboard using competition ranking (1, 1, 3, ...).

    A unique top score names the winner; a shared top score is a draw.
    """
    entries = []
    for idx, player in enumerate(players):
        rank = 1 + sum(1 for other in scores if other > scores[idx])
        entries.append(PlayerScore(player.id, scores[idx], rank))
    best = max(scores) if scores else 0
    leaders = [players[i].id for i, s in enumerate(scores) if s == best]
    if len(leaders) == 1:
        return Scoreboard(players=tuple(entries), winner=leaders[0])
    return Scoreboard(players=tuple(entries), is_draw=True)


class RulesEngine(ABC):
    """
    Abstract base for per-game rules.

    Subclasses provide metadata creation, move validation, the transition
    itself and terminal detection; this class supplies the shared checks,
    history bookkeeping and serialization.
    """

    game_type: str = ""
    display_name: str = ""
    move_types: frozenset[MoveType] = frozenset()
    player_count: int = 2

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    def create_initial_state(
        self,
        settings: GameSettings | None,
        players: Sequence[Player],
    ) -> GameState:
        """Create a fresh game. Raises ValueError for unusable settings."""
        settings = settings or GameSettings(game_type=self.game_type)
        if len(players) != self.player_count:
            raise ValueError(
                f"{self.display_name or self.game_type} needs exactly "
                f"{self.player_count} players, got {len(players)}"
            )
        if len({p.id for p in players}) != len(players):
            raise ValueError("Player ids must be unique")

        return GameState(
            id=f"{self.game_type}_{uuid.uuid4().hex[:12]}",
            game_type=self.game_type,
            players=tuple(players),
            metadata=self._initial_metadata(settings),
        )

    def validate_move(self, state: GameState, move: Move, player_id: str) -> ValidationResult:
        """
        Check whether `player_id` may play `move` now.

        Returns ValidationResult; never raises for rule violations.
        """
        if state.get_player(player_id) is None:
            return ValidationResult.invalid(
                ErrorCode.PLAYER_NOT_FOUND, f"Unknown player: {player_id}"
            )
        if move.type not in self.move_types:
            return ValidationResult.invalid(
                ErrorCode.INVALID_MOVE, f"Invalid move type for {self.game_type}: {move.type.value}"
            )
        if state.phase == GamePhase.FINISHED or state.is_complete:
            return ValidationResult.invalid(ErrorCode.INVALID_GAME_STATE, "Game is already over")
        if state.current_player.id != player_id or move.player_id != player_id:
            return ValidationResult.invalid(ErrorCode.NOT_YOUR_TURN, f"Not {player_id}'s turn")
        return self._validate_game_move(state, move)

    def apply_move(self, state: GameState, move: Move) -> Result[GameState]:
        """
        Apply a move and return the successor state.

        The input state is never modified.
        """
        validation = self.validate_move(state, move, move.player_id)
        if not validation.is_valid:
            logger.debug("Rejected %s move from %s: %s", self.game_type, move.player_id, validation.error)
            return Result.from_error(validation.error)

        new_state = self._apply(state, move)
        # History owns a private copy of the payload.
        recorded = replace(move, data=copy.deepcopy(move.data))
        new_state = new_state._copy_with(
            turn_number=state.turn_number + 1,
            move_history=state.move_history + (recorded,),
        )
        if new_state.is_complete:
            logger.debug("%s game %s finished on turn %d", self.game_type, state.id, state.turn_number)
        return Result.ok(new_state)

    def is_terminal(self, state: GameState) -> TerminalResult | None:
        """Return how the game ended, or None while it is still running."""
        resigned = [p for p in state.players if not p.is_active]
        if state.is_complete and resigned:
            remaining = [p.id for p in state.players if p.is_active]
            return TerminalResult(
                winner=remaining[0] if len(remaining) == 1 else None,
                is_draw=False,
                reason=TerminalReason.RESIGNATION,
                final_scores=self.evaluate(state),
            )
        return self._terminal(state)

    def resign(self, state: GameState, player_id: str) -> Result[GameState]:
        """
        Concede the game for `player_id`.

        Used when an AI has no move to make; the opponent is recorded as winner.
        """
        index = state.player_index(player_id)
        if index < 0:
            return Result.fail(ErrorCode.PLAYER_NOT_FOUND, f"Unknown player: {player_id}")
        if state.is_complete:
            return Result.fail(ErrorCode.INVALID_GAME_STATE, "Game is already over")
        resigned = state.with_player(index, replace(state.players[index], is_active=False))
        logger.info("%s resigned game %s", player_id, state.id)
        return Result.ok(self._finish(resigned))

    def get_legal_moves(self, state: GameState, player_id: str | None = None) -> list[Move]:
        """All legal moves for the side to move (empty when the game is over)."""
        if player_id is not None and player_id != state.current_player.id:
            return []
        if state.phase == GamePhase.FINISHED or self.is_terminal(state) is not None:
            return []
        return self._generate_moves(state)

    @abstractmethod
    def evaluate(self, state: GameState) -> Scoreboard:
        """Current scores and ranks."""

    def get_annotations(self, state: GameState) -> list[Annotation]:
        return []

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def serialize_state(self, state: GameState) -> str:
        snapshot = GameStateSnapshot(
            id=state.id,
            game_type=state.game_type,
            players=[PlayerSnapshot.model_validate(p) for p in state.players],
            current_player_index=state.current_player_index,
            turn_number=state.turn_number,
            phase=state.phase.value,
            is_complete=state.is_complete,
            metadata=self._metadata_to_dict(state.metadata),
            move_history=[
                MoveSnapshot(
                    id=m.id,
                    type=m.type.value,
                    player_id=m.player_id,
                    timestamp=m.timestamp,
                    data=m.data,
                )
                for m in state.move_history
            ],
        )
        return snapshot.model_dump_json()

    def deserialize_state(self, text: str) -> GameState:
        """
        Rebuild a state from serialize_state output.

        Raises ValueError (pydantic.ValidationError) for malformed text.
        """
        snapshot = GameStateSnapshot.model_validate_json(text)
        if snapshot.game_type != self.game_type:
            raise ValueError(
                f"Snapshot is for {snapshot.game_type}, not {self.game_type}"
            )
        return GameState(
            id=snapshot.id,
            game_type=snapshot.game_type,
            players=tuple(Player(**p.model_dump()) for p in snapshot.players),
            current_player_index=snapshot.current_player_index,
            turn_number=snapshot.turn_number,
            phase=GamePhase(snapshot.phase),
            metadata=self._metadata_from_dict(snapshot.metadata),
            is_complete=snapshot.is_complete,
            move_history=tuple(
                Move(
                    type=MoveType(m.type),
                    player_id=m.player_id,
                    data=m.data,
                    id=m.id,
                    timestamp=m.timestamp,
                )
                for m in snapshot.move_history
            ),
        )

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def replay_history(self, state: GameState) -> GameState:
        """
        Rebuild `state` by replaying its move history from a fresh start.

        Raises EngineInvariantError if a recorded move no longer applies.
        """
        players = tuple(replace(p, score=0, is_active=True) for p in state.players)
        replayed = self.create_initial_state(self._settings_for_replay(state), players)
        replayed = replayed._copy_with(id=state.id)
        for move in state.move_history:
            result = self.apply_move(replayed, move)
            if not result.success:
                raise EngineInvariantError(
                    f"History of {state.id} does not replay: {result.error}"
                )
            replayed = result.data
        return replayed

    def check_consistency(self, state: GameState) -> None:
        """Raise EngineInvariantError if metadata disagrees with the history."""
        replayed = self.replay_history(state)
        if replayed.metadata != state.metadata:
            raise EngineInvariantError(f"Metadata of {state.id} is out of sync with its history")

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    def _advance_turn(self, state: GameState) -> int:
        return next_active_player_index(state.players, state.current_player_index)

    def _finish(self, state: GameState) -> GameState:
        return state._copy_with(phase=GamePhase.FINISHED, is_complete=True)

    # ------------------------------------------------------------------
    # Game-specific hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _terminal(self, state: GameState) -> TerminalResult | None:
        """Game-specific terminal detection."""

    @abstractmethod
    def _initial_metadata(self, settings: GameSettings) -> Any:
        """Build metadata for a new game."""

    @abstractmethod
    def _validate_game_move(self, state: GameState, move: Move) -> ValidationResult:
        """Game-specific legality, after the shared turn checks passed."""

    @abstractmethod
    def _apply(self, state: GameState, move: Move) -> GameState:
        """Perform a validated move. apply_move bumps the turn number and history."""

    @abstractmethod
    def _generate_moves(self, state: GameState) -> list[Move]:
        pass

    @abstractmethod
    def _settings_for_replay(self, state: GameState) -> GameSettings:
        pass

    @abstractmethod
    def _metadata_to_dict(self, metadata: Any) -> dict[str, Any]:
        pass

    @abstractmethod
    def _metadata_from_dict(self, data: dict[str, Any]) -> Any:
        pass
