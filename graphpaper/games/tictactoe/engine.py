"""
Tic-tac-toe rules.

Moves are `place` with data {"x", "y", "symbol"}; x is the column and y the
row. The first player plays X.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any
import logging

from ...engine_core.move import Move, MoveType, create_move, is_index
from ...engine_core.result import ErrorCode, ValidationResult
from ...engine_core.rules import (
    Annotation,
    AnnotationKind,
    GameSettings,
    RulesEngine,
    Scoreboard,
    TerminalReason,
    TerminalResult,
    rank_scores,
)
from ...engine_core.state import GameState
from .board import (
    BOARD_SIZE,
    SYMBOLS,
    Board,
    LineKind,
    WinningLine,
    empty_board,
    empty_cells,
    find_winning_line,
    is_full,
    place,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TicTacToeMetadata:
    """Board plus outcome fields. `moves` holds (x, y, symbol) in play order."""
    board: Board
    winner: str | None = None
    winning_line: WinningLine | None = None
    is_draw: bool = False
    moves: tuple[tuple[int, int, str], ...] = ()
    last_move: tuple[int, int] | None = None


def symbol_for(state: GameState, player_id: str) -> str:
    """X for the first seat, O for the second."""
    return SYMBOLS[state.player_index(player_id)]


class TicTacToeEngine(RulesEngine):
    """Rules for 3x3 tic-tac-toe."""

    game_type = "tictactoe"
    display_name = "Tic-Tac-Toe"
    move_types = frozenset({MoveType.PLACE})

    def _initial_metadata(self, settings: GameSettings) -> TicTacToeMetadata:
        return TicTacToeMetadata(board=empty_board())

    def _validate_game_move(self, state: GameState, move: Move) -> ValidationResult:
        meta: TicTacToeMetadata = state.metadata
        if meta.winner is not None or meta.is_draw:
            return ValidationResult.invalid(ErrorCode.INVALID_GAME_STATE, "Board is already decided")

        x, y = move.data.get("x"), move.data.get("y")
        if not is_index(x) or not is_index(y):
            return ValidationResult.invalid(ErrorCode.INVALID_MOVE, "Move needs integer x and y")
        if not (0 <= x < BOARD_SIZE and 0 <= y < BOARD_SIZE):
            return ValidationResult.invalid(ErrorCode.INVALID_MOVE, f"Position ({x}, {y}) is off the board")
        if meta.board[y][x] is not None:
            return ValidationResult.invalid(ErrorCode.INVALID_MOVE, f"Position ({x}, {y}) is occupied")

        expected = symbol_for(state, move.player_id)
        if move.data.get("symbol") != expected:
            return ValidationResult.invalid(
                ErrorCode.INVALID_MOVE,
                f"Player {move.player_id} plays {expected}",
            )
        return ValidationResult.valid()

    def _apply(self, state: GameState, move: Move) -> GameState:
        meta: TicTacToeMetadata = state.metadata
        x, y, symbol = move.data["x"], move.data["y"], move.data["symbol"]
        board = place(meta.board, y, x, symbol)

        won = find_winning_line(board)
        new_meta = replace(
            meta,
            board=board,
            moves=meta.moves + ((x, y, symbol),),
            last_move=(x, y),
        )
        if won is not None:
            new_meta = replace(new_meta, winner=won[0], winning_line=won[1])
        elif is_full(board):
            new_meta = replace(new_meta, is_draw=True)

        new_state = state._copy_with(metadata=new_meta)
        if new_meta.winner is not None or new_meta.is_draw:
            if new_meta.winner is not None:
                winner_idx = SYMBOLS.index(new_meta.winner)
                new_state = new_state.with_player(
                    winner_idx, new_state.players[winner_idx].with_score(1)
                )
            return self._finish(new_state)
        return new_state._copy_with(current_player_index=self._advance_turn(state))

    def _terminal(self, state: GameState) -> TerminalResult | None:
        meta: TicTacToeMetadata = state.metadata
        won = find_winning_line(meta.board)
        if won is not None:
            return TerminalResult(
                winner=state.players[SYMBOLS.index(won[0])].id,
                is_draw=False,
                reason=TerminalReason.VICTORY,
                final_scores=self.evaluate(state),
            )
        if is_full(meta.board):
            return TerminalResult(
                winner=None,
                is_draw=True,
                reason=TerminalReason.DRAW,
                final_scores=self.evaluate(state),
            )
        return None

    def _generate_moves(self, state: GameState) -> list[Move]:
        player = state.current_player
        symbol = symbol_for(state, player.id)
        return [
            create_move(player.id, MoveType.PLACE, {"x": col, "y": row, "symbol": symbol})
            for row, col in empty_cells(state.metadata.board)
        ]

    def evaluate(self, state: GameState) -> Scoreboard:
        won = find_winning_line(state.metadata.board)
        scores = [0, 0]
        if won is not None:
            scores[SYMBOLS.index(won[0])] = 1
        return rank_scores(state.players, scores)

    def get_annotations(self, state: GameState) -> list[Annotation]:
        meta: TicTacToeMetadata = state.metadata
        annotations = []
        if meta.winning_line is not None:
            annotations.append(Annotation(
                kind=AnnotationKind.HIGHLIGHT,
                coordinates=tuple((col, row) for row, col in meta.winning_line.positions),
                color="#4CAF50",
                style="winning-line",
                label=meta.winning_line.kind.value,
            ))
        if meta.last_move is not None:
            annotations.append(Annotation(
                kind=AnnotationKind.HIGHLIGHT,
                coordinates=(meta.last_move,),
                color="#FFC107",
                style="last-move",
            ))
        return annotations

    def _settings_for_replay(self, state: GameState) -> GameSettings:
        return GameSettings(game_type=self.game_type)

    def _metadata_to_dict(self, metadata: TicTacToeMetadata) -> dict[str, Any]:
        line = metadata.winning_line
        return {
            "board": [list(row) for row in metadata.board],
            "winner": metadata.winner,
            "winning_line": (
                {"kind": line.kind.value, "positions": [list(p) for p in line.positions]}
                if line else None
            ),
            "is_draw": metadata.is_draw,
            "moves": [list(m) for m in metadata.moves],
            "last_move": list(metadata.last_move) if metadata.last_move else None,
        }

    def _metadata_from_dict(self, data: dict[str, Any]) -> TicTacToeMetadata:
        line = data.get("winning_line")
        return TicTacToeMetadata(
            board=tuple(tuple(row) for row in data["board"]),
            winner=data.get("winner"),
            winning_line=(
                WinningLine(LineKind(line["kind"]), tuple(tuple(p) for p in line["positions"]))
                if line else None
            ),
            is_draw=data.get("is_draw", False),
            moves=tuple(tuple(m) for m in data.get("moves", [])),
            last_move=tuple(data["last_move"]) if data.get("last_move") else None,
        )
