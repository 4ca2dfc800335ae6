"""
Dots-and-boxes rules.

Moves are `horizontal` or `vertical` with data {"row", "col"}.
Completing a box scores it and keeps the turn with the mover.
"""

from __future__ import annotations
from dataclasses import replace
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
from .grid import (
    HORIZONTAL,
    MAX_DOTS,
    MIN_DOTS,
    VERTICAL,
    BoardAnalysis,
    DotsAndBoxesMetadata,
    adjacent_boxes,
    analyze_game_state,
    empty_metadata,
    line_exists,
    side_count,
    undrawn_lines,
    with_line,
)

logger = logging.getLogger(__name__)

DEFAULT_DOTS = 4


def move_to_line(move: Move) -> tuple[str, int, int]:
    return (move.type.value, move.data.get("row"), move.data.get("col"))


class DotsAndBoxesEngine(RulesEngine):
    """Rules for dots-and-boxes on a width x height dot grid."""

    game_type = "dots_and_boxes"
    display_name = "Dots and Boxes"
    move_types = frozenset({MoveType.HORIZONTAL, MoveType.VERTICAL})

    def _initial_metadata(self, settings: GameSettings) -> DotsAndBoxesMetadata:
        size = settings.grid_size or DEFAULT_DOTS
        width = settings.custom_rules.get("width", size)
        height = settings.custom_rules.get("height", size)
        if not (MIN_DOTS <= width <= MAX_DOTS and MIN_DOTS <= height <= MAX_DOTS):
            raise ValueError(
                f"Grid size must be between {MIN_DOTS}x{MIN_DOTS} and "
                f"{MAX_DOTS}x{MAX_DOTS} dots, got {width}x{height}"
            )
        return empty_metadata(width, height)

    def _validate_game_move(self, state: GameState, move: Move) -> ValidationResult:
        meta: DotsAndBoxesMetadata = state.metadata
        kind, row, col = move_to_line(move)
        if not is_index(row) or not is_index(col):
            return ValidationResult.invalid(ErrorCode.INVALID_MOVE, "Move needs integer row and col")
        if not line_exists(meta.width, meta.height, (kind, row, col)):
            return ValidationResult.invalid(
                ErrorCode.INVALID_MOVE, f"No {kind} line at ({row}, {col})"
            )
        if meta.is_drawn((kind, row, col)):
            return ValidationResult.invalid(
                ErrorCode.INVALID_MOVE, f"The {kind} line at ({row}, {col}) is already drawn"
            )
        return ValidationResult.valid()

    def _apply(self, state: GameState, move: Move) -> GameState:
        meta: DotsAndBoxesMetadata = state.metadata
        line = move_to_line(move)
        mover = state.current_player_index

        horizontal, vertical = with_line(meta, line)
        drawn = replace(meta, horizontal_lines=horizontal, vertical_lines=vertical)

        completed = [box for box in adjacent_boxes(drawn, line) if side_count(drawn, box) == 4]
        boxes = drawn.boxes
        if completed:
            boxes = tuple(
                tuple(mover if (r, c) in completed else owner for c, owner in enumerate(row))
                for r, row in enumerate(boxes)
            )
        scores = list(meta.player_scores)
        scores[mover] += len(completed)

        new_meta = replace(
            drawn,
            boxes=boxes,
            player_scores=tuple(scores),
            last_move_completed_boxes=len(completed),
            last_line=line,
        )
        new_state = state._copy_with(metadata=new_meta)
        new_state = new_state.with_player(mover, state.players[mover].with_score(scores[mover]))

        if new_meta.owned_boxes == new_meta.total_boxes:
            return self._finish(new_state)
        if completed:
            logger.debug("%s completed %d box(es) and moves again", move.player_id, len(completed))
            return new_state
        return new_state._copy_with(current_player_index=self._advance_turn(state))

    def _terminal(self, state: GameState) -> TerminalResult | None:
        meta: DotsAndBoxesMetadata = state.metadata
        if meta.owned_boxes < meta.total_boxes:
            return None
        board = self.evaluate(state)
        return TerminalResult(
            winner=board.winner,
            is_draw=board.is_draw,
            reason=TerminalReason.DRAW if board.is_draw else TerminalReason.VICTORY,
            final_scores=board,
        )

    def _generate_moves(self, state: GameState) -> list[Move]:
        player_id = state.current_player.id
        return [
            create_move(player_id, MoveType(kind), {"row": r, "col": c})
            for kind, r, c in undrawn_lines(state.metadata)
        ]

    def evaluate(self, state: GameState) -> Scoreboard:
        return rank_scores(state.players, list(state.metadata.player_scores))

    def analyze_game_state(self, state: GameState) -> BoardAnalysis:
        """Completable boxes, safe moves and chains of the current position."""
        return analyze_game_state(state.metadata)

    def get_annotations(self, state: GameState) -> list[Annotation]:
        meta: DotsAndBoxesMetadata = state.metadata
        annotations = []
        if meta.last_line is not None:
            kind, r, c = meta.last_line
            end = (c + 1, r) if kind == HORIZONTAL else (c, r + 1)
            annotations.append(Annotation(
                kind=AnnotationKind.HIGHLIGHT,
                coordinates=((c, r), end),
                color="#FFC107",
                style="last-move",
            ))
        for r, row in enumerate(meta.boxes):
            for c, owner in enumerate(row):
                if owner is None:
                    continue
                annotations.append(Annotation(
                    kind=AnnotationKind.AREA,
                    coordinates=((c, r), (c + 1, r + 1)),
                    color=state.players[owner].color,
                    label=state.players[owner].name[:1],
                ))
        return annotations

    def _settings_for_replay(self, state: GameState) -> GameSettings:
        meta: DotsAndBoxesMetadata = state.metadata
        return GameSettings(
            game_type=self.game_type,
            custom_rules={"width": meta.width, "height": meta.height},
        )

    def _metadata_to_dict(self, metadata: DotsAndBoxesMetadata) -> dict[str, Any]:
        return {
            "width": metadata.width,
            "height": metadata.height,
            "horizontal_lines": [list(row) for row in metadata.horizontal_lines],
            "vertical_lines": [list(row) for row in metadata.vertical_lines],
            "boxes": [list(row) for row in metadata.boxes],
            "player_scores": list(metadata.player_scores),
            "last_move_completed_boxes": metadata.last_move_completed_boxes,
            "last_line": list(metadata.last_line) if metadata.last_line else None,
        }

    def _metadata_from_dict(self, data: dict[str, Any]) -> DotsAndBoxesMetadata:
        return DotsAndBoxesMetadata(
            width=data["width"],
            height=data["height"],
            horizontal_lines=tuple(tuple(row) for row in data["horizontal_lines"]),
            vertical_lines=tuple(tuple(row) for row in data["vertical_lines"]),
            boxes=tuple(tuple(row) for row in data["boxes"]),
            player_scores=tuple(data["player_scores"]),
            last_move_completed_boxes=data.get("last_move_completed_boxes", 0),
            last_line=tuple(data["last_line"]) if data.get("last_line") else None,
        )

