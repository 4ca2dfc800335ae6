"""
Sprouts rules.

A `connect` move draws a curve between two points (or from a point back to
itself) and drops a new point on it. Move data:

    {"from_point": int, "to_point": int,
     "path": [[x, y], ...], "new_point": [x, y]}

Curves may not cross, touch each other away from shared endpoints, or run
through other points; no point may carry more than three curve ends. The
player who draws the last possible curve wins.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Any
import logging

from ...engine_core.move import Move, MoveType, create_move, is_index
from ...engine_core.result import EngineInvariantError, ErrorCode, ValidationResult
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
from .geometry import (
    OVERLAP,
    Polyline,
    Vec,
    dedupe_path,
    distance,
    point_segment_distance,
    same_point,
    segment_contact,
    segments,
    split_at,
)
from .model import (
    DEFAULT_STARTING_POINTS,
    MAX_CONNECTIONS,
    MAX_STARTING_POINTS,
    MIN_STARTING_POINTS,
    Curve,
    SproutPoint,
    SproutsMetadata,
    SproutsPhase,
    initial_points,
)
from .routing import FaceRouter
from .topology import Embedding, TopologyAnalysis, analyze

logger = logging.getLogger(__name__)

# A drawn path must start and end this close to its points; it is snapped onto them.
ENDPOINT_TOLERANCE = 0.5
# Minimum gap between a curve and any point it does not end at.
POINT_CLEARANCE = 1e-6
ROUTING_SCALES = (1.0, 0.25, 0.0625)


@dataclass
class SproutsStatistics:
    total_points: int
    total_curves: int
    moves_played: int
    legal_moves_remaining: int
    live_points: int
    free_slots: int
    game_phase: SproutsPhase
    min_game_length: int
    max_game_length: int
    estimated_moves_remaining: tuple[int, int]


def _as_vec(value: Any) -> Vec | None:
    try:
        x, y = value
        return (float(x), float(y))
    except (TypeError, ValueError):
        return None


def _normalize_path(meta: SproutsMetadata, a: int, b: int, raw: Any) -> Polyline | None:
    """Parse a raw path and snap its ends onto the endpoints."""
    if not isinstance(raw, (list, tuple)) or len(raw) < 2:
        return None
    vertices = [_as_vec(v) for v in raw]
    if any(v is None for v in vertices):
        return None
    start, end = meta.points[a].position, meta.points[b].position
    if distance(vertices[0], start) > ENDPOINT_TOLERANCE or distance(vertices[-1], end) > ENDPOINT_TOLERANCE:
        return None
    vertices[0], vertices[-1] = start, end
    return dedupe_path(vertices)


def check_curve(meta: SproutsMetadata, a: int, b: int, path: Polyline, new_point: Vec) -> str | None:
    """
    Geometric legality of a curve. Returns a reason, or None if it is fine.

    `path` must already be normalized (ends snapped, no repeated vertices).
    """
    is_loop = a == b
    if len(path) < (4 if is_loop else 2):
        return "Curve path is too short"
    if is_loop and len({v for v in path}) < 3:
        return "A loop must enclose an area"

    pieces = segments(path)
    last = len(pieces) - 1

    for i in range(len(pieces)):
        for j in range(i + 1, len(pieces)):
            contact = segment_contact(*pieces[i], *pieces[j])
            if contact is None:
                continue
            if contact is OVERLAP:
                return "Curve doubles back over itself"
            if j == i + 1 and same_point(contact, pieces[i][1]):
                continue
            if is_loop and i == 0 and j == last and same_point(contact, path[0]):
                continue
            return "Curve crosses itself"

    endpoints = {path[0], path[-1]}
    for curve in meta.curves:
        for existing in segments(curve.path):
            for i, piece in enumerate(pieces):
                contact = segment_contact(*piece, *existing)
                if contact is None:
                    continue
                if contact is OVERLAP:
                    return f"Curve overlaps curve {curve.id}"
                at_start = i == 0 and same_point(contact, path[0])
                at_end = i == last and same_point(contact, path[-1])
                if not (at_start or at_end):
                    return f"Curve crosses curve {curve.id}"

    for point in meta.points:
        for i, (p, q) in enumerate(pieces):
            if point.position in endpoints:
                if (i == 0 and point.position == p) or (i == last and point.position == q):
                    continue
            if point_segment_distance(point.position, p, q) <= POINT_CLEARANCE:
                return f"Curve passes through point {point.id}"

    if min(point_segment_distance(new_point, p, q) for p, q in pieces) > ENDPOINT_TOLERANCE:
        return "New point must lie on the curve"
    # The point is stored where it projects onto the path, so test that spot.
    split_path, split_index = split_at(path, new_point)
    projected = split_path[split_index]
    for point in meta.points:
        if distance(point.position, projected) <= POINT_CLEARANCE:
            return f"New point coincides with point {point.id}"
    if distance(projected, path[0]) <= POINT_CLEARANCE or distance(projected, path[-1]) <= POINT_CLEARANCE:
        return "New point must lie strictly inside the curve"
    return None


@dataclass(frozen=True)
class RoutedCurve:
    face_id: int
    from_point: int
    to_point: int
    path: Polyline
    new_point: Vec


def _route(meta, embedding, routers, face_id, a, b):
    face = embedding.faces[face_id]
    for method in ("route", "walk"):
        for scale in ROUTING_SCALES:
            key = (face_id, scale)
            if key not in routers:
                routers[key] = FaceRouter(embedding, face, scale)
            routed = getattr(routers[key], method)(a, b)
            if routed is None:
                continue
            path, new_point = dedupe_path(routed[0]), routed[1]
            if check_curve(meta, a, b, path, new_point) is None:
                return path, new_point
    return None


@lru_cache(maxsize=4096)
def routed_curves(points: tuple[SproutPoint, ...], curves: tuple[Curve, ...]) -> tuple[RoutedCurve, ...]:
    """
    A checked concrete curve for every playable (face, a, b) of a drawing.

    The cached legal-move count of a state is the length of this tuple.
    Pairs that cannot be routed are logged and left out.
    """
    meta = SproutsMetadata(starting_points=len(points) - len(curves), points=points, curves=curves)
    embedding = Embedding(meta)
    routers: dict[tuple[int, float], FaceRouter] = {}
    routed = []
    for face_id, a, b in embedding.playable_pairs():
        found = _route(meta, embedding, routers, face_id, a, b)
        if found is None:
            logger.warning("Could not route a curve %d-%d in face %d after %d curves", a, b, face_id, len(curves))
            continue
        routed.append(RoutedCurve(face_id, a, b, *found))
    return tuple(routed)


def count_routed_moves(meta: SproutsMetadata) -> int:
    return len(routed_curves(meta.points, meta.curves))


class SproutsEngine(RulesEngine):
    """Rules for normal-play sprouts."""

    game_type = "sprouts"
    display_name = "Sprouts"
    move_types = frozenset({MoveType.CONNECT})

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def _initial_metadata(self, settings: GameSettings) -> SproutsMetadata:
        count = settings.starting_points or DEFAULT_STARTING_POINTS
        if not MIN_STARTING_POINTS <= count <= MAX_STARTING_POINTS:
            raise ValueError(
                f"Sprouts starts with {MIN_STARTING_POINTS}-{MAX_STARTING_POINTS} points, got {count}"
            )
        meta = SproutsMetadata(starting_points=count, points=initial_points(count))
        return replace(meta, legal_move_count=count_routed_moves(meta))

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate_game_move(self, state: GameState, move: Move) -> ValidationResult:
        meta: SproutsMetadata = state.metadata
        a, b = move.data.get("from_point"), move.data.get("to_point")
        for point_id in (a, b):
            if not is_index(point_id) or not 0 <= point_id < len(meta.points):
                return ValidationResult.invalid(ErrorCode.INVALID_MOVE, f"No such point: {point_id}")

        needed = 2 if a == b else 1
        for point_id in {a, b}:
            if meta.points[point_id].free_slots < needed:
                reason = (
                    f"Point {point_id} needs two free connections for a loop"
                    if a == b else f"Point {point_id} already has {MAX_CONNECTIONS} connections"
                )
                return ValidationResult.invalid(ErrorCode.INVALID_MOVE, reason)

        path = _normalize_path(meta, a, b, move.data.get("path"))
        if path is None:
            return ValidationResult.invalid(
                ErrorCode.INVALID_MOVE, "Curve must be a list of [x, y] vertices from one point to the other"
            )
        new_point = _as_vec(move.data.get("new_point"))
        if new_point is None:
            return ValidationResult.invalid(ErrorCode.INVALID_MOVE, "Move needs a new point position")

        reason = check_curve(meta, a, b, path, new_point)
        if reason:
            return ValidationResult.invalid(ErrorCode.INVALID_MOVE, reason)
        return ValidationResult.valid()

    # ------------------------------------------------------------------
    # Transition
    # ------------------------------------------------------------------

    def _apply(self, state: GameState, move: Move) -> GameState:
        meta: SproutsMetadata = state.metadata
        a, b = move.data["from_point"], move.data["to_point"]
        path = _normalize_path(meta, a, b, move.data["path"])
        path, split_index = split_at(path, _as_vec(move.data["new_point"]))
        new_position = path[split_index]

        new_id = len(meta.points)
        move_number = len(meta.curves) + 1
        points = list(meta.points)
        if a == b:
            points[a] = points[a].connect(new_id, new_id)
        else:
            points[a] = points[a].connect(new_id)
            points[b] = points[b].connect(new_id)
        points.append(SproutPoint(
            id=new_id,
            x=new_position[0],
            y=new_position[1],
            connections=(a, b),
            created_at_move=move_number,
        ))
        curve = Curve(
            id=len(meta.curves),
            start_point=a,
            end_point=b,
            new_point=new_id,
            path=path,
            split_index=split_index,
            created_at_move=move_number,
        )
        new_meta = replace(meta, points=tuple(points), curves=meta.curves + (curve,))
        new_meta = replace(new_meta, legal_move_count=count_routed_moves(new_meta))

        mover = state.current_player_index
        if new_meta.legal_move_count == 0:
            logger.debug("Sprouts game %s: no moves left after curve %d", state.id, curve.id)
            new_meta = replace(new_meta, game_phase=SproutsPhase.FINISHED, winner=mover)
            finished = state._copy_with(metadata=new_meta)
            finished = finished.with_player(mover, state.players[mover].with_score(1))
            return self._finish(finished)
        return state._copy_with(
            metadata=new_meta,
            current_player_index=self._advance_turn(state),
        )

    def _terminal(self, state: GameState) -> TerminalResult | None:
        meta: SproutsMetadata = state.metadata
        if meta.legal_move_count > 0 and meta.game_phase == SproutsPhase.PLAYING:
            return None
        if meta.winner is not None:
            winner = state.players[meta.winner].id
        else:
            # The side to move is stuck: whoever moved before wins.
            previous = (state.current_player_index - 1) % len(state.players)
            winner = state.players[previous].id
        return TerminalResult(
            winner=winner,
            is_draw=False,
            reason=TerminalReason.NO_LEGAL_MOVES,
            final_scores=self.evaluate(state),
        )

    # ------------------------------------------------------------------
    # Move generation
    # ------------------------------------------------------------------

    def _generate_moves(self, state: GameState) -> list[Move]:
        meta: SproutsMetadata = state.metadata
        player_id = state.current_player.id
        return [
            create_move(player_id, MoveType.CONNECT, {
                "from_point": curve.from_point,
                "to_point": curve.to_point,
                "path": [list(v) for v in curve.path],
                "new_point": list(curve.new_point),
            })
            for curve in routed_curves(meta.points, meta.curves)
        ]

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def evaluate(self, state: GameState) -> Scoreboard:
        meta: SproutsMetadata = state.metadata
        scores = [0] * len(state.players)
        if meta.winner is not None:
            scores[meta.winner] = 1
        return rank_scores(state.players, scores)

    def analyze(self, state: GameState) -> TopologyAnalysis:
        return analyze(state.metadata)

    def get_game_statistics(self, state: GameState) -> SproutsStatistics:
        meta: SproutsMetadata = state.metadata
        analysis = analyze(meta)
        played = len(meta.curves)
        upper = max(0, meta.max_moves - played)
        lower = min(upper, max(1 if meta.legal_move_count else 0, meta.min_moves - played))
        return SproutsStatistics(
            total_points=len(meta.points),
            total_curves=played,
            moves_played=played,
            legal_moves_remaining=meta.legal_move_count,
            live_points=analysis.live_points,
            free_slots=analysis.total_lives,
            game_phase=meta.game_phase,
            min_game_length=meta.min_moves,
            max_game_length=meta.max_moves,
            estimated_moves_remaining=(lower, upper),
        )

    def validate_game_state(self, state: GameState) -> None:
        """
        Check the drawing is self-consistent.

        Raises EngineInvariantError describing the first problem found.
        """
        meta: SproutsMetadata = state.metadata
        if len(meta.points) != meta.starting_points + len(meta.curves):
            raise EngineInvariantError("Point count does not match curves drawn")
        for index, point in enumerate(meta.points):
            if point.id != index:
                raise EngineInvariantError(f"Point {point.id} stored at index {index}")
            if point.degree > MAX_CONNECTIONS:
                raise EngineInvariantError(f"Point {point.id} has degree {point.degree}")
            for other in set(point.connections):
                if meta.points[other].connections.count(point.id) != point.connections.count(other):
                    raise EngineInvariantError(f"Connections of {point.id} and {other} disagree")
        for curve in meta.curves:
            new_point = meta.points[curve.new_point]
            if sorted(new_point.connections) != sorted((curve.start_point, curve.end_point)):
                raise EngineInvariantError(f"New point of curve {curve.id} is not on it")
            if curve.path[0] != meta.points[curve.start_point].position:
                raise EngineInvariantError(f"Curve {curve.id} does not start at its point")
            if curve.path[-1] != meta.points[curve.end_point].position:
                raise EngineInvariantError(f"Curve {curve.id} does not end at its point")
            if curve.path[curve.split_index] != new_point.position:
                raise EngineInvariantError(f"Curve {curve.id} is not split at its new point")
        if meta.legal_move_count != count_routed_moves(meta):
            raise EngineInvariantError("Cached legal move count is stale")

    def get_annotations(self, state: GameState) -> list[Annotation]:
        meta: SproutsMetadata = state.metadata
        annotations = [
            Annotation(
                kind=AnnotationKind.HIGHLIGHT,
                coordinates=(point.position,),
                color="#4CAF50",
                style="free-point",
                label=str(point.free_slots),
            )
            for point in meta.points
            if point.free_slots > 0
        ]
        if meta.curves:
            annotations.append(Annotation(
                kind=AnnotationKind.ARROW,
                coordinates=meta.curves[-1].path,
                color="#FFC107",
                style="last-move",
            ))
        return annotations

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def _settings_for_replay(self, state: GameState) -> GameSettings:
        return GameSettings(game_type=self.game_type, starting_points=state.metadata.starting_points)

    def _metadata_to_dict(self, metadata: SproutsMetadata) -> dict[str, Any]:
        return {
            "starting_points": metadata.starting_points,
            "points": [
                {
                    "id": p.id,
                    "x": p.x,
                    "y": p.y,
                    "connections": list(p.connections),
                    "created_at_move": p.created_at_move,
                }
                for p in metadata.points
            ],
            "curves": [
                {
                    "id": c.id,
                    "start_point": c.start_point,
                    "end_point": c.end_point,
                    "new_point": c.new_point,
                    "path": [list(v) for v in c.path],
                    "split_index": c.split_index,
                    "created_at_move": c.created_at_move,
                }
                for c in metadata.curves
            ],
            "legal_move_count": metadata.legal_move_count,
            "game_phase": metadata.game_phase.value,
            "winner": metadata.winner,
        }

    def _metadata_from_dict(self, data: dict[str, Any]) -> SproutsMetadata:
        return SproutsMetadata(
            starting_points=data["starting_points"],
            points=tuple(
                SproutPoint(
                    id=p["id"],
                    x=p["x"],
                    y=p["y"],
                    connections=tuple(p["connections"]),
                    created_at_move=p.get("created_at_move", 0),
                )
                for p in data["points"]
            ),
            curves=tuple(
                Curve(
                    id=c["id"],
                    start_point=c["start_point"],
                    end_point=c["end_point"],
                    new_point=c["new_point"],
                    path=tuple(tuple(v) for v in c["path"]),
                    split_index=c["split_index"],
                    created_at_move=c["created_at_move"],
                )
                for c in data["curves"]
            ),
            legal_move_count=data["legal_move_count"],
            game_phase=SproutsPhase(data["game_phase"]),
            winner=data.get("winner"),
        )
