"""
Sprouts state model.

Points and curves live in flat arenas indexed by integer id (the id is the
position in the tuple). Adjacency is kept as id lists, never as object
references.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
import math

from .geometry import Polyline, Vec

MAX_CONNECTIONS = 3
MIN_STARTING_POINTS = 2
MAX_STARTING_POINTS = 6
DEFAULT_STARTING_POINTS = 3

CANVAS_WIDTH = 600.0
CANVAS_HEIGHT = 400.0
CANVAS_PADDING = 50.0


class SproutsPhase(str, Enum):
    PLAYING = "playing"
    FINISHED = "finished"


@dataclass(frozen=True)
class SproutPoint:
    """
    A spot on the paper.

    `connections` lists the neighbouring point of every curve end attached
    here; a loop contributes its new point twice.
    """
    id: int
    x: float
    y: float
    connections: tuple[int, ...] = ()
    created_at_move: int = 0

    @property
    def position(self) -> Vec:
        return (self.x, self.y)

    @property
    def degree(self) -> int:
        return len(self.connections)

    @property
    def free_slots(self) -> int:
        return MAX_CONNECTIONS - len(self.connections)

    def connect(self, *point_ids: int) -> SproutPoint:
        return replace(self, connections=self.connections + tuple(point_ids))


@dataclass(frozen=True)
class Curve:
    """
    A drawn curve from start_point to end_point.

    `path` includes the new point as the vertex at `split_index`, so the two
    halves are path[:split_index + 1] and path[split_index:].
    """
    id: int
    start_point: int
    end_point: int
    new_point: int
    path: Polyline
    split_index: int
    created_at_move: int

    @property
    def is_loop(self) -> bool:
        return self.start_point == self.end_point

    def halves(self) -> tuple[tuple[int, int, Polyline], tuple[int, int, Polyline]]:
        k = self.split_index
        return (
            (self.start_point, self.new_point, self.path[: k + 1]),
            (self.new_point, self.end_point, self.path[k:]),
        )


@dataclass(frozen=True)
class SproutsMetadata:
    starting_points: int
    points: tuple[SproutPoint, ...]
    curves: tuple[Curve, ...] = ()
    legal_move_count: int = 0
    game_phase: SproutsPhase = SproutsPhase.PLAYING
    winner: int | None = None  # player index

    @property
    def max_moves(self) -> int:
        return 3 * self.starting_points - 1

    @property
    def min_moves(self) -> int:
        return 2 * self.starting_points


def initial_points(count: int) -> tuple[SproutPoint, ...]:
    """Spread the starting points evenly on a circle in the canvas."""
    cx, cy = CANVAS_WIDTH / 2, CANVAS_HEIGHT / 2
    radius = min(CANVAS_WIDTH, CANVAS_HEIGHT) / 2 - CANVAS_PADDING
    points = []
    for i in range(count):
        angle = 2 * math.pi * i / count - math.pi / 2
        points.append(SproutPoint(
            id=i,
            x=round(cx + radius * math.cos(angle), 3),
            y=round(cy + radius * math.sin(angle), 3),
        ))
    return tuple(points)
