"""
Dots-and-boxes grid geometry and chain analysis.

Indexing is [row][col] everywhere:
- horizontal line (r, c) joins dot (r, c) to dot (r, c+1)
- vertical line (r, c) joins dot (r, c) to dot (r+1, c)
- box (r, c) has corners (r, c) and (r+1, c+1)
"""

from __future__ import annotations
from dataclasses import dataclass, field

HORIZONTAL = "horizontal"
VERTICAL = "vertical"

MIN_DOTS = 2
MAX_DOTS = 8

Line = tuple[str, int, int]
Box = tuple[int, int]
LineGrid = tuple[tuple[bool, ...], ...]


@dataclass(frozen=True)
class DotsAndBoxesMetadata:
    """
    Line matrices, box owners (player index) and scores.

    `last_move_completed_boxes` drives the extra-turn rule.
    """
    width: int
    height: int
    horizontal_lines: LineGrid
    vertical_lines: LineGrid
    boxes: tuple[tuple[int | None, ...], ...]
    player_scores: tuple[int, ...] = (0, 0)
    last_move_completed_boxes: int = 0
    last_line: Line | None = None

    @property
    def box_rows(self) -> int:
        return self.height - 1

    @property
    def box_cols(self) -> int:
        return self.width - 1

    @property
    def total_boxes(self) -> int:
        return self.box_rows * self.box_cols

    @property
    def owned_boxes(self) -> int:
        return sum(1 for row in self.boxes for owner in row if owner is not None)

    def is_drawn(self, line: Line) -> bool:
        kind, r, c = line
        grid = self.horizontal_lines if kind == HORIZONTAL else self.vertical_lines
        return grid[r][c]


def empty_metadata(width: int, height: int) -> DotsAndBoxesMetadata:
    return DotsAndBoxesMetadata(
        width=width,
        height=height,
        horizontal_lines=tuple((False,) * (width - 1) for _ in range(height)),
        vertical_lines=tuple((False,) * width for _ in range(height - 1)),
        boxes=tuple((None,) * (width - 1) for _ in range(height - 1)),
    )


def line_exists(width: int, height: int, line: Line) -> bool:
    kind, r, c = line
    if kind == HORIZONTAL:
        return 0 <= r < height and 0 <= c < width - 1
    if kind == VERTICAL:
        return 0 <= r < height - 1 and 0 <= c < width
    return False


def all_lines(width: int, height: int) -> list[Line]:
    lines = [(HORIZONTAL, r, c) for r in range(height) for c in range(width - 1)]
    lines += [(VERTICAL, r, c) for r in range(height - 1) for c in range(width)]
    return lines


def undrawn_lines(meta: DotsAndBoxesMetadata) -> list[Line]:
    return [line for line in all_lines(meta.width, meta.height) if not meta.is_drawn(line)]


def box_sides(r: int, c: int) -> tuple[Line, Line, Line, Line]:
    return (
        (HORIZONTAL, r, c),
        (HORIZONTAL, r + 1, c),
        (VERTICAL, r, c),
        (VERTICAL, r, c + 1),
    )


def adjacent_boxes(meta: DotsAndBoxesMetadata, line: Line) -> list[Box]:
    """The one or two boxes a line borders."""
    kind, r, c = line
    if kind == HORIZONTAL:
        candidates = [(r - 1, c), (r, c)]
    else:
        candidates = [(r, c - 1), (r, c)]
    return [
        (br, bc) for br, bc in candidates
        if 0 <= br < meta.box_rows and 0 <= bc < meta.box_cols
    ]


def side_count(meta: DotsAndBoxesMetadata, box: Box) -> int:
    return sum(1 for side in box_sides(*box) if meta.is_drawn(side))


def with_line(meta: DotsAndBoxesMetadata, line: Line) -> tuple[LineGrid, LineGrid]:
    """Line matrices with `line` drawn."""
    kind, r, c = line
    grid = meta.horizontal_lines if kind == HORIZONTAL else meta.vertical_lines
    updated = tuple(
        tuple(True if (ri, ci) == (r, c) else v for ci, v in enumerate(row))
        for ri, row in enumerate(grid)
    )
    if kind == HORIZONTAL:
        return updated, meta.vertical_lines
    return meta.horizontal_lines, updated


def completing_count(meta: DotsAndBoxesMetadata, line: Line) -> int:
    """Boxes the line would complete right now."""
    return sum(1 for box in adjacent_boxes(meta, line) if side_count(meta, box) == 3)


def giveaway_count(meta: DotsAndBoxesMetadata, line: Line) -> int:
    """Boxes the line would leave with three sides for the opponent."""
    return sum(1 for box in adjacent_boxes(meta, line) if side_count(meta, box) == 2)


def is_safe(meta: DotsAndBoxesMetadata, line: Line) -> bool:
    return giveaway_count(meta, line) == 0


@dataclass(frozen=True)
class Chain:
    """A connected group of open boxes joined through undrawn shared sides."""
    boxes: tuple[Box, ...]
    is_loop: bool = False

    @property
    def length(self) -> int:
        return len(self.boxes)


@dataclass
class BoardAnalysis:
    """Snapshot of tactical features used by the AI and by hints."""
    completable_boxes: list[Box] = field(default_factory=list)
    safe_moves: list[Line] = field(default_factory=list)
    chains: list[Chain] = field(default_factory=list)

    @property
    def long_chains(self) -> list[Chain]:
        return [chain for chain in self.chains if chain.length >= 3]


def _open_neighbours(meta: DotsAndBoxesMetadata, box: Box) -> list[Box]:
    """Unowned boxes that share an undrawn side with `box`."""
    neighbours = []
    for side in box_sides(*box):
        if meta.is_drawn(side):
            continue
        for other in adjacent_boxes(meta, side):
            if other != box and meta.boxes[other[0]][other[1]] is None:
                neighbours.append(other)
    return neighbours


def find_chains(meta: DotsAndBoxesMetadata) -> list[Chain]:
    """
    Group boxes that already have two or more sides into chains.

    Once such a box gets a third side the opponent can run along the whole
    component, so chain length is what decides the endgame.
    """
    candidates = {
        (r, c)
        for r in range(meta.box_rows)
        for c in range(meta.box_cols)
        if meta.boxes[r][c] is None and side_count(meta, (r, c)) >= 2
    }
    chains = []
    seen: set[Box] = set()
    for start in sorted(candidates):
        if start in seen:
            continue
        component = []
        stack = [start]
        seen.add(start)
        while stack:
            box = stack.pop()
            component.append(box)
            for other in _open_neighbours(meta, box):
                if other in candidates and other not in seen:
                    seen.add(other)
                    stack.append(other)
        is_loop = len(component) >= 4 and all(
            sum(1 for n in _open_neighbours(meta, box) if n in candidates) == 2
            and side_count(meta, box) == 2
            for box in component
        )
        chains.append(Chain(boxes=tuple(sorted(component)), is_loop=is_loop))
    return chains


def analyze_game_state(meta: DotsAndBoxesMetadata) -> BoardAnalysis:
    completable = [
        (r, c)
        for r in range(meta.box_rows)
        for c in range(meta.box_cols)
        if meta.boxes[r][c] is None and side_count(meta, (r, c)) == 3
    ]
    safe = [line for line in undrawn_lines(meta) if is_safe(meta, line)]
    return BoardAnalysis(completable_boxes=completable, safe_moves=safe, chains=find_chains(meta))
