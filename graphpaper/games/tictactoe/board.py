"""
Tic-tac-toe board helpers.

The board is a 3x3 tuple of tuples holding "X", "O" or None.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

BOARD_SIZE = 3
SYMBOLS = ("X", "O")

Board = tuple[tuple[str | None, ...], ...]
Cell = tuple[int, int]


class LineKind(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    DIAGONAL = "diagonal"


WINNING_LINES: tuple[tuple[LineKind, tuple[Cell, Cell, Cell]], ...] = (
    (LineKind.HORIZONTAL, ((0, 0), (0, 1), (0, 2))),
    (LineKind.HORIZONTAL, ((1, 0), (1, 1), (1, 2))),
    (LineKind.HORIZONTAL, ((2, 0), (2, 1), (2, 2))),
    (LineKind.VERTICAL, ((0, 0), (1, 0), (2, 0))),
    (LineKind.VERTICAL, ((0, 1), (1, 1), (2, 1))),
    (LineKind.VERTICAL, ((0, 2), (1, 2), (2, 2))),
    (LineKind.DIAGONAL, ((0, 0), (1, 1), (2, 2))),
    (LineKind.DIAGONAL, ((0, 2), (1, 1), (2, 0))),
)


@dataclass(frozen=True)
class WinningLine:
    kind: LineKind
    positions: tuple[Cell, ...]

    @property
    def start(self) -> Cell:
        return self.positions[0]

    @property
    def end(self) -> Cell:
        return self.positions[-1]


def empty_board() -> Board:
    return tuple((None,) * BOARD_SIZE for _ in range(BOARD_SIZE))


def place(board: Board, row: int, col: int, symbol: str) -> Board:
    """Return a new board with `symbol` written at (row, col)."""
    return tuple(
        tuple(symbol if (r, c) == (row, col) else cell for c, cell in enumerate(line))
        for r, line in enumerate(board)
    )


def find_winning_line(board: Board) -> tuple[str, WinningLine] | None:
    for kind, cells in WINNING_LINES:
        first = board[cells[0][0]][cells[0][1]]
        if first is not None and all(board[r][c] == first for r, c in cells):
            return first, WinningLine(kind, cells)
    return None


def empty_cells(board: Board) -> list[Cell]:
    return [
        (r, c)
        for r in range(BOARD_SIZE)
        for c in range(BOARD_SIZE)
        if board[r][c] is None
    ]


def is_full(board: Board) -> bool:
    return all(cell is not None for line in board for cell in line)


def line_counts(board: Board, symbol: str) -> list[tuple[int, int]]:
    """
    (own, other) symbol counts for every winning line.

    Used by the heuristic to find open lines and threats.
    """
    other = SYMBOLS[1] if symbol == SYMBOLS[0] else SYMBOLS[0]
    counts = []
    for _, cells in WINNING_LINES:
        values = [board[r][c] for r, c in cells]
        counts.append((values.count(symbol), values.count(other)))
    return counts
